"""
AgentExecutor 测试
"""

import asyncio

import pytest

from chainforge.ext.llm.exceptions import LLMTimeoutError
from chainforge.ext.llm.chain import (
    AgentExecutor,
    CalculatorTool,
    MaxIterationsError,
    ProviderError,
    StepTimeoutError,
    ToolExecutionError,
    ToolRegistry,
    UnknownToolError,
    tool,
)


@pytest.fixture
def tools():
    return ToolRegistry([CalculatorTool()])


class TestAgentExecutor:
    """测试 ReAct 控制循环"""

    @pytest.mark.asyncio
    async def test_reply_without_action_is_final(self, make_llm, tools):
        """测试没有 Action 行的回复直接作为最终答案"""
        reply = "Paris is the capital of France."
        agent = AgentExecutor(make_llm(replies=[reply]), tools)

        result = await agent.execute("Capital of France?")

        assert result.total_iterations == 1
        assert result.final_answer == reply
        assert len(result.steps) == 1
        step = result.steps[0]
        assert step.iteration == 0
        assert step.action == "final_answer"
        assert step.observation == step.action_input == reply
        assert step.is_final

    @pytest.mark.asyncio
    async def test_tool_dispatch(self, make_llm, tools):
        """测试调用工具后把结果作为下一轮输入"""
        llm = make_llm(
            replies=[
                "Thought: compute it\nAction: calculator\nAction Input: 2 + 3",
                "Thought: done\nAction: final_answer\nAction Input: The sum is 5",
            ],
        )
        agent = AgentExecutor(llm, tools)

        result = await agent.execute("What is 2 + 3?")

        assert result.final_answer == "The sum is 5"
        assert result.total_iterations == 2
        first, second = result.steps
        assert (first.iteration, first.thought, first.action, first.action_input, first.observation) == (
            0,
            "compute it",
            "calculator",
            "2 + 3",
            "5",
        )
        assert not first.is_final
        assert second.is_final
        assert "Task: What is 2 + 3?" in llm.prompts[0]
        assert "Current iteration: 0" in llm.prompts[0]
        assert "Task: 5" in llm.prompts[1]
        assert "Current iteration: 1" in llm.prompts[1]

    @pytest.mark.asyncio
    async def test_prompt_lists_tools(self, make_llm, tools):
        """测试提示词包含工具目录"""
        llm = make_llm(replies=["done"])
        agent = AgentExecutor(llm, tools).add_tool(tool(lambda text: text, name="echo", description="Echo input"))

        await agent.execute("task")

        prompt = llm.prompts[0]
        assert prompt.startswith("You are an AI agent that can use tools to accomplish tasks.")
        assert "- calculator: Performs mathematical calculations\n- echo: Echo input" in prompt
        assert prompt.endswith("Begin!")

    @pytest.mark.asyncio
    async def test_max_iterations(self, make_llm, tools):
        """测试迭代耗尽后失败"""
        llm = make_llm(replies=["Action: calculator\nAction Input: 1 + 1"])
        agent = AgentExecutor(llm, tools, max_iterations=3)

        with pytest.raises(MaxIterationsError) as exc_info:
            await agent.execute("loop forever")

        assert len(llm.prompts) == 3
        assert exc_info.value.max_iterations == 3
        assert [step.iteration for step in exc_info.value.steps] == [0, 1, 2]

    @pytest.mark.asyncio
    async def test_unknown_tool(self, make_llm, tools):
        """测试未知工具立即失败"""
        llm = make_llm(replies=["Thought: search\nAction: web_search\nAction Input: cats"])
        agent = AgentExecutor(llm, tools)

        with pytest.raises(UnknownToolError) as exc_info:
            await agent.execute("find cats")

        assert exc_info.value.tool_name == "web_search"
        assert exc_info.value.steps == []
        assert len(llm.prompts) == 1

    @pytest.mark.asyncio
    async def test_unknown_tool_keeps_previous_steps(self, make_llm, tools):
        """测试未知工具错误携带已记录步骤"""
        llm = make_llm(
            replies=[
                "Action: calculator\nAction Input: 1 + 1",
                "Action: web_search\nAction Input: 2",
            ],
        )
        agent = AgentExecutor(llm, tools)

        with pytest.raises(UnknownToolError) as exc_info:
            await agent.execute("task")

        assert [step.observation for step in exc_info.value.steps] == ["2"]

    @pytest.mark.asyncio
    async def test_failed_tool_output_is_observation(self, make_llm, tools):
        """测试工具返回失败时结果仍作为观察"""
        llm = make_llm(replies=["Action: calculator\nAction Input: 1 / 0", "Action: final_answer\nAction Input: oops"])
        agent = AgentExecutor(llm, tools)

        result = await agent.execute("divide")

        assert result.final_answer == "oops"
        assert "Invalid expression" in result.steps[0].observation

    @pytest.mark.asyncio
    async def test_tool_exception_wrapped(self, make_llm):
        """测试工具异常被包装"""

        @tool
        def broken(text: str) -> str:
            """Always raises"""
            raise RuntimeError("kaput")

        agent = AgentExecutor(make_llm(replies=["Action: broken\nAction Input: x"]), ToolRegistry([broken]))

        with pytest.raises(ToolExecutionError) as exc_info:
            await agent.execute("task")

        assert exc_info.value.tool_name == "broken"
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_tool_timeout(self, make_llm):
        """测试工具调用超时"""

        @tool
        async def slow(text: str) -> str:
            """Sleeps"""
            await asyncio.sleep(0.5)
            return text

        agent = AgentExecutor(
            make_llm(replies=["Action: slow\nAction Input: x"]),
            ToolRegistry([slow]),
            tool_timeout=0.01,
        )

        with pytest.raises(StepTimeoutError) as exc_info:
            await agent.execute("task")

        assert exc_info.value.source == "slow"

    @pytest.mark.asyncio
    async def test_llm_error(self, make_llm, tools):
        """测试 LLM 异常被包装为 ProviderError"""
        agent = AgentExecutor(make_llm(error=LLMTimeoutError("slow")), tools)

        with pytest.raises(ProviderError) as exc_info:
            await agent.execute("task")

        assert isinstance(exc_info.value.original_error, LLMTimeoutError)

    @pytest.mark.asyncio
    async def test_concurrent_runs_are_independent(self, make_llm, tools):
        """测试并发执行互不影响"""
        agent = AgentExecutor(make_llm(replies=["done"]), tools)

        results = await asyncio.gather(*(agent.execute(f"task {i}") for i in range(5)))

        assert all(result.total_iterations == 1 for result in results)

    def test_invalid_max_iterations(self, fake_llm):
        """测试 max_iterations 必须为正数"""
        with pytest.raises(ValueError):
            AgentExecutor(fake_llm, max_iterations=0)
