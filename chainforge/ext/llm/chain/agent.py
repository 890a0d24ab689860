"""
Agent 实现

有界的 ReAct 风格控制循环：推理 -> 解析 -> 最终答案 / 调用工具 / 未知工具
"""

import time

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field

from chainforge.util.general import elapsed_ms, truncate_content
from chainforge.ext.llm.base import BaseLLMModel
from chainforge.ext.llm.types import CompletionRequest
from chainforge.ext.llm.chain.base import guarded_call
from chainforge.ext.llm.chain.tool import BaseTool
from chainforge.ext.llm.chain.parser import ReActOutputParser
from chainforge.ext.llm.chain.registry import ToolRegistry
from chainforge.ext.llm.chain.exceptions import MaxIterationsError, ToolExecutionError, UnknownToolError

REACT_PROMPT_TEMPLATE = """You are an AI agent that can use tools to accomplish tasks.

Available tools:
{tools}

Task: {input}

Current iteration: {iteration}

Respond in this format:
Thought: [your reasoning about what to do next]
Action: [tool name or "final_answer"]
Action Input: [input for the tool or your final answer]

Begin!"""


class AgentStep(BaseModel):
    """单次迭代的审计记录

    最终答案步骤的 observation 与 action_input 相同，is_final 标记该步骤
    """

    model_config = ConfigDict(frozen=True)

    iteration: int
    thought: str
    action: str
    action_input: str
    observation: str
    duration_ms: int
    is_final: bool = False


class AgentResult(BaseModel):
    final_answer: str
    steps: list[AgentStep] = Field(default_factory=list)
    total_iterations: int


class AgentExecutor:
    """ReAct Agent 执行器

    每次 execute 内部严格串行；执行器本身无运行时状态，可被并发复用
    """

    def __init__(
        self,
        llm: BaseLLMModel,
        tools: ToolRegistry | None = None,
        max_iterations: int = 10,
        parser: ReActOutputParser | None = None,
        llm_timeout: float | None = None,
        tool_timeout: float | None = None,
        enable_reasoning_logs: bool = False,
        prompt_template: str = REACT_PROMPT_TEMPLATE,
    ):
        """
        Args:
            llm: LLM 模型
            tools: 工具注册表，未提供时创建空注册表
            max_iterations: 最大迭代次数
            parser: 动作解析器
            llm_timeout: 单次 LLM 调用截止时间（秒）
            tool_timeout: 单次工具调用截止时间（秒）
            enable_reasoning_logs: 是否以 INFO 级别输出每轮推理
            prompt_template: 推理提示词模板，包含 {tools} {input} {iteration} 占位符
        """
        if max_iterations <= 0:
            raise ValueError("max_iterations must be positive")

        self.llm = llm
        self.tools = tools if tools is not None else ToolRegistry()
        self.max_iterations = max_iterations
        self.parser = parser or ReActOutputParser()
        self.llm_timeout = llm_timeout
        self.tool_timeout = tool_timeout
        self.enable_reasoning_logs = enable_reasoning_logs
        self.prompt_template = prompt_template

    def add_tool(self, tool: BaseTool) -> "AgentExecutor":
        self.tools.register(tool)
        return self

    def build_tools_description(self) -> str:
        return "\n".join(f"- {tool.name}: {tool.description}" for tool in self.tools.list())

    def build_reasoning_prompt(self, current_input: str, iteration: int) -> str:
        return self.prompt_template.format(
            tools=self.build_tools_description(),
            input=current_input,
            iteration=iteration,
        )

    async def execute(self, task: str) -> AgentResult:
        """执行任务

        Args:
            task: 任务描述

        Returns:
            AgentResult

        Raises:
            UnknownToolError: LLM 选择了未注册的工具
            MaxIterationsError: 迭代次数耗尽仍未给出最终答案
            ProviderError: LLM 或工具调用失败
        """
        logger.debug(
            f"AgentExecutor execute - task: {truncate_content(task)}, "
            f"tools: {len(self.tools)}, max_iterations: {self.max_iterations}",
        )

        steps: list[AgentStep] = []
        current_input = task

        for iteration in range(self.max_iterations):
            start = time.perf_counter()
            logger.debug(f"AgentExecutor iteration {iteration + 1}/{self.max_iterations}")

            prompt = self.build_reasoning_prompt(current_input, iteration)
            response = await guarded_call(
                self.llm.generate(CompletionRequest(prompt=prompt)),
                f"llm '{self.llm.model_name}'",
                self.llm_timeout,
            )
            action = self.parser.parse(response.text)

            if self.enable_reasoning_logs:
                logger.info(
                    f"Agent iteration {iteration} - thought: {action.thought}, "
                    f"action: {action.action_type}, input: {truncate_content(action.action_input)}",
                )

            if action.is_final:
                steps.append(
                    AgentStep(
                        iteration=iteration,
                        thought=action.thought,
                        action=action.action_type,
                        action_input=action.action_input,
                        observation=action.action_input,
                        duration_ms=elapsed_ms(start),
                        is_final=True,
                    ),
                )
                logger.debug(f"AgentExecutor completed after {iteration + 1} iterations")
                return AgentResult(final_answer=action.action_input, steps=steps, total_iterations=iteration + 1)

            tool = self.tools.get(action.action_type)
            if tool is None:
                logger.warning(f"Agent selected unknown tool: {action.action_type}")
                raise UnknownToolError(action.action_type, steps)

            logger.info(f"AgentExecutor executing tool: {tool.name}")
            output = await guarded_call(
                tool.execute(action.action_input),
                tool.name,
                self.tool_timeout,
                error_cls=ToolExecutionError,
            )
            if not output.success:
                logger.warning(f"Tool '{tool.name}' reported failure: {truncate_content(output.result)}")

            steps.append(
                AgentStep(
                    iteration=iteration,
                    thought=action.thought,
                    action=action.action_type,
                    action_input=action.action_input,
                    observation=output.result,
                    duration_ms=elapsed_ms(start),
                ),
            )
            current_input = output.result

        logger.warning(f"AgentExecutor reached max iterations: {self.max_iterations}")
        raise MaxIterationsError(self.max_iterations, steps)
