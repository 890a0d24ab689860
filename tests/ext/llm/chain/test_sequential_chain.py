"""
SequentialChain 测试
"""

import pytest

from chainforge.ext.llm.exceptions import LLMAPIError
from chainforge.ext.llm.chain import (
    Chain,
    ChainInput,
    ChainOutput,
    ChildChainError,
    MetadataAggregator,
    ProviderError,
    SequentialChain,
    SimpleChain,
)


class UpperChain(Chain):
    """把 previous_output 或 text 转为大写的本地 Chain"""

    async def _run(self, input: ChainInput) -> ChainOutput:
        aggregator = MetadataAggregator(self.name)
        text = input.get_string("previous_output") or input.get_string("text") or ""
        aggregator.record_step("upper", 0, text, text.upper())
        return ChainOutput(result=text.upper(), metadata=aggregator.finish())


class TestSequentialChain:
    """测试顺序执行"""

    @pytest.mark.asyncio
    async def test_aggregates_children(self, make_llm):
        """测试步骤拼接与 token 求和"""
        first_llm = make_llm(replies=["draft"])
        second_llm = make_llm(replies=["final"], prompt_tokens=20, completion_tokens=10)
        first = SimpleChain("draft", "", first_llm, "Write about {topic}")
        second = SimpleChain("refine", "", second_llm, "Refine: {previous_output}")
        chain = SequentialChain("pipeline", "draft then refine", [first, second])

        output = await chain.execute({"topic": "cats"})

        assert first_llm.prompts == ["Write about cats"]
        # previous_output 是字典，不会被替换
        assert second_llm.prompts == ["Refine: {previous_output}"]
        assert output.result == {"output": "final", "model": "fake-model"}
        assert [step.name for step in output.metadata.steps] == ["llm_call", "llm_call"]
        assert [step.output for step in output.metadata.steps] == ["draft", "final"]
        assert output.metadata.total_tokens == 15 + 30
        assert output.metadata.chain_name == "pipeline"

    @pytest.mark.asyncio
    async def test_nested_chains_accumulate_metadata(self, make_llm):
        """测试嵌套 SequentialChain 的步骤展开与 token、费用求和"""
        llms = [make_llm(replies=[reply], model_name="gpt-4", prompt_tokens=100, completion_tokens=50) for reply in "abc"]
        inner = SequentialChain(
            "inner",
            "",
            [SimpleChain("b", "", llms[1], "{previous_output}"), SimpleChain("c", "", llms[2], "{previous_output}")],
        )
        chain = SequentialChain("outer", "", [SimpleChain("a", "", llms[0], "start"), inner])

        output = await chain.execute({})

        call_cost = 100 * 0.00003 + 50 * 0.00006
        assert [step.output for step in output.metadata.steps] == ["a", "b", "c"]
        assert output.metadata.total_tokens == 3 * 150
        assert output.metadata.total_cost == pytest.approx(3 * call_cost)
        assert output.result == {"output": "c", "model": "gpt-4"}

    @pytest.mark.asyncio
    async def test_only_first_child_sees_caller_variables(self, make_llm):
        """测试后续子 Chain 只收到 previous_output"""
        llm = make_llm(replies=["x"])
        chain = SequentialChain(
            "seq",
            "",
            [UpperChain("upper"), SimpleChain("echo", "", llm, "{previous_output} / {text}")],
        )

        output = await chain.execute({"text": "hello"})

        assert llm.prompts == ["HELLO / {text}"]
        assert output.result["output"] == "x"

    @pytest.mark.asyncio
    async def test_empty_chain_returns_no_output(self):
        """测试没有子 Chain 时返回哨兵字符串"""
        output = await SequentialChain("empty").execute({"a": "b"})

        assert output.result == "No output"
        assert output.metadata.steps == []
        assert output.metadata.total_tokens == 0

    @pytest.mark.asyncio
    async def test_child_failure(self, make_llm):
        """测试子 Chain 失败立即中止"""
        third_llm = make_llm()
        chain = SequentialChain(
            "seq",
            "",
            [
                UpperChain("upper"),
                SimpleChain("broken", "", make_llm(error=LLMAPIError("down")), "{previous_output}"),
                SimpleChain("never", "", third_llm, "{previous_output}"),
            ],
        )

        with pytest.raises(ChildChainError) as exc_info:
            await chain.execute({"text": "hi"})

        error = exc_info.value
        assert error.child_index == 1
        assert error.child_name == "broken"
        assert isinstance(error.original_error, ProviderError)
        assert [step.name for step in error.steps] == ["upper"]
        assert third_llm.prompts == []

    def test_add_chain_is_fluent(self):
        """测试 add_chain 返回自身"""
        chain = SequentialChain("seq")
        result = chain.add_chain(UpperChain("a")).add_chain(UpperChain("b"))

        assert result is chain
        assert [child.name for child in chain.chains] == ["a", "b"]

    def test_pipe_operator(self):
        """测试管道操作符"""
        a, b, c = UpperChain("a"), UpperChain("b"), UpperChain("c")

        pipeline = a | b | c

        assert isinstance(pipeline, SequentialChain)
        assert [child.name for child in pipeline.chains] == ["a", "b", "c"]

    @pytest.mark.asyncio
    async def test_pipe_executes_in_order(self):
        """测试管道执行结果"""
        output = await (UpperChain("a") | UpperChain("b")).execute({"text": "abc"})

        assert output.result == "ABC"
        assert len(output.metadata.steps) == 2

    def test_pipe_keeps_timeout(self):
        """测试向已有 SequentialChain 追加时保留超时"""
        pipeline = SequentialChain("seq", "", [UpperChain("a")], timeout=5) | UpperChain("b")

        assert pipeline.timeout == 5
        assert [child.name for child in pipeline.chains] == ["a", "b"]
