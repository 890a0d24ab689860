"""
RAGPipeline 测试
"""

import pytest

from chainforge.ext.rag.exceptions import RetrievalError
from chainforge.ext.llm.chain import MissingVariableError, ProviderError, RAGPipeline, StepTimeoutError


class TestRAGPipeline:
    """测试 RAG Chain"""

    @pytest.mark.asyncio
    async def test_prompt_merges_context_and_query(self, make_llm, make_retriever):
        """测试上下文与查询合并到模板"""
        llm = make_llm(replies=["answer"])
        retriever = make_retriever(context="ctxA")
        chain = RAGPipeline("rag", "", llm, retriever, "{context}|{query}")

        output = await chain.execute({"query": "hi"})

        assert retriever.queries == ["hi"]
        assert llm.prompts == ["ctxA|hi"]
        assert output.result == {"output": "answer", "context_used": "ctxA", "model": "fake-model"}

    @pytest.mark.asyncio
    async def test_steps(self, make_llm, make_retriever):
        """测试记录检索与生成两个步骤"""
        chain = RAGPipeline("rag", "", make_llm(replies=["a"]), make_retriever(context="ctxA"), "{context}|{query}")

        output = await chain.execute({"query": "hi"})

        retrieve, generate = output.metadata.steps
        assert retrieve.name == "retrieve_context"
        assert retrieve.input == "hi"
        assert retrieve.output == "Retrieved 4 characters of context"
        assert generate.name == "llm_generate"
        assert generate.input == "ctxA|hi"
        assert generate.output == "a"
        assert output.metadata.total_tokens == 15

    @pytest.mark.asyncio
    async def test_default_template(self, make_llm, make_retriever):
        """测试默认模板包含上下文与问题"""
        llm = make_llm()
        chain = RAGPipeline("rag", "", llm, make_retriever(context="facts"))

        await chain.execute({"query": "why?"})

        assert "facts" in llm.prompts[0]
        assert "Question: why?" in llm.prompts[0]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("variables", [{}, {"query": 42}, {"question": "hi"}])
    async def test_missing_query(self, make_llm, make_retriever, variables):
        """测试缺少字符串 query 时失败"""
        llm = make_llm()
        retriever = make_retriever()
        chain = RAGPipeline("rag", "", llm, retriever)

        with pytest.raises(MissingVariableError) as exc_info:
            await chain.execute(variables)

        assert exc_info.value.variable == "query"
        assert retriever.queries == []
        assert llm.prompts == []

    @pytest.mark.asyncio
    async def test_retriever_error_wrapped(self, make_llm, make_retriever):
        """测试检索异常被包装"""
        llm = make_llm()
        chain = RAGPipeline("rag", "", llm, make_retriever(error=RetrievalError("index offline")))

        with pytest.raises(ProviderError) as exc_info:
            await chain.execute({"query": "hi"})

        assert exc_info.value.source == "retriever"
        assert isinstance(exc_info.value.__cause__, RetrievalError)
        assert llm.prompts == []

    @pytest.mark.asyncio
    async def test_llm_timeout(self, make_llm, make_retriever):
        """测试生成步骤超时"""
        chain = RAGPipeline("rag", "", make_llm(delay=0.5), make_retriever(context="c"), llm_timeout=0.01)

        with pytest.raises(StepTimeoutError):
            await chain.execute({"query": "hi"})
