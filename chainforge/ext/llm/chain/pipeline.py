"""
检索增强生成（RAG）Chain
"""

import time

from chainforge.util.general import elapsed_ms
from chainforge.ext.llm.base import BaseLLMModel
from chainforge.ext.llm.types import CompletionRequest
from chainforge.ext.rag.retriever import BaseRetriever
from chainforge.ext.llm.chain.base import Chain, guarded_call
from chainforge.ext.llm.chain.prompt import PromptTemplate
from chainforge.ext.llm.chain.exceptions import MissingVariableError
from chainforge.ext.llm.chain.metadata import ChainInput, ChainOutput, MetadataAggregator

DEFAULT_RAG_TEMPLATE = """Answer the question based on the context below.

Context:
{context}

Question: {query}

Answer:"""


class RAGPipeline(Chain):
    """检索上下文后调用 LLM 生成回答

    输入必须包含字符串变量 "query"；模板使用 {context} 和 {query} 两个占位符。
    结果为 {"output", "context_used", "model"}，记录 "retrieve_context" 和 "llm_generate" 两个步骤
    """

    def __init__(
        self,
        name: str,
        description: str,
        llm: BaseLLMModel,
        retriever: BaseRetriever,
        prompt_template: str | PromptTemplate = DEFAULT_RAG_TEMPLATE,
        llm_timeout: float | None = None,
        retrieval_timeout: float | None = None,
        timeout: float | None = None,
    ):
        super().__init__(name, description, timeout)
        self.llm = llm
        self.retriever = retriever
        self.prompt = (
            prompt_template if isinstance(prompt_template, PromptTemplate) else PromptTemplate(prompt_template)
        )
        self.llm_timeout = llm_timeout
        self.retrieval_timeout = retrieval_timeout

    async def _run(self, input: ChainInput) -> ChainOutput:
        query = input.get_string("query")
        if query is None:
            raise MissingVariableError("query", self.name)

        aggregator = MetadataAggregator(self.name)

        start = time.perf_counter()
        context = await guarded_call(self.retriever.build_context(query), "retriever", self.retrieval_timeout)
        aggregator.record_step(
            "retrieve_context",
            elapsed_ms(start),
            query,
            f"Retrieved {len(context)} characters of context",
        )

        prompt = self.prompt.render({"context": context, "query": query})
        response = await guarded_call(
            self.llm.generate(CompletionRequest(prompt=prompt)),
            f"llm '{self.llm.model_name}'",
            self.llm_timeout,
        )
        aggregator.record_step("llm_generate", response.latency_ms, prompt, response.text)
        aggregator.add_usage(response.usage.total_tokens, response.usage.estimate_cost(response.model))

        return ChainOutput(
            result={"output": response.text, "context_used": context, "model": response.model},
            metadata=aggregator.finish(),
        )
