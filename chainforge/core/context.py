import os
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

import httpx
from loguru import logger

from chainforge.config.main import LocalConfig, local_configs
from chainforge.core.logger import LogLevelEnum, setup_loguru
from chainforge.config.default import RegisterExtensionConfig
from chainforge.ext.llm.base import BaseLLMModel
from chainforge.ext.llm.factory import LLMModelFactory
from chainforge.ext.llm.chain import (
    AgentExecutor,
    ChainRegistry,
    CalculatorTool,
    PromptTemplate,
    RAGPipeline,
    SimpleChain,
    ToolRegistry,
)
from chainforge.ext.llm.chain.pipeline import DEFAULT_RAG_TEMPLATE
from chainforge.ext.embedding.base import EmbeddingModel
from chainforge.ext.embedding.providers import OpenAIEmbedding
from chainforge.ext.rag import BaseRetriever, DocumentLoader, InMemoryVectorStore, Retriever

# 导入时注册全部 LLM provider
import chainforge.ext.llm.providers  # noqa: F401


class ForgeContext:
    """运行时上下文

    持有 Chain / Tool 注册表、默认 LLM 和可选的检索器，
    显式 init / close，替代进程级全局状态
    """

    def __init__(
        self,
        settings: LocalConfig | None = None,
        llm: BaseLLMModel | None = None,
        embedding_model: EmbeddingModel | None = None,
    ):
        self.settings = settings or local_configs
        self.chains = ChainRegistry()
        self.tools = ToolRegistry()
        self._llm = llm
        self._embedding_model = embedding_model
        self.retriever: BaseRetriever | None = None
        self._initialized = False

    @property
    def llm(self) -> BaseLLMModel:
        if self._llm is None:
            raise RuntimeError("Context not initialized. Make sure init() has been called.")
        return self._llm

    @property
    def http_client(self) -> httpx.AsyncClient:
        """上下文配置中已注册的 httpx 客户端"""
        return self.settings.extensions.httpx.instance

    async def init(self) -> None:
        if self._initialized:
            return

        project = self.settings.project
        setup_loguru(LogLevelEnum.DEBUG if project.debug else LogLevelEnum.from_name(project.log_level))

        for _, ext_conf in self.settings.extensions:  # type: ignore
            if isinstance(ext_conf, RegisterExtensionConfig):
                await ext_conf.register()

        if self._llm is None:
            # 每个上下文独立创建模型，使用自身注册的 httpx 客户端
            self._llm = await LLMModelFactory.create(
                self.settings.llm.default_provider,
                self.settings.llm,
                use_cache=False,
                http_client=self.http_client,
            )

        self.tools.register(CalculatorTool())

        if self._embedding_model is None and self.settings.embeddings.enabled:
            self._embedding_model = self._build_embedding_model()
        if self._embedding_model is not None:
            rag = self.settings.rag
            self.retriever = Retriever(
                vector_store=InMemoryVectorStore(),
                embedding_model=self._embedding_model,
                chunk_size=rag.chunk_size,
                chunk_overlap=rag.chunk_overlap,
                top_k=rag.retrieval_top_k,
                similarity_threshold=rag.similarity_threshold,
            )

        self._initialized = True
        logger.info(f"Context initialized: {project.name} ({project.environment.value})")

    async def close(self) -> None:
        if not self._initialized:
            return

        for _, ext_conf in self.settings.extensions:  # type: ignore
            if isinstance(ext_conf, RegisterExtensionConfig):
                await ext_conf.unregister()

        self._initialized = False
        logger.info("Context closed")

    def _build_embedding_model(self) -> EmbeddingModel:
        embeddings = self.settings.embeddings
        return OpenAIEmbedding(
            model_name_or_path=embeddings.model,
            dimension=embeddings.dimension,
            max_batch_size=embeddings.batch_size,
            config={
                "api_key": os.environ.get(embeddings.api_key_env),
                "base_url": embeddings.base_url,
            },
            http_client=self.http_client,
        )

    def build_simple_chain(self, name: str, description: str, prompt_template: str | PromptTemplate) -> SimpleChain:
        """使用上下文的 LLM 和配置的超时创建 SimpleChain"""
        chains = self.settings.chains
        return SimpleChain(
            name,
            description,
            self.llm,
            prompt_template,
            llm_timeout=chains.llm_timeout_seconds,
            timeout=chains.timeout_seconds,
        )

    def build_rag_pipeline(
        self,
        name: str,
        description: str,
        prompt_template: str | PromptTemplate = DEFAULT_RAG_TEMPLATE,
    ) -> RAGPipeline:
        if self.retriever is None:
            raise RuntimeError("Retriever not configured. Enable embeddings or pass an embedding model.")

        chains = self.settings.chains
        return RAGPipeline(
            name,
            description,
            self.llm,
            self.retriever,
            prompt_template,
            retrieval_timeout=chains.retrieval_timeout_seconds,
            llm_timeout=chains.llm_timeout_seconds,
            timeout=chains.timeout_seconds,
        )

    def build_document_loader(self) -> DocumentLoader:
        return DocumentLoader(http_client=self.http_client)

    def build_agent(self, max_iterations: int | None = None) -> AgentExecutor:
        agents = self.settings.agents
        return AgentExecutor(
            self.llm,
            self.tools,
            max_iterations=max_iterations or agents.max_iterations,
            llm_timeout=agents.llm_timeout_seconds,
            tool_timeout=agents.tool_timeout_seconds,
            enable_reasoning_logs=agents.enable_reasoning_logs,
        )


@asynccontextmanager
async def ctx(
    settings: LocalConfig | None = None,
    llm: BaseLLMModel | None = None,
    embedding_model: EmbeddingModel | None = None,
) -> AsyncGenerator[ForgeContext, None]:
    context = ForgeContext(settings, llm=llm, embedding_model=embedding_model)
    await context.init()
    try:
        yield context
    finally:
        await context.close()
