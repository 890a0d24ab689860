"""
全局 conftest

提供脚本化的 LLM 和检索器替身，测试不访问网络
"""

import asyncio

import pytest

from chainforge.ext.llm.base import BaseLLMModel
from chainforge.ext.llm.types import BaseExtraConfig, LLMRequest, LLMResponse, TokenUsage
from chainforge.ext.rag.retriever import BaseRetriever


class FakeLLMModel(BaseLLMModel[BaseExtraConfig]):
    """按顺序返回预设回复的 LLM，回复用完后重复最后一条"""

    def __init__(
        self,
        replies: list[str] | None = None,
        model_name: str = "fake-model",
        prompt_tokens: int = 10,
        completion_tokens: int = 5,
        delay: float = 0,
        error: Exception | None = None,
    ):
        super().__init__(
            model_name=model_name,
            model_type="fake",
            base_url="http://fake",
            extra_config={"requires_auth": False},
        )
        self.replies = list(replies or ["ok"])
        self.prompt_tokens = prompt_tokens
        self.completion_tokens = completion_tokens
        self.delay = delay
        self.error = error
        self.prompts: list[str] = []

    async def chat(self, request: LLMRequest) -> LLMResponse:
        self.prompts.append(request.messages[-1].content)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error

        reply = self.replies[min(len(self.prompts), len(self.replies)) - 1]
        return LLMResponse(
            content=reply,
            usage=TokenUsage(
                prompt_tokens=self.prompt_tokens,
                completion_tokens=self.completion_tokens,
                total_tokens=self.prompt_tokens + self.completion_tokens,
            ),
            model=request.model,
        )


class FakeRetriever(BaseRetriever):
    def __init__(self, context: str = "", error: Exception | None = None):
        self.context = context
        self.error = error
        self.queries: list[str] = []

    async def build_context(self, query: str) -> str:
        self.queries.append(query)
        if self.error is not None:
            raise self.error
        return self.context


@pytest.fixture
def fake_llm():
    return FakeLLMModel()


@pytest.fixture
def make_llm():
    """创建 FakeLLMModel 的工厂"""
    return FakeLLMModel


@pytest.fixture
def make_retriever():
    return FakeRetriever
