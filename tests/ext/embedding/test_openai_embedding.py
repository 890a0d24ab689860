"""
Embedding 测试

不依赖真实 API 的单元测试
"""

import json

import httpx
import pytest

from chainforge.ext.embedding import (
    EmbeddingAPIError,
    EmbeddingConfigError,
    EmbeddingModel,
    OpenAIEmbedding,
)


class CountingEmbedding(EmbeddingModel):
    """记录每批大小的本地 embedding"""

    def __init__(self, **kwargs):
        super().__init__(model_name_or_path="counting", dimension=2, **kwargs)
        self.batches: list[list[str]] = []

    async def _embed_batch_impl(self, texts: list[str]) -> list[list[float]]:
        self.batches.append(texts)
        return [[float(len(text)), 1.0] for text in texts]


class TestEmbeddingModel:
    """测试基类分批逻辑"""

    @pytest.mark.asyncio
    async def test_embed_batch_splits(self):
        """测试按 max_batch_size 分批且保持顺序"""
        model = CountingEmbedding(max_batch_size=2)

        results = await model.embed_batch(["a", "bb", "ccc", "dddd", "eeeee"])

        assert [len(batch) for batch in model.batches] == [2, 2, 1]
        assert [result.index for result in results] == [0, 1, 2, 3, 4]
        assert [result.embedding[0] for result in results] == [1.0, 2.0, 3.0, 4.0, 5.0]

    @pytest.mark.asyncio
    async def test_empty_input(self):
        """测试空输入不发起请求"""
        model = CountingEmbedding()

        assert await model.embed_batch([]) == []
        assert model.batches == []

    @pytest.mark.asyncio
    async def test_embed_query(self):
        """测试单条查询向量"""
        assert await CountingEmbedding().embed_query("abc") == [3.0, 1.0]

    def test_invalid_batch_size(self):
        """测试非法批大小"""
        with pytest.raises(EmbeddingConfigError):
            CountingEmbedding(max_batch_size=0)


class TestOpenAIEmbedding:
    """测试 OpenAI Embedding provider"""

    def test_requires_api_key(self):
        """测试缺少 api_key"""
        with pytest.raises(EmbeddingConfigError):
            OpenAIEmbedding("text-embedding-3-small", 3, config={"api_key": None})

    @pytest.mark.asyncio
    async def test_embed(self):
        """测试请求格式与按 index 排序"""
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "data": [
                        {"index": 1, "embedding": [0.0, 1.0, 0.0]},
                        {"index": 0, "embedding": [1.0, 0.0, 0.0]},
                    ],
                },
            )

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            model = OpenAIEmbedding(
                "text-embedding-3-small",
                3,
                config={"api_key": "sk", "base_url": "https://api.test"},
                http_client=client,
            )
            vectors = await model.get_embeddings(["first", "second"])

        assert captured["url"] == "https://api.test/v1/embeddings"
        assert captured["body"] == {"input": ["first", "second"], "model": "text-embedding-3-small"}
        assert vectors == [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0]]

    @pytest.mark.asyncio
    async def test_auth_error_not_retried(self):
        """测试认证错误不重试"""
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            return httpx.Response(401, text="unauthorized")

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            model = OpenAIEmbedding("m", 3, config={"api_key": "sk", "max_retries": 2}, http_client=client)
            with pytest.raises(EmbeddingAPIError) as exc_info:
                await model.embed("x")

        assert exc_info.value.status_code == 401
        assert len(calls) == 1
