from abc import ABC, abstractmethod

from loguru import logger
from pydantic import BaseModel

from chainforge.ext.embedding.exceptions import EmbeddingError, EmbeddingAPIError, EmbeddingConfigError


class EmbeddingResult(BaseModel):
    """Embedding 结果数据结构"""

    embedding: list[float]
    """向量数据"""

    index: int
    """在原始输入中的索引"""

    text: str
    """原始文本"""

    model: str = ""
    """使用的模型标识"""


class EmbeddingModel(ABC):
    """Embedding 模型抽象基类

    所有 embedding 模型实现必须继承此类并实现 _embed_batch_impl。
    """

    def __init__(
        self,
        model_name_or_path: str,
        dimension: int,
        max_batch_size: int = 32,
        config: dict | None = None,
    ):
        """
        初始化 Embedding 模型

        Args:
            model_name_or_path: 模型标识符或路径
            dimension: 向量维度
            max_batch_size: 最大批处理大小，用于 embed_batch 的自动分批
            config: 模型配置参数（如 API key、endpoint 等）
        """
        if max_batch_size <= 0:
            raise EmbeddingConfigError("max_batch_size must be positive")

        self.model_name_or_path = model_name_or_path
        self._dimension = dimension
        self.max_batch_size = max_batch_size
        self.config = config or {}

    @property
    def dimension(self) -> int:
        """获取向量维度"""
        return self._dimension

    @abstractmethod
    async def _embed_batch_impl(self, texts: list[str]) -> list[list[float]]:
        """
        实际执行批量 embedding 的实现方法（由子类实现）

        Raises:
            EmbeddingAPIError: API 调用失败
            EmbeddingTimeoutError: 请求超时
        """

    def _split_by_batch_size(self, texts: list[str], batch_size: int | None = None) -> list[list[str]]:
        batch_size = batch_size or self.max_batch_size
        return [texts[i : i + batch_size] for i in range(0, len(texts), batch_size)]

    async def embed_batch(self, texts: list[str], batch_size: int | None = None) -> list[EmbeddingResult]:
        """
        批量生成文本 embedding，文本数量超过 batch_size 时自动分批

        Args:
            texts: 文本列表
            batch_size: 每批大小，None 时使用 self.max_batch_size

        Returns:
            EmbeddingResult 列表，顺序与输入文本一致

        Raises:
            EmbeddingAPIError: API 调用失败或返回数量不一致
            EmbeddingTimeoutError: 请求超时
        """
        if not texts:
            return []

        results: list[EmbeddingResult] = []
        index = 0

        for batch in self._split_by_batch_size(texts, batch_size):
            try:
                embeddings = await self._embed_batch_impl(batch)
            except EmbeddingError:
                raise
            except Exception as e:
                raise EmbeddingAPIError(f"Batch embedding failed: {e}") from e

            if len(embeddings) != len(batch):
                raise EmbeddingAPIError(
                    f"Embedding count mismatch: expected {len(batch)}, got {len(embeddings)}",
                )

            for text, embedding in zip(batch, embeddings):
                if len(embedding) != self.dimension:
                    logger.warning(
                        f"Embedding dimension mismatch for {self.model_name_or_path}: "
                        f"expected {self.dimension}, got {len(embedding)}",
                    )
                results.append(
                    EmbeddingResult(embedding=embedding, index=index, text=text, model=self.model_name_or_path),
                )
                index += 1

        return results

    async def embed(self, text: str) -> EmbeddingResult:
        """生成单个文本的 embedding"""
        results = await self.embed_batch([text])
        return results[0]

    async def embed_query(self, text: str) -> list[float]:
        """生成查询文本的向量"""
        result = await self.embed(text)
        return result.embedding

    async def get_embeddings(self, texts: list[str]) -> list[list[float]]:
        """便捷方法：直接获取向量列表（不返回元数据）"""
        results = await self.embed_batch(texts)
        return [result.embedding for result in results]

    def validate_config(self, required_keys: list[str] | None = None) -> None:
        """
        验证配置是否包含必需的参数

        Raises:
            EmbeddingConfigError: 配置缺少必需参数
        """
        if required_keys is None:
            return

        missing_keys = [key for key in required_keys if not self.config.get(key)]
        if missing_keys:
            raise EmbeddingConfigError(f"Missing required config keys: {', '.join(missing_keys)}")
