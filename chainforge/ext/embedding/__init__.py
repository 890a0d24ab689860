from chainforge.ext.embedding.base import EmbeddingModel, EmbeddingResult
from chainforge.ext.embedding.exceptions import (
    EmbeddingError,
    EmbeddingAPIError,
    EmbeddingConfigError,
    EmbeddingTimeoutError,
)
from chainforge.ext.embedding.providers import OpenAIEmbedding

__all__ = [
    "EmbeddingModel",
    "EmbeddingResult",
    "EmbeddingError",
    "EmbeddingAPIError",
    "EmbeddingConfigError",
    "EmbeddingTimeoutError",
    "OpenAIEmbedding",
]
