"""
向量存储
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

import numpy as np

from chainforge.ext.rag.types import SearchResult
from chainforge.ext.rag.exceptions import VectorStoreError


class VectorStore(ABC):
    """向量存储抽象"""

    @abstractmethod
    async def store(self, id: str, text: str, embedding: list[float], metadata: dict[str, Any] | None = None) -> None:
        """写入或覆盖一条记录"""

    @abstractmethod
    async def search(self, query_embedding: list[float], top_k: int, threshold: float) -> list[SearchResult]:
        """返回相似度不低于 threshold 的前 top_k 条记录，按相似度降序"""

    @abstractmethod
    async def delete(self, id: str) -> bool:
        """删除记录，返回是否存在"""


class InMemoryVectorStore(VectorStore):
    """基于 numpy 余弦相似度的内存向量存储"""

    def __init__(self) -> None:
        self._texts: dict[str, str] = {}
        self._vectors: dict[str, np.ndarray] = {}
        self._metadata: dict[str, dict[str, Any]] = {}
        self._lock = asyncio.Lock()

    async def store(self, id: str, text: str, embedding: list[float], metadata: dict[str, Any] | None = None) -> None:
        vector = np.asarray(embedding, dtype=np.float32)
        if vector.ndim != 1 or vector.size == 0:
            raise VectorStoreError(f"Invalid embedding for '{id}'")

        async with self._lock:
            # 覆盖已有 id 时也要与其余向量维度一致
            others = [v for key, v in self._vectors.items() if key != id]
            dimension = others[0].size if others else None
            if dimension is not None and vector.size != dimension:
                raise VectorStoreError(f"Embedding dimension mismatch: expected {dimension}, got {vector.size}")
            self._texts[id] = text
            self._vectors[id] = vector
            self._metadata[id] = dict(metadata or {})

    async def search(self, query_embedding: list[float], top_k: int, threshold: float) -> list[SearchResult]:
        if top_k <= 0:
            return []

        async with self._lock:
            if not self._vectors:
                return []
            ids = list(self._vectors)
            matrix = np.stack([self._vectors[i] for i in ids])
            texts = [self._texts[i] for i in ids]
            metadata = [self._metadata[i] for i in ids]

        query = np.asarray(query_embedding, dtype=np.float32)
        if query.size != matrix.shape[1]:
            raise VectorStoreError(f"Query dimension mismatch: expected {matrix.shape[1]}, got {query.size}")

        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(query)
        with np.errstate(divide="ignore", invalid="ignore"):
            scores = np.where(norms > 0, matrix @ query / norms, 0.0)

        # 稳定排序，相同分数保持写入顺序
        order = np.argsort(-scores, kind="stable")
        results = []
        for idx in order:
            score = float(scores[idx])
            if score < threshold:
                break
            results.append(SearchResult(id=ids[idx], text=texts[idx], score=score, metadata=metadata[idx]))
            if len(results) >= top_k:
                break
        return results

    async def delete(self, id: str) -> bool:
        async with self._lock:
            existed = self._vectors.pop(id, None) is not None
            self._texts.pop(id, None)
            self._metadata.pop(id, None)
        return existed

    def __len__(self) -> int:
        return len(self._vectors)
