"""
检索器

BaseRetriever 是 RAGPipeline 依赖的唯一接口；Retriever 组合切分、向量化和向量存储
"""

from abc import ABC, abstractmethod

from loguru import logger

from chainforge.util.general import truncate_content
from chainforge.ext.embedding.base import EmbeddingModel
from chainforge.ext.rag.types import Document, SearchResult
from chainforge.ext.rag.chunker import TextChunker
from chainforge.ext.rag.vector_store import VectorStore


def format_context(contexts: list[str]) -> str:
    """按检索排名编号："[Context N]\\n<text>\\n"，以空行分隔"""
    return "\n".join(f"[Context {i + 1}]\n{text}\n" for i, text in enumerate(contexts))


class BaseRetriever(ABC):
    @abstractmethod
    async def build_context(self, query: str) -> str:
        """为查询构建上下文文本"""


class Retriever(BaseRetriever):
    def __init__(
        self,
        vector_store: VectorStore,
        embedding_model: EmbeddingModel,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        top_k: int = 5,
        similarity_threshold: float = 0.7,
    ):
        self.vector_store = vector_store
        self.embedding_model = embedding_model
        self.chunker = TextChunker(chunk_size, chunk_overlap)
        self.top_k = top_k
        self.similarity_threshold = similarity_threshold

    async def index_document(self, document: Document) -> int:
        """切分并写入向量存储

        Returns:
            写入的切片数量
        """
        chunks = self.chunker.chunk_document(document)
        embeddings = await self.embedding_model.get_embeddings([chunk.content for chunk in chunks])

        for chunk, embedding in zip(chunks, embeddings):
            await self.vector_store.store(
                chunk.id,
                chunk.content,
                embedding,
                {
                    "document_id": document.id,
                    "chunk_index": chunk.chunk_index,
                    "source": document.source,
                },
            )

        logger.info(f"Indexed document {document.id} with {len(chunks)} chunks")
        return len(chunks)

    async def retrieve_with_scores(self, query: str) -> list[SearchResult]:
        query_embedding = await self.embedding_model.embed_query(query)
        results = await self.vector_store.search(query_embedding, self.top_k, self.similarity_threshold)
        logger.debug(f"Retrieved {len(results)} results for query: {truncate_content(query)}")
        return results

    async def retrieve(self, query: str) -> list[str]:
        return [result.text for result in await self.retrieve_with_scores(query)]

    async def build_context(self, query: str) -> str:
        return format_context(await self.retrieve(query))
