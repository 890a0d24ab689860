from chainforge.ext.rag.types import Chunk, Document, SearchResult
from chainforge.ext.rag.chunker import TextChunker
from chainforge.ext.rag.loader import DocumentLoader
from chainforge.ext.rag.vector_store import VectorStore, InMemoryVectorStore
from chainforge.ext.rag.retriever import BaseRetriever, Retriever, format_context
from chainforge.ext.rag.exceptions import RetrievalError, VectorStoreError, DocumentLoadError

__all__ = [
    "Chunk",
    "Document",
    "SearchResult",
    "TextChunker",
    "DocumentLoader",
    "VectorStore",
    "InMemoryVectorStore",
    "BaseRetriever",
    "Retriever",
    "format_context",
    "RetrievalError",
    "VectorStoreError",
    "DocumentLoadError",
]
