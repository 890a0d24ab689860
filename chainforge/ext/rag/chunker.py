"""
文本切分
"""

import re

from chainforge.ext.rag.types import Chunk, Document

SENTENCE_DELIMITER = re.compile(r"[.!?]")


class TextChunker:
    """按字符窗口或句子切分文档"""

    def __init__(self, chunk_size: int = 1000, chunk_overlap: int = 200):
        """
        Args:
            chunk_size: 切片最大字符数
            chunk_overlap: 相邻切片重叠字符数，必须小于 chunk_size
        """
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        if not 0 <= chunk_overlap < chunk_size:
            raise ValueError("chunk_overlap must be in [0, chunk_size)")

        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap

    def _make_chunk(self, document: Document, index: int, content: str) -> Chunk:
        return Chunk(
            id=f"{document.id}_{index}",
            document_id=document.id,
            content=content,
            chunk_index=index,
            metadata=dict(document.metadata),
        )

    def chunk_document(self, document: Document) -> list[Chunk]:
        """滑动窗口切分，每次前进 chunk_size - chunk_overlap 个字符"""
        text = document.content
        step = self.chunk_size - self.chunk_overlap
        chunks = []

        start = 0
        while start < len(text):
            end = min(start + self.chunk_size, len(text))
            chunks.append(self._make_chunk(document, len(chunks), text[start:end]))
            if end >= len(text):
                break
            start += step

        return chunks

    def chunk_by_sentences(self, document: Document) -> list[Chunk]:
        """按 . ! ? 切句后合并，单个切片不超过 chunk_size（单句超长时除外）"""
        sentences = [s.strip() for s in SENTENCE_DELIMITER.split(document.content) if s.strip()]
        chunks = []
        current = ""

        for sentence in sentences:
            if current and len(current) + len(sentence) > self.chunk_size:
                chunks.append(self._make_chunk(document, len(chunks), current))
                current = ""
            current = f"{current} {sentence}" if current else sentence

        if current:
            chunks.append(self._make_chunk(document, len(chunks), current))

        return chunks
