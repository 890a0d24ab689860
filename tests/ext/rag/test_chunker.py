"""
TextChunker 测试
"""

import pytest

from chainforge.ext.rag import Document, TextChunker


class TestChunkDocument:
    """测试滑动窗口切分"""

    def test_window_with_overlap(self):
        """测试窗口按 size - overlap 前进"""
        document = Document(id="doc", content="abcdefghij")

        chunks = TextChunker(chunk_size=4, chunk_overlap=1).chunk_document(document)

        assert [chunk.content for chunk in chunks] == ["abcd", "defg", "ghij"]
        assert [chunk.id for chunk in chunks] == ["doc_0", "doc_1", "doc_2"]
        assert all(chunk.document_id == "doc" for chunk in chunks)

    def test_short_document(self):
        """测试短文档只产生一个切片"""
        chunks = TextChunker(chunk_size=100, chunk_overlap=10).chunk_document(Document(content="short"))

        assert len(chunks) == 1
        assert chunks[0].content == "short"

    def test_empty_document(self):
        """测试空文档"""
        assert TextChunker(10, 2).chunk_document(Document(content="")) == []

    def test_metadata_copied(self):
        """测试切片继承文档元数据"""
        document = Document(content="abcdef", metadata={"lang": "en"})

        chunks = TextChunker(3, 0).chunk_document(document)

        assert [chunk.metadata for chunk in chunks] == [{"lang": "en"}, {"lang": "en"}]

    @pytest.mark.parametrize("size,overlap", [(0, 0), (5, 5), (5, -1)])
    def test_invalid_parameters(self, size, overlap):
        """测试非法参数"""
        with pytest.raises(ValueError):
            TextChunker(size, overlap)


class TestChunkBySentences:
    """测试按句子切分"""

    def test_packs_sentences(self):
        """测试句子合并到不超过 chunk_size"""
        document = Document(id="d", content="One two. Three four! Five six? Seven.")

        chunks = TextChunker(chunk_size=20, chunk_overlap=0).chunk_by_sentences(document)

        assert [chunk.content for chunk in chunks] == ["One two Three four", "Five six Seven"]
        assert [chunk.chunk_index for chunk in chunks] == [0, 1]

    def test_long_sentence_kept_whole(self):
        """测试超长单句单独成片"""
        document = Document(content="A very long sentence here. Short.")

        chunks = TextChunker(chunk_size=5, chunk_overlap=0).chunk_by_sentences(document)

        assert [chunk.content for chunk in chunks] == ["A very long sentence here", "Short"]
