import uuid
from typing import Any

from pydantic import BaseModel, Field


class Document(BaseModel):
    """待索引的文档"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    content: str
    source: str = ""
    metadata: dict[str, Any] = Field(default_factory=dict)


class Chunk(BaseModel):
    """文档切片，id 格式为 <document_id>_<chunk_index>"""

    id: str
    document_id: str
    content: str
    chunk_index: int
    metadata: dict[str, Any] = Field(default_factory=dict)


class SearchResult(BaseModel):
    """向量检索结果"""

    id: str
    text: str
    score: float
    metadata: dict[str, Any] = Field(default_factory=dict)
