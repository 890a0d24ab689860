"""
RAG 模块异常
"""


class RetrievalError(Exception):
    """检索基础异常"""


class VectorStoreError(RetrievalError):
    """向量存储异常（维度不一致等）"""


class DocumentLoadError(RetrievalError):
    """文档加载失败"""
