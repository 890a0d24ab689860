"""
文档加载
"""

from pathlib import Path

import httpx
from loguru import logger

from chainforge.ext.rag.types import Document
from chainforge.ext.rag.exceptions import DocumentLoadError


class DocumentLoader:
    """从文件、URL 或字符串构建 Document"""

    def __init__(self, http_client: httpx.AsyncClient | None = None):
        self._http_client = http_client

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client

        from chainforge.config.main import local_configs

        return local_configs.extensions.httpx.instance

    def load_text(self, path: str | Path, encoding: str = "utf-8") -> Document:
        path = Path(path)
        try:
            content = path.read_text(encoding=encoding)
        except OSError as e:
            raise DocumentLoadError(f"Failed to read {path}: {e}") from e

        logger.debug(f"Loaded document from {path}: {len(content)} characters")
        return Document(content=content, source=str(path))

    async def load_from_url(self, url: str) -> Document:
        try:
            response = await self._get_client().get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise DocumentLoadError(f"Failed to fetch {url}: {e}") from e

        logger.debug(f"Loaded document from {url}: {len(response.text)} characters")
        return Document(content=response.text, source=url)

    @staticmethod
    def load_from_string(content: str, source: str = "") -> Document:
        return Document(content=content, source=source)
