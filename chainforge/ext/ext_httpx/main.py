import httpx
from typing_extensions import override
from loguru import logger

from chainforge.config.default import RegisterExtensionConfig, InstanceExtensionConfig


class HttpxConfig(RegisterExtensionConfig, InstanceExtensionConfig):
    """httpx 配置类，负责共享 httpx 客户端的生命周期管理

    LLM / Embedding provider 和文档加载器在未显式注入客户端时使用这里的实例
    """

    _client: httpx.AsyncClient | None = None

    max_connections: int = 100
    max_keepalive_connections: int = 20
    timeout: float = 60.0
    user_agent: str = "chainforge"

    @property
    def instance(self) -> httpx.AsyncClient:
        """获取当前实例的 httpx 客户端"""
        if self._client is None:
            raise RuntimeError("Httpx client not initialized. Make sure register() has been called.")
        return self._client

    @property
    def registered(self) -> bool:
        return self._client is not None

    @override
    async def register(self) -> None:
        """初始化 httpx.AsyncClient"""
        if self._client is not None:
            return

        self._client = httpx.AsyncClient(
            timeout=self.timeout,
            limits=httpx.Limits(
                max_connections=self.max_connections,
                max_keepalive_connections=self.max_keepalive_connections,
            ),
            headers={"User-Agent": self.user_agent},
        )
        logger.info("Httpx client initialized")

    @override
    async def unregister(self) -> None:
        """关闭 httpx.AsyncClient"""
        if self._client is None:
            return

        try:
            await self._client.aclose()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
            logger.debug("Event loop already closed, skipping httpx client cleanup")
        self._client = None
        logger.info("Httpx client closed")
