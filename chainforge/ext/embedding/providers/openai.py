"""
OpenAI Embedding 模型实现
"""

import httpx
from loguru import logger

from chainforge.ext.embedding.base import EmbeddingModel
from chainforge.ext.embedding.exceptions import EmbeddingAPIError, EmbeddingTimeoutError


class OpenAIEmbedding(EmbeddingModel):
    """OpenAI Embedding 模型实现

    支持自定义 API endpoint（如使用代理或其他 OpenAI 兼容服务）。
    未注入客户端时使用全局 httpx 客户端
    """

    DEFAULT_BASE_URL = "https://api.openai.com"

    DEFAULT_TIMEOUT = 60

    def __init__(
        self,
        model_name_or_path: str,
        dimension: int,
        max_batch_size: int = 32,
        config: dict | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        初始化 OpenAI Embedding 模型

        Args:
            model_name_or_path: 模型名称，如 "text-embedding-3-small"
            dimension: 向量维度
            max_batch_size: 最大批处理大小
            config: 配置字典，可包含以下字段：
                - api_key: API key（必需）
                - base_url: API base URL（可选，默认为官方地址）
                - timeout: 请求超时时间（秒，可选）
                - max_retries: 最大重试次数（可选，默认为 2）
            http_client: 可选的 httpx 客户端
        """
        super().__init__(
            model_name_or_path=model_name_or_path,
            dimension=dimension,
            max_batch_size=max_batch_size,
            config=config,
        )

        self.validate_config(required_keys=["api_key"])

        self.api_key = self.config["api_key"]
        self.base_url = self.config.get("base_url", self.DEFAULT_BASE_URL).rstrip("/")
        self.timeout = self.config.get("timeout", self.DEFAULT_TIMEOUT)
        self.max_retries = self.config.get("max_retries", 2)
        self._http_client = http_client

    def _get_client(self) -> httpx.AsyncClient:
        if self._http_client is not None:
            return self._http_client

        from chainforge.config.main import local_configs

        return local_configs.extensions.httpx.instance

    async def _embed_batch_impl(self, texts: list[str]) -> list[list[float]]:
        if not texts:
            return []

        client = self._get_client()
        url = f"{self.base_url}/v1/embeddings"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "input": texts,
            "model": self.model_name_or_path,
        }

        for attempt in range(self.max_retries + 1):
            logger.debug(
                f"OpenAI embedding request: model={self.model_name_or_path}, "
                f"texts_count={len(texts)}, attempt={attempt + 1}",
            )
            try:
                response = await client.post(url, json=payload, headers=headers, timeout=self.timeout)
                response.raise_for_status()
            except httpx.TimeoutException as e:
                logger.warning(f"OpenAI embedding timeout (attempt {attempt + 1}): {e}")
                if attempt < self.max_retries:
                    continue
                raise EmbeddingTimeoutError(
                    f"OpenAI API request timeout after {self.max_retries + 1} attempts",
                ) from e
            except httpx.HTTPStatusError as e:
                error_text = e.response.text
                logger.error(
                    f"OpenAI embedding API error: status={e.response.status_code}, response={error_text}",
                )
                # 认证和限流错误不重试
                if e.response.status_code not in (401, 403, 429) and attempt < self.max_retries:
                    continue
                raise EmbeddingAPIError(
                    f"OpenAI API error: {error_text}",
                    status_code=e.response.status_code,
                    response_text=error_text,
                ) from e
            except httpx.HTTPError as e:
                logger.error(f"OpenAI embedding connection error: {e}")
                if attempt < self.max_retries:
                    continue
                raise EmbeddingAPIError(f"OpenAI connection error: {e}") from e

            data = response.json()
            # 按 index 排序，保证与输入顺序一致
            items = sorted(data["data"], key=lambda item: item.get("index", 0))
            return [item["embedding"] for item in items]

        raise EmbeddingAPIError(f"Failed after {self.max_retries + 1} attempts")

    def __repr__(self) -> str:
        return (
            f"OpenAIEmbedding("
            f"model_name={self.model_name_or_path}, "
            f"dimension={self.dimension}, "
            f"base_url={self.base_url})"
        )
