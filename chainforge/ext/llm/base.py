"""
LLM 模型泛型基类

提供 LLM 模型的抽象接口和默认实现
"""

import time
import asyncio
from abc import ABC, abstractmethod
from typing import Any, Generic, TypeVar

import httpx
from loguru import logger

from chainforge.util.general import elapsed_ms, truncate_content
from chainforge.ext.llm.exceptions import (
    LLMAPIError,
    LLMConfigError,
    LLMTimeoutError,
    LLMRateLimitError,
)
from chainforge.ext.llm.types import (
    BaseExtraConfig,
    ChatMessage,
    CompletionRequest,
    CompletionResponse,
    LLMRequest,
    LLMResponse,
)

ExtraConfigT = TypeVar("ExtraConfigT", bound=BaseExtraConfig)


class BaseLLMModel(Generic[ExtraConfigT], ABC):
    """
    LLM 模型抽象基类（泛型）

    类型参数:
        ExtraConfigT: extra_config 的具体类型

    设计原则:
        1. 核心方法 chat 由子类实现，generate 基于 chat 提供统一的单提示词调用
        2. 通过 extra_config 配置化处理 provider 差异
        3. 默认使用全局 httpx client，也可以显式注入
        4. 实例只读，可以被多个 Chain / Agent 并发共享
    """

    extra_config: ExtraConfigT

    def __init__(
        self,
        model_name: str,
        model_type: str,
        base_url: str | None,
        api_key: str | None = None,
        max_tokens: int = 2048,
        default_temperature: float = 0.7,
        default_top_p: float = 1.0,
        max_retries: int = 0,
        timeout: float = 60,
        extra_config: dict[str, Any] | None = None,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        初始化 LLM 模型

        Args:
            model_name: 模型名称
            model_type: 模型类型（provider 标识）
            base_url: API基础URL
            api_key: API密钥
            max_tokens: 默认最大输出token数
            default_temperature: 默认温度参数
            default_top_p: 默认top_p
            max_retries: 最大重试次数
            timeout: 请求超时时间(秒)
            extra_config: provider特定配置（dict），内部会转换成具体的 pydantic model
            http_client: 可选的 httpx 客户端，未提供时使用全局客户端
        """
        self.model_name = model_name
        self.model_type = model_type
        self.base_url = base_url
        self.api_key = api_key
        self.max_tokens = max_tokens
        self.default_temperature = default_temperature
        self.default_top_p = default_top_p
        self.max_retries = max_retries
        self.timeout = timeout
        self._http_client = http_client

        self.extra_config: ExtraConfigT = self._convert_extra_config(extra_config or {})

        self._validate_config()

        logger.info(f"Initialized LLM model: {self.model_type}/{self.model_name}, max_tokens={self.max_tokens}")

    def _validate_config(self) -> None:
        """验证配置"""
        if not self.base_url:
            logger.error(f"Configuration validation failed: {self.model_type} requires base_url")
            raise LLMConfigError(f"{self.model_type} requires base_url")

        if self.extra_config.requires_auth and not self.api_key:
            logger.error(f"Configuration validation failed: {self.model_type} requires api_key")
            raise LLMConfigError(f"{self.model_type} requires api_key")

    def _get_extra_config_cls(self) -> type[BaseExtraConfig]:
        """
        从泛型参数自动提取 extra_config 类型

        子类通过 `class OpenAILLMModel(BaseLLMModel[OpenAIExtraConfig])` 声明泛型参数

        Returns:
            extra_config 的 pydantic model 类型
        """
        for base in getattr(type(self), "__orig_bases__", ()):
            for arg in getattr(base, "__args__", ()):
                if isinstance(arg, type) and issubclass(arg, BaseExtraConfig):
                    return arg

        logger.warning(
            f"Cannot infer extra_config type for {type(self).__name__}, falling back to BaseExtraConfig",
        )
        return BaseExtraConfig

    def _convert_extra_config(self, extra_config_dict: dict[str, Any]) -> ExtraConfigT:
        extra_config_cls = self._get_extra_config_cls()
        return extra_config_cls.from_dict(extra_config_dict)  # type: ignore

    # ========== 核心抽象方法（必须由子类实现） ==========

    @abstractmethod
    async def chat(self, request: LLMRequest) -> LLMResponse:
        """
        发起对话请求

        Args:
            request: LLM 请求

        Returns:
            LLM 响应

        Raises:
            LLMAPIError: API 调用失败
        """
        raise NotImplementedError

    # ========== 单提示词调用 ==========

    async def generate(self, request: CompletionRequest) -> CompletionResponse:
        """
        单提示词生成

        将提示词（以及可选的系统提示词）转换为对话请求，并记录调用耗时

        Args:
            request: 补全请求

        Returns:
            补全响应
        """
        logger.debug(
            f"Generate request - prompt: {truncate_content(request.prompt)}, model: {request.model or self.model_name}",
        )

        messages = []
        if request.system_message:
            messages.append(ChatMessage(role="system", content=request.system_message))
        messages.append(ChatMessage(role="user", content=request.prompt))

        chat_request = LLMRequest(
            messages=messages,
            model=request.model or self.model_name,
            temperature=request.temperature if request.temperature is not None else self.default_temperature,
            max_tokens=request.max_tokens or self.max_tokens,
            top_p=request.top_p if request.top_p is not None else self.default_top_p,
            stop=request.stop_sequences,
        )

        start = time.perf_counter()
        chat_response = await self.chat(chat_request)

        response = CompletionResponse(
            text=chat_response.content,
            model=chat_response.model or chat_request.model or self.model_name,
            usage=chat_response.usage,
            finish_reason=chat_response.finish_reason,
            latency_ms=elapsed_ms(start),
        )

        logger.debug(
            f"Generate response - text: {truncate_content(response.text)}, "
            f"tokens: {response.usage.total_tokens}, latency: {response.latency_ms}ms",
        )
        return response

    def count_tokens(self, text: str) -> int:
        """粗略估算 token 数（按空白分词）"""
        return len(text.split())

    # ========== 通用工具方法 ==========

    def get_httpx_client(self) -> httpx.AsyncClient:
        """获取 httpx client，优先使用注入的客户端"""
        if self._http_client is not None:
            return self._http_client

        from chainforge.config.main import local_configs

        return local_configs.extensions.httpx.instance

    def build_endpoint_url(self) -> str:
        """
        构建 API 端点 URL

        默认实现: {base_url}{endpoint}?{query_params}
        """
        base_url = (self.base_url or "").rstrip("/")
        endpoint = self.extra_config.endpoint
        if not endpoint.startswith("/"):
            endpoint = "/" + endpoint

        query_params = self.extra_config.query_params
        if query_params:
            query_string = "&".join(f"{k}={v}" for k, v in query_params.items())
            endpoint = f"{endpoint}?{query_string}"

        return f"{base_url}{endpoint}"

    def build_auth_headers(self) -> dict[str, str]:
        """构建认证头（通过 extra_config 配置）"""
        if not self.extra_config.requires_auth:
            return {}

        if not self.api_key:
            raise LLMConfigError("API key is required")

        auth_type = self.extra_config.auth_type
        value = f"{auth_type} {self.api_key}" if auth_type else self.api_key
        return {self.extra_config.auth_header: value}

    def build_request_headers(self) -> dict[str, str]:
        """构建完整的请求头"""
        headers = {"Content-Type": "application/json"}
        headers.update(self.build_auth_headers())
        headers.update(self.extra_config.headers)
        return headers

    # ========== 重试逻辑（配置驱动） ==========

    def should_retry(self, status_code: int, attempt: int) -> bool:
        """判断是否应该重试"""
        if attempt >= self.max_retries:
            return False
        return status_code in self.extra_config.retry_on_status_codes

    def get_retry_delay(self, attempt: int) -> float:
        """获取重试延迟（秒）"""
        strategy = self.extra_config.retry_strategy
        if strategy == "exponential":
            return float(2**attempt)
        if strategy == "linear":
            return float(attempt * 2)
        return 1.0

    async def post_json(self, body: dict[str, Any]) -> dict[str, Any]:
        """
        以 JSON 方式请求 provider 接口，处理重试与错误映射

        Args:
            body: 请求体

        Returns:
            响应 JSON

        Raises:
            LLMRateLimitError: 429 且重试耗尽
            LLMTimeoutError: 请求超时且重试耗尽
            LLMAPIError: 其他错误
        """
        client = self.get_httpx_client()
        url = self.build_endpoint_url()
        headers = self.build_request_headers()

        for attempt in range(self.max_retries + 1):
            try:
                response = await client.post(url, json=body, headers=headers, timeout=self.timeout)
            except httpx.TimeoutException as e:
                if attempt >= self.max_retries:
                    raise LLMTimeoutError(f"{self.model_type} request timed out: {e}") from e
                delay = self.get_retry_delay(attempt)
                logger.warning(f"{self.model_type} request timed out, retrying in {delay}s ({attempt + 1}/{self.max_retries})")
                await asyncio.sleep(delay)
                continue
            except httpx.HTTPError as e:
                if attempt >= self.max_retries:
                    raise LLMAPIError(f"{self.model_type} connection error: {e}") from e
                delay = self.get_retry_delay(attempt)
                logger.warning(f"{self.model_type} connection error: {e}, retrying in {delay}s")
                await asyncio.sleep(delay)
                continue

            if response.status_code == 200:
                return response.json()

            error_message = self._extract_error_message(response) or "Unknown error"
            if self.should_retry(response.status_code, attempt):
                delay = self.get_retry_delay(attempt)
                logger.warning(
                    f"{self.model_type} request failed ({response.status_code}: {error_message}), "
                    f"retrying in {delay}s ({attempt + 1}/{self.max_retries})"
                )
                await asyncio.sleep(delay)
                continue

            logger.error(f"{self.model_type} API error: {error_message} (status: {response.status_code})")
            if response.status_code == 429:
                raise LLMRateLimitError(f"{self.model_type} rate limited: {error_message}", response.status_code)
            raise LLMAPIError(f"{self.model_type} API error: {error_message}", response.status_code)

        raise LLMAPIError(f"{self.model_type} request failed after {self.max_retries} retries")

    def _extract_error_message(self, response: httpx.Response) -> str:
        """从错误响应中提取错误信息"""
        try:
            data = response.json()
        except ValueError:
            return response.text

        if isinstance(data, dict) and "error" in data:
            error = data["error"]
            if isinstance(error, dict):
                return error.get("message", "")
            return str(error)
        return ""

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"model_name={self.model_name}, "
            f"model_type={self.model_type}, "
            f"max_tokens={self.max_tokens})"
        )
