"""
OpenAI 兼容 LLM Provider

使用 httpx 直接调用 /v1/chat/completions（OpenAI、DeepSeek、vLLM 等兼容服务均可）
"""

from typing import Any

from loguru import logger

from chainforge.ext.llm.base import BaseLLMModel
from chainforge.ext.llm.exceptions import LLMAPIError
from chainforge.ext.llm.types import (
    LLMRequest,
    LLMResponse,
    TokenUsage,
    OpenAIExtraConfig,
)


class OpenAILLMModel(BaseLLMModel[OpenAIExtraConfig]):
    """
    OpenAI 兼容 LLM Provider
    """

    async def chat(self, request: LLMRequest) -> LLMResponse:
        """
        发起对话请求

        Args:
            request: LLM 请求

        Returns:
            LLM 响应
        """
        body = self._build_request_body(request)
        response_data = await self.post_json(body)
        return self._parse_response(response_data)

    def _build_request_body(self, request: LLMRequest) -> dict[str, Any]:
        """
        构建请求体

        Args:
            request: LLM 请求

        Returns:
            OpenAI API 请求体
        """
        body: dict[str, Any] = {
            "model": request.model or self.model_name,
            "messages": [{"role": msg.role, "content": msg.content} for msg in request.messages],
            "temperature": request.temperature if request.temperature is not None else self.default_temperature,
            "max_tokens": request.max_tokens or self.max_tokens,
            "top_p": request.top_p if request.top_p is not None else self.default_top_p,
        }

        if request.stop:
            body["stop"] = request.stop

        return body

    def _parse_response(self, response_data: dict[str, Any]) -> LLMResponse:
        """
        解析响应

        Args:
            response_data: OpenAI API 响应

        Returns:
            统一的 LLMResponse
        """
        choices = response_data.get("choices") or []
        if not choices:
            logger.error(f"OpenAI response has no choices: {response_data}")
            raise LLMAPIError("OpenAI response has no choices")

        choice = choices[0]
        message = choice.get("message") or {}

        usage_data = response_data.get("usage") or {}
        usage = TokenUsage(
            prompt_tokens=usage_data.get("prompt_tokens", 0),
            completion_tokens=usage_data.get("completion_tokens", 0),
            total_tokens=usage_data.get("total_tokens", 0),
        )

        return LLMResponse(
            content=message.get("content") or "",
            usage=usage,
            finish_reason=choice.get("finish_reason") or "stop",
            model=response_data.get("model"),
        )
