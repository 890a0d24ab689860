"""
Ollama LLM Provider

调用本地 Ollama 服务的 /api/generate 接口
"""

from typing import Any

from chainforge.ext.llm.base import BaseLLMModel
from chainforge.ext.llm.types import (
    LLMRequest,
    LLMResponse,
    TokenUsage,
    OllamaExtraConfig,
)


class OllamaLLMModel(BaseLLMModel[OllamaExtraConfig]):
    """
    Ollama LLM Provider

    /api/generate 只接受单个 prompt，system 消息单独传递；
    Ollama 的计数字段映射到 TokenUsage，缺失时为 0
    """

    async def chat(self, request: LLMRequest) -> LLMResponse:
        body = self._build_request_body(request)
        response_data = await self.post_json(body)

        prompt_tokens = response_data.get("prompt_eval_count", 0)
        completion_tokens = response_data.get("eval_count", 0)

        return LLMResponse(
            content=response_data.get("response", ""),
            usage=TokenUsage(
                prompt_tokens=prompt_tokens,
                completion_tokens=completion_tokens,
                total_tokens=prompt_tokens + completion_tokens,
            ),
            finish_reason=response_data.get("done_reason") or "stop",
            model=response_data.get("model") or body["model"],
        )

    def _build_request_body(self, request: LLMRequest) -> dict[str, Any]:
        system = "\n".join(msg.content for msg in request.messages if msg.role == "system")
        prompt = "\n\n".join(msg.content for msg in request.messages if msg.role != "system")

        options: dict[str, Any] = {
            "temperature": request.temperature if request.temperature is not None else self.default_temperature,
            "num_predict": request.max_tokens or self.max_tokens,
        }
        if request.top_p is not None:
            options["top_p"] = request.top_p
        if request.stop:
            options["stop"] = request.stop

        body: dict[str, Any] = {
            "model": request.model or self.model_name,
            "prompt": prompt,
            "stream": False,
            "options": options,
        }
        if system:
            body["system"] = system

        return body
