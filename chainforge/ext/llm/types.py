"""
LLM 类型定义

定义 LLM 请求/响应的统一 Pydantic 模型
"""

from typing import Any, Literal
from pydantic import BaseModel, Field


class ChatMessage(BaseModel):
    """聊天消息"""

    role: Literal["system", "user", "assistant"] = Field(description="消息角色")
    content: str = Field(description="消息内容")


class TokenUsage(BaseModel):
    """Token 使用统计"""

    prompt_tokens: int = Field(default=0, description="输入token数")
    completion_tokens: int = Field(default=0, description="输出token数")
    total_tokens: int = Field(default=0, description="总token数")

    def estimate_cost(self, model: str) -> float:
        """粗略估算调用费用（美元）

        未知模型一律按 0 计费

        Args:
            model: 模型名称

        Returns:
            估算费用
        """
        if "gpt-4" in model:
            return self.prompt_tokens * 0.00003 + self.completion_tokens * 0.00006
        if "gpt-3.5" in model:
            return self.prompt_tokens * 0.0000015 + self.completion_tokens * 0.000002
        return 0.0


class LLMRequest(BaseModel):
    """LLM 请求（对话模式）

    支持的参数尽量兼容主流 provider
    """

    messages: list[ChatMessage] = Field(description="对话消息列表")
    model: str | None = Field(default=None, description="模型名称（可选，默认使用配置的模型）")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0, description="温度参数")
    max_tokens: int | None = Field(default=None, ge=1, description="最大输出token数")
    top_p: float | None = Field(default=None, ge=0.0, le=1.0, description="nucleus sampling参数")
    stop: list[str] | None = Field(default=None, description="停止序列")


class LLMResponse(BaseModel):
    """LLM 响应（对话模式）"""

    content: str = Field(description="响应内容")
    usage: TokenUsage = Field(default_factory=TokenUsage, description="Token使用统计")
    finish_reason: str = Field(default="stop", description="结束原因（stop/length/content_filter等）")
    model: str | None = Field(default=None, description="使用的模型")


class CompletionRequest(BaseModel):
    """补全模式请求

    Chain 与 Agent 统一使用的单次提示词调用
    """

    prompt: str = Field(description="提示词")
    model: str | None = Field(default=None, description="模型名称（可选，默认使用配置的模型）")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0, description="温度参数")
    max_tokens: int | None = Field(default=None, ge=1, description="最大输出token数")
    top_p: float | None = Field(default=None, ge=0.0, le=1.0, description="nucleus sampling参数")
    stop_sequences: list[str] | None = Field(default=None, description="停止序列")
    system_message: str | None = Field(default=None, description="系统提示词")


class CompletionResponse(BaseModel):
    """补全模式响应"""

    text: str = Field(description="生成的文本")
    model: str = Field(description="使用的模型")
    usage: TokenUsage = Field(default_factory=TokenUsage, description="Token使用统计")
    finish_reason: str = Field(default="stop", description="结束原因")
    latency_ms: int = Field(default=0, description="调用耗时（毫秒）")


class BaseExtraConfig(BaseModel):
    """extra_config 基础类型

    所有 provider 的 extra_config 都应继承此类
    通过配置驱动行为，减少 hook 方法
    """

    # ========== API配置 ==========
    endpoint: str = Field(default="/v1/chat/completions", description="API端点路径")
    requires_auth: bool = Field(default=True, description="是否需要认证")
    auth_header: str = Field(default="Authorization", description="认证头名称")
    auth_type: str = Field(default="Bearer", description="认证类型")

    # ========== 重试配置 ==========
    retry_on_status_codes: list[int] = Field(
        default_factory=lambda: [429, 500, 502, 503, 504], description="重试的状态码列表",
    )
    retry_strategy: Literal["exponential", "linear", "constant"] = Field(
        default="exponential", description="重试策略",
    )

    # ========== 额外HTTP头和查询参数 ==========
    headers: dict[str, str] = Field(default_factory=dict, description="额外的HTTP头")
    query_params: dict[str, str] = Field(default_factory=dict, description="查询参数")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "BaseExtraConfig":
        """从字典创建实例，忽略未知字段

        Args:
            data: 配置字典

        Returns:
            类型化的实例
        """
        valid_data = {k: v for k, v in data.items() if k in cls.model_fields}
        return cls.model_validate(valid_data)


class OpenAIExtraConfig(BaseExtraConfig):
    """OpenAI 兼容接口配置"""


class OllamaExtraConfig(BaseExtraConfig):
    """Ollama 配置

    本地服务默认无需认证
    """

    endpoint: str = Field(default="/api/generate", description="API端点路径")
    requires_auth: bool = Field(default=False, description="是否需要认证")
