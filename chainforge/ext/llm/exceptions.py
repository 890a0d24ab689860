"""
LLM 模块异常定义

定义 LLM 相关的所有异常类，用于处理模型创建、配置、API 调用等过程中的错误。
"""


class LLMError(Exception):
    """LLM 模块基础异常类

    所有 LLM 相关异常的基类，用于统一捕获和处理 LLM 模块的错误。
    """


class LLMConfigError(LLMError):
    """LLM 配置错误

    典型场景：
    - 缺少必需的配置项（如 api_key、base_url 等）
    - 配置值超出有效范围
    """


class LLMModelNotFoundError(LLMError):
    """LLM 模型未找到错误

    尝试创建未注册的 provider 类型时抛出。
    """


class LLMAPIError(LLMError):
    """LLM API 调用错误

    典型场景：
    - 网络错误、服务不可用
    - API 返回错误响应（认证失败、配额超限等）
    - API 响应格式异常
    """

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class LLMTimeoutError(LLMAPIError):
    """LLM 请求超时错误"""


class LLMRateLimitError(LLMAPIError):
    """LLM 速率限制错误"""


__all__ = [
    "LLMError",
    "LLMConfigError",
    "LLMModelNotFoundError",
    "LLMAPIError",
    "LLMTimeoutError",
    "LLMRateLimitError",
]
