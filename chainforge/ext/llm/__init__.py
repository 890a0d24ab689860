"""
LLM 模型抽象层

提供统一的 LLM 接口，支持动态切换不同的 LLM 服务提供商。
"""

from chainforge.ext.llm.base import BaseLLMModel
from chainforge.ext.llm.factory import LLMModelFactory
from chainforge.ext.llm.exceptions import (
    LLMError,
    LLMConfigError,
    LLMModelNotFoundError,
    LLMAPIError,
    LLMTimeoutError,
    LLMRateLimitError,
)

__all__ = [
    # 基类
    "BaseLLMModel",
    # 工厂
    "LLMModelFactory",
    # 异常
    "LLMError",
    "LLMConfigError",
    "LLMModelNotFoundError",
    "LLMAPIError",
    "LLMTimeoutError",
    "LLMRateLimitError",
]
