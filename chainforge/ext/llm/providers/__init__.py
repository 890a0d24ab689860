"""
LLM Provider 注册

自动注册所有 LLM providers
"""

from chainforge.core.types import LLMProviderTypeEnum
from chainforge.ext.llm.factory import LLMModelFactory
from chainforge.ext.llm.providers.ollama import OllamaLLMModel
from chainforge.ext.llm.providers.openai import OpenAILLMModel

LLMModelFactory.register(LLMProviderTypeEnum.openai, OpenAILLMModel)
LLMModelFactory.register(LLMProviderTypeEnum.ollama, OllamaLLMModel)

__all__ = [
    "OpenAILLMModel",
    "OllamaLLMModel",
]
