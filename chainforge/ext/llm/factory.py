"""
LLM 模型工厂类

根据配置动态创建 LLM 模型实例。
支持 provider 注册、实例缓存、并发安全等功能。
"""

import asyncio
import warnings

import httpx
from loguru import logger

from chainforge.core.types import LLMProviderTypeEnum
from chainforge.config.default import LLMConfig, OllamaProviderConfig, OpenAIProviderConfig
from chainforge.ext.llm.base import BaseLLMModel
from chainforge.ext.llm.exceptions import LLMConfigError, LLMModelNotFoundError


class LLMModelFactory:
    """LLM 模型工厂类

    使用示例:
        >>> model = await LLMModelFactory.create(LLMProviderTypeEnum.openai, local_configs.llm)
        >>> response = await model.generate(CompletionRequest(prompt="hi"))
    """

    # provider 类型到实现类的映射
    _models: dict[LLMProviderTypeEnum, type[BaseLLMModel]] = {}

    # 模型实例缓存
    _instances: dict[LLMProviderTypeEnum, BaseLLMModel] = {}

    # 锁，用于防止并发创建同一实例
    _locks: dict[LLMProviderTypeEnum, asyncio.Lock] = {}

    @classmethod
    def register(cls, provider_type: LLMProviderTypeEnum, model_class: type[BaseLLMModel]) -> None:
        """注册新的 LLM provider 类型

        Args:
            provider_type: provider 类型标识
            model_class: 实现 BaseLLMModel 的类
        """
        if provider_type in cls._models and cls._models[provider_type] is not model_class:
            warnings.warn(f"LLM provider {provider_type.value} already registered, overriding", stacklevel=2)
        cls._models[provider_type] = model_class

    @classmethod
    async def create(
        cls,
        provider_type: LLMProviderTypeEnum,
        config: LLMConfig,
        use_cache: bool = True,
        http_client: httpx.AsyncClient | None = None,
    ) -> BaseLLMModel:
        """创建 LLM 模型实例

        Args:
            provider_type: provider 类型
            config: LLM 配置
            use_cache: 是否使用缓存
            http_client: 可选的 httpx 客户端

        Returns:
            BaseLLMModel 实例

        Raises:
            LLMModelNotFoundError: 不支持的 provider 类型
            LLMConfigError: 配置错误
        """
        model_cls = cls._models.get(provider_type)
        if not model_cls:
            available_types = ", ".join(t.value for t in cls._models)
            raise LLMModelNotFoundError(
                f"Unsupported LLM provider: {provider_type}, available: {available_types}",
            )

        if not use_cache:
            return cls._create_instance(model_cls, provider_type, config, http_client)

        if provider_type in cls._instances:
            return cls._instances[provider_type]

        if provider_type not in cls._locks:
            cls._locks[provider_type] = asyncio.Lock()

        async with cls._locks[provider_type]:
            # 等待锁期间可能已被其他协程创建
            if provider_type in cls._instances:
                return cls._instances[provider_type]

            model = cls._create_instance(model_cls, provider_type, config, http_client)
            cls._instances[provider_type] = model
            return model

    @classmethod
    async def create_default(cls, config: LLMConfig, http_client: httpx.AsyncClient | None = None) -> BaseLLMModel:
        """按 default_provider 创建模型实例"""
        return await cls.create(config.default_provider, config, http_client=http_client)

    @classmethod
    def _create_instance(
        cls,
        model_cls: type[BaseLLMModel],
        provider_type: LLMProviderTypeEnum,
        config: LLMConfig,
        http_client: httpx.AsyncClient | None,
    ) -> BaseLLMModel:
        provider_config = getattr(config.providers, provider_type.value, None)

        if isinstance(provider_config, OpenAIProviderConfig):
            model = model_cls(
                model_name=provider_config.default_model,
                model_type=provider_type.value,
                base_url=provider_config.base_url,
                api_key=provider_config.get_api_key(),
                max_tokens=provider_config.max_tokens,
                default_temperature=provider_config.temperature,
                default_top_p=provider_config.top_p,
                max_retries=provider_config.max_retries,
                timeout=provider_config.timeout,
                http_client=http_client,
            )
        elif isinstance(provider_config, OllamaProviderConfig):
            model = model_cls(
                model_name=provider_config.default_model,
                model_type=provider_type.value,
                base_url=provider_config.base_url,
                max_tokens=provider_config.max_tokens,
                default_temperature=provider_config.temperature,
                max_retries=provider_config.max_retries,
                timeout=provider_config.timeout,
                http_client=http_client,
            )
        else:
            raise LLMConfigError(f"No configuration section for LLM provider: {provider_type.value}")

        logger.info(f"LLM model created: {provider_type.value}/{model.model_name}")
        return model

    @classmethod
    def clear_cache(cls, provider_type: LLMProviderTypeEnum | None = None) -> None:
        """清除模型实例缓存

        Args:
            provider_type: 要清除的 provider，为 None 时清除所有缓存
        """
        if provider_type is None:
            cls._instances.clear()
            cls._locks.clear()
        else:
            cls._instances.pop(provider_type, None)
            cls._locks.pop(provider_type, None)

    @classmethod
    def has_provider(cls, provider_type: LLMProviderTypeEnum) -> bool:
        return provider_type in cls._models

    @classmethod
    def get_cache_info(cls) -> dict:
        return {
            "cached_count": len(cls._instances),
            "cached_providers": [t.value for t in cls._instances],
            "registered_models": {t.value: m.__name__ for t, m in cls._models.items()},
        }
