import os
import abc
import enum
from typing import Self, Generic, TypeVar
from pathlib import Path

from pydantic import BaseModel, Field, model_validator

from chainforge.core.types import LLMProviderTypeEnum

T = TypeVar("T")


class EnvironmentEnum(str, enum.Enum):
    local = "local"
    development = "development"
    test = "test"
    production = "production"


ENVIRONMENT = os.environ.get(
    "environment",  # noqa
    EnvironmentEnum.local.value,
)

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class ProjectConfig(BaseModel):
    name: str = "chainforge"
    debug: bool = False
    environment: EnvironmentEnum = EnvironmentEnum(ENVIRONMENT)
    log_level: str = "INFO"

    @model_validator(mode="after")
    def check_debug_options(self) -> Self:
        assert not (
            self.debug and self.environment == EnvironmentEnum.production
        ), "Production cannot set with debug enabled"
        return self

    @property
    def base_dir(self) -> Path:
        return BASE_DIR


class OpenAIProviderConfig(BaseModel):
    api_key_env: str = "OPENAI_API_KEY"
    base_url: str = "https://api.openai.com"
    default_model: str = "gpt-3.5-turbo"
    temperature: float = 0.7
    max_tokens: int = 2048
    top_p: float = 1.0
    max_retries: int = 2
    timeout: int = 60

    def get_api_key(self) -> str:
        """从环境变量读取 API Key"""
        from chainforge.ext.llm.exceptions import LLMConfigError

        api_key = os.environ.get(self.api_key_env)
        if not api_key:
            raise LLMConfigError(f"OpenAI API key not found in env var '{self.api_key_env}'")
        return api_key


class OllamaProviderConfig(BaseModel):
    base_url: str = "http://localhost:11434"
    default_model: str = "llama3"
    temperature: float = 0.7
    max_tokens: int = 2048
    max_retries: int = 0
    timeout: int = 120


class LLMProvidersConfig(BaseModel):
    openai: OpenAIProviderConfig = OpenAIProviderConfig()
    ollama: OllamaProviderConfig = OllamaProviderConfig()


class LLMConfig(BaseModel):
    default_provider: LLMProviderTypeEnum = LLMProviderTypeEnum.openai
    providers: LLMProvidersConfig = LLMProvidersConfig()


class EmbeddingsConfig(BaseModel):
    base_url: str = "https://api.openai.com"
    api_key_env: str = "OPENAI_API_KEY"
    model: str = "text-embedding-3-small"
    dimension: int = 1536
    batch_size: int = 32
    enabled: bool = False


class RagConfig(BaseModel):
    chunk_size: int = Field(default=1000, gt=0)
    chunk_overlap: int = Field(default=200, ge=0)
    retrieval_top_k: int = Field(default=5, gt=0)
    similarity_threshold: float = 0.7

    @model_validator(mode="after")
    def check_overlap(self) -> Self:
        assert self.chunk_overlap < self.chunk_size, "chunk_overlap must be smaller than chunk_size"
        return self


class ChainsConfig(BaseModel):
    timeout_seconds: float | None = None
    llm_timeout_seconds: float | None = None
    retrieval_timeout_seconds: float | None = None


class AgentsConfig(BaseModel):
    max_iterations: int = Field(default=10, gt=0)
    tool_timeout_seconds: float | None = None
    llm_timeout_seconds: float | None = None
    enable_reasoning_logs: bool = False


class ExtensionConfig(BaseModel): ...


class InstanceExtensionConfig(ExtensionConfig, Generic[T]):

    @property
    @abc.abstractmethod
    def instance(self) -> T: ...


class RegisterExtensionConfig(ExtensionConfig):

    @abc.abstractmethod
    async def register(self) -> None: ...

    @abc.abstractmethod
    async def unregister(self) -> None: ...
