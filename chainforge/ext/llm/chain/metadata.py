"""
Chain 输入输出与执行元数据

ChainInput / ChainOutput 是单次调用的值对象；
MetadataAggregator 在一次（可能嵌套的）执行中累计步骤、耗时、token 与费用
"""

import time
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from chainforge.util.general import elapsed_ms


class StepInfo(BaseModel):
    """单个执行步骤的审计记录，记录后不可修改"""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="步骤名称")
    duration_ms: int = Field(description="步骤耗时（毫秒）")
    input: str = Field(description="输入快照")
    output: str = Field(description="输出快照")


class ChainMetadata(BaseModel):
    """Chain 执行元数据

    组合 Chain 的 total_tokens / total_cost 等于各子 Chain 之和，
    steps 顺序即执行顺序
    """

    chain_name: str
    execution_time_ms: int = 0
    steps: list[StepInfo] = Field(default_factory=list)
    total_tokens: int = 0
    total_cost: float = 0.0


class ChainInput(BaseModel):
    """Chain 输入：字符串键到 JSON 风格值的映射"""

    variables: dict[str, Any] = Field(default_factory=dict)

    def with_variable(self, key: str, value: Any) -> "ChainInput":
        """返回追加了变量的新输入，原对象不变"""
        return ChainInput(variables={**self.variables, key: value})

    def get_string(self, key: str) -> str | None:
        """仅当变量存在且为字符串时返回其值"""
        value = self.variables.get(key)
        return value if isinstance(value, str) else None


class ChainOutput(BaseModel):
    """Chain 输出：结构化结果 + 执行元数据"""

    result: Any
    metadata: ChainMetadata


class ChainInfo(BaseModel):
    """注册表中的 Chain 摘要"""

    id: str
    name: str
    description: str


class MetadataAggregator:
    """执行元数据累加器

    每次 execute 创建一个实例，不在调用间共享
    """

    def __init__(self, chain_name: str):
        self.chain_name = chain_name
        self.steps: list[StepInfo] = []
        self.total_tokens = 0
        self.total_cost = 0.0
        self._start = time.perf_counter()

    def record_step(self, name: str, duration_ms: int, input: str, output: str) -> StepInfo:
        step = StepInfo(name=name, duration_ms=duration_ms, input=input, output=output)
        self.steps.append(step)
        return step

    def add_usage(self, tokens: int, cost: float) -> None:
        self.total_tokens += tokens
        self.total_cost += cost

    def absorb(self, metadata: ChainMetadata) -> None:
        """合并子 Chain 的元数据：步骤按顺序追加，token 与费用求和"""
        self.steps.extend(metadata.steps)
        self.add_usage(metadata.total_tokens, metadata.total_cost)

    def finish(self) -> ChainMetadata:
        return ChainMetadata(
            chain_name=self.chain_name,
            execution_time_ms=elapsed_ms(self._start),
            steps=list(self.steps),
            total_tokens=self.total_tokens,
            total_cost=self.total_cost,
        )


__all__ = [
    "StepInfo",
    "ChainMetadata",
    "ChainInput",
    "ChainOutput",
    "ChainInfo",
    "MetadataAggregator",
]
