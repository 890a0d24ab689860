"""
Chain 模块基础抽象

定义统一的 Chain 接口和协作者调用辅助函数
"""

import asyncio
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import TYPE_CHECKING, Any, TypeVar

from loguru import logger

from chainforge.util.general import format_dict_for_log
from chainforge.ext.llm.chain.metadata import ChainInput, ChainOutput
from chainforge.ext.llm.chain.exceptions import ChainError, ProviderError, StepTimeoutError

if TYPE_CHECKING:
    from chainforge.ext.llm.chain.sequential import SequentialChain

T = TypeVar("T")


async def guarded_call(
    awaitable: Awaitable[T],
    source: str,
    timeout: float | None = None,
    error_cls: type[ProviderError] = ProviderError,
) -> T:
    """调用外部协作者（LLM / Retriever / Tool）

    超时转换为 StepTimeoutError，其他异常包装为 error_cls，原始异常保留在 __cause__ 中。
    ChainError 原样抛出

    Args:
        awaitable: 协作者调用
        source: 协作者标识，用于错误信息
        timeout: 截止时间（秒），None 表示不限制
        error_cls: 包装异常类型

    Returns:
        协作者返回值
    """
    try:
        if timeout is None:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, timeout)
        except TimeoutError as e:
            logger.warning(f"{source} timed out after {timeout}s")
            raise StepTimeoutError(source, timeout) from e
    except ChainError:
        raise
    except Exception as e:
        logger.error(f"{source} failed: {e}")
        raise error_cls(source, e) from e


class Chain(ABC):
    """Chain 抽象基类

    实例构造完成后只读，可以被多个并发调用共享；
    每次 execute 独立累计自己的元数据
    """

    def __init__(self, name: str, description: str = "", timeout: float | None = None):
        """
        Args:
            name: Chain 名称
            description: Chain 描述
            timeout: 整个 Chain 执行的截止时间（秒），None 表示不限制
        """
        self._name = name
        self._description = description
        self.timeout = timeout

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @abstractmethod
    async def _run(self, input: ChainInput) -> ChainOutput:
        """执行 Chain 逻辑，由子类实现"""
        raise NotImplementedError

    async def execute(self, input: ChainInput | dict[str, Any]) -> ChainOutput:
        """执行 Chain

        Args:
            input: ChainInput 或变量字典

        Returns:
            ChainOutput

        Raises:
            ChainError: 执行失败时抛出
        """
        if not isinstance(input, ChainInput):
            input = ChainInput(variables=dict(input))

        logger.debug(f"Chain '{self.name}' execute - variables: {format_dict_for_log(input.variables)}")

        if self.timeout is None:
            output = await self._run(input)
        else:
            try:
                output = await asyncio.wait_for(self._run(input), self.timeout)
            except TimeoutError as e:
                logger.warning(f"Chain '{self.name}' timed out after {self.timeout}s")
                raise StepTimeoutError(f"chain '{self.name}'", self.timeout) from e

        logger.debug(
            f"Chain '{self.name}' finished - steps: {len(output.metadata.steps)}, "
            f"tokens: {output.metadata.total_tokens}, time: {output.metadata.execution_time_ms}ms",
        )
        return output

    async def abatch(self, inputs: list[ChainInput | dict[str, Any]]) -> list[ChainOutput]:
        """并发执行多个输入，结果顺序与输入一致"""
        return list(await asyncio.gather(*(self.execute(inp) for inp in inputs)))

    def __or__(self, other: "Chain") -> "SequentialChain":
        """管道操作符：chain1 | chain2

        Returns:
            SequentialChain 实例
        """
        from chainforge.ext.llm.chain.sequential import SequentialChain

        if isinstance(self, SequentialChain):
            return SequentialChain(self.name, self.description, chains=[*self.chains, other], timeout=self.timeout)
        return SequentialChain(
            f"{self.name} | {other.name}",
            f"{self.name} followed by {other.name}",
            chains=[self, other],
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
