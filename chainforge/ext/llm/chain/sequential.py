"""
顺序组合 Chain
"""

from typing import Any, Self

from loguru import logger

from chainforge.ext.llm.chain.base import Chain
from chainforge.ext.llm.chain.exceptions import ChildChainError
from chainforge.ext.llm.chain.metadata import ChainInput, ChainOutput, MetadataAggregator

PREVIOUS_OUTPUT_KEY = "previous_output"
NO_OUTPUT = "No output"


class SequentialChain(Chain):
    """按顺序执行子 Chain

    第一个子 Chain 接收调用方输入，之后每个子 Chain 接收
    {"previous_output": <上一个子 Chain 的 result>}。
    最终 result 为最后一个子 Chain 的 result，没有子 Chain 时为 "No output"
    """

    def __init__(
        self,
        name: str,
        description: str = "",
        chains: list[Chain] | None = None,
        timeout: float | None = None,
    ):
        super().__init__(name, description, timeout)
        self.chains: list[Chain] = list(chains or [])

    def add_chain(self, chain: Chain) -> Self:
        """追加子 Chain，支持链式调用"""
        self.chains.append(chain)
        return self

    async def _run(self, input: ChainInput) -> ChainOutput:
        aggregator = MetadataAggregator(self.name)
        current = input
        result: Any = NO_OUTPUT

        for index, chain in enumerate(self.chains):
            try:
                output = await chain.execute(current)
            except Exception as e:
                logger.error(f"Chain '{self.name}' step {index} ('{chain.name}') failed: {e}")
                raise ChildChainError(self.name, chain.name, index, e, aggregator.steps) from e

            aggregator.absorb(output.metadata)
            result = output.result
            current = ChainInput(variables={PREVIOUS_OUTPUT_KEY: result})

        return ChainOutput(result=result, metadata=aggregator.finish())
