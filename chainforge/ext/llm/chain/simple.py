"""
单次 LLM 调用 Chain
"""

from chainforge.ext.llm.base import BaseLLMModel
from chainforge.ext.llm.types import CompletionRequest
from chainforge.ext.llm.chain.base import Chain, guarded_call
from chainforge.ext.llm.chain.prompt import PromptTemplate
from chainforge.ext.llm.chain.metadata import ChainInput, ChainOutput, MetadataAggregator


class SimpleChain(Chain):
    """渲染模板并调用一次 LLM

    结果为 {"output": <生成文本>, "model": <模型名>}，记录一个 "llm_call" 步骤
    """

    def __init__(
        self,
        name: str,
        description: str,
        llm: BaseLLMModel,
        prompt_template: str | PromptTemplate,
        llm_timeout: float | None = None,
        timeout: float | None = None,
    ):
        super().__init__(name, description, timeout)
        self.llm = llm
        self.prompt = (
            prompt_template if isinstance(prompt_template, PromptTemplate) else PromptTemplate(prompt_template)
        )
        self.llm_timeout = llm_timeout

    def render_prompt(self, input: ChainInput) -> str:
        return self.prompt.render(input.variables)

    async def _run(self, input: ChainInput) -> ChainOutput:
        aggregator = MetadataAggregator(self.name)
        prompt = self.render_prompt(input)

        response = await guarded_call(
            self.llm.generate(CompletionRequest(prompt=prompt)),
            f"llm '{self.llm.model_name}'",
            self.llm_timeout,
        )

        aggregator.record_step("llm_call", response.latency_ms, prompt, response.text)
        aggregator.add_usage(response.usage.total_tokens, response.usage.estimate_cost(response.model))

        return ChainOutput(
            result={"output": response.text, "model": response.model},
            metadata=aggregator.finish(),
        )
