"""
Chain 组合引擎

提供 Chain（Simple / Sequential / RAGPipeline）、注册表、工具和 ReAct Agent 执行器
"""

from chainforge.ext.llm.chain.base import Chain, guarded_call
from chainforge.ext.llm.chain.metadata import (
    StepInfo,
    ChainInfo,
    ChainInput,
    ChainOutput,
    ChainMetadata,
    MetadataAggregator,
)
from chainforge.ext.llm.chain.prompt import PromptTemplate
from chainforge.ext.llm.chain.simple import SimpleChain
from chainforge.ext.llm.chain.sequential import SequentialChain
from chainforge.ext.llm.chain.pipeline import RAGPipeline
from chainforge.ext.llm.chain.registry import ChainRegistry, ToolRegistry
from chainforge.ext.llm.chain.tool import (
    BaseTool,
    ToolOutput,
    FunctionTool,
    ToolParameters,
    tool,
)
from chainforge.ext.llm.chain.builtin_tools import CalculatorTool
from chainforge.ext.llm.chain.parser import AgentAction, ReActOutputParser, parse_action
from chainforge.ext.llm.chain.agent import AgentStep, AgentResult, AgentExecutor
from chainforge.ext.llm.chain.exceptions import (
    AgentError,
    ChainError,
    ProviderError,
    ChildChainError,
    StepTimeoutError,
    UnknownToolError,
    MaxIterationsError,
    ToolExecutionError,
    MissingVariableError,
)

__all__ = [
    # 基础
    "Chain",
    "guarded_call",
    "StepInfo",
    "ChainInfo",
    "ChainInput",
    "ChainOutput",
    "ChainMetadata",
    "MetadataAggregator",
    "PromptTemplate",
    # Chain 变体
    "SimpleChain",
    "SequentialChain",
    "RAGPipeline",
    # 注册表
    "ChainRegistry",
    "ToolRegistry",
    # Tool
    "BaseTool",
    "ToolOutput",
    "FunctionTool",
    "ToolParameters",
    "tool",
    "CalculatorTool",
    # Agent
    "AgentAction",
    "ReActOutputParser",
    "parse_action",
    "AgentStep",
    "AgentResult",
    "AgentExecutor",
    # 异常
    "AgentError",
    "ChainError",
    "ProviderError",
    "ChildChainError",
    "StepTimeoutError",
    "UnknownToolError",
    "MaxIterationsError",
    "ToolExecutionError",
    "MissingVariableError",
]
