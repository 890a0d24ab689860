"""
Chain 模块异常定义

提供 Chain、Agent、Tool 相关的自定义异常
"""

from typing import Any


class ChainError(Exception):
    """Chain 基础异常"""


class MissingVariableError(ChainError):
    """缺少必需的模板变量"""

    def __init__(self, variable: str, chain_name: str | None = None):
        self.variable = variable
        self.chain_name = chain_name
        where = f" for chain '{chain_name}'" if chain_name else ""
        super().__init__(f"Missing required variable '{variable}'{where}")


class ProviderError(ChainError):
    """外部协作者（LLM / Retriever / Tool）调用失败

    原始异常保存在 original_error 和 __cause__ 中
    """

    def __init__(self, source: str, error: Exception | None):
        self.source = source
        self.original_error = error
        super().__init__(f"{source} failed: {error}")


class StepTimeoutError(ProviderError):
    """协作者调用超过截止时间"""

    def __init__(self, source: str, timeout: float):
        self.timeout = timeout
        self.source = source
        self.original_error = None
        ChainError.__init__(self, f"{source} timed out after {timeout}s")


class ToolExecutionError(ProviderError):
    """工具执行异常"""

    def __init__(self, tool_name: str, error: Exception | None):
        self.tool_name = tool_name
        self.source = tool_name
        self.original_error = error
        ChainError.__init__(self, f"Tool '{tool_name}' execution failed: {error}")


class ChildChainError(ChainError):
    """组合 Chain 的子步骤失败

    steps 为失败前已完成子 Chain 记录的步骤
    """

    def __init__(
        self,
        chain_name: str,
        child_name: str,
        child_index: int,
        error: Exception,
        steps: list[Any] | None = None,
    ):
        self.chain_name = chain_name
        self.child_name = child_name
        self.child_index = child_index
        self.original_error = error
        self.steps = list(steps or [])
        super().__init__(f"Chain '{chain_name}' failed at step {child_index} ('{child_name}'): {error}")


class AgentError(ChainError):
    """Agent 异常

    steps 为终止前已记录的 AgentStep，供审计使用
    """

    def __init__(self, message: str, steps: list[Any] | None = None):
        self.steps = list(steps or [])
        super().__init__(message)


class UnknownToolError(AgentError):
    """LLM 选择了未注册的工具"""

    def __init__(self, tool_name: str, steps: list[Any] | None = None):
        self.tool_name = tool_name
        super().__init__(f"Unknown tool: {tool_name}", steps)


class MaxIterationsError(AgentError):
    """达到最大迭代次数异常"""

    def __init__(self, max_iterations: int, steps: list[Any] | None = None):
        self.max_iterations = max_iterations
        super().__init__(f"Agent reached maximum iterations ({max_iterations}) without completing", steps)


__all__ = [
    "ChainError",
    "MissingVariableError",
    "ProviderError",
    "StepTimeoutError",
    "ToolExecutionError",
    "ChildChainError",
    "AgentError",
    "UnknownToolError",
    "MaxIterationsError",
]
