"""
Tool 实现和装饰器

提供工具抽象，以及将 Python 函数转换为 Tool 的能力
"""

import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, Self, Union, get_args, get_origin

from loguru import logger
from pydantic import BaseModel, Field

from chainforge.util.general import truncate_content


class ToolParameters(BaseModel):
    """工具参数声明

    json_schema 仅用于文档说明，执行前不会校验实际输入
    """

    required: list[str] = Field(default_factory=list)
    optional: list[str] = Field(default_factory=list)
    json_schema: dict[str, Any] = Field(default_factory=dict)


class ToolOutput(BaseModel):
    """工具执行结果"""

    result: str
    success: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def ok(cls, result: str, **metadata: Any) -> Self:
        return cls(result=result, success=True, metadata=metadata)

    @classmethod
    def fail(cls, error: str, **metadata: Any) -> Self:
        return cls(result=error, success=False, metadata=metadata)


class BaseTool(ABC):
    """工具抽象基类

    实例在多个 Agent 运行间共享，除构造参数外不应持有可变状态
    """

    name: str
    description: str

    @abstractmethod
    async def execute(self, input: str) -> ToolOutput:
        """执行工具

        Args:
            input: Agent 给出的 Action Input 文本

        Returns:
            ToolOutput
        """
        raise NotImplementedError

    def parameters(self) -> ToolParameters:
        return ToolParameters()

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name='{self.name}', description='{self.description}')"


class FunctionTool(BaseTool):
    """将 Python 函数封装为工具

    函数接收一个字符串参数，可以是同步或异步；
    返回 ToolOutput 时原样使用，其他返回值转换为字符串
    """

    def __init__(
        self,
        func: Callable[..., Any],
        name: str,
        description: str,
        parameters: ToolParameters | None = None,
    ):
        self.func = func
        self.name = name
        self.description = description
        self._parameters = parameters or extract_parameters_from_signature(func)
        self.is_async = inspect.iscoroutinefunction(func)

    def parameters(self) -> ToolParameters:
        return self._parameters

    async def execute(self, input: str) -> ToolOutput:
        logger.debug(f"Tool '{self.name}' invoke - input: {truncate_content(input)}")

        if self.is_async:
            result = await self.func(input)
        else:
            result = self.func(input)

        logger.debug(f"Tool '{self.name}' result: {truncate_content(str(result))}")
        if isinstance(result, ToolOutput):
            return result
        return ToolOutput.ok(str(result))


def tool(func: Callable | None = None, *, name: str | None = None, description: str | None = None):
    """装饰器：将函数转换为 Tool

    使用方式：
        @tool
        def echo(text: str) -> str:
            return text

    或者：
        @tool(name="custom_name", description="Custom description")
        def echo(text: str) -> str:
            return text

    Args:
        func: 被装饰的函数
        name: 自定义工具名称（可选，默认使用函数名）
        description: 自定义工具描述（可选，默认使用函数文档字符串）

    Returns:
        FunctionTool 实例或装饰器函数
    """

    def decorator(f: Callable) -> FunctionTool:
        return FunctionTool(
            func=f,
            name=name or f.__name__,
            description=description or (f.__doc__ or "").strip(),
        )

    if func is not None:
        return decorator(func)
    return decorator


def extract_parameters_from_signature(func: Callable) -> ToolParameters:
    """从函数签名提取参数声明

    Args:
        func: 函数对象

    Returns:
        ToolParameters，json_schema 为 JSON Schema 格式
    """
    sig = inspect.signature(func)

    properties = {}
    required = []
    optional = []

    for param_name, param in sig.parameters.items():
        if param_name == "self":
            continue

        param_type = param.annotation if param.annotation != inspect.Parameter.empty else str
        properties[param_name] = {"type": _get_type_string(param_type)}

        if param.default == inspect.Parameter.empty:
            required.append(param_name)
        else:
            optional.append(param_name)

    return ToolParameters(
        required=required,
        optional=optional,
        json_schema={
            "type": "object",
            "properties": properties,
            "required": required,
        },
    )


def _get_type_string(type_annotation: Any) -> str:
    """将类型注解转换为 JSON Schema 类型字符串"""
    origin = get_origin(type_annotation)

    # 处理 Optional/Union
    if origin is Union:
        return _get_type_string(get_args(type_annotation)[0])

    type_map = {
        str: "string",
        int: "integer",
        float: "number",
        bool: "boolean",
        list: "array",
        dict: "object",
    }

    if type_annotation in type_map:
        return type_map[type_annotation]
    if origin is list:
        return "array"
    if origin is dict:
        return "object"
    return "string"


__all__ = [
    "ToolParameters",
    "ToolOutput",
    "BaseTool",
    "FunctionTool",
    "tool",
    "extract_parameters_from_signature",
]
