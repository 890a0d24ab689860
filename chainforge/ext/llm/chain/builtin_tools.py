"""
内置工具
"""

import ast
import operator
from typing import Any
from typing_extensions import override

from chainforge.ext.llm.chain.tool import BaseTool, ToolOutput, ToolParameters

_BINARY_OPERATORS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}

_UNARY_OPERATORS = {
    ast.UAdd: operator.pos,
    ast.USub: operator.neg,
}

MAX_EXPONENT = 100


def evaluate_expression(expression: str) -> int | float:
    """安全地计算算术表达式

    只支持数字常量、四则运算、取模、整除和乘方

    Raises:
        ValueError: 表达式包含不支持的语法
        ZeroDivisionError: 除数为 0
    """
    tree = ast.parse(expression.strip(), mode="eval")
    return _evaluate(tree.body)


def _evaluate(node: ast.AST) -> Any:
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) and not isinstance(node.value, bool):
        return node.value

    if isinstance(node, ast.BinOp) and type(node.op) in _BINARY_OPERATORS:
        left = _evaluate(node.left)
        right = _evaluate(node.right)
        if isinstance(node.op, ast.Pow) and abs(right) > MAX_EXPONENT:
            raise ValueError(f"Exponent too large: {right}")
        return _BINARY_OPERATORS[type(node.op)](left, right)

    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPERATORS:
        return _UNARY_OPERATORS[type(node.op)](_evaluate(node.operand))

    raise ValueError(f"Unsupported expression element: {type(node).__name__}")


class CalculatorTool(BaseTool):
    """算术计算工具"""

    name = "calculator"
    description = "Performs mathematical calculations"

    @override
    def parameters(self) -> ToolParameters:
        return ToolParameters(
            required=["expression"],
            json_schema={
                "type": "object",
                "properties": {
                    "expression": {
                        "type": "string",
                        "description": "Mathematical expression to evaluate",
                    },
                },
                "required": ["expression"],
            },
        )

    @override
    async def execute(self, input: str) -> ToolOutput:
        try:
            value = evaluate_expression(input)
        except (SyntaxError, ValueError, ZeroDivisionError, OverflowError) as e:
            return ToolOutput.fail(f"Invalid expression '{input}': {e}")
        return ToolOutput.ok(str(value), expression=input)
