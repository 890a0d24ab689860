"""
Prompt Template 实现

使用 {variable} 占位符的提示词模板
"""

import re
from typing import Any

PLACEHOLDER_PATTERN = re.compile(r"\{([^{}]+)\}")


class PromptTemplate:
    """提示词模板

    只替换值为字符串的变量；未提供或非字符串的占位符原样保留。
    替换是单次扫描完成的，插入的值中出现的占位符不会被再次展开
    """

    def __init__(self, template: str):
        self.template = template
        self.input_variables = self._extract_variables(template)

    @classmethod
    def from_template(cls, template: str) -> "PromptTemplate":
        return cls(template)

    def _extract_variables(self, template: str) -> list[str]:
        # 保持出现顺序并去重
        return list(dict.fromkeys(PLACEHOLDER_PATTERN.findall(template)))

    def render(self, variables: dict[str, Any]) -> str:
        """渲染模板

        Args:
            variables: 模板变量

        Returns:
            渲染后的字符串
        """

        def replace(match: re.Match) -> str:
            value = variables.get(match.group(1))
            return value if isinstance(value, str) else match.group(0)

        return PLACEHOLDER_PATTERN.sub(replace, self.template)

    def missing_variables(self, variables: dict[str, Any]) -> list[str]:
        """返回模板中未被字符串变量覆盖的占位符"""
        return [name for name in self.input_variables if not isinstance(variables.get(name), str)]

    def __repr__(self) -> str:
        return f"PromptTemplate(input_variables={self.input_variables})"
