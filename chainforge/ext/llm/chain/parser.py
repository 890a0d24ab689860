"""
Agent 动作解析器

从 LLM 的自由文本回复中提取 Thought / Action / Action Input
"""

from loguru import logger
from pydantic import BaseModel

from chainforge.core.types import AgentActionTypeEnum
from chainforge.util.general import truncate_content


class AgentAction(BaseModel):
    """一次 LLM 回复解析出的决策"""

    thought: str = ""
    action_type: str
    action_input: str = ""

    @property
    def is_final(self) -> bool:
        return self.action_type == AgentActionTypeEnum.final_answer.value


class ReActOutputParser:
    """按行前缀解析 ReAct 格式回复

    每个字段取第一个匹配行，无关行忽略。
    回复中没有 Action 行时视为 final_answer，action_input 为整段回复
    """

    thought_prefix = "Thought:"
    action_prefix = "Action:"
    action_input_prefix = "Action Input:"

    def parse(self, text: str) -> AgentAction:
        thought: str | None = None
        action_type: str | None = None
        action_input: str | None = None

        for raw_line in text.splitlines():
            line = raw_line.strip()
            if thought is None and line.startswith(self.thought_prefix):
                thought = line[len(self.thought_prefix) :].strip()
            elif action_type is None and line.startswith(self.action_prefix):
                action_type = line[len(self.action_prefix) :].strip()
            elif action_input is None and line.startswith(self.action_input_prefix):
                action_input = line[len(self.action_input_prefix) :].strip()

        if not action_type:
            logger.debug(f"No action found in reply, treating as final answer: {truncate_content(text)}")
            return AgentAction(
                thought=thought or "",
                action_type=AgentActionTypeEnum.final_answer.value,
                action_input=text,
            )

        return AgentAction(thought=thought or "", action_type=action_type, action_input=action_input or "")


def parse_action(text: str) -> AgentAction:
    return ReActOutputParser().parse(text)


__all__ = ["AgentAction", "ReActOutputParser", "parse_action"]
