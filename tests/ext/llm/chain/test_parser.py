"""
Action 解析测试
"""

from chainforge.ext.llm.chain import ReActOutputParser, parse_action


class TestReActOutputParser:
    """测试行前缀解析"""

    def test_full_reply(self):
        """测试完整格式"""
        action = parse_action(
            "Thought: I should add\nAction: calculator\nAction Input: 2 + 2",
        )

        assert action.thought == "I should add"
        assert action.action_type == "calculator"
        assert action.action_input == "2 + 2"
        assert not action.is_final

    def test_no_action_line_is_final_answer(self):
        """测试没有 Action 行时视为最终答案"""
        reply = "The answer is 42.\nNothing else to do."

        action = ReActOutputParser().parse(reply)

        assert action.is_final
        assert action.action_type == "final_answer"
        assert action.action_input == reply

    def test_first_match_wins(self):
        """测试每个字段取第一个匹配行"""
        action = parse_action(
            "Thought: first\nAction: calculator\nAction: search\n"
            "Action Input: 1+1\nAction Input: 2+2\nThought: second",
        )

        assert action.thought == "first"
        assert action.action_type == "calculator"
        assert action.action_input == "1+1"

    def test_unrelated_lines_and_indentation(self):
        """测试忽略无关行并去除缩进"""
        action = parse_action(
            "Let me think.\n   Thought: indented\n  Action: final_answer  \nAction Input:   done \nbye",
        )

        assert action.thought == "indented"
        assert action.is_final
        assert action.action_input == "done"

    def test_missing_action_input(self):
        """测试缺少 Action Input 时为空字符串"""
        action = parse_action("Action: calculator")

        assert action.action_type == "calculator"
        assert action.action_input == ""
        assert action.thought == ""

    def test_empty_action_value_is_final_answer(self):
        """测试 Action 值为空时按最终答案处理"""
        reply = "Thought: hmm\nAction:\nAction Input: x"

        action = parse_action(reply)

        assert action.is_final
        assert action.action_input == reply
