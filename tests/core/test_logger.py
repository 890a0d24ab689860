"""
日志配置测试
"""

import logging

import pytest
from loguru import logger

from chainforge.core.logger import LogLevelEnum, setup_loguru


class TestLogger:
    """测试 loguru 配置"""

    def test_level_from_name(self):
        """测试按名称解析日志级别"""
        assert LogLevelEnum.from_name("debug") == LogLevelEnum.DEBUG
        assert LogLevelEnum.from_name("WARNING") == logging.WARNING
        with pytest.raises(ValueError):
            LogLevelEnum.from_name("verbose")

    def test_standard_logging_intercepted(self):
        """测试标准库日志转发到 loguru"""
        setup_loguru(LogLevelEnum.INFO)
        messages = []
        sink_id = logger.add(lambda message: messages.append(message.record["message"]), level="INFO")
        try:
            logging.getLogger("httpx").info("forwarded message")
        finally:
            logger.remove(sink_id)

        assert "forwarded message" in messages
