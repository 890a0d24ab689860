"""
ChainForge

LLM 链式编排与 ReAct Agent 执行引擎
"""

__version__ = "0.1.0"
