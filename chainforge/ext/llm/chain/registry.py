"""
Chain 与 Tool 注册表

进程内共享，启动时填充，读多写少；条目只会被显式 remove
"""

from __future__ import annotations

import threading

from loguru import logger

from chainforge.ext.llm.chain.base import Chain
from chainforge.ext.llm.chain.tool import BaseTool
from chainforge.ext.llm.chain.metadata import ChainInfo


class ChainRegistry:
    """id 到 Chain 的并发安全映射

    get 返回的是共享引用，之后即使被 remove 也依然可用；
    多个操作之间不提供原子性
    """

    def __init__(self) -> None:
        self._chains: dict[str, Chain] = {}
        self._lock = threading.RLock()

    def register(self, chain_id: str, chain: Chain) -> None:
        """注册 Chain，相同 id 后写覆盖"""
        with self._lock:
            if chain_id in self._chains:
                logger.warning(f"Chain '{chain_id}' already registered, overriding")
            self._chains[chain_id] = chain
        logger.info(f"Chain registered: {chain_id} ({chain.name})")

    def get(self, chain_id: str) -> Chain | None:
        with self._lock:
            return self._chains.get(chain_id)

    def list(self) -> list[ChainInfo]:
        """返回按 id 排序的快照"""
        with self._lock:
            items = sorted(self._chains.items())
        return [ChainInfo(id=chain_id, name=chain.name, description=chain.description) for chain_id, chain in items]

    def remove(self, chain_id: str) -> Chain | None:
        with self._lock:
            chain = self._chains.pop(chain_id, None)
        if chain is not None:
            logger.info(f"Chain removed: {chain_id}")
        return chain

    def has(self, chain_id: str) -> bool:
        with self._lock:
            return chain_id in self._chains

    def clear(self) -> None:
        with self._lock:
            self._chains.clear()

    def __contains__(self, chain_id: object) -> bool:
        return isinstance(chain_id, str) and self.has(chain_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._chains)


class ToolRegistry:
    """工具名到 Tool 的并发安全映射"""

    def __init__(self, tools: list[BaseTool] | None = None) -> None:
        self._tools: dict[str, BaseTool] = {}
        self._lock = threading.RLock()
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: BaseTool) -> None:
        """按 tool.name 注册，同名后写覆盖"""
        with self._lock:
            if tool.name in self._tools:
                logger.warning(f"Tool '{tool.name}' already registered, overriding")
            self._tools[tool.name] = tool
        logger.info(f"Tool registered: {tool.name}")

    def get(self, name: str) -> BaseTool | None:
        with self._lock:
            return self._tools.get(name)

    def list(self) -> list[BaseTool]:
        """返回按名称排序的快照"""
        with self._lock:
            return [self._tools[name] for name in sorted(self._tools)]

    def remove(self, name: str) -> BaseTool | None:
        with self._lock:
            return self._tools.pop(name, None)

    def has(self, name: str) -> bool:
        with self._lock:
            return name in self._tools

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.has(name)

    def __len__(self) -> int:
        with self._lock:
            return len(self._tools)
