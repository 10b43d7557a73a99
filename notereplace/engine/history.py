"""
撤销历史模块
"""

from collections import deque

from loguru import logger

from ..model.errors import UndoEmpty
from ..model.search import UndoEntry


class UndoHistory:
    """有界的批量操作历史，超出容量时淘汰最早的条目"""

    def __init__(self, capacity: int = 10) -> None:
        if capacity < 1:
            raise ValueError(f"历史容量必须为正数：{capacity}")
        self.capacity = capacity
        self._entries: deque[UndoEntry] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._entries)

    def push(self, entry: UndoEntry) -> None:
        """追加一条记录"""
        if len(self._entries) == self.capacity:
            evicted = self._entries[0]
            logger.debug(f"历史已满，淘汰最早的操作：{evicted.query.pattern!r}")
        self._entries.append(entry)
        logger.debug(f"已记录操作，当前历史数：{len(self._entries)}")

    def pop_most_recent(self) -> UndoEntry:
        """移除并返回最近的一条记录

        Raises:
            UndoEmpty: 历史为空
        """
        if not self._entries:
            raise UndoEmpty()
        return self._entries.pop()

    def peek(self) -> UndoEntry | None:
        return self._entries[-1] if self._entries else None

    def clear(self) -> None:
        self._entries.clear()
