"""
进度统计 - {total, completed} 单调计数

total 按提交批次大小累加，completed 每个任务进入终态时+1（与成败无关）。
"""

from __future__ import annotations

import logging
from typing import Callable

from ..models import Progress

logger = logging.getLogger(__name__)


class ProgressTracker:
    """进度计数器"""

    def __init__(self):
        self._total = 0
        self._completed = 0
        self._listeners: list[Callable[[Progress], None]] = []

    def add_total(self, n: int) -> None:
        if n < 0:
            raise ValueError(f"批次大小不能为负: {n}")
        self._total += n
        self._emit()

    def complete_one(self) -> None:
        self._completed += 1
        self._emit()

    def reset(self) -> None:
        """清空时归零（仅此处允许计数下降）"""
        self._total = 0
        self._completed = 0
        self._emit()

    def snapshot(self) -> Progress:
        return Progress(total=self._total, completed=self._completed)

    def subscribe(self, listener: Callable[[Progress], None]) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener) if listener in self._listeners else None

    def _emit(self) -> None:
        progress = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(progress)
            except Exception:
                logger.exception("进度回调执行失败")
