"""
任务存储 - 任务集合的唯一权威来源

职责：
1. 保存会话内全部任务（跨批次累积）
2. 状态迁移的唯一写入口，每次写入版本号+1并通知订阅者
3. 读者始终拿到完整快照
4. 清空时释放全部图片句柄（每个恰好一次）

测试要点：
- test_apply_bumps_version: 写入递增版本
- test_snapshot_isolated: 快照不受后续写入影响
- test_clear_releases_images: 清空释放句柄
"""

from __future__ import annotations

import logging
from typing import Any, Callable

from ..interfaces import IJobStore
from ..models import Job

logger = logging.getLogger(__name__)

TRANSITIONS = frozenset({"mark_processing", "mark_succeeded", "mark_failed"})


class JobStore(IJobStore):
    """内存任务存储"""

    def __init__(self):
        self._jobs: dict[str, Job] = {}  # 插入顺序即提交顺序
        self._version = 0
        self._subscribers: list[Callable[[int], None]] = []

    @property
    def version(self) -> int:
        return self._version

    def __len__(self) -> int:
        return len(self._jobs)

    def add(self, jobs: list[Job]) -> None:
        """追加新任务"""
        for job in jobs:
            if job.job_id in self._jobs:
                raise ValueError(f"任务ID重复: {job.job_id}")
        for job in jobs:
            self._jobs[job.job_id] = job
        self._bump()

    def get(self, job_id: str) -> Job | None:
        return self._jobs.get(job_id)

    def apply(self, job_id: str, transition: str, *args: Any) -> Job:
        """执行状态迁移（唯一写入口）"""
        if transition not in TRANSITIONS:
            raise ValueError(f"未知迁移: {transition}")
        job = self._jobs.get(job_id)
        if job is None:
            raise KeyError(job_id)

        getattr(job, transition)(*args)
        self._bump()
        return job

    def snapshot(self) -> tuple[Job, ...]:
        """当前全部任务的一致快照（浅拷贝，后续写入不可见）"""
        return tuple(job.model_copy() for job in self._jobs.values())

    def subscribe(self, callback: Callable[[int], None]) -> Callable[[], None]:
        """订阅变更，回调参数为新版本号"""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def clear(self) -> int:
        """释放全部图片并清空"""
        released = sum(1 for job in self._jobs.values() if job.release_image())
        count = len(self._jobs)
        self._jobs.clear()
        self._bump()
        logger.info(f"已清空 {count} 个任务，释放图片 {released} 张")
        return released

    def _bump(self) -> None:
        self._version += 1
        for callback in list(self._subscribers):
            try:
                callback(self._version)
            except Exception:
                logger.exception("订阅回调执行失败")
