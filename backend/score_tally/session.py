"""
会话编排 - 提交/处理/报表/导出/清空

职责：
1. 为每张截图创建 Job 并追加到任务存储
2. 驱动调度器处理新批次（可多个批次同时在途）
3. 按需重新生成报表与CSV
4. 清空时释放全部图片并重置进度

测试要点：
- test_submit_and_run: 提交并处理
- test_clear_refused_while_processing: 处理中禁止清空
- test_close_aborts_and_releases: 会话结束
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Callable, Iterable

from .config import RuntimeConfig, get_config
from .ingest import load_image
from .interfaces import IExtractionGateway, ScoreTallyError
from .models import DisplayRow, ImageRef, Job, Progress
from .pipeline import BatchResult, BatchScheduler, JobStore, ProgressTracker
from .report import build_report, export_csv

logger = logging.getLogger(__name__)


class TallySession:
    """一次使用会话（跨批次累积结果）"""

    def __init__(
        self,
        gateway: IExtractionGateway,
        config: RuntimeConfig | None = None,
        on_complete: Callable[[BatchResult], None] | None = None,
    ):
        self.config = config or get_config()
        self.store = JobStore()
        self.progress_tracker = ProgressTracker()
        self.scheduler = BatchScheduler(
            gateway,
            self.store,
            self.progress_tracker,
            concurrency_limit=self.config.concurrency.limit,
            on_complete=on_complete,
        )
        self._tasks: set[asyncio.Task] = set()

    # === 提交与处理 ===

    def submit(self, images: Iterable[ImageRef | Path | str]) -> list[Job]:
        """创建待处理任务（同步部分）；进度总数在批次开始处理时累加"""
        jobs: list[Job] = []
        for item in images:
            image = item if isinstance(item, ImageRef) else load_image(Path(item))
            name = image.path.name if image.path else f"image-{len(self.store) + len(jobs) + 1}"
            jobs.append(Job(source_name=name, image=image))

        if not jobs:
            return jobs
        self.store.add(jobs)
        logger.info(f"已提交 {len(jobs)} 张截图")
        return jobs

    async def process(self, jobs: list[Job], concurrency_limit: int | None = None) -> BatchResult:
        return await self.scheduler.run(jobs, concurrency_limit)

    async def submit_and_run(
        self,
        images: Iterable[ImageRef | Path | str],
        concurrency_limit: int | None = None,
    ) -> BatchResult:
        jobs = self.submit(images)
        return await self.process(jobs, concurrency_limit)

    def spawn(
        self,
        images: Iterable[ImageRef | Path | str],
        concurrency_limit: int | None = None,
    ) -> asyncio.Task:
        """后台处理新批次（需在运行中的事件循环内调用）"""
        jobs = self.submit(images)
        task = asyncio.get_running_loop().create_task(self.process(jobs, concurrency_limit))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def wait(self) -> list[BatchResult]:
        """等待全部后台批次结束"""
        if not self._tasks:
            return []
        return list(await asyncio.gather(*list(self._tasks)))

    # === 读取 ===

    @property
    def is_processing(self) -> bool:
        return self.scheduler.is_processing

    @property
    def progress(self) -> Progress:
        return self.progress_tracker.snapshot()

    @property
    def jobs(self) -> tuple[Job, ...]:
        return self.store.snapshot()

    def report(self) -> list[DisplayRow]:
        return build_report(self.store.snapshot())

    def export(self, output: Path | None = None) -> Path:
        return export_csv(self.report(), output, self.config)

    # === 清理 ===

    def clear(self) -> int:
        """释放图片、清空任务、重置进度"""
        if self.is_processing:
            raise ScoreTallyError("处理中不能清空结果")
        released = self.store.clear()
        self.progress_tracker.reset()
        return released

    async def close(self) -> int:
        """会话结束：停止后续波次，等待在途请求，然后清空"""
        self.scheduler.abort()
        await self.wait()
        return self.clear()
