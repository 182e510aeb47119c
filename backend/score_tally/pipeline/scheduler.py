"""
批处理调度器 - 按波次驱动任务通过识别网关

职责：
1. 将一批任务切成大小不超过并发上限的波次
2. 波次屏障：上一波全部进入终态后才开始下一波
3. 单任务失败隔离（不影响同波及后续波次）
4. 批次开始时累加总数，每个任务终态后进度+1，整批结束后发出一次完成事件

测试要点：
- test_wave_barrier: 波次屏障
- test_concurrency_bound: 同时在途请求不超过上限
- test_failure_isolation: 失败隔离
- test_abort_skips_remaining_waves: 中止后不再启动新波次
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from typing import Callable

from ..config import get_config
from ..interfaces import ExtractionTimeoutError, IExtractionGateway, InvalidTransitionError
from ..models import Job, JobStatus
from .job_store import JobStore
from .progress import ProgressTracker

logger = logging.getLogger(__name__)

FALLBACK_ERROR_MESSAGE = "analysis failed"


@dataclass
class BatchResult:
    """单次批处理结果"""
    batch_id: str
    total: int
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0
    aborted: bool = False
    job_ids: list[str] = field(default_factory=list)


class BatchScheduler:
    """
    波次调度器

    不同批次相互独立：并发提交的批次各自按波次推进，不共享并发上限。
    """

    def __init__(
        self,
        gateway: IExtractionGateway,
        store: JobStore,
        progress: ProgressTracker | None = None,
        concurrency_limit: int | None = None,
        on_complete: Callable[[BatchResult], None] | None = None,
    ):
        self.gateway = gateway
        self.store = store
        self.progress = progress or ProgressTracker()
        self.concurrency_limit = concurrency_limit or get_config().concurrency.limit
        self.on_complete = on_complete
        self._active_runs = 0
        self._aborted = False

    @property
    def active_runs(self) -> int:
        return self._active_runs

    @property
    def is_processing(self) -> bool:
        return self._active_runs > 0

    @property
    def aborted(self) -> bool:
        return self._aborted

    def abort(self) -> None:
        """停止调度后续波次；在途请求照常完成"""
        if not self._aborted:
            logger.info("调度器已中止，后续波次不再启动")
        self._aborted = True

    async def run(self, jobs: list[Job], concurrency_limit: int | None = None) -> BatchResult:
        """执行一批任务"""
        limit = self.concurrency_limit if concurrency_limit is None else concurrency_limit
        if limit < 1:
            raise ValueError(f"并发上限必须 >= 1: {limit}")
        for job in jobs:
            if job.status != JobStatus.PENDING:
                raise InvalidTransitionError(f"[{job.job_id}] 只能调度待处理任务: {job.status.value}")

        result = BatchResult(
            batch_id=uuid.uuid4().hex[:8],
            total=len(jobs),
            job_ids=[j.job_id for j in jobs],
        )
        self.progress.add_total(len(jobs))
        if not jobs:
            return result

        self._active_runs += 1
        try:
            for start in range(0, len(jobs), limit):
                if self._aborted:
                    result.skipped = len(jobs) - start
                    result.aborted = True
                    logger.warning(f"[{result.batch_id}] 已中止，跳过 {result.skipped} 个任务")
                    break

                wave = jobs[start:start + limit]
                logger.info(
                    f"[{result.batch_id}] 开始波次 {start // limit + 1}: {len(wave)} 个任务"
                )
                outcomes = await asyncio.gather(*(self._process_item(job) for job in wave))
                result.succeeded += sum(1 for ok in outcomes if ok)
                result.failed += sum(1 for ok in outcomes if not ok)
        finally:
            self._active_runs -= 1

        logger.info(
            f"[{result.batch_id}] 批处理完成: 成功 {result.succeeded} / 失败 {result.failed}"
            f" / 跳过 {result.skipped}"
        )
        if self.on_complete:
            self.on_complete(result)
        return result

    async def _process_item(self, job: Job) -> bool:
        """处理单个任务，返回是否成功"""
        self.store.apply(job.job_id, "mark_processing")

        try:
            records = await self.gateway.extract(job.image)
        except Exception as e:
            if isinstance(e, TimeoutError):
                message = ExtractionTimeoutError().args[0]
            else:
                message = str(e) or FALLBACK_ERROR_MESSAGE
            logger.warning(f"[{job.job_id}] 识别失败 {job.source_name}: {message}")
            self.store.apply(job.job_id, "mark_failed", message)
            ok = False
        else:
            self.store.apply(job.job_id, "mark_succeeded", records or [])
            ok = True

        self.progress.complete_one()
        return ok
