"""
pytest 配置与公共 fixtures

使用方式：
    def test_something(make_job, scripted_gateway):
        job = make_job(b"img-1")
"""

from __future__ import annotations

import asyncio
from typing import Callable

import pytest

from score_tally.config import RuntimeConfig
from score_tally.interfaces import IExtractionGateway
from score_tally.models import ExtractedRecord, ImageRef, Job, JobStatus
from score_tally.pipeline import JobStore, ProgressTracker


# ============================================================================
# 配置 Fixtures
# ============================================================================

@pytest.fixture
def runtime_config() -> RuntimeConfig:
    """运行期配置（默认值）"""
    return RuntimeConfig()


# ============================================================================
# 网关替身
# ============================================================================

class ScriptedGateway(IExtractionGateway):
    """按图片字节返回预设结果；值为异常时抛出"""

    def __init__(self, script: dict[bytes, list[dict] | Exception]):
        self.script = script
        self.calls: list[bytes] = []

    async def extract(self, image: ImageRef) -> list[ExtractedRecord]:
        data = image.read()
        self.calls.append(data)
        await asyncio.sleep(0)
        outcome = self.script.get(data, [])
        if isinstance(outcome, Exception):
            raise outcome
        return [ExtractedRecord(**item) for item in outcome]


class BlockingGateway(IExtractionGateway):
    """阻塞到显式放行；记录在途数量"""

    def __init__(self):
        self.release = asyncio.Event()
        self.gates: dict[bytes, asyncio.Event] = {}
        self.started: list[bytes] = []
        self.in_flight = 0
        self.max_in_flight = 0

    def gate(self, key: bytes) -> asyncio.Event:
        return self.gates.setdefault(key, asyncio.Event())

    async def extract(self, image: ImageRef) -> list[ExtractedRecord]:
        key = image.read()
        self.started.append(key)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if key in self.gates:
                await self.gates[key].wait()
            else:
                await self.release.wait()
        finally:
            self.in_flight -= 1
        return []


async def settle(rounds: int = 10) -> None:
    """让出事件循环若干轮"""
    for _ in range(rounds):
        await asyncio.sleep(0)


# ============================================================================
# 数据模型 Fixtures
# ============================================================================

@pytest.fixture
def make_image() -> Callable[..., ImageRef]:
    def _make(data: bytes = b"img", mime_type: str = "image/png") -> ImageRef:
        return ImageRef(data, mime_type)
    return _make


@pytest.fixture
def make_job(make_image) -> Callable[..., Job]:
    """示例任务工厂"""
    def _make(
        data: bytes = b"img",
        source_name: str | None = None,
        status: JobStatus = JobStatus.PENDING,
        records: list[dict] | None = None,
        error: str | None = None,
    ) -> Job:
        job = Job(source_name=source_name or data.decode() + ".png", image=make_image(data))
        if status == JobStatus.PENDING:
            return job
        job.mark_processing()
        if status == JobStatus.SUCCESS:
            job.mark_succeeded([ExtractedRecord(**r) for r in records or []])
        elif status == JobStatus.ERROR:
            job.mark_failed(error or "analysis failed")
        return job
    return _make


@pytest.fixture
def store() -> JobStore:
    return JobStore()


@pytest.fixture
def progress() -> ProgressTracker:
    return ProgressTracker()


# ============================================================================
# 网关 Fixtures
# ============================================================================

@pytest.fixture
def scripted_gateway() -> Callable[[dict], ScriptedGateway]:
    """预设结果网关工厂"""
    return ScriptedGateway


@pytest.fixture
def blocking_gateway() -> BlockingGateway:
    return BlockingGateway()


@pytest.fixture
def yield_loop() -> Callable[..., object]:
    return settle
