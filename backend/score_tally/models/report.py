"""
报表模型 - 展示行与进度

DisplayRow 是 Job 的只读投影，每次读取时重新计算，不单独保存。
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from .job import ImageRef, JobStatus

PLACEHOLDER_ACCOUNT = "-"


class DisplayRow(BaseModel):
    """展示行（一条记录，或无记录任务的占位行）"""
    unique_id: str
    job_id: str
    index: int = 0
    source_name: str
    image: ImageRef | None = None
    account: str = PLACEHOLDER_ACCOUNT
    timestamp: int = Field(0, description="毫秒时间戳，0表示无时间")
    score: int | float = 0
    status: JobStatus
    error_message: str | None = None
    duplicate_count: int = 0

    model_config = {"arbitrary_types_allowed": True, "frozen": True}

    @property
    def is_success(self) -> bool:
        return self.status == JobStatus.SUCCESS

    @property
    def is_placeholder(self) -> bool:
        return self.account == PLACEHOLDER_ACCOUNT

    @property
    def is_duplicate(self) -> bool:
        """出现次数大于1才标注"""
        return self.duplicate_count > 1

    def note(self, template: str = "{count}回出た") -> str:
        """备注文本，未重复时为空串"""
        return template.format(count=self.duplicate_count) if self.is_duplicate else ""

    def occurred_at(self) -> datetime | None:
        if self.timestamp == 0:
            return None
        return datetime.fromtimestamp(self.timestamp / 1000)

    def display_time(self, fmt: str = "%Y/%m/%d %H:%M:%S") -> str:
        dt = self.occurred_at()
        return dt.strftime(fmt) if dt else "N/A"


class Progress(BaseModel):
    """进度快照"""
    total: int = 0
    completed: int = 0

    model_config = {"frozen": True}

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 0.0
        return min(self.completed / self.total * 100, 100.0)

    @property
    def done(self) -> bool:
        return self.completed >= self.total
