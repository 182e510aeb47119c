"""
任务模型 - 定义单张截图的识别生命周期

状态只能前进：pending → processing → success | error
"""

from __future__ import annotations

import math
import uuid
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..interfaces import InvalidTransitionError, ResourceReleasedError

UNKNOWN_ACCOUNT = "Unknown"


class JobStatus(str, Enum):
    """任务状态枚举"""
    PENDING = "pending"
    PROCESSING = "processing"
    SUCCESS = "success"
    ERROR = "error"


class ExtractedRecord(BaseModel):
    """截图中识别出的一行数据"""
    account: str = Field(UNKNOWN_ACCOUNT, description="账号名")
    time: str = Field("", description="日时 (ISO 8601)，无法识别时为空")
    score: int | float = Field(0, description="分数，无法识别时为0")

    @field_validator("account", mode="before")
    @classmethod
    def _coerce_account(cls, v: Any) -> str:
        if v is None or not str(v).strip():
            return UNKNOWN_ACCOUNT
        return v if isinstance(v, str) else str(v)

    @field_validator("time", mode="before")
    @classmethod
    def _coerce_time(cls, v: Any) -> str:
        if v is None:
            return ""
        return v if isinstance(v, str) else str(v)

    @field_validator("score", mode="before")
    @classmethod
    def _coerce_score(cls, v: Any) -> int | float:
        if isinstance(v, bool) or v is None:
            return 0
        if isinstance(v, str):
            try:
                v = float(v.replace(",", "").strip())
            except ValueError:
                return 0
        if not isinstance(v, (int, float)) or math.isnan(v) or math.isinf(v) or v < 0:
            return 0
        if isinstance(v, float) and v.is_integer():
            return int(v)
        return v

    def occurred_at(self) -> datetime | None:
        """解析时间，无法解析时返回None"""
        text = self.time.strip()
        if not text:
            return None
        try:
            return datetime.fromisoformat(text)
        except ValueError:
            return None

    def timestamp_ms(self) -> int:
        """毫秒时间戳，无法解析时为0（视为无时间）"""
        dt = self.occurred_at()
        if dt is None:
            return 0
        try:
            return int(dt.timestamp() * 1000)
        except (OverflowError, OSError, ValueError):
            return 0


class ImageRef:
    """
    图片句柄 - 由 Job 持有

    释放只发生在显式清空时，不依赖垃圾回收。
    """

    def __init__(self, data: bytes, mime_type: str, path: Path | None = None):
        self._data: bytes | None = data
        self.mime_type = mime_type
        self.path = path

    @property
    def released(self) -> bool:
        return self._data is None

    @property
    def size(self) -> int:
        return len(self._data) if self._data is not None else 0

    def read(self) -> bytes:
        if self._data is None:
            raise ResourceReleasedError(f"图片已释放: {self.path or self.mime_type}")
        return self._data

    def release(self) -> bool:
        """释放图片字节，重复调用返回False"""
        if self._data is None:
            return False
        self._data = None
        return True

    def __repr__(self) -> str:
        state = "released" if self.released else f"{self.size}B"
        return f"ImageRef({self.path or '-'}, {self.mime_type}, {state})"


class Job(BaseModel):
    """任务实体（一张截图）"""
    job_id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="UUID")
    source_name: str
    image: ImageRef | None = None

    # 状态
    status: JobStatus = JobStatus.PENDING
    records: list[ExtractedRecord] = Field(default_factory=list)
    error_message: str | None = None

    # 时间戳
    created_at: datetime = Field(default_factory=datetime.now)
    started_at: datetime | None = None
    finished_at: datetime | None = None

    model_config = {"arbitrary_types_allowed": True}

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.SUCCESS, JobStatus.ERROR)

    def _require(self, expected: JobStatus, target: JobStatus) -> None:
        if self.status != expected:
            raise InvalidTransitionError(
                f"[{self.job_id}] 不允许的状态迁移: {self.status.value} → {target.value}"
            )

    def mark_processing(self) -> None:
        """标记为识别中"""
        self._require(JobStatus.PENDING, JobStatus.PROCESSING)
        self.status = JobStatus.PROCESSING
        self.started_at = datetime.now()

    def mark_succeeded(self, records: list[ExtractedRecord]) -> None:
        """标记为成功，记录与状态同时写入"""
        self._require(JobStatus.PROCESSING, JobStatus.SUCCESS)
        self.records = list(records)
        self.status = JobStatus.SUCCESS
        self.finished_at = datetime.now()

    def mark_failed(self, error: str) -> None:
        """标记为失败"""
        self._require(JobStatus.PROCESSING, JobStatus.ERROR)
        self.error_message = error
        self.status = JobStatus.ERROR
        self.finished_at = datetime.now()

    def release_image(self) -> bool:
        """释放图片句柄"""
        if self.image is None:
            return False
        return self.image.release()
