"""
模块接口契约 - 定义各模块的抽象接口

设计原则：
1. 调度器只依赖网关接口，不直接依赖 Gemini SDK
2. 每个接口定义清晰的输入输出类型
3. 便于单元测试和mock替换

使用方式：
    from score_tally.interfaces import IExtractionGateway

    class FakeGateway(IExtractionGateway):
        async def extract(self, image: ImageRef) -> list[ExtractedRecord]:
            ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable

if TYPE_CHECKING:
    from .models import ExtractedRecord, ImageRef, Job


# ============================================================================
# 识别网关接口
# ============================================================================

class IExtractionGateway(ABC):
    """识别网关接口 - 单张图片 → 0..N 条记录"""

    @abstractmethod
    async def extract(self, image: ImageRef) -> list[ExtractedRecord]:
        """
        识别单张截图中的所有数据行

        Args:
            image: 图片句柄（字节 + MIME类型）

        Returns:
            识别到的记录列表（可能为空）

        Raises:
            ExtractionTimeoutError: 超过网关内部时限
            ExtractionError: 传输/解析失败
        """
        ...


# ============================================================================
# 任务存储接口
# ============================================================================

class IJobStore(ABC):
    """任务存储接口 - 唯一写入口 + 快照读取"""

    @abstractmethod
    def add(self, jobs: list[Job]) -> None:
        """追加新任务"""
        ...

    @abstractmethod
    def apply(self, job_id: str, transition: str, *args) -> Job:
        """
        对单个任务执行状态迁移（唯一写入口）

        Args:
            job_id: 任务ID
            transition: 迁移方法名（mark_processing / mark_succeeded / mark_failed）

        Returns:
            迁移后的任务
        """
        ...

    @abstractmethod
    def snapshot(self) -> tuple[Job, ...]:
        """获取当前全部任务的一致快照"""
        ...

    @abstractmethod
    def subscribe(self, callback: Callable[[int], None]) -> Callable[[], None]:
        """订阅变更通知，返回取消订阅函数"""
        ...

    @abstractmethod
    def clear(self) -> int:
        """释放全部图片句柄并清空，返回释放数量"""
        ...


# ============================================================================
# 异常定义
# ============================================================================

class ScoreTallyError(Exception):
    """基础异常"""
    pass


class ExtractionError(ScoreTallyError):
    """识别失败（传输/解析）"""
    pass


class ExtractionTimeoutError(ExtractionError):
    """识别超时"""

    def __init__(self, message: str = "request timed out"):
        super().__init__(message)


class InvalidTransitionError(ScoreTallyError):
    """非法状态迁移"""
    pass


class ResourceReleasedError(ScoreTallyError):
    """图片句柄已释放"""
    pass
