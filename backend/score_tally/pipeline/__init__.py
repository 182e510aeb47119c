"""
流水线模块 - 任务存储与批处理调度

子模块：
- job_store: 任务集合（唯一写入口 + 快照）
- progress: 进度计数
- scheduler: 波次调度器
"""

from .job_store import JobStore
from .progress import ProgressTracker
from .scheduler import FALLBACK_ERROR_MESSAGE, BatchResult, BatchScheduler

__all__ = [
    "JobStore",
    "ProgressTracker",
    "BatchScheduler",
    "BatchResult",
    "FALLBACK_ERROR_MESSAGE",
]
