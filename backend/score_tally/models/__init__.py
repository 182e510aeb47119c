"""
数据模型层 - 定义系统核心数据结构

所有模块通过这些模型交互，实现解耦：
- Job: 单张截图的识别生命周期
- ExtractedRecord: 截图中识别出的一行数据
- ImageRef: 由 Job 持有、需显式释放的图片句柄
- DisplayRow / Progress: 报表投影与进度
"""

from .job import UNKNOWN_ACCOUNT, ExtractedRecord, ImageRef, Job, JobStatus
from .report import PLACEHOLDER_ACCOUNT, DisplayRow, Progress

__all__ = [
    "Job",
    "JobStatus",
    "ExtractedRecord",
    "ImageRef",
    "UNKNOWN_ACCOUNT",
    "DisplayRow",
    "Progress",
    "PLACEHOLDER_ACCOUNT",
]
