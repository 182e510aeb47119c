"""
报表模块 - 聚合排序与CSV导出

子模块：
- aggregator: 展开/重复计数/排序
- exporter: CSV导出
"""

from .aggregator import build_report, count_accounts, flatten_jobs, success_count, success_rows
from .exporter import export_csv, export_rows, render_csv, render_csv_bytes

__all__ = [
    "build_report",
    "flatten_jobs",
    "count_accounts",
    "success_rows",
    "success_count",
    "export_rows",
    "render_csv",
    "render_csv_bytes",
    "export_csv",
]
