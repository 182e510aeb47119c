"""
结果聚合 - 任务集合 → 排序并标注的展示行

处理步骤：
1. 展开：成功且有记录的任务每条记录一行，其余任务各一个占位行
2. 时间归一：无法解析的时间记为0（排最前，显示 N/A）
3. 重复计数：成功行中账号非空且非占位的，按账号精确分组，计数=组大小
4. 排序：成功行在前，其次按时间升序；相同键保持输入顺序

纯函数，每次调用重新计算，不缓存。

测试要点：
- test_placeholder_for_empty_success: 成功但无记录 → 1个占位行
- test_duplicate_counts: 重复账号计数
- test_sort_success_first_then_time: 排序规则
"""

from __future__ import annotations

from collections import Counter
from typing import Iterable

from ..models import PLACEHOLDER_ACCOUNT, DisplayRow, Job, JobStatus


def flatten_jobs(jobs: Iterable[Job]) -> list[DisplayRow]:
    """展开为未标注的展示行（保持提交顺序）"""
    rows: list[DisplayRow] = []
    for job in jobs:
        if job.status == JobStatus.SUCCESS and job.records:
            for idx, record in enumerate(job.records):
                rows.append(DisplayRow(
                    unique_id=f"{job.job_id}-{idx}",
                    job_id=job.job_id,
                    index=idx,
                    source_name=job.source_name,
                    image=job.image,
                    account=record.account,
                    timestamp=record.timestamp_ms(),
                    score=record.score,
                    status=JobStatus.SUCCESS,
                ))
        else:
            rows.append(DisplayRow(
                unique_id=job.job_id,
                job_id=job.job_id,
                source_name=job.source_name,
                image=job.image,
                account=PLACEHOLDER_ACCOUNT,
                timestamp=0,
                score=0,
                status=job.status,
                error_message=job.error_message,
            ))
    return rows


def _countable(row: DisplayRow) -> bool:
    return row.is_success and bool(row.account) and not row.is_placeholder


def count_accounts(rows: Iterable[DisplayRow]) -> Counter[str]:
    """成功行按账号计数"""
    return Counter(row.account for row in rows if _countable(row))


def build_report(jobs: Iterable[Job]) -> list[DisplayRow]:
    """生成完整报表"""
    rows = flatten_jobs(jobs)
    counts = count_accounts(rows)

    annotated = [
        row.model_copy(update={"duplicate_count": counts[row.account] if _countable(row) else 0})
        for row in rows
    ]
    # sorted 是稳定排序，同键保持插入顺序
    return sorted(annotated, key=lambda r: (0 if r.is_success else 1, r.timestamp))


def success_rows(rows: Iterable[DisplayRow]) -> list[DisplayRow]:
    """仅成功行（保持已排序顺序）"""
    return [row for row in rows if row.is_success]


def success_count(rows: Iterable[DisplayRow]) -> int:
    """成功行数（“N 件のデータを抽出完了”）"""
    return sum(1 for row in rows if row.is_success)
