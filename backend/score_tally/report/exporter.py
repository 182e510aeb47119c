"""
CSV导出 - 成功行 → 表格软件可直接打开的CSV

列顺序：账号, 日时, 分数, 备注
- 日时为0时输出空串
- 备注仅在出现次数>1时输出
- 含分隔符/引号的字段加引号并将内部引号加倍（csv 模块标准转义）
- 默认带 UTF-8 BOM（Excel 识别编码）
"""

from __future__ import annotations

import csv
import io
import logging
from pathlib import Path
from typing import Iterable

from ..config import RuntimeConfig, get_config
from ..models import DisplayRow
from .aggregator import success_rows

logger = logging.getLogger(__name__)


def format_row(row: DisplayRow, config: RuntimeConfig) -> list[str]:
    """单行字段"""
    dt = row.occurred_at()
    time_str = dt.strftime(config.export.datetime_format) if dt else ""
    return [row.account, time_str, str(row.score), row.note(config.export.note_template)]


def export_rows(rows: Iterable[DisplayRow], config: RuntimeConfig | None = None) -> list[list[str]]:
    """表头 + 成功行字段"""
    config = config or get_config()
    return [list(config.export.header)] + [format_row(r, config) for r in success_rows(rows)]


def render_csv(rows: Iterable[DisplayRow], config: RuntimeConfig | None = None) -> str:
    """生成CSV文本（不含BOM）"""
    config = config or get_config()
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator=config.export.line_terminator)
    writer.writerows(export_rows(rows, config))
    return buf.getvalue()


def render_csv_bytes(rows: Iterable[DisplayRow], config: RuntimeConfig | None = None) -> bytes:
    """生成下载用字节（按配置加BOM）"""
    config = config or get_config()
    encoding = "utf-8-sig" if config.export.with_bom else "utf-8"
    return render_csv(rows, config).encode(encoding)


def export_csv(
    rows: Iterable[DisplayRow],
    output: Path | None = None,
    config: RuntimeConfig | None = None,
) -> Path:
    """写出CSV文件，未指定路径时使用固定报表名"""
    config = config or get_config()
    path = Path(output) if output else Path(config.export.file_name)
    if path.is_dir():
        path = path / config.export.file_name
    path.parent.mkdir(parents=True, exist_ok=True)

    data = render_csv_bytes(rows, config)
    path.write_bytes(data)
    logger.info(f"CSV已导出: {path}")
    return path
