"""
识别响应解析 - 模型输出文本 → ExtractedRecord 列表

容错规则：
- 去除 markdown 代码块标记后再解析
- items 缺失 / 为 null / 非数组 → 视为0条记录
- JSON 整体解析失败 → ExtractionError（由调度器记为任务失败）
"""

from __future__ import annotations

import json
import re
from typing import Any

from pydantic import ValidationError

from ..interfaces import ExtractionError
from ..models import ExtractedRecord

_FENCE_START = re.compile(r"^\s*```(?:json)?\s*", re.IGNORECASE)
_FENCE_END = re.compile(r"\s*```\s*$")


def strip_code_fence(text: str) -> str:
    """去掉 ```json ... ``` 包裹"""
    return _FENCE_END.sub("", _FENCE_START.sub("", text))


def parse_extraction_response(text: str | None) -> list[ExtractedRecord]:
    """解析模型返回的JSON文本"""
    if not text:
        raise ExtractionError("No response from AI")

    try:
        payload: Any = json.loads(strip_code_fence(text))
    except json.JSONDecodeError as e:
        raise ExtractionError(f"响应JSON解析失败: {e}") from e

    if not isinstance(payload, dict):
        return []
    items = payload.get("items")
    if not isinstance(items, list):
        return []

    records: list[ExtractedRecord] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        try:
            records.append(ExtractedRecord(**item))
        except ValidationError:
            # 单行无法识别不影响整张图
            continue
    return records
