"""
图片输入筛选 - 判定/收集/加载截图文件

职责：
1. 按 MIME 前缀判定图片，MIME 缺失时回退到扩展名（文件夹上传常见）
2. 展开目录，按稳定顺序收集图片
3. 加载为 ImageRef

测试要点：
- test_is_image_file_mime: MIME 优先
- test_is_image_file_ext_fallback: 扩展名回退
- test_collect_image_files: 目录展开与过滤
"""

from __future__ import annotations

import logging
import mimetypes
from pathlib import Path
from typing import Iterable

from ..config import get_config
from ..models import ImageRef

logger = logging.getLogger(__name__)

_EXT_MIME = {
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".webp": "image/webp",
    ".heic": "image/heic",
}
_DEFAULT_MIME = "image/png"


def is_image_file(
    name: str,
    mime_type: str | None = None,
    image_exts: Iterable[str] | None = None,
) -> bool:
    """判定是否为图片（MIME 优先，扩展名兜底）"""
    if mime_type and mime_type.startswith("image/"):
        return True
    exts = [e.lower() for e in (image_exts or get_config().ingest.image_exts)]
    return Path(name).suffix.lower() in exts


def guess_mime_type(name: str, mime_type: str | None = None) -> str:
    """确定上传用MIME类型"""
    if mime_type:
        return mime_type
    return _EXT_MIME.get(Path(name).suffix.lower(), _DEFAULT_MIME)


def collect_image_files(paths: Iterable[str | Path]) -> list[Path]:
    """展开文件/目录并筛选图片（保持调用方顺序，目录内按路径排序）"""
    image_exts = get_config().ingest.image_exts
    result: list[Path] = []
    seen: set[Path] = set()

    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            candidates = sorted(p for p in path.rglob("*") if p.is_file())
        elif path.is_file():
            candidates = [path]
        else:
            logger.warning(f"路径不存在，已跳过: {path}")
            continue

        for p in candidates:
            mime, _ = mimetypes.guess_type(p.name)
            if not is_image_file(p.name, mime, image_exts):
                logger.debug(f"非图片文件，已跳过: {p}")
                continue
            if p in seen:
                continue
            seen.add(p)
            result.append(p)

    return result


def load_image(path: Path) -> ImageRef:
    """读取图片为 ImageRef"""
    mime, _ = mimetypes.guess_type(path.name)
    return ImageRef(path.read_bytes(), guess_mime_type(path.name, mime), path=path)
