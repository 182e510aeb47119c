"""
输入模块 - 截图文件的筛选与加载
"""

from .files import collect_image_files, guess_mime_type, is_image_file, load_image

__all__ = [
    "is_image_file",
    "guess_mime_type",
    "collect_image_files",
    "load_image",
]
