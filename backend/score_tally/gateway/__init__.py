"""
识别网关模块 - AI 视觉服务边界

子模块：
- parsing: 响应文本解析与容错
- gemini: Gemini 网关实现
"""

from .gemini import GeminiGateway
from .parsing import parse_extraction_response, strip_code_fence

__all__ = [
    "GeminiGateway",
    "parse_extraction_response",
    "strip_code_fence",
]
