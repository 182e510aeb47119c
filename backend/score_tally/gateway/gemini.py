"""
Gemini 识别网关 - 单张截图 → 记录列表

职责：
1. 构造提示词与JSON响应Schema
2. 调用 Gemini 异步接口，施加内部时限
3. 解析响应（容错见 parsing.py）

依赖：
- google-genai（API Key 由运行期配置或环境变量 GEMINI_API_KEY 提供）

测试要点：
- test_extract_timeout: 超时 → ExtractionTimeoutError
- test_extract_transport_error: SDK异常 → ExtractionError
- test_extract_fenced_json: 代码块包裹的JSON
"""

from __future__ import annotations

import asyncio
import logging

from google import genai
from google.genai import types

from ..config import get_config
from ..interfaces import ExtractionError, ExtractionTimeoutError, IExtractionGateway
from ..models import ExtractedRecord, ImageRef
from .parsing import parse_extraction_response

logger = logging.getLogger(__name__)

EXTRACTION_PROMPT = """
このゲームのスクリーンショットを解析してください。

画像にはランキング、スコア履歴、メンバーリストなど、複数のデータ行が含まれている場合があります。
表やリストとして表示されている行は、見えているものをすべて抽出してください（1行目だけで終了しないこと）。

抽出する項目：
1. アカウント名
   - プレイヤー名やIDです。
   - 「:」または「：」を含む場合（例：「招待：Taro」「Name: Jiro」）は、区切り文字より後ろの文字列だけをアカウント名とし、ラベル部分は除いてください。
2. 日時（画面内のタイムスタンプを YYYY-MM-DDTHH:mm:ss 形式のISO文字列で。日付が無い場合は今日の日付を使用）
3. 点数（スコア・ポイント・ダメージ値など主要な数値。数値のみ）

注意：
- アカウント名が読み取れない場合は "Unknown" を返してください。
- 点数が読み取れない場合は 0 を返してください。
- 結果は指定のJSONスキーマに従い、items 配列に入れてください。
"""

RESPONSE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "items": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "account": types.Schema(type=types.Type.STRING, description="プレイヤーのアカウント名"),
                    "time": types.Schema(type=types.Type.STRING, description="日時 (ISO 8601形式)"),
                    "score": types.Schema(type=types.Type.NUMBER, description="点数 (数値)"),
                },
                required=["account", "time", "score"],
            ),
        ),
    },
    required=["items"],
)


class GeminiGateway(IExtractionGateway):
    """Gemini 识别网关"""

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        client: genai.Client | None = None,
    ):
        config = get_config()
        self.api_key = api_key or config.gemini.resolve_api_key()
        self.model = model or config.gemini.model
        self.timeout = timeout or config.timeouts.extract_sec
        self._client = client

    @property
    def client(self) -> genai.Client:
        """惰性创建客户端"""
        if self._client is None:
            if not self.api_key:
                raise ExtractionError("未配置 Gemini API Key（GEMINI_API_KEY）")
            self._client = genai.Client(api_key=self.api_key)
        return self._client

    async def extract(self, image: ImageRef) -> list[ExtractedRecord]:
        """识别单张截图"""
        contents = [
            types.Part.from_bytes(data=image.read(), mime_type=image.mime_type),
            EXTRACTION_PROMPT,
        ]
        generate_config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=RESPONSE_SCHEMA,
        )

        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(
                    model=self.model,
                    contents=contents,
                    config=generate_config,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Gemini 请求超时 ({self.timeout}s): {image!r}")
            raise ExtractionTimeoutError() from e
        except ExtractionError:
            raise
        except Exception as e:
            logger.error(f"Gemini Error: {e}")
            raise ExtractionError(str(e)) from e

        return parse_extraction_response(response.text)
