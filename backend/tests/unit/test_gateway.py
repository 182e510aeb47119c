"""
识别网关单元测试（不访问网络）

每个模块完成后必须运行：pytest backend/tests/unit/test_gateway.py -v
"""

import asyncio
from types import SimpleNamespace

import pytest

from score_tally.gateway import GeminiGateway, parse_extraction_response, strip_code_fence
from score_tally.interfaces import ExtractionError, ExtractionTimeoutError


def _fake_client(handler):
    """模拟 client.aio.models.generate_content"""
    return SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=handler)))


class TestParsing:
    """响应解析测试"""

    def test_strip_code_fence(self):
        assert strip_code_fence('```json\n{"items": []}\n```') == '{"items": []}'
        assert strip_code_fence('{"items": []}') == '{"items": []}'

    def test_parse_items(self):
        records = parse_extraction_response(
            '{"items": [{"account": "A", "time": "2024-01-01T10:00:00", "score": 5},'
            ' {"account": null, "time": "", "score": "?"}]}'
        )
        assert [(r.account, r.score) for r in records] == [("A", 5), ("Unknown", 0)]

    def test_missing_or_invalid_items(self):
        """items 缺失/null/非数组 → 0条"""
        assert parse_extraction_response("{}") == []
        assert parse_extraction_response('{"items": null}') == []
        assert parse_extraction_response('{"items": "oops"}') == []
        assert parse_extraction_response("[1, 2]") == []

    def test_non_object_items_skipped(self):
        records = parse_extraction_response('{"items": [1, {"account": "B", "score": 2}]}')
        assert [r.account for r in records] == ["B"]

    def test_invalid_json_fails(self):
        with pytest.raises(ExtractionError):
            parse_extraction_response("not json")

    def test_empty_response_fails(self):
        with pytest.raises(ExtractionError, match="No response"):
            parse_extraction_response("")


class TestGeminiGateway:
    """Gemini 网关测试"""

    @pytest.mark.asyncio
    async def test_extract_fenced_json(self, make_image):
        calls = []

        async def handler(**kwargs):
            calls.append(kwargs)
            return SimpleNamespace(text='```json\n{"items": [{"account": "A", "time": "", "score": 1}]}\n```')

        gateway = GeminiGateway(api_key="test", model="m", timeout=5, client=_fake_client(handler))
        records = await gateway.extract(make_image(b"png-bytes"))

        assert [r.account for r in records] == ["A"]
        assert calls[0]["model"] == "m"

    @pytest.mark.asyncio
    async def test_extract_timeout(self, make_image):
        async def handler(**kwargs):
            await asyncio.sleep(1)

        gateway = GeminiGateway(api_key="test", timeout=0.01, client=_fake_client(handler))
        with pytest.raises(ExtractionTimeoutError, match="request timed out"):
            await gateway.extract(make_image())

    @pytest.mark.asyncio
    async def test_extract_transport_error(self, make_image):
        async def handler(**kwargs):
            raise ConnectionError("network error")

        gateway = GeminiGateway(api_key="test", timeout=5, client=_fake_client(handler))
        with pytest.raises(ExtractionError, match="network error"):
            await gateway.extract(make_image())

    @pytest.mark.asyncio
    async def test_missing_api_key(self, make_image, monkeypatch):
        monkeypatch.delenv("GEMINI_API_KEY", raising=False)
        monkeypatch.delenv("API_KEY", raising=False)
        gateway = GeminiGateway(api_key="", timeout=5)
        gateway.api_key = ""
        with pytest.raises(ExtractionError):
            await gateway.extract(make_image())
