"""
命令行单元测试
"""

from pathlib import Path

from score_tally.cli import format_table, main
from score_tally.models import JobStatus
from score_tally.report import build_report


def test_no_images_returns_error(tmp_path: Path):
    (tmp_path / "notes.txt").write_text("x")
    assert main([str(tmp_path)]) == 1


def test_format_table(make_job):
    rows = build_report([
        make_job(b"a", status=JobStatus.SUCCESS, records=[
            {"account": "Taro", "time": "2024-01-01T10:00:00", "score": 5},
            {"account": "Taro", "time": "", "score": 1},
        ]),
        make_job(b"b", status=JobStatus.ERROR, error="network error"),
    ])
    text = format_table(rows, "%Y/%m/%d %H:%M:%S").splitlines()
    assert len(text) == 3
    assert "N/A" in text[0]
    assert "2回" in text[0]
    assert "2024/01/01 10:00:00" in text[1]
    assert "エラー" in text[2] and "network error" in text[2]
