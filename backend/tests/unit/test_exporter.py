"""
CSV导出单元测试

每个模块完成后必须运行：pytest backend/tests/unit/test_exporter.py -v
"""

import csv
import io
from pathlib import Path

from score_tally.config import RuntimeConfig
from score_tally.models import JobStatus
from score_tally.report import build_report, export_csv, export_rows, render_csv, render_csv_bytes


def _parse(text: str) -> list[list[str]]:
    return list(csv.reader(io.StringIO(text)))


class TestExporter:
    """导出测试"""

    def test_header_and_success_only(self, make_job, runtime_config: RuntimeConfig):
        jobs = [
            make_job(b"a", status=JobStatus.SUCCESS, records=[
                {"account": "A", "time": "2024-01-01T10:00:00", "score": 5},
            ]),
            make_job(b"b", status=JobStatus.ERROR, error="network error"),
            make_job(b"c"),
        ]
        table = export_rows(build_report(jobs), runtime_config)
        assert table[0] == ["アカウント", "日時", "点数", "備考"]
        assert table[1:] == [["A", "2024/01/01 10:00:00", "5", ""]]

    def test_empty_time_and_placeholder(self, make_job, runtime_config: RuntimeConfig):
        """无时间输出空串；空结果的占位行也属于成功行"""
        jobs = [make_job(b"a", status=JobStatus.SUCCESS, records=[])]
        table = export_rows(build_report(jobs), runtime_config)
        assert table[1] == ["-", "", "0", ""]

    def test_duplicate_note(self, make_job, runtime_config: RuntimeConfig):
        jobs = [
            make_job(b"a", status=JobStatus.SUCCESS, records=[
                {"account": "Taro", "time": "", "score": 1},
                {"account": "Taro", "time": "", "score": 2},
                {"account": "Hanako", "time": "", "score": 3},
            ]),
        ]
        table = export_rows(build_report(jobs), runtime_config)
        notes = {(row[0], row[2]): row[3] for row in table[1:]}
        assert notes[("Taro", "1")] == "2回出た"
        assert notes[("Hanako", "3")] == ""

    def test_quote_round_trip(self, make_job, runtime_config: RuntimeConfig):
        """含引号/逗号的账号导出后可原样解析"""
        account = 'He said "hi", ok'
        jobs = [make_job(b"a", status=JobStatus.SUCCESS, records=[
            {"account": account, "time": "", "score": 7},
        ])]
        text = render_csv(build_report(jobs), runtime_config)
        assert '"He said ""hi"", ok"' in text
        assert _parse(text)[1][0] == account

    def test_bom(self, make_job, runtime_config: RuntimeConfig):
        rows = build_report([make_job(b"a", status=JobStatus.SUCCESS, records=[])])
        assert render_csv_bytes(rows, runtime_config).startswith(b"\xef\xbb\xbf")

        no_bom = runtime_config.model_copy(
            update={"export": runtime_config.export.model_copy(update={"with_bom": False})}
        )
        assert not render_csv_bytes(rows, no_bom).startswith(b"\xef\xbb\xbf")

    def test_export_csv_default_name(self, make_job, runtime_config: RuntimeConfig, tmp_path: Path):
        rows = build_report([make_job(b"a", status=JobStatus.SUCCESS, records=[
            {"account": "A", "time": "", "score": 1},
        ])])
        path = export_csv(rows, tmp_path, runtime_config)
        assert path.name == runtime_config.export.file_name
        text = path.read_text(encoding="utf-8-sig")
        assert _parse(text)[1] == ["A", "", "1", ""]
