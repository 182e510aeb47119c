"""
命令行入口 - 批量识别截图并导出CSV

用法：
    score-tally shots/ extra.png --out result.csv
    score-tally shots/ --config config/runtime.yaml --concurrency 5
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from .config import configure_logging, get_config, reload_config
from .gateway import GeminiGateway
from .ingest import collect_image_files
from .models import DisplayRow
from .pipeline import BatchResult
from .report import success_count
from .session import TallySession

logger = logging.getLogger(__name__)

_STATUS_LABELS = {
    "pending": "待機中",
    "processing": "解析中",
    "success": "完了",
    "error": "エラー",
}


def format_table(rows: list[DisplayRow], datetime_format: str, note_template: str = "{count}回出た") -> str:
    lines = []
    for no, row in enumerate(rows, start=1):
        status = _STATUS_LABELS.get(row.status.value, row.status.value)
        if row.is_success:
            note = row.note(note_template) or "-"
            lines.append(
                f"{no:>4}  {row.source_name}  {row.account}  "
                f"{row.display_time(datetime_format)}  {row.score}  {note}  {status}"
            )
        else:
            detail = f"  ({row.error_message})" if row.error_message else ""
            lines.append(f"{no:>4}  {row.source_name}  -  -  -  -  {status}{detail}")
    return "\n".join(lines)


async def _run(paths: list[Path], args: argparse.Namespace) -> int:
    config = get_config()

    def _on_complete(result: BatchResult) -> None:
        print(f"処理が完了しました。 成功 {result.succeeded} / 失敗 {result.failed}")

    session = TallySession(GeminiGateway(), config, on_complete=_on_complete)
    session.progress_tracker.subscribe(
        lambda p: print(f"\r{p.completed}/{p.total} ({p.percent:.0f}%)", end="", flush=True)
    )

    try:
        await session.submit_and_run(paths, args.concurrency)
        print()
        rows = session.report()
        print(format_table(rows, config.export.datetime_format, config.export.note_template))

        succeeded = success_count(rows)
        print(f"{succeeded} 件のデータを抽出完了")
        if succeeded:
            out = session.export(args.out)
            print(f"CSV: {out}")
    finally:
        session.clear()
    return 0


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(prog="score-tally", description="スクリーンショットから点数を集計")
    ap.add_argument("paths", nargs="+", help="画像ファイルまたはフォルダー")
    ap.add_argument("--out", type=Path, default=None, help="CSV出力先（ファイルまたはフォルダー）")
    ap.add_argument("--config", default=None, help="runtime.yaml のパス")
    ap.add_argument("--concurrency", type=int, default=None, help="同時リクエスト数")
    args = ap.parse_args(argv)

    if args.config:
        reload_config(args.config)
    configure_logging(get_config())

    paths = collect_image_files(args.paths)
    if not paths:
        logger.error("画像ファイルが見つかりません")
        return 1

    return asyncio.run(_run(paths, args))


if __name__ == "__main__":
    raise SystemExit(main())
