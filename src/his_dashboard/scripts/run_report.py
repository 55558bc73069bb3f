"""
Print the summary report for a CSV file or spreadsheet URL.
Run with:
    python -m his_dashboard.scripts.run_report data/raw/his_export.csv
    python -m his_dashboard.scripts.run_report "https://docs.google.com/spreadsheets/d/<id>/edit" --department "Khoa Nội"
"""
from __future__ import annotations
import argparse
from dataclasses import replace
import logging
import sys
from pathlib import Path
from his_dashboard.analysis.charts import ROLLUP_NAMES
from his_dashboard.analysis.filters import EXACT_FIELDS, SUBSTRING_FIELDS, default_date_range, normalize_filters
from his_dashboard.core.config import EXPORTS_DIR
from his_dashboard.core.errors import DataSourceError
from his_dashboard.core.logging_setup import setup_logging
from his_dashboard.load.load_to_db import load_records
from his_dashboard.reporting.report import export_csv
from his_dashboard.services.pipeline import build_view, load_dataset

log = logging.getLogger(__name__)

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="HIS billing summary report")
    parser.add_argument("source", help="CSV file path or spreadsheet URL")
    parser.add_argument("--start", dest="start_date", help="YYYY-MM-DD (default: first date in data)")
    parser.add_argument("--end", dest="end_date", help="YYYY-MM-DD (default: last date in data)")
    for name in EXACT_FIELDS + SUBSTRING_FIELDS:
        parser.add_argument(f"--{name.replace('_', '-')}", dest=name, default="")
    parser.add_argument("--export-rollup", choices=ROLLUP_NAMES, action="append", default=[],
                        help="write a rollup to data/exports/<name>.csv")
    parser.add_argument("--save-db", action="store_true", help="snapshot line items to DATABASE_URL")
    return parser

def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        records = load_dataset(args.source)
    except DataSourceError as e:
        print(f"Lỗi: {e}", file=sys.stderr)
        return 1

    filters = normalize_filters(vars(args))
    if not (filters.start_date and filters.end_date):
        span = default_date_range(records)
        filters = replace(
            filters,
            start_date=filters.start_date or span.start_date,
            end_date=filters.end_date or span.end_date,
        )

    view = build_view(records, filters)
    print(view.report())

    for name in args.export_rollup:
        path = Path(EXPORTS_DIR) / f"{name}.csv"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(export_csv(view.rollups[name]), encoding="utf-8-sig")
        log.info("Exported %s -> %s", name, path)

    if args.save_db:
        load_records(records)
    return 0

def cli() -> None:
    setup_logging()
    sys.exit(main())

if __name__ == "__main__":
    cli()
