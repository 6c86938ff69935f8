"""
Storm Impact Command Line Interface (CLI)
=========================================

Run the whole analysis in one go:

    python -m storm_impact.cli --csv data/StormData.csv.bz2 --report storm_report.docx

Steps:
- download the dataset if the local file is missing (unless --no-download)
- normalize, compute damage, aggregate
- print the ranking tables and session info
- optionally write charts, a DOCX report, and CSV/JSON exports

The dataset file is never modified.
"""

from __future__ import annotations
import argparse
import logging
import os
from typing import List, Optional
from .engine import PipelineConfig, run_pipeline
from .loader import DATA_URL, DEFAULT_DATA_PATH
from .damage import OVERRIDE_DAMAGE
from .report import (DatasetCitation, ReportConfig, generate_docx_report, plot_bar_charts,
                     render_console_report, render_session_info)

def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="storm-impact",
                                 description="Rank NOAA storm event types by health and economic impact.")
    ap.add_argument("--csv", default=DEFAULT_DATA_PATH, help="Local path of the (compressed) storm CSV")
    ap.add_argument("--url", default=DATA_URL, help="Download URL used when the local file is missing")
    ap.add_argument("--no-download", action="store_true", help="Never download; fail if --csv is missing")
    ap.add_argument("--report", help="Write a DOCX report to this path")
    ap.add_argument("--charts-dir", help="Write the bar charts (PNG) into this directory")
    ap.add_argument("--export-csv", help="Write the per-event-type aggregates to CSV")
    ap.add_argument("--export-json", help="Write the per-event-type aggregates to JSON")
    ap.add_argument("--no-override", action="store_true",
                    help="Do not correct the damage of the single largest record")
    ap.add_argument("--override-value", type=float, default=OVERRIDE_DAMAGE,
                    help="Replacement damage (US$) for the largest record")
    ap.add_argument("--top", type=int, default=5, help="Rows in the damage/health rankings")
    ap.add_argument("--log-level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ...)")
    return ap

def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the storm impact CLI."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if args.top < 1:
        raise ValueError("--top must be >= 1")

    config = PipelineConfig(
        data_path=args.csv,
        url=args.url,
        download=not args.no_download,
        apply_override=not args.no_override,
        override_value=args.override_value,
    )
    print("Loading dataset...")
    analysis = run_pipeline(config)

    report_cfg = ReportConfig(
        top_n=args.top,
        citation=DatasetCitation(file_name=os.path.basename(analysis.dataset_path or args.csv)),
        chart_dir=args.charts_dir,
    )
    print(render_console_report(analysis, report_cfg))

    if args.charts_dir and not args.report:
        for title, path in plot_bar_charts(analysis, args.charts_dir, args.top):
            print(f"Chart written: {path} ({title})")

    if args.report:
        generate_docx_report(analysis, args.report, config=report_cfg)
        print(f"Report written to {args.report}")

    if args.export_csv:
        analysis.export_csv(args.export_csv)
        print(f"Exported CSV to {args.export_csv}")

    if args.export_json:
        analysis.export_json(args.export_json)
        print(f"Exported JSON to {args.export_json}")

    print("")
    print("Session info")
    print(render_session_info())
    return 0

if __name__ == "__main__":
    raise SystemExit(main())
