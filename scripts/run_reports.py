#!/usr/bin/env python
"""Run the GA4 reports configured in a spreadsheet.

Examples:
    # Run every report in the ReportConfig sheet and append rows
    python scripts/run_reports.py --sheet-url https://docs.google.com/spreadsheets/d/...

    # Only one report, JSON summary
    python scripts/run_reports.py --report sessions_daily --json

    # Show compiled configs without querying GA4
    python scripts/run_reports.py --list-configs

    # Query GA4 without writing to the sheet, save rows to CSV
    python scripts/run_reports.py --dry-run --output output/preview.csv
"""
import argparse
import json
import logging
import os
import sys
from pathlib import Path

import pandas as pd

# Add project root to import path
sys.path.insert(0, str(Path(__file__).parent.parent))

from ga4sheet_lib.errors import (
    ConfigurationError,
    ConfigurationMissing,
    ExecutionFailure,
    ReportError,
    ResponseShapeError,
)
from ga4sheet_lib.flatten import to_frame
from ga4sheet_lib.ga4_client import Ga4Executor
from ga4sheet_lib.megaton_client import open_spreadsheet
from ga4sheet_lib.repository import load_all
from ga4sheet_lib.runner import execute, run_reports, select_reports, utc_now
from ga4sheet_lib.sheets import SheetConfigSource, SheetSink

logger = logging.getLogger("run_reports")

ERROR_CODES = (
    (ConfigurationMissing, "CONFIG_MISSING", "Create a ReportConfig worksheet or pass --config-sheet."),
    (ConfigurationError, "INVALID_CONFIG", "Check the ReportConfig cells of the failing report."),
    (ExecutionFailure, "EXECUTION_FAILED", "Check credentials, property access and metric/dimension names."),
    (ResponseShapeError, "INVALID_RESPONSE", "Check the report dimensions."),
)


def emit_success(args, data, **meta) -> None:
    """Emit structured JSON when --json is enabled; otherwise no-op."""
    if not args.json:
        return
    payload = {"status": "ok", "data": data}
    if meta:
        payload.update(meta)
    print(json.dumps(payload, ensure_ascii=False))


def emit_error(args, error_code: str, message: str, hint: str | None = None) -> int:
    """Emit structured JSON error for --json, otherwise print to stderr."""
    if args.json:
        payload = {
            "status": "error",
            "error_code": error_code,
            "message": message,
        }
        if hint:
            payload["hint"] = hint
        print(json.dumps(payload, ensure_ascii=False))
    else:
        print(message, file=sys.stderr)
        if hint:
            print(f"hint: {hint}", file=sys.stderr)
    return 1


def map_error(error: Exception) -> tuple[str, str]:
    for kind, code, hint in ERROR_CODES:
        if isinstance(error, kind):
            return code, hint
    return "RUN_FAILED", "Check the log output above."


def describe_query(query) -> dict:
    return {
        "name": query.name,
        "account": query.account,
        "property": query.property,
        "date_ranges": [[r.start_date, r.end_date] for r in query.date_ranges],
        "metrics": [m.name for m in query.metrics],
        "dimensions": [d.name for d in query.dimensions],
    }


def list_configs(args, source) -> int:
    queries = select_reports(load_all(source), args.report)
    data = [describe_query(q) for q in queries]
    if args.json:
        emit_success(args, data, mode="list_configs")
        return 0
    for item in data:
        ranges = ", ".join(f"{s}..{e}" for s, e in item["date_ranges"])
        print(
            f"{item['name']}: property={item['property']} [{ranges}] "
            f"m={','.join(item['metrics'])} d={','.join(item['dimensions'])}"
        )
    return 0


def dry_run(args, source, executor) -> int:
    """Execute reports but keep results local (stdout or CSV)."""
    queries = select_reports(load_all(source), args.report)
    frames = []
    for query in queries:
        response = execute(query, executor)
        df = to_frame(query, response, utc_now())
        df.insert(0, "report", query.name)
        frames.append(df)
    df = pd.concat(frames, ignore_index=True) if frames else pd.DataFrame()

    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(out, index=False)

    if args.json:
        data = {"row_count": int(len(df)), "reports": [q.name for q in queries]}
        if args.output:
            data["saved_to"] = args.output
        else:
            data["rows"] = df.to_dict(orient="records")
        emit_success(args, data, mode="dry_run")
    elif args.output:
        print(f"Saved {len(df)} rows to {args.output}")
    else:
        print(df.to_string(index=False) if not df.empty else "(no rows)")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Run GA4 reports configured in Google Sheets")
    parser.add_argument("--sheet-url", default=os.environ.get("REPORT_SHEET_URL"), help="Spreadsheet URL (default: REPORT_SHEET_URL)")
    parser.add_argument("--config-sheet", help="Config worksheet name (default: REPORT_CONFIG_SHEET or ReportConfig)")
    parser.add_argument("--creds", help="Service account JSON path (default: REPORT_CREDS_PATH or credentials/)")
    parser.add_argument("--report", action="append", help="Run only this report name (repeatable)")
    parser.add_argument("--list-configs", action="store_true", help="List runnable report configs and exit")
    parser.add_argument("--dry-run", action="store_true", help="Query GA4 without writing to the sheet")
    parser.add_argument("--output", help="CSV output path for --dry-run")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument("--log-level", default=os.environ.get("REPORT_LOG_LEVEL", "INFO"), help="Logging level")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        stream=sys.stderr,
    )

    if not args.sheet_url:
        return emit_error(
            args,
            "INVALID_ARGUMENT",
            "Spreadsheet URL is required",
            "Pass --sheet-url or set REPORT_SHEET_URL.",
        )
    if args.output and not args.dry_run:
        return emit_error(
            args,
            "INVALID_ARGUMENT",
            "--output can only be used with --dry-run",
            "Add --dry-run, or drop --output to append rows to the sheet.",
        )

    try:
        mg = open_spreadsheet(args.sheet_url, args.creds)
        source = SheetConfigSource(mg, args.config_sheet)

        if args.list_configs:
            return list_configs(args, source)

        executor = Ga4Executor(creds_path=args.creds)
        if args.dry_run:
            return dry_run(args, source, executor)

        summary = run_reports(source, executor, SheetSink(mg), only=args.report)
    except ReportError as e:
        code, hint = map_error(e)
        return emit_error(args, code, str(e), hint)
    except Exception as e:
        logger.exception("Report run failed")
        return emit_error(args, "RUN_FAILED", str(e), "Check the log output above.")

    if args.json:
        emit_success(args, summary, mode="run")
    else:
        for report in summary["reports"]:
            print(f"{report['name']} ({report['property']}): {report['row_count']} rows")
        print(f"Done: {summary['total']} reports, {summary['row_count']} rows")
    return 0


if __name__ == "__main__":
    sys.exit(main())
