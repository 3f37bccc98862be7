#!/usr/bin/env python3
"""
CallRail → Google Ads conversion sync (command line).

Pulls calls from CallRail, calculates tiered conversion values and writes
a Google Ads upload CSV, appends to the Google Sheets log, or prints the
JSON summary.

Usage:
    python scripts/run_sync.py                              # last 7 days, JSON summary
    python scripts/run_sync.py --hours 24 --format csv --output output/conversions.csv
    python scripts/run_sync.py --days 3 --format sheets --dry-run
    python scripts/run_sync.py --per-call                   # no repeat-caller aggregation

Environment Variables:
    CALLRAIL_API_KEY, CALLRAIL_ACCOUNT_ID: Required.
    GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REFRESH_TOKEN,
    GOOGLE_SPREADSHEET_ID: Required for --format sheets.
"""

import os
import sys
import json
import logging
import argparse

# Add project root to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from backend.services.sync_service import (
    OUTPUT_FORMATS,
    build_sync_response,
    lookback_hours,
    run_sync,
)
from callvalue.config import load_config
from callvalue.export import CSV_FILENAME, export_to_csv

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Sync CallRail call values to Google Ads")
    parser.add_argument("--hours", type=int, default=None, help="Lookback window in hours")
    parser.add_argument("--days", type=int, default=None, help="Lookback window in days (default 7)")
    parser.add_argument("--format", dest="output_format", choices=OUTPUT_FORMATS, default="json")
    parser.add_argument("--output", default=None, help=f"CSV path (default output/{CSV_FILENAME})")
    parser.add_argument("--dry-run", action="store_true", help="Skip the Google Sheets write")
    parser.add_argument("--per-call", action="store_true", help="Value each call on its own")
    parser.add_argument(
        "--split-unknown-callers",
        action="store_true",
        help="Treat each call without a phone number as its own caller",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    for name in ("hours", "days"):
        value = getattr(args, name)
        if value is not None and value < 1:
            logger.error(f"--{name} must be at least 1")
            return 2

    config = load_config()
    if args.per_call or args.split_unknown_callers:
        config = config.with_overrides(
            aggregate_by_caller=config.aggregate_by_caller and not args.per_call,
            merge_unknown_callers=config.merge_unknown_callers and not args.split_unknown_callers,
        )

    hours = lookback_hours(args.hours, args.days)
    try:
        outcome = run_sync(config, hours, output_format=args.output_format, dry_run=args.dry_run)
    except Exception as e:
        logger.error(f"Sync failed: {e}")
        return 1

    if args.output_format == "csv":
        path = args.output or os.path.join("output", CSV_FILENAME)
        export_to_csv(outcome.result.conversions, path)
        print(path)
    else:
        print(json.dumps(build_sync_response(outcome, config), indent=2))

    return 0


if __name__ == "__main__":
    sys.exit(main())
