"""
Sync service: runs the value pipeline for a lookback window and hands the
result to the requested sink (JSON summary, CSV download, Google Sheets).
Reuses callvalue modules; no duplicated valuation logic.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from callvalue.config import SyncConfig
from callvalue.export import build_summary, to_csv
from callvalue.sheets import SheetsWriter
from callvalue.value import PipelineResult, ValuePipeline

logger = logging.getLogger(__name__)

DEFAULT_LOOKBACK_DAYS = 7
OUTPUT_FORMATS = ("json", "csv", "sheets")
SYNC_PATH = "/sync-gads-conversions"


@dataclass
class SyncOutcome:
    result: PipelineResult
    hours: int
    output_format: str
    dry_run: bool
    csv: Optional[str] = None
    sheet_result: Optional[Dict] = None


def lookback_hours(hours: Optional[int] = None, days: Optional[int] = None) -> int:
    """Hours wins; otherwise days (default 7) are converted to hours."""
    if hours:
        return hours
    return (days or DEFAULT_LOOKBACK_DAYS) * 24


def run_sync(
    config: SyncConfig,
    hours: int,
    output_format: str = "json",
    dry_run: bool = False,
    fetcher=None,
    writer: Optional[SheetsWriter] = None,
    now: Optional[datetime] = None,
) -> SyncOutcome:
    """
    Run one sync.

    The sink is only touched after the whole result is computed. With
    dry_run the Sheets write is skipped but everything else still runs.

    Args:
        config: Process configuration
        hours: Lookback window in hours
        output_format: "json", "csv" or "sheets"
        dry_run: Compute and report without writing to Sheets
        fetcher: Optional call source (default: CallRailFetcher from config)
        writer: Optional Sheets writer (default: SheetsWriter from config)
        now: Window end (default: current time, UTC)

    Raises:
        ValueError: Unknown format, bad window or missing credentials
        CallRailAPIError: CallRail request failed
        googleapiclient.errors.HttpError: Sheets write failed
    """
    if output_format not in OUTPUT_FORMATS:
        raise ValueError(f"Unsupported format: {output_format}. Use one of {', '.join(OUTPUT_FORMATS)}")
    if hours < 1:
        raise ValueError("Lookback window must be at least one hour")

    end = now or datetime.now(timezone.utc)
    start = end - timedelta(hours=hours)
    logger.info(f"Syncing conversions from last {hours} hours. Format: {output_format}. Dry run: {dry_run}")

    result = ValuePipeline(config, fetcher=fetcher).run(start, end)
    outcome = SyncOutcome(result=result, hours=hours, output_format=output_format, dry_run=dry_run)

    if output_format == "csv":
        outcome.csv = to_csv(result.conversions)
    elif output_format == "sheets":
        if dry_run or not result.conversions:
            outcome.sheet_result = {"rows_written": 0, "updated_range": None}
        else:
            writer = writer or SheetsWriter.from_config(config)
            outcome.sheet_result = writer.write_conversions(result.conversions)

    return outcome


def build_sync_response(outcome: SyncOutcome, config: SyncConfig) -> Dict:
    """JSON body for json/sheets syncs."""
    body = build_summary(outcome.result, hours=outcome.hours, default_price=config.catalog.default_price)
    body["dry_run"] = outcome.dry_run
    body["csv_url"] = f"{SYNC_PATH}?hours={outcome.hours}&format=csv"

    if outcome.output_format == "sheets":
        rows_written = (outcome.sheet_result or {}).get("rows_written", 0)
        body["stats"]["rows_written"] = rows_written
        if outcome.dry_run:
            body["message"] = "Dry run - no data written to Sheets"
        else:
            body["message"] = f"Wrote {rows_written} conversions to Google Sheets"
    return body
