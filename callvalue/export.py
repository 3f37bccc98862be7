"""
Export module for valued conversions.

Supports:
- Google Ads offline conversion CSV (manual upload)
- Sheet rows for the Google Sheets log read by the Ads-side importer
- JSON summary for the sync endpoint and CLI
"""

import os
import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from .products import DEFAULT_CATALOG, DEFAULT_PRODUCT
from .value import PipelineResult, ValuedConversion

logger = logging.getLogger(__name__)

CSV_HEADER = "Google Click ID,Conversion Name,Conversion Time,Conversion Value,Conversion Currency"
CSV_FILENAME = "callrail_gads_conversions.csv"

# gclid, time, value, currency, call id, phone, lead score, tier, product, campaign, synced at
SHEET_COLUMNS = [
    "gclid",
    "conversion_time",
    "value",
    "currency",
    "call_id",
    "phone",
    "lead_score",
    "tier",
    "product",
    "campaign",
    "synced_at",
]

GCLID_PREVIEW_CHARS = 20


def format_number(value: float) -> str:
    """1995.0 -> "1995", 997.5 -> "997.5"."""
    if float(value).is_integer():
        return str(int(value))
    return repr(float(value))


def to_csv(conversions: List[ValuedConversion]) -> str:
    """
    Render conversions as a Google Ads offline conversion CSV.

    Fields are joined with bare commas (no quoting); GCLIDs and formatted
    times never contain commas.

    Args:
        conversions: Valued conversions

    Returns:
        CSV document (header + one line per conversion, no trailing newline)
    """
    lines = [CSV_HEADER]
    for c in conversions:
        lines.append(",".join([
            c.gclid,
            c.conversion_name,
            c.conversion_time_compact,
            format_number(c.value),
            c.currency,
        ]))
    return "\n".join(lines)


def export_to_csv(conversions: List[ValuedConversion], filepath: str) -> str:
    """
    Write the Google Ads CSV to disk.

    Returns:
        Path to saved file
    """
    if not conversions:
        logger.warning("No conversions to export; writing header only")

    os.makedirs(os.path.dirname(filepath) or '.', exist_ok=True)
    with open(filepath, 'w', encoding='utf-8', newline='') as f:
        f.write(to_csv(conversions))

    logger.info(f"Exported {len(conversions)} conversions to CSV: {filepath}")
    return filepath


def to_sheet_rows(
    conversions: List[ValuedConversion],
    synced_at: Optional[datetime] = None,
) -> List[List]:
    """
    Rows for the Conversions sheet, in SHEET_COLUMNS order.

    Args:
        conversions: Valued conversions
        synced_at: Sync timestamp stamped on every row (default: now, UTC)
    """
    stamp = (synced_at or datetime.now(timezone.utc)).isoformat()
    return [
        [
            c.gclid,
            c.conversion_time,
            c.value,
            c.currency,
            c.call_id or "",
            c.phone,
            c.lead_score,
            c.tier,
            c.product,
            c.campaign,
            stamp,
        ]
        for c in conversions
    ]


def product_label(product: str, default_price: float = DEFAULT_CATALOG.default_price) -> str:
    if product == DEFAULT_PRODUCT:
        return f"Unknown (avg ${default_price:,.0f})"
    return f"{product} HP"


def conversion_preview(c: ValuedConversion, default_price: float = DEFAULT_CATALOG.default_price) -> Dict:
    """Human-readable view of one conversion (GCLID shortened)."""
    return {
        "gclid": c.gclid[:GCLID_PREVIEW_CHARS] + "...",
        "value": f"${c.value:.2f}",
        "tier": c.tier,
        "product": product_label(c.product, default_price),
        "phone": c.phone,
        "campaign": c.campaign,
        "duration": f"{c.duration}s",
        "lead_score": f"{format_number(c.lead_score)}%",
    }


def build_summary(
    result: PipelineResult,
    hours: Optional[int] = None,
    default_price: float = DEFAULT_CATALOG.default_price,
) -> Dict:
    """
    JSON summary of a run: window, stats and a per-conversion preview.

    Args:
        result: Pipeline result
        hours: Lookback hours requested
        default_price: Price shown for undetected products

    Returns:
        JSON-serializable dict
    """
    stats = result.stats.to_dict()
    stats["total_value"] = f"${result.stats.total_value:.2f}"

    return {
        "success": True,
        "date_range": {
            "from": result.start.isoformat() if result.start else None,
            "to": result.end.isoformat() if result.end else None,
            "hours": hours,
        },
        "stats": stats,
        "conversions": [conversion_preview(c, default_price) for c in result.conversions],
    }
