"""
Conversion timestamp formatting for Google Ads offline imports.

Google Ads wants "yyyy-MM-dd HH:mm:ss+TZ". The account reports in Arizona
time, which is a fixed UTC-7 offset with no daylight saving, so times are
shifted by offset arithmetic instead of relying on the host's local zone.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

logger = logging.getLogger(__name__)

REPORTING_UTC_OFFSET_HOURS = -7


def reporting_timezone(offset_hours: float = REPORTING_UTC_OFFSET_HOURS) -> timezone:
    return timezone(timedelta(hours=offset_hours))


def parse_call_time(value, offset_hours: float = REPORTING_UTC_OFFSET_HOURS) -> Optional[datetime]:
    """
    Parse a CallRail start_time into the reporting offset.

    Aware timestamps are converted; naive ones are taken to already be
    wall-clock time in the reporting offset.

    Returns:
        Aware datetime in the reporting offset, or None if unparseable
    """
    tz = reporting_timezone(offset_hours)
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.warning(f"Unparseable call start_time: {value!r}")
            return None
    else:
        return None

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=tz)
    return parsed.astimezone(tz)


def format_offset(dt: datetime, compact: bool = False) -> str:
    total_minutes = int(dt.utcoffset().total_seconds() // 60)
    sign = "-" if total_minutes < 0 else "+"
    hours, minutes = divmod(abs(total_minutes), 60)
    sep = "" if compact else ":"
    return f"{sign}{hours:02d}{sep}{minutes:02d}"


def format_conversion_time(dt: Optional[datetime], compact: bool = False) -> str:
    """
    Render a conversion time for Google Ads.

    Args:
        dt: Aware datetime (already in the reporting offset)
        compact: Use "-0700" instead of "-07:00" (CSV upload format)

    Returns:
        Formatted timestamp, or "" when dt is None
    """
    if dt is None:
        return ""
    return dt.strftime("%Y-%m-%d %H:%M:%S") + format_offset(dt, compact=compact)
