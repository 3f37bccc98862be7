"""
Conversion value pipeline.

Turns a lookback window into valued Google Ads offline conversions:

    fetch calls -> extract GCLIDs -> group by caller -> score / detect product
    -> classify tier -> value group -> split value across the group's calls

With aggregate_by_caller disabled every call is valued on its own (a group
of one). Output depends only on the fetched calls and the config; the
conversion time comes from each call's own start_time.
"""

import logging
from dataclasses import dataclass, field, asdict
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from .aggregate import (
    CallerGroup,
    GroupValuation,
    group_by_caller,
    normalize_phone,
    round_currency,
    value_group,
)
from .config import SyncConfig
from .fetch import CallRailFetcher
from .gclid import extract_gclid
from .timefmt import format_conversion_time, parse_call_time

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ValuedConversion:
    """One offline conversion row, ready for a sink."""
    gclid: str
    conversion_name: str
    converted_at: Optional[datetime]
    value: float
    currency: str
    call_id: Optional[str]
    phone: str
    tier: str
    product: str
    product_price: float
    campaign: str
    source: str
    duration: int
    lead_score: float

    @property
    def conversion_time(self) -> str:
        return format_conversion_time(self.converted_at)

    @property
    def conversion_time_compact(self) -> str:
        return format_conversion_time(self.converted_at, compact=True)

    def to_dict(self) -> Dict:
        data = asdict(self)
        data.pop("converted_at")
        data["conversion_time"] = self.conversion_time
        return data


@dataclass
class RunStats:
    """Counters for one run. Counts reconcile:
    total_calls = with_gclid + without_gclid, with_gclid = with_value + zero_value."""
    total_calls: int = 0
    with_gclid: int = 0
    without_gclid: int = 0
    with_value: int = 0
    zero_value: int = 0
    total_value: float = 0.0
    unique_callers: int = 0
    pages_fetched: int = 0
    truncated: bool = False

    def to_dict(self) -> Dict:
        data = asdict(self)
        data["total_value"] = round_currency(self.total_value)
        return data


@dataclass
class PipelineResult:
    conversions: List[ValuedConversion] = field(default_factory=list)
    stats: RunStats = field(default_factory=RunStats)
    start: Optional[datetime] = None
    end: Optional[datetime] = None


def _str_field(call: Dict, key: str) -> str:
    value = call.get(key)
    return str(value) if value else ""


def _duration(call: Dict) -> int:
    try:
        return int(call.get("duration") or 0)
    except (TypeError, ValueError):
        return 0


def _build_conversion(
    call: Dict,
    gclid: str,
    valuation: GroupValuation,
    config: SyncConfig,
) -> ValuedConversion:
    call_id = call.get("id")
    converted_at = parse_call_time(call.get("start_time"), config.utc_offset_hours)
    if converted_at is None:
        logger.warning(f"Call {call_id} has no usable start_time; conversion time left blank")
    return ValuedConversion(
        gclid=gclid,
        conversion_name=config.conversion_name,
        converted_at=converted_at,
        value=valuation.per_call_value,
        currency=config.currency,
        call_id=str(call_id) if call_id is not None else None,
        phone=_str_field(call, "customer_phone_number"),
        tier=valuation.tier.value,
        product=valuation.product,
        product_price=valuation.product_price,
        campaign=_str_field(call, "campaign"),
        source=_str_field(call, "source"),
        duration=_duration(call),
        lead_score=valuation.best_score,
    )


def _valuation_groups(pairs: List[Tuple[Dict, str]], config: SyncConfig) -> List[CallerGroup]:
    if config.aggregate_by_caller:
        return group_by_caller(pairs, merge_unknown=config.merge_unknown_callers)
    return [
        CallerGroup(key=normalize_phone(call.get("customer_phone_number")), calls=[(call, gclid)])
        for call, gclid in pairs
    ]


def value_calls(calls: List[Dict], config: SyncConfig) -> Tuple[List[ValuedConversion], RunStats]:
    """
    Value already-fetched calls.

    Args:
        calls: CallRail call records in fetch order
        config: Run configuration

    Returns:
        (conversions, stats)
    """
    stats = RunStats(total_calls=len(calls))

    pairs: List[Tuple[Dict, str]] = []
    for call in calls:
        gclid = extract_gclid(call)
        if not gclid:
            stats.without_gclid += 1
            continue
        stats.with_gclid += 1
        pairs.append((call, gclid))

    stats.unique_callers = len(group_by_caller(pairs, merge_unknown=config.merge_unknown_callers))

    conversions: List[ValuedConversion] = []
    for group in _valuation_groups(pairs, config):
        valuation = value_group(group, config.catalog, config.tier_policy)

        if valuation.is_zero:
            stats.zero_value += len(group)
            continue

        for call, gclid in group.calls:
            conversions.append(_build_conversion(call, gclid, valuation, config))
            stats.with_value += 1
            stats.total_value += valuation.per_call_value

    stats.total_value = round_currency(stats.total_value)
    return conversions, stats


class ValuePipeline:
    """
    End-to-end valuation for a time window.

    Attributes:
        config: Run configuration
        fetcher: Object with fetch_calls(start, end) (CallRailFetcher in production)
    """

    def __init__(self, config: SyncConfig, fetcher=None):
        self.config = config
        # A fetcher built here is closed after each run; a passed-in one is not
        self._owns_fetcher = fetcher is None
        if fetcher is None:
            fetcher = CallRailFetcher.from_config(config)
        self.fetcher = fetcher

    def run(self, start: datetime, end: datetime) -> PipelineResult:
        """
        Fetch and value every call in [start, end].

        Raises:
            CallRailAPIError: If any page fails; no partial result is returned
        """
        logger.info(f"Fetching calls from {start.isoformat()} to {end.isoformat()}")
        try:
            calls = self.fetcher.fetch_calls(start, end)
        finally:
            if self._owns_fetcher:
                self.fetcher.close()
        logger.info(f"Fetched {len(calls)} total calls")

        conversions, stats = value_calls(calls, self.config)
        stats.pages_fetched = getattr(self.fetcher, "pages_fetched", 0)
        stats.truncated = bool(getattr(self.fetcher, "truncated", False))

        logger.info(
            f"Processed: {stats.with_gclid} with GCLID, {stats.with_value} with value, "
            f"{stats.zero_value} zero value, ${stats.total_value:.2f} total "
            f"across {stats.unique_callers} caller(s)"
        )
        if stats.truncated:
            logger.warning("Results are incomplete: page ceiling reached before the last page")

        return PipelineResult(conversions=conversions, stats=stats, start=start, end=end)
