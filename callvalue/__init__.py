"""
CallRail Conversion Value Sync - Pipeline Package

This package turns CallRail phone calls into valued Google Ads offline
conversions.

Architecture:
    config: Immutable run configuration (SyncConfig, load_config)
    fetch: CallRail calls API client with pagination and a page ceiling
    gclid: GCLID extraction from call records
    lead_score: Lead score normalization (numeric, label, structured)
    tiers: Tier thresholds and value multipliers (TierPolicy)
    products: Product catalog and horsepower detection
    aggregate: Repeat-caller grouping and group valuation
    value: End-to-end pipeline (ValuePipeline) and run stats
    timefmt: Fixed-offset conversion time formatting
    export: Google Ads CSV, sheet rows and JSON summary
    sheets: Google Sheets append sink
"""

from .config import SyncConfig, load_config
from .fetch import CallRailFetcher, CallRailAPIError
from .gclid import extract_gclid
from .lead_score import (
    score_percent,
    normalize_lead_score,
    score_shape,
    ScoreShape,
    DEFAULT_SCORE_PERCENT,
)
from .tiers import Tier, TierBand, TierPolicy, DEFAULT_TIER_POLICY, classify_tier, tier_multiplier
from .products import ProductCatalog, DEFAULT_CATALOG, DEFAULT_PRODUCT, detect_product
from .aggregate import (
    CallerGroup,
    GroupValuation,
    normalize_phone,
    group_by_caller,
    value_group,
    round_currency,
)
from .value import ValuedConversion, RunStats, PipelineResult, ValuePipeline, value_calls
from .timefmt import parse_call_time, format_conversion_time
from .export import to_csv, export_to_csv, to_sheet_rows, build_summary
from .sheets import SheetsWriter

__all__ = [
    # config
    "SyncConfig",
    "load_config",
    # fetch
    "CallRailFetcher",
    "CallRailAPIError",
    # gclid
    "extract_gclid",
    # lead_score
    "score_percent",
    "normalize_lead_score",
    "score_shape",
    "ScoreShape",
    "DEFAULT_SCORE_PERCENT",
    # tiers
    "Tier",
    "TierBand",
    "TierPolicy",
    "DEFAULT_TIER_POLICY",
    "classify_tier",
    "tier_multiplier",
    # products
    "ProductCatalog",
    "DEFAULT_CATALOG",
    "DEFAULT_PRODUCT",
    "detect_product",
    # aggregate
    "CallerGroup",
    "GroupValuation",
    "normalize_phone",
    "group_by_caller",
    "value_group",
    "round_currency",
    # value
    "ValuedConversion",
    "RunStats",
    "PipelineResult",
    "ValuePipeline",
    "value_calls",
    # timefmt
    "parse_call_time",
    "format_conversion_time",
    # export
    "to_csv",
    "export_to_csv",
    "to_sheet_rows",
    "build_summary",
    # sheets
    "SheetsWriter",
]
