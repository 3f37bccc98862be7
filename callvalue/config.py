"""
Run configuration.

A SyncConfig is built once at process start (load_config) and passed into
the pipeline, fetcher and sinks. It is frozen; nothing in the package reads
configuration from module globals.

Environment variables (a .env file in the project root is loaded first):
  CALLRAIL_API_KEY          CallRail API key
  CALLRAIL_ACCOUNT_ID       CallRail account ID
  CALLRAIL_PAGE_SIZE        Calls per page (default 250)
  CALLRAIL_MAX_PAGES        Page ceiling per run (default 10)
  GOOGLE_CLIENT_ID          OAuth client for the Sheets sink
  GOOGLE_CLIENT_SECRET
  GOOGLE_REFRESH_TOKEN
  GOOGLE_SPREADSHEET_ID     Sheet where conversions are logged
  AGGREGATE_BY_CALLER       Split value across repeat callers (default true)
  MERGE_UNKNOWN_CALLERS     Treat all phoneless calls as one caller (default true)
  CONVERSION_NAME           Conversion action name (default "Phone Call")
"""

import os
import logging
from dataclasses import dataclass, field, replace
from typing import Optional

from dotenv import load_dotenv

from .products import ProductCatalog, DEFAULT_CATALOG
from .tiers import TierPolicy, DEFAULT_TIER_POLICY
from .timefmt import REPORTING_UTC_OFFSET_HOURS

logger = logging.getLogger(__name__)

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

DEFAULT_PAGE_SIZE = 250
DEFAULT_MAX_PAGES = 10
DEFAULT_CONVERSION_NAME = "Phone Call"
DEFAULT_CURRENCY = "USD"


@dataclass(frozen=True)
class SyncConfig:
    """
    Immutable settings for one sync process.

    Attributes:
        callrail_api_key: CallRail API token
        callrail_account_id: CallRail account the calls belong to
        page_size: Calls requested per page
        max_pages: Hard ceiling on pages fetched per run
        request_timeout: Seconds per CallRail request
        catalog: Product prices
        tier_policy: Score thresholds and value multipliers
        aggregate_by_caller: Spread one value across a repeat caller's calls
        merge_unknown_callers: Pool all phoneless calls into one "unknown" caller
        conversion_name: Conversion action name written to the CSV
        currency: Conversion currency code
        utc_offset_hours: Fixed offset used for conversion times
        google_*: OAuth credentials and target sheet for the Sheets sink
    """
    callrail_api_key: Optional[str] = None
    callrail_account_id: Optional[str] = None
    page_size: int = DEFAULT_PAGE_SIZE
    max_pages: int = DEFAULT_MAX_PAGES
    request_timeout: float = 30.0
    catalog: ProductCatalog = field(default=DEFAULT_CATALOG)
    tier_policy: TierPolicy = field(default=DEFAULT_TIER_POLICY)
    aggregate_by_caller: bool = True
    merge_unknown_callers: bool = True
    conversion_name: str = DEFAULT_CONVERSION_NAME
    currency: str = DEFAULT_CURRENCY
    utc_offset_hours: float = REPORTING_UTC_OFFSET_HOURS
    google_client_id: Optional[str] = None
    google_client_secret: Optional[str] = None
    google_refresh_token: Optional[str] = None
    google_spreadsheet_id: Optional[str] = None

    def __post_init__(self):
        if self.page_size < 1:
            raise ValueError("page_size must be at least 1")
        if self.max_pages < 1:
            raise ValueError("max_pages must be at least 1")

    @property
    def has_sheets_credentials(self) -> bool:
        return all([
            self.google_client_id,
            self.google_client_secret,
            self.google_refresh_token,
            self.google_spreadsheet_id,
        ])

    def with_overrides(self, **changes) -> "SyncConfig":
        return replace(self, **changes)


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        logger.warning(f"Ignoring non-integer {name}={value!r}; using {default}")
        return default


def load_config(env_file: Optional[str] = None) -> SyncConfig:
    """
    Build the process configuration from the environment.

    Args:
        env_file: Optional .env path (default: project root .env)

    Returns:
        SyncConfig
    """
    load_dotenv(env_file or os.path.join(_PROJECT_ROOT, ".env"))

    return SyncConfig(
        callrail_api_key=os.getenv("CALLRAIL_API_KEY"),
        callrail_account_id=os.getenv("CALLRAIL_ACCOUNT_ID"),
        page_size=_env_int("CALLRAIL_PAGE_SIZE", DEFAULT_PAGE_SIZE),
        max_pages=_env_int("CALLRAIL_MAX_PAGES", DEFAULT_MAX_PAGES),
        aggregate_by_caller=_env_bool("AGGREGATE_BY_CALLER", True),
        merge_unknown_callers=_env_bool("MERGE_UNKNOWN_CALLERS", True),
        conversion_name=os.getenv("CONVERSION_NAME") or DEFAULT_CONVERSION_NAME,
        google_client_id=os.getenv("GOOGLE_CLIENT_ID"),
        google_client_secret=os.getenv("GOOGLE_CLIENT_SECRET"),
        google_refresh_token=os.getenv("GOOGLE_REFRESH_TOKEN"),
        google_spreadsheet_id=os.getenv("GOOGLE_SPREADSHEET_ID"),
    )
