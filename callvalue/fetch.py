"""
CallRail API fetching module.

Handles the paginated calls listing with:
- Calendar-date filtering (CallRail filters by date, not timestamp)
- Fixed page size and a hard page ceiling per run
- Request counting and logging

Pages are fetched one at a time. Any non-2xx response aborts the fetch and
nothing fetched so far is returned. Requests are not retried.
"""

import os
import logging
from datetime import datetime, timezone
from typing import List, Dict, Optional
import requests

logger = logging.getLogger(__name__)

# API Configuration
CALLRAIL_API_BASE = "https://api.callrail.com/v3"
PAGE_SIZE = 250          # CallRail maximum per_page
MAX_PAGES = 10           # Safety valve against runaway pagination
REQUEST_TIMEOUT = 30

CALL_FIELDS = [
    "id",
    "start_time",
    "duration",
    "customer_phone_number",
    "tracking_phone_number",
    "source",
    "campaign",
    "landing_page_url",
    "gclid",
    "lead_score",
    "tags",
    "note",
    "transcription",
]


def _utc_date(dt: datetime) -> str:
    """YYYY-MM-DD of a datetime in UTC (naive values are taken as UTC)."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.date().isoformat()


class CallRailAPIError(Exception):
    """Non-success response (or transport failure) from the CallRail API."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CallRailFetcher:
    """
    Fetches call records from the CallRail v3 API.

    Attributes:
        api_key: CallRail API key
        account_id: CallRail account ID
        request_count: Total API requests made
        pages_fetched: Pages fetched by the last fetch_calls
        truncated: Whether the last fetch stopped at the page ceiling
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        account_id: Optional[str] = None,
        page_size: int = PAGE_SIZE,
        max_pages: int = MAX_PAGES,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the fetcher.

        Args:
            api_key: CallRail API key. If None, reads CALLRAIL_API_KEY.
            account_id: CallRail account ID. If None, reads CALLRAIL_ACCOUNT_ID.
            page_size: Calls per page
            max_pages: Maximum pages per fetch
            timeout: Seconds per request
            session: Optional requests session (shared connection pool)

        Raises:
            ValueError: If credentials are missing.
        """
        self.api_key = api_key or os.getenv("CALLRAIL_API_KEY")
        self.account_id = account_id or os.getenv("CALLRAIL_ACCOUNT_ID")
        if not self.api_key or not self.account_id:
            raise ValueError(
                "CallRail credentials missing. Set CALLRAIL_API_KEY and "
                "CALLRAIL_ACCOUNT_ID environment variables or pass them in."
            )
        if page_size < 1 or max_pages < 1:
            raise ValueError("page_size and max_pages must be positive")

        self.page_size = page_size
        self.max_pages = max_pages
        self.timeout = timeout
        self._owns_session = session is None
        self.session = session or requests.Session()

        self.request_count = 0
        self.pages_fetched = 0
        self.total_results = 0
        self.truncated = False

    @classmethod
    def from_config(cls, config, session: Optional[requests.Session] = None) -> "CallRailFetcher":
        return cls(
            api_key=config.callrail_api_key,
            account_id=config.callrail_account_id,
            page_size=config.page_size,
            max_pages=config.max_pages,
            timeout=config.request_timeout,
            session=session,
        )

    @property
    def calls_url(self) -> str:
        return f"{CALLRAIL_API_BASE}/a/{self.account_id}/calls.json"

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Token token={self.api_key}",
            "Content-Type": "application/json",
        }

    def _fetch_page(self, page: int, start_date: str, end_date: str) -> List[Dict]:
        params = {
            "per_page": self.page_size,
            "page": page,
            "start_date": start_date,
            "end_date": end_date,
            "fields": ",".join(CALL_FIELDS),
        }
        try:
            response = self.session.get(
                self.calls_url,
                params=params,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise CallRailAPIError(f"CallRail API request failed: {e}") from e
        self.request_count += 1

        if not response.ok:
            raise CallRailAPIError(
                f"CallRail API error: {response.status_code} {response.reason or ''}".strip(),
                status_code=response.status_code,
            )

        data = response.json() or {}
        return data.get("calls") or []

    def fetch_calls(self, start: datetime, end: datetime) -> List[Dict]:
        """
        Fetch every call in the window.

        Only the calendar dates of start/end are sent; CallRail includes
        whole days.

        Args:
            start: Window start
            end: Window end

        Returns:
            List of call dicts in API order

        Raises:
            CallRailAPIError: On any non-2xx response or transport failure
        """
        start_date = _utc_date(start)
        end_date = _utc_date(end)
        self.pages_fetched = 0
        self.truncated = False

        all_calls: List[Dict] = []
        page = 1
        while True:
            calls = self._fetch_page(page, start_date, end_date)
            all_calls.extend(calls)
            self.pages_fetched = page

            if len(calls) < self.page_size:
                break
            if page >= self.max_pages:
                self.truncated = True
                logger.warning(
                    f"Stopped at page ceiling ({self.max_pages} pages, {len(all_calls)} calls); "
                    f"calls beyond this for {start_date}..{end_date} were not fetched"
                )
                break
            page += 1

        self.total_results += len(all_calls)
        logger.info(f"Fetched {len(all_calls)} calls in {self.pages_fetched} page(s) for {start_date}..{end_date}")
        return all_calls

    def close(self) -> None:
        """Close the HTTP session if this fetcher created it."""
        if self._owns_session:
            self.session.close()

    def get_stats(self) -> Dict:
        """Return current fetching statistics."""
        return {
            "total_requests": self.request_count,
            "total_results_fetched": self.total_results,
            "pages_fetched": self.pages_fetched,
            "truncated": self.truncated,
        }
