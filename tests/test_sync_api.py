"""
GET /sync-gads-conversions through the FastAPI app, with CallRail and
Google Sheets replaced by fakes.
"""

import os
import sys
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient
from googleapiclient.errors import HttpError

_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _root)

from backend.main import app
from backend.services import sync_service
from callvalue.config import SyncConfig
from callvalue.fetch import CallRailAPIError
from callvalue.value import ValuePipeline

CALLS = [
    {"id": "CAL1", "start_time": "2024-01-15T10:30:00-07:00", "customer_phone_number": "(555) 123-4567",
     "gclid": "gclid-0123456789abcdefghij", "lead_score": 85, "duration": 30},
    {"id": "CAL2", "start_time": "2024-01-15T12:00:00-07:00", "customer_phone_number": "555.123.4567",
     "gclid": "gclid-2", "note": "10 hp"},
    {"id": "CAL3", "start_time": "2024-01-15T12:00:00-07:00", "lead_score": 99},
]


class _FakeFetcher:
    def __init__(self, calls=None, error=None):
        self.calls = calls or []
        self.error = error
        self.windows = []
        self.pages_fetched = 1
        self.truncated = False

    def fetch_calls(self, start, end):
        self.windows.append((start, end))
        if self.error:
            raise self.error
        return list(self.calls)


@pytest.fixture
def fetcher(monkeypatch):
    fake = _FakeFetcher(CALLS)
    monkeypatch.setattr(
        sync_service, "ValuePipeline",
        lambda config, fetcher=None: ValuePipeline(config, fetcher=fake),
    )
    return fake


@pytest.fixture
def writer(monkeypatch):
    fake = MagicMock()
    fake.write_conversions.return_value = {"rows_written": 2, "updated_range": "Conversions!A2:K3"}
    monkeypatch.setattr(sync_service.SheetsWriter, "from_config", classmethod(lambda cls, config: fake))
    return fake


@pytest.fixture
def client():
    app.state.config = SyncConfig(callrail_api_key="k", callrail_account_id="A1")
    with TestClient(app) as c:
        yield c


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_json_summary_defaults_to_seven_days(client, fetcher):
    response = client.get("/sync-gads-conversions")
    assert response.status_code == 200
    body = response.json()

    assert body["success"] is True
    assert body["date_range"]["hours"] == 168
    assert set(body["date_range"]) == {"from", "to", "hours"}
    start, end = fetcher.windows[0]
    assert (end - start).total_seconds() == 168 * 3600

    stats = body["stats"]
    assert stats["total_calls"] == 3
    assert stats["with_gclid"] == 2
    assert stats["with_value"] == 2
    assert stats["total_value"] == "$1995.00"
    assert stats["unique_callers"] == 1
    assert body["conversions"][0]["value"] == "$997.50"
    assert body["conversions"][0]["product"] == "10 HP"
    assert body["csv_url"] == "/sync-gads-conversions?hours=168&format=csv"


def test_hours_take_precedence_over_days(client, fetcher):
    body = client.get("/sync-gads-conversions", params={"hours": 24, "days": 3}).json()
    assert body["date_range"]["hours"] == 24
    body = client.get("/sync-gads-conversions", params={"days": 2}).json()
    assert body["date_range"]["hours"] == 48


def test_csv_download(client, fetcher):
    response = client.get("/sync-gads-conversions", params={"hours": 24, "format": "csv"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="callrail_gads_conversions.csv"' in response.headers["content-disposition"]
    lines = response.text.split("\n")
    assert lines[0].startswith("Google Click ID,")
    assert lines[1] == "gclid-0123456789abcdefghij,Phone Call,2024-01-15 10:30:00-0700,997.5,USD"


def test_sheets_write(client, fetcher, writer):
    body = client.get("/sync-gads-conversions", params={"format": "sheets"}).json()
    assert body["stats"]["rows_written"] == 2
    assert body["message"] == "Wrote 2 conversions to Google Sheets"
    assert writer.write_conversions.call_count == 1


def test_sheets_dry_run_skips_write(client, fetcher, writer):
    body = client.get("/sync-gads-conversions", params={"format": "sheets", "dry_run": "true"}).json()
    assert body["dry_run"] is True
    assert body["stats"]["rows_written"] == 0
    assert body["message"] == "Dry run - no data written to Sheets"
    writer.write_conversions.assert_not_called()


def test_sheets_http_error_is_reported(client, fetcher, writer):
    writer.write_conversions.side_effect = HttpError(MagicMock(status=403, reason="Forbidden"), b"Forbidden")
    response = client.get("/sync-gads-conversions", params={"format": "sheets"})
    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert body["error"].startswith("Google Sheets error:")


def test_sheets_without_credentials_is_reported(client, fetcher):
    response = client.get("/sync-gads-conversions", params={"format": "sheets"})
    assert response.status_code == 500
    body = response.json()
    assert body["success"] is False
    assert "Google Sheets credentials missing" in body["error"]


def test_upstream_error_returns_single_error(client, monkeypatch):
    fake = _FakeFetcher(error=CallRailAPIError("CallRail API error: 401 Unauthorized", status_code=401))
    monkeypatch.setattr(
        sync_service, "ValuePipeline",
        lambda config, fetcher=None: ValuePipeline(config, fetcher=fake),
    )
    response = client.get("/sync-gads-conversions")
    assert response.status_code == 500
    assert response.json() == {"success": False, "error": "CallRail API error: 401 Unauthorized"}


def test_bad_format_rejected(client, fetcher):
    assert client.get("/sync-gads-conversions", params={"format": "xml"}).status_code == 422


def test_run_sync_uses_given_clock(fetcher):
    now = datetime(2024, 1, 16, tzinfo=timezone.utc)
    outcome = sync_service.run_sync(SyncConfig(), 24, now=now)
    assert fetcher.windows == [(datetime(2024, 1, 15, tzinfo=timezone.utc), now)]
    assert outcome.csv is None
    assert outcome.sheet_result is None


def test_run_sync_rejects_unknown_format():
    with pytest.raises(ValueError):
        sync_service.run_sync(SyncConfig(), 24, output_format="xml")


def test_lookback_hours():
    assert sync_service.lookback_hours() == 168
    assert sync_service.lookback_hours(hours=5, days=2) == 5
    assert sync_service.lookback_hours(days=1) == 24
