"""
CallRail fetcher: pagination, page ceiling, date-only params, errors.
HTTP is mocked; no network access.
"""

import os
import sys
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
import requests

_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
sys.path.insert(0, _root)

from callvalue.config import SyncConfig
from callvalue.fetch import CallRailAPIError, CallRailFetcher

START = datetime(2024, 1, 8, 15, 30, tzinfo=timezone.utc)
END = datetime(2024, 1, 15, 15, 30, tzinfo=timezone.utc)


def _response(calls=None, status=200, reason="OK"):
    response = MagicMock()
    response.ok = 200 <= status < 300
    response.status_code = status
    response.reason = reason
    response.json.return_value = {"calls": calls if calls is not None else []}
    return response


def _session(*responses):
    session = MagicMock()
    session.get.side_effect = list(responses)
    return session


def _page(n, prefix="c"):
    return [{"id": f"{prefix}{i}"} for i in range(n)]


def _fetcher(session, page_size=3, max_pages=10):
    return CallRailFetcher(
        api_key="key123", account_id="ACC1",
        page_size=page_size, max_pages=max_pages, session=session,
    )


def test_requires_credentials(monkeypatch):
    monkeypatch.delenv("CALLRAIL_API_KEY", raising=False)
    monkeypatch.delenv("CALLRAIL_ACCOUNT_ID", raising=False)
    with pytest.raises(ValueError):
        CallRailFetcher()


def test_stops_on_short_page():
    session = _session(_response(_page(3, "a")), _response(_page(1, "b")))
    fetcher = _fetcher(session)
    calls = fetcher.fetch_calls(START, END)

    assert [c["id"] for c in calls] == ["a0", "a1", "a2", "b0"]
    assert session.get.call_count == 2
    assert fetcher.pages_fetched == 2
    assert fetcher.truncated is False


def test_request_shape():
    session = _session(_response([]))
    _fetcher(session).fetch_calls(START, END)

    args, kwargs = session.get.call_args
    assert args[0] == "https://api.callrail.com/v3/a/ACC1/calls.json"
    assert kwargs["headers"]["Authorization"] == "Token token=key123"
    params = kwargs["params"]
    assert params["start_date"] == "2024-01-08"
    assert params["end_date"] == "2024-01-15"
    assert params["page"] == 1
    assert params["per_page"] == 3
    assert "gclid" in params["fields"].split(",")
    assert "transcription" in params["fields"].split(",")


def test_page_ceiling_truncates_and_flags():
    session = _session(*[_response(_page(3, f"p{i}-")) for i in range(5)])
    fetcher = _fetcher(session, max_pages=2)
    calls = fetcher.fetch_calls(START, END)

    assert len(calls) == 6
    assert session.get.call_count == 2
    assert fetcher.truncated is True
    assert fetcher.get_stats()["truncated"] is True


def test_full_last_page_below_ceiling_fetches_empty_page():
    session = _session(_response(_page(3)), _response([]))
    fetcher = _fetcher(session)
    assert len(fetcher.fetch_calls(START, END)) == 3
    assert session.get.call_count == 2
    assert fetcher.truncated is False


def test_error_status_raises_and_discards_pages():
    session = _session(_response(_page(3)), _response(status=500, reason="Server Error"))
    fetcher = _fetcher(session)
    with pytest.raises(CallRailAPIError) as exc:
        fetcher.fetch_calls(START, END)
    assert exc.value.status_code == 500
    assert "500" in str(exc.value)
    assert session.get.call_count == 2


def test_transport_error_is_wrapped_without_retry():
    session = MagicMock()
    session.get.side_effect = requests.exceptions.ConnectionError("boom")
    with pytest.raises(CallRailAPIError):
        _fetcher(session).fetch_calls(START, END)
    assert session.get.call_count == 1


def test_missing_calls_field_is_empty_page():
    response = _response()
    response.json.return_value = {"page": 1}
    fetcher = _fetcher(_session(response))
    assert fetcher.fetch_calls(START, END) == []


def test_from_config():
    config = SyncConfig(callrail_api_key="k", callrail_account_id="A9", page_size=50, max_pages=4)
    fetcher = CallRailFetcher.from_config(config, session=MagicMock())
    assert fetcher.page_size == 50
    assert fetcher.max_pages == 4
    assert fetcher.calls_url.endswith("/a/A9/calls.json")
    assert fetcher.timeout == 30


def test_close_only_closes_own_session():
    shared = MagicMock()
    _fetcher(shared).close()
    shared.close.assert_not_called()

    fetcher = CallRailFetcher(api_key="key123", account_id="ACC1")
    own = MagicMock()
    fetcher.session = own
    fetcher.close()
    own.close.assert_called_once()
