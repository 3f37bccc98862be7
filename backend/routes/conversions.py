"""
GET /sync-gads-conversions route.

    /sync-gads-conversions?hours=168                  → JSON summary
    /sync-gads-conversions?hours=168&format=csv       → CSV download
    /sync-gads-conversions?days=7&format=csv          → Same thing, 7 days
    /sync-gads-conversions?hours=24&format=sheets     → Append to Google Sheets
    /sync-gads-conversions?format=sheets&dry_run=true → Compute only
"""

import logging
from typing import Literal, Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse, Response
from googleapiclient.errors import HttpError

from backend.models.schemas import SyncErrorResponse, SyncResponse
from backend.services.sync_service import (
    SYNC_PATH,
    build_sync_response,
    lookback_hours,
    run_sync,
)
from callvalue.export import CSV_FILENAME
from callvalue.fetch import CallRailAPIError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["conversions"])


def _error(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=SyncErrorResponse(error=message).model_dump(),
    )


@router.get(
    SYNC_PATH,
    response_model=SyncResponse,
    responses={500: {"model": SyncErrorResponse}},
)
def sync_gads_conversions(
    request: Request,
    hours: Optional[int] = Query(None, ge=1),
    days: Optional[int] = Query(None, ge=1),
    output_format: Literal["json", "csv", "sheets"] = Query("json", alias="format"),
    dry_run: bool = False,
):
    """
    Value CallRail calls from the lookback window and return or store them.

    hours takes precedence over days (default 7 days).
    """
    config = request.app.state.config
    window = lookback_hours(hours, days)

    try:
        outcome = run_sync(config, window, output_format=output_format, dry_run=dry_run)
    except CallRailAPIError as e:
        logger.error("CallRail fetch failed: %s", e)
        return _error(str(e))
    except HttpError as e:
        logger.error("Google Sheets write failed: %s", e)
        return _error(f"Google Sheets error: {e}")
    except ValueError as e:
        logger.error("Sync misconfigured: %s", e)
        return _error(str(e))
    except Exception as e:
        logger.exception("Sync failed: %s", e)
        return _error("Internal server error")

    if output_format == "csv":
        return Response(
            content=outcome.csv,
            media_type="text/csv",
            headers={"Content-Disposition": f'attachment; filename="{CSV_FILENAME}"'},
        )

    return build_sync_response(outcome, config)
