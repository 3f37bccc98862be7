"""
Pydantic schemas for the conversion sync API.
"""

from typing import Optional, List
from pydantic import BaseModel, ConfigDict, Field


class DateRange(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    # "from" is a keyword, so the field is aliased
    from_: Optional[str] = Field(default=None, alias="from")
    to: Optional[str] = None
    hours: Optional[int] = None


class SyncStats(BaseModel):
    total_calls: int
    with_gclid: int
    without_gclid: int
    with_value: int
    zero_value: int
    total_value: str
    unique_callers: int
    pages_fetched: int = 0
    truncated: bool = False
    rows_written: Optional[int] = None


class ConversionPreview(BaseModel):
    gclid: str
    value: str
    tier: str
    product: str
    phone: str
    campaign: str
    duration: str
    lead_score: str


class SyncResponse(BaseModel):
    """JSON body returned by GET /sync-gads-conversions (format=json|sheets)."""

    success: bool = True
    dry_run: bool = False
    date_range: DateRange
    stats: SyncStats
    conversions: List[ConversionPreview] = []
    csv_url: Optional[str] = None
    message: Optional[str] = None


class SyncErrorResponse(BaseModel):
    success: bool = False
    error: str
