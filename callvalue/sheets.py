"""
Google Sheets sink.

Appends valued conversions to the "Conversions" sheet. A Google Ads script
running inside the Ads account reads that sheet on a schedule, uploads new
rows as offline conversions and marks them imported; deduplication is its
job, not ours.

Configuration (via SyncConfig / environment):
  GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, GOOGLE_REFRESH_TOKEN
  GOOGLE_SPREADSHEET_ID
"""

import logging
from datetime import datetime
from typing import Dict, List, Optional

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build

from .export import to_sheet_rows
from .value import ValuedConversion

logger = logging.getLogger(__name__)

TOKEN_URI = "https://oauth2.googleapis.com/token"
SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
CONVERSIONS_RANGE = "Conversions!A:K"


def get_sheets_service(client_id: str, client_secret: str, refresh_token: str):
    """
    Build an authenticated Sheets v4 service from an OAuth refresh token.

    Returns:
        googleapiclient.discovery.Resource
    """
    credentials = Credentials(
        token=None,
        refresh_token=refresh_token,
        client_id=client_id,
        client_secret=client_secret,
        token_uri=TOKEN_URI,
        scopes=SCOPES,
    )
    return build("sheets", "v4", credentials=credentials, cache_discovery=False)


class SheetsWriter:
    """
    Appends conversion rows to a spreadsheet.

    Attributes:
        spreadsheet_id: Target spreadsheet
        range_: A1 range rows are appended to
    """

    def __init__(self, spreadsheet_id: str, service=None, range_: str = CONVERSIONS_RANGE):
        if not spreadsheet_id:
            raise ValueError("GOOGLE_SPREADSHEET_ID is not set")
        self.spreadsheet_id = spreadsheet_id
        self.service = service
        self.range_ = range_

    @classmethod
    def from_config(cls, config) -> "SheetsWriter":
        if not config.has_sheets_credentials:
            raise ValueError(
                "Google Sheets credentials missing. Set GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET, "
                "GOOGLE_REFRESH_TOKEN and GOOGLE_SPREADSHEET_ID."
            )
        service = get_sheets_service(
            config.google_client_id,
            config.google_client_secret,
            config.google_refresh_token,
        )
        return cls(config.google_spreadsheet_id, service=service)

    def append_rows(self, rows: List[List]) -> Dict:
        """
        Append rows in one request.

        Raises:
            googleapiclient.errors.HttpError: If the Sheets API rejects the write
        """
        if not rows:
            return {"rows_written": 0, "updated_range": None}

        response = self.service.spreadsheets().values().append(
            spreadsheetId=self.spreadsheet_id,
            range=self.range_,
            valueInputOption="USER_ENTERED",
            insertDataOption="INSERT_ROWS",
            body={"values": rows},
        ).execute()

        updated_range = (response.get("updates") or {}).get("updatedRange")
        logger.info(f"Wrote {len(rows)} rows to sheet {self.spreadsheet_id} ({updated_range})")
        return {"rows_written": len(rows), "updated_range": updated_range}

    def write_conversions(
        self,
        conversions: List[ValuedConversion],
        synced_at: Optional[datetime] = None,
    ) -> Dict:
        return self.append_rows(to_sheet_rows(conversions, synced_at))
