"""Google Sheets client for the response mirror.

Thin wrapper over the Sheets v4 ``spreadsheets.values`` resource with the
three calls the sync job needs: read the first row, overwrite the first row
and append a row. Credentials come from a service account configured through
SHEETS_CLIENT_EMAIL and SHEETS_PRIVATE_KEY.
"""

from typing import Any, Optional

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build

from survey_service.config import Settings, get_settings
from survey_service.logging_config import get_logger

logger = get_logger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]
TOKEN_URI = "https://oauth2.googleapis.com/token"


class SheetsClient:
    """Read and write rows of one spreadsheet tab.

    Usage:
        client = SheetsClient(service, spreadsheet_id="abc", tab="Responses")
        header = client.read_first_row()
        client.write_header(["Submitted", "Name"])
        client.append_row(["2024-01-01T00:00:00+00:00", "Ada"])
    """

    def __init__(self, service: Any, spreadsheet_id: str, tab: str):
        """Initialize client.

        Args:
            service: Sheets v4 service from ``googleapiclient.discovery.build``
            spreadsheet_id: Target spreadsheet ID
            tab: Tab name inside the spreadsheet
        """
        self.service = service
        self.spreadsheet_id = spreadsheet_id
        self.tab = tab

    def _values(self):
        return self.service.spreadsheets().values()

    def read_first_row(self) -> list[str]:
        """Return the tab's first row (empty list when the tab is blank).

        Raises:
            googleapiclient.errors.HttpError: If the read fails
        """
        result = self._values().get(
            spreadsheetId=self.spreadsheet_id,
            range=f"{self.tab}!A1:1",
        ).execute()
        rows = result.get("values") or []
        return [str(cell) for cell in rows[0]] if rows else []

    def write_header(self, header: list[str]) -> None:
        """Overwrite the first row, starting at A1."""
        self._values().update(
            spreadsheetId=self.spreadsheet_id,
            range=f"{self.tab}!A1",
            valueInputOption="RAW",
            body={"values": [header]},
        ).execute()
        logger.info(f"Wrote sheet header ({len(header)} columns) to tab {self.tab}")

    def append_row(self, row: list[str]) -> None:
        """Append one row below the existing data."""
        self._values().append(
            spreadsheetId=self.spreadsheet_id,
            range=f"{self.tab}!A1",
            valueInputOption="RAW",
            insertDataOption="INSERT_ROWS",
            body={"values": [row]},
        ).execute()
        logger.debug(f"Appended row to tab {self.tab}")


def build_credentials(settings: Settings) -> service_account.Credentials:
    """Service-account credentials from the configured email and key."""
    info = {
        "type": "service_account",
        "client_email": settings.sheets_client_email,
        "private_key": settings.get_sheets_private_key(),
        "token_uri": TOKEN_URI,
    }
    return service_account.Credentials.from_service_account_info(info, scopes=SCOPES)


def get_sheets_client(settings: Optional[Settings] = None) -> Optional[SheetsClient]:
    """Build a client from settings.

    Returns:
        SheetsClient, or None when the sheet ID or credentials are missing
        or the private key can't be parsed
    """
    settings = settings or get_settings()

    if not settings.is_sheets_configured:
        logger.error(
            "Sheet sync is not configured: set SHEETS_ID, SHEETS_CLIENT_EMAIL "
            "and SHEETS_PRIVATE_KEY"
        )
        return None

    try:
        credentials = build_credentials(settings)
    except (ValueError, GoogleAuthError) as e:
        logger.error(f"Invalid sheet service-account credentials: {e}")
        return None

    service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
    return SheetsClient(service, settings.sheets_id, settings.sheets_tab)
