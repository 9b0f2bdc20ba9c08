"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the default backend because:
1. Users can look at their grids and totals directly in Sheets
2. No database setup required
3. Easy to export/migrate later

TRADEOFFS:
- No transactions (writers rebuild whole tables instead)
- Limited query capabilities (we compute in Python)

Each table is one worksheet; the worksheet title is the table id.
"""

from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import (
    retry,
    retry_if_not_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from habit_tracker.config import GoogleSheetsSettings, get_settings
from habit_tracker.services.storage.interface import (
    ConnectionError,
    Row,
    StorageError,
    TableNotFoundError,
    TabularStore,
)


SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]

# Missing worksheets will not appear on a retry
_sheets_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    retry=retry_if_not_exception_type(TableNotFoundError),
    reraise=True,
)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and caches the opened spreadsheet.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """Authenticate with the service account credentials."""
        if self._client is None:
            try:
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=SCOPES,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(self._settings.spreadsheet_id)
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str) -> gspread.Worksheet:
        try:
            return self.get_spreadsheet().worksheet(title)
        except gspread.WorksheetNotFound:
            raise TableNotFoundError(f"Worksheet not found: {title}")


class GoogleSheetsTabularStore(TabularStore):
    """
    TabularStore backed by worksheets of one spreadsheet.

    Values are written RAW so status symbols and numbers are stored
    exactly as given, never interpreted as formulas.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    @_sheets_retry
    def read_rows(self, range_id: str) -> list[Row]:
        sheet = self._client.get_worksheet(range_id)
        try:
            return sheet.get_all_values()
        except Exception as e:
            raise StorageError(f"Failed to read {range_id}: {e}")

    @_sheets_retry
    def write_rows(self, range_id: str, rows: list[list]) -> None:
        sheet = self._client.get_worksheet(range_id)
        try:
            sheet.clear()
            if not rows:
                return
            width = max(len(row) for row in rows)
            sheet.resize(rows=len(rows), cols=width)
            sheet.update(
                values=[list(row) for row in rows],
                range_name="A1",
                value_input_option="RAW",
            )
        except Exception as e:
            raise StorageError(f"Failed to write {range_id}: {e}")

    @_sheets_retry
    def append_row(self, table_id: str, row: list) -> None:
        sheet = self._client.get_worksheet(table_id)
        try:
            sheet.append_row(list(row), value_input_option="RAW")
        except Exception as e:
            raise StorageError(f"Failed to append to {table_id}: {e}")

    @_sheets_retry
    def list_tables(self) -> list[str]:
        try:
            return [sheet.title for sheet in self._client.get_spreadsheet().worksheets()]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list worksheets: {e}")

    def create_table(self, table_id: str, header: list[str]) -> None:
        if self.table_exists(table_id):
            raise StorageError(f"Worksheet already exists: {table_id}")
        self._create_worksheet(table_id, header)

    @_sheets_retry
    def _create_worksheet(self, table_id: str, header: list[str]) -> None:
        # A failed attempt may already have added the worksheet
        spreadsheet = self._client.get_spreadsheet()
        try:
            try:
                sheet = spreadsheet.worksheet(table_id)
            except gspread.WorksheetNotFound:
                sheet = spreadsheet.add_worksheet(
                    title=table_id,
                    rows=100,
                    cols=max(len(header), 1),
                )
            sheet.update(
                values=[list(header)],
                range_name="A1",
                value_input_option="RAW",
            )
            sheet.freeze(rows=1)
        except Exception as e:
            raise StorageError(f"Failed to create worksheet {table_id}: {e}")

    @_sheets_retry
    def delete_table(self, table_id: str) -> None:
        sheet = self._client.get_worksheet(table_id)
        try:
            self._client.get_spreadsheet().del_worksheet(sheet)
        except Exception as e:
            raise StorageError(f"Failed to delete worksheet {table_id}: {e}")
