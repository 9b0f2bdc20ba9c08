"""
Tests for the Google Sheets store against fake gspread objects.
"""

import gspread
import pytest
from tenacity import wait_none

from habit_tracker.services.storage import GoogleSheetsTabularStore, StorageError


class FakeWorksheet:

    def __init__(self, title, failing_updates=0):
        self.title = title
        self.values = []
        self.frozen_rows = 0
        self._failing_updates = failing_updates

    def update(self, values, range_name, value_input_option):
        if self._failing_updates:
            self._failing_updates -= 1
            raise RuntimeError("503 backend unavailable")
        self.values = [list(row) for row in values]

    def freeze(self, rows):
        self.frozen_rows = rows


class FakeSpreadsheet:

    def __init__(self, failing_updates=0):
        self.sheets = {}
        self.added = 0
        self._failing_updates = failing_updates

    def worksheets(self):
        return list(self.sheets.values())

    def worksheet(self, title):
        try:
            return self.sheets[title]
        except KeyError:
            raise gspread.WorksheetNotFound(title) from None

    def add_worksheet(self, title, rows, cols):
        if title in self.sheets:
            raise RuntimeError(f'A sheet with the name "{title}" already exists')
        self.added += 1
        sheet = FakeWorksheet(title, self._failing_updates)
        self.sheets[title] = sheet
        return sheet


class FakeClient:

    def __init__(self, spreadsheet):
        self._spreadsheet = spreadsheet

    def get_spreadsheet(self):
        return self._spreadsheet


@pytest.fixture(autouse=True)
def no_retry_wait(monkeypatch):
    monkeypatch.setattr(GoogleSheetsTabularStore._create_worksheet.retry, "wait", wait_none())


class TestCreateTable:

    def test_creates_worksheet_with_header(self):
        spreadsheet = FakeSpreadsheet()
        store = GoogleSheetsTabularStore(FakeClient(spreadsheet))
        store.create_table("Summary View", ["User", "Month"])
        sheet = spreadsheet.sheets["Summary View"]
        assert sheet.values == [["User", "Month"]]
        assert sheet.frozen_rows == 1

    def test_retry_reuses_worksheet_from_failed_attempt(self):
        """The header write fails once; the retry fills in the same worksheet."""
        spreadsheet = FakeSpreadsheet(failing_updates=1)
        store = GoogleSheetsTabularStore(FakeClient(spreadsheet))
        store.create_table("Tracking Feb2024", ["User", "Habit"])
        assert spreadsheet.added == 1
        assert spreadsheet.sheets["Tracking Feb2024"].values == [["User", "Habit"]]

    def test_existing_table_rejected(self):
        spreadsheet = FakeSpreadsheet()
        store = GoogleSheetsTabularStore(FakeClient(spreadsheet))
        store.create_table("Audit Log", ["event_id"])
        with pytest.raises(StorageError, match="already exists"):
            store.create_table("Audit Log", ["event_id"])
        assert spreadsheet.added == 1

    def test_persistent_failure_raises_storage_error(self):
        spreadsheet = FakeSpreadsheet(failing_updates=5)
        store = GoogleSheetsTabularStore(FakeClient(spreadsheet))
        with pytest.raises(StorageError, match="503"):
            store.create_table("User Habits", ["User"])
        assert spreadsheet.added == 1
