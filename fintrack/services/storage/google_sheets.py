"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets can back the key/value store because:
1. Users can look at (and back up) their records directly in Sheets
2. No database setup required
3. A personal ledger is a handful of records, well within Sheets limits

TRADEOFFS:
- One cell holds one record, so a record is capped at ~50k characters
- No transactions (the stores order their writes instead)
- Every read scans the key column (fine for a few dozen keys)

The implementation follows the abstract interface, so the stores and the
ledger never know which backend they run on.
"""

from datetime import datetime
from typing import Optional

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from fintrack.config import get_settings
from fintrack.services.storage.interface import (
    ConnectionError,
    KeyValueStore,
    StorageError,
)


# Column layout of the records worksheet
RECORD_COLUMNS = [
    "key",
    "value",
    "updated_at",
]

# Google Sheets rejects cells longer than this
MAX_CELL_CHARS = 50000


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
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
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_records_sheet(self) -> gspread.Worksheet:
        """Get or create the key/value worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.records_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.records_sheet_name,
                rows=100,
                cols=len(RECORD_COLUMNS),
            )
            sheet.append_row(RECORD_COLUMNS)
        return sheet


class GoogleSheetsKeyValueStore(KeyValueStore):
    """
    Google Sheets implementation of the key/value store.

    Each record is one row: key, UTF-8 value text, last update timestamp.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _find_row(self, sheet: gspread.Worksheet, key: str) -> Optional[tuple[int, list]]:
        """Return (1-based row index, row values) for a key, skipping the header."""
        for idx, row in enumerate(sheet.get_all_values()[1:], start=2):
            if row and row[0] == key:
                return idx, row
        return None

    async def get(self, key: str) -> Optional[bytes]:
        """Read a record's value."""
        try:
            sheet = self._client.get_records_sheet()
            found = self._find_row(sheet, key)
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read {key}: {e}")

        if found is None:
            return None
        _, row = found
        value = row[1] if len(row) > 1 else ""
        return value.encode("utf-8")

    async def set(self, key: str, value: bytes) -> None:
        """Insert or replace a record."""
        text = value.decode("utf-8")
        if len(text) > MAX_CELL_CHARS:
            raise StorageError(
                f"Record {key} is {len(text)} characters; Sheets cells hold {MAX_CELL_CHARS}"
            )
        self._write_row([key, text, datetime.utcnow().isoformat()])

    @retry(
        retry=retry_if_exception_type(StorageError),
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def _write_row(self, row: list) -> None:
        key = row[0]
        try:
            sheet = self._client.get_records_sheet()
            found = self._find_row(sheet, key)
            if found is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                idx, _ = found
                sheet.update(
                    range_name=f"A{idx}:C{idx}",
                    values=[row],
                    value_input_option="RAW",
                )
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write {key}: {e}")

    async def remove(self, key: str) -> None:
        """Delete a record's row if present."""
        try:
            sheet = self._client.get_records_sheet()
            found = self._find_row(sheet, key)
            if found is not None:
                idx, _ = found
                sheet.delete_rows(idx)
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to remove {key}: {e}")
