"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the first remote backend because:
1. Users can inspect their own data directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)

Every document lives as one row of a single worksheet:

    collection | id | data_json | updated_at

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions; the engine writes one document at a time in order
- Every read scans the sheet (we filter in Python)

Only the connection bootstrap is retried. Document operations are
attempt-once: failures surface as StorageError to the caller.
"""

import json
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from payplanner.config import StorageSettings, get_settings
from payplanner.services.storage.interface import (
    DocumentStore,
    NotFoundError,
    Record,
    StorageConnectionError,
    StorageError,
)


DOCUMENT_COLUMNS = [
    "collection",
    "id",
    "data_json",
    "updated_at",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for connecting.
    """

    def __init__(self, settings: Optional[StorageSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().storage

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
                raise StorageConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise StorageConnectionError(f"Failed to connect to Google Sheets: {e}")

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
                raise StorageConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_documents_sheet(self) -> gspread.Worksheet:
        """Get or create the Documents worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.documents_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.documents_sheet_name,
                rows=1000,
                cols=len(DOCUMENT_COLUMNS),
            )
            sheet.append_row(DOCUMENT_COLUMNS)
        return sheet


class GoogleSheetsDocumentStore(DocumentStore):
    """
    Google Sheets implementation of the document store.

    Document fields are JSON-serialized into a single cell.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _rows(self) -> tuple[gspread.Worksheet, list[list[str]]]:
        sheet = self._client.get_documents_sheet()
        return sheet, sheet.get_all_values()

    @staticmethod
    def _to_row(collection_path: str, document_id: str, fields: Record) -> list:
        data = {key: value for key, value in fields.items() if key != "id"}
        return [
            collection_path,
            document_id,
            json.dumps(data, default=str),
            datetime.now(timezone.utc).isoformat(),
        ]

    @staticmethod
    def _to_record(row: list[str]) -> Record:
        data = json.loads(row[2]) if len(row) > 2 and row[2] else {}
        return {**data, "id": row[1]}

    @staticmethod
    def _find_row(rows: list[list[str]], collection_path: str, document_id: str) -> Optional[int]:
        """1-based sheet row index of a document (row 1 is the header)."""
        for idx, row in enumerate(rows[1:], start=2):
            if len(row) > 1 and row[0] == collection_path and row[1] == document_id:
                return idx
        return None

    async def list_all(self, collection_path: str) -> list[Record]:
        try:
            _, rows = self._rows()
            return [
                self._to_record(row)
                for row in rows[1:]
                if len(row) > 1 and row[0] == collection_path
            ]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to list {collection_path}: {e}")

    async def create(self, collection_path: str, fields: Record) -> str:
        document_id = uuid4().hex[:20]
        try:
            sheet = self._client.get_documents_sheet()
            sheet.append_row(
                self._to_row(collection_path, document_id, fields),
                value_input_option="RAW",
            )
            return document_id
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to create document in {collection_path}: {e}")

    async def get(self, collection_path: str, document_id: str) -> Optional[Record]:
        try:
            _, rows = self._rows()
            idx = self._find_row(rows, collection_path, document_id)
            if idx is None:
                return None
            return self._to_record(rows[idx - 1])
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to get {collection_path}/{document_id}: {e}")

    async def update(self, collection_path: str, document_id: str, fields: Record) -> None:
        try:
            sheet, rows = self._rows()
            idx = self._find_row(rows, collection_path, document_id)
            if idx is None:
                raise NotFoundError(f"Document not found: {collection_path}/{document_id}")

            merged = {**self._to_record(rows[idx - 1]), **fields}
            sheet.update(
                range_name=f"A{idx}:D{idx}",
                values=[self._to_row(collection_path, document_id, merged)],
                value_input_option="RAW",
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {collection_path}/{document_id}: {e}")

    async def delete(self, collection_path: str, document_id: str) -> None:
        try:
            sheet, rows = self._rows()
            idx = self._find_row(rows, collection_path, document_id)
            if idx is not None:
                sheet.delete_rows(idx)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to delete {collection_path}/{document_id}: {e}")

    async def set(self, collection_path: str, document_id: str, fields: Record) -> None:
        try:
            sheet, rows = self._rows()
            row = self._to_row(collection_path, document_id, fields)
            idx = self._find_row(rows, collection_path, document_id)
            if idx is None:
                sheet.append_row(row, value_input_option="RAW")
            else:
                sheet.update(range_name=f"A{idx}:D{idx}", values=[row], value_input_option="RAW")
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to set {collection_path}/{document_id}: {e}")
