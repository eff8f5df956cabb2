"""
Google Sheets client.

Authenticates with a service account key file and exposes the three
worksheet operations the syncer needs: list, read everything, replace
everything.
"""
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from i18n_syncer.errors import ConfigurationError, ExternalServiceError, NotFoundError

logger = logging.getLogger(__name__)

# Read and write access is needed for push.
SCOPES = ['https://www.googleapis.com/auth/spreadsheets']


@dataclass(frozen=True)
class Worksheet:
    """One tab of the spreadsheet."""
    title: str
    sheet_id: int


def worksheet_range(title: str, cell: Optional[str] = None) -> str:
    """
    Build an A1 range for a worksheet, quoting the title.

    A bare quoted title addresses every row and column of the worksheet.
    """
    quoted = "'" + title.replace("'", "''") + "'"
    return f"{quoted}!{cell}" if cell else quoted


def _wrap_http_error(action: str, error: HttpError) -> ExternalServiceError:
    status = getattr(error.resp, 'status', None)
    try:
        status = int(status) if status is not None else None
    except (TypeError, ValueError):
        status = None
    return ExternalServiceError(f"Google Sheets API error while {action}: {error}", status=status)


def _wrap_auth_error(action: str, error: GoogleAuthError) -> ExternalServiceError:
    return ExternalServiceError(f"Google authorization failed while {action}: {error}", auth_failure=True)


class GoogleSheetsClient:
    """Google Sheets API v4 client bound to one spreadsheet."""

    def __init__(self, spreadsheet_id: str, credentials_path: str = './credentials.json'):
        if not spreadsheet_id:
            raise ConfigurationError("Spreadsheet ID is required")
        if not os.path.exists(credentials_path):
            raise NotFoundError(f"Credentials file not found at: {credentials_path}")
        self.spreadsheet_id = spreadsheet_id
        self.credentials_path = credentials_path
        self.service = None

    def initialize(self) -> 'GoogleSheetsClient':
        """Load the service account credentials and build the API service."""
        if self.service is not None:
            return self
        try:
            credentials = service_account.Credentials.from_service_account_file(
                self.credentials_path, scopes=SCOPES
            )
        except (ValueError, GoogleAuthError) as e:
            raise ExternalServiceError(f"Could not load Google credentials from {self.credentials_path}: {e}",
                                       auth_failure=True) from e
        self.service = build('sheets', 'v4', credentials=credentials, cache_discovery=False)
        logger.info("Google Sheets API authorization successful")
        return self

    def _spreadsheets(self):
        if self.service is None:
            self.initialize()
        return self.service.spreadsheets()

    def list_worksheets(self) -> List[Worksheet]:
        """Return the worksheets of the spreadsheet in tab order."""
        try:
            result = self._spreadsheets().get(
                spreadsheetId=self.spreadsheet_id,
                fields='sheets.properties(title,sheetId)'
            ).execute()
        except HttpError as error:
            logger.error("Error fetching worksheet list: %s", error)
            raise _wrap_http_error("fetching the worksheet list", error) from error
        except GoogleAuthError as error:
            logger.error("Authorization failed while fetching worksheet list: %s", error)
            raise _wrap_auth_error("fetching the worksheet list", error) from error

        return [
            Worksheet(title=sheet['properties']['title'], sheet_id=sheet['properties'].get('sheetId', 0))
            for sheet in result.get('sheets', [])
        ]

    def get_all_rows(self, worksheet_name: str) -> List[List[str]]:
        """Return every row of a worksheet. Trailing empty cells are omitted by the API."""
        try:
            result = self._spreadsheets().values().get(
                spreadsheetId=self.spreadsheet_id,
                range=worksheet_range(worksheet_name)
            ).execute()
        except HttpError as error:
            logger.error("Error fetching data from worksheet '%s': %s", worksheet_name, error)
            raise _wrap_http_error(f"reading worksheet '{worksheet_name}'", error) from error
        except GoogleAuthError as error:
            logger.error("Authorization failed while reading worksheet '%s': %s", worksheet_name, error)
            raise _wrap_auth_error(f"reading worksheet '{worksheet_name}'", error) from error

        rows = result.get('values', [])
        if not rows:
            logger.info("No data found in worksheet '%s'", worksheet_name)
        return rows

    def replace_all_rows(self, worksheet_name: str, rows: Sequence[Sequence[str]]) -> Dict[str, Any]:
        """Clear a worksheet, then write the rows starting at A1."""
        values = [list(row) for row in rows]
        try:
            self._spreadsheets().values().clear(
                spreadsheetId=self.spreadsheet_id,
                range=worksheet_range(worksheet_name),
                body={}
            ).execute()
            result = self._spreadsheets().values().update(
                spreadsheetId=self.spreadsheet_id,
                range=worksheet_range(worksheet_name, 'A1'),
                valueInputOption='RAW',
                body={'values': values}
            ).execute()
        except HttpError as error:
            logger.error("Error clearing and updating worksheet '%s': %s", worksheet_name, error)
            raise _wrap_http_error(f"replacing worksheet '{worksheet_name}'", error) from error
        except GoogleAuthError as error:
            logger.error("Authorization failed while updating worksheet '%s': %s", worksheet_name, error)
            raise _wrap_auth_error(f"replacing worksheet '{worksheet_name}'", error) from error

        logger.info("Updated %s cells in worksheet '%s'", result.get('updatedCells', 0), worksheet_name)
        return result
