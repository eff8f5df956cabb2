"""Exception types raised by the translation syncer."""
from typing import Optional


class I18nSyncError(Exception):
    """Base class for all syncer errors."""


class ConfigurationError(I18nSyncError):
    """A required identifier (spreadsheet id, worksheet) could not be resolved."""


class NotFoundError(I18nSyncError):
    """A mandatory file, directory or remote resource does not exist."""


class WorksheetNotFoundError(NotFoundError, ConfigurationError):
    """The spreadsheet has no worksheet that could be used as a target."""


class ParseError(I18nSyncError):
    """
    Malformed translation file content.

    The label (usually the file name) is always part of the message so the
    warning logged for a skipped file points at the culprit.
    """

    def __init__(self, label: str, reason: str):
        self.label = label
        self.reason = reason
        super().__init__(f"Failed to parse {label}: {reason}")


class ExternalServiceError(I18nSyncError):
    """Failure reported by the remote spreadsheet service."""

    def __init__(self, message: str, status: Optional[int] = None, auth_failure: bool = False):
        self.status = status
        # The credentials were rejected, e.g. a revoked or malformed service account key.
        self.auth_failure = auth_failure
        super().__init__(message)
