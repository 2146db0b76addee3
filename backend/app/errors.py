"""
Error types surfaced by the grants API.

Every error carries the HTTP status it maps to; the application renders
them as ``{"error": message}`` bodies.
"""


class GrantsAPIError(Exception):
    """Base class for errors returned to API callers."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class UploadRejectedError(GrantsAPIError):
    """Upload refused before any processing (missing file, wrong type, too large)."""

    status_code = 400


class CsvParseError(GrantsAPIError):
    """The uploaded file could not be decoded or parsed as CSV."""

    status_code = 400


class IngestError(GrantsAPIError):
    """A row failed to load; the batch was rolled back."""

    status_code = 500


class QueryError(GrantsAPIError):
    """An aggregation query failed."""

    status_code = 500


class InvalidParameterError(GrantsAPIError):
    status_code = 400


class UnknownProgramError(GrantsAPIError):
    status_code = 404
