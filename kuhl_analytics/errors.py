"""
Error Types

Domain exceptions raised by the import pipeline and the record store.
The HTTP layer maps each ErrorKind onto a status code.
"""

from enum import Enum
from typing import Optional


class ErrorKind(str, Enum):
    """Classification of pipeline failures"""
    FILE_NOT_FOUND = "file_not_found"
    PARSE_ERROR = "parse_error"
    PARTIAL_IMPORT_FAILURE = "partial_import_failure"
    STORE_UNAVAILABLE = "store_unavailable"


class DashboardError(Exception):
    """Base class for all domain errors"""

    kind: ErrorKind = ErrorKind.PARSE_ERROR
    status_code: int = 400

    def __init__(self, message: str, detail: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> dict:
        return {
            "success": False,
            "error": self.message,
            "kind": self.kind.value,
            **({"detail": self.detail} if self.detail else {}),
        }


class SourceFileNotFound(DashboardError):
    """An explicitly requested workbook does not exist"""
    kind = ErrorKind.FILE_NOT_FOUND
    status_code = 404


class ParseError(DashboardError):
    """An upload could not be read or the request body is unusable"""
    kind = ErrorKind.PARSE_ERROR
    status_code = 400


class PartialImportFailure(DashboardError):
    """
    A chunk failed while applying an import.

    The surrounding transaction has been rolled back, so the store still
    holds the pre-import state.
    """
    kind = ErrorKind.PARTIAL_IMPORT_FAILURE
    status_code = 500


class StoreUnavailable(DashboardError):
    """The database cannot be reached"""
    kind = ErrorKind.STORE_UNAVAILABLE
    status_code = 503
