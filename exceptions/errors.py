"""
Custom exception classes for the application.

Row-level ingestion problems are never raised; they are reported as
skipped rows and alerts. These exceptions cover caller-facing failures.
"""

from typing import Optional, Any
from datetime import datetime, timezone


class AppError(Exception):
    """
    Base exception for all application errors.

    All custom exceptions inherit from this.

    Attributes:
        code: Error code (e.g., "SHEET_NOT_FOUND")
        message: Human-readable message
        status_code: HTTP status code
        details: Additional context
    """

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 500,
        details: Optional[dict[str, Any]] = None
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
                "timestamp": self.timestamp
            }
        }


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(
        self,
        resource: str,
        identifier: str,
        code: Optional[str] = None
    ):
        super().__init__(
            code=code or f"{resource.upper()}_NOT_FOUND",
            message=f"{resource} not found",
            status_code=404,
            details={"id": identifier}
        )


class ValidationError(AppError):
    """Validation failed (422)."""

    def __init__(
        self,
        message: str,
        code: str = "VALIDATION_ERROR",
        details: Optional[dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            status_code=422,
            details=details
        )


class DatabaseError(AppError):
    """Database operation failed (500)."""

    def __init__(
        self,
        operation: str,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="DATABASE_ERROR",
            message=f"Database {operation} failed: {message}",
            status_code=500,
            details={"operation": operation, **(details or {})}
        )


# ===================
# CATALOG ERRORS
# ===================

class SheetNotFoundError(NotFoundError):
    """No products stored under this sheet name."""

    def __init__(self, sheet: str):
        super().__init__(
            resource="Sheet",
            identifier=sheet,
            code="SHEET_NOT_FOUND"
        )


class InvalidSheetNameError(ValidationError):
    """Sheet name is missing or blank."""

    def __init__(self, sheet: Optional[str]):
        super().__init__(
            code="SHEET_NAME_REQUIRED",
            message="Sheet name is required",
            details={"provided": sheet}
        )


# ===================
# SEARCH ERRORS
# ===================

class InvalidSearchQueryError(ValidationError):
    """Search query has no terms."""

    def __init__(self, query: Optional[str]):
        super().__init__(
            code="SEARCH_QUERY_REQUIRED",
            message='Query "q" is required and must contain at least one term (e.g. "chair")',
            details={"provided": query}
        )


# ===================
# EXCEL PARSER ERRORS
# ===================

class ExcelParseError(ValidationError):
    """Excel file parsing failed."""

    def __init__(
        self,
        message: str,
        details: Optional[dict] = None
    ):
        super().__init__(
            code="EXCEL_PARSE_ERROR",
            message=message,
            details=details
        )
