"""
Custom exceptions module.
"""

from exceptions.errors import (
    # Base exceptions
    AppError,
    NotFoundError,
    ValidationError,
    DatabaseError,

    # Catalog
    SheetNotFoundError,
    InvalidSheetNameError,

    # Search
    InvalidSearchQueryError,

    # Excel parser
    ExcelParseError,
)

__all__ = [
    # Base
    "AppError",
    "NotFoundError",
    "ValidationError",
    "DatabaseError",

    # Catalog
    "SheetNotFoundError",
    "InvalidSheetNameError",

    # Search
    "InvalidSearchQueryError",

    # Excel parser
    "ExcelParseError",
]
