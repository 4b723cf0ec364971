"""
Pydantic models for validation and serialization.
"""

from models.base import (
    BaseSchema,
    TimestampMixin,
    PaginationParams,
    Pagination
)
from models.product import (
    DetailValue,
    ProductCreate,
    ProductResponse,
    SheetSummary,
    to_detail_value
)
from models.ingest import (
    TableStrategy,
    DuplicatePolicy,
    IngestOptions,
    SheetImportSummary
)
from models.search import (
    SortMode,
    SearchResult
)

__all__ = [
    # Base
    "BaseSchema",
    "TimestampMixin",
    "PaginationParams",
    "Pagination",

    # Product
    "DetailValue",
    "ProductCreate",
    "ProductResponse",
    "SheetSummary",
    "to_detail_value",

    # Ingest
    "TableStrategy",
    "DuplicatePolicy",
    "IngestOptions",
    "SheetImportSummary",

    # Search
    "SortMode",
    "SearchResult",
]
