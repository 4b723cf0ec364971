"""
Business logic services.

Each service handles one domain area.
"""

from services.product_service import ProductService, get_product_service
from services.ingestion_service import IngestionService, get_ingestion_service
from services.search_service import (
    SearchTerm,
    escape_like,
    parse_query,
    score_record,
    search_records,
)

__all__ = [
    "ProductService",
    "get_product_service",
    "IngestionService",
    "get_ingestion_service",
    "SearchTerm",
    "escape_like",
    "parse_query",
    "score_record",
    "search_records",
]
