"""
Search request and response schemas.
"""

from enum import Enum
from typing import Optional, Union

from pydantic import Field

from models.base import BaseSchema, Pagination
from models.product import ProductResponse


class SortMode(str, Enum):
    """Result orderings for product search."""
    RELEVANCE = "relevance"
    PRICE_ASC = "price_asc"
    PRICE_DESC = "price_desc"
    NEWEST = "newest"

    @classmethod
    def parse(cls, value: Union["SortMode", str, None]) -> "SortMode":
        """Unknown or missing sort values fall back to relevance."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.RELEVANCE


class SearchResult(BaseSchema):
    """One page of search results."""

    query: str
    sheet: Optional[str] = None
    sort: SortMode = SortMode.RELEVANCE
    records: list[ProductResponse] = Field(default_factory=list)
    scores: list[int] = Field(
        default_factory=list,
        description="Relevance score of each record, same order as records"
    )
    pagination: Pagination

    def to_dict(self) -> dict:
        """Convert to API response format."""
        return {
            "query": self.query,
            "sheet": self.sheet,
            "sort": self.sort.value,
            "data": [r.model_dump(mode="json") for r in self.records],
            "pagination": self.pagination.model_dump(by_alias=True),
        }
