"""
Base schemas and mixins for all models.
"""

import math

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional

from config.catalog import DEFAULT_PER_PAGE, MAX_PER_PAGE


class BaseSchema(BaseModel):
    """
    Base for all schemas.

    Features:
        - Auto-trim whitespace from strings
        - Validate on attribute assignment
        - Allow ORM objects (from_attributes)
    """
    model_config = ConfigDict(
        from_attributes=True,
        str_strip_whitespace=True,
        validate_assignment=True
    )


class TimestampMixin(BaseModel):
    """Add timestamps to response models."""
    created_at: datetime
    updated_at: Optional[datetime] = None


class PaginationParams(BaseModel):
    """Standard pagination parameters."""
    page: int = 1
    per_page: int = DEFAULT_PER_PAGE

    @classmethod
    def clamped(cls, page: Optional[int] = None, per_page: Optional[int] = None) -> "PaginationParams":
        """Build params with page >= 1 and per_page within [1, MAX_PER_PAGE]."""
        page = 1 if page is None else int(page)
        per_page = DEFAULT_PER_PAGE if per_page is None else int(per_page)
        return cls(
            page=max(1, page),
            per_page=max(1, min(MAX_PER_PAGE, per_page))
        )

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.per_page

    @property
    def limit(self) -> int:
        return self.per_page


class Pagination(BaseModel):
    """
    Pagination metadata for one page of results.

    `from`/`to` are 1-based item positions of the page bounds; both are
    None when the page holds no items (empty result or page past the end).
    """
    model_config = ConfigDict(populate_by_name=True)

    current_page: int
    last_page: int
    per_page: int
    total: int
    from_: Optional[int] = Field(None, alias="from")
    to: Optional[int] = None
    has_more_pages: bool = False

    @classmethod
    def create(cls, total: int, params: PaginationParams) -> "Pagination":
        """Create pagination metadata from a total count and page params."""
        last_page = max(1, math.ceil(total / params.per_page))
        first_item = params.offset + 1
        has_items = first_item <= total
        return cls(
            current_page=params.page,
            last_page=last_page,
            per_page=params.per_page,
            total=total,
            from_=first_item if has_items else None,
            to=min(params.page * params.per_page, total) if has_items else None,
            has_more_pages=params.page < last_page
        )
