"""
Product record schemas for validation and serialization.

A product record is one normalized price-list row: the sheet it came from,
its position in that sheet, a display model name, optional description and
price, and a flat mapping of every other column.
"""

import math
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import Field, field_validator

from models.base import BaseSchema, TimestampMixin

# Detail values are always scalars
DetailValue = Union[int, float, str]


def to_detail_value(value: Any) -> Optional[DetailValue]:
    """
    Flatten a raw value into a scalar detail value.

    - None, NaN and blank strings -> None (caller drops the key)
    - bool -> "True"/"False"
    - int/float/Decimal -> number
    - list/tuple/set -> comma-joined string of their non-empty parts
    - dict -> "key: value" pairs joined with commas
    - anything else -> str()
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, int):
        return value
    if isinstance(value, (float, Decimal)):
        number = float(value)
        if math.isnan(number) or math.isinf(number):
            return None
        return int(number) if number.is_integer() else number
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (list, tuple, set)):
        parts = [to_detail_value(v) for v in value]
        joined = ", ".join(str(p) for p in parts if p is not None)
        return joined or None
    if isinstance(value, dict):
        pairs = []
        for key, inner in value.items():
            flat = to_detail_value(inner)
            if flat is not None:
                pairs.append(f"{key}: {flat}")
        return ", ".join(pairs) or None
    return str(value).strip() or None


class ProductCreate(BaseSchema):
    """
    Normalized product record ready for insertion.

    Required: sheet, row_index, model
    Optional: description, price, details
    """

    sheet: str = Field(
        ...,
        min_length=1,
        description="Source sheet / category name",
        examples=["Office Chairs"]
    )
    row_index: int = Field(
        ...,
        ge=1,
        description="1-based position within the sheet at ingestion time"
    )
    model: str = Field(
        ...,
        min_length=1,
        description="Display name / model identifier",
        examples=["Chair-100"]
    )
    description: Optional[str] = Field(
        None,
        description="Free-text description"
    )
    price: Optional[int] = Field(
        None,
        description="Price in the smallest currency unit"
    )
    details: dict[str, DetailValue] = Field(
        default_factory=dict,
        description="Every other column: cleaned header -> scalar value"
    )

    @field_validator("description", mode="before")
    @classmethod
    def blank_description_is_none(cls, v: Any) -> Optional[str]:
        """Blank descriptions are stored as absent."""
        if v is None:
            return None
        v = str(v).strip()
        return v or None

    @field_validator("details", mode="before")
    @classmethod
    def flatten_details(cls, v: Any) -> dict:
        """Details hold only non-empty scalar values."""
        if not v:
            return {}
        flat = {}
        for key, value in dict(v).items():
            scalar = to_detail_value(value)
            if scalar is not None:
                flat[str(key)] = scalar
        return flat

    def to_row(self) -> dict:
        """Convert to the column dict sent to the store."""
        return self.model_dump()


class ProductResponse(ProductCreate, TimestampMixin):
    """
    Persisted product record.

    `id` increases with insertion order and doubles as the recency key.
    """

    id: int = Field(..., description="Auto-increment record id")


class SheetSummary(BaseSchema):
    """Sheet name with its stored product count."""

    sheet: str
    count: int = Field(..., ge=0)
