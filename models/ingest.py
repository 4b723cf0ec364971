"""
Sheet ingestion options and import summaries.

IngestOptions carries every caller decision for one sheet: where the table
starts, which columns play which role, what to exclude, and how to treat
blank-separated tables and repeated models.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, field_validator

from config.catalog import PLACEHOLDER_MODEL
from models.base import BaseSchema
from utils.text_utils import normalize_cell


class TableStrategy(str, Enum):
    """How much of a physical sheet forms the table."""
    WHOLE_SHEET = "whole_sheet"   # Every non-blank row after the header
    FIRST_BLOCK = "first_block"   # Stop at the first blank row after the header


class DuplicatePolicy(str, Enum):
    """What to do when a model repeats within one sheet."""
    KEEP = "keep"     # Emit every row
    SKIP = "skip"     # Keep the first row, skip later repeats
    MERGE = "merge"   # Fold later repeats into the first record


class IngestOptions(BaseSchema):
    """
    Caller configuration for ingesting one sheet.

    All fields optional - defaults ingest the whole sheet with heuristic
    column roles and no exclusions.
    """

    start_row: Optional[int] = Field(
        None,
        ge=1,
        description="1-based spreadsheet row holding the header (skips preamble rows)"
    )
    name_column: Optional[str] = Field(
        None,
        description="Header label or token of the model column (overrides detection)"
    )
    description_column: Optional[str] = Field(
        None,
        description="Header label or token of the description column"
    )
    price_column: Optional[str] = Field(
        None,
        description="Header label or token of the price column"
    )
    excluded_columns: list[str] = Field(
        default_factory=list,
        description="Header labels or tokens left out of details"
    )
    excluded_row_keys: list[str] = Field(
        default_factory=list,
        description="Rows whose leftmost filled cell equals one of these are skipped"
    )
    allow_placeholder_names: bool = Field(
        False,
        description="Emit rows without a model under the placeholder name instead of skipping"
    )
    placeholder_model: str = Field(
        PLACEHOLDER_MODEL,
        min_length=1,
        description="Model used for nameless rows when placeholders are allowed"
    )
    table_strategy: TableStrategy = Field(
        TableStrategy.WHOLE_SHEET,
        description="Whole sheet or first blank-separated block"
    )
    duplicate_policy: DuplicatePolicy = Field(
        DuplicatePolicy.KEEP,
        description="Handling of repeated models within the sheet"
    )
    report: bool = Field(
        False,
        description="Return per-row diagnostics for skipped rows"
    )

    @field_validator("excluded_row_keys", mode="before")
    @classmethod
    def normalize_row_keys(cls, v: Optional[list]) -> list[str]:
        """Row keys compare against normalized cells."""
        if not v:
            return []
        keys = (normalize_cell(key) for key in v)
        return [key for key in keys if key]

    @field_validator("excluded_columns", mode="before")
    @classmethod
    def drop_blank_columns(cls, v: Optional[list]) -> list[str]:
        if not v:
            return []
        return [str(col).strip() for col in v if col is not None and str(col).strip()]


class SheetImportSummary(BaseSchema):
    """Outcome of ingesting and persisting one sheet."""

    sheet: str
    processed: int = Field(0, ge=0, description="Data rows examined")
    skipped: int = Field(0, ge=0, description="Data rows not emitted")
    inserted: int = Field(0, ge=0, description="Records written to the store")
    deleted: int = Field(0, ge=0, description="Records removed by sheet replacement")
    alerts: list[str] = Field(default_factory=list)
    diagnostics: list[dict] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if the sheet was persisted without alerts."""
        return not self.alerts
