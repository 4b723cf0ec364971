"""
Row projector: one spreadsheet row to one product record.

Price lists often write a value once (a merged cell, a section price, a
series name) and leave it blank for the rows below. CarryState remembers
the last non-empty value of every column for the whole sheet so blank
cells inherit it. One CarryState belongs to one ingestion run of one
sheet; it is created by the sheet ingestor and passed into every call.

Projection never raises. Rows that cannot produce a record come back as
a skip with a reason.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional, Sequence

import pydantic
import structlog

from config.catalog import DESCRIPTION_MIN_LENGTH, PLACEHOLDER_MODEL
from models.product import ProductCreate
from parsers.header_classifier import HeaderLayout
from parsers.price_parser import parse_price
from utils.text_utils import normalize_cell, normalize_header_token

logger = structlog.get_logger(__name__)


class SkipReason(str, Enum):
    """Why a data row produced no record."""
    EMPTY_ROW = "empty_row"
    EXCLUDED_ROW = "excluded_row"
    UNPARSEABLE_HEADER = "unparseable_header"
    MISSING_MODEL = "missing_model"
    DUPLICATE_MODEL = "duplicate_model"
    INVALID_RECORD = "invalid_record"


@dataclass
class CarryState:
    """Last non-empty value seen per column token, top to bottom.

    The raw cell is kept next to its normalized text so a carried price
    resolves exactly as it did on the row that set it.
    """
    values: dict[str, str] = field(default_factory=dict)
    raw: dict[str, Any] = field(default_factory=dict)

    def update(self, token: str, value: str, raw: Any = None) -> None:
        if value:
            self.values[token] = value
            self.raw[token] = value if raw is None else raw

    def get(self, token: Optional[str]) -> str:
        if token is None:
            return ""
        return self.values.get(token, "")

    def get_raw(self, token: Optional[str]) -> Any:
        if token is None:
            return None
        return self.raw.get(token)


@dataclass
class ProjectedRow:
    """A projected record, or the reason the row was skipped."""
    record: Optional[ProductCreate] = None
    skip_reason: Optional[SkipReason] = None
    row_key: str = ""
    message: Optional[str] = None

    @property
    def skipped(self) -> bool:
        return self.record is None


class ColumnExclusions:
    """Excluded columns, matched by header label (any case) or token."""

    def __init__(self, references: Iterable[str] = ()):
        references = list(references)
        self.labels = {normalize_cell(r).casefold() for r in references}
        self.tokens = {normalize_header_token(r) for r in references}
        self.labels.discard("")
        self.tokens.discard("")

    def __contains__(self, column) -> bool:
        return column.label.casefold() in self.labels or column.token in self.tokens


def project_row(
    row: Sequence[Any],
    layout: HeaderLayout,
    carry: CarryState,
    sheet: str,
    row_index: int,
    excluded_columns: Optional[ColumnExclusions] = None,
    excluded_row_keys: Iterable[str] = (),
    allow_placeholder_names: bool = False,
    placeholder_model: str = PLACEHOLDER_MODEL,
) -> ProjectedRow:
    """
    Project one data row through the sheet's column layout.

    Steps:
        1. Skip rows where every cell is empty
        2. Skip rows whose leftmost filled cell is an excluded row key
        3. Carry every non-empty mapped cell down
        4. model: cell, else carried value, else placeholder or skip
        5. description: cell, else carried value, else first long cell
        6. price: parse_price(raw cell or carried raw cell)
        7. details: every other mapped, non-excluded column (cell or carried)
        8. Emit the record at row_index

    Args:
        row: Raw cells of the data row
        layout: Column roles from classify_header or simple_layout
        carry: Sheet-wide carry-down state (mutated)
        sheet: Sheet name stamped on the record
        row_index: 1-based position among emitted rows of the sheet
        excluded_columns: Columns left out of details
        excluded_row_keys: Normalized row keys to skip
        allow_placeholder_names: Emit nameless rows under placeholder_model
        placeholder_model: Model used for nameless rows

    Returns:
        ProjectedRow with a record or a skip reason
    """
    cells = [normalize_cell(c) for c in row]
    excluded_columns = excluded_columns or ColumnExclusions()

    def cell(index: Optional[int]) -> str:
        if index is None or index >= len(cells):
            return ""
        return cells[index]

    # 1. Blank rows
    if not any(cells):
        return ProjectedRow(skip_reason=SkipReason.EMPTY_ROW)

    # 2. Row exclusions use the leftmost filled cell
    row_key = next(c for c in cells if c)
    if row_key in set(excluded_row_keys):
        return ProjectedRow(skip_reason=SkipReason.EXCLUDED_ROW, row_key=row_key)

    if not layout.parseable:
        return ProjectedRow(skip_reason=SkipReason.UNPARSEABLE_HEADER, row_key=row_key)

    # 3. Carry-down
    for column in layout.column_map:
        raw = row[column.index] if column.index < len(row) else None
        carry.update(column.token, cell(column.index), raw)

    # 4. Model
    model = cell(layout.name_col) or carry.get(layout.token_for(layout.name_col))
    if not model:
        if not allow_placeholder_names:
            return ProjectedRow(skip_reason=SkipReason.MISSING_MODEL, row_key=row_key)
        model = placeholder_model

    # 5. Description
    description = None
    fallback_col = None
    if layout.desc_col is not None:
        description = cell(layout.desc_col) or carry.get(layout.token_for(layout.desc_col)) or None
    if description is None:
        fallback_col = _long_text_column(cells, exclude=layout.role_columns)
        if fallback_col is not None:
            description = cells[fallback_col]

    # 6. Price: raw cell keeps native numbers intact
    price = None
    if layout.price_col is not None:
        if cell(layout.price_col):
            price = parse_price(row[layout.price_col])
        else:
            price = parse_price(carry.get_raw(layout.token_for(layout.price_col)))

    # 7. Details
    details = {}
    for column in layout.column_map:
        if column.index in layout.role_columns or column.index == fallback_col:
            continue
        if column in excluded_columns:
            continue
        value = cell(column.index) or carry.get(column.token)
        if value:
            details[column.label] = value

    # 8. Emit
    try:
        record = ProductCreate(
            sheet=sheet,
            row_index=row_index,
            model=model,
            description=description,
            price=price,
            details=details,
        )
    except pydantic.ValidationError as e:
        logger.warning(
            "row_projection_invalid",
            sheet=sheet,
            row_key=row_key,
            error=str(e)
        )
        return ProjectedRow(
            skip_reason=SkipReason.INVALID_RECORD,
            row_key=row_key,
            message=str(e)
        )

    return ProjectedRow(record=record, row_key=row_key)


def _long_text_column(cells: list[str], exclude: set[int]) -> Optional[int]:
    """Index of the first cell long enough to serve as a description."""
    for index, value in enumerate(cells):
        if index not in exclude and len(value) >= DESCRIPTION_MIN_LENGTH:
            return index
    return None
