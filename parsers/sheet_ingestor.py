"""
Sheet ingestor: one raw grid to a batch of product records.

Runs the header classifier on the first non-blank row, then projects every
data row with one CarryState for the whole sheet. Never raises: a failure
while loading the sheet becomes a single alert and an empty batch, so the
caller never persists half a sheet.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence

import structlog

from models.ingest import DuplicatePolicy, IngestOptions, TableStrategy
from models.product import ProductCreate
from parsers.header_classifier import (
    HeaderLayout,
    SheetMode,
    classify_header,
    simple_layout,
)
from parsers.row_projector import (
    CarryState,
    ColumnExclusions,
    SkipReason,
    project_row,
)
from utils.text_utils import is_blank_row

logger = structlog.get_logger(__name__)

RawGrid = Sequence[Sequence[Any]]


@dataclass
class SkippedRow:
    """A data row that produced no record (non-fatal)."""
    row: int          # 1-based spreadsheet row number
    reason: str
    row_key: str = ""


@dataclass
class SheetIngestResult:
    """Result of ingesting one sheet."""
    sheet: str
    mode: Optional[SheetMode] = None
    records: list[ProductCreate] = field(default_factory=list)
    alerts: list[str] = field(default_factory=list)
    processed: int = 0
    skipped: int = 0
    merged: int = 0
    skip_reasons: dict[str, int] = field(default_factory=dict)
    diagnostics: list[SkippedRow] = field(default_factory=list)

    @property
    def success(self) -> bool:
        """True if no alerts were raised."""
        return len(self.alerts) == 0

    @property
    def has_data(self) -> bool:
        """True if any record was produced."""
        return len(self.records) > 0

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "sheet": self.sheet,
            "mode": self.mode.value if self.mode else None,
            "records": [r.model_dump() for r in self.records],
            "alerts": list(self.alerts),
            "processed": self.processed,
            "skipped": self.skipped,
            "merged": self.merged,
            "skip_reasons": dict(self.skip_reasons),
            "diagnostics": [
                {"row": d.row, "reason": d.reason, "row_key": d.row_key}
                for d in self.diagnostics
            ],
        }


def ingest_sheet(
    raw_grid: RawGrid,
    sheet_name: str,
    start_row: Optional[int] = None,
    options: Optional[IngestOptions] = None,
) -> SheetIngestResult:
    """
    Ingest one sheet of raw cells into product records.

    Args:
        raw_grid: Rows of raw cell values, empty cells as "" or None
        sheet_name: Sheet / category name stamped on every record
        start_row: 1-based row holding the header (overrides options.start_row)
        options: Column overrides, exclusions and policies

    Returns:
        SheetIngestResult with records, alerts and row counts
    """
    options = options or IngestOptions()
    if start_row is None:
        start_row = options.start_row

    sheet = (sheet_name or "").strip()
    result = SheetIngestResult(sheet=sheet)

    if not sheet:
        result.alerts.append("Sheet name is required")
        return result

    logger.info(
        "ingesting_sheet",
        sheet=sheet,
        start_row=start_row,
        strategy=options.table_strategy.value,
        duplicate_policy=options.duplicate_policy.value
    )

    try:
        _ingest(raw_grid, sheet, start_row, options, result)
    except Exception as e:
        logger.error(
            "sheet_ingest_failed",
            sheet=sheet,
            error=str(e),
            error_type=type(e).__name__
        )
        result.records = []
        result.alerts.append(f"Failed to load sheet '{sheet}': {e}")
        return result

    logger.info(
        "sheet_ingested",
        sheet=sheet,
        mode=result.mode.value if result.mode else None,
        records=len(result.records),
        processed=result.processed,
        skipped=result.skipped,
        merged=result.merged,
        alerts=len(result.alerts)
    )

    return result


def start_row_alert(start_row: Optional[int], total_rows: int) -> Optional[str]:
    """Alert text for a start row outside the grid, None when it is usable."""
    if start_row is None:
        return None
    if start_row < 1:
        return f"Start row {start_row} must be 1 or greater"
    if start_row > total_rows:
        return f"Start row {start_row} exceeds available rows ({total_rows})"
    return None


def _ingest(
    raw_grid: RawGrid,
    sheet: str,
    start_row: Optional[int],
    options: IngestOptions,
    result: SheetIngestResult,
) -> None:
    """Fill result in place; exceptions are handled by ingest_sheet."""
    rows = [list(row) if row is not None else [] for row in raw_grid]

    alert = start_row_alert(start_row, len(rows))
    if alert:
        result.alerts.append(alert)
        return

    # Keep spreadsheet row numbers for diagnostics
    numbered = list(enumerate(rows, start=1))
    if start_row is not None:
        numbered = numbered[start_row - 1:]

    if options.table_strategy == TableStrategy.FIRST_BLOCK:
        numbered = _first_block(numbered)

    content = [(number, row) for number, row in numbered if not is_blank_row(row)]
    if not content:
        result.alerts.append(f"Sheet '{sheet}' has no data")
        return

    layout = classify_header(
        content[0][1],
        total_rows=len(content),
        name_column=options.name_column,
        description_column=options.description_column,
        price_column=options.price_column,
    )
    result.alerts.extend(layout.alerts)

    if layout.mode == SheetMode.TABLE:
        data_rows = content[1:]
    else:
        layout = simple_layout(max(len(row) for _, row in content))
        data_rows = content
    result.mode = layout.mode

    _project_rows(data_rows, layout, sheet, options, result)

    if not result.records:
        result.alerts.append(f"No products found in sheet '{sheet}'")


def _first_block(numbered: list[tuple[int, list]]) -> list[tuple[int, list]]:
    """Rows from the header down to the first blank row after it."""
    started = False
    block = []
    for number, row in numbered:
        blank = is_blank_row(row)
        if not started:
            if blank:
                continue
            started = True
        elif blank:
            break
        block.append((number, row))
    return block


def _project_rows(
    data_rows: list[tuple[int, list]],
    layout: HeaderLayout,
    sheet: str,
    options: IngestOptions,
    result: SheetIngestResult,
) -> None:
    """Project data rows top to bottom with one carry state."""
    carry = CarryState()
    exclusions = ColumnExclusions(options.excluded_columns)
    excluded_keys = set(options.excluded_row_keys)
    first_by_model: dict[str, ProductCreate] = {}
    reasons: Counter = Counter()

    def skip(number: int, reason: SkipReason, row_key: str) -> None:
        result.skipped += 1
        reasons[reason.value] += 1
        if options.report:
            result.diagnostics.append(
                SkippedRow(row=number, reason=reason.value, row_key=row_key)
            )
        logger.debug("row_skipped", sheet=sheet, row=number, reason=reason.value)

    for number, row in data_rows:
        result.processed += 1

        projected = project_row(
            row,
            layout,
            carry,
            sheet=sheet,
            row_index=len(result.records) + 1,
            excluded_columns=exclusions,
            excluded_row_keys=excluded_keys,
            allow_placeholder_names=options.allow_placeholder_names,
            placeholder_model=options.placeholder_model,
        )

        if projected.skipped:
            skip(number, projected.skip_reason, projected.row_key)
            continue

        record = projected.record
        first = first_by_model.get(record.model)

        if first is not None and options.duplicate_policy == DuplicatePolicy.SKIP:
            skip(number, SkipReason.DUPLICATE_MODEL, projected.row_key)
            continue

        if first is not None and options.duplicate_policy == DuplicatePolicy.MERGE:
            _merge_into(first, record)
            result.merged += 1
            continue

        first_by_model.setdefault(record.model, record)
        result.records.append(record)

    result.skip_reasons = dict(reasons)


def _merge_into(target: ProductCreate, duplicate: ProductCreate) -> None:
    """Fill gaps in the first record of a model from a later repeat."""
    if target.description is None and duplicate.description is not None:
        target.description = duplicate.description
    if target.price is None and duplicate.price is not None:
        target.price = duplicate.price
    if duplicate.details:
        target.details = {**target.details, **duplicate.details}
