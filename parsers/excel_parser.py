"""
Excel workbook reader for supplier price lists.

Reads every sheet as a raw grid (no header inference, empty cells as "")
and hands each grid to the sheet ingestor. Also builds the preview an
upload screen needs to pick the start row, column roles and exclusions.
"""

from dataclasses import dataclass, field
from io import BytesIO
from pathlib import Path
from typing import Iterable, Optional, Union
import structlog

import pandas as pd

from exceptions import ExcelParseError
from models.ingest import IngestOptions
from parsers.sheet_ingestor import (
    RawGrid,
    SheetIngestResult,
    ingest_sheet,
    start_row_alert,
)
from utils.text_utils import is_blank_row, leftmost_filled_value, normalize_cell

logger = structlog.get_logger(__name__)

ExcelSource = Union[str, Path, BytesIO]


@dataclass
class SheetPreview:
    """First rows of a sheet as an upload screen shows them."""
    sheet: str
    headers: list[str] = field(default_factory=list)
    rows: list[list] = field(default_factory=list)
    row_keys: list[str] = field(default_factory=list)
    total_rows: int = 0
    alerts: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        """Convert to dictionary for API response."""
        return {
            "sheet": self.sheet,
            "headers": list(self.headers),
            "rows": [list(r) for r in self.rows],
            "row_keys": list(self.row_keys),
            "total_rows": self.total_rows,
            "alerts": list(self.alerts),
        }


def open_workbook(file: ExcelSource) -> pd.ExcelFile:
    """
    Open an Excel file for reading.

    Raises:
        ExcelParseError: If the file cannot be read as a workbook
    """
    try:
        return pd.ExcelFile(file, engine="openpyxl")
    except Exception as e:
        logger.error("excel_read_failed", error=str(e))
        raise ExcelParseError(
            message="Failed to read Excel file",
            details={"original_error": str(e)}
        )


def read_sheet(excel: pd.ExcelFile, sheet_name: str) -> RawGrid:
    """Read one sheet as rows of raw cells; empty cells become ""."""
    df = excel.parse(
        sheet_name,
        header=None,
        dtype=object,
        keep_default_na=False,  # "NA" / "N/A" in a price list are text
    )
    df = df.astype(object).where(df.notna(), "")
    return df.values.tolist()


def read_workbook(
    file: ExcelSource,
    sheets: Optional[Iterable[str]] = None,
) -> dict[str, RawGrid]:
    """
    Read a workbook into one raw grid per sheet.

    Args:
        file: File path (str/Path) or file-like object (BytesIO)
        sheets: Sheet names to read (None reads all)

    Returns:
        Sheet name -> raw grid, in workbook order

    Raises:
        ExcelParseError: If the file or a requested sheet cannot be read
    """
    logger.info("reading_workbook", file_type=type(file).__name__)

    excel = open_workbook(file)
    wanted = set(sheets) if sheets is not None else None
    grids: dict[str, RawGrid] = {}

    for name in excel.sheet_names:
        if wanted is not None and str(name) not in wanted:
            continue
        try:
            grids[str(name)] = read_sheet(excel, name)
        except Exception as e:
            logger.error("sheet_read_failed", sheet=name, error=str(e))
            raise ExcelParseError(
                message=f"Failed to read sheet '{name}'",
                details={"sheet": str(name), "original_error": str(e)}
            )

    logger.info("workbook_read", sheets=list(grids))
    return grids


def preview_sheet(
    raw_grid: RawGrid,
    sheet_name: str,
    start_row: Optional[int] = None,
    limit: int = 10,
) -> SheetPreview:
    """
    Preview a sheet from its header row.

    headers are the cleaned non-empty header labels; row_keys are the
    distinct leftmost filled values of the data rows, in order, which are
    the values a caller can pass as excluded_row_keys.
    """
    preview = SheetPreview(sheet=sheet_name)
    rows = [list(r) for r in raw_grid]
    alert = start_row_alert(start_row, len(rows))
    if alert:
        preview.alerts.append(alert)
        return preview
    if start_row is not None:
        rows = rows[start_row - 1:]
    if not rows:
        return preview

    preview.headers = [label for label in (normalize_cell(c) for c in rows[0]) if label]
    data_rows = [r for r in rows[1:] if not is_blank_row(r)]
    preview.rows = [[normalize_cell(c) for c in r] for r in data_rows[:limit]]
    preview.total_rows = len(data_rows)

    seen = set()
    for row in data_rows:
        key = leftmost_filled_value(row)
        if key and key not in seen:
            seen.add(key)
            preview.row_keys.append(key)

    return preview


def ingest_workbook(
    file: ExcelSource,
    options_by_sheet: Optional[dict[str, IngestOptions]] = None,
) -> dict[str, SheetIngestResult]:
    """
    Read a workbook and ingest each sheet independently.

    Args:
        file: File path or file-like object
        options_by_sheet: Sheet name -> options. Only these sheets are
                          ingested; None ingests every sheet with defaults.

    Returns:
        Sheet name -> SheetIngestResult. An unreadable file or sheet is
        reported as an alert on the affected results, never raised.
    """
    requested = list(options_by_sheet) if options_by_sheet is not None else None
    results: dict[str, SheetIngestResult] = {}

    try:
        excel = open_workbook(file)
    except ExcelParseError as e:
        for sheet in requested or ["workbook"]:
            results[sheet] = SheetIngestResult(
                sheet=sheet,
                alerts=[f"{e.message}: {e.details.get('original_error')}"]
            )
        return results

    available = [str(name) for name in excel.sheet_names]
    for sheet in requested if requested is not None else available:
        options = (options_by_sheet or {}).get(sheet) or IngestOptions()

        if sheet not in available:
            results[sheet] = SheetIngestResult(
                sheet=sheet,
                alerts=[f"Sheet '{sheet}' not found in workbook"]
            )
            continue

        try:
            grid = read_sheet(excel, sheet)
        except Exception as e:
            logger.error("sheet_read_failed", sheet=sheet, error=str(e))
            results[sheet] = SheetIngestResult(
                sheet=sheet,
                alerts=[f"Failed to read sheet '{sheet}': {e}"]
            )
            continue

        results[sheet] = ingest_sheet(grid, sheet, options=options)

    logger.info(
        "workbook_ingested",
        sheets=len(results),
        records=sum(len(r.records) for r in results.values()),
        alerts=sum(len(r.alerts) for r in results.values())
    )

    return results
