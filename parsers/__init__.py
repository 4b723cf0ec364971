"""
Spreadsheet parsers module.

Cell cleanup lives in utils.text_utils; everything from a raw grid to
product records lives here.
"""

from parsers.excel_parser import (
    SheetPreview,
    ingest_workbook,
    open_workbook,
    preview_sheet,
    read_sheet,
    read_workbook,
)
from parsers.header_classifier import (
    ColumnMap,
    ColumnSpec,
    HeaderLayout,
    SheetMode,
    build_column_map,
    classify_header,
    simple_layout,
)
from parsers.price_parser import parse_price
from parsers.row_projector import (
    CarryState,
    ColumnExclusions,
    ProjectedRow,
    SkipReason,
    project_row,
)
from parsers.sheet_ingestor import (
    RawGrid,
    SheetIngestResult,
    SkippedRow,
    ingest_sheet,
)

__all__ = [
    # Workbook
    "SheetPreview",
    "ingest_workbook",
    "open_workbook",
    "preview_sheet",
    "read_sheet",
    "read_workbook",

    # Header
    "ColumnMap",
    "ColumnSpec",
    "HeaderLayout",
    "SheetMode",
    "build_column_map",
    "classify_header",
    "simple_layout",

    # Price
    "parse_price",

    # Rows
    "CarryState",
    "ColumnExclusions",
    "ProjectedRow",
    "SkipReason",
    "project_row",

    # Sheet
    "RawGrid",
    "SheetIngestResult",
    "SkippedRow",
    "ingest_sheet",
]
