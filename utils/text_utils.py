"""
Text utilities for cleaning spreadsheet cells and headers.

Used by every ingestion step: cells are compared, carried down and stored
in their normalized form.
"""

import re
from typing import Any, Sequence

import pandas as pd

_NEWLINES = re.compile(r"[\r\n]+")
_WHITESPACE = re.compile(r"\s+")
_HEADER_JUNK = re.compile(r"[^\w\s-]")
_WORD_SEPARATORS = re.compile(r"[_-]+")


def normalize_cell(value: Any) -> str:
    """
    Clean a single raw cell value.

    - None / NaN / "" -> ""
    - 1250000.0 -> "1250000" (numeric cells come back from readers as floats)
    - "  Ergonomic\\n\\nchair  " -> "Ergonomic chair"

    Args:
        value: Raw cell (string, number, or empty)

    Returns:
        Cleaned string, empty if the cell holds nothing
    """
    if value is None:
        return ""
    if pd.api.types.is_scalar(value) and pd.isna(value):
        return ""

    if isinstance(value, float) and value.is_integer():
        text = str(int(value))
    else:
        text = str(value)

    text = _NEWLINES.sub(" ", text.strip())
    return _WHITESPACE.sub(" ", text).strip()


def normalize_header_token(label: Any) -> str:
    """
    Reduce a header cell to a matching token.

    - "Price (IDR)" -> "price_idr"
    - "Part Number" -> "part_number"
    - "Keterangan / Notes" -> "keterangan_notes"

    Args:
        label: Raw or cleaned header cell

    Returns:
        Lower-case token of letters, digits, hyphens and underscores
    """
    text = normalize_cell(label).lower()
    text = _HEADER_JUNK.sub("", text).strip()
    return _WHITESPACE.sub("_", text)


def header_words(token: str) -> list[str]:
    """Split a header token into words on underscores and hyphens."""
    return [word for word in _WORD_SEPARATORS.split(token) if word]


def is_blank_row(row: Sequence[Any]) -> bool:
    """True if every cell in the row normalizes to empty."""
    return not any(normalize_cell(cell) for cell in row)


def leftmost_filled_value(row: Sequence[Any]) -> str:
    """
    Normalized value of the first non-empty cell in the row.

    This is the row key used for row exclusions: in supplier price lists
    it is usually the section label or the model code.
    """
    for cell in row:
        value = normalize_cell(cell)
        if value:
            return value
    return ""
