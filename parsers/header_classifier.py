"""
Header classifier for supplier price lists.

Decides whether a sheet starts with a real header row (table mode) or is a
bare list (simple mode), and which columns hold the model name, the
description and the price. Every other named column becomes a detail.

Role detection is a fixed lookup table evaluated in order:
    1. name         substring match against NAME_KEYWORDS, column order
    2. description  whole-word match against DESCRIPTION_KEYWORDS, column order
    3. price        PRICE_KEYWORDS in priority order, each scanned across columns
Columns already claimed by an earlier role are not considered again.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Iterator, Optional, Sequence

import structlog

from config.catalog import (
    NAME_KEYWORDS,
    DESCRIPTION_KEYWORDS,
    PRICE_KEYWORDS,
    SIMPLE_DETAIL_KEY,
    TABLE_MIN_HEADERS,
    TABLE_MIN_ROWS,
)
from utils.text_utils import normalize_cell, normalize_header_token, header_words

logger = structlog.get_logger(__name__)


class SheetMode(str, Enum):
    """Ingestion strategy for a sheet."""
    TABLE = "table"     # Row 0 names every column
    SIMPLE = "simple"   # No header; positional roles


@dataclass(frozen=True)
class ColumnSpec:
    """One named column of the header row."""
    index: int   # Original column position in the grid
    token: str   # Normalized header, used for matching and carry-down
    label: str   # Cleaned original header, case preserved (detail key)


@dataclass
class ColumnMap:
    """Named columns of a sheet, in column order."""
    columns: list[ColumnSpec] = field(default_factory=list)

    def __iter__(self) -> Iterator[ColumnSpec]:
        return iter(self.columns)

    def __len__(self) -> int:
        return len(self.columns)

    def get(self, index: Optional[int]) -> Optional[ColumnSpec]:
        """Column at an original grid index, if mapped."""
        for column in self.columns:
            if column.index == index:
                return column
        return None

    def find(self, reference: Optional[str]) -> Optional[ColumnSpec]:
        """
        Find a column by header label or token.

        Tries the exact label, then a case-insensitive label, then the token.
        """
        if not reference:
            return None
        label = normalize_cell(reference)
        token = normalize_header_token(reference)
        for matches in (
            lambda c: c.label == label,
            lambda c: c.label.casefold() == label.casefold(),
            lambda c: c.token == token,
        ):
            for column in self.columns:
                if matches(column):
                    return column
        return None

    def to_dict(self) -> dict[int, str]:
        """Column index -> token."""
        return {c.index: c.token for c in self.columns}


@dataclass
class HeaderLayout:
    """Result of classifying a sheet's first row."""
    mode: SheetMode
    column_map: ColumnMap = field(default_factory=ColumnMap)
    name_col: Optional[int] = None
    desc_col: Optional[int] = None
    price_col: Optional[int] = None
    alerts: list[str] = field(default_factory=list)

    @property
    def parseable(self) -> bool:
        """Rows can only be projected if a name column exists."""
        return self.name_col is not None

    def token_for(self, index: Optional[int]) -> Optional[str]:
        column = self.column_map.get(index)
        return column.token if column else None

    @property
    def role_columns(self) -> set[int]:
        """Indices of the name, description and price columns."""
        return {i for i in (self.name_col, self.desc_col, self.price_col) if i is not None}


# ===================
# ROLE MATCHERS
# ===================

def _find_name_column(columns: list[ColumnSpec], taken: set[int]) -> Optional[ColumnSpec]:
    """First column whose token contains a name keyword; else the first column."""
    for column in columns:
        if column.index not in taken and any(k in column.token for k in NAME_KEYWORDS):
            return column
    free = [c for c in columns if c.index not in taken]
    return free[0] if free else None


def _find_description_column(columns: list[ColumnSpec], taken: set[int]) -> Optional[ColumnSpec]:
    """First column with a whole-word description keyword."""
    for column in columns:
        if column.index in taken:
            continue
        if DESCRIPTION_KEYWORDS.intersection(header_words(column.token)):
            return column
    return None


def _find_price_column(columns: list[ColumnSpec], taken: set[int]) -> Optional[ColumnSpec]:
    """Highest-priority price keyword wins, leftmost column on ties."""
    for keyword in PRICE_KEYWORDS:
        for column in columns:
            if column.index not in taken and keyword in column.token:
                return column
    return None


RoleMatcher = Callable[[list[ColumnSpec], set[int]], Optional[ColumnSpec]]

ROLE_MATCHERS: tuple[tuple[str, RoleMatcher], ...] = (
    ("name", _find_name_column),
    ("description", _find_description_column),
    ("price", _find_price_column),
)


# ===================
# CLASSIFICATION
# ===================

def build_column_map(header_row: Sequence[Any]) -> ColumnMap:
    """
    Map every named header cell to a unique token.

    Empty headers are dropped. Repeated headers get "_2", "_3" token
    suffixes and " (2)", " (3)" label suffixes so detail keys stay distinct.
    """
    columns = []
    seen: dict[str, int] = {}

    for index, cell in enumerate(header_row):
        token = normalize_header_token(cell)
        if not token:
            continue
        label = normalize_cell(cell)

        seen[token] = seen.get(token, 0) + 1
        if seen[token] > 1:
            suffix = seen[token]
            token = f"{token}_{suffix}"
            label = f"{label} ({suffix})"

        columns.append(ColumnSpec(index=index, token=token, label=label))

    return ColumnMap(columns)


def classify_header(
    header_row: Sequence[Any],
    total_rows: int,
    name_column: Optional[str] = None,
    description_column: Optional[str] = None,
    price_column: Optional[str] = None,
) -> HeaderLayout:
    """
    Decide sheet mode and column roles from the first non-empty row.

    Args:
        header_row: First remaining row of the sheet
        total_rows: Number of non-empty rows in the sheet (header included)
        name_column: Caller-chosen model column (label or token)
        description_column: Caller-chosen description column
        price_column: Caller-chosen price column

    Returns:
        HeaderLayout; simple mode carries an empty column map (see simple_layout)
    """
    column_map = build_column_map(header_row)

    if len(column_map) < TABLE_MIN_HEADERS or total_rows < TABLE_MIN_ROWS:
        logger.debug(
            "header_not_detected",
            named_columns=len(column_map),
            total_rows=total_rows
        )
        return HeaderLayout(mode=SheetMode.SIMPLE)

    layout = HeaderLayout(mode=SheetMode.TABLE, column_map=column_map)
    overrides = {
        "name": name_column,
        "description": description_column,
        "price": price_column,
    }

    # Explicit choices claim their columns before any heuristic runs
    chosen: dict[str, ColumnSpec] = {}
    for role, reference in overrides.items():
        if not reference:
            continue
        column = column_map.find(reference)
        if column is None:
            layout.alerts.append(
                f"Column '{reference}' not found for {role}; using detected column"
            )
        else:
            chosen[role] = column

    taken = {c.index for c in chosen.values()}
    roles: dict[str, Optional[ColumnSpec]] = {}
    for role, matcher in ROLE_MATCHERS:
        column = chosen.get(role) or matcher(column_map.columns, taken)
        roles[role] = column
        if column is not None:
            taken.add(column.index)

    layout.name_col = roles["name"].index if roles["name"] else None
    layout.desc_col = roles["description"].index if roles["description"] else None
    layout.price_col = roles["price"].index if roles["price"] else None

    logger.debug(
        "header_classified",
        columns=column_map.to_dict(),
        name_col=layout.name_col,
        desc_col=layout.desc_col,
        price_col=layout.price_col
    )

    return layout


def simple_layout(width: int) -> HeaderLayout:
    """
    Positional layout for sheets without a header.

    Column 0 is the model, column 1 the description, the rest become
    col_3, col_4, ... details.
    """
    columns = [
        ColumnSpec(index=i, token=SIMPLE_DETAIL_KEY.format(position=i + 1),
                   label=SIMPLE_DETAIL_KEY.format(position=i + 1))
        for i in range(width)
    ]
    return HeaderLayout(
        mode=SheetMode.SIMPLE,
        column_map=ColumnMap(columns),
        name_col=0 if width >= 1 else None,
        desc_col=1 if width >= 2 else None,
    )
