"""
Relevance search over product records.

Every whitespace-separated term must match at least one searchable field:
model, description, or the TITLE / NAME / MODEL details. Matching is a
case-insensitive SQL-LIKE "%term%" on the field's text, with the user's
own % and _ escaped so they match literally.

Score per term:
    +3  term matches model
    +1  term matches description
    +1  term matches any of the TITLE / NAME / MODEL details (once per term)

This module is pure: it filters, scores, sorts and pages records it is
given. ProductService fetches the candidates.
"""

import re
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Union

import structlog

from config.catalog import (
    SCORE_DESCRIPTION,
    SCORE_DETAILS,
    SCORE_MODEL,
    SEARCH_DETAIL_KEYS,
    SEARCH_MAX_TOKEN_LENGTH,
)
from exceptions import InvalidSearchQueryError
from models.base import Pagination, PaginationParams
from models.product import ProductResponse
from models.search import SearchResult, SortMode

logger = structlog.get_logger(__name__)

LIKE_ESCAPE = "\\"


@dataclass(frozen=True)
class SearchTerm:
    """One query term and its compiled LIKE pattern."""
    text: str       # Truncated term as typed
    escaped: str    # Term with LIKE wildcards escaped
    pattern: re.Pattern

    def matches(self, value: Any) -> bool:
        if value is None:
            return False
        return self.pattern.fullmatch(str(value)) is not None


# ===================
# QUERY PARSING
# ===================

def escape_like(term: str) -> str:
    """Escape LIKE wildcards so they match literally."""
    return (
        term.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def like_to_regex(pattern: str) -> re.Pattern:
    """
    Compile a LIKE pattern (% any run, _ any char, backslash escapes) to a
    case-insensitive regex meant for fullmatch.
    """
    parts = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == LIKE_ESCAPE and i + 1 < len(pattern):
            parts.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
        i += 1
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


def parse_query(query: Optional[str]) -> list[SearchTerm]:
    """
    Split a query into search terms.

    Raises:
        InvalidSearchQueryError: If the query holds no terms
    """
    tokens = (query or "").split()
    if not tokens:
        raise InvalidSearchQueryError(query)

    terms = []
    for token in tokens:
        text = token[:SEARCH_MAX_TOKEN_LENGTH]
        escaped = escape_like(text)
        terms.append(SearchTerm(
            text=text,
            escaped=escaped,
            pattern=like_to_regex(f"%{escaped}%"),
        ))
    return terms


# ===================
# SCORING
# ===================

def score_record(record: ProductResponse, terms: list[SearchTerm]) -> Optional[int]:
    """
    Relevance score of a record, or None if any term matches no field.
    """
    score = 0
    for term in terms:
        in_model = term.matches(record.model)
        in_description = term.matches(record.description)
        in_details = any(
            term.matches(record.details[key])
            for key in SEARCH_DETAIL_KEYS
            if key in record.details
        )
        if not (in_model or in_description or in_details):
            return None
        score += (
            SCORE_MODEL * in_model
            + SCORE_DESCRIPTION * in_description
            + SCORE_DETAILS * in_details
        )
    return score


def _sort_key(sort: SortMode):
    """Key over (record, score) pairs for a sort mode."""
    if sort == SortMode.PRICE_ASC:
        return lambda item: (
            item[0].price is None,
            item[0].price or 0,
            item[0].sheet,
            item[0].row_index,
            -item[0].id,
        )
    if sort == SortMode.PRICE_DESC:
        return lambda item: (
            item[0].price is None,
            -(item[0].price or 0),
            item[0].sheet,
            item[0].row_index,
            -item[0].id,
        )
    if sort == SortMode.NEWEST:
        return lambda item: -item[0].id
    return lambda item: (
        -item[1],
        item[0].sheet,
        item[0].row_index,
        -item[0].id,
    )


# ===================
# SEARCH
# ===================

def search_records(
    records: Iterable[ProductResponse],
    query: Optional[str],
    sheet: Optional[str] = None,
    sort: Union[SortMode, str, None] = SortMode.RELEVANCE,
    page: Optional[int] = 1,
    per_page: Optional[int] = None,
) -> SearchResult:
    """
    Filter, rank and page product records for a free-text query.

    Args:
        records: Candidate records
        query: Free-text query; every term must match
        sheet: Restrict to one sheet (empty means all)
        sort: relevance (default), price_asc, price_desc or newest
        page: 1-based page number (values below 1 become 1)
        per_page: Page size, clamped to [1, 100]

    Returns:
        SearchResult for the requested page; pages past the end are empty

    Raises:
        InvalidSearchQueryError: If the query has no terms
    """
    terms = parse_query(query)
    sort_mode = SortMode.parse(sort)
    params = PaginationParams.clamped(page, per_page)
    sheet = sheet or None

    matched = []
    for record in records:
        if sheet is not None and record.sheet != sheet:
            continue
        score = score_record(record, terms)
        if score is not None:
            matched.append((record, score))

    matched.sort(key=_sort_key(sort_mode))
    page_items = matched[params.offset:params.offset + params.limit]
    pagination = Pagination.create(len(matched), params)

    logger.info(
        "search_completed",
        terms=[t.text for t in terms],
        sheet=sheet,
        sort=sort_mode.value,
        total=pagination.total,
        page=pagination.current_page,
        returned=len(page_items)
    )

    return SearchResult(
        query=(query or "").strip(),
        sheet=sheet,
        sort=sort_mode,
        records=[record for record, _ in page_items],
        scores=[score for _, score in page_items],
        pagination=pagination,
    )
