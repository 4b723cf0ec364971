"""
Locale-aware price parser.

Supplier price lists mix notations freely: "Rp 47.080.000", "1.234,50",
"47080000", "12,5", native numbers from the spreadsheet reader, and the
occasional corrupted cell. Every value is reduced to an integer amount in
the smallest currency unit, or None.

Patterns are tried in a fixed order; the first match decides how `.` and
`,` are read. Python's float()/locale parsing is never applied to the raw
string.
"""

import math
import re
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from numbers import Integral, Real
from typing import Any, Optional

import structlog

from config.catalog import PRICE_MAX_DIGITS

logger = structlog.get_logger(__name__)

# Currency markers and all whitespace are removed before matching
CURRENCY_MARKERS = re.compile(r"rp|idr|\s", re.IGNORECASE)

# "47.080.000", "1.234,50": dots group thousands, trailing ",digits" is dropped
DOT_THOUSANDS = re.compile(r"^\d{1,3}(\.\d{3})+(,\d+)?$")

# "12", "12,5": comma is the decimal point
COMMA_DECIMAL = re.compile(r"^\d+(,\d+)?$")

# "12.5": dot is the decimal point
DOT_DECIMAL = re.compile(r"^\d+(\.\d+)?$")

NON_DIGITS = re.compile(r"\D")


def parse_price(value: Any) -> Optional[int]:
    """
    Convert a price cell of unknown format to an integer amount.

    Examples:
        parse_price(47080000)        -> 47080000
        parse_price(1249999.6)       -> 1250000
        parse_price("Rp 1.250.000")  -> 1250000
        parse_price("1.234,50")      -> 1234
        parse_price("12,5")          -> 13
        parse_price("USD 1,250,000") -> 1250000
        parse_price("call us")       -> None

    Args:
        value: Raw cell value (str, int, float, Decimal, or None)

    Returns:
        Integer amount, or None if nothing numeric can be extracted
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, Integral):
        return int(value)

    if isinstance(value, (Real, Decimal)):
        return _round_number(value)

    if not isinstance(value, str):
        return None

    text = CURRENCY_MARKERS.sub("", value)
    if not text:
        return None

    if DOT_THOUSANDS.match(text):
        integer_part = text.split(",", 1)[0].replace(".", "")
        return int(integer_part)

    if COMMA_DECIMAL.match(text):
        return _round_decimal(text.replace(",", "."))

    if DOT_DECIMAL.match(text):
        return _round_decimal(text)

    return _digits_fallback(text)


def _round_number(value) -> Optional[int]:
    """Round a native number half up; non-finite values have no price."""
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return None
    return _round_decimal(str(value))


def _round_decimal(text: str) -> Optional[int]:
    """Round a plain decimal string half up to an integer."""
    try:
        amount = Decimal(text)
        if not amount.is_finite():
            return None
        return int(amount.to_integral_value(rounding=ROUND_HALF_UP))
    except InvalidOperation:
        return None


def _digits_fallback(text: str) -> Optional[int]:
    """Keep only the digits; overlong digit runs are clipped."""
    digits = NON_DIGITS.sub("", text)
    if not digits:
        return None
    if len(digits) > PRICE_MAX_DIGITS:
        logger.debug(
            "price_digits_truncated",
            raw=text[:64],
            digits=len(digits)
        )
        digits = digits[:PRICE_MAX_DIGITS]
    return int(digits)
