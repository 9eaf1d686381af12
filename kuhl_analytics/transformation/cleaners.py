"""
Data Cleaning Module

Cell-level coercion used by the record parsers. Spreadsheet exports carry
currency symbols, thousands separators, blank cells and the occasional
``#N/A``; every helper here turns such input into a safe default instead of
raising.
"""

import math
import re
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional

import pandas as pd

_CURRENCY_RE = re.compile(r"[$,]")
_TEST_SUFFIX_RE = re.compile(r"TES$", re.IGNORECASE)

TRUE_VALUES = frozenset({"y", "yes", "true", "1"})


def is_blank(value: Any) -> bool:
    """None, NaN/NaT and whitespace-only strings count as blank."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def parse_number(value: Any) -> float:
    """
    Parse a numeric cell.

    Strips ``$`` and ``,`` before parsing; anything unparseable, empty or
    non-finite becomes ``0.0``.

    Example:
        >>> parse_number("$1,234.50")
        1234.5
    """
    if is_blank(value) or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        number = float(value)
    else:
        text = _CURRENCY_RE.sub("", str(value)).strip()
        try:
            number = float(text)
        except ValueError:
            return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def parse_string(value: Any) -> str:
    if is_blank(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        # Excel hands numeric style numbers back as floats
        return str(int(value))
    return str(value).strip()


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return parse_string(value).lower() in TRUE_VALUES


def parse_date(value: Any) -> Optional[date]:
    if is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    parsed = pd.to_datetime(str(value).strip(), errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.date()


def first_value(row: Mapping[str, Any], aliases: Iterable[str]) -> Any:
    """Return the first non-blank value among the alias columns."""
    for alias in aliases:
        value = row.get(alias)
        if not is_blank(value):
            return value
    return None


def clean_style_number(style: Any) -> str:
    """Trim a style number and drop the ``TES`` suffix used for test styles."""
    return _TEST_SUFFIX_RE.sub("", parse_string(style))
