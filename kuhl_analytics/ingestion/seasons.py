"""
Season Codes

Normalizes the season spellings found across line lists, sales exports,
price lists and cost sheets into the canonical ``YY`` + ``FA|SP`` form, and
provides season ordering and the selling calendar.

Canonical examples: ``26FA`` (Fall 2026), ``27SP`` (Spring 2027).
"""

import re
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional, Tuple


# =============================================================================
# ENUMERATIONS
# =============================================================================

class SeasonType(str, Enum):
    """Kind of season a record belongs to"""
    MAIN = "Main"
    BULK = "Bulk"
    PROTO = "Proto"
    SMS = "SMS"
    PRODUCTION = "Production"
    UNKNOWN = "Unknown"


class SeasonStatus(str, Enum):
    """Outcome of normalizing a raw season value"""
    CANONICAL = "canonical"
    DEGRADED = "degraded"
    EMPTY = "empty"


class CalendarStatus(str, Enum):
    """Where a season sits in the selling calendar"""
    CLOSED = "CLOSED"
    SHIPPING = "SHIPPING"
    PRE_BOOK = "PRE-BOOK"
    PLANNING = "PLANNING"


# Keywords are checked in this order; only the first one found is applied.
_TYPE_KEYWORDS: Tuple[Tuple[str, SeasonType], ...] = (
    ("BULK", SeasonType.BULK),
    ("PROTO", SeasonType.PROTO),
    ("SMS", SeasonType.SMS),
    ("PRODUCTION", SeasonType.PRODUCTION),
)

_CANONICAL_RE = re.compile(r"^(\d{2})(FA|SP)$")
_PREFIX_RE = re.compile(r"^(FA|SP)(\d{2})$")
_SHORT_PREFIX_RE = re.compile(r"^(F|S)(\d{2})$")
_SHORT_SUFFIX_RE = re.compile(r"^(\d{2})(F|S)$")
_WORD_RE = re.compile(r"^(FALL|SPRING)(\d{4}|\d{2})$")

_SHORT_CODES = {"F": "FA", "S": "SP", "FALL": "FA", "SPRING": "SP"}


@dataclass(frozen=True)
class NormalizedSeason:
    """
    Result of season normalization.

    ``status`` tells callers whether ``season`` is canonical, a cleaned
    passthrough of an unrecognized value, or empty.
    """
    season: str
    season_type: SeasonType
    raw_season: str
    status: SeasonStatus

    @property
    def is_canonical(self) -> bool:
        return self.status == SeasonStatus.CANONICAL


def _canonicalize(code: str) -> Optional[str]:
    match = _PREFIX_RE.match(code)
    if match:
        return f"{match.group(2)}{match.group(1)}"

    match = _SHORT_PREFIX_RE.match(code)
    if match:
        return f"{match.group(2)}{_SHORT_CODES[match.group(1)]}"

    if _CANONICAL_RE.match(code):
        return code

    match = _SHORT_SUFFIX_RE.match(code)
    if match:
        return f"{match.group(1)}{_SHORT_CODES[match.group(2)]}"

    match = _WORD_RE.match(code)
    if match:
        return f"{match.group(2)[-2:]}{_SHORT_CODES[match.group(1)]}"

    return None


def normalize_season(raw: Optional[str]) -> NormalizedSeason:
    """
    Normalize a raw season value.

    Args:
        raw: Season text as it appears in a source file, e.g. ``"FA26 - Bulk"``

    Returns:
        NormalizedSeason with the canonical code when one could be derived,
        otherwise the cleaned input and a DEGRADED status.

    Example:
        >>> normalize_season("FA26 - Bulk").season
        '26FA'
    """
    if raw is None:
        return NormalizedSeason("", SeasonType.UNKNOWN, "", SeasonStatus.EMPTY)

    raw_text = str(raw)
    value = raw_text.upper().strip()
    if not value:
        return NormalizedSeason("", SeasonType.UNKNOWN, "", SeasonStatus.EMPTY)

    season_type = SeasonType.MAIN
    for keyword, keyword_type in _TYPE_KEYWORDS:
        if keyword in value:
            season_type = keyword_type
            value = re.sub(rf"[\s-]*{keyword}", "", value).strip()
            break

    # Compound values such as "SP26/FA26" keep the first season
    if "/" in value:
        value = value.split("/", 1)[0].strip()

    value = re.sub(r"[^A-Z0-9]", "", value)

    canonical = _canonicalize(value)
    if canonical is not None:
        return NormalizedSeason(canonical, season_type, raw_text, SeasonStatus.CANONICAL)

    if not value:
        return NormalizedSeason("", season_type, raw_text, SeasonStatus.EMPTY)
    return NormalizedSeason(value, season_type, raw_text, SeasonStatus.DEGRADED)


def is_canonical_season(season: Optional[str]) -> bool:
    """True for codes like ``26FA`` or ``27SP``."""
    return bool(season) and _CANONICAL_RE.match(season) is not None


def parse_season_code(season: str) -> Optional[Tuple[int, str]]:
    """Split a canonical season into ``(year, "FA"|"SP")``."""
    match = _CANONICAL_RE.match(season or "")
    if not match:
        return None
    return 2000 + int(match.group(1)), match.group(2)


def season_sort_key(season: str) -> Tuple[int, int, str]:
    """Chronological ordering, spring before fall; unrecognized codes first."""
    parsed = parse_season_code(season)
    if parsed is None:
        return (0, 0, season)
    year, code = parsed
    return (year, 0 if code == "SP" else 1, season)


def sort_seasons(seasons: Iterable[str]) -> List[str]:
    """Sort distinct season codes chronologically."""
    return sorted({s for s in seasons if s}, key=season_sort_key)


# =============================================================================
# SELLING CALENDAR
# =============================================================================

@dataclass(frozen=True)
class SeasonInfo:
    """Calendar facts for one canonical season"""
    code: str
    label: str
    status: CalendarStatus
    ship_start: date
    ship_end: date
    prebook_start: date


def season_label(season: str) -> str:
    """``26FA`` -> ``Fall 2026``; non-canonical codes are returned as-is."""
    parsed = parse_season_code(season)
    if parsed is None:
        return season
    year, code = parsed
    return f"{'Spring' if code == 'SP' else 'Fall'} {year}"


def shipping_window(season: str) -> Optional[Tuple[date, date]]:
    """Spring ships Feb 15 - Aug 14, fall ships Aug 15 - Feb 14 of the next year."""
    parsed = parse_season_code(season)
    if parsed is None:
        return None
    year, code = parsed
    if code == "SP":
        return date(year, 2, 15), date(year, 8, 14)
    return date(year, 8, 15), date(year + 1, 2, 14)


def prebook_start(season: str) -> Optional[date]:
    """Spring pre-book opens June 1 of the prior year, fall on December 1."""
    parsed = parse_season_code(season)
    if parsed is None:
        return None
    year, code = parsed
    return date(year - 1, 6, 1) if code == "SP" else date(year - 1, 12, 1)


def season_status(season: str, today: Optional[date] = None) -> CalendarStatus:
    today = today or date.today()
    window = shipping_window(season)
    opens = prebook_start(season)
    if window is None or opens is None:
        return CalendarStatus.CLOSED

    ship_start, ship_end = window
    if today > ship_end:
        return CalendarStatus.CLOSED
    if today >= ship_start:
        return CalendarStatus.SHIPPING
    if today >= opens:
        return CalendarStatus.PRE_BOOK
    return CalendarStatus.PLANNING


def current_shipping_season(today: Optional[date] = None) -> str:
    """Season whose shipping window contains ``today``."""
    today = today or date.today()
    yy = today.year % 100
    if date(today.year, 2, 15) <= today <= date(today.year, 8, 14):
        return f"{yy:02d}SP"
    if today < date(today.year, 2, 15):
        return f"{(today.year - 1) % 100:02d}FA"
    return f"{yy:02d}FA"


def season_info(season: str, today: Optional[date] = None) -> Optional[SeasonInfo]:
    window = shipping_window(season)
    if window is None:
        return None
    return SeasonInfo(
        code=season,
        label=season_label(season),
        status=season_status(season, today),
        ship_start=window[0],
        ship_end=window[1],
        prebook_start=prebook_start(season),
    )
