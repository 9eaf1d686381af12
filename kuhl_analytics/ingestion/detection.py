"""
File Type Detection

Guesses which kind of export an uploaded workbook is from its header row, and
pulls a season code out of file names such as ``"KUHL Spring 2027 Line List.xlsx"``.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence

from kuhl_analytics.ingestion.records import RecordType


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# Column signatures per file type, compared case-insensitively
LINE_LIST_COLUMNS = (
    "Style #", "Style", "Style Number", "Style#",
    "Style Name", "Description", "Style Desc",
    "MSRP", "US MSRP", "Retail",
    "Wholesale", "US WHSL", "WHSL", "Price",
    "Category", "Cat Desc",
    "Division", "Division Desc",
)

COSTS_COLUMNS = (
    "FOB", "Factory Cost",
    "Landed", "Landed Cost", "LDP",
    "Duty", "Duty %", "Duty Cost", "Duty Cost $",
    "Freight", "Freight Cost",
    "Tariff", "Tariff Cost", "Tariff Cost $", "Tariff  Cost $",
    "Overhead", "Overhead Cost",
    "Suggested MSRP", "Suggested Selling Price",
    "Total Cost", "Std Cost", "GP %",
    "Fab $", "Trm $", "Process $",
    "Cost_Sheet",
)

SALES_COLUMNS = (
    "Revenue", "Net Sales", "Sales", "$ Current Booked Net",
    "Units", "Qty", "Quantity", "Units Current Booked",
    "Customer", "Customer Name",
    "Ship Date", "Date",
    "Customer Type",
)

PRICING_COLUMNS = (
    "Price", "Wholesale", "WHSL",
    "MSRP", "Retail",
    "Season", "Sea Desc",
    "Style", "Style #",
    "Color", "Clr",
)

INVENTORY_COLUMNS = (
    "Whse", "Type", "Date", "Qty", "Balance", "Extension",
    "Cost/Price", "Customer/Vendor", "Rea Desc", "Period",
)

PRICING_SPECIFIC = frozenset({"sea desc", "season desc", "clr_desc"})
LINE_LIST_SPECIFIC = frozenset({"category", "cat desc", "division", "division desc"})


@dataclass
class DetectionResult:
    """Outcome of header-based detection; ``record_type`` is None when unknown"""
    record_type: Optional[RecordType]
    confidence: Confidence
    matched_columns: List[str] = field(default_factory=list)
    all_columns: List[str] = field(default_factory=list)


def _matches(headers: Sequence[str], signature: Sequence[str]) -> List[str]:
    wanted = {column.lower() for column in signature}
    return [h for h in headers if h.lower() in wanted]


def _confidence(count: int, high: int, medium: int) -> Confidence:
    if count >= high:
        return Confidence.HIGH
    if count >= medium:
        return Confidence.MEDIUM
    return Confidence.LOW


def detect_file_type(headers: Iterable[str]) -> DetectionResult:
    """
    Detect the record type of a sheet from its column headers.

    Sales is checked first, then costs, then pricing (only when it carries a
    pricing-only column and no line list column), then the line list, and
    finally a looser pricing match.
    """
    columns = [str(h).strip() for h in headers if h is not None]
    lowered = {c.lower() for c in columns}

    inventory = _matches(columns, INVENTORY_COLUMNS)
    if "whse" in lowered and "balance" in lowered and len(inventory) >= 4:
        return DetectionResult(RecordType.INVENTORY, _confidence(len(inventory), 6, 5), inventory, columns)

    sales = _matches(columns, SALES_COLUMNS)
    if len(sales) >= 3:
        return DetectionResult(RecordType.SALES, _confidence(len(sales), 5, 4), sales, columns)

    costs = _matches(columns, COSTS_COLUMNS)
    if len(costs) >= 2:
        return DetectionResult(RecordType.COSTS, _confidence(len(costs), 4, 3), costs, columns)

    pricing = _matches(columns, PRICING_COLUMNS)
    has_pricing_specific = bool(lowered & PRICING_SPECIFIC)
    has_line_list_specific = bool(lowered & LINE_LIST_SPECIFIC)
    if len(pricing) >= 3 and has_pricing_specific and not has_line_list_specific:
        return DetectionResult(RecordType.PRICING, _confidence(len(pricing), 5, 4), pricing, columns)

    line_list = _matches(columns, LINE_LIST_COLUMNS)
    if len(line_list) >= 3:
        return DetectionResult(RecordType.PRODUCTS, _confidence(len(line_list), 6, 4), line_list, columns)

    if len(pricing) >= 2:
        return DetectionResult(RecordType.PRICING, _confidence(len(pricing), 4, 3), pricing, columns)

    return DetectionResult(None, Confidence.LOW, [], columns)


# Alphanumerics on either side break a match; spaces, dots and underscores don't
_EDGE = r"(?<![A-Z0-9]){}(?![A-Z0-9])"
_FILENAME_PATTERNS = (
    (re.compile(_EDGE.format(r"(SPRING|FALL)[\s_-]*(\d{4})")), "word"),
    (re.compile(_EDGE.format(r"(SPRING|FALL)[\s_-]*(\d{2})")), "word"),
    (re.compile(_EDGE.format(r"(SP|FA)(\d{2})")), "prefix"),
    (re.compile(_EDGE.format(r"(\d{2})(SP|FA)")), "canonical"),
    (re.compile(_EDGE.format(r"([SF])(\d{2})")), "short"),
)


def extract_season_from_filename(filename: Optional[str]) -> Optional[str]:
    """
    Find a season code in a file name.

    Example:
        >>> extract_season_from_filename("Line List SPRING 2027.xlsx")
        '27SP'
    """
    if not filename:
        return None
    name = filename.upper()

    for pattern, form in _FILENAME_PATTERNS:
        match = pattern.search(name)
        if not match:
            continue
        if form == "word":
            code = "SP" if match.group(1) == "SPRING" else "FA"
            return f"{match.group(2)[-2:]}{code}"
        if form == "prefix":
            return f"{match.group(2)}{match.group(1)}"
        if form == "canonical":
            return f"{match.group(1)}{match.group(2)}"
        code = "SP" if match.group(1) == "S" else "FA"
        return f"{match.group(2)}{code}"
    return None
