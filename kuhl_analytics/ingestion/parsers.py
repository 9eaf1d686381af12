"""
Record Parsers

Turn spreadsheet rows (``list[dict]`` keyed by header text) into typed
records. Each source names its columns differently, so every field is read
through an alias list; the camelCase names used by pre-parsed JSON payloads
are accepted as well.

Parsing never raises on bad cells: numbers fall back to 0, strings to "".
Rows without a style number are dropped and counted in ``ParseResult.skipped``.
"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Generic, Iterable, List, Mapping, Optional, Sequence, Tuple, TypeVar

import structlog

from kuhl_analytics.ingestion.records import (
    CostRecord,
    CostSource,
    InventoryRecord,
    PricingRecord,
    ProductRecord,
    RecordType,
    SalesRecord,
)
from kuhl_analytics.ingestion.seasons import normalize_season
from kuhl_analytics.transformation.categories import normalize_category
from kuhl_analytics.transformation.cleaners import (
    first_value,
    is_blank,
    parse_bool,
    parse_date,
    parse_number,
    parse_string,
)

logger = structlog.get_logger(__name__)

Row = Mapping[str, Any]
FieldSpec = Dict[str, Tuple[Sequence[str], Callable[[Any], Any]]]
R = TypeVar("R")


@dataclass
class ParseResult(Generic[R]):
    """Parsed records plus the number of rows that were dropped"""
    records: List[R] = field(default_factory=list)
    skipped: int = 0

    def __len__(self) -> int:
        return len(self.records)


def _read_fields(row: Row, spec: FieldSpec) -> Dict[str, Any]:
    return {name: coerce(first_value(row, aliases)) for name, (aliases, coerce) in spec.items()}


def _season_fields(row: Row, aliases: Sequence[str]) -> Dict[str, Any]:
    normalized = normalize_season(parse_string(first_value(row, aliases)))
    return {
        "season": normalized.season,
        "season_type": normalized.season_type,
        "raw_season": normalized.raw_season,
    }


def _parse_rows(
    rows: Iterable[Row],
    style_aliases: Sequence[str],
    build: Callable[[Row, str], R],
    record_type: RecordType,
) -> ParseResult[R]:
    result: ParseResult[R] = ParseResult()
    for row in rows:
        style_number = parse_string(first_value(row, style_aliases))
        if not style_number:
            result.skipped += 1
            continue
        result.records.append(build(row, style_number))

    logger.debug(
        "Parsed rows",
        record_type=record_type.value,
        records=len(result.records),
        skipped=result.skipped,
    )
    return result


# =============================================================================
# PRODUCTS (line list)
# =============================================================================

PRODUCT_STYLE = ("Style#", "Style", "Style #", "styleNumber")
PRODUCT_SEASON = ("Seas", "Season", "season")

PRODUCT_FIELDS: FieldSpec = {
    "style_desc": (("Style Desc", "Style Description", "styleDesc", "styleName"), parse_string),
    "color": (("Clr", "Color", "color", "colorCode"), parse_string),
    "color_desc": (("Clr Desc", "Color Desc", "colorDesc", "colorDescription"), parse_string),
    "style_color": (("Style/Color", "Style-Clr", "styleColor"), parse_string),
    "season_desc": (("Sea Desc", "Season Desc", "seasonDesc"), parse_string),
    "selling_seasons": (("Selling Seasons", "sellingSeasons"), parse_string),
    "division_desc": (("Division Desc", "Div Desc", "divisionDesc", "division"), parse_string),
    "product_line": (("Product Line", "productLine"), parse_string),
    "product_line_desc": (("Product Line Desc", "productLineDesc"), parse_string),
    "style_segment": (("Style Segment", "styleSegment"), parse_string),
    "style_segment_desc": (("Style Segment Desc.", "styleSegmentDesc"), parse_string),
    "label_desc": (("Label Desc", "labelDesc", "label"), parse_string),
    "price": (("Price", "Wholesale Price", "price", "usWholesale"), parse_number),
    "msrp": (("MSRP", "MSRP (Style)", "msrp", "usMsrp"), parse_number),
    "cost": (("Cost", "cost"), parse_number),
    "cad_price": (("CAD-Price", "cadPrice"), parse_number),
    "cad_msrp": (("CAD-MSRP", "cadMsrp"), parse_number),
    "cad_last_cost_sheet": (("CAD-Last Cost Sheet", "cadLastCostSheet"), parse_number),
    "carry_over": (("Carry Over", "C/O", "carryOver"), parse_bool),
    "carry_forward": (("Carry Forward", "carryForward"), parse_bool),
    "style_disc": (("Style Disc", "styleDisc"), parse_bool),
    "color_disc": (("Color Disc", "colorDisc"), parse_bool),
    "inventory_classification": (("Inventory Classification", "inventoryClassification"), parse_string),
    "country_of_origin": (("Country of Origin Description", "countryOfOrigin"), parse_string),
    "factory_name": (("Factory Description", "factoryName", "factory"), parse_string),
    "primary_supplier": (("Primary Supplier Desc (Self)", "primarySupplier"), parse_string),
    "hts_code": (("HTS Code", "htsCode"), parse_string),
    "designer_name": (("Designer Name", "Designer", "designerName", "designer"), parse_string),
    "tech_designer_name": (("Tech Designer Name", "Tech Designer", "techDesignerName"), parse_string),
    "style_color_notes": (("Style/Color Notes", "styleColorNotes"), parse_string),
}


def _build_product(row: Row, style_number: str) -> ProductRecord:
    values = _read_fields(row, PRODUCT_FIELDS)
    category_raw = parse_string(first_value(row, ("Cat Desc", "Category Description", "categoryDesc")))
    category = parse_string(first_value(row, ("Category", "category")))
    return ProductRecord(
        style_number=style_number,
        style_season=normalize_season(parse_string(first_value(row, ("StySea", "styleSeason")))).season,
        color_season=normalize_season(parse_string(first_value(row, ("ClrSea", "colorSeason")))).season,
        category_desc=normalize_category(category_raw or category),
        category=category,
        currency=parse_string(first_value(row, ("Curr", "currency"))) or "USD",
        **_season_fields(row, PRODUCT_SEASON),
        **values,
    )


def parse_products(rows: Iterable[Row]) -> ParseResult[ProductRecord]:
    """Parse line list rows."""
    return _parse_rows(rows, PRODUCT_STYLE, _build_product, RecordType.PRODUCTS)


# =============================================================================
# SALES
# =============================================================================

SALES_STYLE = ("Style", "Style #", "Style#", "styleNumber")
SALES_SEASON = ("Season", "season")

SALES_FIELDS: FieldSpec = {
    "style_desc": (("Style Description", "Style Desc", "styleDesc"), parse_string),
    "color_code": (("Color", "Clr", "colorCode", "color"), parse_string),
    "color_desc": (("Color Desc. From Clr Mst", "Color Desc", "colorDesc"), parse_string),
    "customer": (("Customer Name", "Customer", "customer"), parse_string),
    "customer_type": (("Customer Type", "customerType"), parse_string),
    "sales_rep": (("Sales Rep 1", "salesRep"), parse_string),
    "division_desc": (("Division", "Division Desc", "divisionDesc"), parse_string),
    "gender": (("Gender Descripton", "Gender Description", "gender"), parse_string),
    "units_booked": (("Units Current Booked", "unitsBooked"), parse_number),
    "units_open": (("Units Open", "unitsOpen"), parse_number),
    "revenue": (("$ Current Booked Net", "revenue"), parse_number),
    "shipped": (("$ Shipped Net", "shipped"), parse_number),
    "cost": (("Cost", "cost"), parse_number),
    "wholesale_price": (("Wholesale Price", "wholesalePrice"), parse_number),
    "msrp": (("MSRP (Style)", "MSRP (Order)", "msrp"), parse_number),
    "net_unit_price": (("Net Unit Price", "netUnitPrice"), parse_number),
    "order_type": (("Order Type", "orderType"), parse_string),
}


def _build_sale(row: Row, style_number: str) -> SalesRecord:
    values = _read_fields(row, SALES_FIELDS)
    category_raw = parse_string(first_value(row, ("Category Description", "Cat Desc", "categoryDesc")))
    return SalesRecord(
        style_number=style_number,
        category_desc=normalize_category(category_raw),
        **_season_fields(row, SALES_SEASON),
        **values,
    )


def parse_sales(rows: Iterable[Row]) -> ParseResult[SalesRecord]:
    """Parse sales booking rows."""
    return _parse_rows(rows, SALES_STYLE, _build_sale, RecordType.SALES)


# =============================================================================
# PRICING (price by season)
# =============================================================================

PRICING_STYLE = ("Style", "Style #", "Style#", "styleNumber")
PRICING_SEASON = ("Season", "season")

PRICING_FIELDS: FieldSpec = {
    "style_desc": (("Description", "Style Desc", "Style Description", "styleDesc"), parse_string),
    "color_code": (("Clr", "Color", "Color Code", "colorCode"), parse_string),
    "color_desc": (("Clr_Desc", "Clr Desc", "Color Desc", "colorDesc"), parse_string),
    "season_desc": (("Sea Desc", "Season Desc", "seasonDesc"), parse_string),
    "price": (("Price", "Wholesale", "WHSL", "price"), parse_number),
    "msrp": (("MSRP", "Retail", "msrp"), parse_number),
    "cost": (("Cost", "cost"), parse_number),
}


def _build_pricing(row: Row, style_number: str) -> PricingRecord:
    return PricingRecord(
        style_number=style_number,
        **_season_fields(row, PRICING_SEASON),
        **_read_fields(row, PRICING_FIELDS),
    )


def parse_pricing(rows: Iterable[Row]) -> ParseResult[PricingRecord]:
    """Parse season price list rows."""
    return _parse_rows(rows, PRICING_STYLE, _build_pricing, RecordType.PRICING)


# =============================================================================
# COSTS (landed cost sheets and standard cost history)
# =============================================================================

COST_STYLE = ("Style #", "Style", "Style#", "styleNumber")
COST_SEASON = ("Season", "season")
LANDED_COLUMNS = ("Landed", "LDP", "US Landed", "landed")
STANDARD_COLUMNS = ("Std Cost", "Total Cost")

COST_FIELDS: FieldSpec = {
    "style_name": (("Style Name", "Description", "styleName", "styleDesc"), parse_string),
    "factory": (("Factory", "factory"), parse_string),
    "country_of_origin": (("COO", "Country", "countryOfOrigin"), parse_string),
    "fob": (("FOB", "fob"), parse_number),
    "duty_cost": (("Duty Cost $", "Duty", "dutyCost"), parse_number),
    "tariff_cost": (("Tariff  Cost $", "Tariff Cost $", "Tariff", "tariffCost"), parse_number),
    "freight_cost": (("Freight Cost", "Freight", "freightCost"), parse_number),
    "overhead_cost": (("Overhead Cost", "Overhead", "overheadCost"), parse_number),
    "suggested_msrp": (("Suggested MSRP", "MSRP", "suggestedMsrp"), parse_number),
    "suggested_wholesale": (("Suggested Selling Price", "Wholesale", "suggestedWholesale"), parse_number),
    "margin": (("Margin", "margin"), parse_number),
    "design_team": (("Design Team", "designTeam"), parse_string),
    "developer": (("Developer/ Designer", "Developer", "developer"), parse_string),
}


def _cost_source(row: Row, default: Optional[CostSource]) -> CostSource:
    declared = parse_string(first_value(row, ("costSource", "Cost Source"))).lower()
    if declared in (CostSource.LANDED_COST.value, CostSource.STANDARD_COST.value):
        return CostSource(declared)
    if default is not None:
        return default
    has_landed = any(column in row for column in LANDED_COLUMNS)
    has_standard = any(column in row for column in STANDARD_COLUMNS)
    if has_standard and not has_landed:
        return CostSource.STANDARD_COST
    return CostSource.LANDED_COST


def parse_costs(
    rows: Iterable[Row],
    cost_source: Optional[CostSource] = None,
) -> ParseResult[CostRecord]:
    """
    Parse cost rows.

    Args:
        rows: Rows from a landed cost sheet (header offset already applied by
            the workbook reader) or a standard cost history sheet
        cost_source: Force the source for every row; detected per row when None
    """
    def build(row: Row, style_number: str) -> CostRecord:
        source = _cost_source(row, cost_source)
        landed_aliases = LANDED_COLUMNS if source == CostSource.LANDED_COST else STANDARD_COLUMNS + LANDED_COLUMNS
        return CostRecord(
            style_number=style_number,
            landed=parse_number(first_value(row, landed_aliases)),
            cost_source=source,
            **_season_fields(row, COST_SEASON),
            **_read_fields(row, COST_FIELDS),
        )

    return _parse_rows(rows, COST_STYLE, build, RecordType.COSTS)


# =============================================================================
# INVENTORY MOVEMENTS
# =============================================================================

INVENTORY_STYLE = ("Style", "Style #", "styleNumber")

INVENTORY_FIELDS: FieldSpec = {
    "style_desc": (("Style Desc", "styleDesc"), parse_string),
    "color": (("Clr", "Color", "color"), parse_string),
    "color_desc": (("Clr Desc", "colorDesc"), parse_string),
    "warehouse": (("Whse", "warehouse"), parse_string),
    "movement_type": (("Type", "movementType"), parse_string),
    "movement_date": (("Date", "movementDate"), parse_date),
    "reference": (("Reference", "reference"), parse_string),
    "customer_vendor": (("Customer/Vendor", "customerVendor"), parse_string),
    "reason_desc": (("Rea Desc", "reasonDesc"), parse_string),
    "cost_price": (("Cost/Price", "costPrice"), parse_number),
    "wholesale_price": (("Wholesale Price", "wholesalePrice"), parse_number),
    "msrp": (("MSRP", "msrp"), parse_number),
    "qty": (("Qty", "qty"), parse_number),
    "balance": (("Balance", "balance"), parse_number),
    "extension": (("Extension", "extension"), parse_number),
    "division_desc": (("Division Desc", "divisionDesc"), parse_string),
    "label_desc": (("Label Desc", "labelDesc"), parse_string),
    "period": (("Period", "period"), parse_string),
}


def _build_inventory(row: Row, style_number: str) -> InventoryRecord:
    return InventoryRecord(style_number=style_number, **_read_fields(row, INVENTORY_FIELDS))


def parse_inventory(rows: Iterable[Row]) -> ParseResult[InventoryRecord]:
    """Parse inventory movement rows."""
    return _parse_rows(rows, INVENTORY_STYLE, _build_inventory, RecordType.INVENTORY)


PARSERS: Dict[RecordType, Callable[[Iterable[Row]], ParseResult]] = {
    RecordType.PRODUCTS: parse_products,
    RecordType.SALES: parse_sales,
    RecordType.PRICING: parse_pricing,
    RecordType.COSTS: parse_costs,
    RecordType.INVENTORY: parse_inventory,
}


def parse_records(record_type: RecordType, rows: Iterable[Row]) -> ParseResult:
    """Dispatch to the parser for ``record_type``."""
    return PARSERS[RecordType(record_type)](rows)


def adopt_season(result: ParseResult, season: str) -> None:
    """Give records with an empty season the import's season, in place."""
    for record in result.records:
        if not is_blank(getattr(record, "season", None)) or not hasattr(record, "raw_season"):
            continue
        normalized = normalize_season(season)
        record.season = normalized.season
        record.season_type = normalized.season_type
        record.raw_season = normalized.raw_season
