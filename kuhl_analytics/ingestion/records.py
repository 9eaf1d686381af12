"""
Domain Records

Typed, flat records produced by the parsers and consumed by the merge
engine, the waterfall resolver and the aggregation builders. They mirror the
database tables one to one (see ``kuhl_analytics.database.models``).
"""

from dataclasses import asdict, dataclass, fields
from datetime import date
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Type, TypeVar

from kuhl_analytics.ingestion.seasons import SeasonType


class RecordType(str, Enum):
    """Kinds of records the import pipeline accepts"""
    PRODUCTS = "products"
    SALES = "sales"
    PRICING = "pricing"
    COSTS = "costs"
    INVENTORY = "inventory"


class CostSource(str, Enum):
    """Origin of a cost record; landed cost always outranks standard cost"""
    LANDED_COST = "landed_cost"
    STANDARD_COST = "standard_cost"


# =============================================================================
# RECORDS
# =============================================================================

@dataclass
class ProductRecord:
    """Line list row, one per style/color/season"""
    style_number: str
    season: str = ""
    season_type: SeasonType = SeasonType.UNKNOWN
    raw_season: str = ""
    style_desc: str = ""
    color: str = ""
    color_desc: str = ""
    style_color: str = ""
    style_season: str = ""
    color_season: str = ""
    season_desc: str = ""
    selling_seasons: str = ""
    division_desc: str = ""
    category_desc: str = ""
    category: str = ""
    product_line: str = ""
    product_line_desc: str = ""
    style_segment: str = ""
    style_segment_desc: str = ""
    label_desc: str = ""
    price: float = 0.0
    msrp: float = 0.0
    cost: float = 0.0
    currency: str = "USD"
    cad_price: float = 0.0
    cad_msrp: float = 0.0
    cad_last_cost_sheet: float = 0.0
    carry_over: bool = False
    carry_forward: bool = False
    style_disc: bool = False
    color_disc: bool = False
    inventory_classification: str = ""
    country_of_origin: str = ""
    factory_name: str = ""
    primary_supplier: str = ""
    hts_code: str = ""
    designer_name: str = ""
    tech_designer_name: str = ""
    style_color_notes: str = ""

    @property
    def key(self) -> Tuple[str, str, str]:
        return (self.style_number, self.color, self.season)


@dataclass
class SalesRecord:
    """Pre-aggregated booking line; not unique by any key"""
    style_number: str
    season: str = ""
    season_type: SeasonType = SeasonType.UNKNOWN
    raw_season: str = ""
    style_desc: str = ""
    color_code: str = ""
    color_desc: str = ""
    customer: str = ""
    customer_type: str = ""
    sales_rep: str = ""
    division_desc: str = ""
    category_desc: str = ""
    gender: str = ""
    units_booked: float = 0.0
    units_open: float = 0.0
    revenue: float = 0.0
    shipped: float = 0.0
    cost: float = 0.0
    wholesale_price: float = 0.0
    msrp: float = 0.0
    net_unit_price: float = 0.0
    order_type: str = ""

    @property
    def key(self) -> Tuple[str, str, str, str]:
        return (self.style_number, self.color_code, self.season, self.customer)


@dataclass
class PricingRecord:
    """Season price list row; authoritative for wholesale and MSRP"""
    style_number: str
    season: str = ""
    season_type: SeasonType = SeasonType.UNKNOWN
    raw_season: str = ""
    style_desc: str = ""
    color_code: str = ""
    color_desc: str = ""
    season_desc: str = ""
    price: float = 0.0
    msrp: float = 0.0
    cost: float = 0.0

    @property
    def key(self) -> Tuple[str, str]:
        return (self.style_number, self.season)


@dataclass
class CostRecord:
    """Landed or standard cost for a style in a season"""
    style_number: str
    season: str = ""
    season_type: SeasonType = SeasonType.UNKNOWN
    raw_season: str = ""
    style_name: str = ""
    factory: str = ""
    country_of_origin: str = ""
    fob: float = 0.0
    landed: float = 0.0
    duty_cost: float = 0.0
    tariff_cost: float = 0.0
    freight_cost: float = 0.0
    overhead_cost: float = 0.0
    suggested_msrp: float = 0.0
    suggested_wholesale: float = 0.0
    margin: float = 0.0
    design_team: str = ""
    developer: str = ""
    cost_source: CostSource = CostSource.LANDED_COST

    @property
    def key(self) -> Tuple[str, str]:
        return (self.style_number, self.season)


@dataclass
class InventoryRecord:
    """Inventory movement; inventory has no season partitioning"""
    style_number: str
    style_desc: str = ""
    color: str = ""
    color_desc: str = ""
    warehouse: str = ""
    movement_type: str = ""
    movement_date: Optional[date] = None
    reference: str = ""
    customer_vendor: str = ""
    reason_desc: str = ""
    cost_price: float = 0.0
    wholesale_price: float = 0.0
    msrp: float = 0.0
    qty: float = 0.0
    balance: float = 0.0
    extension: float = 0.0
    division_desc: str = ""
    label_desc: str = ""
    period: str = ""

    @property
    def season(self) -> str:
        return ""

    @property
    def key(self) -> Tuple[str, str, str, Optional[date], str]:
        return (self.style_number, self.color, self.warehouse, self.movement_date, self.reference)


RECORD_CLASSES = {
    RecordType.PRODUCTS: ProductRecord,
    RecordType.SALES: SalesRecord,
    RecordType.PRICING: PricingRecord,
    RecordType.COSTS: CostRecord,
    RecordType.INVENTORY: InventoryRecord,
}

R = TypeVar("R")


def record_to_dict(record: Any) -> Dict[str, Any]:
    """Plain dict with enum members flattened to their values."""
    data = asdict(record)
    for name, value in data.items():
        if isinstance(value, Enum):
            data[name] = value.value
    return data


def record_from_dict(cls: Type[R], data: Dict[str, Any]) -> R:
    """Build a record from a dict, ignoring unknown keys such as ``id``."""
    names = {f.name for f in fields(cls)}
    values = {k: v for k, v in data.items() if k in names}
    if "season_type" in values and values["season_type"] is not None:
        values["season_type"] = SeasonType(values["season_type"])
    if "cost_source" in values and values["cost_source"] is not None:
        values["cost_source"] = CostSource(values["cost_source"])
    return cls(**values)
