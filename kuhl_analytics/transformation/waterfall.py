"""
Waterfall Resolver

Resolves the wholesale price, MSRP and landed cost of a style in a season
from several partially overlapping sources, in a fixed priority order, and
reports which source supplied each value.

Price order:
    1. pricebyseason  - season price list
    2. sales          - wholesale/MSRP carried on booking lines
    3. linelist       - line list price/MSRP
    4. sales (calculated) - booked revenue / booked units

Cost order:
    1. landed_sheet   - landed cost requests
    2. standard_cost  - standard cost history
    3. linelist       - line list cost

Zero means "not provided" everywhere: a source only wins when it carries a
positive value, and zero values are reported as None.
"""

import re
from dataclasses import dataclass
from enum import Enum
from functools import cached_property
from typing import Callable, Dict, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar

import structlog

from kuhl_analytics.ingestion.records import CostSource
from kuhl_analytics.transformation.cleaners import clean_style_number
from kuhl_analytics.transformation.state import Dataset

logger = structlog.get_logger(__name__)

StyleSeason = Tuple[str, str]
T = TypeVar("T")

_VARIANT_SUFFIX_RE = re.compile(r"^(.+?)[RXT]$", re.IGNORECASE)


class PriceSource(str, Enum):
    PRICEBYSEASON = "pricebyseason"
    SALES = "sales"
    LINELIST = "linelist"
    NONE = "none"


class CostTier(str, Enum):
    LANDED_SHEET = "landed_sheet"
    STANDARD_COST = "standard_cost"
    LINELIST = "linelist"
    NONE = "none"


@dataclass(frozen=True)
class PriceResolution:
    wholesale: Optional[float]
    msrp: Optional[float]
    source: PriceSource
    calculated: bool = False


@dataclass(frozen=True)
class CostResolution:
    landed: Optional[float]
    fob: Optional[float]
    source: CostTier


NO_PRICE = PriceResolution(None, None, PriceSource.NONE)
NO_COST = CostResolution(None, None, CostTier.NONE)


@dataclass(frozen=True)
class StyleSeasonView:
    """Everything the pivot shows for one style in one season"""
    style_number: str
    season: str
    price: PriceResolution
    cost: CostResolution
    revenue: float
    units: float

    @property
    def margin(self) -> Optional[float]:
        return margin(self.price.wholesale, self.cost.landed)


def _positive(value: Optional[float]) -> Optional[float]:
    return value if value is not None and value > 0 else None


def margin(wholesale: Optional[float], landed: Optional[float]) -> Optional[float]:
    """
    Gross margin percent, ``(wholesale - landed) / wholesale * 100``.

    None unless both inputs are positive.
    """
    if not wholesale or not landed or wholesale <= 0 or landed <= 0:
        return None
    return (wholesale - landed) / wholesale * 100


@dataclass(frozen=True)
class MarginAnalysis:
    cost_to_wholesale: Optional[float]
    wholesale_to_msrp: Optional[float]
    full_markup: Optional[float]
    cost_to_wholesale_multiplier: Optional[float]
    wholesale_to_msrp_multiplier: Optional[float]
    full_multiplier: Optional[float]
    has_cost: bool


def calculate_margins(cost: float, price: float, msrp: float) -> MarginAnalysis:
    """Margin and markup ratios between cost, wholesale and MSRP."""
    has_cost = cost > 0
    return MarginAnalysis(
        cost_to_wholesale=(price - cost) / price * 100 if has_cost and price > 0 else None,
        wholesale_to_msrp=(msrp - price) / msrp * 100 if msrp > 0 else None,
        full_markup=(msrp - cost) / cost * 100 if has_cost else None,
        cost_to_wholesale_multiplier=price / cost if has_cost else None,
        wholesale_to_msrp_multiplier=msrp / price if price > 0 else None,
        full_multiplier=msrp / cost if has_cost else None,
        has_cost=has_cost,
    )


def margin_grade(value: Optional[float]) -> str:
    if value is None:
        return "unknown"
    if value >= 60:
        return "excellent"
    if value >= 50:
        return "good"
    if value >= 40:
        return "fair"
    return "poor"


def base_style_number(style_number: str) -> str:
    """Strip the tall/plus variant suffix (R, X or T) from a cleaned style number."""
    cleaned = clean_style_number(style_number)
    match = _VARIANT_SUFFIX_RE.match(cleaned)
    return match.group(1) if match else cleaned


def first_available(strategies: Sequence[Callable[[StyleSeason], Optional[T]]]) -> Callable[[StyleSeason], Optional[T]]:
    """Combine strategies so the first one returning a value wins."""
    def resolve(key: StyleSeason) -> Optional[T]:
        for strategy in strategies:
            value = strategy(key)
            if value is not None:
                return value
        return None
    return resolve


class WaterfallResolver:
    """
    Price and cost resolution over one Dataset snapshot.

    Lookup indexes are built on first use and results are memoized, so a
    resolver should live for a single request.

    Example:
        resolver = WaterfallResolver(dataset)
        price = resolver.resolve_pricing("5099", "26FA")
        price.wholesale, price.source
    """

    def __init__(self, dataset: Dataset, combine_styles: bool = False):
        self.dataset = dataset
        self.combine_styles = combine_styles
        self._price_cache: Dict[StyleSeason, PriceResolution] = {}
        self._cost_cache: Dict[StyleSeason, CostResolution] = {}
        self._price_chain = first_available([
            self._from_price_list,
            self._from_sales_prices,
            self._from_line_list_prices,
            self._from_implied_wholesale,
        ])
        self._cost_chain = first_available([
            self._from_landed_sheet,
            self._from_standard_cost,
            self._from_line_list_cost,
        ])

    def style_key(self, style_number: str) -> str:
        if self.combine_styles:
            return base_style_number(style_number)
        return clean_style_number(style_number)

    def _index(self, records: Iterable, accept: Callable) -> Dict[StyleSeason, object]:
        index: Dict[StyleSeason, object] = {}
        for record in records:
            if not record.season or not accept(record):
                continue
            index.setdefault((self.style_key(record.style_number), record.season), record)
        return index

    # ----- indexes -----

    @cached_property
    def _price_list(self) -> Dict[StyleSeason, object]:
        return self._index(self.dataset.pricing, lambda p: p.msrp > 0 or p.price > 0)

    @cached_property
    def _sales_prices(self) -> Dict[StyleSeason, object]:
        return self._index(self.dataset.sales, lambda s: s.msrp > 0 or s.wholesale_price > 0)

    @cached_property
    def _line_list_prices(self) -> Dict[StyleSeason, object]:
        return self._index(self.dataset.products, lambda p: p.msrp > 0 or p.price > 0)

    @cached_property
    def _sales_totals(self) -> Dict[StyleSeason, Tuple[float, float]]:
        totals: Dict[StyleSeason, Tuple[float, float]] = {}
        for sale in self.dataset.sales:
            key = (self.style_key(sale.style_number), sale.season)
            revenue, units = totals.get(key, (0.0, 0.0))
            totals[key] = (revenue + sale.revenue, units + sale.units_booked)
        return totals

    @cached_property
    def _landed(self) -> Dict[StyleSeason, object]:
        return self._index(
            self.dataset.costs,
            lambda c: c.cost_source == CostSource.LANDED_COST and (c.landed > 0 or c.fob > 0),
        )

    @cached_property
    def _standard(self) -> Dict[StyleSeason, object]:
        return self._index(
            self.dataset.costs,
            lambda c: c.cost_source == CostSource.STANDARD_COST and (c.landed > 0 or c.fob > 0),
        )

    @cached_property
    def _line_list_costs(self) -> Dict[StyleSeason, object]:
        return self._index(self.dataset.products, lambda p: p.cost > 0)

    # ----- price strategies -----

    def _from_price_list(self, key: StyleSeason) -> Optional[PriceResolution]:
        record = self._price_list.get(key)
        if record is None:
            return None
        return PriceResolution(_positive(record.price), _positive(record.msrp), PriceSource.PRICEBYSEASON)

    def _from_sales_prices(self, key: StyleSeason) -> Optional[PriceResolution]:
        record = self._sales_prices.get(key)
        if record is None:
            return None
        return PriceResolution(_positive(record.wholesale_price), _positive(record.msrp), PriceSource.SALES)

    def _from_line_list_prices(self, key: StyleSeason) -> Optional[PriceResolution]:
        record = self._line_list_prices.get(key)
        if record is None:
            return None
        return PriceResolution(_positive(record.price), _positive(record.msrp), PriceSource.LINELIST)

    def _from_implied_wholesale(self, key: StyleSeason) -> Optional[PriceResolution]:
        revenue, units = self._sales_totals.get(key, (0.0, 0.0))
        if units <= 0:
            return None
        return PriceResolution(_positive(revenue / units), None, PriceSource.SALES, calculated=True)

    # ----- cost strategies -----

    def _from_landed_sheet(self, key: StyleSeason) -> Optional[CostResolution]:
        record = self._landed.get(key)
        if record is None:
            return None
        return CostResolution(_positive(record.landed), _positive(record.fob), CostTier.LANDED_SHEET)

    def _from_standard_cost(self, key: StyleSeason) -> Optional[CostResolution]:
        record = self._standard.get(key)
        if record is None:
            return None
        return CostResolution(_positive(record.landed), _positive(record.fob), CostTier.STANDARD_COST)

    def _from_line_list_cost(self, key: StyleSeason) -> Optional[CostResolution]:
        record = self._line_list_costs.get(key)
        if record is None:
            return None
        return CostResolution(_positive(record.cost), None, CostTier.LINELIST)

    # ----- public API -----

    def resolve_pricing(self, style_number: str, season: str) -> PriceResolution:
        key = (self.style_key(style_number), season)
        if key not in self._price_cache:
            self._price_cache[key] = self._price_chain(key) or NO_PRICE
        return self._price_cache[key]

    def resolve_cost(self, style_number: str, season: str) -> CostResolution:
        key = (self.style_key(style_number), season)
        if key not in self._cost_cache:
            self._cost_cache[key] = self._cost_chain(key) or NO_COST
        return self._cost_cache[key]

    def sales_totals(self, style_number: str, season: str) -> Tuple[float, float]:
        """Booked ``(revenue, units)`` of a style in a season."""
        return self._sales_totals.get((self.style_key(style_number), season), (0.0, 0.0))

    def view(self, style_number: str, season: str) -> StyleSeasonView:
        revenue, units = self.sales_totals(style_number, season)
        return StyleSeasonView(
            style_number=self.style_key(style_number),
            season=season,
            price=self.resolve_pricing(style_number, season),
            cost=self.resolve_cost(style_number, season),
            revenue=revenue,
            units=units,
        )

    def style_numbers(self) -> List[str]:
        """Every style known to any source, line list first."""
        seen: Dict[str, None] = {}
        for records in (self.dataset.products, self.dataset.pricing, self.dataset.sales, self.dataset.costs):
            for record in records:
                seen.setdefault(self.style_key(record.style_number), None)
        return list(seen)
