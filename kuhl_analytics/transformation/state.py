"""
Application State

In-memory working copy of the stored records. Request handlers build one
from the database (or a fallback source) and hand it to the waterfall
resolver and the aggregation builders. Every mutation goes through
``Dataset.apply_import`` so in-memory state follows the same merge rules as
the database.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import polars as pl

from kuhl_analytics.ingestion.records import (
    CostRecord,
    CostSource,
    InventoryRecord,
    PricingRecord,
    ProductRecord,
    RecordType,
    SalesRecord,
    record_to_dict,
)
from kuhl_analytics.transformation.merge import MergePlan, covered_seasons_of, merge_import


@dataclass
class Dataset:
    """
    All records known to the service.

    Example:
        dataset = Dataset()
        dataset.apply_import(RecordType.SALES, parsed.records)
        resolver = WaterfallResolver(dataset)
    """
    products: List[ProductRecord] = field(default_factory=list)
    sales: List[SalesRecord] = field(default_factory=list)
    pricing: List[PricingRecord] = field(default_factory=list)
    costs: List[CostRecord] = field(default_factory=list)
    inventory: List[InventoryRecord] = field(default_factory=list)

    _ATTRS = {
        RecordType.PRODUCTS: "products",
        RecordType.SALES: "sales",
        RecordType.PRICING: "pricing",
        RecordType.COSTS: "costs",
        RecordType.INVENTORY: "inventory",
    }

    def records(self, record_type: RecordType) -> List[Any]:
        return getattr(self, self._ATTRS[RecordType(record_type)])

    def apply_import(
        self,
        record_type: RecordType,
        incoming: List[Any],
        covered_seasons: Optional[Iterable[str]] = None,
        replace_existing: bool = True,
        cost_source: Optional[CostSource] = None,
    ) -> MergePlan:
        """Merge ``incoming`` into this dataset and return the applied plan."""
        record_type = RecordType(record_type)
        if covered_seasons is None:
            covered_seasons = covered_seasons_of(incoming)
        plan = merge_import(
            self.records(record_type),
            incoming,
            covered_seasons,
            record_type,
            replace_existing=replace_existing,
            cost_source=cost_source,
        )
        setattr(self, self._ATTRS[record_type], plan.result)
        return plan

    def seasons(self) -> List[str]:
        """Every non-empty season present in any seasonal record type."""
        found = set()
        for record_type in (RecordType.PRODUCTS, RecordType.SALES, RecordType.PRICING, RecordType.COSTS):
            found.update(r.season for r in self.records(record_type) if r.season)
        return sorted(found)

    def counts(self) -> Dict[str, int]:
        return {attr: len(getattr(self, attr)) for attr in self._ATTRS.values()}

    def frame(self, record_type: RecordType) -> pl.DataFrame:
        """Records of one type as a polars DataFrame (empty frame keeps no columns)."""
        rows = [record_to_dict(r) for r in self.records(record_type)]
        if not rows:
            return pl.DataFrame()
        return pl.DataFrame(rows, infer_schema_length=None)
