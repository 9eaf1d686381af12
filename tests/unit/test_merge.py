"""
Unit Tests - Merge Engine
"""
from kuhl_analytics.ingestion.records import (
    CostRecord,
    CostSource,
    InventoryRecord,
    ProductRecord,
    RecordType,
    SalesRecord,
)
from kuhl_analytics.transformation.merge import (
    DeleteScope,
    covered_seasons_of,
    merge_import,
    requires_existing,
)
from kuhl_analytics.transformation.state import Dataset


def _sale(style: str, season: str, revenue: float = 100.0) -> SalesRecord:
    return SalesRecord(style_number=style, season=season, revenue=revenue, units_booked=1)


def _cost(style: str, season: str, landed: float, source: CostSource = CostSource.LANDED_COST) -> CostRecord:
    return CostRecord(style_number=style, season=season, landed=landed, cost_source=source)


class TestReplaceMode:
    """Tests for season-scoped replacement"""

    def test_replaces_only_covered_seasons(self):
        existing = [_sale("5099", "26FA"), _sale("6102", "26FA"), _sale("5099", "26SP")]
        incoming = [_sale("7001", "26FA", 300.0)]

        plan = merge_import(existing, incoming, ["26FA"], RecordType.SALES)

        assert plan.to_delete == existing[:2]
        assert plan.to_keep == [existing[2]]
        assert plan.to_insert == incoming
        assert plan.scopes == [DeleteScope(seasons=("26FA",))]

    def test_other_seasons_untouched(self):
        dataset = Dataset(sales=[_sale("5099", "25FA"), _sale("5099", "26SP")])

        dataset.apply_import(RecordType.SALES, [_sale("5099", "26FA")])

        assert sorted(r.season for r in dataset.sales) == ["25FA", "26FA", "26SP"]

    def test_reimport_is_idempotent(self):
        batch = [_sale("5099", "26FA"), _sale("6102", "26FA", 250.0)]
        dataset = Dataset(sales=[_sale("5099", "26SP")])

        dataset.apply_import(RecordType.SALES, list(batch))
        first = list(dataset.sales)
        dataset.apply_import(RecordType.SALES, list(batch))

        assert dataset.sales == first

    def test_sales_duplicates_are_kept(self):
        incoming = [_sale("5099", "26FA"), _sale("5099", "26FA")]

        plan = merge_import([], incoming, ["26FA"], RecordType.SALES)

        assert len(plan.to_insert) == 2

    def test_inventory_replaces_everything(self):
        existing = [InventoryRecord(style_number="5099", warehouse="SLC")]
        incoming = [InventoryRecord(style_number="6102", warehouse="SLC")]

        plan = merge_import(existing, incoming, [], RecordType.INVENTORY)

        assert plan.to_delete == existing
        assert plan.result == incoming
        assert plan.scopes == [DeleteScope(everything=True)]


class TestCostPriority:
    """Landed cost always outranks standard cost"""

    def test_standard_import_never_overrides_landed(self):
        existing = [_cost("5099", "26FA", 20.0)]
        incoming = [
            _cost("5099", "26FA", 24.0, CostSource.STANDARD_COST),
            _cost("6102", "26FA", 31.0, CostSource.STANDARD_COST),
        ]

        plan = merge_import(existing, incoming, ["26FA"], RecordType.COSTS)

        assert plan.to_keep == existing
        assert plan.dropped == [incoming[0]]
        assert plan.to_insert == [incoming[1]]
        assert plan.scopes == [DeleteScope(seasons=("26FA",), cost_source=CostSource.STANDARD_COST)]

    def test_standard_import_replaces_older_standard(self):
        existing = [_cost("6102", "26FA", 29.0, CostSource.STANDARD_COST)]
        incoming = [_cost("6102", "26FA", 31.0, CostSource.STANDARD_COST)]

        plan = merge_import(existing, incoming, ["26FA"], RecordType.COSTS)

        assert plan.to_delete == existing
        assert plan.result == incoming

    def test_landed_import_clears_all_costs_of_season(self):
        existing = [
            _cost("5099", "26FA", 20.0),
            _cost("6102", "26FA", 29.0, CostSource.STANDARD_COST),
            _cost("5099", "26SP", 18.0),
        ]
        incoming = [_cost("5099", "26FA", 21.0)]

        plan = merge_import(existing, incoming, ["26FA"], RecordType.COSTS)

        assert plan.to_delete == existing[:2]
        assert plan.result == [existing[2], incoming[0]]

    def test_mixed_batch_prefers_landed(self):
        incoming = [
            _cost("5099", "26FA", 24.0, CostSource.STANDARD_COST),
            _cost("5099", "26FA", 21.0),
        ]

        plan = merge_import([], incoming, ["26FA"], RecordType.COSTS)

        assert plan.to_insert == [incoming[1]]
        assert plan.dropped == [incoming[0]]

    def test_forced_source_scopes_every_season(self):
        plan = merge_import([], [], ["26FA", "26SP"], RecordType.COSTS, cost_source=CostSource.STANDARD_COST)

        assert plan.scopes == [DeleteScope(seasons=("26FA", "26SP"), cost_source=CostSource.STANDARD_COST)]


class TestAppendMode:
    """Tests for append imports"""

    def test_append_skips_existing_keys(self):
        existing = [ProductRecord(style_number="5099", color="BLK", season="26FA", price=49.0)]
        incoming = [
            ProductRecord(style_number="5099", color="BLK", season="26FA", price=55.0),
            ProductRecord(style_number="5099", color="NAV", season="26FA", price=55.0),
        ]

        plan = merge_import(existing, incoming, ["26FA"], RecordType.PRODUCTS, replace_existing=False)

        assert plan.scopes == []
        assert plan.to_delete == []
        assert plan.dropped == [incoming[0]]
        assert plan.result == [existing[0], incoming[1]]

    def test_append_sales_adds_everything(self):
        existing = [_sale("5099", "26FA")]
        incoming = [_sale("5099", "26FA")]

        plan = merge_import(existing, incoming, ["26FA"], RecordType.SALES, replace_existing=False)

        assert len(plan.result) == 2

    def test_append_landed_cost_supersedes_standard(self):
        existing = [
            _cost("5099", "27SP", 24.0, CostSource.STANDARD_COST),
            _cost("6102", "27SP", 30.0, CostSource.STANDARD_COST),
        ]
        incoming = [_cost("5099", "27SP", 20.0)]

        plan = merge_import(existing, incoming, ["27SP"], RecordType.COSTS, replace_existing=False)

        assert plan.to_delete == [existing[0]]
        assert plan.dropped == []
        assert plan.result == [existing[1], incoming[0]]
        assert plan.scopes == [
            DeleteScope(seasons=("27SP",), cost_source=CostSource.STANDARD_COST, style_numbers=("5099",))
        ]

    def test_append_keeps_stored_landed_cost(self):
        existing = [_cost("5099", "27SP", 20.0)]
        incoming = [
            _cost("5099", "27SP", 22.0),
            _cost("5099", "27SP", 24.0, CostSource.STANDARD_COST),
        ]

        plan = merge_import(existing, incoming, ["27SP"], RecordType.COSTS, replace_existing=False)

        assert plan.scopes == []
        assert plan.to_delete == []
        assert plan.dropped == incoming
        assert plan.result == existing

    def test_append_standard_cost_yields_to_landed_in_same_batch(self):
        incoming = [
            _cost("5099", "27SP", 24.0, CostSource.STANDARD_COST),
            _cost("5099", "27SP", 20.0),
        ]

        plan = merge_import([], incoming, ["27SP"], RecordType.COSTS, replace_existing=False)

        assert plan.dropped == [incoming[0]]
        assert plan.result == [incoming[1]]


class TestHelpers:
    """Tests for planning helpers"""

    def test_requires_existing(self):
        assert requires_existing(RecordType.COSTS, True)
        assert requires_existing(RecordType.PRODUCTS, False)
        assert not requires_existing(RecordType.PRODUCTS, True)
        assert not requires_existing(RecordType.SALES, False)

    def test_covered_seasons_first_seen_order(self):
        records = [_sale("1", "26SP"), _sale("2", "26FA"), _sale("3", "26SP")]
        assert covered_seasons_of(records) == ("26SP", "26FA")

    def test_scope_matches_cost_source(self):
        scope = DeleteScope(seasons=("26FA",), cost_source=CostSource.STANDARD_COST)

        assert scope.matches(_cost("1", "26FA", 1.0, CostSource.STANDARD_COST))
        assert not scope.matches(_cost("1", "26FA", 1.0))
        assert not scope.matches(_cost("1", "26SP", 1.0, CostSource.STANDARD_COST))

    def test_scope_narrowed_to_styles(self):
        scope = DeleteScope(seasons=("26FA",), style_numbers=("1",))

        assert scope.matches(_cost("1", "26FA", 1.0))
        assert not scope.matches(_cost("2", "26FA", 1.0))
