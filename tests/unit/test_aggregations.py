"""
Unit Tests - Aggregation Builders
"""
import pytest

from kuhl_analytics.ingestion.records import InventoryRecord, SalesRecord
from kuhl_analytics.transformation.aggregations import (
    classify_gender,
    inventory_summary,
    sales_by_category,
    sales_by_channel,
    sales_by_gender,
    season_pivot,
    season_summary,
    top_customers,
)


class TestGender:

    @pytest.mark.parametrize("division, gender", [
        ("Women's", "Women's"),
        ("WOMENS BOTTOMS", "Women's"),
        ("Men's", "Men's"),
        ("mens", "Men's"),
        ("Accessories", "Unisex"),
        ("", "Unisex"),
        (None, "Unisex"),
    ])
    def test_classify_gender(self, division, gender):
        assert classify_gender(division) == gender


class TestSalesBreakdowns:
    """Tests for channel, category, gender and customer reductions"""

    def test_by_channel(self, sample_dataset):
        rows = sales_by_channel(sample_dataset.sales)

        assert [r["channel"] for r in rows] == ["BB", "WH"]
        rei = rows[0]
        assert rei["channel_name"] == "REI"
        assert rei["revenue"] == 1240.0
        assert rei["units"] == 25.0
        assert rei["customers"] == 1
        assert rei["revenue_percent"] == pytest.approx(1240.0 / 1990.0 * 100)
        assert rows[1]["channel_name"] == "Wholesale"

    def test_by_channel_season_filter(self, sample_dataset):
        rows = sales_by_channel(sample_dataset.sales, season="26SP")

        assert len(rows) == 1
        assert rows[0]["revenue"] == 240.0
        assert rows[0]["revenue_percent"] == pytest.approx(100.0)

    def test_unknown_channel_keeps_code(self):
        rows = sales_by_channel([SalesRecord(style_number="5099", season="26FA", customer_type="ZZ", revenue=10.0)])

        assert rows[0]["channel_name"] == "ZZ"

    def test_by_category_blank_is_other(self, sample_dataset):
        sales = sample_dataset.sales + [
            SalesRecord(style_number="7001", season="26FA", category_desc="", revenue=5.0, units_booked=1),
        ]

        rows = sales_by_category(sales)

        assert [r["category"] for r in rows] == ["Pants", "Jackets", "Other"]
        assert rows[0]["styles"] == 1

    def test_by_category_limit(self, sample_dataset):
        assert len(sales_by_category(sample_dataset.sales, limit=1)) == 1

    def test_by_gender(self, sample_dataset):
        rows = sales_by_gender(sample_dataset.sales)

        assert [(r["gender"], r["revenue"]) for r in rows] == [("Men's", 1240.0), ("Women's", 750.0)]

    def test_ties_break_by_name(self):
        sales = [
            SalesRecord(style_number="1", season="26FA", category_desc="Shorts", revenue=100.0),
            SalesRecord(style_number="2", season="26FA", category_desc="Jackets", revenue=100.0),
        ]

        assert [r["category"] for r in sales_by_category(sales)] == ["Jackets", "Shorts"]

    def test_top_customers(self, sample_dataset):
        rows = top_customers(sample_dataset.sales)

        assert [r["rank"] for r in rows] == [1, 2]
        assert rows[0]["customer"] == "REI Co-op"
        assert rows[0]["orders"] == 2
        assert rows[0]["revenue"] == 1240.0
        assert rows[1]["customer"] == "Summit Outfitters"

    def test_empty_input(self):
        assert sales_by_channel([]) == []
        assert sales_by_category([]) == []
        assert sales_by_gender([]) == []
        assert top_customers([]) == []


class TestSeasonSummary:

    def test_summary(self, sample_dataset):
        summary = season_summary(sample_dataset)

        assert [s["season"] for s in summary["seasons"]] == ["26SP", "26FA"]
        fall = summary["seasons"][1]
        assert fall["label"] == "Fall 2026"
        assert (fall["products"], fall["pricing"], fall["costs"], fall["sales"]) == (2, 1, 2, 2)
        assert fall["revenue"] == 1750.0
        assert fall["styles"] == 2
        assert fall["customers"] == 2

        totals = summary["totals"]
        assert totals["revenue"] == 1990.0
        assert totals["units"] == 35.0
        assert totals["customers"] == 2
        assert totals["products"] == 3
        assert totals["inventory"] == 0


class TestSeasonPivot:
    """Style x season matrix"""

    def test_wholesale_cells_carry_source(self, sample_dataset):
        pivot = season_pivot(sample_dataset, metric="wholesale")

        assert pivot["seasons"] == ["26SP", "26FA"]
        rows = {row["style_number"]: row["cells"] for row in pivot["rows"]}
        assert rows["5099"]["26FA"] == {"value": 50.0, "source": "pricebyseason", "calculated": False}
        assert rows["5099"]["26SP"]["source"] == "linelist"
        assert rows["6102"]["26SP"] == {"value": None, "source": "none", "calculated": False}

    def test_margin_cells_are_graded(self, sample_dataset):
        pivot = season_pivot(sample_dataset, metric="margin", seasons=["26FA"])

        rows = {row["style_number"]: row["cells"]["26FA"] for row in pivot["rows"]}
        assert rows["5099"]["value"] == pytest.approx(60.0)
        assert rows["5099"]["grade"] == "excellent"
        assert rows["5099"]["source"] == "landed_sheet"
        assert rows["6102"]["value"] == pytest.approx(50.0)
        assert rows["6102"]["grade"] == "good"
        assert rows["6102"]["source"] == "standard_cost"

    def test_rows_without_values_are_dropped(self, sample_dataset):
        pivot = season_pivot(sample_dataset, metric="sales", seasons=["25FA"])

        assert pivot["rows"] == []

    def test_unknown_metric(self, sample_dataset):
        with pytest.raises(ValueError):
            season_pivot(sample_dataset, metric="velocity")


def _movement(movement_type, warehouse, period, qty, extension):
    return InventoryRecord(
        style_number="5099",
        movement_type=movement_type,
        warehouse=warehouse,
        period=period,
        qty=qty,
        extension=extension,
    )


class TestInventorySummary:

    def test_groups_by_type_warehouse_and_period(self):
        movements = [
            _movement("Receipt", "01", "2026-02", 100, 2000.0),
            _movement("Receipt", "02", "2026-01", 50, 1000.0),
            _movement("Shipment", "01", "2026-02", -30, -600.0),
        ]

        summary = inventory_summary(movements)

        assert summary["total_count"] == 3
        assert summary["by_type"] == [
            {"movement_type": "Receipt", "count": 2, "total_qty": 150.0, "total_extension": 3000.0},
            {"movement_type": "Shipment", "count": 1, "total_qty": -30.0, "total_extension": -600.0},
        ]
        assert [w["warehouse"] for w in summary["by_warehouse"]] == ["01", "02"]
        assert summary["by_warehouse"][0]["total_qty"] == 70.0
        assert [p["period"] for p in summary["by_period"]] == ["2026-01", "2026-02"]

    def test_blank_labels_are_unknown(self):
        summary = inventory_summary([_movement("", " ", "", 5, 10.0)])

        assert summary["by_type"][0]["movement_type"] == "Unknown"
        assert summary["by_warehouse"][0]["warehouse"] == "Unknown"
        assert summary["by_period"][0]["period"] == "Unknown"

    def test_empty(self):
        assert inventory_summary([]) == {
            "total_count": 0,
            "by_type": [],
            "by_warehouse": [],
            "by_period": [],
        }
