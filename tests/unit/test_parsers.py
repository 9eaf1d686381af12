"""
Unit Tests - Record Parsers
"""
from datetime import date

from kuhl_analytics.ingestion.parsers import (
    adopt_season,
    parse_costs,
    parse_inventory,
    parse_pricing,
    parse_products,
    parse_records,
    parse_sales,
)
from kuhl_analytics.ingestion.records import (
    CostSource,
    PricingRecord,
    RecordType,
    SalesRecord,
    record_from_dict,
    record_to_dict,
)
from kuhl_analytics.ingestion.seasons import SeasonType


class TestParseSales:
    """Tests for sales export parsing"""

    def test_spreadsheet_headers(self, sales_rows):
        result = parse_sales(sales_rows)

        assert len(result) == 2
        assert result.skipped == 0
        sale = result.records[0]
        assert sale.style_number == "5099"
        assert sale.season == "26FA"
        assert sale.raw_season == "Fall 26"
        assert sale.customer == "REI Co-op"
        assert sale.customer_type == "BB"
        assert sale.category_desc == "Pants"
        assert sale.units_booked == 20.0
        assert sale.revenue == 1000.0

    def test_rows_without_style_are_skipped(self):
        result = parse_sales([
            {"Style": "", "Season": "FA26"},
            {"Season": "FA26"},
            {"Style": "5099", "Season": "FA26"},
        ])

        assert len(result) == 1
        assert result.skipped == 2

    def test_malformed_cells_default(self):
        sale = parse_sales([{
            "Style": 5099.0,
            "Season": None,
            "Units Current Booked": "#N/A",
            "$ Current Booked Net": float("nan"),
        }]).records[0]

        assert sale.style_number == "5099"
        assert sale.season == ""
        assert sale.season_type == SeasonType.UNKNOWN
        assert sale.units_booked == 0.0
        assert sale.revenue == 0.0

    def test_camel_case_payload(self):
        sale = parse_sales([{
            "styleNumber": "5099",
            "season": "SP27",
            "customerType": "EC",
            "unitsBooked": 3,
            "revenue": 150,
            "wholesalePrice": 50,
        }]).records[0]

        assert sale.season == "27SP"
        assert sale.customer_type == "EC"
        assert sale.wholesale_price == 50.0


class TestParseProducts:
    """Tests for line list parsing"""

    def test_line_list_row(self):
        product = parse_products([{
            "Style#": "5099",
            "Seas": "FA26 - Bulk",
            "Clr": "BLK",
            "Style Desc": "Rydr Pant",
            "Cat Desc": "Men's Pants",
            "Price": "$50.00",
            "MSRP": 100,
            "Cost": "20",
            "Carry Over": "Y",
            "StySea": "SP26",
        }]).records[0]

        assert product.key == ("5099", "BLK", "26FA")
        assert product.season_type == SeasonType.BULK
        assert product.category_desc == "Pants"
        assert product.price == 50.0
        assert product.msrp == 100.0
        assert product.cost == 20.0
        assert product.carry_over is True
        assert product.style_season == "26SP"
        assert product.currency == "USD"

    def test_selling_seasons_do_not_fill_season_description(self):
        product = parse_products([{
            "Style#": "5099",
            "Seas": "FA26",
            "Sea Desc": "Fall 2026",
            "Selling Seasons": "FA26 SP27",
        }]).records[0]

        assert product.season_desc == "Fall 2026"
        assert product.selling_seasons == "FA26 SP27"

        bare = parse_products([{"Style#": "5099", "Seas": "FA26", "Selling Seasons": "FA26 SP27"}]).records[0]
        assert bare.season_desc == ""


class TestParsePricing:
    """Tests for price list parsing"""

    def test_price_list_row(self):
        pricing = parse_pricing([
            {"Style": "5099", "Season": "FA26", "Sea Desc": "Fall 2026", "Price": 50, "MSRP": "100"},
        ]).records[0]

        assert pricing.key == ("5099", "26FA")
        assert pricing.season_desc == "Fall 2026"
        assert pricing.price == 50.0
        assert pricing.msrp == 100.0


class TestParseCosts:
    """Tests for cost sheet parsing"""

    def test_landed_sheet(self):
        cost = parse_costs([
            {"Style #": "5099", "Season": "FA26", "Landed": "$22.40", "FOB": 15, "Factory": "Hanoi 2"},
        ]).records[0]

        assert cost.cost_source == CostSource.LANDED_COST
        assert cost.landed == 22.4
        assert cost.fob == 15.0
        assert cost.factory == "Hanoi 2"

    def test_standard_cost_detected_from_columns(self):
        cost = parse_costs([{"Style": "5099", "Season": "FA26", "Std Cost": 24}]).records[0]

        assert cost.cost_source == CostSource.STANDARD_COST
        assert cost.landed == 24.0

    def test_declared_source_wins(self):
        cost = parse_costs([
            {"styleNumber": "5099", "season": "26FA", "landed": 21, "costSource": "standard_cost"},
        ]).records[0]

        assert cost.cost_source == CostSource.STANDARD_COST
        assert cost.landed == 21.0

    def test_forced_source(self):
        cost = parse_costs(
            [{"Style #": "5099", "Season": "FA26", "Landed": 22}],
            cost_source=CostSource.STANDARD_COST,
        ).records[0]

        assert cost.cost_source == CostSource.STANDARD_COST
        assert cost.landed == 22.0


class TestParseInventory:
    """Tests for inventory movement parsing"""

    def test_movement_row(self):
        movement = parse_inventory([{
            "Style": "5099",
            "Clr": "BLK",
            "Whse": "SLC",
            "Type": "Receipt",
            "Date": "2026-03-04",
            "Qty": "120",
            "Balance": "340",
        }]).records[0]

        assert movement.warehouse == "SLC"
        assert movement.movement_date == date(2026, 3, 4)
        assert movement.qty == 120.0
        assert movement.season == ""


class TestHelpers:
    """Tests for dispatch, season adoption and dict conversion"""

    def test_parse_records_dispatch(self):
        result = parse_records(RecordType.PRICING, [{"Style": "5099", "Season": "FA26", "Price": 50}])

        assert isinstance(result.records[0], PricingRecord)

    def test_adopt_season_only_fills_blanks(self):
        result = parse_sales([
            {"Style": "5099", "Season": ""},
            {"Style": "6102", "Season": "SP26"},
        ])

        adopt_season(result, "Fall 26")

        assert [r.season for r in result.records] == ["26FA", "26SP"]
        assert result.records[0].season_type == SeasonType.MAIN

    def test_dict_conversion_flattens_enums(self):
        sale = SalesRecord(style_number="5099", season="26FA", season_type=SeasonType.BULK)

        data = record_to_dict(sale)
        assert data["season_type"] == "Bulk"

        restored = record_from_dict(SalesRecord, {**data, "id": 7})
        assert restored == sale
