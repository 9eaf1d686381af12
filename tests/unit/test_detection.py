"""
Unit Tests - File Type Detection
"""
import pytest

from kuhl_analytics.ingestion.detection import (
    Confidence,
    detect_file_type,
    extract_season_from_filename,
)
from kuhl_analytics.ingestion.records import RecordType


class TestDetectFileType:
    """Header-based detection"""

    def test_sales_export(self):
        result = detect_file_type([
            "Style", "Season", "Customer Name", "Customer Type",
            "Units Current Booked", "$ Current Booked Net", "Ship Date",
        ])

        assert result.record_type == RecordType.SALES
        assert result.confidence == Confidence.HIGH
        assert "Customer Type" in result.matched_columns

    def test_landed_cost_sheet(self):
        result = detect_file_type(["Style #", "Season", "FOB", "Landed", "Duty", "Freight", "Factory"])

        assert result.record_type == RecordType.COSTS
        assert result.confidence == Confidence.HIGH

    def test_price_list(self):
        result = detect_file_type(["Style", "Season", "Sea Desc", "Price", "MSRP"])

        assert result.record_type == RecordType.PRICING
        assert result.confidence == Confidence.HIGH

    def test_line_list_beats_pricing(self):
        result = detect_file_type(["Style#", "Style Desc", "Cat Desc", "Division Desc", "Price", "MSRP", "Clr"])

        assert result.record_type == RecordType.PRODUCTS
        assert result.confidence == Confidence.HIGH

    def test_inventory_movements(self):
        result = detect_file_type(["Style", "Clr", "Whse", "Type", "Date", "Qty", "Balance"])

        assert result.record_type == RecordType.INVENTORY
        assert result.confidence == Confidence.MEDIUM

    def test_headers_are_case_insensitive(self):
        result = detect_file_type(["style", "season", "sea desc", "price", "msrp"])

        assert result.record_type == RecordType.PRICING

    def test_unknown(self):
        result = detect_file_type(["foo", "bar", None])

        assert result.record_type is None
        assert result.confidence == Confidence.LOW
        assert result.all_columns == ["foo", "bar"]


class TestSeasonFromFilename:

    @pytest.mark.parametrize("filename, season", [
        ("KUHL Spring 2027 Line List.xlsx", "27SP"),
        ("Fall_2026 costs.xlsx", "26FA"),
        ("landed_FA26.xlsx", "26FA"),
        ("sales_26SP.csv", "26SP"),
        ("F26 pricing.xlsx", "26FA"),
        ("report.xlsx", None),
        ("", None),
        (None, None),
    ])
    def test_extract(self, filename, season):
        assert extract_season_from_filename(filename) == season
