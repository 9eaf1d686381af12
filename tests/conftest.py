"""
Test Suite Configuration
"""
from typing import AsyncGenerator, List

import pytest
from httpx import ASGITransport, AsyncClient

from kuhl_analytics.config import get_settings
from kuhl_analytics.database.connection import close_database, init_database
from kuhl_analytics.ingestion.records import (
    CostRecord,
    CostSource,
    PricingRecord,
    ProductRecord,
    SalesRecord,
)
from kuhl_analytics.serving.api.main import create_api_app
from kuhl_analytics.transformation.state import Dataset


@pytest.fixture
async def database(tmp_path, monkeypatch) -> AsyncGenerator[None, None]:
    """Fresh in-memory SQLite database per test, with empty fallback directories"""
    monkeypatch.setenv("IMPORT_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("IMPORT_SNAPSHOT_PATH", str(tmp_path / "data" / "snapshot"))
    get_settings.cache_clear()
    await init_database("sqlite+aiosqlite://", create_tables=True)
    yield
    await close_database()
    get_settings.cache_clear()


@pytest.fixture
async def client(database) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client bound to the API with a live database"""
    app = create_api_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http


@pytest.fixture
async def offline_client(tmp_path, monkeypatch) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with no database and no fallback files"""
    monkeypatch.setenv("IMPORT_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("IMPORT_SNAPSHOT_PATH", str(tmp_path / "snapshot"))
    get_settings.cache_clear()
    app = create_api_app()
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http
    get_settings.cache_clear()


@pytest.fixture
def sales_rows() -> List[dict]:
    """Sales export rows as they come out of the workbook reader"""
    return [
        {
            "Style": "5099",
            "Season": "Fall 26",
            "Customer Name": "REI Co-op",
            "Customer Type": "BB",
            "Division": "Men's",
            "Category Description": "MEN'S PANTS",
            "Units Current Booked": 20,
            "$ Current Booked Net": "$1,000.00",
        },
        {
            "Style": "6102",
            "Season": "FA26",
            "Customer Name": "Summit Outfitters",
            "Customer Type": "WH",
            "Division": "Women's",
            "Category Description": "Jackets",
            "Units Current Booked": 10,
            "$ Current Booked Net": 750,
        },
    ]


@pytest.fixture
def sample_dataset() -> Dataset:
    """Two styles across two seasons from every source"""
    return Dataset(
        products=[
            ProductRecord(style_number="5099", season="26SP", color="BLK", price=48.0, msrp=95.0, cost=19.0),
            ProductRecord(style_number="5099", season="26FA", color="BLK", price=49.0, msrp=99.0, cost=21.0),
            ProductRecord(style_number="6102", season="26FA", color="NAV", price=60.0, msrp=120.0),
        ],
        pricing=[
            PricingRecord(style_number="5099", season="26FA", price=50.0, msrp=100.0),
        ],
        costs=[
            CostRecord(style_number="5099", season="26FA", landed=20.0, fob=15.0),
            CostRecord(style_number="6102", season="26FA", landed=30.0, cost_source=CostSource.STANDARD_COST),
        ],
        sales=[
            SalesRecord(
                style_number="5099", season="26FA", customer="REI Co-op", customer_type="BB",
                division_desc="Men's", category_desc="Pants", units_booked=20, revenue=1000.0,
            ),
            SalesRecord(
                style_number="6102", season="26FA", customer="Summit Outfitters", customer_type="WH",
                division_desc="Women's", category_desc="Jackets", units_booked=10, revenue=750.0,
            ),
            SalesRecord(
                style_number="5099", season="26SP", customer="REI Co-op", customer_type="BB",
                division_desc="Men's", category_desc="Pants", units_booked=5, revenue=240.0,
            ),
        ],
    )
