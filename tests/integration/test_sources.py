"""
Integration Tests - Dataset Sources
"""
import pandas as pd

from kuhl_analytics.ingestion.batch_loader import ImportService
from kuhl_analytics.ingestion.records import CostSource, RecordType
from kuhl_analytics.ingestion.sources import DatasetLoader


async def test_falls_back_to_snapshot(tmp_path, sample_dataset):
    loader = DatasetLoader(data_dir=str(tmp_path), snapshot_path=str(tmp_path / "snapshot"))
    written = loader.write_snapshot(sample_dataset)

    assert sorted(p.name for p in written) == ["costs.parquet", "pricing.parquet", "products.parquet"]

    dataset = await loader.load()

    assert loader.last_source == "snapshot"
    assert dataset.products == sample_dataset.products
    assert dataset.costs == sample_dataset.costs
    assert dataset.costs[1].cost_source == CostSource.STANDARD_COST
    assert dataset.sales == []


async def test_snapshot_is_filtered_by_season(tmp_path, sample_dataset):
    loader = DatasetLoader(data_dir=str(tmp_path), snapshot_path=str(tmp_path / "snapshot"))
    loader.write_snapshot(sample_dataset)

    dataset = await loader.load(seasons=["26SP"])

    assert [p.season for p in dataset.products] == ["26SP"]
    assert dataset.pricing == []


async def test_falls_back_to_source_files(tmp_path):
    pd.DataFrame([
        {"Style#": "5099", "Seas": "FA26", "Clr": "BLK", "Price": 50, "MSRP": 100, "Cost": 20},
        {"Style#": "6102", "Seas": "SP27", "Clr": "NAV", "Price": 60, "MSRP": 120, "Cost": 25},
    ]).to_excel(tmp_path / "line_list.xlsx", index=False)
    loader = DatasetLoader(data_dir=str(tmp_path), snapshot_path=str(tmp_path / "missing"))

    dataset = await loader.load()

    assert loader.last_source == "files"
    assert [(p.style_number, p.season, p.price) for p in dataset.products] == [
        ("5099", "26FA", 50.0),
        ("6102", "27SP", 60.0),
    ]
    assert dataset.sales == []


def test_empty_types_remove_stale_snapshot_files(tmp_path, sample_dataset):
    loader = DatasetLoader(data_dir=str(tmp_path), snapshot_path=str(tmp_path / "snapshot"))
    loader.write_snapshot(sample_dataset)
    sample_dataset.costs = []

    written = loader.write_snapshot(sample_dataset)

    assert "costs.parquet" not in [p.name for p in written]
    assert not (tmp_path / "snapshot" / "costs.parquet").exists()


async def test_empty_database_falls_back_to_snapshot(database, tmp_path, sample_dataset):
    loader = DatasetLoader(data_dir=str(tmp_path), snapshot_path=str(tmp_path / "snapshot"))
    loader.write_snapshot(sample_dataset)

    dataset = await loader.load()

    assert loader.last_source == "snapshot"
    assert dataset.products == sample_dataset.products


async def test_database_with_rows_wins_over_snapshot(database, tmp_path, sample_dataset, sales_rows):
    loader = DatasetLoader(data_dir=str(tmp_path), snapshot_path=str(tmp_path / "snapshot"))
    loader.write_snapshot(sample_dataset)
    await ImportService().import_rows(RecordType.SALES, sales_rows)

    dataset = await loader.load()

    assert loader.last_source == "database"
    assert dataset.products == []
    assert len(dataset.sales) == 2
