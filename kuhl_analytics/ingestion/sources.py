"""
Dataset Sources

Builds the in-memory Dataset that request handlers work on. Sources are
tried in order:

1. the database
2. the parquet snapshot (products, pricing, costs and inventory; sales are
   never snapshotted)
3. the raw workbooks in the import data directory

A source that is unavailable, or a database holding no rows at all, is logged
and the next one is tried.
"""

from pathlib import Path
from typing import Any, List, Optional

import polars as pl
import structlog
from sqlalchemy.exc import SQLAlchemyError

from kuhl_analytics.config import get_settings
from kuhl_analytics.database.connection import get_db
from kuhl_analytics.database.repository import RecordStore
from kuhl_analytics.errors import StoreUnavailable
from kuhl_analytics.ingestion.parsers import parse_costs, parse_pricing, parse_products, parse_sales
from kuhl_analytics.ingestion.records import RECORD_CLASSES, RecordType, record_from_dict
from kuhl_analytics.ingestion.workbook import read_rows_if_present
from kuhl_analytics.transformation.state import Dataset

logger = structlog.get_logger(__name__)

SNAPSHOT_TYPES = (RecordType.PRODUCTS, RecordType.PRICING, RecordType.COSTS, RecordType.INVENTORY)


class DatasetLoader:
    """
    Loads a Dataset from the first available source.

    Example:
        loader = DatasetLoader()
        dataset = await loader.load(seasons=["26FA"])
        loader.last_source
    """

    def __init__(self, data_dir: Optional[str] = None, snapshot_path: Optional[str] = None):
        settings = get_settings()
        self.imports = settings.imports
        self.data_dir = Path(data_dir or settings.imports.data_dir)
        self.snapshot_path = Path(snapshot_path or settings.imports.snapshot_path)
        self.last_source: Optional[str] = None

    async def load(
        self,
        seasons: Optional[List[str]] = None,
        include_inventory: bool = False,
    ) -> Dataset:
        """
        Load from the database, falling back to the snapshot, then raw files.

        A reachable database with no rows in any table counts as unavailable.
        """
        try:
            if await self.database_is_empty():
                logger.warning("Database is empty, trying snapshot")
            else:
                dataset = await self.from_database(seasons, include_inventory)
                self.last_source = "database"
                return dataset
        except (StoreUnavailable, SQLAlchemyError, OSError) as e:
            logger.warning("Database unavailable, trying snapshot", error=str(e))

        dataset = self.from_snapshot()
        if dataset is not None:
            self.last_source = "snapshot"
            return _filter_seasons(dataset, seasons)

        logger.warning("No snapshot available, reading source files", data_dir=str(self.data_dir))
        self.last_source = "files"
        return _filter_seasons(self.from_files(), seasons)

    async def database_is_empty(self) -> bool:
        async with get_db() as db:
            return await RecordStore(db).total_rows() == 0

    async def from_database(self, seasons: Optional[List[str]] = None, include_inventory: bool = False) -> Dataset:
        async with get_db() as db:
            store = RecordStore(db)
            dataset = Dataset(
                products=await store.find_many(RecordType.PRODUCTS, seasons=seasons),
                sales=await store.find_many(RecordType.SALES, seasons=seasons),
                pricing=await store.find_many(RecordType.PRICING, seasons=seasons),
                costs=await store.find_many(RecordType.COSTS, seasons=seasons),
            )
            if include_inventory:
                dataset.inventory = await store.find_many(RecordType.INVENTORY)
        logger.debug("Dataset loaded from database", **dataset.counts())
        return dataset

    def from_snapshot(self) -> Optional[Dataset]:
        """Dataset from parquet files, or None when no snapshot exists."""
        if not (self.snapshot_path / f"{RecordType.PRODUCTS.value}.parquet").exists():
            return None

        dataset = Dataset()
        for record_type in SNAPSHOT_TYPES:
            path = self.snapshot_path / f"{record_type.value}.parquet"
            if not path.exists():
                continue
            cls = RECORD_CLASSES[record_type]
            records = [record_from_dict(cls, row) for row in pl.read_parquet(path).to_dicts()]
            setattr(dataset, dataset._ATTRS[record_type], records)

        logger.info("Dataset loaded from snapshot", path=str(self.snapshot_path), **dataset.counts())
        return dataset

    def write_snapshot(self, dataset: Dataset) -> List[Path]:
        """Write every snapshot type except sales as parquet."""
        self.snapshot_path.mkdir(parents=True, exist_ok=True)
        written = []
        for record_type in SNAPSHOT_TYPES:
            frame = dataset.frame(record_type)
            path = self.snapshot_path / f"{record_type.value}.parquet"
            if frame.is_empty():
                path.unlink(missing_ok=True)
                continue
            frame.write_parquet(path)
            written.append(path)
        logger.info("Snapshot written", path=str(self.snapshot_path), files=[p.name for p in written])
        return written

    def from_files(self) -> Dataset:
        """Parse the configured workbooks; missing files contribute nothing."""
        imports = self.imports
        return Dataset(
            products=parse_products(read_rows_if_present(self.data_dir / imports.line_list_file)).records,
            sales=parse_sales(read_rows_if_present(self.data_dir / imports.sales_file)).records,
            pricing=parse_pricing(read_rows_if_present(self.data_dir / imports.pricing_file)).records,
            costs=parse_costs(
                read_rows_if_present(
                    self.data_dir / imports.costs_file,
                    header_offset=imports.costs_header_offset,
                    sheet_name=imports.costs_sheet,
                )
            ).records,
        )


def _filter_seasons(dataset: Dataset, seasons: Optional[List[Any]]) -> Dataset:
    if not seasons:
        return dataset
    wanted = set(seasons)
    return Dataset(
        products=[r for r in dataset.products if r.season in wanted],
        sales=[r for r in dataset.sales if r.season in wanted],
        pricing=[r for r in dataset.pricing if r.season in wanted],
        costs=[r for r in dataset.costs if r.season in wanted],
        inventory=dataset.inventory,
    )
