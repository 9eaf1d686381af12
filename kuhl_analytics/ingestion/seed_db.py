"""
Database Seeding

Loads the configured workbooks from the import data directory into the
database, one season-scoped import per file, then refreshes the parquet
snapshot.

Usage:
    kuhl-seed
    kuhl-seed --data-dir ./data --skip-sales
"""

import argparse
import asyncio
from pathlib import Path
from typing import List, Optional

import structlog

from kuhl_analytics.config import get_settings
from kuhl_analytics.config.logging import configure_logging
from kuhl_analytics.database.connection import close_database, init_database
from kuhl_analytics.ingestion.batch_loader import ImportResult, ImportService
from kuhl_analytics.ingestion.records import RecordType
from kuhl_analytics.ingestion.sources import DatasetLoader

logger = structlog.get_logger(__name__)


async def seed(data_dir: Optional[str] = None, include_sales: bool = True) -> List[ImportResult]:
    """Import every configured workbook that exists; missing files are skipped."""
    imports = get_settings().imports
    root = Path(data_dir or imports.data_dir)
    service = ImportService()

    # Line list first so later imports can fall back on its prices and costs
    plan = [
        (imports.line_list_file, RecordType.PRODUCTS),
        (imports.pricing_file, RecordType.PRICING),
        (imports.costs_file, RecordType.COSTS),
    ]
    if include_sales:
        plan.append((imports.sales_file, RecordType.SALES))

    results = []
    for file_name, record_type in plan:
        path = root / file_name
        if not path.exists():
            logger.warning("Seed file missing, skipping", path=str(path), record_type=record_type.value)
            continue
        result = await service.import_workbook(path, filename=file_name, record_type=record_type)
        logger.info(
            "Seeded",
            record_type=record_type.value,
            added=result.stats.added,
            seasons=result.stats.seasons,
        )
        results.append(result)

    loader = DatasetLoader(data_dir=str(root))
    loader.write_snapshot(await loader.from_database(include_inventory=True))
    return results


async def main(data_dir: Optional[str] = None, include_sales: bool = True) -> None:
    configure_logging()
    await init_database()
    try:
        await seed(data_dir, include_sales)
    finally:
        await close_database()


def run() -> None:
    parser = argparse.ArgumentParser(description="Seed the analytics database from workbooks")
    parser.add_argument("--data-dir", default=None, help="Directory holding the workbooks")
    parser.add_argument("--skip-sales", action="store_true", help="Do not import the sales export")
    args = parser.parse_args()

    asyncio.run(main(args.data_dir, include_sales=not args.skip_sales))


if __name__ == "__main__":
    run()
