"""
Record Store

Typed access to the record tables: scoped reads, chunked bulk inserts and
scoped deletes. The store never commits; callers own the transaction
through ``get_db()``.
"""

from typing import Any, Dict, Iterable, List, Optional, Sequence

import structlog
from sqlalchemy import delete, func, insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from kuhl_analytics.database.models import MODELS, ImportLog
from kuhl_analytics.ingestion.records import (
    RECORD_CLASSES,
    RecordType,
    record_from_dict,
    record_to_dict,
)
from kuhl_analytics.transformation.merge import DeleteScope

logger = structlog.get_logger(__name__)

DEFAULT_CHUNK_SIZE = 1000
SEASONAL_TYPES = (RecordType.PRODUCTS, RecordType.SALES, RecordType.PRICING, RecordType.COSTS)


def _chunks(items: Sequence[Any], size: int) -> Iterable[Sequence[Any]]:
    for start in range(0, len(items), size):
        yield items[start:start + size]


class RecordStore:
    """
    Persistent store over one session.

    Example:
        async with get_db() as db:
            store = RecordStore(db)
            costs = await store.find_many(RecordType.COSTS, seasons=["26FA"])
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_many(
        self,
        record_type: RecordType,
        seasons: Optional[Sequence[str]] = None,
    ) -> List[Any]:
        """Load records, optionally limited to seasons."""
        record_type = RecordType(record_type)
        model = MODELS[record_type]
        query = select(model).order_by(model.id)
        if seasons is not None and record_type != RecordType.INVENTORY:
            query = query.where(model.season.in_(list(seasons)))

        result = await self.session.execute(query)
        cls = RECORD_CLASSES[record_type]
        records = [
            record_from_dict(cls, {c.key: getattr(row, c.key) for c in model.__table__.columns})
            for row in result.scalars()
        ]
        logger.debug("Loaded records", record_type=record_type.value, count=len(records))
        return records

    async def create_many(
        self,
        record_type: RecordType,
        records: Sequence[Any],
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> int:
        """Insert records in chunks; returns the number inserted."""
        record_type = RecordType(record_type)
        model = MODELS[record_type]
        inserted = 0
        for index, chunk in enumerate(_chunks(records, max(chunk_size, 1))):
            rows = [record_to_dict(record) for record in chunk]
            await self.session.execute(insert(model), rows)
            inserted += len(rows)
            logger.debug(
                "Inserted chunk",
                record_type=record_type.value,
                chunk=index,
                rows=len(rows),
            )
        return inserted

    async def delete_many(self, record_type: RecordType, scope: DeleteScope) -> int:
        """Delete every row matched by ``scope``; returns the row count."""
        record_type = RecordType(record_type)
        model = MODELS[record_type]
        stmt = delete(model)
        if not scope.everything:
            if not scope.seasons or record_type == RecordType.INVENTORY:
                return 0
            stmt = stmt.where(model.season.in_(list(scope.seasons)))
            if scope.style_numbers:
                stmt = stmt.where(model.style_number.in_(list(scope.style_numbers)))
            if scope.cost_source is not None and record_type == RecordType.COSTS:
                stmt = stmt.where(model.cost_source == scope.cost_source.value)

        result = await self.session.execute(stmt)
        deleted = result.rowcount or 0
        logger.debug(
            "Deleted rows",
            record_type=record_type.value,
            seasons=list(scope.seasons),
            cost_source=scope.cost_source.value if scope.cost_source else None,
            styles=len(scope.style_numbers) or None,
            everything=scope.everything,
            deleted=deleted,
        )
        return deleted

    async def delete_seasons(self, seasons: Sequence[str]) -> Dict[str, int]:
        """Delete the given seasons from every seasonal table."""
        scope = DeleteScope(seasons=tuple(seasons))
        return {rt.value: await self.delete_many(rt, scope) for rt in SEASONAL_TYPES}

    async def total_rows(self) -> int:
        """Rows across every record table."""
        total = 0
        for model in MODELS.values():
            total += (await self.session.execute(select(func.count(model.id)))).scalar_one()
        return total

    async def season_counts(self) -> Dict[str, Dict[str, int]]:
        """Row counts per season per seasonal table."""
        counts: Dict[str, Dict[str, int]] = {}
        for record_type in SEASONAL_TYPES:
            model = MODELS[record_type]
            result = await self.session.execute(
                select(model.season, func.count(model.id)).group_by(model.season)
            )
            for season, count in result.all():
                counts.setdefault(season, {})[record_type.value] = count
        return counts

    async def log_import(self, **values: Any) -> ImportLog:
        entry = ImportLog(**values)
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def recent_imports(self, limit: int = 20) -> List[ImportLog]:
        result = await self.session.execute(
            select(ImportLog).order_by(ImportLog.id.desc()).limit(limit)
        )
        return list(result.scalars())
