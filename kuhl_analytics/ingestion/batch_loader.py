"""
Import Service

Applies a parsed batch to the database with season-scoped replace
semantics:

1. Parse rows into typed records (rows without a style are skipped).
2. Work out the covered seasons: the requested season, or the distinct
   seasons present in the batch.
3. Plan keep/delete/insert with the merge engine.
4. Delete the covered scope and insert every chunk inside ONE transaction.
   Any failure rolls the whole import back, so a season is never left
   half-deleted.
5. Record the import in the audit log.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import structlog
from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError

from kuhl_analytics.config import get_settings
from kuhl_analytics.config.logging import import_context
from kuhl_analytics.database.connection import get_db
from kuhl_analytics.database.repository import RecordStore
from kuhl_analytics.errors import ParseError, PartialImportFailure
from kuhl_analytics.ingestion.detection import detect_file_type, extract_season_from_filename
from kuhl_analytics.ingestion.parsers import ParseResult, adopt_season, parse_costs, parse_records
from kuhl_analytics.ingestion.records import CostSource, RecordType
from kuhl_analytics.ingestion.seasons import normalize_season
from kuhl_analytics.ingestion.workbook import Source, read_workbook
from kuhl_analytics.quality.validators import validate_records
from kuhl_analytics.transformation.merge import covered_seasons_of, merge_import, requires_existing

logger = structlog.get_logger(__name__)


class ImportStatus(str, Enum):
    """Import outcome"""
    COMPLETED = "completed"
    FAILED = "failed"


class ImportStats(BaseModel):
    """Row counts of an import"""
    added: int = 0
    skipped: int = 0
    deleted: int = 0
    seasons: List[str] = Field(default_factory=list)


class ImportResult(BaseModel):
    """Result of an import operation"""
    success: bool
    status: ImportStatus
    record_type: RecordType
    file_name: str
    import_id: str
    stats: ImportStats
    warnings: List[str] = Field(default_factory=list)
    duration_seconds: float = 0
    started_at: datetime
    completed_at: Optional[datetime] = None


class ImportService:
    """
    Season-scoped transactional importer.

    Example:
        service = ImportService()
        result = await service.import_rows(RecordType.SALES, rows, season="26FA")
        result.stats.added, result.stats.deleted
    """

    def __init__(self, chunk_sizes: Optional[Mapping[RecordType, int]] = None, validate: bool = True):
        settings = get_settings()
        self.settings = settings
        self.validate = validate
        self.chunk_sizes: Dict[RecordType, int] = {
            RecordType.PRODUCTS: settings.imports.chunk_size,
            RecordType.PRICING: settings.imports.chunk_size,
            RecordType.COSTS: settings.imports.chunk_size,
            RecordType.SALES: settings.imports.sales_chunk_size,
            RecordType.INVENTORY: settings.imports.inventory_chunk_size,
        }
        if chunk_sizes:
            self.chunk_sizes.update({RecordType(k): v for k, v in chunk_sizes.items()})

    def _scope_to_season(self, parsed: ParseResult, season: str) -> int:
        """Adopt ``season`` for unseasoned records and drop other seasons."""
        adopt_season(parsed, season)
        kept = [r for r in parsed.records if r.season == season]
        dropped = len(parsed.records) - len(kept)
        if dropped:
            logger.warning("Skipping records outside the requested season", season=season, skipped=dropped)
        parsed.records = kept
        return dropped

    async def import_rows(
        self,
        record_type: Union[RecordType, str],
        rows: Sequence[Mapping[str, Any]],
        season: Optional[str] = None,
        replace_existing: bool = True,
        file_name: Optional[str] = None,
        cost_source: Optional[CostSource] = None,
        default_season: Optional[str] = None,
    ) -> ImportResult:
        """
        Parse and import rows.

        Args:
            record_type: Kind of rows
            rows: Header-keyed rows, spreadsheet or camelCase JSON field names
            season: Restrict the import to this season (any spelling)
            replace_existing: Replace covered seasons instead of appending
            file_name: Name recorded in the import log
            cost_source: Force the cost source of a cost import
            default_season: Season for rows that have none, without restricting

        Raises:
            PartialImportFailure: Writing failed; nothing was changed
            StoreUnavailable: The database is not reachable
        """
        record_type = RecordType(record_type)
        started_at = datetime.now(timezone.utc)

        if record_type == RecordType.COSTS and cost_source is not None:
            parsed = parse_costs(rows, cost_source=CostSource(cost_source))
        else:
            parsed = parse_records(record_type, rows)
        skipped = parsed.skipped

        covered: Sequence[str]
        if record_type == RecordType.INVENTORY:
            covered = ()
        elif season:
            target = normalize_season(season).season
            skipped += self._scope_to_season(parsed, target)
            covered = (target,)
        else:
            if default_season:
                adopt_season(parsed, normalize_season(default_season).season)
            covered = covered_seasons_of(parsed.records)

        warnings: List[str] = []
        if self.validate:
            warnings = validate_records(record_type, parsed.records).warnings()

        stats = ImportStats(skipped=skipped, seasons=list(covered))
        file_name = file_name or f"{record_type.value}_import"

        with import_context(record_type.value, list(covered)) as import_id:
            logger.info(
                "Import started",
                file=file_name,
                records=len(parsed.records),
                replace_existing=replace_existing,
            )
            try:
                async with get_db() as db:
                    store = RecordStore(db)
                    existing: List[Any] = []
                    if requires_existing(record_type, replace_existing) and covered:
                        existing = await store.find_many(record_type, seasons=list(covered))

                    plan = merge_import(
                        existing,
                        parsed.records,
                        covered,
                        record_type,
                        replace_existing=replace_existing,
                        cost_source=cost_source,
                    )
                    for scope in plan.scopes:
                        stats.deleted += await store.delete_many(record_type, scope)
                    stats.added = await store.create_many(
                        record_type, plan.to_insert, chunk_size=self.chunk_sizes[record_type]
                    )
                    stats.skipped += len(plan.dropped)

                    await store.log_import(
                        file_name=file_name,
                        file_type=record_type.value,
                        seasons=",".join(covered),
                        replace_existing=replace_existing,
                        added=stats.added,
                        skipped=stats.skipped,
                        deleted=stats.deleted,
                    )
            except SQLAlchemyError as e:
                logger.error("Import rolled back", file=file_name, error=str(e))
                raise PartialImportFailure(
                    f"Import of {file_name} failed and was rolled back: {e}",
                    {"record_type": record_type.value, "seasons": list(covered)},
                ) from e

            completed_at = datetime.now(timezone.utc)
            logger.info(
                "Import completed",
                file=file_name,
                added=stats.added,
                deleted=stats.deleted,
                skipped=stats.skipped,
            )

        return ImportResult(
            success=True,
            status=ImportStatus.COMPLETED,
            record_type=record_type,
            file_name=file_name,
            import_id=import_id,
            stats=stats,
            warnings=warnings,
            duration_seconds=(completed_at - started_at).total_seconds(),
            started_at=started_at,
            completed_at=completed_at,
        )

    def rows_from_workbook(
        self,
        source: Source,
        filename: Optional[str] = None,
        record_type: Optional[RecordType] = None,
    ):
        """
        Read the sheet holding ``record_type`` rows, detecting the type when None.

        Returns:
            Tuple of (record type, rows)

        Raises:
            ParseError: No sheet looks like a known export
        """
        workbook = read_workbook(source, filename=filename)
        costs_sheet = self.settings.imports.costs_sheet

        if costs_sheet in workbook.sheets and record_type in (None, RecordType.COSTS):
            offset_book = read_workbook(
                source,
                filename=filename,
                header_offset=self.settings.imports.costs_header_offset,
                sheet_name=costs_sheet,
            )
            return RecordType.COSTS, offset_book.sheet(costs_sheet)

        for name in workbook.sheet_names:
            detection = detect_file_type(workbook.headers(name))
            if detection.record_type is None:
                continue
            if record_type is None or detection.record_type == record_type:
                logger.info(
                    "Sheet detected",
                    sheet=name,
                    record_type=detection.record_type.value,
                    confidence=detection.confidence.value,
                )
                return detection.record_type, workbook.sheet(name)

        if record_type is not None:
            return record_type, workbook.sheet()
        raise ParseError(
            f"Could not detect the file type of {workbook.name}",
            {"sheets": workbook.sheet_names, "headers": workbook.headers()},
        )

    async def import_workbook(
        self,
        source: Source,
        filename: Optional[str] = None,
        record_type: Optional[RecordType] = None,
        season: Optional[str] = None,
        replace_existing: bool = True,
    ) -> ImportResult:
        """Import a workbook file or uploaded bytes."""
        detected_type, rows = self.rows_from_workbook(source, filename, record_type)
        name = filename or (str(source) if not isinstance(source, bytes) else None)
        return await self.import_rows(
            detected_type,
            rows,
            season=season,
            replace_existing=replace_existing,
            file_name=name,
            default_season=extract_season_from_filename(name),
        )

    async def cleanup_seasons(self, seasons: Sequence[str]) -> Dict[str, int]:
        """Delete the given seasons from every seasonal table in one transaction."""
        targets = [normalize_season(s).season or s for s in seasons]
        async with get_db() as db:
            deleted = await RecordStore(db).delete_seasons(targets)
        logger.info("Seasons deleted", seasons=targets, deleted=deleted)
        return deleted

