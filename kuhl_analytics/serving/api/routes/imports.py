"""
Import Endpoints

JSON row imports, workbook uploads, file type detection, season cleanup
and the import audit log.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy.ext.asyncio import AsyncSession

from kuhl_analytics.config import get_settings
from kuhl_analytics.database.connection import get_db_dependency
from kuhl_analytics.database.repository import RecordStore
from kuhl_analytics.errors import ParseError
from kuhl_analytics.ingestion.batch_loader import ImportResult, ImportService, ImportStats
from kuhl_analytics.ingestion.detection import detect_file_type, extract_season_from_filename
from kuhl_analytics.ingestion.records import CostSource, RecordType
from kuhl_analytics.ingestion.sources import DatasetLoader

router = APIRouter()
logger = structlog.get_logger(__name__)


class ImportRequest(BaseModel):
    """Rows to import, keyed by spreadsheet header or camelCase field name"""
    model_config = ConfigDict(populate_by_name=True)

    type: RecordType
    season: Optional[str] = None
    data: List[Dict[str, Any]]
    replace_existing: bool = Field(default=True, alias="replaceExisting")
    file_name: Optional[str] = Field(default=None, alias="fileName")
    cost_source: Optional[CostSource] = Field(default=None, alias="costSource")


class ValidationReport(BaseModel):
    warnings: List[str]


class ImportResponse(BaseModel):
    """Import outcome"""
    success: bool
    import_id: str
    record_type: RecordType
    file_name: str
    stats: ImportStats
    validation: ValidationReport
    duration_seconds: float


class DetectRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    headers: List[str]
    file_name: Optional[str] = Field(default=None, alias="fileName")


class DetectResponse(BaseModel):
    record_type: Optional[RecordType]
    confidence: str
    matched_columns: List[str]
    season: Optional[str]


class CleanupRequest(BaseModel):
    seasons: List[str] = Field(min_length=1)


class CleanupResponse(BaseModel):
    success: bool
    deleted: Dict[str, int]


class ImportLogEntry(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    file_name: str
    file_type: str
    seasons: str
    replace_existing: bool
    added: int
    skipped: int
    deleted: int
    created_at: datetime


def _response(result: ImportResult) -> ImportResponse:
    return ImportResponse(
        success=result.success,
        import_id=result.import_id,
        record_type=result.record_type,
        file_name=result.file_name,
        stats=result.stats,
        validation=ValidationReport(warnings=result.warnings),
        duration_seconds=result.duration_seconds,
    )


@router.post("/import", response_model=ImportResponse)
async def import_rows(request: ImportRequest) -> ImportResponse:
    """
    Import a batch of rows.

    With ``replaceExisting`` every covered season is replaced; otherwise rows
    are appended and keyed rows that already exist are skipped.
    """
    logger.info(
        "Import requested",
        record_type=request.type.value,
        season=request.season,
        rows=len(request.data),
    )
    result = await ImportService().import_rows(
        request.type,
        request.data,
        season=request.season,
        replace_existing=request.replace_existing,
        file_name=request.file_name,
        cost_source=request.cost_source,
    )
    return _response(result)


@router.post("/upload", response_model=ImportResponse)
async def upload_workbook(
    file: UploadFile = File(...),
    record_type: Optional[RecordType] = Form(default=None, alias="type"),
    season: Optional[str] = Form(default=None),
    replace_existing: bool = Form(default=True, alias="replaceExisting"),
) -> ImportResponse:
    """Import an uploaded workbook, detecting its type when none is given."""
    if not file.filename:
        raise ParseError("Uploaded file has no name")

    content = await file.read()
    max_bytes = get_settings().security.max_upload_mb * 1024 * 1024
    if len(content) > max_bytes:
        raise ParseError(
            f"{file.filename} is larger than {get_settings().security.max_upload_mb} MB",
            {"size": len(content)},
        )

    result = await ImportService().import_workbook(
        content,
        filename=file.filename,
        record_type=record_type,
        season=season,
        replace_existing=replace_existing,
    )
    return _response(result)


@router.post("/detect", response_model=DetectResponse)
async def detect(request: DetectRequest) -> DetectResponse:
    """Guess the export type of a sheet from its headers."""
    detection = detect_file_type(request.headers)
    return DetectResponse(
        record_type=detection.record_type,
        confidence=detection.confidence.value,
        matched_columns=detection.matched_columns,
        season=extract_season_from_filename(request.file_name),
    )


@router.post("/cleanup", response_model=CleanupResponse)
async def cleanup(request: CleanupRequest) -> CleanupResponse:
    """Delete whole seasons from every seasonal table."""
    deleted = await ImportService().cleanup_seasons(request.seasons)
    return CleanupResponse(success=True, deleted=deleted)


@router.post("/snapshot")
async def write_snapshot() -> Dict[str, Any]:
    """Refresh the parquet snapshot from the database."""
    loader = DatasetLoader()
    dataset = await loader.from_database(include_inventory=True)
    written = loader.write_snapshot(dataset)
    return {"success": True, "files": [path.name for path in written]}


@router.get("/imports", response_model=List[ImportLogEntry])
async def list_imports(
    limit: int = Query(default=20, ge=1, le=200),
    db: AsyncSession = Depends(get_db_dependency),
) -> List[ImportLogEntry]:
    """Most recent imports first."""
    entries = await RecordStore(db).recent_imports(limit)
    return [ImportLogEntry.model_validate(entry) for entry in entries]
