"""
Health Endpoints

The API keeps serving dashboards without a database, so health reports two
sources: the database (needed for imports) and the parquet snapshot (the
read fallback).
"""

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from fastapi import APIRouter, Response
from pydantic import BaseModel

from kuhl_analytics.config import get_settings
from kuhl_analytics.database.connection import check_database_health
from kuhl_analytics.ingestion.records import RecordType

router = APIRouter()


class SourceHealth(BaseModel):
    status: str
    checked_at: datetime
    database: Dict[str, Any]
    snapshot: Dict[str, Any]
    version: str
    environment: str


def snapshot_health() -> Dict[str, Any]:
    """Whether the parquet snapshot can stand in for the database."""
    root = Path(get_settings().imports.snapshot_path)
    products = root / f"{RecordType.PRODUCTS.value}.parquet"
    if not products.exists():
        return {"status": "missing", "path": str(root)}
    written = datetime.fromtimestamp(products.stat().st_mtime, tz=timezone.utc)
    return {
        "status": "available",
        "path": str(root),
        "files": sorted(p.name for p in root.glob("*.parquet")),
        "written_at": written.isoformat(),
    }


@router.get("/health", response_model=SourceHealth)
async def health() -> SourceHealth:
    """
    ``healthy`` with a database, ``degraded`` when only the snapshot is
    left to read from, ``unhealthy`` with neither.
    """
    settings = get_settings()
    database = await check_database_health()
    snapshot = snapshot_health()

    if database.get("status") == "healthy":
        status = "healthy"
    elif snapshot["status"] == "available":
        status = "degraded"
    else:
        status = "unhealthy"

    return SourceHealth(
        status=status,
        checked_at=datetime.now(timezone.utc),
        database=database,
        snapshot=snapshot,
        version=settings.version,
        environment=settings.app_env,
    )


@router.get("/health/live")
async def live() -> Dict[str, str]:
    return {"status": "alive"}


@router.get("/health/ready")
async def ready(response: Response) -> Dict[str, str]:
    """Ready means imports will be accepted."""
    database = await check_database_health()
    if database.get("status") == "healthy":
        return {"status": "ready"}
    response.status_code = 503
    return {"status": "not_ready", "reason": "imports need a database"}
