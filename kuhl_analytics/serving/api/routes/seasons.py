"""
Season Endpoints

Seasons present in the store with per-table row counts and their place in
the selling calendar.
"""

from datetime import date
from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from kuhl_analytics.database.connection import get_db_dependency
from kuhl_analytics.database.repository import RecordStore
from kuhl_analytics.ingestion.seasons import (
    current_shipping_season,
    is_canonical_season,
    season_info,
    sort_seasons,
)

router = APIRouter()


class SeasonEntry(BaseModel):
    """One season in the store"""
    season: str
    canonical: bool
    label: Optional[str] = None
    status: Optional[str] = None
    shipping_start: Optional[date] = None
    shipping_end: Optional[date] = None
    counts: Dict[str, int]


class SeasonsResponse(BaseModel):
    current_shipping_season: str
    seasons: List[SeasonEntry]


@router.get("", response_model=SeasonsResponse)
async def list_seasons(
    canonical_only: bool = Query(default=False, description="Hide degraded season codes"),
    db: AsyncSession = Depends(get_db_dependency),
) -> SeasonsResponse:
    """Seasons with row counts per table, oldest first."""
    counts = await RecordStore(db).season_counts()
    today = date.today()

    entries = []
    for season in sort_seasons(counts):
        canonical = is_canonical_season(season)
        if canonical_only and not canonical:
            continue
        info = season_info(season, today) if canonical else None
        entries.append(SeasonEntry(
            season=season,
            canonical=canonical,
            label=info.label if info else None,
            status=info.status.value if info else None,
            shipping_start=info.ship_start if info else None,
            shipping_end=info.ship_end if info else None,
            counts=counts[season],
        ))

    return SeasonsResponse(current_shipping_season=current_shipping_season(today), seasons=entries)
