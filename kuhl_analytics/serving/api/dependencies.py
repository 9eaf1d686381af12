"""
Request Dependencies

Season query parsing and per-request Dataset loading shared by the
read-only routers.
"""

from typing import Optional

from fastapi import Query

from kuhl_analytics.ingestion.seasons import normalize_season
from kuhl_analytics.ingestion.sources import DatasetLoader
from kuhl_analytics.transformation.state import Dataset


def season_param(season: Optional[str] = Query(default=None, description="Season in any spelling, e.g. 26FA or Fall 26")) -> Optional[str]:
    """Normalized season filter, or None for all seasons."""
    if season is None or not season.strip():
        return None
    return normalize_season(season).season


async def load_dataset(season: Optional[str] = None, include_inventory: bool = False) -> Dataset:
    """Dataset for one season (or all), from the first available source."""
    return await DatasetLoader().load(
        seasons=[season] if season else None,
        include_inventory=include_inventory,
    )
