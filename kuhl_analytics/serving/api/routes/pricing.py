"""
Pricing Endpoints

Resolved wholesale, MSRP, landed cost and margin for a style, and the
style x season pivot. Every value is reported with the source it came
from.
"""

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Query
from pydantic import BaseModel

from kuhl_analytics.errors import ParseError
from kuhl_analytics.ingestion.seasons import normalize_season, sort_seasons
from kuhl_analytics.serving.api.dependencies import load_dataset
from kuhl_analytics.transformation.aggregations import PIVOT_METRICS, season_pivot
from kuhl_analytics.transformation.waterfall import (
    WaterfallResolver,
    calculate_margins,
    margin_grade,
)

router = APIRouter()
logger = structlog.get_logger(__name__)


class ResolvedPrice(BaseModel):
    wholesale: Optional[float]
    msrp: Optional[float]
    source: str
    calculated: bool


class ResolvedCost(BaseModel):
    landed: Optional[float]
    fob: Optional[float]
    source: str


class StylePricing(BaseModel):
    """Resolved pricing of one style in one season"""
    style_number: str
    season: str
    price: ResolvedPrice
    cost: ResolvedCost
    margin: Optional[float]
    margin_grade: str
    revenue: float
    units: float
    analysis: Dict[str, Any]


@router.get("/pivot")
async def get_pivot(
    metric: str = Query(default="sales", description=f"One of {', '.join(PIVOT_METRICS)}"),
    seasons: Optional[str] = Query(default=None, description="Comma separated seasons"),
    combine: bool = Query(default=False, description="Fold tall/plus variants into the base style"),
) -> Dict[str, Any]:
    """Style x season matrix of one metric."""
    if metric not in PIVOT_METRICS:
        raise ParseError(f"Unknown pivot metric: {metric}", {"metrics": list(PIVOT_METRICS)})

    columns: Optional[List[str]] = None
    if seasons:
        columns = sort_seasons(
            normalize_season(s).season for s in seasons.split(",") if s.strip()
        )

    dataset = await load_dataset()
    return season_pivot(dataset, metric, seasons=columns, combine_styles=combine)


@router.get("/{style_number}/{season}", response_model=StylePricing)
async def get_style_pricing(style_number: str, season: str, combine: bool = False) -> StylePricing:
    """Price, cost and margin of a style in a season through the waterfalls."""
    target = normalize_season(season).season
    dataset = await load_dataset(target)
    view = WaterfallResolver(dataset, combine_styles=combine).view(style_number, target)
    analysis = calculate_margins(
        view.cost.landed or 0.0,
        view.price.wholesale or 0.0,
        view.price.msrp or 0.0,
    )

    logger.debug(
        "Style pricing resolved",
        style_number=view.style_number,
        season=target,
        price_source=view.price.source.value,
        cost_source=view.cost.source.value,
    )

    return StylePricing(
        style_number=view.style_number,
        season=target,
        price=ResolvedPrice(
            wholesale=view.price.wholesale,
            msrp=view.price.msrp,
            source=view.price.source.value,
            calculated=view.price.calculated,
        ),
        cost=ResolvedCost(
            landed=view.cost.landed,
            fob=view.cost.fob,
            source=view.cost.source.value,
        ),
        margin=view.margin,
        margin_grade=margin_grade(view.margin),
        revenue=view.revenue,
        units=view.units,
        analysis=asdict(analysis),
    )
