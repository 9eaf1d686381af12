"""
Dashboard Endpoints

Sales reductions for the merchandising dashboard: per-season summary,
channel, category and gender splits, and top customers. Inventory movement
totals sit alongside them.
"""

from typing import Any, Dict, List, Optional

import structlog
from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from kuhl_analytics.serving.api.dependencies import load_dataset, season_param
from kuhl_analytics.transformation.aggregations import (
    inventory_summary,
    sales_by_category,
    sales_by_channel,
    sales_by_gender,
    season_summary,
    top_customers,
)

router = APIRouter()
logger = structlog.get_logger(__name__)


class ChannelSales(BaseModel):
    """Sales by customer type"""
    channel: str
    channel_name: str
    revenue: float
    units: float
    customers: int
    revenue_percent: float


class CategorySales(BaseModel):
    """Sales by category"""
    category: str
    revenue: float
    units: float
    styles: int
    revenue_percent: float


class GenderSales(BaseModel):
    """Sales by gender"""
    gender: str
    revenue: float
    units: float
    styles: int
    revenue_percent: float


class CustomerSales(BaseModel):
    """Top customer"""
    rank: int
    customer: str
    customer_type: str
    revenue: float
    units: float
    orders: int


@router.get("/summary")
async def get_summary(season: Optional[str] = Depends(season_param)) -> Dict[str, Any]:
    """Record counts and sales totals per season."""
    dataset = await load_dataset(season)
    return season_summary(dataset)


@router.get("/by-channel", response_model=List[ChannelSales])
async def get_sales_by_channel(season: Optional[str] = Depends(season_param)) -> List[ChannelSales]:
    dataset = await load_dataset(season)
    return [ChannelSales(**row) for row in sales_by_channel(dataset.sales, season)]


@router.get("/by-category", response_model=List[CategorySales])
async def get_sales_by_category(
    season: Optional[str] = Depends(season_param),
    limit: int = Query(default=20, ge=1, le=100),
) -> List[CategorySales]:
    dataset = await load_dataset(season)
    return [CategorySales(**row) for row in sales_by_category(dataset.sales, season, limit=limit)]


@router.get("/by-gender", response_model=List[GenderSales])
async def get_sales_by_gender(season: Optional[str] = Depends(season_param)) -> List[GenderSales]:
    dataset = await load_dataset(season)
    return [GenderSales(**row) for row in sales_by_gender(dataset.sales, season)]


@router.get("/top-customers", response_model=List[CustomerSales])
async def get_top_customers(
    season: Optional[str] = Depends(season_param),
    limit: int = Query(default=10, ge=1, le=100),
) -> List[CustomerSales]:
    dataset = await load_dataset(season)
    customers = top_customers(dataset.sales, season, limit=limit)
    logger.debug("Top customers computed", season=season, count=len(customers))
    return [CustomerSales(**row) for row in customers]


class MovementTotals(BaseModel):
    count: int
    total_qty: float
    total_extension: float


class MovementsByType(MovementTotals):
    movement_type: str


class MovementsByWarehouse(MovementTotals):
    warehouse: str


class MovementsByPeriod(MovementTotals):
    period: str


class InventorySummary(BaseModel):
    """Inventory movement rollups"""
    total_count: int
    by_type: List[MovementsByType]
    by_warehouse: List[MovementsByWarehouse]
    by_period: List[MovementsByPeriod]


@router.get("/inventory", response_model=InventorySummary)
async def get_inventory_summary() -> InventorySummary:
    """Movement totals by type, warehouse and period; inventory has no seasons."""
    dataset = await load_dataset(include_inventory=True)
    return InventorySummary(**inventory_summary(dataset.inventory))
