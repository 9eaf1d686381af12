"""
Aggregation Builders

Dashboard reductions over sales records: by channel, category and gender,
top customers, per-season summaries, and the style x season pivot used by
the pricing views. All sales builders are pure and deterministic: groups
are ordered by revenue descending, ties broken by the group name.
Inventory movements roll up by type, warehouse and period.
"""

from typing import Any, Dict, List, Optional, Sequence

import polars as pl
import structlog

from kuhl_analytics.ingestion.records import InventoryRecord, RecordType, SalesRecord
from kuhl_analytics.ingestion.seasons import is_canonical_season, season_label, sort_seasons
from kuhl_analytics.transformation.state import Dataset
from kuhl_analytics.transformation.waterfall import WaterfallResolver, margin_grade

logger = structlog.get_logger(__name__)

CHANNEL_LABELS = {
    "WH": "Wholesale",
    "BB": "REI",
    "WD": "KÜHL Stores",
    "EC": "E-Commerce",
    "PS": "Pro Sales",
    "KI": "KUHL International",
}

PIVOT_METRICS = ("sales", "units", "msrp", "wholesale", "cost", "margin")

_SALES_SCHEMA = {
    "style_number": pl.Utf8,
    "season": pl.Utf8,
    "customer": pl.Utf8,
    "customer_type": pl.Utf8,
    "division_desc": pl.Utf8,
    "category_desc": pl.Utf8,
    "units_booked": pl.Float64,
    "revenue": pl.Float64,
}

_INVENTORY_SCHEMA = {
    "movement_type": pl.Utf8,
    "warehouse": pl.Utf8,
    "period": pl.Utf8,
    "qty": pl.Float64,
    "extension": pl.Float64,
}

# Grouping column -> key in the inventory summary
INVENTORY_GROUPS = {
    "movement_type": "by_type",
    "warehouse": "by_warehouse",
    "period": "by_period",
}


def classify_gender(division_desc: Optional[str]) -> str:
    """
    Gender bucket of a division description.

    "women" anywhere wins; otherwise "men" means Men's; everything else,
    including blanks, is Unisex.
    """
    lower = (division_desc or "").lower()
    if "women" in lower:
        return "Women's"
    if "men" in lower:
        return "Men's"
    return "Unisex"


def sales_frame(sales: Sequence[SalesRecord], season: Optional[str] = None) -> pl.DataFrame:
    """Sales as a polars frame with the columns the builders use."""
    rows = [
        {
            column: float(getattr(sale, column)) if dtype == pl.Float64 else getattr(sale, column)
            for column, dtype in _SALES_SCHEMA.items()
        }
        for sale in sales
        if season is None or sale.season == season
    ]
    return pl.DataFrame(rows, schema=_SALES_SCHEMA)


def _with_share(df: pl.DataFrame) -> pl.DataFrame:
    total = df["revenue"].sum() if df.height else 0.0
    share = (pl.col("revenue") / total * 100) if total else pl.lit(0.0)
    return df.with_columns(share.alias("revenue_percent"))


def _ordered(df: pl.DataFrame, key: str) -> pl.DataFrame:
    return df.sort(["revenue", key], descending=[True, False])


def _distinct_non_empty(column: str) -> pl.Expr:
    return pl.col(column).filter(pl.col(column) != "").n_unique()


def sales_by_channel(sales: Sequence[SalesRecord], season: Optional[str] = None) -> List[Dict[str, Any]]:
    """Revenue, units and distinct customers per customer type."""
    df = sales_frame(sales, season).filter(pl.col("customer_type") != "")
    if df.is_empty():
        return []

    grouped = df.group_by("customer_type").agg(
        pl.col("revenue").sum(),
        pl.col("units_booked").sum().alias("units"),
        _distinct_non_empty("customer").alias("customers"),
    )
    grouped = _ordered(_with_share(grouped), "customer_type").with_columns(
        pl.col("customer_type")
        .map_elements(lambda code: CHANNEL_LABELS.get(code, code), return_dtype=pl.Utf8)
        .alias("channel_name")
    )
    return grouped.rename({"customer_type": "channel"}).to_dicts()


def sales_by_category(
    sales: Sequence[SalesRecord],
    season: Optional[str] = None,
    limit: int = 20,
) -> List[Dict[str, Any]]:
    """Revenue, units and distinct styles per category; blank category is "Other"."""
    df = sales_frame(sales, season)
    if df.is_empty():
        return []

    df = df.with_columns(
        pl.when(pl.col("category_desc") == "")
        .then(pl.lit("Other"))
        .otherwise(pl.col("category_desc"))
        .alias("category")
    )
    grouped = df.group_by("category").agg(
        pl.col("revenue").sum(),
        pl.col("units_booked").sum().alias("units"),
        pl.col("style_number").n_unique().alias("styles"),
    )
    return _ordered(_with_share(grouped), "category").head(limit).to_dicts()


def sales_by_gender(sales: Sequence[SalesRecord], season: Optional[str] = None) -> List[Dict[str, Any]]:
    """Revenue, units and distinct styles per gender bucket."""
    df = sales_frame(sales, season)
    if df.is_empty():
        return []

    df = df.with_columns(
        pl.col("division_desc").map_elements(classify_gender, return_dtype=pl.Utf8).alias("gender")
    )
    grouped = df.group_by("gender").agg(
        pl.col("revenue").sum(),
        pl.col("units_booked").sum().alias("units"),
        pl.col("style_number").n_unique().alias("styles"),
    )
    return _ordered(_with_share(grouped), "gender").to_dicts()


def top_customers(
    sales: Sequence[SalesRecord],
    season: Optional[str] = None,
    limit: int = 10,
) -> List[Dict[str, Any]]:
    """Customers ranked by revenue; ``orders`` counts booking lines."""
    df = sales_frame(sales, season).filter(pl.col("customer") != "")
    if df.is_empty():
        return []

    grouped = df.group_by(["customer", "customer_type"]).agg(
        pl.col("revenue").sum(),
        pl.col("units_booked").sum().alias("units"),
        pl.len().alias("orders"),
    )
    grouped = grouped.sort(["revenue", "customer", "customer_type"], descending=[True, False, False])
    return grouped.head(limit).with_row_index("rank", offset=1).to_dicts()


def season_summary(dataset: Dataset) -> Dict[str, Any]:
    """Record counts and sales totals per season, plus overall totals."""
    counts: Dict[str, Dict[str, int]] = {}
    for record_type in (RecordType.PRODUCTS, RecordType.PRICING, RecordType.COSTS, RecordType.SALES):
        for record in dataset.records(record_type):
            if not record.season:
                continue
            bucket = counts.setdefault(record.season, {})
            bucket[record_type.value] = bucket.get(record_type.value, 0) + 1

    df = sales_frame(dataset.sales)
    sales_stats: Dict[str, Dict[str, Any]] = {}
    if not df.is_empty():
        per_season = df.group_by("season").agg(
            pl.col("revenue").sum(),
            pl.col("units_booked").sum().alias("units"),
            pl.col("style_number").n_unique().alias("styles"),
            _distinct_non_empty("customer").alias("customers"),
        )
        sales_stats = {row.pop("season"): row for row in per_season.to_dicts()}

    seasons = []
    for season in sort_seasons(counts):
        bucket = counts[season]
        stats = sales_stats.get(season, {})
        seasons.append({
            "season": season,
            "label": season_label(season),
            "products": bucket.get("products", 0),
            "pricing": bucket.get("pricing", 0),
            "costs": bucket.get("costs", 0),
            "sales": bucket.get("sales", 0),
            "revenue": stats.get("revenue", 0.0),
            "units": stats.get("units", 0.0),
            "styles": stats.get("styles", 0),
            "customers": stats.get("customers", 0),
        })

    return {
        "seasons": seasons,
        "totals": {
            **dataset.counts(),
            "revenue": float(df["revenue"].sum()) if df.height else 0.0,
            "units": float(df["units_booked"].sum()) if df.height else 0.0,
            "customers": int(df.select(_distinct_non_empty("customer")).item()) if df.height else 0,
        },
    }


def inventory_frame(inventory: Sequence[InventoryRecord]) -> pl.DataFrame:
    """Movements as a polars frame; blank group labels become ``Unknown``."""
    rows = [
        {
            "movement_type": record.movement_type,
            "warehouse": record.warehouse,
            "period": record.period,
            "qty": float(record.qty),
            "extension": float(record.extension),
        }
        for record in inventory
    ]
    df = pl.DataFrame(rows, schema=_INVENTORY_SCHEMA)
    return df.with_columns([
        pl.when(pl.col(c).str.strip_chars() == "").then(pl.lit("Unknown")).otherwise(pl.col(c)).alias(c)
        for c in INVENTORY_GROUPS
    ])


def _movement_totals(df: pl.DataFrame, key: str) -> pl.DataFrame:
    return df.group_by(key).agg(
        pl.len().alias("count"),
        pl.col("qty").sum().alias("total_qty"),
        pl.col("extension").sum().alias("total_extension"),
    )


def inventory_summary(inventory: Sequence[InventoryRecord]) -> Dict[str, Any]:
    """
    Movement count, quantity and extension by movement type, warehouse and
    period.

    Types and warehouses are ordered by count descending, periods
    chronologically.
    """
    df = inventory_frame(inventory)
    summary: Dict[str, Any] = {"total_count": df.height}
    for key, name in INVENTORY_GROUPS.items():
        totals = _movement_totals(df, key)
        if key == "period":
            totals = totals.sort("period")
        else:
            totals = totals.sort(["count", key], descending=[True, False])
        summary[name] = totals.to_dicts()
    return summary


def _pivot_cell(view, metric: str) -> Dict[str, Any]:
    if metric == "sales":
        return {"value": view.revenue or None, "source": "sales" if view.revenue else "none"}
    if metric == "units":
        return {"value": view.units or None, "source": "sales" if view.units else "none"}
    if metric == "msrp":
        return {"value": view.price.msrp, "source": view.price.source.value}
    if metric == "wholesale":
        return {
            "value": view.price.wholesale,
            "source": view.price.source.value,
            "calculated": view.price.calculated,
        }
    if metric == "cost":
        return {"value": view.cost.landed, "source": view.cost.source.value}
    value = view.margin
    return {
        "value": value,
        "source": view.cost.source.value if value is not None else "none",
        "grade": margin_grade(value),
    }


def season_pivot(
    dataset: Dataset,
    metric: str = "sales",
    seasons: Optional[Sequence[str]] = None,
    combine_styles: bool = False,
) -> Dict[str, Any]:
    """
    Style x season matrix of one metric with the source of every cell.

    Args:
        dataset: Records to pivot
        metric: One of PIVOT_METRICS
        seasons: Columns; defaults to every canonical season in the dataset
        combine_styles: Fold tall/plus variants into their base style

    Returns:
        ``{"metric", "seasons", "rows": [{"style_number", "cells": {season: cell}}]}``
        with rows that have no value in any season left out
    """
    if metric not in PIVOT_METRICS:
        raise ValueError(f"Unknown pivot metric: {metric}")

    columns = sort_seasons(seasons) if seasons else [s for s in sort_seasons(dataset.seasons()) if is_canonical_season(s)]
    resolver = WaterfallResolver(dataset, combine_styles=combine_styles)

    rows = []
    for style_number in sorted(resolver.style_numbers()):
        cells = {season: _pivot_cell(resolver.view(style_number, season), metric) for season in columns}
        if any(cell["value"] is not None for cell in cells.values()):
            rows.append({"style_number": style_number, "cells": cells})

    logger.debug("Pivot built", metric=metric, seasons=columns, rows=len(rows))
    return {"metric": metric, "seasons": columns, "rows": rows}
