"""
Database Models

One table per record type plus an import audit log. Columns mirror the
dataclasses in ``kuhl_analytics.ingestion.records`` field for field, so rows
and records convert without a mapping layer.

Tables:
- products: line list, natural key (style_number, color, season)
- sales: booking lines, not unique by any key
- pricing: season price list, key (style_number, season)
- costs: landed and standard costs, key (style_number, season, cost_source)
- inventory_movements: stock movements, never season-partitioned
- import_logs: one row per completed import
"""

from datetime import date, datetime
from typing import Optional

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from kuhl_analytics.ingestion.records import RecordType


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


class SeasonalMixin:
    """Season columns shared by every season-partitioned table"""
    season: Mapped[str] = mapped_column(String(20), default="", index=True)
    season_type: Mapped[str] = mapped_column(String(20), default="Unknown")
    raw_season: Mapped[str] = mapped_column(String(100), default="")


# =============================================================================
# RECORD TABLES
# =============================================================================

class Product(SeasonalMixin, Base):
    """
    Line List Table

    Product master data per style/color/season.
    """
    __tablename__ = "products"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    style_number: Mapped[str] = mapped_column(String(50), nullable=False)
    style_desc: Mapped[str] = mapped_column(String(200), default="")
    color: Mapped[str] = mapped_column(String(50), default="")
    color_desc: Mapped[str] = mapped_column(String(200), default="")
    style_color: Mapped[str] = mapped_column(String(100), default="")
    style_season: Mapped[str] = mapped_column(String(20), default="")
    color_season: Mapped[str] = mapped_column(String(20), default="")
    season_desc: Mapped[str] = mapped_column(String(200), default="")
    selling_seasons: Mapped[str] = mapped_column(String(200), default="")

    # Classification
    division_desc: Mapped[str] = mapped_column(String(100), default="")
    category_desc: Mapped[str] = mapped_column(String(100), default="")
    category: Mapped[str] = mapped_column(String(100), default="")
    product_line: Mapped[str] = mapped_column(String(100), default="")
    product_line_desc: Mapped[str] = mapped_column(String(200), default="")
    style_segment: Mapped[str] = mapped_column(String(100), default="")
    style_segment_desc: Mapped[str] = mapped_column(String(200), default="")
    label_desc: Mapped[str] = mapped_column(String(100), default="")

    # Pricing
    price: Mapped[float] = mapped_column(Float, default=0.0)
    msrp: Mapped[float] = mapped_column(Float, default=0.0)
    cost: Mapped[float] = mapped_column(Float, default=0.0)
    currency: Mapped[str] = mapped_column(String(10), default="USD")
    cad_price: Mapped[float] = mapped_column(Float, default=0.0)
    cad_msrp: Mapped[float] = mapped_column(Float, default=0.0)
    cad_last_cost_sheet: Mapped[float] = mapped_column(Float, default=0.0)

    # Flags
    carry_over: Mapped[bool] = mapped_column(Boolean, default=False)
    carry_forward: Mapped[bool] = mapped_column(Boolean, default=False)
    style_disc: Mapped[bool] = mapped_column(Boolean, default=False)
    color_disc: Mapped[bool] = mapped_column(Boolean, default=False)
    inventory_classification: Mapped[str] = mapped_column(String(100), default="")

    # Sourcing
    country_of_origin: Mapped[str] = mapped_column(String(100), default="")
    factory_name: Mapped[str] = mapped_column(String(200), default="")
    primary_supplier: Mapped[str] = mapped_column(String(200), default="")
    hts_code: Mapped[str] = mapped_column(String(50), default="")

    # Team
    designer_name: Mapped[str] = mapped_column(String(100), default="")
    tech_designer_name: Mapped[str] = mapped_column(String(100), default="")
    style_color_notes: Mapped[str] = mapped_column(Text, default="")

    __table_args__ = (
        Index("ix_products_style_season", "style_number", "season"),
        Index("ix_products_key", "style_number", "color", "season"),
    )


class Sale(SeasonalMixin, Base):
    """
    Sales Table

    Pre-aggregated booking lines from the order management export.
    """
    __tablename__ = "sales"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    style_number: Mapped[str] = mapped_column(String(50), nullable=False)
    style_desc: Mapped[str] = mapped_column(String(200), default="")
    color_code: Mapped[str] = mapped_column(String(50), default="")
    color_desc: Mapped[str] = mapped_column(String(200), default="")
    customer: Mapped[str] = mapped_column(String(200), default="")
    customer_type: Mapped[str] = mapped_column(String(20), default="")
    sales_rep: Mapped[str] = mapped_column(String(100), default="")
    division_desc: Mapped[str] = mapped_column(String(100), default="")
    category_desc: Mapped[str] = mapped_column(String(100), default="")
    gender: Mapped[str] = mapped_column(String(50), default="")
    units_booked: Mapped[float] = mapped_column(Float, default=0.0)
    units_open: Mapped[float] = mapped_column(Float, default=0.0)
    revenue: Mapped[float] = mapped_column(Float, default=0.0)
    shipped: Mapped[float] = mapped_column(Float, default=0.0)
    cost: Mapped[float] = mapped_column(Float, default=0.0)
    wholesale_price: Mapped[float] = mapped_column(Float, default=0.0)
    msrp: Mapped[float] = mapped_column(Float, default=0.0)
    net_unit_price: Mapped[float] = mapped_column(Float, default=0.0)
    order_type: Mapped[str] = mapped_column(String(50), default="")

    __table_args__ = (
        Index("ix_sales_style_season", "style_number", "season"),
        Index("ix_sales_customer_type", "customer_type"),
    )


class Pricing(SeasonalMixin, Base):
    """
    Price By Season Table

    Authoritative wholesale and MSRP per style and season.
    """
    __tablename__ = "pricing"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    style_number: Mapped[str] = mapped_column(String(50), nullable=False)
    style_desc: Mapped[str] = mapped_column(String(200), default="")
    color_code: Mapped[str] = mapped_column(String(50), default="")
    color_desc: Mapped[str] = mapped_column(String(200), default="")
    season_desc: Mapped[str] = mapped_column(String(100), default="")
    price: Mapped[float] = mapped_column(Float, default=0.0)
    msrp: Mapped[float] = mapped_column(Float, default=0.0)
    cost: Mapped[float] = mapped_column(Float, default=0.0)

    __table_args__ = (
        Index("ix_pricing_style_season", "style_number", "season"),
    )


class Cost(SeasonalMixin, Base):
    """
    Cost Table

    Landed cost requests and standard cost history. Landed cost outranks
    standard cost for the same style and season.
    """
    __tablename__ = "costs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    style_number: Mapped[str] = mapped_column(String(50), nullable=False)
    style_name: Mapped[str] = mapped_column(String(200), default="")
    factory: Mapped[str] = mapped_column(String(200), default="")
    country_of_origin: Mapped[str] = mapped_column(String(100), default="")
    fob: Mapped[float] = mapped_column(Float, default=0.0)
    landed: Mapped[float] = mapped_column(Float, default=0.0)
    duty_cost: Mapped[float] = mapped_column(Float, default=0.0)
    tariff_cost: Mapped[float] = mapped_column(Float, default=0.0)
    freight_cost: Mapped[float] = mapped_column(Float, default=0.0)
    overhead_cost: Mapped[float] = mapped_column(Float, default=0.0)
    suggested_msrp: Mapped[float] = mapped_column(Float, default=0.0)
    suggested_wholesale: Mapped[float] = mapped_column(Float, default=0.0)
    margin: Mapped[float] = mapped_column(Float, default=0.0)
    design_team: Mapped[str] = mapped_column(String(100), default="")
    developer: Mapped[str] = mapped_column(String(100), default="")
    cost_source: Mapped[str] = mapped_column(String(20), default="landed_cost")

    __table_args__ = (
        Index("ix_costs_style_season", "style_number", "season"),
        Index("ix_costs_season_source", "season", "cost_source"),
    )


class InventoryMovement(Base):
    """
    Inventory Movement Table

    Receipts, shipments and adjustments per style/color/warehouse.
    """
    __tablename__ = "inventory_movements"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    style_number: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    style_desc: Mapped[str] = mapped_column(String(200), default="")
    color: Mapped[str] = mapped_column(String(50), default="")
    color_desc: Mapped[str] = mapped_column(String(200), default="")
    warehouse: Mapped[str] = mapped_column(String(50), default="")
    movement_type: Mapped[str] = mapped_column(String(50), default="")
    movement_date: Mapped[Optional[date]] = mapped_column(Date)
    reference: Mapped[str] = mapped_column(String(100), default="")
    customer_vendor: Mapped[str] = mapped_column(String(200), default="")
    reason_desc: Mapped[str] = mapped_column(String(200), default="")
    cost_price: Mapped[float] = mapped_column(Float, default=0.0)
    wholesale_price: Mapped[float] = mapped_column(Float, default=0.0)
    msrp: Mapped[float] = mapped_column(Float, default=0.0)
    qty: Mapped[float] = mapped_column(Float, default=0.0)
    balance: Mapped[float] = mapped_column(Float, default=0.0)
    extension: Mapped[float] = mapped_column(Float, default=0.0)
    division_desc: Mapped[str] = mapped_column(String(100), default="")
    label_desc: Mapped[str] = mapped_column(String(100), default="")
    period: Mapped[str] = mapped_column(String(20), default="")


# =============================================================================
# AUDIT
# =============================================================================

class ImportLog(Base):
    """Audit row written by every successful import"""
    __tablename__ = "import_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_type: Mapped[str] = mapped_column(String(20), nullable=False)
    seasons: Mapped[str] = mapped_column(String(255), default="")
    replace_existing: Mapped[bool] = mapped_column(Boolean, default=True)
    added: Mapped[int] = mapped_column(Integer, default=0)
    skipped: Mapped[int] = mapped_column(Integer, default=0)
    deleted: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())


MODELS = {
    RecordType.PRODUCTS: Product,
    RecordType.SALES: Sale,
    RecordType.PRICING: Pricing,
    RecordType.COSTS: Cost,
    RecordType.INVENTORY: InventoryMovement,
}
