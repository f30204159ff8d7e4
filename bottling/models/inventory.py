from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from bottling.db.database import Base


class Shop(Base):
    __tablename__ = "shops"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(120), index=True, nullable=False)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)


class BulkLot(Base):
    __tablename__ = "bulk_lots"
    __table_args__ = (CheckConstraint("remaining_volume_ml >= 0", name="ck_bulk_lots_volume_non_negative"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(160), index=True, nullable=False)
    scent_description: Mapped[str | None] = mapped_column(Text, nullable=True)
    remaining_volume_ml: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    cost_per_ml: Mapped[Decimal] = mapped_column(Numeric(12, 4), nullable=False)
    category_tag: Mapped[str | None] = mapped_column(String(120), index=True, nullable=True)
    supplier: Mapped[str | None] = mapped_column(String(160), nullable=True)
    batch_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )


class ComponentStock(Base):
    __tablename__ = "component_stock"
    __table_args__ = (CheckConstraint("available_count >= 0", name="ck_component_stock_count_non_negative"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    size_ml: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    available_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    bottle_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    label_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    packaging_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )

    @property
    def unit_component_cost(self) -> Decimal:
        return (
            Decimal(self.bottle_cost or 0)
            + Decimal(self.label_cost or 0)
            + Decimal(self.packaging_cost or 0)
        )


class RetailProduct(Base):
    __tablename__ = "retail_products"
    __table_args__ = (CheckConstraint("stock_quantity >= 0", name="ck_retail_products_stock_non_negative"),)

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    sku: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    name: Mapped[str] = mapped_column(String(200), index=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    size_ml: Mapped[int | None] = mapped_column(Integer, nullable=True)
    selling_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    unit_cost: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    stock_quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    source_lot_id: Mapped[int | None] = mapped_column(
        ForeignKey("bulk_lots.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
    source_component_id: Mapped[int | None] = mapped_column(
        ForeignKey("component_stock.id", ondelete="SET NULL"),
        index=True,
        nullable=True,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )


class ShopAllocation(Base):
    __tablename__ = "shop_allocations"
    __table_args__ = (
        UniqueConstraint("shop_id", "product_id", name="uq_shop_allocations_shop_product"),
        CheckConstraint("quantity >= 0", name="ck_shop_allocations_quantity_non_negative"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    shop_id: Mapped[int] = mapped_column(ForeignKey("shops.id", ondelete="CASCADE"), index=True, nullable=False)
    product_id: Mapped[int] = mapped_column(
        ForeignKey("retail_products.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    min_level: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    max_level: Mapped[int] = mapped_column(Integer, default=100, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime,
        default=datetime.utcnow,
        onupdate=datetime.utcnow,
        nullable=False,
    )


class ConversionRecord(Base):
    __tablename__ = "conversion_records"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    lot_id: Mapped[int] = mapped_column(ForeignKey("bulk_lots.id", ondelete="RESTRICT"), index=True, nullable=False)
    component_id: Mapped[int] = mapped_column(
        ForeignKey("component_stock.id", ondelete="RESTRICT"),
        index=True,
        nullable=False,
    )
    product_id: Mapped[int] = mapped_column(
        ForeignKey("retail_products.id", ondelete="RESTRICT"),
        index=True,
        nullable=False,
    )
    shop_id: Mapped[int | None] = mapped_column(ForeignKey("shops.id", ondelete="SET NULL"), index=True, nullable=True)
    units_produced: Mapped[int] = mapped_column(Integer, nullable=False)
    volume_used_ml: Mapped[int] = mapped_column(Integer, nullable=False)
    total_cost: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    unit_selling_price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    selling_price_per_ml: Mapped[Decimal] = mapped_column(Numeric(14, 6), nullable=False)
    batch_number: Mapped[str | None] = mapped_column(String(64), nullable=True)
    actor_id: Mapped[int | None] = mapped_column(Integer, index=True, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, nullable=False, index=True)
