"""bottling schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "shops",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("code", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_shops_code"), "shops", ["code"], unique=True)
    op.create_index(op.f("ix_shops_id"), "shops", ["id"], unique=False)
    op.create_index(op.f("ix_shops_name"), "shops", ["name"], unique=False)

    op.create_table(
        "bulk_lots",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("scent_description", sa.Text(), nullable=True),
        sa.Column("remaining_volume_ml", sa.Integer(), nullable=False),
        sa.Column("cost_per_ml", sa.Numeric(precision=12, scale=4), nullable=False),
        sa.Column("category_tag", sa.String(length=120), nullable=True),
        sa.Column("supplier", sa.String(length=160), nullable=True),
        sa.Column("batch_number", sa.String(length=64), nullable=True),
        sa.Column("expiry_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("remaining_volume_ml >= 0", name="ck_bulk_lots_volume_non_negative"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_bulk_lots_category_tag"), "bulk_lots", ["category_tag"], unique=False)
    op.create_index(op.f("ix_bulk_lots_id"), "bulk_lots", ["id"], unique=False)
    op.create_index(op.f("ix_bulk_lots_name"), "bulk_lots", ["name"], unique=False)

    op.create_table(
        "component_stock",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("size_ml", sa.Integer(), nullable=False),
        sa.Column("available_count", sa.Integer(), nullable=False),
        sa.Column("bottle_cost", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("label_cost", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("packaging_cost", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("available_count >= 0", name="ck_component_stock_count_non_negative"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_component_stock_id"), "component_stock", ["id"], unique=False)
    op.create_index(op.f("ix_component_stock_size_ml"), "component_stock", ["size_ml"], unique=False)

    op.create_table(
        "retail_products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sku", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("size_ml", sa.Integer(), nullable=True),
        sa.Column("selling_price", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("unit_cost", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("stock_quantity", sa.Integer(), nullable=False),
        sa.Column("source_lot_id", sa.Integer(), nullable=True),
        sa.Column("source_component_id", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("stock_quantity >= 0", name="ck_retail_products_stock_non_negative"),
        sa.ForeignKeyConstraint(["source_component_id"], ["component_stock.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["source_lot_id"], ["bulk_lots.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_retail_products_id"), "retail_products", ["id"], unique=False)
    op.create_index(op.f("ix_retail_products_name"), "retail_products", ["name"], unique=False)
    op.create_index(op.f("ix_retail_products_sku"), "retail_products", ["sku"], unique=True)
    op.create_index(
        op.f("ix_retail_products_source_component_id"),
        "retail_products",
        ["source_component_id"],
        unique=False,
    )
    op.create_index(op.f("ix_retail_products_source_lot_id"), "retail_products", ["source_lot_id"], unique=False)

    op.create_table(
        "shop_allocations",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("shop_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("min_level", sa.Integer(), nullable=False),
        sa.Column("max_level", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("quantity >= 0", name="ck_shop_allocations_quantity_non_negative"),
        sa.ForeignKeyConstraint(["product_id"], ["retail_products.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["shop_id"], ["shops.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("shop_id", "product_id", name="uq_shop_allocations_shop_product"),
    )
    op.create_index(op.f("ix_shop_allocations_id"), "shop_allocations", ["id"], unique=False)
    op.create_index(op.f("ix_shop_allocations_product_id"), "shop_allocations", ["product_id"], unique=False)
    op.create_index(op.f("ix_shop_allocations_shop_id"), "shop_allocations", ["shop_id"], unique=False)

    op.create_table(
        "conversion_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("lot_id", sa.Integer(), nullable=False),
        sa.Column("component_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("shop_id", sa.Integer(), nullable=True),
        sa.Column("units_produced", sa.Integer(), nullable=False),
        sa.Column("volume_used_ml", sa.Integer(), nullable=False),
        sa.Column("total_cost", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("unit_selling_price", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("selling_price_per_ml", sa.Numeric(precision=14, scale=6), nullable=False),
        sa.Column("batch_number", sa.String(length=64), nullable=True),
        sa.Column("actor_id", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["component_id"], ["component_stock.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["lot_id"], ["bulk_lots.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["product_id"], ["retail_products.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["shop_id"], ["shops.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_conversion_records_actor_id"), "conversion_records", ["actor_id"], unique=False)
    op.create_index(op.f("ix_conversion_records_component_id"), "conversion_records", ["component_id"], unique=False)
    op.create_index(op.f("ix_conversion_records_created_at"), "conversion_records", ["created_at"], unique=False)
    op.create_index(op.f("ix_conversion_records_id"), "conversion_records", ["id"], unique=False)
    op.create_index(op.f("ix_conversion_records_lot_id"), "conversion_records", ["lot_id"], unique=False)
    op.create_index(op.f("ix_conversion_records_product_id"), "conversion_records", ["product_id"], unique=False)
    op.create_index(op.f("ix_conversion_records_shop_id"), "conversion_records", ["shop_id"], unique=False)


def downgrade() -> None:
    op.drop_index(op.f("ix_conversion_records_shop_id"), table_name="conversion_records")
    op.drop_index(op.f("ix_conversion_records_product_id"), table_name="conversion_records")
    op.drop_index(op.f("ix_conversion_records_lot_id"), table_name="conversion_records")
    op.drop_index(op.f("ix_conversion_records_id"), table_name="conversion_records")
    op.drop_index(op.f("ix_conversion_records_created_at"), table_name="conversion_records")
    op.drop_index(op.f("ix_conversion_records_component_id"), table_name="conversion_records")
    op.drop_index(op.f("ix_conversion_records_actor_id"), table_name="conversion_records")
    op.drop_table("conversion_records")

    op.drop_index(op.f("ix_shop_allocations_shop_id"), table_name="shop_allocations")
    op.drop_index(op.f("ix_shop_allocations_product_id"), table_name="shop_allocations")
    op.drop_index(op.f("ix_shop_allocations_id"), table_name="shop_allocations")
    op.drop_table("shop_allocations")

    op.drop_index(op.f("ix_retail_products_source_lot_id"), table_name="retail_products")
    op.drop_index(op.f("ix_retail_products_source_component_id"), table_name="retail_products")
    op.drop_index(op.f("ix_retail_products_sku"), table_name="retail_products")
    op.drop_index(op.f("ix_retail_products_name"), table_name="retail_products")
    op.drop_index(op.f("ix_retail_products_id"), table_name="retail_products")
    op.drop_table("retail_products")

    op.drop_index(op.f("ix_component_stock_size_ml"), table_name="component_stock")
    op.drop_index(op.f("ix_component_stock_id"), table_name="component_stock")
    op.drop_table("component_stock")

    op.drop_index(op.f("ix_bulk_lots_name"), table_name="bulk_lots")
    op.drop_index(op.f("ix_bulk_lots_id"), table_name="bulk_lots")
    op.drop_index(op.f("ix_bulk_lots_category_tag"), table_name="bulk_lots")
    op.drop_table("bulk_lots")

    op.drop_index(op.f("ix_shops_name"), table_name="shops")
    op.drop_index(op.f("ix_shops_id"), table_name="shops")
    op.drop_index(op.f("ix_shops_code"), table_name="shops")
    op.drop_table("shops")
