import re
from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from bottling.models.inventory import BulkLot, ComponentStock, RetailProduct

_NON_ALNUM = re.compile(r"[^a-zA-Z0-9]")
_SIZE_SUFFIX = re.compile(r"(\d+)\s*ml$", re.IGNORECASE)


def derive_sku(
    lot_name: str,
    size_ml: int,
    *,
    prefix: str = "PERF",
    name_length: int = 8,
    lot_id: int | None = None,
) -> str:
    """
    ``PERF-<NAME>-<size>ML``. Passing ``lot_id`` gives ``PERF-<NAME>-<lot_id>-<size>ML``,
    used when the short form already belongs to another lot.
    """
    name_part = _NON_ALNUM.sub("", lot_name).upper()[:name_length]
    if lot_id is not None:
        return f"{prefix}-{name_part}-{lot_id}-{size_ml}ML"
    return f"{prefix}-{name_part}-{size_ml}ML"


def product_display_name(lot_name: str, size_ml: int) -> str:
    return f"{lot_name.strip()} {size_ml}ml"


def size_from_product_name(name: str) -> int | None:
    match = _SIZE_SUFFIX.search(name.strip())
    return int(match.group(1)) if match else None


def resolve_or_create(
    db: Session,
    lot: BulkLot,
    component: ComponentStock,
    *,
    unit_cost: Decimal,
    selling_price: Decimal,
    sku_prefix: str = "PERF",
    sku_name_length: int = 8,
) -> RetailProduct:
    """
    Return the retail product for ``(lot, component size)``, creating it on first use.

    Products are keyed on their recorded lineage, so lots whose names share a
    SKU prefix ("Rose Garden", "Rose Gardenia") never share a product. A
    legacy product without lineage is adopted only when its name is exactly
    the lot's display name.

    An existing product is reactivated and gets the latest unit cost; its selling
    price is left alone so stock already on the shelf keeps its value. New
    products start with zero stock, the caller credits the produced units.
    """
    product = db.scalar(
        select(RetailProduct)
        .where(RetailProduct.source_lot_id == lot.id, RetailProduct.size_ml == component.size_ml)
        .order_by(RetailProduct.id.asc())
        .limit(1)
        .with_for_update()
    )
    display_name = product_display_name(lot.name, component.size_ml)
    sku = derive_sku(lot.name, component.size_ml, prefix=sku_prefix, name_length=sku_name_length)
    if not product:
        holder = db.scalar(select(RetailProduct).where(RetailProduct.sku == sku).with_for_update())
        if holder and holder.source_lot_id is None and holder.name.strip().lower() == display_name.lower():
            product = holder
        elif holder:
            sku = derive_sku(
                lot.name,
                component.size_ml,
                prefix=sku_prefix,
                name_length=sku_name_length,
                lot_id=lot.id,
            )

    if product:
        product.is_active = True
        product.unit_cost = unit_cost
        if product.source_lot_id is None:
            product.source_lot_id = lot.id
        if product.source_component_id is None:
            product.source_component_id = component.id
        if product.size_ml is None:
            product.size_ml = component.size_ml
        product.updated_at = datetime.utcnow()
        return product

    product = RetailProduct(
        sku=sku,
        name=display_name,
        description=lot.scent_description or None,
        size_ml=component.size_ml,
        selling_price=selling_price,
        unit_cost=unit_cost,
        stock_quantity=0,
        source_lot_id=lot.id,
        source_component_id=component.id,
        is_active=True,
    )
    db.add(product)
    db.flush()
    return product
