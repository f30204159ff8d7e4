"""
Return shop stock to bulk.

Reconciliation walks every shop allocation with a positive quantity, works out
which lot and bottle size the product came from, and moves the units back:
volume to the lot, bottles to component stock, the allocation to zero and the
product's global stock down by the same amount.

Lineage comes from the product's ``source_lot_id`` / ``size_ml`` columns. Older
products created before those columns existed fall back to the naming
convention (``"<lot name> <size>ml"``), matching the longest lot name first.

Every item is committed on its own, so a bad row is skipped and reported while
the rows already returned stay returned.
"""
import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bottling.models.inventory import BulkLot, RetailProduct, ShopAllocation
from bottling.services.catalog import size_from_product_name
from bottling.services.components import credit_components, find_component
from bottling.services.lots import credit_volume, match_lot_by_name

logger = logging.getLogger(__name__)


class _Skip(Exception):
    pass


@dataclass
class ReconciliationReport:
    items_found: int = 0
    items_processed: int = 0
    volume_recovered_ml: int = 0
    components_recovered: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return bool(self.errors)


def _locked(query):
    # Rows may already sit in the identity map from the unlocked lineage reads.
    return query.with_for_update().execution_options(populate_existing=True)


def _resolve_lot_id(db: Session, product: RetailProduct) -> int:
    if product.source_lot_id is not None and db.get(BulkLot, product.source_lot_id):
        return product.source_lot_id
    lots = list(db.scalars(select(BulkLot)).all())
    matched = match_lot_by_name(lots, product.name)
    if not matched:
        raise _Skip("Could not find matching bulk perfume")
    return matched.id


def _return_item(db: Session, allocation_id: int) -> tuple[int, int]:
    allocation = db.get(ShopAllocation, allocation_id)
    if not allocation or allocation.quantity <= 0:
        return 0, 0
    product_id = allocation.product_id
    product = db.get(RetailProduct, product_id)

    size_ml = product.size_ml or size_from_product_name(product.name)
    if not size_ml:
        raise _Skip("Could not determine size")
    lot_id = _resolve_lot_id(db, product)

    # Same lock order as a conversion: lot, component, product, allocation.
    lot = db.scalar(_locked(select(BulkLot).where(BulkLot.id == lot_id)))
    component = find_component(db, size_ml, lock=True)
    if not component:
        raise _Skip(f"Unknown bottle size {size_ml}ml")
    product = db.scalar(_locked(select(RetailProduct).where(RetailProduct.id == product_id)))
    allocation = db.scalar(_locked(select(ShopAllocation).where(ShopAllocation.id == allocation_id)))
    if not allocation or allocation.quantity <= 0:
        return 0, 0

    quantity = int(allocation.quantity)
    volume = quantity * size_ml
    credit_volume(lot, volume)
    credit_components(component, quantity)
    allocation.quantity = 0
    product.stock_quantity = max(0, int(product.stock_quantity) - quantity)
    return volume, quantity


def return_all_shop_inventory(db: Session, actor_id: int | None = None) -> ReconciliationReport:
    report = ReconciliationReport()
    items = db.execute(
        select(ShopAllocation.id, ShopAllocation.shop_id, RetailProduct.name)
        .join(RetailProduct, RetailProduct.id == ShopAllocation.product_id)
        .where(ShopAllocation.quantity > 0)
        .order_by(ShopAllocation.id.asc())
    ).all()
    db.rollback()
    report.items_found = len(items)
    logger.info("Returning shop inventory: %s items (actor=%s)", len(items), actor_id)

    for allocation_id, shop_id, product_name in items:
        try:
            volume, quantity = _return_item(db, allocation_id)
            db.commit()
        except _Skip as exc:
            db.rollback()
            report.skipped += 1
            report.errors.append(f"Skipped {product_name}: {exc}")
            logger.warning("Skipped %s at shop %s: %s", product_name, shop_id, exc)
            continue
        except SQLAlchemyError as exc:
            db.rollback()
            report.errors.append(f"Error on {product_name}: {exc}")
            logger.error("Returning %s from shop %s failed: %s", product_name, shop_id, exc)
            continue
        if quantity:
            report.items_processed += 1
            report.volume_recovered_ml += volume
            report.components_recovered += quantity

    logger.info(
        "Shop inventory returned: processed=%s volume=%sml bottles=%s skipped=%s",
        report.items_processed,
        report.volume_recovered_ml,
        report.components_recovered,
        report.skipped,
    )
    return report
