import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bottling.models.inventory import RetailProduct, Shop, ShopAllocation
from bottling.services.exceptions import NotFound, ValidationError

logger = logging.getLogger(__name__)

MAX_REPORTED_ERRORS = 10


@dataclass
class AssignmentReport:
    shop_id: int
    shop_name: str
    total_products: int = 0
    assigned: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[dict] = field(default_factory=list)


@dataclass
class UnassignmentReport:
    shop_id: int
    shop_name: str
    total_unassigned: int = 0
    failed: int = 0
    errors: list[dict] = field(default_factory=list)


def get_active_shop(db: Session, shop_id: int) -> Shop:
    shop = db.get(Shop, shop_id)
    if not shop or not shop.is_active:
        raise NotFound("Shop not found or inactive")
    return shop


def allocated_total(db: Session, product_id: int) -> int:
    total = db.scalar(
        select(func.coalesce(func.sum(ShopAllocation.quantity), 0)).where(ShopAllocation.product_id == product_id)
    )
    return int(total or 0)


def lock_allocation(db: Session, shop_id: int, product_id: int) -> ShopAllocation | None:
    return db.scalar(
        select(ShopAllocation)
        .where(ShopAllocation.shop_id == shop_id, ShopAllocation.product_id == product_id)
        .with_for_update()
    )


def upsert_allocation(
    db: Session,
    *,
    shop_id: int,
    product_id: int,
    quantity: int,
    min_level: int,
    max_level: int,
) -> ShopAllocation:
    allocation = lock_allocation(db, shop_id, product_id)
    if allocation:
        allocation.quantity += quantity
        allocation.updated_at = datetime.utcnow()
        return allocation

    allocation = ShopAllocation(
        shop_id=shop_id,
        product_id=product_id,
        quantity=quantity,
        min_level=min_level,
        max_level=max_level,
    )
    db.add(allocation)
    db.flush()
    return allocation


def assign_all_to_shop(
    db: Session,
    *,
    shop_id: int,
    default_quantity: int,
    min_level: int,
    max_level: int,
    update_existing: bool,
) -> AssignmentReport:
    """
    Give ``shop_id`` an allocation row for every active product.

    The quantity is ``default_quantity`` (or the product's whole stock when it is
    zero), capped to what is not yet allocated elsewhere so the sum of shop
    allocations never exceeds the product's stock. Every product is committed on
    its own; a failing row is counted and does not undo the others.
    """
    if default_quantity < 0 or min_level < 0 or max_level < 0:
        raise ValidationError("Quantities and stock levels must be non-negative integers")
    shop = get_active_shop(db, shop_id)
    report = AssignmentReport(shop_id=shop.id, shop_name=shop.name)

    products = db.execute(
        select(RetailProduct.id, RetailProduct.name)
        .where(RetailProduct.is_active.is_(True))
        .order_by(RetailProduct.name.asc())
    ).all()
    if not products:
        raise ValidationError("No active products found")
    report.total_products = len(products)

    for product_id, product_name in products:
        try:
            product = db.scalar(select(RetailProduct).where(RetailProduct.id == product_id).with_for_update())
            existing = lock_allocation(db, shop_id, product_id)
            if existing and not update_existing:
                report.skipped += 1
                db.rollback()
                continue

            available = int(product.stock_quantity) - allocated_total(db, product_id)
            if existing:
                available += int(existing.quantity)
            quantity = default_quantity if default_quantity > 0 else int(product.stock_quantity)
            quantity = max(0, min(quantity, available))

            if existing:
                existing.quantity = quantity
                existing.min_level = min_level
                existing.max_level = max_level
                existing.updated_at = datetime.utcnow()
                report.updated += 1
            else:
                db.add(
                    ShopAllocation(
                        shop_id=shop_id,
                        product_id=product_id,
                        quantity=quantity,
                        min_level=min_level,
                        max_level=max_level,
                    )
                )
                report.assigned += 1
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            report.failed += 1
            if len(report.errors) < MAX_REPORTED_ERRORS:
                report.errors.append({"product_id": product_id, "product_name": product_name, "error": str(exc)})
            logger.warning("Assigning product %s to shop %s failed: %s", product_id, shop_id, exc)

    logger.info(
        "Bulk assignment for shop %s: assigned=%s updated=%s skipped=%s failed=%s",
        shop_id,
        report.assigned,
        report.updated,
        report.skipped,
        report.failed,
    )
    return report


def unassign_all_from_shop(db: Session, *, shop_id: int) -> UnassignmentReport:
    shop = get_active_shop(db, shop_id)
    report = UnassignmentReport(shop_id=shop.id, shop_name=shop.name)

    assignment_count = db.scalar(
        select(func.count(ShopAllocation.id)).where(ShopAllocation.shop_id == shop_id)
    ) or 0
    if not assignment_count:
        return report

    try:
        db.execute(delete(ShopAllocation).where(ShopAllocation.shop_id == shop_id))
        db.commit()
        report.total_unassigned = int(assignment_count)
    except SQLAlchemyError as exc:
        db.rollback()
        report.failed = int(assignment_count)
        report.errors.append({"error": str(exc)})
        logger.error("Unassigning products from shop %s failed: %s", shop_id, exc)
    return report
