from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from bottling.models.inventory import ComponentStock, ConversionRecord
from bottling.services.exceptions import InsufficientComponentStock, NotFound


def _latest_for_size(size_ml: int, active_only: bool = True):
    query = select(ComponentStock).where(ComponentStock.size_ml == size_ml)
    if active_only:
        query = query.where(ComponentStock.is_active.is_(True))
    return query.order_by(ComponentStock.created_at.desc(), ComponentStock.id.desc()).limit(1)


def lock_active_component(db: Session, size_ml: int) -> ComponentStock:
    component = db.scalar(_latest_for_size(size_ml).with_for_update())
    if not component:
        raise NotFound(f"Bottle size {size_ml}ML not found in inventory")
    return component


def find_component(db: Session, size_ml: int, *, lock: bool = False) -> ComponentStock | None:
    """Active row for ``size_ml``, falling back to an archived one."""
    for active_only in (True, False):
        query = _latest_for_size(size_ml, active_only=active_only)
        component = db.scalar(query.with_for_update() if lock else query)
        if component:
            return component
    return None


def debit_components(component: ComponentStock, count: int) -> None:
    if component.available_count < count:
        raise InsufficientComponentStock(
            f"Insufficient bottle stock. Available: {component.available_count}, Required: {count}"
        )
    component.available_count -= count
    component.updated_at = datetime.utcnow()


def credit_components(component: ComponentStock, count: int) -> None:
    component.available_count += count
    component.updated_at = datetime.utcnow()


def used_quantities(db: Session) -> dict[int, int]:
    rows = db.execute(
        select(ConversionRecord.component_id, func.coalesce(func.sum(ConversionRecord.units_produced), 0))
        .group_by(ConversionRecord.component_id)
    ).all()
    return {component_id: int(total) for component_id, total in rows}
