from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import Session

from bottling.models.inventory import BulkLot
from bottling.services.exceptions import InsufficientBulkVolume, NotFound

StockLevel = Literal["empty", "low", "ok"]

LOW_STOCK_THRESHOLD_ML = 1000


@dataclass(frozen=True)
class LotFilter:
    search: str | None = None
    category: str | None = None
    stock_level: StockLevel | None = None
    min_volume_ml: int | None = None
    include_inactive: bool = False


def build_lot_query(lot_filter: LotFilter) -> Select:
    query = select(BulkLot)
    if not lot_filter.include_inactive:
        query = query.where(BulkLot.is_active.is_(True))
    if lot_filter.search:
        pattern = f"%{lot_filter.search.strip().lower()}%"
        query = query.where(
            or_(
                func.lower(BulkLot.name).like(pattern),
                func.lower(func.coalesce(BulkLot.scent_description, "")).like(pattern),
                func.lower(func.coalesce(BulkLot.batch_number, "")).like(pattern),
            )
        )
    if lot_filter.category:
        query = query.where(func.lower(BulkLot.category_tag) == lot_filter.category.strip().lower())
    if lot_filter.stock_level == "empty":
        query = query.where(BulkLot.remaining_volume_ml == 0)
    elif lot_filter.stock_level == "low":
        query = query.where(
            BulkLot.remaining_volume_ml > 0,
            BulkLot.remaining_volume_ml < LOW_STOCK_THRESHOLD_ML,
        )
    elif lot_filter.stock_level == "ok":
        query = query.where(BulkLot.remaining_volume_ml >= LOW_STOCK_THRESHOLD_ML)
    if lot_filter.min_volume_ml is not None:
        query = query.where(BulkLot.remaining_volume_ml >= lot_filter.min_volume_ml)
    return query


def list_lots(db: Session, lot_filter: LotFilter) -> list[BulkLot]:
    return list(db.scalars(build_lot_query(lot_filter).order_by(BulkLot.name.asc(), BulkLot.id.asc())).all())


def get_lot(db: Session, lot_id: int) -> BulkLot:
    lot = db.get(BulkLot, lot_id)
    if not lot:
        raise NotFound("Bulk perfume not found")
    return lot


def lock_active_lot(db: Session, lot_id: int) -> BulkLot:
    lot = db.scalar(select(BulkLot).where(BulkLot.id == lot_id).with_for_update())
    if not lot or not lot.is_active:
        raise NotFound("Bulk perfume not found")
    return lot


def debit_volume(lot: BulkLot, volume_ml: int) -> None:
    if volume_ml > lot.remaining_volume_ml:
        raise InsufficientBulkVolume(
            f"Insufficient bulk quantity. Available: {lot.remaining_volume_ml}ML, Required: {volume_ml}ML"
        )
    lot.remaining_volume_ml -= volume_ml
    lot.updated_at = datetime.utcnow()


def credit_volume(lot: BulkLot, volume_ml: int) -> None:
    lot.remaining_volume_ml += volume_ml
    lot.updated_at = datetime.utcnow()


def match_lot_by_name(lots: list[BulkLot], product_name: str) -> BulkLot | None:
    """Longest lot name that prefixes ``product_name``, so "Rose Garden" wins over "Rose"."""
    lowered = product_name.lower()
    for lot in sorted(lots, key=lambda item: len(item.name), reverse=True):
        if lowered.startswith(lot.name.lower()):
            return lot
    return None
