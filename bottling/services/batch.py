import logging
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from bottling.core.config import Settings
from bottling.models.inventory import Shop
from bottling.services.allocations import get_active_shop
from bottling.services.conversion import ConversionRequest, convert_and_commit
from bottling.services.exceptions import BottlingError, ValidationError
from bottling.services.lots import LotFilter, get_lot, list_lots
from bottling.services.pricing import PricingTable

logger = logging.getLogger(__name__)

ALL_SHOPS = "all"


@dataclass
class BatchItem:
    lot_id: int
    lot_name: str
    size_ml: int | None
    status: str
    units: int = 0
    product_id: int | None = None
    sku: str | None = None
    total_cost: Decimal | None = None
    reason: str | None = None


@dataclass
class BatchReport:
    shop_ids: list[int]
    processed: int = 0
    success: int = 0
    failed: int = 0
    remaining_volume_ml: int | None = None
    details: list[BatchItem] = field(default_factory=list)

    @property
    def has_failures(self) -> bool:
        return self.failed > 0


def resolve_target_shops(db: Session, shop_id: int | str) -> list[int]:
    if shop_id == ALL_SHOPS:
        shop_ids = list(
            db.scalars(select(Shop.id).where(Shop.is_active.is_(True)).order_by(Shop.id.asc())).all()
        )
        if not shop_ids:
            raise ValidationError("No active shops found")
        return shop_ids
    if isinstance(shop_id, str):
        raise ValidationError('Shop ID must be an integer or "all"')
    return [get_active_shop(db, shop_id).id]


def _run_combination(
    db: Session,
    report: BatchReport,
    *,
    lot_id: int,
    lot_name: str,
    size_ml: int,
    shop_ids: list[int],
    actor_id: int | None,
    batch_number: str | None,
    pricing: PricingTable,
    settings: Settings,
) -> None:
    report.processed += 1
    request = ConversionRequest.one_per_shop(
        lot_id=lot_id,
        size_ml=size_ml,
        shop_ids=shop_ids,
        actor_id=actor_id,
        batch_number=batch_number,
    )
    try:
        result = convert_and_commit(db, request, pricing=pricing, settings=settings)
    except BottlingError as exc:
        report.failed += 1
        report.details.append(
            BatchItem(lot_id=lot_id, lot_name=lot_name, size_ml=size_ml, status="failed", reason=exc.detail)
        )
        return
    report.success += 1
    report.details.append(
        BatchItem(
            lot_id=lot_id,
            lot_name=lot_name,
            size_ml=size_ml,
            status="success",
            units=result.units_requested,
            product_id=result.product_id,
            sku=result.sku,
            total_cost=result.total_cost,
        )
    )


def convert_lot_all_sizes(
    db: Session,
    *,
    lot_id: int,
    shop_ids: list[int],
    actor_id: int | None,
    pricing: PricingTable,
    settings: Settings,
    batch_number: str | None = None,
) -> BatchReport:
    """Bottle one unit of every configured size for each shop, one size per transaction."""
    lot = get_lot(db, lot_id)
    if not lot.is_active:
        raise ValidationError("Bulk perfume is inactive")
    lot_name = lot.name
    report = BatchReport(shop_ids=shop_ids)
    for size_ml in settings.component_sizes:
        _run_combination(
            db,
            report,
            lot_id=lot_id,
            lot_name=lot_name,
            size_ml=size_ml,
            shop_ids=shop_ids,
            actor_id=actor_id,
            batch_number=batch_number,
            pricing=pricing,
            settings=settings,
        )
    report.remaining_volume_ml = get_lot(db, lot_id).remaining_volume_ml
    return report


def convert_all_for_shops(
    db: Session,
    *,
    lot_filter: LotFilter,
    shop_ids: list[int],
    actor_id: int | None,
    pricing: PricingTable,
    settings: Settings,
) -> BatchReport:
    """
    Bottle every (lot x configured size) combination for ``shop_ids``.

    Each combination converts ``len(shop_ids)`` units in its own transaction and
    fans one unit out to each shop. A failing combination is recorded in the
    report and the run carries on with the rest. A lot that cannot cover one full
    set of sizes for every shop is reported as skipped and left untouched.
    """
    lots = [(lot.id, lot.name, lot.remaining_volume_ml) for lot in list_lots(db, lot_filter)]
    db.rollback()
    report = BatchReport(shop_ids=shop_ids)
    full_set_ml = len(shop_ids) * sum(settings.component_sizes)
    logger.info("Batch bottling %s lots for %s shops", len(lots), len(shop_ids))
    for lot_id, lot_name, remaining_ml in lots:
        if remaining_ml < full_set_ml:
            report.processed += 1
            report.failed += 1
            report.details.append(
                BatchItem(
                    lot_id=lot_id,
                    lot_name=lot_name,
                    size_ml=None,
                    status="skipped",
                    reason=f"Low bulk stock ({remaining_ml}ml < {full_set_ml}ml)",
                )
            )
            continue
        for size_ml in settings.component_sizes:
            _run_combination(
                db,
                report,
                lot_id=lot_id,
                lot_name=lot_name,
                size_ml=size_ml,
                shop_ids=shop_ids,
                actor_id=actor_id,
                batch_number=None,
                pricing=pricing,
                settings=settings,
            )
    logger.info(
        "Batch bottling finished: processed=%s success=%s failed=%s",
        report.processed,
        report.success,
        report.failed,
    )
    return report
