"""
Bulk-to-bottle conversion.

A conversion takes volume from a bulk lot and bottles from component stock,
credits a retail product and one or more shop allocations, and appends one
audit record per shop. Every step runs inside the caller's transaction:
:func:`convert` only flushes, :func:`convert_and_commit` commits on success and
rolls everything back on any failure, so the four stores either all move
together or not at all.

Lot and component rows are locked with ``SELECT ... FOR UPDATE`` before the
availability checks, always lot first, then component.
"""
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from bottling.core.config import Settings
from bottling.models.inventory import ConversionRecord
from bottling.services.allocations import get_active_shop, upsert_allocation
from bottling.services.catalog import resolve_or_create
from bottling.services.components import debit_components, lock_active_component
from bottling.services.exceptions import (
    BottlingError,
    InsufficientBulkVolume,
    InsufficientComponentStock,
    InvalidConfiguration,
    TransactionFailure,
    ValidationError,
)
from bottling.services.lots import debit_volume, lock_active_lot
from bottling.services.pricing import PricingTable

logger = logging.getLogger(__name__)


def _money(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"))


@dataclass(frozen=True)
class ConversionRequest:
    lot_id: int
    size_ml: int
    units_requested: int
    shop_quantities: Mapping[int, int]
    actor_id: int | None = None
    batch_number: str | None = None

    @classmethod
    def for_shop(cls, *, lot_id: int, size_ml: int, units_requested: int, shop_id: int, **kwargs) -> "ConversionRequest":
        return cls(
            lot_id=lot_id,
            size_ml=size_ml,
            units_requested=units_requested,
            shop_quantities={shop_id: units_requested},
            **kwargs,
        )

    @classmethod
    def one_per_shop(cls, *, lot_id: int, size_ml: int, shop_ids: list[int], **kwargs) -> "ConversionRequest":
        return cls(
            lot_id=lot_id,
            size_ml=size_ml,
            units_requested=len(shop_ids),
            shop_quantities={shop_id: 1 for shop_id in shop_ids},
            **kwargs,
        )


@dataclass
class ConversionResult:
    lot_id: int
    lot_name: str
    component_id: int
    size_ml: int
    product_id: int
    sku: str
    product_name: str
    units_requested: int
    volume_used_ml: int
    total_cost: Decimal
    remaining_volume_ml: int
    remaining_components: int
    selling_price_per_ml: Decimal
    selling_price: Decimal
    shop_quantities: dict[int, int] = field(default_factory=dict)
    conversion_ids: list[int] = field(default_factory=list)


def _validate_request(request: ConversionRequest, settings: Settings) -> None:
    if isinstance(request.units_requested, bool) or not isinstance(request.units_requested, int):
        raise ValidationError("Quantity must be a positive integer")
    if request.units_requested < 1:
        raise ValidationError("Quantity must be a positive integer")
    if not request.shop_quantities:
        raise ValidationError("At least one target shop is required")
    if any(quantity < 1 for quantity in request.shop_quantities.values()):
        raise ValidationError("Each target shop must receive at least one unit")
    if sum(request.shop_quantities.values()) != request.units_requested:
        raise ValidationError("Shop quantities must add up to the requested quantity")
    if not settings.is_configured_size(request.size_ml):
        allowed = ", ".join(str(size) for size in settings.component_sizes)
        raise InvalidConfiguration(f"Bottle size must be one of: {allowed} ML")


def convert(
    db: Session,
    request: ConversionRequest,
    *,
    pricing: PricingTable,
    settings: Settings,
) -> ConversionResult:
    """Apply one conversion inside the current transaction. Does not commit."""
    _validate_request(request, settings)
    for shop_id in request.shop_quantities:
        get_active_shop(db, shop_id)

    lot = lock_active_lot(db, request.lot_id)
    component = lock_active_component(db, request.size_ml)

    selling_price_per_ml, selling_price = pricing.unit_selling_price(lot.category_tag, component.size_ml)

    units = request.units_requested
    if component.available_count < units:
        raise InsufficientComponentStock(
            f"Insufficient bottle stock. Available: {component.available_count}, Required: {units}"
        )
    required_volume = units * component.size_ml
    if required_volume > lot.remaining_volume_ml:
        raise InsufficientBulkVolume(
            f"Insufficient bulk quantity. Available: {lot.remaining_volume_ml}ML, Required: {required_volume}ML"
        )

    liquid_cost = Decimal(required_volume) * Decimal(lot.cost_per_ml)
    component_cost = Decimal(units) * component.unit_component_cost
    total_cost = liquid_cost + component_cost

    debit_volume(lot, required_volume)
    debit_components(component, units)

    product = resolve_or_create(
        db,
        lot,
        component,
        unit_cost=_money(total_cost / Decimal(units)),
        selling_price=selling_price,
        sku_prefix=settings.sku_prefix,
        sku_name_length=settings.sku_name_length,
    )
    product.stock_quantity = int(product.stock_quantity or 0) + units

    records: list[ConversionRecord] = []
    for shop_id, quantity in request.shop_quantities.items():
        upsert_allocation(
            db,
            shop_id=shop_id,
            product_id=product.id,
            quantity=quantity,
            min_level=settings.default_min_level,
            max_level=settings.default_max_level,
        )
        share = Decimal(quantity) / Decimal(units)
        record = ConversionRecord(
            lot_id=lot.id,
            component_id=component.id,
            product_id=product.id,
            shop_id=shop_id,
            units_produced=quantity,
            volume_used_ml=quantity * component.size_ml,
            total_cost=_money(total_cost * share),
            unit_selling_price=selling_price,
            selling_price_per_ml=selling_price_per_ml,
            batch_number=request.batch_number,
            actor_id=request.actor_id,
        )
        db.add(record)
        records.append(record)
    db.flush()

    return ConversionResult(
        lot_id=lot.id,
        lot_name=lot.name,
        component_id=component.id,
        size_ml=component.size_ml,
        product_id=product.id,
        sku=product.sku,
        product_name=product.name,
        units_requested=units,
        volume_used_ml=required_volume,
        total_cost=_money(total_cost),
        remaining_volume_ml=lot.remaining_volume_ml,
        remaining_components=component.available_count,
        selling_price_per_ml=selling_price_per_ml,
        selling_price=selling_price,
        shop_quantities=dict(request.shop_quantities),
        conversion_ids=[record.id for record in records],
    )


def convert_and_commit(
    db: Session,
    request: ConversionRequest,
    *,
    pricing: PricingTable,
    settings: Settings,
) -> ConversionResult:
    """Run :func:`convert` as one atomic unit: commit on success, roll back on any error."""
    logger.info(
        "Bottling lot=%s size=%sml units=%s shops=%s actor=%s",
        request.lot_id,
        request.size_ml,
        request.units_requested,
        list(request.shop_quantities),
        request.actor_id,
    )
    try:
        result = convert(db, request, pricing=pricing, settings=settings)
        db.commit()
    except BottlingError as exc:
        db.rollback()
        logger.info("Bottling lot=%s size=%sml rejected: %s", request.lot_id, request.size_ml, exc.detail)
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception(
            "Bottling lot=%s size=%sml units=%s rolled back after database error",
            request.lot_id,
            request.size_ml,
            request.units_requested,
        )
        raise TransactionFailure() from exc
    except Exception:
        db.rollback()
        logger.exception("Bottling lot=%s size=%sml rolled back after unexpected error", request.lot_id, request.size_ml)
        raise

    logger.info(
        "Bottled %s x %s (product=%s) cost=%s remaining=%sml",
        result.units_requested,
        result.sku,
        result.product_id,
        result.total_cost,
        result.remaining_volume_ml,
    )
    return result
