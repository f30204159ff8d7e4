from datetime import datetime, timedelta
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from bottling.api.deps import get_actor_id, get_pricing_table, get_settings
from bottling.core.config import Settings
from bottling.db.database import get_db
from bottling.models.inventory import BulkLot, ComponentStock, ConversionRecord
from bottling.schemas.inventory import (
    BatchReportOut,
    BottleAllBulkRequest,
    BottleAllSizesRequest,
    BottleRequest,
    BottlingStatsOut,
    BulkLotCreate,
    BulkLotOut,
    BulkLotUpdate,
    ComponentCreate,
    ComponentOut,
    ComponentUpdate,
    ConversionOut,
    ConversionRecordOut,
    ReconciliationOut,
    TopLotOut,
)
from bottling.services.batch import convert_all_for_shops, convert_lot_all_sizes, resolve_target_shops
from bottling.services.components import used_quantities
from bottling.services.conversion import ConversionRequest, convert_and_commit
from bottling.services.exceptions import InvalidConfiguration, NotFound, ValidationError
from bottling.services.lots import LotFilter, StockLevel, get_lot, list_lots
from bottling.services.pricing import PricingTable
from bottling.services.reconciliation import return_all_shop_inventory

router = APIRouter(prefix="/perfume", tags=["Perfume"])

HISTORY_LIMIT = 100
TOP_LOTS_LIMIT = 5


@router.post("/bottle", response_model=ConversionOut, status_code=status.HTTP_201_CREATED)
def bottle_perfume(
    payload: BottleRequest,
    actor_id: int | None = Depends(get_actor_id),
    pricing: PricingTable = Depends(get_pricing_table),
    app_settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    request = ConversionRequest.for_shop(
        lot_id=payload.lot_id,
        size_ml=payload.component_size,
        units_requested=payload.units_requested,
        shop_id=payload.shop_id,
        actor_id=actor_id,
        batch_number=payload.batch_number,
    )
    return convert_and_commit(db, request, pricing=pricing, settings=app_settings)


@router.post("/bottle-all-sizes", response_model=BatchReportOut, status_code=status.HTTP_201_CREATED)
def bottle_all_sizes(
    payload: BottleAllSizesRequest,
    response: Response,
    actor_id: int | None = Depends(get_actor_id),
    pricing: PricingTable = Depends(get_pricing_table),
    app_settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    shop_ids = resolve_target_shops(db, payload.shop_id)
    report = convert_lot_all_sizes(
        db,
        lot_id=payload.lot_id,
        shop_ids=shop_ids,
        actor_id=actor_id,
        pricing=pricing,
        settings=app_settings,
        batch_number=payload.batch_number,
    )
    if report.has_failures:
        response.status_code = status.HTTP_207_MULTI_STATUS
    return report


@router.post("/bottle-all-bulk", response_model=BatchReportOut)
def bottle_all_bulk(
    payload: BottleAllBulkRequest,
    response: Response,
    actor_id: int | None = Depends(get_actor_id),
    pricing: PricingTable = Depends(get_pricing_table),
    app_settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    shop_ids = resolve_target_shops(db, payload.shop_id)
    min_volume = payload.min_volume_ml if payload.min_volume_ml is not None else app_settings.batch_min_volume_ml
    report = convert_all_for_shops(
        db,
        lot_filter=LotFilter(category=payload.category, min_volume_ml=min_volume),
        shop_ids=shop_ids,
        actor_id=actor_id,
        pricing=pricing,
        settings=app_settings,
    )
    if report.has_failures:
        response.status_code = status.HTTP_207_MULTI_STATUS
    return report


@router.post("/return-shop-inventory", response_model=ReconciliationOut)
def return_shop_inventory(
    response: Response,
    actor_id: int | None = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    report = return_all_shop_inventory(db, actor_id=actor_id)
    if report.has_failures:
        response.status_code = status.HTTP_207_MULTI_STATUS
    return report


@router.get("/bulk", response_model=list[BulkLotOut])
def list_bulk_perfumes(
    search: str | None = Query(default=None),
    category: str | None = Query(default=None),
    stock_level: StockLevel | None = Query(default=None),
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    return list_lots(
        db,
        LotFilter(
            search=search,
            category=category,
            stock_level=stock_level,
            include_inactive=include_inactive,
        ),
    )


@router.post("/bulk", response_model=BulkLotOut, status_code=status.HTTP_201_CREATED)
def create_bulk_perfume(payload: BulkLotCreate, db: Session = Depends(get_db)):
    lot = BulkLot(
        name=payload.name,
        scent_description=(payload.scent_description or "").strip() or None,
        remaining_volume_ml=payload.remaining_volume_ml,
        cost_per_ml=payload.cost_per_ml,
        category_tag=(payload.category_tag or "").strip() or None,
        supplier=(payload.supplier or "").strip() or None,
        batch_number=(payload.batch_number or "").strip() or None,
        expiry_date=payload.expiry_date,
    )
    db.add(lot)
    db.commit()
    db.refresh(lot)
    return lot


@router.get("/bulk/{lot_id}", response_model=BulkLotOut)
def get_bulk_perfume(lot_id: int, db: Session = Depends(get_db)):
    return get_lot(db, lot_id)


@router.patch("/bulk/{lot_id}", response_model=BulkLotOut)
def update_bulk_perfume(lot_id: int, payload: BulkLotUpdate, db: Session = Depends(get_db)):
    lot = get_lot(db, lot_id)
    changes = payload.model_dump(exclude_unset=True)
    if "name" in changes:
        name = (changes["name"] or "").strip()
        if not name:
            raise ValidationError("Perfume name is required")
        changes["name"] = name
    for field_name, value in changes.items():
        if field_name in {"remaining_volume_ml", "cost_per_ml", "is_active"} and value is None:
            continue
        setattr(lot, field_name, value)
    lot.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(lot)
    return lot


@router.delete("/bulk/{lot_id}", response_model=BulkLotOut)
def archive_bulk_perfume(lot_id: int, db: Session = Depends(get_db)):
    lot = get_lot(db, lot_id)
    lot.is_active = False
    lot.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(lot)
    return lot


def _component_out(component: ComponentStock, used: dict[int, int]) -> ComponentOut:
    return ComponentOut.model_validate(component).model_copy(update={"used_quantity": used.get(component.id, 0)})


@router.get("/bottle-sizes", response_model=list[ComponentOut])
def list_bottle_sizes(
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
):
    query = select(ComponentStock)
    if not include_inactive:
        query = query.where(ComponentStock.is_active.is_(True))
    components = db.scalars(query.order_by(ComponentStock.size_ml.asc(), ComponentStock.id.asc())).all()
    used = used_quantities(db)
    return [_component_out(component, used) for component in components]


@router.post("/bottle-sizes", response_model=ComponentOut, status_code=status.HTTP_201_CREATED)
def create_bottle_size(
    payload: ComponentCreate,
    app_settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db),
):
    if not app_settings.is_configured_size(payload.size_ml):
        allowed = ", ".join(str(size) for size in app_settings.component_sizes)
        raise InvalidConfiguration(f"Bottle size must be one of: {allowed} ML")
    existing = db.scalar(
        select(ComponentStock.id).where(
            ComponentStock.size_ml == payload.size_ml,
            ComponentStock.is_active.is_(True),
        )
    )
    if existing:
        raise ValidationError(f"Bottle size {payload.size_ml}ML already exists")

    component = ComponentStock(
        size_ml=payload.size_ml,
        bottle_cost=payload.bottle_cost,
        label_cost=payload.label_cost,
        packaging_cost=payload.packaging_cost,
        available_count=payload.available_count,
    )
    db.add(component)
    db.commit()
    db.refresh(component)
    return _component_out(component, {})


@router.patch("/bottle-sizes/{component_id}", response_model=ComponentOut)
def update_bottle_size(component_id: int, payload: ComponentUpdate, db: Session = Depends(get_db)):
    component = db.get(ComponentStock, component_id)
    if not component:
        raise NotFound("Bottle size not found")
    for field_name, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(component, field_name, value)
    component.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(component)
    return _component_out(component, used_quantities(db))


@router.delete("/bottle-sizes/{component_id}", response_model=ComponentOut)
def archive_bottle_size(component_id: int, db: Session = Depends(get_db)):
    component = db.get(ComponentStock, component_id)
    if not component:
        raise NotFound("Bottle size not found")
    component.is_active = False
    component.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(component)
    return _component_out(component, used_quantities(db))


@router.get("/bottling/history", response_model=list[ConversionRecordOut])
def bottling_history(
    lot_id: int | None = Query(default=None),
    db: Session = Depends(get_db),
):
    query = (
        select(ConversionRecord, BulkLot.name, ComponentStock.size_ml)
        .join(BulkLot, BulkLot.id == ConversionRecord.lot_id)
        .join(ComponentStock, ComponentStock.id == ConversionRecord.component_id)
    )
    if lot_id is not None:
        query = query.where(ConversionRecord.lot_id == lot_id)
    rows = db.execute(
        query.order_by(ConversionRecord.created_at.desc(), ConversionRecord.id.desc()).limit(HISTORY_LIMIT)
    ).all()
    return [
        ConversionRecordOut(
            id=record.id,
            lot_id=record.lot_id,
            lot_name=lot_name,
            component_id=record.component_id,
            size_ml=size_ml,
            product_id=record.product_id,
            shop_id=record.shop_id,
            units_produced=record.units_produced,
            volume_used_ml=record.volume_used_ml,
            total_cost=Decimal(record.total_cost),
            unit_selling_price=Decimal(record.unit_selling_price),
            selling_price_per_ml=Decimal(record.selling_price_per_ml),
            batch_number=record.batch_number,
            actor_id=record.actor_id,
            created_at=record.created_at,
        )
        for record, lot_name, size_ml in rows
    ]


@router.get("/stats", response_model=BottlingStatsOut)
def bottling_stats(db: Session = Depends(get_db)):
    active_lots, total_volume, total_value = db.execute(
        select(
            func.count(BulkLot.id),
            func.coalesce(func.sum(BulkLot.remaining_volume_ml), 0),
            func.coalesce(func.sum(BulkLot.remaining_volume_ml * BulkLot.cost_per_ml), 0),
        ).where(BulkLot.is_active.is_(True))
    ).one()

    since = datetime.utcnow() - timedelta(days=30)
    conversions, units, cost = db.execute(
        select(
            func.count(ConversionRecord.id),
            func.coalesce(func.sum(ConversionRecord.units_produced), 0),
            func.coalesce(func.sum(ConversionRecord.total_cost), 0),
        ).where(ConversionRecord.created_at >= since)
    ).one()

    units_produced = func.sum(ConversionRecord.units_produced).label("units_produced")
    top_rows = db.execute(
        select(
            BulkLot.id,
            BulkLot.name,
            units_produced,
            func.coalesce(func.sum(ConversionRecord.total_cost), 0),
        )
        .join(ConversionRecord, ConversionRecord.lot_id == BulkLot.id)
        .group_by(BulkLot.id, BulkLot.name)
        .order_by(desc(units_produced), BulkLot.id.asc())
        .limit(TOP_LOTS_LIMIT)
    ).all()

    return BottlingStatsOut(
        active_lots=int(active_lots or 0),
        total_volume_ml=int(total_volume or 0),
        total_value=Decimal(str(total_value or 0)).quantize(Decimal("0.01")),
        conversions_last_30_days=int(conversions or 0),
        units_last_30_days=int(units or 0),
        cost_last_30_days=Decimal(str(cost or 0)).quantize(Decimal("0.01")),
        top_lots=[
            TopLotOut(
                lot_id=lot_id,
                name=name,
                units_produced=int(total_units or 0),
                total_cost=Decimal(str(total_cost or 0)).quantize(Decimal("0.01")),
            )
            for lot_id, name, total_units, total_cost in top_rows
        ],
    )
