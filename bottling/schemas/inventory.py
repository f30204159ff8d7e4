from datetime import date, datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field, field_validator

ShopTarget = int | Literal["all"]


class ShopCreate(BaseModel):
    code: str = Field(min_length=2, max_length=64)
    name: str = Field(min_length=2, max_length=120)
    location: str | None = Field(default=None, max_length=255)


class ShopOut(BaseModel):
    id: int
    code: str
    name: str
    location: str | None
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class BulkLotCreate(BaseModel):
    name: str = Field(min_length=1, max_length=160)
    scent_description: str | None = None
    remaining_volume_ml: int = Field(ge=1)
    cost_per_ml: Decimal = Field(ge=0)
    category_tag: str | None = Field(default=None, max_length=120)
    supplier: str | None = Field(default=None, max_length=160)
    batch_number: str | None = Field(default=None, max_length=64)
    expiry_date: date | None = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Perfume name is required")
        return value


class BulkLotUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=160)
    scent_description: str | None = None
    remaining_volume_ml: int | None = Field(default=None, ge=0)
    cost_per_ml: Decimal | None = Field(default=None, ge=0)
    category_tag: str | None = Field(default=None, max_length=120)
    supplier: str | None = Field(default=None, max_length=160)
    batch_number: str | None = Field(default=None, max_length=64)
    expiry_date: date | None = None
    is_active: bool | None = None


class BulkLotOut(BaseModel):
    id: int
    name: str
    scent_description: str | None
    remaining_volume_ml: int
    cost_per_ml: Decimal
    category_tag: str | None
    supplier: str | None
    batch_number: str | None
    expiry_date: date | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ComponentCreate(BaseModel):
    size_ml: int = Field(ge=1)
    bottle_cost: Decimal = Field(ge=0)
    label_cost: Decimal = Field(default=Decimal("0"), ge=0)
    packaging_cost: Decimal = Field(default=Decimal("0"), ge=0)
    available_count: int = Field(default=0, ge=0)


class ComponentUpdate(BaseModel):
    bottle_cost: Decimal | None = Field(default=None, ge=0)
    label_cost: Decimal | None = Field(default=None, ge=0)
    packaging_cost: Decimal | None = Field(default=None, ge=0)
    available_count: int | None = Field(default=None, ge=0)
    is_active: bool | None = None


class ComponentOut(BaseModel):
    id: int
    size_ml: int
    available_count: int
    bottle_cost: Decimal
    label_cost: Decimal
    packaging_cost: Decimal
    unit_component_cost: Decimal
    used_quantity: int = 0
    is_active: bool
    updated_at: datetime

    model_config = {"from_attributes": True}


class BottleRequest(BaseModel):
    lot_id: int
    component_size: int = Field(ge=1, description="Bottle size in ml")
    units_requested: int = Field(ge=1)
    shop_id: int
    batch_number: str | None = Field(default=None, max_length=64)


class BottleAllSizesRequest(BaseModel):
    lot_id: int
    shop_id: ShopTarget
    batch_number: str | None = Field(default=None, max_length=64)


class BottleAllBulkRequest(BaseModel):
    shop_id: ShopTarget
    min_volume_ml: int | None = Field(default=None, ge=0)
    category: str | None = None


class ConversionOut(BaseModel):
    product_id: int
    sku: str
    product_name: str
    lot_id: int
    size_ml: int
    units_requested: int
    volume_used_ml: int
    total_cost: Decimal
    remaining_volume_ml: int
    remaining_components: int
    selling_price_per_ml: Decimal
    selling_price: Decimal
    shop_quantities: dict[int, int]
    conversion_ids: list[int]

    model_config = {"from_attributes": True}


class BatchItemOut(BaseModel):
    lot_id: int
    lot_name: str
    size_ml: int | None
    status: str
    units: int
    product_id: int | None
    sku: str | None
    total_cost: Decimal | None
    reason: str | None

    model_config = {"from_attributes": True}


class BatchReportOut(BaseModel):
    shop_ids: list[int]
    processed: int
    success: int
    failed: int
    remaining_volume_ml: int | None
    details: list[BatchItemOut]

    model_config = {"from_attributes": True}


class ReconciliationOut(BaseModel):
    items_found: int
    items_processed: int
    volume_recovered_ml: int
    components_recovered: int
    skipped: int
    errors: list[str]

    model_config = {"from_attributes": True}


class AssignAllRequest(BaseModel):
    shop_id: int
    default_quantity: int = Field(default=0, ge=0)
    min_level: int = Field(default=10, ge=0)
    max_level: int = Field(default=100, ge=0)
    update_existing: bool = False


class AssignReportOut(BaseModel):
    shop_id: int
    shop_name: str
    total_products: int
    assigned: int
    updated: int
    skipped: int
    failed: int
    errors: list[dict]

    model_config = {"from_attributes": True}


class UnassignAllRequest(BaseModel):
    shop_id: int


class UnassignReportOut(BaseModel):
    shop_id: int
    shop_name: str
    total_unassigned: int
    failed: int
    errors: list[dict]

    model_config = {"from_attributes": True}


class ConversionRecordOut(BaseModel):
    id: int
    lot_id: int
    lot_name: str
    component_id: int
    size_ml: int
    product_id: int
    shop_id: int | None
    units_produced: int
    volume_used_ml: int
    total_cost: Decimal
    unit_selling_price: Decimal
    selling_price_per_ml: Decimal
    batch_number: str | None
    actor_id: int | None
    created_at: datetime


class TopLotOut(BaseModel):
    lot_id: int
    name: str
    units_produced: int
    total_cost: Decimal


class BottlingStatsOut(BaseModel):
    active_lots: int
    total_volume_ml: int
    total_value: Decimal
    conversions_last_30_days: int
    units_last_30_days: int
    cost_last_30_days: Decimal
    top_lots: list[TopLotOut]
