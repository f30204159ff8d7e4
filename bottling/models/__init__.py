from bottling.models.inventory import (
    BulkLot,
    ComponentStock,
    ConversionRecord,
    RetailProduct,
    Shop,
    ShopAllocation,
)

__all__ = [
    "BulkLot",
    "ComponentStock",
    "ConversionRecord",
    "RetailProduct",
    "Shop",
    "ShopAllocation",
]
