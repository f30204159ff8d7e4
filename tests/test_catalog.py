from decimal import Decimal

from sqlalchemy import func, select

from bottling.models import RetailProduct
from bottling.services.catalog import derive_sku, product_display_name, resolve_or_create, size_from_product_name


def test_derive_sku_strips_and_truncates_name():
    assert derive_sku("Rose Garden", 50) == "PERF-ROSEGARD-50ML"
    assert derive_sku("Eros Pour Lui", 30) == "PERF-EROSPOUR-30ML"
    assert derive_sku("Oud", 100) == "PERF-OUD-100ML"
    assert derive_sku("L'Eau d'Issey", 50, prefix="SHOP", name_length=5) == "SHOP-LEAUD-50ML"


def test_product_display_name_and_size_parsing():
    assert product_display_name(" Rose Garden ", 50) == "Rose Garden 50ml"
    assert size_from_product_name("Rose Garden 50ml") == 50
    assert size_from_product_name("Rose Garden 100 ML") == 100
    assert size_from_product_name("Rose Garden") is None


def test_resolve_or_create_reuses_product_for_same_lot_and_size(db, rose_garden, components):
    first = resolve_or_create(
        db,
        rose_garden,
        components[50],
        unit_cost=Decimal("3.50"),
        selling_price=Decimal("25000.00"),
    )
    first.is_active = False
    db.commit()

    second = resolve_or_create(
        db,
        rose_garden,
        components[50],
        unit_cost=Decimal("4.00"),
        selling_price=Decimal("99.00"),
    )
    db.commit()

    assert second.id == first.id
    assert second.is_active is True
    assert second.unit_cost == Decimal("4.00")
    assert second.selling_price == Decimal("25000.00")
    assert second.source_lot_id == rose_garden.id
    assert second.size_ml == 50
    assert db.scalar(select(func.count(RetailProduct.id))) == 1


def test_lots_sharing_a_sku_prefix_get_separate_products(db, make_lot, components):
    garden = make_lot(name="Rose Garden")
    gardenia = make_lot(name="Rose Gardenia")
    prices = {"unit_cost": Decimal("3.50"), "selling_price": Decimal("25000.00")}

    garden_product = resolve_or_create(db, garden, components[50], **prices)
    gardenia_product = resolve_or_create(db, gardenia, components[50], **prices)
    db.commit()

    assert garden_product.id != gardenia_product.id
    assert garden_product.sku == "PERF-ROSEGARD-50ML"
    assert gardenia_product.sku == f"PERF-ROSEGARD-{gardenia.id}-50ML"
    assert gardenia_product.name == "Rose Gardenia 50ml"
    assert gardenia_product.source_lot_id == gardenia.id

    assert resolve_or_create(db, gardenia, components[50], **prices).id == gardenia_product.id
    assert resolve_or_create(db, garden, components[50], **prices).id == garden_product.id


def test_legacy_product_is_adopted_only_by_its_own_lot(db, make_lot, components):
    garden = make_lot(name="Rose Garden")
    gardenia = make_lot(name="Rose Gardenia")
    legacy = RetailProduct(
        sku="PERF-ROSEGARD-50ML",
        name="Rose Garden 50ml",
        selling_price=Decimal("100.00"),
        unit_cost=Decimal("3.00"),
        stock_quantity=0,
    )
    db.add(legacy)
    db.commit()
    prices = {"unit_cost": Decimal("3.50"), "selling_price": Decimal("25000.00")}

    gardenia_product = resolve_or_create(db, gardenia, components[50], **prices)
    garden_product = resolve_or_create(db, garden, components[50], **prices)
    db.commit()

    assert gardenia_product.id != legacy.id
    assert garden_product.id == legacy.id
    assert garden_product.source_lot_id == garden.id
    assert garden_product.size_ml == 50


def test_derive_sku_with_lot_id():
    assert derive_sku("Rose Gardenia", 50, lot_id=7) == "PERF-ROSEGARD-7-50ML"
