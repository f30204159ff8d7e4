# tests/conftest.py

from dataclasses import replace
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from bottling.api.deps import get_pricing_table, get_settings
from bottling.core.config import settings as app_settings
from bottling.db.database import Base, get_db
from bottling.main import app
from bottling.models import BulkLot, ComponentStock, Shop
from bottling.services.pricing import PricingTable


@pytest.fixture
def engine():
    # One in-memory database per test, shared by every session through StaticPool.
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    Base.metadata.drop_all(bind=test_engine)
    test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def settings():
    return replace(
        app_settings,
        component_sizes=(30, 50, 100),
        selective_marker="selective",
        sku_prefix="PERF",
        sku_name_length=8,
        default_min_level=10,
        default_max_level=100,
        batch_min_volume_ml=180,
        pricing_table_json="",
    )


@pytest.fixture
def pricing():
    return PricingTable()


@pytest.fixture
def client(session_factory, settings, pricing):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_pricing_table] = lambda: pricing
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# --- seed helpers ---


@pytest.fixture
def make_shop(db):
    def _make(code: str = "DT", name: str = "Downtown", is_active: bool = True) -> Shop:
        shop = Shop(code=code, name=name, is_active=is_active)
        db.add(shop)
        db.commit()
        return shop

    return _make


@pytest.fixture
def make_lot(db):
    def _make(
        name: str = "Rose Garden",
        volume_ml: int = 10000,
        cost_per_ml: str = "0.03",
        category_tag: str | None = None,
        is_active: bool = True,
    ) -> BulkLot:
        lot = BulkLot(
            name=name,
            remaining_volume_ml=volume_ml,
            cost_per_ml=Decimal(cost_per_ml),
            category_tag=category_tag,
            is_active=is_active,
        )
        db.add(lot)
        db.commit()
        return lot

    return _make


@pytest.fixture
def make_component(db):
    def _make(size_ml: int, available_count: int = 200, bottle_cost: str = "2.00") -> ComponentStock:
        component = ComponentStock(
            size_ml=size_ml,
            available_count=available_count,
            bottle_cost=Decimal(bottle_cost),
            label_cost=Decimal("0"),
            packaging_cost=Decimal("0"),
        )
        db.add(component)
        db.commit()
        return component

    return _make


@pytest.fixture
def shop(make_shop):
    return make_shop()


@pytest.fixture
def rose_garden(make_lot):
    return make_lot()


@pytest.fixture
def components(make_component):
    return {size: make_component(size) for size in (30, 50, 100)}
