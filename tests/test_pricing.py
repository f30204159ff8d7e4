from decimal import Decimal

import pytest

from bottling.services.exceptions import InvalidConfiguration
from bottling.services.pricing import (
    DEFAULT_CATEGORY,
    SELECTIVE_CATEGORY,
    PricingTable,
    load_pricing_table,
)


def test_category_resolution_uses_selective_marker():
    table = PricingTable()
    assert table.resolve_category(None) == DEFAULT_CATEGORY
    assert table.resolve_category("Men") == DEFAULT_CATEGORY
    assert table.resolve_category("Selective Niche") == SELECTIVE_CATEGORY
    assert table.resolve_category("ultra-SELECTIVE") == SELECTIVE_CATEGORY


@pytest.mark.parametrize(
    ("category_tag", "size_ml", "expected"),
    [
        (None, 30, Decimal("15000.00")),
        (None, 50, Decimal("25000.00")),
        (None, 100, Decimal("40000.00")),
        ("selective", 30, Decimal("25000.00")),
        ("selective", 50, Decimal("35000.00")),
        ("selective", 100, Decimal("55000.00")),
    ],
)
def test_unit_selling_price_defaults(category_tag, size_ml, expected):
    _, unit_price = PricingTable().unit_selling_price(category_tag, size_ml)
    assert unit_price == expected


def test_missing_price_raises_invalid_configuration():
    table = PricingTable(price_per_ml={DEFAULT_CATEGORY: {30: Decimal("1")}})
    with pytest.raises(InvalidConfiguration):
        table.unit_selling_price(None, 50)
    with pytest.raises(InvalidConfiguration):
        table.unit_selling_price("selective", 30)


def test_load_pricing_table_from_json():
    table = load_pricing_table('{"men_women": {"30": 10, "50": "12.5"}}', "selective")
    assert table.price_per_ml_for(DEFAULT_CATEGORY, 30) == Decimal("10")
    assert table.unit_selling_price(None, 50) == (Decimal("12.5"), Decimal("625.00"))


def test_load_pricing_table_empty_uses_defaults():
    table = load_pricing_table("  ", "selective")
    assert table.price_per_ml_for(SELECTIVE_CATEGORY, 50) == Decimal("700")


@pytest.mark.parametrize("raw", ["not json", "[1, 2]", '{"men_women": {"thirty": 1}}', '{"men_women": {"30": "x"}}'])
def test_load_pricing_table_rejects_malformed_json(raw):
    with pytest.raises(InvalidConfiguration):
        load_pricing_table(raw, "selective")
