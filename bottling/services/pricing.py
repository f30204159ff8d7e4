import json
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation

from bottling.services.exceptions import InvalidConfiguration

DEFAULT_CATEGORY = "men_women"
SELECTIVE_CATEGORY = "selective_labels"

DEFAULT_PRICE_PER_ML: dict[str, dict[int, Decimal]] = {
    DEFAULT_CATEGORY: {
        30: Decimal("500"),
        50: Decimal("500"),
        100: Decimal("400"),
    },
    SELECTIVE_CATEGORY: {
        30: Decimal("833.3333333333"),
        50: Decimal("700"),
        100: Decimal("550"),
    },
}


def _quantize_price(value: Decimal) -> Decimal:
    return value.quantize(Decimal("0.01"))


@dataclass(frozen=True)
class PricingTable:
    """Selling price per ml, keyed by pricing category then bottle size."""

    price_per_ml: dict[str, dict[int, Decimal]] = field(default_factory=lambda: DEFAULT_PRICE_PER_ML)
    selective_marker: str = "selective"

    def resolve_category(self, category_tag: str | None) -> str:
        if self.selective_marker and self.selective_marker in (category_tag or "").lower():
            return SELECTIVE_CATEGORY
        return DEFAULT_CATEGORY

    def price_per_ml_for(self, category: str, size_ml: int) -> Decimal:
        price = self.price_per_ml.get(category, {}).get(size_ml)
        if price is None or price <= 0:
            raise InvalidConfiguration(f"No price configured for category '{category}' and {size_ml}ml bottles")
        return price

    def unit_selling_price(self, category_tag: str | None, size_ml: int) -> tuple[Decimal, Decimal]:
        """Return ``(price_per_ml, unit_price)`` for a lot's category and a bottle size."""
        per_ml = self.price_per_ml_for(self.resolve_category(category_tag), size_ml)
        return per_ml, _quantize_price(per_ml * Decimal(size_ml))


def load_pricing_table(raw_json: str, selective_marker: str) -> PricingTable:
    if not raw_json.strip():
        return PricingTable(selective_marker=selective_marker)
    try:
        parsed = json.loads(raw_json)
        table = {
            str(category): {int(size): Decimal(str(price)) for size, price in sizes.items()}
            for category, sizes in parsed.items()
        }
    except (ValueError, TypeError, AttributeError, InvalidOperation) as exc:
        raise InvalidConfiguration("PRICING_TABLE must be a JSON object of category -> {size: price_per_ml}") from exc
    return PricingTable(price_per_ml=table, selective_marker=selective_marker)
