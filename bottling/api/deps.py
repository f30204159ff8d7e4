from fastapi import Header, HTTPException, status

from bottling.core.config import Settings, settings
from bottling.services.pricing import PricingTable, load_pricing_table


def get_settings() -> Settings:
    return settings


def get_pricing_table() -> PricingTable:
    return load_pricing_table(settings.pricing_table_json, settings.selective_marker)


def get_actor_id(x_actor_id: str | None = Header(default=None)) -> int | None:
    """Acting user id forwarded by the auth gateway; optional."""
    if x_actor_id is None or not x_actor_id.strip():
        return None
    try:
        return int(x_actor_id.strip())
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="X-Actor-Id header must be an integer",
        ) from exc
