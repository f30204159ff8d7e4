import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        value = default
    else:
        try:
            value = int(raw)
        except ValueError:
            value = default
    if min_value is not None:
        return max(min_value, value)
    return value


def _env_int_tuple(name: str, default: tuple[int, ...]) -> tuple[int, ...]:
    raw = os.getenv(name)
    if raw is None:
        return default
    values: list[int] = []
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            value = int(part)
        except ValueError:
            continue
        if value > 0 and value not in values:
            values.append(value)
    return tuple(sorted(values)) or default


@dataclass(frozen=True)
class Settings:
    app_name: str
    debug: bool
    log_level: str
    cors_origins: tuple[str, ...]
    database_url: str
    component_sizes: tuple[int, ...]
    selective_marker: str
    sku_prefix: str
    sku_name_length: int
    default_min_level: int
    default_max_level: int
    batch_min_volume_ml: int
    pricing_table_json: str

    def is_configured_size(self, size_ml: int) -> bool:
        return size_ml in self.component_sizes


_component_sizes = _env_int_tuple("COMPONENT_SIZES", (30, 50, 100))

settings = Settings(
    app_name=os.getenv("APP_NAME", "Shop Bottling API"),
    debug=_env_bool("DEBUG", False),
    log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    cors_origins=tuple(
        origin.strip().rstrip("/")
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
        if origin.strip()
    ),
    database_url=os.getenv("DATABASE_URL", "sqlite:///./bottling.db"),
    component_sizes=_component_sizes,
    selective_marker=os.getenv("SELECTIVE_MARKER", "selective").strip().lower(),
    sku_prefix=os.getenv("SKU_PREFIX", "PERF").strip().upper(),
    sku_name_length=_env_int("SKU_NAME_LENGTH", 8, min_value=3),
    default_min_level=_env_int("DEFAULT_MIN_LEVEL", 10, min_value=0),
    default_max_level=_env_int("DEFAULT_MAX_LEVEL", 100, min_value=0),
    # One full set of every configured size.
    batch_min_volume_ml=_env_int("BATCH_MIN_VOLUME_ML", sum(_component_sizes), min_value=0),
    pricing_table_json=os.getenv("PRICING_TABLE", ""),
)
