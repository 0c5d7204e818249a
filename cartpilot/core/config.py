"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from cartpilot.core.models import BoundingBox

logger = logging.getLogger(__name__)

# Great Britain and Northern Ireland, including Shetland and the Scillies.
DEFAULT_REGION_BOUNDS = BoundingBox(south=49.8, west=-8.7, north=60.9, east=1.8)


class ConfigError(RuntimeError):
    """Raised when a configuration value cannot be parsed."""


@dataclass(frozen=True)
class Settings:
    database_url: str
    server_port: int = 9000
    search_min_score: float = 0.3
    search_limit: int = 8
    store_radius_miles: float = 20.0
    region_bounds: Optional[BoundingBox] = DEFAULT_REGION_BOUNDS
    catalog_path: Optional[str] = None
    postcodes_api_url: str = "https://api.postcodes.io"
    overpass_api_url: str = "https://overpass-api.de/api/interpreter"
    openfoodfacts_api_url: str = "https://world.openfoodfacts.org"


def parse_region_bounds(raw: Optional[str]) -> Optional[BoundingBox]:
    """Parse ``south,west,north,east``; ``none`` disables the region check."""
    if raw is None or not raw.strip():
        return DEFAULT_REGION_BOUNDS
    if raw.strip().lower() in {"none", "off", "false"}:
        return None
    parts = [part.strip() for part in raw.split(",")]
    if len(parts) != 4:
        raise ConfigError("REGION_BOUNDS must be 'south,west,north,east'")
    try:
        south, west, north, east = (float(part) for part in parts)
    except ValueError as exc:
        raise ConfigError(f"REGION_BOUNDS contains a non-numeric value: {raw}") from exc
    if south > north or west > east:
        raise ConfigError("REGION_BOUNDS south/west must not exceed north/east")
    return BoundingBox(south=south, west=west, north=north, east=east)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    database_url = os.getenv("DATABASE_URL", "")
    server_port = int(os.getenv("CARTPILOT_PORT", "9000"))
    search_min_score = float(os.getenv("SEARCH_MIN_SCORE", "0.3"))
    search_limit = int(os.getenv("SEARCH_LIMIT", "8"))
    store_radius_miles = float(os.getenv("STORE_RADIUS_MILES", "20"))
    region_bounds = parse_region_bounds(os.getenv("REGION_BOUNDS"))
    catalog_path = os.getenv("CATALOG_PATH") or None

    if not database_url:
        logger.warning("DATABASE_URL is not set; store lookups will fall back to OpenStreetMap.")
    if region_bounds is None:
        logger.warning("REGION_BOUNDS disabled; stores are only checked for finite, non-zero coordinates.")

    return Settings(
        database_url=database_url,
        server_port=server_port,
        search_min_score=search_min_score,
        search_limit=search_limit,
        store_radius_miles=store_radius_miles,
        region_bounds=region_bounds,
        catalog_path=catalog_path,
        postcodes_api_url=os.getenv("POSTCODES_API_URL", "https://api.postcodes.io"),
        overpass_api_url=os.getenv("OVERPASS_API_URL", "https://overpass-api.de/api/interpreter"),
        openfoodfacts_api_url=os.getenv("OPENFOODFACTS_API_URL", "https://world.openfoodfacts.org"),
    )
