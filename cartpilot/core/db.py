"""Database helpers for the stores table."""

import logging
import math
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from psycopg2 import extras, pool

from cartpilot.core.config import get_settings
from cartpilot.core.models import StoreLocation
from cartpilot.etl.transform import to_store_location

logger = logging.getLogger(__name__)

MILES_PER_DEGREE = 69.0

_connection_pool: Optional[pool.SimpleConnectionPool] = None


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


_SELECT_IN_BOX = """
SELECT id, name, chain, address, postcode, city, lat, lng, phone, website, opening_hours, amenities
FROM stores
WHERE lat BETWEEN %(min_lat)s AND %(max_lat)s
  AND lng BETWEEN %(min_lng)s AND %(max_lng)s
ORDER BY (lat - %(lat)s) ^ 2 + ((lng - %(lng)s) * %(lng_scale)s) ^ 2
LIMIT %(limit)s;
"""


def fetch_stores_near(lat: float, lng: float, radius_miles: float, limit: int = 100) -> List[StoreLocation]:
    """Coarse box query around a point, nearest rows first; callers rank the result precisely.

    Rows that fail validation are logged and skipped.
    """
    # Longitude degrees shrink with cos(lat); widen the box so it covers the full radius.
    lng_scale = max(math.cos(math.radians(lat)), 1e-6)
    lat_degrees = radius_miles / MILES_PER_DEGREE
    lng_degrees = radius_miles / (MILES_PER_DEGREE * lng_scale)
    params = {
        "lat": lat,
        "lng": lng,
        "lng_scale": lng_scale,
        "min_lat": lat - lat_degrees,
        "max_lat": lat + lat_degrees,
        "min_lng": lng - lng_degrees,
        "max_lng": lng + lng_degrees,
        "limit": limit,
    }

    with get_connection() as conn:
        with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
            cur.execute(_SELECT_IN_BOX, params)
            rows = cur.fetchall()

    stores: List[StoreLocation] = []
    for row in rows:
        try:
            stores.append(to_store_location(row))
        except ValueError as exc:
            logger.warning("Skipping malformed store row: %s", exc)
    logger.info("Found %d stores in database near (%.4f, %.4f)", len(stores), lat, lng)
    return stores


def _prepare_params(store: StoreLocation) -> Dict[str, Any]:
    return {
        "id": store.id,
        "name": store.name,
        "chain": store.chain,
        "address": store.address,
        "postcode": store.postcode,
        "city": store.city,
        "lat": store.lat,
        "lng": store.lng,
        "phone": store.phone,
        "website": store.website,
        "opening_hours": store.opening_hours,
        "amenities": extras.Json(list(store.amenities)),
    }


_UPSERT_STORE = """
INSERT INTO stores (
    id,
    name,
    chain,
    address,
    postcode,
    city,
    lat,
    lng,
    phone,
    website,
    opening_hours,
    amenities,
    updated_at
) VALUES (
    %(id)s,
    %(name)s,
    %(chain)s,
    %(address)s,
    %(postcode)s,
    %(city)s,
    %(lat)s,
    %(lng)s,
    %(phone)s,
    %(website)s,
    %(opening_hours)s,
    %(amenities)s,
    NOW()
)
ON CONFLICT (id) DO UPDATE SET
    name = EXCLUDED.name,
    chain = EXCLUDED.chain,
    address = EXCLUDED.address,
    postcode = EXCLUDED.postcode,
    city = EXCLUDED.city,
    lat = EXCLUDED.lat,
    lng = EXCLUDED.lng,
    phone = COALESCE(EXCLUDED.phone, stores.phone),
    website = COALESCE(EXCLUDED.website, stores.website),
    opening_hours = COALESCE(EXCLUDED.opening_hours, stores.opening_hours),
    amenities = EXCLUDED.amenities,
    updated_at = NOW();
"""


def upsert_store(store: StoreLocation) -> None:
    """Persist a store, performing an idempotent upsert keyed on its id."""
    params = _prepare_params(store)
    if not params["id"] or not params["name"]:
        raise ValueError("id and name are required for upsert")

    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(_UPSERT_STORE, params)
        conn.commit()
        logger.debug("Upserted store %s", params["name"])
