"""CLI job to discover grocery stores on OpenStreetMap and persist them."""

import argparse
import logging
from typing import List, Optional

from cartpilot.core.config import get_settings
from cartpilot.core.db import init_pool, upsert_store
from cartpilot.core.models import Coordinate, StoreLocation
from cartpilot.etl.transform import from_overpass_element
from cartpilot.geo.distance import rank_stores
from cartpilot.vendors import overpass, postcodes

logger = logging.getLogger(__name__)

METERS_PER_MILE = 1609.344


def discover_stores(lat: float, lng: float, radius_miles: float, api_url: Optional[str] = None) -> List[StoreLocation]:
    """Fetch stores around a point from OpenStreetMap, skipping unusable elements."""
    elements = overpass.fetch_grocery_elements(
        lat,
        lng,
        radius_meters=int(radius_miles * METERS_PER_MILE),
        api_url=api_url,
    )
    stores: List[StoreLocation] = []
    for element in elements:
        store = from_overpass_element(element)
        if store is None:
            logger.debug("Skipping OSM element without name or position: %s", element.get("id"))
            continue
        stores.append(store)
    logger.info("Processed %d usable stores from %d OSM elements", len(stores), len(elements))
    return stores


def sync_stores_job(
    *,
    postcode: Optional[str],
    lat: Optional[float],
    lng: Optional[float],
    radius_miles: float,
) -> int:
    settings = get_settings()

    if postcode:
        location = postcodes.lookup_postcode(postcode, base_url=settings.postcodes_api_url)
        lat, lng = location.latitude, location.longitude
    if lat is None or lng is None:
        raise ValueError("Either --postcode or both --lat and --lng are required")

    init_pool()

    logger.info("Syncing stores within %.1f miles of (%.4f, %.4f)", radius_miles, lat, lng)
    stores = discover_stores(lat, lng, radius_miles, api_url=settings.overpass_api_url)
    ranking = rank_stores(Coordinate(lat=lat, lng=lng), stores, radius_miles, bounds=settings.region_bounds)

    saved = 0
    for store in ranking.stores:
        try:
            upsert_store(store)
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to upsert %s: %s", store.id, exc)
            continue
        saved += 1

    logger.info("Completed sync: saved=%d excluded=%d", saved, len(ranking.excluded))
    return saved


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Discover grocery stores on OpenStreetMap and store them")
    parser.add_argument("--postcode", dest="postcode", help="UK postcode to search around")
    parser.add_argument("--lat", dest="lat", type=float, help="Latitude to search around")
    parser.add_argument("--lng", dest="lng", type=float, help="Longitude to search around")
    parser.add_argument(
        "--radius-miles",
        dest="radius_miles",
        type=float,
        default=get_settings().store_radius_miles,
        help="Search radius in miles",
    )
    return parser


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args()

    sync_stores_job(
        postcode=args.postcode,
        lat=args.lat,
        lng=args.lng,
        radius_miles=args.radius_miles,
    )


if __name__ == "__main__":
    main()
