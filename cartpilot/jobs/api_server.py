"""HTTP entrypoint exposing product suggestions, nearby stores and barcode lookups."""

from __future__ import annotations

import logging
import math
from functools import lru_cache
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request

from cartpilot.core.config import get_settings
from cartpilot.core.db import fetch_stores_near, upsert_store
from cartpilot.core.models import Coordinate, StoreLocation
from cartpilot.geo.distance import InvalidOriginError, coerce_origin, rank_stores
from cartpilot.geo.stores import available_chains, directions_url, format_distance, search_stores, stores_by_chain
from cartpilot.jobs.sync_stores import discover_stores
from cartpilot.search.catalog import ProductCatalog, load_catalog
from cartpilot.search.fuzzy import suggest
from cartpilot.vendors import openfoodfacts, overpass, postcodes

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 50

# ---------- App ----------
app = Flask(__name__)


@lru_cache(maxsize=1)
def get_catalog() -> ProductCatalog:
    """Load the product catalog once per process."""
    return load_catalog(get_settings().catalog_path)


# ---------- Routes ----------


@app.get("/healthz")
def healthcheck() -> Any:
    return jsonify({"status": "ok", "catalog_version": get_catalog().version}), 200


@app.get("/products/suggest")
def suggest_products() -> Any:
    """Autocomplete suggestions for ``q``; optional ``limit``."""
    settings = get_settings()
    query = request.args.get("q", "")

    limit = settings.search_limit
    limit_raw = request.args.get("limit")
    if limit_raw is not None:
        try:
            limit = int(limit_raw)
        except (TypeError, ValueError):
            return jsonify({"error": "limit must be numeric"}), 400
        if limit <= 0 or limit > MAX_SUGGESTIONS:
            return jsonify({"error": f"limit must be between 1 and {MAX_SUGGESTIONS}"}), 400

    catalog = get_catalog()
    results = suggest(query, catalog, min_score=settings.search_min_score, limit=limit)
    data = [
        {
            "id": result.entry.id,
            "name": result.entry.name,
            "category": result.entry.category,
            "aisle": result.entry.aisle,
            "score": round(result.score, 4),
        }
        for result in results
    ]
    return jsonify({"data": data, "catalog_version": catalog.version}), 200


@app.get("/stores/nearby")
def nearby_stores() -> Any:
    """
    Rank stores around ``postcode`` or ``lat``/``lng``.
    Optional: radius (miles), chain, q (text filter on name/address/postcode/chain).
    """
    settings = get_settings()

    radius = settings.store_radius_miles
    radius_raw = request.args.get("radius")
    if radius_raw is not None:
        try:
            radius = float(radius_raw)
        except (TypeError, ValueError):
            return jsonify({"error": "radius must be numeric"}), 400
        if not math.isfinite(radius) or radius <= 0:
            return jsonify({"error": "radius must be a positive number"}), 400

    postcode = request.args.get("postcode")
    try:
        if postcode:
            location = postcodes.lookup_postcode(postcode, base_url=settings.postcodes_api_url)
            origin = Coordinate(lat=location.latitude, lng=location.longitude)
        else:
            origin = coerce_origin({"lat": request.args.get("lat"), "lng": request.args.get("lng")})
    except (InvalidOriginError, ValueError, postcodes.PostcodeLookupError) as exc:
        return jsonify({"error": str(exc)}), 400

    try:
        stores = _load_stores(origin, radius)
    except overpass.OverpassError as exc:
        logger.error("Store discovery failed: %s", exc)
        return jsonify({"error": "store discovery failed"}), 502

    ranking = rank_stores(origin, stores, radius, bounds=settings.region_bounds)
    ranked = ranking.stores
    chains = available_chains(ranked)

    chain = request.args.get("chain")
    if chain:
        ranked = stores_by_chain(chain, ranked)
    text = request.args.get("q")
    if text:
        ranked = search_stores(text, ranked)

    data = [_store_payload(store, postcode) for store in ranked]
    return (
        jsonify(
            {
                "data": data,
                "chains": chains,
                "excluded": len(ranking.excluded),
                "origin": {"lat": origin.lat, "lng": origin.lng},
                "radius_miles": radius,
            }
        ),
        200,
    )


@app.get("/products/barcode/<barcode>")
def product_by_barcode(barcode: str) -> Any:
    settings = get_settings()
    try:
        product = openfoodfacts.lookup_barcode(barcode, base_url=settings.openfoodfacts_api_url)
    except ValueError as exc:
        return jsonify({"error": str(exc)}), 400
    except openfoodfacts.ProductLookupError:
        return jsonify({"error": "product lookup failed"}), 502

    if product is None:
        return jsonify({"error": "product not found"}), 404
    return jsonify({"data": product}), 200


# ---------- Internals ----------


def _load_stores(origin: Coordinate, radius: float) -> List[StoreLocation]:
    """Stores from the database, falling back to OpenStreetMap when it has none."""
    settings = get_settings()
    stores: List[StoreLocation] = []
    if settings.database_url:
        try:
            stores = fetch_stores_near(origin.lat, origin.lng, radius)
        except Exception as exc:  # noqa: BLE001
            logger.exception("Database store lookup failed: %s", exc)

    if stores:
        return stores

    logger.info("No stores in database, fetching fresh data from OpenStreetMap")
    stores = discover_stores(origin.lat, origin.lng, radius, api_url=settings.overpass_api_url)
    if settings.database_url:
        for store in stores:
            try:
                upsert_store(store)
            except Exception as exc:  # noqa: BLE001
                logger.warning("Failed to save discovered store %s: %s", store.id, exc)
    return stores


def _store_payload(store: StoreLocation, from_postcode: Optional[str] = None) -> Dict[str, Any]:
    payload = store.to_dict()
    payload["distance_miles"] = round(store.distance_miles, 2)
    payload["distance_label"] = format_distance(store.distance_miles)
    payload["directions_url"] = directions_url(store, from_postcode)
    return payload


def main() -> None:
    port = get_settings().server_port
    logger.info("[BOOT] Loaded catalog %s", get_catalog().version)
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
