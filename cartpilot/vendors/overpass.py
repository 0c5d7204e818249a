"""Client utilities for the OpenStreetMap Overpass API (grocery store discovery)."""

import logging
from typing import Any, Dict, List, Optional

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_API_URL = "https://overpass-api.de/api/interpreter"


class OverpassError(RuntimeError):
    """Raised when the Overpass API returns an unusable response."""


def build_overpass_query(lat: float, lng: float, radius_meters: int = 8000) -> str:
    around = f"(around:{int(radius_meters)},{lat},{lng})"
    selector = '["shop"~"^(supermarket|convenience)$"]'
    return (
        "[out:json][timeout:25];\n"
        "(\n"
        f"  node{selector}{around};\n"
        f"  way{selector}{around};\n"
        f"  relation{selector}{around};\n"
        ");\n"
        "out center meta;\n"
    )


def fetch_grocery_elements(
    lat: float,
    lng: float,
    radius_meters: int = 8000,
    api_url: Optional[str] = None,
) -> List[Dict[str, Any]]:
    query = build_overpass_query(lat, lng, radius_meters)
    try:
        response = _SESSION.post(api_url or _API_URL, data={"data": query}, timeout=30)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error("Overpass request failed: %s", exc)
        raise OverpassError(f"Failed to fetch from OpenStreetMap: {exc}") from exc

    elements = payload.get("elements")
    if not isinstance(elements, list):
        raise OverpassError(payload.get("remark") or "Overpass response has no elements")

    logger.info("Fetched %d raw elements from OpenStreetMap", len(elements))
    return elements
