"""Client utilities for Open Food Facts barcode lookups."""

import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://world.openfoodfacts.org"


class ProductLookupError(RuntimeError):
    """Raised when Open Food Facts cannot be reached."""


def _split_tags(value: Optional[str]) -> list:
    if not value:
        return []
    return [part.split(":", 1)[-1].strip() for part in value.split(",") if part.strip()]


def lookup_barcode(barcode: str, base_url: Optional[str] = None) -> Optional[Dict[str, Any]]:
    """Return a flattened product for ``barcode``, or ``None`` when it is unknown."""
    code = (barcode or "").strip()
    if not code.isdigit():
        raise ValueError(f"Barcode must be numeric: {barcode!r}")

    url = f"{(base_url or _BASE_URL).rstrip('/')}/api/v0/product/{code}.json"
    try:
        response = _SESSION.get(url, timeout=10)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error("lookup_barcode failed for %s: %s", code, exc)
        raise ProductLookupError(str(exc)) from exc

    if payload.get("status") != 1:
        logger.info("Barcode %s not found on Open Food Facts", code)
        return None

    product = payload.get("product") or {}
    categories = _split_tags(product.get("categories"))
    return {
        "barcode": code,
        "name": product.get("product_name") or product.get("generic_name") or "Unknown product",
        "brand": (_split_tags(product.get("brands")) or [None])[0],
        "category": categories[0] if categories else None,
        "image_url": product.get("image_url"),
        "allergens": _split_tags(product.get("allergens")),
        "nutriments": product.get("nutriments") or {},
    }
