"""Client utilities for the postcodes.io UK postcode API."""

import logging
import re
from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)
_SESSION = requests.Session()
_BASE_URL = "https://api.postcodes.io"

_UK_POSTCODE = re.compile(r"^[A-Z]{1,2}\d[A-Z\d]?\s?\d[A-Z]{2}$", re.IGNORECASE)


class PostcodeLookupError(RuntimeError):
    """Raised when postcodes.io cannot resolve a postcode."""


@dataclass(frozen=True)
class PostcodeLocation:
    postcode: str
    latitude: float
    longitude: float
    district: Optional[str] = None
    ward: Optional[str] = None
    country: Optional[str] = None


def is_valid_uk_postcode(postcode: str) -> bool:
    return bool(_UK_POSTCODE.match((postcode or "").strip()))


def normalize_postcode(postcode: str) -> str:
    """Upper-case and re-space a postcode, e.g. ``m11aa`` -> ``M1 1AA``."""
    cleaned = re.sub(r"\s", "", postcode or "").upper()
    if len(cleaned) >= 5:
        return f"{cleaned[:-3]} {cleaned[-3:]}"
    return cleaned


def lookup_postcode(postcode: str, base_url: Optional[str] = None) -> PostcodeLocation:
    if not is_valid_uk_postcode(postcode):
        raise ValueError(f"Invalid UK postcode format: {postcode!r}")

    normalized = normalize_postcode(postcode)
    url = f"{(base_url or _BASE_URL).rstrip('/')}/postcodes/{quote(normalized)}"
    try:
        response = _SESSION.get(url, timeout=10)
        if response.status_code == 404:
            raise PostcodeLookupError(f"Unknown postcode: {normalized}")
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.error("lookup_postcode request failed for %s: %s", normalized, exc)
        raise PostcodeLookupError(str(exc)) from exc

    result = payload.get("result")
    if payload.get("status") != 200 or not result:
        logger.error("lookup_postcode failed: status=%s, error=%s", payload.get("status"), payload.get("error"))
        raise PostcodeLookupError(payload.get("error") or f"Unknown postcode: {normalized}")

    if result.get("latitude") is None or result.get("longitude") is None:
        raise PostcodeLookupError(f"Postcode {normalized} has no coordinates")

    logger.info("Resolved postcode %s -> (%.4f, %.4f)", normalized, result["latitude"], result["longitude"])
    return PostcodeLocation(
        postcode=result.get("postcode") or normalized,
        latitude=float(result["latitude"]),
        longitude=float(result["longitude"]),
        district=result.get("admin_district"),
        ward=result.get("admin_ward"),
        country=result.get("country"),
    )
