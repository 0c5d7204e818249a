"""Utilities for turning upstream rows and payloads into validated core records."""

import logging
import math
import re
from typing import Any, Dict, List, Mapping, Optional

from cartpilot.core.models import ProductCatalogEntry, StoreLocation

logger = logging.getLogger(__name__)

_CHAIN_PATTERNS = tuple(
    (re.compile(pattern), chain)
    for pattern, chain in (
        (r"\btesco", "Tesco"),
        (r"\bsainsbury('?s)?\b", "Sainsburys"),
        (r"\basda\b", "ASDA"),
        (r"\bmorrisons?\b", "Morrisons"),
        (r"\baldi\b", "Aldi"),
        (r"\blidl\b", "Lidl"),
        (r"\bwaitrose\b", "Waitrose"),
        (r"\biceland\b", "Iceland"),
        (r"\bmarks (&|and) spencer\b", "M&S"),
        (r"\bm&s\b", "M&S"),
        (r"\bco-?op(erative)?\b", "Co-op"),
        (r"\bspar\b", "SPAR"),
        (r"\bcostco\b", "Costco"),
    )
)

_NAME_SUFFIX = re.compile(r"\s+(Supermarket|Store|Extra|Express|Local|Metro|Superstore)$", re.IGNORECASE)
_NAME_PREFIX = re.compile(r"^(Tesco|ASDA|Sainsbury's|Morrisons|Aldi|Lidl|Co-op|Waitrose|Iceland|M&S)\s*", re.IGNORECASE)

_AMENITY_TAGS = (
    ("Pharmacy", lambda tags: tags.get("pharmacy") == "yes"),
    ("Petrol Station", lambda tags: tags.get("fuel") == "yes" or tags.get("amenity") == "fuel"),
    ("Cafe", lambda tags: tags.get("cafe") == "yes" or tags.get("amenity") == "cafe"),
    ("ATM", lambda tags: tags.get("atm") == "yes"),
    ("Parking", lambda tags: tags.get("parking") == "yes"),
    ("Wheelchair Accessible", lambda tags: tags.get("wheelchair") == "yes"),
)


def _strip_or_none(value: Any) -> Optional[str]:
    if value is None:
        return None
    value_str = str(value).strip()
    return value_str or None


def _coordinate(value: Any) -> float:
    """Parse a coordinate; anything unusable becomes NaN for the ranker to reject."""
    if value is None or isinstance(value, bool):
        return math.nan
    try:
        return float(value)
    except (TypeError, ValueError):
        return math.nan


def _safe_float(value: Any) -> Optional[float]:
    try:
        if value is None:
            return None
        return float(value)
    except (TypeError, ValueError):
        return None


def to_catalog_entry(raw: Mapping[str, Any]) -> ProductCatalogEntry:
    """Validate a product record, guaranteeing its name is one of its keywords."""
    product_id = _strip_or_none(raw.get("id"))
    name = _strip_or_none(raw.get("name"))
    if not product_id or not name:
        raise ValueError(f"Product record requires id and name: {dict(raw)!r}")

    raw_keywords = raw.get("keywords")
    if raw_keywords is None:
        raw_keywords = raw.get("synonyms") or []
    if isinstance(raw_keywords, str):
        raw_keywords = [raw_keywords]

    keywords: List[str] = []
    seen = set()
    for keyword in [name, *raw_keywords]:
        cleaned = _strip_or_none(keyword)
        if cleaned and cleaned.lower() not in seen:
            seen.add(cleaned.lower())
            keywords.append(cleaned)

    category = _strip_or_none(raw.get("category")) or _strip_or_none(raw.get("section")) or "Other"
    aisle = raw.get("aisle")

    return ProductCatalogEntry(
        id=product_id,
        name=name,
        category=category,
        keywords=tuple(keywords),
        aisle=str(aisle) if aisle is not None else None,
        section=_strip_or_none(raw.get("section")),
        price=_safe_float(raw.get("price")),
    )


def detect_chain(name: Optional[str], brand: Optional[str] = None) -> str:
    chain_name = (brand or name or "").lower()
    for pattern, chain in _CHAIN_PATTERNS:
        if pattern.search(chain_name):
            return chain
    return "Independent"


def clean_store_name(name: str) -> str:
    cleaned = _NAME_SUFFIX.sub("", name.strip())
    cleaned = _NAME_PREFIX.sub("", cleaned).strip()
    return cleaned or name.strip()


def build_address(tags: Mapping[str, Any]) -> str:
    parts = []
    street = tags.get("addr:street")
    if tags.get("addr:housenumber") and street:
        parts.append(f"{tags['addr:housenumber']} {street}")
    elif street:
        parts.append(street)
    if tags.get("addr:city"):
        parts.append(tags["addr:city"])
    return ", ".join(parts) or "Address not available"


def extract_amenities(tags: Mapping[str, Any]) -> List[str]:
    return [label for label, present in _AMENITY_TAGS if present(tags)]


def _amenity_tuple(value: Any) -> tuple:
    if not value:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(item) for item in value)


def to_store_location(raw: Mapping[str, Any]) -> StoreLocation:
    """Validate a store row from the database (or any dict-shaped source)."""
    store_id = _strip_or_none(raw.get("id"))
    name = _strip_or_none(raw.get("name"))
    if not store_id or not name:
        raise ValueError(f"Store record requires id and name: {dict(raw)!r}")

    lat = raw.get("lat", raw.get("latitude"))
    lng = raw.get("lng", raw.get("longitude"))

    return StoreLocation(
        id=store_id,
        name=name,
        chain=_strip_or_none(raw.get("chain")) or detect_chain(name, raw.get("brand")),
        lat=_coordinate(lat),
        lng=_coordinate(lng),
        address=_strip_or_none(raw.get("address")),
        postcode=_strip_or_none(raw.get("postcode")),
        city=_strip_or_none(raw.get("city")),
        phone=_strip_or_none(raw.get("phone")),
        website=_strip_or_none(raw.get("website")),
        opening_hours=_strip_or_none(raw.get("opening_hours")),
        amenities=_amenity_tuple(raw.get("amenities")),
    )


def from_overpass_element(element: Mapping[str, Any]) -> Optional[StoreLocation]:
    """Convert an OpenStreetMap element into a store, or ``None`` if it is unusable."""
    tags: Dict[str, Any] = element.get("tags") or {}
    raw_name = _strip_or_none(tags.get("name"))
    if not raw_name:
        return None

    center = element.get("center") or {}
    lat = element.get("lat", center.get("lat"))
    lng = element.get("lon", center.get("lon"))
    if lat is None or lng is None:
        logger.debug("Skipping OSM element %s without coordinates", element.get("id"))
        return None

    return StoreLocation(
        id=str(element.get("id")),
        name=clean_store_name(raw_name),
        chain=detect_chain(raw_name, tags.get("brand")),
        lat=_coordinate(lat),
        lng=_coordinate(lng),
        address=build_address(tags),
        postcode=_strip_or_none(tags.get("addr:postcode")),
        city=_strip_or_none(tags.get("addr:city")) or "Unknown",
        phone=_strip_or_none(tags.get("phone")),
        website=_strip_or_none(tags.get("website")),
        opening_hours=_strip_or_none(tags.get("opening_hours")),
        amenities=tuple(extract_amenities(tags)),
    )
