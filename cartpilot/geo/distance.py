"""Great-circle distance and nearest-store ranking."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, List, Mapping, Optional, Union

from cartpilot.core.models import BoundingBox, Coordinate, StoreLocation

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3959.0


class InvalidOriginError(ValueError):
    """Raised when the caller's location cannot be used for ranking."""


@dataclass
class RankingResult:
    stores: List[StoreLocation] = field(default_factory=list)
    excluded: List[str] = field(default_factory=list)


def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lng2 - lng1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def _as_float(value: Any) -> float:
    if value is None or isinstance(value, bool):
        raise TypeError("coordinate must be numeric")
    return float(value)


def coerce_origin(origin: Union[Coordinate, Mapping[str, Any]]) -> Coordinate:
    """Validate the caller's position; raises ``InvalidOriginError`` when unusable."""
    try:
        if isinstance(origin, Mapping):
            lat, lng = _as_float(origin.get("lat")), _as_float(origin.get("lng"))
        else:
            lat, lng = _as_float(origin.lat), _as_float(origin.lng)
    except (AttributeError, TypeError, ValueError) as exc:
        raise InvalidOriginError(f"Origin must provide numeric lat/lng: {origin!r}") from exc

    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise InvalidOriginError(f"Origin coordinates must be finite: lat={lat}, lng={lng}")
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        raise InvalidOriginError(f"Origin coordinates out of range: lat={lat}, lng={lng}")
    return Coordinate(lat=lat, lng=lng)


def invalid_reason(store: StoreLocation, bounds: Optional[BoundingBox]) -> Optional[str]:
    """Why a store's coordinates cannot be ranked, or ``None`` if they are usable."""
    if not (math.isfinite(store.lat) and math.isfinite(store.lng)):
        return "non-finite coordinates"
    if store.lat == 0 and store.lng == 0:
        return "zero coordinates"
    if bounds is not None and not bounds.contains(store.lat, store.lng):
        return "outside operating region"
    return None


def rank_stores(
    origin: Union[Coordinate, Mapping[str, Any]],
    stores: Iterable[StoreLocation],
    radius_miles: float,
    bounds: Optional[BoundingBox] = None,
) -> RankingResult:
    """Annotate, filter and order ``stores`` by distance from ``origin``.

    Stores with unusable coordinates are left out and their ids reported in
    ``RankingResult.excluded``; stores beyond ``radius_miles`` are simply dropped.
    """
    point = coerce_origin(origin)
    result = RankingResult()
    in_range: List[StoreLocation] = []

    for store in stores:
        reason = invalid_reason(store, bounds)
        if reason:
            logger.warning(
                "Excluding store %s (%s): %s lat=%s lng=%s", store.id, store.name, reason, store.lat, store.lng
            )
            result.excluded.append(store.id)
            continue

        distance = haversine_miles(point.lat, point.lng, store.lat, store.lng)
        if distance > radius_miles:
            continue
        in_range.append(replace(store, distance_miles=distance))

    result.stores = sorted(in_range, key=lambda store: store.distance_miles)
    logger.info(
        "Ranked %d stores within %.1f miles of (%.4f, %.4f); excluded=%d",
        len(result.stores),
        radius_miles,
        point.lat,
        point.lng,
        len(result.excluded),
    )
    return result


def rank_by_distance(
    origin: Union[Coordinate, Mapping[str, Any]],
    stores: Iterable[StoreLocation],
    radius_miles: float,
    bounds: Optional[BoundingBox] = None,
) -> List[StoreLocation]:
    return rank_stores(origin, stores, radius_miles, bounds=bounds).stores
