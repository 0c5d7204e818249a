"""Core data models shared by the search and store ranking code."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Tuple


@dataclass(frozen=True, slots=True)
class ProductCatalogEntry:
    """One product in the static catalog used for autocomplete."""

    id: str
    name: str
    category: str
    keywords: Tuple[str, ...] = ()
    aisle: Optional[str] = None
    section: Optional[str] = None
    price: Optional[float] = None


@dataclass(frozen=True, slots=True)
class MatchResult:
    entry: ProductCatalogEntry
    score: float


@dataclass(frozen=True, slots=True)
class Coordinate:
    lat: float
    lng: float


@dataclass(frozen=True, slots=True)
class BoundingBox:
    """Plausible operating region, in degrees."""

    south: float
    west: float
    north: float
    east: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lng <= self.east


@dataclass(frozen=True, slots=True)
class StoreLocation:
    """Normalized grocery store record coming from the store data source."""

    id: str
    name: str
    chain: str
    lat: float
    lng: float
    address: Optional[str] = None
    postcode: Optional[str] = None
    city: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    opening_hours: Optional[str] = None
    amenities: Tuple[str, ...] = field(default=(), repr=False)
    distance_miles: Optional[float] = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "chain": self.chain,
            "lat": self.lat,
            "lng": self.lng,
            "address": self.address,
            "postcode": self.postcode,
            "city": self.city,
            "phone": self.phone,
            "website": self.website,
            "opening_hours": self.opening_hours,
            "amenities": list(self.amenities),
            "distance_miles": self.distance_miles,
        }
