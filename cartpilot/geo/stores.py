"""Small helpers for listing and presenting stores."""

from typing import Iterable, List, Optional
from urllib.parse import quote

from cartpilot.core.models import StoreLocation

_MAPS_BASE_URL = "https://www.google.com/maps"


def search_stores(query: str, stores: Iterable[StoreLocation]) -> List[StoreLocation]:
    term = (query or "").strip().lower()
    if not term:
        return []
    matches = []
    for store in stores:
        fields = (store.name, store.address, store.postcode, store.chain)
        if any(term in value.lower() for value in fields if value):
            matches.append(store)
    return matches


def stores_by_chain(chain: str, stores: Iterable[StoreLocation]) -> List[StoreLocation]:
    wanted = chain.strip().lower()
    return [store for store in stores if store.chain.lower() == wanted]


def available_chains(stores: Iterable[StoreLocation]) -> List[str]:
    return sorted({store.chain for store in stores})


def format_distance(miles: float) -> str:
    if miles < 0.1:
        return "< 0.1 miles"
    return f"{miles:.1f} miles"


def directions_url(store: StoreLocation, from_postcode: Optional[str] = None) -> str:
    """Google Maps link to the store, as directions when a starting postcode is known."""
    parts = [store.name, store.address, store.postcode]
    destination = quote(", ".join(part for part in parts if part), safe="")
    if from_postcode:
        return f"{_MAPS_BASE_URL}/dir/{quote(from_postcode, safe='')}/{destination}"
    return f"{_MAPS_BASE_URL}/search/{destination}"
