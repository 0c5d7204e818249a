import math

import pytest

from cartpilot.etl import transform


def test_detect_chain():
    assert transform.detect_chain("Tesco Express Leith") == "Tesco"
    assert transform.detect_chain("Corner Shop", brand="Sainsbury's Local") == "Sainsburys"
    assert transform.detect_chain("Marks & Spencer Simply Food") == "M&S"
    assert transform.detect_chain("The Village Store") == "Independent"
    assert transform.detect_chain(None) == "Independent"
    assert transform.detect_chain("SPAR Fenwick") == "SPAR"
    assert transform.detect_chain("Sparrow Farm Shop") == "Independent"
    assert transform.detect_chain("Asparagus Deli") == "Independent"
    assert transform.detect_chain("Sainsburys Regent Road") == "Sainsburys"
    assert transform.detect_chain("The Co-operative Food") == "Co-op"


def test_clean_store_name():
    assert transform.clean_store_name("Tesco Leith Superstore") == "Leith"
    assert transform.clean_store_name("Village Stores") == "Village Stores"
    assert transform.clean_store_name("Tesco Extra") == "Tesco Extra"


def test_build_address_and_amenities():
    tags = {"addr:housenumber": "12", "addr:street": "High Street", "addr:city": "Leeds", "atm": "yes", "amenity": "cafe"}
    assert transform.build_address(tags) == "12 High Street, Leeds"
    assert transform.build_address({}) == "Address not available"
    assert transform.extract_amenities(tags) == ["Cafe", "ATM"]


def test_to_catalog_entry_adds_name_to_keywords():
    entry = transform.to_catalog_entry(
        {"id": 7, "name": " Whole Milk ", "synonyms": ["milk", "MILK", "full fat milk"], "section": "Dairy"}
    )

    assert entry.id == "7"
    assert entry.name == "Whole Milk"
    assert entry.keywords == ("Whole Milk", "milk", "full fat milk")
    assert entry.category == "Dairy"


def test_to_catalog_entry_requires_name():
    with pytest.raises(ValueError):
        transform.to_catalog_entry({"id": "1", "name": "  "})
    with pytest.raises(ValueError):
        transform.to_catalog_entry({"name": "Milk"})


def test_to_store_location_parses_string_coordinates():
    store = transform.to_store_location(
        {"id": 1, "name": "ASDA Leith", "latitude": "55.9726", "longitude": "-3.1683", "amenities": ["ATM"]}
    )

    assert store.id == "1"
    assert store.chain == "ASDA"
    assert store.lat == pytest.approx(55.9726)
    assert store.lng == pytest.approx(-3.1683)
    assert store.amenities == ("ATM",)
    assert store.distance_miles is None


def test_to_store_location_marks_unusable_coordinates_as_nan():
    store = transform.to_store_location({"id": "x", "name": "Shop", "chain": "Co-op", "lat": "n/a", "lng": None})
    assert math.isnan(store.lat) and math.isnan(store.lng)
    assert store.chain == "Co-op"


def test_to_store_location_requires_id_and_name():
    with pytest.raises(ValueError):
        transform.to_store_location({"name": "Shop", "lat": 1, "lng": 1})


def test_from_overpass_element_uses_center_for_ways():
    element = {
        "type": "way",
        "id": 42,
        "center": {"lat": 53.48, "lon": -2.24},
        "tags": {"name": "Aldi Piccadilly", "shop": "supermarket", "addr:street": "Piccadilly", "addr:postcode": "M1 1RG"},
    }

    store = transform.from_overpass_element(element)

    assert store.id == "42"
    assert store.name == "Piccadilly"
    assert store.chain == "Aldi"
    assert (store.lat, store.lng) == (53.48, -2.24)
    assert store.postcode == "M1 1RG"
    assert store.city == "Unknown"


def test_from_overpass_element_skips_unusable():
    assert transform.from_overpass_element({"id": 1, "lat": 1, "lon": 1, "tags": {}}) is None
    assert transform.from_overpass_element({"id": 2, "tags": {"name": "Spar"}}) is None
