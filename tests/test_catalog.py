import json

import pytest

from cartpilot.search.catalog import ProductCatalog, load_catalog


def test_bundled_catalog_loads():
    catalog = load_catalog()

    assert catalog.version == "uk-grocery-2024.1"
    assert len(catalog) > 20
    for entry in catalog:
        assert entry.name in entry.keywords
        assert entry.category


def test_load_catalog_from_path(tmp_path):
    path = tmp_path / "custom.json"
    path.write_text(
        json.dumps({"products": [{"id": "a", "name": "Oat Milk", "synonyms": ["milk", "oat"], "aisle": 3}]}),
        encoding="utf-8",
    )

    catalog = load_catalog(str(path))

    assert catalog.version == "custom"
    entry = catalog.entries[0]
    assert entry.keywords == ("Oat Milk", "milk", "oat")
    assert entry.category == "Other"
    assert entry.aisle == "3"


def test_duplicate_ids_rejected():
    with pytest.raises(ValueError):
        ProductCatalog.from_records(
            [{"id": "1", "name": "Milk"}, {"id": "1", "name": "Bread"}],
            version="dup",
        )


def test_catalogs_with_different_versions_are_distinct():
    records = [{"id": "1", "name": "Milk", "category": "Dairy"}]
    assert ProductCatalog.from_records(records, "v1") == ProductCatalog.from_records(records, "v1")
    assert ProductCatalog.from_records(records, "v1") != ProductCatalog.from_records(records, "v2")
