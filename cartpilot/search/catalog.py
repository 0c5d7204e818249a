"""Versioned, immutable product catalog loaded once at start-up."""

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping, Optional, Tuple

from cartpilot.core.models import ProductCatalogEntry
from cartpilot.etl.transform import to_catalog_entry

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).resolve().parents[1] / "data" / "products.json"


@dataclass(frozen=True)
class ProductCatalog:
    version: str
    entries: Tuple[ProductCatalogEntry, ...]

    def __iter__(self) -> Iterator[ProductCatalogEntry]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)

    @classmethod
    def from_records(cls, records: Iterable[Mapping[str, Any]], version: str) -> "ProductCatalog":
        entries = tuple(to_catalog_entry(record) for record in records)
        seen = set()
        for entry in entries:
            if entry.id in seen:
                raise ValueError(f"Duplicate product id in catalog {version}: {entry.id}")
            seen.add(entry.id)
        return cls(version=version, entries=entries)


def load_catalog(path: Optional[str] = None) -> ProductCatalog:
    """Read a ``{"version": ..., "products": [...]}`` document; defaults to the bundled catalog."""
    catalog_path = Path(path) if path else DEFAULT_CATALOG_PATH
    with catalog_path.open("r", encoding="utf-8") as fh:
        document = json.load(fh)

    version = str(document.get("version") or catalog_path.stem)
    catalog = ProductCatalog.from_records(document.get("products") or [], version=version)
    logger.info("Loaded product catalog %s with %d entries from %s", catalog.version, len(catalog), catalog_path)
    return catalog
