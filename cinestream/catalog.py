from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Iterable, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from cinestream.config import CATALOG_PATH


class CatalogEntry(BaseModel):
    """Stored metadata for one playable item."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    year: Optional[int] = None
    remote_url: str = Field(alias="remoteUrl")


# Direct, publicly fetchable media URLs (MP4 or HLS), not share pages.
_BUILTIN_ENTRIES = [
    {
        "id": "1",
        "title": "Sample Movie One",
        "year": 2024,
        "remoteUrl": "https://example.com/video/sample-1.mp4",
    },
    {
        "id": "2",
        "title": "Sample Movie Two",
        "year": 2023,
        "remoteUrl": "https://example.com/video/sample-2.m3u8",
    },
]

_ENTRIES_ADAPTER = TypeAdapter(list[CatalogEntry])


class Catalog:
    """Read-only, in-memory view of the catalogue."""

    def __init__(self, entries: Iterable[CatalogEntry]) -> None:
        self._entries = {entry.id: entry for entry in entries}

    def get(self, item_id: str) -> Optional[CatalogEntry]:
        return self._entries.get(item_id)

    def list(self) -> list[CatalogEntry]:
        return list(self._entries.values())

    @classmethod
    def from_file(cls, path: Path) -> "Catalog":
        raw = json.loads(path.read_text(encoding="utf-8"))
        return cls(_ENTRIES_ADAPTER.validate_python(raw))


def load_catalog(path: Optional[str] = None) -> Catalog:
    """
    Load the catalogue from a JSON file (a list of entries), or fall back to
    the built-in samples when no path is given.
    """
    if not path:
        logger.info("Using built-in sample catalogue.")
        return Catalog(_ENTRIES_ADAPTER.validate_python(_BUILTIN_ENTRIES))
    catalog = Catalog.from_file(Path(path).expanduser())
    logger.info(f"Loaded {len(catalog.list())} catalogue entries from {path}")
    return catalog


@lru_cache(maxsize=1)
def get_catalog() -> Catalog:
    return load_catalog(CATALOG_PATH)
