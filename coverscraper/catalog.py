"""Static book catalog loading."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterable, List, Mapping

from coverscraper.errors import CatalogError

CORE_FIELDS = ("id", "title", "author")


@dataclass(frozen=True)
class CatalogEntry:                                   # One book that needs a cover
    id: str                                           # Unique id, also the asset file stem
    title: str
    author: str
    metadata: Mapping[str, Any] = field(default_factory=dict, compare=False)   # Genre tags etc., unused here


def entry_from_record(record: Mapping[str, Any]) -> CatalogEntry:
    if not isinstance(record, Mapping):
        raise CatalogError(f"Catalog record must be an object, got {type(record).__name__}")

    raw_id = record.get("id")
    title = record.get("title")
    if raw_id is None or str(raw_id).strip() == "":
        raise CatalogError(f"Catalog record has no id: {dict(record)!r}")
    if not title:
        raise CatalogError("Catalog record has no title.", entry_id=str(raw_id))

    entry_id = str(raw_id).strip()
    # The id becomes a file name inside the covers directory
    if "/" in entry_id or "\\" in entry_id or entry_id in (".", ".."):
        raise CatalogError("Catalog id is not a plain file name.", entry_id=entry_id)

    extra = {k: v for k, v in record.items() if k not in CORE_FIELDS}
    return CatalogEntry(
        id=entry_id,
        title=str(title),
        author=str(record.get("author") or ""),
        metadata=MappingProxyType(extra),
    )


def build_catalog(records: Iterable[Mapping[str, Any]]) -> List[CatalogEntry]:
    """Turn raw records into entries, rejecting duplicate ids."""
    entries: List[CatalogEntry] = []
    seen: set[str] = set()
    for record in records:
        entry = entry_from_record(record)
        if entry.id in seen:
            raise CatalogError("Duplicate catalog id.", entry_id=entry.id)
        seen.add(entry.id)
        entries.append(entry)
    return entries


def load_catalog(path: str | Path) -> List[CatalogEntry]:
    """
    Reads a JSON catalog: either a flat list of {id, title, author, ...}
    records or an object with a "books" list.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as exc:
        raise CatalogError(f"Cannot read catalog: {exc}", path=str(path)) from exc
    except json.JSONDecodeError as exc:
        raise CatalogError(f"Catalog is not valid JSON: {exc}", path=str(path)) from exc

    if isinstance(data, Mapping):
        data = data.get("books")
    if not isinstance(data, list):
        raise CatalogError("Catalog must be a list of books.", path=str(path))

    return build_catalog(data)
