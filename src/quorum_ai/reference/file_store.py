"""File-backed reference stores: load guidelines or precedents from YAML or JSON."""

from __future__ import annotations

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Iterable, Sequence

import yaml

from quorum_ai.reference.memory_store import MemoryGuidelineStore, MemoryPrecedentStore
from quorum_ai.reference.models import GuidelineEntry, PrecedentRecord

log = logging.getLogger(__name__)


def load_data_file(path: Path) -> Any:
    """Read a ``.yaml``/``.yml`` or ``.json`` file."""
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")
    raw_text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        return yaml.safe_load(raw_text) or {}
    return json.loads(raw_text)


class FileGuidelineStore:
    """Guidelines loaded from a file on first lookup.

    The file holds a top-level ``guidelines`` list.  Entries from *seed* are
    loaded first, so the file can override individual pages.  The file is
    read in a worker thread, once, however many lookups race for it.
    """

    def __init__(self, path: Path, seed: Iterable[GuidelineEntry] = ()) -> None:
        self._path = path
        self._seed = tuple(seed)
        self._store: MemoryGuidelineStore | None = None
        self._load_lock = asyncio.Lock()

    async def lookup(self, document_id: str, page: int) -> GuidelineEntry:
        store = await self._ensure_loaded()
        return await store.lookup(document_id, page)

    async def _ensure_loaded(self) -> MemoryGuidelineStore:
        async with self._load_lock:
            if self._store is None:
                self._store = await asyncio.to_thread(self._load)
        return self._store

    def _load(self) -> MemoryGuidelineStore:
        data = load_data_file(self._path)
        store = MemoryGuidelineStore(self._seed)
        for item in data.get("guidelines", []):
            store.add(GuidelineEntry.from_dict(item))
        log.info("Loaded %d guideline page(s) from %s", len(store), self._path)
        return store


class FilePrecedentStore:
    """Precedents loaded from a file (top-level ``precedents`` list) on first search."""

    def __init__(self, path: Path, seed: Iterable[PrecedentRecord] = ()) -> None:
        self._path = path
        self._seed = tuple(seed)
        self._store: MemoryPrecedentStore | None = None
        self._load_lock = asyncio.Lock()

    async def search(
        self,
        query: str,
        *,
        tags: Sequence[str] = (),
        limit: int = 3,
    ) -> list[PrecedentRecord]:
        store = await self._ensure_loaded()
        return await store.search(query, tags=tags, limit=limit)

    async def _ensure_loaded(self) -> MemoryPrecedentStore:
        async with self._load_lock:
            if self._store is None:
                self._store = await asyncio.to_thread(self._load)
        return self._store

    def _load(self) -> MemoryPrecedentStore:
        data = load_data_file(self._path)
        store = MemoryPrecedentStore(self._seed)
        for item in data.get("precedents", []):
            store.add(PrecedentRecord.from_dict(item))
        log.info("Loaded %d precedent record(s) from %s", len(store), self._path)
        return store
