"""In-memory reference stores: dict-backed, used for seed data and tests."""

from __future__ import annotations

import asyncio
import logging
import re
from typing import Iterable, Sequence

from quorum_ai.reference.models import GuidelineEntry, PrecedentRecord

log = logging.getLogger(__name__)

_TOKEN_RE = re.compile(r"[a-z0-9]+")


def _tokens(text: str) -> set[str]:
    return set(_TOKEN_RE.findall(text.lower()))


class MemoryGuidelineStore:
    """Guideline pages keyed by ``(document_id, page)``."""

    def __init__(self, entries: Iterable[GuidelineEntry] = ()) -> None:
        self._entries: dict[tuple[str, int], GuidelineEntry] = {}
        for entry in entries:
            self.add(entry)

    def add(self, entry: GuidelineEntry) -> None:
        self._entries[(entry.document_id, entry.page)] = entry

    def __len__(self) -> int:
        return len(self._entries)

    async def lookup(self, document_id: str, page: int) -> GuidelineEntry:
        # Yield once so a cancelled evaluator is interrupted here like with a remote store
        await asyncio.sleep(0)
        key = (document_id, page)
        if key not in self._entries:
            raise KeyError(f"Guideline {document_id!r} page {page} not found")
        return self._entries[key]


class MemoryPrecedentStore:
    """Precedent records ranked by token overlap with the query and tags."""

    def __init__(self, records: Iterable[PrecedentRecord] = ()) -> None:
        self._records: dict[str, PrecedentRecord] = {}
        for record in records:
            self.add(record)

    def add(self, record: PrecedentRecord) -> None:
        self._records[record.record_id] = record

    def __len__(self) -> int:
        return len(self._records)

    async def search(
        self,
        query: str,
        *,
        tags: Sequence[str] = (),
        limit: int = 3,
    ) -> list[PrecedentRecord]:
        await asyncio.sleep(0)
        query_tokens = _tokens(query)
        wanted_tags = {t.lower() for t in tags}

        scored: list[tuple[int, str, PrecedentRecord]] = []
        for record in self._records.values():
            record_tags = {t.lower() for t in record.tags}
            if wanted_tags and not wanted_tags & record_tags:
                continue
            overlap = len(query_tokens & _tokens(f"{record.summary} {' '.join(record.tags)}"))
            tag_hits = len(wanted_tags & record_tags)
            score = overlap + 2 * tag_hits
            if score > 0:
                scored.append((score, record.record_id, record))

        # Highest score first, record id ascending for stable output
        scored.sort(key=lambda item: (-item[0], item[1]))
        log.debug("Precedent search %r matched %d record(s)", query, len(scored))
        return [record for _, _, record in scored[:limit]]
