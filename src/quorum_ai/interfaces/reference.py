"""Reference-data collaborator protocols (read-only from the engine's side)."""

from __future__ import annotations

from typing import Protocol, Sequence, runtime_checkable

from quorum_ai.reference.models import GuidelineEntry, PrecedentRecord


@runtime_checkable
class IGuidelineStore(Protocol):
    """Guideline/citation lookup: ``(document id, page) -> text``."""

    async def lookup(self, document_id: str, page: int) -> GuidelineEntry:
        """Return the guideline page. Raises KeyError if unknown."""
        ...


@runtime_checkable
class IPrecedentStore(Protocol):
    """Historical-precedent lookup: ``query -> prior cases with outcome notes``."""

    async def search(
        self,
        query: str,
        *,
        tags: Sequence[str] = (),
        limit: int = 3,
    ) -> list[PrecedentRecord]:
        """Return up to *limit* records best matching *query* and *tags*."""
        ...
