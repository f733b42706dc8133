"""Reference-data records: guideline pages and historical precedents."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping


@dataclass(frozen=True)
class GuidelineEntry:
    """One page of a guideline document."""

    document_id: str
    page: int
    title: str = ""
    text: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> GuidelineEntry:
        return cls(
            document_id=str(data["document_id"]),
            page=int(data["page"]),
            title=data.get("title", ""),
            text=data.get("text", ""),
        )


@dataclass(frozen=True)
class PrecedentRecord:
    """A prior case or policy and what happened to it."""

    record_id: str
    summary: str = ""
    outcome: str = ""
    tags: tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> PrecedentRecord:
        return cls(
            record_id=str(data["record_id"]),
            summary=data.get("summary", ""),
            outcome=data.get("outcome", ""),
            tags=tuple(data.get("tags", ())),
        )
