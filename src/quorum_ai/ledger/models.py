"""Exposure ledger data models: categories, threshold checks, and reports."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping

from quorum_ai.exceptions import InvalidLimitError


class ThresholdStatus(str, Enum):
    """Compliance of a proposed exposure against its category limit."""

    COMPLIANT = "Compliant"
    WARNING = "Warning"
    BREACH = "Breach"

    @property
    def severity(self) -> int:
        return _STATUS_SEVERITY[self]


_STATUS_SEVERITY = {
    ThresholdStatus.COMPLIANT: 0,
    ThresholdStatus.WARNING: 1,
    ThresholdStatus.BREACH: 2,
}


@dataclass(frozen=True)
class ExposureCategory:
    """One tracked category: committed exposure against a fixed limit."""

    name: str
    current_exposure: float
    limit: float

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Exposure category name must be non-empty")
        limit = float(self.limit)
        if not math.isfinite(limit) or limit <= 0:
            raise InvalidLimitError(
                f"Category {self.name!r} limit must be greater than zero, got {self.limit!r}"
            )
        current = float(self.current_exposure)
        if not math.isfinite(current) or current < 0:
            raise ValueError(
                f"Category {self.name!r} current exposure must be non-negative, got {self.current_exposure!r}"
            )
        object.__setattr__(self, "limit", limit)
        object.__setattr__(self, "current_exposure", current)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExposureCategory:
        return cls(
            name=str(data["name"]),
            current_exposure=data.get("current_exposure", 0.0),
            limit=data["limit"],
        )


@dataclass(frozen=True)
class LedgerSnapshot:
    """Point-in-time copy of the ledger, in category registration order."""

    version: int
    categories: tuple[ExposureCategory, ...]
    # Per-category commit counters; a commit only bumps the categories it moves
    category_versions: Mapping[str, int] = field(default_factory=dict)

    @property
    def names(self) -> list[str]:
        return [c.name for c in self.categories]

    def get(self, name: str) -> ExposureCategory | None:
        for category in self.categories:
            if category.name == name:
                return category
        return None


@dataclass(frozen=True)
class ThresholdCheck:
    """Derived, never stored: a proposed delta measured against a limit."""

    category: str
    current_exposure: float
    delta: float
    proposed_exposure: float
    limit: float
    ratio: float
    status: ThresholdStatus
    version: int = 0


@dataclass(frozen=True)
class ExposureReport:
    """Threshold checks for one case plus the ledger versions they were read at."""

    case_id: str
    checks: tuple[ThresholdCheck, ...]
    ledger_version: int

    @property
    def category_versions(self) -> dict[str, int]:
        """Version of each checked category at read time, for guarded commits."""
        return {c.category: c.version for c in self.checks}

    @property
    def worst_status(self) -> ThresholdStatus:
        if not self.checks:
            return ThresholdStatus.COMPLIANT
        return max((c.status for c in self.checks), key=lambda s: s.severity)

    @property
    def breaches(self) -> list[ThresholdCheck]:
        return [c for c in self.checks if c.status is ThresholdStatus.BREACH]


@dataclass(frozen=True)
class LedgerEntry:
    """One committed movement of a category's exposure."""

    case_id: str
    category: str
    delta: float
    resulting_exposure: float
    version: int
    committed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
