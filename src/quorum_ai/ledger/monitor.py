"""Threshold monitor: measure proposed deltas against ledger limits.

:func:`check_thresholds` is pure: it reads a :class:`LedgerSnapshot` and
never touches the ledger.  Two calls with the same snapshot and deltas give
identical, identically ordered output.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, Mapping

from quorum_ai.exceptions import InvalidCaseInputError
from quorum_ai.ledger.models import (
    ExposureReport,
    LedgerSnapshot,
    ThresholdCheck,
    ThresholdStatus,
)

if TYPE_CHECKING:
    from quorum_ai.core.config import LedgerConfig
    from quorum_ai.ledger.ledger import ExposureLedger

log = logging.getLogger(__name__)


def classify_ratio(ratio: float, warning_ratio: float = 0.9, breach_ratio: float = 1.0) -> ThresholdStatus:
    """Uniform status rule; lower bounds inclusive."""
    if ratio >= breach_ratio:
        return ThresholdStatus.BREACH
    if ratio >= warning_ratio:
        return ThresholdStatus.WARNING
    return ThresholdStatus.COMPLIANT


def check_thresholds(
    snapshot: LedgerSnapshot,
    proposed_deltas: Mapping[str, float],
    config: LedgerConfig,
    *,
    requested: Iterable[str] = (),
) -> list[ThresholdCheck]:
    """One check per category with a non-zero delta or named in *requested*.

    Output follows the snapshot's category order, not the order of
    *proposed_deltas*.

    Raises:
        InvalidCaseInputError: A delta names an untracked category, or the
            proposed exposure would be negative.
    """
    known = set(snapshot.names)
    wanted = set(requested)
    unknown = sorted((set(proposed_deltas) | wanted) - known)
    if unknown:
        raise InvalidCaseInputError(
            f"Unknown exposure categor(y/ies): {', '.join(unknown)}. Tracked: {snapshot.names}"
        )

    checks: list[ThresholdCheck] = []
    for category in snapshot.categories:
        delta = float(proposed_deltas.get(category.name, 0.0))
        if delta == 0.0 and category.name not in wanted:
            continue
        proposed = category.current_exposure + delta
        if proposed < 0:
            raise InvalidCaseInputError(
                f"Proposed exposure for {category.name!r} would be negative ({proposed:.2f})"
            )
        ratio = proposed / category.limit
        checks.append(
            ThresholdCheck(
                category=category.name,
                current_exposure=category.current_exposure,
                delta=delta,
                proposed_exposure=proposed,
                limit=category.limit,
                ratio=ratio,
                status=classify_ratio(ratio, config.warning_ratio, config.breach_ratio),
                version=snapshot.category_versions.get(category.name, 0),
            )
        )
    return checks


class ThresholdMonitor:
    """Reads a consistent snapshot from the ledger, then checks it."""

    def __init__(self, ledger: ExposureLedger, config: LedgerConfig) -> None:
        self._ledger = ledger
        self._config = config

    @property
    def ledger(self) -> ExposureLedger:
        return self._ledger

    def check(
        self,
        case_id: str,
        proposed_deltas: Mapping[str, float],
        *,
        requested: Iterable[str] = (),
    ) -> ExposureReport:
        requested = tuple(requested)
        names = [n for n in self._ledger.categories if n in proposed_deltas or n in requested]
        unknown = sorted((set(proposed_deltas) | set(requested)) - set(self._ledger.categories))
        if unknown:
            raise InvalidCaseInputError(
                f"Unknown exposure categor(y/ies): {', '.join(unknown)}. "
                f"Tracked: {self._ledger.categories}"
            )
        snapshot = self._ledger.snapshot(names)
        checks = check_thresholds(snapshot, proposed_deltas, self._config, requested=requested)
        report = ExposureReport(case_id=case_id, checks=tuple(checks), ledger_version=snapshot.version)
        if report.worst_status is not ThresholdStatus.COMPLIANT:
            log.warning(
                "Case %s exposure %s: %s",
                case_id,
                report.worst_status.value,
                ", ".join(f"{c.category}={c.ratio:.1%}" for c in checks if c.status is not ThresholdStatus.COMPLIANT),
            )
        return report

    def report(self) -> ExposureReport:
        """Current utilization of every tracked category (no deltas)."""
        return self.check("", {}, requested=self._ledger.categories)
