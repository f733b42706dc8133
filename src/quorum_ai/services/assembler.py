"""Result assembler: join a synthesis result with its exposure report."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from quorum_ai.ledger.models import ExposureReport, LedgerEntry
from quorum_ai.models import RunAnalytics, SynthesisResult


@dataclass(frozen=True)
class CaseReport:
    """Externally consumed outcome of one case evaluation.

    Always complete and decided: an undecided case surfaces as
    :class:`~quorum_ai.exceptions.InsufficientQuorumError` instead.
    """

    case_id: str
    registry_id: str
    synthesis: SynthesisResult
    exposure: ExposureReport
    committed: tuple[LedgerEntry, ...] = ()
    analytics: Optional[RunAnalytics] = field(default=None, compare=False)
    status: str = "decided"


class ResultAssembler:
    """Shape assembly only; no scoring happens here."""

    def assemble(
        self,
        registry_id: str,
        synthesis: SynthesisResult,
        exposure: ExposureReport,
        *,
        committed: list[LedgerEntry] | tuple[LedgerEntry, ...] = (),
        analytics: RunAnalytics | None = None,
    ) -> CaseReport:
        if exposure.case_id and exposure.case_id != synthesis.case_id:
            raise ValueError(
                f"Exposure report for {exposure.case_id!r} does not belong to case {synthesis.case_id!r}"
            )
        return CaseReport(
            case_id=synthesis.case_id,
            registry_id=registry_id,
            synthesis=synthesis,
            exposure=exposure,
            committed=tuple(committed),
            analytics=analytics,
        )
