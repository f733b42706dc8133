"""Exception hierarchy for quorum-ai."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quorum_ai.models import Verdict


class QuorumError(Exception):
    """Base exception for all quorum-ai errors."""

    retryable: bool = False


class EmptyRegistryError(QuorumError):
    """Raised when no evaluators are configured for a case type."""


class RegistryNotFoundError(QuorumError, KeyError):
    """Raised when a registry id is not known to the catalog."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else ""


class EvaluatorError(QuorumError):
    """An evaluator raised while scoring a case.

    Recovered locally by the dispatcher as a degraded verdict; only surfaces in
    the audit trail.
    """

    def __init__(self, evaluator_id: str, message: str) -> None:
        super().__init__(f"Evaluator {evaluator_id!r} failed: {message}")
        self.evaluator_id = evaluator_id


class EvaluatorTimeoutError(EvaluatorError):
    """An evaluator did not finish within its time budget."""

    def __init__(self, evaluator_id: str, timeout: float) -> None:
        super().__init__(evaluator_id, f"timed out after {timeout:.2f}s")
        self.timeout = timeout


class InsufficientQuorumError(QuorumError):
    """Too few evaluators responded for a decision to be finalized.

    The caller may re-dispatch; the verdicts collected so far travel with the
    exception so nothing is lost.
    """

    retryable = True

    def __init__(
        self,
        case_id: str,
        *,
        responded: int,
        total: int,
        threshold: float,
        missing_evaluators: list[str],
        verdicts: list[Verdict] | None = None,
    ) -> None:
        super().__init__(
            f"Case {case_id!r}: {responded}/{total} evaluators responded "
            f"(quorum {threshold:.0%}); missing: {', '.join(missing_evaluators) or 'none'}"
        )
        self.case_id = case_id
        self.responded = responded
        self.total = total
        self.threshold = threshold
        self.missing_evaluators = missing_evaluators
        self.verdicts = verdicts or []


class InvalidCaseInputError(QuorumError):
    """The case payload was rejected before dispatch."""


class InvalidLimitError(QuorumError):
    """A ledger category has a zero or negative limit."""


class LedgerContentionError(QuorumError):
    """A ledger commit lost a race (lock timeout or stale version)."""

    retryable = True


class CommitNotPermittedError(QuorumError):
    """A commit was attempted for a case whose decision does not allow it."""


class ConsultationError(QuorumError):
    """The consultation collaborator failed to answer."""

    retryable = True


__all__ = [
    "QuorumError",
    "EmptyRegistryError",
    "RegistryNotFoundError",
    "EvaluatorError",
    "EvaluatorTimeoutError",
    "InsufficientQuorumError",
    "InvalidCaseInputError",
    "InvalidLimitError",
    "LedgerContentionError",
    "CommitNotPermittedError",
    "ConsultationError",
]
