"""Core data models: cases, verdicts, recommendations, synthesis results.

Cases and verdicts are frozen once built.  A verdict's label is never
stored: it is derived from the risk score through :func:`label_for_score`
so no evaluator can report a label that disagrees with its score.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

from quorum_ai.exceptions import InvalidCaseInputError

# Lower bounds of the Amber and Red labels on the [0, 1] risk scale
AMBER_AT = 0.34
RED_AT = 0.67


class CaseType(str, Enum):
    """Kind of case submitted for evaluation."""

    UNDERWRITING = "Underwriting"
    PORTFOLIO = "Portfolio"


class RiskLabel(str, Enum):
    """Categorical verdict label derived from a risk score."""

    GREEN = "Green"
    AMBER = "Amber"
    RED = "Red"
    UNKNOWN = "Unknown"


class Decision(str, Enum):
    """Outcome of synthesis.

    Portfolio cases reuse the same three outcomes for the proposed
    allocation change: accept it, accept it with conditions, or reject it.
    """

    QUOTE = "Quote"
    CONDITIONAL_ACCEPT = "Conditional Accept"
    DECLINE = "Decline"

    @property
    def is_accepted(self) -> bool:
        """True when the decision allows the case's exposure to be committed."""
        return self is not Decision.DECLINE

    def at_most(self, ceiling: Decision) -> Decision:
        """Return the less favourable of this decision and *ceiling*."""
        return self if _DECISION_RANK[self] <= _DECISION_RANK[ceiling] else ceiling


_DECISION_RANK = {
    Decision.DECLINE: 0,
    Decision.CONDITIONAL_ACCEPT: 1,
    Decision.QUOTE: 2,
}


class OverrideRule(str, Enum):
    """Label-based rule that took precedence over the numeric decision band."""

    RED_VERDICT_CAP = "red_verdict_cap"
    MULTIPLE_RED = "multiple_red_decline"
    HARD_BLOCKING_RED = "hard_blocking_decline"


def label_for_score(score: float | None) -> RiskLabel:
    """Map a risk score in [0, 1] to its label (monotonic, evaluator-agnostic)."""
    if score is None:
        return RiskLabel.UNKNOWN
    if score < AMBER_AT:
        return RiskLabel.GREEN
    if score < RED_AT:
        return RiskLabel.AMBER
    return RiskLabel.RED


# ── Immutable attribute bags ────────────────────────────────────────


def freeze(value: Any) -> Any:
    """Recursively convert dicts/lists/sets into read-only equivalents."""
    if isinstance(value, Mapping):
        return MappingProxyType({str(k): freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze(v) for v in value)
    return value


def thaw(value: Any) -> Any:
    """Inverse of :func:`freeze`, producing plain JSON-friendly containers."""
    if isinstance(value, Mapping):
        return {k: thaw(v) for k, v in value.items()}
    if isinstance(value, (tuple, list)):
        return [thaw(v) for v in value]
    if isinstance(value, frozenset):
        return sorted(thaw(v) for v in value)
    return value


# ── Cases ───────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Case:
    """One unit of work submitted for evaluation.

    ``attributes`` is deep-frozen on construction, so evaluators receive a
    snapshot they cannot mutate.
    """

    case_id: str
    case_type: CaseType
    attributes: Mapping[str, Any] = field(default_factory=dict)
    proposed_deltas: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.case_id, str) or not self.case_id.strip():
            raise InvalidCaseInputError("Case id must be a non-empty string")
        try:
            case_type = CaseType(self.case_type)
        except ValueError:
            allowed = ", ".join(t.value for t in CaseType)
            raise InvalidCaseInputError(
                f"Unknown case type {self.case_type!r}; expected one of: {allowed}"
            ) from None
        if not isinstance(self.attributes, Mapping):
            raise InvalidCaseInputError("Case attributes must be a mapping")
        if not isinstance(self.proposed_deltas, Mapping):
            raise InvalidCaseInputError("Proposed deltas must be a mapping of category to amount")

        deltas: dict[str, float] = {}
        for category, amount in self.proposed_deltas.items():
            if isinstance(amount, bool) or not isinstance(amount, (int, float)):
                raise InvalidCaseInputError(
                    f"Delta for category {category!r} must be numeric, got {amount!r}"
                )
            if not math.isfinite(amount):
                raise InvalidCaseInputError(f"Delta for category {category!r} must be finite")
            deltas[str(category)] = float(amount)

        object.__setattr__(self, "case_type", case_type)
        object.__setattr__(self, "attributes", freeze(self.attributes))
        object.__setattr__(self, "proposed_deltas", MappingProxyType(deltas))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Case:
        """Build a case from an inbound payload (API body or JSON file)."""
        if not isinstance(data, Mapping):
            raise InvalidCaseInputError("Case payload must be a JSON object")
        return cls(
            case_id=data.get("case_id") or data.get("id") or "",
            case_type=data.get("case_type", ""),
            attributes=data.get("attributes") or {},
            proposed_deltas=data.get("proposed_deltas") or {},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "case_id": self.case_id,
            "case_type": self.case_type.value,
            "attributes": thaw(self.attributes),
            "proposed_deltas": dict(self.proposed_deltas),
        }


# ── Verdicts ────────────────────────────────────────────────────────


@dataclass(frozen=True)
class GuidelineCitation:
    """Reference into underwriting/investment guideline text."""

    document_id: str
    page: int
    title: str = ""
    excerpt: str = ""

    def display(self) -> str:
        """Human-readable citation, e.g. 'Pilot Experience Minimums, p.52'."""
        return f"{self.title or self.document_id}, p.{self.page}"


@dataclass(frozen=True)
class PrecedentRef:
    """Reference to a historical case or policy with an optional outcome note."""

    record_id: str
    outcome: str = ""


@dataclass(frozen=True)
class Suggestion:
    """An evaluator-proposed portfolio action."""

    text: str
    impact_rating: int
    confidence: float

    def __post_init__(self) -> None:
        if not 1 <= self.impact_rating <= 5:
            raise ValueError(f"impact_rating must be in 1..5, got {self.impact_rating}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got {self.confidence}")


@dataclass(frozen=True)
class Verdict:
    """One evaluator's structured output for a case.

    A degraded verdict (evaluator timed out or failed) has ``risk_score``
    None, label ``Unknown``, and the failure reason in ``failure``.
    """

    evaluator_id: str
    case_type: CaseType
    risk_score: Optional[float]
    produced_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    reasoning: str = ""
    key_factors: tuple[str, ...] = ()
    citations: tuple[GuidelineCitation, ...] = ()
    precedents: tuple[PrecedentRef, ...] = ()
    confidence: float = 1.0
    suggestions: tuple[Suggestion, ...] = ()
    failure: str = ""

    def __post_init__(self) -> None:
        score = self.risk_score
        if score is not None:
            if isinstance(score, bool) or not isinstance(score, (int, float)):
                raise ValueError(f"risk_score must be numeric, got {score!r}")
            if not (math.isfinite(score) and 0.0 <= score <= 1.0):
                raise ValueError(f"risk_score must be in [0, 1], got {score}")
            object.__setattr__(self, "risk_score", float(score))
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be in [0, 1], got {self.confidence}")

        object.__setattr__(self, "case_type", CaseType(self.case_type))
        object.__setattr__(self, "key_factors", tuple(self.key_factors))
        object.__setattr__(self, "citations", tuple(self.citations))
        object.__setattr__(self, "precedents", tuple(self.precedents))
        object.__setattr__(self, "suggestions", tuple(self.suggestions))

        if self.case_type is CaseType.UNDERWRITING and self.suggestions:
            raise ValueError("Underwriting verdicts do not carry portfolio suggestions")

    @property
    def label(self) -> RiskLabel:
        return label_for_score(self.risk_score)

    @property
    def degraded(self) -> bool:
        return self.risk_score is None

    @classmethod
    def degraded_for(
        cls,
        evaluator_id: str,
        case_type: CaseType,
        reason: str,
        *,
        produced_at: datetime | None = None,
    ) -> Verdict:
        """Placeholder verdict for an evaluator that timed out or errored."""
        return cls(
            evaluator_id=evaluator_id,
            case_type=case_type,
            risk_score=None,
            produced_at=produced_at or datetime.now(timezone.utc),
            reasoning=f"Evaluator unavailable: {reason}",
            confidence=0.0,
            failure=reason,
        )


# ── Synthesis output ────────────────────────────────────────────────


@dataclass(frozen=True)
class Recommendation:
    """A required mitigation (underwriting) or prioritized suggestion (portfolio)."""

    text: str
    impact_rating: int
    confidence: float
    supporting_evaluators: tuple[str, ...] = ()


@dataclass(frozen=True)
class VerdictAuditEntry:
    """A verdict as it was weighed (or excluded) during synthesis."""

    verdict: Verdict
    evaluator_name: str
    weight: float
    included: bool
    exclusion_reason: str = ""


@dataclass(frozen=True)
class SynthesisResult:
    """Deterministic combination of all verdicts for one case."""

    case_id: str
    case_type: CaseType
    deal_score: float
    scaled_score: float
    scale: float
    decision: Decision
    numeric_decision: Decision
    reasoning: str
    responded: int
    total: int
    override: Optional[OverrideRule] = None
    required_mitigations: tuple[Recommendation, ...] = ()
    prioritized_suggestions: tuple[Recommendation, ...] = ()
    audit: tuple[VerdictAuditEntry, ...] = ()

    @property
    def verdicts(self) -> list[Verdict]:
        return [entry.verdict for entry in self.audit]

    @property
    def health_score(self) -> float | None:
        """Portfolio health on the portfolio band scale; None for underwriting."""
        return self.scaled_score if self.case_type is CaseType.PORTFOLIO else None

    @property
    def excluded_evaluators(self) -> list[str]:
        return [e.verdict.evaluator_id for e in self.audit if not e.included]

    def label_counts(self) -> dict[str, int]:
        """Number of verdicts per label, in label order."""
        counts = {label.value: 0 for label in RiskLabel}
        for entry in self.audit:
            counts[entry.verdict.label.value] += 1
        return counts


# ── Run analytics ───────────────────────────────────────────────────


@dataclass
class StageMetrics:
    """Timing and outcome counters for one stage of an evaluation run."""

    stage: str
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    duration_ms: float = 0.0
    success_count: int = 0
    failure_count: int = 0
    detail: dict[str, Any] = field(default_factory=dict)


@dataclass
class RunAnalytics:
    """Per-run analytics collected by the run tracker."""

    run_id: str
    case_id: str = ""
    started_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None
    status: str = "running"
    stages: list[StageMetrics] = field(default_factory=list)
    total_duration_ms: float = 0.0

    def finalize(self, status: str = "completed") -> None:
        """Stamp end time and total duration."""
        self.ended_at = datetime.now(timezone.utc)
        if self.started_at:
            self.total_duration_ms = (self.ended_at - self.started_at).total_seconds() * 1000
        if self.status == "running":
            self.status = status

    def stage(self, name: str) -> StageMetrics | None:
        for stage in self.stages:
            if stage.stage == name:
                return stage
        return None
