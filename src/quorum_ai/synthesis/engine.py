"""Synthesis engine: combine verdicts into one scored, explained decision.

Scoring is a weighted average of ``(1 - risk_score) * 100`` over the
evaluators that responded, with registry weights renormalized over those
evaluators.  Degraded verdicts are excluded from the score but always kept
in the audit trail.  Synthesis is pure: the same verdicts and registry give
the same result regardless of verdict order.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Iterable, Mapping

from quorum_ai.exceptions import InsufficientQuorumError
from quorum_ai.models import (
    Case,
    CaseType,
    Decision,
    OverrideRule,
    RiskLabel,
    SynthesisResult,
    Verdict,
    VerdictAuditEntry,
)
from quorum_ai.synthesis.decision import apply_overrides, band_decision, scale_score
from quorum_ai.synthesis.recommendations import build_mitigations, build_suggestions

if TYPE_CHECKING:
    from quorum_ai.core.config import DecisionBands, DecisionConfig
    from quorum_ai.evaluators.registry import EvaluatorRegistry

log = logging.getLogger(__name__)

_OVERRIDE_REASONS = {
    OverrideRule.RED_VERDICT_CAP: "Decision capped at Conditional Accept by a Red verdict",
    OverrideRule.MULTIPLE_RED: "Declined: two or more Red verdicts",
    OverrideRule.HARD_BLOCKING_RED: "Declined: Red verdict from a hard-blocking evaluator",
}


class SynthesisEngine:
    """Applies decision bands and overrides to a set of verdicts."""

    def __init__(self, bands: Mapping[CaseType, DecisionBands]) -> None:
        self._bands = dict(bands)

    @classmethod
    def from_config(cls, config: DecisionConfig) -> SynthesisEngine:
        return cls({
            CaseType.UNDERWRITING: config.underwriting,
            CaseType.PORTFOLIO: config.portfolio,
        })

    def bands_for(self, case_type: CaseType) -> DecisionBands:
        if case_type not in self._bands:
            raise KeyError(f"No decision bands configured for {case_type.value}")
        return self._bands[case_type]

    def synthesize(
        self,
        case: Case,
        verdicts: Iterable[Verdict],
        quorum_met: bool,
        registry: EvaluatorRegistry,
        *,
        quorum_threshold: float = 0.0,
    ) -> SynthesisResult:
        """Produce the decision for *case*.

        ``quorum_threshold`` is only reported back in the error when
        quorum was not met.

        Raises:
            InsufficientQuorumError: quorum was not met, or no evaluator
                responded.  The collected verdicts travel with the error.
        """
        ordered = self._order(verdicts, registry)
        responded = [v for v in ordered if not v.degraded]
        missing = [v.evaluator_id for v in ordered if v.degraded]
        seen = {v.evaluator_id for v in ordered}
        missing.extend(s.evaluator_id for s in registry if s.evaluator_id not in seen)

        if not quorum_met or not responded:
            raise InsufficientQuorumError(
                case.case_id,
                responded=len(responded),
                total=len(registry),
                threshold=quorum_threshold,
                missing_evaluators=missing,
                verdicts=ordered,
            )

        bands = self.bands_for(case.case_type)
        deal_score = weighted_deal_score(responded, registry)
        scaled = scale_score(deal_score, bands)
        numeric = band_decision(scaled, bands)
        decision, override = apply_overrides(numeric, responded, registry)

        if case.case_type is CaseType.PORTFOLIO:
            mitigations = []
            suggestions = build_suggestions(ordered, registry)
        else:
            mitigations = build_mitigations(ordered, registry)
            suggestions = []

        audit = tuple(
            VerdictAuditEntry(
                verdict=v,
                evaluator_name=registry.spec(v.evaluator_id).display_name,
                weight=registry.weight(v.evaluator_id),
                included=not v.degraded,
                exclusion_reason=v.failure if v.degraded else "",
            )
            for v in ordered
        )

        result = SynthesisResult(
            case_id=case.case_id,
            case_type=case.case_type,
            deal_score=deal_score,
            scaled_score=scaled,
            scale=bands.scale,
            decision=decision,
            numeric_decision=numeric,
            override=override,
            reasoning=_reasoning(case.case_type, scaled, bands.scale, audit, decision, override),
            responded=len(responded),
            total=len(registry),
            required_mitigations=tuple(mitigations),
            prioritized_suggestions=tuple(suggestions),
            audit=audit,
        )
        log.info(
            "Synthesized case %s: score=%.2f decision=%s override=%s",
            case.case_id,
            deal_score,
            decision.value,
            override.value if override else "none",
        )
        return result

    @staticmethod
    def _order(verdicts: Iterable[Verdict], registry: EvaluatorRegistry) -> list[Verdict]:
        """Registration order; rejects verdicts from unknown or repeated evaluators."""
        by_id: dict[str, Verdict] = {}
        for verdict in verdicts:
            registry.spec(verdict.evaluator_id)
            if verdict.evaluator_id in by_id:
                raise ValueError(f"Duplicate verdict for evaluator {verdict.evaluator_id!r}")
            by_id[verdict.evaluator_id] = verdict
        return sorted(by_id.values(), key=lambda v: registry.position(v.evaluator_id))


def weighted_deal_score(verdicts: Iterable[Verdict], registry: EvaluatorRegistry) -> float:
    """Weighted mean of ``(1 - risk) * 100`` over non-degraded verdicts.

    ``math.fsum`` keeps the result independent of summation order.
    """
    pairs = [(registry.weight(v.evaluator_id), v.risk_score) for v in verdicts if v.risk_score is not None]
    if not pairs:
        raise ValueError("Cannot score an empty verdict set")
    total_weight = math.fsum(w for w, _ in pairs)
    return math.fsum(w * (1.0 - score) * 100.0 for w, score in pairs) / total_weight


def _reasoning(
    case_type: CaseType,
    score: float,
    scale: float,
    audit: tuple[VerdictAuditEntry, ...],
    decision: Decision,
    override: OverrideRule | None,
) -> str:
    """Deterministic one-paragraph explanation of the decision."""
    included = [e for e in audit if e.included]
    noun = "Health score" if case_type is CaseType.PORTFOLIO else "Deal score"
    parts = [
        f"{noun} {score:.2f}/{scale:g} from {len(included)} of {len(audit)} evaluators."
    ]
    for label in (RiskLabel.RED, RiskLabel.AMBER):
        names = [e.evaluator_name for e in included if e.verdict.label is label]
        if names:
            parts.append(f"{label.value}: {', '.join(names)}.")
    excluded = [f"{e.evaluator_name} ({e.exclusion_reason})" for e in audit if not e.included]
    if excluded:
        parts.append(f"Excluded from score: {', '.join(excluded)}.")
    if override is not None:
        parts.append(f"{_OVERRIDE_REASONS[override]}.")
    parts.append(f"Decision: {decision.value}.")
    return " ".join(parts)
