"""Decision policy: score bands plus label-based overrides. Pure functions."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from quorum_ai.models import Decision, OverrideRule, RiskLabel, Verdict

if TYPE_CHECKING:
    from quorum_ai.core.config import DecisionBands
    from quorum_ai.evaluators.registry import EvaluatorRegistry


def scale_score(deal_score: float, bands: DecisionBands) -> float:
    """Express a 0–100 deal score on the band's scale (e.g. 0–10 health)."""
    if bands.scale == 100.0:
        return deal_score
    return deal_score * bands.scale / 100.0


def band_decision(score: float, bands: DecisionBands) -> Decision:
    """Map a score to a decision; lower bounds inclusive, upper exclusive."""
    if score < bands.decline_below:
        return Decision.DECLINE
    if score < bands.quote_at:
        return Decision.CONDITIONAL_ACCEPT
    return Decision.QUOTE


def apply_overrides(
    numeric: Decision,
    verdicts: Iterable[Verdict],
    registry: EvaluatorRegistry,
) -> tuple[Decision, OverrideRule | None]:
    """Apply Red-label overrides on top of the band decision.

    Two or more Red verdicts, or a Red from a hard-blocking evaluator,
    decline outright.  A single other Red caps the decision at
    Conditional Accept.
    """
    reds = [v for v in verdicts if v.label is RiskLabel.RED]
    if not reds:
        return numeric, None
    if len(reds) >= 2:
        return Decision.DECLINE, OverrideRule.MULTIPLE_RED
    if any(registry.is_hard_blocking(v.evaluator_id) for v in reds):
        return Decision.DECLINE, OverrideRule.HARD_BLOCKING_RED
    return numeric.at_most(Decision.CONDITIONAL_ACCEPT), OverrideRule.RED_VERDICT_CAP
