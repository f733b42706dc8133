"""Mitigations (underwriting) and prioritized suggestions (portfolio).

Mitigations are templated from a verdict's key factors: a shortfall such as
``"450 total hours (500 required)"`` becomes ``"complete 50 additional total
hours"``; a missing item such as ``"No high-altitude endorsement"`` becomes
``"obtain high-altitude endorsement"``.

Both lists are ranked by impact rating, then confidence (both descending),
then registration order of the first supporting evaluator.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable

from quorum_ai.models import Recommendation, RiskLabel, Verdict

if TYPE_CHECKING:
    from quorum_ai.evaluators.registry import EvaluatorRegistry

_SHORTFALL_RE = re.compile(
    r"^(?P<have>[\d,]+(?:\.\d+)?)\s+(?P<what>.+?)\s*\((?P<need>[\d,]+(?:\.\d+)?)\s+required\)",
    re.IGNORECASE,
)
_MISSING_RE = re.compile(r"^no\s+(?P<what>.+)$", re.IGNORECASE)

_ATTENTION_LABELS = (RiskLabel.AMBER, RiskLabel.RED)


def impact_from_score(risk_score: float) -> int:
    """Impact rating 1–5 from a risk score (0 → 1, 1 → 5)."""
    return 1 + int(math.floor(risk_score * 4 + 0.5))


def _number(text: str) -> float:
    return float(text.replace(",", ""))


def _format_amount(value: float) -> str:
    return f"{value:,.0f}" if value == int(value) else f"{value:,.1f}"


def action_for_factor(factor: str) -> str | None:
    """Turn one key factor into a corrective action, or None if no template applies."""
    text = factor.strip()
    match = _SHORTFALL_RE.match(text)
    if match:
        gap = _number(match.group("need")) - _number(match.group("have"))
        if gap > 0:
            return f"complete {_format_amount(gap)} additional {match.group('what').strip()}"
        return None
    match = _MISSING_RE.match(text)
    if match:
        return f"obtain {match.group('what').strip()}"
    return None


def mitigation_text(display_name: str, key_factors: Iterable[str]) -> str:
    """One mitigation string for a verdict, built from its key factors."""
    factors = [f for f in key_factors if f and f.strip()]
    actions = [a for a in (action_for_factor(f) for f in factors) if a]
    if not actions:
        if factors:
            first = factors[0].strip()
            actions = [f"address {first[0].lower()}{first[1:]}"]
        else:
            actions = ["review findings before binding"]
    return f"{display_name}: {'; '.join(actions)}"


def build_mitigations(
    verdicts: Iterable[Verdict],
    registry: EvaluatorRegistry,
) -> list[Recommendation]:
    """One mitigation per Amber or Red verdict, ranked."""
    mitigations: list[Recommendation] = []
    for verdict in verdicts:
        if verdict.label not in _ATTENTION_LABELS:
            continue
        assert verdict.risk_score is not None
        spec = registry.spec(verdict.evaluator_id)
        mitigations.append(
            Recommendation(
                text=mitigation_text(spec.display_name, verdict.key_factors),
                impact_rating=impact_from_score(verdict.risk_score),
                confidence=verdict.confidence,
                supporting_evaluators=(verdict.evaluator_id,),
            )
        )
    return rank(mitigations, registry)


@dataclass
class _MergedSuggestion:
    text: str
    impact_rating: int
    confidences: list[float] = field(default_factory=list)
    supporters: list[str] = field(default_factory=list)


def build_suggestions(
    verdicts: Iterable[Verdict],
    registry: EvaluatorRegistry,
) -> list[Recommendation]:
    """Merge evaluator suggestions into one ranked list.

    Identical suggestions (case-insensitive) from several evaluators are
    merged: highest impact wins, confidences are averaged, supporters are
    unioned.  An Amber or Red verdict with no suggestions of its own
    contributes one templated from its key factors.
    """
    merged: dict[str, _MergedSuggestion] = {}

    def _add(text: str, impact: int, confidence: float, evaluator_id: str) -> None:
        key = " ".join(text.lower().split())
        entry = merged.get(key)
        if entry is None:
            entry = merged[key] = _MergedSuggestion(text=text.strip(), impact_rating=impact)
        entry.impact_rating = max(entry.impact_rating, impact)
        entry.confidences.append(confidence)
        if evaluator_id not in entry.supporters:
            entry.supporters.append(evaluator_id)

    for verdict in verdicts:
        if verdict.degraded:
            continue
        for suggestion in verdict.suggestions:
            _add(suggestion.text, suggestion.impact_rating, suggestion.confidence, verdict.evaluator_id)
        if not verdict.suggestions and verdict.label in _ATTENTION_LABELS:
            assert verdict.risk_score is not None
            spec = registry.spec(verdict.evaluator_id)
            _add(
                mitigation_text(spec.display_name, verdict.key_factors),
                impact_from_score(verdict.risk_score),
                verdict.confidence,
                verdict.evaluator_id,
            )

    suggestions = [
        Recommendation(
            text=entry.text,
            impact_rating=entry.impact_rating,
            confidence=math.fsum(entry.confidences) / len(entry.confidences),
            supporting_evaluators=tuple(sorted(entry.supporters, key=registry.position)),
        )
        for entry in merged.values()
    ]
    return rank(suggestions, registry)


def rank(items: Iterable[Recommendation], registry: EvaluatorRegistry) -> list[Recommendation]:
    """Stable sort: impact desc, confidence desc, earliest supporting evaluator asc."""

    def _key(item: Recommendation) -> tuple[int, float, int, str]:
        first = min((registry.position(e) for e in item.supporting_evaluators), default=len(registry))
        return (-item.impact_rating, -item.confidence, first, item.text)

    return sorted(items, key=_key)
