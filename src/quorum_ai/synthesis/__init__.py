"""Verdict synthesis: weighted scoring, decision bands, overrides, recommendations."""

from quorum_ai.synthesis.decision import apply_overrides, band_decision, scale_score
from quorum_ai.synthesis.engine import SynthesisEngine, weighted_deal_score
from quorum_ai.synthesis.recommendations import build_mitigations, build_suggestions, rank

__all__ = [
    "SynthesisEngine",
    "apply_overrides",
    "band_decision",
    "build_mitigations",
    "build_suggestions",
    "rank",
    "scale_score",
    "weighted_deal_score",
]
