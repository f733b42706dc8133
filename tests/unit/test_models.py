"""Tests for core data models: labels, cases, verdicts, decisions."""

from __future__ import annotations

import pytest

from quorum_ai.exceptions import InvalidCaseInputError
from quorum_ai.models import (
    Case,
    CaseType,
    Decision,
    RiskLabel,
    Suggestion,
    Verdict,
    freeze,
    label_for_score,
    thaw,
)


class TestLabelForScore:
    @pytest.mark.parametrize(
        "score, label",
        [
            (0.0, RiskLabel.GREEN),
            (0.3399, RiskLabel.GREEN),
            (0.34, RiskLabel.AMBER),
            (0.6699, RiskLabel.AMBER),
            (0.67, RiskLabel.RED),
            (1.0, RiskLabel.RED),
            (None, RiskLabel.UNKNOWN),
        ],
    )
    def test_boundaries(self, score: float | None, label: RiskLabel) -> None:
        assert label_for_score(score) is label

    def test_monotonic(self) -> None:
        order = [RiskLabel.GREEN, RiskLabel.AMBER, RiskLabel.RED]
        ranks = [order.index(label_for_score(i / 100)) for i in range(101)]
        assert ranks == sorted(ranks)


class TestCase:
    def test_attributes_are_frozen(self) -> None:
        case = Case("SUB-1", CaseType.UNDERWRITING, {"pilot": {"total_hours": 450, "endorsements": ["ifr"]}})
        with pytest.raises(TypeError):
            case.attributes["pilot"] = {}  # type: ignore[index]
        with pytest.raises(TypeError):
            case.attributes["pilot"]["total_hours"] = 900  # type: ignore[index]
        assert case.attributes["pilot"]["endorsements"] == ("ifr",)

    def test_input_dict_not_aliased(self) -> None:
        raw = {"pilot": {"total_hours": 450}}
        case = Case("SUB-1", "Underwriting", raw)
        raw["pilot"]["total_hours"] = 9999
        assert case.attributes["pilot"]["total_hours"] == 450

    def test_case_type_coerced_from_string(self) -> None:
        assert Case("PF-1", "Portfolio").case_type is CaseType.PORTFOLIO

    def test_unknown_case_type_rejected(self) -> None:
        with pytest.raises(InvalidCaseInputError, match="Unknown case type"):
            Case("X-1", "Marine")

    def test_empty_id_rejected(self) -> None:
        with pytest.raises(InvalidCaseInputError):
            Case("  ", CaseType.UNDERWRITING)

    @pytest.mark.parametrize("amount", ["45M", True, float("nan"), float("inf")])
    def test_bad_delta_rejected(self, amount: object) -> None:
        with pytest.raises(InvalidCaseInputError):
            Case("SUB-1", CaseType.UNDERWRITING, proposed_deltas={"TEB Hull Value": amount})

    def test_from_dict_round_trips_to_plain_containers(self, aviation_case: dict) -> None:
        case = Case.from_dict(aviation_case)
        data = case.to_dict()
        assert data["attributes"] == aviation_case["attributes"]
        assert data["proposed_deltas"]["TEB Hull Value"] == 45_000_000.0

    def test_from_dict_rejects_non_mapping(self) -> None:
        with pytest.raises(InvalidCaseInputError):
            Case.from_dict(["not", "a", "case"])  # type: ignore[arg-type]


class TestVerdict:
    def test_label_derived_from_score(self) -> None:
        verdict = Verdict("pilot_qualification", CaseType.UNDERWRITING, 0.75)
        assert verdict.label is RiskLabel.RED
        assert not verdict.degraded

    @pytest.mark.parametrize("score", [-0.01, 1.01, float("nan")])
    def test_score_out_of_range_rejected(self, score: float) -> None:
        with pytest.raises(ValueError):
            Verdict("hull_risk", CaseType.UNDERWRITING, score)

    def test_bool_score_rejected(self) -> None:
        with pytest.raises(ValueError):
            Verdict("hull_risk", CaseType.UNDERWRITING, True)  # type: ignore[arg-type]

    def test_underwriting_verdict_cannot_carry_suggestions(self) -> None:
        with pytest.raises(ValueError, match="portfolio suggestions"):
            Verdict(
                "hull_risk",
                CaseType.UNDERWRITING,
                0.2,
                suggestions=[Suggestion("Trim NVDA", 3, 0.8)],
            )

    def test_degraded_verdict(self) -> None:
        verdict = Verdict.degraded_for("ground_risk", CaseType.UNDERWRITING, "timeout")
        assert verdict.degraded
        assert verdict.label is RiskLabel.UNKNOWN
        assert verdict.failure == "timeout"
        assert verdict.confidence == 0.0

    def test_verdict_is_immutable(self) -> None:
        verdict = Verdict("hull_risk", CaseType.UNDERWRITING, 0.2, key_factors=["17-year-old airframe"])
        with pytest.raises(AttributeError):
            verdict.risk_score = 0.9  # type: ignore[misc]
        assert isinstance(verdict.key_factors, tuple)


class TestSuggestion:
    @pytest.mark.parametrize("impact", [0, 6])
    def test_impact_rating_range(self, impact: int) -> None:
        with pytest.raises(ValueError):
            Suggestion("Trim NVDA", impact, 0.5)


class TestDecision:
    def test_at_most(self) -> None:
        assert Decision.QUOTE.at_most(Decision.CONDITIONAL_ACCEPT) is Decision.CONDITIONAL_ACCEPT
        assert Decision.DECLINE.at_most(Decision.CONDITIONAL_ACCEPT) is Decision.DECLINE
        assert Decision.CONDITIONAL_ACCEPT.at_most(Decision.QUOTE) is Decision.CONDITIONAL_ACCEPT

    def test_is_accepted(self) -> None:
        assert Decision.QUOTE.is_accepted
        assert Decision.CONDITIONAL_ACCEPT.is_accepted
        assert not Decision.DECLINE.is_accepted


class TestFreeze:
    def test_thaw_inverts_freeze(self) -> None:
        data = {"a": [1, {"b": 2}], "c": {"d": [3]}}
        assert thaw(freeze(data)) == data
