"""Tests for the built-in aviation and portfolio evaluators."""

from __future__ import annotations

from typing import Any

import pytest

from quorum_ai.core.config import DecisionConfig
from quorum_ai.dispatch.coordinator import DispatchCoordinator
from quorum_ai.domains.aviation.evaluators import (
    GeopoliticalRiskEvaluator,
    GroundRiskEvaluator,
    HullRiskEvaluator,
    LiabilityRiskEvaluator,
    MaintenanceAgingEvaluator,
    PilotQualificationEvaluator,
)
from quorum_ai.domains.portfolio.evaluators import (
    GrowthStrategistEvaluator,
    RiskAnalystEvaluator,
    SectorBalanceEvaluator,
    load_positions,
    sector_weights,
)
from quorum_ai.evaluators.base import EvaluationContext
from quorum_ai.evaluators.registry import RegistryCatalog
from quorum_ai.models import Case, CaseType, Decision, OverrideRule, RiskLabel, freeze
from quorum_ai.reference.memory_store import MemoryGuidelineStore, MemoryPrecedentStore
from quorum_ai.synthesis.engine import SynthesisEngine


@pytest.fixture
def make_context(guidelines: MemoryGuidelineStore, precedents: MemoryPrecedentStore):
    def _make(evaluator_id: str = "test", case_type: CaseType = CaseType.UNDERWRITING, **params: Any):
        return EvaluationContext(
            evaluator_id=evaluator_id,
            display_name=evaluator_id,
            case_id="SUB-001",
            case_type=case_type,
            guidelines=guidelines,
            precedents=precedents,
            params=params,
        )

    return _make


class TestAviationEvaluators:
    @pytest.mark.asyncio
    async def test_hull(self, aviation_case: dict, make_context) -> None:
        assessment = await HullRiskEvaluator().evaluate(freeze(aviation_case["attributes"]), make_context())
        assert assessment.risk_score == pytest.approx(0.22)
        assert "17-year-old airframe" in assessment.key_factors
        assert assessment.citations[0].page == 47
        assert assessment.precedents[0].record_id == "AV-2019-0342"

    @pytest.mark.asyncio
    async def test_pilot_below_minimums(self, aviation_case: dict, make_context) -> None:
        context = make_context(min_total_hours=500, min_type_hours=100)
        assessment = await PilotQualificationEvaluator().evaluate(freeze(aviation_case["attributes"]), context)

        assert assessment.risk_score == pytest.approx(0.8)
        assert assessment.key_factors == [
            "450 total hours (500 required)",
            "80 hours on type (100 required)",
            "No high-altitude endorsement",
        ]
        assert assessment.citations[0].display() == "Pilot Experience Minimums, p.52"
        assert [p.record_id for p in assessment.precedents] == ["AV-2020-1045", "AV-2017-0419"]

    @pytest.mark.asyncio
    async def test_experienced_pilot(self, make_context) -> None:
        attributes = freeze({"pilot": {"total_hours": 1200, "type_hours": 300, "endorsements": ["High-Altitude"]}})
        assessment = await PilotQualificationEvaluator().evaluate(attributes, make_context())
        assert assessment.risk_score == pytest.approx(0.1)

    @pytest.mark.asyncio
    async def test_pilot_missing_hours_raises(self, make_context) -> None:
        with pytest.raises(ValueError, match="type_hours"):
            await PilotQualificationEvaluator().evaluate(freeze({"pilot": {"total_hours": 450}}), make_context())

    @pytest.mark.asyncio
    async def test_maintenance(self, aviation_case: dict, make_context) -> None:
        assessment = await MaintenanceAgingEvaluator().evaluate(freeze(aviation_case["attributes"]), make_context())
        assert assessment.risk_score == pytest.approx(0.45)
        assert "Established service center (Hauppauge)" in assessment.key_factors

    @pytest.mark.asyncio
    async def test_overdue_overhaul(self, make_context) -> None:
        attributes = freeze({"maintenance": {"months_to_overhaul": 0, "engine_hours": 3500}})
        assessment = await MaintenanceAgingEvaluator().evaluate(attributes, make_context())
        assert assessment.risk_score == pytest.approx(0.95)

    @pytest.mark.asyncio
    async def test_ground(self, aviation_case: dict, make_context) -> None:
        assessment = await GroundRiskEvaluator().evaluate(freeze(aviation_case["attributes"]), make_context())
        assert assessment.risk_score == pytest.approx(0.2)
        assert assessment.precedents[0].record_id == "AV-2021-0654"

    @pytest.mark.asyncio
    async def test_liability(self, aviation_case: dict, make_context) -> None:
        assessment = await LiabilityRiskEvaluator().evaluate(freeze(aviation_case["attributes"]), make_context())
        assert assessment.risk_score == pytest.approx(0.29)
        assert "Liability limits appropriate" in assessment.key_factors

    @pytest.mark.asyncio
    async def test_liability_below_seat_minimum(self, make_context) -> None:
        attributes = freeze({"operations": {"intended_use": "Charter", "seats": 12, "liability_limit": 20_000_000}})
        assessment = await LiabilityRiskEvaluator().evaluate(attributes, make_context())
        assert assessment.risk_score == pytest.approx(0.73)
        assert "Liability limit $20.0M below $60.0M seat minimum" in assessment.key_factors

    @pytest.mark.asyncio
    async def test_geopolitical_domestic(self, aviation_case: dict, make_context) -> None:
        assessment = await GeopoliticalRiskEvaluator().evaluate(freeze(aviation_case["attributes"]), make_context())
        assert assessment.risk_score == pytest.approx(0.15)
        assert assessment.key_factors == ["US domestic only"]

    @pytest.mark.asyncio
    async def test_geopolitical_sanctioned(self, make_context) -> None:
        attributes = freeze({"operations": {"regions": ["US", "Iran"]}})
        assessment = await GeopoliticalRiskEvaluator().evaluate(attributes, make_context())
        assert assessment.risk_score == pytest.approx(0.95)
        assert "Sanctioned region exposure: Iran" in assessment.key_factors


class TestAviationEndToEnd:
    @pytest.mark.asyncio
    async def test_sub_001(
        self,
        aviation_case: dict,
        catalog: RegistryCatalog,
        guidelines: MemoryGuidelineStore,
        precedents: MemoryPrecedentStore,
    ) -> None:
        case = Case.from_dict(aviation_case)
        registry = catalog.get("aviation-default")
        outcome = await DispatchCoordinator(guidelines, precedents).dispatch(case, registry)
        result = SynthesisEngine.from_config(DecisionConfig()).synthesize(
            case, outcome.verdicts, outcome.quorum_met, registry
        )

        labels = {v.evaluator_id: v.label for v in result.verdicts}
        assert labels == {
            "hull_risk": RiskLabel.GREEN,
            "pilot_qualification": RiskLabel.RED,
            "maintenance_aging": RiskLabel.AMBER,
            "ground_risk": RiskLabel.GREEN,
            "liability_risk": RiskLabel.GREEN,
            "geopolitical_risk": RiskLabel.GREEN,
        }
        assert result.deal_score == pytest.approx(389 / 6)
        assert result.decision is Decision.CONDITIONAL_ACCEPT
        assert result.override is OverrideRule.RED_VERDICT_CAP
        assert result.required_mitigations[0].text == (
            "Pilot Qualification: complete 50 additional total hours; "
            "complete 20 additional hours on type; obtain high-altitude endorsement"
        )
        assert result.required_mitigations[1].text == "Maintenance & Aging: address overhaul due in 6 months"

    @pytest.mark.asyncio
    async def test_sanctioned_region_declines(
        self,
        aviation_case: dict,
        catalog: RegistryCatalog,
        guidelines: MemoryGuidelineStore,
        precedents: MemoryPrecedentStore,
    ) -> None:
        aviation_case["attributes"]["pilot"] = {
            "total_hours": 3000,
            "type_hours": 600,
            "endorsements": ["high-altitude"],
        }
        aviation_case["attributes"]["operations"]["regions"] = ["US", "Russia"]
        case = Case.from_dict(aviation_case)
        registry = catalog.get("aviation-default")
        outcome = await DispatchCoordinator(guidelines, precedents).dispatch(case, registry)
        result = SynthesisEngine.from_config(DecisionConfig()).synthesize(
            case, outcome.verdicts, outcome.quorum_met, registry
        )
        assert result.deal_score == pytest.approx(379 / 6)
        assert result.numeric_decision is Decision.CONDITIONAL_ACCEPT
        assert result.decision is Decision.DECLINE
        assert result.override is OverrideRule.HARD_BLOCKING_RED


class TestPortfolioEvaluators:
    def test_load_positions(self, portfolio_case: dict) -> None:
        positions, total = load_positions(freeze(portfolio_case["attributes"]))
        assert total == pytest.approx(10_000_000)
        weights = sector_weights(positions, total)
        assert next(iter(weights)) == "Technology"
        assert weights["Technology"] == pytest.approx(0.53)

    @pytest.mark.parametrize("holdings", [[], "NVDA", [{"symbol": "A", "value": -1}], [{"symbol": "A", "value": 0}]])
    def test_load_positions_rejects(self, holdings: Any) -> None:
        with pytest.raises(ValueError):
            load_positions({"holdings": holdings})

    @pytest.mark.asyncio
    async def test_risk_analyst(self, portfolio_case: dict, make_context) -> None:
        context = make_context(case_type=CaseType.PORTFOLIO)
        assessment = await RiskAnalystEvaluator().evaluate(freeze(portfolio_case["attributes"]), context)

        assert assessment.risk_score == pytest.approx(0.69215)
        texts = [s.text for s in assessment.suggestions]
        assert texts == [
            "Trim NVDA to 15% of portfolio",
            "Trim MSFT to 15% of portfolio",
            "Add low-volatility holdings to bring volatility under 20%",
        ]
        assert assessment.suggestions[0].impact_rating == 3
        assert assessment.precedents[0].record_id == "PF-2020-0031"

    @pytest.mark.asyncio
    async def test_growth_on_target(self, portfolio_case: dict, make_context) -> None:
        context = make_context(case_type=CaseType.PORTFOLIO)
        assessment = await GrowthStrategistEvaluator().evaluate(freeze(portfolio_case["attributes"]), context)
        assert assessment.risk_score == pytest.approx(0.15)
        assert assessment.suggestions == []

    @pytest.mark.asyncio
    async def test_growth_objective_from_case(self, portfolio_case: dict, make_context) -> None:
        portfolio_case["attributes"]["objectives"] = {"target_growth": 0.12}
        context = make_context(case_type=CaseType.PORTFOLIO)
        assessment = await GrowthStrategistEvaluator().evaluate(freeze(portfolio_case["attributes"]), context)
        assert assessment.risk_score == pytest.approx(0.15 + 5.0 * (0.12 - 0.0995))
        assert assessment.suggestions[0].text == "Rotate out of XOM into higher-growth holdings"
        assert assessment.suggestions[1].text == "Increase allocation to Technology"

    @pytest.mark.asyncio
    async def test_sector_balance(self, portfolio_case: dict, make_context) -> None:
        context = make_context(case_type=CaseType.PORTFOLIO)
        assessment = await SectorBalanceEvaluator().evaluate(freeze(portfolio_case["attributes"]), context)
        assert assessment.risk_score == pytest.approx(0.46)
        assert [s.text for s in assessment.suggestions] == ["Reduce Technology exposure below 35%"]


class TestPortfolioEndToEnd:
    @pytest.mark.asyncio
    async def test_pf_001(
        self,
        portfolio_case: dict,
        catalog: RegistryCatalog,
        guidelines: MemoryGuidelineStore,
        precedents: MemoryPrecedentStore,
    ) -> None:
        case = Case.from_dict(portfolio_case)
        registry = catalog.get("portfolio-default")
        outcome = await DispatchCoordinator(guidelines, precedents).dispatch(case, registry)
        result = SynthesisEngine.from_config(DecisionConfig()).synthesize(
            case, outcome.verdicts, outcome.quorum_met, registry
        )

        assert result.health_score == pytest.approx((1.5 * 30.785 + 85 + 54) / 3.5 / 10)
        assert result.decision is Decision.CONDITIONAL_ACCEPT
        assert result.override is OverrideRule.RED_VERDICT_CAP
        assert [s.text for s in result.prioritized_suggestions] == [
            "Trim NVDA to 15% of portfolio",
            "Reduce Technology exposure below 35%",
            "Add low-volatility holdings to bring volatility under 20%",
            "Trim MSFT to 15% of portfolio",
        ]
        assert result.required_mitigations == ()
