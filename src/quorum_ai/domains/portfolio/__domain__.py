"""Portfolio review domain manifest, discovered by DomainRegistry.auto_discover()."""

from __future__ import annotations

from quorum_ai.domains.portfolio.evaluators import GUIDELINE_DOC
from quorum_ai.domains.registry import DomainConfig
from quorum_ai.evaluators.registry import EvaluatorSpec
from quorum_ai.ledger.models import ExposureCategory
from quorum_ai.models import CaseType
from quorum_ai.reference.models import GuidelineEntry, PrecedentRecord

_EVALUATORS = "quorum_ai.domains.portfolio.evaluators"

domain = DomainConfig(
    name="portfolio",
    display_name="Portfolio Review",
    case_type=CaseType.PORTFOLIO,
    registry_id="portfolio-default",
    description="Health scoring and prioritized actions for investment portfolios",
    evaluators=(
        EvaluatorSpec(
            evaluator_id="risk_analyst",
            display_name="Risk Analyst",
            evaluator=f"{_EVALUATORS}:RiskAnalystEvaluator",
            capability="holdings",
            weight=1.5,
            reference_data=("guidelines", "precedents"),
        ),
        EvaluatorSpec(
            evaluator_id="growth_strategist",
            display_name="Growth Strategist",
            evaluator=f"{_EVALUATORS}:GrowthStrategistEvaluator",
            capability="holdings",
            reference_data=("guidelines", "precedents"),
        ),
        EvaluatorSpec(
            evaluator_id="sector_balance",
            display_name="Sector Balance",
            evaluator=f"{_EVALUATORS}:SectorBalanceEvaluator",
            capability="holdings",
            reference_data=("guidelines", "precedents"),
        ),
    ),
    guidelines=(
        GuidelineEntry(
            GUIDELINE_DOC,
            12,
            "Position Concentration Limits",
            "No single issuer may exceed fifteen percent of portfolio value. Weighted "
            "volatility is held near a twenty percent annualized target.",
        ),
        GuidelineEntry(
            GUIDELINE_DOC,
            18,
            "Growth Objectives",
            "Growth mandates target eight percent expected annual growth; persistent "
            "shortfalls call for rotation out of lagging holdings.",
        ),
        GuidelineEntry(
            GUIDELINE_DOC,
            24,
            "Sector Diversification",
            "Portfolios hold at least four sectors and no sector above thirty-five percent.",
        ),
    ),
    precedents=(
        PrecedentRecord("PF-2020-0031", "Concentrated position drawdown", "Single-issuer drawdown - 18% portfolio loss", ("risk",)),
        PrecedentRecord("PF-2021-0107", "Growth shortfall rotation", "Rotation restored target growth within 4 quarters", ("growth",)),
        PrecedentRecord("PF-2022-0058", "Sector concentration technology", "Tech-heavy book underperformed by 11%", ("sector",)),
    ),
    exposure_categories=(
        ExposureCategory("Technology Sector Allocation", 42_000_000, 60_000_000),
        ExposureCategory("Financials Sector Allocation", 25_000_000, 40_000_000),
        ExposureCategory("Healthcare Sector Allocation", 18_000_000, 35_000_000),
        ExposureCategory("Energy Sector Allocation", 9_000_000, 20_000_000),
    ),
)
