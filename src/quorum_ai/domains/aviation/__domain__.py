"""Aviation underwriting domain manifest, discovered by DomainRegistry.auto_discover()."""

from __future__ import annotations

from quorum_ai.domains.aviation.evaluators import GUIDELINE_DOC
from quorum_ai.domains.registry import DomainConfig
from quorum_ai.evaluators.registry import EvaluatorSpec
from quorum_ai.ledger.models import ExposureCategory
from quorum_ai.models import CaseType
from quorum_ai.reference.models import GuidelineEntry, PrecedentRecord

_EVALUATORS = "quorum_ai.domains.aviation.evaluators"

domain = DomainConfig(
    name="aviation",
    display_name="Aviation Underwriting",
    case_type=CaseType.UNDERWRITING,
    registry_id="aviation-default",
    description="Hull and liability underwriting for business and general aviation aircraft",
    evaluators=(
        EvaluatorSpec(
            evaluator_id="hull_risk",
            display_name="Hull Risk",
            evaluator=f"{_EVALUATORS}:HullRiskEvaluator",
            capability="aircraft",
            reference_data=("guidelines", "precedents"),
        ),
        EvaluatorSpec(
            evaluator_id="pilot_qualification",
            display_name="Pilot Qualification",
            evaluator=f"{_EVALUATORS}:PilotQualificationEvaluator",
            capability="pilot",
            reference_data=("guidelines", "precedents"),
            params={"min_total_hours": 500, "min_type_hours": 100},
        ),
        EvaluatorSpec(
            evaluator_id="maintenance_aging",
            display_name="Maintenance & Aging",
            evaluator=f"{_EVALUATORS}:MaintenanceAgingEvaluator",
            capability="maintenance",
            reference_data=("guidelines", "precedents"),
        ),
        EvaluatorSpec(
            evaluator_id="ground_risk",
            display_name="Ground Risk",
            evaluator=f"{_EVALUATORS}:GroundRiskEvaluator",
            capability="operations",
            reference_data=("guidelines", "precedents"),
        ),
        EvaluatorSpec(
            evaluator_id="liability_risk",
            display_name="Liability Risk",
            evaluator=f"{_EVALUATORS}:LiabilityRiskEvaluator",
            capability="operations",
            reference_data=("guidelines", "precedents"),
        ),
        EvaluatorSpec(
            evaluator_id="geopolitical_risk",
            display_name="Geopolitical Risk",
            evaluator=f"{_EVALUATORS}:GeopoliticalRiskEvaluator",
            capability="operations",
            hard_blocking=True,
            reference_data=("guidelines", "precedents"),
        ),
    ),
    guidelines=(
        GuidelineEntry(
            GUIDELINE_DOC,
            47,
            "Hull Coverage Limits & Age Analysis",
            "Hull values above the line limit require referral. Airframes are rated by age "
            "from year of manufacture; airframes beyond forty years are outside appetite.",
        ),
        GuidelineEntry(
            GUIDELINE_DOC,
            52,
            "Pilot Experience Minimums",
            "Pilot in command must hold at least 500 total hours and 100 hours on type for "
            "large-cabin turbine aircraft, with a high-altitude endorsement.",
        ),
        GuidelineEntry(
            GUIDELINE_DOC,
            89,
            "Engine Overhaul Requirements",
            "Engines within six months of scheduled overhaul carry elevated risk; overdue "
            "overhauls are not acceptable without an inspection report.",
        ),
        GuidelineEntry(
            GUIDELINE_DOC,
            121,
            "Liability Limits by Aircraft Type",
            "Liability limits should be at least five million per seat and may not exceed "
            "available treaty capacity.",
        ),
        GuidelineEntry(
            GUIDELINE_DOC,
            156,
            "Airport Safety & Weather Zones",
            "Base airports are rated on accident history, hangar facilities and exposure to "
            "hurricane and severe weather zones.",
        ),
        GuidelineEntry(
            GUIDELINE_DOC,
            198,
            "Geopolitical & Sanction Compliance",
            "No cover may be bound for operations into sanctioned territories. Conflict-zone "
            "operations require war-risk review.",
        ),
    ),
    precedents=(
        PrecedentRecord("AV-2019-0342", "Gulfstream G650 corporate hull", "Similar G650, zero losses", ("hull", "gulfstream")),
        PrecedentRecord("AV-2020-1045", "Low hour pilot on large cabin jet", "Low-hour pilot loss - $2.3M", ("pilot",)),
        PrecedentRecord("AV-2017-0419", "Experienced pilot corporate fleet", "No pilot-error losses", ("pilot",)),
        PrecedentRecord(
            "AV-2018-0876",
            "Delayed engine overhaul",
            "Engine failure due to delayed overhaul - $4.1M",
            ("maintenance", "overhaul"),
        ),
        PrecedentRecord("AV-2021-0654", "TEB based fleet", "No losses for TEB-based fleet", ("ground", "teb")),
        PrecedentRecord("AV-2022-0234", "Corporate liability G650", "Similar corporate G650 - zero exposure", ("liability", "corporate")),
        PrecedentRecord("AV-2023-0112", "Domestic fleet operations", "Domestic fleet - excellent loss history", ("geopolitical", "domestic")),
        PrecedentRecord("AV-2022-0871", "International operations charter", "War-risk claim - $6.8M", ("geopolitical", "international")),
    ),
    exposure_categories=(
        ExposureCategory("TEB Hull Value", 285_000_000, 500_000_000),
        ExposureCategory("G-Series Aircraft Concentration", 156_000_000, 250_000_000),
        ExposureCategory("Corporate Use Liability", 1_200_000_000, 1_500_000_000),
        ExposureCategory("New York Metro Exposure", 450_000_000, 600_000_000),
    ),
)
