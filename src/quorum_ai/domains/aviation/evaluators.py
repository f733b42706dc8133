"""Rules-based aviation underwriting evaluators.

Each evaluator reads one attribute bag of the submission, scores it on the
[0, 1] risk scale, and cites the guideline page it applied.  Thresholds come
from the evaluator's registry ``params`` so a registry file can tune them
without code changes.
"""

from __future__ import annotations

from typing import Any, Mapping

from quorum_ai.domains.aviation.inputs import (
    GeopoliticalInput,
    GroundInput,
    HullInput,
    LiabilityInput,
    MaintenanceInput,
    PilotInput,
)
from quorum_ai.evaluators.base import Assessment, BaseEvaluator, EvaluationContext, clamp_score

GUIDELINE_DOC = "AVN-UW-GUIDE"


def _millions(value: float) -> str:
    return f"${value / 1_000_000:,.1f}M"


class HullRiskEvaluator(BaseEvaluator):
    """Airframe age and insured hull value."""

    capability = "aircraft"
    input_model = HullInput

    async def evaluate(self, attributes: Mapping[str, Any], context: EvaluationContext) -> Assessment:
        aircraft = self.parse(attributes).aircraft
        year = aircraft.year
        value = aircraft.value
        reference_year = int(context.param("reference_year", 2025))
        max_hull_value = float(context.param("max_hull_value", 60_000_000))
        max_age = int(context.param("max_age", 40))

        age = max(0, reference_year - year)
        score = 0.05 + 0.01 * min(age, max_age)
        factors = [f"{age}-year-old airframe", f"Hull value {_millions(value)}"]
        if age >= max_age:
            score += 0.2
            factors.append(f"Airframe beyond {max_age}-year age limit")
        if value > max_hull_value:
            score += 0.2
            factors.append(f"Hull value above {_millions(max_hull_value)} line limit")

        make_model = f"{aircraft.make} {aircraft.model}".strip()
        return Assessment(
            risk_score=clamp_score(score),
            reasoning=f"{year} {make_model or 'aircraft'} insured at {_millions(value)}; airframe age {age} years.",
            key_factors=factors,
            citations=[await self.cite(context, GUIDELINE_DOC, 47)],
            precedents=await self.find_precedents(context, make_model, tags=("hull",)),
            confidence=0.9,
        )


class PilotQualificationEvaluator(BaseEvaluator):
    """Total and on-type hours against minimums, plus required endorsements."""

    capability = "pilot"
    input_model = PilotInput

    async def evaluate(self, attributes: Mapping[str, Any], context: EvaluationContext) -> Assessment:
        pilot = self.parse(attributes).pilot
        total_hours = pilot.total_hours
        type_hours = pilot.type_hours
        min_total = float(context.param("min_total_hours", 500))
        min_type = float(context.param("min_type_hours", 100))
        required = [str(e) for e in context.param("required_endorsements", ("high-altitude",))]
        held = {e.lower() for e in pilot.endorsements}

        score = 0.15
        factors: list[str] = []
        if total_hours < min_total:
            score += 0.3
            factors.append(f"{total_hours:,.0f} total hours ({min_total:,.0f} required)")
        if type_hours < min_type:
            score += 0.3
            factors.append(f"{type_hours:,.0f} hours on type ({min_type:,.0f} required)")
        for endorsement in required:
            if endorsement.lower() not in held:
                score += 0.05
                factors.append(f"No {endorsement} endorsement")
        if not factors:
            if total_hours >= 2 * min_total:
                score = 0.1
            factors.append(f"{total_hours:,.0f} total hours, {type_hours:,.0f} on type")

        shortfall = total_hours < min_total or type_hours < min_type
        reasoning = (
            f"Pilot has {total_hours:,.0f} total hours with {type_hours:,.0f} on type; "
            f"minimum is {min_total:,.0f} total and {min_type:,.0f} on type."
        )
        return Assessment(
            risk_score=clamp_score(score),
            reasoning=reasoning,
            key_factors=factors,
            citations=[await self.cite(context, GUIDELINE_DOC, 52)],
            precedents=await self.find_precedents(
                context,
                "low hour pilot" if shortfall else "experienced pilot",
                tags=("pilot",),
            ),
            confidence=0.95,
        )


class MaintenanceAgingEvaluator(BaseEvaluator):
    """Engine overhaul timing, engine hours, and service arrangements."""

    capability = "maintenance"
    input_model = MaintenanceInput

    async def evaluate(self, attributes: Mapping[str, Any], context: EvaluationContext) -> Assessment:
        maintenance = self.parse(attributes).maintenance
        months = maintenance.months_to_overhaul
        engine_hours = maintenance.engine_hours
        service_center = maintenance.service_center
        high_engine_hours = float(context.param("high_engine_hours", 3000))

        score = 0.15
        factors: list[str] = []
        if months <= 0:
            score += 0.6
            factors.append("Engine overhaul overdue")
        elif months <= 6:
            score += 0.3
            factors.append(f"Overhaul due in {months:.0f} months")
        elif months <= 12:
            score += 0.1
            factors.append(f"Overhaul due in {months:.0f} months")
        if engine_hours > high_engine_hours:
            score += 0.1
            factors.append(f"{engine_hours:,.0f} engine hours (above {high_engine_hours:,.0f})")
        elif engine_hours:
            factors.append(f"{engine_hours:,.0f} total engine hours")
        if service_center:
            factors.append(f"Established service center ({service_center})")
        else:
            score += 0.1
            factors.append("No established service center")

        return Assessment(
            risk_score=clamp_score(score),
            reasoning=(
                f"Engine overhaul due in {months:.0f} months"
                + (f", serviced at {service_center}." if service_center else "; no service center on file.")
            ),
            key_factors=factors,
            citations=[await self.cite(context, GUIDELINE_DOC, 89)],
            precedents=await self.find_precedents(context, "engine overhaul", tags=("maintenance",)),
            confidence=0.85,
        )


_AIRPORT_RISK = {"TEB": 0.2, "JFK": 0.3, "LAX": 0.3, "HPN": 0.2, "VNY": 0.25}


class GroundRiskEvaluator(BaseEvaluator):
    """Base airport safety record and weather exposure."""

    capability = "operations"
    input_model = GroundInput

    async def evaluate(self, attributes: Mapping[str, Any], context: EvaluationContext) -> Assessment:
        operations = self.parse(attributes).operations
        airport = operations.base_airport.upper()
        airport_risk = {**_AIRPORT_RISK, **dict(context.param("airport_risk", {}))}
        score = float(airport_risk.get(airport, context.param("default_airport_risk", 0.35)))

        factors = [f"{airport} base airport rating {score:.2f}"]
        if operations.hurricane_exposure:
            score += 0.15
            factors.append("Hurricane exposure at base")
        else:
            factors.append("Low hurricane exposure")

        return Assessment(
            risk_score=clamp_score(score),
            reasoning=f"Based at {airport}; ground and weather risk assessed against airport safety zones.",
            key_factors=factors,
            citations=[await self.cite(context, GUIDELINE_DOC, 156)],
            precedents=await self.find_precedents(context, f"{airport} based fleet", tags=("ground",)),
            confidence=0.8,
        )


_USE_RISK = {"private": 0.15, "corporate": 0.25, "cargo": 0.35, "charter": 0.45, "training": 0.5}


class LiabilityRiskEvaluator(BaseEvaluator):
    """Intended use, seating, and requested liability limit."""

    capability = "operations"
    input_model = LiabilityInput

    async def evaluate(self, attributes: Mapping[str, Any], context: EvaluationContext) -> Assessment:
        operations = self.parse(attributes).operations
        use = operations.intended_use
        seats = operations.seats
        limit = operations.liability_limit
        per_seat_min = float(context.param("per_seat_limit", 5_000_000))
        max_limit = float(context.param("max_liability_limit", 250_000_000))

        score = _USE_RISK.get(use.lower(), 0.4)
        factors = [f"{use or 'Unspecified'} use"]
        if seats:
            score += 0.01 * min(max(0, seats - 4), 15)
            factors.append(f"{seats}-seat configuration")
        if limit and seats and limit < seats * per_seat_min:
            score += 0.2
            factors.append(f"Liability limit {_millions(limit)} below {_millions(seats * per_seat_min)} seat minimum")
        elif limit > max_limit:
            score += 0.2
            factors.append(f"Requested limit {_millions(limit)} above {_millions(max_limit)} capacity")
        elif limit:
            factors.append("Liability limits appropriate")

        return Assessment(
            risk_score=clamp_score(score),
            reasoning=f"{use or 'Unspecified'} use with {seats} seats; requested limit {_millions(limit)}.",
            key_factors=factors,
            citations=[await self.cite(context, GUIDELINE_DOC, 121)],
            precedents=await self.find_precedents(context, f"{use} liability", tags=("liability",)),
            confidence=0.85,
        )


_SANCTIONED = ("Belarus", "Cuba", "Iran", "North Korea", "Russia", "Syria")
_HIGH_RISK = ("Afghanistan", "Iraq", "Libya", "Ukraine", "Venezuela", "Yemen")


class GeopoliticalRiskEvaluator(BaseEvaluator):
    """Operating regions against sanction and conflict-zone lists."""

    capability = "operations"
    input_model = GeopoliticalInput

    async def evaluate(self, attributes: Mapping[str, Any], context: EvaluationContext) -> Assessment:
        regions = self.parse(attributes).operations.regions
        sanctioned = {s.lower() for s in context.param("sanctioned_regions", _SANCTIONED)}
        high_risk = {s.lower() for s in context.param("high_risk_regions", _HIGH_RISK)}
        home = str(context.param("home_region", "US")).lower()

        hits_sanctioned = [r for r in regions if r.lower() in sanctioned]
        hits_high_risk = [r for r in regions if r.lower() in high_risk]
        international = any(r.lower() != home for r in regions)

        score = 0.15
        factors: list[str] = []
        if hits_sanctioned:
            score = 0.95
            factors.append(f"Sanctioned region exposure: {', '.join(hits_sanctioned)}")
        if hits_high_risk:
            score += 0.2 * len(hits_high_risk)
            factors.append(f"Conflict-zone exposure: {', '.join(hits_high_risk)}")
        if international and not (hits_sanctioned or hits_high_risk):
            score += 0.05
            factors.append("International operations")
        if not factors:
            factors.append(f"{home.upper()} domestic only")

        return Assessment(
            risk_score=clamp_score(score),
            reasoning=(
                f"Operating regions: {', '.join(regions) or 'none declared'}; "
                f"{'sanction-affected' if hits_sanctioned else 'no sanction-affected'} exposure."
            ),
            key_factors=factors,
            citations=[await self.cite(context, GUIDELINE_DOC, 198)],
            precedents=await self.find_precedents(
                context,
                "domestic fleet" if not international else "international operations",
                tags=("geopolitical",),
            ),
            confidence=0.9,
        )
