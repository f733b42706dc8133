"""Rules-based portfolio evaluators: risk analyst, growth strategist, sector balance.

Holdings arrive as a list of ``{symbol, sector, value, volatility,
expected_growth}`` objects.  Every evaluator works on position weights
(value / total value), so the absolute size of the portfolio does not
change a verdict.
"""

from __future__ import annotations

import math
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, model_validator

from quorum_ai.evaluators.base import Assessment, BaseEvaluator, EvaluationContext, clamp_score
from quorum_ai.models import Suggestion, thaw
from quorum_ai.synthesis.recommendations import impact_from_score

GUIDELINE_DOC = "INV-POLICY"


class Position(BaseModel):
    model_config = ConfigDict(frozen=True, allow_inf_nan=False)

    symbol: str = "?"
    sector: str = "Unclassified"
    value: float = Field(default=0.0, ge=0)
    volatility: float = Field(default=0.0, ge=0)
    expected_growth: float = 0.0


class PortfolioInput(BaseModel):
    """The ``holdings`` bag plus optional per-case ``objectives``."""

    model_config = ConfigDict(allow_inf_nan=False)

    holdings: list[Position] = Field(min_length=1)
    objectives: dict[str, float] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _positive_total(self) -> PortfolioInput:
        if self.total <= 0:
            raise ValueError("Portfolio total value must be positive")
        return self

    @property
    def total(self) -> float:
        return math.fsum(p.value for p in self.holdings)


def load_positions(attributes: Mapping[str, Any]) -> tuple[list[Position], float]:
    """Parse the ``holdings`` bag into positions and the portfolio total.

    Raises:
        pydantic.ValidationError: The bag is empty, malformed, or sums to zero.
    """
    portfolio = PortfolioInput.model_validate(thaw(attributes))
    return list(portfolio.holdings), portfolio.total


def sector_weights(positions: list[Position], total: float) -> dict[str, float]:
    """Sector weights, largest first (name breaks ties)."""
    sums: dict[str, list[float]] = {}
    for p in positions:
        sums.setdefault(p.sector, []).append(p.value)
    weights = {sector: math.fsum(values) / total for sector, values in sums.items()}
    return dict(sorted(weights.items(), key=lambda kv: (-kv[1], kv[0])))


def _objective(portfolio: PortfolioInput, context: EvaluationContext, name: str, default: float) -> float:
    """Case-level objective overrides the registry param, which overrides the default."""
    return float(portfolio.objectives.get(name, context.param(name, default)))


class RiskAnalystEvaluator(BaseEvaluator):
    """Single-position concentration and weighted volatility."""

    capability = "holdings"
    input_model = PortfolioInput

    async def evaluate(self, attributes: Mapping[str, Any], context: EvaluationContext) -> Assessment:
        portfolio = self.parse(attributes)
        positions, total = portfolio.holdings, portfolio.total
        max_position = _objective(portfolio, context, "max_position", 0.15)
        target_volatility = _objective(portfolio, context, "target_volatility", 0.20)

        volatility = math.fsum(p.value * p.volatility for p in positions) / total
        overweight = sorted(
            ((p, p.value / total) for p in positions if p.value / total > max_position),
            key=lambda pw: (-pw[1], pw[0].symbol),
        )
        concentration_excess = math.fsum(w - max_position for _, w in overweight)
        volatility_excess = max(0.0, volatility - target_volatility)
        score = clamp_score(0.1 + 2.0 * concentration_excess + 1.5 * volatility_excess)

        factors = [f"Portfolio volatility {volatility:.1%} (target {target_volatility:.0%})"]
        suggestions: list[Suggestion] = []
        for position, weight in overweight:
            factors.append(f"{position.symbol} is {weight:.1%} of portfolio (limit {max_position:.0%})")
            suggestions.append(
                Suggestion(
                    text=f"Trim {position.symbol} to {max_position:.0%} of portfolio",
                    impact_rating=impact_from_score(clamp_score(0.25 + 2.0 * (weight - max_position))),
                    confidence=0.85,
                )
            )
        if volatility_excess > 0:
            suggestions.append(
                Suggestion(
                    text=f"Add low-volatility holdings to bring volatility under {target_volatility:.0%}",
                    impact_rating=impact_from_score(clamp_score(0.25 + 1.5 * volatility_excess)),
                    confidence=0.7,
                )
            )

        return Assessment(
            risk_score=score,
            reasoning=(
                f"{len(overweight)} position(s) above the {max_position:.0%} concentration limit; "
                f"weighted volatility {volatility:.1%}."
            ),
            key_factors=factors,
            citations=[await self.cite(context, GUIDELINE_DOC, 12)],
            precedents=await self.find_precedents(context, "concentrated position drawdown", tags=("risk",)),
            confidence=0.85,
            suggestions=suggestions,
        )


class GrowthStrategistEvaluator(BaseEvaluator):
    """Weighted expected growth against the growth objective."""

    capability = "holdings"
    input_model = PortfolioInput

    async def evaluate(self, attributes: Mapping[str, Any], context: EvaluationContext) -> Assessment:
        portfolio = self.parse(attributes)
        positions, total = portfolio.holdings, portfolio.total
        target_growth = _objective(portfolio, context, "target_growth", 0.08)

        growth = math.fsum(p.value * p.expected_growth for p in positions) / total
        gap = max(0.0, target_growth - growth)
        score = clamp_score(0.15 + 5.0 * gap)

        factors = [f"Expected growth {growth:.1%} (target {target_growth:.0%})"]
        suggestions: list[Suggestion] = []
        if gap > 0:
            laggard = min(positions, key=lambda p: (p.expected_growth, p.symbol))
            leader = max(positions, key=lambda p: (p.expected_growth, p.symbol))
            factors.append(f"{laggard.symbol} lowest expected growth at {laggard.expected_growth:.1%}")
            suggestions.append(
                Suggestion(
                    text=f"Rotate out of {laggard.symbol} into higher-growth holdings",
                    impact_rating=impact_from_score(score),
                    confidence=0.65,
                )
            )
            if leader.expected_growth > target_growth:
                suggestions.append(
                    Suggestion(
                        text=f"Increase allocation to {leader.sector}",
                        impact_rating=impact_from_score(clamp_score(score - 0.25)),
                        confidence=0.6,
                    )
                )

        return Assessment(
            risk_score=score,
            reasoning=f"Weighted expected growth {growth:.1%} against a {target_growth:.0%} objective.",
            key_factors=factors,
            citations=[await self.cite(context, GUIDELINE_DOC, 18)],
            precedents=await self.find_precedents(context, "growth shortfall", tags=("growth",)),
            confidence=0.7,
            suggestions=suggestions,
        )


class SectorBalanceEvaluator(BaseEvaluator):
    """Sector concentration and breadth of diversification."""

    capability = "holdings"
    input_model = PortfolioInput

    async def evaluate(self, attributes: Mapping[str, Any], context: EvaluationContext) -> Assessment:
        portfolio = self.parse(attributes)
        positions, total = portfolio.holdings, portfolio.total
        max_sector = _objective(portfolio, context, "max_sector", 0.35)
        min_sectors = int(_objective(portfolio, context, "min_sectors", 4))

        weights = sector_weights(positions, total)
        heavy = [(sector, w) for sector, w in weights.items() if w > max_sector]
        missing = max(0, min_sectors - len(weights))
        score = clamp_score(0.1 + 2.0 * math.fsum(w - max_sector for _, w in heavy) + 0.1 * missing)

        factors = [f"{len(weights)} sector(s) held (minimum {min_sectors})"]
        suggestions: list[Suggestion] = []
        for sector, weight in heavy:
            factors.append(f"{sector} is {weight:.1%} of portfolio (limit {max_sector:.0%})")
            suggestions.append(
                Suggestion(
                    text=f"Reduce {sector} exposure below {max_sector:.0%}",
                    impact_rating=impact_from_score(clamp_score(0.25 + 2.0 * (weight - max_sector))),
                    confidence=0.8,
                )
            )
        if missing:
            suggestions.append(
                Suggestion(
                    text=f"Diversify into at least {min_sectors} sectors",
                    impact_rating=impact_from_score(clamp_score(0.1 * missing + 0.25)),
                    confidence=0.75,
                )
            )

        return Assessment(
            risk_score=score,
            reasoning=(
                f"Largest sector {next(iter(weights))} at {next(iter(weights.values())):.1%}; "
                f"{len(weights)} sector(s) represented."
            ),
            key_factors=factors,
            citations=[await self.cite(context, GUIDELINE_DOC, 24)],
            precedents=await self.find_precedents(context, "sector concentration", tags=("sector",)),
            confidence=0.8,
            suggestions=suggestions,
        )
