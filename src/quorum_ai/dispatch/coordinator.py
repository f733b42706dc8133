"""Dispatch coordinator: fan a case out to every registered evaluator.

Each evaluator runs concurrently against the same frozen case snapshot and
is bounded by a per-evaluator timeout; the whole fan-out is bounded by an
overall deadline.  A timeout or error in one evaluator becomes a degraded
verdict for that evaluator only; siblings keep running.

The coordinator holds no per-case state between calls, so one instance can
dispatch many cases concurrently.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Callable, Optional

from quorum_ai.evaluators.base import Assessment, EvaluationContext, describe_input_error
from quorum_ai.exceptions import (
    EmptyRegistryError,
    EvaluatorError,
    EvaluatorTimeoutError,
    InvalidCaseInputError,
)
from quorum_ai.models import Case, Verdict

if TYPE_CHECKING:
    from quorum_ai.core.config import DispatchConfig
    from quorum_ai.evaluators.registry import EvaluatorRegistry, EvaluatorSpec
    from quorum_ai.interfaces.reference import IGuidelineStore, IPrecedentStore

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluatorEvent:
    """Progress notification emitted as each evaluator finishes."""

    case_id: str
    evaluator_id: str
    outcome: str  # completed | timeout | error | deadline
    completed: int
    total: int
    duration_ms: float


@dataclass(frozen=True)
class DispatchOutcome:
    """Verdicts collected for one case, in registration order."""

    case_id: str
    registry_id: str
    verdicts: tuple[Verdict, ...]
    quorum_met: bool
    quorum_threshold: float

    @property
    def total(self) -> int:
        return len(self.verdicts)

    @property
    def responded(self) -> int:
        return sum(1 for v in self.verdicts if not v.degraded)

    @property
    def missing_evaluators(self) -> list[str]:
        return [v.evaluator_id for v in self.verdicts if v.degraded]


def quorum_met(responded: int, total: int, threshold: float) -> bool:
    """``responded / total >= threshold``; an empty set never meets quorum."""
    if total <= 0:
        return False
    return responded / total >= threshold


class DispatchCoordinator:
    """Runs a registry's evaluators concurrently against one case."""

    def __init__(
        self,
        guidelines: IGuidelineStore,
        precedents: IPrecedentStore,
        *,
        per_evaluator_timeout: float = 5.0,
        overall_timeout: float = 30.0,
        quorum_threshold: float = 0.8,
        max_concurrent: int = 16,
    ) -> None:
        self._guidelines = guidelines
        self._precedents = precedents
        self._per_evaluator_timeout = per_evaluator_timeout
        self._overall_timeout = overall_timeout
        self._quorum_threshold = quorum_threshold
        self._max_concurrent = max_concurrent

    @classmethod
    def from_config(
        cls,
        config: DispatchConfig,
        guidelines: IGuidelineStore,
        precedents: IPrecedentStore,
    ) -> DispatchCoordinator:
        return cls(
            guidelines,
            precedents,
            per_evaluator_timeout=config.per_evaluator_timeout,
            overall_timeout=config.overall_timeout,
            quorum_threshold=config.quorum_threshold,
            max_concurrent=config.max_concurrent,
        )

    @property
    def quorum_threshold(self) -> float:
        return self._quorum_threshold

    def validate(self, case: Case, registry: EvaluatorRegistry) -> None:
        """Reject a case that cannot be dispatched against *registry*.

        Raises:
            EmptyRegistryError: The registry has no evaluators.
            InvalidCaseInputError: Case type mismatch, a missing attribute bag,
                or a bag some evaluator cannot parse.
        """
        if len(registry) == 0:
            raise EmptyRegistryError(
                f"Registry {registry.registry_id!r} has no evaluators for "
                f"case type {registry.case_type.value}"
            )
        if case.case_type is not registry.case_type:
            raise InvalidCaseInputError(
                f"Case {case.case_id!r} is {case.case_type.value} but registry "
                f"{registry.registry_id!r} scores {registry.case_type.value} cases"
            )
        missing = [bag for bag in registry.capabilities if bag not in case.attributes]
        if missing:
            raise InvalidCaseInputError(
                f"Case {case.case_id!r} is missing attribute bag(s): {', '.join(missing)}"
            )
        for spec in registry:
            # Only evaluators that declare an input model can be checked up front
            parse = getattr(registry.evaluator(spec.evaluator_id), "parse", None)
            if parse is None:
                continue
            try:
                parse(case.attributes)
            except ValueError as exc:
                raise InvalidCaseInputError(
                    f"Case {case.case_id!r} rejected by {spec.evaluator_id}: {describe_input_error(exc)}"
                ) from exc

    async def dispatch(
        self,
        case: Case,
        registry: EvaluatorRegistry,
        *,
        per_evaluator_timeout: float | None = None,
        on_progress: Optional[Callable[[EvaluatorEvent], None]] = None,
    ) -> DispatchOutcome:
        """Run every evaluator in *registry* against *case*.

        Returns all verdicts (degraded ones included) and whether quorum
        was met.  Never raises for evaluator-local failures.
        """
        self.validate(case, registry)

        timeout = self._per_evaluator_timeout if per_evaluator_timeout is None else per_evaluator_timeout
        total = len(registry)
        sem = asyncio.Semaphore(self._max_concurrent)
        results: dict[str, Verdict] = {}
        started_at: dict[str, float] = {}

        def _record(spec: EvaluatorSpec, verdict: Verdict, outcome: str) -> None:
            results[spec.evaluator_id] = verdict
            elapsed = (time.monotonic() - started_at.get(spec.evaluator_id, time.monotonic())) * 1000
            if on_progress is None:
                return
            event = EvaluatorEvent(
                case_id=case.case_id,
                evaluator_id=spec.evaluator_id,
                outcome=outcome,
                completed=len(results),
                total=total,
                duration_ms=elapsed,
            )
            try:
                on_progress(event)
            except Exception:
                log.exception("Progress callback failed for %s", spec.evaluator_id)

        async def _run(spec: EvaluatorSpec) -> None:
            async with sem:
                started_at[spec.evaluator_id] = time.monotonic()
                verdict, outcome = await self._evaluate_one(case, registry, spec, timeout)
            _record(spec, verdict, outcome)

        tasks = {asyncio.ensure_future(_run(spec)): spec for spec in registry}
        _done, pending = await asyncio.wait(tasks, timeout=self._overall_timeout)

        if pending:
            for task in pending:
                task.cancel()
            await asyncio.gather(*pending, return_exceptions=True)
            for task in pending:
                spec = tasks[task]
                if spec.evaluator_id in results:
                    continue
                log.warning(
                    "Evaluator %s abandoned at dispatch deadline (%.1fs) for case %s",
                    spec.evaluator_id,
                    self._overall_timeout,
                    case.case_id,
                )
                _record(
                    spec,
                    Verdict.degraded_for(spec.evaluator_id, case.case_type, "dispatch deadline exceeded"),
                    "deadline",
                )

        verdicts = tuple(results[spec.evaluator_id] for spec in registry)
        responded = sum(1 for v in verdicts if not v.degraded)
        met = quorum_met(responded, total, self._quorum_threshold)
        if not met:
            log.warning(
                "Quorum not met for case %s: %d/%d responded (threshold %.2f)",
                case.case_id,
                responded,
                total,
                self._quorum_threshold,
            )
        else:
            log.info("Dispatch complete for case %s: %d/%d responded", case.case_id, responded, total)

        return DispatchOutcome(
            case_id=case.case_id,
            registry_id=registry.registry_id,
            verdicts=verdicts,
            quorum_met=met,
            quorum_threshold=self._quorum_threshold,
        )

    async def _evaluate_one(
        self,
        case: Case,
        registry: EvaluatorRegistry,
        spec: EvaluatorSpec,
        timeout: float,
    ) -> tuple[Verdict, str]:
        """Run one evaluator; any failure is recovered as a degraded verdict."""
        context = EvaluationContext(
            evaluator_id=spec.evaluator_id,
            display_name=spec.display_name,
            case_id=case.case_id,
            case_type=case.case_type,
            guidelines=self._guidelines,
            precedents=self._precedents,
            params=spec.params,
        )
        evaluator = registry.evaluator(spec.evaluator_id)
        try:
            assessment = await asyncio.wait_for(
                evaluator.evaluate(case.attributes, context),
                timeout=timeout,
            )
            return self._to_verdict(spec, case, assessment), "completed"
        except asyncio.TimeoutError:
            err: EvaluatorError = EvaluatorTimeoutError(spec.evaluator_id, timeout)
            log.warning("%s (case %s)", err, case.case_id)
            return Verdict.degraded_for(spec.evaluator_id, case.case_type, "timeout"), "timeout"
        except Exception as exc:
            err = EvaluatorError(spec.evaluator_id, f"{type(exc).__name__}: {exc}")
            log.warning("%s (case %s)", err, case.case_id)
            return (
                Verdict.degraded_for(spec.evaluator_id, case.case_type, f"error: {type(exc).__name__}: {exc}"),
                "error",
            )

    @staticmethod
    def _to_verdict(spec: EvaluatorSpec, case: Case, assessment: Assessment) -> Verdict:
        """Stamp identity and time onto an assessment. Raises on contract violations."""
        if not isinstance(assessment, Assessment):
            raise TypeError(
                f"Evaluator returned {type(assessment).__name__}, expected Assessment"
            )
        return Verdict(
            evaluator_id=spec.evaluator_id,
            case_type=case.case_type,
            risk_score=assessment.risk_score,
            produced_at=datetime.now(timezone.utc),
            reasoning=assessment.reasoning,
            key_factors=tuple(assessment.key_factors),
            citations=tuple(assessment.citations),
            precedents=tuple(assessment.precedents),
            confidence=assessment.confidence,
            suggestions=tuple(assessment.suggestions),
        )
