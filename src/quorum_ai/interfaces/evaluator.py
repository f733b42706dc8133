"""Evaluator collaborator protocol."""

from __future__ import annotations

from typing import Any, Mapping, Protocol, runtime_checkable

from quorum_ai.evaluators.base import Assessment, EvaluationContext


@runtime_checkable
class IEvaluator(Protocol):
    """An independent scoring unit for one risk/analysis dimension.

    Must finish or tolerate cancellation within the configured timeout and
    must not keep references to *attributes* after returning.
    """

    async def evaluate(
        self,
        attributes: Mapping[str, Any],
        context: EvaluationContext,
    ) -> Assessment:
        """Score the case attributes. Any exception degrades the verdict."""
        ...
