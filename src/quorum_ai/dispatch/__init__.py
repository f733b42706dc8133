"""Evaluator fan-out with per-evaluator timeouts and quorum tracking."""

from __future__ import annotations

from quorum_ai.dispatch.coordinator import (
    DispatchCoordinator,
    DispatchOutcome,
    EvaluatorEvent,
    quorum_met,
)

__all__ = ["DispatchCoordinator", "DispatchOutcome", "EvaluatorEvent", "quorum_met"]
