"""Evaluator contracts and registries.

Usage::

    from quorum_ai.evaluators import RegistryCatalog
    catalog = RegistryCatalog()
    catalog.register_domains(domains.list_domains())
    registry = catalog.get("aviation-default")
"""

from __future__ import annotations

from quorum_ai.evaluators.base import Assessment, BaseEvaluator, EvaluationContext
from quorum_ai.evaluators.registry import (
    EvaluatorRegistry,
    EvaluatorSpec,
    RegistryCatalog,
)

__all__ = [
    "Assessment",
    "BaseEvaluator",
    "EvaluationContext",
    "EvaluatorRegistry",
    "EvaluatorSpec",
    "RegistryCatalog",
]
