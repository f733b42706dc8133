"""quorum-ai: multi-perspective decision synthesis for underwriting and portfolio cases.

Independent evaluators score a case concurrently; their verdicts are combined
into one auditable decision, and the case's proposed exposure is checked
against a shared ledger::

    from quorum_ai import AppSettings, Case, build_service

    service = build_service(AppSettings())
    report = await service.evaluate_case(case, "aviation-default")
    print(report.synthesis.decision, report.exposure.worst_status)
"""

from __future__ import annotations

from quorum_ai.core.config import AppSettings
from quorum_ai.dispatch import DispatchCoordinator
from quorum_ai.evaluators import BaseEvaluator, EvaluatorRegistry, EvaluatorSpec, RegistryCatalog
from quorum_ai.ledger import ExposureLedger, ThresholdMonitor, check_thresholds
from quorum_ai.models import Case, CaseType, Decision, RiskLabel, SynthesisResult, Verdict, label_for_score
from quorum_ai.services.assembler import CaseReport
from quorum_ai.services.decision_service import DecisionService, build_service
from quorum_ai.synthesis import SynthesisEngine

__version__ = "0.1.0"

__all__ = [
    "AppSettings",
    "BaseEvaluator",
    "Case",
    "CaseReport",
    "CaseType",
    "Decision",
    "DecisionService",
    "DispatchCoordinator",
    "EvaluatorRegistry",
    "EvaluatorSpec",
    "ExposureLedger",
    "RegistryCatalog",
    "RiskLabel",
    "SynthesisEngine",
    "SynthesisResult",
    "ThresholdMonitor",
    "Verdict",
    "build_service",
    "check_thresholds",
    "label_for_score",
]
