"""JSON rendering of case reports for the API, the CLI, and consultation prompts.

Scores are rounded to two decimals here and nowhere else.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from quorum_ai.ledger.models import ExposureReport, LedgerEntry, ThresholdCheck
from quorum_ai.models import Recommendation, RunAnalytics, SynthesisResult, Verdict
from quorum_ai.services.assembler import CaseReport


def verdict_to_dict(verdict: Verdict) -> dict[str, Any]:
    return {
        "evaluator_id": verdict.evaluator_id,
        "case_type": verdict.case_type.value,
        "risk_score": verdict.risk_score,
        "label": verdict.label.value,
        "produced_at": verdict.produced_at.isoformat(),
        "reasoning": verdict.reasoning,
        "key_factors": list(verdict.key_factors),
        "citations": [
            {"document_id": c.document_id, "page": c.page, "title": c.title, "excerpt": c.excerpt}
            for c in verdict.citations
        ],
        "precedents": [{"record_id": p.record_id, "outcome": p.outcome} for p in verdict.precedents],
        "confidence": verdict.confidence,
        "suggestions": [
            {"text": s.text, "impact_rating": s.impact_rating, "confidence": s.confidence}
            for s in verdict.suggestions
        ],
        "degraded": verdict.degraded,
        "failure": verdict.failure,
    }


def recommendation_to_dict(item: Recommendation) -> dict[str, Any]:
    return {
        "text": item.text,
        "impact_rating": item.impact_rating,
        "confidence": round(item.confidence, 4),
        "supporting_evaluators": list(item.supporting_evaluators),
    }


def synthesis_to_dict(result: SynthesisResult) -> dict[str, Any]:
    return {
        "case_id": result.case_id,
        "case_type": result.case_type.value,
        "deal_score": round(result.deal_score, 2),
        "health_score": round(result.health_score, 2) if result.health_score is not None else None,
        "decision": result.decision.value,
        "numeric_decision": result.numeric_decision.value,
        "override": result.override.value if result.override else None,
        "reasoning": result.reasoning,
        "responded": result.responded,
        "total": result.total,
        "label_counts": result.label_counts(),
        "required_mitigations": [recommendation_to_dict(m) for m in result.required_mitigations],
        "prioritized_suggestions": [recommendation_to_dict(s) for s in result.prioritized_suggestions],
        "verdicts": [
            {
                **verdict_to_dict(entry.verdict),
                "evaluator_name": entry.evaluator_name,
                "weight": entry.weight,
                "included": entry.included,
                "exclusion_reason": entry.exclusion_reason,
            }
            for entry in result.audit
        ],
    }


def threshold_check_to_dict(check: ThresholdCheck) -> dict[str, Any]:
    return {
        "category": check.category,
        "current_exposure": check.current_exposure,
        "delta": check.delta,
        "proposed_exposure": check.proposed_exposure,
        "limit": check.limit,
        "ratio": round(check.ratio, 4),
        "status": check.status.value,
        "version": check.version,
    }


def exposure_to_dict(report: ExposureReport) -> dict[str, Any]:
    return {
        "case_id": report.case_id,
        "ledger_version": report.ledger_version,
        "worst_status": report.worst_status.value,
        "checks": [threshold_check_to_dict(c) for c in report.checks],
    }


def ledger_entry_to_dict(entry: LedgerEntry) -> dict[str, Any]:
    return {
        "case_id": entry.case_id,
        "category": entry.category,
        "delta": entry.delta,
        "resulting_exposure": entry.resulting_exposure,
        "version": entry.version,
        "committed_at": entry.committed_at.isoformat(),
    }


def analytics_to_dict(analytics: RunAnalytics) -> dict[str, Any]:
    return {
        "run_id": analytics.run_id,
        "status": analytics.status,
        "total_duration_ms": round(analytics.total_duration_ms, 2),
        "stages": [
            {
                "stage": s.stage,
                "duration_ms": round(s.duration_ms, 2),
                "success_count": s.success_count,
                "failure_count": s.failure_count,
                "detail": s.detail,
            }
            for s in analytics.stages
        ],
    }


def report_to_dict(report: CaseReport) -> dict[str, Any]:
    return {
        "status": report.status,
        "case_id": report.case_id,
        "registry_id": report.registry_id,
        "synthesis": synthesis_to_dict(report.synthesis),
        "exposure": exposure_to_dict(report.exposure),
        "committed": [ledger_entry_to_dict(e) for e in report.committed],
        "analytics": analytics_to_dict(report.analytics) if report.analytics else None,
    }


class JSONFormatter:
    """Renders a CaseReport as indented JSON bytes."""

    def format(self, report: CaseReport, **kwargs: Any) -> bytes:
        return json.dumps(report_to_dict(report), indent=kwargs.get("indent", 2), default=str).encode()

    def format_to_file(self, report: CaseReport, path: Path, **kwargs: Any) -> Path:
        """Write JSON to *path* and return it."""
        path.write_bytes(self.format(report, **kwargs))
        return path

    @property
    def content_type(self) -> str:
        return "application/json"
