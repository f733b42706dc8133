"""End-to-end tests for DecisionService: thresholds, dispatch, synthesis, commit."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from quorum_ai.core.config import AppSettings, LedgerConfig, RegistryConfig
from quorum_ai.dispatch.coordinator import EvaluatorEvent
from quorum_ai.exceptions import (
    InsufficientQuorumError,
    InvalidCaseInputError,
    LedgerContentionError,
    RegistryNotFoundError,
)
from quorum_ai.ledger.models import ThresholdStatus
from quorum_ai.models import Case, Decision, OverrideRule
from quorum_ai.services.decision_service import DecisionService, build_service

_FLAKY_REGISTRY = """\
registries:
  - registry_id: aviation-flaky
    case_type: Underwriting
    evaluators:
      - evaluator_id: hull_risk
        display_name: Hull Risk
        capability: aircraft
        evaluator: quorum_ai.domains.aviation.evaluators:HullRiskEvaluator
      - evaluator_id: broken
        display_name: Broken Model
        evaluator: tests.fakes.fake_evaluators:RaisingEvaluator
"""


@pytest.fixture
def service(settings: AppSettings) -> DecisionService:
    return build_service(settings)


class TestEvaluateCase:
    @pytest.mark.asyncio
    async def test_sub_001_without_commit(self, service: DecisionService, aviation_case: dict) -> None:
        version = service.ledger.version
        report = await service.evaluate_case(Case.from_dict(aviation_case), "aviation-default")

        result = report.synthesis
        assert result.deal_score == pytest.approx(389 / 6)
        assert result.decision is Decision.CONDITIONAL_ACCEPT
        assert result.override is OverrideRule.RED_VERDICT_CAP
        assert [c.category for c in report.exposure.checks] == [
            "TEB Hull Value",
            "G-Series Aircraft Concentration",
            "Corporate Use Liability",
            "New York Metro Exposure",
        ]
        assert report.exposure.worst_status is ThresholdStatus.COMPLIANT
        assert report.committed == ()
        assert service.ledger.version == version

        stages = [s.stage for s in report.analytics.stages]
        assert stages == ["thresholds", "dispatch", "synthesis", "assembly"]
        assert report.analytics.status == "completed"
        assert report.analytics.stage("dispatch").success_count == 6

    @pytest.mark.asyncio
    async def test_commit_accepted_case(self, service: DecisionService, aviation_case: dict) -> None:
        version = service.ledger.version
        report = await service.evaluate_case(Case.from_dict(aviation_case), "aviation-default", commit=True)

        assert len(report.committed) == 4
        assert service.ledger.version == version + 1
        assert [e.case_id for e in service.ledger.history()] == ["SUB-001"] * 4
        after = service.check_exposure("SUB-001", {}, requested=["Corporate Use Liability"])
        assert after.checks[0].current_exposure == 1_300_000_000
        assert "commit" in [s.stage for s in report.analytics.stages]

    @pytest.mark.asyncio
    async def test_declined_case_never_commits(self, service: DecisionService, aviation_case: dict) -> None:
        aviation_case["attributes"]["operations"]["regions"] = ["US", "North Korea"]
        version = service.ledger.version
        report = await service.evaluate_case(Case.from_dict(aviation_case), "aviation-default", commit=True)

        assert report.synthesis.decision is Decision.DECLINE
        assert report.committed == ()
        assert service.ledger.version == version

    @pytest.mark.asyncio
    async def test_portfolio_case(self, service: DecisionService, portfolio_case: dict) -> None:
        report = await service.evaluate_case(Case.from_dict(portfolio_case), "portfolio-default")
        assert report.synthesis.health_score is not None
        assert report.synthesis.prioritized_suggestions
        assert report.exposure.checks[0].category == "Technology Sector Allocation"

    @pytest.mark.asyncio
    async def test_progress_events(self, service: DecisionService, aviation_case: dict) -> None:
        events: list[EvaluatorEvent] = []
        await service.evaluate_case(Case.from_dict(aviation_case), "aviation-default", on_progress=events.append)
        assert len(events) == 6
        assert max(e.completed for e in events) == 6

    @pytest.mark.asyncio
    async def test_concurrent_commits_detect_stale_reads(self, service: DecisionService, aviation_case: dict) -> None:
        first = Case.from_dict(aviation_case)
        second = Case.from_dict({**aviation_case, "case_id": "SUB-002"})
        results = await asyncio.gather(
            service.evaluate_case(first, "aviation-default", commit=True),
            service.evaluate_case(second, "aviation-default", commit=True),
            return_exceptions=True,
        )

        errors = [r for r in results if isinstance(r, BaseException)]
        assert len(errors) == 1
        assert isinstance(errors[0], LedgerContentionError)
        assert len(service.ledger.history()) == 4

    @pytest.mark.asyncio
    async def test_concurrent_commits_on_disjoint_categories_both_land(
        self, service: DecisionService, aviation_case: dict
    ) -> None:
        version = service.ledger.version
        first = Case.from_dict({**aviation_case, "proposed_deltas": {"TEB Hull Value": 45_000_000}})
        second = Case.from_dict(
            {**aviation_case, "case_id": "SUB-002", "proposed_deltas": {"New York Metro Exposure": 45_000_000}}
        )
        reports = await asyncio.gather(
            service.evaluate_case(first, "aviation-default", commit=True),
            service.evaluate_case(second, "aviation-default", commit=True),
        )

        assert [len(r.committed) for r in reports] == [1, 1]
        assert service.ledger.version == version + 2
        assert sorted(e.case_id for e in service.ledger.history()) == ["SUB-001", "SUB-002"]


class TestRejectedBeforeDispatch:
    @pytest.mark.asyncio
    async def test_unknown_registry(self, service: DecisionService, aviation_case: dict) -> None:
        with pytest.raises(RegistryNotFoundError):
            await service.evaluate_case(Case.from_dict(aviation_case), "marine-default")

    @pytest.mark.asyncio
    async def test_unknown_ledger_category(self, service: DecisionService, aviation_case: dict) -> None:
        aviation_case["proposed_deltas"] = {"Marine Hull": 1.0}
        with pytest.raises(InvalidCaseInputError, match="Marine Hull"):
            await service.evaluate_case(Case.from_dict(aviation_case), "aviation-default")

    @pytest.mark.asyncio
    async def test_wrong_case_type(self, service: DecisionService, aviation_case: dict) -> None:
        with pytest.raises(InvalidCaseInputError):
            await service.evaluate_case(Case.from_dict(aviation_case), "portfolio-default")

    @pytest.mark.asyncio
    async def test_missing_pilot_hours_never_scored(self, service: DecisionService, aviation_case: dict) -> None:
        del aviation_case["attributes"]["pilot"]["total_hours"]
        version = service.ledger.version
        with pytest.raises(InvalidCaseInputError, match="pilot_qualification"):
            await service.evaluate_case(Case.from_dict(aviation_case), "aviation-default", commit=True)
        assert service.ledger.version == version

    @pytest.mark.asyncio
    async def test_empty_holdings(self, service: DecisionService, portfolio_case: dict) -> None:
        portfolio_case["attributes"]["holdings"] = []
        with pytest.raises(InvalidCaseInputError, match="holdings"):
            await service.evaluate_case(Case.from_dict(portfolio_case), "portfolio-default")


class TestQuorum:
    @pytest.mark.asyncio
    async def test_insufficient_quorum(self, settings: AppSettings, aviation_case: dict, tmp_path: Path) -> None:
        path = tmp_path / "registries.yaml"
        path.write_text(_FLAKY_REGISTRY)
        settings.registry = RegistryConfig(registry_file=path)
        service = build_service(settings)
        version = service.ledger.version

        with pytest.raises(InsufficientQuorumError) as exc_info:
            await service.evaluate_case(Case.from_dict(aviation_case), "aviation-flaky", commit=True)

        err = exc_info.value
        assert err.missing_evaluators == ["broken"]
        assert err.responded == 1
        assert [v.evaluator_id for v in err.verdicts] == ["hull_risk", "broken"]
        assert service.ledger.version == version


class TestBuildService:
    def test_ledger_from_file(self, settings: AppSettings, tmp_path: Path) -> None:
        path = tmp_path / "ledger.yaml"
        path.write_text("categories:\n  - name: Marine Hull\n    current_exposure: 10\n    limit: 100\n")
        settings.ledger = LedgerConfig(categories_file=path)
        service = build_service(settings)
        assert service.ledger.categories == ["Marine Hull"]

    def test_ledger_from_domains(self, service: DecisionService) -> None:
        assert len(service.ledger) == 8
        assert service.ledger.categories[0] == "TEB Hull Value"

    @pytest.mark.asyncio
    async def test_consult_disabled_by_default(self, service: DecisionService, aviation_case: dict) -> None:
        report = await service.evaluate_case(Case.from_dict(aviation_case), "aviation-default")
        reply = await service.consult(report.synthesis, "Why not a quote?")
        assert not reply.available
