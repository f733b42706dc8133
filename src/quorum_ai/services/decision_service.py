"""Decision service: the single entry point that evaluates a case end to end.

Stages, each tracked by the run tracker::

    validate -> thresholds -> dispatch -> synthesis -> [commit] -> assembly

Input problems (unknown registry, bad case, unknown ledger category) are
rejected before any evaluator runs.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Iterable, Mapping

from quorum_ai.dispatch.coordinator import DispatchCoordinator, EvaluatorEvent
from quorum_ai.domains.registry import DomainRegistry
from quorum_ai.evaluators.registry import RegistryCatalog
from quorum_ai.hooks.run_tracker import end_run, start_run, track_stage
from quorum_ai.ledger.ledger import ExposureLedger
from quorum_ai.ledger.monitor import ThresholdMonitor
from quorum_ai.reference import create_reference_stores
from quorum_ai.services.assembler import CaseReport, ResultAssembler
from quorum_ai.services.consultation import ConsultationReply, ConsultationService
from quorum_ai.synthesis.engine import SynthesisEngine

if TYPE_CHECKING:
    from quorum_ai.core.config import AppSettings
    from quorum_ai.core.types import ProgressCallback
    from quorum_ai.ledger.models import ExposureReport, LedgerEntry
    from quorum_ai.models import Case, Decision, SynthesisResult

log = logging.getLogger(__name__)


class DecisionService:
    """Orchestrates threshold checks, dispatch, synthesis, and assembly."""

    def __init__(
        self,
        catalog: RegistryCatalog,
        coordinator: DispatchCoordinator,
        engine: SynthesisEngine,
        monitor: ThresholdMonitor,
        *,
        assembler: ResultAssembler | None = None,
        consultation: ConsultationService | None = None,
    ) -> None:
        self._catalog = catalog
        self._coordinator = coordinator
        self._engine = engine
        self._monitor = monitor
        self._assembler = assembler or ResultAssembler()
        self._consultation = consultation or ConsultationService(None)

    @property
    def catalog(self) -> RegistryCatalog:
        return self._catalog

    @property
    def ledger(self) -> ExposureLedger:
        return self._monitor.ledger

    @property
    def monitor(self) -> ThresholdMonitor:
        return self._monitor

    async def evaluate_case(
        self,
        case: Case,
        registry_id: str,
        *,
        commit: bool = False,
        on_progress: ProgressCallback | None = None,
    ) -> CaseReport:
        """Evaluate *case* against registry *registry_id*.

        With ``commit=True`` an accepted decision also moves the case's
        deltas into the ledger, guarded by the category versions the
        threshold check read.  A declined case is never committed.

        Raises:
            RegistryNotFoundError, EmptyRegistryError, InvalidCaseInputError:
                Rejected before dispatch.
            InsufficientQuorumError: Too few evaluators responded.
            LedgerContentionError: The commit lost a race; safe to retry.
        """
        analytics = start_run(case_id=case.case_id)
        try:
            registry = self._catalog.get(registry_id)
            self._coordinator.validate(case, registry)

            with track_stage("thresholds") as stage:
                exposure = self._monitor.check(case.case_id, case.proposed_deltas)
                stage.success_count = len(exposure.checks)
                stage.detail["worst_status"] = exposure.worst_status.value

            with track_stage("dispatch") as stage:
                outcomes: dict[str, str] = {}

                def _on_event(event: EvaluatorEvent) -> None:
                    outcomes[event.evaluator_id] = event.outcome
                    if on_progress is not None:
                        on_progress(event)

                outcome = await self._coordinator.dispatch(case, registry, on_progress=_on_event)
                stage.success_count = outcome.responded
                stage.failure_count = outcome.total - outcome.responded
                stage.detail["evaluators"] = outcomes
                stage.detail["quorum_met"] = outcome.quorum_met

            with track_stage("synthesis") as stage:
                result = self._engine.synthesize(
                    case,
                    outcome.verdicts,
                    outcome.quorum_met,
                    registry,
                    quorum_threshold=self._coordinator.quorum_threshold,
                )
                stage.detail["decision"] = result.decision.value

            committed: list[LedgerEntry] = []
            if commit and result.decision.is_accepted:
                with track_stage("commit") as stage:
                    committed = await self.commit(
                        case.case_id,
                        case.proposed_deltas,
                        result.decision,
                        expected_versions=exposure.category_versions,
                    )
                    stage.success_count = len(committed)
            elif commit:
                log.info("Case %s declined; exposure not committed", case.case_id)

            with track_stage("assembly"):
                report = self._assembler.assemble(
                    registry_id,
                    result,
                    exposure,
                    committed=committed,
                    analytics=analytics,
                )
        except Exception:
            end_run("failed")
            raise
        end_run()
        return report

    def check_exposure(
        self,
        case_id: str,
        proposed_deltas: Mapping[str, float],
        *,
        requested: Iterable[str] = (),
    ) -> ExposureReport:
        """Read-only threshold check; safe to repeat."""
        return self._monitor.check(case_id, proposed_deltas, requested=requested)

    async def commit(
        self,
        case_id: str,
        proposed_deltas: Mapping[str, float],
        decision: Decision | None,
        *,
        expected_version: int | None = None,
        expected_versions: Mapping[str, int] | None = None,
    ) -> list[LedgerEntry]:
        """Commit deltas for an accepted decision.

        Ledger locks are threading locks, so the commit runs off the event loop.
        """
        return await asyncio.to_thread(
            self.ledger.commit,
            case_id,
            proposed_deltas,
            decision,
            expected_version=expected_version,
            expected_versions=expected_versions,
        )

    async def consult(self, result: SynthesisResult, question: str) -> ConsultationReply:
        return await self._consultation.ask(result, question)


def build_ledger(settings: AppSettings, domains: DomainRegistry) -> ExposureLedger:
    """Ledger from the categories file if configured, else from domain manifests."""
    cfg = settings.ledger
    if cfg.categories_file is not None:
        return ExposureLedger.from_file(cfg.categories_file, lock_timeout=cfg.commit_timeout)
    categories = [c for d in domains.list_domains() for c in d.exposure_categories]
    return ExposureLedger(categories, lock_timeout=cfg.commit_timeout)


def build_service(settings: AppSettings, *, domains: DomainRegistry | None = None) -> DecisionService:
    """Wire every component from settings."""
    if domains is None:
        domains = DomainRegistry()
        if settings.registry.auto_discover:
            domains.auto_discover()

    catalog = RegistryCatalog()
    catalog.register_domains(domains.list_domains())
    if settings.registry.registry_file is not None:
        catalog.load_file(settings.registry.registry_file)

    guidelines, precedents = create_reference_stores(settings.reference, domains.list_domains())
    coordinator = DispatchCoordinator.from_config(settings.dispatch, guidelines, precedents)
    engine = SynthesisEngine.from_config(settings.decision)
    monitor = ThresholdMonitor(build_ledger(settings, domains), settings.ledger)
    consultation = ConsultationService.from_config(settings.consultation)

    log.info(
        "Decision service ready: %d registr(y/ies), %d ledger categor(y/ies), consultation %s",
        len(catalog.list_registries()),
        len(monitor.ledger),
        "enabled" if consultation.enabled else "disabled",
    )
    return DecisionService(catalog, coordinator, engine, monitor, consultation=consultation)
