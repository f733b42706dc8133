"""CLI for quorum-ai: evaluate / check / registries / ledger commands."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.table import Table

from quorum_ai.core.config import AppSettings
from quorum_ai.core.startup_checks import validate_settings
from quorum_ai.exceptions import InsufficientQuorumError, QuorumError
from quorum_ai.formatters.json_formatter import exposure_to_dict, report_to_dict
from quorum_ai.hooks import setup_logging
from quorum_ai.ledger.models import ExposureReport, ThresholdStatus
from quorum_ai.models import Case, RiskLabel
from quorum_ai.services.decision_service import DecisionService, build_service

app = typer.Typer(name="quorum-ai", help="Multi-perspective decision synthesis")
console = Console()

_LABEL_STYLE = {
    RiskLabel.GREEN: "green",
    RiskLabel.AMBER: "yellow",
    RiskLabel.RED: "red",
    RiskLabel.UNKNOWN: "dim",
}
_STATUS_STYLE = {
    ThresholdStatus.COMPLIANT: "green",
    ThresholdStatus.WARNING: "yellow",
    ThresholdStatus.BREACH: "red",
}


def _build(verbose: bool, ledger_file: Optional[Path] = None) -> DecisionService:
    settings = AppSettings()
    if ledger_file is not None:
        settings.ledger.categories_file = ledger_file
    if verbose:
        settings.observability.log_level = "DEBUG"
    validate_settings(settings)
    setup_logging(settings.observability)
    return build_service(settings)


def _load_json(path: Path) -> dict[str, Any]:
    raw = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise typer.BadParameter(f"Expected a JSON object in {path}")
    return raw


def _parse_deltas(items: list[str]) -> dict[str, float]:
    """Parse ``Category=amount`` options."""
    deltas: dict[str, float] = {}
    for item in items:
        name, sep, amount = item.rpartition("=")
        if not sep or not name:
            raise typer.BadParameter(f"Expected CATEGORY=AMOUNT, got {item!r}")
        try:
            deltas[name.strip()] = float(amount)
        except ValueError:
            raise typer.BadParameter(f"Amount for {name!r} is not a number: {amount!r}") from None
    return deltas


def _exposure_table(report: ExposureReport, title: str) -> Table:
    table = Table(title=title)
    table.add_column("Category", style="cyan")
    table.add_column("Current", justify="right")
    table.add_column("Proposed", justify="right")
    table.add_column("Limit", justify="right")
    table.add_column("Utilization", justify="right")
    table.add_column("Status")
    for check in report.checks:
        style = _STATUS_STYLE[check.status]
        table.add_row(
            check.category,
            f"{check.current_exposure:,.0f}",
            f"{check.proposed_exposure:,.0f}",
            f"{check.limit:,.0f}",
            f"{check.ratio:.1%}",
            f"[{style}]{check.status.value}[/{style}]",
        )
    return table


@app.command()
def evaluate(
    case_file: Path = typer.Argument(..., help="JSON file with the case payload"),
    registry: Optional[str] = typer.Option(None, "--registry", "-r", help="Evaluator registry id"),
    commit: bool = typer.Option(False, "--commit", help="Commit exposure if the case is accepted"),
    ledger_file: Optional[Path] = typer.Option(None, "--ledger", help="Ledger categories YAML/JSON"),
    as_json: bool = typer.Option(False, "--json", help="Print the full report as JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Evaluate a case and print the decision."""
    service = _build(verbose, ledger_file)
    try:
        case = Case.from_dict(_load_json(case_file))
        registry_id = registry or service.catalog.default_for(case.case_type).registry_id
        report = asyncio.run(service.evaluate_case(case, registry_id, commit=commit))
    except InsufficientQuorumError as exc:
        console.print(f"[bold red]Incomplete:[/bold red] {exc}")
        console.print(f"Missing evaluators: {', '.join(exc.missing_evaluators)}")
        raise typer.Exit(code=2) from None
    except QuorumError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1) from None

    if as_json:
        console.print_json(json.dumps(report_to_dict(report), default=str))
        return

    result = report.synthesis
    score_label = "Health score" if result.health_score is not None else "Deal score"
    console.print(f"\n[bold]Case {result.case_id}[/bold] ({result.case_type.value}, registry {report.registry_id})")
    console.print(f"[bold]{score_label}:[/bold] {result.scaled_score:.2f}/{result.scale:g}")
    console.print(f"[bold]Decision:[/bold] {result.decision.value}")
    console.print(f"[bold]Reasoning:[/bold] {result.reasoning}\n")

    table = Table(title="Verdicts")
    table.add_column("Evaluator", style="cyan")
    table.add_column("Label")
    table.add_column("Risk", justify="right")
    table.add_column("Key factors", max_width=60)
    table.add_column("Citations")
    for entry in result.audit:
        verdict = entry.verdict
        style = _LABEL_STYLE[verdict.label]
        table.add_row(
            entry.evaluator_name,
            f"[{style}]{verdict.label.value}[/{style}]",
            "-" if verdict.risk_score is None else f"{verdict.risk_score:.2f}",
            "; ".join(verdict.key_factors) or entry.exclusion_reason,
            ", ".join(c.display() for c in verdict.citations),
        )
    console.print(table)

    items = result.required_mitigations or result.prioritized_suggestions
    if items:
        heading = "Required mitigations" if result.required_mitigations else "Prioritized suggestions"
        console.print(f"\n[bold]{heading}:[/bold]")
        for i, item in enumerate(items, 1):
            console.print(f"  {i}. {item.text} (impact {item.impact_rating}, confidence {item.confidence:.2f})")

    if report.exposure.checks:
        console.print(_exposure_table(report.exposure, "Exposure"))
    if report.committed:
        console.print(f"[green]Committed {len(report.committed)} ledger movement(s)[/green]")


@app.command()
def check(
    delta: list[str] = typer.Option([], "--delta", "-d", help="CATEGORY=AMOUNT, repeatable"),
    case_file: Optional[Path] = typer.Option(None, "--case", help="Take deltas from a case file"),
    ledger_file: Optional[Path] = typer.Option(None, "--ledger", help="Ledger categories YAML/JSON"),
    as_json: bool = typer.Option(False, "--json"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Check proposed deltas against ledger limits without committing."""
    service = _build(verbose, ledger_file)
    deltas: dict[str, float] = {}
    case_id = ""
    if case_file is not None:
        payload = _load_json(case_file)
        case_id = str(payload.get("case_id", ""))
        deltas.update({k: float(v) for k, v in (payload.get("proposed_deltas") or {}).items()})
    deltas.update(_parse_deltas(delta))
    try:
        report = service.check_exposure(case_id, deltas)
    except QuorumError as exc:
        console.print(f"[bold red]Error:[/bold red] {exc}")
        raise typer.Exit(code=1) from None

    if as_json:
        console.print_json(json.dumps(exposure_to_dict(report)))
        return
    console.print(_exposure_table(report, f"Threshold check (ledger v{report.ledger_version})"))
    style = _STATUS_STYLE[report.worst_status]
    console.print(f"Overall: [{style}]{report.worst_status.value}[/{style}]")


@app.command()
def ledger(
    ledger_file: Optional[Path] = typer.Option(None, "--ledger", help="Ledger categories YAML/JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Show current utilization of every tracked category."""
    service = _build(verbose, ledger_file)
    console.print(_exposure_table(service.monitor.report(), "Exposure ledger"))


@app.command()
def registries(
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """List configured evaluator registries."""
    service = _build(verbose)
    for registry in service.catalog.list_registries():
        table = Table(title=f"{registry.registry_id} ({registry.case_type.value})")
        table.add_column("Evaluator", style="cyan")
        table.add_column("Name")
        table.add_column("Reads")
        table.add_column("Weight", justify="right")
        table.add_column("Hard-blocking")
        for spec in registry:
            table.add_row(
                spec.evaluator_id,
                spec.display_name,
                spec.capability,
                f"{spec.weight:g}",
                "yes" if spec.hard_blocking else "",
            )
        console.print(table)


if __name__ == "__main__":
    app()
