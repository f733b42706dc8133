"""Startup validation: fail-fast on critical misconfigurations."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from quorum_ai.core.config import AppSettings, DecisionBands

log = logging.getLogger(__name__)


def validate_settings(settings: AppSettings) -> None:
    """Validate application settings at startup. Raises ValueError on fatal misconfig."""
    _check_dispatch(settings)
    _check_bands("underwriting", settings.decision.underwriting)
    _check_bands("portfolio", settings.decision.portfolio)
    _check_ledger(settings)
    _check_consultation(settings)


def _check_dispatch(settings: AppSettings) -> None:
    """Reject quorum thresholds and timeouts that make every dispatch meaningless."""
    cfg = settings.dispatch
    if not 0.0 < cfg.quorum_threshold <= 1.0:
        raise ValueError(
            f"QUORUM_DISPATCH_QUORUM_THRESHOLD must be in (0, 1], got {cfg.quorum_threshold}"
        )
    if cfg.per_evaluator_timeout <= 0 or cfg.overall_timeout <= 0:
        raise ValueError("Dispatch timeouts must be positive")
    if cfg.per_evaluator_timeout > cfg.overall_timeout:
        raise ValueError(
            f"Per-evaluator timeout ({cfg.per_evaluator_timeout}s) exceeds the overall "
            f"dispatch deadline ({cfg.overall_timeout}s)"
        )


def _check_bands(name: str, bands: DecisionBands) -> None:
    """Band boundaries must be ordered within the scale."""
    if not 0.0 <= bands.decline_below <= bands.quote_at <= bands.scale:
        raise ValueError(
            f"Decision bands for {name} must satisfy 0 <= decline_below <= quote_at <= scale, "
            f"got decline_below={bands.decline_below}, quote_at={bands.quote_at}, scale={bands.scale}"
        )


def _check_ledger(settings: AppSettings) -> None:
    cfg = settings.ledger
    if not 0.0 < cfg.warning_ratio <= cfg.breach_ratio:
        raise ValueError(
            f"QUORUM_LEDGER_WARNING_RATIO must be in (0, breach_ratio], "
            f"got warning={cfg.warning_ratio}, breach={cfg.breach_ratio}"
        )
    if cfg.categories_file is not None and not cfg.categories_file.exists():
        raise ValueError(f"Ledger categories file not found: {cfg.categories_file}")


def _check_consultation(settings: AppSettings) -> None:
    """Consultation is optional, so a missing model only disables it."""
    cfg = settings.consultation
    if cfg.enabled and not cfg.model:
        log.warning(
            "QUORUM_CONSULTATION_ENABLED=true but no model configured; "
            "consultation requests will report the assistant as unavailable."
        )
