"""Framework core: configuration, startup checks, shared types."""

from __future__ import annotations

from quorum_ai.core.config import AppSettings, DecisionBands
from quorum_ai.core.startup_checks import validate_settings

__all__ = ["AppSettings", "DecisionBands", "validate_settings"]
