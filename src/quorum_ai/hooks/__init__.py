"""Logging setup and per-run analytics."""

from quorum_ai.hooks.logging_config import setup_logging
from quorum_ai.hooks.run_tracker import end_run, get_current_run, start_run, track_stage

__all__ = ["end_run", "get_current_run", "setup_logging", "start_run", "track_stage"]
