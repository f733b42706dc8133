"""Shared type aliases for the framework layer."""

from __future__ import annotations

from typing import Any, Callable

# Receives per-evaluator completion events during dispatch
ProgressCallback = Callable[[Any], None]
