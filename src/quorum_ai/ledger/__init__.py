"""Exposure ledger and threshold monitor."""

from quorum_ai.ledger.ledger import ExposureLedger
from quorum_ai.ledger.models import (
    ExposureCategory,
    ExposureReport,
    LedgerEntry,
    LedgerSnapshot,
    ThresholdCheck,
    ThresholdStatus,
)
from quorum_ai.ledger.monitor import ThresholdMonitor, check_thresholds, classify_ratio

__all__ = [
    "ExposureCategory",
    "ExposureLedger",
    "ExposureReport",
    "LedgerEntry",
    "LedgerSnapshot",
    "ThresholdCheck",
    "ThresholdMonitor",
    "ThresholdStatus",
    "check_thresholds",
    "classify_ratio",
]
