"""Output formatters for case reports."""

from quorum_ai.formatters.json_formatter import (
    JSONFormatter,
    exposure_to_dict,
    ledger_entry_to_dict,
    report_to_dict,
    synthesis_to_dict,
    verdict_to_dict,
)

__all__ = [
    "JSONFormatter",
    "exposure_to_dict",
    "ledger_entry_to_dict",
    "report_to_dict",
    "synthesis_to_dict",
    "verdict_to_dict",
]
