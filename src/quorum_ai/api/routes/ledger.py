"""Exposure ledger endpoints: utilization, read-only checks, and commits."""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from quorum_ai.formatters.json_formatter import exposure_to_dict, ledger_entry_to_dict
from quorum_ai.models import Decision

router = APIRouter(tags=["ledger"])


class CheckRequest(BaseModel):
    """Proposed deltas to measure against the ledger without committing."""

    case_id: str = ""
    proposed_deltas: dict[str, float] = Field(default_factory=dict)
    categories: list[str] = Field(default_factory=list)


class CommitRequest(BaseModel):
    """Commit deltas for a decided case."""

    case_id: str
    proposed_deltas: dict[str, float]
    decision: Decision
    expected_version: Optional[int] = None
    expected_versions: Optional[dict[str, int]] = None


@router.get("/ledger")
async def ledger_report(req: Request) -> dict[str, Any]:
    """Current utilization of every tracked category plus commit history."""
    service = req.app.state.service
    return {
        **exposure_to_dict(service.monitor.report()),
        "history": [ledger_entry_to_dict(e) for e in service.ledger.history()],
    }


@router.post("/ledger/check")
async def check_thresholds(request: CheckRequest, req: Request) -> dict[str, Any]:
    report = req.app.state.service.check_exposure(
        request.case_id,
        request.proposed_deltas,
        requested=request.categories,
    )
    return exposure_to_dict(report)


@router.post("/ledger/commit", status_code=201)
async def commit(request: CommitRequest, req: Request) -> dict[str, Any]:
    entries = await req.app.state.service.commit(
        request.case_id,
        request.proposed_deltas,
        request.decision,
        expected_version=request.expected_version,
        expected_versions=request.expected_versions,
    )
    return {
        "case_id": request.case_id,
        "ledger_version": req.app.state.service.ledger.version,
        "entries": [ledger_entry_to_dict(e) for e in entries],
    }
