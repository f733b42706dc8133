"""Consultation endpoint: ask a free-form question about a case decision."""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from quorum_ai.api.routes._payloads import CasePayload

router = APIRouter(tags=["consultation"])


class ConsultRequest(BaseModel):
    """Cases are not persisted, so the case travels with the question."""

    case: CasePayload
    question: str
    registry_id: Optional[str] = None


class ConsultResponse(BaseModel):
    case_id: str
    decision: str
    answer: str
    available: bool
    error: str = ""


@router.post("/consult", response_model=ConsultResponse)
async def consult(request: ConsultRequest, req: Request) -> ConsultResponse:
    """Re-evaluate the case (never committing), then ask the assistant."""
    service = req.app.state.service
    case = request.case.to_case()
    registry_id = request.registry_id or service.catalog.default_for(case.case_type).registry_id
    report = await service.evaluate_case(case, registry_id)
    reply = await service.consult(report.synthesis, request.question)
    return ConsultResponse(
        case_id=case.case_id,
        decision=report.synthesis.decision.value,
        answer=reply.answer,
        available=reply.available,
        error=reply.error,
    )
