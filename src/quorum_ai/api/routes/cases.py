"""Case evaluation endpoint."""

from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel

from quorum_ai.api.routes._payloads import CasePayload
from quorum_ai.formatters.json_formatter import report_to_dict

log = logging.getLogger(__name__)

router = APIRouter(tags=["cases"])


class EvaluateRequest(BaseModel):
    """Evaluate one case; ``registry_id`` defaults to the case type's first registry."""

    case: CasePayload
    registry_id: Optional[str] = None
    commit: bool = False


@router.post("/cases/evaluate")
async def evaluate_case(request: EvaluateRequest, req: Request) -> dict[str, Any]:
    """Dispatch, synthesize, and check thresholds for a case.

    Returns the assembled report.  Too few evaluators responding yields a
    409 with ``status="incomplete"`` and the missing evaluator ids.
    """
    service = req.app.state.service
    case = request.case.to_case()
    registry_id = request.registry_id or service.catalog.default_for(case.case_type).registry_id
    report = await service.evaluate_case(case, registry_id, commit=request.commit)
    return report_to_dict(report)
