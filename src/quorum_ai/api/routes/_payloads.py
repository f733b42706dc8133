"""Request bodies shared by several routers."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from quorum_ai.models import Case


class CasePayload(BaseModel):
    """A case as submitted over HTTP."""

    case_id: str
    case_type: str
    attributes: dict[str, Any] = Field(default_factory=dict)
    proposed_deltas: dict[str, float] = Field(default_factory=dict)

    def to_case(self) -> Case:
        return Case.from_dict(self.model_dump())
