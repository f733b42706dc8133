"""Fake consultation collaborators."""

from __future__ import annotations

import asyncio
from typing import Any

from quorum_ai.models import SynthesisResult


class FakeConsultant:
    """Canned-answer consultant that records every question."""

    def __init__(self, answer: str = "Pilot hours drove the cap.", *, delay: float = 0.0) -> None:
        self._answer = answer
        self._delay = delay
        self.calls: list[dict[str, Any]] = []

    async def ask(self, result: SynthesisResult, question: str) -> str:
        self.calls.append({"case_id": result.case_id, "question": question})
        if self._delay:
            await asyncio.sleep(self._delay)
        return self._answer


class FailingConsultant:
    async def ask(self, result: SynthesisResult, question: str) -> str:
        raise ConnectionError("upstream refused connection")
