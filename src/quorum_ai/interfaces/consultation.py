"""Consultation collaborator protocol (free-form follow-up assistant)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from quorum_ai.models import SynthesisResult


@runtime_checkable
class IConsultant(Protocol):
    """Stateless text-in/text-out assistant answering questions about a result."""

    async def ask(self, result: SynthesisResult, question: str) -> str:
        """Answer *question* in the context of *result*."""
        ...
