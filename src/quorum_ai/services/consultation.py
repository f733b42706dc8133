"""Consultation: free-form questions about a finished decision.

The consultant is a stateless text-in/text-out collaborator.  It sits
outside the decision path: :class:`ConsultationService` bounds every call
with a timeout and turns any failure into an "unavailable" reply, so the
decision itself is never blocked or altered by it.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from quorum_ai.exceptions import ConsultationError
from quorum_ai.formatters.json_formatter import synthesis_to_dict
from quorum_ai.prompts import get_prompt

if TYPE_CHECKING:
    from quorum_ai.core.config import ConsultationConfig
    from quorum_ai.interfaces.consultation import IConsultant
    from quorum_ai.models import SynthesisResult

log = logging.getLogger(__name__)

UNAVAILABLE_ANSWER = "The consultation assistant is unavailable right now. The decision record above is unaffected."


@dataclass(frozen=True)
class ConsultationReply:
    answer: str
    available: bool
    error: str = ""


class LiteLLMConsultant:
    """Answers questions via ``litellm.acompletion()``."""

    def __init__(self, config: ConsultationConfig) -> None:
        self._config = config

    @property
    def model(self) -> str:
        return self._config.model

    def build_messages(self, result: SynthesisResult, question: str) -> list[dict[str, Any]]:
        record = json.dumps(synthesis_to_dict(result), indent=2, default=str)
        return [
            {"role": "system", "content": get_prompt("CONSULTATION_SYSTEM_PROMPT")},
            {
                "role": "user",
                "content": get_prompt("CONSULTATION_USER_TEMPLATE", record=record, question=question),
            },
        ]

    async def ask(self, result: SynthesisResult, question: str) -> str:
        from litellm import acompletion

        kwargs: dict[str, Any] = {
            "model": self._config.model,
            "messages": self.build_messages(result, question),
            "temperature": self._config.temperature,
            "max_tokens": self._config.max_tokens,
            "timeout": self._config.timeout,
        }
        if self._config.base_url:
            kwargs["api_base"] = self._config.base_url
        if self._config.api_key:
            kwargs["api_key"] = self._config.api_key

        try:
            response = await acompletion(**kwargs)
        except Exception as exc:
            raise ConsultationError(f"Consultation model {self._config.model!r} failed: {exc}") from exc
        content = response.choices[0].message.content or ""
        if not content.strip():
            raise ConsultationError(f"Consultation model {self._config.model!r} returned an empty answer")
        return content


class ConsultationService:
    """Timeout-bounded wrapper that never raises to the caller."""

    def __init__(self, consultant: IConsultant | None, *, timeout: float = 30.0) -> None:
        self._consultant = consultant
        self._timeout = timeout

    @classmethod
    def from_config(cls, config: ConsultationConfig) -> ConsultationService:
        consultant = LiteLLMConsultant(config) if config.enabled and config.model else None
        return cls(consultant, timeout=config.timeout)

    @property
    def enabled(self) -> bool:
        return self._consultant is not None

    async def ask(self, result: SynthesisResult, question: str) -> ConsultationReply:
        if self._consultant is None:
            return ConsultationReply(UNAVAILABLE_ANSWER, available=False, error="consultation disabled")
        if not question.strip():
            return ConsultationReply("Please ask a question about this decision.", available=True)
        try:
            answer = await asyncio.wait_for(self._consultant.ask(result, question), timeout=self._timeout)
        except asyncio.TimeoutError:
            log.warning("Consultation for case %s timed out after %.1fs", result.case_id, self._timeout)
            return ConsultationReply(UNAVAILABLE_ANSWER, available=False, error="timeout")
        except Exception as exc:
            log.warning("Consultation for case %s failed: %s", result.case_id, exc)
            return ConsultationReply(UNAVAILABLE_ANSWER, available=False, error=f"{type(exc).__name__}: {exc}")
        return ConsultationReply(answer, available=True)
