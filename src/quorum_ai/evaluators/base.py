"""Evaluator building blocks: context passed in, assessment handed back.

Evaluators never construct :class:`~quorum_ai.models.Verdict` themselves.
They return an :class:`Assessment`; the dispatch coordinator stamps the
evaluator id and timestamp onto it.  That keeps verdict identity and label
derivation out of evaluator hands.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Mapping, Sequence

from pydantic import BaseModel, ValidationError

from quorum_ai.models import (
    CaseType,
    GuidelineCitation,
    PrecedentRef,
    Suggestion,
    thaw,
)

if TYPE_CHECKING:
    from quorum_ai.interfaces.reference import IGuidelineStore, IPrecedentStore

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class EvaluationContext:
    """Everything an evaluator may read besides the case attributes."""

    evaluator_id: str
    display_name: str
    case_id: str
    case_type: CaseType
    guidelines: IGuidelineStore
    precedents: IPrecedentStore
    params: Mapping[str, Any] = field(default_factory=dict)

    def param(self, name: str, default: Any) -> Any:
        return self.params.get(name, default)


@dataclass
class Assessment:
    """Raw evaluator output, before it becomes an immutable verdict."""

    risk_score: float
    reasoning: str = ""
    key_factors: list[str] = field(default_factory=list)
    citations: list[GuidelineCitation] = field(default_factory=list)
    precedents: list[PrecedentRef] = field(default_factory=list)
    confidence: float = 1.0
    suggestions: list[Suggestion] = field(default_factory=list)


class BaseEvaluator(ABC):
    """Base class for built-in rules-based evaluators.

    Subclasses declare the attribute bag they read via ``capability`` and
    implement :meth:`evaluate`.  Those that declare an ``input_model`` get
    their bags checked by :meth:`parse` before dispatch, so malformed input
    is rejected up front instead of degrading the verdict.  Instances hold
    no per-case state, so one instance may score many cases concurrently.
    """

    capability: str = ""
    input_model: ClassVar[type[BaseModel] | None] = None

    def parse(self, attributes: Mapping[str, Any]) -> Any:
        """Validate *attributes* against ``input_model``.

        Returns the parsed model, or *attributes* unchanged when the
        evaluator declares no model.

        Raises:
            pydantic.ValidationError: A bag is missing or malformed.
        """
        if self.input_model is None:
            return attributes
        return self.input_model.model_validate(thaw(attributes))

    @abstractmethod
    async def evaluate(
        self,
        attributes: Mapping[str, Any],
        context: EvaluationContext,
    ) -> Assessment:
        """Score the case attributes."""

    # ── Reference-data helpers ──────────────────────────────────────

    @staticmethod
    async def cite(context: EvaluationContext, document_id: str, page: int) -> GuidelineCitation:
        """Resolve a guideline page into a citation with its title and excerpt."""
        try:
            entry = await context.guidelines.lookup(document_id, page)
        except KeyError:
            log.debug("Guideline %s p.%d not in store; citing without excerpt", document_id, page)
            return GuidelineCitation(document_id=document_id, page=page)
        return GuidelineCitation(
            document_id=document_id,
            page=page,
            title=entry.title,
            excerpt=entry.text[:240],
        )

    @staticmethod
    async def find_precedents(
        context: EvaluationContext,
        query: str,
        *,
        tags: Sequence[str] = (),
        limit: int = 2,
    ) -> list[PrecedentRef]:
        records = await context.precedents.search(query, tags=tags, limit=limit)
        return [PrecedentRef(record_id=r.record_id, outcome=r.outcome) for r in records]


def clamp_score(value: float) -> float:
    """Clamp a computed risk score into [0, 1]."""
    return max(0.0, min(1.0, value))


def describe_input_error(exc: ValueError) -> str:
    """One-line summary of an input validation failure, naming the fields."""
    if not isinstance(exc, ValidationError):
        return str(exc)
    parts = []
    for error in exc.errors():
        location = ".".join(str(p) for p in error["loc"]) or "attributes"
        parts.append(f"{location}: {error['msg']}")
    return "; ".join(parts)
