"""Prompt templates for the consultation assistant.

Templates live in ``_PROMPT_DATA`` keyed by name and are rendered with
``str.format``::

    from quorum_ai.prompts import get_prompt
    system = get_prompt("CONSULTATION_SYSTEM_PROMPT")
"""

from __future__ import annotations

from typing import Any

_PROMPT_DATA: dict[str, str] = {
    "CONSULTATION_SYSTEM_PROMPT": """You are a senior underwriting and portfolio consultant. \
You answer follow-up questions about a decision that has already been made by a panel of \
independent evaluators.

Rules:
- Answer ONLY from the decision record provided. Never invent scores, limits or precedents.
- Quote evaluator names, guideline citations (document and page) and precedent ids exactly.
- Do not change or second-guess the decision; explain it and what would change it.
- If the record does not contain the answer, say so plainly.""",
    "CONSULTATION_USER_TEMPLATE": """Decision record (JSON):
{record}

Question:
{question}""",
}


def get_prompt(name: str, **values: Any) -> str:
    """Return the named template, formatted with *values* when given.

    Raises:
        KeyError: Unknown prompt name.
    """
    if name not in _PROMPT_DATA:
        raise KeyError(f"Prompt {name!r} not found. Available: {sorted(_PROMPT_DATA)}")
    template = _PROMPT_DATA[name]
    return template.format(**values) if values else template


__all__ = ["get_prompt"]
