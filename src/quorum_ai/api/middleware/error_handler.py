"""Global exception handlers mapping domain exceptions to HTTP responses."""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from quorum_ai.exceptions import (
    CommitNotPermittedError,
    InsufficientQuorumError,
    InvalidCaseInputError,
    InvalidLimitError,
    LedgerContentionError,
    QuorumError,
    RegistryNotFoundError,
)
from quorum_ai.formatters.json_formatter import verdict_to_dict


def _body(exc: QuorumError, error_type: str, **extra: Any) -> dict[str, Any]:
    return {"error": str(exc), "type": error_type, "retryable": exc.retryable, **extra}


def register_error_handlers(app: FastAPI) -> None:
    """Register exception-to-HTTP-status mappings."""

    @app.exception_handler(InvalidCaseInputError)
    async def handle_invalid_case(request: Request, exc: InvalidCaseInputError) -> JSONResponse:
        return JSONResponse(status_code=400, content=_body(exc, "invalid_case_input"))

    @app.exception_handler(InvalidLimitError)
    async def handle_invalid_limit(request: Request, exc: InvalidLimitError) -> JSONResponse:
        return JSONResponse(status_code=400, content=_body(exc, "invalid_limit"))

    @app.exception_handler(RegistryNotFoundError)
    async def handle_registry_not_found(request: Request, exc: RegistryNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content=_body(exc, "registry_not_found"))

    @app.exception_handler(InsufficientQuorumError)
    async def handle_insufficient_quorum(request: Request, exc: InsufficientQuorumError) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content=_body(
                exc,
                "insufficient_quorum",
                status="incomplete",
                case_id=exc.case_id,
                responded=exc.responded,
                total=exc.total,
                missing_evaluators=exc.missing_evaluators,
                verdicts=[verdict_to_dict(v) for v in exc.verdicts],
            ),
        )

    @app.exception_handler(LedgerContentionError)
    async def handle_contention(request: Request, exc: LedgerContentionError) -> JSONResponse:
        return JSONResponse(status_code=409, content=_body(exc, "ledger_contention"))

    @app.exception_handler(CommitNotPermittedError)
    async def handle_commit_not_permitted(request: Request, exc: CommitNotPermittedError) -> JSONResponse:
        return JSONResponse(status_code=422, content=_body(exc, "commit_not_permitted"))

    @app.exception_handler(QuorumError)
    async def handle_generic_error(request: Request, exc: QuorumError) -> JSONResponse:
        return JSONResponse(status_code=500, content=_body(exc, "quorum_error"))
