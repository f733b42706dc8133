"""Health check endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe — always returns 200 if the process is up."""
    return {"status": "ok"}


@router.get("/ready", response_model=None)
async def ready(req: Request) -> dict[str, str] | JSONResponse:
    """Readiness probe — the decision service is wired and has registries."""
    service = getattr(req.app.state, "service", None)
    if service is None or not service.catalog.list_registries():
        return JSONResponse(status_code=503, content={"status": "not_ready"})
    return {"status": "ready"}
