"""FastAPI application with lifespan management."""

from __future__ import annotations

import importlib.metadata
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from quorum_ai.api.middleware.error_handler import register_error_handlers
from quorum_ai.api.routes import cases, consult, health, ledger, registries
from quorum_ai.core.config import APIConfig, AppSettings
from quorum_ai.core.startup_checks import validate_settings
from quorum_ai.hooks import setup_logging
from quorum_ai.services.decision_service import build_service


def _get_version() -> str:
    """Read package version from installed metadata, with dev fallback."""
    try:
        return importlib.metadata.version("quorum-ai")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0-dev"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup/shutdown lifecycle."""
    settings = AppSettings()
    validate_settings(settings)
    setup_logging(settings.observability)

    app.state.settings = settings
    app.state.service = build_service(settings)
    yield


def create_app() -> FastAPI:
    api_config = APIConfig()
    application = FastAPI(
        title=api_config.title,
        description=api_config.description,
        version=_get_version(),
        lifespan=lifespan,
    )
    register_error_handlers(application)
    application.include_router(health.router)
    application.include_router(cases.router, prefix="/api")
    application.include_router(registries.router, prefix="/api")
    application.include_router(ledger.router, prefix="/api")
    application.include_router(consult.router, prefix="/api")
    return application


app = create_app()
