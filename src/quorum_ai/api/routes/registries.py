"""Evaluator registry introspection endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request

router = APIRouter(tags=["registries"])


@router.get("/registries")
async def list_registries(req: Request) -> list[dict[str, Any]]:
    return [r.describe() for r in req.app.state.service.catalog.list_registries()]


@router.get("/registries/{registry_id}")
async def get_registry(registry_id: str, req: Request) -> dict[str, Any]:
    return req.app.state.service.catalog.get(registry_id).describe()
