"""API routes for the procedure tree.

Endpoints (relative to the configured prefix, default ``/health``):
  GET  {prefix}          — evaluate every registered check
  GET  {prefix}/{path}   — evaluate the subtree or leaf at ``path``

Status codes:
  204 — everything UP but nothing registered under the path (no body)
  200 — UP
  503 — DOWN, reported by the checks themselves
  500 — DOWN, at least one check timed out or raised
  404 — a path segment does not exist
  400 — a path segment is addressed under a leaf
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from healthtree.health.classifier import Verdict, evaluate
from healthtree.health.outcome import to_response_body
from healthtree.health.registry import (
    HealthCheckRegistry,
    InvalidProcedurePathError,
    ProcedureNotFoundError,
)

logger = logging.getLogger(__name__)

health_router = APIRouter()


@health_router.get("")
async def check_all(request: Request) -> Response:
    """Evaluate the whole tree."""
    return await _run(request.app.state.registry, "")


@health_router.get("/{path:path}")
async def check_path(path: str, request: Request) -> Response:
    """Evaluate the procedure at ``path``."""
    return await _run(request.app.state.registry, path)


async def _run(registry: HealthCheckRegistry, path: str) -> Response:
    try:
        procedure = registry.resolve(path)
    except ProcedureNotFoundError as e:
        return JSONResponse(status_code=404, content={"error": e.message})
    except InvalidProcedurePathError as e:
        return JSONResponse(status_code=400, content={"error": e.message})

    outcome, verdict = await evaluate(procedure)
    logger.debug("Health query /%s: %s", path, verdict.value)

    if verdict is Verdict.EMPTY:
        return Response(status_code=verdict.http_status)
    return JSONResponse(status_code=verdict.http_status, content=to_response_body(outcome))
