"""FastAPI server exposing the health check tree."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from healthtree import __version__
from healthtree.api.health_routes import health_router
from healthtree.config import settings
from healthtree.health.loader import load_checks, register_checks
from healthtree.health.registry import HealthCheckRegistry

logger = logging.getLogger(__name__)


def _checks_path() -> Path:
    path = Path(settings.checks_file)
    if not path.is_absolute():
        path = Path.cwd() / path
    return path


def build_registry(checks_file: Path | None = None) -> HealthCheckRegistry:
    """Create a registry and install the checks declared in ``checks_file``."""
    registry = HealthCheckRegistry(default_timeout_ms=settings.default_timeout_ms)
    register_checks(registry, load_checks(checks_file or _checks_path()))
    return registry


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Keep a registry installed by the caller, otherwise load one from disk."""
    if getattr(app.state, "registry", None) is None:
        app.state.registry = build_registry()
    logger.info("Health endpoint mounted at %s", settings.health_route_prefix)
    yield


def create_app(registry: HealthCheckRegistry | None = None) -> FastAPI:
    """Create the FastAPI application.

    Pass ``registry`` to expose checks registered in code; otherwise the
    checks file is loaded at startup.
    """
    app = FastAPI(
        title="healthtree",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.registry = registry
    app.include_router(health_router, prefix=settings.health_route_prefix)
    return app


app = create_app()
