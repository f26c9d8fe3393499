"""Shared test fixtures."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from healthtree.api.server import create_app
from healthtree.health.outcome import Status
from healthtree.health.procedures import Completion
from healthtree.health.registry import HealthCheckRegistry


# ── Check functions ──────────────────────────────────────────────────────────


def succeed(completion: Completion) -> None:
    completion.complete()


def report_up(completion: Completion) -> None:
    completion.complete(Status.ok())


def report_down(completion: Completion) -> None:
    completion.complete(Status.ko())


def fail_boom(completion: Completion) -> None:
    completion.fail("BOOM")


def never_settle(completion: Completion) -> None:
    pass


def raise_boom(completion: Completion) -> None:
    raise ValueError("BOOM")


# ── Fixtures ─────────────────────────────────────────────────────────────────


@pytest.fixture
def registry() -> HealthCheckRegistry:
    """A registry with a short default timeout to keep timeout tests fast."""
    return HealthCheckRegistry(default_timeout_ms=100)


@pytest.fixture
def nested_registry(registry: HealthCheckRegistry) -> HealthCheckRegistry:
    """sub/{A,B} up, sub2/c/C1 up, sub2/c/C2 down."""
    return (
        registry
        .register("sub/A", report_up)
        .register("sub/B", report_up)
        .register("sub2/c/C1", report_up)
        .register("sub2/c/C2", report_down)
    )


@pytest.fixture
def client(registry: HealthCheckRegistry) -> TestClient:
    return TestClient(create_app(registry))
