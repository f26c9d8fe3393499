"""Tests for the one-shot ``check`` command."""

from __future__ import annotations

from unittest.mock import patch

from conftest import raise_boom, report_down, succeed
from healthtree.health.registry import HealthCheckRegistry
from healthtree.main import run_check


def _run(registry: HealthCheckRegistry, path: str = "") -> int:
    with patch("healthtree.main.build_registry", return_value=registry):
        return run_check(path)


class TestRunCheck:
    def test_empty_tree_exits_zero(self, registry: HealthCheckRegistry) -> None:
        assert _run(registry) == 0

    def test_healthy_exits_zero(self, registry: HealthCheckRegistry) -> None:
        assert _run(registry.register("a/b", succeed)) == 0

    def test_unhealthy_exits_one(self, registry: HealthCheckRegistry) -> None:
        assert _run(registry.register("a/b", report_down)) == 1

    def test_faulted_exits_one(self, registry: HealthCheckRegistry) -> None:
        assert _run(registry.register("a/b", raise_boom)) == 1

    def test_subtree(self, registry: HealthCheckRegistry) -> None:
        registry.register("good/x", succeed).register("bad/y", report_down)
        assert _run(registry, "good") == 0
        assert _run(registry, "bad") == 1

    def test_unknown_path_exits_two(self, registry: HealthCheckRegistry) -> None:
        assert _run(registry, "missing") == 2
