"""Declarative checks — loads checks.yaml and registers them.

Example::

    checks:
      - path: api/status
        type: http
        url: https://example.com/health
      - path: infra/db
        type: tcp
        hostname: db.internal
        port: 5432
        timeout_ms: 2000
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import yaml

from .checks import CHECK_FACTORIES
from .registry import HealthCheckRegistry, InvalidRegistrationError

logger = logging.getLogger(__name__)


@dataclass
class CheckDef:
    """Definition of a single check from the checks file."""

    path: str
    type: str  # http | tcp | dns
    url: str = ""
    hostname: str = ""
    port: int = 443
    method: str = "GET"
    expected_status: int = 200
    timeout_ms: int | None = None


def parse_check(raw: dict[str, Any]) -> CheckDef:
    if not raw.get("path"):
        raise ValueError("check 'path' is required")
    check = CheckDef(
        path=raw["path"],
        type=raw.get("type", "http"),
        url=raw.get("url", ""),
        hostname=raw.get("hostname", ""),
        port=int(raw.get("port", 443)),
        method=raw.get("method", "GET"),
        expected_status=int(raw.get("expected_status", 200)),
        timeout_ms=raw.get("timeout_ms"),
    )
    if check.type not in CHECK_FACTORIES:
        raise ValueError(f"unknown check type: {check.type}")
    if check.type == "http" and not check.url:
        raise ValueError(f"http check {check.path} needs a 'url'")
    if check.type in ("tcp", "dns") and not check.hostname:
        raise ValueError(f"{check.type} check {check.path} needs a 'hostname'")
    return check


def load_checks(path: Path) -> list[CheckDef]:
    """Parse the checks file. A missing file yields no checks."""
    if not path.exists():
        logger.warning("Checks file not found: %s", path)
        return []

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        logger.error("Failed to parse %s: %s", path, e)
        return []
    if not isinstance(raw, dict):
        logger.error("Expected a mapping at the top of %s", path)
        return []

    checks = []
    for entry in raw.get("checks") or []:
        try:
            checks.append(parse_check(entry))
        except (ValueError, TypeError, AttributeError) as e:
            logger.warning("Skipping malformed check entry: %s", e)
    return checks


def register_checks(registry: HealthCheckRegistry, checks: list[CheckDef]) -> int:
    """Register every check definition; returns how many were installed."""
    installed = 0
    for check in checks:
        timeout_ms = registry.default_timeout_ms if check.timeout_ms is None else check.timeout_ms
        resolved = replace(check, timeout_ms=timeout_ms)
        try:
            registry.register(check.path, CHECK_FACTORIES[check.type](resolved), timeout_ms)
        except InvalidRegistrationError as e:
            logger.warning("Cannot register %s: %s", check.path, e)
            continue
        installed += 1
    logger.info("Registered %d/%d checks from file", installed, len(checks))
    return installed

