"""Ready-made check functions — HTTP(S), TCP connect, DNS resolve.

Each factory returns an ``async`` check function suitable for
:meth:`HealthCheckRegistry.register`. Checks report latency in ``data`` and
settle the completion with an explicit status; transport failures go through
``Completion.fail`` so they show up as DOWN with a cause.
"""

from __future__ import annotations

import asyncio
import logging
import socket
import time
from typing import Any

import httpx

from .outcome import Status
from .procedures import CheckFunction, Completion

logger = logging.getLogger(__name__)

# Responses slower than this are still UP but flagged in the data
SLOW_RESPONSE_MS = 3000


def _elapsed_ms(t0: float) -> float:
    return round((time.perf_counter() - t0) * 1000, 1)


def http_check(
    url: str,
    method: str = "GET",
    expected_status: int = 200,
    timeout_ms: int = 10_000,
) -> CheckFunction:
    """HTTP(S) check — UP when the response code matches ``expected_status``."""

    async def check(completion: Completion) -> None:
        t0 = time.perf_counter()
        try:
            async with httpx.AsyncClient(timeout=timeout_ms / 1000, follow_redirects=True) as client:
                resp = await client.request(method, url)
        except httpx.TimeoutException:
            completion.fail(f"Connection timed out ({timeout_ms}ms)")
            return
        except httpx.HTTPError as e:
            completion.fail(f"Connection error: {e}")
            return

        latency = _elapsed_ms(t0)
        logger.debug("HTTP check %s: %d in %sms", url, resp.status_code, latency)
        data: dict[str, Any] = {"url": url, "status_code": resp.status_code, "latency_ms": latency}
        if latency > SLOW_RESPONSE_MS:
            data["slow"] = True

        if resp.status_code == expected_status:
            completion.complete(Status.ok(data))
        else:
            data["cause"] = f"Expected {expected_status}, got {resp.status_code}"
            completion.complete(Status.ko(data))

    return check


def tcp_check(hostname: str, port: int = 443, timeout_ms: int = 5_000) -> CheckFunction:
    """Raw TCP port connectivity check."""

    async def check(completion: Completion) -> None:
        t0 = time.perf_counter()
        try:
            _, writer = await asyncio.wait_for(
                asyncio.open_connection(hostname, port), timeout=timeout_ms / 1000,
            )
        except asyncio.TimeoutError:
            completion.fail(f"TCP connect to {hostname}:{port} timed out ({timeout_ms}ms)")
            return
        except OSError as e:
            completion.fail(f"TCP connect failed: {type(e).__name__}: {e}")
            return

        latency = _elapsed_ms(t0)
        writer.close()
        completion.complete(Status.ok({"port": port, "latency_ms": latency}))

    return check


def dns_check(hostname: str) -> CheckFunction:
    """DNS resolution check."""

    async def check(completion: Completion) -> None:
        loop = asyncio.get_running_loop()
        t0 = time.perf_counter()
        try:
            addrs = await loop.getaddrinfo(hostname, None)
        except socket.gaierror as e:
            completion.fail(f"DNS resolution failed: {e}")
            return

        ips = sorted({a[4][0] for a in addrs})
        if not ips:
            completion.complete(Status.ko({"cause": f"No addresses for {hostname}"}))
            return
        completion.complete(Status.ok({"ips": ips, "latency_ms": _elapsed_ms(t0)}))

    return check


CHECK_FACTORIES = {
    "http": lambda c: http_check(c.url, c.method, c.expected_status, c.timeout_ms),
    "tcp": lambda c: tcp_check(c.hostname, c.port, c.timeout_ms),
    "dns": lambda c: dns_check(c.hostname),
}
