"""Procedure tree — leaf checks, composite checks and the completion sink.

A leaf wraps a caller-supplied check function. The function is invoked with a
:class:`Completion` and must settle it at most once, either from a callback or
from a coroutine it returns. The leaf races that settlement against a timer;
whichever happens first is the leaf's outcome.

A composite groups named children and evaluates all of them concurrently.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any, Union

from .outcome import Outcome, Status

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 1000

CheckFunction = Callable[["Completion"], Union[Awaitable[Any], None]]


# ── Completion sink ──────────────────────────────────────────────────────────


class Completion:
    """Single-shot sink handed to a check function.

    The first call to :meth:`complete` or :meth:`fail` (or the leaf's timer)
    settles it. Every later attempt is ignored and returns ``False``.
    Safe to settle from any thread; the result is always delivered on the
    event loop.
    """

    def __init__(self, name: str | None, loop: asyncio.AbstractEventLoop) -> None:
        self.name = name
        self.timed_out = False
        self._loop = loop
        self._future: asyncio.Future[Outcome] = loop.create_future()
        self._lock = threading.Lock()
        self._settled = False

    @property
    def settled(self) -> bool:
        return self._settled

    def complete(self, status: Status | None = None) -> bool:
        """Report a verdict. No status means UP with no data."""
        return self.settle(Outcome.from_status(self.name, status))

    def fail(self, cause: Any) -> bool:
        """Report that the check could not succeed."""
        return self.settle(Outcome.failure(self.name, cause))

    def expire(self) -> bool:
        """Settle with the timeout outcome."""
        settled = self.settle(Outcome.timeout(self.name))
        if settled:
            self.timed_out = True
        return settled

    def settle(self, outcome: Outcome) -> bool:
        with self._lock:
            if self._settled:
                logger.debug("Ignoring late settlement of %s (up=%s)", self.name, outcome.up)
                return False
            self._settled = True

        if self._on_loop_thread():
            self._deliver(outcome)
        else:
            self._loop.call_soon_threadsafe(self._deliver, outcome)
        return True

    def _on_loop_thread(self) -> bool:
        try:
            return asyncio.get_running_loop() is self._loop
        except RuntimeError:
            return False

    def _deliver(self, outcome: Outcome) -> None:
        if not self._future.done():
            self._future.set_result(outcome)

    async def wait(self) -> Outcome:
        # Shielded so a cancelled evaluation never cancels the shared future
        return await asyncio.shield(self._future)


# ── Leaf ─────────────────────────────────────────────────────────────────────


class LeafProcedure:
    """Wraps one check function and its time budget."""

    def __init__(
        self,
        name: str,
        check_fn: CheckFunction,
        timeout_ms: int = DEFAULT_TIMEOUT_MS,
    ) -> None:
        if timeout_ms <= 0:
            raise ValueError(f"timeout_ms must be positive, got {timeout_ms}")
        self.name = name
        self.check_fn = check_fn
        self.timeout_ms = timeout_ms
        self._pending: set[asyncio.Task[Any]] = set()

    def __repr__(self) -> str:
        return f"LeafProcedure({self.name!r}, timeout_ms={self.timeout_ms})"

    async def check(self) -> Outcome:
        """Run the check once and return its outcome."""
        loop = asyncio.get_running_loop()
        completion = Completion(self.name, loop)
        timer = loop.call_later(self.timeout_ms / 1000, self._on_timeout, completion)
        task: asyncio.Future[Any] | None = None
        try:
            try:
                result = self.check_fn(completion)
            except Exception as e:
                logger.warning("Health check %s raised: %s", self.name, e, exc_info=True)
                completion.settle(Outcome.malfunction(self.name, e))
            else:
                if inspect.isawaitable(result):
                    task = self._track(completion, result)
            return await completion.wait()
        finally:
            timer.cancel()
            # A check still running after its deadline, or after the caller gave up, is abandoned
            if task is not None and not task.done() and (completion.timed_out or not completion.settled):
                task.cancel()

    def _track(self, completion: Completion, awaitable: Awaitable[Any]) -> asyncio.Future[Any]:
        task = asyncio.ensure_future(awaitable)
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        task.add_done_callback(partial(self._on_task_done, completion))
        return task

    def _on_task_done(self, completion: Completion, task: asyncio.Task[Any]) -> None:
        if task.cancelled():
            completion.settle(Outcome.malfunction(self.name, "Cancelled"))
            return
        exc = task.exception()
        if exc is None:
            return
        if completion.settle(Outcome.malfunction(self.name, exc)):
            logger.warning("Health check %s raised: %s", self.name, exc, exc_info=exc)
        else:
            logger.debug("Health check %s raised after settling: %s", self.name, exc)

    def _on_timeout(self, completion: Completion) -> None:
        if completion.expire():
            logger.warning("Health check %s timed out after %dms", self.name, self.timeout_ms)


# ── Composite ────────────────────────────────────────────────────────────────


class CompositeProcedure:
    """Groups uniquely named child procedures."""

    def __init__(self, name: str | None = None) -> None:
        self.name = name
        self._children: dict[str, Procedure] = {}

    def __repr__(self) -> str:
        return f"CompositeProcedure({self.name!r}, children={sorted(self._children)})"

    def __len__(self) -> int:
        return len(self._children)

    def get(self, name: str) -> Procedure | None:
        return self._children.get(name)

    def add(self, name: str, procedure: Procedure) -> None:
        self._children[name] = procedure

    def remove(self, name: str) -> Procedure | None:
        return self._children.pop(name, None)

    def children(self) -> dict[str, Procedure]:
        """Snapshot of the current child mapping."""
        return dict(self._children)

    async def check(self) -> Outcome:
        """Evaluate every child concurrently and AND their verdicts."""
        snapshot = list(self.children().values())
        outcomes = await asyncio.gather(*(child.check() for child in snapshot))
        return Outcome(
            id=self.name,
            up=all(o.up for o in outcomes),
            children=tuple(outcomes),
        )


Procedure = Union[LeafProcedure, CompositeProcedure]
