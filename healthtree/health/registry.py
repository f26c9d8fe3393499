"""Health check registry — owns the root of the procedure tree.

Procedures are addressed by ``/``-separated paths. Registering ``a/b/c``
creates the composites ``a`` and ``a/b`` on demand and installs a leaf ``c``.
Structural changes are serialized; evaluation works on per-composite
snapshots and never takes the lock.
"""

from __future__ import annotations

import logging
import threading

from .procedures import (
    DEFAULT_TIMEOUT_MS,
    CheckFunction,
    CompositeProcedure,
    LeafProcedure,
    Procedure,
)

logger = logging.getLogger(__name__)


# ── Errors ───────────────────────────────────────────────────────────────────


class HealthCheckError(Exception):
    """Base class for registry errors."""


class InvalidRegistrationError(HealthCheckError, ValueError):
    """Raised for a missing name or check, or when nesting under a leaf."""


class ProcedureLookupError(HealthCheckError):
    """A query path that does not lead to a procedure."""

    def __init__(self, segment: str, message: str) -> None:
        super().__init__(message)
        self.segment = segment
        self.message = message


class ProcedureNotFoundError(ProcedureLookupError):
    def __init__(self, segment: str) -> None:
        super().__init__(segment, f"Procedure not found '{segment}'")


class InvalidProcedurePathError(ProcedureLookupError):
    def __init__(self, segment: str) -> None:
        super().__init__(segment, f"The procedure '{segment}' cannot be a child of a leaf")


# ── Registry ─────────────────────────────────────────────────────────────────


def split_path(path: str) -> list[str]:
    """Split a path into its non-empty segments."""
    return [s for s in path.split("/") if s.strip()]


class HealthCheckRegistry:
    """Registers, removes and looks up procedures by path."""

    def __init__(self, default_timeout_ms: int = DEFAULT_TIMEOUT_MS) -> None:
        self.default_timeout_ms = default_timeout_ms
        self._root = CompositeProcedure()
        self._lock = threading.Lock()

    @property
    def root(self) -> CompositeProcedure:
        return self._root

    def register(
        self,
        name: str,
        check_fn: CheckFunction,
        timeout_ms: int | None = None,
    ) -> HealthCheckRegistry:
        """Install ``check_fn`` as a leaf at ``name``, replacing any existing node."""
        segments = self._validate(name)
        if check_fn is None:
            raise InvalidRegistrationError("The check function must not be None")
        if timeout_ms is None:
            timeout_ms = self.default_timeout_ms
        if timeout_ms <= 0:
            raise InvalidRegistrationError(f"timeout_ms must be positive, got {timeout_ms}")
        leaf = LeafProcedure(segments[-1], check_fn, timeout_ms=timeout_ms)

        with self._lock:
            self._attach(segments, leaf)

        logger.info("Registered health check %s (timeout %dms)", name, leaf.timeout_ms)
        return self

    def unregister(self, name: str) -> HealthCheckRegistry:
        """Remove the node at ``name``. Missing paths are ignored."""
        segments = self._validate(name)

        with self._lock:
            parent = self._find_last_parent(segments)
            removed = parent.remove(segments[-1]) if parent is not None else None

        if removed is not None:
            logger.info("Unregistered health check %s", name)
        else:
            logger.debug("Nothing to unregister at %s", name)
        return self

    def resolve(self, path: str = "") -> Procedure:
        """Return the procedure at ``path``; the empty path is the root."""
        node: Procedure = self._root
        for segment in split_path(path or ""):
            if not isinstance(node, CompositeProcedure):
                raise InvalidProcedurePathError(segment)
            child = node.get(segment)
            if child is None:
                raise ProcedureNotFoundError(segment)
            node = child
        return node

    def __contains__(self, path: str) -> bool:
        try:
            self.resolve(path)
        except ProcedureLookupError:
            return False
        return True

    # ── Internals ────────────────────────────────────────────────────────────

    @staticmethod
    def _validate(name: str | None) -> list[str]:
        if name is None:
            raise InvalidRegistrationError("The name must not be None")
        segments = name.split("/")
        if not name or any(not s.strip() for s in segments):
            raise InvalidRegistrationError(
                f"Invalid name {name!r}: expected non-empty segments separated by '/'"
            )
        return segments

    def _attach(self, segments: list[str], leaf: LeafProcedure) -> None:
        parent = self._root
        depth = 0
        for segment in segments[:-1]:
            child = parent.get(segment)
            if child is None:
                break
            if not isinstance(child, CompositeProcedure):
                raise InvalidRegistrationError(
                    f"Unable to add children under `{segment}`, `{segment}` is a leaf"
                )
            parent = child
            depth += 1

        # Missing intermediates are built detached and linked in with one insert
        node: Procedure = leaf
        for segment in reversed(segments[depth:-1]):
            composite = CompositeProcedure(segment)
            composite.add(node.name, node)
            node = composite
        parent.add(segments[depth], node)

    def _find_last_parent(self, segments: list[str]) -> CompositeProcedure | None:
        parent = self._root
        for segment in segments[:-1]:
            child = parent.get(segment)
            if not isinstance(child, CompositeProcedure):
                return None
            parent = child
        return parent
