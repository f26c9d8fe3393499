"""Outcome model — the result of evaluating one node of the procedure tree.

A leaf produces an Outcome with no children; a composite produces one whose
``children`` holds the outcome of every child it evaluated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

CAUSE = "cause"
PROCEDURE_FAILURE = "procedure-execution-failure"
TIMEOUT_CAUSE = "Timeout"


# ── Caller-facing status ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Status:
    """Explicit verdict a check can hand to its completion sink."""

    up: bool
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, data: dict[str, Any] | None = None) -> Status:
        return cls(up=True, data=dict(data or {}))

    @classmethod
    def ko(cls, data: dict[str, Any] | None = None) -> Status:
        return cls(up=False, data=dict(data or {}))


# ── Outcome ──────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Outcome:
    """Result of evaluating a leaf or a composite."""

    id: str | None
    up: bool
    data: dict[str, Any] = field(default_factory=dict)
    in_error: bool = False
    children: tuple[Outcome, ...] | None = None

    def __post_init__(self) -> None:
        if self.in_error and self.up:
            raise ValueError("an outcome in error cannot be up")

    @property
    def is_composite(self) -> bool:
        return self.children is not None

    @property
    def procedure_failed(self) -> bool:
        return bool(self.data.get(PROCEDURE_FAILURE, False))

    def find(self, child_id: str) -> Outcome | None:
        """Return the direct child outcome named ``child_id``."""
        for child in self.children or ():
            if child.id == child_id:
                return child
        return None

    def to_json(self) -> dict[str, Any]:
        """Serialize to ``{id?, status, data?, checks?}``."""
        body: dict[str, Any] = {}
        if self.id is not None:
            body["id"] = self.id
        body["status"] = "UP" if self.up else "DOWN"
        if self.data:
            body["data"] = dict(self.data)
        if self.children is not None:
            body["checks"] = [c.to_json() for c in self.children]
        return body

    # Constructors used by the evaluation engine

    @classmethod
    def from_status(cls, name: str | None, status: Status | None) -> Outcome:
        if status is None:
            return cls(id=name, up=True)
        return cls(id=name, up=status.up, data=dict(status.data))

    @classmethod
    def failure(cls, name: str | None, cause: Any) -> Outcome:
        return cls(id=name, up=False, data={CAUSE: _describe(cause)}, in_error=True)

    @classmethod
    def malfunction(cls, name: str | None, cause: Any) -> Outcome:
        """A check that raised or never answered before its deadline."""
        return cls(
            id=name,
            up=False,
            data={CAUSE: _describe(cause), PROCEDURE_FAILURE: True},
            in_error=True,
        )

    @classmethod
    def timeout(cls, name: str | None) -> Outcome:
        return cls.malfunction(name, TIMEOUT_CAUSE)


def _describe(cause: Any) -> str:
    if isinstance(cause, BaseException):
        return str(cause) or type(cause).__name__
    return str(cause)


def to_response_body(outcome: Outcome) -> dict[str, Any]:
    """Top-level JSON body: the outcome tree plus a mirrored ``outcome`` key."""
    body = outcome.to_json()
    if "outcome" not in body:
        body["outcome"] = body["status"]
    return body
