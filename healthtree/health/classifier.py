"""Verdict for an evaluated procedure tree.

Distinguishes a tree in which a check deliberately reported a problem
(UNHEALTHY) from one in which the checking itself broke (FAULTED).
"""

from __future__ import annotations

from enum import Enum

from .outcome import Outcome
from .procedures import Procedure


class Verdict(str, Enum):
    EMPTY = "empty"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    FAULTED = "faulted"

    @property
    def http_status(self) -> int:
        return _HTTP_STATUS[self]


_HTTP_STATUS = {
    Verdict.EMPTY: 204,
    Verdict.HEALTHY: 200,
    Verdict.UNHEALTHY: 503,
    Verdict.FAULTED: 500,
}


def count_checks(outcome: Outcome) -> int:
    """Number of leaf outcomes in the subtree."""
    if outcome.children is None:
        return 1
    return sum(count_checks(c) for c in outcome.children)


def has_procedure_failure(outcome: Outcome) -> bool:
    if outcome.procedure_failed:
        return True
    return any(has_procedure_failure(c) for c in outcome.children or ())


def classify(outcome: Outcome) -> Verdict:
    if outcome.up:
        if outcome.is_composite and count_checks(outcome) == 0:
            return Verdict.EMPTY
        return Verdict.HEALTHY
    if has_procedure_failure(outcome):
        return Verdict.FAULTED
    return Verdict.UNHEALTHY


async def evaluate(procedure: Procedure) -> tuple[Outcome, Verdict]:
    """Run ``procedure`` and classify its outcome."""
    outcome = await procedure.check()
    return outcome, classify(outcome)
