"""Health subsystem — procedure tree, registry, verdicts."""

from .classifier import Verdict, classify, evaluate
from .outcome import Outcome, Status
from .procedures import Completion, CompositeProcedure, LeafProcedure
from .registry import (
    HealthCheckRegistry,
    InvalidProcedurePathError,
    InvalidRegistrationError,
    ProcedureNotFoundError,
)
