from .settings import InvocationSettings
from .execution.types import (
    Failure,
    FailureKind,
    InvocationError,
    InvocationOutcome,
    InvocationRequest,
    Success,
    unwrap,
)
from .execution.process_engine import ProcessEngine
from .runner import run_model

__all__ = [
    "InvocationSettings",
    "Failure",
    "FailureKind",
    "InvocationError",
    "InvocationOutcome",
    "InvocationRequest",
    "Success",
    "unwrap",
    "ProcessEngine",
    "run_model",
]
