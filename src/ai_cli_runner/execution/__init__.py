from .engine import ExecutionEngine
from .types import (
    Failure,
    FailureKind,
    InvocationError,
    InvocationOutcome,
    InvocationRequest,
    Success,
    unwrap,
)

__all__ = [
    "ExecutionEngine",
    "Failure",
    "FailureKind",
    "InvocationError",
    "InvocationOutcome",
    "InvocationRequest",
    "Success",
    "unwrap",
]
