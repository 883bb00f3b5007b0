from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Sequence, Union


@dataclass(frozen=True, slots=True)
class InvocationRequest:
    """Immutable description of one external binary invocation.

    Example:
        ```python
        req = InvocationRequest("/usr/bin/echo", ["hello"], timeout_seconds=5)
        ```
    """

    executable_path: str
    arguments: Sequence[str] = field(default_factory=tuple)
    input: str | None = None
    timeout_seconds: float = 120.0

    def __post_init__(self) -> None:
        """Normalize arguments and validate the timeout.

        Example:
            ```python
            InvocationRequest("/bin/true", timeout_seconds=1)
            ```
        """
        object.__setattr__(self, "arguments", tuple(self.arguments))
        if not math.isfinite(self.timeout_seconds) or self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be a positive finite number")


class FailureKind(str, Enum):
    """Mutually exclusive failure classes of an invocation.

    Example:
        ```python
        kind = FailureKind.TIMED_OUT
        ```
    """

    BINARY_NOT_FOUND = "binary-not-found"
    EXECUTION_FAILED = "execution-failed"
    TIMED_OUT = "timed-out"
    EMPTY_OUTPUT = "empty-output"


@dataclass(frozen=True, slots=True)
class Success:
    """Invocation finished with exit code 0 and non-empty output.

    Example:
        ```python
        out = Success(output="Dear hiring manager, ...")
        ```
    """

    output: str

    @property
    def ok(self) -> bool:
        """Return True for successful outcomes.

        Example:
            ```python
            assert Success("hi").ok
            ```
        """
        return True


@dataclass(frozen=True, slots=True)
class Failure:
    """Classified invocation failure.

    Example:
        ```python
        out = Failure(FailureKind.EXECUTION_FAILED, "Exit code 2")
        ```
    """

    kind: FailureKind
    details: str = ""

    @property
    def ok(self) -> bool:
        """Return False for failed outcomes.

        Example:
            ```python
            assert not Failure(FailureKind.TIMED_OUT).ok
            ```
        """
        return False

    @property
    def message(self) -> str:
        """Return a user-facing description of the failure.

        Example:
            ```python
            text = Failure(FailureKind.BINARY_NOT_FOUND, "/opt/homebrew/bin/gemini").message
            ```
        """
        if self.kind is FailureKind.BINARY_NOT_FOUND:
            return (
                f"AI CLI binary not found at {self.details}. "
                "Please ensure it is installed and on one of the search roots."
            )
        if self.kind is FailureKind.EXECUTION_FAILED:
            return f"AI execution failed: {self.details}"
        if self.kind is FailureKind.TIMED_OUT:
            return "The AI operation timed out."
        if self.details:
            return f"The AI returned no output.\nDetails: {self.details}"
        return "The AI returned no output."


InvocationOutcome = Union[Success, Failure]


class InvocationError(Exception):
    """Raised by `unwrap` when an outcome is a failure.

    Example:
        ```python
        raise InvocationError(Failure(FailureKind.TIMED_OUT))
        ```
    """

    def __init__(self, failure: Failure) -> None:
        """Store the failure and use its message as the exception text.

        Example:
            ```python
            err = InvocationError(Failure(FailureKind.EMPTY_OUTPUT))
            ```
        """
        super().__init__(failure.message)
        self.failure = failure

    @property
    def kind(self) -> FailureKind:
        """Return the failure kind carried by this error.

        Example:
            ```python
            assert err.kind is FailureKind.EMPTY_OUTPUT
            ```
        """
        return self.failure.kind


def unwrap(outcome: InvocationOutcome) -> str:
    """Return the output of a success or raise `InvocationError`.

    Example:
        ```python
        text = unwrap(engine.execute(request))
        ```
    """
    if isinstance(outcome, Success):
        return outcome.output
    raise InvocationError(outcome)
