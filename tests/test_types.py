import pytest

from ai_cli_runner import (
    Failure,
    FailureKind,
    InvocationError,
    InvocationRequest,
    Success,
    unwrap,
)


def test_request_normalizes_arguments_to_tuple() -> None:
    request = InvocationRequest("/usr/bin/echo", ["a", "b"], timeout_seconds=1)
    assert request.arguments == ("a", "b")
    assert request.input is None


def test_request_rejects_non_positive_timeout() -> None:
    with pytest.raises(ValueError, match="timeout_seconds"):
        InvocationRequest("/usr/bin/echo", timeout_seconds=0)


@pytest.mark.parametrize("timeout", [float("nan"), float("inf"), float("-inf")])
def test_request_rejects_non_finite_timeout(timeout: float) -> None:
    with pytest.raises(ValueError, match="timeout_seconds"):
        InvocationRequest("/usr/bin/echo", timeout_seconds=timeout)


def test_failure_messages_are_specific() -> None:
    assert "not found at /opt/homebrew/bin/gemini" in Failure(
        FailureKind.BINARY_NOT_FOUND, "/opt/homebrew/bin/gemini"
    ).message
    assert Failure(FailureKind.EXECUTION_FAILED, "Exit code 2").message == "AI execution failed: Exit code 2"
    assert Failure(FailureKind.TIMED_OUT).message == "The AI operation timed out."
    assert Failure(FailureKind.EMPTY_OUTPUT).message == "The AI returned no output."
    assert Failure(FailureKind.EMPTY_OUTPUT, "quota").message.endswith("Details: quota")


def test_unwrap_returns_output_or_raises() -> None:
    assert unwrap(Success("letter")) == "letter"
    with pytest.raises(InvocationError) as excinfo:
        unwrap(Failure(FailureKind.TIMED_OUT))
    assert excinfo.value.kind is FailureKind.TIMED_OUT
    assert str(excinfo.value) == "The AI operation timed out."


def test_ok_flags() -> None:
    assert Success("x").ok is True
    assert Failure(FailureKind.EMPTY_OUTPUT).ok is False
