from pathlib import Path

import pytest

from ai_cli_runner import Failure, FailureKind, InvocationRequest, InvocationSettings, Success, run_model


class _RecordingEngine:
    def __init__(self, outcome=None) -> None:
        self.requests: list[InvocationRequest] = []
        self.outcome = outcome or Success("Dear hiring team,")

    def execute(self, request: InvocationRequest):
        self.requests.append(request)
        return self.outcome


def test_run_model_builds_argument_request() -> None:
    engine = _RecordingEngine()
    settings = InvocationSettings(timeout_seconds=45, search_roots=["/nowhere"])

    outcome = run_model("Write it", "gemini-3-pro", engine=engine, settings=settings)

    assert outcome == Success("Dear hiring team,")
    [request] = engine.requests
    assert request.executable_path == "/nowhere/gemini"
    assert request.arguments[-1] == "Write it"
    assert request.input is None
    assert request.timeout_seconds == 45


def test_run_model_sends_prompt_on_stdin_for_opencode() -> None:
    engine = _RecordingEngine()
    run_model("Write it", "opencode/glm-4.7-free", engine=engine, settings=InvocationSettings())
    [request] = engine.requests
    assert request.input == "Write it"
    assert "Write it" not in request.arguments


def test_run_model_passes_failures_through() -> None:
    engine = _RecordingEngine(Failure(FailureKind.TIMED_OUT))
    assert run_model("x", "mistral-vibe", engine=engine) == Failure(FailureKind.TIMED_OUT)


def test_run_model_reads_settings_file(tmp_path: Path) -> None:
    settings_file = tmp_path / "settings.toml"
    settings_file.write_text("[settings]\ntimeout_seconds = 7\nsearch_roots = [\"/x\"]\n", encoding="utf-8")
    engine = _RecordingEngine()

    run_model("x", "gemini-3-flash", engine=engine, settings_file=str(settings_file))

    assert engine.requests[0].timeout_seconds == 7
    assert engine.requests[0].executable_path == "/x/gemini"


def test_run_model_rejects_settings_and_settings_file_together(tmp_path: Path) -> None:
    settings_file = tmp_path / "settings.toml"
    settings_file.write_text("[settings]\n", encoding="utf-8")
    with pytest.raises(ValueError, match="Provide either 'settings' or 'settings_file'"):
        run_model("x", "gemini-3-pro", engine=_RecordingEngine(), settings=InvocationSettings(), settings_file=str(settings_file))


def test_run_model_rejects_unknown_model() -> None:
    with pytest.raises(ValueError, match="Unknown model"):
        run_model("x", "gpt-0", engine=_RecordingEngine())
