import pytest

from ai_cli_runner import InvocationSettings
from ai_cli_runner.providers import (
    MODELS,
    ProviderCapabilities,
    build_request,
    capabilities_for_provider,
    find_model,
    provider_tags,
    register_provider,
    resolve_binary,
)


def test_every_model_maps_to_a_registered_provider() -> None:
    for model in MODELS:
        caps = capabilities_for_provider(model.provider)
        assert caps.binary_names


def test_gemini_takes_prompt_as_argument() -> None:
    caps = capabilities_for_provider("gemini")
    assert caps.uses_standard_input is False
    assert caps.build_arguments("gemini-3-pro", "hi") == ["-m", "gemini-3-pro", "--yolo", "hi"]


def test_opencode_and_mistral_take_prompt_on_stdin() -> None:
    opencode = capabilities_for_provider("opencode")
    mistral = capabilities_for_provider("mistral")
    assert opencode.uses_standard_input and mistral.uses_standard_input
    assert opencode.build_arguments("opencode/grok-code", "hi") == ["run", "--model", "opencode/grok-code"]
    assert mistral.build_arguments("mistral-vibe", "hi") == ["run", "--model", "mistral-vibe"]


def test_unknown_provider_and_model_raise() -> None:
    with pytest.raises(ValueError, match="Unknown provider"):
        capabilities_for_provider("nope")
    with pytest.raises(ValueError, match="Unknown model"):
        find_model("gpt-0")


def test_resolve_binary_uses_first_existing_root() -> None:
    existing = {"/usr/local/bin/gemini", "/usr/bin/gemini"}
    path = resolve_binary(
        ["gemini"],
        ["/opt/homebrew/bin", "/usr/local/bin", "/usr/bin"],
        is_file=existing.__contains__,
    )
    assert path == "/usr/local/bin/gemini"


def test_resolve_binary_falls_back_to_first_root() -> None:
    path = resolve_binary(["mistral-vibe"], ["/opt/homebrew/bin", "/usr/bin"], is_file=lambda _: False)
    assert path == "/opt/homebrew/bin/mistral-vibe"


def test_resolve_binary_with_real_filesystem(tmp_path) -> None:
    root = tmp_path / "bin"
    root.mkdir()
    (root / "opencode").write_text("", encoding="utf-8")
    assert resolve_binary(["opencode"], [str(tmp_path), str(root)]) == str(root / "opencode")


def test_build_request_for_argument_provider() -> None:
    settings = InvocationSettings(timeout_seconds=30, search_roots=["/opt/homebrew/bin"])
    request = build_request(find_model("gemini-3-flash"), "Write a letter", settings, is_file=lambda _: True)
    assert request.executable_path == "/opt/homebrew/bin/gemini"
    assert request.arguments == ("-m", "gemini-3-flash", "--yolo", "Write a letter")
    assert request.input is None
    assert request.timeout_seconds == 30


def test_build_request_for_stdin_provider() -> None:
    settings = InvocationSettings(search_roots=["/usr/local/bin"])
    request = build_request(find_model("opencode/big-pickle"), "Write a letter", settings, is_file=lambda _: True)
    assert request.executable_path == "/usr/local/bin/opencode"
    assert request.arguments == ("run", "--model", "opencode/big-pickle")
    assert request.input == "Write a letter"


def test_register_provider_extends_registry() -> None:
    caps = ProviderCapabilities(("claude",), lambda model, prompt: ["-p", "--model", model], True)
    register_provider("claude-test", caps)
    assert "claude-test" in provider_tags()
    assert capabilities_for_provider("claude-test") is caps


def test_register_provider_validates_input() -> None:
    with pytest.raises(ValueError, match="non-empty"):
        register_provider(" ", ProviderCapabilities(("x",), lambda m, p: [], False))
    with pytest.raises(ValueError, match="binary name"):
        register_provider("empty", ProviderCapabilities((), lambda m, p: [], False))
