import os

from ai_cli_runner.execution.sanitize import (
    build_environment,
    sanitize_arguments,
    sanitize_environment,
    sanitize_value,
)


def test_sanitize_value_strips_nul_bytes() -> None:
    assert sanitize_value("/opt/home\0brew/bin/gemini\0") == "/opt/homebrew/bin/gemini"


def test_sanitize_value_passes_empty_through() -> None:
    assert sanitize_value("\0\0") == ""


def test_sanitize_arguments_keeps_order_and_empty_entries() -> None:
    assert sanitize_arguments(["-m", "\0", "gem\0ini"]) == ["-m", "", "gemini"]


def test_sanitize_environment_cleans_keys_and_values() -> None:
    assert sanitize_environment({"PA\0TH": "/usr/\0bin"}) == {"PATH": "/usr/bin"}


def test_build_environment_appends_missing_search_roots() -> None:
    env = build_environment(
        {"PATH": "/usr/bin:/usr/local/bin", "HOME": "/home/me"},
        search_roots=["/opt/homebrew/bin", "/usr/local/bin"],
    )
    assert env["PATH"] == os.pathsep.join(["/usr/bin", "/usr/local/bin", "/opt/homebrew/bin"])
    assert env["HOME"] == "/home/me"


def test_build_environment_fills_missing_home_and_path() -> None:
    env = build_environment({}, search_roots=["/opt/homebrew/bin"], home="/tmp/home")
    assert env == {"PATH": "/opt/homebrew/bin", "HOME": "/tmp/home"}


def test_build_environment_does_not_mutate_base() -> None:
    base = {"PATH": "/usr/bin", "TOKEN": "a\0b"}
    env = build_environment(base, search_roots=["/extra"], home="/h")
    assert base == {"PATH": "/usr/bin", "TOKEN": "a\0b"}
    assert env["TOKEN"] == "ab"


def test_build_environment_defaults_to_process_environment(monkeypatch) -> None:
    monkeypatch.setenv("AI_CLI_RUNNER_PROBE", "1")
    env = build_environment(search_roots=[])
    assert env["AI_CLI_RUNNER_PROBE"] == "1"
    assert env["HOME"]
