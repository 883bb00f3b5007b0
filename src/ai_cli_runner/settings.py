from __future__ import annotations

import math
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .execution.stderr_filter import DEFAULT_NOISE_PATTERNS


def _default_settings_path() -> Path:
    """Return bundled default settings TOML path.

    Example:
        ```python
        path = _default_settings_path()
        ```
    """
    return Path(__file__).with_name("default_settings.toml")


def _read_settings_toml(path: Path) -> dict[str, Any]:
    """Read settings TOML and return the settings table.

    Example:
        ```python
        raw = _read_settings_toml(Path("/tmp/settings.toml"))
        ```
    """
    if not path.exists():
        return {
            "timeout_seconds": 120.0,
            "kill_grace_seconds": 5.0,
            "drain_timeout_seconds": 5.0,
            "poll_interval_seconds": 0.02,
            "search_roots": ["/opt/homebrew/bin", "/usr/local/bin", "/usr/bin"],
            "noise_patterns": list(DEFAULT_NOISE_PATTERNS),
        }
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    settings_obj = raw.get("settings", raw)
    if not isinstance(settings_obj, dict):
        raise ValueError("Settings config must be a TOML table")
    return settings_obj


def _list_of_str(value: Any, field_name: str) -> list[str]:
    """Validate and normalize a list-of-strings settings field.

    Example:
        ```python
        roots = _list_of_str(["/opt/homebrew/bin"], "search_roots")
        ```
    """
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"'{field_name}' must be a list of strings")
    out: list[str] = []
    for item in value:
        if not isinstance(item, str):
            raise ValueError(f"'{field_name}' must contain only strings")
        out.append(item)
    return out


def _positive_float(value: Any, field_name: str) -> float:
    """Validate a strictly positive number of seconds.

    Example:
        ```python
        timeout = _positive_float(120, "timeout_seconds")
        ```
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"'{field_name}' must be a number")
    if not math.isfinite(value):
        raise ValueError(f"'{field_name}' must be finite")
    if value <= 0:
        raise ValueError(f"'{field_name}' must be positive")
    return float(value)


_DEFAULT_SETTINGS_RAW = _read_settings_toml(_default_settings_path())
DEFAULT_TIMEOUT_SECONDS = float(_DEFAULT_SETTINGS_RAW.get("timeout_seconds", 120.0))
DEFAULT_KILL_GRACE_SECONDS = float(_DEFAULT_SETTINGS_RAW.get("kill_grace_seconds", 5.0))
DEFAULT_DRAIN_TIMEOUT_SECONDS = float(_DEFAULT_SETTINGS_RAW.get("drain_timeout_seconds", 5.0))
DEFAULT_POLL_INTERVAL_SECONDS = float(_DEFAULT_SETTINGS_RAW.get("poll_interval_seconds", 0.02))
DEFAULT_SEARCH_ROOTS = _list_of_str(_DEFAULT_SETTINGS_RAW.get("search_roots", []), "search_roots")
DEFAULT_NOISE_PATTERN_LIST = _list_of_str(
    _DEFAULT_SETTINGS_RAW.get("noise_patterns", list(DEFAULT_NOISE_PATTERNS)), "noise_patterns"
)


@dataclass(slots=True)
class InvocationSettings:
    """Tunables for process invocation and binary discovery.

    Example:
        ```python
        settings = InvocationSettings(timeout_seconds=60, search_roots=["/opt/homebrew/bin"])
        ```
    """

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    kill_grace_seconds: float = DEFAULT_KILL_GRACE_SECONDS
    drain_timeout_seconds: float = DEFAULT_DRAIN_TIMEOUT_SECONDS
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    search_roots: list[str] = field(default_factory=lambda: DEFAULT_SEARCH_ROOTS.copy())
    noise_patterns: list[str] = field(default_factory=lambda: DEFAULT_NOISE_PATTERN_LIST.copy())
    config_path: str | None = None

    def __post_init__(self) -> None:
        """Validate durations after dataclass initialization.

        Example:
            ```python
            InvocationSettings(timeout_seconds=1)
            ```
        """
        for name in (
            "timeout_seconds",
            "kill_grace_seconds",
            "drain_timeout_seconds",
            "poll_interval_seconds",
        ):
            setattr(self, name, _positive_float(getattr(self, name), name))

    @classmethod
    def from_file(cls, config_path: str) -> "InvocationSettings":
        """Create a settings instance from a TOML file.

        Example:
            ```python
            settings = InvocationSettings.from_file("/tmp/settings.toml")
            ```
        """
        raw = _read_settings_toml(Path(config_path))
        return cls(
            timeout_seconds=raw.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
            kill_grace_seconds=raw.get("kill_grace_seconds", DEFAULT_KILL_GRACE_SECONDS),
            drain_timeout_seconds=raw.get("drain_timeout_seconds", DEFAULT_DRAIN_TIMEOUT_SECONDS),
            poll_interval_seconds=raw.get("poll_interval_seconds", DEFAULT_POLL_INTERVAL_SECONDS),
            search_roots=_list_of_str(
                raw.get("search_roots", DEFAULT_SEARCH_ROOTS), "search_roots"
            ),
            noise_patterns=_list_of_str(
                raw.get("noise_patterns", DEFAULT_NOISE_PATTERN_LIST), "noise_patterns"
            ),
            config_path=config_path,
        )
