from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Mapping, Sequence

_UNSAFE_CHARS = ("\0",)


def sanitize_value(text: str) -> str:
    """Strip bytes that would truncate an argv or environment entry.

    Example:
        ```python
        assert sanitize_value("gem\\0ini") == "gemini"
        ```
    """
    for char in _UNSAFE_CHARS:
        text = text.replace(char, "")
    return text


def sanitize_arguments(arguments: Iterable[str]) -> list[str]:
    """Sanitize every argument, keeping order and empty entries.

    Example:
        ```python
        args = sanitize_arguments(["-m", "gemini-3-pro\\0"])
        ```
    """
    return [sanitize_value(arg) for arg in arguments]


def sanitize_environment(environ: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of the environment with sanitized keys and values.

    Example:
        ```python
        env = sanitize_environment({"PA\\0TH": "/usr/bin"})
        ```
    """
    return {sanitize_value(key): sanitize_value(value) for key, value in environ.items()}


def build_environment(
    base: Mapping[str, str] | None = None,
    *,
    search_roots: Sequence[str] = (),
    home: str | None = None,
) -> dict[str, str]:
    """Clone the caller environment and make user-installed CLIs discoverable.

    Search roots missing from `PATH` are appended in order and `HOME` is
    filled in when absent.

    Example:
        ```python
        env = build_environment({"PATH": "/usr/bin"}, search_roots=["/opt/homebrew/bin"])
        ```
    """
    env = dict(os.environ if base is None else base)
    entries = [entry for entry in env.get("PATH", "").split(os.pathsep) if entry]
    for root in search_roots:
        if root and root not in entries:
            entries.append(root)
    env["PATH"] = os.pathsep.join(entries)
    if not env.get("HOME"):
        env["HOME"] = home if home is not None else str(Path.home())
    return sanitize_environment(env)
