from __future__ import annotations

from typing import Sequence

# Informational chatter that AI CLIs print to stderr even on success.
DEFAULT_NOISE_PATTERNS: tuple[str, ...] = (
    "[warn]",
    "skipping unreadable directory",
    "loaded cached credentials",
    "loading extension",
)


def filter_stderr(text: str, patterns: Sequence[str] = DEFAULT_NOISE_PATTERNS) -> str:
    """Drop blank and known-benign lines from captured stderr.

    Example:
        ```python
        details = filter_stderr("[WARN] cache miss\\nreal error: disk full")
        assert details == "real error: disk full"
        ```
    """
    needles = [pattern.lower() for pattern in patterns if pattern]
    kept: list[str] = []
    for line in text.strip().splitlines():
        if not line.strip():
            continue
        lowered = line.lower()
        if any(needle in lowered for needle in needles):
            continue
        kept.append(line)
    return "\n".join(kept)
