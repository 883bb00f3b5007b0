from __future__ import annotations

import logging

from .execution.engine import ExecutionEngine
from .execution.types import InvocationOutcome
from .providers import ModelSpec, build_request, find_model
from .settings import InvocationSettings

logger = logging.getLogger(__name__)


def _resolve_settings(
    settings: InvocationSettings | None,
    settings_file: str | None,
) -> InvocationSettings:
    """Resolve the effective settings object for a run.

    Example:
        ```python
        settings = _resolve_settings(None, "/tmp/settings.toml")
        ```
    """
    if settings is not None and settings_file is not None:
        raise ValueError("Provide either 'settings' or 'settings_file', not both")
    if settings is None and settings_file is not None:
        return InvocationSettings.from_file(settings_file)
    if settings is None:
        return InvocationSettings()
    return settings


def run_model(
    prompt: str,
    model: str | ModelSpec,
    engine: ExecutionEngine,
    settings: InvocationSettings | None = None,
    settings_file: str | None = None,
) -> InvocationOutcome:
    """Send a prompt to an AI CLI model through the given engine.

    Example:
        ```python
        from ai_cli_runner import ProcessEngine, run_model
        outcome = run_model("Write a cover letter", "gemini-3-flash", engine=ProcessEngine())
        ```
    """
    resolved_settings = _resolve_settings(settings, settings_file)
    model_spec = find_model(model) if isinstance(model, str) else model
    request = build_request(model_spec, prompt, resolved_settings)
    logger.debug(
        "Running model %s via %s (stdin=%s)",
        model_spec.identifier,
        request.executable_path,
        request.input is not None,
    )
    return engine.execute(request)
