from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Callable, Sequence

from .execution.types import InvocationRequest
from .settings import InvocationSettings

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ProviderCapabilities:
    """How to invoke one AI CLI provider.

    Example:
        ```python
        caps = ProviderCapabilities(("gemini",), lambda model, prompt: ["-m", model, prompt], False)
        ```
    """

    binary_names: tuple[str, ...]
    build_arguments: Callable[[str, str], list[str]]
    uses_standard_input: bool


@dataclass(frozen=True, slots=True)
class ModelSpec:
    """A selectable model and the provider that serves it.

    Example:
        ```python
        model = ModelSpec("gemini-3-pro", "Gemini 3 Pro", "gemini")
        ```
    """

    identifier: str
    display_name: str
    provider: str


def _gemini_arguments(model_name: str, prompt: str) -> list[str]:
    """Build gemini CLI arguments; the prompt is passed as the last argument.

    Example:
        ```python
        args = _gemini_arguments("gemini-3-flash", "Write a letter")
        ```
    """
    return ["-m", model_name, "--yolo", prompt]


def _opencode_arguments(model_name: str, prompt: str) -> list[str]:
    """Build opencode CLI arguments; the prompt travels on stdin.

    Example:
        ```python
        args = _opencode_arguments("opencode/big-pickle", "Write a letter")
        ```
    """
    return ["run", "--model", model_name]


def _mistral_arguments(model_name: str, prompt: str) -> list[str]:
    """Build mistral-vibe CLI arguments; the prompt travels on stdin.

    Example:
        ```python
        args = _mistral_arguments("mistral-vibe", "Write a letter")
        ```
    """
    return ["run", "--model", "mistral-vibe"]


_PROVIDERS: dict[str, ProviderCapabilities] = {
    "gemini": ProviderCapabilities(("gemini",), _gemini_arguments, False),
    "opencode": ProviderCapabilities(("opencode",), _opencode_arguments, True),
    "mistral": ProviderCapabilities(("mistral-vibe",), _mistral_arguments, True),
}

MODELS: tuple[ModelSpec, ...] = (
    ModelSpec("gemini-3-pro", "Gemini 3 Pro", "gemini"),
    ModelSpec("gemini-3-flash", "Gemini 3 Flash", "gemini"),
    ModelSpec("opencode/big-pickle", "Big Pickle", "opencode"),
    ModelSpec("opencode/glm-4.7-free", "GLM-4.7", "opencode"),
    ModelSpec("opencode/grok-code", "Grok Code Fast 1", "opencode"),
    ModelSpec("opencode/minimax-m2.1-free", "MiniMax M2.1", "opencode"),
    ModelSpec("mistral-vibe", "Mistral Vibe", "mistral"),
)


def register_provider(tag: str, capabilities: ProviderCapabilities) -> None:
    """Add or replace a provider in the registry.

    Example:
        ```python
        register_provider("claude", ProviderCapabilities(("claude",), lambda m, p: ["-p"], True))
        ```
    """
    if not tag.strip():
        raise ValueError("Provider tag must be non-empty")
    if not capabilities.binary_names:
        raise ValueError(f"Provider '{tag}' must declare at least one binary name")
    _PROVIDERS[tag] = capabilities


def provider_tags() -> list[str]:
    """Return registered provider tags in registration order.

    Example:
        ```python
        tags = provider_tags()
        ```
    """
    return list(_PROVIDERS)


def capabilities_for_provider(tag: str) -> ProviderCapabilities:
    """Return capabilities for a provider tag.

    Example:
        ```python
        caps = capabilities_for_provider("opencode")
        ```
    """
    try:
        return _PROVIDERS[tag]
    except KeyError:
        raise ValueError(f"Unknown provider: {tag}") from None


def find_model(identifier: str) -> ModelSpec:
    """Look up a model by identifier.

    Example:
        ```python
        model = find_model("gemini-3-pro")
        ```
    """
    for model in MODELS:
        if model.identifier == identifier:
            return model
    raise ValueError(f"Unknown model: {identifier}")


def resolve_binary(
    names: Sequence[str],
    search_roots: Sequence[str],
    *,
    is_file: Callable[[str], bool] = os.path.isfile,
) -> str:
    """Return the first existing candidate across search roots.

    Falls back to the first root and name so a missing binary is still
    reported with a concrete path.

    Example:
        ```python
        path = resolve_binary(["gemini"], ["/opt/homebrew/bin", "/usr/local/bin"])
        ```
    """
    if not names:
        raise ValueError("At least one binary name is required")
    for root in search_roots:
        for name in names:
            candidate = os.path.join(root, name)
            if is_file(candidate):
                return candidate
    fallback = os.path.join(search_roots[0], names[0]) if search_roots else names[0]
    logger.debug("No installed binary among %s; falling back to %s", list(names), fallback)
    return fallback


def build_request(
    model: ModelSpec,
    prompt: str,
    settings: InvocationSettings,
    *,
    is_file: Callable[[str], bool] = os.path.isfile,
) -> InvocationRequest:
    """Turn a model and prompt into an invocation request.

    Example:
        ```python
        req = build_request(find_model("opencode/big-pickle"), "Write a letter", InvocationSettings())
        ```
    """
    caps = capabilities_for_provider(model.provider)
    return InvocationRequest(
        executable_path=resolve_binary(caps.binary_names, settings.search_roots, is_file=is_file),
        arguments=caps.build_arguments(model.identifier, prompt),
        input=prompt if caps.uses_standard_input else None,
        timeout_seconds=settings.timeout_seconds,
    )
