"""LLM provider registry with lazy loading.

Usage:
    from leadfinder.llm import get_provider

    provider = get_provider("openai", base_url="https://gateway.example/v1")
    text = provider.complete("ICU nurse, Los Angeles", system=EXPANSION_PROMPT)
"""

from __future__ import annotations

import importlib

from leadfinder.core.config import LLMConfig
from leadfinder.llm.base import LLMProvider, ToolDefinition

__all__ = [
    "LLMProvider",
    "ToolDefinition",
    "available_providers",
    "get_provider",
    "provider_from_config",
]

# Lazy registry: maps provider name → (module_path, class_name)
_REGISTRY: dict[str, tuple[str, str]] = {
    "anthropic": ("leadfinder.llm.anthropic", "AnthropicProvider"),
    "openai": ("leadfinder.llm.openai", "OpenAIProvider"),
    "ollama": ("leadfinder.llm.ollama", "OllamaProvider"),
}


def get_provider(
    name: str,
    *,
    base_url: str | None = None,
    timeout: float = 30.0,
) -> LLMProvider:
    """Instantiate and return an LLM provider by name.

    Args:
        name: Provider identifier (anthropic, openai, ollama).
        base_url: Optional API base URL override (gateways, local servers).
        timeout: Per-request timeout in seconds.

    Returns:
        An LLMProvider instance.

    Raises:
        ValueError: If the provider name is unknown.
    """
    if name not in _REGISTRY:
        valid = ", ".join(sorted(_REGISTRY))
        msg = f"Unknown LLM provider '{name}'. Available: {valid}"
        raise ValueError(msg)

    module_path, class_name = _REGISTRY[name]
    module = importlib.import_module(module_path)
    cls = getattr(module, class_name)
    return cls(base_url=base_url, timeout=timeout)  # type: ignore[no-any-return]


def provider_from_config(config: LLMConfig) -> LLMProvider:
    """Build the provider described by the ``llm`` settings section."""
    return get_provider(config.provider, base_url=config.base_url, timeout=config.timeout_seconds)


def available_providers() -> list[str]:
    """Return sorted list of registered provider names."""
    return sorted(_REGISTRY)
