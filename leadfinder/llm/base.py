"""Abstract base class for LLM providers and shared logic."""

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ToolDefinition:
    """A single function tool the model is forced to call."""

    name: str
    description: str
    parameters: dict[str, Any] = field(default_factory=dict)


def strip_code_fence(raw_text: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```) if present."""
    cleaned = re.sub(r"^```(?:json)?\s*\n?", "", raw_text.strip())
    return re.sub(r"\n?```\s*$", "", cleaned)


def loads_json_object(raw_text: str) -> dict[str, Any]:
    """Parse model output into a JSON object.

    Handles markdown-wrapped JSON. Raises ValueError on anything that is not an object.
    """
    try:
        data = json.loads(strip_code_fence(raw_text))
    except json.JSONDecodeError as e:
        msg = f"Failed to parse LLM response as JSON: {e}"
        raise ValueError(msg) from e
    if not isinstance(data, dict):
        msg = f"Expected a JSON object from LLM, got {type(data).__name__}"
        raise ValueError(msg)
    return data


class LLMProvider(ABC):
    """Base class that every LLM provider must implement.

    Providers raise ``leadfinder.core.errors.LLMError`` (or a subclass carrying
    the upstream 429/402 distinction) for upstream failures, ConfigurationError
    for a missing API key, and ImportError when the SDK is not installed.
    """

    def __init__(self, base_url: str | None = None, timeout: float = 30.0) -> None:
        self._base_url = base_url
        self._timeout = timeout

    @property
    @abstractmethod
    def provider_id(self) -> str:
        """Unique identifier for this provider (e.g. 'openai')."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        """The default model ID used when no override is specified."""

    @property
    @abstractmethod
    def env_var(self) -> str | None:
        """Environment variable name for the API key, or None if not needed."""

    @abstractmethod
    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        """Send a prompt and return the plain text completion."""

    @abstractmethod
    def complete_with_tool(
        self,
        prompt: str,
        tool: ToolDefinition,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        """Send a prompt forcing a call to ``tool``; return the raw JSON arguments.

        Raises LLMError when the model answers without calling the tool.
        """
