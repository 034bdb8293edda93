"""Anthropic Claude LLM provider."""

import json
import logging
import os
from typing import Any

from leadfinder.core.errors import ConfigurationError, LLMError, llm_error_for_status
from leadfinder.llm.base import LLMProvider, ToolDefinition

logger = logging.getLogger(__name__)


class AnthropicProvider(LLMProvider):
    """LLM provider using the Anthropic Messages API."""

    @property
    def provider_id(self) -> str:
        return "anthropic"

    @property
    def default_model(self) -> str:
        return "claude-sonnet-4-20250514"

    @property
    def env_var(self) -> str:
        return "ANTHROPIC_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        message = self._create(prompt, model, system)
        for block in message.content:
            if getattr(block, "type", None) == "text":
                return block.text  # type: ignore[no-any-return]
        msg = "anthropic returned no text content"
        raise LLMError(msg)

    def complete_with_tool(
        self,
        prompt: str,
        tool: ToolDefinition,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        message = self._create(
            prompt,
            model,
            system,
            tools=[{
                "name": tool.name,
                "description": tool.description,
                "input_schema": tool.parameters,
            }],
            tool_choice={"type": "tool", "name": tool.name},
        )
        for block in message.content:
            if getattr(block, "type", None) == "tool_use" and block.name == tool.name:
                return json.dumps(block.input)
        msg = f"anthropic response did not call tool '{tool.name}'"
        raise LLMError(msg)

    def _create(
        self,
        prompt: str,
        model: str | None,
        system: str | None,
        **extra: Any,
    ) -> Any:
        api_key = os.environ.get("ANTHROPIC_API_KEY")
        if not api_key:
            msg = "ANTHROPIC_API_KEY environment variable is required"
            raise ConfigurationError(msg)

        try:
            import anthropic
        except ImportError:
            msg = (
                "anthropic is required for this LLM provider. "
                "Install with: pip install 'leadfinder[anthropic]'"
            )
            raise ImportError(msg) from None

        client = anthropic.Anthropic(
            api_key=api_key, base_url=self._base_url, timeout=self._timeout,
        )
        use_model = model or self.default_model

        kwargs: dict[str, Any] = {
            "model": use_model,
            "max_tokens": 2048,
            "messages": [{"role": "user", "content": prompt}],
            **extra,
        }
        if system:
            kwargs["system"] = system

        logger.debug("Sending prompt to Anthropic API (%s)...", use_model)
        try:
            return client.messages.create(**kwargs)
        except anthropic.APIStatusError as e:
            raise llm_error_for_status(
                e.status_code, f"anthropic API error: {e.status_code}",
            ) from e
        except anthropic.APIError as e:
            msg = f"anthropic request failed: {e}"
            raise LLMError(msg) from e
