"""OpenAI (and OpenAI-compatible gateway) LLM provider."""

import logging
import os
from typing import Any

from leadfinder.core.errors import ConfigurationError, LLMError, llm_error_for_status
from leadfinder.llm.base import LLMProvider, ToolDefinition

logger = logging.getLogger(__name__)


class OpenAIProvider(LLMProvider):
    """LLM provider using the OpenAI chat completions API.

    ``base_url`` points the client at any OpenAI-compatible gateway.
    """

    @property
    def provider_id(self) -> str:
        return "openai"

    @property
    def default_model(self) -> str:
        return "gpt-4o-mini"

    @property
    def env_var(self) -> str | None:
        return "OPENAI_API_KEY"

    def complete(
        self,
        prompt: str,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        response = self._create(prompt, model, system)
        content = response.choices[0].message.content
        if not content:
            msg = f"{self.provider_id} returned an empty completion"
            raise LLMError(msg)
        return content  # type: ignore[no-any-return]

    def complete_with_tool(
        self,
        prompt: str,
        tool: ToolDefinition,
        model: str | None = None,
        *,
        system: str | None = None,
    ) -> str:
        response = self._create(
            prompt,
            model,
            system,
            tools=[{
                "type": "function",
                "function": {
                    "name": tool.name,
                    "description": tool.description,
                    "parameters": tool.parameters,
                },
            }],
            tool_choice={"type": "function", "function": {"name": tool.name}},
        )
        tool_calls = response.choices[0].message.tool_calls or []
        for call in tool_calls:
            if call.function.name == tool.name and call.function.arguments:
                return call.function.arguments  # type: ignore[no-any-return]
        msg = f"{self.provider_id} response did not call tool '{tool.name}'"
        raise LLMError(msg)

    def _api_key(self) -> str:
        env_var = self.env_var
        if env_var is None:
            return "unused"
        api_key = os.environ.get(env_var)
        if not api_key:
            msg = f"{env_var} environment variable is required"
            raise ConfigurationError(msg)
        return api_key

    def _create(
        self,
        prompt: str,
        model: str | None,
        system: str | None,
        **extra: Any,
    ) -> Any:
        api_key = self._api_key()

        try:
            import openai
        except ImportError:
            msg = (
                "openai is required for this LLM provider. "
                "Install with: pip install openai"
            )
            raise ImportError(msg) from None

        client = openai.OpenAI(api_key=api_key, base_url=self._base_url, timeout=self._timeout)
        use_model = model or self.default_model

        messages: list[dict[str, str]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        logger.debug("Sending prompt to %s (%s)...", self.provider_id, use_model)
        try:
            return client.chat.completions.create(model=use_model, messages=messages, **extra)
        except openai.APIStatusError as e:
            raise llm_error_for_status(
                e.status_code, f"{self.provider_id} API error: {e.status_code}",
            ) from e
        except openai.APIError as e:
            msg = f"{self.provider_id} request failed: {e}"
            raise LLMError(msg) from e
