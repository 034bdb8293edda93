"""Ollama local LLM provider (OpenAI-compatible API)."""

from leadfinder.llm.openai import OpenAIProvider

_OLLAMA_BASE_URL = "http://localhost:11434/v1"


class OllamaProvider(OpenAIProvider):
    """LLM provider using a local Ollama instance via OpenAI-compatible API."""

    def __init__(self, base_url: str | None = None, timeout: float = 30.0) -> None:
        super().__init__(base_url=base_url or _OLLAMA_BASE_URL, timeout=timeout)

    @property
    def provider_id(self) -> str:
        return "ollama"

    @property
    def default_model(self) -> str:
        return "llama3.1"

    @property
    def env_var(self) -> None:
        return None
