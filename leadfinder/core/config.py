"""Configuration models and YAML loader for the lead finder."""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from leadfinder.core.errors import ConfigurationError


class RateLimitConfig(BaseModel):
    """Quota for a single caller tier."""

    requests_per_window: int = Field(default=3, ge=0)
    window_size_days: int = Field(default=1, ge=1)


class TierConfig(BaseModel):
    """Search and shaping limits for a single caller tier."""

    max_results: int = Field(default=10, ge=1, le=100)
    candidate_cap: int = Field(default=5, ge=1, le=100)
    min_query_length: int = Field(default=3, ge=1)
    max_query_length: int = Field(default=300, ge=3)
    include_summary: bool = False
    max_text_characters: int = Field(default=1500, ge=100)
    expose_locked_fields: bool = False


def _default_rate_limits() -> dict[str, RateLimitConfig]:
    return {
        "preview": RateLimitConfig(requests_per_window=3, window_size_days=1),
        "full": RateLimitConfig(requests_per_window=200, window_size_days=1),
    }


def _default_tiers() -> dict[str, TierConfig]:
    return {
        "preview": TierConfig(),
        "full": TierConfig(
            max_results=20,
            candidate_cap=20,
            max_query_length=500,
            include_summary=True,
            expose_locked_fields=True,
        ),
    }


class SearchConfig(BaseModel):
    """People-search index connection settings."""

    base_url: str = "https://api.exa.ai"
    api_key_env: str = "EXA_API_KEY"
    timeout_seconds: float = Field(default=20.0, gt=0)

    def resolve_api_key(self) -> str:
        """Read the API key from the environment, raising ConfigurationError if unset."""
        key = os.environ.get(self.api_key_env, "").strip()
        if not key:
            msg = f"{self.api_key_env} environment variable is required"
            raise ConfigurationError(msg)
        return key


class LLMConfig(BaseModel):
    """LLM provider settings shared by query expansion and scoring."""

    provider: str = "openai"
    base_url: str | None = None
    expansion_model: str | None = None
    scoring_model: str | None = None
    timeout_seconds: float = Field(default=30.0, gt=0)
    expansion_enabled: bool = True
    scoring_enabled: bool = True


class DatabaseConfig(BaseModel):
    """Database configuration."""

    path: str = "data/leadfinder.db"


class Settings(BaseModel):
    """Top-level settings loaded from YAML. Every section has defaults."""

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    rate_limits: dict[str, RateLimitConfig] = Field(default_factory=_default_rate_limits)
    tiers: dict[str, TierConfig] = Field(default_factory=_default_tiers)
    search: SearchConfig = Field(default_factory=SearchConfig)
    llm: LLMConfig = Field(default_factory=LLMConfig)

    @field_validator("tiers")
    @classmethod
    def known_tiers_present(cls, v: dict[str, TierConfig]) -> dict[str, TierConfig]:
        defaults = _default_tiers()
        for name, tier in defaults.items():
            v.setdefault(name, tier)
        return v

    @field_validator("rate_limits")
    @classmethod
    def known_rate_limits_present(
        cls, v: dict[str, RateLimitConfig],
    ) -> dict[str, RateLimitConfig]:
        defaults = _default_rate_limits()
        for name, limit in defaults.items():
            v.setdefault(name, limit)
        return v

    def tier(self, name: str) -> TierConfig:
        """Return the tier config, raising ConfigurationError for unknown names."""
        try:
            return self.tiers[name]
        except KeyError:
            msg = f"Unknown tier '{name}'. Available: {', '.join(sorted(self.tiers))}"
            raise ConfigurationError(msg) from None

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Settings":
        """Load settings from a YAML file."""
        path = Path(path)
        if not path.exists():
            msg = f"Config file not found: {path}"
            raise FileNotFoundError(msg)
        raw: dict[str, Any] = yaml.safe_load(path.read_text()) or {}
        return cls.model_validate(raw)
