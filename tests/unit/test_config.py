"""Tests for configuration models and YAML loading."""

from pathlib import Path
from textwrap import dedent

import pytest
from pydantic import ValidationError

from leadfinder.core.config import (
    DatabaseConfig,
    LLMConfig,
    RateLimitConfig,
    SearchConfig,
    Settings,
    TierConfig,
)
from leadfinder.core.errors import ConfigurationError

EXAMPLE_CONFIG = Path(__file__).parent.parent.parent / "config" / "settings.example.yaml"


class TestRateLimitConfig:
    def test_defaults(self) -> None:
        r = RateLimitConfig()
        assert r.requests_per_window == 3
        assert r.window_size_days == 1

    def test_bounds(self) -> None:
        with pytest.raises(ValidationError):
            RateLimitConfig(requests_per_window=-1)
        with pytest.raises(ValidationError):
            RateLimitConfig(window_size_days=0)


class TestTierConfig:
    def test_defaults_match_preview(self) -> None:
        t = TierConfig()
        assert t.max_results == 10
        assert t.candidate_cap == 5
        assert t.min_query_length == 3
        assert t.max_query_length == 300
        assert t.include_summary is False
        assert t.expose_locked_fields is False

    def test_max_results_bounds(self) -> None:
        with pytest.raises(ValidationError):
            TierConfig(max_results=0)
        with pytest.raises(ValidationError):
            TierConfig(max_results=101)


class TestSearchConfig:
    def test_defaults(self) -> None:
        s = SearchConfig()
        assert s.base_url == "https://api.exa.ai"
        assert s.api_key_env == "EXA_API_KEY"

    def test_resolve_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EXA_API_KEY", "  secret  ")
        assert SearchConfig().resolve_api_key() == "secret"

    def test_missing_api_key(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("EXA_API_KEY", "   ")
        with pytest.raises(ConfigurationError, match="EXA_API_KEY"):
            SearchConfig().resolve_api_key()


class TestLLMConfig:
    def test_defaults(self) -> None:
        c = LLMConfig()
        assert c.provider == "openai"
        assert c.base_url is None
        assert c.expansion_enabled is True
        assert c.scoring_enabled is True


class TestSettings:
    def test_all_defaults(self) -> None:
        s = Settings()
        assert s.database == DatabaseConfig()
        assert s.rate_limits["preview"].requests_per_window == 3
        assert s.rate_limits["full"].requests_per_window == 200
        assert s.tier("full").candidate_cap == 20
        assert s.tier("full").include_summary is True

    def test_partial_tiers_keep_defaults(self) -> None:
        s = Settings(tiers={"preview": TierConfig(candidate_cap=2)})
        assert s.tier("preview").candidate_cap == 2
        assert s.tier("full").candidate_cap == 20

    def test_partial_rate_limits_keep_defaults(self) -> None:
        s = Settings(rate_limits={"full": RateLimitConfig(requests_per_window=50)})
        assert s.rate_limits["full"].requests_per_window == 50
        assert s.rate_limits["preview"].requests_per_window == 3

    def test_unknown_tier_raises(self) -> None:
        with pytest.raises(ConfigurationError, match="Unknown tier 'gold'"):
            Settings().tier("gold")

    def test_from_yaml(self, tmp_path: Path) -> None:
        cfg = tmp_path / "settings.yaml"
        cfg.write_text(dedent("""\
            database:
              path: /tmp/limits.db
            rate_limits:
              preview:
                requests_per_window: 5
            llm:
              provider: anthropic
              scoring_enabled: false
        """))
        s = Settings.from_yaml(cfg)
        assert s.database.path == "/tmp/limits.db"
        assert s.rate_limits["preview"].requests_per_window == 5
        assert s.rate_limits["full"].requests_per_window == 200
        assert s.llm.provider == "anthropic"
        assert s.llm.scoring_enabled is False

    def test_from_yaml_empty_file(self, tmp_path: Path) -> None:
        cfg = tmp_path / "empty.yaml"
        cfg.write_text("")
        assert Settings.from_yaml(cfg) == Settings()

    def test_from_yaml_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "nope.yaml")

    def test_invalid_value_rejected(self, tmp_path: Path) -> None:
        cfg = tmp_path / "bad.yaml"
        cfg.write_text("tiers:\n  preview:\n    max_results: 0\n")
        with pytest.raises(ValidationError):
            Settings.from_yaml(cfg)

    def test_example_config_loads(self) -> None:
        s = Settings.from_yaml(EXAMPLE_CONFIG)
        assert s == Settings()
