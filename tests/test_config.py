"""Tests for Settings configuration model."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from assistant.config import Settings


class TestDefaults:
    def test_model_parameters(self):
        s = Settings()
        assert s.chat_model == "gpt-4o-mini"
        assert s.temperature == 0.7
        assert s.max_tokens == 1000

    def test_default_provider(self):
        s = Settings()
        assert s.llm_provider == "openai_compatible"
        assert s.zai_base_url == "https://api.z.ai/v1"

    def test_default_database_path(self):
        s = Settings()
        assert s.database_path == Path("data/assistant.db")

    def test_default_limits(self):
        s = Settings()
        assert s.history_limit == 20
        assert s.prompt_history_limit == 10
        assert s.memory_limit == 10
        assert s.code_change_context_turns == 3
        assert s.code_change_context_max_chars == 1000

    def test_default_retry_policy(self):
        s = Settings()
        assert s.retry_max_attempts == 3
        assert s.retry_base_delay == 2.0

    def test_context_provider_disabled_by_default(self):
        s = Settings()
        assert s.context_provider_url == ""
        assert s.context_cache_ttl_seconds == 300.0

    def test_default_platform(self):
        assert Settings().default_platform == "cli"


class TestProviderAwareGetters:
    def test_openai_compatible(self):
        s = Settings(zai_api_key="zai", anthropic_api_key="ant")
        assert s.get_llm_api_key() == "zai"
        assert s.get_chat_model() == "gpt-4o-mini"

    def test_anthropic(self):
        s = Settings(llm_provider="anthropic", zai_api_key="zai", anthropic_api_key="ant")
        assert s.get_llm_api_key() == "ant"
        assert s.get_chat_model() == "claude-haiku-4-5-20251001"


class TestValidation:
    def test_rejects_zero_retry_attempts(self):
        with pytest.raises(ValidationError):
            Settings(retry_max_attempts=0)

    def test_rejects_out_of_range_temperature(self):
        with pytest.raises(ValidationError):
            Settings(temperature=3.5)

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            Settings(not_a_setting="x")

    def test_ignores_environment_under_pytest(self, monkeypatch):
        monkeypatch.setenv("CHAT_MODEL", "from-env")
        assert Settings().chat_model == "gpt-4o-mini"
