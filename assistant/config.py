"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def _env_file() -> str | None:
    if os.getenv("PYTEST_CURRENT_TEST"):
        return None
    return ".env"


class Settings(BaseSettings):
    """Assistant configuration. All values come from environment variables."""

    # Model backend
    llm_provider: str = Field(default="openai_compatible")  # or "anthropic"
    zai_api_key: str = Field(default="")
    zai_base_url: str = Field(default="https://api.z.ai/v1")
    anthropic_api_key: str = Field(default="")
    chat_model: str = Field(default="gpt-4o-mini")
    anthropic_model: str = Field(default="claude-haiku-4-5-20251001")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=1000, gt=0)
    llm_timeout_seconds: float = Field(default=60.0, gt=0)

    # Database
    database_path: Path = Field(default=Path("data/assistant.db"))

    # Conversation
    default_platform: str = Field(default="cli")
    history_limit: int = Field(default=20, gt=0)
    prompt_history_limit: int = Field(default=10, gt=0)

    # Memory
    memory_limit: int = Field(default=10, gt=0)

    # Code change requests
    code_change_context_turns: int = Field(default=3, ge=0)
    code_change_context_max_chars: int = Field(default=1000, gt=3)

    # Retry policy for the model backend
    retry_max_attempts: int = Field(default=3, ge=1)
    retry_base_delay: float = Field(default=2.0, ge=0.0)

    # PARA context provider
    context_provider_url: str = Field(default="")
    context_provider_token: str = Field(default="")
    context_cache_ttl_seconds: float = Field(default=300.0, ge=0.0)

    # Logging
    log_level: str = Field(default="INFO")

    model_config = SettingsConfigDict(env_file=_env_file(), env_file_encoding="utf-8")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        if os.getenv("PYTEST_CURRENT_TEST"):
            return (init_settings,)
        return (init_settings, env_settings, dotenv_settings, file_secret_settings)

    def get_llm_api_key(self) -> str:
        """Return the API key for the configured provider."""
        if self.llm_provider == "anthropic":
            return self.anthropic_api_key
        return self.zai_api_key

    def get_chat_model(self) -> str:
        """Return the model name for the configured provider."""
        if self.llm_provider == "anthropic":
            return self.anthropic_model
        return self.chat_model


settings = Settings()
