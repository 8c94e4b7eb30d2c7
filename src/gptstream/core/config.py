from functools import lru_cache

from pydantic import ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gptstream.domain.exceptions import ConfigError


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url_prefix: str
    openai_api_key: str
    model: str = "gpt-3.5-turbo"
    system_prompt: str = "You are a helpful assistant."
    user_prompt: str = "Hello!"

    # "did we get headers" vs. "total call lifetime"
    header_timeout_seconds: float = 10.0
    session_timeout_seconds: float = 120.0
    connect_timeout_seconds: float = 5.0

    # Lines after the stop marker that belong to the transport (e.g. "data: [DONE]")
    terminal_sentinel_lines: int = 1

    log_level: str = "INFO"

    @model_validator(mode="after")
    def check_values(self) -> "Settings":
        if not self.url_prefix.strip():
            raise ValueError("URL_PREFIX must not be empty")
        if not self.openai_api_key.strip():
            raise ValueError("OPENAI_API_KEY must not be empty")
        if self.header_timeout_seconds <= 0:
            raise ValueError("header_timeout_seconds must be positive")
        if self.header_timeout_seconds >= self.session_timeout_seconds:
            raise ValueError("header_timeout_seconds must be shorter than session_timeout_seconds")
        if self.terminal_sentinel_lines not in (1, 2):
            raise ValueError("terminal_sentinel_lines must be 1 or 2")
        self.url_prefix = self.url_prefix.rstrip("/")
        return self


def load_settings(**overrides) -> Settings:
    """Build settings from .env, the environment and explicit overrides.

    Raises ConfigError when a required key is missing or a value is invalid.
    """
    try:
        return Settings(**overrides)
    except ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) or "settings" for err in e.errors()]
        raise ConfigError(
            f"Invalid configuration: {e.error_count()} error(s)",
            details={"fields": fields, "errors": [err["msg"] for err in e.errors()]},
        ) from e


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance, read once at process start."""
    return load_settings()
