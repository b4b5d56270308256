"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Empty credentials mean "not configured"; the credential provider reports absence

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - agent_max_steps bounds model turns per stream (tool round-trips included)
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Anthropic credentials (OAuth token preferred over API key when both set)
    anthropic_api_key: str = ""
    anthropic_auth_token: str = ""
    anthropic_timeout_seconds: int = 300

    # Agent
    agent_model: str = "claude-sonnet-4-5"
    agent_max_tokens: int = 8192
    agent_max_steps: int = 10

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("agent_max_steps")
    @classmethod
    def require_positive_steps(cls, v: int) -> int:
        if v < 1:
            raise ValueError("agent_max_steps must be >= 1")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
