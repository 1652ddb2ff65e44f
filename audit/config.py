"""Audit pipeline configuration settings."""

from functools import lru_cache
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class AuditSettings(BaseSettings):
    """Settings for the voice session and report pipeline."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Text completion provider: "claude" or "openai"
    COMPLETION_PROVIDER: str = "claude"

    # Claude AI
    ANTHROPIC_API_KEY: Optional[str] = None
    CLAUDE_MODEL: str = "claude-sonnet-4-5-20250929"
    CLAUDE_MAX_TOKENS: int = 4096

    # OpenAI
    OPENAI_API_KEY: Optional[str] = None
    OPENAI_MODEL: str = "gpt-4o"

    # Report generation
    REPORT_TEMPERATURE: float = 0.2
    CLASSIFY_TEMPERATURE: float = 0.0

    # Voice agent
    VAPI_ASSISTANT_ID: str = ""
    VAPI_MAX_DURATION_SECONDS: int = 1200

    # Session completion rules
    MIN_SUBSTANTIVE_USER_MESSAGES: int = 5
    SUBSTANTIVE_MESSAGE_MIN_CHARS: int = 10


@lru_cache
def get_audit_settings() -> AuditSettings:
    """Get cached settings instance."""
    return AuditSettings()


settings = get_audit_settings()
