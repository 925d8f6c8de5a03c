"""Application-wide configuration loading and validation."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    environment: Literal["local", "dev", "prod"] = Field(default="local")
    log_level: str = Field(default="INFO")
    port: int = Field(default=8080)

    # Twilio ConversationRelay
    public_domain: str | None = Field(
        default=None,
        description="Public host (e.g. <id>.ngrok-free.app) Twilio uses to reach the /ws endpoint.",
    )
    welcome_greeting: str = Field(
        default="Hi! I am a voice assistant powered by Twilio and OpenAI. Ask me anything!",
    )

    # LLM connectivity
    llm_provider: Literal["openai", "self_hosted_vllm"] = Field(default="openai")
    llm_endpoint: str | None = Field(
        default=None, description="Base URL for the provider (OpenAI-compatible)."
    )
    llm_api_key: str | None = Field(default=None)
    llm_model: str = Field(default="gpt-4o-mini")
    llm_max_tokens: int = Field(default=1024, gt=0)
    llm_temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    system_prompt_file: str = Field(default="system_prompt.txt")
    provider_error_message: str = Field(
        default="I'm sorry, I ran into a problem answering that. Could you say it again?",
    )

    # Tools
    tools_enabled: bool = Field(default=True)
    joke_api_url: str = Field(default="https://official-joke-api.appspot.com/random_joke")
    tool_timeout_seconds: float = Field(default=10.0, gt=0.0)

    @field_validator("public_domain")
    @classmethod
    def strip_scheme(cls, value: str | None) -> str | None:
        if not value:
            return None
        for scheme in ("https://", "http://", "wss://", "ws://"):
            value = value.removeprefix(scheme)
        return value.rstrip("/")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()
