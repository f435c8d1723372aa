"""
Configuration settings for the b1-coach service.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///b1coach.db",
        description="SQLAlchemy connection string for the record store",
    )

    # ========================================
    # Text Generation Provider
    # ========================================
    ai_provider: Literal["ollama", "groq", "claude"] = Field(
        default="ollama",
        description="Which text-generation backend to use",
    )
    ollama_base_url: str = Field(
        default="http://localhost:11434",
        description="Base URL of the local Ollama server",
    )
    ollama_model: str = Field(
        default="llama3.2",
        description="Ollama model name",
    )
    groq_api_key: str | None = Field(
        default=None,
        description="Groq API key (OpenAI-compatible endpoint)",
    )
    groq_model: str = Field(
        default="llama-3.1-8b-instant",
        description="Groq model name",
    )
    anthropic_api_key: str | None = Field(
        default=None,
        description="Anthropic API key for the Claude provider",
    )
    anthropic_model: str = Field(
        default="claude-3-haiku-20240307",
        description="Claude model name",
    )
    ai_timeout_seconds: float = Field(
        default=30.0,
        description="Per-request timeout for the generation provider",
    )
    ai_temperature: float = Field(
        default=0.7,
        description="Sampling temperature sent to the provider",
    )
    ai_max_tokens: int = Field(
        default=1024,
        description="Maximum tokens requested from the provider",
    )

    # ========================================
    # Placement Test
    # ========================================
    placement_max_questions: int = Field(
        default=20,
        description="Upper bound on the placement question budget",
    )
    placement_key_topics: int = Field(
        default=15,
        description="Number of topics seeded with an initial question",
    )

    # ========================================
    # Practice & Readiness
    # ========================================
    difficulty_window: int = Field(
        default=10,
        description="Number of recent exercise outcomes fed to the difficulty controller",
    )
    readiness_target: int = Field(
        default=75,
        description="Overall readiness score considered exam-ready",
    )
    default_daily_goal_minutes: int = Field(
        default=15,
        description="Daily practice goal for new profiles",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    def has_ai_configured(self) -> bool:
        """Check if the selected remote provider has credentials (Ollama needs none)."""
        if self.ai_provider == "groq":
            return bool(self.groq_api_key)
        if self.ai_provider == "claude":
            return bool(self.anthropic_api_key)
        return True

    def get_provider_config(self) -> dict[str, object]:
        """Get text-generation configuration as a dictionary."""
        return {
            "provider": self.ai_provider,
            "timeout": self.ai_timeout_seconds,
            "temperature": self.ai_temperature,
            "max_tokens": self.ai_max_tokens,
        }


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
