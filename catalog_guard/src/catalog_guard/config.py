"""
Configuration management using Pydantic Settings.

Runtime configuration (generation transport, correction threshold, logging)
is loaded from environment variables with sensible defaults. The scoring
and gating policy tables live in policy.py as plain data.
"""

from typing import Optional
from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CATALOG_GUARD_",
        extra="ignore",
    )

    # Generation service
    openai_api_key: Optional[str] = Field(None, description="OpenAI API key (only needed for generation)")
    openai_model: str = Field("gpt-4o", description="Model used for catalog text generation")
    generation_temperature: float = Field(0.1, description="Sampling temperature for generation")
    generation_max_tokens: int = Field(2000, description="Max tokens per generation reply")
    generation_timeout: float = Field(35.0, description="Upper bound per generation call (seconds)")
    generation_max_retries: int = Field(3, description="Transport attempts on timeout/overload")

    # Correction cycle
    correction_threshold: int = Field(70, description="Scores below this trigger one correction call")
    correct_on_hallucination: bool = Field(
        False, description="Also trigger the correction call when hallucinations are found"
    )

    # Logging
    log_level: str = Field("INFO", description="Log level")
    log_json: bool = Field(False, description="Output logs as JSON")

    @field_validator("correction_threshold")
    @classmethod
    def check_threshold(cls, v: int) -> int:
        """Threshold must sit inside the score range."""
        if not 0 <= v <= 100:
            raise ValueError(f"correction_threshold {v} not in range 0-100")
        return v

    @field_validator("generation_max_retries")
    @classmethod
    def check_retries(cls, v: int) -> int:
        if v < 1:
            raise ValueError("generation_max_retries must be at least 1")
        return v


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Clear cache to allow re-reading settings (useful for tests)
def clear_settings_cache():
    """Clear the settings cache."""
    get_settings.cache_clear()
