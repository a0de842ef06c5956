"""
Configuration management for contract-intel.

Loads settings from environment variables with sensible defaults.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Environment
    # ==========================================================================
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = False
    log_level: str = "INFO"
    log_json: bool = False

    # ==========================================================================
    # LLM API Keys
    # ==========================================================================
    anthropic_api_key: str = Field(default="", description="Anthropic API key for Claude")
    openai_api_key: str = Field(default="", description="OpenAI API key for GPT-4o")

    # ==========================================================================
    # LLM Configuration
    # ==========================================================================
    primary_llm_provider: Literal["anthropic", "openai"] = "anthropic"
    primary_llm_model: str = "claude-sonnet-4-20250514"
    fallback_llm_provider: Literal["anthropic", "openai"] = "openai"
    fallback_llm_model: str = "gpt-4o"
    llm_temperature: float = 0.0
    llm_max_tokens: int = 4096
    llm_timeout: float = 60.0
    llm_max_retries: int = 3
    llm_retry_min_wait: float = 2.0
    llm_retry_max_wait: float = 10.0

    @property
    def ai_enabled(self) -> bool:
        """AI stages run only when at least one provider has a credential."""
        return bool(self.anthropic_api_key or self.openai_api_key)

    # ==========================================================================
    # Analysis Pipeline
    # ==========================================================================
    analysis_text_limit: int = 15_000
    pricing_text_limit: int = 10_000
    pricing_max_tokens: int = 2048
    similarity_candidate_limit: int = 50
    similarity_threshold: float = 0.3
    similarity_top_k: int = 5
    deadline_window_days: int = 30

    # ==========================================================================
    # Storage
    # ==========================================================================
    redis_enabled: bool = False
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "contract_intel"

    # ==========================================================================
    # Uploads
    # ==========================================================================
    upload_dir: Path = Path("./uploads")
    max_file_size: int = 10 * 1024 * 1024
    allowed_mime_types: list[str] = ["application/pdf", "text/plain"]

    @field_validator("upload_dir", mode="before")
    @classmethod
    def convert_to_path(cls, v: str | Path) -> Path:
        """Convert string paths to Path objects."""
        return Path(v) if isinstance(v, str) else v

    # ==========================================================================
    # Email Notifications
    # ==========================================================================
    email_host: str = "smtp.gmail.com"
    email_port: int = 587
    email_user: str = ""
    email_password: str = ""
    email_from: str = "Contract Platform <noreply@contractplatform.com>"
    email_to: str = ""

    @property
    def email_enabled(self) -> bool:
        """Email is optional; the pipeline works without it."""
        return bool(self.email_user and self.email_password)

    # ==========================================================================
    # API Configuration
    # ==========================================================================
    api_host: str = "0.0.0.0"
    api_port: int = 5001
    cors_origins: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    def ensure_directories(self) -> None:
        """Create required directories if they don't exist."""
        self.upload_dir.mkdir(parents=True, exist_ok=True)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    settings = Settings()
    settings.ensure_directories()
    return settings
