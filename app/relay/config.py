"""
Application configuration using Pydantic Settings.

Automatically loads environment variables from .env files.
The resulting Settings object is frozen and handed explicitly to the
extractor and dispatcher; neither of them reads the environment.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Server
    port: int = 3000

    # Generative model
    ai_provider: Literal["gemini", "openai"] = "gemini"
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-1.5-pro"
    openai_api_key: str | None = None
    openai_model: str = "gpt-4.1"

    # Retries only apply to rate-limit failures; 0 disables them
    ai_max_retries: int = Field(default=0, ge=0)
    ai_retry_base_delay: float = Field(default=2.0, ge=0.0)
    ai_retry_max_delay: float = Field(default=60.0, ge=0.0)

    # Spreadsheet webhook (Apps Script web app)
    google_script_webhook_url: str | None = None
    webhook_timeout: float = Field(default=30.0, gt=0.0)
    dispatch_concurrency: int = Field(default=4, ge=1)
    dispatch_fail_fast: bool = False

    # Manual entry policy
    allow_bare_imeis: bool = True
    manual_entry_name: str = Field(default="Manual Entry", min_length=1)

    validate_pdf_header: bool = True

    # Debug flags
    expose_error_details: bool = True
    debug: bool = False

    model_config = SettingsConfigDict(
        # Load from .env file in the package directory
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        # Case insensitive environment variable names
        case_sensitive=False,
        frozen=True,
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration loaded from environment.
    """
    return Settings()
