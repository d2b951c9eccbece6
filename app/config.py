"""
Configuration management for HealthSpeak API.

Uses Pydantic Settings for type-safe environment variable handling.
All configuration is loaded from environment variables or .env file.
"""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ==========================================================================
    # Application
    # ==========================================================================
    app_name: str = "HealthSpeak API"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # ==========================================================================
    # Server
    # ==========================================================================
    host: str = "0.0.0.0"
    port: int = 8000

    # ==========================================================================
    # AI Provider
    # ==========================================================================
    llm_provider: Literal["gemini", "local"] = "gemini"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    provider_timeout_seconds: float = 20.0
    provider_temperature: float = 0.3
    provider_max_output_tokens: int = 1000
    provider_max_input_chars: int = 4000

    # ==========================================================================
    # Rate Limiting
    # ==========================================================================
    rate_limit_per_minute: int = 30

    # ==========================================================================
    # File Upload
    # ==========================================================================
    max_file_size_mb: int = 10
    allowed_image_extensions: str = ".png,.jpg,.jpeg,.tif,.tiff,.bmp,.webp"
    allowed_pdf_extensions: str = ".pdf"
    allowed_text_extensions: str = ".txt"

    # ==========================================================================
    # OCR
    # ==========================================================================
    ocr_language: str = "eng"
    ocr_dpi: int = 300

    # ==========================================================================
    # History
    # ==========================================================================
    history_default_limit: int = 50
    history_max_items: int = 5000

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def max_file_size_bytes(self) -> int:
        """Maximum file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def image_extensions(self) -> list[str]:
        """List of allowed image extensions."""
        return [ext.strip() for ext in self.allowed_image_extensions.split(",")]

    @property
    def pdf_extensions(self) -> list[str]:
        """List of allowed PDF extensions."""
        return [ext.strip() for ext in self.allowed_pdf_extensions.split(",")]

    @property
    def text_extensions(self) -> list[str]:
        """List of allowed text extensions."""
        return [ext.strip() for ext in self.allowed_text_extensions.split(",")]

    @property
    def provider_configured(self) -> bool:
        """Whether an external AI provider should be attempted."""
        return self.llm_provider == "gemini" and bool(self.gemini_api_key)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience access
settings = get_settings()
