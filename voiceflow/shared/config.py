"""Shared configuration management for the voice-to-invoice service.

Based on Pydantic Settings v2 best practices:
https://docs.pydantic.dev/latest/concepts/pydantic_settings/
"""

import logging
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable support.

    All settings can be overridden via environment variables with the prefix 'APP_'.
    Example: APP_LOG_LEVEL=debug

    Provider credentials are read from OPENAI_API_KEY and SEALION_API_KEY directly.
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment",
    )
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level",
    )

    # Service configuration
    service_name: str = Field(
        default="voiceflow-invoice",
        description="Service identifier for metrics and logs",
    )
    service_version: str = Field(
        default="0.1.0",
        description="Service version",
    )

    # Extraction chain configuration
    extraction_chain: list[str] = Field(
        default=["sealion", "openai"],
        description="Ordered extraction providers; the static mock always runs last",
    )
    extraction_max_attempts: int = Field(
        default=3,
        ge=1,
        description="Attempts for the general-purpose model before falling through",
    )
    extraction_backoff_multiplier: float = Field(
        default=2.0,
        ge=0,
        description="Backoff multiplier; wait after attempt n is multiplier * 2^(n-1) seconds",
    )
    extraction_timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        description="Deadline for the whole extraction chain",
    )

    # Regional (SEA-LION) model configuration
    sealion_enabled: bool = Field(
        default=False,
        description="Enable the regional SEA-LION model as the first extraction stage",
    )
    sealion_base_url: str = Field(
        default="https://api.sea-lion.ai/v1",
        description="OpenAI-compatible SEA-LION endpoint",
    )
    sealion_model: str = Field(
        default="aisingapore/Gemma-SEA-LION-v3-9B-IT",
        description="SEA-LION model identifier",
    )

    # OpenAI configuration
    openai_extraction_model: str = Field(
        default="gpt-4",
        description="Chat model used for transaction extraction",
    )
    openai_transcription_model: str = Field(
        default="whisper-1",
        description="Speech-to-text model used for transcription",
    )
    openai_temperature: float = Field(
        default=0.1,
        ge=0,
        le=2,
        description="Sampling temperature for extraction",
    )

    # Cache configuration
    cache_ttl_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Lifetime of a cached extraction result",
    )
    cache_max_entries: int = Field(
        default=100,
        ge=1,
        description="Entry count above which expired entries are swept on write",
    )

    # Invoice configuration
    invoice_prefix: str = Field(
        default="VF",
        description="Prefix for generated invoice numbers",
    )
    qr_box_size: int = Field(
        default=6,
        ge=1,
        description="Pixel size of a single QR module",
    )
    qr_border: int = Field(
        default=2,
        ge=0,
        description="Quiet-zone width of the QR code in modules",
    )

    # HTTP glue
    frontend_url: str = Field(
        default="http://localhost:5173",
        description="Allowed CORS origin for the voice capture frontend",
    )
    max_upload_bytes: int = Field(
        default=10 * 1024 * 1024,
        description="Maximum accepted audio upload size",
    )


def get_settings() -> Settings:
    """Factory function to get settings instance.

    Returns:
        Configured Settings instance
    """
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Configure process-wide logging from settings."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
