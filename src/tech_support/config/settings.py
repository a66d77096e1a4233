"""Centralized settings management using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExtractionSettings(BaseSettings):
    """Document extraction configuration."""

    model_config = SettingsConfigDict(env_prefix="EXTRACT_")

    image_scope: Literal["all_slides", "per_slide"] = Field(
        default="all_slides",
        description="Attach every image to every slide, or only the slide's own images",
    )


class StorageSettings(BaseSettings):
    """Knowledge-base storage locations."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Field(
        default=Path("knowledge-base/data"),
        description="Directory for extracted JSON results",
    )
    images_dir: Path = Field(
        default=Path("knowledge-base/images"),
        description="Directory for extracted images",
    )


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = Field(default="0.0.0.0", description="API host")
    port: int = Field(default=8000, description="API port")
    debug: bool = Field(default=False, description="Debug mode")
    cors_origins: list[str] = Field(
        default=["http://localhost:5173"],
        description="CORS allowed origins",
    )
    max_upload_bytes: int = Field(
        default=50 * 1024 * 1024,
        description="Maximum accepted upload size in bytes",
    )

    @field_validator("max_upload_bytes")
    @classmethod
    def validate_max_upload(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("max_upload_bytes must be positive")
        return v


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    format: Literal["json", "console"] = Field(default="json", description="Log format")


class Settings(BaseSettings):
    """Main settings class aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    extraction: ExtractionSettings = Field(default_factory=ExtractionSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    api: APISettings = Field(default_factory=APISettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
