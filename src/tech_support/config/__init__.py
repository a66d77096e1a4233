"""Configuration module for the tech support extractor."""

from tech_support.config.logging import configure_logging
from tech_support.config.settings import (
    APISettings,
    ExtractionSettings,
    LoggingSettings,
    Settings,
    StorageSettings,
    get_settings,
)

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "APISettings",
    "ExtractionSettings",
    "LoggingSettings",
    "StorageSettings",
]
