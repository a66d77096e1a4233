"""Knowledge-base storage for extraction results."""

from tech_support.storage.repository import (
    LATEST_ALIAS,
    ExtractionRepository,
    SearchItem,
    SeedGenerator,
    StoredFile,
    StoredFileNotFoundError,
)

__all__ = [
    "ExtractionRepository",
    "SearchItem",
    "SeedGenerator",
    "StoredFile",
    "StoredFileNotFoundError",
    "LATEST_ALIAS",
]
