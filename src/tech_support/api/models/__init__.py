"""Pydantic models for API responses."""

from tech_support.api.models.response_models import (
    FileListResponse,
    HealthResponse,
    SearchDataItem,
    StoredFileItem,
    UploadResponse,
)

__all__ = [
    "FileListResponse",
    "HealthResponse",
    "SearchDataItem",
    "StoredFileItem",
    "UploadResponse",
]
