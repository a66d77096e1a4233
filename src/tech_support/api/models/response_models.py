"""Response models for the API."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model serialised with camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadResponse(CamelModel):
    """Response model for a processed upload."""

    success: bool = Field(description="Whether extraction completed")
    file_name: str = Field(description="Stored result file name (data_<seed>.json)")
    image_count: int = Field(description="Number of images written")
    warning_count: int = Field(default=0, description="Number of skipped items")
    data: dict[str, Any] = Field(description="Extraction result")

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        json_schema_extra={
            "examples": [
                {
                    "success": True,
                    "fileName": "data_1718000000000.json",
                    "imageCount": 1,
                    "warningCount": 0,
                    "data": {
                        "title": "manual",
                        "slides": [
                            {
                                "slideNumber": 1,
                                "text": "Pump restart procedure",
                                "images": [
                                    {
                                        "fileName": "image_1718000000000_1.png",
                                        "originalPath": "ppt/media/image1.png",
                                    }
                                ],
                            }
                        ],
                        "metadata": {
                            "extractedAt": "2024-06-10T06:13:20+00:00",
                            "originalFileName": "manual.pptx",
                        },
                        "imageCount": 1,
                        "warnings": [],
                    },
                }
            ]
        },
    )


class StoredFileItem(CamelModel):
    """A stored extraction result."""

    name: str = Field(description="Stored file name")
    size: int = Field(description="Size in bytes")
    modified: datetime = Field(description="Last modification time")


class FileListResponse(CamelModel):
    """Response model for listing stored results."""

    files: list[StoredFileItem] = Field(default_factory=list, description="Newest first")


class SearchDataItem(BaseModel):
    """One entry of the knowledge-base search feed."""

    title: str = Field(description="Document title and slide or sheet label")
    description: str = Field(description="Original file name")
    content: str = Field(description="Searchable text, or the media path for images")
    type: Literal["text", "image"] = Field(description="Entry type")
    source: str = Field(description="API path of the stored result or image")


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(description="Overall health status")
    version: str = Field(description="API version")
    services: dict[str, Any] = Field(default_factory=dict, description="Component status")
