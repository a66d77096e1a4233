"""Data models for document extraction results."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any

from tech_support.extraction.errors import UnsupportedFormatError


class DocumentKind(Enum):
    """Document kinds the extractor implements."""

    PRESENTATION = "presentation"
    SPREADSHEET = "spreadsheet"

    @classmethod
    def from_extension(cls, extension: str) -> "DocumentKind":
        """Get document kind from a file extension such as ``.pptx``.

        Raises:
            UnsupportedFormatError: For any extension without an extractor.
        """
        ext_map = {
            ".pptx": cls.PRESENTATION,
            ".xlsx": cls.SPREADSHEET,
            ".xlsm": cls.SPREADSHEET,
        }
        ext = extension.lower()
        if ext and not ext.startswith("."):
            ext = f".{ext}"
        try:
            return ext_map[ext]
        except KeyError:
            raise UnsupportedFormatError(extension) from None

    @classmethod
    def parse(cls, value: "DocumentKind | str") -> "DocumentKind":
        """Coerce a caller-declared kind (enum member or its string value)."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise UnsupportedFormatError(value) from None


class ImageScope(Enum):
    """How extracted presentation images are associated with slides."""

    ALL_SLIDES = "all_slides"  # every image on every slide (legacy output)
    PER_SLIDE = "per_slide"  # only images the slide's .rels references


@dataclass(frozen=True)
class ExtractedImage:
    """An image written to the output directory."""

    file_name: str
    original_path: str

    def to_dict(self) -> dict[str, str]:
        return {"fileName": self.file_name, "originalPath": self.original_path}


@dataclass(frozen=True)
class SlideContent:
    """Text and image references of one presentation slide."""

    slide_number: int
    text: str = ""
    images: tuple[ExtractedImage, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "slideNumber": self.slide_number,
            "text": self.text,
            "images": [image.to_dict() for image in self.images],
        }


@dataclass(frozen=True)
class SheetContent:
    """Rows of one worksheet, each row keyed by column letter.

    Rows are stored as read-only mappings.
    """

    name: str
    id: str
    rows: tuple[Mapping[str, str], ...] = field(default=(), hash=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "rows", tuple(MappingProxyType(dict(row)) for row in self.rows))

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "id": self.id,
            "rows": [dict(row) for row in self.rows],
        }


@dataclass(frozen=True)
class ExtractionWarning:
    """A non-fatal anomaly skipped during extraction."""

    scope: str  # slide, sheet, row, cell, image, drawing
    location: str
    message: str

    def to_dict(self) -> dict[str, str]:
        return {"scope": self.scope, "location": self.location, "message": self.message}


@dataclass(frozen=True)
class ExtractionMetadata:
    """Provenance of an extraction."""

    extracted_at: datetime
    original_file_name: str

    def to_dict(self) -> dict[str, str]:
        return {
            "extractedAt": self.extracted_at.isoformat(),
            "originalFileName": self.original_file_name,
        }


@dataclass(frozen=True)
class ExtractionResult:
    """Structured content of one extracted document.

    Exactly one of ``slides`` (presentations) or ``sheets`` (spreadsheets)
    is set. ``images`` lists every image written to disk, in ordinal order.
    """

    title: str
    metadata: ExtractionMetadata
    slides: tuple[SlideContent, ...] | None = None
    sheets: tuple[SheetContent, ...] | None = None
    images: tuple[ExtractedImage, ...] = ()
    warnings: tuple[ExtractionWarning, ...] = field(default=())

    def __post_init__(self) -> None:
        if (self.slides is None) == (self.sheets is None):
            raise ValueError("ExtractionResult requires exactly one of slides or sheets")

    @property
    def kind(self) -> DocumentKind:
        return DocumentKind.PRESENTATION if self.slides is not None else DocumentKind.SPREADSHEET

    @property
    def image_count(self) -> int:
        return len(self.images)

    def to_dict(self) -> dict[str, Any]:
        """JSON-serialisable representation."""
        data: dict[str, Any] = {"title": self.title}
        if self.slides is not None:
            data["slides"] = [slide.to_dict() for slide in self.slides]
        else:
            data["sheets"] = [sheet.to_dict() for sheet in self.sheets or ()]
        data["metadata"] = self.metadata.to_dict()
        data["imageCount"] = self.image_count
        data["warnings"] = [warning.to_dict() for warning in self.warnings]
        return data
