"""Office Open XML document extraction."""

from tech_support.extraction.base_extractor import BaseExtractor, ExtractionRequest
from tech_support.extraction.container import Container
from tech_support.extraction.errors import (
    ExtractionError,
    FormatError,
    MissingEntryError,
    UnsupportedFormatError,
)
from tech_support.extraction.extractor_factory import (
    ExtractorFactory,
    extract_document,
    kind_for_file_name,
)
from tech_support.extraction.models import (
    DocumentKind,
    ExtractedImage,
    ExtractionMetadata,
    ExtractionResult,
    ExtractionWarning,
    ImageScope,
    SheetContent,
    SlideContent,
)
from tech_support.extraction.presentation import PresentationExtractor
from tech_support.extraction.spreadsheet import SpreadsheetExtractor

__all__ = [
    "BaseExtractor",
    "Container",
    "DocumentKind",
    "ExtractedImage",
    "ExtractionError",
    "ExtractionMetadata",
    "ExtractionRequest",
    "ExtractionResult",
    "ExtractionWarning",
    "ExtractorFactory",
    "FormatError",
    "ImageScope",
    "MissingEntryError",
    "PresentationExtractor",
    "SheetContent",
    "SlideContent",
    "SpreadsheetExtractor",
    "UnsupportedFormatError",
    "extract_document",
    "kind_for_file_name",
]
