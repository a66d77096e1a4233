"""Extractor factory for routing documents to the matching extractor."""

from pathlib import Path, PurePath
from typing import BinaryIO

import structlog

from tech_support.extraction.base_extractor import BaseExtractor, ExtractionRequest
from tech_support.extraction.container import Container
from tech_support.extraction.errors import UnsupportedFormatError
from tech_support.extraction.models import DocumentKind, ExtractionResult, ImageScope
from tech_support.extraction.presentation import PresentationExtractor
from tech_support.extraction.spreadsheet import SpreadsheetExtractor

logger = structlog.get_logger(__name__)


class ExtractorFactory:
    """Factory for creating and managing document extractors.

    Routes a declared document kind to its extractor.
    """

    def __init__(self):
        self._extractors: dict[DocumentKind, BaseExtractor] = {
            DocumentKind.PRESENTATION: PresentationExtractor(),
            DocumentKind.SPREADSHEET: SpreadsheetExtractor(),
        }

    def get_extractor(self, kind: DocumentKind | str) -> BaseExtractor:
        """Get the extractor for a declared kind.

        Raises:
            UnsupportedFormatError: If no extractor handles the kind.
        """
        document_kind = DocumentKind.parse(kind)
        extractor = self._extractors.get(document_kind)
        if extractor is None:
            raise UnsupportedFormatError(kind)

        logger.debug("Extractor selected", kind=document_kind.value, extractor=type(extractor).__name__)
        return extractor


def kind_for_file_name(file_name: str) -> DocumentKind:
    """Declared document kind from a file name's extension.

    Raises:
        UnsupportedFormatError: For extensions without an extractor.
    """
    return DocumentKind.from_extension(PurePath(file_name).suffix)


def extract_document(
    source: bytes | BinaryIO | str | Path,
    kind: DocumentKind | str,
    output_dir: str | Path,
    seed: int | str,
    *,
    file_name: str | None = None,
    image_scope: ImageScope | str = ImageScope.ALL_SLIDES,
) -> ExtractionResult:
    """Extract text, rows and images from an Office document.

    Args:
        source: Document bytes, a binary stream, or a file path.
        kind: Declared kind; the container is not sniffed.
        output_dir: Directory receiving ``image_<seed>_<n>.png`` files.
        seed: Caller-unique token embedded in generated image names.
        file_name: Original file name used for the title and metadata.
            Defaults to the name of a path ``source``.
        image_scope: Slide image association mode.

    Returns:
        ExtractionResult for the document.

    Raises:
        UnsupportedFormatError: If the kind has no extractor. Raised before
            the source is read.
        FormatError: If the container or its mandatory descriptor is unreadable.
    """
    extractor = ExtractorFactory().get_extractor(kind)

    if file_name is None:
        file_name = Path(source).name if isinstance(source, (str, Path)) else "document"

    request = ExtractionRequest(
        file_name=file_name,
        output_dir=Path(output_dir),
        seed=seed,
        image_scope=ImageScope(image_scope),
    )

    with Container.open(source) as container:
        return extractor.extract(container, request)
