"""Base extractor interface and shared best-effort machinery."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PurePath

import structlog
from lxml import etree

from tech_support.extraction.container import Container
from tech_support.extraction.errors import ExtractionError
from tech_support.extraction.models import (
    DocumentKind,
    ExtractionMetadata,
    ExtractionResult,
    ExtractionWarning,
    ImageScope,
)

logger = structlog.get_logger(__name__)

# Failures confined to one slide, row, cell, image or anchor.
NON_FATAL_ERRORS: tuple[type[BaseException], ...] = (
    ExtractionError,
    etree.XMLSyntaxError,
    ValueError,
    KeyError,
    IndexError,
    OSError,
)


@dataclass(frozen=True)
class ExtractionRequest:
    """Caller inputs of one extraction call."""

    file_name: str
    output_dir: Path
    seed: int | str
    image_scope: ImageScope = ImageScope.ALL_SLIDES

    @property
    def title(self) -> str:
        """Document base name without extension."""
        return PurePath(self.file_name).stem

    def build_metadata(self) -> ExtractionMetadata:
        return ExtractionMetadata(
            extracted_at=datetime.now(timezone.utc),
            original_file_name=PurePath(self.file_name).name,
        )


class WarningCollector:
    """Aggregates per-item anomalies into ``ExtractionWarning`` records."""

    def __init__(self, file_name: str):
        self.file_name = file_name
        self._warnings: list[ExtractionWarning] = []

    @property
    def warnings(self) -> tuple[ExtractionWarning, ...]:
        return tuple(self._warnings)

    def warn(self, scope: str, location: str, message: str) -> None:
        self._warnings.append(ExtractionWarning(scope=scope, location=location, message=message))
        logger.warning(
            "Extraction item skipped",
            file_name=self.file_name,
            scope=scope,
            location=location,
            reason=message,
        )

    @contextmanager
    def capture(self, scope: str, location: str) -> Iterator[None]:
        """Downgrade a non-fatal failure inside the block to a warning."""
        try:
            yield
        except NON_FATAL_ERRORS as e:
            self.warn(scope, location, str(e) or type(e).__name__)


class BaseExtractor(ABC):
    """Abstract base class for Office package extractors."""

    kind: DocumentKind

    @abstractmethod
    def extract(self, container: Container, request: ExtractionRequest) -> ExtractionResult:
        """Extract structured content from an open container.

        Args:
            container: Open package container.
            request: File name, image output directory, seed and options.

        Returns:
            ExtractionResult for the document.

        Raises:
            FormatError: If the package lacks its mandatory descriptor.
        """

    def log_extraction_start(self, request: ExtractionRequest) -> None:
        logger.info(
            "Starting document extraction",
            file_name=request.file_name,
            extractor=self.__class__.__name__,
            seed=str(request.seed),
        )

    def log_extraction_complete(self, request: ExtractionRequest, result: ExtractionResult) -> None:
        items = len(result.slides if result.slides is not None else result.sheets or ())
        logger.info(
            "Document extraction complete",
            file_name=request.file_name,
            extractor=self.__class__.__name__,
            items=items,
            images=result.image_count,
            warnings=len(result.warnings),
        )
