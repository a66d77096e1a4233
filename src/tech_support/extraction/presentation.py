"""PowerPoint (.pptx) extractor working directly on the package XML."""

import re

import structlog

from tech_support.extraction.base_extractor import (
    BaseExtractor,
    ExtractionRequest,
    WarningCollector,
)
from tech_support.extraction.container import Container
from tech_support.extraction.errors import FormatError
from tech_support.extraction.images import ImageWriter
from tech_support.extraction.models import (
    DocumentKind,
    ExtractedImage,
    ExtractionResult,
    ImageScope,
    SlideContent,
)
from tech_support.extraction.relationships import (
    load_relationships,
    rels_path_for,
    resolve_target,
)
from tech_support.extraction.xmltree import (
    XmlElement,
    find_child,
    find_children,
    find_path,
    qn,
    text_of,
)

logger = structlog.get_logger(__name__)

PRESENTATION_PART = "ppt/presentation.xml"
SLIDE_ENTRY = re.compile(r"ppt/slides/slide(\d+)\.xml")
MEDIA_ENTRY = re.compile(r"ppt/media/image\d+\.(?:png|jpe?g|gif)", re.IGNORECASE)


def collect_shape_text(shape_tree: XmlElement, fragments: list[str]) -> None:
    """Append the run texts of every text-bearing shape, in document order.

    Group shapes are walked recursively. Shapes without a text body are
    skipped. Fragments are appended as they are found, so a caller keeps
    whatever was collected before a failure.
    """
    for shape in shape_tree.children:
        if not isinstance(shape, XmlElement):
            continue
        if shape.tag == qn("p:grpSp"):
            collect_shape_text(shape, fragments)
            continue
        if shape.tag != qn("p:sp"):
            continue

        body = find_child(shape, qn("p:txBody"))
        if body is None:
            continue
        for paragraph in find_children(body, qn("a:p")):
            for run in find_children(paragraph, qn("a:r")):
                text_node = find_child(run, qn("a:t"))
                if text_node is None:
                    continue
                text = text_of(text_node)
                if text:
                    fragments.append(text)


class PresentationExtractor(BaseExtractor):
    """Extracts slide text and embedded images from a presentation package.

    Slides are ordered by the number in their entry name (``slide10`` after
    ``slide2``). Images under ``ppt/media`` are written through an
    ``ImageWriter``; how they are attached to slides depends on the
    request's ``ImageScope``.
    """

    kind = DocumentKind.PRESENTATION

    def extract(self, container: Container, request: ExtractionRequest) -> ExtractionResult:
        self.log_extraction_start(request)

        if PRESENTATION_PART not in container:
            raise FormatError(f"Not a presentation package: {PRESENTATION_PART} missing")

        collector = WarningCollector(request.file_name)
        slide_entries = self.list_slide_entries(container)
        logger.debug("Slide entries found", file_name=request.file_name, slides=len(slide_entries))

        texts = {
            entry: self._extract_slide_text(container, entry, collector)
            for _, entry in slide_entries
        }

        writer = ImageWriter(request.output_dir, request.seed)
        self._extract_images(container, writer, collector)
        images = writer.images

        slides = []
        for number, entry in slide_entries:
            if request.image_scope is ImageScope.PER_SLIDE:
                slide_images = self._slide_images(container, entry, images, collector)
            else:
                slide_images = images
            slides.append(SlideContent(slide_number=number, text=texts[entry], images=slide_images))

        result = ExtractionResult(
            title=request.title,
            metadata=request.build_metadata(),
            slides=tuple(slides),
            images=images,
            warnings=collector.warnings,
        )
        self.log_extraction_complete(request, result)
        return result

    @staticmethod
    def list_slide_entries(container: Container) -> list[tuple[int, str]]:
        """Slide entries as ``(slide_number, entry_name)`` sorted numerically."""
        entries = []
        for name in container.list_entries(SLIDE_ENTRY):
            match = SLIDE_ENTRY.fullmatch(name)
            entries.append((int(match.group(1)), name))
        entries.sort(key=lambda item: item[0])
        return entries

    def _extract_slide_text(
        self, container: Container, entry: str, collector: WarningCollector
    ) -> str:
        fragments: list[str] = []
        with collector.capture("slide", entry):
            root = container.read_xml(entry)
            shape_tree = find_path(root, qn("p:cSld"), qn("p:spTree"))
            if shape_tree is not None:
                collect_shape_text(shape_tree, fragments)
        return " ".join(fragments)

    def _extract_images(
        self, container: Container, writer: ImageWriter, collector: WarningCollector
    ) -> None:
        for name in container.list_entries(MEDIA_ENTRY):
            with collector.capture("image", name):
                writer.write(container.read_bytes(name), name)

    def _slide_images(
        self,
        container: Container,
        entry: str,
        images: tuple[ExtractedImage, ...],
        collector: WarningCollector,
    ) -> tuple[ExtractedImage, ...]:
        """Images referenced by the slide's relationship part."""
        if rels_path_for(entry) not in container:
            return ()

        targets: set[str] = set()
        with collector.capture("slide", rels_path_for(entry)):
            for rel in load_relationships(container, entry).values():
                if rel.is_image and not rel.external:
                    targets.add(resolve_target(entry, rel.target))

        return tuple(image for image in images if image.original_path in targets)
