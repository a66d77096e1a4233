"""Excel (.xlsx) extractor working directly on the package XML."""

import re
from dataclasses import dataclass

import structlog
from lxml import etree

from tech_support.extraction.base_extractor import (
    BaseExtractor,
    ExtractionRequest,
    WarningCollector,
)
from tech_support.extraction.container import Container
from tech_support.extraction.errors import FormatError, MissingEntryError
from tech_support.extraction.images import ImageWriter
from tech_support.extraction.models import DocumentKind, ExtractionResult, SheetContent
from tech_support.extraction.relationships import (
    WORKSHEET_REL_SUFFIX,
    Relationship,
    load_relationships,
    rels_path_for,
    resolve_target,
)
from tech_support.extraction.xmltree import (
    XmlElement,
    XmlShapeError,
    find_child,
    find_children,
    find_path,
    qn,
    text_of,
)

logger = structlog.get_logger(__name__)

WORKBOOK_PART = "xl/workbook.xml"
SHARED_STRINGS_PART = "xl/sharedStrings.xml"
DRAWING_ENTRY = re.compile(r"xl/drawings/drawing\d+\.xml")

_COLUMN_LETTERS = re.compile(r"[A-Z]+")
_ANCHOR_TAGS = frozenset(
    qn(tag) for tag in ("xdr:twoCellAnchor", "xdr:oneCellAnchor", "xdr:absoluteAnchor")
)


@dataclass(frozen=True)
class SheetDeclaration:
    """A sheet as listed in the workbook descriptor."""

    name: str
    sheet_id: str
    rel_id: str | None = None


def string_item_text(item: XmlElement) -> str:
    """Text of a shared-string ``<si>`` or inline ``<is>`` item.

    A plain ``<t>`` wins; otherwise rich-text runs are concatenated; any
    other shape yields an empty string.
    """
    plain = find_child(item, qn("s:t"))
    if plain is not None:
        return text_of(plain)

    parts = []
    for run in find_children(item, qn("s:r")):
        run_text = find_child(run, qn("s:t"))
        if run_text is not None:
            parts.append(text_of(run_text))
    return "".join(parts)


def parse_shared_strings(root: XmlElement) -> list[str]:
    """Ordered shared-string table of a workbook."""
    return [string_item_text(item) for item in find_children(root, qn("s:si"))]


def resolve_shared_string(table: list[str], raw_index: str) -> str:
    """Look up a shared-string index; malformed or out-of-range indexes give ``""``."""
    try:
        index = int(raw_index.strip())
    except ValueError:
        return ""
    if 0 <= index < len(table):
        return table[index]
    return ""


def column_letter(cell_ref: str) -> str:
    """Column part of an A1-style reference (``"AB12"`` -> ``"AB"``).

    Raises:
        XmlShapeError: If no valid column letters remain.
    """
    letters = re.sub(r"[0-9]", "", cell_ref).strip().upper()
    if not _COLUMN_LETTERS.fullmatch(letters):
        raise XmlShapeError(f"Invalid cell reference: {cell_ref!r}")
    return letters


def cell_value(cell: XmlElement, shared_strings: list[str]) -> str:
    """Resolved string value of a ``<c>`` element."""
    cell_type = cell.get("t") or ""

    if cell_type == "inlineStr":
        inline = find_child(cell, qn("s:is"))
        return string_item_text(inline) if inline is not None else ""

    value_node = find_child(cell, qn("s:v"))
    raw = text_of(value_node) if value_node is not None else ""
    if cell_type == "s":
        return resolve_shared_string(shared_strings, raw)
    return raw


class SpreadsheetExtractor(BaseExtractor):
    """Extracts worksheet rows and drawing images from a workbook package.

    Sheets follow the workbook's declaration order. A sheet whose worksheet
    entry cannot be found is left out of the result with a warning.
    Drawing images are written to disk but not attached to any sheet.
    """

    kind = DocumentKind.SPREADSHEET

    def extract(self, container: Container, request: ExtractionRequest) -> ExtractionResult:
        self.log_extraction_start(request)
        collector = WarningCollector(request.file_name)

        declarations = self.read_sheet_declarations(container)
        workbook_rels = self._read_workbook_relationships(container, collector)
        shared_strings = self._read_shared_strings(container, collector)

        sheets = []
        for declaration in declarations:
            entry = self._worksheet_entry(container, declaration, workbook_rels)
            if entry is None:
                collector.warn(
                    "sheet",
                    declaration.name,
                    f"Worksheet entry not found for sheet id {declaration.sheet_id}",
                )
                continue
            rows = self._extract_rows(container, entry, declaration, shared_strings, collector)
            sheets.append(
                SheetContent(name=declaration.name, id=declaration.sheet_id, rows=tuple(rows))
            )

        writer = ImageWriter(request.output_dir, request.seed)
        self._extract_drawing_images(container, writer, collector)

        result = ExtractionResult(
            title=request.title,
            metadata=request.build_metadata(),
            sheets=tuple(sheets),
            images=writer.images,
            warnings=collector.warnings,
        )
        self.log_extraction_complete(request, result)
        return result

    @staticmethod
    def read_sheet_declarations(container: Container) -> list[SheetDeclaration]:
        """Sheets declared in the workbook descriptor, in order.

        Raises:
            FormatError: If the workbook descriptor is missing or unreadable.
        """
        try:
            root = container.read_xml(WORKBOOK_PART)
        except MissingEntryError as e:
            raise FormatError(f"Not a spreadsheet package: {WORKBOOK_PART} missing") from e
        except etree.XMLSyntaxError as e:
            raise FormatError(f"Workbook descriptor is not valid XML: {e}") from e

        sheets_node = find_child(root, qn("s:sheets"))
        if sheets_node is None:
            return []

        declarations = []
        for sheet in find_children(sheets_node, qn("s:sheet")):
            name = sheet.get("name")
            sheet_id = sheet.get("sheetId")
            if name is None or sheet_id is None:
                logger.warning("Sheet declaration without name or id skipped", name=name)
                continue
            declarations.append(
                SheetDeclaration(name=name, sheet_id=sheet_id, rel_id=sheet.get(qn("r:id")))
            )
        return declarations

    def _read_workbook_relationships(
        self, container: Container, collector: WarningCollector
    ) -> dict[str, Relationship]:
        if rels_path_for(WORKBOOK_PART) not in container:
            return {}
        with collector.capture("workbook", rels_path_for(WORKBOOK_PART)):
            return load_relationships(container, WORKBOOK_PART)
        return {}

    def _read_shared_strings(
        self, container: Container, collector: WarningCollector
    ) -> list[str]:
        if SHARED_STRINGS_PART not in container:
            return []
        with collector.capture("workbook", SHARED_STRINGS_PART):
            return parse_shared_strings(container.read_xml(SHARED_STRINGS_PART))
        return []

    @staticmethod
    def _worksheet_entry(
        container: Container,
        declaration: SheetDeclaration,
        workbook_rels: dict[str, Relationship],
    ) -> str | None:
        """Locate a sheet's worksheet part: by relationship first, then by sheet id."""
        rel = workbook_rels.get(declaration.rel_id or "")
        if rel is not None and rel.rel_type.endswith(WORKSHEET_REL_SUFFIX):
            entry = resolve_target(WORKBOOK_PART, rel.target)
            if entry in container:
                return entry

        entry = f"xl/worksheets/sheet{declaration.sheet_id}.xml"
        return entry if entry in container else None

    def _extract_rows(
        self,
        container: Container,
        entry: str,
        declaration: SheetDeclaration,
        shared_strings: list[str],
        collector: WarningCollector,
    ) -> list[dict[str, str]]:
        rows: list[dict[str, str]] = []
        with collector.capture("sheet", declaration.name):
            root = container.read_xml(entry)
            sheet_data = find_path(root, qn("s:sheetData"))
            if sheet_data is None:
                return rows

            for index, row in enumerate(find_children(sheet_data, qn("s:row")), start=1):
                row_label = row.get("r") or str(index)
                with collector.capture("row", f"{declaration.name}!{row_label}"):
                    cells = find_children(row, qn("s:c"))
                    if not cells:
                        continue
                    row_data = self._row_mapping(cells, declaration, shared_strings, collector)
                    if row_data:
                        rows.append(row_data)
        return rows

    @staticmethod
    def _row_mapping(
        cells: list[XmlElement],
        declaration: SheetDeclaration,
        shared_strings: list[str],
        collector: WarningCollector,
    ) -> dict[str, str]:
        row_data: dict[str, str] = {}
        for cell in cells:
            ref = cell.get("r") or ""
            with collector.capture("cell", f"{declaration.name}!{ref or '?'}"):
                row_data[column_letter(ref)] = cell_value(cell, shared_strings)
        return row_data

    def _extract_drawing_images(
        self, container: Container, writer: ImageWriter, collector: WarningCollector
    ) -> None:
        for drawing in container.list_entries(DRAWING_ENTRY):
            with collector.capture("drawing", drawing):
                embeds = self._anchor_embeds(container.read_xml(drawing), drawing, collector)
                if not embeds:
                    continue
                relationships = load_relationships(container, drawing)
                for embed_id in embeds:
                    with collector.capture("image", f"{drawing}#{embed_id}"):
                        self._write_embedded_image(
                            container, writer, drawing, embed_id, relationships, collector
                        )

    @staticmethod
    def _anchor_embeds(
        root: XmlElement, drawing: str, collector: WarningCollector
    ) -> list[str]:
        """Relationship ids of the pictures anchored in a drawing part."""
        embeds = []
        for anchor in root.children:
            if not isinstance(anchor, XmlElement) or anchor.tag not in _ANCHOR_TAGS:
                continue
            picture = find_child(anchor, qn("xdr:pic"))
            if picture is None:
                continue
            blip = find_path(picture, qn("xdr:blipFill"), qn("a:blip"))
            embed_id = blip.get(qn("r:embed")) if blip is not None else None
            if not embed_id:
                collector.warn("image", drawing, "Picture anchor has no embedded image reference")
                continue
            embeds.append(embed_id)
        return embeds

    @staticmethod
    def _write_embedded_image(
        container: Container,
        writer: ImageWriter,
        drawing: str,
        embed_id: str,
        relationships: dict[str, Relationship],
        collector: WarningCollector,
    ) -> None:
        rel = relationships.get(embed_id)
        if rel is None or rel.external:
            collector.warn("image", f"{drawing}#{embed_id}", "Unresolvable image relationship")
            return
        media_path = resolve_target(drawing, rel.target)
        if media_path not in container:
            collector.warn("image", f"{drawing}#{embed_id}", f"Media entry not found: {media_path}")
            return
        writer.write(container.read_bytes(media_path), media_path)
