"""Relationship (.rels) sidecar parsing and target resolution."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass
from typing import TYPE_CHECKING

from tech_support.extraction.xmltree import XmlElement, find_children, qn

if TYPE_CHECKING:
    from tech_support.extraction.container import Container

IMAGE_REL_SUFFIX = "/image"
WORKSHEET_REL_SUFFIX = "/worksheet"


@dataclass(frozen=True)
class Relationship:
    """One ``<Relationship>`` entry of a .rels part."""

    rel_id: str
    rel_type: str
    target: str
    external: bool = False

    @property
    def is_image(self) -> bool:
        return self.rel_type.endswith(IMAGE_REL_SUFFIX)


def rels_path_for(part_name: str) -> str:
    """Name of the relationship part for a package part.

    ``xl/drawings/drawing1.xml`` -> ``xl/drawings/_rels/drawing1.xml.rels``
    """
    directory, base = posixpath.split(part_name)
    return posixpath.join(directory, "_rels", f"{base}.rels")


def resolve_target(part_name: str, target: str) -> str:
    """Resolve a relationship target relative to its source part.

    ``("xl/drawings/drawing1.xml", "../media/image1.png")`` -> ``xl/media/image1.png``
    """
    if target.startswith("/"):
        return target.lstrip("/")
    return posixpath.normpath(posixpath.join(posixpath.dirname(part_name), target))


def parse_relationships(root: XmlElement) -> dict[str, Relationship]:
    """Map relationship ids to entries; entries without an id or target are ignored."""
    relationships: dict[str, Relationship] = {}
    for rel in find_children(root, qn("rel:Relationship")):
        rel_id = rel.get("Id")
        target = rel.get("Target")
        if not rel_id or not target:
            continue
        relationships[rel_id] = Relationship(
            rel_id=rel_id,
            rel_type=rel.get("Type") or "",
            target=target,
            external=(rel.get("TargetMode") or "").lower() == "external",
        )
    return relationships


def load_relationships(container: Container, part_name: str) -> dict[str, Relationship]:
    """Read and parse the relationship part belonging to ``part_name``.

    Raises:
        MissingEntryError: If the part has no relationship sidecar.
    """
    return parse_relationships(container.read_xml(rels_path_for(part_name)))
