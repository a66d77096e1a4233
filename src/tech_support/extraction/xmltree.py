"""Typed XML tree for Office Open XML parts.

Container parts are parsed with lxml and converted into an explicit tree of
``XmlElement`` / ``XmlText`` nodes. Tags and attribute names use Clark
notation (``{namespace}local``); build them with ``qn("a:t")``.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Union

from lxml import etree

NAMESPACES: dict[str, str] = {
    "p": "http://schemas.openxmlformats.org/presentationml/2006/main",
    "a": "http://schemas.openxmlformats.org/drawingml/2006/main",
    "r": "http://schemas.openxmlformats.org/officeDocument/2006/relationships",
    "s": "http://schemas.openxmlformats.org/spreadsheetml/2006/main",
    "xdr": "http://schemas.openxmlformats.org/drawingml/2006/spreadsheetDrawing",
    "rel": "http://schemas.openxmlformats.org/package/2006/relationships",
}


def _make_parser() -> etree.XMLParser:
    # External entities and network access stay disabled for uploaded documents.
    # lxml parsers must not be shared across threads.
    return etree.XMLParser(
        resolve_entities=False,
        no_network=True,
        remove_comments=True,
        remove_pis=True,
    )


class XmlShapeError(ValueError):
    """An element does not have the structure a traversal expects."""


def qn(prefixed: str) -> str:
    """Return Clark notation for a prefixed name, e.g. ``qn("a:t")``."""
    prefix, _, local = prefixed.partition(":")
    if not local:
        return prefixed
    try:
        return f"{{{NAMESPACES[prefix]}}}{local}"
    except KeyError:
        raise ValueError(f"Unknown namespace prefix: {prefix}") from None


@dataclass(frozen=True)
class XmlText:
    """A text node."""

    value: str


@dataclass(frozen=True)
class XmlElement:
    """An element node with read-only attributes and ordered children."""

    tag: str
    attributes: Mapping[str, str] = field(default_factory=dict, hash=False)
    children: tuple[XmlNode, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "attributes", MappingProxyType(dict(self.attributes)))

    @property
    def local_name(self) -> str:
        return self.tag.rsplit("}", 1)[-1]

    def get(self, name: str, default: str | None = None) -> str | None:
        """Get an attribute by Clark-notation (or plain) name."""
        return self.attributes.get(name, default)


XmlNode = Union[XmlElement, XmlText]


def parse_xml(data: bytes | str) -> XmlElement:
    """Parse XML bytes into an ``XmlElement`` tree.

    Raises:
        lxml.etree.XMLSyntaxError: If the document is not well-formed.
    """
    if isinstance(data, str):
        data = data.encode("utf-8")
    root = etree.fromstring(data, parser=_make_parser())
    return _convert(root)


def _convert(el) -> XmlElement:
    children: list[XmlNode] = []
    if el.text:
        children.append(XmlText(el.text))
    for child in el:
        # Comments and processing instructions have non-string tags
        if isinstance(child.tag, str):
            children.append(_convert(child))
        if child.tail:
            children.append(XmlText(child.tail))
    return XmlElement(
        tag=el.tag,
        attributes={str(k): str(v) for k, v in el.attrib.items()},
        children=tuple(children),
    )


def find_children(node: XmlElement, tag: str) -> list[XmlElement]:
    """Direct child elements with the given tag, in document order."""
    return [
        child
        for child in node.children
        if isinstance(child, XmlElement) and child.tag == tag
    ]


def find_child(node: XmlElement, tag: str) -> XmlElement | None:
    """First direct child element with the given tag."""
    for child in node.children:
        if isinstance(child, XmlElement) and child.tag == tag:
            return child
    return None


def require_child(node: XmlElement, tag: str) -> XmlElement:
    """Like ``find_child`` but raise ``XmlShapeError`` when absent."""
    child = find_child(node, tag)
    if child is None:
        raise XmlShapeError(f"<{node.local_name}> has no <{tag.rsplit('}', 1)[-1]}> child")
    return child


def find_path(node: XmlElement, *tags: str) -> XmlElement | None:
    """Follow a chain of first-child lookups, e.g. ``find_path(root, qn("p:cSld"), qn("p:spTree"))``."""
    current: XmlElement | None = node
    for tag in tags:
        if current is None:
            return None
        current = find_child(current, tag)
    return current


def iter_descendants(node: XmlElement, tag: str | None = None) -> Iterator[XmlElement]:
    """Depth-first descendant elements in document order, optionally filtered by tag."""
    for child in node.children:
        if isinstance(child, XmlElement):
            if tag is None or child.tag == tag:
                yield child
            yield from iter_descendants(child, tag)


def text_of(node: XmlNode) -> str:
    """Concatenated text of a node and all its descendants."""
    if isinstance(node, XmlText):
        return node.value
    return "".join(text_of(child) for child in node.children)
