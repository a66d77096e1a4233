"""Zip container reader for Office Open XML packages."""

from __future__ import annotations

import re
import zipfile
import zlib
from collections.abc import Callable
from io import BytesIO
from pathlib import Path
from typing import BinaryIO, Union

import structlog

from tech_support.extraction.errors import FormatError, MissingEntryError
from tech_support.extraction.xmltree import XmlElement, parse_xml

logger = structlog.get_logger(__name__)

EntryPredicate = Union[Callable[[str], bool], re.Pattern]


class Container:
    """Named-entry access to a zip-based Office package.

    Entries are decompressed lazily on lookup; the archive itself is read
    from the caller's stream. Use as a context manager so the underlying
    zip handle is released when extraction completes.
    """

    def __init__(self, archive: zipfile.ZipFile):
        self._archive = archive
        self._names = [info.filename for info in archive.infolist() if not info.is_dir()]
        self._name_set = set(self._names)

    @classmethod
    def open(cls, source: bytes | bytearray | BinaryIO | str | Path) -> Container:
        """Open a zip-format byte stream.

        Args:
            source: Raw bytes, a readable binary stream, or a file path.

        Returns:
            An open Container.

        Raises:
            FormatError: If the source is not a zip archive or has no entries.
        """
        if isinstance(source, (bytes, bytearray)):
            source = BytesIO(bytes(source))
        elif isinstance(source, Path):
            source = str(source)

        try:
            archive = zipfile.ZipFile(source, "r")
        except (zipfile.BadZipFile, zlib.error, EOFError, ValueError) as e:
            raise FormatError(f"Not a valid zip container: {e}") from e
        except OSError as e:
            raise FormatError(f"Unable to read container: {e}") from e

        container = cls(archive)
        if not container._names:
            archive.close()
            raise FormatError("Container has no entries")

        logger.debug("Container opened", entries=len(container._names))
        return container

    def close(self) -> None:
        self._archive.close()

    def __enter__(self) -> Container:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def __contains__(self, entry_name: str) -> bool:
        return entry_name in self._name_set

    @property
    def entry_names(self) -> list[str]:
        """All file entries in archive order."""
        return list(self._names)

    def list_entries(self, predicate: EntryPredicate) -> list[str]:
        """Entry names accepted by a predicate, in archive order.

        A compiled regex is treated as a full-match predicate.
        """
        if isinstance(predicate, re.Pattern):
            pattern = predicate
            return [name for name in self._names if pattern.fullmatch(name)]
        return [name for name in self._names if predicate(name)]

    def read_bytes(self, entry_name: str) -> bytes:
        """Raw bytes of an entry.

        Raises:
            MissingEntryError: If the entry does not exist.
            FormatError: If the entry cannot be decompressed or is encrypted.
        """
        if entry_name not in self._name_set:
            raise MissingEntryError(entry_name)
        try:
            return self._archive.read(entry_name)
        except (zipfile.BadZipFile, zlib.error, EOFError, NotImplementedError, RuntimeError) as e:
            raise FormatError(f"Corrupt container entry {entry_name}: {e}") from e

    def read_text(self, entry_name: str) -> str:
        """Entry content decoded as UTF-8 (a leading BOM is dropped).

        Raises:
            MissingEntryError: If the entry does not exist.
            FormatError: If the entry is unreadable or not valid UTF-8.
        """
        data = self.read_bytes(entry_name)
        try:
            return data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise FormatError(f"Entry {entry_name} is not valid UTF-8: {e}") from e

    def read_xml(self, entry_name: str) -> XmlElement:
        """Entry content parsed into an XML tree.

        Raises:
            MissingEntryError: If the entry does not exist.
            lxml.etree.XMLSyntaxError: If the entry is not well-formed XML.
        """
        return parse_xml(self.read_bytes(entry_name))
