"""Filesystem persistence for extraction results and images."""

import json
import re
import threading
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath
from typing import Any

import structlog

from tech_support.extraction.models import ExtractionResult

logger = structlog.get_logger(__name__)

LATEST_ALIAS = "data_latest.json"

DATA_ROUTE = "/api/tech-support/data"
IMAGE_ROUTE = "/api/tech-support/images"

_DATA_FILE = re.compile(r"data_[A-Za-z0-9_-]+\.json")
_IMAGE_FILE = re.compile(r"[A-Za-z0-9_-]+\.(?:png|jpe?g|gif)", re.IGNORECASE)


class StoredFileNotFoundError(LookupError):
    """Requested stored result or image does not exist or has an invalid name."""

    def __init__(self, file_name: str):
        self.file_name = file_name
        super().__init__(f"Stored file not found: {file_name}")


@dataclass(frozen=True)
class StoredFile:
    """A persisted extraction result."""

    name: str
    size: int
    modified: datetime

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "size": self.size, "modified": self.modified.isoformat()}


@dataclass(frozen=True)
class SearchItem:
    """One entry of the knowledge-base search feed."""

    title: str
    description: str
    content: str
    type: str  # text or image
    source: str

    def to_dict(self) -> dict[str, str]:
        return {
            "title": self.title,
            "description": self.description,
            "content": self.content,
            "type": self.type,
            "source": self.source,
        }


class SeedGenerator:
    """Millisecond-timestamp seeds, strictly increasing within a process."""

    def __init__(self):
        self._lock = threading.Lock()
        self._last = 0

    def next_seed(self) -> int:
        with self._lock:
            seed = max(int(time.time() * 1000), self._last + 1)
            self._last = seed
            return seed


class ExtractionRepository:
    """Stores ``data_<seed>.json`` results and serves stored images.

    Args:
        data_dir: Directory of JSON results.
        images_dir: Directory the extractors write images into.
    """

    def __init__(self, data_dir: str | Path, images_dir: str | Path):
        self.data_dir = Path(data_dir)
        self.images_dir = Path(images_dir)
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.images_dir.mkdir(parents=True, exist_ok=True)

    def save(self, seed: int | str, result: ExtractionResult) -> str:
        """Persist a result and return its stored file name."""
        file_name = f"data_{seed}.json"
        if not _DATA_FILE.fullmatch(file_name):
            raise ValueError(f"Invalid extraction seed: {seed!r}")

        path = self.data_dir / file_name
        path.write_text(json.dumps(result.to_dict(), ensure_ascii=False, indent=2), encoding="utf-8")

        logger.info(
            "Extraction result stored",
            file_name=file_name,
            title=result.title,
            image_count=result.image_count,
        )
        return file_name

    def list_files(self) -> list[StoredFile]:
        """Stored results, newest first."""
        files = []
        for path in self.data_dir.glob("data_*.json"):
            if not _DATA_FILE.fullmatch(path.name) or path.name == LATEST_ALIAS:
                continue
            stat = path.stat()
            files.append(
                StoredFile(
                    name=path.name,
                    size=stat.st_size,
                    modified=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc),
                )
            )
        files.sort(key=lambda f: (f.modified, f.name), reverse=True)
        return files

    def load(self, file_name: str) -> dict[str, Any]:
        """Load a stored result by name.

        ``data_latest.json`` resolves to the newest stored result.

        Raises:
            StoredFileNotFoundError: If the name is invalid or nothing is stored under it.
        """
        if file_name == LATEST_ALIAS:
            files = self.list_files()
            if not files:
                raise StoredFileNotFoundError(file_name)
            file_name = files[0].name

        if not _DATA_FILE.fullmatch(file_name):
            raise StoredFileNotFoundError(file_name)

        path = self.data_dir / file_name
        if not path.is_file():
            raise StoredFileNotFoundError(file_name)
        return json.loads(path.read_text(encoding="utf-8"))

    def image_path(self, file_name: str) -> Path:
        """Path of a stored image.

        Raises:
            StoredFileNotFoundError: If the name is invalid or the image is absent.
        """
        if not _IMAGE_FILE.fullmatch(file_name):
            raise StoredFileNotFoundError(file_name)

        path = self.images_dir / file_name
        if not path.is_file():
            raise StoredFileNotFoundError(file_name)
        return path

    def search_items(self) -> list[SearchItem]:
        """Flatten stored results into a search feed, newest result first.

        Each result contributes one text item per slide with text, one text
        item per sheet with rows, and one image item per distinct slide image.
        Stored files that cannot be read are skipped with a warning.
        """
        items: list[SearchItem] = []
        for stored in self.list_files():
            try:
                data = self.load(stored.name)
            except (StoredFileNotFoundError, ValueError) as e:
                logger.warning(
                    "Stored result skipped in search feed", file_name=stored.name, error=str(e)
                )
                continue
            items.extend(search_items_for(stored.name, data))
        return items


def search_items_for(file_name: str, data: dict[str, Any]) -> list[SearchItem]:
    """Search feed entries of one stored result."""
    title = data.get("title", "")
    description = data.get("metadata", {}).get("originalFileName", title)
    data_source = f"{DATA_ROUTE}/{file_name}"

    text_items: list[SearchItem] = []
    image_items: list[SearchItem] = []
    seen_images: set[str] = set()

    for slide in data.get("slides") or []:
        label = f"{title} - Slide {slide.get('slideNumber')}"
        if slide.get("text"):
            text_items.append(SearchItem(label, description, slide["text"], "text", data_source))
        for image in slide.get("images") or []:
            image_name = image.get("fileName")
            if not image_name or image_name in seen_images:
                continue
            seen_images.add(image_name)
            original_path = image.get("originalPath", "")
            image_items.append(
                SearchItem(
                    title=f"{title} - {PurePosixPath(original_path).name or image_name}",
                    description=description,
                    content=original_path,
                    type="image",
                    source=f"{IMAGE_ROUTE}/{image_name}",
                )
            )

    for sheet in data.get("sheets") or []:
        lines = [
            " ".join(value for value in row.values() if value)
            for row in sheet.get("rows") or []
        ]
        content = "\n".join(line for line in lines if line)
        if content:
            label = f"{title} - {sheet.get('name', '')}"
            text_items.append(SearchItem(label, description, content, "text", data_source))

    return text_items + image_items
