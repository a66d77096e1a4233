"""Image output with collision-free generated file names."""

import re
from pathlib import Path

import structlog

from tech_support.extraction.models import ExtractedImage

logger = structlog.get_logger(__name__)

_SEED_PATTERN = re.compile(r"[A-Za-z0-9_-]+")


class ImageWriter:
    """Writes extracted images as ``image_<seed>_<ordinal>.png``.

    One writer belongs to one extraction call. The ordinal is 1-based and
    advances only after a successful write, so the files of a call are
    numbered without gaps. Uniqueness across calls relies on distinct seeds.
    """

    def __init__(self, output_dir: str | Path, seed: int | str):
        seed_text = str(seed)
        if not _SEED_PATTERN.fullmatch(seed_text):
            raise ValueError(f"Invalid extraction seed: {seed!r}")

        self.output_dir = Path(output_dir)
        self.seed = seed_text
        self._images: list[ExtractedImage] = []

        self.output_dir.mkdir(parents=True, exist_ok=True)

    @property
    def count(self) -> int:
        return len(self._images)

    @property
    def images(self) -> tuple[ExtractedImage, ...]:
        return tuple(self._images)

    def next_file_name(self) -> str:
        return f"image_{self.seed}_{self.count + 1}.png"

    def write(self, data: bytes, original_path: str) -> ExtractedImage:
        """Write image bytes and return the descriptor.

        Raises:
            OSError: If the file cannot be written; the ordinal is not consumed.
        """
        file_name = self.next_file_name()
        (self.output_dir / file_name).write_bytes(data)

        image = ExtractedImage(file_name=file_name, original_path=original_path)
        self._images.append(image)
        logger.debug(
            "Image extracted",
            file_name=file_name,
            original_path=original_path,
            size_bytes=len(data),
        )
        return image
