"""Command line entry point: extract one document into JSON plus images."""

import argparse
import json
import sys
from pathlib import Path

import structlog

from tech_support.config import configure_logging, get_settings
from tech_support.extraction import (
    DocumentKind,
    ExtractionError,
    ImageScope,
    extract_document,
    kind_for_file_name,
)
from tech_support.storage import SeedGenerator

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tech-support-extract",
        description="Extract slide text, worksheet rows and images from a .pptx or .xlsx file",
    )
    parser.add_argument("input", help="path to the document (.pptx, .xlsx or .xlsm)")
    parser.add_argument(
        "--kind",
        choices=[kind.value for kind in DocumentKind],
        help="declared document kind (default: from the file extension)",
    )
    parser.add_argument("--images-dir", help="image output directory (default: STORAGE_IMAGES_DIR)")
    parser.add_argument("--out", help="write the JSON result here instead of stdout")
    parser.add_argument("--seed", help="image name seed (default: current time in ms)")
    parser.add_argument(
        "--image-scope",
        choices=[scope.value for scope in ImageScope],
        help="slide image association (default: EXTRACT_IMAGE_SCOPE)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    log_settings = settings.logging.model_copy(update={"format": "console"})
    if args.verbose:
        log_settings = log_settings.model_copy(update={"level": "DEBUG"})
    configure_logging(log_settings)

    in_path = Path(args.input)
    images_dir = Path(args.images_dir) if args.images_dir else settings.storage.images_dir
    seed = args.seed or SeedGenerator().next_seed()
    image_scope = args.image_scope or settings.extraction.image_scope

    try:
        kind = DocumentKind.parse(args.kind) if args.kind else kind_for_file_name(in_path.name)
        result = extract_document(
            in_path,
            kind,
            images_dir,
            seed,
            file_name=in_path.name,
            image_scope=image_scope,
        )
    except ExtractionError as e:
        logger.error("Extraction failed", input=str(in_path), error=str(e))
        print(f"[NG] extract failed: {e}", file=sys.stderr)
        return 2
    except ValueError as e:
        print(f"[NG] invalid argument: {e}", file=sys.stderr)
        return 2

    payload = json.dumps(result.to_dict(), ensure_ascii=False, indent=2)
    if args.out:
        out_path = Path(args.out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        out_path.write_text(payload, encoding="utf-8")
        print(f"[OK] extracted: {out_path} ({result.image_count} images)", file=sys.stderr)
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
