"""Unit tests for the presentation extractor."""

from pathlib import Path

import pytest

from ooxml_builders import (
    IMAGE_REL,
    PNG_BYTES,
    build_pptx,
    group_shape,
    mark_encrypted,
    picture_shape,
    rels_xml,
    slide_xml,
    text_shape,
)
from tech_support.extraction.base_extractor import ExtractionRequest
from tech_support.extraction.container import Container
from tech_support.extraction.errors import FormatError
from tech_support.extraction.models import ImageScope
from tech_support.extraction.presentation import PresentationExtractor


def run_extraction(data: bytes, images_dir: Path, seed=100, scope=ImageScope.ALL_SLIDES):
    request = ExtractionRequest(
        file_name="deck.pptx", output_dir=images_dir, seed=seed, image_scope=scope
    )
    with Container.open(data) as container:
        return PresentationExtractor().extract(container, request)


class TestSlideText:
    """Tests for slide ordering and text collection."""

    def test_slides_sorted_by_number(self, three_slide_pptx, images_dir):
        result = run_extraction(three_slide_pptx, images_dir)

        assert [s.slide_number for s in result.slides] == [1, 2, 3]
        assert result.slides[0].text == "Engine start procedure"
        assert result.slides[1].text == "Brake test"

    def test_slide10_sorts_after_slide2(self, images_dir):
        data = build_pptx(
            slides={n: slide_xml(text_shape(f"s{n}")) for n in (10, 2, 1)},
        )

        result = run_extraction(data, images_dir)

        assert [s.slide_number for s in result.slides] == [1, 2, 10]

    def test_shapes_without_text_are_skipped(self, images_dir):
        data = build_pptx(
            slides={1: slide_xml(picture_shape(), text_shape("Caption"), "<p:sp/>")},
        )

        result = run_extraction(data, images_dir)

        assert result.slides[0].text == "Caption"
        assert result.warnings == ()

    def test_group_shapes_are_walked(self, images_dir):
        data = build_pptx(
            slides={
                1: slide_xml(
                    text_shape("Before"),
                    group_shape(text_shape("Inside"), group_shape(text_shape("Nested"))),
                    text_shape("After"),
                )
            },
        )

        result = run_extraction(data, images_dir)

        assert result.slides[0].text == "Before Inside Nested After"

    def test_empty_runs_are_not_joined(self, images_dir):
        data = build_pptx(slides={1: slide_xml(text_shape("A", "", "B"))})

        assert run_extraction(data, images_dir).slides[0].text == "A B"

    def test_slide_without_shape_tree_has_empty_text(self, images_dir):
        data = build_pptx(
            slides={
                1: '<p:sld xmlns:p="http://schemas.openxmlformats.org/presentationml/2006/main"/>'
            }
        )

        result = run_extraction(data, images_dir)

        assert result.slides[0].text == ""
        assert result.warnings == ()

    def test_malformed_slide_is_downgraded_to_warning(self, images_dir):
        data = build_pptx(
            slides={
                1: slide_xml(text_shape("Good")),
                2: "<p:sld><p:cSld>",
            }
        )

        result = run_extraction(data, images_dir)

        assert [s.text for s in result.slides] == ["Good", ""]
        assert len(result.warnings) == 1
        assert result.warnings[0].scope == "slide"
        assert result.warnings[0].location == "ppt/slides/slide2.xml"

    def test_unreadable_slide_entry_is_downgraded_to_warning(self, images_dir):
        data = build_pptx(slides={1: slide_xml(text_shape("one")), 2: slide_xml(text_shape("two"))})
        data = mark_encrypted(data, "ppt/slides/slide2.xml")

        result = run_extraction(data, images_dir)

        assert [s.text for s in result.slides] == ["one", ""]
        assert [(w.scope, w.location) for w in result.warnings] == [
            ("slide", "ppt/slides/slide2.xml")
        ]

    def test_missing_presentation_part_is_format_error(self, images_dir):
        data = build_pptx(slides={1: slide_xml()}, with_presentation=False)

        with pytest.raises(FormatError):
            run_extraction(data, images_dir)

    def test_title_and_metadata(self, three_slide_pptx, images_dir):
        result = run_extraction(three_slide_pptx, images_dir)

        assert result.title == "deck"
        assert result.metadata.original_file_name == "deck.pptx"
        assert result.metadata.extracted_at.tzinfo is not None


class TestSlideImages:
    """Tests for media extraction and slide association."""

    def test_every_image_on_every_slide_by_default(self, three_slide_pptx, images_dir):
        result = run_extraction(three_slide_pptx, images_dir, seed=7)

        names = ["image_7_1.png", "image_7_2.png"]
        assert [i.file_name for i in result.images] == names
        assert [i.original_path for i in result.images] == [
            "ppt/media/image1.png",
            "ppt/media/image2.jpeg",
        ]
        for slide in result.slides:
            assert [i.file_name for i in slide.images] == names
        assert sorted(p.name for p in images_dir.iterdir()) == names

    def test_media_match_is_case_insensitive_and_filtered(self, images_dir):
        data = build_pptx(
            slides={1: slide_xml()},
            media={
                "image1.PNG": PNG_BYTES,
                "image2.GIF": PNG_BYTES,
                "image3.emf": b"emf",
                "media1.png": PNG_BYTES,
            },
        )

        result = run_extraction(data, images_dir)

        assert [i.original_path for i in result.images] == [
            "ppt/media/image1.PNG",
            "ppt/media/image2.GIF",
        ]

    def test_per_slide_scope_uses_slide_relationships(self, images_dir):
        data = build_pptx(
            slides={1: slide_xml(text_shape("One")), 2: slide_xml(text_shape("Two"))},
            media={"image1.png": PNG_BYTES, "image2.png": PNG_BYTES},
            extra={
                "ppt/slides/_rels/slide2.xml.rels": rels_xml(
                    ("rId2", IMAGE_REL, "../media/image2.png")
                ),
            },
        )

        result = run_extraction(data, images_dir, seed=3, scope=ImageScope.PER_SLIDE)

        assert result.slides[0].images == ()
        assert [i.file_name for i in result.slides[1].images] == ["image_3_2.png"]
        assert result.image_count == 2

    def test_zero_images(self, images_dir):
        data = build_pptx(slides={1: slide_xml(text_shape("Only text"))})

        result = run_extraction(data, images_dir)

        assert result.images == ()
        assert result.slides[0].images == ()
        assert list(images_dir.iterdir()) == []

    def test_unreadable_media_entry_is_skipped(self, images_dir):
        data = build_pptx(
            slides={1: slide_xml(text_shape("one")), 2: slide_xml(text_shape("two"))},
            media={"image1.png": PNG_BYTES, "image2.png": PNG_BYTES},
        )
        data = mark_encrypted(data, "ppt/media/image1.png")

        result = run_extraction(data, images_dir, seed=7)

        assert [s.text for s in result.slides] == ["one", "two"]
        assert result.image_count == 1
        assert [(i.file_name, i.original_path) for i in result.images] == [
            ("image_7_1.png", "ppt/media/image2.png")
        ]
        assert [(w.scope, w.location) for w in result.warnings] == [
            ("image", "ppt/media/image1.png")
        ]
