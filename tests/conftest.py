"""Pytest configuration and fixtures."""

import io
import os

import pytest

# Set test environment before importing application code
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["LOG_FORMAT"] = "console"
os.environ["EXTRACT_IMAGE_SCOPE"] = "all_slides"

from ooxml_builders import (  # noqa: E402
    PNG_BYTES,
    build_pptx,
    build_xlsx,
    cell,
    row,
    slide_xml,
    text_shape,
    worksheet_xml,
)


@pytest.fixture
def images_dir(tmp_path):
    """Image output directory for one test."""
    return tmp_path / "images"


@pytest.fixture
def three_slide_pptx():
    """Three slides stored out of entry order, two images."""
    return build_pptx(
        slides={
            3: slide_xml(text_shape("Check", "coolant")),
            1: slide_xml(text_shape("Engine", "start"), text_shape("procedure")),
            2: slide_xml(text_shape("Brake test")),
        },
        media={"image1.png": PNG_BYTES, "image2.jpeg": PNG_BYTES},
    )


@pytest.fixture
def two_sheet_xlsx():
    """Two sheets using shared, inline and numeric cells."""
    return build_xlsx(
        sheets=[("Inspection", "1"), ("Parts", "2")],
        worksheets={
            "sheet1.xml": worksheet_xml(
                row(1, cell("A1", "0", "s"), cell("B1", "1", "s")),
                row(2, cell("A2", "2", "s"), cell("B2", "42")),
            ),
            "sheet2.xml": worksheet_xml(
                row(1, cell("A1", "Bolt M8", "inlineStr"), cell("C1", "12")),
            ),
        },
        shared_strings=["Item", "Result", "Oil level"],
    )


@pytest.fixture
def python_pptx_deck():
    """A real deck written by python-pptx: text on both slides, a picture on slide 1."""
    from pptx import Presentation
    from pptx.util import Inches

    prs = Presentation()
    blank = prs.slide_layouts[6]

    first = prs.slides.add_slide(blank)
    first.shapes.add_textbox(Inches(1), Inches(1), Inches(4), Inches(1)).text_frame.text = (
        "Hydraulic pump restart"
    )
    first.shapes.add_picture(io.BytesIO(PNG_BYTES), Inches(1), Inches(2))

    second = prs.slides.add_slide(blank)
    second.shapes.add_textbox(Inches(1), Inches(1), Inches(4), Inches(1)).text_frame.text = (
        "Contact the depot"
    )

    buffer = io.BytesIO()
    prs.save(buffer)
    return buffer.getvalue()


@pytest.fixture
def openpyxl_workbook():
    """A real workbook written by openpyxl: shared strings, numbers, a picture on sheet 1."""
    from openpyxl import Workbook
    from openpyxl.drawing.image import Image

    wb = Workbook()
    checks = wb.active
    checks.title = "Checks"
    checks["A1"] = "Item"
    checks["B1"] = "Result"
    checks["A2"] = "Tyre pressure"
    checks["B2"] = 42
    checks.add_image(Image(io.BytesIO(PNG_BYTES)), "D2")

    notes = wb.create_sheet("Notes")
    notes["C3"] = "Replace filter"

    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
