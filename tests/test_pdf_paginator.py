"""
Tests for PDF layout and rendering.
"""

import re
from datetime import datetime

import pytest
from PIL import Image
from reportlab.lib.units import mm

from assessment_export.exceptions import RenderingError
from assessment_export.pdf.capture import BlockBoundary
from assessment_export.pdf.paginator import DEFAULT_TITLE, TOC_ITEMS, PdfPaginator
from assessment_export.pdf.segmentation import ExplicitPlan, HeuristicPlan


@pytest.fixture
def paginator():
    return PdfPaginator(clock=lambda: datetime(2026, 10, 1, 12, 0, 0))


@pytest.fixture
def bitmap():
    return Image.new("RGB", (400, 1200), "lightgray")


def page_texts(page):
    return [line.text for line in page.texts]


def markers():
    return {
        i: BlockBoundary(top=i * 100, bottom=i * 100 + 80, height=80) for i in range(1, 5)
    }


class TestCoverPage:
    """Tests for the cover and table of contents."""

    def test_cover_contents(self, paginator, bitmap):
        """Test title, timestamp, heading and TOC entries on the cover."""
        layout = paginator.layout(bitmap, [], None, 200, "Lab report")

        texts = page_texts(layout.pages[0])
        assert texts[0] == "Lab report"
        assert "Generated: 2026-10-01 12:00:00" in texts
        assert "Table of contents" in texts
        assert [t for t in texts if t.startswith("- ")] == list(TOC_ITEMS)

    def test_default_title(self, paginator, bitmap):
        """Test that a missing or blank title falls back to the default."""
        for title in (None, "", "   "):
            layout = paginator.layout(bitmap, [], None, 200, title)
            assert layout.title == DEFAULT_TITLE
            assert page_texts(layout.pages[0])[0] == DEFAULT_TITLE

    def test_long_title_wraps(self, paginator, bitmap):
        """Test that long titles are split over several centered lines."""
        title = "VMware Infrastructure Assessment Report for the Northern Region Datacenter"

        layout = paginator.layout(bitmap, [], None, 200, title)

        title_lines = [line for line in layout.pages[0].texts if line.font_size == 18]
        assert len(title_lines) > 1
        assert all(line.x is None for line in title_lines)
        assert " ".join(line.text for line in title_lines) == title

    def test_toc_overflows_to_next_page(self, paginator, bitmap):
        """Test that TOC entries continue on a new page at the top margin."""
        title = "Assessment " * 120

        layout = paginator.layout(bitmap, [], None, 200, title)

        toc_lines = [
            line
            for page in layout.pages
            for line in page.texts
            if line.text.startswith("- ")
        ]
        assert len(toc_lines) == len(TOC_ITEMS)
        second_page = layout.pages[1]
        assert second_page.image is None
        assert second_page.texts[0].y == pytest.approx(10 * mm)


class TestContentPages:
    """Tests for content page layout."""

    def test_heuristic_pages(self, paginator, bitmap):
        """Test slicing without blocks or markers."""
        layout = paginator.layout(bitmap, [], None, 200)

        assert isinstance(layout.plan, HeuristicPlan)
        assert sum(layout.plan.slice_heights) == 1200
        assert layout.page_count == 1 + len(layout.plan.slice_heights)
        assert all(page.image is not None for page in layout.pages[1:])

    def test_explicit_pages(self, paginator, bitmap):
        """Test that complete markers give exactly three content pages."""
        layout = paginator.layout(bitmap, [], markers(), 200)

        assert isinstance(layout.plan, ExplicitPlan)
        assert layout.page_count == 4
        assert layout.pages[1].image.image.size == (400, 408)

    def test_images_centered_at_top_margin(self, paginator):
        """Test that each slice is scaled to fit, centered, and top-aligned."""
        tall = Image.new("RGB", (400, 4000), "lightgray")
        tall_markers = {
            1: BlockBoundary(0, 900, 900),
            2: BlockBoundary(900, 1000, 100),
            3: BlockBoundary(1000, 1100, 100),
            4: BlockBoundary(1200, 1300, 100),
        }

        layout = paginator.layout(tall, [], tall_markers, 200)

        for page in layout.pages[1:]:
            placed = page.image
            assert placed.y == pytest.approx(paginator.margin)
            assert placed.x + placed.width / 2 == pytest.approx(paginator.page_width / 2)
            assert placed.width <= paginator.content_width + 1e-6
            assert placed.height <= paginator.content_height + 1e-6

        first = layout.pages[1].image
        assert first.height == pytest.approx(paginator.content_height)
        assert first.x > paginator.margin

    def test_footers(self, paginator, bitmap):
        """Test page numbering over the whole document."""
        layout = paginator.layout(bitmap, [], markers(), 200)

        assert layout.footers() == [
            "Page 1 of 4",
            "Page 2 of 4",
            "Page 3 of 4",
            "Page 4 of 4",
        ]

    def test_missing_canvas(self, bitmap):
        """Test that an unavailable drawing surface raises RenderingError."""
        paginator = PdfPaginator(canvas_factory=lambda width, height: None)

        with pytest.raises(RenderingError) as exc_info:
            paginator.layout(bitmap, [], None, 200)

        assert exc_info.value.message == "Canvas 2D context unavailable"

    def test_transparent_bitmap_lands_on_white(self, paginator):
        """Test that slices are composited onto an opaque white page canvas."""
        transparent = Image.new("RGBA", (400, 600), (0, 0, 0, 0))

        layout = paginator.layout(transparent, [], None, 200)

        page_image = layout.pages[1].image.image
        assert page_image.mode == "RGB"
        assert page_image.getpixel((10, 10)) == (255, 255, 255)


class TestRender:
    """Tests for PDF rendering."""

    def test_build_pdf(self, paginator, bitmap):
        """Test that a valid PDF with one page per laid-out page is produced."""
        pdf_bytes = paginator.build_pdf(bitmap, [], markers(), 200, "Lab report")

        assert pdf_bytes.startswith(b"%PDF")
        counts = [int(n) for n in re.findall(rb"/Count (\d+)", pdf_bytes)]
        assert max(counts) == 4

    def test_build_pdf_heuristic(self, paginator, bitmap):
        """Test rendering a heuristically sliced document."""
        layout = paginator.layout(bitmap, [BlockBoundary(0, 250, 250)], None, 200)

        pdf_bytes = paginator.render(layout)

        counts = [int(n) for n in re.findall(rb"/Count (\d+)", pdf_bytes)]
        assert max(counts) == layout.page_count
