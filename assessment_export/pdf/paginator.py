"""
PDF assembly from a captured dashboard bitmap.

Layout and rendering are separate passes: layout() decides every page
(cover and table of contents, then one page per segment) and render() draws
them with ReportLab. Knowing the page count up front lets every page carry a
"Page X of N" footer.
"""

import io
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime

from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from assessment_export.exceptions import RenderingError
from assessment_export.pdf.capture import BlockBoundary
from assessment_export.pdf.segmentation import SegmentationPlan, plan_segmentation

logger = logging.getLogger(__name__)

DEFAULT_TITLE = "VMware Infrastructure Assessment Report"
DEFAULT_MARGIN_MM = 10

FONT = "Helvetica"
TITLE_FONT_SIZE = 18
TITLE_LINE_HEIGHT = 8 * mm
SUBTITLE_FONT_SIZE = 11
TOC_HEADING_FONT_SIZE = 14
TOC_FONT_SIZE = 11
TOC_LINE_HEIGHT = 7 * mm
FOOTER_FONT_SIZE = 9
FOOTER_OFFSET = 6 * mm

TOC_ITEMS = (
    "- VM migration status",
    "- Operating system distribution",
    "- CPU & memory (VM distribution by CPU & memory size tier)",
    "- CPU & memory (VM distribution by vCPU count tier)",
    "- Disks (VM count by disk size tier)",
    "- Disks (Total disk size by tier)",
    "- Disks (VM count by disk type)",
    "- Clusters (VM distribution by cluster)",
    "- Clusters (Cluster distribution by data center)",
    "- Clusters (Cluster CPU over commitment)",
    "- Host distribution by model",
    "- Networks (VM distribution by network)",
    "- Networks (VM distribution by NIC count)",
    "- Migration warnings",
    "- Errors",
)

CanvasFactory = Callable[[int, int], Image.Image | None]


def default_canvas_factory(width: int, height: int) -> Image.Image | None:
    return Image.new("RGB", (width, height), "white")


@dataclass
class TextLine:
    """A line of text; y is the baseline measured from the top of the page."""

    text: str
    y: float
    font_size: float
    x: float | None = None  # None centers the line


@dataclass
class PlacedImage:
    """A bitmap slice and its box on the page, y measured from the top."""

    image: Image.Image
    x: float
    y: float
    width: float
    height: float


@dataclass
class PageLayout:
    texts: list[TextLine] = field(default_factory=list)
    image: PlacedImage | None = None


@dataclass
class DocumentLayout:
    title: str
    pages: list[PageLayout]
    plan: SegmentationPlan

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def footers(self) -> list[str]:
        total = self.page_count
        return [f"Page {number} of {total}" for number in range(1, total + 1)]


class PdfPaginator:
    """
    Paginates a tall dashboard bitmap onto A4 portrait pages.

    Example:
        >>> paginator = PdfPaginator()
        >>> pdf_bytes = paginator.build_pdf(bitmap, boundaries, None, 1600, "Lab report")
    """

    def __init__(
        self,
        canvas_factory: CanvasFactory = default_canvas_factory,
        margin_mm: float = DEFAULT_MARGIN_MM,
        default_title: str = DEFAULT_TITLE,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.canvas_factory = canvas_factory
        self.page_width, self.page_height = A4
        self.margin = margin_mm * mm
        self.default_title = default_title
        self.clock = clock

    @property
    def content_width(self) -> float:
        return self.page_width - self.margin * 2

    @property
    def content_height(self) -> float:
        return self.page_height - self.margin * 2

    def build_pdf(
        self,
        bitmap: Image.Image,
        boundaries: Sequence[BlockBoundary],
        markers: Mapping[int, BlockBoundary] | None,
        container_client_width: float,
        document_title: str | None = None,
    ) -> bytes:
        """
        Lay out and render the complete PDF.

        Args:
            bitmap: Master capture of the report container
            boundaries: Printable blocks in CSS px
            markers: Explicit export markers in CSS px, or None
            container_client_width: Unscaled width of the container in CSS px
            document_title: Title for the cover page

        Returns:
            PDF document bytes

        Raises:
            RenderingError: If a page canvas cannot be allocated
        """
        layout = self.layout(bitmap, boundaries, markers, container_client_width, document_title)
        return self.render(layout)

    def layout(
        self,
        bitmap: Image.Image,
        boundaries: Sequence[BlockBoundary],
        markers: Mapping[int, BlockBoundary] | None,
        container_client_width: float,
        document_title: str | None = None,
    ) -> DocumentLayout:
        """Decide the content of every page without drawing anything."""
        title = (
            document_title
            if document_title and document_title.strip()
            else self.default_title
        )
        pages = self._cover_pages(title)

        image_width, image_height = bitmap.size
        scale = self.content_width / image_width
        page_height_px = self.content_height / scale
        dom_to_bitmap_scale = image_width / max(1, container_client_width)

        plan = plan_segmentation(
            boundaries, markers, image_height, page_height_px, dom_to_bitmap_scale
        )

        for segment in plan.segments():
            slice_height = max(1, min(segment.height, image_height - segment.top))
            page_image = self._slice(bitmap, segment.top, slice_height)
            pages.append(PageLayout(image=self._fit(page_image)))

        logger.debug(f"Laid out {len(pages)} pages for {title!r}")
        return DocumentLayout(title=title, pages=pages, plan=plan)

    def render(self, layout: DocumentLayout) -> bytes:
        """Draw a laid-out document with ReportLab."""
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)
        pdf.setTitle(layout.title)
        pdf.setCreator("assessment-export")

        for page, footer in zip(layout.pages, layout.footers()):
            pdf.setFillColorRGB(1, 1, 1)
            pdf.rect(0, 0, self.page_width, self.page_height, stroke=0, fill=1)
            pdf.setFillColorRGB(0, 0, 0)

            for line in page.texts:
                pdf.setFont(FONT, line.font_size)
                baseline = self.page_height - line.y
                if line.x is None:
                    pdf.drawCentredString(self.page_width / 2, baseline, line.text)
                else:
                    pdf.drawString(line.x, baseline, line.text)

            if page.image is not None:
                placed = page.image
                pdf.drawImage(
                    ImageReader(placed.image),
                    placed.x,
                    self.page_height - placed.y - placed.height,
                    width=placed.width,
                    height=placed.height,
                )

            pdf.setFont(FONT, FOOTER_FONT_SIZE)
            pdf.drawCentredString(self.page_width / 2, FOOTER_OFFSET, footer)
            pdf.showPage()

        pdf.save()
        return buffer.getvalue()

    def _cover_pages(self, title: str) -> list[PageLayout]:
        cover = PageLayout()
        pages = [cover]

        title_y = self.margin + 8 * mm
        for line in simpleSplit(title, FONT, TITLE_FONT_SIZE, self.content_width):
            cover.texts.append(TextLine(line, title_y, TITLE_FONT_SIZE))
            title_y += TITLE_LINE_HEIGHT

        generated = self.clock()
        cover.texts.append(
            TextLine(
                f"Generated: {generated:%Y-%m-%d} {generated:%H:%M:%S}",
                title_y + 4 * mm,
                SUBTITLE_FONT_SIZE,
            )
        )

        toc_start_y = title_y + 16 * mm
        cover.texts.append(
            TextLine("Table of contents", toc_start_y, TOC_HEADING_FONT_SIZE, x=self.margin)
        )

        page = cover
        toc_y = toc_start_y + 10 * mm
        for item in TOC_ITEMS:
            if toc_y > self.page_height - self.margin - 10 * mm:
                page = PageLayout()
                pages.append(page)
                toc_y = self.margin
            page.texts.append(TextLine(item, toc_y, TOC_FONT_SIZE, x=self.margin))
            toc_y += TOC_LINE_HEIGHT

        return pages

    def _slice(self, bitmap: Image.Image, top: int, height: int) -> Image.Image:
        width = bitmap.width
        page_canvas = self.canvas_factory(width, height)
        if page_canvas is None:
            raise RenderingError("Canvas 2D context unavailable")

        strip = bitmap.crop((0, top, width, top + height)).convert("RGBA")
        page_canvas.paste(strip, (0, 0), strip)
        return page_canvas

    def _fit(self, page_image: Image.Image) -> PlacedImage:
        image_width, image_height = page_image.size
        page_scale = min(self.content_width / image_width, self.content_height / image_height)
        render_width = image_width * page_scale
        render_height = image_height * page_scale

        return PlacedImage(
            image=page_image,
            x=self.margin + (self.content_width - render_width) / 2,
            y=self.margin,
            width=render_width,
            height=render_height,
        )
