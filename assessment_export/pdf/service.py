"""
PDF export service: capture, paginate, download.
"""

import logging
from typing import Any

from assessment_export.models import ExportOptions
from assessment_export.pdf.capture import RasterCapture
from assessment_export.pdf.host import ReportHost
from assessment_export.pdf.paginator import PdfPaginator
from assessment_export.util.files import sanitize_filename

logger = logging.getLogger(__name__)

DEFAULT_PDF_FILENAME = "Dashboard_Report.pdf"
PDF_MEDIA_TYPE = "application/pdf"


def resolve_pdf_filename(options: ExportOptions) -> str:
    """
    Pick the download name for a PDF export.

    The explicit filename wins, then the document title. Either is sanitized
    and given a single ``.pdf`` suffix; if nothing usable remains the default
    name is used.

    Example:
        >>> resolve_pdf_filename(ExportOptions(document_title="Lab: Q3"))
        'Lab_ Q3.pdf'
    """
    for candidate in (options.filename, options.document_title):
        if candidate:
            name = sanitize_filename(candidate, ".pdf")
            if name:
                return name
    return DEFAULT_PDF_FILENAME


class PdfExportService:
    """
    Turns a rendered report container into a downloaded PDF.

    Example:
        >>> service = PdfExportService(host)
        >>> await service.generate(container, ExportOptions(document_title="Lab"))
    """

    def __init__(
        self,
        host: ReportHost,
        capture: RasterCapture | None = None,
        paginator: PdfPaginator | None = None,
    ):
        self.host = host
        self.capture = capture or RasterCapture(host)
        self.paginator = paginator or PdfPaginator(canvas_factory=host.create_canvas)

    async def generate(self, container: Any, options: ExportOptions | None = None) -> str:
        """
        Generate and download a PDF of the container.

        Args:
            container: Host element handle of the rendered report
            options: Title and filename overrides

        Returns:
            Filename the PDF was delivered under

        Raises:
            RenderingError: If a page canvas cannot be allocated
        """
        options = options or ExportOptions()

        captured = await self.capture.capture(container)
        markers = await self.capture.collect_marker_blocks()

        pdf_bytes = self.paginator.build_pdf(
            captured.bitmap,
            captured.boundaries,
            markers,
            captured.container_client_width,
            options.document_title,
        )

        filename = resolve_pdf_filename(options)
        download = await self.host.trigger_download(pdf_bytes, filename, PDF_MEDIA_TYPE)
        download.release()

        logger.info(f"PDF report {filename} generated ({len(pdf_bytes)} bytes)")
        return filename
