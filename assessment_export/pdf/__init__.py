"""
PDF export pipeline.

Captures a rendered dashboard as one bitmap, cuts it into pages along block
boundaries, and assembles an A4 PDF with a cover page and table of contents.
"""

from assessment_export.pdf.capture import BlockBoundary, CaptureResult, RasterCapture
from assessment_export.pdf.host import Rect, ReportHost
from assessment_export.pdf.paginator import PdfPaginator
from assessment_export.pdf.segmentation import (
    ExplicitPlan,
    HeuristicPlan,
    Segment,
    build_explicit_segments,
    calculate_slice_heights,
    plan_segmentation,
)
from assessment_export.pdf.service import PdfExportService

__all__ = [
    "BlockBoundary",
    "CaptureResult",
    "ExplicitPlan",
    "HeuristicPlan",
    "PdfExportService",
    "PdfPaginator",
    "RasterCapture",
    "Rect",
    "ReportHost",
    "Segment",
    "build_explicit_segments",
    "calculate_slice_heights",
    "plan_segmentation",
]
