"""
Report generation for assessment-export.

Derives chart data from an inventory and renders the self-contained HTML
report.
"""

from assessment_export.report.chart_data import ChartData, extract_os_data, transform
from assessment_export.report.html import HtmlExportService, HtmlTemplateBuilder

__all__ = [
    "ChartData",
    "HtmlExportService",
    "HtmlTemplateBuilder",
    "extract_os_data",
    "transform",
]
