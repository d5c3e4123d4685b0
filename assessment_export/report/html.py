"""
HTML report generation.

Builds a self-contained HTML assessment report (inline styles, embedded chart
data, no external assets) and hands it to a downloader.
"""

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader

from assessment_export.download import Downloader
from assessment_export.exceptions import MissingInventoryError
from assessment_export.inventory.normalize import normalize_inventory
from assessment_export.models import ExportOptions
from assessment_export.report.chart_data import ChartData, transform

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

DEFAULT_DOCUMENT_TITLE = "VMware Infrastructure Assessment Report"
DEFAULT_HTML_FILENAME = "VMware_Infrastructure_Assessment_Comprehensive.html"
HTML_MEDIA_TYPE = "text/html;charset=utf-8"

# Seconds to wait after triggering a download before releasing it
DOWNLOAD_RELEASE_DELAY = 0.25


def _percent(part: float, whole: float) -> float:
    if not whole:
        return 0.0
    return round(part / whole * 100, 1)


class HtmlTemplateBuilder:
    """
    Renders the report template from chart data.

    Example:
        >>> builder = HtmlTemplateBuilder()
        >>> html = builder.build(chart_data, inventory, datetime.now(), "Lab report")
    """

    template_name = "report.html.j2"

    def __init__(self, template_dir: Path = TEMPLATE_DIR):
        self.env = Environment(loader=FileSystemLoader(str(template_dir)), autoescape=True)

    def build(
        self,
        chart_data: ChartData,
        inventory: Any,
        generated_at: datetime,
        title: str,
    ) -> str:
        """
        Render the full HTML document.

        Args:
            chart_data: Aggregates from transform()
            inventory: The inventory the chart data was derived from
            generated_at: Timestamp printed in the header
            title: Document title

        Returns:
            Rendered HTML string
        """
        context = self.build_context(chart_data, inventory, generated_at, title)
        template = self.env.get_template(self.template_name)
        return template.render(**context)

    def build_context(
        self,
        chart_data: ChartData,
        inventory: Any,
        generated_at: datetime,
        title: str,
    ) -> dict[str, Any]:
        """
        Assemble the template context.

        Bar widths are precomputed as percentages so the template stays free
        of arithmetic.
        """
        canonical = normalize_inventory(inventory)
        infra, vms = canonical.infra, canonical.vms

        total_vms = vms.get("total") or 0
        power_rows = [
            {"label": label, "count": count, "percent": _percent(count, total_vms)}
            for label, count in chart_data.power_state_data
        ]

        resource_rows = [
            {
                "label": label,
                "actual": actual,
                "recommended": recommended,
                "percent": _percent(actual, recommended),
            }
            for label, actual, recommended in chart_data.resource_data
        ]

        os_max = max((count for _, count in chart_data.os_data), default=0)
        os_rows = [
            {"name": name, "count": count, "percent": _percent(count, os_max)}
            for name, count in chart_data.os_data
        ]

        storage_rows = [
            {
                "label": label,
                "used": used,
                "total": total,
                "percent": _percent(used, total),
            }
            for label, used, total in zip(
                chart_data.storage_labels,
                chart_data.storage_used_data,
                chart_data.storage_total_data,
            )
        ]

        return {
            "title": title,
            "generated_at": generated_at.strftime("%Y-%m-%d %H:%M:%S"),
            "summary": {
                "total_vms": total_vms,
                "total_hosts": infra.get("totalHosts") or 0,
                "datastores": len(infra.get("datastores") or []),
                "networks": len(infra.get("networks") or []),
            },
            "power_rows": power_rows,
            "resource_rows": resource_rows,
            "os_rows": os_rows,
            "warnings": [
                {"label": label, "count": count} for label, count in chart_data.warnings_data
            ],
            "storage_rows": storage_rows,
            "chart_data": chart_data.to_dict(),
        }


class HtmlExportService:
    """
    Generates HTML reports from inventory data and downloads them.

    Example:
        >>> service = HtmlExportService(DirectoryDownloader(Path("reports")))
        >>> await service.generate(snapshot, ExportOptions(document_title="Lab"))
    """

    def __init__(
        self,
        downloader: Downloader,
        template_builder: HtmlTemplateBuilder | None = None,
        release_delay: float = DOWNLOAD_RELEASE_DELAY,
    ):
        self.downloader = downloader
        self.template_builder = template_builder or HtmlTemplateBuilder()
        self.release_delay = release_delay

    async def generate(self, inventory: Any, options: ExportOptions | None = None) -> None:
        """
        Generate and download an HTML report.

        Args:
            inventory: Snapshot, inventory, or canonical mapping
            options: Title and filename overrides

        Raises:
            MissingInventoryError: If inventory is None
            InvalidInventoryShapeError: If the inventory shape is not recognized
        """
        if inventory is None:
            raise MissingInventoryError()

        options = options or ExportOptions()
        chart_data = transform(inventory)
        title = options.document_title or DEFAULT_DOCUMENT_TITLE
        html_content = self.template_builder.build(chart_data, inventory, datetime.now(), title)
        filename = options.filename or DEFAULT_HTML_FILENAME

        await self._download_html(html_content, filename)

    async def _download_html(self, content: str, filename: str) -> None:
        download = await self.downloader.trigger_download(
            content.encode("utf-8"), filename, HTML_MEDIA_TYPE
        )
        # Give the receiving side time to pick the download up before cleanup
        try:
            await asyncio.sleep(self.release_delay)
        except BaseException:
            download.discard()
            raise
        download.release()
        logger.debug(f"HTML report {filename} released ({len(content)} characters)")
