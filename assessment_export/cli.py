"""
CLI entry point for assessment-export.
"""

import asyncio
import logging
from functools import wraps
from pathlib import Path

import typer

from assessment_export.config import ExportConfig
from assessment_export.download import DirectoryDownloader
from assessment_export.exceptions import (
    AssessmentExportError,
    ExportFailedError,
    MissingInventoryError,
    format_error_for_cli,
)
from assessment_export.inventory.loaders import InventoryLoader
from assessment_export.inventory.snapshots import (
    has_useful_data,
    parse_latest_snapshot,
    select_inventory,
)
from assessment_export.models import ExportOptions, ExportResult, LoadingState
from assessment_export.orchestrator import ExportOrchestrator
from assessment_export.pdf.capture import RasterCapture
from assessment_export.pdf.paginator import PdfPaginator
from assessment_export.pdf.service import PdfExportService
from assessment_export.report.html import HtmlExportService
from assessment_export.util.log import configure_logging
from assessment_export.util.progress import console, operation_status, show_summary

app = typer.Typer(
    name="assessment-export",
    help="Export VMware migration assessment reports as HTML or PDF",
    add_completion=False,
)
logger = logging.getLogger(__name__)


def handle_errors(func):
    """Decorator to handle exceptions in CLI commands with nice formatting."""

    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except AssessmentExportError as e:
            console.print(format_error_for_cli(e))
            raise typer.Exit(1)
        except typer.Exit:
            raise
        except Exception as e:
            console.print(f"[red]Unexpected error:[/red] {str(e)}")
            logger.debug("Unexpected error", exc_info=True)
            raise typer.Exit(1)

    return wrapper


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
    config: Path = typer.Option(
        None, "--config", "-c", help="Path to assessment-export.yaml"
    ),
):
    """Export VMware migration assessment reports as HTML or PDF."""
    configure_logging(verbose)
    if config is not None:
        ctx.obj = ExportConfig(config.parent, config_file=config)
    else:
        ctx.obj = ExportConfig(Path.cwd())


def _build_orchestrator(
    export_config: ExportConfig, downloader: DirectoryDownloader, host=None
) -> ExportOrchestrator:
    html_service = HtmlExportService(downloader, release_delay=export_config.release_delay)

    pdf_service = None
    if host is not None:
        capture = RasterCapture(
            host,
            block_selector=export_config.block_selectors,
            marker_container_id=export_config.marker_container_id,
        )
        paginator = PdfPaginator(
            canvas_factory=host.create_canvas,
            margin_mm=export_config.margin_mm,
            default_title=export_config.default_title,
        )
        pdf_service = PdfExportService(host, capture=capture, paginator=paginator)

    orchestrator = ExportOrchestrator(pdf_service, html_service)

    def log_transition() -> None:
        state = orchestrator.get_snapshot()
        logger.debug(f"Export state: {state.loading_state.value}")

    orchestrator.subscribe(log_transition)
    return orchestrator


def _check_result(orchestrator: ExportOrchestrator, result: ExportResult) -> None:
    if result.success:
        return

    state = orchestrator.get_snapshot()
    error = result.error
    if state.loading_state is LoadingState.ERROR and state.error is not None:
        error = state.error
    raise ExportFailedError(error.type, error.message)


def _output_dir(export_config: ExportConfig, out: Path | None) -> Path:
    return out if out is not None else export_config.output_dir


@app.command()
@handle_errors
def init(
    directory: Path = typer.Argument(Path("."), help="Directory to write the configuration to"),
):
    """Write a default assessment-export.yaml."""
    export_config = ExportConfig(directory)
    config_file = export_config.initialize()
    console.print(f"[green]✓ Wrote configuration to {config_file}[/green]")


@app.command()
@handle_errors
def summary(
    file: Path = typer.Argument(..., help="Assessment, snapshot or inventory file (JSON/YAML)"),
):
    """Show a summary of the latest snapshot in an inventory file."""
    document = InventoryLoader().load(file)

    if "snapshots" in document:
        snapshots = document.get("snapshots") or []
    elif "inventory" in document:
        snapshots = [document]
    else:
        # Bare inventory: summarize it as a single snapshot
        snapshots = [{"inventory": {"vcenter": document}}]

    if not has_useful_data(snapshots):
        raise MissingInventoryError()

    show_summary(f"Inventory: {file.name}", parse_latest_snapshot(snapshots))


@app.command(name="export-html")
@handle_errors
def export_html(
    ctx: typer.Context,
    file: Path = typer.Argument(..., help="Assessment, snapshot or inventory file (JSON/YAML)"),
    title: str = typer.Option(None, "--title", help="Document title"),
    filename: str = typer.Option(None, "--filename", help="Output filename"),
    out: Path = typer.Option(None, "--out", help="Output directory"),
):
    """Export an inventory as a standalone HTML report."""
    export_config: ExportConfig = ctx.obj
    inventory = select_inventory(InventoryLoader().load(file))

    downloader = DirectoryDownloader(_output_dir(export_config, out))
    orchestrator = _build_orchestrator(export_config, downloader)
    options = ExportOptions(document_title=title, filename=filename)

    with operation_status("Generating HTML report"):
        result = asyncio.run(orchestrator.export_html(inventory, options))
        _check_result(orchestrator, result)

    for download in downloader.downloads:
        console.print(f"[dim]  {download.final_path}[/dim]")


@app.command(name="export-pdf")
@handle_errors
def export_pdf(
    ctx: typer.Context,
    page: str = typer.Argument(..., help="Rendered dashboard: HTML file or URL"),
    title: str = typer.Option(None, "--title", help="Document title"),
    filename: str = typer.Option(None, "--filename", help="Output filename"),
    selector: str = typer.Option(None, "--selector", help="CSS selector of the report container"),
    out: Path = typer.Option(None, "--out", help="Output directory"),
):
    """Export a rendered dashboard page as a paginated PDF."""
    export_config: ExportConfig = ctx.obj
    downloader = DirectoryDownloader(_output_dir(export_config, out))
    options = ExportOptions(document_title=title, filename=filename)

    with operation_status("Generating PDF report"):
        asyncio.run(_export_pdf(export_config, downloader, page, selector, options))

    for download in downloader.downloads:
        console.print(f"[dim]  {download.final_path}[/dim]")


async def _export_pdf(
    export_config: ExportConfig,
    downloader: DirectoryDownloader,
    page_target: str,
    selector: str | None,
    options: ExportOptions,
) -> None:
    from assessment_export.pdf.playwright_host import PlaywrightHost, open_dashboard

    browser = export_config.browser
    async with open_dashboard(
        page_target,
        viewport_width=browser["viewport_width"],
        device_scale_factor=browser["device_scale_factor"],
        timeout_ms=browser["timeout_ms"],
    ) as page:
        host = PlaywrightHost(page, downloader)
        container = await host.find_container(
            selector or browser["container_selector"], timeout_ms=browser["timeout_ms"]
        )
        orchestrator = _build_orchestrator(export_config, downloader, host=host)
        result = await orchestrator.export_pdf(container, options)
        _check_result(orchestrator, result)


if __name__ == "__main__":
    app()
