"""
ReportHost backed by headless Chromium through Playwright.
"""

import io
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

from PIL import Image
from playwright.async_api import ElementHandle, Page, async_playwright

from assessment_export.download import Download, Downloader
from assessment_export.pdf.host import Rect

logger = logging.getLogger(__name__)

DEFAULT_VIEWPORT_WIDTH = 1600
DEFAULT_VIEWPORT_HEIGHT = 1000
DEFAULT_DEVICE_SCALE_FACTOR = 2
DEFAULT_TIMEOUT_MS = 30000

_MEASURE_JS = """
el => {
    const r = el.getBoundingClientRect();
    return {top: r.top, bottom: r.bottom, left: r.left, right: r.right};
}
"""

_WAIT_FOR_IMAGE_JS = """
img => img.complete ? null : new Promise(resolve => {
    img.addEventListener('load', () => resolve(null), {once: true});
    img.addEventListener('error', () => resolve(null), {once: true});
})
"""


def _to_url(target: str) -> str:
    if "://" in target:
        return target
    return Path(target).resolve().as_uri()


class PlaywrightHost:
    """
    Drives a loaded Playwright page on behalf of the PDF pipeline.

    Example:
        >>> async with open_dashboard("report.html") as page:
        ...     host = PlaywrightHost(page, DirectoryDownloader(Path("output")))
        ...     container = await host.find_container("#report")
    """

    def __init__(self, page: Page, downloader: Downloader):
        self.page = page
        self.downloader = downloader

    async def find_container(self, selector: str, timeout_ms: int = DEFAULT_TIMEOUT_MS):
        """Wait for the report container to be attached and return its handle."""
        return await self.page.wait_for_selector(selector, state="attached", timeout=timeout_ms)

    async def query_all(self, root: ElementHandle, selector: str) -> list[ElementHandle]:
        return await root.query_selector_all(selector)

    async def get_element_by_id(self, element_id: str) -> ElementHandle | None:
        return await self.page.query_selector(f'[id="{element_id}"]')

    async def get_attribute(self, element: ElementHandle, name: str) -> str | None:
        return await element.get_attribute(name)

    async def measure_element(self, element: ElementHandle) -> Rect:
        box = await element.evaluate(_MEASURE_JS)
        return Rect(top=box["top"], bottom=box["bottom"], left=box["left"], right=box["right"])

    async def client_width(self, element: ElementHandle) -> float:
        return float(await element.evaluate("el => el.clientWidth"))

    async def wait_for_image(self, image: ElementHandle) -> None:
        await image.evaluate(_WAIT_FOR_IMAGE_JS)

    async def rasterize_subtree(self, element: ElementHandle) -> Image.Image:
        png = await element.screenshot(type="png", animations="disabled")
        bitmap = Image.open(io.BytesIO(png))
        bitmap.load()
        logger.debug(f"Rasterized container to {bitmap.width}x{bitmap.height} px")
        return bitmap

    def create_canvas(self, width: int, height: int) -> Image.Image | None:
        return Image.new("RGB", (width, height), "white")

    async def trigger_download(self, payload: bytes, filename: str, media_type: str) -> Download:
        return await self.downloader.trigger_download(payload, filename, media_type)


@asynccontextmanager
async def open_dashboard(
    target: str,
    viewport_width: int = DEFAULT_VIEWPORT_WIDTH,
    device_scale_factor: float = DEFAULT_DEVICE_SCALE_FACTOR,
    timeout_ms: int = DEFAULT_TIMEOUT_MS,
) -> AsyncIterator[Page]:
    """
    Launch headless Chromium and load a rendered dashboard.

    Args:
        target: URL or path to a local HTML file
        viewport_width: Layout width in CSS px
        device_scale_factor: Bitmap px per CSS px of the capture
        timeout_ms: Navigation timeout

    Yields:
        The loaded page
    """
    url = _to_url(target)
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=True)
        try:
            page = await browser.new_page(
                viewport={"width": viewport_width, "height": DEFAULT_VIEWPORT_HEIGHT},
                device_scale_factor=device_scale_factor,
            )
            logger.info(f"Loading {url}")
            await page.goto(url, wait_until="networkidle", timeout=timeout_ms)
            yield page
        finally:
            await browser.close()
