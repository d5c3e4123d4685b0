"""
Raster capture of a rendered dashboard.

Waits for images, measures the printable blocks the paginator must not cut
through, and rasterizes the whole container into one tall bitmap.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from PIL import Image

from assessment_export.pdf.host import Rect, ReportHost

logger = logging.getLogger(__name__)

BLOCK_SELECTORS = ".dashboard-card-print, .pf-v6-c-card"
MARKER_CONTAINER_ID = "hidden-container"
MARKER_ATTRIBUTE = "data-export-block"
MARKER_COUNT = 4

# Blocks this short (in CSS px) are layout noise, not cards
MIN_BLOCK_HEIGHT = 4


@dataclass(frozen=True)
class BlockBoundary:
    """Vertical extent of a printable block relative to its container."""

    top: float
    bottom: float
    height: float

    def scaled(self, factor: float) -> "BlockBoundary":
        return BlockBoundary(self.top * factor, self.bottom * factor, self.height * factor)


@dataclass
class CaptureResult:
    """Everything the paginator needs from the rendering engine."""

    bitmap: Image.Image
    boundaries: list[BlockBoundary]
    container_client_width: float


def _relative(rect: Rect, container_rect: Rect) -> BlockBoundary:
    top = max(0.0, rect.top - container_rect.top)
    bottom = max(top, rect.bottom - container_rect.top)
    return BlockBoundary(top=top, bottom=bottom, height=bottom - top)


class RasterCapture:
    """
    Captures an attached, fully rendered container.

    Example:
        >>> capture = RasterCapture(host)
        >>> result = await capture.capture(container)
        >>> result.bitmap.size
        (3200, 9120)
    """

    def __init__(
        self,
        host: ReportHost,
        block_selector: str = BLOCK_SELECTORS,
        marker_container_id: str = MARKER_CONTAINER_ID,
    ):
        self.host = host
        self.block_selector = block_selector
        self.marker_container_id = marker_container_id

    async def capture(self, container: Any) -> CaptureResult:
        """
        Wait for images, measure blocks, then rasterize the container.

        Args:
            container: Host element handle of the rendered report

        Returns:
            CaptureResult with the bitmap, sorted block boundaries (CSS px) and
            the container's unscaled client width
        """
        await self.wait_for_images(container)
        boundaries = await self.collect_block_boundaries(container)
        bitmap = await self.host.rasterize_subtree(container)
        client_width = await self.host.client_width(container)

        logger.info(
            f"Captured {bitmap.width}x{bitmap.height} px bitmap "
            f"with {len(boundaries)} printable blocks"
        )
        return CaptureResult(
            bitmap=bitmap, boundaries=boundaries, container_client_width=client_width
        )

    async def wait_for_images(self, container: Any) -> None:
        """
        Wait until every image in the container has loaded or failed.

        Failures count as ready so a broken image can never stall an export.
        """
        images = await self.host.query_all(container, "img")
        if not images:
            return

        results = await asyncio.gather(
            *(self.host.wait_for_image(image) for image in images),
            return_exceptions=True,
        )
        failures = [result for result in results if isinstance(result, Exception)]
        if failures:
            logger.warning(f"{len(failures)} of {len(images)} images failed to report readiness")

    async def collect_block_boundaries(self, container: Any) -> list[BlockBoundary]:
        """
        Measure printable blocks relative to the container.

        Returns:
            Boundaries taller than MIN_BLOCK_HEIGHT, sorted by top edge
        """
        container_rect = await self.host.measure_element(container)
        elements = await self.host.query_all(container, self.block_selector)

        boundaries = []
        for element in elements:
            boundary = _relative(await self.host.measure_element(element), container_rect)
            if boundary.height > MIN_BLOCK_HEIGHT:
                boundaries.append(boundary)

        return sorted(boundaries, key=lambda b: b.top)

    async def collect_marker_blocks(self) -> dict[int, BlockBoundary] | None:
        """
        Measure the explicitly numbered export blocks.

        Looks for elements carrying ``data-export-block`` inside the marker
        container. Only a complete set of exactly four markers numbered 1..4
        counts; anything else means the report did not opt into explicit
        pagination.

        Returns:
            Mapping of marker number to boundary (CSS px), or None
        """
        marker_container = await self.host.get_element_by_id(self.marker_container_id)
        if marker_container is None:
            logger.debug(f"No #{self.marker_container_id} container; using heuristic slicing")
            return None

        elements = await self.host.query_all(marker_container, f"[{MARKER_ATTRIBUTE}]")
        if len(elements) != MARKER_COUNT:
            logger.debug(f"Found {len(elements)} export markers, expected {MARKER_COUNT}")
            return None

        indexed: dict[int, Any] = {}
        for element in elements:
            value = await self.host.get_attribute(element, MARKER_ATTRIBUTE)
            try:
                indexed[int(value)] = element
            except (TypeError, ValueError):
                logger.debug(f"Ignoring non-numeric export marker {value!r}")

        if sorted(indexed) != list(range(1, MARKER_COUNT + 1)):
            logger.debug(f"Export markers {sorted(indexed)} are not sequential")
            return None

        container_rect = await self.host.measure_element(marker_container)
        return {
            index: _relative(await self.host.measure_element(element), container_rect)
            for index, element in sorted(indexed.items())
        }
