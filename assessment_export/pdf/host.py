"""
Host capabilities needed by the PDF pipeline.

The pipeline never touches a browser directly. Everything it needs from the
rendering engine (querying and measuring elements, waiting for images,
rasterizing a subtree, allocating drawing surfaces, delivering the file) goes
through a ReportHost, so the pagination logic runs the same against headless
Chromium and against in-memory fakes.

Element handles are opaque to the pipeline; only the host interprets them.
"""

from dataclasses import dataclass
from typing import Any, Protocol

from PIL import Image

from assessment_export.download import Download


@dataclass(frozen=True)
class Rect:
    """Viewport-relative bounding box of an element, in CSS pixels."""

    top: float
    bottom: float
    left: float = 0.0
    right: float = 0.0

    @property
    def height(self) -> float:
        return self.bottom - self.top


class ReportHost(Protocol):
    """Rendering-engine operations used by capture, pagination and download."""

    async def query_all(self, root: Any, selector: str) -> list[Any]:
        """Return descendants of root matching a CSS selector, in document order."""
        ...

    async def get_element_by_id(self, element_id: str) -> Any | None:
        ...

    async def get_attribute(self, element: Any, name: str) -> str | None:
        ...

    async def measure_element(self, element: Any) -> Rect:
        ...

    async def client_width(self, element: Any) -> float:
        """Unscaled layout width of the element."""
        ...

    async def wait_for_image(self, image: Any) -> None:
        """Resolve once the image has loaded or failed to load."""
        ...

    async def rasterize_subtree(self, element: Any) -> Image.Image:
        """Capture the element's full scrollable extent as one bitmap."""
        ...

    def create_canvas(self, width: int, height: int) -> Image.Image | None:
        """Allocate a white drawing surface, or None if none is available."""
        ...

    async def trigger_download(self, payload: bytes, filename: str, media_type: str) -> Download:
        ...
