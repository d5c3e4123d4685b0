"""
Pytest configuration and shared fixtures.
"""

import copy

import pytest
from PIL import Image

from assessment_export.pdf.host import Rect


@pytest.fixture
def canonical_inventory():
    """Canonical (infra, vms) inventory of a small vCenter."""
    return {
        "infra": {
            "totalHosts": 4,
            "totalClusters": 2,
            "networks": [
                {"name": "VM Network", "type": "standard"},
                {"name": "dvs-prod", "type": "distributed"},
            ],
            "datastores": [
                {
                    "vendor": "NetApp",
                    "type": "NFS",
                    "totalCapacityGB": 1000,
                    "freeCapacityGB": 250,
                },
                {
                    "vendor": "Dell",
                    "type": "VMFS",
                    "totalCapacityGB": 500,
                    "freeCapacityGB": 400,
                },
            ],
        },
        "vms": {
            "total": 40,
            "powerStates": {"poweredOn": 30, "poweredOff": 8, "suspended": 2},
            "cpuCores": {"total": 100},
            "ramGB": {"total": 256},
            "diskGB": {"total": 2048},
            "osInfo": {
                "Red Hat Enterprise Linux 8": {"count": 20, "supported": True},
                "Microsoft Windows Server 2019": {"count": 15, "supported": True},
                "CentOS 7": {"count": 5, "supported": False},
            },
            "os": {},
            "migrationWarnings": [
                {"label": "Independent disk", "count": 3},
                {"label": "USB controller", "count": 1},
            ],
        },
    }


@pytest.fixture
def snapshot(canonical_inventory):
    """Snapshot in the current API shape (inventory.vcenter)."""
    return {
        "createdAt": "2026-10-01T09:30:00Z",
        "inventory": {"vcenter": copy.deepcopy(canonical_inventory)},
    }


@pytest.fixture
def assessment(snapshot, canonical_inventory):
    """Assessment with an older snapshot and the latest one."""
    older = {
        "createdAt": "2026-09-01T09:30:00Z",
        "inventory": {"vcenter": {"infra": {"totalHosts": 1}, "vms": {"total": 3}}},
    }
    return {"id": "a-1", "name": "Lab", "snapshots": [snapshot, older]}


class FakeElement:
    """In-memory stand-in for a rendered DOM element."""

    def __init__(
        self,
        tag: str = "div",
        top: float = 0,
        bottom: float = 0,
        classes: tuple[str, ...] = (),
        attributes: dict[str, str] | None = None,
        children: list["FakeElement"] | None = None,
        client_width: float = 0,
        image_fails: bool = False,
    ):
        self.tag = tag
        self.rect = Rect(top=top, bottom=bottom)
        self.classes = set(classes)
        self.attributes = attributes or {}
        self.children = children or []
        self.client_width = client_width
        self.image_fails = image_fails

    def descendants(self):
        for child in self.children:
            yield child
            yield from child.descendants()

    def matches(self, selector: str) -> bool:
        for part in (p.strip() for p in selector.split(",")):
            if part.startswith("."):
                if part[1:] in self.classes:
                    return True
            elif part.startswith("[") and part.endswith("]"):
                if part[1:-1] in self.attributes:
                    return True
            elif part == self.tag:
                return True
        return False


class FakeDownload:
    def __init__(self, payload: bytes, filename: str, media_type: str):
        self.payload = payload
        self.filename = filename
        self.media_type = media_type
        self.released = False
        self.discarded = False

    def release(self) -> None:
        self.released = True

    def discard(self) -> None:
        self.discarded = True


class FakeHost:
    """ReportHost over a FakeElement tree and a fixed bitmap."""

    def __init__(self, document: FakeElement, bitmap: Image.Image, canvas_available=True):
        self.document = document
        self.bitmap = bitmap
        self.canvas_available = canvas_available
        self.waited_images: list[FakeElement] = []
        self.downloads: list[FakeDownload] = []

    async def query_all(self, root, selector):
        return [element for element in root.descendants() if element.matches(selector)]

    async def get_element_by_id(self, element_id):
        for element in [self.document, *self.document.descendants()]:
            if element.attributes.get("id") == element_id:
                return element
        return None

    async def get_attribute(self, element, name):
        return element.attributes.get(name)

    async def measure_element(self, element):
        return element.rect

    async def client_width(self, element):
        return element.client_width

    async def wait_for_image(self, image):
        self.waited_images.append(image)
        if image.image_fails:
            raise RuntimeError("image failed to load")

    async def rasterize_subtree(self, element):
        return self.bitmap

    def create_canvas(self, width, height):
        if not self.canvas_available:
            return None
        return Image.new("RGB", (width, height), "white")

    async def trigger_download(self, payload, filename, media_type):
        download = FakeDownload(payload, filename, media_type)
        self.downloads.append(download)
        return download


def card(top: float, bottom: float, css_class: str = "dashboard-card-print") -> FakeElement:
    return FakeElement(top=top, bottom=bottom, classes=(css_class,))


def marker(index, top: float, bottom: float) -> FakeElement:
    return FakeElement(top=top, bottom=bottom, attributes={"data-export-block": str(index)})


@pytest.fixture
def make_host():
    """
    Build a FakeHost around a report container.

    The container starts at y=100 in the viewport and is 200 CSS px wide; the
    bitmap is rendered at 2x, so it is 400 px wide.
    """

    def _make_host(
        cards=(),
        markers=None,
        images=(),
        bitmap_height=1200,
        canvas_available=True,
    ):
        container = FakeElement(
            top=100,
            bottom=100 + bitmap_height / 2,
            attributes={"id": "report"},
            children=[*cards, *images],
            client_width=200,
        )
        children = [container]
        if markers is not None:
            children.append(
                FakeElement(
                    top=100,
                    bottom=100 + bitmap_height / 2,
                    attributes={"id": "hidden-container"},
                    children=list(markers),
                )
            )
        document = FakeElement(tag="body", children=children)
        bitmap = Image.new("RGB", (400, bitmap_height), "lightgray")
        host = FakeHost(document, bitmap, canvas_available=canvas_available)
        return host, container

    return _make_host
