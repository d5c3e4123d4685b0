"""
Page segmentation of the master bitmap.

Two strategies decide where pages start and end:

- Explicit: the report marks four regions (data-export-block 1..4) and gets
  exactly three content pages: markers 1+2, marker 3, marker 4.
- Heuristic: walk down the bitmap one page height at a time and pull each
  cut line up to the bottom of the last block that still fits, so no card is
  split across pages.

The explicit plan is preferred whenever it is available. Both plans expose
the same segments() view so a single loop renders either.

All values here are bitmap pixels unless a name says otherwise.
"""

import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from assessment_export.pdf.capture import BlockBoundary

logger = logging.getLogger(__name__)

# Smallest step a cut line may advance; guarantees progress
MIN_ADVANCE = 32
MAX_LOOP_GUARD = 2000

# CSS px, converted to bitmap px with the DOM-to-bitmap scale
BLEED_GUARD_CSS_PX = 6
SEGMENT_PADDING_CSS_PX = 12

EXPECTED_EXPLICIT_SEGMENTS = 3


@dataclass(frozen=True)
class Segment:
    """Vertical window of one content page into the master bitmap."""

    top: int
    height: int


@dataclass(frozen=True)
class ExplicitPlan:
    """Pages taken from the marked report regions."""

    windows: tuple[Segment, ...]

    def segments(self) -> list[Segment]:
        return list(self.windows)


@dataclass(frozen=True)
class HeuristicPlan:
    """Contiguous slices covering the whole bitmap."""

    slice_heights: tuple[int, ...]

    def segments(self) -> list[Segment]:
        segments = []
        top = 0
        for height in self.slice_heights:
            segments.append(Segment(top=top, height=height))
            top += height
        return segments


SegmentationPlan = ExplicitPlan | HeuristicPlan


def _padded_window(top: float, bottom: float, padding: float, bitmap_height: int) -> Segment:
    window_top = min(max(0, math.floor(top - padding)), max(0, bitmap_height - 1))
    window_bottom = min(bitmap_height, math.ceil(bottom + padding))
    return Segment(top=window_top, height=max(1, window_bottom - window_top))


def build_explicit_segments(
    markers: Mapping[int, BlockBoundary] | None,
    bitmap_height: int,
    dom_to_bitmap_scale: float,
) -> list[Segment] | None:
    """
    Build the three explicit pages from marker boundaries.

    Args:
        markers: Marker number to boundary in CSS px, as measured by capture
        bitmap_height: Height of the master bitmap
        dom_to_bitmap_scale: Bitmap px per CSS px

    Returns:
        Three padded, clamped segments, or None if any marker 1..4 is missing

    Example:
        >>> markers = {i: BlockBoundary(i * 100, i * 100 + 80, 80) for i in range(1, 5)}
        >>> [s.top for s in build_explicit_segments(markers, 1000, 1.0)]
        [88, 288, 388]
    """
    if not markers or any(index not in markers for index in range(1, 5)):
        return None

    b1, b2, b3, b4 = (markers[index].scaled(dom_to_bitmap_scale) for index in range(1, 5))
    padding = SEGMENT_PADDING_CSS_PX * dom_to_bitmap_scale

    return [
        _padded_window(min(b1.top, b2.top), max(b1.bottom, b2.bottom), padding, bitmap_height),
        _padded_window(b3.top, b3.bottom, padding, bitmap_height),
        _padded_window(b4.top, b4.bottom, padding, bitmap_height),
    ]


def calculate_slice_heights(
    blocks_px: Sequence[BlockBoundary],
    bitmap_height: int,
    page_height_px: float,
    bleed_guard_px: int,
) -> list[int]:
    """
    Slice the bitmap into page-sized strips without cutting through blocks.

    From y, the candidate cut is one page height further down. Among blocks
    that start at least MIN_ADVANCE above the candidate, end at least
    MIN_ADVANCE below y, and end no lower than the candidate, the cut moves up
    to the largest such bottom edge (minus the bleed guard). If no block fits,
    the strip is cut at the candidate line. A remainder no taller than the
    bleed guard joins the last slice instead of becoming a page of its own.

    Args:
        blocks_px: Block boundaries in bitmap px, sorted by top
        bitmap_height: Height of the master bitmap
        page_height_px: Content height of one page expressed in bitmap px
        bleed_guard_px: Margin kept above a block bottom

    Returns:
        Positive slice heights that add up to bitmap_height exactly
    """
    if bitmap_height <= 0:
        return []

    if not blocks_px:
        step = max(1, math.floor(page_height_px))
        heights = [step] * (bitmap_height // step)
        if bitmap_height % step:
            heights.append(bitmap_height % step)
        return heights

    heights: list[int] = []
    y = 0
    iterations = 0

    while y < bitmap_height and iterations < MAX_LOOP_GUARD:
        iterations += 1
        target = y + page_height_px

        eligible_bottoms = [
            block.bottom
            for block in blocks_px
            if block.top <= target - MIN_ADVANCE
            and y + MIN_ADVANCE <= block.bottom <= target
        ]

        if eligible_bottoms:
            last_bottom = round(max(eligible_bottoms))
            cut = min(bitmap_height, max(y + MIN_ADVANCE, last_bottom - bleed_guard_px))
        else:
            cut = min(bitmap_height, max(y + MIN_ADVANCE, math.floor(target)))

        if bitmap_height - cut <= bleed_guard_px:
            # Fold a sliver no taller than the bleed guard into this slice
            cut = bitmap_height

        heights.append(cut - y)
        y = cut

    if y < bitmap_height:
        logger.warning(
            f"Slice limit of {MAX_LOOP_GUARD} reached; "
            f"last slice covers remaining {bitmap_height - y} px"
        )
        heights.append(bitmap_height - y)

    return heights


def plan_segmentation(
    boundaries: Sequence[BlockBoundary],
    markers: Mapping[int, BlockBoundary] | None,
    bitmap_height: int,
    page_height_px: float,
    dom_to_bitmap_scale: float,
) -> SegmentationPlan:
    """
    Choose the segmentation strategy for one export.

    Args:
        boundaries: Printable blocks in CSS px
        markers: Explicit marker blocks in CSS px, or None
        bitmap_height: Height of the master bitmap
        page_height_px: Content height of one page in bitmap px
        dom_to_bitmap_scale: Bitmap px per CSS px

    Returns:
        ExplicitPlan when the markers yield exactly three segments,
        HeuristicPlan otherwise
    """
    explicit = build_explicit_segments(markers, bitmap_height, dom_to_bitmap_scale)
    if explicit is not None and len(explicit) == EXPECTED_EXPLICIT_SEGMENTS:
        logger.info("Using explicit export markers for pagination")
        return ExplicitPlan(tuple(explicit))

    blocks_px = [boundary.scaled(dom_to_bitmap_scale) for boundary in boundaries]
    bleed_guard_px = max(0, round(BLEED_GUARD_CSS_PX * dom_to_bitmap_scale))
    heights = calculate_slice_heights(blocks_px, bitmap_height, page_height_px, bleed_guard_px)
    logger.info(f"Using heuristic slicing: {len(heights)} content pages")
    return HeuristicPlan(tuple(heights))
