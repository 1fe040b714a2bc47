"""
PageBinder — Page geometry.

Pure functions for page dimensions and image placement. All lengths
are millimetres unless a name says otherwise; the PDF backend works
in points, see mm_to_pt().

Sizing rule (placement_for): fill the printable width first, clamp to
the printable height if the width-driven height overflows, then
recompute the width from the clamped height. Never height-first.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from pagebinder.utils.logging import logger

PRINT_MARGIN_MM = 5.0
MM_PER_INCH = 25.4
POINTS_PER_INCH = 72.0


class PageSize(str, enum.Enum):
    A4 = "A4"
    LETTER = "Letter"
    A3 = "A3"


class Orientation(str, enum.Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


@dataclass(frozen=True)
class PageDimensions:
    width: float
    height: float

    @property
    def aspect(self) -> float:
        return self.width / self.height


@dataclass(frozen=True)
class Placement:
    x: float
    y: float
    width: float
    height: float


# Canonical portrait sizes only. Landscape is always derived by swapping.
_PORTRAIT_SIZES_MM: dict[PageSize, PageDimensions] = {
    PageSize.A4: PageDimensions(210.0, 297.0),
    PageSize.LETTER: PageDimensions(216.0, 279.0),
    PageSize.A3: PageDimensions(297.0, 420.0),
}


def mm_to_pt(value: float) -> float:
    return value * POINTS_PER_INCH / MM_PER_INCH


def resolve_page_size(page_size: PageSize | str) -> PageSize:
    """Map a page size name to PageSize. Unknown names fall back to A4."""
    if isinstance(page_size, PageSize):
        return page_size
    try:
        return PageSize(page_size)
    except ValueError:
        logger.debug("  Unknown page size %r, falling back to A4", page_size)
        return PageSize.A4


def dimensions_for(page_size: PageSize | str, orientation: Orientation | str) -> PageDimensions:
    """
    Page dimensions in mm for a page size and orientation.

    Total function: unknown page sizes resolve to A4, anything other
    than landscape is portrait.
    """
    portrait = _PORTRAIT_SIZES_MM[resolve_page_size(page_size)]
    if orientation == Orientation.LANDSCAPE:
        return PageDimensions(width=portrait.height, height=portrait.width)
    return portrait


def printable_area(page: PageDimensions, margin: float = PRINT_MARGIN_MM) -> PageDimensions:
    return PageDimensions(width=page.width - 2 * margin, height=page.height - 2 * margin)


def placement_for(
    page: PageDimensions,
    margin: float = PRINT_MARGIN_MM,
    image_aspect: float | None = None,
) -> Placement:
    """
    Place an image of the given aspect ratio (width / height) inside the
    printable area, anchored at the top-left margin.

    With no aspect the page's own aspect is used, which stretches
    non-matching images.
    """
    if image_aspect is None or image_aspect <= 0:
        image_aspect = page.aspect

    area = printable_area(page, margin)

    width = area.width
    height = width / image_aspect
    if height > area.height:
        height = area.height
        width = height * image_aspect

    return Placement(x=margin, y=margin, width=width, height=height)
