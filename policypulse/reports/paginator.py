"""Page splitter: cuts a composed report surface into fixed-height pages.

Page boundaries are closed-form: for a surface of height H and page
height P there are ceil(H / P) pages, and page i covers rows
[i * P, (i + 1) * P). The last page is padded with white past the end of
the content. Splitting is stateless and can be restarted at any time.
"""

import logging
import math
from dataclasses import dataclass

from policypulse.reports.surface import Surface

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageRegion:
    """Rows ``[top, bottom)`` of the source surface that make up one page."""

    index: int
    top: int
    bottom: int

    @property
    def height(self) -> int:
        return self.bottom - self.top


@dataclass
class PageImage:
    """One output page: its region and the page-sized surface cropped from it."""

    region: PageRegion
    surface: Surface

    @property
    def index(self) -> int:
        return self.region.index


def page_regions(height: int, page_height: int) -> list[PageRegion]:
    """Compute page regions for a surface ``height`` pixels tall.

    Raises:
        ValueError: If ``page_height`` is not positive or ``height`` is negative.
    """
    if page_height <= 0:
        raise ValueError(f"page_height must be positive, got {page_height}")
    if height < 0:
        raise ValueError(f"height must not be negative, got {height}")
    count = math.ceil(height / page_height)
    return [PageRegion(i, i * page_height, (i + 1) * page_height) for i in range(count)]


def paginate(surface: Surface, page_height: int) -> list[PageImage]:
    """Split ``surface`` into page images ``page_height`` pixels tall.

    Every page is a fresh white surface as wide as the source; the caller
    owns (and must release) the returned page surfaces.
    """
    regions = page_regions(surface.height, page_height)
    pages: list[PageImage] = []
    try:
        for region in regions:
            page = Surface.blank(surface.width, page_height, label=f"page-{region.index + 1}")
            pages.append(PageImage(region, page))
            bottom = min(region.bottom, surface.height)
            crop = surface.image.crop((0, region.top, surface.width, bottom))
            try:
                page.image.paste(crop, (0, 0))
            finally:
                crop.close()
    except Exception:
        for page in pages:
            page.surface.release()
        raise
    logger.debug("Split %dpx surface into %d pages of %dpx", surface.height, len(pages), page_height)
    return pages
