"""PDF output: one full-page raster image per page, written with reportlab."""

import logging
import os
from pathlib import Path

from reportlab.lib.pagesizes import A4, landscape, letter, portrait
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from policypulse.reports.paginator import PageImage
from policypulse.schemas.models import Orientation, PageFormat

logger = logging.getLogger(__name__)

PAGE_SIZES = {
    PageFormat.LETTER: letter,
    PageFormat.A4: A4,
}


def page_size(page_format: PageFormat, orientation: Orientation) -> tuple[float, float]:
    """Page size in points, oriented as requested."""
    size = PAGE_SIZES[PageFormat(page_format)]
    if Orientation(orientation) is Orientation.LANDSCAPE:
        return landscape(size)
    return portrait(size)


def write_pdf(
    pages: list[PageImage],
    output_path: Path,
    size: tuple[float, float],
    title: str = "",
    author: str = "",
) -> Path:
    """Write ``pages`` to ``output_path``, one image stretched over each page.

    The file is written to a temporary sibling first and moved into place
    with ``os.replace``, so a failed write never leaves a partial PDF.

    Args:
        pages: Page images in order.
        output_path: Destination file.
        size: Page size in points.
        title: PDF title metadata.
        author: PDF author metadata.

    Returns:
        The written path.
    """
    if not pages:
        raise ValueError("Cannot write a PDF with no pages")

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = output_path.with_suffix(output_path.suffix + ".tmp")

    width, height = size
    try:
        pdf = canvas.Canvas(str(tmp_path), pagesize=size)
        pdf.setTitle(title)
        pdf.setAuthor(author)
        for page in pages:
            pdf.drawImage(ImageReader(page.surface.image), 0, 0, width=width, height=height)
            pdf.showPage()
        pdf.save()
        os.replace(tmp_path, output_path)
    except BaseException:
        if tmp_path.exists():
            tmp_path.unlink()
        raise

    logger.info("Wrote %d-page PDF to %s", len(pages), output_path)
    return output_path
