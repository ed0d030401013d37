"""Report composer: lays sections out onto one tall raster surface.

Composition is two-pass. The layout pass measures every section against
the content width and records positioned draw operations; the paint pass
allocates a white canvas exactly as tall as the laid-out content (plus top
and bottom margins) and replays the operations. Because both passes share
the same operations, measured and painted heights always agree.

The composer never renders charts: chart sections arrive with their
Surface already attached, and sections without one are skipped.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache

from matplotlib import font_manager
from PIL import Image, ImageDraw, ImageFont

from policypulse.errors import CompositionError
from policypulse.reports.sections import (
    ChartSection,
    Section,
    TableSection,
    TextBlock,
    TextSection,
)
from policypulse.reports.surface import Surface

logger = logging.getLogger(__name__)

PLACEHOLDER = "Not specified"

# style -> (point size, bold, colour, space before, space after, indent)
STYLE_TABLE = {
    "title": (22, True, "#1e3a8a", 0, 6, 0),
    "heading": (16, True, "#1e40af", 10, 6, 0),
    "subheading": (13, True, "#334155", 8, 4, 0),
    "body": (11, False, "#1f2937", 0, 4, 0),
    "bullet": (11, False, "#1f2937", 0, 3, 16),
    "caption": (9, True, "#64748b", 4, 2, 0),
    "muted": (10, False, "#64748b", 0, 4, 0),
}

BULLET = "•"
SECTION_GAP = 14
LINE_SPACING = 1.3
CELL_PADDING = 6
GRID_COLOR = "#cbd5e1"
HEADER_FILL = "#f1f5f9"
TEXT_COLOR = "#1f2937"
PLACEHOLDER_COLOR = "#94a3b8"
TABLE_FONT_SIZE = 10


@dataclass(frozen=True)
class PageGeometry:
    """Pixel geometry of the report canvas.

    Attributes:
        width: Canvas width in pixels.
        page_height: Height of one output page in pixels.
        margin: Margin on every edge of the content, in pixels.
        scale: Pixels per point; font sizes and spacing are multiplied by it.
    """

    width: int
    page_height: int
    margin: int
    scale: float = 1.0

    @property
    def content_width(self) -> int:
        return self.width - 2 * self.margin

    @classmethod
    def from_points(cls, page_size: tuple[float, float], scale: float, margin_pt: float = 36.0) -> "PageGeometry":
        """Geometry for a page given in points (1/72 in), rendered at ``scale`` px/pt."""
        width_pt, height_pt = page_size
        return cls(
            width=round(width_pt * scale),
            page_height=round(height_pt * scale),
            margin=round(margin_pt * scale),
            scale=scale,
        )


@lru_cache(maxsize=32)
def load_font(size: int, bold: bool = False) -> ImageFont.FreeTypeFont:
    """TrueType font at ``size`` pixels, resolved through matplotlib's font manager."""
    props = font_manager.FontProperties(family="DejaVu Sans", weight="bold" if bold else "normal")
    return ImageFont.truetype(font_manager.findfont(props), size)


def wrap_text(text: str, font: ImageFont.FreeTypeFont, max_width: int) -> list[str]:
    """Greedy word wrap; explicit newlines are kept and overlong words are split."""
    lines = []
    for paragraph in text.split("\n"):
        words = paragraph.split()
        if not words:
            lines.append("")
            continue
        current = ""
        for word in words:
            candidate = f"{current} {word}" if current else word
            if font.getlength(candidate) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            while font.getlength(word) > max_width and len(word) > 1:
                cut = len(word) - 1
                while cut > 1 and font.getlength(word[:cut]) > max_width:
                    cut -= 1
                lines.append(word[:cut])
                word = word[cut:]
            current = word
        lines.append(current)
    return lines


class _Layout:
    """Positioned draw operations accumulated by the layout pass."""

    def __init__(self, top: int):
        self.y = top
        self.ops: list[tuple] = []

    def text(self, x: int, line: str, font, color: str) -> None:
        self.ops.append(("text", x, self.y, line, font, color))

    def add(self, *op) -> None:
        self.ops.append(op)


class ReportComposer:
    """Composes report sections into a single tall surface."""

    def compose(self, sections: list[Section], geometry: PageGeometry) -> Surface:
        """Lay out and paint ``sections`` top to bottom.

        Args:
            sections: Ordered report sections. Chart sections must carry a
                rendered surface to be drawn.
            geometry: Canvas width, margins and scale.

        Returns:
            White RGB surface ``geometry.width`` wide, as tall as the content.

        Raises:
            CompositionError: Invalid geometry or a released chart surface.
        """
        if geometry.content_width <= 0 or geometry.page_height <= 0:
            raise CompositionError(
                f"Invalid page geometry: width={geometry.width} margin={geometry.margin} "
                f"page_height={geometry.page_height}"
            )

        layout = _Layout(top=geometry.margin)
        for index, section in enumerate(sections):
            if index:
                layout.y += self._px(SECTION_GAP, geometry)
            if isinstance(section, TextSection):
                self._layout_text(section, geometry, layout)
            elif isinstance(section, ChartSection):
                self._layout_chart(section, geometry, layout)
            elif isinstance(section, TableSection):
                self._layout_table(section, geometry, layout)
            else:
                raise CompositionError(f"Unsupported section type: {type(section).__name__}")

        height = max(layout.y + geometry.margin, 1)
        surface = Surface.blank(geometry.width, height, label="report")
        try:
            self._paint(surface.image, layout.ops)
        except Exception:
            surface.release()
            raise
        logger.debug("Composed %d sections into %dx%d surface", len(sections), geometry.width, height)
        return surface

    # -- layout --

    @staticmethod
    def _px(points: float, geometry: PageGeometry) -> int:
        return round(points * geometry.scale)

    def _layout_text(self, section: TextSection, geometry: PageGeometry, layout: _Layout) -> None:
        for block in section.blocks:
            size, bold, color, before, after, indent = STYLE_TABLE.get(block.style, STYLE_TABLE["body"])
            font = load_font(self._px(size, geometry), bold)
            line_height = round(font.size * LINE_SPACING)
            x = geometry.margin + self._px(indent, geometry)
            width = geometry.content_width - self._px(indent, geometry)

            layout.y += self._px(before, geometry)
            if block.style == "bullet":
                layout.text(x - self._px(12, geometry), BULLET, font, block.color or color)
            for line in wrap_text(block.text, font, width):
                layout.text(x, line, font, block.color or color)
                layout.y += line_height
            layout.y += self._px(after, geometry)
            if block.style == "heading":
                layout.add("rule", geometry.margin, layout.y - self._px(3, geometry),
                           geometry.width - geometry.margin, GRID_COLOR)

    def _layout_chart(self, section: ChartSection, geometry: PageGeometry, layout: _Layout) -> None:
        surface = section.surface
        if surface is None:
            logger.debug("Chart %s has no surface; skipped", section.chart.chart_id)
            return
        if surface.released:
            raise CompositionError(f"Chart surface for '{section.chart.chart_id}' was already released")
        width, height = surface.width, surface.height
        if width > geometry.content_width:
            height = max(1, round(height * geometry.content_width / width))
            width = geometry.content_width
        x = geometry.margin + (geometry.content_width - width) // 2
        layout.add("image", x, layout.y, surface, (width, height))
        layout.y += height

    def _layout_table(self, section: TableSection, geometry: PageGeometry, layout: _Layout) -> None:
        self._layout_text(TextSection([TextBlock(section.title, "subheading")]), geometry, layout)

        ncols = max([len(section.header)] + [len(row) for row in section.rows])
        widths = self._column_widths(ncols, section.first_column_share, geometry.content_width)
        padding = self._px(CELL_PADDING, geometry)
        regular = load_font(self._px(TABLE_FONT_SIZE, geometry))
        bold = load_font(self._px(TABLE_FONT_SIZE, geometry), bold=True)
        line_height = round(regular.size * LINE_SPACING)

        all_rows = [(section.header, True)] + [(row, False) for row in section.rows]
        for cells, is_header in all_rows:
            cells = list(cells) + [None] * (ncols - len(cells))
            wrapped = []
            for col, cell in enumerate(cells):
                font = bold if is_header or col == 0 else regular
                text = cell if cell not in (None, "") else PLACEHOLDER
                wrapped.append((wrap_text(str(text), font, max(widths[col] - 2 * padding, 1)), font,
                                cell in (None, "")))
            row_height = max(len(lines) for lines, _, _ in wrapped) * line_height + 2 * padding

            x = geometry.margin
            for col, (lines, font, placeholder) in enumerate(wrapped):
                fill = HEADER_FILL if is_header else None
                layout.add("cell", x, layout.y, widths[col], row_height, fill)
                color = PLACEHOLDER_COLOR if placeholder and not is_header else TEXT_COLOR
                for i, line in enumerate(lines):
                    layout.add("text", x + padding, layout.y + padding + i * line_height, line, font, color)
                x += widths[col]
            layout.y += row_height

    @staticmethod
    def _column_widths(ncols: int, first_share: float, content_width: int) -> list[int]:
        if ncols <= 1:
            return [content_width]
        first = round(content_width * first_share)
        rest = (content_width - first) // (ncols - 1)
        widths = [first] + [rest] * (ncols - 1)
        widths[-1] += content_width - sum(widths)
        return widths

    # -- paint --

    @staticmethod
    def _paint(image: Image.Image, ops: list[tuple]) -> None:
        draw = ImageDraw.Draw(image)
        for op in ops:
            kind = op[0]
            if kind == "text":
                _, x, y, line, font, color = op
                draw.text((x, y), line, font=font, fill=color)
            elif kind == "rule":
                _, x0, y, x1, color = op
                draw.line([(x0, y), (x1, y)], fill=color, width=1)
            elif kind == "cell":
                _, x, y, w, h, fill = op
                draw.rectangle([x, y, x + w, y + h], fill=fill, outline=GRID_COLOR)
            elif kind == "image":
                _, x, y, surface, size = op
                if size == (surface.width, surface.height):
                    image.paste(surface.image, (x, y))
                else:
                    resized = surface.image.resize(size, Image.Resampling.LANCZOS)
                    try:
                        image.paste(resized, (x, y))
                    finally:
                        resized.close()
