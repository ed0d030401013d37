"""Chart specifications and the matplotlib chart renderer.

Report builders describe charts as ``ChartSpec`` values; a
``ChartSurfaceRenderer`` turns a spec into a raster ``Surface`` of the
requested pixel size. The composer only ever sees the finished surface.

Three chart kinds are supported:
  radar    -- category scores, one polygon per series (single bill or comparison)
  bar      -- one bar per label, optional per-bar colours
  timeline -- dated legislative actions along a horizontal axis
"""

import asyncio
import io
import logging
import math
from dataclasses import dataclass, field
from typing import Protocol

import matplotlib

matplotlib.use("Agg")

from dateutil import parser as dateparser  # noqa: E402
from matplotlib.figure import Figure  # noqa: E402

from policypulse.errors import ChartRenderingError  # noqa: E402
from policypulse.reports.surface import Surface  # noqa: E402
from policypulse.schemas.models import HistoryEvent  # noqa: E402
from policypulse.utils import truncate  # noqa: E402

logger = logging.getLogger(__name__)

CHART_KINDS = ("radar", "bar", "timeline")

# Series colours, cycled for multi-bill radar charts
SERIES_COLORS = ["#3b82f6", "#ef4444", "#10b981", "#f59e0b", "#8b5cf6", "#ec4899", "#14b8a6"]

# Score bands for the overall impact bar chart
BAND_HIGH = "#ef4444"
BAND_MEDIUM = "#f59e0b"
BAND_LOW = "#10b981"


def band_color(score: float) -> str:
    """Colour for an overall score: >=75 red, >=50 orange, else green."""
    if score >= 75:
        return BAND_HIGH
    if score >= 50:
        return BAND_MEDIUM
    return BAND_LOW


@dataclass(frozen=True)
class ChartSeries:
    name: str
    values: tuple[float, ...]
    colors: tuple[str, ...] = ()


@dataclass(frozen=True)
class ChartSpec:
    """Renderer-independent description of one chart.

    Attributes:
        chart_id: Stable identifier, used in logs and error messages.
        kind: One of ``CHART_KINDS``.
        title: Heading drawn above the plot.
        labels: Axis or bar labels, aligned with each series' values.
        series: Data series (radar and bar).
        events: Dated actions (timeline).
        y_max: Upper bound of the value axis.
    """

    chart_id: str
    kind: str
    title: str
    labels: tuple[str, ...] = ()
    series: tuple[ChartSeries, ...] = ()
    events: tuple[HistoryEvent, ...] = ()
    y_max: float = 100.0


class ChartSurfaceRenderer(Protocol):
    """Renders a chart spec to a raster surface of exactly ``width`` x ``height``."""

    async def render(self, chart: ChartSpec, width: int, height: int) -> Surface:
        ...


class MatplotlibChartRenderer:
    """Chart renderer backed by matplotlib's Agg canvas.

    Figures are built with the object-oriented ``Figure`` API (no pyplot
    global state) and drawn in a worker thread so the event loop stays
    responsive.

    Args:
        dpi: Dots per inch used to convert the pixel size to figure inches.
    """

    def __init__(self, dpi: int = 100):
        self.dpi = dpi

    async def render(self, chart: ChartSpec, width: int, height: int) -> Surface:
        if chart.kind not in CHART_KINDS:
            raise ChartRenderingError(chart.chart_id, f"unknown chart kind '{chart.kind}'")
        if width <= 0 or height <= 0:
            raise ChartRenderingError(chart.chart_id, f"invalid size {width}x{height}")
        try:
            png = await asyncio.to_thread(self._render_png, chart, width, height)
        except ChartRenderingError:
            raise
        except Exception as e:
            raise ChartRenderingError(chart.chart_id, str(e) or type(e).__name__) from e
        surface = Surface.from_png(png, label=chart.chart_id)
        logger.debug("Rendered chart %s (%dx%d)", chart.chart_id, surface.width, surface.height)
        return surface

    def _render_png(self, chart: ChartSpec, width: int, height: int) -> bytes:
        fig = Figure(figsize=(width / self.dpi, height / self.dpi), dpi=self.dpi, facecolor="white")
        if chart.kind == "radar":
            self._draw_radar(fig, chart)
        elif chart.kind == "bar":
            self._draw_bar(fig, chart)
        else:
            self._draw_timeline(fig, chart)
        fig.suptitle(chart.title, fontsize=13, fontweight="bold")
        fig.tight_layout()

        buf = io.BytesIO()
        fig.savefig(buf, format="png", dpi=self.dpi, facecolor="white")
        return buf.getvalue()

    @staticmethod
    def _draw_radar(fig: Figure, chart: ChartSpec) -> None:
        if not chart.labels or not chart.series:
            raise ChartRenderingError(chart.chart_id, "radar chart needs labels and series")
        n = len(chart.labels)
        angles = [2 * math.pi * i / n for i in range(n)]
        closed_angles = angles + angles[:1]

        ax = fig.add_subplot(projection="polar")
        ax.set_theta_offset(math.pi / 2)
        ax.set_theta_direction(-1)
        ax.set_xticks(angles)
        ax.set_xticklabels(chart.labels, fontsize=9)
        ax.set_ylim(0, chart.y_max)
        ax.set_yticks([25, 50, 75, 100])
        ax.tick_params(axis="y", labelsize=7)

        for i, series in enumerate(chart.series):
            color = series.colors[0] if series.colors else SERIES_COLORS[i % len(SERIES_COLORS)]
            values = list(series.values) + list(series.values[:1])
            ax.plot(closed_angles, values, color=color, linewidth=2, label=series.name)
            ax.fill(closed_angles, values, color=color, alpha=0.15)

        if len(chart.series) > 1:
            ax.legend(loc="upper right", bbox_to_anchor=(1.3, 1.1), fontsize=8)

    @staticmethod
    def _draw_bar(fig: Figure, chart: ChartSpec) -> None:
        if not chart.labels or not chart.series:
            raise ChartRenderingError(chart.chart_id, "bar chart needs labels and series")
        series = chart.series[0]
        ax = fig.add_subplot()
        positions = list(range(len(chart.labels)))
        colors = list(series.colors) if series.colors else SERIES_COLORS[0]
        bars = ax.bar(positions, series.values, color=colors)
        ax.set_xticks(positions)
        ax.set_xticklabels([truncate(label, 28) for label in chart.labels],
                           rotation=20, ha="right", fontsize=9)
        ax.set_ylim(0, chart.y_max)
        ax.set_ylabel(series.name)
        ax.spines["top"].set_visible(False)
        ax.spines["right"].set_visible(False)
        for bar, value in zip(bars, series.values):
            ax.text(bar.get_x() + bar.get_width() / 2, value + 1, f"{value:.0f}",
                    ha="center", va="bottom", fontsize=8)

    @staticmethod
    def _draw_timeline(fig: Figure, chart: ChartSpec) -> None:
        if not chart.events:
            raise ChartRenderingError(chart.chart_id, "timeline chart needs events")
        events = sort_events(chart.events)
        ax = fig.add_subplot()
        positions = list(range(len(events)))
        ax.plot(positions, [0] * len(events), color="#94a3b8", linewidth=2, zorder=1)
        ax.scatter(positions, [0] * len(events), color=SERIES_COLORS[0], s=60, zorder=2)
        for i, event in enumerate(events):
            offset = 0.4 if i % 2 == 0 else -0.4
            ax.annotate(
                truncate(event.action, 40),
                xy=(i, 0), xytext=(i, offset),
                ha="center", va="bottom" if offset > 0 else "top", fontsize=8,
                arrowprops={"arrowstyle": "-", "color": "#cbd5e1"},
            )
        ax.set_xticks(positions)
        ax.set_xticklabels([event.date or "" for event in events], rotation=20, ha="right", fontsize=8)
        ax.set_ylim(-1, 1)
        ax.set_yticks([])
        for side in ("top", "right", "left"):
            ax.spines[side].set_visible(False)


def sort_events(events) -> list[HistoryEvent]:
    """Order events by parsed date; undated or unparseable events keep their place at the end."""
    dated = []
    undated = []
    for event in events:
        if not event.date:
            undated.append(event)
            continue
        try:
            dated.append((dateparser.parse(event.date), event))
        except (ValueError, OverflowError):
            undated.append(event)
    dated.sort(key=lambda pair: pair[0].replace(tzinfo=None))
    return [event for _, event in dated] + undated
