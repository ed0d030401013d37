"""Tests for chart specs and the matplotlib chart renderer."""

import asyncio

import pytest

from policypulse.errors import ChartRenderingError
from policypulse.reports.charts import (
    BAND_HIGH,
    BAND_LOW,
    BAND_MEDIUM,
    ChartSeries,
    ChartSpec,
    MatplotlibChartRenderer,
    band_color,
    sort_events,
)
from policypulse.schemas.models import CategoryId, HistoryEvent

LABELS = tuple(c.label for c in CategoryId)


def _make_radar(*series: tuple[str, list[int]]) -> ChartSpec:
    return ChartSpec(
        chart_id="radar",
        kind="radar",
        title="Impact",
        labels=LABELS,
        series=tuple(ChartSeries(name, tuple(values)) for name, values in series),
    )


class TestBandColor:
    @pytest.mark.parametrize("score,expected", [
        (100, BAND_HIGH), (75, BAND_HIGH), (74, BAND_MEDIUM), (50, BAND_MEDIUM), (49, BAND_LOW), (10, BAND_LOW),
    ])
    def test_bands(self, score, expected):
        assert band_color(score) == expected


class TestSortEvents:
    def test_sorted_by_date_with_undated_last(self):
        events = [
            HistoryEvent(date="2025-03-01", action="Passed committee"),
            HistoryEvent(date=None, action="Pending"),
            HistoryEvent(date="2025-01-15", action="Introduced"),
            HistoryEvent(date="not a date", action="Garbled"),
        ]
        ordered = [e.action for e in sort_events(events)]
        assert ordered == ["Introduced", "Passed committee", "Pending", "Garbled"]


class TestMatplotlibChartRenderer:
    """Rendering produces surfaces of exactly the requested size."""

    def test_radar_size(self):
        spec = _make_radar(("HB 1", [10, 20, 30, 40, 50, 60]))
        surface = asyncio.run(MatplotlibChartRenderer(dpi=100).render(spec, 400, 300))
        assert (surface.width, surface.height) == (400, 300)
        assert surface.image.mode == "RGB"
        assert surface.label == "radar"

    def test_multi_series_radar(self):
        spec = _make_radar(("A", [10] * 6), ("B", [50] * 6), ("C", [100] * 6))
        surface = asyncio.run(MatplotlibChartRenderer().render(spec, 500, 400))
        assert surface.width == 500

    def test_bar_with_band_colors(self):
        spec = ChartSpec(
            chart_id="bar",
            kind="bar",
            title="Overall",
            labels=("A", "B"),
            series=(ChartSeries("Score", (80, 30), (band_color(80), band_color(30))),),
        )
        surface = asyncio.run(MatplotlibChartRenderer().render(spec, 400, 250))
        assert (surface.width, surface.height) == (400, 250)

    def test_timeline(self):
        spec = ChartSpec(
            chart_id="timeline",
            kind="timeline",
            title="Bill Timeline",
            events=(HistoryEvent(date="2025-01-02", action="Filed"),
                    HistoryEvent(date="2025-02-03", action="Referred to committee")),
        )
        surface = asyncio.run(MatplotlibChartRenderer().render(spec, 400, 200))
        assert surface.height == 200

    def test_unknown_kind(self):
        spec = ChartSpec(chart_id="pie", kind="pie", title="Pie")
        with pytest.raises(ChartRenderingError) as excinfo:
            asyncio.run(MatplotlibChartRenderer().render(spec, 100, 100))
        assert excinfo.value.chart_id == "pie"

    def test_empty_series_raises(self):
        spec = ChartSpec(chart_id="radar", kind="radar", title="Empty")
        with pytest.raises(ChartRenderingError):
            asyncio.run(MatplotlibChartRenderer().render(spec, 100, 100))

    def test_invalid_size(self):
        spec = _make_radar(("A", [10] * 6))
        with pytest.raises(ChartRenderingError):
            asyncio.run(MatplotlibChartRenderer().render(spec, 0, 100))
