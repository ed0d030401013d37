"""Export controller: drives one report export from fetch to PDF.

State machine::

    IDLE -> FETCHING -> NORMALIZING -> RENDERING -> COMPOSING
         -> PAGINATING -> WRITING -> COMPLETE

Any non-terminal state can move to FAILED. Each transition is logged at
INFO and reported through ``ExportCallbacks.on_progress``.

Every surface acquired while rendering, composing and paginating is owned
by a ``SurfaceScope`` and released when the export ends, whether it
completed, failed, or was cancelled.

A controller runs one export at a time. It does not queue or lock: starting
a second export while one is running raises ``ExportInProgressError``.
"""

import asyncio
import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from policypulse.analysis.comparison import ComparativeAggregator
from policypulse.analysis.normalizer import SchemaNormalizer
from policypulse.analysis.scorer import ImpactScorer
from policypulse.errors import (
    ChartRenderingError,
    CompositionError,
    ExportInProgressError,
    InputUnavailableError,
    SourceUnavailableError,
)
from policypulse.export.naming import comparison_filename, single_bill_filename
from policypulse.paths import EXPORTS_DIR, PROJECT_ROOT
from policypulse.reports.charts import ChartSurfaceRenderer, MatplotlibChartRenderer
from policypulse.reports.composer import PageGeometry, ReportComposer
from policypulse.reports.paginator import paginate
from policypulse.reports.pdf_writer import page_size, write_pdf
from policypulse.reports.sections import (
    ChartSection,
    Section,
    build_comparison_sections,
    build_single_bill_sections,
)
from policypulse.reports.surface import SurfaceScope
from policypulse.schemas.models import BillRef, ExportOptions, ImpactProfile, NormalizedAnalysis
from policypulse.sources.base import AnalysisSource

logger = logging.getLogger(__name__)


class ExportState(str, enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    NORMALIZING = "normalizing"
    RENDERING = "rendering"
    COMPOSING = "composing"
    PAGINATING = "paginating"
    WRITING = "writing"
    COMPLETE = "complete"
    FAILED = "failed"


TERMINAL_STATES = frozenset({ExportState.IDLE, ExportState.COMPLETE, ExportState.FAILED})

PROGRESS_MESSAGES = {
    ExportState.FETCHING: "Fetching bill data...",
    ExportState.NORMALIZING: "Analyzing impact data...",
    ExportState.RENDERING: "Rendering charts...",
    ExportState.COMPOSING: "Composing report...",
    ExportState.PAGINATING: "Splitting pages...",
    ExportState.WRITING: "Writing PDF...",
    ExportState.COMPLETE: "Export complete",
    ExportState.FAILED: "Export failed",
}


@dataclass
class ExportCallbacks:
    """Caller notification hooks. All are optional.

    Attributes:
        on_start: Called once when an export begins.
        on_complete: Called with the written file name on success.
        on_error: Called with a human-readable reason on failure.
        on_progress: Called with a status message at every state change.
    """

    on_start: Callable[[], None] | None = None
    on_complete: Callable[[str], None] | None = None
    on_error: Callable[[str], None] | None = None
    on_progress: Callable[[str], None] | None = None


BillInput = BillRef | str


class ExportController:
    """Runs single-bill and comparison exports against an analysis source.

    Args:
        source: Supplies raw bill and analysis records.
        renderer: Chart renderer; defaults to matplotlib.
        config: Configuration dict (``export`` and ``scoring`` sections).
        output_dir: Directory for written PDFs; overrides the config.
        clock: Returns the timestamp printed in reports and file names.
    """

    def __init__(
        self,
        source: AnalysisSource,
        renderer: ChartSurfaceRenderer | None = None,
        config: dict | None = None,
        output_dir: Path | str | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        config = config or {}
        export = config.get("export", {})

        self.source = source
        self.render_scale = float(export.get("render_scale", 2.0))
        self.chart_timeout = float(export.get("chart_timeout_seconds", 30))
        self.chart_width = int(export.get("chart_width", 800))
        self.chart_height = int(export.get("chart_height", 500))
        self.app_name = export.get("app_name", "PolicyPulse")
        self.renderer = renderer or MatplotlibChartRenderer(dpi=round(100 * self.render_scale))
        self.output_dir = self._resolve_output_dir(output_dir or export.get("output_dir"))
        self._clock = clock or (lambda: datetime.now().astimezone())

        self.normalizer = SchemaNormalizer()
        self.scorer = ImpactScorer(config)
        self.aggregator = ComparativeAggregator()
        self.composer = ReportComposer()

        self.state = ExportState.IDLE
        self.transitions: list[ExportState] = []
        self._callbacks = ExportCallbacks()

    @staticmethod
    def _resolve_output_dir(value: Path | str | None) -> Path:
        if not value:
            return EXPORTS_DIR
        path = Path(value)
        return path if path.is_absolute() else PROJECT_ROOT / path

    @property
    def is_busy(self) -> bool:
        return self.state not in TERMINAL_STATES

    # ── Public operations ──

    async def export_bill(
        self,
        bill: BillInput,
        options: ExportOptions | None = None,
        callbacks: ExportCallbacks | None = None,
    ) -> Path | None:
        """Export the impact report for one bill.

        Returns:
            Path of the written PDF, or None if the export failed (the
            reason is passed to ``callbacks.on_error``).

        Raises:
            ExportInProgressError: This controller is already exporting.
        """
        return await self._run(self._export_bill, bill, options or ExportOptions(), callbacks)

    async def export_comparison(
        self,
        bills: list[BillInput],
        options: ExportOptions | None = None,
        callbacks: ExportCallbacks | None = None,
    ) -> Path | None:
        """Export a comparative report for several bills.

        Bills without an analysis are kept with an empty analysis (floor
        scores) and a warning; the export fails only when no bill has one.

        Returns:
            Path of the written PDF, or None if the export failed.

        Raises:
            ExportInProgressError: This controller is already exporting.
        """
        return await self._run(self._export_comparison, list(bills or []), options or ExportOptions(), callbacks)

    # ── Lifecycle ──

    async def _run(self, pipeline, target, options: ExportOptions, callbacks: ExportCallbacks | None):
        if self.is_busy:
            raise ExportInProgressError(f"An export is already running (state: {self.state.value})")

        self._callbacks = callbacks or ExportCallbacks()
        self.transitions = []
        self._notify(self._callbacks.on_start)

        try:
            with SurfaceScope() as scope:
                path = await pipeline(target, options, scope)
        except (InputUnavailableError, CompositionError) as e:
            self._fail(str(e))
            return None
        except asyncio.CancelledError:
            self._set_state(ExportState.FAILED)
            logger.warning("Export cancelled; surfaces released")
            raise
        except Exception as e:
            logger.exception("Unexpected export failure")
            self._fail(str(e) or type(e).__name__)
            return None

        self._set_state(ExportState.COMPLETE)
        self._notify(self._callbacks.on_complete, path.name)
        return path

    def _set_state(self, state: ExportState) -> None:
        self.state = state
        self.transitions.append(state)
        message = PROGRESS_MESSAGES.get(state, state.value)
        logger.info("Export %s: %s", state.value, message)
        self._notify(self._callbacks.on_progress, message)

    def _fail(self, reason: str) -> None:
        self._set_state(ExportState.FAILED)
        logger.error("Export failed: %s", reason)
        self._notify(self._callbacks.on_error, reason)

    @staticmethod
    def _notify(callback, *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Export callback %r raised", callback)

    # ── Pipelines ──

    async def _export_bill(self, bill: BillInput, options: ExportOptions, scope: SurfaceScope) -> Path:
        self._set_state(ExportState.FETCHING)
        if bill is None or (isinstance(bill, str) and not bill.strip()):
            raise InputUnavailableError("No bill selected for export")
        bill_ref, raw_analysis = await self._fetch(bill)
        if raw_analysis is None:
            raise InputUnavailableError(f"No analysis data available for bill {bill_ref.id}")

        self._set_state(ExportState.NORMALIZING)
        analysis = self.normalizer.normalize(raw_analysis)
        profile = self.scorer.score(analysis)
        generated_at = self._clock()
        sections = build_single_bill_sections(
            bill_ref, analysis, profile, options, generated_at, self.app_name,
        )

        filename = single_bill_filename(bill_ref.title, generated_at.date())
        return await self._produce(sections, options, scope, filename, bill_ref.display_title)

    async def _export_comparison(self, bills: list[BillInput], options: ExportOptions,
                                 scope: SurfaceScope) -> Path:
        self._set_state(ExportState.FETCHING)
        if not bills:
            raise InputUnavailableError("No bills selected for comparison")

        fetched: list[tuple[BillRef, dict | None]] = []
        for bill in bills:
            fetched.append(await self._fetch(bill))
        if all(raw is None for _, raw in fetched):
            raise InputUnavailableError("No analysis data available for any selected bill")

        self._set_state(ExportState.NORMALIZING)
        comparison: list[tuple[BillRef, NormalizedAnalysis, ImpactProfile]] = []
        for bill_ref, raw in fetched:
            if raw is None:
                logger.warning("Bill %s has no analysis; comparing with floor scores", bill_ref.id)
            analysis = self.normalizer.normalize(raw if raw is not None else {})
            comparison.append((bill_ref, analysis, self.scorer.score(analysis)))
        result = self.aggregator.aggregate([(b, p) for b, _, p in comparison])
        generated_at = self._clock()
        sections = build_comparison_sections(comparison, result, options, generated_at, self.app_name)

        filename = comparison_filename(generated_at.date())
        return await self._produce(sections, options, scope, filename, "Comparative Bill Analysis")

    async def _fetch(self, bill: BillInput) -> tuple[BillRef, dict | None]:
        """Fetch bill metadata and the raw analysis for one bill.

        Source failures degrade: missing metadata falls back to the id, a
        missing analysis is returned as None.
        """
        bill_id = bill.id if isinstance(bill, BillRef) else str(bill).strip()
        bill_ref = bill if isinstance(bill, BillRef) else None

        if bill_ref is None:
            try:
                raw_bill = await self.source.fetch_bill(bill_id)
            except SourceUnavailableError as e:
                logger.warning("Bill metadata unavailable for %s: %s", bill_id, e)
                raw_bill = None
            bill_ref = BillRef.from_raw(raw_bill or {}, bill_id=bill_id)

        try:
            raw_analysis = await self.source.fetch_analysis(bill_id)
        except SourceUnavailableError as e:
            logger.warning("Analysis unavailable for %s: %s", bill_id, e)
            raw_analysis = None
        return bill_ref, raw_analysis

    async def _produce(self, sections: list[Section], options: ExportOptions, scope: SurfaceScope,
                       filename: str, title: str) -> Path:
        size = page_size(options.page_format, options.orientation)
        geometry = PageGeometry.from_points(size, self.render_scale)

        self._set_state(ExportState.RENDERING)
        sections = await self._render_charts(sections, geometry, scope)

        self._set_state(ExportState.COMPOSING)
        try:
            report = scope.acquire(self.composer.compose(sections, geometry))
        except CompositionError:
            raise
        except Exception as e:
            raise CompositionError(f"Report composition failed: {e}") from e

        self._set_state(ExportState.PAGINATING)
        try:
            pages = paginate(report, geometry.page_height)
        except Exception as e:
            raise CompositionError(f"Page splitting failed: {e}") from e
        for page in pages:
            scope.acquire(page.surface)

        self._set_state(ExportState.WRITING)
        try:
            return write_pdf(pages, self.output_dir / filename, size, title=title, author=self.app_name)
        except Exception as e:
            raise CompositionError(f"Could not write {filename}: {e}") from e

    async def _render_charts(self, sections: list[Section], geometry: PageGeometry,
                             scope: SurfaceScope) -> list[Section]:
        """Render every chart section in order; failed charts are dropped."""
        width = min(round(self.chart_width * self.render_scale), geometry.content_width)
        height = round(self.chart_height * width / self.chart_width)

        rendered: list[Section] = []
        for section in sections:
            if not isinstance(section, ChartSection):
                rendered.append(section)
                continue
            chart_id = section.chart.chart_id
            try:
                surface = await asyncio.wait_for(
                    self.renderer.render(section.chart, width, height), timeout=self.chart_timeout,
                )
            except asyncio.TimeoutError:
                logger.warning("Chart %s timed out after %.0fs; omitted", chart_id, self.chart_timeout)
                continue
            except ChartRenderingError as e:
                logger.warning("%s; omitted", e)
                continue
            except Exception as e:
                logger.warning("Chart %s failed to render (%s); omitted", chart_id, e)
                continue
            scope.acquire(surface)
            rendered.append(ChartSection(section.chart, surface))
        return rendered
