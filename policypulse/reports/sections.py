"""Report section types and the single-bill / comparison templates.

A report is an ordered list of sections handed to the composer:
  TextSection  -- styled text blocks (headings, paragraphs, bullets)
  ChartSection -- a ChartSpec plus, once rendered, its Surface
  TableSection -- a titled grid of string cells

The builders here are pure: the same bill, analysis, options and
timestamp always produce equal section lists.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union

from policypulse.analysis.comparison import ComparisonResult
from policypulse.analysis.normalizer import CATEGORY_FACETS, DETAIL_ONLY_FACETS
from policypulse.reports.charts import (
    ChartSeries,
    ChartSpec,
    band_color,
)
from policypulse.reports.surface import Surface
from policypulse.schemas.models import (
    BillRef,
    CategoryId,
    ExportOptions,
    ImpactLevel,
    ImpactProfile,
    NormalizedAnalysis,
)
from policypulse.utils import format_date, truncate

logger = logging.getLogger(__name__)

TEXT_STYLES = ("title", "heading", "subheading", "body", "bullet", "caption", "muted")

POLARITY_COLORS = {
    "positive": "#059669",
    "negative": "#dc2626",
    "neutral": "#475569",
}

KEY_POINTS_IN_TABLE = 3
CONCLUSION_SUMMARY_CHARS = 100


# ---------------------------------------------------------------------------
# Section types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TextBlock:
    text: str
    style: str = "body"
    color: Optional[str] = None


@dataclass
class TextSection:
    blocks: list[TextBlock] = field(default_factory=list)


@dataclass
class ChartSection:
    """A chart placeholder; ``surface`` is attached after rendering."""

    chart: ChartSpec
    surface: Optional[Surface] = None


@dataclass
class TableSection:
    """A grid whose first row is the header.

    ``None`` or empty cells are drawn as a "Not specified" placeholder.
    """

    title: str
    header: list[str]
    rows: list[list[Optional[str]]]
    first_column_share: float = 0.28


Section = Union[TextSection, ChartSection, TableSection]


# ---------------------------------------------------------------------------
# Shared pieces
# ---------------------------------------------------------------------------


def _heading(text: str) -> TextBlock:
    return TextBlock(text, "heading")


def _bullets(items: list[str], color: str | None = None) -> list[TextBlock]:
    return [TextBlock(item, "bullet", color) for item in items]


def _level_label(level: ImpactLevel) -> str:
    return level.value.capitalize()


def _facet_label(facet: str) -> str:
    return facet.replace("_", " ").title()


def _header_section(title: str, generated_at: datetime) -> TextSection:
    return TextSection([
        TextBlock(title, "title"),
        TextBlock(f"Generated on {format_date(generated_at)}", "muted"),
    ])


def _footer_section(app_name: str, generated_at: datetime) -> TextSection:
    return TextSection([
        TextBlock(f"Generated by {app_name} | {generated_at:%Y-%m-%d %H:%M}", "caption"),
    ])


def _top_category(profile: ImpactProfile) -> CategoryId:
    """Highest-scoring category; the first in canonical order wins ties."""
    return max(CategoryId, key=lambda c: profile.scores[c])


def impact_radar_chart(chart_id: str, title: str, series: list[tuple[str, list[int]]]) -> ChartSpec:
    return ChartSpec(
        chart_id=chart_id,
        kind="radar",
        title=title,
        labels=tuple(c.label for c in CategoryId),
        series=tuple(ChartSeries(name, tuple(values)) for name, values in series),
    )


# ---------------------------------------------------------------------------
# Single-bill report
# ---------------------------------------------------------------------------


def build_single_bill_sections(
    bill: BillRef,
    analysis: NormalizedAnalysis,
    profile: ImpactProfile,
    options: ExportOptions,
    generated_at: datetime,
    app_name: str = "PolicyPulse",
) -> list[Section]:
    """Assemble the sections of a single-bill impact report.

    Args:
        bill: Bill metadata for the header and timeline.
        analysis: Normalized analysis record.
        profile: Scored impact profile.
        options: Content toggles.
        generated_at: Timestamp printed in the header and footer.
        app_name: Product name for the footer.

    Returns:
        Ordered list of report sections.
    """
    sections: list[Section] = [
        _header_section(bill.display_title, generated_at),
        TextSection([
            _heading("Bill Information"),
            TextBlock(f"Bill ID: {bill.id}"),
            TextBlock(f"Status: {bill.status or 'Not specified'}"),
            TextBlock(f"Introduced: {format_date(bill.introduced_date)}"),
            TextBlock(f"Last Action: {bill.last_action or 'Not specified'}"),
        ]),
        TextSection([
            _heading("Executive Summary"),
            TextBlock(analysis.summary or "No summary available."),
        ]),
    ]

    key_points = TextSection([_heading("Key Points")])
    if analysis.key_points:
        for point in analysis.key_points:
            key_points.blocks.append(
                TextBlock(point.text, "bullet", POLARITY_COLORS.get(point.polarity))
            )
    else:
        key_points.blocks.append(TextBlock("No key points identified."))
    sections.append(key_points)

    summary = analysis.impact_summary
    primary = summary.primary_category or _top_category(profile)
    impact = TextSection([
        _heading("Impact Summary"),
        TextBlock(f"Primary Impact Category: {primary.label}"),
        TextBlock(f"Impact Level: {_level_label(profile.overall_level)}"),
    ])
    if summary.relevance_note:
        impact.blocks.append(TextBlock(f"Relevance: {summary.relevance_note}"))
    sections.append(impact)

    if options.include_charts:
        sections.append(ChartSection(impact_radar_chart(
            "impact_radar", "Impact Analysis Chart",
            [(bill.display_title, profile.ordered_scores())],
        )))

    if options.include_tables:
        sections.append(TableSection(
            title="Impact Scores",
            header=["Category", "Score", "Findings"],
            rows=[
                [c.label, str(profile.scores[c]), str(len(analysis.findings[c]))]
                for c in CategoryId
            ],
            first_column_share=0.4,
        ))

    if options.include_impact_details:
        sections.append(_impact_details_section(analysis))

    if options.include_charts and bill.history:
        sections.append(ChartSection(ChartSpec(
            chart_id="bill_timeline",
            kind="timeline",
            title="Bill Timeline",
            events=tuple(bill.history),
        )))

    if options.include_recommendations:
        action_lists = (
            ("Recommended Actions", analysis.recommended_actions),
            ("Immediate Actions", analysis.immediate_actions),
            ("Resource Needs", analysis.resource_needs),
        )
        for title, items in action_lists:
            if items:
                sections.append(TextSection([_heading(title), *_bullets(items)]))

    sections.append(_footer_section(app_name, generated_at))
    logger.debug("Built %d sections for bill %s", len(sections), bill.id)
    return sections


def _impact_details_section(analysis: NormalizedAnalysis) -> TextSection:
    section = TextSection([_heading("Detailed Impact Analysis")])
    for category in CategoryId:
        section.blocks.append(TextBlock(f"{category.label} Impacts", "subheading"))
        details = analysis.finding_details[category]
        if not details:
            section.blocks.append(TextBlock(f"No {category.label.lower()} impacts identified."))
            continue
        facet_order = CATEGORY_FACETS[category] + DETAIL_ONLY_FACETS.get(category, ())
        ordered = [f for f in facet_order if f in details]
        ordered += [f for f in details if f not in ordered]
        single_list = ordered == ["findings"]
        for facet in ordered:
            if not single_list:
                section.blocks.append(TextBlock(_facet_label(facet), "caption"))
            section.blocks.extend(_bullets(details[facet]))
    return section


# ---------------------------------------------------------------------------
# Comparison report
# ---------------------------------------------------------------------------


def build_comparison_sections(
    comparison: list[tuple[BillRef, NormalizedAnalysis, ImpactProfile]],
    result: ComparisonResult,
    options: ExportOptions,
    generated_at: datetime,
    app_name: str = "PolicyPulse",
) -> list[Section]:
    """Assemble the sections of a multi-bill comparison report.

    Args:
        comparison: ``(bill, analysis, profile)`` triples in caller order.
        result: Aggregated series and ranking for the same bills.
        options: Content toggles.
        generated_at: Timestamp printed in the header and footer.
        app_name: Product name for the footer.
    """
    sections: list[Section] = [
        _header_section("Comparative Bill Analysis", generated_at),
        TextSection([
            _heading("Bills Compared"),
            *_bullets([f"{bill.display_title} ({bill.id})" for bill, _, _ in comparison]),
        ]),
    ]

    if options.include_charts:
        sections.append(ChartSection(impact_radar_chart(
            "comparison_radar", "Impact Comparison by Category",
            [
                (truncate(bill.display_title, 30), result.scores_for(i))
                for i, (bill, _, _) in enumerate(comparison)
            ],
        )))
        overall = [profile.max_score for _, _, profile in comparison]
        sections.append(ChartSection(ChartSpec(
            chart_id="overall_impact_bar",
            kind="bar",
            title="Overall Impact Score",
            labels=tuple(bill.display_title for bill, _, _ in comparison),
            series=(ChartSeries("Impact Score", tuple(overall),
                                tuple(band_color(s) for s in overall)),),
        )))
        sections.append(TextSection([TextBlock(
            "High impact (75+) | Medium impact (50-74) | Low impact (below 50)", "caption",
        )]))

    if options.include_tables:
        sections.append(_comparison_table(comparison, result))

    conclusions = TextSection([_heading("Conclusions")])
    for bill, analysis, profile in comparison:
        level = analysis.impact_summary.level
        if level is ImpactLevel.NONE:
            level = profile.overall_level
        category = analysis.impact_summary.primary_category or _top_category(profile)
        text = f"{bill.display_title} has a {level.value} impact on {category.label.lower()}."
        if analysis.summary:
            text += " " + truncate(analysis.summary, CONCLUSION_SUMMARY_CHARS)
        conclusions.blocks.append(TextBlock(text, "bullet"))
    sections.append(conclusions)

    sections.append(_footer_section(app_name, generated_at))
    logger.debug("Built %d comparison sections for %d bills", len(sections), len(comparison))
    return sections


def _key_points_cell(analysis: NormalizedAnalysis) -> str | None:
    points = [kp.text for kp in analysis.key_points]
    if not points:
        return None
    lines = [f"- {p}" for p in points[:KEY_POINTS_IN_TABLE]]
    if len(points) > KEY_POINTS_IN_TABLE:
        lines.append("...and more")
    return "\n".join(lines)


def _first_finding(analysis: NormalizedAnalysis, category: CategoryId) -> str | None:
    findings = analysis.findings[category]
    return findings[0] if findings else None


def _comparison_table(
    comparison: list[tuple[BillRef, NormalizedAnalysis, ImpactProfile]],
    result: ComparisonResult,
) -> TableSection:
    rows: list[list[Optional[str]]] = [
        ["Primary Impact"] + [
            a.impact_summary.primary_category.label if a.impact_summary.primary_category else None
            for _, a, _ in comparison
        ],
        ["Impact Level"] + [
            _level_label(a.impact_summary.level)
            if a.impact_summary.level is not ImpactLevel.NONE else None
            for _, a, _ in comparison
        ],
        ["Key Points"] + [_key_points_cell(a) for _, a, _ in comparison],
        ["Public Health Impact"] + [
            _first_finding(a, CategoryId.PUBLIC_HEALTH) for _, a, _ in comparison
        ],
        ["Economic Impact"] + [_first_finding(a, CategoryId.ECONOMIC) for _, a, _ in comparison],
    ]
    for category in CategoryId:
        rows.append([f"{category.label} Score"] + [str(v) for v in result.per_category_series[category]])
    rows.append(["Overall Score"] + [str(p.max_score) for _, _, p in comparison])
    rows.append(["Overall Rank"] + [str(rank) for rank in result.ranks_in_input_order()])
    return TableSection(
        title="Detailed Comparison",
        header=["Category"] + [bill.display_title for bill, _, _ in comparison],
        rows=rows,
        first_column_share=0.22 if len(comparison) > 2 else 0.28,
    )
