"""Pydantic v2 models for the bill impact export pipeline.

Raw analysis records arrive in many shapes; everything past the
normalizer is expressed in the canonical models below. Every field carries
a default so downstream stages never branch on "missing".

Models:
- BillRef (with HistoryEvent) -> bill metadata supplied by the data source
- KeyPoint, ImpactSummary, NormalizedAnalysis -> normalizer output
- ImpactProfile -> scorer output, consumed by charts, tables and ranking
- ExportOptions -> caller-selected report content and page layout
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ── Closed enumerations ──


class CategoryId(str, enum.Enum):
    """The six impact domains. Declaration order is the canonical axis order."""

    PUBLIC_HEALTH = "publicHealth"
    LOCAL_GOVERNMENT = "localGovernment"
    ECONOMIC = "economic"
    ENVIRONMENTAL = "environmental"
    EDUCATION = "education"
    INFRASTRUCTURE = "infrastructure"

    @property
    def label(self) -> str:
        """Human-readable category name."""
        return CATEGORY_LABELS[self]


CATEGORY_LABELS: dict[CategoryId, str] = {
    CategoryId.PUBLIC_HEALTH: "Public Health",
    CategoryId.LOCAL_GOVERNMENT: "Local Government",
    CategoryId.ECONOMIC: "Economic",
    CategoryId.ENVIRONMENTAL: "Environmental",
    CategoryId.EDUCATION: "Education",
    CategoryId.INFRASTRUCTURE: "Infrastructure",
}


class ImpactLevel(str, enum.Enum):
    """Qualitative impact level reported by the analysis backend."""

    NONE = "none"
    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def score(self) -> int:
        """Numeric score for this level (fixed lookup)."""
        return LEVEL_SCORES[self]


LEVEL_SCORES: dict[ImpactLevel, int] = {
    ImpactLevel.CRITICAL: 100,
    ImpactLevel.HIGH: 75,
    ImpactLevel.MODERATE: 50,
    ImpactLevel.LOW: 25,
    ImpactLevel.NONE: 0,
}

POLARITIES = frozenset({"positive", "negative", "neutral"})


class PageFormat(str, enum.Enum):
    LETTER = "letter"
    A4 = "a4"


class Orientation(str, enum.Enum):
    PORTRAIT = "portrait"
    LANDSCAPE = "landscape"


def _empty_findings() -> dict[CategoryId, list[str]]:
    return {category: [] for category in CategoryId}


def _empty_details() -> dict[CategoryId, dict[str, list[str]]]:
    return {category: {} for category in CategoryId}


# ── Bill metadata ──


class HistoryEvent(BaseModel):
    """A single legislative action on a bill's timeline."""

    date: Optional[str] = Field(
        default=None,
        description="Action date as supplied by the source (ISO preferred)",
        examples=["2025-02-14"],
    )
    action: str = Field(
        ...,
        description="Action text",
        examples=["Referred to Committee on Public Health"],
    )


class BillRef(BaseModel):
    """Identity and status of a bill, as shown in report headers.

    ``from_raw`` accepts the alternate field spellings the REST backend
    has used over time (``introduced``/``introducedDate``,
    ``lastAction``).
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Backend bill identifier", examples=["HB 1234", "42"])
    title: Optional[str] = Field(default=None, description="Bill title")
    status: Optional[str] = Field(default=None, description="Current status", examples=["introduced"])
    introduced_date: Optional[str] = Field(default=None, description="Date introduced")
    last_action: Optional[str] = Field(default=None, description="Most recent action text")
    history: list[HistoryEvent] = Field(default_factory=list, description="Legislative timeline")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> str:
        if v is None or str(v).strip() == "":
            raise ValueError("Bill id must be a non-empty value")
        return str(v).strip()

    @property
    def display_title(self) -> str:
        """Title to print, falling back to the bill id."""
        return self.title or f"Bill {self.id}"

    @classmethod
    def from_raw(cls, raw: dict, bill_id: str | None = None) -> "BillRef":
        """Build a BillRef from a raw bill record.

        Args:
            raw: Bill JSON from the data source (may be empty).
            bill_id: Id to use when the record has none.

        Returns:
            BillRef with every optional field filled when available.
        """
        raw = raw if isinstance(raw, dict) else {}
        history = []
        events = raw.get("history")
        for event in events if isinstance(events, list) else []:
            if not isinstance(event, dict):
                continue
            action = _scalar_text(event.get("action"))
            if action:
                history.append(HistoryEvent(date=_scalar_text(event.get("date")), action=action))
        last_action = raw.get("last_action") or raw.get("lastAction")
        if isinstance(last_action, dict):
            last_action = last_action.get("text")
        return cls(
            id=raw.get("id") if raw.get("id") not in (None, "") else bill_id,
            title=_scalar_text(raw.get("title")),
            status=_scalar_text(raw.get("status")),
            introduced_date=_scalar_text(
                raw.get("introduced_date")
                or raw.get("introduced")
                or raw.get("introducedDate")
            ),
            last_action=_scalar_text(last_action),
            history=history,
        )


def _scalar_text(value: Any) -> Optional[str]:
    """String form of a scalar field; objects, lists and blanks become None."""
    if value is None or isinstance(value, (dict, list, tuple, set)):
        return None
    text = str(value).strip()
    return text or None


# ── Normalized analysis ──


class KeyPoint(BaseModel):
    """One key point of an analysis, optionally tagged with its polarity."""

    text: str
    polarity: Optional[str] = Field(
        default=None,
        description="positive, negative or neutral",
    )

    @field_validator("polarity")
    @classmethod
    def validate_polarity(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and v not in POLARITIES:
            raise ValueError(f"Invalid polarity '{v}'. Must be one of: {sorted(POLARITIES)}")
        return v


class ImpactSummary(BaseModel):
    """Backend-reported headline impact."""

    level: ImpactLevel = ImpactLevel.NONE
    primary_category: Optional[CategoryId] = None
    relevance_note: Optional[str] = None


class NormalizedAnalysis(BaseModel):
    """Canonical, fully-defaulted form of a raw analysis record.

    ``findings`` is the scoring evidence per category; ``finding_details``
    holds the same findings (plus non-scoring facets such as vulnerable
    populations) grouped by source facet for report sub-headings.
    """

    summary: Optional[str] = None
    key_points: list[KeyPoint] = Field(default_factory=list)
    impact_summary: ImpactSummary = Field(default_factory=ImpactSummary)
    findings: dict[CategoryId, list[str]] = Field(default_factory=_empty_findings)
    finding_details: dict[CategoryId, dict[str, list[str]]] = Field(default_factory=_empty_details)
    recommended_actions: list[str] = Field(default_factory=list)
    immediate_actions: list[str] = Field(default_factory=list)
    resource_needs: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def fill_categories(self) -> "NormalizedAnalysis":
        for category in CategoryId:
            self.findings.setdefault(category, [])
            self.finding_details.setdefault(category, {})
        return self


# ── Scored profile ──


class ImpactProfile(BaseModel):
    """Scores for all six categories plus the overall level.

    Every category is always present; scores are integers already clamped
    by the scorer.
    """

    model_config = ConfigDict(frozen=True)

    scores: dict[CategoryId, int]
    overall_level: ImpactLevel = ImpactLevel.NONE

    @model_validator(mode="after")
    def validate_complete(self) -> "ImpactProfile":
        missing = [c.value for c in CategoryId if c not in self.scores]
        if missing:
            raise ValueError(f"ImpactProfile missing categories: {missing}")
        for category, value in self.scores.items():
            if not 0 <= value <= 100:
                raise ValueError(f"Score for {category.value} out of range: {value}")
        return self

    @property
    def max_score(self) -> int:
        """Highest category score."""
        return max(self.scores.values())

    def ordered_scores(self) -> list[int]:
        """Scores in canonical CategoryId order."""
        return [self.scores[c] for c in CategoryId]


# ── Export options ──


class ExportOptions(BaseModel):
    """Report content toggles and page layout selected by the caller."""

    model_config = ConfigDict(frozen=True)

    include_charts: bool = True
    include_tables: bool = True
    include_recommendations: bool = True
    include_impact_details: bool = True
    page_format: PageFormat = PageFormat.LETTER
    orientation: Orientation = Orientation.PORTRAIT
