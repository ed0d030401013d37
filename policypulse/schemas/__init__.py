"""Pydantic v2 schema models for the PolicyPulse export pipeline.

Provides the canonical data structures shared by every pipeline stage:
- CategoryId, ImpactLevel: closed enumerations for scoring and charting
- BillRef, HistoryEvent: bill identity and timeline
- KeyPoint, ImpactSummary, NormalizedAnalysis: normalizer output
- ImpactProfile: scorer output
- ExportOptions, PageFormat, Orientation: caller-selected report layout
"""

from policypulse.schemas.models import (
    CATEGORY_LABELS,
    LEVEL_SCORES,
    BillRef,
    CategoryId,
    ExportOptions,
    HistoryEvent,
    ImpactLevel,
    ImpactProfile,
    ImpactSummary,
    KeyPoint,
    NormalizedAnalysis,
    Orientation,
    PageFormat,
)

__all__ = [
    "CATEGORY_LABELS",
    "LEVEL_SCORES",
    "BillRef",
    "CategoryId",
    "ExportOptions",
    "HistoryEvent",
    "ImpactLevel",
    "ImpactProfile",
    "ImpactSummary",
    "KeyPoint",
    "NormalizedAnalysis",
    "Orientation",
    "PageFormat",
]
