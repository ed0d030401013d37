"""Schema normalizer for raw bill analysis records.

Analysis records come from several backend generations and bill sources,
so the same datum can live under different keys (``impact_summary.impact_level``
vs. ``impact_level``), and list fields hold either strings or objects.
This module reduces any record to a ``NormalizedAnalysis``.

Resolution is table-driven: each target field has an ordered tuple of
dotted candidate paths. The first path holding a non-empty value wins;
alternates are never merged. Supporting a new source shape is a table
edit, not new control flow.

``normalize`` is total: it never raises and never returns None. The raw
record is never mutated.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from policypulse.schemas.models import (
    CategoryId,
    ImpactLevel,
    ImpactSummary,
    KeyPoint,
    NormalizedAnalysis,
)

logger = logging.getLogger(__name__)

_MISSING = object()

# ---------------------------------------------------------------------------
# Lookup tables
# ---------------------------------------------------------------------------

FIELD_PATHS: dict[str, tuple[str, ...]] = {
    "summary": ("summary", "executive_summary", "analysis_summary", "overview"),
    "key_points": ("key_points", "keyPoints", "key_findings"),
    "impact_level": (
        "impact_summary.impact_level",
        "impact_level",
        "impactSummary.level",
        "impact_summary.level",
    ),
    "primary_category": (
        "impact_summary.primary_category",
        "primary_category",
        "impactSummary.primaryCategory",
    ),
    "relevance_note": (
        "impact_summary.relevance_to_texas",
        "impact_summary.relevance_note",
        "relevance_note",
        "impactSummary.relevanceNote",
    ),
    "recommended_actions": ("recommended_actions", "recommendations", "recommendedActions"),
    "immediate_actions": ("immediate_actions", "immediateActions"),
    "resource_needs": ("resource_needs", "resourceNeeds"),
}

CATEGORY_PATHS: dict[CategoryId, tuple[str, ...]] = {
    CategoryId.PUBLIC_HEALTH: (
        "public_health_impacts", "publicHealthImpacts", "impacts.public_health",
    ),
    CategoryId.LOCAL_GOVERNMENT: (
        "local_government_impacts", "localGovernmentImpacts", "impacts.local_government",
    ),
    CategoryId.ECONOMIC: (
        "economic_impacts", "economicImpacts", "impacts.economic",
    ),
    CategoryId.ENVIRONMENTAL: (
        "environmental_impacts", "environmentalImpacts", "impacts.environmental",
    ),
    CategoryId.EDUCATION: (
        "education_impacts", "educationImpacts", "impacts.education",
    ),
    CategoryId.INFRASTRUCTURE: (
        "infrastructure_impacts", "infrastructureImpacts", "impacts.infrastructure",
    ),
}

_GENERIC_FACETS = ("direct_effects", "indirect_effects", "long_term_effects")

# Facets that count as scoring evidence, in concatenation order.
CATEGORY_FACETS: dict[CategoryId, tuple[str, ...]] = {
    CategoryId.PUBLIC_HEALTH: ("direct_effects", "indirect_effects"),
    CategoryId.LOCAL_GOVERNMENT: ("administrative", "fiscal", "implementation"),
    CategoryId.ECONOMIC: ("direct_costs", "economic_effects", "benefits", "long_term_impact"),
    CategoryId.ENVIRONMENTAL: _GENERIC_FACETS,
    CategoryId.EDUCATION: _GENERIC_FACETS,
    CategoryId.INFRASTRUCTURE: _GENERIC_FACETS,
}

# Facets shown in reports but not counted as evidence.
DETAIL_ONLY_FACETS: dict[CategoryId, tuple[str, ...]] = {
    CategoryId.PUBLIC_HEALTH: ("vulnerable_populations",),
}

# Facet name used when a category container is a plain list.
LIST_FACET = "findings"

ELEMENT_TEXT_KEYS = ("text", "point", "description", "finding")
POLARITY_KEYS = ("polarity", "impact_type", "sentiment")

LEVEL_ALIASES: dict[str, ImpactLevel] = {
    "none": ImpactLevel.NONE,
    "no impact": ImpactLevel.NONE,
    "low": ImpactLevel.LOW,
    "minor": ImpactLevel.LOW,
    "moderate": ImpactLevel.MODERATE,
    "medium": ImpactLevel.MODERATE,
    "high": ImpactLevel.HIGH,
    "significant": ImpactLevel.HIGH,
    "critical": ImpactLevel.CRITICAL,
    "severe": ImpactLevel.CRITICAL,
}

CATEGORY_ALIASES: dict[str, CategoryId] = {
    "public_health": CategoryId.PUBLIC_HEALTH,
    "publichealth": CategoryId.PUBLIC_HEALTH,
    "health": CategoryId.PUBLIC_HEALTH,
    "local_gov": CategoryId.LOCAL_GOVERNMENT,
    "local_government": CategoryId.LOCAL_GOVERNMENT,
    "localgovernment": CategoryId.LOCAL_GOVERNMENT,
    "economic": CategoryId.ECONOMIC,
    "economy": CategoryId.ECONOMIC,
    "environmental": CategoryId.ENVIRONMENTAL,
    "environment": CategoryId.ENVIRONMENTAL,
    "education": CategoryId.EDUCATION,
    "infrastructure": CategoryId.INFRASTRUCTURE,
}

POLARITY_ALIASES: dict[str, str] = {
    "positive": "positive",
    "beneficial": "positive",
    "negative": "negative",
    "adverse": "negative",
    "neutral": "neutral",
    "mixed": "neutral",
}


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def lookup_path(record: Any, path: str) -> Any:
    """Walk a dotted path through nested dicts. Returns ``_MISSING`` when absent."""
    node = record
    for key in path.split("."):
        if not isinstance(node, dict) or key not in node:
            return _MISSING
        node = node[key]
    return node


def _is_empty(value: Any) -> bool:
    if value is _MISSING or value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


def first_present(record: Any, paths: tuple[str, ...]) -> Any:
    """Return the value at the first path holding a non-empty value, else None."""
    for path in paths:
        value = lookup_path(record, path)
        if not _is_empty(value):
            return value
    return None


def coerce_text(value: Any) -> str | None:
    """Reduce one list element to display text, or None when it carries nothing."""
    if value is None:
        return None
    if isinstance(value, str):
        text = value.strip()
    elif isinstance(value, dict):
        for key in ELEMENT_TEXT_KEYS:
            candidate = value.get(key)
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip()
        if not value:
            return None
        try:
            text = json.dumps(value, sort_keys=True, default=str)
        except TypeError:
            # mixed key types cannot be sorted
            text = str(value)
    else:
        text = str(value).strip()
    return text or None


def coerce_text_list(value: Any) -> list[str]:
    """Coerce a string, object, or list of either into a list of non-empty strings."""
    if value is None or value is _MISSING:
        return []
    items = value if isinstance(value, (list, tuple)) else [value]
    result = []
    for item in items:
        text = coerce_text(item)
        if text:
            result.append(text)
    return result


def _alias_key(value: Any) -> str:
    return str(value).strip().lower().replace("-", "_").replace(" ", "_")


def parse_level(value: Any) -> ImpactLevel:
    """Map a free-form impact level onto ImpactLevel (unknown -> NONE)."""
    if not isinstance(value, str):
        return ImpactLevel.NONE
    key = value.strip().lower()
    return LEVEL_ALIASES.get(key, LEVEL_ALIASES.get(key.replace("_", " "), ImpactLevel.NONE))


def parse_category(value: Any) -> CategoryId | None:
    """Map a free-form category name onto CategoryId (unknown -> None)."""
    if not isinstance(value, str) or not value.strip():
        return None
    return CATEGORY_ALIASES.get(_alias_key(value))


def parse_polarity(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    return POLARITY_ALIASES.get(value.strip().lower())


# ---------------------------------------------------------------------------
# Normalizer
# ---------------------------------------------------------------------------


class SchemaNormalizer:
    """Maps arbitrarily-shaped analysis records onto ``NormalizedAnalysis``.

    The lookup tables are injectable so tests and new backends can extend
    them without subclassing.
    """

    def __init__(
        self,
        field_paths: dict[str, tuple[str, ...]] | None = None,
        category_paths: dict[CategoryId, tuple[str, ...]] | None = None,
    ):
        self.field_paths = field_paths or FIELD_PATHS
        self.category_paths = category_paths or CATEGORY_PATHS

    def normalize(self, raw: Any) -> NormalizedAnalysis:
        """Normalize one raw analysis record.

        Args:
            raw: Untrusted analysis JSON. Non-dict input is treated as ``{}``.

        Returns:
            NormalizedAnalysis with every field defined.
        """
        record = raw if isinstance(raw, dict) else {}
        if raw is not None and not isinstance(raw, dict):
            logger.warning("Analysis record is %s, not an object; using defaults", type(raw).__name__)

        findings: dict[CategoryId, list[str]] = {}
        details: dict[CategoryId, dict[str, list[str]]] = {}
        for category in CategoryId:
            findings[category], details[category] = self._category_findings(record, category)

        summary = first_present(record, self.field_paths["summary"])
        result = NormalizedAnalysis(
            summary=coerce_text(summary),
            key_points=self._key_points(record),
            impact_summary=ImpactSummary(
                level=parse_level(first_present(record, self.field_paths["impact_level"])),
                primary_category=parse_category(
                    first_present(record, self.field_paths["primary_category"])
                ),
                relevance_note=coerce_text(
                    first_present(record, self.field_paths["relevance_note"])
                ),
            ),
            findings=findings,
            finding_details=details,
            recommended_actions=coerce_text_list(
                first_present(record, self.field_paths["recommended_actions"])
            ),
            immediate_actions=coerce_text_list(
                first_present(record, self.field_paths["immediate_actions"])
            ),
            resource_needs=coerce_text_list(
                first_present(record, self.field_paths["resource_needs"])
            ),
        )
        logger.debug(
            "Normalized analysis: level=%s primary=%s evidence=%s",
            result.impact_summary.level.value,
            result.impact_summary.primary_category.value if result.impact_summary.primary_category else None,
            {c.value: len(v) for c, v in findings.items()},
        )
        return result

    def _key_points(self, record: dict) -> list[KeyPoint]:
        value = first_present(record, self.field_paths["key_points"])
        if value is None:
            return []
        items = value if isinstance(value, (list, tuple)) else [value]
        points = []
        for item in items:
            text = coerce_text(item)
            if not text:
                continue
            polarity = None
            if isinstance(item, dict):
                polarity = parse_polarity(first_present(item, POLARITY_KEYS))
            points.append(KeyPoint(text=text, polarity=polarity))
        return points

    def _category_findings(
        self, record: dict, category: CategoryId,
    ) -> tuple[list[str], dict[str, list[str]]]:
        """Resolve one category bucket from the first alternate that yields content."""
        for path in self.category_paths.get(category, ()):
            container = lookup_path(record, path)
            if _is_empty(container):
                continue
            evidence, grouped = self._split_container(container, category)
            if evidence or grouped:
                return evidence, grouped
        return [], {}

    @staticmethod
    def _split_container(
        container: Any, category: CategoryId,
    ) -> tuple[list[str], dict[str, list[str]]]:
        if isinstance(container, dict):
            evidence: list[str] = []
            grouped: dict[str, list[str]] = {}
            for facet in CATEGORY_FACETS[category]:
                values = coerce_text_list(container.get(facet))
                if values:
                    grouped[facet] = values
                    evidence.extend(values)
            for facet in DETAIL_ONLY_FACETS.get(category, ()):
                values = coerce_text_list(container.get(facet))
                if values:
                    grouped[facet] = values
            return evidence, grouped

        values = coerce_text_list(container)
        return values, ({LIST_FACET: values} if values else {})


_DEFAULT_NORMALIZER = SchemaNormalizer()


def normalize(raw: Any) -> NormalizedAnalysis:
    """Normalize ``raw`` with the default lookup tables."""
    return _DEFAULT_NORMALIZER.normalize(raw)
