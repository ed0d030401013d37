"""Tests for the table-driven analysis schema normalizer.

Covers:
  - Totality: empty, None and non-dict input yield fully-defaulted output
  - Path priority: first non-empty alternate wins, no merging
  - Category containers as lists and as facet dicts
  - Element coercion (strings, text/point objects, scalars)
  - Level, category and polarity alias tables
  - Input records are never mutated
"""

import copy

from policypulse.analysis.normalizer import (
    SchemaNormalizer,
    coerce_text,
    coerce_text_list,
    normalize,
    parse_category,
    parse_level,
)
from policypulse.schemas.models import CategoryId, ImpactLevel


def _raw_full_record() -> dict:
    """Analysis record in the current backend shape."""
    return {
        "summary": "Expands rural clinic funding.",
        "key_points": [
            {"point": "Adds 40 clinics", "impact_type": "positive"},
            {"point": "Raises reporting burden", "impact_type": "negative"},
        ],
        "impact_summary": {
            "impact_level": "high",
            "primary_category": "public_health",
            "relevance_to_texas": "Affects 120 rural counties.",
        },
        "public_health_impacts": {
            "direct_effects": ["More clinics"],
            "indirect_effects": ["Shorter travel"],
            "vulnerable_populations": ["Rural elderly"],
        },
        "local_government_impacts": {
            "administrative": ["New reporting office"],
            "fiscal": [],
            "implementation": ["Phased rollout"],
        },
        "economic_impacts": {
            "direct_costs": ["$40M"],
            "economic_effects": [],
            "benefits": ["Jobs"],
            "long_term_impact": ["Lower ER costs"],
        },
        "recommended_actions": ["Monitor appropriations"],
        "immediate_actions": ["Brief county judges"],
        "resource_needs": ["Grant writer"],
    }


# ── Totality ──


class TestNormalizeDefaults:
    """Missing data never raises and always yields every field."""

    def test_empty_record(self):
        result = normalize({})
        assert result.summary is None
        assert result.key_points == []
        assert result.impact_summary.level == ImpactLevel.NONE
        assert result.impact_summary.primary_category is None
        assert set(result.findings) == set(CategoryId)
        assert all(v == [] for v in result.findings.values())
        assert all(v == {} for v in result.finding_details.values())
        assert result.recommended_actions == []

    def test_none_record(self):
        result = normalize(None)
        assert set(result.findings) == set(CategoryId)

    def test_non_dict_record(self):
        result = normalize(["not", "a", "record"])
        assert result.summary is None
        assert result.impact_summary.level == ImpactLevel.NONE

    def test_scalar_category_container_is_stringified(self):
        result = normalize({"economic_impacts": 42})
        assert result.findings[CategoryId.ECONOMIC] == ["42"]

    def test_input_not_mutated(self):
        raw = _raw_full_record()
        snapshot = copy.deepcopy(raw)
        normalize(raw)
        assert raw == snapshot


# ── Full record ──


class TestNormalizeFullRecord:
    """Current backend shape maps onto every canonical field."""

    def test_summary_and_key_points(self):
        result = normalize(_raw_full_record())
        assert result.summary == "Expands rural clinic funding."
        assert [kp.text for kp in result.key_points] == ["Adds 40 clinics", "Raises reporting burden"]
        assert [kp.polarity for kp in result.key_points] == ["positive", "negative"]

    def test_impact_summary(self):
        summary = normalize(_raw_full_record()).impact_summary
        assert summary.level == ImpactLevel.HIGH
        assert summary.primary_category == CategoryId.PUBLIC_HEALTH
        assert summary.relevance_note == "Affects 120 rural counties."

    def test_facets_concatenated_in_order(self):
        result = normalize(_raw_full_record())
        assert result.findings[CategoryId.PUBLIC_HEALTH] == ["More clinics", "Shorter travel"]
        assert result.findings[CategoryId.LOCAL_GOVERNMENT] == ["New reporting office", "Phased rollout"]
        assert result.findings[CategoryId.ECONOMIC] == ["$40M", "Jobs", "Lower ER costs"]

    def test_vulnerable_populations_are_details_only(self):
        result = normalize(_raw_full_record())
        assert "Rural elderly" not in result.findings[CategoryId.PUBLIC_HEALTH]
        details = result.finding_details[CategoryId.PUBLIC_HEALTH]
        assert details["vulnerable_populations"] == ["Rural elderly"]
        assert details["direct_effects"] == ["More clinics"]

    def test_empty_facets_omitted_from_details(self):
        details = normalize(_raw_full_record()).finding_details[CategoryId.LOCAL_GOVERNMENT]
        assert "fiscal" not in details

    def test_actions(self):
        result = normalize(_raw_full_record())
        assert result.recommended_actions == ["Monitor appropriations"]
        assert result.immediate_actions == ["Brief county judges"]
        assert result.resource_needs == ["Grant writer"]


# ── Alternates ──


class TestPathPriority:
    """First present non-empty alternate wins; alternates are not merged."""

    def test_flat_level_and_category(self):
        result = normalize({"impact_level": "critical", "primary_category": "economic"})
        assert result.impact_summary.level == ImpactLevel.CRITICAL
        assert result.impact_summary.primary_category == CategoryId.ECONOMIC

    def test_camel_case_summary_block(self):
        result = normalize({
            "impactSummary": {"level": "Moderate", "primaryCategory": "localGovernment",
                              "relevanceNote": "Counties"},
        })
        assert result.impact_summary.level == ImpactLevel.MODERATE
        assert result.impact_summary.primary_category == CategoryId.LOCAL_GOVERNMENT
        assert result.impact_summary.relevance_note == "Counties"

    def test_nested_level_beats_flat_level(self):
        result = normalize({"impact_summary": {"impact_level": "low"}, "impact_level": "critical"})
        assert result.impact_summary.level == ImpactLevel.LOW

    def test_empty_first_alternate_falls_through(self):
        result = normalize({"summary": "  ", "executive_summary": "Exec text"})
        assert result.summary == "Exec text"

    def test_key_point_alternates_not_merged(self):
        result = normalize({"key_points": ["a"], "keyPoints": ["b"]})
        assert [kp.text for kp in result.key_points] == ["a"]

    def test_key_findings_alternate(self):
        result = normalize({"key_findings": [{"text": "finding"}]})
        assert result.key_points[0].text == "finding"

    def test_category_list_container(self):
        result = normalize({"environmentalImpacts": ["Runoff", {"text": "Habitat"}]})
        assert result.findings[CategoryId.ENVIRONMENTAL] == ["Runoff", "Habitat"]
        assert result.finding_details[CategoryId.ENVIRONMENTAL] == {"findings": ["Runoff", "Habitat"]}

    def test_nested_impacts_block(self):
        result = normalize({"impacts": {"education": {"direct_effects": ["Teacher pay"]}}})
        assert result.findings[CategoryId.EDUCATION] == ["Teacher pay"]

    def test_category_dict_without_known_facets_falls_through(self):
        result = normalize({
            "infrastructure_impacts": {"unknown": ["x"]},
            "infrastructureImpacts": ["Roads"],
        })
        assert result.findings[CategoryId.INFRASTRUCTURE] == ["Roads"]

    def test_recommendations_alternate(self):
        result = normalize({"recommendations": [{"description": "Track it"}]})
        assert result.recommended_actions == ["Track it"]

    def test_custom_tables(self):
        normalizer = SchemaNormalizer(field_paths={
            **SchemaNormalizer().field_paths,
            "summary": ("abstract",),
        })
        assert normalizer.normalize({"abstract": "From a new source"}).summary == "From a new source"


# ── Coercion helpers ──


class TestCoercion:
    """Element and alias coercion."""

    def test_coerce_text_variants(self):
        assert coerce_text("  padded ") == "padded"
        assert coerce_text({"text": "t", "point": "p"}) == "t"
        assert coerce_text({"point": "p"}) == "p"
        assert coerce_text({"finding": "f"}) == "f"
        assert coerce_text(12) == "12"
        assert coerce_text(None) is None
        assert coerce_text("") is None
        assert coerce_text({}) is None

    def test_coerce_text_list_skips_blanks(self):
        assert coerce_text_list(["a", "", None, {"text": "b"}]) == ["a", "b"]
        assert coerce_text_list("single") == ["single"]
        assert coerce_text_list(None) == []

    def test_mixed_key_dict_does_not_raise(self):
        result = normalize({"key_points": [{1: "a", "b": 2}]})
        assert len(result.key_points) == 1
        assert "'b': 2" in result.key_points[0].text

    def test_level_aliases(self):
        assert parse_level("Medium") == ImpactLevel.MODERATE
        assert parse_level("SEVERE") == ImpactLevel.CRITICAL
        assert parse_level("bogus") == ImpactLevel.NONE
        assert parse_level(None) == ImpactLevel.NONE

    def test_category_aliases(self):
        assert parse_category("health") == CategoryId.PUBLIC_HEALTH
        assert parse_category("Public Health") == CategoryId.PUBLIC_HEALTH
        assert parse_category("local_gov") == CategoryId.LOCAL_GOVERNMENT
        assert parse_category("publicHealth") == CategoryId.PUBLIC_HEALTH
        assert parse_category("agriculture") is None

    def test_unknown_polarity_dropped(self):
        result = normalize({"key_points": [{"text": "x", "polarity": "spicy"}]})
        assert result.key_points[0].polarity is None

    def test_sentiment_polarity_key(self):
        result = normalize({"key_points": [{"text": "x", "sentiment": "Adverse"}]})
        assert result.key_points[0].polarity == "negative"
