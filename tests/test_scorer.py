"""Tests for the deterministic impact scorer."""

import pytest

from policypulse.analysis.normalizer import normalize
from policypulse.analysis.scorer import ImpactScorer
from policypulse.config import DEFAULT_CONFIG
from policypulse.schemas.models import CategoryId, ImpactLevel


def _make_scorer(**scoring) -> ImpactScorer:
    return ImpactScorer({"scoring": scoring}) if scoring else ImpactScorer()


class TestScoreBasics:
    """Evidence weights, floor and ceiling."""

    def test_empty_record_is_all_floor(self):
        profile = _make_scorer().score(normalize({}))
        assert profile.scores == {c: 10 for c in CategoryId}
        assert profile.overall_level == ImpactLevel.NONE

    def test_critical_economic_record(self):
        raw = {"impact_summary": {"impact_level": "critical", "primary_category": "economic"}}
        profile = _make_scorer().score(normalize(raw))
        assert profile.scores[CategoryId.ECONOMIC] == 100
        others = [s for c, s in profile.scores.items() if c != CategoryId.ECONOMIC]
        assert others == [10] * 5
        assert profile.overall_level == ImpactLevel.CRITICAL

    def test_weight_ten_categories(self):
        raw = {"public_health_impacts": {"direct_effects": ["a", "b", "c"]}}
        profile = _make_scorer().score(normalize(raw))
        assert profile.scores[CategoryId.PUBLIC_HEALTH] == 30

    def test_weight_twenty_categories(self):
        raw = {"education_impacts": {"direct_effects": ["a", "b"], "long_term_effects": ["c"]}}
        profile = _make_scorer().score(normalize(raw))
        assert profile.scores[CategoryId.EDUCATION] == 60

    def test_ceiling(self):
        raw = {"infrastructure_impacts": ["x"] * 9}
        profile = _make_scorer().score(normalize(raw))
        assert profile.scores[CategoryId.INFRASTRUCTURE] == 100

    def test_scores_always_in_range(self):
        raw = {
            "economic_impacts": ["x"] * 30,
            "impact_summary": {"impact_level": "low", "primary_category": "education"},
        }
        profile = _make_scorer().score(normalize(raw))
        assert all(10 <= s <= 100 for s in profile.scores.values())
        assert set(profile.scores) == set(CategoryId)


class TestHeadlineOverride:
    """Backend impact level lifts only the primary category."""

    def test_level_never_lowers_evidence(self):
        raw = {
            "environmental_impacts": ["a", "b", "c", "d"],
            "impact_summary": {"impact_level": "low", "primary_category": "environmental"},
        }
        profile = _make_scorer().score(normalize(raw))
        assert profile.scores[CategoryId.ENVIRONMENTAL] == 80

    def test_level_without_primary_category(self):
        raw = {"impact_level": "high"}
        profile = _make_scorer().score(normalize(raw))
        assert profile.scores == {c: 10 for c in CategoryId}
        assert profile.overall_level == ImpactLevel.HIGH

    def test_other_categories_untouched(self):
        raw = {
            "public_health_impacts": ["a", "b"],
            "impact_summary": {"impact_level": "moderate", "primary_category": "economic"},
        }
        profile = _make_scorer().score(normalize(raw))
        assert profile.scores[CategoryId.PUBLIC_HEALTH] == 20
        assert profile.scores[CategoryId.ECONOMIC] == 50


class TestOverallLevel:
    """Level derived from the highest score when the backend gives none."""

    @pytest.mark.parametrize("findings,expected", [
        (0, ImpactLevel.NONE),
        (3, ImpactLevel.LOW),
        (5, ImpactLevel.MODERATE),
        (8, ImpactLevel.HIGH),
        (10, ImpactLevel.CRITICAL),
    ])
    def test_derived_from_max_score(self, findings, expected):
        raw = {"public_health_impacts": ["x"] * findings}
        assert _make_scorer().score(normalize(raw)).overall_level == expected


class TestScorerConfig:
    """Config overrides and determinism."""

    def test_default_config_matches_builtin_weights(self):
        raw = {"economic_impacts": ["a"], "education_impacts": ["b"]}
        a = ImpactScorer(DEFAULT_CONFIG).score(normalize(raw))
        b = ImpactScorer().score(normalize(raw))
        assert a == b

    def test_weight_override(self):
        scorer = _make_scorer(category_weights={"publicHealth": 25})
        profile = scorer.score(normalize({"public_health_impacts": ["a", "b"]}))
        assert profile.scores[CategoryId.PUBLIC_HEALTH] == 50

    def test_unknown_weight_key_ignored(self):
        scorer = _make_scorer(category_weights={"agriculture": 50})
        assert scorer.weights[CategoryId.ECONOMIC] == 10

    def test_floor_above_ceiling_rejected(self):
        with pytest.raises(ValueError):
            _make_scorer(score_floor=90, score_ceiling=50)

    @pytest.mark.parametrize("bounds", [
        {"score_ceiling": 200},
        {"score_floor": -5},
    ])
    def test_bounds_outside_score_range_rejected(self, bounds):
        with pytest.raises(ValueError, match="0-100"):
            _make_scorer(**bounds)

    def test_deterministic(self):
        raw = {"economic_impacts": ["a", "b"], "impact_level": "medium"}
        scorer = _make_scorer()
        assert scorer.score(normalize(raw)) == scorer.score(normalize(raw))
