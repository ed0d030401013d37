"""Tests for multi-bill comparative aggregation."""

from policypulse.analysis.comparison import ComparativeAggregator
from policypulse.analysis.normalizer import normalize
from policypulse.analysis.scorer import ImpactScorer
from policypulse.schemas.models import BillRef, CategoryId, ImpactProfile


def _make_profile(**scores) -> ImpactProfile:
    values = {c: 10 for c in CategoryId}
    values.update({CategoryId(k): v for k, v in scores.items()})
    return ImpactProfile(scores=values)


def _make_bill(bill_id: str) -> BillRef:
    return BillRef(id=bill_id, title=f"Bill {bill_id} title")


class TestAggregate:
    """Series shape and ranking order."""

    def test_series_shape(self):
        comparison = [
            (_make_bill("A"), _make_profile(economic=40)),
            (_make_bill("B"), _make_profile(education=80)),
            (_make_bill("C"), _make_profile()),
        ]
        result = ComparativeAggregator().aggregate(comparison)
        assert list(result.per_category_series) == list(CategoryId)
        assert all(len(v) == 3 for v in result.per_category_series.values())
        assert result.per_category_series[CategoryId.ECONOMIC] == [40, 10, 10]
        assert result.per_category_series[CategoryId.EDUCATION] == [10, 80, 10]
        assert [b.id for b in result.bills] == ["A", "B", "C"]

    def test_ranking_by_max_score(self):
        comparison = [
            (_make_bill("A"), _make_profile(economic=40)),
            (_make_bill("B"), _make_profile(education=80)),
            (_make_bill("C"), _make_profile(publicHealth=60)),
        ]
        result = ComparativeAggregator().aggregate(comparison)
        assert [r.bill.id for r in result.overall_ranking] == ["B", "C", "A"]
        assert [r.rank for r in result.overall_ranking] == [1, 2, 3]
        assert [r.overall_score for r in result.overall_ranking] == [80, 60, 40]
        assert result.rank_of("C") == 2
        assert result.rank_of("Z") is None

    def test_ties_keep_input_order(self):
        comparison = [
            (_make_bill("A"), _make_profile(economic=50)),
            (_make_bill("B"), _make_profile(education=50)),
            (_make_bill("C"), _make_profile(publicHealth=50)),
        ]
        result = ComparativeAggregator().aggregate(comparison)
        assert [r.bill.id for r in result.overall_ranking] == ["A", "B", "C"]

    def test_ranking_is_permutation(self):
        comparison = [(_make_bill(str(i)), _make_profile(economic=10 + i * 7)) for i in range(8)]
        result = ComparativeAggregator().aggregate(comparison)
        assert sorted(r.bill.id for r in result.overall_ranking) == sorted(str(i) for i in range(8))

    def test_empty_set(self):
        result = ComparativeAggregator().aggregate([])
        assert result.overall_ranking == []
        assert all(v == [] for v in result.per_category_series.values())

    def test_five_findings_outrank_none(self):
        scorer = ImpactScorer()
        with_findings = scorer.score(normalize({"public_health_impacts": ["a", "b", "c", "d", "e"]}))
        without = scorer.score(normalize({}))
        result = ComparativeAggregator().aggregate([
            (_make_bill("empty"), without),
            (_make_bill("busy"), with_findings),
        ])
        assert with_findings.scores[CategoryId.PUBLIC_HEALTH] == 50
        assert without.scores[CategoryId.PUBLIC_HEALTH] == 10
        assert [r.bill.id for r in result.overall_ranking] == ["busy", "empty"]
