"""Comparative aggregation across a set of scored bills.

Turns a comparison set (bills with their impact profiles, in the order the
caller selected them) into per-category chart series and an overall
ranking. Bills are never dropped: the ranking is a permutation of the input.
"""

import logging
from dataclasses import dataclass, field

from policypulse.schemas.models import BillRef, CategoryId, ImpactProfile

logger = logging.getLogger(__name__)

ComparisonSet = list[tuple[BillRef, ImpactProfile]]


@dataclass(frozen=True)
class RankedBill:
    """One bill's place in the overall ranking (rank is 1-based)."""

    bill: BillRef
    profile: ImpactProfile
    overall_score: int
    rank: int
    input_index: int


@dataclass
class ComparisonResult:
    """Aggregated view of a comparison set.

    Attributes:
        bills: Bills in input order (the series index order).
        per_category_series: Six keys in canonical order; each list holds
            one score per bill, in input order.
        overall_ranking: Bills sorted by their highest category score,
            descending; ties keep input order.
    """

    bills: list[BillRef] = field(default_factory=list)
    per_category_series: dict[CategoryId, list[int]] = field(default_factory=dict)
    overall_ranking: list[RankedBill] = field(default_factory=list)

    def scores_for(self, index: int) -> list[int]:
        """Category scores of the bill at input position ``index``, canonical order."""
        return [self.per_category_series[c][index] for c in CategoryId]

    def ranks_in_input_order(self) -> list[int]:
        """Rank of each bill, listed in input order."""
        ranks = [0] * len(self.overall_ranking)
        for entry in self.overall_ranking:
            ranks[entry.input_index] = entry.rank
        return ranks

    def rank_of(self, bill_id: str) -> int | None:
        """1-based rank of ``bill_id``, or None if it is not in the set."""
        for entry in self.overall_ranking:
            if entry.bill.id == bill_id:
                return entry.rank
        return None


class ComparativeAggregator:
    """Builds chart series and rankings for multi-bill comparisons."""

    def aggregate(self, comparison_set: ComparisonSet) -> ComparisonResult:
        """Aggregate a comparison set.

        Args:
            comparison_set: ``(bill, profile)`` pairs in caller order.

        Returns:
            ComparisonResult with per-category series and a stable ranking.
        """
        series = {
            category: [profile.scores[category] for _, profile in comparison_set]
            for category in CategoryId
        }

        # sorted() is stable, so equal scores keep input order
        ordered = sorted(
            enumerate(comparison_set), key=lambda item: item[1][1].max_score, reverse=True,
        )
        ranking = [
            RankedBill(
                bill=bill, profile=profile, overall_score=profile.max_score,
                rank=position, input_index=index,
            )
            for position, (index, (bill, profile)) in enumerate(ordered, start=1)
        ]

        logger.info(
            "Aggregated %d bills; top: %s",
            len(comparison_set),
            ranking[0].bill.id if ranking else None,
        )
        return ComparisonResult(
            bills=[bill for bill, _ in comparison_set],
            per_category_series=series,
            overall_ranking=ranking,
        )
