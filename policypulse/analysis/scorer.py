"""Impact scorer.

Reduces a NormalizedAnalysis to a fixed six-category ImpactProfile:

1. Evidence score: number of findings in the category times its weight
   (10 for public health, local government and economic; 20 for
   environmental, education and infrastructure).
2. Headline override: when the backend reports an impact level and a
   primary category, that category scores at least the level's lookup
   value. Other categories are untouched.
3. Clamp to [score_floor, score_ceiling], default [10, 100].

The scorer is pure and deterministic: the same analysis always yields the
same profile.
"""

import logging

from policypulse.schemas.models import (
    LEVEL_SCORES,
    CategoryId,
    ImpactLevel,
    ImpactProfile,
    NormalizedAnalysis,
)

logger = logging.getLogger(__name__)

DEFAULT_WEIGHTS: dict[CategoryId, int] = {
    CategoryId.PUBLIC_HEALTH: 10,
    CategoryId.LOCAL_GOVERNMENT: 10,
    CategoryId.ECONOMIC: 10,
    CategoryId.ENVIRONMENTAL: 20,
    CategoryId.EDUCATION: 20,
    CategoryId.INFRASTRUCTURE: 20,
}

# Ascending, used to bracket a numeric score back into a level.
_LEVEL_ORDER = (
    ImpactLevel.NONE,
    ImpactLevel.LOW,
    ImpactLevel.MODERATE,
    ImpactLevel.HIGH,
    ImpactLevel.CRITICAL,
)


class ImpactScorer:
    """Scores normalized analyses into comparable impact profiles."""

    def __init__(self, config: dict | None = None):
        scoring = (config or {}).get("scoring", {})

        self.weights = dict(DEFAULT_WEIGHTS)
        for key, weight in scoring.get("category_weights", {}).items():
            try:
                self.weights[CategoryId(key)] = int(weight)
            except ValueError:
                logger.warning("Ignoring weight for unknown category '%s'", key)

        self.level_scores = dict(LEVEL_SCORES)
        for key, value in scoring.get("level_scores", {}).items():
            try:
                self.level_scores[ImpactLevel(key)] = int(value)
            except ValueError:
                logger.warning("Ignoring score for unknown impact level '%s'", key)

        self.floor = int(scoring.get("score_floor", 10))
        self.ceiling = int(scoring.get("score_ceiling", 100))
        if self.floor > self.ceiling:
            raise ValueError(
                f"score_floor ({self.floor}) must not exceed score_ceiling ({self.ceiling})"
            )
        if self.floor < 0 or self.ceiling > 100:
            raise ValueError(
                f"Score bounds must lie within 0-100, got floor={self.floor} ceiling={self.ceiling}"
            )

    def score(self, analysis: NormalizedAnalysis) -> ImpactProfile:
        """Compute the impact profile for one analysis.

        Args:
            analysis: Output of the schema normalizer.

        Returns:
            ImpactProfile with all six categories scored in [floor, ceiling].
        """
        raw = {
            category: len(analysis.findings.get(category, [])) * self.weights[category]
            for category in CategoryId
        }

        summary = analysis.impact_summary
        if summary.level is not ImpactLevel.NONE and summary.primary_category is not None:
            primary = summary.primary_category
            raw[primary] = max(raw[primary], self.level_scores[summary.level])

        scores = {category: self._clamp(value) for category, value in raw.items()}

        if summary.level is not ImpactLevel.NONE:
            overall = summary.level
        else:
            overall = self.level_for_score(max(scores.values()))

        logger.debug("Scored profile: %s overall=%s",
                     {c.value: s for c, s in scores.items()}, overall.value)
        return ImpactProfile(scores=scores, overall_level=overall)

    def level_for_score(self, value: int) -> ImpactLevel:
        """Highest level whose lookup score does not exceed ``value``."""
        level = ImpactLevel.NONE
        for candidate in _LEVEL_ORDER:
            if self.level_scores[candidate] <= value:
                level = candidate
        return level

    def _clamp(self, value: int) -> int:
        return max(self.floor, min(self.ceiling, value))
