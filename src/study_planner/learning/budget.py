from __future__ import annotations

from typing import Dict, Sequence

from study_planner.learning.bands import BAND_TABLE, ScoreBand, band_for, validate_band_table
from study_planner.learning.models import StudyBudget, StudyStrategy


class BudgetPlanner:
    """
    Map a readiness score to a study-time budget and a display strategy.

    The lookup is a straight scan of the canonical band table, validated once at
    construction so that a non-monotonic or gapped table fails fast.
    """

    def __init__(self, bands: Sequence[ScoreBand] = BAND_TABLE):
        self.bands = validate_band_table(bands)

    def budget(self, score: float) -> StudyBudget:
        band = band_for(score, self.bands)
        return StudyBudget(
            min_minutes=band.min_minutes,
            max_minutes=band.max_minutes,
            recommended_minutes=band.recommended_minutes,
        )

    def strategy(self, score: float) -> StudyStrategy:
        band = band_for(score, self.bands)
        return StudyStrategy(label=band.strategy, focus=band.focus, tips=list(band.tips))


class LoadClassifier:
    """Tag a score as light, medium or heavy using the same band table as the budget."""

    def __init__(self, bands: Sequence[ScoreBand] = BAND_TABLE):
        self.bands = validate_band_table(bands)

    def classify(self, score: float) -> str:
        return band_for(score, self.bands).load

    def load_cutoffs(self) -> Dict[str, int]:
        """Lowest score at which each load tag starts, read off the table."""
        cutoffs: Dict[str, int] = {}
        for band in reversed(self.bands):
            cutoffs.setdefault(band.load, band.lower)
        return cutoffs
