from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from study_planner.config.schema import DIFFICULTY_LEVELS, DifficultyConfig
from study_planner.learning.models import ReadinessState
from study_planner.utils.logging import get_logger

logger = get_logger(__name__)

PROFICIENCY_MAX = 990

# (exclusive upper bound, level); anything at or above the last bound is expert.
PROFICIENCY_BANDS = (
    (500, "basic"),
    (700, "intermediate"),
    (850, "advanced"),
)

SAFETY_CAP = "advanced"


@dataclass(frozen=True)
class DifficultyDecision:
    """How a difficulty level was reached, step by step."""

    base: str
    shift: int
    capped: bool
    level: str
    efficiency: Optional[float] = None


def base_difficulty(proficiency: float) -> str:
    """Map a 0-990 proficiency estimate to a difficulty level."""
    bounded = max(0.0, min(float(PROFICIENCY_MAX), float(proficiency)))
    for upper, level in PROFICIENCY_BANDS:
        if bounded < upper:
            return level
    return "expert"


class DifficultyResolver:
    """
    Resolve the difficulty for the day's tasks.

    Resolution runs in three fixed steps:

    1. **Base level** from the proficiency estimate.
    2. **Performance shift** from the rolling efficiency average for the
       relevant (content type, readiness bucket): one band up at or above the
       promote threshold, one band down below the demote threshold, nothing
       when no history exists.
    3. **Safety cap**: when the mental-state average `(focus + energy) / 2` is
       below the low threshold the level is capped at advanced. The cap runs
       last, so it wins over any upward shift from step 2.
    """

    def __init__(self, config: Optional[DifficultyConfig] = None):
        self.config = config or DifficultyConfig()

    def resolve(
        self,
        proficiency: float,
        efficiency: Optional[float],
        state: ReadinessState,
    ) -> DifficultyDecision:
        base = base_difficulty(proficiency)
        index = DIFFICULTY_LEVELS.index(base)

        shift = 0
        if efficiency is not None:
            if efficiency >= self.config.promote_threshold:
                shift = 1
            elif efficiency < self.config.demote_threshold:
                shift = -1
        index = max(0, min(len(DIFFICULTY_LEVELS) - 1, index + shift))

        capped = False
        cap_index = DIFFICULTY_LEVELS.index(SAFETY_CAP)
        if self.mental_state(state) < self.config.low_mental_threshold and index > cap_index:
            index = cap_index
            capped = True

        level = DIFFICULTY_LEVELS[index]
        logger.debug(
            "difficulty_resolved",
            base=base,
            shift=shift,
            capped=capped,
            level=level,
            efficiency=efficiency,
        )
        return DifficultyDecision(base=base, shift=shift, capped=capped, level=level, efficiency=efficiency)

    @staticmethod
    def mental_state(state: ReadinessState) -> float:
        focus = max(1.0, min(5.0, float(state.focus)))
        energy = max(1.0, min(5.0, float(state.energy)))
        return (focus + energy) / 2
