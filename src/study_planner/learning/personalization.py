from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional, Sequence

from study_planner.config.schema import TrackingConfig
from study_planner.utils.logging import get_logger

logger = get_logger(__name__)


class PersonalizationManager:
    """
    Adapt the daily content mix to the learner.

    Two adjustments run before composition:

    1. **Preferences**: `avoid` drops content types outright and `preferred`
       restricts the mix to a subset. A filter that would leave nothing to plan
       is ignored and the original mix is kept.
    2. **Weak-area bias**: every weak content type gets a fixed boost added to
       its weight, then the mix is renormalized to sum to 1. Types outside the
       mix are not introduced.

    Parameters
    ----------
    config : TrackingConfig | None
        Supplies `weak_area_boost` (0.10 by default).
    """

    def __init__(self, config: Optional[TrackingConfig] = None):
        self.config = config or TrackingConfig()

    def apply_preferences(
        self,
        mix: Mapping[str, float],
        avoid: Iterable[str] = (),
        preferred: Iterable[str] = (),
    ) -> Dict[str, float]:
        avoided = set(avoid)
        wanted = set(preferred)
        filtered = {
            name: weight
            for name, weight in mix.items()
            if name not in avoided and (not wanted or name in wanted)
        }
        if sum(filtered.values()) <= 0:
            logger.warning(
                "preferences_ignored",
                avoid=sorted(avoided),
                preferred=sorted(wanted),
                reason="filter would leave an empty mix",
            )
            return dict(mix)
        return _normalize(filtered)

    def bias_mix(
        self,
        mix: Mapping[str, float],
        weak_areas: Sequence[str],
        boost: Optional[float] = None,
    ) -> Dict[str, float]:
        """Boost weak content types and renormalize the mix."""
        amount = self.config.weak_area_boost if boost is None else boost
        biased = dict(mix)
        boosted = [name for name in weak_areas if name in biased]
        for name in boosted:
            biased[name] += amount
        if boosted:
            logger.info("mix_biased", weak_areas=boosted, boost=amount)
        return _normalize(biased)


def _normalize(mix: Mapping[str, float]) -> Dict[str, float]:
    total = sum(mix.values())
    if total <= 0:
        return dict(mix)
    return {name: weight / total for name, weight in mix.items()}
