from __future__ import annotations

import math
from typing import Dict, List, Mapping, Optional, Tuple

from study_planner.config.schema import WEIGHT_TOLERANCE, ConfigurationError, ScoringConfig
from study_planner.learning.models import ReadinessState, ScoreBreakdown
from study_planner.utils.logging import get_logger

logger = get_logger(__name__)

RATING_MIN = 1.0
RATING_MAX = 5.0
SLEEP_MAX = 24.0

# Nested comfort bands, outermost first: (low, high, multiplier when outside).
TEMPERATURE_BANDS: Tuple[Tuple[float, float, float], ...] = (
    (15.0, 30.0, 0.90),
    (18.0, 28.0, 0.95),
)

WEATHER_VALUES = ("sunny", "cloudy", "rainy")


class ReadinessScorer:
    """
    Convert a daily check-in into a single 0-100 readiness score.

    The score is a weighted sum of five sub-scores (mood, energy, focus,
    inverted anxiety and sleep), each on a 0-100 scale, followed by
    environmental multipliers for weather and temperature. The scorer is
    pure: no I/O, no randomness, and identical states always produce the
    identical score.

    Out-of-range ratings are clamped to the nearest valid bound and logged
    as a warning rather than rejected, so a malformed check-in still yields
    a plan.

    Parameters
    ----------
    config : ScoringConfig | None
        Weights and optimal sleep window. Weights must sum to 1; a bad set
        raises `ConfigurationError` here, at construction time.

    Examples
    --------
    >>> scorer = ReadinessScorer()
    >>> state = ReadinessState(date=date(2024, 5, 1), mood=3, energy=3, focus=3,
    ...                        anxiety=3, sleep_hours=8, weather="cloudy", temperature_c=22)
    >>> scorer.score(state)
    59
    """

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()
        self.weights = self._validate_weights(self.config.weights)

    @staticmethod
    def _validate_weights(weights: Mapping[str, float]) -> Dict[str, float]:
        expected = {"mood", "energy", "focus", "anxiety", "sleep"}
        if set(weights) != expected:
            raise ConfigurationError(f"Scoring weights must define exactly {sorted(expected)}")
        if any(weight < 0 for weight in weights.values()):
            raise ConfigurationError("Scoring weights must be non-negative")
        total = sum(weights.values())
        if abs(total - 1.0) > WEIGHT_TOLERANCE:
            raise ConfigurationError(f"Scoring weights must sum to 1.0, got {total:.6f}")
        return dict(weights)

    def score(self, state: ReadinessState) -> int:
        """Return the integer readiness score for a state."""
        return self.breakdown(state).score

    def breakdown(self, state: ReadinessState) -> ScoreBreakdown:
        """Compute the score and expose every intermediate value."""
        clamped: List[str] = []
        mood = self._clamp_field("mood", state.mood, RATING_MIN, RATING_MAX, clamped)
        energy = self._clamp_field("energy", state.energy, RATING_MIN, RATING_MAX, clamped)
        focus = self._clamp_field("focus", state.focus, RATING_MIN, RATING_MAX, clamped)
        anxiety = self._clamp_field("anxiety", state.anxiety, RATING_MIN, RATING_MAX, clamped)
        sleep = self._clamp_field("sleep_hours", state.sleep_hours, 0.0, SLEEP_MAX, clamped)

        weather = state.weather
        if weather not in WEATHER_VALUES:
            logger.warning("readiness_field_clamped", field="weather", value=weather, used="cloudy")
            clamped.append("weather")
            weather = "cloudy"

        sub_scores = {
            "mood": mood / 5 * 100,
            "energy": energy / 5 * 100,
            "focus": focus / 5 * 100,
            "anxiety": (5 - anxiety) / 5 * 100,
            "sleep": self.sleep_score(sleep),
        }
        base = sum(sub_scores[name] * weight for name, weight in self.weights.items())

        weather_multiplier = self.weather_multiplier(weather, mood)
        temperature_multiplier = self.temperature_multiplier(state.temperature_c)

        raw = base * weather_multiplier * temperature_multiplier
        final = int(math.floor(max(0.0, min(100.0, raw)) + 0.5))

        return ScoreBreakdown(
            sub_scores=sub_scores,
            base=base,
            weather_multiplier=weather_multiplier,
            temperature_multiplier=temperature_multiplier,
            score=final,
            clamped_fields=clamped,
        )

    def sleep_score(self, hours: float) -> float:
        """
        Score sleep duration on a 0-100 scale.

        Inside the optimal window the score is 100. Short sleep loses 25 points
        per missing hour down to 0; long sleep loses 10 points per extra hour
        but never drops below 60.
        """
        low = self.config.sleep_optimal_min
        high = self.config.sleep_optimal_max
        if hours < low:
            return max(0.0, 100.0 - (low - hours) * 25.0)
        if hours > high:
            return max(60.0, 100.0 - (hours - high) * 10.0)
        return 100.0

    @staticmethod
    def weather_multiplier(weather: str, mood: float) -> float:
        """Sunny days lift good moods further; rain weighs harder on low moods."""
        if weather == "sunny":
            return 1.10 if mood >= 4 else 1.05
        if weather == "rainy":
            return 0.85 if mood <= 2 else 0.95
        return 1.0

    @staticmethod
    def temperature_multiplier(temperature_c: float) -> float:
        """Apply the harshest penalty among the nested comfort bands the temperature falls outside."""
        for low, high, multiplier in TEMPERATURE_BANDS:
            if temperature_c < low or temperature_c > high:
                return multiplier
        return 1.0

    @staticmethod
    def _clamp_field(name: str, value: float, low: float, high: float, clamped: List[str]) -> float:
        bounded = max(low, min(high, float(value)))
        if bounded != value:
            logger.warning("readiness_field_clamped", field=name, value=value, used=bounded)
            clamped.append(name)
        return bounded
