"""Canonical score band table shared by budget planning and load classification."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from study_planner.config.schema import LOAD_TAGS, ConfigurationError


@dataclass(frozen=True)
class ScoreBand:
    """One row of the band table: applies to scores >= `lower`."""

    lower: int
    min_minutes: int
    recommended_minutes: int
    max_minutes: int
    load: str
    strategy: str
    focus: str
    tips: Tuple[str, ...] = field(default_factory=tuple)


BAND_TABLE: Tuple[ScoreBand, ...] = (
    ScoreBand(
        90, 60, 180, 240, "heavy", "Deep focus",
        "Long sessions on new material across every section",
        ("Tackle the hardest section first", "Take a 10 minute break every 50 minutes",
         "Finish with a timed mini mock test"),
    ),
    ScoreBand(
        80, 45, 120, 180, "heavy", "Challenge",
        "New material plus timed practice",
        ("Push into advanced items", "Review mistakes right after each set"),
    ),
    ScoreBand(
        70, 40, 90, 150, "heavy", "Steady push",
        "Mix new items with spaced review",
        ("Alternate input and output tasks", "Keep sessions under 40 minutes"),
    ),
    ScoreBand(
        60, 30, 75, 120, "medium", "Balanced",
        "Even split between review and new material",
        ("Start with vocabulary to warm up", "Stop a set early if focus drops"),
    ),
    ScoreBand(
        50, 25, 60, 90, "medium", "Consolidate",
        "Reinforce what you already know",
        ("Prefer review over new items", "Short breaks between sets"),
    ),
    ScoreBand(
        40, 20, 45, 75, "medium", "Light review",
        "Short review sets with frequent breaks",
        ("Keep each task small enough to finish", "Audio review counts too"),
    ),
    ScoreBand(
        30, 15, 30, 60, "light", "Gentle start",
        "Low-pressure review only",
        ("Listen rather than read", "Stop whenever you feel tired"),
    ),
    ScoreBand(
        20, 10, 20, 45, "light", "Recovery",
        "Passive exposure to familiar material",
        ("Breathing exercise before starting", "One small task is enough today"),
    ),
    ScoreBand(
        0, 5, 10, 30, "light", "Rest and recover",
        "Rest first; a few minutes of familiar material at most",
        ("Prioritize sleep and rest", "Tomorrow is a new check-in"),
    ),
)


def validate_band_table(bands: Sequence[ScoreBand]) -> List[ScoreBand]:
    """
    Check that a band table is total over [0, 100] and monotonic.

    Bands must be ordered by strictly descending lower bound, end with a band
    starting at 0, keep `min <= recommended <= max` in each row, and never let
    minutes or load decrease as the score rises. Any violation is a programming
    defect and raises `ConfigurationError`.
    """
    rows = list(bands)
    if not rows:
        raise ConfigurationError("Band table is empty")
    if rows[-1].lower != 0:
        raise ConfigurationError("Band table must have a final band starting at score 0")
    if rows[0].lower > 100:
        raise ConfigurationError("Band table has a band above score 100")

    for band in rows:
        if not band.min_minutes <= band.recommended_minutes <= band.max_minutes:
            raise ConfigurationError(f"Band >= {band.lower} breaks min <= recommended <= max")
        if band.load not in LOAD_TAGS:
            raise ConfigurationError(f"Band >= {band.lower} has unknown load {band.load!r}")

    for higher, lower in zip(rows, rows[1:]):
        if higher.lower <= lower.lower:
            raise ConfigurationError("Band lower bounds must be strictly descending")
        if (
            higher.min_minutes < lower.min_minutes
            or higher.recommended_minutes < lower.recommended_minutes
            or higher.max_minutes < lower.max_minutes
        ):
            raise ConfigurationError(
                f"Band >= {higher.lower} allots fewer minutes than band >= {lower.lower}"
            )
        if LOAD_TAGS.index(higher.load) < LOAD_TAGS.index(lower.load):
            raise ConfigurationError(
                f"Band >= {higher.lower} has a lighter load than band >= {lower.lower}"
            )
    return rows


def band_for(score: float, bands: Sequence[ScoreBand] = BAND_TABLE) -> ScoreBand:
    """Return the band containing the score; out-of-range scores use the nearest band."""
    for band in bands:
        if score >= band.lower:
            return band
    return bands[-1]
