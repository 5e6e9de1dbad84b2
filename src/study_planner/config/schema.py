from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

WEIGHT_TOLERANCE = 1e-6

CONTENT_TYPES = ("vocabulary", "grammar", "listening", "reading")
DIFFICULTY_LEVELS = ("basic", "intermediate", "advanced", "expert")
LOAD_TAGS = ("light", "medium", "heavy")


class ConfigurationError(ValueError):
    """Raised when weights, band tables or settings are unusable; always fatal at startup."""


class ScoringConfig(BaseModel):
    """Weights and sleep window used by the readiness scorer."""

    weights: Dict[str, float] = Field(
        default_factory=lambda: {
            "mood": 0.25,
            "energy": 0.25,
            "focus": 0.30,
            "anxiety": 0.15,
            "sleep": 0.05,
        }
    )
    sleep_optimal_min: float = Field(6.0, ge=0, le=24)
    sleep_optimal_max: float = Field(9.0, ge=0, le=24)

    @field_validator("weights")
    @classmethod
    def weights_sum_to_one(cls, value: Dict[str, float]) -> Dict[str, float]:
        """Reject weight sets that do not cover every factor or do not sum to 1."""
        expected = {"mood", "energy", "focus", "anxiety", "sleep"}
        if set(value) != expected:
            raise ValueError(f"weights must define exactly {sorted(expected)}")
        if abs(sum(value.values()) - 1.0) > WEIGHT_TOLERANCE:
            raise ValueError("weights must sum to 1.0")
        return value


class CompositionConfig(BaseModel):
    """Task composer knobs: content mix, sizing constants and tolerance."""

    content_mix: Dict[str, float] = Field(
        default_factory=lambda: {
            "vocabulary": 0.3,
            "grammar": 0.3,
            "listening": 0.2,
            "reading": 0.2,
        }
    )
    tolerance: float = Field(0.2, gt=0, lt=1)
    minutes_per_item: Dict[str, float] = Field(
        default_factory=lambda: {
            "vocabulary": 1.5,
            "grammar": 2.0,
            "listening": 3.0,
            "reading": 4.0,
        }
    )
    difficulty_time_factor: Dict[str, float] = Field(
        default_factory=lambda: {
            "basic": 1.0,
            "intermediate": 1.2,
            "advanced": 1.4,
            "expert": 1.6,
        }
    )
    session_caps: Dict[str, int] = Field(
        default_factory=lambda: {"light": 15, "medium": 30, "heavy": 40}
    )
    recovery_threshold: int = Field(40, ge=0, le=100)
    warmup_enabled: bool = False
    warmup_minutes: int = Field(5, ge=1)
    seed: Optional[int] = Field(
        None, description="Fixed seed for reproducible plans; wall-clock time when omitted."
    )
    avoid: List[str] = Field(default_factory=list, description="Content types never planned.")
    preferred: List[str] = Field(
        default_factory=list, description="When set, only these content types are planned."
    )

    @field_validator("content_mix")
    @classmethod
    def mix_is_usable(cls, value: Dict[str, float]) -> Dict[str, float]:
        """Require known content types and at least one positive weight."""
        unknown = set(value) - set(CONTENT_TYPES)
        if unknown:
            raise ValueError(f"unknown content types in mix: {sorted(unknown)}")
        if any(weight < 0 for weight in value.values()) or sum(value.values()) <= 0:
            raise ValueError("content mix needs non-negative weights with a positive total")
        return value

    @field_validator("difficulty_time_factor")
    @classmethod
    def factors_increase_with_difficulty(cls, value: Dict[str, float]) -> Dict[str, float]:
        """Per-item time must not shrink as difficulty rises."""
        if set(value) != set(DIFFICULTY_LEVELS):
            raise ValueError(f"difficulty_time_factor must define {list(DIFFICULTY_LEVELS)}")
        ordered = [value[level] for level in DIFFICULTY_LEVELS]
        if any(later < earlier for earlier, later in zip(ordered, ordered[1:])):
            raise ValueError("difficulty_time_factor must be non-decreasing")
        return value


class DifficultyConfig(BaseModel):
    """Proficiency default and adaptive thresholds for difficulty resolution."""

    proficiency: int = Field(600, ge=0, le=990, description="Estimated 0-990 proficiency.")
    promote_threshold: float = Field(0.85, gt=0, le=1)
    demote_threshold: float = Field(0.5, ge=0, lt=1)
    low_mental_threshold: float = Field(2.5, ge=1, le=5)


class TrackingConfig(BaseModel):
    """Rolling window and weak-area cutoff for performance tracking."""

    window: int = Field(5, ge=1)
    weak_area_threshold: float = Field(0.7, ge=0, le=1)
    weak_area_boost: float = Field(0.1, ge=0, le=1)


class PathsConfig(BaseModel):
    """Filesystem layout for persisted state and the content catalog."""

    data_dir: Path = Field(Path("data/planner"))
    content_catalog: Path = Field(Path("data/content/catalog.jsonl"))


class LoggingConfig(BaseModel):
    """Controls for planner logging output and format."""

    level: str = Field("INFO")
    use_json: bool = False


class Settings(BaseModel):
    """Top-level project configuration aggregating all sub-settings."""

    project_name: str = Field("Readiness Study Planner")
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    composition: CompositionConfig = Field(default_factory=CompositionConfig)
    difficulty: DifficultyConfig = Field(default_factory=DifficultyConfig)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
