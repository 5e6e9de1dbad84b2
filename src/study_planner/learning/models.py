from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Literal, Optional

Weather = Literal["sunny", "cloudy", "rainy"]
LoadTag = Literal["light", "medium", "heavy"]
Difficulty = Literal["basic", "intermediate", "advanced", "expert"]
PlanMode = Literal["normal", "recovery"]


@dataclass(frozen=True)
class ReadinessState:
    """Daily check-in snapshot; one per calendar date."""

    date: date
    mood: float  # 1-5
    energy: float  # 1-5
    focus: float  # 1-5
    anxiety: float  # 1-5, higher is worse
    sleep_hours: float
    weather: str = "cloudy"
    temperature_c: float = 22.0
    note: str = ""


@dataclass(frozen=True)
class ScoreBreakdown:
    """Every intermediate value behind a readiness score."""

    sub_scores: Dict[str, float]
    base: float
    weather_multiplier: float
    temperature_multiplier: float
    score: int
    clamped_fields: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class StudyBudget:
    """Minutes available for the day; min <= recommended <= max."""

    min_minutes: int
    max_minutes: int
    recommended_minutes: int


@dataclass(frozen=True)
class StudyStrategy:
    """Display-only guidance attached to a score band."""

    label: str
    focus: str
    tips: List[str] = field(default_factory=list)


@dataclass
class Task:
    """Sized unit of study work produced by the composer."""

    id: str
    content_type: str
    level: str
    load_tag: str
    duration_minutes: int
    payload_ref: List[str] = field(default_factory=list)
    title: str = ""
    date: Optional[date] = None
    completed: bool = False
    score: Optional[float] = None


@dataclass(frozen=True)
class SessionResult:
    """Outcome of one completed task; immutable once written."""

    task_id: str
    start_time: datetime
    end_time: datetime
    correct: int
    total: int
    content_type: str
    readiness_score_at_time: int
    expected_minutes: Optional[float] = None

    @property
    def accuracy(self) -> float:
        if self.total <= 0:
            return 0.0
        return max(0.0, min(1.0, self.correct / self.total))

    @property
    def minutes_spent(self) -> float:
        return max(0.0, (self.end_time - self.start_time).total_seconds() / 60.0)


@dataclass
class DailyPlan:
    """Everything the presentation layer needs for one day of study."""

    date: date
    score: int
    budget: StudyBudget
    strategy: StudyStrategy
    load: str
    difficulty: Dict[str, str]  # content type -> level
    mode: str
    tasks: List[Task]

    @property
    def total_minutes(self) -> int:
        return sum(task.duration_minutes for task in self.tasks)


def readiness_bucket(score: float) -> int:
    """Group scores into 20-point buckets (0, 20, 40, 60, 80, 100)."""
    clamped = max(0, min(100, int(score)))
    return (clamped // 20) * 20
