from .models import (
    DailyPlan,
    ReadinessState,
    ScoreBreakdown,
    SessionResult,
    StudyBudget,
    StudyStrategy,
    Task,
    readiness_bucket,
)
from .bands import BAND_TABLE, ScoreBand
from .budget import BudgetPlanner, LoadClassifier
from .composer import Composition, CompositionRequest, TaskComposer
from .difficulty import DifficultyDecision, DifficultyResolver
from .feedback import (
    EffectivenessForecast,
    StudyStats,
    explain_plan,
    generate_feedback,
    predict_effectiveness,
    summarize_history,
)
from .personalization import PersonalizationManager
from .progress import PerformanceTracker
from .readiness import ReadinessScorer

__all__ = [
    "BAND_TABLE",
    "BudgetPlanner",
    "Composition",
    "CompositionRequest",
    "DailyPlan",
    "DifficultyDecision",
    "DifficultyResolver",
    "EffectivenessForecast",
    "LoadClassifier",
    "PerformanceTracker",
    "PersonalizationManager",
    "ReadinessScorer",
    "ReadinessState",
    "ScoreBand",
    "ScoreBreakdown",
    "SessionResult",
    "StudyBudget",
    "StudyStats",
    "StudyStrategy",
    "Task",
    "TaskComposer",
    "explain_plan",
    "generate_feedback",
    "predict_effectiveness",
    "readiness_bucket",
    "summarize_history",
]
