from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Dict, List, Sequence

from study_planner.learning.models import DailyPlan, SessionResult


@dataclass(frozen=True)
class StudyStats:
    """Headline KPIs over a session history."""

    total_minutes: float = 0.0
    sessions_completed: int = 0
    average_accuracy: float = 0.0
    consistency_days: int = 0
    current_streak: int = 0
    accuracy_by_type: Dict[str, float] = field(default_factory=dict)


def summarize_history(results: Sequence[SessionResult]) -> StudyStats:
    """
    Aggregate session results into StudyStats.

    Accuracy figures only count graded sessions (total > 0). The streak is the
    run of consecutive calendar days that ends on the day of the latest session.
    """
    if not results:
        return StudyStats()

    graded = [result for result in results if result.total > 0]
    by_type: Dict[str, List[float]] = defaultdict(list)
    for result in graded:
        by_type[result.content_type].append(result.accuracy)

    days = sorted({result.end_time.date() for result in results}, reverse=True)
    streak = 1
    for later, earlier in zip(days, days[1:]):
        if later - earlier != timedelta(days=1):
            break
        streak += 1

    return StudyStats(
        total_minutes=round(sum(result.minutes_spent for result in results), 1),
        sessions_completed=len(results),
        average_accuracy=(
            sum(result.accuracy for result in graded) / len(graded) if graded else 0.0
        ),
        consistency_days=len(days),
        current_streak=streak,
        accuracy_by_type={
            name: sum(values) / len(values) for name, values in sorted(by_type.items())
        },
    )


def generate_feedback(stats: StudyStats, weak_areas: Sequence[str]) -> Dict[str, List[str]]:
    """Summarize strengths, focus areas, and suggested next steps from study stats."""
    weak = set(weak_areas)
    strongest = sorted(
        ((name, accuracy) for name, accuracy in stats.accuracy_by_type.items() if name not in weak),
        key=lambda item: item[1],
        reverse=True,
    )

    feedback: Dict[str, List[str]] = {
        "strengths": [
            f"{name.capitalize()} is going well ({accuracy:.0%} recent accuracy)."
            for name, accuracy in strongest[:3]
        ]
        or ["Not enough graded sessions yet to highlight strengths."],
        "focus_areas": [
            f"{name.capitalize()} is below target; it gets a larger share of upcoming plans."
            for name in weak_areas
        ]
        or ["No weak areas right now. Keep the current mix."],
        "next_steps": [],
    }

    if stats.sessions_completed == 0:
        feedback["next_steps"].append("Complete your first planned task to start tracking progress.")
        return feedback
    if stats.current_streak >= 3:
        feedback["next_steps"].append(
            f"You are on a {stats.current_streak}-day streak. A short session keeps it going."
        )
    else:
        feedback["next_steps"].append("Aim for a short session every day to build a streak.")
    if weak_areas:
        feedback["next_steps"].append(
            f"Start tomorrow with {weak_areas[0]} while your focus is fresh."
        )
    return feedback


# Effectiveness shift per content type on low-readiness days (score below 50).
LOW_READINESS_TYPE_SHIFT = {
    "vocabulary": 10,
    "grammar": 5,
    "listening": -5,
    "reading": -10,
}
LOW_READINESS_SCORE = 50


@dataclass(frozen=True)
class EffectivenessForecast:
    """Expected effectiveness (0-100) of one content type at a given score and hour."""

    content_type: str
    effectiveness: int
    recommendation: str
    adjustments: List[str] = field(default_factory=list)


def predict_effectiveness(score: int, content_type: str, hour: int) -> EffectivenessForecast:
    """
    Forecast how well a content type will go given readiness and time of day.

    Starts from the readiness score. On low-readiness days short, structured
    work (vocabulary, grammar) holds up better than sustained listening or
    reading. Mornings (6-10h) add 15, early afternoon (14-16h) adds 10, and
    late evening (from 20h) costs 10.
    """
    effectiveness = score
    recommendation = ""
    adjustments: List[str] = []

    if score < LOW_READINESS_SCORE:
        effectiveness += LOW_READINESS_TYPE_SHIFT.get(content_type, 0)
        if content_type == "vocabulary":
            recommendation = "Short focused vocabulary bursts work well today."
        elif content_type == "listening":
            adjustments += ["Lower the playback volume", "Take more breaks"]
        elif content_type == "reading":
            adjustments += ["Start with short passages", "Relax the time limit"]

    if 6 <= hour <= 10:
        effectiveness += 15
        recommendation = (recommendation + " Use your morning focus.").strip()
    elif 14 <= hour <= 16:
        effectiveness += 10
    elif hour >= 20:
        effectiveness -= 10
        adjustments += ["Study somewhere relaxing", "Consider moving this to tomorrow morning"]

    return EffectivenessForecast(
        content_type=content_type,
        effectiveness=max(0, min(100, effectiveness)),
        recommendation=recommendation,
        adjustments=adjustments,
    )


def explain_plan(plan: DailyPlan) -> List[str]:
    """Plain-language reasons for how a daily plan was built."""
    if plan.mode == "recovery":
        headline = f"Recovery mode (score {plan.score}): only short, passive, low-load tasks."
    elif plan.score >= 80:
        headline = f"High readiness (score {plan.score}): long sessions with harder material."
    elif plan.score >= 60:
        headline = f"Steady readiness (score {plan.score}): a balanced mix of review and new items."
    else:
        headline = f"Light readiness (score {plan.score}): mostly review in short sets."

    lines = [
        headline,
        f"Budget {plan.budget.min_minutes}-{plan.budget.max_minutes} min, aiming for "
        f"{plan.budget.recommended_minutes}; {plan.load} load.",
    ]
    planned = sorted({task.content_type for task in plan.tasks if task.content_type in plan.difficulty})
    if planned:
        levels = ", ".join(f"{name} {plan.difficulty[name]}" for name in planned)
        lines.append(f"Difficulty by type: {levels}.")
    lines.append(f"{len(plan.tasks)} tasks, {plan.total_minutes} min in total.")
    return lines
