#!/usr/bin/env python3
"""Simulate a week of check-ins and completed sessions to watch the plan adapt."""

from __future__ import annotations

import random
from datetime import date, datetime, timedelta
from pathlib import Path

from study_planner.config import load_settings
from study_planner.content import load_catalog
from study_planner.learning import DailyPlan, ReadinessState
from study_planner.storage import InMemoryStore
from study_planner.system import StudyPlannerSystem

ROOT = Path(__file__).resolve().parents[1]

# Ratings for seven consecutive days: (mood, energy, focus, anxiety, sleep, weather, temperature)
WEEK = [
    (3, 3, 3, 3, 7.5, "cloudy", 21),
    (4, 4, 4, 2, 8.0, "sunny", 24),
    (2, 2, 2, 4, 5.0, "rainy", 16),
    (1, 1, 1, 5, 3.0, "rainy", 12),
    (3, 4, 3, 3, 7.0, "cloudy", 20),
    (5, 5, 5, 1, 8.5, "sunny", 23),
    (4, 3, 4, 2, 7.0, "cloudy", 19),
]


def print_plan(plan: DailyPlan) -> None:
    print(f"\n{plan.date.isoformat()}  readiness {plan.score}  {plan.strategy.label}  ({plan.load}, {plan.mode})")
    for task in plan.tasks:
        print(f"  {task.id:<28} {task.level:<12} {task.duration_minutes:>3} min")
    print(f"  total {plan.total_minutes} min, difficulty {plan.difficulty}")


def main():
    settings = load_settings(ROOT / "config" / "default.yaml")
    settings.composition.seed = 42
    repository = load_catalog(ROOT / settings.paths.content_catalog)
    system = StudyPlannerSystem(settings, repository, InMemoryStore())
    learner = random.Random(7)

    start = date(2024, 5, 6)
    for offset, (mood, energy, focus, anxiety, sleep, weather, temperature) in enumerate(WEEK):
        day = start + timedelta(days=offset)
        state = ReadinessState(day, mood, energy, focus, anxiety, sleep, weather, temperature)
        plan = system.plan_day(state)
        print_plan(plan)

        clock = datetime.combine(day, datetime.min.time()) + timedelta(hours=18)
        for task in plan.tasks:
            # grammar is this learner's weak spot
            skill = 0.55 if task.content_type == "grammar" else 0.85
            total = len(task.payload_ref)
            correct = sum(learner.random() < skill for _ in range(total))
            spent = task.duration_minutes * learner.uniform(0.8, 1.3)
            system.complete_task(task.id, day, correct, total, clock, clock + timedelta(minutes=spent))
            clock += timedelta(minutes=spent + 5)

    report = system.report()
    stats = report["stats"]
    print(f"\nSessions {stats.sessions_completed}, {stats.total_minutes:.0f} min, "
          f"accuracy {stats.average_accuracy:.0%}, streak {stats.current_streak} days")
    print(f"Weak areas: {', '.join(report['weak_areas']) or 'none'}")
    for section, lines in report["feedback"].items():
        print(f"{section}:")
        for line in lines:
            print(f"  - {line}")


if __name__ == "__main__":
    main()
