"""Tests for mix personalization and study feedback."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from study_planner.learning.feedback import (
    StudyStats,
    explain_plan,
    generate_feedback,
    predict_effectiveness,
    summarize_history,
)
from study_planner.learning.models import SessionResult
from study_planner.learning.personalization import PersonalizationManager

MIX = {"vocabulary": 0.3, "grammar": 0.3, "listening": 0.2, "reading": 0.2}


def session(day, content_type="grammar", correct=8, total=10, minutes=20):
    start = datetime(2024, 5, day, 19, 0)
    return SessionResult(
        task_id=f"2024-05-{day:02d}-01-{content_type}",
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        correct=correct,
        total=total,
        content_type=content_type,
        readiness_score_at_time=60,
    )


@pytest.fixture
def manager():
    return PersonalizationManager()


def test_bias_mix_boosts_weak_areas(manager):
    biased = manager.bias_mix(MIX, ["listening"])
    assert sum(biased.values()) == pytest.approx(1.0)
    assert biased["listening"] == pytest.approx(0.3 / 1.1)
    assert biased["listening"] > MIX["listening"]
    assert biased["grammar"] < MIX["grammar"]


def test_bias_mix_without_weak_areas_keeps_proportions(manager):
    assert manager.bias_mix(MIX, []) == pytest.approx(MIX)


def test_bias_mix_ignores_types_outside_the_mix(manager):
    biased = manager.bias_mix({"grammar": 1.0}, ["reading"])
    assert biased == {"grammar": pytest.approx(1.0)}


def test_avoided_types_are_removed(manager):
    filtered = manager.apply_preferences(MIX, avoid=["reading"])
    assert "reading" not in filtered
    assert sum(filtered.values()) == pytest.approx(1.0)


def test_preferred_types_restrict_the_mix(manager):
    filtered = manager.apply_preferences(MIX, preferred=["grammar", "listening"])
    assert filtered == {"grammar": pytest.approx(0.6), "listening": pytest.approx(0.4)}


def test_filter_that_empties_the_mix_is_ignored(manager):
    assert manager.apply_preferences(MIX, avoid=["grammar"], preferred=["grammar"]) == MIX


def test_summarize_history_computes_kpis():
    results = [
        session(1, "grammar", correct=6),
        session(3, "grammar", correct=8),
        session(4, "reading", correct=10),
        session(5, "recovery", correct=0, total=0, minutes=5),
    ]
    stats = summarize_history(results)
    assert stats.sessions_completed == 4
    assert stats.total_minutes == pytest.approx(65)
    assert stats.average_accuracy == pytest.approx(0.8)
    assert stats.consistency_days == 4
    assert stats.current_streak == 3
    assert stats.accuracy_by_type == {"grammar": pytest.approx(0.7), "reading": pytest.approx(1.0)}


def test_empty_history_has_zero_stats():
    assert summarize_history([]) == StudyStats()


def test_feedback_names_weak_areas_and_strengths():
    stats = summarize_history([session(1, "grammar", correct=5), session(2, "reading", correct=10)])
    feedback = generate_feedback(stats, ["grammar"])
    assert set(feedback) == {"strengths", "focus_areas", "next_steps"}
    assert any("Reading" in line for line in feedback["strengths"])
    assert any("Grammar" in line for line in feedback["focus_areas"])
    assert any("grammar" in line for line in feedback["next_steps"])


def test_feedback_without_history_prompts_a_first_session():
    feedback = generate_feedback(StudyStats(), [])
    assert feedback["next_steps"] == ["Complete your first planned task to start tracking progress."]


@pytest.mark.parametrize(
    "score, content_type, hour, expected",
    [
        (40, "vocabulary", 12, 50),
        (40, "reading", 21, 20),
        (90, "reading", 8, 100),
        (60, "listening", 15, 70),
        (5, "reading", 23, 0),
    ],
)
def test_predict_effectiveness(score, content_type, hour, expected):
    assert predict_effectiveness(score, content_type, hour).effectiveness == expected


def test_low_readiness_forecast_carries_advice():
    vocabulary = predict_effectiveness(40, "vocabulary", 8)
    assert vocabulary.recommendation == "Short focused vocabulary bursts work well today. Use your morning focus."
    reading = predict_effectiveness(40, "reading", 21)
    assert reading.adjustments == [
        "Start with short passages",
        "Relax the time limit",
        "Study somewhere relaxing",
        "Consider moving this to tomorrow morning",
    ]
    assert predict_effectiveness(70, "reading", 12).adjustments == []


def test_explain_plan_for_recovery_and_peak_days(system, exhausted_state, peak_state):
    recovery = explain_plan(system.plan_day(exhausted_state))
    assert recovery[0].startswith("Recovery mode (score ")
    assert recovery[0].endswith("only short, passive, low-load tasks.")
    assert recovery[-1].startswith("2 tasks")

    peak = system.plan_day(peak_state)
    lines = explain_plan(peak)
    assert lines[0].startswith("High readiness (score 100)")
    assert lines[1] == "Budget 60-240 min, aiming for 180; heavy load."
    assert lines[2] == (
        "Difficulty by type: grammar intermediate, listening intermediate, "
        "reading intermediate, vocabulary intermediate."
    )
