"""Tests for readiness scoring."""

from __future__ import annotations

import itertools

import pytest

from conftest import make_state
from study_planner.config.schema import ConfigurationError, ScoringConfig
from study_planner.learning.readiness import ReadinessScorer


@pytest.fixture
def scorer():
    return ReadinessScorer()


def test_peak_state_scores_at_top(scorer, peak_state):
    assert 90 <= scorer.score(peak_state) <= 100


def test_exhausted_state_scores_at_bottom(scorer, exhausted_state):
    assert 0 <= scorer.score(exhausted_state) <= 15


def test_average_state_scores_mid_range(scorer, average_state):
    assert scorer.score(average_state) == 59


def test_breakdown_exposes_intermediates(scorer, exhausted_state):
    breakdown = scorer.breakdown(exhausted_state)
    assert breakdown.sub_scores["sleep"] == pytest.approx(25.0)
    assert breakdown.sub_scores["anxiety"] == pytest.approx(0.0)
    assert breakdown.weather_multiplier == pytest.approx(0.85)
    assert breakdown.temperature_multiplier == pytest.approx(1.0)
    assert breakdown.base == pytest.approx(17.25)
    assert breakdown.score == 15


def test_score_is_idempotent(scorer, average_state):
    assert scorer.score(average_state) == scorer.score(average_state)


def test_scores_stay_in_bounds_over_grid(scorer):
    ratings = (1, 3, 5)
    for mood, energy, focus, anxiety in itertools.product(ratings, repeat=4):
        for weather in ("sunny", "cloudy", "rainy"):
            state = make_state(mood=mood, energy=energy, focus=focus, anxiety=anxiety, weather=weather)
            score = scorer.score(state)
            assert isinstance(score, int)
            assert 0 <= score <= 100


@pytest.mark.parametrize("field", ["mood", "energy", "focus"])
def test_positive_ratings_are_monotonic(scorer, field):
    scores = [scorer.score(make_state(**{field: value})) for value in range(1, 6)]
    assert scores == sorted(scores)


def test_anxiety_is_inversely_monotonic(scorer):
    scores = [scorer.score(make_state(anxiety=value)) for value in range(1, 6)]
    assert scores == sorted(scores, reverse=True)


def test_out_of_range_inputs_are_clamped(scorer):
    wild = make_state(mood=9, energy=-2, sleep_hours=30, weather="hail")
    tame = make_state(mood=5, energy=1, sleep_hours=24, weather="cloudy")
    breakdown = scorer.breakdown(wild)
    assert set(breakdown.clamped_fields) == {"mood", "energy", "sleep_hours", "weather"}
    assert breakdown.score == scorer.score(tame)


@pytest.mark.parametrize(
    "hours, expected",
    [(0, 0.0), (3, 25.0), (5, 75.0), (6, 100.0), (8, 100.0), (9, 100.0), (11, 80.0), (20, 60.0)],
)
def test_sleep_score_curve(scorer, hours, expected):
    assert scorer.sleep_score(hours) == pytest.approx(expected)


@pytest.mark.parametrize(
    "temperature, expected",
    [(22, 1.0), (18, 1.0), (28, 1.0), (17, 0.95), (29, 0.95), (14, 0.90), (31, 0.90)],
)
def test_temperature_bands(scorer, temperature, expected):
    assert scorer.temperature_multiplier(temperature) == pytest.approx(expected)


def test_sunny_weather_lifts_good_mood_more():
    assert ReadinessScorer.weather_multiplier("sunny", 4) > ReadinessScorer.weather_multiplier("sunny", 3)
    assert ReadinessScorer.weather_multiplier("rainy", 2) < ReadinessScorer.weather_multiplier("rainy", 3)


def test_bad_weights_fail_at_construction():
    config = ScoringConfig.model_construct(
        weights={"mood": 0.5, "energy": 0.5, "focus": 0.5, "anxiety": 0.0, "sleep": 0.0},
        sleep_optimal_min=6.0,
        sleep_optimal_max=9.0,
    )
    with pytest.raises(ConfigurationError):
        ReadinessScorer(config)
