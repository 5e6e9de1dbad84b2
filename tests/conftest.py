"""Shared fixtures: check-ins, content repositories and stores."""

from __future__ import annotations

import random
from datetime import date
from typing import List

import pytest

from study_planner.config.schema import CONTENT_TYPES, DIFFICULTY_LEVELS, Settings
from study_planner.content import ContentRepository, InMemoryContentRepository
from study_planner.data_models import ContentItem
from study_planner.learning.models import ReadinessState
from study_planner.storage import InMemoryStore
from study_planner.system import StudyPlannerSystem

PLAN_DATE = date(2024, 5, 1)


def make_items(per_pool: int = 60) -> List[ContentItem]:
    return [
        ContentItem(
            item_id=f"{category}-{level}-{index:03d}",
            level=level,
            category=category,
            title=f"{category} {index}",
        )
        for level in DIFFICULTY_LEVELS
        for category in CONTENT_TYPES
        for index in range(per_pool)
    ]


class EmptyCategoryRepository(InMemoryContentRepository):
    """Full catalog except one category, which always comes back empty."""

    def __init__(self, empty_category: str):
        super().__init__(make_items())
        self.empty_category = empty_category

    def query(self, level, category, count):
        if category == self.empty_category:
            return []
        return super().query(level, category, count)


class FailingRepository(ContentRepository):
    """Raises for one category to exercise degradation."""

    def __init__(self, failing_category: str):
        self.inner = InMemoryContentRepository(make_items())
        self.failing_category = failing_category

    def query(self, level, category, count):
        if category == self.failing_category:
            raise ConnectionError("content service unavailable")
        return self.inner.query(level, category, count)


def make_state(**overrides) -> ReadinessState:
    values = dict(
        date=PLAN_DATE,
        mood=3,
        energy=3,
        focus=3,
        anxiety=3,
        sleep_hours=8,
        weather="cloudy",
        temperature_c=22,
    )
    values.update(overrides)
    return ReadinessState(**values)


@pytest.fixture
def repository():
    return InMemoryContentRepository(make_items())


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def peak_state():
    return make_state(mood=5, energy=5, focus=5, anxiety=1, sleep_hours=7, weather="sunny", temperature_c=22)


@pytest.fixture
def exhausted_state():
    return make_state(mood=1, energy=1, focus=1, anxiety=5, sleep_hours=3, weather="rainy", temperature_c=18)


@pytest.fixture
def average_state():
    return make_state()


@pytest.fixture
def system(repository, store):
    settings = Settings.model_validate({"composition": {"seed": 7}})
    return StudyPlannerSystem(settings, repository, store)
