from __future__ import annotations

import random
import threading
import time
from datetime import date, datetime
from pathlib import Path
from typing import Dict, List, Optional

import structlog

from study_planner.config import Settings, load_settings
from study_planner.config.schema import CONTENT_TYPES
from study_planner.content import ContentRepository, load_catalog
from study_planner.learning import (
    BudgetPlanner,
    CompositionRequest,
    DailyPlan,
    DifficultyResolver,
    EffectivenessForecast,
    LoadClassifier,
    PerformanceTracker,
    PersonalizationManager,
    ReadinessScorer,
    ReadinessState,
    SessionResult,
    StudyStats,
    TaskComposer,
    explain_plan,
    generate_feedback,
    predict_effectiveness,
    readiness_bucket,
    summarize_history,
)
from study_planner.storage import JsonFileStore, PersistentStore
from study_planner.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)


class StudyPlannerSystem:
    """
    Facade wiring scoring, budgeting, difficulty, composition and tracking together.

    One call to `plan_day` runs the whole daily pipeline:

    check-in -> readiness score -> budget, load tag and strategy ->
    per-type difficulty (from rolling performance) -> personalized mix ->
    composed tasks -> persisted plan.

    Completing a task with `complete_task` writes a SessionResult, which feeds
    the performance history the next plan reads from.

    Attributes
    ----------
    settings : Settings
        Validated configuration tree.
    repository : ContentRepository
        Source of study items.
    store : PersistentStore
        Persistence for check-ins, tasks and session history.
    scorer, budget_planner, load_classifier, resolver, tracker, personalizer, composer
        The pipeline components, exposed for inspection and tests.
    """

    def __init__(
        self,
        settings: Settings,
        repository: ContentRepository,
        store: PersistentStore,
        rng: Optional[random.Random] = None,
    ):
        self.settings = settings
        self.repository = repository
        self.store = store

        # Fatal configuration problems surface here, before any plan is made.
        self.scorer = ReadinessScorer(settings.scoring)
        self.budget_planner = BudgetPlanner()
        self.load_classifier = LoadClassifier()
        self.resolver = DifficultyResolver(settings.difficulty)
        self.tracker = PerformanceTracker(store, settings.tracking)
        self.personalizer = PersonalizationManager(settings.tracking)

        if rng is None:
            seed = settings.composition.seed
            rng = random.Random(seed if seed is not None else time.time_ns())
        self.composer = TaskComposer(repository, settings.composition, rng=rng)
        self._lock = threading.RLock()

    @classmethod
    def from_config(cls, config_path: Optional[Path] = None) -> "StudyPlannerSystem":
        """Build the system from a YAML config, the JSONL catalog and a JSON file store."""
        settings = load_settings(config_path)
        configure_logging(settings.logging.level, settings.logging.use_json)
        repository = load_catalog(settings.paths.content_catalog)
        if len(repository) == 0:
            logger.warning("content_catalog_empty", path=str(settings.paths.content_catalog))
        store = JsonFileStore(settings.paths.data_dir)
        return cls(settings, repository, store)

    def plan_day(self, state: ReadinessState, warmup: Optional[bool] = None) -> DailyPlan:
        """Score a check-in, compose the day's tasks and persist both."""
        self.store.save_state(state)

        score = self.scorer.score(state)
        budget = self.budget_planner.budget(score)
        strategy = self.budget_planner.strategy(score)
        load = self.load_classifier.classify(score)
        difficulty = self.resolve_difficulty(state, score)

        weak_areas = self.tracker.identify_weak_areas(self.tracker.recent_sessions())
        composition_config = self.settings.composition
        mix = self.personalizer.apply_preferences(
            composition_config.content_mix,
            avoid=composition_config.avoid,
            preferred=composition_config.preferred,
        )
        mix = self.personalizer.bias_mix(mix, weak_areas)

        with self._lock, structlog.contextvars.bound_contextvars(plan_date=state.date.isoformat()):
            # earlier tasks for the date stay stored; new ids continue after them
            existing = self.store.load_tasks(state.date)
            composition = self.composer.compose(
                CompositionRequest(
                    target_minutes=budget.recommended_minutes,
                    difficulty=difficulty,
                    load=load,
                    score=score,
                    plan_date=state.date,
                    mix=mix,
                    warmup=warmup,
                    first_index=len(existing) + 1,
                )
            )
            for task in composition.tasks:
                self.store.save_task(task)

        plan = DailyPlan(
            date=state.date,
            score=score,
            budget=budget,
            strategy=strategy,
            load=load,
            difficulty=difficulty,
            mode=composition.mode,
            tasks=composition.tasks,
        )
        logger.info(
            "daily_plan_created",
            date=state.date.isoformat(),
            score=score,
            load=load,
            mode=plan.mode,
            total_minutes=plan.total_minutes,
            weak_areas=weak_areas,
        )
        return plan

    def plan_for_date(self, day: date, warmup: Optional[bool] = None) -> DailyPlan:
        """Re-plan a date from its stored check-in."""
        state = self.store.load_state(day)
        if state is None:
            raise LookupError(f"No check-in stored for {day.isoformat()}")
        return self.plan_day(state, warmup=warmup)

    def resolve_difficulty(self, state: ReadinessState, score: int) -> Dict[str, str]:
        """Resolve one difficulty level per content type from that type's rolling efficiency."""
        bucket = readiness_bucket(score)
        proficiency = self.settings.difficulty.proficiency
        return {
            content_type: self.resolver.resolve(
                proficiency, self.tracker.query(content_type, bucket), state
            ).level
            for content_type in CONTENT_TYPES
        }

    def complete_task(
        self,
        task_id: str,
        day: date,
        correct: int,
        total: int,
        start: datetime,
        end: datetime,
    ) -> SessionResult:
        """
        Mark a planned task complete and record its outcome.

        Raises
        ------
        LookupError
            If the task or the check-in for `day` is not stored.
        ValueError
            If the counts or the time range are inconsistent.
        """
        if total < 0 or correct < 0 or correct > total:
            raise ValueError(f"Invalid result counts: {correct}/{total}")
        if end < start:
            raise ValueError("Session end time precedes its start time")

        # completions of one day share its task file; the whole update runs under the lock
        with self._lock:
            task = next((task for task in self.store.load_tasks(day) if task.id == task_id), None)
            if task is None:
                raise LookupError(f"Task {task_id} is not planned for {day.isoformat()}")
            state = self.store.load_state(day)
            if state is None:
                raise LookupError(f"No check-in stored for {day.isoformat()}")

            result = SessionResult(
                task_id=task.id,
                start_time=start,
                end_time=end,
                correct=correct,
                total=total,
                content_type=task.content_type,
                readiness_score_at_time=self.scorer.score(state),
                expected_minutes=float(task.duration_minutes),
            )
            self.tracker.record_session(result)
            self.store.update_task(
                day, task.id, completed=True, score=result.accuracy if total > 0 else None
            )
        return result

    def forecast(self, plan: DailyPlan, hour: int) -> Dict[str, EffectivenessForecast]:
        """Expected effectiveness of each study type in a plan if started at `hour`."""
        planned = [name for name in CONTENT_TYPES if any(task.content_type == name for task in plan.tasks)]
        return {name: predict_effectiveness(plan.score, name, hour) for name in planned}

    def explain(self, plan: DailyPlan) -> List[str]:
        return explain_plan(plan)

    def stats(self) -> StudyStats:
        return summarize_history(self.tracker.recent_sessions())

    def report(self) -> Dict[str, object]:
        """Stats, weak areas and feedback text in one mapping for display."""
        sessions = self.tracker.recent_sessions()
        stats = summarize_history(sessions)
        weak_areas: List[str] = self.tracker.identify_weak_areas(sessions)
        return {
            "stats": stats,
            "weak_areas": weak_areas,
            "feedback": generate_feedback(stats, weak_areas),
            "best_hours": {name: self.tracker.best_study_hour(name) for name in CONTENT_TYPES},
        }
