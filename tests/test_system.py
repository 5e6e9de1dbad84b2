"""End-to-end tests for the planner facade and CLI."""

from __future__ import annotations

import json
import threading
from datetime import date, datetime, timedelta

import pytest
from typer.testing import CliRunner

from conftest import PLAN_DATE, make_state
from study_planner.cli import app
from study_planner.config import Settings
from study_planner.storage import InMemoryStore, JsonFileStore
from study_planner.system import StudyPlannerSystem

EVENING = datetime(2024, 5, 1, 19, 0)


def test_plan_day_builds_and_persists_a_plan(system, store, peak_state):
    plan = system.plan_day(peak_state)
    assert plan.score == 100
    assert plan.load == "heavy"
    assert plan.budget.recommended_minutes == 180
    assert plan.mode == "normal"
    assert plan.difficulty == {
        "vocabulary": "intermediate",
        "grammar": "intermediate",
        "listening": "intermediate",
        "reading": "intermediate",
    }
    assert 144 <= plan.total_minutes <= 216
    assert store.load_state(PLAN_DATE) == peak_state
    assert [task.id for task in store.load_tasks(PLAN_DATE)] == [task.id for task in plan.tasks]


def test_low_readiness_plan_is_recovery(system, exhausted_state):
    plan = system.plan_day(exhausted_state)
    assert plan.mode == "recovery"
    assert plan.total_minutes <= 15
    assert plan.strategy.label == "Rest and recover"


def test_replanning_keeps_completed_tasks(system, store, average_state):
    first = system.plan_day(average_state)
    done = first.tasks[0]
    system.complete_task(done.id, PLAN_DATE, 9, 10, EVENING, EVENING + timedelta(minutes=10))

    second = system.plan_for_date(PLAN_DATE)
    stored = store.load_tasks(PLAN_DATE)
    stored_ids = [task.id for task in stored]

    assert next(task for task in stored if task.id == done.id).completed
    assert not {task.id for task in first.tasks} & {task.id for task in second.tasks}
    assert len(set(stored_ids)) == len(stored_ids)
    assert stored_ids == [task.id for task in first.tasks] + [task.id for task in second.tasks]
    assert second.tasks[0].id.startswith(f"2024-05-01-{len(first.tasks) + 1:02d}-")


def test_plan_for_date_requires_a_stored_check_in(system, average_state):
    with pytest.raises(LookupError):
        system.plan_for_date(PLAN_DATE)
    system.plan_day(average_state)
    assert system.plan_for_date(PLAN_DATE).score == 59


def test_complete_task_records_history(system, store, average_state):
    plan = system.plan_day(average_state)
    task = plan.tasks[0]
    result = system.complete_task(task.id, PLAN_DATE, 9, 10, EVENING, EVENING + timedelta(minutes=10))

    assert result.content_type == task.content_type
    assert result.readiness_score_at_time == 59
    assert result.expected_minutes == task.duration_minutes
    assert store.load_results() == [result]
    stored = next(item for item in store.load_tasks(PLAN_DATE) if item.id == task.id)
    assert stored.completed
    assert stored.score == pytest.approx(0.9)


def test_complete_task_rejects_bad_input(system, average_state):
    plan = system.plan_day(average_state)
    task_id = plan.tasks[0].id
    with pytest.raises(LookupError):
        system.complete_task("missing", PLAN_DATE, 1, 1, EVENING, EVENING)
    with pytest.raises(ValueError):
        system.complete_task(task_id, PLAN_DATE, 5, 3, EVENING, EVENING)
    with pytest.raises(ValueError):
        system.complete_task(task_id, PLAN_DATE, 1, 1, EVENING, EVENING - timedelta(minutes=1))


def test_strong_history_promotes_difficulty(system, average_state):
    plan = system.plan_day(average_state)
    grammar = next(task for task in plan.tasks if task.content_type == "grammar")
    for offset in range(3):
        start = EVENING + timedelta(hours=offset)
        system.complete_task(grammar.id, PLAN_DATE, 10, 10, start, start + timedelta(minutes=5))

    replanned = system.plan_for_date(PLAN_DATE)
    assert replanned.difficulty["grammar"] == "advanced"
    assert replanned.difficulty["reading"] == "intermediate"


def test_weak_area_gets_more_time(repository, average_state):
    baseline = StudyPlannerSystem(Settings.model_validate({"composition": {"seed": 3}}), repository, InMemoryStore())
    before = baseline.plan_day(average_state)

    system = StudyPlannerSystem(Settings.model_validate({"composition": {"seed": 3}}), repository, InMemoryStore())
    plan = system.plan_day(average_state)
    reading = next(task for task in plan.tasks if task.content_type == "reading")
    system.complete_task(reading.id, PLAN_DATE, 3, 10, EVENING, EVENING + timedelta(minutes=reading.duration_minutes))
    after = system.plan_for_date(PLAN_DATE)

    def reading_minutes(daily):
        return sum(task.duration_minutes for task in daily.tasks if task.content_type == "reading")

    assert reading_minutes(after) >= reading_minutes(before)
    assert system.report()["weak_areas"] == ["reading"]


def test_avoided_types_are_never_planned(repository, average_state):
    settings = Settings.model_validate({"composition": {"seed": 1, "avoid": ["listening"]}})
    plan = StudyPlannerSystem(settings, repository, InMemoryStore()).plan_day(average_state)
    assert "listening" not in {task.content_type for task in plan.tasks}


def test_stats_and_report(system, average_state):
    plan = system.plan_day(average_state)
    for task in plan.tasks[:2]:
        system.complete_task(task.id, PLAN_DATE, 8, 10, EVENING, EVENING + timedelta(minutes=15))
    stats = system.stats()
    assert stats.sessions_completed == 2
    assert stats.total_minutes == pytest.approx(30)
    report = system.report()
    assert report["stats"] == stats
    assert report["weak_areas"] == []


def test_concurrent_completions_keep_every_update(repository, peak_state, tmp_path):
    settings = Settings.model_validate({"composition": {"seed": 5}})
    system = StudyPlannerSystem(settings, repository, JsonFileStore(tmp_path))
    plan = system.plan_day(peak_state)
    barrier = threading.Barrier(len(plan.tasks))

    def complete(task):
        barrier.wait()
        system.complete_task(task.id, PLAN_DATE, 7, 10, EVENING, EVENING + timedelta(minutes=20))

    threads = [threading.Thread(target=complete, args=(task,)) for task in plan.tasks]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    stored = system.store.load_tasks(PLAN_DATE)
    assert len(stored) == len(plan.tasks)
    assert all(task.completed for task in stored)
    assert len(system.store.load_results()) == len(plan.tasks)


def test_avoided_types_stay_out_of_recovery_plans(repository):
    settings = Settings.model_validate({"composition": {"seed": 1, "avoid": ["listening"]}})
    state = make_state(mood=2, energy=2, focus=2, anxiety=4, weather="rainy")
    plan = StudyPlannerSystem(settings, repository, InMemoryStore()).plan_day(state)

    assert plan.score == 34
    assert plan.mode == "recovery"
    assert [task.content_type for task in plan.tasks] == ["recovery", "vocabulary"]


def test_explain_and_forecast_describe_the_plan(system, average_state):
    plan = system.plan_day(average_state)
    lines = system.explain(plan)
    assert lines[0].startswith("Light readiness (score 59)")
    assert lines[-1] == f"{len(plan.tasks)} tasks, {plan.total_minutes} min in total."

    forecast = system.forecast(plan, hour=8)
    assert set(forecast) == {task.content_type for task in plan.tasks}
    assert all(item.effectiveness == 74 for item in forecast.values())


def test_report_names_the_best_study_hour(system, average_state):
    plan = system.plan_day(average_state)
    task = plan.tasks[0]
    morning = datetime(2024, 5, 1, 8, 0)
    system.complete_task(task.id, PLAN_DATE, 10, 10, morning, morning + timedelta(minutes=5))
    system.complete_task(task.id, PLAN_DATE, 4, 10, EVENING, EVENING + timedelta(minutes=5))

    best = system.report()["best_hours"]
    assert best[task.content_type] == 8
    assert all(hour is None for name, hour in best.items() if name != task.content_type)


@pytest.fixture
def cli_config(tmp_path, monkeypatch):
    monkeypatch.delenv("STUDY_PLANNER_CONFIG_OVERRIDES", raising=False)
    catalog = tmp_path / "catalog.jsonl"
    with catalog.open("w", encoding="utf-8") as handle:
        for category in ("vocabulary", "grammar", "listening", "reading"):
            for index in range(30):
                handle.write(json.dumps({
                    "item_id": f"{category}-{index}",
                    "level": "intermediate",
                    "category": category,
                }))
                handle.write("\n")
    config = tmp_path / "config.yaml"
    config.write_text(
        "composition:\n  seed: 11\n"
        f"paths:\n  data_dir: {tmp_path / 'planner'}\n  content_catalog: {catalog}\n",
        encoding="utf-8",
    )
    return config


def test_cli_plan_record_stats(cli_config, tmp_path):
    runner = CliRunner()
    planned = runner.invoke(app, ["plan", "--date", "2024-05-01", "--config", str(cli_config)])
    assert planned.exit_code == 0, planned.output
    assert "Readiness 59" in planned.output
    assert "Light readiness (score 59)" in planned.output
    assert "expected at" in planned.output

    tasks = json.loads((tmp_path / "planner" / "tasks" / "2024-05-01.json").read_text(encoding="utf-8"))
    task_id = next(iter(tasks))
    recorded = runner.invoke(
        app, ["record", task_id, "8", "10", "--minutes", "12", "--date", "2024-05-01", "--config", str(cli_config)]
    )
    assert recorded.exit_code == 0, recorded.output
    assert "8/10" in recorded.output

    summary = runner.invoke(app, ["stats", "--config", str(cli_config)])
    assert summary.exit_code == 0, summary.output
    assert "Sessions" in summary.output


def test_cli_reports_unknown_task(cli_config):
    runner = CliRunner()
    result = runner.invoke(
        app, ["record", "nope", "1", "1", "--minutes", "5", "--date", date(2024, 5, 1).isoformat(),
              "--config", str(cli_config)]
    )
    assert result.exit_code == 1
