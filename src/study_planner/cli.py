from __future__ import annotations

from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from study_planner.config import ConfigurationError
from study_planner.learning import ReadinessState
from study_planner.system import StudyPlannerSystem

app = typer.Typer(help="Readiness-adaptive study planner: daily check-in in, sized study plan out.")
console = Console()

load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)


def _load_system(config: Optional[Path]) -> StudyPlannerSystem:
    """Instantiate `StudyPlannerSystem`, turning configuration faults into a clean CLI error."""
    try:
        return StudyPlannerSystem.from_config(config)
    except ConfigurationError as exc:
        console.print(f"[red]Configuration error:[/red] {exc}")
        raise typer.Exit(code=2) from exc


def _parse_date(value: Optional[str]) -> date:
    if not value:
        return date.today()
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got {value!r}") from exc


@app.command()
def plan(
    mood: float = typer.Option(3, help="Mood rating, 1-5."),
    energy: float = typer.Option(3, help="Energy rating, 1-5."),
    focus: float = typer.Option(3, help="Focus rating, 1-5."),
    anxiety: float = typer.Option(3, help="Anxiety rating, 1-5 (higher is worse)."),
    sleep: float = typer.Option(7.5, help="Hours slept last night."),
    weather: str = typer.Option("cloudy", help="sunny, cloudy or rainy."),
    temperature: float = typer.Option(22.0, help="Outside temperature in Celsius."),
    day: Optional[str] = typer.Option(None, "--date", help="Plan date (YYYY-MM-DD); today by default."),
    warmup: Optional[bool] = typer.Option(None, "--warmup/--no-warmup", help="Prepend a working-memory warm-up."),
    note: str = typer.Option("", help="Free-text note stored with the check-in."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """
    Record today's check-in and print the resulting study plan.

    Scores the check-in, resolves budget, load and difficulty, composes tasks from the
    content catalog and persists everything through `StudyPlannerSystem.plan_day`.
    """
    system = _load_system(config)
    state = ReadinessState(
        date=_parse_date(day),
        mood=mood,
        energy=energy,
        focus=focus,
        anxiety=anxiety,
        sleep_hours=sleep,
        weather=weather,
        temperature_c=temperature,
        note=note,
    )
    daily = system.plan_day(state, warmup=warmup)

    console.print(
        f"[bold]Readiness {daily.score}[/bold] | {daily.strategy.label} | load {daily.load} | "
        f"budget {daily.budget.min_minutes}-{daily.budget.max_minutes} min "
        f"(recommended {daily.budget.recommended_minutes})"
    )
    console.print(daily.strategy.focus)
    if daily.mode == "recovery":
        console.print("[yellow]Recovery mode: short, low-load tasks only.[/yellow]")

    table = Table(title=f"Plan for {daily.date.isoformat()}")
    table.add_column("Task id")
    table.add_column("Type")
    table.add_column("Level")
    table.add_column("Minutes", justify="right")
    table.add_column("Items", justify="right")
    for task in daily.tasks:
        table.add_row(task.id, task.content_type, task.level, str(task.duration_minutes), str(len(task.payload_ref)))
    console.print(table)
    console.print(f"Total: {daily.total_minutes} min")
    for tip in daily.strategy.tips:
        console.print(f"- {tip}")

    console.print("\n[bold]Why this plan[/bold]")
    for line in system.explain(daily):
        console.print(f"- {line}")
    hour = datetime.now().hour
    for content_type, forecast in system.forecast(daily, hour).items():
        line = f"{content_type}: {forecast.effectiveness}% expected at {hour:02d}:00"
        if forecast.recommendation:
            line += f". {forecast.recommendation}"
        if forecast.adjustments:
            line += f" ({', '.join(forecast.adjustments)})"
        console.print(line)


@app.command()
def record(
    task_id: str = typer.Argument(..., help="Id of the completed task."),
    correct: int = typer.Argument(..., help="Number of correct answers."),
    total: int = typer.Argument(..., help="Number of questions attempted."),
    minutes: float = typer.Option(..., help="Minutes actually spent on the task."),
    day: Optional[str] = typer.Option(None, "--date", help="Plan date (YYYY-MM-DD); today by default."),
    config: Optional[Path] = typer.Option(None, help="Path to configuration YAML."),
):
    """Mark a planned task complete and add its result to the performance history."""
    system = _load_system(config)
    end = datetime.now()
    try:
        result = system.complete_task(
            task_id,
            _parse_date(day),
            correct=correct,
            total=total,
            start=end - timedelta(minutes=minutes),
            end=end,
        )
    except (LookupError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    console.print(
        f"Recorded {result.task_id}: {result.correct}/{result.total} "
        f"({result.accuracy:.0%}) in {result.minutes_spent:.0f} min."
    )


@app.command()
def stats(config: Optional[Path] = typer.Option(None, help="Path to configuration YAML.")):
    """Show study KPIs, weak areas and feedback from the session history."""
    system = _load_system(config)
    report = system.report()
    summary = report["stats"]

    table = Table(title="Study stats")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Sessions", str(summary.sessions_completed))
    table.add_row("Minutes", f"{summary.total_minutes:.0f}")
    table.add_row("Average accuracy", f"{summary.average_accuracy:.0%}")
    table.add_row("Days studied", str(summary.consistency_days))
    table.add_row("Current streak", str(summary.current_streak))
    for content_type, accuracy in summary.accuracy_by_type.items():
        table.add_row(f"{content_type} accuracy", f"{accuracy:.0%}")
    console.print(table)

    if report["weak_areas"]:
        console.print(f"[yellow]Weak areas:[/yellow] {', '.join(report['weak_areas'])}")
    best_hours = {name: hour for name, hour in report["best_hours"].items() if hour is not None}
    if best_hours:
        console.print("Best hours: " + ", ".join(f"{name} {hour:02d}:00" for name, hour in best_hours.items()))
    for section, lines in report["feedback"].items():
        console.print(f"\n[bold]{section.replace('_', ' ').capitalize()}[/bold]")
        for line in lines:
            console.print(f"- {line}")


if __name__ == "__main__":
    app()
