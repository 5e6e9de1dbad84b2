from __future__ import annotations

import json
import os
import tempfile
import threading
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from study_planner.learning.models import ReadinessState, SessionResult, Task

from .store import PersistentStore


class JsonFileStore(PersistentStore):
    """
    File-backed store using one JSON document per day plus an append-only JSONL history.

    Layout under `base_dir`::

        states/2024-05-01.json   # ReadinessState for the date
        tasks/2024-05-01.json    # {task_id: task} in plan order
        history.jsonl            # one SessionResult per line, oldest first

    Retention is left to whoever manages the directory.

    Day files are rewritten through a temporary file and `os.replace`, so a
    reader never sees a half-written document, and every read-modify-write
    runs under one lock so concurrent task updates are not lost.
    """

    def __init__(self, base_dir: Path):
        self.base_dir = base_dir
        self.states_dir = base_dir / "states"
        self.tasks_dir = base_dir / "tasks"
        self.history_path = base_dir / "history.jsonl"
        self.states_dir.mkdir(parents=True, exist_ok=True)
        self.tasks_dir.mkdir(parents=True, exist_ok=True)
        self._lock = threading.RLock()

    def load_state(self, day: date) -> Optional[ReadinessState]:
        path = self.states_dir / f"{day.isoformat()}.json"
        if not path.exists():
            return None
        with path.open("r", encoding="utf-8") as handle:
            return state_from_dict(json.load(handle))

    def save_state(self, state: ReadinessState) -> None:
        path = self.states_dir / f"{state.date.isoformat()}.json"
        with self._lock:
            _write_json(path, state_to_dict(state))

    def save_task(self, task: Task) -> None:
        if task.date is None:
            raise ValueError(f"Task {task.id} has no date and cannot be stored")
        path = self.tasks_dir / f"{task.date.isoformat()}.json"
        with self._lock:
            tasks = self._read_tasks(path)
            tasks[task.id] = task_to_dict(task)
            _write_json(path, tasks)

    def load_tasks(self, day: date) -> List[Task]:
        path = self.tasks_dir / f"{day.isoformat()}.json"
        return [task_from_dict(data) for data in self._read_tasks(path).values()]

    def append_result(self, result: SessionResult) -> None:
        line = json.dumps(result_to_dict(result)) + "\n"
        with self._lock, self.history_path.open("a", encoding="utf-8") as handle:
            handle.write(line)

    def load_results(self) -> List[SessionResult]:
        if not self.history_path.exists():
            return []
        results: List[SessionResult] = []
        with self.history_path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if not line.strip():
                    continue
                results.append(result_from_dict(json.loads(line)))
        return results

    def update_task(self, day: date, task_id: str, **changes: Any) -> Optional[Task]:
        with self._lock:
            return super().update_task(day, task_id, **changes)

    @staticmethod
    def _read_tasks(path: Path) -> Dict[str, Dict[str, Any]]:
        if not path.exists():
            return {}
        with path.open("r", encoding="utf-8") as handle:
            return json.load(handle)


def _write_json(path: Path, data: Any) -> None:
    """Replace `path` atomically with the JSON encoding of `data`."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


def state_to_dict(state: ReadinessState) -> Dict[str, Any]:
    return {
        "date": state.date.isoformat(),
        "mood": state.mood,
        "energy": state.energy,
        "focus": state.focus,
        "anxiety": state.anxiety,
        "sleep_hours": state.sleep_hours,
        "weather": state.weather,
        "temperature_c": state.temperature_c,
        "note": state.note,
    }


def state_from_dict(data: Dict[str, Any]) -> ReadinessState:
    return ReadinessState(
        date=date.fromisoformat(data["date"]),
        mood=data["mood"],
        energy=data["energy"],
        focus=data["focus"],
        anxiety=data["anxiety"],
        sleep_hours=data["sleep_hours"],
        weather=data.get("weather", "cloudy"),
        temperature_c=data.get("temperature_c", 22.0),
        note=data.get("note", ""),
    )


def task_to_dict(task: Task) -> Dict[str, Any]:
    return {
        "id": task.id,
        "content_type": task.content_type,
        "level": task.level,
        "load_tag": task.load_tag,
        "duration_minutes": task.duration_minutes,
        "payload_ref": list(task.payload_ref),
        "title": task.title,
        "date": task.date.isoformat() if task.date else None,
        "completed": task.completed,
        "score": task.score,
    }


def task_from_dict(data: Dict[str, Any]) -> Task:
    return Task(
        id=data["id"],
        content_type=data["content_type"],
        level=data["level"],
        load_tag=data["load_tag"],
        duration_minutes=data["duration_minutes"],
        payload_ref=list(data.get("payload_ref", [])),
        title=data.get("title", ""),
        date=date.fromisoformat(data["date"]) if data.get("date") else None,
        completed=data.get("completed", False),
        score=data.get("score"),
    )


def result_to_dict(result: SessionResult) -> Dict[str, Any]:
    return {
        "task_id": result.task_id,
        "start_time": result.start_time.isoformat(),
        "end_time": result.end_time.isoformat(),
        "correct": result.correct,
        "total": result.total,
        "content_type": result.content_type,
        "readiness_score_at_time": result.readiness_score_at_time,
        "expected_minutes": result.expected_minutes,
    }


def result_from_dict(data: Dict[str, Any]) -> SessionResult:
    return SessionResult(
        task_id=data["task_id"],
        start_time=datetime.fromisoformat(data["start_time"]),
        end_time=datetime.fromisoformat(data["end_time"]),
        correct=data["correct"],
        total=data["total"],
        content_type=data["content_type"],
        readiness_score_at_time=data["readiness_score_at_time"],
        expected_minutes=data.get("expected_minutes"),
    )
