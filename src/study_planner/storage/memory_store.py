from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date
from typing import Any, Dict, List, Optional

from study_planner.learning.models import ReadinessState, SessionResult, Task

from .store import PersistentStore


class InMemoryStore(PersistentStore):
    """Process-local store; handy for tests and one-shot planning."""

    def __init__(self) -> None:
        self._states: Dict[date, ReadinessState] = {}
        self._tasks: Dict[date, Dict[str, Task]] = {}
        self._results: List[SessionResult] = []
        self._lock = threading.RLock()

    def load_state(self, day: date) -> Optional[ReadinessState]:
        return self._states.get(day)

    def save_state(self, state: ReadinessState) -> None:
        self._states[state.date] = state

    def save_task(self, task: Task) -> None:
        if task.date is None:
            raise ValueError(f"Task {task.id} has no date and cannot be stored")
        with self._lock:
            self._tasks.setdefault(task.date, {})[task.id] = replace(task, payload_ref=list(task.payload_ref))

    def load_tasks(self, day: date) -> List[Task]:
        with self._lock:
            return [replace(task, payload_ref=list(task.payload_ref)) for task in self._tasks.get(day, {}).values()]

    def update_task(self, day: date, task_id: str, **changes: Any) -> Optional[Task]:
        with self._lock:
            return super().update_task(day, task_id, **changes)

    def append_result(self, result: SessionResult) -> None:
        with self._lock:
            self._results.append(result)

    def load_results(self) -> List[SessionResult]:
        with self._lock:
            return list(self._results)
