from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import replace
from datetime import date
from typing import Any, List, Optional

from study_planner.learning.models import ReadinessState, SessionResult, Task, readiness_bucket


class PersistentStore(ABC):
    """Key-value persistence for check-ins, tasks and session history.

    Readiness states are keyed by calendar date (one per day); tasks by date and
    stable id and never deleted, so a re-plan adds tasks next to the earlier ones;
    session results are append-only.
    """

    @abstractmethod
    def load_state(self, day: date) -> Optional[ReadinessState]:
        """Return the check-in for a date, or None when absent."""

    @abstractmethod
    def save_state(self, state: ReadinessState) -> None:
        """Store the check-in for its date, replacing any earlier one."""

    @abstractmethod
    def save_task(self, task: Task) -> None:
        """Insert or update a task under its date and id."""

    @abstractmethod
    def load_tasks(self, day: date) -> List[Task]:
        """Return the tasks planned for a date in plan order."""

    def update_task(self, day: date, task_id: str, **changes: Any) -> Optional[Task]:
        """
        Apply field changes to one stored task and save it; None when the task is unknown.

        Implementations that can be shared between threads hold their lock around
        this read-modify-write.
        """
        task = next((task for task in self.load_tasks(day) if task.id == task_id), None)
        if task is None:
            return None
        updated = replace(task, **changes)
        self.save_task(updated)
        return updated

    @abstractmethod
    def append_result(self, result: SessionResult) -> None:
        """Append a session result to history."""

    @abstractmethod
    def load_results(self) -> List[SessionResult]:
        """Return every session result, oldest first."""

    def load_history(self, content_type: str, bucket: int) -> List[SessionResult]:
        """Return results for one (content type, readiness bucket) key, oldest first."""
        return [
            result
            for result in self.load_results()
            if result.content_type == content_type
            and readiness_bucket(result.readiness_score_at_time) == bucket
        ]
