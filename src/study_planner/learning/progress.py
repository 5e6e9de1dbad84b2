from __future__ import annotations

import threading
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

from study_planner.config.schema import CONTENT_TYPES, TrackingConfig
from study_planner.learning.models import SessionResult, readiness_bucket
from study_planner.storage.store import PersistentStore
from study_planner.utils.logging import get_logger

logger = get_logger(__name__)


def session_efficiency(result: SessionResult) -> float:
    """
    Efficiency of one session on a 0-1 scale.

    Accuracy scaled down by how far the session overran its planned length:
    `accuracy * min(1, expected_minutes / minutes_spent)`. Without a planned
    length the accuracy is used as is.
    """
    accuracy = result.accuracy
    if not result.expected_minutes or result.minutes_spent <= 0:
        return accuracy
    return accuracy * min(1.0, result.expected_minutes / result.minutes_spent)


class PerformanceTracker:
    """
    Append-only performance history with rolling averages per (content type, readiness bucket).

    Storage is delegated to a `PersistentStore`; the tracker owns no history of
    its own beyond what the store returns, so several trackers over one store see
    the same data. Writes are serialized with a lock because completions may
    arrive concurrently; last write wins at session granularity.

    Attributes
    ----------
    store : PersistentStore
        Backing store for SessionResult records.
    window : int
        Number of most recent records used for rolling averages (K).
    weak_area_threshold : float
        Average accuracy below which a content type counts as weak.
    default_efficiency : float | None
        Value returned by `query` when a key has no history. `None` signals
        "no history" so callers fall back to unadjusted behaviour.
    """

    def __init__(
        self,
        store: PersistentStore,
        config: Optional[TrackingConfig] = None,
        default_efficiency: Optional[float] = None,
    ):
        self.store = store
        self.config = config or TrackingConfig()
        self.window = self.config.window
        self.weak_area_threshold = self.config.weak_area_threshold
        self.default_efficiency = default_efficiency
        self._lock = threading.Lock()

    def record_result(
        self,
        content_type: str,
        correctness: float,
        time_spent: float,
        readiness_score_at_time: int,
        expected_minutes: Optional[float] = None,
        task_id: Optional[str] = None,
        end_time: Optional[datetime] = None,
    ) -> SessionResult:
        """
        Append a result given as an accuracy fraction and minutes spent.

        `correctness` is clamped to [0, 1] and stored as correct/total out of 100.
        """
        accuracy = max(0.0, min(1.0, float(correctness)))
        finished = end_time or datetime.now()
        result = SessionResult(
            task_id=task_id or f"adhoc-{content_type}-{finished.strftime('%Y%m%dT%H%M%S%f')}",
            start_time=finished - timedelta(minutes=max(0.0, float(time_spent))),
            end_time=finished,
            correct=int(round(accuracy * 100)),
            total=100,
            content_type=content_type,
            readiness_score_at_time=int(readiness_score_at_time),
            expected_minutes=expected_minutes,
        )
        return self.record_session(result)

    def record_session(self, result: SessionResult) -> SessionResult:
        """Append a completed SessionResult to history."""
        with self._lock:
            self.store.append_result(result)
        logger.info(
            "session_recorded",
            task_id=result.task_id,
            content_type=result.content_type,
            bucket=readiness_bucket(result.readiness_score_at_time),
            accuracy=round(result.accuracy, 3),
        )
        return result

    def history(self, content_type: str, bucket: int) -> List[SessionResult]:
        """Most recent `window` records for the key, oldest first."""
        with self._lock:
            records = self.store.load_history(content_type, bucket)
        return list(records)[-self.window:]

    def query(self, content_type: str, bucket: int) -> Optional[float]:
        """Average efficiency over the rolling window, or the default when no history exists."""
        recent = self.history(content_type, bucket)
        if not recent:
            return self.default_efficiency
        return sum(session_efficiency(result) for result in recent) / len(recent)

    def identify_weak_areas(self, sessions: Sequence[SessionResult]) -> List[str]:
        """
        Return content types whose recent average accuracy is below the weak-area threshold.

        Only the last `window` sessions of each type count. Types are returned in
        canonical order (vocabulary, grammar, listening, reading, then any others
        alphabetically).
        """
        by_type: Dict[str, List[float]] = defaultdict(list)
        for session in sessions:
            # ungraded sessions (recovery, warm-up) carry no accuracy signal
            if session.total <= 0:
                continue
            by_type[session.content_type].append(session.accuracy)

        weak = []
        for content_type, accuracies in by_type.items():
            recent = accuracies[-self.window:]
            if sum(recent) / len(recent) < self.weak_area_threshold:
                weak.append(content_type)
        return sorted(weak, key=lambda name: (_rank(name), name))

    def best_study_hour(self, content_type: str) -> Optional[int]:
        """
        Hour of day (0-23) with the highest average efficiency for a content type.

        Sessions are grouped by the hour they started in. Ungraded sessions are
        ignored; ties go to the earlier hour. Returns None without history.
        """
        by_hour: Dict[int, List[float]] = defaultdict(list)
        for result in self.recent_sessions():
            if result.content_type != content_type or result.total <= 0:
                continue
            by_hour[result.start_time.hour].append(session_efficiency(result))
        if not by_hour:
            return None
        return max(sorted(by_hour), key=lambda hour: sum(by_hour[hour]) / len(by_hour[hour]))

    def recent_sessions(self) -> List[SessionResult]:
        with self._lock:
            return list(self.store.load_results())


def _rank(content_type: str) -> int:
    return CONTENT_TYPES.index(content_type) if content_type in CONTENT_TYPES else len(CONTENT_TYPES)
