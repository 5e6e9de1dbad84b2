from __future__ import annotations

import math
import random
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple, Union

from study_planner.config.schema import CONTENT_TYPES, CompositionConfig
from study_planner.content.repository import ContentRepository
from study_planner.data_models import ContentItem
from study_planner.learning.models import Task
from study_planner.utils.logging import get_logger

logger = get_logger(__name__)

RECOVERY_TYPE = "recovery"
WARMUP_TYPE = "workingmemory"


@dataclass(frozen=True)
class RecoveryTemplate:
    content_type: str
    minutes: int
    title: str
    min_score: int = 0


# Low-load replacement for the normal mix when readiness is poor.
RECOVERY_SET: Tuple[RecoveryTemplate, ...] = (
    RecoveryTemplate(RECOVERY_TYPE, 5, "Breathing exercise"),
    RecoveryTemplate("vocabulary", 8, "Listen-through of familiar words"),
    RecoveryTemplate("listening", 10, "Gentle slow-audio listening", min_score=30),
)


@dataclass
class CompositionRequest:
    """
    Inputs for one plan; `difficulty` is one level or a level per content type.

    `first_index` numbers the first task, so a re-plan can continue past the
    tasks already stored for the date instead of reusing their ids.
    """

    target_minutes: int
    difficulty: Union[str, Mapping[str, str]]
    load: str
    score: int
    plan_date: date
    mix: Optional[Mapping[str, float]] = None
    warmup: Optional[bool] = None
    first_index: int = 1


@dataclass
class Composition:
    """Composed tasks plus what was dropped along the way."""

    tasks: List[Task]
    mode: str
    skipped: List[str] = field(default_factory=list)

    @property
    def total_minutes(self) -> int:
        return sum(task.duration_minutes for task in self.tasks)


@dataclass
class _Draft:
    content_type: str
    level: str
    load_tag: str
    minutes: float
    payload_ref: List[str]
    title: str


class TaskComposer:
    """
    Turn a time budget into an ordered list of sized tasks.

    The composer splits the target across content types by mix weight, sizes
    each task from the number of items the repository actually returned, and
    finally fits the total into the tolerance window around the target.

    Composition rules
    -----------------
    - Categories are filled in descending weight order. Each share is taken
      from the budget that is still unspent, so when the repository comes back
      short (or empty, or raises) the later categories absorb the difference.
      A second pass offers any leftover deficit to categories that were fully
      served.
    - A category share larger than the session cap for the load tag is split
      into several equal tasks.
    - Below the recovery threshold the mix is replaced by the fixed recovery
      set of short, near-zero-load tasks. Study templates whose content type
      is not in the mix (avoided, or outside the preferred subset) are left out.
    - An optional working-memory warm-up is prepended when requested.
    - When the total is outside the tolerance window every task is scaled
      proportionally toward the target; tasks are never dropped.
    - The result is never empty: with nothing to offer, a single minimal
      light task is returned.

    Parameters
    ----------
    repository : ContentRepository
        Source of items. Its failures never abort composition.
    config : CompositionConfig | None
        Mix, per-item minutes, difficulty factors, session caps and tolerance.
    rng : random.Random | None
        Seeded source used to shuffle item order within a task. Pass a fixed
        seed for reproducible plans.
    """

    def __init__(
        self,
        repository: ContentRepository,
        config: Optional[CompositionConfig] = None,
        rng: Optional[random.Random] = None,
    ):
        self.repository = repository
        self.config = config or CompositionConfig()
        self.rng = rng or random.Random()

    def compose(self, request: CompositionRequest) -> Composition:
        target = max(1, int(request.target_minutes))
        use_warmup = self.config.warmup_enabled if request.warmup is None else request.warmup

        drafts: List[_Draft] = []
        body_target = float(target)
        if use_warmup:
            if target >= 2 * self.config.warmup_minutes:
                drafts.append(
                    _Draft(WARMUP_TYPE, "basic", "light", float(self.config.warmup_minutes), [],
                           "Working-memory warm-up")
                )
                body_target -= self.config.warmup_minutes
            else:
                logger.info("warmup_skipped", target=target, warmup_minutes=self.config.warmup_minutes)

        skipped: List[str] = []
        mix = dict(request.mix) if request.mix is not None else dict(self.config.content_mix)
        if request.score < self.config.recovery_threshold:
            mode = "recovery"
            body = self._recovery_drafts(request.score, mix)
        else:
            mode = "normal"
            body, skipped = self._mix_drafts(body_target, request.difficulty, request.load, mix)

        if not body:
            logger.warning("plan_fallback_minimal_task", target=target, skipped=skipped)
            body = [_Draft(RECOVERY_TYPE, "basic", "light", max(1.0, body_target), [], "Short review")]
        drafts.extend(body)

        durations = fit_durations([draft.minutes for draft in drafts], target, self.config.tolerance)
        tasks = [
            Task(
                id=f"{request.plan_date.isoformat()}-{index:02d}-{draft.content_type}",
                content_type=draft.content_type,
                level=draft.level,
                load_tag=draft.load_tag,
                duration_minutes=minutes,
                payload_ref=draft.payload_ref,
                title=draft.title,
                date=request.plan_date,
            )
            for index, (draft, minutes) in enumerate(zip(drafts, durations), start=max(1, request.first_index))
        ]
        composition = Composition(tasks=tasks, mode=mode, skipped=skipped)
        logger.info(
            "plan_composed",
            mode=mode,
            target=target,
            total=composition.total_minutes,
            tasks=len(tasks),
            skipped=skipped,
        )
        return composition

    def minutes_per_item(self, content_type: str, level: str) -> float:
        """Per-item time constant; grows with difficulty."""
        base = self.config.minutes_per_item.get(content_type, 2.0)
        return base * self.config.difficulty_time_factor.get(level, 1.0)

    def _mix_drafts(
        self,
        target: float,
        difficulty: Union[str, Mapping[str, str]],
        load: str,
        mix: Dict[str, float],
    ) -> Tuple[List[_Draft], List[str]]:
        weights = {name: weight for name, weight in mix.items() if weight > 0}
        order = sorted(weights, key=lambda name: (-weights[name], _type_rank(name)))

        by_type: Dict[str, List[_Draft]] = {}
        used_ids: Dict[str, Set[str]] = {}
        satisfied: List[str] = []
        skipped: List[str] = []

        remaining = target
        remaining_weight = sum(weights.values())
        for content_type in order:
            share = remaining * weights[content_type] / remaining_weight
            remaining_weight -= weights[content_type]
            level = _level_for(difficulty, content_type)
            drafts, complete = self._fill(content_type, level, load, share, set())
            if not drafts:
                logger.warning("content_exhausted", category=content_type, level=level)
                skipped.append(content_type)
                continue
            by_type[content_type] = drafts
            used_ids[content_type] = {ref for draft in drafts for ref in draft.payload_ref}
            remaining -= sum(draft.minutes for draft in drafts)
            if complete:
                satisfied.append(content_type)

        if remaining > target * self.config.tolerance and satisfied:
            pool = sum(weights[name] for name in satisfied)
            for content_type in satisfied:
                share = remaining * weights[content_type] / pool
                level = _level_for(difficulty, content_type)
                extra, _ = self._fill(content_type, level, load, share, used_ids[content_type])
                if extra:
                    logger.info("deficit_absorbed", category=content_type, minutes=round(share, 1))
                    by_type[content_type].extend(extra)

        return _rotate(by_type, weights, order), skipped

    def _fill(
        self,
        content_type: str,
        level: str,
        load: str,
        share: float,
        exclude: Set[str],
    ) -> Tuple[List[_Draft], bool]:
        """Build tasks for one category; returns (drafts, whether every requested item arrived)."""
        per_item = self.minutes_per_item(content_type, level)
        cap = self.config.session_caps.get(load, 30)
        slots = max(1, math.ceil(share / cap))
        per_slot = max(1, math.floor(share / slots / per_item))
        wanted = per_slot * slots

        items = self._query(level, content_type, wanted + len(exclude))
        fresh = [item for item in items if item.item_id not in exclude][:wanted]
        if not fresh:
            return [], False
        self.rng.shuffle(fresh)

        drafts = []
        for start in range(0, len(fresh), per_slot):
            chunk = fresh[start:start + per_slot]
            drafts.append(
                _Draft(
                    content_type=content_type,
                    level=level,
                    load_tag=load,
                    minutes=sum(per_item * item.estimated_unit_cost for item in chunk),
                    payload_ref=[item.item_id for item in chunk],
                    title=f"{content_type.capitalize()} ({level}, {len(chunk)} items)",
                )
            )
        return drafts, len(fresh) >= wanted

    def _recovery_drafts(self, score: int, mix: Mapping[str, float]) -> List[_Draft]:
        """Recovery templates for the score; study templates only for types the mix still plans."""
        drafts = []
        for template in RECOVERY_SET:
            if score < template.min_score:
                continue
            if template.content_type != RECOVERY_TYPE and mix.get(template.content_type, 0) <= 0:
                continue
            refs: List[str] = []
            if template.content_type in self.config.minutes_per_item:
                count = max(1, math.floor(template.minutes / self.minutes_per_item(template.content_type, "basic")))
                refs = [item.item_id for item in self._query("basic", template.content_type, count)]
            drafts.append(
                _Draft(template.content_type, "basic", "light", float(template.minutes), refs, template.title)
            )
        return drafts

    def _query(self, level: str, category: str, count: int) -> List[ContentItem]:
        """Query the repository, keeping only items the active filter permits."""
        try:
            items = list(self.repository.query(level, category, count))
        except Exception:
            logger.warning("content_query_failed", category=category, level=level, exc_info=True)
            return []
        permitted = [item for item in items if item.level == level and item.category == category]
        if len(permitted) < len(items):
            logger.warning(
                "content_filtered",
                category=category,
                level=level,
                dropped=len(items) - len(permitted),
            )
        if len(permitted) < count:
            logger.info("content_short", category=category, level=level, wanted=count, got=len(permitted))
        return permitted[:count]


def fit_durations(minutes: Sequence[float], target: float, tolerance: float) -> List[int]:
    """
    Convert draft durations to whole minutes whose sum lies within tolerance of the target.

    Totals already inside the window keep their proportions and are only rounded;
    totals outside it are scaled proportionally to the target itself. Integer minutes
    are apportioned by largest remainder with a floor of one minute per task.
    """
    if not minutes:
        return []
    total = float(sum(minutes))
    low = target * (1 - tolerance)
    high = target * (1 + tolerance)
    if total > 0 and low <= total <= high:
        goal = int(math.floor(total + 0.5))
        goal = max(math.ceil(low), min(math.floor(high), goal))
    else:
        goal = int(math.floor(target + 0.5))
    goal = max(goal, len(minutes))

    if total > 0:
        scaled = [value * goal / total for value in minutes]
    else:
        scaled = [goal / len(minutes)] * len(minutes)
    return _apportion(scaled, goal)


def _apportion(values: Sequence[float], goal: int) -> List[int]:
    result = [max(1, math.floor(value)) for value in values]
    diff = goal - sum(result)
    by_remainder = sorted(range(len(values)), key=lambda i: values[i] - math.floor(values[i]), reverse=True)
    while diff > 0:
        for index in by_remainder:
            if diff == 0:
                break
            result[index] += 1
            diff -= 1
    while diff < 0:
        reducible = [index for index in reversed(by_remainder) if result[index] > 1]
        if not reducible:
            break
        for index in reducible:
            if diff == 0:
                break
            result[index] -= 1
            diff += 1
    return result


def _rotate(by_type: Dict[str, List[_Draft]], weights: Mapping[str, float], order: Sequence[str]) -> List[_Draft]:
    """Interleave drafts by smooth weighted round-robin so content types alternate."""
    queues = {name: list(by_type[name]) for name in order if by_type.get(name)}
    current = {name: 0.0 for name in queues}
    result: List[_Draft] = []
    while queues:
        active_total = sum(weights[name] for name in queues)
        for name in queues:
            current[name] += weights[name]
        pick = max(queues, key=lambda name: (current[name], -order.index(name)))
        current[pick] -= active_total
        result.append(queues[pick].pop(0))
        if not queues[pick]:
            del queues[pick]
            del current[pick]
    return result


def _level_for(difficulty: Union[str, Mapping[str, str]], content_type: str) -> str:
    if isinstance(difficulty, str):
        return difficulty
    return difficulty.get(content_type, "basic")


def _type_rank(content_type: str) -> int:
    return CONTENT_TYPES.index(content_type) if content_type in CONTENT_TYPES else len(CONTENT_TYPES)
