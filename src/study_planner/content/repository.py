from __future__ import annotations

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Dict, Iterable, List, Tuple

from study_planner.data_models import ContentItem


class ContentRepository(ABC):
    """Abstract source of learning items queryable by level and category."""

    @abstractmethod
    def query(self, level: str, category: str, count: int) -> List[ContentItem]:
        """Return at most `count` items; fewer (or none) when the pool runs short."""


class InMemoryContentRepository(ContentRepository):
    """Repository over a fixed list of items, served in insertion order."""

    def __init__(self, items: Iterable[ContentItem] = ()):
        self._pools: Dict[Tuple[str, str], List[ContentItem]] = defaultdict(list)
        for item in items:
            self._pools[(item.level, item.category)].append(item)

    def query(self, level: str, category: str, count: int) -> List[ContentItem]:
        if count <= 0:
            return []
        return list(self._pools.get((level, category), [])[:count])

    def __len__(self) -> int:
        return sum(len(pool) for pool in self._pools.values())
