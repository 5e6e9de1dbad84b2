from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List

from study_planner.data_models import ContentItem

from .repository import InMemoryContentRepository


class ContentJsonlStore:
    """Simple JSONL persistence for content items with deterministic ordering."""

    def __init__(self, path: Path):
        """Ensure the backing directory exists and record the JSONL filepath."""
        self.path = path
        self.path.parent.mkdir(parents=True, exist_ok=True)

    def load(self) -> List[ContentItem]:
        """Read all stored items from disk and reconstruct them as models."""
        if not self.path.exists():
            return []
        items: List[ContentItem] = []
        with self.path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if not line.strip():
                    continue
                data = json.loads(line)
                items.append(ContentItem.model_validate(data))
        return items

    def upsert(self, items: Iterable[ContentItem]) -> None:
        """Merge items into storage, replacing existing entries with matching IDs."""
        existing = {item.item_id: item for item in self.load()}
        for item in items:
            existing[item.item_id] = item
        with self.path.open("w", encoding="utf-8") as handle:
            for item in existing.values():
                handle.write(item.model_dump_json())
                handle.write("\n")


def load_catalog(path: Path) -> InMemoryContentRepository:
    """Build an in-memory repository from a JSONL catalog file."""
    return InMemoryContentRepository(ContentJsonlStore(path).load())
