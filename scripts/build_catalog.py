#!/usr/bin/env python3
"""Generate or extend the sample content catalog used by the planner."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer

from study_planner.config.schema import CONTENT_TYPES, DIFFICULTY_LEVELS
from study_planner.content import ContentJsonlStore
from study_planner.data_models import ContentItem

ROOT = Path(__file__).resolve().parents[1]

TITLES = {
    "vocabulary": "Word set",
    "grammar": "Grammar drill",
    "listening": "Listening clip",
    "reading": "Reading passage",
}


def sample_items(per_pool: int, levels: List[str], categories: List[str]) -> List[ContentItem]:
    return [
        ContentItem(
            item_id=f"{category[:3]}-{level}-{index:02d}",
            level=level,
            category=category,
            title=f"{TITLES[category]} {index:02d}",
            payload={"source": "sample"},
        )
        for level in levels
        for category in categories
        for index in range(1, per_pool + 1)
    ]


def main(
    per_pool: int = typer.Option(60, min=1, help="Items per (level, category) pool."),
    level: Optional[List[str]] = typer.Option(None, help="Restrict to these levels."),
    category: Optional[List[str]] = typer.Option(None, help="Restrict to these categories."),
    output: Path = typer.Option(ROOT / "data" / "content" / "catalog.jsonl", help="Catalog JSONL path."),
):
    """Upsert sample items; existing items with the same id are replaced, others are kept."""
    levels = level or list(DIFFICULTY_LEVELS)
    categories = category or list(CONTENT_TYPES)
    store = ContentJsonlStore(output)
    items = sample_items(per_pool, levels, categories)
    store.upsert(items)
    typer.echo(f"Upserted {len(items)} items into {output} ({len(store.load())} total).")


if __name__ == "__main__":
    typer.run(main)
