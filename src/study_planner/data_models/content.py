from __future__ import annotations

from typing import Any, Dict

from pydantic import BaseModel, Field


class ContentItem(BaseModel):
    """Single learning item served by a content repository."""

    item_id: str
    level: str
    category: str
    estimated_unit_cost: float = Field(1.0, gt=0, description="Relative time cost; 1.0 is one standard item.")
    title: str = ""
    payload: Dict[str, Any] = Field(default_factory=dict)
