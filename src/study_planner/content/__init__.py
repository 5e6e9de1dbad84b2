from .jsonl_repository import ContentJsonlStore, load_catalog
from .repository import ContentRepository, InMemoryContentRepository

__all__ = [
    "ContentRepository",
    "InMemoryContentRepository",
    "ContentJsonlStore",
    "load_catalog",
]
