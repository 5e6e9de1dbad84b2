from .json_store import JsonFileStore
from .memory_store import InMemoryStore
from .store import PersistentStore

__all__ = ["PersistentStore", "InMemoryStore", "JsonFileStore"]
