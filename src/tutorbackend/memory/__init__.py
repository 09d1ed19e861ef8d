from .base import BaseWindowStore, DEFAULT_CAPACITY
from .in_memory import InMemoryWindowStore
from .sqlite import SqliteWindowStore


def create_window_store(settings) -> BaseWindowStore:
    """Build the window store the settings ask for"""
    if settings.window_backend == "memory":
        return InMemoryWindowStore(capacity=settings.window_capacity)
    return SqliteWindowStore(settings.window_db_path, capacity=settings.window_capacity)


__all__ = [
    "BaseWindowStore",
    "DEFAULT_CAPACITY",
    "InMemoryWindowStore",
    "SqliteWindowStore",
    "create_window_store",
]
