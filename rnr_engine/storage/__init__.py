"""Persistence adapter - game stores and per-game locks."""

from .store import GameStore, MemoryGameStore, JsonFileStore, create_store
from .locks import GameLockRegistry

__all__ = [
    "GameStore",
    "MemoryGameStore",
    "JsonFileStore",
    "create_store",
    "GameLockRegistry",
]
