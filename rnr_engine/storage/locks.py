"""
Per-game locks - Serializes actions on the same game id.

Actions on different games never contend; the registry lock is only
held while looking up or creating a game's lock. Entries are weak: a
game's lock lives only while some caller holds or waits on it.
"""

from __future__ import annotations
from contextlib import contextmanager
from typing import Iterator
import threading
import weakref


class GameLockRegistry:
    """
    Hands out one threading.Lock per game id.

    Usage:
        locks = GameLockRegistry()
        with locks.hold(game_id):
            state = store.load(game_id)
            ...
            store.save(game_id, new_state)
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()

    def __len__(self) -> int:
        return len(self._locks)

    def lock_for(self, game_id: str) -> threading.Lock:
        with self._guard:
            lock = self._locks.get(game_id)
            if lock is None:
                lock = threading.Lock()
                self._locks[game_id] = lock
            return lock

    @contextmanager
    def hold(self, game_id: str) -> Iterator[None]:
        lock = self.lock_for(game_id)
        with lock:
            yield
