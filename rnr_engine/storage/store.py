"""
Game Store - Loads and saves complete game documents by game id.

The store:
- Is the only component that performs blocking I/O
- Saves whole documents; there are no partial updates
- Never hands out an object another caller can mutate

Design decisions:
- One JSON file per game, written to a temp file in the same directory,
  fsynced, then renamed over the target (atomic for concurrent readers)
- The in-memory store keeps serialized copies for the same reason
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any
import json
import logging
import os
import re
import tempfile

from ..engine_core.state import GameState
from ..errors import PersistenceError, UnknownGame

logger = logging.getLogger(__name__)

_GAME_ID = re.compile(r"^[A-Za-z0-9_.-]{1,128}$")


def check_game_id(game_id: str) -> str:
    """Game ids become file names, so keep them to a safe alphabet."""
    if not _GAME_ID.match(game_id) or game_id in (".", ".."):
        raise UnknownGame(game_id)
    return game_id


class GameStore(ABC):
    """Key-to-document store keyed by game id."""

    @abstractmethod
    def load(self, game_id: str) -> GameState:
        """Load a game. Raises UnknownGame."""

    @abstractmethod
    def save(self, game_id: str, state: GameState) -> None:
        """Replace the stored document atomically."""

    @abstractmethod
    def exists(self, game_id: str) -> bool:
        ...

    @abstractmethod
    def delete(self, game_id: str) -> None:
        ...

    @abstractmethod
    def list_games(self) -> list[str]:
        ...


class MemoryGameStore(GameStore):
    """
    In-process store for development and tests.

    Documents are kept as serialized dicts, so a loaded state never
    aliases the stored one.
    """

    def __init__(self):
        self._documents: dict[str, str] = {}

    def load(self, game_id: str) -> GameState:
        document = self._documents.get(game_id)
        if document is None:
            raise UnknownGame(game_id)
        return GameState.from_dict(json.loads(document))

    def save(self, game_id: str, state: GameState) -> None:
        self._documents[game_id] = json.dumps(state.to_dict())

    def exists(self, game_id: str) -> bool:
        return game_id in self._documents

    def delete(self, game_id: str) -> None:
        self._documents.pop(game_id, None)

    def list_games(self) -> list[str]:
        return sorted(self._documents)


class JsonFileStore(GameStore):
    """
    File-based store: one <game_id>.json per game.

    Usage:
        store = JsonFileStore("./games")
        store.save(state.game_id, state)
        state = store.load(game_id)
    """

    def __init__(self, store_dir: str | Path):
        self.store_dir = Path(store_dir).expanduser()
        try:
            self.store_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot create store directory {self.store_dir}: {e}") from e

    def _path(self, game_id: str) -> Path:
        return self.store_dir / f"{check_game_id(game_id)}.json"

    def load(self, game_id: str) -> GameState:
        path = self._path(game_id)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data: dict[str, Any] = json.load(f)
        except FileNotFoundError:
            raise UnknownGame(game_id) from None
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceError(f"Cannot read game {game_id}: {e}") from e
        return GameState.from_dict(data)

    def save(self, game_id: str, state: GameState) -> None:
        path = self._path(game_id)
        payload = json.dumps(state.to_dict(), indent=2, sort_keys=True)
        fd, tmp_name = tempfile.mkstemp(prefix=f".{game_id}.", suffix=".tmp", dir=self.store_dir)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise PersistenceError(f"Cannot write game {game_id}: {e}") from e
        logger.debug("Saved game %s (%s)", game_id, state.update_uuid)

    def exists(self, game_id: str) -> bool:
        return self._path(game_id).exists()

    def delete(self, game_id: str) -> None:
        try:
            self._path(game_id).unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(f"Cannot delete game {game_id}: {e}") from e

    def list_games(self) -> list[str]:
        return sorted(f.stem for f in self.store_dir.glob("*.json"))


def create_store(store_dir: str | Path | None) -> GameStore:
    """A JsonFileStore when a directory is configured, otherwise in-memory."""
    if store_dir:
        logger.info("Using JSON game store at %s", store_dir)
        return JsonFileStore(store_dir)
    logger.info("Using in-memory game store")
    return MemoryGameStore()
