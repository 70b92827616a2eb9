"""
Errors - Engine error taxonomy.

User faults (ValidationError) carry an ErrorKind that is echoed in the result envelope and the journal's ERROR event.
InvariantViolation is a bug: the action is aborted and nothing is saved.
PersistenceError is I/O and is never swallowed.
"""

from __future__ import annotations
from enum import Enum


class ErrorKind(str, Enum):
    """Error kinds visible to clients."""
    NOT_YOUR_TURN = "NotYourTurn"
    WRONG_PHASE = "WrongPhase"
    INVALID_HAND_INDEX = "InvalidHandIndex"
    ZONE_COMPATIBILITY = "ZoneCompatibility"
    ZONE_OCCUPIED = "ZoneOccupied"
    INVALID_ZONE = "InvalidZone"
    INVALID_SELECTION = "InvalidSelection"
    NO_PENDING_SELECTION = "NoPendingSelection"
    FORBIDDEN = "Forbidden"
    UNKNOWN_GAME = "UnknownGame"
    UNKNOWN_CARD = "UnknownCard"
    INTERNAL_ERROR = "InternalError"
    PERSISTENCE_ERROR = "PersistenceError"


class EngineError(Exception):
    """Base class for engine errors."""
    kind: ErrorKind = ErrorKind.INTERNAL_ERROR

    def __init__(self, message: str, kind: ErrorKind | None = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class ValidationError(EngineError):
    """A rejected player action. State is not mutated."""
    kind = ErrorKind.FORBIDDEN


class InvariantViolation(EngineError):
    """The engine produced a state that breaks a document invariant."""
    kind = ErrorKind.INTERNAL_ERROR

    def __init__(self, violations: list[str]):
        self.violations = violations
        super().__init__(f"Invariant violation: {'; '.join(violations)}")


class PersistenceError(EngineError):
    """Game store I/O failed."""
    kind = ErrorKind.PERSISTENCE_ERROR


class UnknownCard(EngineError, KeyError):
    kind = ErrorKind.UNKNOWN_CARD

    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(f"Unknown card: {card_id}")

    def __str__(self) -> str:
        return self.message


class UnknownGame(EngineError, KeyError):
    kind = ErrorKind.UNKNOWN_GAME

    def __init__(self, game_id: str):
        self.game_id = game_id
        super().__init__(f"Unknown game: {game_id}")

    def __str__(self) -> str:
        return self.message
