"""
Event Journal - Append-only, acknowledgeable log of observable changes.

Ids are assigned from a counter kept on the journal itself, so they stay
strictly increasing even after old entries are truncated. Clients poll
the journal, then acknowledge what they have shown; acknowledgement is
the only trigger for truncation.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterable


class EventType:
    """Journal event type names."""
    GAME_STARTED = "GAME_STARTED"
    INITIAL_HAND_DEALT = "INITIAL_HAND_DEALT"
    PLAYER_READY = "PLAYER_READY"
    HAND_REDRAWN = "HAND_REDRAWN"
    TURN_SWITCH = "TURN_SWITCH"
    PHASE_CHANGE = "PHASE_CHANGE"
    DRAW_PHASE_COMPLETE = "DRAW_PHASE_COMPLETE"
    CARDS_DRAWN = "CARDS_DRAWN"
    ALL_MAIN_ZONES_FILLED = "ALL_MAIN_ZONES_FILLED"
    ALL_SP_ZONES_FILLED = "ALL_SP_ZONES_FILLED"
    CARD_PLAYED = "CARD_PLAYED"
    ZONE_FILLED = "ZONE_FILLED"
    PLAYER_PASSED = "PLAYER_PASSED"
    CARD_EFFECT_TRIGGERED = "CARD_EFFECT_TRIGGERED"
    PENDING_SELECTION = "PENDING_SELECTION"
    CARD_SELECTION_COMPLETED = "CARD_SELECTION_COMPLETED"
    CARD_MOVED_TO_HAND = "CARD_MOVED_TO_HAND"
    CARD_MOVED_TO_SP_ZONE = "CARD_MOVED_TO_SP_ZONE"
    CARD_MOVED_TO_HELP_ZONE = "CARD_MOVED_TO_HELP_ZONE"
    CARD_DISCARDED = "CARD_DISCARDED"
    SP_CARDS_REVEALED = "SP_CARDS_REVEALED"
    BATTLE_CALCULATED = "BATTLE_CALCULATED"
    VICTORY_POINTS_AWARDED = "VICTORY_POINTS_AWARDED"
    ROUND_COMPLETE = "ROUND_COMPLETE"
    GAME_OVER = "GAME_OVER"
    ERROR = "ERROR"


@dataclass
class JournalEvent:
    """One journal entry."""
    id: int
    type: str
    payload: dict[str, Any] = field(default_factory=dict)
    unacknowledged: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "payload": self.payload,
            "unacknowledged": self.unacknowledged,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> JournalEvent:
        return cls(
            id=int(data["id"]),
            type=data["type"],
            payload=dict(data.get("payload") or {}),
            unacknowledged=bool(data.get("unacknowledged", True)),
        )


@dataclass
class EventJournal:
    """
    The journal document.

    entries is ordered by id; next_id is the id the next append gets.
    """
    entries: list[JournalEvent] = field(default_factory=list)
    next_id: int = 1

    def append(self, event_type: str, payload: dict[str, Any] | None = None) -> JournalEvent:
        """Append an event and assign the next id."""
        event = JournalEvent(id=self.next_id, type=event_type, payload=payload or {})
        self.entries.append(event)
        self.next_id += 1
        return event

    def acknowledge(self, ids: Iterable[int], retain: int = 0) -> list[int]:
        """
        Mark events acknowledged, then truncate.

        Returns the ids that flipped from unacknowledged to acknowledged.
        Calling it again with the same ids flips nothing.
        """
        wanted = set(ids)
        flipped = []
        for event in self.entries:
            if event.id in wanted and event.unacknowledged:
                event.unacknowledged = False
                flipped.append(event.id)
        self.truncate(retain)
        return flipped

    def truncate(self, retain: int = 0) -> int:
        """
        Drop acknowledged entries older than the oldest unacknowledged one,
        keeping the newest `retain` of them. Returns how many were dropped.
        """
        cutoff = len(self.entries)
        for idx, event in enumerate(self.entries):
            if event.unacknowledged:
                cutoff = idx
                break
        droppable = max(0, cutoff - max(0, retain))
        if droppable:
            del self.entries[:droppable]
        return droppable

    def since(self, last_acknowledged_id: int = 0) -> list[JournalEvent]:
        """The suffix a reader sees after its last acknowledged id."""
        return [e for e in self.entries if e.id > last_acknowledged_id]

    def unacknowledged(self) -> list[JournalEvent]:
        return [e for e in self.entries if e.unacknowledged]

    def latest(self, event_type: str) -> JournalEvent | None:
        for event in reversed(self.entries):
            if event.type == event_type:
                return event
        return None

    @property
    def last_id(self) -> int:
        return self.next_id - 1

    def to_dict(self) -> dict[str, Any]:
        return {
            "entries": [e.to_dict() for e in self.entries],
            "nextId": self.next_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | list[Any] | None) -> EventJournal:
        if data is None:
            return cls()
        # A bare list is accepted for hand-written injected states
        if isinstance(data, list):
            entries = [JournalEvent.from_dict(e) for e in data]
            next_id = (max((e.id for e in entries), default=0)) + 1
            return cls(entries=entries, next_id=next_id)
        entries = [JournalEvent.from_dict(e) for e in data.get("entries", [])]
        next_id = int(data.get("nextId", max((e.id for e in entries), default=0) + 1))
        return cls(entries=entries, next_id=next_id)
