"""
Play Sequence - Ordered ledger of every card entering the field.

Each play gets a unique, monotonically increasing sequenceId from
global_sequence. The resolver breaks ordering ties by sequenceId and
placements carry the id of the play that put them on the board.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any


class PlayAction:
    PLAY_CARD = "PLAY_CARD"
    PLAY_CARD_BACK = "PLAY_CARD_BACK"
    PLAY_LEADER = "PLAY_LEADER"
    PASS = "PASS"


@dataclass
class Play:
    """A single entry in the play sequence."""
    sequence_id: int
    player_id: str
    card_id: str | None
    zone: str | None
    action: str
    face_down: bool = False
    turn_number: int = 0
    phase: str = ""
    data: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sequenceId": self.sequence_id,
            "playerId": self.player_id,
            "cardId": self.card_id,
            "zone": self.zone,
            "action": self.action,
            "faceDown": self.face_down,
            "turnNumber": self.turn_number,
            "phaseWhenPlayed": self.phase,
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Play:
        return cls(
            sequence_id=int(data["sequenceId"]),
            player_id=data["playerId"],
            card_id=data.get("cardId"),
            zone=data.get("zone"),
            action=data["action"],
            face_down=bool(data.get("faceDown", False)),
            turn_number=int(data.get("turnNumber", 0)),
            phase=data.get("phaseWhenPlayed", ""),
            data=dict(data.get("data") or {}),
        )


@dataclass
class PlaySequence:
    global_sequence: int = 0
    plays: list[Play] = field(default_factory=list)

    def record(
        self,
        player_id: str,
        card_id: str | None,
        action: str,
        zone: str | None = None,
        face_down: bool = False,
        turn_number: int = 0,
        phase: str = "",
        data: dict[str, Any] | None = None,
    ) -> Play:
        """Record a play and return it with its new sequenceId."""
        self.global_sequence += 1
        play = Play(
            sequence_id=self.global_sequence,
            player_id=player_id,
            card_id=card_id,
            zone=zone,
            action=action,
            face_down=face_down,
            turn_number=turn_number,
            phase=phase,
            data=data or {},
        )
        self.plays.append(play)
        return play

    def clear(self, keep_leaders: bool = True) -> None:
        """
        Drop plays at the end of a round.

        global_sequence is never reset, so ids stay unique across rounds.
        """
        if keep_leaders:
            self.plays = [p for p in self.plays if p.action == PlayAction.PLAY_LEADER]
        else:
            self.plays = []

    def validate(self) -> list[str]:
        """Check ids are unique and increasing; returns problems found."""
        problems = []
        last = 0
        seen: set[int] = set()
        for play in self.plays:
            if play.sequence_id in seen:
                problems.append(f"duplicate sequenceId {play.sequence_id}")
            elif play.sequence_id <= last:
                problems.append(f"sequenceId {play.sequence_id} out of order")
            if play.sequence_id > self.global_sequence:
                problems.append(f"sequenceId {play.sequence_id} beyond globalSequence")
            seen.add(play.sequence_id)
            last = max(last, play.sequence_id)
        return problems

    def to_dict(self) -> dict[str, Any]:
        return {
            "globalSequence": self.global_sequence,
            "plays": [p.to_dict() for p in self.plays],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> PlaySequence:
        if not data:
            return cls()
        plays = [Play.from_dict(p) for p in data.get("plays", [])]
        global_sequence = int(data.get("globalSequence", max((p.sequence_id for p in plays), default=0)))
        return cls(global_sequence=global_sequence, plays=plays)
