"""
Action System - Player actions, payloads, and results.

Actions represent:
1. Card plays (face-up or face-down into a zone)
2. Passing the rest of a phase
3. Answering a pending selection
4. The opening redraw decision

All state changes flow through the ActionProcessor.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..errors import ErrorKind


class ActionType(Enum):
    """Types of player actions."""
    PLAY_CARD = "PlayCard"
    PLAY_CARD_BACK = "PlayCardBack"  # Face-down play
    PASS = "Pass"
    SELECT_CARD = "SelectCard"  # Response to a pending selection
    REDRAW = "Redraw"


# zoneIndex on the wire -> zone name
ZONE_INDEX = ("top", "left", "right", "help", "sp")


@dataclass
class ActionPayload:
    """
    Payload for an action.

    Different action types use different fields; the Validator checks
    that the ones an action needs are present and in range.
    """
    hand_index: int | None = None
    zone_index: int | None = None
    face_down: bool = False

    # For selection responses
    selection_id: str | None = None
    selected_card_ids: list[str] = field(default_factory=list)

    # For the opening redraw
    redraw: bool = False

    @property
    def zone(self) -> str | None:
        if self.zone_index is None or not 0 <= self.zone_index < len(ZONE_INDEX):
            return None
        return ZONE_INDEX[self.zone_index]


@dataclass
class Action:
    """A complete player action."""
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)

    @classmethod
    def play_card(cls, hand_index: int, zone_index: int, face_down: bool = False) -> Action:
        """Factory for a card play. A face-down flag makes it a PlayCardBack."""
        return cls(
            action_type=ActionType.PLAY_CARD_BACK if face_down else ActionType.PLAY_CARD,
            payload=ActionPayload(hand_index=hand_index, zone_index=zone_index, face_down=face_down),
        )

    @classmethod
    def play_card_back(cls, hand_index: int, zone_index: int) -> Action:
        return cls.play_card(hand_index, zone_index, face_down=True)

    @classmethod
    def pass_(cls) -> Action:
        return cls(action_type=ActionType.PASS)

    @classmethod
    def select_card(cls, selection_id: str, selected_card_ids: list[str]) -> Action:
        """Factory for a selection response."""
        return cls(
            action_type=ActionType.SELECT_CARD,
            payload=ActionPayload(selection_id=selection_id, selected_card_ids=list(selected_card_ids)),
        )

    @classmethod
    def redraw_hand(cls, redraw: bool) -> Action:
        return cls(action_type=ActionType.REDRAW, payload=ActionPayload(redraw=redraw))

    @property
    def face_down(self) -> bool:
        return self.action_type == ActionType.PLAY_CARD_BACK or self.payload.face_down

    def to_dict(self) -> dict[str, Any]:
        p = self.payload
        data: dict[str, Any] = {"type": self.action_type.value}
        if self.action_type in (ActionType.PLAY_CARD, ActionType.PLAY_CARD_BACK):
            data.update(handIndex=p.hand_index, zoneIndex=p.zone_index, faceDown=self.face_down)
        elif self.action_type == ActionType.SELECT_CARD:
            data.update(selectionId=p.selection_id, selectedCardIds=list(p.selected_card_ids))
        elif self.action_type == ActionType.REDRAW:
            data.update(redraw=p.redraw)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Action:
        action_type = ActionType(data["type"])
        return cls(
            action_type=action_type,
            payload=ActionPayload(
                hand_index=data.get("handIndex"),
                zone_index=data.get("zoneIndex"),
                face_down=bool(data.get("faceDown", action_type == ActionType.PLAY_CARD_BACK)),
                selection_id=data.get("selectionId"),
                selected_card_ids=list(data.get("selectedCardIds") or []),
                redraw=bool(data.get("redraw", False)),
            ),
        )


@dataclass
class ActionResult:
    """
    Result of processing an action.

    A rejected action still carries a new_state: the input state plus
    the ERROR event and a rotated updateUuid, which the caller persists.
    """
    success: bool
    new_state: Any | None = None  # GameState
    error: str | None = None
    error_code: ErrorKind | None = None

    # Journal ids appended by this action
    event_ids: list[int] = field(default_factory=list)

    @classmethod
    def failure(
        cls,
        error: str,
        error_code: ErrorKind | None = None,
        new_state: Any | None = None,
        event_ids: list[int] | None = None,
    ) -> ActionResult:
        """Create a failure result."""
        return cls(
            success=False,
            new_state=new_state,
            error=error,
            error_code=error_code,
            event_ids=event_ids or [],
        )

    @classmethod
    def success_with_state(cls, state: Any, event_ids: list[int] | None = None) -> ActionResult:
        """Create a success result with new state."""
        return cls(success=True, new_state=state, event_ids=event_ids or [])
