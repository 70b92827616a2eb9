"""
Pydantic schemas for the rules engine HTTP API.

Every engine call answers with the same result envelope:
    {success, state, error?: {kind, message}, eventIds}

Error kinds (ErrorKind values):
- NotYourTurn, WrongPhase: turn and phase gating
- InvalidHandIndex, InvalidZone, ZoneCompatibility, ZoneOccupied: bad plays
- InvalidSelection, NoPendingSelection: selection protocol
- Forbidden: rule-forbidden action
- UnknownGame, UnknownCard: lookups that found nothing
- InternalError: an engine bug; nothing was saved
- PersistenceError: the game store failed
"""

from __future__ import annotations
from typing import Any, Optional

from pydantic import BaseModel, Field

from ..engine_core.action import ActionType
from ..errors import ErrorKind


# =============================================================================
# Envelope
# =============================================================================

class ErrorInfo(BaseModel):
    """Why an engine call failed."""
    kind: ErrorKind
    message: str


class ResultEnvelope(BaseModel):
    """Answer to every engine call."""
    success: bool
    state: Optional[dict[str, Any]] = Field(
        None, description="Player projection (full document when no player id is given)"
    )
    error: Optional[ErrorInfo] = None
    event_ids: list[int] = Field(
        default_factory=list, description="Journal entries written by this call"
    )

    @classmethod
    def ok(cls, state: dict[str, Any] | None, event_ids: list[int] | None = None) -> ResultEnvelope:
        return cls(success=True, state=state, event_ids=event_ids or [])

    @classmethod
    def fail(
        cls,
        kind: ErrorKind,
        message: str,
        state: dict[str, Any] | None = None,
        event_ids: list[int] | None = None,
    ) -> ResultEnvelope:
        return cls(
            success=False,
            state=state,
            error=ErrorInfo(kind=kind, message=message),
            event_ids=event_ids or [],
        )


# =============================================================================
# Requests
# =============================================================================

class PlayerSetupInfo(BaseModel):
    """One seat at game creation. Empty deck/leaders use the defaults."""
    id: str = Field(..., min_length=1)
    name: str = ""
    deck: list[str] = Field(default_factory=list)
    leaders: list[str] = Field(default_factory=list)


class CreateGameRequest(BaseModel):
    """Bootstrap a new game in the redraw phase."""
    game_id: Optional[str] = Field(None, description="Generated when omitted")
    players: list[PlayerSetupInfo] = Field(
        default_factory=lambda: [
            PlayerSetupInfo(id="p1", name="Player 1"),
            PlayerSetupInfo(id="p2", name="Player 2"),
        ],
    )
    seed: int = Field(0, description="Seed for every shuffle and random choice")
    first_player: Optional[str] = None


class ActionInfo(BaseModel):
    """A player action in wire form."""
    type: ActionType
    hand_index: Optional[int] = Field(None, description="PlayCard / PlayCardBack")
    zone_index: Optional[int] = Field(
        None, description="0=top 1=left 2=right 3=help 4=sp"
    )
    face_down: bool = False
    selection_id: Optional[str] = Field(None, description="SelectCard")
    selected_card_ids: list[str] = Field(default_factory=list)
    redraw: bool = Field(False, description="Redraw: shuffle back and deal again")

    def to_action_dict(self) -> dict[str, Any]:
        return {
            "type": self.type.value,
            "handIndex": self.hand_index,
            "zoneIndex": self.zone_index,
            "faceDown": self.face_down,
            "selectionId": self.selection_id,
            "selectedCardIds": list(self.selected_card_ids),
            "redraw": self.redraw,
        }


class PlayerActionRequest(BaseModel):
    """Submit one action for a player."""
    player_id: str
    action: ActionInfo


class AcknowledgeRequest(BaseModel):
    """Mark journal entries acknowledged."""
    event_ids: list[int]
    player_id: Optional[str] = Field(None, description="Project the returned state for this player")


class InjectStateRequest(BaseModel):
    """Test hook: replace a game's stored document."""
    state: dict[str, Any]


# =============================================================================
# Responses
# =============================================================================

class EffectRuleInfo(BaseModel):
    """A card rule as data."""
    model_config = {"from_attributes": True}

    rule_id: str
    trigger: str
    description: str = ""
    rule: dict[str, Any]


class CardResponse(BaseModel):
    """A card definition."""
    model_config = {"from_attributes": True}

    id: str
    name: str
    kind: str
    game_type: str
    traits: list[str] = Field(default_factory=list)
    base_power: int = 0
    initial_point: int = 0
    immune_to_neutralization: bool = False
    zone_compatibility: dict[str, list[str]] = Field(default_factory=dict)
    effects: list[EffectRuleInfo] = Field(default_factory=list)


class GameListResponse(BaseModel):
    """Stored game ids."""
    games: list[str]
    count: int


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    service: str
    version: str
