"""
Player Projection - What one player is allowed to see.

The projection is the full document minus:
- the opponent's hand and deck contents (sizes only)
- identities of the opponent's face-down cards, on the board, in the
  play sequence and in journal events
- the opponent's pending-selection choices
- the PRNG seed and counter
"""

from __future__ import annotations
from typing import Any

from .journal import EventType
from .state import GameState

_HIDDEN_WHEN_OPPONENT = {
    EventType.CARD_MOVED_TO_HAND,
    EventType.CARD_MOVED_TO_SP_ZONE,
}


def _hide_placement(placement: dict[str, Any] | None) -> dict[str, Any] | None:
    if placement is None or placement.get("faceUp", True):
        return placement
    return {**placement, "cardId": None}


def _project_event(event: dict[str, Any], opponent: str) -> dict[str, Any]:
    payload = event["payload"]
    if payload.get("playerId") != opponent:
        return event
    hide = event["type"] in _HIDDEN_WHEN_OPPONENT or (
        event["type"] == EventType.CARD_PLAYED and payload.get("faceDown")
    )
    if not hide:
        return event
    return {**event, "payload": {**payload, "cardId": None}}


def project_state(state: GameState, viewer_id: str | None) -> dict[str, Any]:
    """
    Serialize the state as `viewer_id` may see it.

    viewer_id=None returns the full document (used by tests and tools).
    """
    data = state.to_dict()
    if viewer_id is None:
        return data

    opponent = state.opponent_of(viewer_id)
    data.pop("randomSeed", None)
    data.pop("randomCounter", None)

    for player in data["players"]:
        player["handCount"] = len(player["hand"])
        player["deckCount"] = len(player["mainDeck"])
        if player["id"] == opponent:
            player["hand"] = None
            player["mainDeck"] = None

    zones = data["zones"][opponent]
    for zone in ("top", "left", "right"):
        zones[zone] = [_hide_placement(p) for p in zones[zone]]
    zones["help"] = _hide_placement(zones["help"])
    zones["sp"] = _hide_placement(zones["sp"])

    pending = data.get("pendingSelection")
    if pending is not None and pending["playerId"] == opponent:
        data["pendingSelection"] = {
            **pending,
            "eligibleCards": [],
            "eligibleCount": len(pending["eligibleCards"]),
            "context": {
                "sourceCardId": pending["context"].get("sourceCardId"),
                "effectKind": pending["context"].get("effectKind"),
            },
        }

    for play in data["playSequence"]["plays"]:
        if play["playerId"] == opponent and play["faceDown"]:
            play["cardId"] = None

    data["eventJournal"]["entries"] = [
        _project_event(event, opponent) for event in data["eventJournal"]["entries"]
    ]
    return data
