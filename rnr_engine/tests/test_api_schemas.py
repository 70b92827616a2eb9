"""
Tests for API Pydantic schemas.

Validates that:
- The result envelope serializes error kinds by value
- Wire actions convert to engine actions
- Request defaults match a standard two-player game
- Card responses carry rules as data
"""

import pytest
from pydantic import ValidationError

from ..api.schemas import (
    ActionInfo,
    CreateGameRequest,
    PlayerActionRequest,
    ResultEnvelope,
)
from ..api.service import card_response
from ..engine_core.action import Action, ActionType
from ..errors import ErrorKind


class TestEnvelope:
    """ResultEnvelope construction and dumping."""

    def test_ok(self):
        envelope = ResultEnvelope.ok({"phase": "MAIN_PHASE"}, [3, 4])
        data = envelope.model_dump(mode="json")
        assert data == {
            "success": True,
            "state": {"phase": "MAIN_PHASE"},
            "error": None,
            "event_ids": [3, 4],
        }

    def test_fail(self):
        envelope = ResultEnvelope.fail(ErrorKind.ZONE_OCCUPIED, "Help zone is occupied")
        data = envelope.model_dump(mode="json")
        assert data["success"] is False
        assert data["state"] is None
        assert data["error"] == {"kind": "ZoneOccupied", "message": "Help zone is occupied"}
        assert data["event_ids"] == []

    def test_error_kind_from_string(self):
        envelope = ResultEnvelope.model_validate({
            "success": False,
            "error": {"kind": "NotYourTurn", "message": "wait"},
        })
        assert envelope.error.kind == ErrorKind.NOT_YOUR_TURN


class TestActionInfo:
    """Wire actions."""

    def test_play_card(self):
        info = ActionInfo(type=ActionType.PLAY_CARD_BACK, hand_index=2, zone_index=4)
        action = Action.from_dict(info.to_action_dict())
        assert action.action_type == ActionType.PLAY_CARD_BACK
        assert action.face_down
        assert action.payload.zone == "sp"
        assert action.payload.hand_index == 2

    def test_select_card(self):
        request = PlayerActionRequest.model_validate({
            "player_id": "p1",
            "action": {"type": "SelectCard", "selection_id": "sel-4-obama_boost", "selected_card_ids": ["c-1"]},
        })
        action = Action.from_dict(request.action.to_action_dict())
        assert action.action_type == ActionType.SELECT_CARD
        assert action.payload.selection_id == "sel-4-obama_boost"
        assert action.payload.selected_card_ids == ["c-1"]

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            ActionInfo.model_validate({"type": "Cheat"})


class TestRequests:
    """Request defaults."""

    def test_create_game_defaults(self):
        request = CreateGameRequest()
        assert [p.id for p in request.players] == ["p1", "p2"]
        assert request.seed == 0
        assert request.game_id is None

    def test_player_id_required(self):
        with pytest.raises(ValidationError):
            CreateGameRequest.model_validate({"players": [{"id": ""}, {"id": "p2"}]})


class TestCardResponse:
    """Card definitions in API form."""

    def test_leader(self, registry):
        response = card_response(registry.lookup("s-6"))
        assert response.kind == "leader"
        assert response.zone_compatibility == {"top": ["economy"], "right": ["economy", "right-wing"]}
        assert [e.rule_id for e in response.effects] == ["powell_economy", "powell_vs_trump"]
        assert response.effects[1].rule["conditions"] == [{"type": "opponentLeaderName", "value": "Trump"}]

    def test_immune_help_card(self, registry):
        response = card_response(registry.lookup("h-5"))
        assert response.immune_to_neutralization
        assert response.effects[0].trigger == "always"
