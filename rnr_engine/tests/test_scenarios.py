"""
End-to-end scenarios through the processor and the service.

Tests:
- Face-up character play under a leader boost
- Set-power targeting and its neutralization
- Deck search into an occupied destination
- Suspension across a persist/reload boundary
- Zone compatibility rejection
- Face-down SP play
"""

from ..api.service import APIService
from ..engine_core.action import Action
from ..engine_core.journal import EventType
from ..engine_core.state import Phase, SelectionKind
from ..errors import ErrorKind
from ..storage.store import JsonFileStore
from .conftest import HELP, LEFT, SP, TOP, ack_draw, events_of, select


class TestFaceUpCharacterPlay:
    """Playing a character face-up under Trump."""

    def test_patriot_to_left(self, processor, make_state):
        """c-1 enters left, gets Trump's +45, and the turn passes to P2."""
        state = make_state(
            p1={"leader": "s-1", "hand": ["c-1"]},
            p2={"leader": "s-2", "hand": ["c-5"], "deck": ["c-6"]},
        )

        result = processor.process_action(state, "p1", Action.play_card(0, LEFT))

        assert result.success
        new = result.new_state
        assert [p.card_id for p in new.zones["p1"].left] == ["c-1"]
        assert new.derived_effects["p1"].calculated_powers["c-1"] == 145
        assert new.phase == Phase.DRAW_PHASE
        assert new.current_player == "p2"
        assert new.get_player("p2").hand == ["c-5", "c-6"]
        played = events_of(new, EventType.CARD_PLAYED, result.event_ids)
        assert len(played) == 1
        assert played[0].payload["cardId"] == "c-1"
        assert played[0].payload["zone"] == "left"

    def test_input_state_untouched(self, processor, make_state):
        """process_action works on a copy."""
        state = make_state(p1={"hand": ["c-1"]}, p2={"hand": ["c-5"]})
        before = state.to_dict()

        processor.process_action(state, "p1", Action.play_card(0, LEFT))

        assert state.to_dict() == before


class TestSetPowerAndNeutralize:
    """h-2 zeroes a character; h-1 neutralizes h-2."""

    def test_set_power_then_neutralize(self, processor, make_state):
        state = make_state(
            p1={"leader": "s-1", "hand": ["h-1", "c-3"], "deck": ["c-7"], "zones": {"left": ["c-1"]}},
            p2={"leader": "s-2", "hand": ["h-2", "c-5"], "deck": ["c-6"]},
            current="p2",
        )
        assert state.derived_effects["p1"].calculated_powers["c-1"] == 145

        # P2 plays h-2 and is asked for a target
        result = processor.process_action(state, "p2", Action.play_card(0, HELP))
        assert result.success
        state = result.new_state
        pending = state.pending_selection
        assert pending is not None
        assert pending.player_id == "p2"
        assert pending.kind == SelectionKind.FIELD_TARGET
        assert pending.eligible_cards == ["c-1"]
        assert state.current_player == "p2"

        result = select(processor, state, ["c-1"])
        assert result.success
        state = result.new_state
        assert state.pending_selection is None
        assert state.derived_effects["p1"].calculated_powers["c-1"] == 0
        assert state.phase == Phase.DRAW_PHASE
        assert state.current_player == "p1"

        # P1 answers with h-1 on h-2
        state = ack_draw(processor, state)
        assert state.phase == Phase.MAIN_PHASE
        result = processor.process_action(state, "p1", Action.play_card(0, HELP))
        assert result.success
        state = result.new_state
        assert state.pending_selection.eligible_cards == ["h-2"]

        result = select(processor, state, ["h-2"])
        assert result.success
        state = result.new_state
        assert "h-2" in state.derived_effects["p2"].disabled_cards
        assert state.derived_effects["p1"].calculated_powers["c-1"] == 145


class TestDeckSearchDestination:
    """c-10 searches for an SP card into the SP zone."""

    DECK = ["c-3", "sp-1", "c-4", "sp-2", "c-5", "c-6", "c-7", "c-8"]

    def _board(self, make_state, sp=None):
        zones = {"sp": (sp, False)} if sp else {}
        return make_state(
            p1={"leader": "s-1", "hand": ["c-10"], "deck": self.DECK, "zones": zones},
            p2={"leader": "s-2", "hand": ["c-22"], "deck": ["c-14"]},
        )

    def test_occupied_sp_zone_falls_back_to_hand(self, processor, make_state):
        state = self._board(make_state, sp="sp-3")

        result = processor.process_action(state, "p1", Action.play_card(0, TOP))
        assert result.success
        state = result.new_state
        pending = state.pending_selection
        assert pending.kind == SelectionKind.DECK_SEARCH
        assert pending.eligible_cards == ["sp-1", "sp-2"]
        assert pending.select_count == 1

        result = select(processor, state, ["sp-1"])
        assert result.success
        state = result.new_state
        p1 = state.get_player("p1")
        assert p1.hand == ["sp-1"]
        assert state.zones["p1"].sp.card_id == "sp-3"
        # Unselected searched cards go to the bottom in their original order
        assert p1.main_deck == ["c-8", "c-3", "c-4", "sp-2", "c-5", "c-6", "c-7"]
        moved = events_of(state, EventType.CARD_MOVED_TO_HAND, result.event_ids)
        assert moved[0].payload["fallback"] is True

    def test_empty_sp_zone_receives_card_face_down(self, processor, make_state):
        state = self._board(make_state)

        state = processor.process_action(state, "p1", Action.play_card(0, TOP)).new_state
        result = select(processor, state, ["sp-2"])

        assert result.success
        sp = result.new_state.zones["p1"].sp
        assert sp.card_id == "sp-2"
        assert not sp.face_up
        assert events_of(result.new_state, EventType.CARD_MOVED_TO_SP_ZONE, result.event_ids)


class TestSuspensionAcrossProcesses:
    """A pending selection survives a persist/reload."""

    def test_select_after_reload(self, tmp_path, make_state, registry, dev_config):
        state = make_state(
            p1={"leader": "s-2", "hand": ["c-21", "c-3"], "deck": ["c-7"], "zones": {"top": ["c-1"]}},
            p2={"leader": "s-6", "hand": ["c-8"], "deck": ["c-2"]},
        )
        first = APIService(registry=registry, store=JsonFileStore(tmp_path), config=dev_config)
        assert first.inject_state("g4", state.to_dict()).success

        envelope = first.player_action("g4", "p1", Action.play_card(0, LEFT))
        assert envelope.success
        pending = envelope.state["pendingSelection"]
        assert pending["kind"] == "singleTarget"
        assert pending["eligibleCards"] == ["c-1", "c-21"]

        # A fresh service over the same directory
        second = APIService(registry=registry, store=JsonFileStore(tmp_path), config=dev_config)
        reloaded = second.query_state("g4", "p1")
        assert reloaded.state["pendingSelection"]["selectionId"] == pending["selectionId"]

        envelope = second.player_action(
            "g4", "p1", Action.select_card(pending["selectionId"], ["c-1"])
        )
        assert envelope.success
        assert envelope.state["pendingSelection"] is None
        assert envelope.state["phase"] == "DRAW_PHASE"
        powers = envelope.state["derivedEffects"]["p1"]["calculatedPowers"]
        assert powers["c-1"] == 190
        assert powers["c-21"] == 135


class TestZoneCompatibilityRejection:
    """Trump's top zone refuses patriots."""

    def test_patriot_to_top_rejected(self, processor, make_state):
        state = make_state(p1={"leader": "s-1", "hand": ["c-1"]}, p2={"hand": ["c-5"]})

        result = processor.process_action(state, "p1", Action.play_card(0, TOP))

        assert not result.success
        assert result.error_code == ErrorKind.ZONE_COMPATIBILITY
        new = result.new_state
        assert new.update_uuid != state.update_uuid
        assert [e.type for e in new.event_journal.entries] == [EventType.ERROR]
        assert new.event_journal.entries[0].payload["kind"] == "ZoneCompatibility"

        before, after = state.to_dict(), new.to_dict()
        for key in ("eventJournal", "updateUuid"):
            before.pop(key)
            after.pop(key)
        assert before == after


class TestFaceDownSpPlay:
    """SP_PHASE accepts any card face-down in the SP zone."""

    def _board(self, make_state):
        return make_state(
            p1={"leader": "s-1", "hand": ["c-1", "c-3"], "zones": {"top": ["c-4"]}},
            p2={"leader": "s-2", "hand": ["c-5"]},
            phase=Phase.SP_PHASE,
        )

    def test_character_face_down_to_sp(self, processor, make_state):
        state = self._board(make_state)

        result = processor.process_action(state, "p1", Action.play_card_back(0, SP))

        assert result.success
        new = result.new_state
        assert new.zones["p1"].sp.card_id == "c-1"
        assert not new.zones["p1"].sp.face_up
        powers = new.derived_effects["p1"].calculated_powers
        assert "c-1" not in powers
        assert powers["c-4"] == 135
        assert new.get_player("p1").sp_done
        assert new.current_player == "p2"
        assert new.phase == Phase.SP_PHASE

    def test_face_up_play_rejected_in_sp_phase(self, processor, make_state):
        state = self._board(make_state)

        result = processor.process_action(state, "p1", Action.play_card(0, SP))

        assert not result.success
        assert result.error_code == ErrorKind.WRONG_PHASE
