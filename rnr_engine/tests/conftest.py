"""
Pytest fixtures for rules engine tests.
"""

import pytest

from ..cards.registry import CardRegistry, default_registry
from ..config import EngineConfig, ScoringPolicy
from ..engine_core.action import Action
from ..engine_core.effect_resolver import EffectResolver
from ..engine_core.journal import EventType
from ..engine_core.play_sequence import PlayAction
from ..engine_core.processor import ActionProcessor
from ..engine_core.state import GameState, Phase, Placement, PlayerState, PlayerZones

# zoneIndex values
TOP, LEFT, RIGHT, HELP, SP = 0, 1, 2, 3, 4


@pytest.fixture
def registry() -> CardRegistry:
    """The built-in card catalog."""
    return default_registry()


@pytest.fixture
def policy() -> ScoringPolicy:
    return ScoringPolicy()


@pytest.fixture
def processor(registry, policy) -> ActionProcessor:
    """Processor with invariant checks on."""
    return ActionProcessor(registry, policy)


@pytest.fixture
def dev_config() -> EngineConfig:
    return EngineConfig(env="development", journal_retain=0)


@pytest.fixture
def make_state(registry):
    """
    Factory for hand-built boards.

    Each side is a dict:
        leader, leaders, hand, deck, point, has_passed, sp_done, is_ready
        zones: {"top": ["c-1"], "help": "h-4", "sp": ("sp-2", False)}
    A zone entry is a card id (face-up) or a (card id, face_up) pair.
    Derived effects are resolved before the state is returned.
    """
    def build(
        p1=None,
        p2=None,
        phase=Phase.MAIN_PHASE,
        current="p1",
        first="p1",
        turn=None,
        round=1,
        seed=7,
    ) -> GameState:
        state = GameState(
            game_id="test_game",
            phase=phase,
            round=round,
            first_player=first,
            current_player=current,
            game_started=phase != Phase.START_REDRAW,
            random_seed=seed,
        )
        if turn is None:
            turn = 0 if current == first else 1
        state.current_turn = turn

        defaults = {"p1": "s-1", "p2": "s-2"}
        for player_id, side in (("p1", p1 or {}), ("p2", p2 or {})):
            leader = side.get("leader", defaults[player_id])
            leaders = list(side.get("leaders", [leader]))
            state.players.append(PlayerState(
                player_id=player_id,
                name=player_id.upper(),
                hand=list(side.get("hand", [])),
                main_deck=list(side.get("deck", [])),
                leader_sequence=leaders,
                current_leader_idx=leaders.index(leader),
                is_ready=side.get("is_ready", phase != Phase.START_REDRAW),
                player_point=side.get("point", 0),
                has_passed=side.get("has_passed", False),
                sp_done=side.get("sp_done", False),
            ))

            zones = PlayerZones()
            play = state.play_sequence.record(player_id, leader, PlayAction.PLAY_LEADER, zone="leader")
            zones.leader = Placement(leader, face_up=True, sequence_id=play.sequence_id)
            for zone, entries in side.get("zones", {}).items():
                if not isinstance(entries, list):
                    entries = [entries]
                for entry in entries:
                    card_id, face_up = entry if isinstance(entry, tuple) else (entry, True)
                    play = state.play_sequence.record(
                        player_id,
                        card_id,
                        PlayAction.PLAY_CARD if face_up else PlayAction.PLAY_CARD_BACK,
                        zone=zone,
                        face_down=not face_up,
                    )
                    zones.place(zone, Placement(card_id, face_up=face_up, sequence_id=play.sequence_id))
            state.zones[player_id] = zones

        state.derived_effects = EffectResolver(registry).resolve(state).derived_effects
        state.rotate_uuid()
        return state

    return build


def ack_draw(processor: ActionProcessor, state: GameState) -> GameState:
    """Acknowledge the latest DRAW_PHASE_COMPLETE event."""
    event = state.event_journal.latest(EventType.DRAW_PHASE_COMPLETE)
    assert event is not None
    return processor.acknowledge(state, [event.id])


def select(processor: ActionProcessor, state: GameState, card_ids: list[str]):
    """Answer the pending selection as its owner."""
    pending = state.pending_selection
    assert pending is not None
    return processor.process_action(
        state, pending.player_id, Action.select_card(pending.selection_id, card_ids)
    )


def events_of(state: GameState, event_type: str, event_ids=None) -> list:
    return [
        e for e in state.event_journal.entries
        if e.type == event_type and (event_ids is None or e.id in event_ids)
    ]
