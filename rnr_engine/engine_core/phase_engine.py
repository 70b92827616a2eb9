"""
Phase Engine - The round state machine.

START_REDRAW -> MAIN_PHASE (first turn, no draw)
DRAW_PHASE -> MAIN_PHASE on acknowledgement of DRAW_PHASE_COMPLETE
MAIN_PHASE -> DRAW_PHASE (next player's turn) | SP_PHASE | BATTLE_PHASE
SP_PHASE -> BATTLE_PHASE once both players have placed or passed
BATTLE_PHASE -> END_PHASE -> DRAW_PHASE (next round) | GAME_OVER

Every transition is total: each phase has a defined successor for every
acceptable action. Scoring numbers come from the ScoringPolicy, never
from the engine.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from collections import Counter
from typing import Any, Callable
import logging

from ..cards.definitions import CardDefinition
from ..cards.registry import CardRegistry
from ..config import ScoringPolicy
from ..rules.effect_dsl import CHARACTER_ZONES
from .effect_resolver import EffectResolver
from .journal import EventType
from .play_sequence import PlayAction
from .state import GameState, Phase, Placement

logger = logging.getLogger(__name__)

MAIN_FILL_ZONES = CHARACTER_ZONES + ("help",)


# ============================================================================
# Combo predicates (over base definitions of face-up characters)
# ============================================================================

def _all_same_type(cards: list[CardDefinition]) -> bool:
    return len(cards) >= 2 and len({c.game_type for c in cards}) == 1


def _all_different_type(cards: list[CardDefinition]) -> bool:
    return len(cards) >= 2 and len({c.game_type for c in cards}) == len(cards)


def _high_power_trio(cards: list[CardDefinition]) -> bool:
    return len(cards) >= 3 and all(c.base_power >= 80 for c in cards)


def _trait_synergy(cards: list[CardDefinition]) -> bool:
    counts = Counter(trait for c in cards for trait in set(c.traits))
    return any(n >= 2 for n in counts.values())


def _balanced_power(cards: list[CardDefinition]) -> bool:
    if len(cards) < 3:
        return False
    powers = [c.base_power for c in cards]
    return max(powers) - min(powers) <= 30


COMBO_CHECKS: dict[str, Callable[[list[CardDefinition]], bool]] = {
    "allSameType": _all_same_type,
    "allDifferentType": _all_different_type,
    "highPowerTrio": _high_power_trio,
    "traitSynergy": _trait_synergy,
    "balancedPower": _balanced_power,
}


# ============================================================================
# Card movement shared with the ActionProcessor
# ============================================================================

def draw_cards(state: GameState, player_id: str, count: int) -> list[str]:
    """Move up to `count` cards from the top of the deck to the hand."""
    player = state.get_player(player_id)
    drawn = player.main_deck[:count]
    player.main_deck = player.main_deck[len(drawn):]
    player.hand.extend(drawn)
    return drawn


@dataclass
class BattleTotal:
    player_id: str
    character_power: int
    combo_bonus: int
    combos: list[str]
    modifiers: int
    total: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "playerId": self.player_id,
            "characterPower": self.character_power,
            "comboBonus": self.combo_bonus,
            "combos": list(self.combos),
            "modifiers": self.modifiers,
            "total": self.total,
        }


@dataclass
class PhaseEngine:
    """
    Decides the next phase and current player after each action.

    Mutates the working copy it is given; the ActionProcessor owns that
    copy.
    """
    registry: CardRegistry
    policy: ScoringPolicy = field(default_factory=ScoringPolicy)

    def __post_init__(self):
        self.resolver = EffectResolver(self.registry)

    def advance(self, state: GameState) -> None:
        """Run transitions after an action that left no selection pending."""
        if state.phase == Phase.START_REDRAW:
            self._advance_redraw(state)
        elif state.phase == Phase.MAIN_PHASE:
            self._advance_main(state)
        elif state.phase == Phase.SP_PHASE:
            self._advance_sp(state)

    def acknowledge(self, state: GameState, event_ids: list[int]) -> bool:
        """
        DRAW_PHASE -> MAIN_PHASE when the latest DRAW_PHASE_COMPLETE is acknowledged.

        Returns True if the phase changed.
        """
        if state.phase != Phase.DRAW_PHASE:
            return False
        latest = state.event_journal.latest(EventType.DRAW_PHASE_COMPLETE)
        if latest is None or latest.id not in event_ids:
            return False
        self._set_phase(state, Phase.MAIN_PHASE)
        return True

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _set_phase(self, state: GameState, phase: Phase) -> None:
        previous = state.phase
        state.phase = phase
        state.event_journal.append(EventType.PHASE_CHANGE, {
            "from": previous.value,
            "to": phase.value,
            "round": state.round,
            "currentPlayer": state.current_player,
        })
        logger.info("Game %s: %s -> %s (round %d)", state.game_id, previous.value, phase.value, state.round)

    def _advance_redraw(self, state: GameState) -> None:
        if not all(p.is_ready for p in state.players):
            return
        state.game_started = True
        state.current_player = state.first_player
        state.current_turn = 0
        state.event_journal.append(EventType.GAME_STARTED, {"firstPlayer": state.first_player})
        self._set_phase(state, Phase.MAIN_PHASE)

    def is_main_settled(self, state: GameState, player_id: str) -> bool:
        """Filled top/left/right/help, passed, or out of cards."""
        player = state.get_player(player_id)
        if player.has_passed or not player.hand:
            return True
        player_zones = state.zones[player_id]
        return all(not player_zones.is_empty(zone) for zone in MAIN_FILL_ZONES)

    def _advance_main(self, state: GameState) -> None:
        if all(self.is_main_settled(state, pid) for pid in state.player_ids):
            state.event_journal.append(EventType.ALL_MAIN_ZONES_FILLED, {"round": state.round})
            if self._needs_sp_phase(state):
                self._enter_sp(state)
            else:
                self._run_battle(state)
            return
        self.next_turn(state)

    def turn_player(self, state: GameState) -> str:
        """Even turns belong to the first player."""
        if state.current_turn % 2 == 0:
            return state.first_player
        return state.opponent_of(state.first_player)

    def next_turn(self, state: GameState) -> None:
        """Advance the turn counter (skipping a settled player) and enter DRAW_PHASE."""
        state.current_turn += 1
        if self.is_main_settled(state, self.turn_player(state)):
            state.current_turn += 1
        self._enter_draw(state, self.turn_player(state))

    def _enter_draw(self, state: GameState, player_id: str) -> None:
        previous = state.current_player
        state.current_player = player_id
        state.event_journal.append(EventType.TURN_SWITCH, {
            "from": previous,
            "to": player_id,
            "turn": state.current_turn,
        })
        self._set_phase(state, Phase.DRAW_PHASE)
        drawn = draw_cards(state, player_id, self.policy.draw_per_turn)
        state.event_journal.append(EventType.DRAW_PHASE_COMPLETE, {
            "playerId": player_id,
            "cardCount": len(drawn),
            "newHandSize": len(state.get_player(player_id).hand),
            "requiresAcknowledgment": True,
        })

    # ------------------------------------------------------------------
    # SP phase
    # ------------------------------------------------------------------

    def _needs_sp_phase(self, state: GameState) -> bool:
        for pid in state.player_ids:
            sp_empty = state.zones[pid].is_empty("sp")
            if not sp_empty or state.get_player(pid).hand:
                return True
        return False

    def _enter_sp(self, state: GameState) -> None:
        for player in state.players:
            player.sp_done = bool(not state.zones[player.player_id].is_empty("sp") or not player.hand)
        self._set_phase(state, Phase.SP_PHASE)
        self._advance_sp(state)

    def _advance_sp(self, state: GameState) -> None:
        order = [state.first_player, state.opponent_of(state.first_player)]
        waiting = [pid for pid in order if not state.get_player(pid).sp_done]
        if waiting:
            if state.current_player != waiting[0]:
                state.event_journal.append(EventType.TURN_SWITCH, {
                    "from": state.current_player,
                    "to": waiting[0],
                    "turn": state.current_turn,
                })
                state.current_player = waiting[0]
            return

        state.event_journal.append(EventType.ALL_SP_ZONES_FILLED, {"round": state.round})
        self._reveal_sp(state)
        self._run_battle(state)

    def _reveal_sp(self, state: GameState) -> None:
        revealed: dict[str, str] = {}
        for pid in state.player_ids:
            placement = state.zones[pid].sp
            if placement is not None:
                placement.face_up = True
                revealed[pid] = placement.card_id
        state.event_journal.append(EventType.SP_CARDS_REVEALED, {"cards": revealed})

    # ------------------------------------------------------------------
    # Battle and end of round
    # ------------------------------------------------------------------

    def combo_bonus(self, cards: list[CardDefinition]) -> tuple[int, list[str]]:
        bonus = 0
        matched = []
        for combo in self.registry.combos:
            check = COMBO_CHECKS.get(combo.check)
            if check is not None and check(cards):
                bonus += combo.bonus
                matched.append(combo.check)
        return bonus, matched

    def battle_total(self, state: GameState, player_id: str) -> BattleTotal:
        """Face-up character power + combo bonus + aggregate modifiers, clamped at 0."""
        derived = state.derived(player_id)
        cards = []
        power = 0
        for zone, placement in state.field_placements(player_id, face_up_only=True):
            if zone not in CHARACTER_ZONES:
                continue
            cards.append(self.registry.lookup(placement.card_id))
            power += derived.calculated_powers.get(placement.card_id, 0)

        bonus, combos = (0, []) if derived.combo_bonus_disabled else self.combo_bonus(cards)
        total = max(0, power + bonus + derived.victory_point_modifiers)
        return BattleTotal(
            player_id=player_id,
            character_power=power,
            combo_bonus=bonus,
            combos=combos,
            modifiers=derived.victory_point_modifiers,
            total=total,
        )

    def _run_battle(self, state: GameState) -> None:
        self._set_phase(state, Phase.BATTLE_PHASE)
        state.derived_effects = self.resolver.resolve(state).derived_effects

        p1, p2 = state.player_ids
        totals = {pid: self.battle_total(state, pid) for pid in (p1, p2)}
        for pid, total in totals.items():
            state.get_player(pid).last_round_power = total.total
        state.event_journal.append(EventType.BATTLE_CALCULATED, {
            "round": state.round,
            "totals": {pid: t.to_dict() for pid, t in totals.items()},
        })

        winner = None
        points = 0
        if totals[p1].total != totals[p2].total:
            winner = p1 if totals[p1].total > totals[p2].total else p2
            loser = p2 if winner == p1 else p1
            points = self.policy.award(totals[winner].total, totals[loser].total)
            state.get_player(winner).player_point += points
            state.event_journal.append(EventType.VICTORY_POINTS_AWARDED, {
                "playerId": winner,
                "points": points,
                "playerPoint": state.get_player(winner).player_point,
            })

        state.last_battle = {
            "round": state.round,
            "winner": winner,
            "points": points,
            "totals": {pid: t.to_dict() for pid, t in totals.items()},
        }
        state.event_journal.append(EventType.ROUND_COMPLETE, {
            "round": state.round,
            "winner": winner,
            "points": points,
            "scores": {p.player_id: p.player_point for p in state.players},
        })
        self._end_round(state)

    def _victory_check(self, state: GameState) -> bool:
        reached = any(p.player_point >= self.policy.win_threshold for p in state.players)
        if not reached and state.round <= self.policy.max_rounds:
            return False

        p1, p2 = state.players
        if p1.player_point == p2.player_point:
            state.winner = "draw"
        else:
            state.winner = p1.player_id if p1.player_point > p2.player_point else p2.player_id
        self._set_phase(state, Phase.GAME_OVER)
        state.event_journal.append(EventType.GAME_OVER, {
            "winner": state.winner,
            "round": state.round,
            "scores": {p.player_id: p.player_point for p in state.players},
        })
        return True

    def _end_round(self, state: GameState) -> None:
        self._set_phase(state, Phase.END_PHASE)
        state.round += 1
        if self._victory_check(state):
            return

        for pid in state.player_ids:
            removed = state.zones[pid].clear()
            if removed:
                state.event_journal.append(EventType.CARD_DISCARDED, {"playerId": pid, "cardIds": removed})
        state.selection_effects = []
        state.play_sequence.clear(keep_leaders=True)

        for player in state.players:
            if player.current_leader_idx + 1 < len(player.leader_sequence):
                player.current_leader_idx += 1
            leader_id = player.leader_sequence[player.current_leader_idx] if player.leader_sequence else None
            if leader_id is not None:
                self.place_leader(state, player.player_id, leader_id)

            player.has_passed = False
            player.sp_done = False
            missing = max(0, self.policy.hand_size - len(player.hand))
            drawn = draw_cards(state, player.player_id, missing)
            if drawn:
                state.event_journal.append(EventType.CARDS_DRAWN, {
                    "playerId": player.player_id,
                    "count": len(drawn),
                    "reason": "replenish",
                })

        state.derived_effects = self.resolver.resolve(state).derived_effects
        self.next_turn(state)

    def place_leader(self, state: GameState, player_id: str, leader_id: str) -> None:
        play = state.play_sequence.record(
            player_id,
            leader_id,
            PlayAction.PLAY_LEADER,
            zone="leader",
            turn_number=state.current_turn,
            phase=state.phase.value,
        )
        state.zones[player_id].leader = Placement(card_id=leader_id, face_up=True, sequence_id=play.sequence_id)
