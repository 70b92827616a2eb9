"""
Validator - Decides whether a proposed action is admissible.

The validator never raises and never mutates: it returns a
ValidationOutcome that the ActionProcessor turns into either a state
change or an ERROR event. Zone restrictions and play prevention are read
from derived_effects, so the state must have been resolved.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..cards.definitions import CardKind
from ..cards.registry import CardRegistry
from ..errors import ErrorKind
from ..rules.effect_dsl import CHARACTER_ZONES
from .action import Action, ActionPayload, ActionType
from .state import GameState, Phase, SelectionKind

PLAYER_ACTION_PHASES = (Phase.MAIN_PHASE, Phase.SP_PHASE)


@dataclass(frozen=True)
class ValidationOutcome:
    """Ok, or Fail(kind, message)."""
    ok: bool
    kind: ErrorKind | None = None
    message: str = ""

    @classmethod
    def success(cls) -> ValidationOutcome:
        return cls(ok=True)

    @classmethod
    def fail(cls, kind: ErrorKind, message: str) -> ValidationOutcome:
        return cls(ok=False, kind=kind, message=message)


_OK = ValidationOutcome.success()


@dataclass
class Validator:
    """
    Stateless admissibility checks.

    Usage:
        outcome = Validator(registry).validate(state, "p1", action)
        if not outcome.ok:
            ...
    """
    registry: CardRegistry

    def validate(self, state: GameState, player_id: str, action: Action) -> ValidationOutcome:
        if state.get_player(player_id) is None:
            return ValidationOutcome.fail(ErrorKind.FORBIDDEN, f"Unknown player {player_id}")

        if state.phase == Phase.GAME_OVER:
            return ValidationOutcome.fail(ErrorKind.WRONG_PHASE, "Game is over - no actions allowed")

        pending = state.pending_selection
        if action.action_type == ActionType.SELECT_CARD:
            return self._validate_select(state, player_id, action.payload)
        if pending is not None:
            return ValidationOutcome.fail(
                ErrorKind.NO_PENDING_SELECTION,
                f"Waiting for {pending.player_id} to resolve selection {pending.selection_id}",
            )

        handler = {
            ActionType.PLAY_CARD: self._validate_play,
            ActionType.PLAY_CARD_BACK: self._validate_play,
            ActionType.PASS: self._validate_pass,
            ActionType.REDRAW: self._validate_redraw,
        }.get(action.action_type)
        if handler is None:
            return ValidationOutcome.fail(ErrorKind.FORBIDDEN, f"Unsupported action {action.action_type}")
        return handler(state, player_id, action)

    # ------------------------------------------------------------------
    # PlayCard / PlayCardBack
    # ------------------------------------------------------------------

    def _validate_play(self, state: GameState, player_id: str, action: Action) -> ValidationOutcome:
        payload = action.payload
        face_down = action.face_down

        if state.current_player != player_id:
            return ValidationOutcome.fail(ErrorKind.NOT_YOUR_TURN, f"Not {player_id}'s turn")

        zone = payload.zone
        if zone is None:
            return ValidationOutcome.fail(ErrorKind.INVALID_ZONE, f"Invalid zone index {payload.zone_index}")

        if state.phase == Phase.MAIN_PHASE:
            if zone == "sp":
                return ValidationOutcome.fail(
                    ErrorKind.WRONG_PHASE, "The SP zone is only played during SP_PHASE"
                )
        elif state.phase == Phase.SP_PHASE:
            if zone != "sp" or not face_down:
                return ValidationOutcome.fail(
                    ErrorKind.WRONG_PHASE, "Only face-down plays to the SP zone are allowed in SP_PHASE"
                )
        else:
            return ValidationOutcome.fail(
                ErrorKind.WRONG_PHASE, f"Cannot play cards during {state.phase.value}"
            )

        player = state.get_player(player_id)
        hand_index = payload.hand_index
        if hand_index is None or not 0 <= hand_index < len(player.hand):
            return ValidationOutcome.fail(
                ErrorKind.INVALID_HAND_INDEX,
                f"Hand index {hand_index} out of range (hand size {len(player.hand)})",
            )

        card = self.registry.lookup(player.hand[hand_index])
        if card.kind == CardKind.LEADER:
            return ValidationOutcome.fail(ErrorKind.FORBIDDEN, "Leader cards cannot be played from hand")

        derived = state.derived(player_id)
        if not face_down:
            if zone in CHARACTER_ZONES and card.kind != CardKind.CHARACTER:
                return ValidationOutcome.fail(
                    ErrorKind.ZONE_COMPATIBILITY, f"{card.id} is not a character card"
                )
            if zone == "help" and card.kind != CardKind.HELP:
                return ValidationOutcome.fail(
                    ErrorKind.ZONE_COMPATIBILITY, f"{card.id} cannot be played to the help zone"
                )
            if zone in CHARACTER_ZONES and not derived.allows(zone, card.game_type):
                return ValidationOutcome.fail(
                    ErrorKind.ZONE_COMPATIBILITY,
                    f"{card.game_type} cards are not allowed in {zone}",
                )

        if zone not in CHARACTER_ZONES and not state.zones[player_id].is_empty(zone):
            return ValidationOutcome.fail(ErrorKind.ZONE_OCCUPIED, f"The {zone} zone is occupied")

        if zone in derived.prevented_zones():
            return ValidationOutcome.fail(ErrorKind.FORBIDDEN, f"Playing to {zone} is prevented")

        return _OK

    # ------------------------------------------------------------------
    # SelectCard
    # ------------------------------------------------------------------

    def _validate_select(self, state: GameState, player_id: str, payload: ActionPayload) -> ValidationOutcome:
        pending = state.pending_selection
        if pending is None:
            return ValidationOutcome.fail(ErrorKind.NO_PENDING_SELECTION, "No selection is pending")

        if payload.selection_id != pending.selection_id:
            return ValidationOutcome.fail(
                ErrorKind.INVALID_SELECTION,
                f"Selection {payload.selection_id} does not match pending {pending.selection_id}",
            )

        if player_id != pending.player_id:
            return ValidationOutcome.fail(
                ErrorKind.NOT_YOUR_TURN, f"Selection belongs to {pending.player_id}"
            )

        selected = payload.selected_card_ids
        if len(set(selected)) != len(selected):
            return ValidationOutcome.fail(ErrorKind.INVALID_SELECTION, "Duplicate card ids in selection")

        if pending.kind == SelectionKind.SINGLE_TARGET and len(selected) != 1:
            return ValidationOutcome.fail(
                ErrorKind.INVALID_SELECTION, "A single-target selection needs exactly one card"
            )

        if len(selected) != pending.select_count:
            return ValidationOutcome.fail(
                ErrorKind.INVALID_SELECTION,
                f"Expected {pending.select_count} card(s), got {len(selected)}",
            )

        for card_id in selected:
            if card_id not in pending.eligible_cards:
                return ValidationOutcome.fail(
                    ErrorKind.INVALID_SELECTION, f"{card_id} is not an eligible choice"
                )

        return _OK

    # ------------------------------------------------------------------
    # Pass / Redraw
    # ------------------------------------------------------------------

    def _validate_pass(self, state: GameState, player_id: str, action: Action) -> ValidationOutcome:
        if state.current_player != player_id:
            return ValidationOutcome.fail(ErrorKind.NOT_YOUR_TURN, f"Not {player_id}'s turn")

        if state.phase not in PLAYER_ACTION_PHASES:
            return ValidationOutcome.fail(
                ErrorKind.WRONG_PHASE, f"Cannot pass during {state.phase.value}"
            )

        if state.phase == Phase.SP_PHASE:
            player = state.get_player(player_id)
            if (
                state.derived(player_id).flag("forceSPPlay")
                and player.hand
                and state.zones[player_id].is_empty("sp")
            ):
                return ValidationOutcome.fail(
                    ErrorKind.FORBIDDEN, "An SP card must be played while forceSPPlay is active"
                )

        return _OK

    def _validate_redraw(self, state: GameState, player_id: str, action: Action) -> ValidationOutcome:
        if state.phase != Phase.START_REDRAW:
            return ValidationOutcome.fail(ErrorKind.WRONG_PHASE, "Redraw is only allowed before the game starts")

        player = state.get_player(player_id)
        if player.is_ready:
            return ValidationOutcome.fail(ErrorKind.FORBIDDEN, f"{player_id} has already decided")

        if action.payload.redraw and player.redraws_remaining <= 0:
            return ValidationOutcome.fail(ErrorKind.FORBIDDEN, "No redraws remaining")

        return _OK
