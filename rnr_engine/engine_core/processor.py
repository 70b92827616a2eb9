"""
Action Processor - Applies player actions to game state.

The processor is the single point of state mutation.
All state changes must go through process_action().

Design principles:
- Works on a clone: the caller's state is never touched
- Validates before applying; a rejection still returns a new state
  carrying the ERROR event and a rotated updateUuid
- Delegates derived state to the EffectResolver and transitions to the
  PhaseEngine
- Suspends on a selection request and resumes on the matching SelectCard
"""

from __future__ import annotations
from dataclasses import dataclass, field
import logging

from ..cards.definitions import CardKind
from ..cards.registry import CardRegistry
from ..config import ScoringPolicy
from ..rules.effect_dsl import EffectKind, TargetOwner
from ..rules.evaluation import target_players
from .action import Action, ActionResult, ActionType
from .effect_resolver import EffectResolver, EnteringCard, TriggeredEffect
from .invariants import assert_invariants
from .journal import EventType
from .phase_engine import PhaseEngine, draw_cards
from .play_sequence import PlayAction
from .setup import redraw_hand
from .state import GameState, PendingSelection, Phase, Placement, SelectionEffect, SelectionKind
from .validator import Validator

logger = logging.getLogger(__name__)


@dataclass
class ActionProcessor:
    """
    Processes one action at a time against a game document.

    Stateless - all state is in GameState.
    The registry provides the card rules; the policy provides scoring.
    """
    registry: CardRegistry
    policy: ScoringPolicy = field(default_factory=ScoringPolicy)
    check_invariants: bool = True

    def __post_init__(self):
        self.validator = Validator(self.registry)
        self.resolver = EffectResolver(self.registry)
        self.phase_engine = PhaseEngine(self.registry, self.policy)

    def process_action(self, state: GameState, player_id: str, action: Action) -> ActionResult:
        """
        Process an action.

        Returns ActionResult with the new state; on rejection the new
        state differs from the input only by the ERROR event and uuid.
        """
        working = state.clone()
        first_event_id = working.event_journal.next_id

        outcome = self.validator.validate(working, player_id, action)
        if not outcome.ok:
            event = working.event_journal.append(EventType.ERROR, {
                "kind": outcome.kind.value,
                "message": outcome.message,
                "playerId": player_id,
                "action": action.to_dict(),
            })
            working.rotate_uuid()
            logger.warning(
                "Game %s: rejected %s from %s: %s (%s)",
                working.game_id, action.action_type.value, player_id, outcome.message, outcome.kind.value,
            )
            return ActionResult.failure(
                outcome.message,
                error_code=outcome.kind,
                new_state=working,
                event_ids=[event.id],
            )

        handler = self._get_handler(action.action_type)
        handler(working, player_id, action)

        if working.pending_selection is None:
            self.phase_engine.advance(working)
            working.derived_effects = self.resolver.resolve(working).derived_effects

        working.rotate_uuid()
        if self.check_invariants:
            assert_invariants(working)

        event_ids = [e.id for e in working.event_journal.entries if e.id >= first_event_id]
        return ActionResult.success_with_state(working, event_ids)

    def acknowledge(self, state: GameState, event_ids: list[int], retain: int = 0) -> GameState:
        """
        Acknowledge journal entries and let the phase engine react.

        Idempotent: repeating the call changes nothing further, and the
        uuid only rotates when something changed.
        """
        working = state.clone()
        # The phase engine reads the journal before truncation drops the draw event
        changed = self.phase_engine.acknowledge(working, list(event_ids))
        flipped = working.event_journal.acknowledge(event_ids, retain=retain)
        if changed:
            working.derived_effects = self.resolver.resolve(working).derived_effects
        if flipped or changed:
            working.rotate_uuid()
        return working

    def _get_handler(self, action_type: ActionType):
        """Get the handler function for an action type."""
        handlers = {
            ActionType.PLAY_CARD: self._handle_play,
            ActionType.PLAY_CARD_BACK: self._handle_play,
            ActionType.PASS: self._handle_pass,
            ActionType.SELECT_CARD: self._handle_select,
            ActionType.REDRAW: self._handle_redraw,
        }
        return handlers[action_type]

    # ------------------------------------------------------------------
    # Handlers
    # ------------------------------------------------------------------

    def _handle_play(self, state: GameState, player_id: str, action: Action) -> None:
        player = state.get_player(player_id)
        zone = action.payload.zone
        face_down = action.face_down
        card_id = player.hand.pop(action.payload.hand_index)

        was_empty = state.zones[player_id].is_empty(zone)
        self._place(state, player_id, card_id, zone, face_up=not face_down)
        if was_empty:
            state.event_journal.append(EventType.ZONE_FILLED, {"playerId": player_id, "zone": zone})

        if state.phase == Phase.SP_PHASE:
            player.sp_done = True

        if face_down:
            state.derived_effects = self.resolver.resolve(state).derived_effects
        else:
            self._run_triggers(state, [EnteringCard(owner=player_id, card_id=card_id)])

    def _handle_pass(self, state: GameState, player_id: str, action: Action) -> None:
        player = state.get_player(player_id)
        if state.phase == Phase.SP_PHASE:
            player.sp_done = True
        else:
            player.has_passed = True
        state.play_sequence.record(
            player_id, None, PlayAction.PASS,
            turn_number=state.current_turn, phase=state.phase.value,
        )
        state.event_journal.append(EventType.PLAYER_PASSED, {"playerId": player_id, "phase": state.phase.value})

    def _handle_redraw(self, state: GameState, player_id: str, action: Action) -> None:
        redraw_hand(state, player_id, action.payload.redraw, self.policy.hand_size)

    def _handle_select(self, state: GameState, player_id: str, action: Action) -> None:
        pending = state.pending_selection
        state.pending_selection = None
        selected = list(action.payload.selected_card_ids)
        stack = [EnteringCard.from_dict(e) for e in pending.context.get("resume", [])]

        if pending.kind == SelectionKind.DECK_SEARCH:
            self._complete_search(state, pending, selected, stack)
        else:
            self._complete_target(state, pending, selected)

        payload = {
            "selectionId": pending.selection_id,
            "playerId": player_id,
            "kind": pending.kind.value,
            "sourceCardId": pending.context.get("sourceCardId"),
            "selectedCount": len(selected),
        }
        if pending.kind != SelectionKind.DECK_SEARCH:
            payload["selectedCardIds"] = selected
        state.event_journal.append(EventType.CARD_SELECTION_COMPLETED, payload)

        self._run_triggers(state, stack)

    # ------------------------------------------------------------------
    # Triggered effects and suspension
    # ------------------------------------------------------------------

    def _run_triggers(self, state: GameState, stack: list[EnteringCard]) -> None:
        """
        Run onPlay rules of entering cards, top of stack first.

        Stops at the first selection request; the rest of the stack is
        saved in the pending selection so a later SelectCard resumes it.
        """
        while stack:
            entering = stack[-1]
            result = self.resolver.resolve(state, entering)
            state.derived_effects = result.derived_effects

            if result.selection_request is not None:
                request = result.selection_request
                stack[-1] = entering.after(request.context["ruleIndex"])
                pending = request.to_pending()
                pending.context["resume"] = [e.to_dict() for e in stack]
                self._suspend(state, pending)
                return

            if result.triggered is None:
                stack.pop()
                continue

            stack[-1] = entering.after(result.triggered.rule_index)
            self._apply_triggered(state, result.triggered)

        state.derived_effects = self.resolver.resolve(state).derived_effects

    def _suspend(self, state: GameState, pending: PendingSelection) -> None:
        state.pending_selection = pending
        state.current_player = pending.player_id
        state.event_journal.append(EventType.CARD_EFFECT_TRIGGERED, {
            "playerId": pending.player_id,
            "cardId": pending.context.get("sourceCardId"),
            "ruleId": pending.context.get("ruleId"),
            "effect": pending.context.get("effectKind"),
        })
        state.event_journal.append(EventType.PENDING_SELECTION, {
            "selectionId": pending.selection_id,
            "playerId": pending.player_id,
            "kind": pending.kind.value,
            "selectCount": pending.select_count,
            "eligibleCount": len(pending.eligible_cards),
        })
        logger.info("Game %s: suspended on %s for %s", state.game_id, pending.selection_id, pending.player_id)

    def _apply_triggered(self, state: GameState, triggered: TriggeredEffect) -> None:
        rule = triggered.rule
        kind = rule.effect.kind
        value = rule.effect.value or 0
        state.event_journal.append(EventType.CARD_EFFECT_TRIGGERED, {
            "playerId": triggered.owner,
            "cardId": triggered.source_card_id,
            "ruleId": rule.rule_id,
            "effect": kind.value,
        })

        if kind == EffectKind.DRAW_CARDS:
            for target in target_players(rule.target.owner, triggered.owner, state):
                drawn = draw_cards(state, target, value)
                state.event_journal.append(EventType.CARDS_DRAWN, {
                    "playerId": target,
                    "count": len(drawn),
                    "reason": "effect",
                    "sourceCardId": triggered.source_card_id,
                })
            return

        if kind == EffectKind.RANDOM_DISCARD:
            owner = rule.target.owner if rule.target.owner != TargetOwner.BOTH else TargetOwner.OPPONENT
            for target in target_players(owner, triggered.owner, state):
                player = state.get_player(target)
                rng = state.next_rng()
                picks = sorted(rng.sample(range(len(player.hand)), min(value, len(player.hand))))
                discarded = [player.hand[i] for i in picks]
                player.hand = [c for i, c in enumerate(player.hand) if i not in picks]
                state.event_journal.append(EventType.CARD_DISCARDED, {
                    "playerId": target,
                    "cardIds": discarded,
                    "reason": "randomDiscard",
                    "sourceCardId": triggered.source_card_id,
                })
            return

        # Untargeted onPlay power/neutralize effects become resolved choices over every target
        by_owner: dict[str, list[str]] = {}
        for ref in triggered.targets:
            by_owner.setdefault(ref.owner, []).append(ref.card_id)
        for target_owner, card_ids in by_owner.items():
            state.selection_effects.append(SelectionEffect(
                source_card_id=triggered.source_card_id,
                source_owner=triggered.owner,
                effect_kind=kind.value,
                target_owner=target_owner,
                target_card_ids=card_ids,
                value=rule.effect.value,
                sequence_id=state.play_sequence.global_sequence,
            ))

    # ------------------------------------------------------------------
    # Selection completion
    # ------------------------------------------------------------------

    def _complete_search(
        self,
        state: GameState,
        pending: PendingSelection,
        selected: list[str],
        stack: list[EnteringCard],
    ) -> None:
        context = pending.context
        owner = context["sourceOwner"]
        player = state.get_player(owner)
        searched = list(context.get("searchedCards", []))

        # Searched cards are still the top of the deck
        if player.main_deck[: len(searched)] == searched:
            remaining = player.main_deck[len(searched):]
        else:
            remaining = [c for c in player.main_deck if c not in searched]
        unselected = [c for c in searched if c not in selected]
        player.main_deck = remaining + unselected

        destination = context.get("destination", "hand")
        for card_id in selected:
            self._deliver(state, owner, card_id, destination, context.get("sourceCardId"), stack)

    def _deliver(
        self,
        state: GameState,
        owner: str,
        card_id: str,
        destination: str,
        source_card_id: str | None,
        stack: list[EnteringCard],
    ) -> None:
        player_zones = state.zones[owner]
        card = self.registry.lookup(card_id)

        if destination == "spZone" and player_zones.is_empty("sp"):
            self._place(state, owner, card_id, "sp", face_up=False)
            state.event_journal.append(EventType.CARD_MOVED_TO_SP_ZONE, {
                "playerId": owner,
                "cardId": card_id,
                "faceDown": True,
                "sourceCardId": source_card_id,
            })
            return

        if (
            destination == "helpZone"
            and player_zones.is_empty("help")
            and card.kind == CardKind.HELP
            and "help" not in state.derived(owner).prevented_zones()
        ):
            self._place(state, owner, card_id, "help", face_up=True)
            state.event_journal.append(EventType.CARD_MOVED_TO_HELP_ZONE, {
                "playerId": owner,
                "cardId": card_id,
                "sourceCardId": source_card_id,
            })
            stack.append(EnteringCard(owner=owner, card_id=card_id))
            return

        state.get_player(owner).hand.append(card_id)
        state.event_journal.append(EventType.CARD_MOVED_TO_HAND, {
            "playerId": owner,
            "cardId": card_id,
            "sourceCardId": source_card_id,
            "fallback": destination != "hand",
        })

    def _complete_target(self, state: GameState, pending: PendingSelection, selected: list[str]) -> None:
        context = pending.context
        owners = context.get("targetOwners", {})
        card_ids = context.get("targetCardIds", {})
        by_owner: dict[str, list[str]] = {}
        for choice in selected:
            target_owner = owners.get(choice, state.opponent_of(pending.player_id))
            by_owner.setdefault(target_owner, []).append(card_ids.get(choice, choice))
        for target_owner, targets in by_owner.items():
            state.selection_effects.append(SelectionEffect(
                source_card_id=context["sourceCardId"],
                source_owner=context["sourceOwner"],
                effect_kind=context["effectKind"],
                target_owner=target_owner,
                target_card_ids=targets,
                value=context.get("value"),
                sequence_id=state.play_sequence.global_sequence,
            ))

    # ------------------------------------------------------------------
    # Board helpers
    # ------------------------------------------------------------------

    def _place(self, state: GameState, player_id: str, card_id: str, zone: str, face_up: bool) -> None:
        play = state.play_sequence.record(
            player_id,
            card_id,
            PlayAction.PLAY_CARD if face_up else PlayAction.PLAY_CARD_BACK,
            zone=zone,
            face_down=not face_up,
            turn_number=state.current_turn,
            phase=state.phase.value,
        )
        state.zones[player_id].place(zone, Placement(card_id=card_id, face_up=face_up, sequence_id=play.sequence_id))
        state.event_journal.append(EventType.CARD_PLAYED, {
            "playerId": player_id,
            "cardId": card_id,
            "zone": zone,
            "faceDown": not face_up,
            "sequenceId": play.sequence_id,
        })
