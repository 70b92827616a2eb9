"""
API Service - The engine's four actions behind one object.

The service:
1. Serializes work per game id (lock held across load, process, save)
2. Runs actions through the ActionProcessor
3. Persists every resulting document, rejected actions included
4. Projects the returned state for the calling player
5. Maps engine exceptions to result envelopes

This layer is framework-agnostic; api/app.py only turns envelopes into
HTTP responses.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
import logging

from ..cards.definitions import CardDefinition
from ..cards.registry import CardRegistry, default_registry
from ..config import EngineConfig
from ..engine_core.action import Action
from ..engine_core.effect_resolver import EffectResolver
from ..engine_core.invariants import check_invariants
from ..engine_core.processor import ActionProcessor
from ..engine_core.projection import project_state
from ..engine_core.setup import PlayerSetup, new_game
from ..engine_core.state import GameState
from ..errors import (
    EngineError,
    ErrorKind,
    InvariantViolation,
    PersistenceError,
    UnknownCard,
    UnknownGame,
    ValidationError,
)
from ..storage.locks import GameLockRegistry
from ..storage.store import GameStore, MemoryGameStore, check_game_id
from .schemas import CardResponse, CreateGameRequest, EffectRuleInfo, ResultEnvelope

logger = logging.getLogger(__name__)


def card_response(card: CardDefinition) -> CardResponse:
    """Convert a CardDefinition to its API form."""
    return CardResponse(
        id=card.id,
        name=card.name,
        kind=card.kind.value,
        game_type=card.game_type,
        traits=list(card.traits),
        base_power=card.base_power,
        initial_point=card.initial_point,
        immune_to_neutralization=card.immune_to_neutralization,
        zone_compatibility={zone: list(types) for zone, types in card.zone_compatibility.items()},
        effects=[
            EffectRuleInfo(
                rule_id=rule.rule_id,
                trigger=rule.trigger.value,
                description=rule.description,
                rule=rule.to_dict(),
            )
            for rule in card.effects
        ],
    )


@dataclass
class APIService:
    """
    Main engine service.

    Usage:
        service = APIService()

        # Bootstrap
        envelope = service.create_game(CreateGameRequest(game_id="g1"))

        # Play
        envelope = service.player_action("g1", "p1", Action.redraw_hand(False))
        envelope = service.acknowledge_events("g1", [12], player_id="p1")

        # Read
        envelope = service.query_state("g1", "p1")
    """
    registry: CardRegistry = field(default_factory=default_registry)
    store: GameStore = field(default_factory=MemoryGameStore)
    config: EngineConfig = field(default_factory=EngineConfig)
    locks: GameLockRegistry = field(default_factory=GameLockRegistry)

    def __post_init__(self):
        self.processor = ActionProcessor(self.registry, self.config.scoring)
        self.resolver = EffectResolver(self.registry)

    # =========================================================================
    # Actions
    # =========================================================================

    def create_game(self, request: CreateGameRequest) -> ResultEnvelope:
        """Bootstrap a new game in START_REDRAW and store it."""
        try:
            if request.game_id is not None:
                check_game_id(request.game_id)
            players = [
                PlayerSetup(p.id, p.name, list(p.deck), list(p.leaders))
                for p in request.players
            ]
            state = new_game(
                self.registry,
                players=players,
                policy=self.config.scoring,
                game_id=request.game_id,
                seed=request.seed,
                first_player=request.first_player,
            )
            with self.locks.hold(state.game_id):
                if self.store.exists(state.game_id):
                    raise ValidationError(f"Game {state.game_id} already exists", ErrorKind.FORBIDDEN)
                self.store.save(state.game_id, state)
        except EngineError as e:
            return self._error_envelope(e)

        logger.info("Created game %s (first player %s)", state.game_id, state.first_player)
        return ResultEnvelope.ok(project_state(state, None))

    def inject_state(self, game_id: str, document: dict[str, Any]) -> ResultEnvelope:
        """
        Test hook: replace a game's document.

        Derived effects are recomputed from the primary state before
        saving, so injected documents never carry stale derived data.
        """
        if not self.config.allow_inject:
            return ResultEnvelope.fail(ErrorKind.FORBIDDEN, "InjectState is disabled in production")
        try:
            check_game_id(game_id)
            try:
                state = GameState.from_dict(document)
                state.game_id = game_id
                self._check_cards(state)
                state.derived_effects = self.resolver.resolve(state).derived_effects
            except UnknownCard:
                raise
            except (KeyError, TypeError, ValueError) as e:
                raise ValidationError(f"Malformed state document: {e}", ErrorKind.FORBIDDEN) from e
            violations = check_invariants(state)
            if violations:
                raise ValidationError(
                    f"Injected state is inconsistent: {'; '.join(violations)}", ErrorKind.FORBIDDEN
                )
            state.rotate_uuid()
            with self.locks.hold(game_id):
                self.store.save(game_id, state)
        except EngineError as e:
            return self._error_envelope(e)

        logger.info("Injected state for game %s", game_id)
        return ResultEnvelope.ok(project_state(state, None))

    def player_action(self, game_id: str, player_id: str, action: Action | dict[str, Any]) -> ResultEnvelope:
        """
        Submit one action.

        A rejected action is still saved (its ERROR event and new uuid
        are part of the game's history). An invariant failure saves
        nothing.
        """
        if isinstance(action, dict):
            action = Action.from_dict(action)
        try:
            with self.locks.hold(check_game_id(game_id)):
                state = self.store.load(game_id)
                result = self.processor.process_action(state, player_id, action)
                self.store.save(game_id, result.new_state)
        except EngineError as e:
            return self._error_envelope(e)

        projected = self._project(result.new_state, player_id)
        if not result.success:
            return ResultEnvelope.fail(
                result.error_code or ErrorKind.FORBIDDEN,
                result.error or "Action rejected",
                state=projected,
                event_ids=result.event_ids,
            )
        logger.debug("Game %s: %s by %s -> %s", game_id, action.action_type.value, player_id, result.event_ids)
        return ResultEnvelope.ok(projected, result.event_ids)

    def acknowledge_events(
        self,
        game_id: str,
        event_ids: list[int],
        player_id: str | None = None,
    ) -> ResultEnvelope:
        """Mark journal entries acknowledged. Repeating a call is a no-op."""
        try:
            with self.locks.hold(check_game_id(game_id)):
                state = self.store.load(game_id)
                new_state = self.processor.acknowledge(state, event_ids, retain=self.config.journal_retain)
                if new_state.update_uuid != state.update_uuid:
                    self.store.save(game_id, new_state)
        except EngineError as e:
            return self._error_envelope(e)
        return ResultEnvelope.ok(self._project(new_state, player_id))

    def query_state(self, game_id: str, player_id: str | None = None) -> ResultEnvelope:
        """Read the player-visible projection (full document without a player id)."""
        try:
            state = self.store.load(check_game_id(game_id))
            if player_id is not None and state.get_player(player_id) is None:
                raise ValidationError(f"{player_id} is not in game {game_id}", ErrorKind.FORBIDDEN)
        except EngineError as e:
            return self._error_envelope(e)
        return ResultEnvelope.ok(self._project(state, player_id))

    # =========================================================================
    # Lookups
    # =========================================================================

    def get_card(self, card_id: str) -> CardResponse:
        """Raises UnknownCard."""
        return card_response(self.registry.lookup(card_id))

    def list_cards(self) -> list[CardResponse]:
        return [card_response(card) for card in self.registry.all_cards()]

    def list_games(self) -> list[str]:
        return self.store.list_games()

    def load_game(self, game_id: str) -> GameState:
        """Raises UnknownGame."""
        return self.store.load(check_game_id(game_id))

    # =========================================================================
    # Helpers
    # =========================================================================

    def _project(self, state: GameState, player_id: str | None) -> dict[str, Any] | None:
        if player_id is None:
            return project_state(state, None)
        if state.get_player(player_id) is None:
            return None
        return project_state(state, player_id)

    def _check_cards(self, state: GameState) -> None:
        """Raise UnknownCard for any card id the registry does not know."""
        for player in state.players:
            for card_id in player.hand + player.main_deck + player.leader_sequence:
                self.registry.lookup(card_id)
            for _, placement in state.field_placements(player.player_id):
                self.registry.lookup(placement.card_id)

    def _error_envelope(self, error: EngineError) -> ResultEnvelope:
        if isinstance(error, InvariantViolation):
            logger.error("%s", error.message)
        elif isinstance(error, PersistenceError):
            logger.error("Game store failure: %s", error.message)
        elif isinstance(error, UnknownGame):
            logger.info("%s", error.message)
        return ResultEnvelope.fail(error.kind, error.message)
