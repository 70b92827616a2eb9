"""
Game setup - Bootstraps a new game document and handles the opening redraw.
"""

from __future__ import annotations
from dataclasses import dataclass, field
import uuid

from ..cards.definitions import CardKind
from ..cards.registry import CardRegistry
from ..config import ScoringPolicy
from ..errors import ErrorKind, ValidationError
from .effect_resolver import EffectResolver
from .journal import EventType
from .play_sequence import PlayAction
from .state import GameState, Phase, Placement, PlayerState, PlayerZones

DEFAULT_LEADERS = {
    "p1": ["s-1", "s-3", "s-5", "s-6"],
    "p2": ["s-2", "s-4", "s-6", "s-5"],
}


@dataclass
class PlayerSetup:
    """Who is playing and with what. Empty deck/leaders use the defaults."""
    player_id: str
    name: str = ""
    deck: list[str] = field(default_factory=list)
    leaders: list[str] = field(default_factory=list)


def default_deck(registry: CardRegistry) -> list[str]:
    """One copy of every non-leader card in the registry."""
    return [card.id for card in registry.all_cards() if card.kind != CardKind.LEADER]


def default_leaders(registry: CardRegistry, player_id: str) -> list[str]:
    preferred = DEFAULT_LEADERS.get(player_id)
    if preferred and all(card_id in registry for card_id in preferred):
        return list(preferred)
    return [card.id for card in registry.cards_of_kind(CardKind.LEADER)][:4]


def _check_setup(registry: CardRegistry, setup: PlayerSetup, rounds: int) -> None:
    if len(set(setup.deck)) != len(setup.deck):
        raise ValidationError(f"Deck for {setup.player_id} contains duplicate card ids", ErrorKind.FORBIDDEN)
    for card_id in setup.deck:
        if registry.lookup(card_id).kind == CardKind.LEADER:
            raise ValidationError(f"Leader {card_id} cannot be in the main deck", ErrorKind.FORBIDDEN)
    if len(setup.leaders) < rounds:
        raise ValidationError(
            f"{setup.player_id} needs {rounds} leaders, got {len(setup.leaders)}", ErrorKind.FORBIDDEN
        )
    for card_id in setup.leaders:
        if registry.lookup(card_id).kind != CardKind.LEADER:
            raise ValidationError(f"{card_id} is not a leader card", ErrorKind.FORBIDDEN)


def new_game(
    registry: CardRegistry,
    players: list[PlayerSetup] | None = None,
    policy: ScoringPolicy | None = None,
    game_id: str | None = None,
    seed: int = 0,
    first_player: str | None = None,
) -> GameState:
    """
    Create a game in START_REDRAW.

    Decks are shuffled with the game's seeded PRNG, opening hands are
    dealt and the first leader of each player is placed.
    """
    policy = policy or ScoringPolicy()
    players = players or [PlayerSetup("p1", "Player 1"), PlayerSetup("p2", "Player 2")]
    if len(players) != 2 or players[0].player_id == players[1].player_id:
        raise ValidationError("A game needs exactly two distinct players", ErrorKind.FORBIDDEN)

    state = GameState(game_id=game_id or uuid.uuid4().hex, random_seed=seed)
    for setup in players:
        deck = list(setup.deck) or default_deck(registry)
        leaders = list(setup.leaders) or default_leaders(registry, setup.player_id)
        _check_setup(registry, PlayerSetup(setup.player_id, setup.name, deck, leaders), policy.max_rounds)
        state.next_rng().shuffle(deck)
        state.players.append(PlayerState(
            player_id=setup.player_id,
            name=setup.name or setup.player_id,
            main_deck=deck,
            leader_sequence=leaders,
        ))
        state.zones[setup.player_id] = PlayerZones()

    ids = state.player_ids
    if first_player is not None and first_player not in ids:
        raise ValidationError(f"Unknown first player {first_player}", ErrorKind.FORBIDDEN)
    state.first_player = first_player or state.next_rng().choice(ids)
    state.current_player = state.first_player

    for player in state.players:
        player.hand = player.main_deck[: policy.hand_size]
        player.main_deck = player.main_deck[policy.hand_size:]
        state.event_journal.append(EventType.INITIAL_HAND_DEALT, {
            "playerId": player.player_id,
            "count": len(player.hand),
        })
        leader_id = player.leader_sequence[0]
        play = state.play_sequence.record(
            player.player_id, leader_id, PlayAction.PLAY_LEADER,
            zone="leader", phase=Phase.START_REDRAW.value,
        )
        state.zones[player.player_id].leader = Placement(leader_id, face_up=True, sequence_id=play.sequence_id)

    state.derived_effects = EffectResolver(registry).resolve(state).derived_effects
    state.rotate_uuid()
    return state


def redraw_hand(state: GameState, player_id: str, redraw: bool, hand_size: int) -> None:
    """
    Take the opening decision for one player.

    A redraw shuffles the hand back into the deck with the seeded PRNG
    and deals a fresh hand. Either way the player becomes ready.
    """
    player = state.get_player(player_id)
    if redraw:
        deck = player.hand + player.main_deck
        state.next_rng().shuffle(deck)
        player.hand = deck[:hand_size]
        player.main_deck = deck[hand_size:]
        player.redraws_remaining -= 1
        state.event_journal.append(EventType.HAND_REDRAWN, {
            "playerId": player_id,
            "count": len(player.hand),
        })
    player.is_ready = True
    state.event_journal.append(EventType.PLAYER_READY, {"playerId": player_id, "redrew": redraw})
