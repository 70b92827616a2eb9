"""
Rule Evaluation - Side-effect-free interpretation of conditions and targets.

Both entry points read the board and never write to it. Face-down
placements are invisible here: they neither satisfy name conditions
nor become targets.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, NamedTuple
import operator

from .effect_dsl import (
    Condition,
    ConditionKind,
    EffectRule,
    TargetFilter,
    TargetOwner,
)

if TYPE_CHECKING:
    from ..cards.definitions import CardDefinition
    from ..cards.registry import CardRegistry
    from ..engine_core.state import GameState


_OPS = {
    ">": operator.gt,
    ">=": operator.ge,
    "<": operator.lt,
    "<=": operator.le,
    "==": operator.eq,
    "!=": operator.ne,
}


class CardRef(NamedTuple):
    """A card on the board (or in a hand) as seen by a rule."""
    owner: str
    zone: str
    card_id: str


def filter_matches(card: CardDefinition, f: TargetFilter) -> bool:
    if f.game_type is not None and card.game_type != f.game_type:
        return False
    if f.game_type_or and card.game_type not in f.game_type_or:
        return False
    if f.trait is not None and f.trait not in card.traits:
        return False
    if f.name_contains is not None and f.name_contains not in card.name:
        return False
    if f.card_type is not None and card.kind.value != f.card_type:
        return False
    return True


def card_matches(card: CardDefinition, filters: tuple[TargetFilter, ...]) -> bool:
    """Conjunction over all filter slots. No filters matches everything."""
    return all(filter_matches(card, f) for f in filters)


def _field_names(state: GameState, player_id: str, registry: CardRegistry) -> list[str]:
    return [
        registry.lookup(placement.card_id).name
        for _, placement in state.field_placements(player_id, face_up_only=True)
    ]


def _condition_holds(
    condition: Condition,
    state: GameState,
    owner: str,
    registry: CardRegistry,
) -> bool:
    opponent = state.opponent_of(owner)

    if condition.kind == ConditionKind.OPPONENT_LEADER_NAME:
        leader_id = state.current_leader_id(opponent)
        if leader_id is None:
            return False
        return registry.lookup(leader_id).name == condition.value

    if condition.kind == ConditionKind.OPPONENT_FIELD_CONTAINS_NAME:
        return any(condition.value in name for name in _field_names(state, opponent, registry))

    if condition.kind == ConditionKind.ALLY_FIELD_CONTAINS_NAME:
        return any(condition.value in name for name in _field_names(state, owner, registry))

    if condition.kind == ConditionKind.OPPONENT_HAND_COUNT:
        player = state.get_player(opponent)
        compare = _OPS.get(condition.op or ">=")
        if player is None or compare is None:
            return False
        return compare(len(player.hand), condition.count or 0)

    return False


def evaluate_conditions(
    rule: EffectRule,
    state: GameState,
    owner: str,
    registry: CardRegistry,
) -> bool:
    """True when every condition on the rule holds for `owner`."""
    return all(_condition_holds(c, state, owner, registry) for c in rule.conditions)


def target_players(target_owner: TargetOwner, owner: str, state: GameState) -> list[str]:
    """Player ids a target spec refers to, own player first."""
    if target_owner == TargetOwner.SELF:
        return [owner]
    if target_owner == TargetOwner.OPPONENT:
        return [state.opponent_of(owner)]
    return state.players_from(owner)


def select_targets(
    rule: EffectRule,
    state: GameState,
    owner: str,
    registry: CardRegistry,
) -> tuple[list[CardRef], bool]:
    """
    Cards a rule would touch, in board scan order.

    Returns (refs, requires_selection). Scan order is: target players
    (owner first), zones top, left, right, help, sp, hand, then insertion
    order within a zone.
    """
    target = rule.target
    refs: list[CardRef] = []
    for player_id in target_players(target.owner, owner, state):
        player_zones = state.zones.get(player_id)
        for zone in ("top", "left", "right", "help", "sp", "hand"):
            if zone not in target.zones:
                continue
            if zone == "hand":
                player = state.get_player(player_id)
                card_ids = list(player.hand) if player else []
            elif player_zones is None:
                continue
            else:
                card_ids = [p.card_id for p in player_zones.get(zone) if p.face_up]
            for card_id in card_ids:
                card = registry.get(card_id)
                if card is not None and card_matches(card, target.filters):
                    refs.append(CardRef(player_id, zone, card_id))
    return refs, target.needs_choice
