"""
Effect Resolver - Recomputes derived effects from the board.

The resolver is pure with respect to the state it is given: it builds a
fresh DerivedEffects per player from primary state (placements, leaders,
resolved selection effects) and the card rules, and reports at most one
triggered onPlay effect for the card that entered the field this action.

Resolution order:
1. Reset derived state; zone restrictions default from the current leader
2. Collect active rules: current player then opponent; zones top, left,
   right, help, sp in insertion order; then the leader; then rule order.
   Revealed spPhase rules are appended, ordered by leader initialPoint
3. Neutralization
4. Restrictions and flags
5. Base powers for face-up characters
6. setPower (last in order wins)
7. powerBoost (additive), leader rules included
8. finalCalculation aggregates (BATTLE_PHASE only)
9. onPlay for the entering card: the first one-shot effect or selection
   request, from the entering card's next unprocessed rule
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Iterator
import logging

from ..cards.definitions import ALL, CardDefinition
from ..cards.registry import CardRegistry
from ..rules.effect_dsl import (
    CHARACTER_ZONES,
    FIELD_ZONES,
    EffectKind,
    EffectRule,
    Trigger,
)
from ..rules.evaluation import (
    CardRef,
    card_matches,
    evaluate_conditions,
    select_targets,
    target_players,
)
from .state import (
    DerivedEffects,
    GameState,
    PendingSelection,
    Phase,
    SelectionEffect,
    SelectionKind,
)

logger = logging.getLogger(__name__)

FLAG_EFFECTS = (
    EffectKind.PREVENT_PLAY,
    EffectKind.FORCE_SP_PLAY,
    EffectKind.ZONE_PLACEMENT_FREEDOM,
    EffectKind.DISABLE_COMBO_BONUS,
    EffectKind.SILENCE_ON_SUMMON,
)
TARGETED_EFFECTS = (EffectKind.POWER_BOOST, EffectKind.SET_POWER, EffectKind.NEUTRALIZE_EFFECT)
HAND_EFFECTS = (EffectKind.DRAW_CARDS, EffectKind.RANDOM_DISCARD)


@dataclass
class EnteringCard:
    """A card that entered the field this action, and where its onPlay rules resume."""
    owner: str
    card_id: str
    start_index: int = 0

    def after(self, rule_index: int) -> EnteringCard:
        return EnteringCard(owner=self.owner, card_id=self.card_id, start_index=rule_index + 1)

    def to_dict(self) -> dict[str, Any]:
        return {"owner": self.owner, "cardId": self.card_id, "startIndex": self.start_index}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EnteringCard:
        return cls(owner=data["owner"], card_id=data["cardId"], start_index=int(data.get("startIndex", 0)))


@dataclass
class ActiveRule:
    """A rule on a face-up card, with the card's position in the scan."""
    owner: str
    card: CardDefinition
    rule: EffectRule
    zone: str  # Field zone, or "leader"


@dataclass
class TriggeredEffect:
    """A one-shot onPlay effect that needs no player choice."""
    owner: str
    source_card_id: str
    rule: EffectRule
    rule_index: int
    targets: list[CardRef] = field(default_factory=list)


@dataclass
class SelectionRequest:
    """What the player must choose before the engine can continue."""
    selection_id: str
    player_id: str
    kind: SelectionKind
    select_count: int
    eligible_cards: list[str]
    context: dict[str, Any]

    def to_pending(self) -> PendingSelection:
        return PendingSelection(
            selection_id=self.selection_id,
            player_id=self.player_id,
            kind=self.kind,
            select_count=self.select_count,
            eligible_cards=list(self.eligible_cards),
            context=dict(self.context),
        )


@dataclass
class ResolveResult:
    derived_effects: dict[str, DerivedEffects]
    selection_request: SelectionRequest | None = None
    triggered: TriggeredEffect | None = None


@dataclass
class EffectResolver:
    """
    Stateless resolver over a card registry.

    Usage:
        result = EffectResolver(registry).resolve(state)
        state.derived_effects = result.derived_effects
    """
    registry: CardRegistry

    def resolve(self, state: GameState, entering: EnteringCard | None = None) -> ResolveResult:
        derived = self._reset(state)
        active = self.collect_rules(state)

        self._apply_neutralization(state, derived, active)
        live = [a for a in active if a.card.id not in derived[a.owner].disabled_cards]
        self._apply_flags(state, derived, live)
        self._apply_powers(state, derived, live)
        if state.phase == Phase.BATTLE_PHASE:
            self._apply_final_calculation(state, derived, live)

        result = ResolveResult(derived_effects=derived)
        if entering is not None:
            result.triggered, result.selection_request = self._resolve_entering(state, derived, entering)
        return result

    # ------------------------------------------------------------------
    # Steps 1-2
    # ------------------------------------------------------------------

    def _reset(self, state: GameState) -> dict[str, DerivedEffects]:
        derived: dict[str, DerivedEffects] = {}
        for player_id in state.player_ids:
            effects = DerivedEffects()
            leader_id = state.current_leader_id(player_id)
            leader = self.registry.get(leader_id) if leader_id else None
            for zone in CHARACTER_ZONES:
                allowed = leader.allowed_types(zone) if leader else ALL
                effects.zone_restrictions[zone] = allowed if allowed == ALL else list(allowed)
            derived[player_id] = effects
        return derived

    def collect_rules(self, state: GameState) -> list[ActiveRule]:
        """Active rules in deterministic resolution order."""
        ordered: list[ActiveRule] = []
        sp_rules: dict[str, list[ActiveRule]] = {}
        for owner in state.players_from(state.current_player):
            sp_rules[owner] = []
            cards: list[tuple[str, str]] = [
                (zone, placement.card_id)
                for zone, placement in state.field_placements(owner, face_up_only=True)
            ]
            leader_id = state.current_leader_id(owner)
            if leader_id:
                cards.append(("leader", leader_id))
            for zone, card_id in cards:
                card = self.registry.get(card_id)
                if card is None:
                    continue
                for rule in card.effects:
                    entry = ActiveRule(owner=owner, card=card, rule=rule, zone=zone)
                    if rule.trigger == Trigger.SP_PHASE:
                        sp_rules[owner].append(entry)
                    elif rule.trigger in (Trigger.ALWAYS, Trigger.FINAL_CALCULATION):
                        ordered.append(entry)

        for owner in self._sp_order(state):
            ordered.extend(sp_rules.get(owner, []))
        return ordered

    def _sp_order(self, state: GameState) -> list[str]:
        """Higher leader initialPoint first; ties go to the first player."""
        def key(player_id: str) -> tuple[int, int]:
            leader_id = state.current_leader_id(player_id)
            leader = self.registry.get(leader_id) if leader_id else None
            point = leader.initial_point if leader else 0
            return (-point, 0 if player_id == state.first_player else 1)
        return sorted(state.player_ids, key=key)

    # ------------------------------------------------------------------
    # Step 3
    # ------------------------------------------------------------------

    def _disable(self, derived: dict[str, DerivedEffects], owner: str, card_id: str) -> None:
        card = self.registry.get(card_id)
        if card is not None and card.immune_to_neutralization:
            logger.debug("%s is immune to neutralization", card_id)
            return
        disabled = derived[owner].disabled_cards
        if card_id not in disabled:
            disabled.append(card_id)

    def _apply_neutralization(
        self,
        state: GameState,
        derived: dict[str, DerivedEffects],
        active: list[ActiveRule],
    ) -> None:
        for entry in active:
            if entry.rule.effect.kind != EffectKind.NEUTRALIZE_EFFECT:
                continue
            if entry.card.id in derived[entry.owner].disabled_cards:
                continue
            if not evaluate_conditions(entry.rule, state, entry.owner, self.registry):
                continue
            refs, _ = select_targets(entry.rule, state, entry.owner, self.registry)
            for ref in refs:
                if ref.zone in FIELD_ZONES:
                    self._disable(derived, ref.owner, ref.card_id)

        for effect in self._live_selection_effects(state, derived, EffectKind.NEUTRALIZE_EFFECT):
            for card_id in effect.target_card_ids:
                if self._on_field(state, effect.target_owner, card_id):
                    self._disable(derived, effect.target_owner, card_id)

    # ------------------------------------------------------------------
    # Step 4
    # ------------------------------------------------------------------

    def _apply_flags(
        self,
        state: GameState,
        derived: dict[str, DerivedEffects],
        live: list[ActiveRule],
    ) -> None:
        for entry in live:
            kind = entry.rule.effect.kind
            if kind not in FLAG_EFFECTS:
                continue
            if not evaluate_conditions(entry.rule, state, entry.owner, self.registry):
                continue
            for player_id in target_players(entry.rule.target.owner, entry.owner, state):
                effects = derived[player_id]
                if kind == EffectKind.DISABLE_COMBO_BONUS:
                    effects.combo_bonus_disabled = True
                elif kind == EffectKind.PREVENT_PLAY:
                    zones = effects.special_flags.setdefault("preventPlay", [])
                    for zone in entry.rule.target.zones:
                        if zone not in zones:
                            zones.append(zone)
                else:
                    effects.special_flags[kind.value] = True
                    if kind == EffectKind.ZONE_PLACEMENT_FREEDOM:
                        for zone in CHARACTER_ZONES:
                            effects.zone_restrictions[zone] = ALL
                logger.debug("%s: %s on %s from %s", kind.value, entry.rule.rule_id, player_id, entry.card.id)

    # ------------------------------------------------------------------
    # Steps 5-7
    # ------------------------------------------------------------------

    def _apply_powers(
        self,
        state: GameState,
        derived: dict[str, DerivedEffects],
        live: list[ActiveRule],
    ) -> None:
        base: dict[tuple[str, str], int] = {}
        for player_id in state.player_ids:
            for zone, placement in state.field_placements(player_id, face_up_only=True):
                if zone in CHARACTER_ZONES:
                    card = self.registry.get(placement.card_id)
                    base[(player_id, placement.card_id)] = card.base_power if card else 0

        set_values: dict[tuple[str, str], int] = {}
        boosts: dict[tuple[str, str], int] = {key: 0 for key in base}

        for entry in live:
            kind = entry.rule.effect.kind
            if kind not in (EffectKind.SET_POWER, EffectKind.POWER_BOOST):
                continue
            if entry.rule.trigger == Trigger.FINAL_CALCULATION:
                continue
            if not evaluate_conditions(entry.rule, state, entry.owner, self.registry):
                continue
            refs, _ = select_targets(entry.rule, state, entry.owner, self.registry)
            for ref in refs:
                key = (ref.owner, ref.card_id)
                if key not in base:
                    continue
                if kind == EffectKind.SET_POWER:
                    set_values[key] = entry.rule.effect.value or 0
                else:
                    boosts[key] += entry.rule.effect.value or 0

        for effect in self._live_selection_effects(state, derived, EffectKind.SET_POWER):
            for card_id in effect.target_card_ids:
                key = (effect.target_owner, card_id)
                if key in base:
                    set_values[key] = effect.value or 0

        for effect in self._live_selection_effects(state, derived, EffectKind.POWER_BOOST):
            for card_id in effect.target_card_ids:
                key = (effect.target_owner, card_id)
                if key in base:
                    boosts[key] += effect.value or 0

        for (player_id, card_id), power in base.items():
            key = (player_id, card_id)
            final = set_values[key] if key in set_values else power + boosts[key]
            derived[player_id].calculated_powers[card_id] = max(0, final)

    # ------------------------------------------------------------------
    # Step 8
    # ------------------------------------------------------------------

    def _apply_final_calculation(
        self,
        state: GameState,
        derived: dict[str, DerivedEffects],
        live: list[ActiveRule],
    ) -> None:
        for entry in live:
            if entry.rule.trigger != Trigger.FINAL_CALCULATION:
                continue
            if not evaluate_conditions(entry.rule, state, entry.owner, self.registry):
                continue
            value = entry.rule.effect.value or 0
            kind = entry.rule.effect.kind
            for player_id in target_players(entry.rule.target.owner, entry.owner, state):
                if kind == EffectKind.TOTAL_POWER_NERF:
                    derived[player_id].victory_point_modifiers -= value
                elif kind == EffectKind.POWER_BOOST:
                    derived[player_id].victory_point_modifiers += value

    # ------------------------------------------------------------------
    # Step 9
    # ------------------------------------------------------------------

    def _resolve_entering(
        self,
        state: GameState,
        derived: dict[str, DerivedEffects],
        entering: EnteringCard,
    ) -> tuple[TriggeredEffect | None, SelectionRequest | None]:
        card = self.registry.get(entering.card_id)
        located = state.zones[entering.owner].find(entering.card_id)
        if card is None or located is None or not located[1].face_up:
            return None, None
        owner_effects = derived[entering.owner]
        if card.id in owner_effects.disabled_cards:
            logger.debug("%s entered disabled; onPlay skipped", card.id)
            return None, None
        if card.is_character and owner_effects.flag(EffectKind.SILENCE_ON_SUMMON.value):
            logger.debug("%s silenced on summon", card.id)
            return None, None

        for index in range(entering.start_index, len(card.effects)):
            rule = card.effects[index]
            if rule.trigger != Trigger.ON_PLAY:
                continue
            if not evaluate_conditions(rule, state, entering.owner, self.registry):
                continue
            kind = rule.effect.kind

            if kind == EffectKind.SEARCH_CARD:
                request = self._deck_search(state, entering, rule, index)
                if request is not None:
                    return None, request
                continue

            if kind in HAND_EFFECTS:
                return TriggeredEffect(entering.owner, card.id, rule, index), None

            if kind in TARGETED_EFFECTS:
                refs, needs_choice = select_targets(rule, state, entering.owner, self.registry)
                allowed_zones = CHARACTER_ZONES if kind != EffectKind.NEUTRALIZE_EFFECT else FIELD_ZONES
                refs = [r for r in refs if r.zone in allowed_zones]
                if not refs:
                    logger.debug("%s: no eligible targets", rule.rule_id)
                    continue
                if needs_choice:
                    return None, self._target_request(state, entering, rule, index, refs)
                return TriggeredEffect(entering.owner, card.id, rule, index, refs), None

        return None, None

    def _selection_id(self, state: GameState, rule: EffectRule) -> str:
        return f"sel-{state.play_sequence.global_sequence}-{rule.rule_id}"

    def _deck_search(
        self,
        state: GameState,
        entering: EnteringCard,
        rule: EffectRule,
        index: int,
    ) -> SelectionRequest | None:
        player = state.get_player(entering.owner)
        searched = list(player.main_deck[: rule.effect.search_count or 0])
        eligible = [
            card_id for card_id in searched
            if card_id in self.registry
            and card_matches(self.registry.lookup(card_id), rule.effect.search_filters)
        ]
        if not eligible:
            logger.debug("%s: nothing eligible in top %d", rule.rule_id, len(searched))
            return None
        destination = rule.effect.destination.value if rule.effect.destination else "hand"
        return SelectionRequest(
            selection_id=self._selection_id(state, rule),
            player_id=entering.owner,
            kind=SelectionKind.DECK_SEARCH,
            select_count=min(rule.effect.select_count or 1, len(eligible)),
            eligible_cards=eligible,
            context={
                "sourceCardId": entering.card_id,
                "sourceOwner": entering.owner,
                "ruleId": rule.rule_id,
                "ruleIndex": index,
                "effectKind": EffectKind.SEARCH_CARD.value,
                "destination": destination,
                "searchedCards": searched,
            },
        )

    def _target_request(
        self,
        state: GameState,
        entering: EnteringCard,
        rule: EffectRule,
        index: int,
        refs: list[CardRef],
    ) -> SelectionRequest:
        # A card id present on both sides is offered once per side as "owner:cardId"
        sides: dict[str, set[str]] = {}
        for ref in refs:
            sides.setdefault(ref.card_id, set()).add(ref.owner)
        owners: dict[str, str] = {}
        card_ids: dict[str, str] = {}
        for ref in refs:
            key = ref.card_id if len(sides[ref.card_id]) == 1 else f"{ref.owner}:{ref.card_id}"
            owners.setdefault(key, ref.owner)
            card_ids.setdefault(key, ref.card_id)
        kind = (
            SelectionKind.SINGLE_TARGET
            if rule.effect.kind == EffectKind.POWER_BOOST
            else SelectionKind.FIELD_TARGET
        )
        return SelectionRequest(
            selection_id=self._selection_id(state, rule),
            player_id=entering.owner,
            kind=kind,
            select_count=min(rule.target.target_count or 1, len(owners)),
            eligible_cards=list(owners),
            context={
                "sourceCardId": entering.card_id,
                "sourceOwner": entering.owner,
                "ruleId": rule.rule_id,
                "ruleIndex": index,
                "effectKind": rule.effect.kind.value,
                "value": rule.effect.value,
                "targetOwners": owners,
                "targetCardIds": card_ids,
            },
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _on_field(self, state: GameState, owner: str, card_id: str) -> bool:
        player_zones = state.zones.get(owner)
        if player_zones is None:
            return False
        located = player_zones.find(card_id)
        return located is not None and located[1].face_up

    def _live_selection_effects(
        self,
        state: GameState,
        derived: dict[str, DerivedEffects],
        kind: EffectKind,
    ) -> Iterator[SelectionEffect]:
        """
        Resolved choices of one kind whose source is still face-up and enabled.

        Lazy, so a neutralization applied earlier in the same pass is seen.
        """
        for effect in sorted(state.selection_effects, key=lambda e: e.sequence_id):
            if effect.effect_kind != kind.value:
                continue
            if not self._on_field(state, effect.source_owner, effect.source_card_id):
                continue
            if effect.source_card_id in derived[effect.source_owner].disabled_cards:
                continue
            yield effect
