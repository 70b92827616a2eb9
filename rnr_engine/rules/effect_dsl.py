"""
Effect DSL - Declarative card effect rules.

A rule is: trigger + conditions + target + effect. Rules are pure data;
the EffectResolver interprets them against a board.

Key design decisions:
- Every rule has a stable id (used for selection ids and logging)
- Filters are conjunctive; `game_type_or` is a disjunction inside one slot
- Player choices are explicit (TargetSpec.requires_selection / target_count)
- Rules round-trip through plain dicts in the card-data JSON shape
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Trigger(Enum):
    """When a rule is active."""
    ALWAYS = "always"  # Continuous while the card is face-up on the field
    ON_PLAY = "onPlay"  # One-shot when the card enters the field face-up
    FINAL_CALCULATION = "finalCalculation"  # End-of-round totals only
    SP_PHASE = "spPhase"  # Active once the SP card is revealed


class EffectKind(Enum):
    """What a rule does."""
    POWER_BOOST = "powerBoost"
    SET_POWER = "setPower"
    NEUTRALIZE_EFFECT = "neutralizeEffect"
    DISABLE_COMBO_BONUS = "disableComboBonus"
    ZONE_PLACEMENT_FREEDOM = "zonePlacementFreedom"
    SILENCE_ON_SUMMON = "silenceOnSummon"
    PREVENT_PLAY = "preventPlay"
    FORCE_SP_PLAY = "forceSPPlay"
    RANDOM_DISCARD = "randomDiscard"
    DRAW_CARDS = "drawCards"
    SEARCH_CARD = "searchCard"
    TOTAL_POWER_NERF = "totalPowerNerf"


class TargetOwner(Enum):
    SELF = "self"
    OPPONENT = "opponent"
    BOTH = "both"


class ConditionKind(Enum):
    OPPONENT_LEADER_NAME = "opponentLeaderName"
    OPPONENT_FIELD_CONTAINS_NAME = "opponentFieldContainsName"
    ALLY_FIELD_CONTAINS_NAME = "allyFieldContainsName"
    OPPONENT_HAND_COUNT = "opponentHandCount"


class SearchDestination(Enum):
    HAND = "hand"
    SP_ZONE = "spZone"
    HELP_ZONE = "helpZone"


# Board zones in scan order. "hand" is only a target zone, never a placement zone.
FIELD_ZONES = ("top", "left", "right", "help", "sp")
CHARACTER_ZONES = ("top", "left", "right")
TARGET_ZONES = FIELD_ZONES + ("hand",)

COMPARISON_OPS = (">", ">=", "<", "<=", "==", "!=")


@dataclass(frozen=True)
class TargetFilter:
    """
    One filter slot. All set fields must match.

    Examples:
    - TargetFilter(game_type="patriot")
    - TargetFilter(game_type_or=("right-wing", "patriot"))
    - TargetFilter(trait="Trump Family", card_type="character")
    """
    game_type: str | None = None
    game_type_or: tuple[str, ...] = ()
    trait: str | None = None
    name_contains: str | None = None
    card_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        if self.game_type is not None:
            data["gameType"] = self.game_type
        if self.game_type_or:
            data["gameTypeOr"] = list(self.game_type_or)
        if self.trait is not None:
            data["trait"] = self.trait
        if self.name_contains is not None:
            data["nameContains"] = self.name_contains
        if self.card_type is not None:
            data["cardType"] = self.card_type
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TargetFilter:
        return cls(
            game_type=data.get("gameType"),
            game_type_or=tuple(data.get("gameTypeOr", ())),
            trait=data.get("trait"),
            name_contains=data.get("nameContains"),
            card_type=data.get("cardType"),
        )


@dataclass(frozen=True)
class Condition:
    """
    A board predicate.

    `value` is the name to look for; `op`/`count` are used by
    opponentHandCount, e.g. Condition(OPPONENT_HAND_COUNT, op=">", count=4).
    """
    kind: ConditionKind
    value: str | None = None
    op: str | None = None
    count: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.kind.value}
        if self.value is not None:
            data["value"] = self.value
        if self.op is not None:
            data["op"] = self.op
        if self.count is not None:
            data["n"] = self.count
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Condition:
        return cls(
            kind=ConditionKind(data["type"]),
            value=data.get("value"),
            op=data.get("op"),
            count=data.get("n"),
        )


@dataclass(frozen=True)
class TargetSpec:
    """Which cards a rule touches."""
    owner: TargetOwner = TargetOwner.SELF
    zones: tuple[str, ...] = CHARACTER_ZONES
    filters: tuple[TargetFilter, ...] = ()
    target_count: int | None = None
    requires_selection: bool = False

    @property
    def needs_choice(self) -> bool:
        return self.requires_selection or self.target_count == 1

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "owner": self.owner.value,
            "zones": list(self.zones),
            "filters": [f.to_dict() for f in self.filters],
        }
        if self.target_count is not None:
            data["targetCount"] = self.target_count
        if self.requires_selection:
            data["requiresSelection"] = True
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TargetSpec:
        return cls(
            owner=TargetOwner(data.get("owner", "self")),
            zones=tuple(data.get("zones", CHARACTER_ZONES)),
            filters=tuple(TargetFilter.from_dict(f) for f in data.get("filters", ())),
            target_count=data.get("targetCount"),
            requires_selection=bool(data.get("requiresSelection", False)),
        )


@dataclass(frozen=True)
class EffectSpec:
    """
    The effect payload.

    `value` carries the numeric parameter (delta, power, count).
    Search parameters live in their own fields.
    """
    kind: EffectKind
    value: int | None = None
    search_count: int | None = None
    select_count: int | None = None
    destination: SearchDestination | None = None
    search_filters: tuple[TargetFilter, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.kind.value}
        if self.value is not None:
            data["value"] = self.value
        if self.kind == EffectKind.SEARCH_CARD:
            data["searchCount"] = self.search_count
            data["selectCount"] = self.select_count
            data["destination"] = self.destination.value if self.destination else "hand"
            data["filters"] = [f.to_dict() for f in self.search_filters]
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EffectSpec:
        kind = EffectKind(data["type"])
        destination = None
        if kind == EffectKind.SEARCH_CARD:
            destination = SearchDestination(data.get("destination", "hand"))
        return cls(
            kind=kind,
            value=data.get("value"),
            search_count=data.get("searchCount"),
            select_count=data.get("selectCount"),
            destination=destination,
            search_filters=tuple(TargetFilter.from_dict(f) for f in data.get("filters", ())),
        )


@dataclass(frozen=True)
class EffectRule:
    """
    A complete rule on a card.

    Rules are evaluated by the resolver in a deterministic order:
    owner order, zone order, insertion order, then the order of
    this list on the card.
    """
    rule_id: str
    trigger: Trigger
    effect: EffectSpec
    target: TargetSpec = field(default_factory=TargetSpec)
    conditions: tuple[Condition, ...] = ()
    description: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.rule_id,
            "trigger": self.trigger.value,
            "conditions": [c.to_dict() for c in self.conditions],
            "target": self.target.to_dict(),
            "effect": self.effect.to_dict(),
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EffectRule:
        return cls(
            rule_id=data["id"],
            trigger=Trigger(data["trigger"]),
            effect=EffectSpec.from_dict(data["effect"]),
            target=TargetSpec.from_dict(data.get("target", {})),
            conditions=tuple(Condition.from_dict(c) for c in data.get("conditions", ())),
            description=data.get("description", ""),
        )


# ============================================================================
# Factory functions for common rule patterns
# ============================================================================

def power_boost(
    rule_id: str,
    delta: int,
    owner: TargetOwner = TargetOwner.SELF,
    filters: tuple[TargetFilter, ...] = (),
    conditions: tuple[Condition, ...] = (),
    trigger: Trigger = Trigger.ALWAYS,
    zones: tuple[str, ...] = CHARACTER_ZONES,
    select_one: bool = False,
    description: str = "",
) -> EffectRule:
    """Create an additive power rule (negative delta nerfs)."""
    return EffectRule(
        rule_id=rule_id,
        trigger=trigger,
        effect=EffectSpec(kind=EffectKind.POWER_BOOST, value=delta),
        target=TargetSpec(
            owner=owner,
            zones=zones,
            filters=filters,
            target_count=1 if select_one else None,
            requires_selection=select_one,
        ),
        conditions=conditions,
        description=description,
    )


def set_power(
    rule_id: str,
    value: int,
    owner: TargetOwner = TargetOwner.OPPONENT,
    filters: tuple[TargetFilter, ...] = (),
    conditions: tuple[Condition, ...] = (),
    trigger: Trigger = Trigger.ALWAYS,
    select_one: bool = False,
    description: str = "",
) -> EffectRule:
    """Create a set-power rule."""
    return EffectRule(
        rule_id=rule_id,
        trigger=trigger,
        effect=EffectSpec(kind=EffectKind.SET_POWER, value=value),
        target=TargetSpec(
            owner=owner,
            zones=CHARACTER_ZONES,
            filters=filters,
            target_count=1 if select_one else None,
            requires_selection=select_one,
        ),
        conditions=conditions,
        description=description,
    )


def neutralize(
    rule_id: str,
    zones: tuple[str, ...] = ("help", "sp"),
    trigger: Trigger = Trigger.ALWAYS,
    select_one: bool = False,
    description: str = "",
) -> EffectRule:
    """Create a rule that suppresses the effects of opponent cards."""
    return EffectRule(
        rule_id=rule_id,
        trigger=trigger,
        effect=EffectSpec(kind=EffectKind.NEUTRALIZE_EFFECT),
        target=TargetSpec(
            owner=TargetOwner.OPPONENT,
            zones=zones,
            target_count=1 if select_one else None,
            requires_selection=select_one,
        ),
        description=description,
    )


def flag_rule(
    rule_id: str,
    kind: EffectKind,
    owner: TargetOwner,
    zones: tuple[str, ...] = CHARACTER_ZONES,
    conditions: tuple[Condition, ...] = (),
    trigger: Trigger = Trigger.ALWAYS,
    description: str = "",
) -> EffectRule:
    """Create a restriction/flag rule (preventPlay, disableComboBonus, ...)."""
    return EffectRule(
        rule_id=rule_id,
        trigger=trigger,
        effect=EffectSpec(kind=kind),
        target=TargetSpec(owner=owner, zones=zones),
        conditions=conditions,
        description=description,
    )


def search_card(
    rule_id: str,
    search_count: int,
    select_count: int,
    destination: SearchDestination = SearchDestination.HAND,
    filters: tuple[TargetFilter, ...] = (),
    description: str = "",
) -> EffectRule:
    """Create an onPlay deck search."""
    return EffectRule(
        rule_id=rule_id,
        trigger=Trigger.ON_PLAY,
        effect=EffectSpec(
            kind=EffectKind.SEARCH_CARD,
            search_count=search_count,
            select_count=select_count,
            destination=destination,
            search_filters=filters,
        ),
        target=TargetSpec(owner=TargetOwner.SELF, zones=(), requires_selection=True),
        description=description,
    )


def draw_cards(rule_id: str, count: int, description: str = "") -> EffectRule:
    """Create an onPlay draw for the card's owner."""
    return EffectRule(
        rule_id=rule_id,
        trigger=Trigger.ON_PLAY,
        effect=EffectSpec(kind=EffectKind.DRAW_CARDS, value=count),
        target=TargetSpec(owner=TargetOwner.SELF, zones=("hand",)),
        description=description,
    )


def random_discard(
    rule_id: str,
    count: int,
    conditions: tuple[Condition, ...] = (),
    description: str = "",
) -> EffectRule:
    """Create an onPlay random discard from the opponent's hand."""
    return EffectRule(
        rule_id=rule_id,
        trigger=Trigger.ON_PLAY,
        effect=EffectSpec(kind=EffectKind.RANDOM_DISCARD, value=count),
        target=TargetSpec(owner=TargetOwner.OPPONENT, zones=("hand",)),
        conditions=conditions,
        description=description,
    )
