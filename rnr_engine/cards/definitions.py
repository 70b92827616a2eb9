"""
Card Definitions - Immutable static card data.

A CardDefinition is the rulebook entry for a card id. Runtime presence
on the board is a Placement (see engine_core.state); definitions never
change for the life of the process.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..rules.effect_dsl import EffectRule, CHARACTER_ZONES

ALL = "ALL"


class CardKind(Enum):
    CHARACTER = "character"
    HELP = "help"
    SP = "sp"
    LEADER = "leader"


@dataclass(frozen=True)
class CardDefinition:
    """
    Static definition of a card.

    zone_compatibility is only meaningful for leaders: it maps
    top/left/right to the gameTypes allowed there while that leader
    is active. Missing zones default to ALL.
    """
    id: str
    name: str
    kind: CardKind
    game_type: str = ""
    traits: tuple[str, ...] = ()
    base_power: int = 0
    effects: tuple[EffectRule, ...] = ()
    zone_compatibility: dict[str, tuple[str, ...]] = field(default_factory=dict)
    immune_to_neutralization: bool = False
    initial_point: int = 0  # Leader SP priority

    @property
    def is_character(self) -> bool:
        return self.kind == CardKind.CHARACTER

    def allowed_types(self, zone: str) -> tuple[str, ...] | str:
        """Allowed gameTypes for a zone under this leader."""
        if zone not in CHARACTER_ZONES:
            return ALL
        allowed = self.zone_compatibility.get(zone)
        if allowed is None or ALL in allowed:
            return ALL
        return allowed

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
            "cardType": self.kind.value,
            "gameType": self.game_type,
            "traits": list(self.traits),
            "power": self.base_power,
            "effects": {
                "rules": [rule.to_dict() for rule in self.effects],
                "immuneToNeutralization": self.immune_to_neutralization,
            },
        }
        if self.kind == CardKind.LEADER:
            data["zoneCompatibility"] = {
                zone: list(types) for zone, types in self.zone_compatibility.items()
            }
            data["initialPoint"] = self.initial_point
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CardDefinition:
        effects = data.get("effects") or {}
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            kind=CardKind(data["cardType"]),
            game_type=data.get("gameType", ""),
            traits=tuple(data.get("traits", ())),
            base_power=int(data.get("power", 0)),
            effects=tuple(EffectRule.from_dict(r) for r in effects.get("rules", ())),
            zone_compatibility={
                zone: tuple(types)
                for zone, types in (data.get("zoneCompatibility") or {}).items()
            },
            immune_to_neutralization=bool(effects.get("immuneToNeutralization", False)),
            initial_point=int(data.get("initialPoint", 0)),
        )


@dataclass(frozen=True)
class ComboBonus:
    """
    One entry of the combo table.

    check is the name of a combo predicate (see phase_engine.COMBO_CHECKS):
    allSameType, allDifferentType, highPowerTrio, traitSynergy, balancedPower.
    """
    check: str
    bonus: int
    description: str = ""
