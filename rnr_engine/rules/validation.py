"""
Card Validation - Schema checks for card definitions and their rules.

Validates that:
1. Required fields are present and non-negative where they must be
2. Effect rules are well-formed for their kind (values, zones, search params)
3. Leader zone compatibility only names character zones
4. Rule ids are unique on a card
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .effect_dsl import (
    EffectRule,
    EffectKind,
    Trigger,
    ConditionKind,
    TARGET_ZONES,
    CHARACTER_ZONES,
    COMPARISON_OPS,
)

if TYPE_CHECKING:
    from ..cards.definitions import CardDefinition


class CardValidationError(Exception):
    """Raised when card data fails validation."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Card validation failed with {len(errors)} error(s): {errors[:3]}")


@dataclass
class ValidationResult:
    """Result of validation, with errors and warnings."""
    valid: bool
    errors: list[str]
    warnings: list[str]


# Effects whose numeric parameter is mandatory
_VALUE_REQUIRED = {
    EffectKind.POWER_BOOST,
    EffectKind.SET_POWER,
    EffectKind.RANDOM_DISCARD,
    EffectKind.DRAW_CARDS,
    EffectKind.TOTAL_POWER_NERF,
}


def validate_card(card: CardDefinition) -> ValidationResult:
    """
    Validate one card definition.

    Returns ValidationResult with errors and warnings.
    """
    from ..cards.definitions import CardKind

    errors: list[str] = []
    warnings: list[str] = []
    prefix = f"Card {card.id or '<missing id>'}"

    if not card.id:
        errors.append("card id is required")
    if card.base_power < 0:
        errors.append(f"{prefix}: basePower must be >= 0")
    if card.kind == CardKind.CHARACTER and not card.game_type:
        warnings.append(f"{prefix}: character has no gameType")

    if card.zone_compatibility and card.kind != CardKind.LEADER:
        errors.append(f"{prefix}: only leaders may declare zoneCompatibility")
    for zone in card.zone_compatibility:
        if zone not in CHARACTER_ZONES:
            errors.append(f"{prefix}: zoneCompatibility names non-character zone '{zone}'")

    seen: set[str] = set()
    for rule in card.effects:
        if rule.rule_id in seen:
            errors.append(f"{prefix}: duplicate rule id '{rule.rule_id}'")
        seen.add(rule.rule_id)
        errors.extend(f"{prefix}: {e}" for e in _validate_rule(rule))

    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def _validate_rule(rule: EffectRule) -> list[str]:
    """Validate a single effect rule."""
    errors: list[str] = []
    rid = f"rule {rule.rule_id}"
    kind = rule.effect.kind

    if kind in _VALUE_REQUIRED and rule.effect.value is None:
        errors.append(f"{rid}: {kind.value} requires a value")
    if kind in (EffectKind.RANDOM_DISCARD, EffectKind.DRAW_CARDS) and (rule.effect.value or 0) < 0:
        errors.append(f"{rid}: {kind.value} count must be >= 0")

    for zone in rule.target.zones:
        if zone not in TARGET_ZONES:
            errors.append(f"{rid}: unknown zone '{zone}'")

    if kind == EffectKind.SEARCH_CARD:
        if rule.trigger != Trigger.ON_PLAY:
            errors.append(f"{rid}: searchCard must trigger onPlay")
        if not rule.effect.search_count or rule.effect.search_count < 1:
            errors.append(f"{rid}: searchCount must be >= 1")
        if not rule.effect.select_count or rule.effect.select_count < 1:
            errors.append(f"{rid}: selectCount must be >= 1")
        elif rule.effect.search_count and rule.effect.select_count > rule.effect.search_count:
            errors.append(f"{rid}: selectCount cannot exceed searchCount")
        if rule.effect.destination is None:
            errors.append(f"{rid}: searchCard requires a destination")

    if kind == EffectKind.TOTAL_POWER_NERF and rule.trigger != Trigger.FINAL_CALCULATION:
        errors.append(f"{rid}: totalPowerNerf must trigger on finalCalculation")

    if rule.target.needs_choice and rule.trigger != Trigger.ON_PLAY:
        errors.append(f"{rid}: only onPlay rules may require a selection")

    for condition in rule.conditions:
        if condition.kind == ConditionKind.OPPONENT_HAND_COUNT:
            if condition.op not in COMPARISON_OPS or condition.count is None:
                errors.append(f"{rid}: opponentHandCount needs op and n")
        elif not condition.value:
            errors.append(f"{rid}: {condition.kind.value} needs a name value")

    return errors


def validate_cards(cards: list[CardDefinition], raise_on_error: bool = True) -> ValidationResult:
    """Validate a batch of cards, including id uniqueness."""
    errors: list[str] = []
    warnings: list[str] = []
    seen: set[str] = set()
    for card in cards:
        if card.id in seen:
            errors.append(f"Duplicate card id '{card.id}'")
        seen.add(card.id)
        result = validate_card(card)
        errors.extend(result.errors)
        warnings.extend(result.warnings)

    if errors and raise_on_error:
        raise CardValidationError(errors)
    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)
