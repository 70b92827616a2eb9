"""Effect rule model - declarative card rules, their evaluation and validation."""

from .effect_dsl import (
    Trigger,
    EffectKind,
    TargetOwner,
    ConditionKind,
    SearchDestination,
    TargetFilter,
    Condition,
    TargetSpec,
    EffectSpec,
    EffectRule,
    FIELD_ZONES,
    CHARACTER_ZONES,
)
from .evaluation import CardRef, card_matches, evaluate_conditions, select_targets
from .validation import validate_card, validate_cards, CardValidationError

__all__ = [
    "Trigger",
    "EffectKind",
    "TargetOwner",
    "ConditionKind",
    "SearchDestination",
    "TargetFilter",
    "Condition",
    "TargetSpec",
    "EffectSpec",
    "EffectRule",
    "FIELD_ZONES",
    "CHARACTER_ZONES",
    "CardRef",
    "card_matches",
    "evaluate_conditions",
    "select_targets",
    "validate_card",
    "validate_cards",
    "CardValidationError",
]
