"""Card registry - static card definitions and the built-in catalog."""

from .definitions import ALL, CardDefinition, CardKind, ComboBonus
from .registry import CardRegistry, default_registry

__all__ = [
    "ALL",
    "CardDefinition",
    "CardKind",
    "ComboBonus",
    "CardRegistry",
    "default_registry",
]
