"""
Card Registry - Read-only lookup from card id to definition.

The registry is built once (from the built-in catalog or card-data
JSON) and then shared by every game in the process. Definitions are
frozen dataclasses, so sharing is safe.
"""

from __future__ import annotations
import json
from pathlib import Path
from typing import Any, Iterable

from ..errors import UnknownCard
from ..rules.validation import validate_cards
from .definitions import CardDefinition, CardKind, ComboBonus


class CardRegistry:
    """
    Immutable-after-build card lookup.

    Usage:
        registry = CardRegistry(cards, combos)
        card = registry.lookup("c-1")
    """

    def __init__(
        self,
        cards: Iterable[CardDefinition] = (),
        combos: Iterable[ComboBonus] = (),
        validate: bool = True,
    ):
        cards = list(cards)
        if validate:
            validate_cards(cards)
        self._cards: dict[str, CardDefinition] = {card.id: card for card in cards}
        self._combos: tuple[ComboBonus, ...] = tuple(combos)

    def lookup(self, card_id: str) -> CardDefinition:
        """Get a card definition. Raises UnknownCard."""
        card = self._cards.get(card_id)
        if card is None:
            raise UnknownCard(card_id)
        return card

    def get(self, card_id: str) -> CardDefinition | None:
        return self._cards.get(card_id)

    def contains(self, card_id: str) -> bool:
        return card_id in self._cards

    def __contains__(self, card_id: object) -> bool:
        return card_id in self._cards

    def __len__(self) -> int:
        return len(self._cards)

    def all_cards(self) -> list[CardDefinition]:
        return list(self._cards.values())

    def cards_of_kind(self, kind: CardKind) -> list[CardDefinition]:
        return [card for card in self._cards.values() if card.kind == kind]

    @property
    def combos(self) -> tuple[ComboBonus, ...]:
        return self._combos

    def with_cards(self, cards: Iterable[CardDefinition]) -> CardRegistry:
        """Return a new registry with extra (or replaced) cards."""
        merged = dict(self._cards)
        for card in cards:
            merged[card.id] = card
        return CardRegistry(merged.values(), self._combos)

    @classmethod
    def from_dicts(
        cls,
        cards: Iterable[dict[str, Any]],
        combos: Iterable[dict[str, Any]] = (),
    ) -> CardRegistry:
        """Build from card-data JSON objects."""
        return cls(
            (CardDefinition.from_dict(data) for data in cards),
            (
                ComboBonus(check=c["check"], bonus=int(c["bonus"]), description=c.get("description", ""))
                for c in combos
            ),
        )

    @classmethod
    def from_file(cls, path: str | Path) -> CardRegistry:
        """Load a card-data file: {"cards": [...], "combos": [...]}."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        return cls.from_dicts(data.get("cards", ()), data.get("combos", ()))


_default_registry: CardRegistry | None = None


def default_registry() -> CardRegistry:
    """The built-in catalog, built once per process."""
    global _default_registry
    if _default_registry is None:
        from .catalog import build_catalog, COMBOS
        _default_registry = CardRegistry(build_catalog(), COMBOS)
    return _default_registry
