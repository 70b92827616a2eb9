"""
Invariants - Document checks run after every processed action.

A violation is an engine bug: the processor raises InvariantViolation
and the service discards the working copy instead of saving it.
"""

from __future__ import annotations
from collections import Counter

from ..errors import InvariantViolation
from ..rules.effect_dsl import CHARACTER_ZONES
from .state import GameState


def check_invariants(state: GameState) -> list[str]:
    """Return a list of violations (empty when the document is sound)."""
    violations: list[str] = []
    ids = state.player_ids

    if len(ids) != 2 or len(set(ids)) != 2:
        violations.append(f"expected two distinct players, got {ids}")
    if state.current_player not in ids:
        violations.append(f"currentPlayer {state.current_player!r} is not a player")

    for pid in ids:
        player = state.get_player(pid)
        player_zones = state.zones.get(pid)
        if player_zones is None:
            violations.append(f"no zones for {pid}")
            continue

        # Card ids are unique per player across hand, deck and board
        locations = list(player.hand) + list(player.main_deck)
        locations += [p.card_id for _, p in state.field_placements(pid)]
        if player_zones.leader is not None:
            locations.append(player_zones.leader.card_id)
        duplicated = [card_id for card_id, n in Counter(locations).items() if n > 1]
        if duplicated:
            violations.append(f"{pid}: cards in more than one place: {sorted(duplicated)}")

        powers = state.derived(pid).calculated_powers
        for zone in CHARACTER_ZONES:
            for placement in player_zones.get(zone):
                if placement.face_up and placement.card_id not in powers:
                    violations.append(f"{pid}: face-up {placement.card_id} has no calculated power")

    pending = state.pending_selection
    if pending is not None and state.current_player != pending.player_id:
        violations.append(
            f"pending selection for {pending.player_id} but currentPlayer is {state.current_player}"
        )

    violations.extend(state.play_sequence.validate())

    last = 0
    for event in state.event_journal.entries:
        if event.id <= last:
            violations.append(f"journal id {event.id} is not increasing")
        last = event.id
    if last >= state.event_journal.next_id:
        violations.append("journal nextId is behind its entries")

    return violations


def assert_invariants(state: GameState) -> None:
    violations = check_invariants(state)
    if violations:
        raise InvariantViolation(violations)
