"""
Tests for rule evaluation.

Tests:
- Target filters
- Conditions, including the hand-count comparison
- Target scan order and face-down invisibility
- Condition wire form
"""

import pytest

from ..rules.effect_dsl import (
    Condition,
    ConditionKind,
    TargetFilter,
    TargetOwner,
    power_boost,
)
from ..rules.evaluation import (
    CardRef,
    card_matches,
    evaluate_conditions,
    filter_matches,
    select_targets,
    target_players,
)


class TestFilters:
    """TargetFilter matching against definitions."""

    def test_game_type_or(self, registry):
        f = TargetFilter(game_type_or=("right-wing", "patriot"))
        assert filter_matches(registry.lookup("c-1"), f)
        assert filter_matches(registry.lookup("c-3"), f)
        assert not filter_matches(registry.lookup("c-5"), f)

    def test_trait(self, registry):
        f = TargetFilter(trait="Tycoon")
        assert filter_matches(registry.lookup("c-2"), f)
        assert not filter_matches(registry.lookup("c-1"), f)

    def test_name_contains(self, registry):
        assert filter_matches(registry.lookup("c-6"), TargetFilter(name_contains="Doge"))

    def test_card_type(self, registry):
        f = TargetFilter(card_type="sp")
        assert filter_matches(registry.lookup("sp-1"), f)
        assert not filter_matches(registry.lookup("h-1"), f)

    def test_all_slots_must_match(self, registry):
        filters = (TargetFilter(game_type="economy"), TargetFilter(trait="Trump Family"))
        assert card_matches(registry.lookup("c-2"), filters)
        assert not card_matches(registry.lookup("c-8"), filters)

    def test_no_filters_match_everything(self, registry):
        assert card_matches(registry.lookup("h-4"), ())


class TestConditions:
    """Board predicates."""

    def test_opponent_leader_name(self, registry, make_state):
        rule = registry.lookup("s-6").effects[1]
        assert evaluate_conditions(rule, make_state(p1={"leader": "s-6"}, p2={"leader": "s-1"}), "p1", registry)
        assert not evaluate_conditions(rule, make_state(p1={"leader": "s-6"}), "p1", registry)

    @pytest.mark.parametrize("hand_size,expected", [(4, False), (5, True)])
    def test_opponent_hand_count(self, registry, make_state, hand_size, expected):
        rule = registry.lookup("h-3").effects[0]
        state = make_state(p2={"hand": ["c-5", "c-6", "c-7", "c-8", "c-13"][:hand_size]})
        assert evaluate_conditions(rule, state, "p1", registry) is expected

    def test_face_down_names_are_invisible(self, registry, make_state):
        rule = power_boost(
            "doge_watch", 10,
            conditions=(Condition(ConditionKind.OPPONENT_FIELD_CONTAINS_NAME, value="Doge"),),
        )
        hidden = make_state(p2={"zones": {"top": [("c-6", False)]}})
        shown = make_state(p2={"zones": {"top": ["c-6"]}})
        assert not evaluate_conditions(rule, hidden, "p1", registry)
        assert evaluate_conditions(rule, shown, "p1", registry)

    def test_ally_field_contains_name(self, registry, make_state):
        rule = power_boost(
            "family_reunion", 10,
            conditions=(Condition(ConditionKind.ALLY_FIELD_CONTAINS_NAME, value="Trump"),),
        )
        assert evaluate_conditions(rule, make_state(p1={"zones": {"left": ["c-1"]}}), "p1", registry)
        assert not evaluate_conditions(rule, make_state(p1={"zones": {"left": ["c-3"]}}), "p1", registry)


class TestTargets:
    """select_targets scan order."""

    def test_scan_order(self, registry, make_state):
        state = make_state(p1={
            "leader": "s-2",
            "zones": {"top": ["c-3"], "left": ["c-4", "c-1"], "right": ["c-13"], "help": "h-4"},
        })
        rule = registry.lookup("s-2").effects[0]

        refs, needs_choice = select_targets(rule, state, "p1", registry)

        assert refs == [
            CardRef("p1", "top", "c-3"),
            CardRef("p1", "left", "c-4"),
            CardRef("p1", "left", "c-1"),
            CardRef("p1", "right", "c-13"),
        ]
        assert not needs_choice

    def test_face_down_not_targeted(self, registry, make_state):
        state = make_state(p2={"zones": {"top": [("c-1", False)], "left": ["c-2"]}})
        rule = registry.lookup("h-14").effects[0]

        refs, needs_choice = select_targets(rule, state, "p1", registry)

        assert refs == [CardRef("p2", "left", "c-2")]
        assert needs_choice

    def test_both_players_owner_first(self, registry, make_state):
        state = make_state(p1={"zones": {"top": ["c-3"]}}, p2={"zones": {"top": ["c-5"]}})
        rule = power_boost("everyone", 10, owner=TargetOwner.BOTH)

        refs, _ = select_targets(rule, state, "p2", registry)

        assert [r.owner for r in refs] == ["p2", "p1"]
        assert target_players(TargetOwner.BOTH, "p2", state) == ["p2", "p1"]
        assert target_players(TargetOwner.OPPONENT, "p2", state) == ["p1"]

    def test_hand_targets(self, registry, make_state):
        state = make_state(p2={"hand": ["c-5", "h-1"]})
        rule = registry.lookup("h-3").effects[0]

        refs, _ = select_targets(rule, state, "p1", registry)

        assert [r.card_id for r in refs] == ["c-5", "h-1"]
        assert {r.zone for r in refs} == {"hand"}


class TestRuleSerialization:
    """Card-data form of rules."""

    def test_condition_wire_form(self):
        condition = Condition(ConditionKind.OPPONENT_HAND_COUNT, op=">", count=4)
        assert condition.to_dict() == {"type": "opponentHandCount", "op": ">", "n": 4}
