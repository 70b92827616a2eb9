"""
Tests for the effect resolver.

Tests:
- Leader boosts, conditional leader rules and setPower precedence
- Neutralization and immunity
- Flags (zone freedom, preventPlay, combo disable, silence)
- SP-phase and final-calculation rules
- Resolver purity
"""

import pytest

from ..engine_core.effect_resolver import EffectResolver, EnteringCard
from ..engine_core.state import Phase, SelectionEffect, SelectionKind


@pytest.fixture
def resolver(registry) -> EffectResolver:
    return EffectResolver(registry)


def _powers(state, player_id):
    return state.derived_effects[player_id].calculated_powers


class TestPowers:
    """Calculated powers."""

    def test_trump_boosts_patriot(self, make_state):
        state = make_state(p1={"leader": "s-1", "zones": {"left": ["c-1"]}})
        assert _powers(state, "p1") == {"c-1": 145}

    def test_trump_ignores_freedom(self, make_state):
        state = make_state(p1={"leader": "s-1", "zones": {"top": ["c-7"]}})
        assert _powers(state, "p1")["c-7"] == 75

    def test_biden_boosts_all(self, make_state):
        state = make_state(p2={"leader": "s-2", "zones": {"top": ["c-5"], "left": ["c-7"]}})
        assert _powers(state, "p2") == {"c-5": 125, "c-7": 115}

    def test_musk_doge_stacks(self, make_state):
        """Doge Intern gets the freedom boost and the name boost."""
        state = make_state(p1={"leader": "s-3", "zones": {"top": ["c-6"]}})
        assert _powers(state, "p1")["c-6"] == 130

    def test_harris_against_trump(self, make_state):
        state = make_state(
            p1={"leader": "s-1", "zones": {"top": ["c-4"]}},
            p2={"leader": "s-4"},
        )
        assert _powers(state, "p1")["c-4"] == 115

    def test_harris_condition_false(self, make_state):
        state = make_state(
            p1={"leader": "s-5", "zones": {"top": ["c-4"]}},
            p2={"leader": "s-4"},
        )
        assert _powers(state, "p1")["c-4"] == 130

    def test_set_power_beats_boosts(self, make_state):
        """Trump zeroes economy characters when facing Powell."""
        state = make_state(
            p1={"leader": "s-1"},
            p2={"leader": "s-6", "zones": {"top": ["c-8"]}},
        )
        assert _powers(state, "p2")["c-8"] == 0

    def test_powell_without_trump(self, make_state):
        state = make_state(
            p1={"leader": "s-2"},
            p2={"leader": "s-6", "zones": {"top": ["c-8"]}},
        )
        assert _powers(state, "p2")["c-8"] == 115

    def test_negative_powers_clamp_to_zero(self, resolver, make_state):
        state = make_state(
            p1={"leader": "s-6", "zones": {"top": ["c-11"]}},
            p2={"leader": "s-2", "zones": {"help": "h-4"}},
        )
        assert _powers(state, "p1")["c-11"] == 70
        state.selection_effects.append(SelectionEffect(
            source_card_id="h-4", source_owner="p2", effect_kind="powerBoost",
            target_owner="p1", target_card_ids=["c-11"], value=-200, sequence_id=9,
        ))
        derived = resolver.resolve(state).derived_effects
        assert derived["p1"].calculated_powers["c-11"] == 0

    def test_face_down_cards_have_no_power(self, make_state):
        state = make_state(p1={"zones": {"top": [("c-3", False), "c-4"]}})
        assert _powers(state, "p1") == {"c-4": 135}

    def test_sp_phase_rule_after_reveal(self, make_state):
        state = make_state(p1={"leader": "s-2", "zones": {"top": ["c-5"], "sp": "sp-1"}})
        assert _powers(state, "p1")["c-5"] == 85 + 40 + 30

    def test_face_down_sp_is_inert(self, make_state):
        state = make_state(p1={"leader": "s-2", "zones": {"top": ["c-5"], "sp": ("sp-1", False)}})
        assert _powers(state, "p1")["c-5"] == 125


class TestSelectionEffects:
    """Resolved choices stored as primary state."""

    def test_set_power_selection(self, resolver, make_state):
        state = make_state(
            p1={"leader": "s-1", "zones": {"left": ["c-1"]}},
            p2={"zones": {"help": "h-2"}},
        )
        state.selection_effects.append(SelectionEffect(
            source_card_id="h-2", source_owner="p2", effect_kind="setPower",
            target_owner="p1", target_card_ids=["c-1"], value=0, sequence_id=5,
        ))
        derived = resolver.resolve(state).derived_effects
        assert derived["p1"].calculated_powers["c-1"] == 0

    def test_selection_ignored_when_source_leaves(self, resolver, make_state):
        state = make_state(p1={"leader": "s-1", "zones": {"left": ["c-1"]}})
        state.selection_effects.append(SelectionEffect(
            source_card_id="h-2", source_owner="p2", effect_kind="setPower",
            target_owner="p1", target_card_ids=["c-1"], value=0, sequence_id=5,
        ))
        derived = resolver.resolve(state).derived_effects
        assert derived["p1"].calculated_powers["c-1"] == 145

    def test_neutralize_selection_disables_source(self, resolver, make_state):
        state = make_state(
            p1={"leader": "s-1", "zones": {"left": ["c-1"], "help": "h-1"}},
            p2={"zones": {"help": "h-2"}},
        )
        state.selection_effects.extend([
            SelectionEffect(
                source_card_id="h-2", source_owner="p2", effect_kind="setPower",
                target_owner="p1", target_card_ids=["c-1"], value=0, sequence_id=5,
            ),
            SelectionEffect(
                source_card_id="h-1", source_owner="p1", effect_kind="neutralizeEffect",
                target_owner="p2", target_card_ids=["h-2"], sequence_id=6,
            ),
        ])
        derived = resolver.resolve(state).derived_effects
        assert derived["p2"].disabled_cards == ["h-2"]
        assert derived["p1"].calculated_powers["c-1"] == 145

    def test_neutralized_continuous_effect(self, resolver, make_state):
        """Fake News stops applying once neutralized."""
        state = make_state(
            p1={"leader": "s-2", "zones": {"top": ["c-5"], "help": "h-1"}},
            p2={"zones": {"help": "h-4"}},
        )
        assert state.derived_effects["p1"].calculated_powers["c-5"] == 105
        state.selection_effects.append(SelectionEffect(
            source_card_id="h-1", source_owner="p1", effect_kind="neutralizeEffect",
            target_owner="p2", target_card_ids=["h-4"], sequence_id=6,
        ))
        derived = resolver.resolve(state).derived_effects
        assert derived["p1"].calculated_powers["c-5"] == 125

    def test_immune_card_stays_active(self, resolver, make_state):
        state = make_state(
            p1={"leader": "s-1", "zones": {"help": "h-1"}},
            p2={"leader": "s-6", "zones": {"help": "h-5"}},
        )
        state.selection_effects.append(SelectionEffect(
            source_card_id="h-1", source_owner="p1", effect_kind="neutralizeEffect",
            target_owner="p2", target_card_ids=["h-5"], sequence_id=6,
        ))
        derived = resolver.resolve(state).derived_effects
        assert derived["p2"].disabled_cards == []
        assert derived["p2"].zone_restrictions["top"] == "ALL"


class TestFlags:
    """Restriction and flag effects."""

    def test_leader_zone_restrictions(self, make_state):
        state = make_state(p1={"leader": "s-1"}, p2={"leader": "s-2"})
        restrictions = state.derived_effects["p1"].zone_restrictions
        assert restrictions["top"] == ["right-wing", "freedom", "economy"]
        assert state.derived_effects["p2"].zone_restrictions == {"top": "ALL", "left": "ALL", "right": "ALL"}

    def test_prevent_play_targets_opponent(self, make_state):
        state = make_state(p1={"zones": {"help": "h-6"}})
        assert state.derived_effects["p2"].prevented_zones() == ["help"]
        assert state.derived_effects["p1"].prevented_zones() == []

    def test_combo_disable(self, make_state):
        state = make_state(p1={"zones": {"help": "h-9"}})
        assert state.derived_effects["p2"].combo_bonus_disabled
        assert not state.derived_effects["p1"].combo_bonus_disabled

    def test_conditional_sp_flag(self, make_state):
        """Tesla Takedown only bites against Musk."""
        vs_musk = make_state(p1={"zones": {"sp": "sp-8"}}, p2={"leader": "s-3"})
        vs_biden = make_state(p1={"zones": {"sp": "sp-8"}}, p2={"leader": "s-2"})
        assert vs_musk.derived_effects["p2"].combo_bonus_disabled
        assert not vs_biden.derived_effects["p2"].combo_bonus_disabled

    def test_silence_flag(self, make_state):
        state = make_state(p2={"zones": {"help": "h-7"}})
        assert state.derived_effects["p1"].flag("silenceOnSummon")


class TestFinalCalculation:
    """finalCalculation rules only count in BATTLE_PHASE."""

    def test_impeachment_in_battle(self, resolver, make_state):
        state = make_state(p2={"zones": {"sp": "sp-2"}}, phase=Phase.BATTLE_PHASE)
        derived = resolver.resolve(state).derived_effects
        assert derived["p1"].victory_point_modifiers == -50
        assert derived["p2"].victory_point_modifiers == 0

    def test_impeachment_outside_battle(self, resolver, make_state):
        state = make_state(p2={"zones": {"sp": "sp-2"}}, phase=Phase.SP_PHASE)
        derived = resolver.resolve(state).derived_effects
        assert derived["p1"].victory_point_modifiers == 0


class TestEnteringCards:
    """onPlay handling for the card that just entered."""

    def test_draw_is_reported_not_applied(self, resolver, make_state):
        state = make_state(p1={"zones": {"top": ["c-11"]}, "deck": ["c-3", "c-4"]})
        result = resolver.resolve(state, EnteringCard("p1", "c-11"))
        assert result.triggered is not None
        assert result.triggered.rule.rule_id == "bitcoin_draw"
        assert state.get_player("p1").hand == []

    def test_resume_past_processed_rule(self, resolver, make_state):
        state = make_state(p1={"zones": {"top": ["c-11"]}, "deck": ["c-3"]})
        result = resolver.resolve(state, EnteringCard("p1", "c-11", start_index=1))
        assert result.triggered is None
        assert result.selection_request is None

    def test_target_request(self, resolver, make_state):
        state = make_state(
            p1={"leader": "s-2", "zones": {"top": ["c-2", "c-20"], "left": ["c-5"]}},
        )
        result = resolver.resolve(state, EnteringCard("p1", "c-20"))
        request = result.selection_request
        assert request.kind == SelectionKind.SINGLE_TARGET
        assert request.eligible_cards == ["c-2", "c-20"]
        assert request.context["targetOwners"] == {"c-2": "p1", "c-20": "p1"}

    def test_search_with_nothing_eligible(self, resolver, make_state):
        state = make_state(p1={"zones": {"top": ["c-10"]}, "deck": ["c-3", "c-4", "h-4"]})
        result = resolver.resolve(state, EnteringCard("p1", "c-10"))
        assert result.selection_request is None
        assert result.triggered is None

    def test_search_select_count_capped(self, resolver, make_state):
        state = make_state(p1={"zones": {"top": ["c-9"]}, "deck": ["c-3"]})
        request = resolver.resolve(state, EnteringCard("p1", "c-9")).selection_request
        assert request.kind == SelectionKind.DECK_SEARCH
        assert request.select_count == 1
        assert request.context["searchedCards"] == ["c-3"]

    def test_silenced_character(self, resolver, make_state):
        state = make_state(
            p1={"zones": {"top": ["c-11"]}, "deck": ["c-3"]},
            p2={"zones": {"help": "h-7"}},
        )
        result = resolver.resolve(state, EnteringCard("p1", "c-11"))
        assert result.triggered is None

    def test_face_down_entry_has_no_on_play(self, resolver, make_state):
        state = make_state(p1={"zones": {"top": [("c-11", False)]}, "deck": ["c-3"]})
        result = resolver.resolve(state, EnteringCard("p1", "c-11"))
        assert result.triggered is None

    def test_unmet_condition_skips(self, resolver, make_state):
        """h-3 needs the opponent to hold more than four cards."""
        state = make_state(
            p1={"zones": {"help": "h-3"}},
            p2={"hand": ["c-5", "c-6", "c-7", "c-8"]},
        )
        assert resolver.resolve(state, EnteringCard("p1", "h-3")).triggered is None
        state.get_player("p2").hand.append("c-13")
        assert resolver.resolve(state, EnteringCard("p1", "h-3")).triggered is not None


class TestPurity:
    """Resolving is idempotent."""

    def test_resolve_twice(self, resolver, make_state):
        state = make_state(
            p1={"leader": "s-1", "zones": {"top": ["c-4"], "left": ["c-1"], "help": "h-9"}},
            p2={"leader": "s-4", "zones": {"top": ["c-5"], "help": "h-4", "sp": "sp-1"}},
        )
        first = resolver.resolve(state).derived_effects
        state.derived_effects = first
        second = resolver.resolve(state).derived_effects
        assert {k: v.to_dict() for k, v in first.items()} == {k: v.to_dict() for k, v in second.items()}

    def test_resolve_does_not_touch_primary_state(self, resolver, make_state):
        state = make_state(p1={"zones": {"top": ["c-11"]}, "deck": ["c-3", "c-4"]})
        before = state.to_dict()
        resolver.resolve(state, EnteringCard("p1", "c-11"))
        assert state.to_dict() == before
