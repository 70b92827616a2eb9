"""
Built-in Card Catalog - The base set used by default.

Card structure:
- Leaders (s-*): zone compatibility + continuous boosts, one per round
- Characters (c-*): gameType, traits, base power, optional onPlay effects
- Help (h-*): one per player, face-up effects on entry or while on field
- SP (sp-*): played face-down in the SP phase, revealed before battle

A deployment can replace this with a card-data JSON file
(CardRegistry.from_file).
"""

from .definitions import CardDefinition, CardKind, ComboBonus
from ..rules.effect_dsl import (
    Condition,
    EffectRule,
    EffectSpec,
    TargetSpec,
    ConditionKind,
    EffectKind,
    SearchDestination,
    TargetFilter,
    TargetOwner,
    Trigger,
    flag_rule,
    neutralize,
    power_boost,
    random_discard,
    search_card,
    draw_cards,
    set_power,
)

RIGHT_WING = "right-wing"
LEFT_WING = "left-wing"
ECONOMY = "economy"
PATRIOT = "patriot"
FREEDOM = "freedom"

TRUMP_FAMILY = "Trump Family"
TYCOON = "Tycoon"

SELF = TargetOwner.SELF
OPPONENT = TargetOwner.OPPONENT


def _opponent_leader(name: str) -> tuple[Condition, ...]:
    return (Condition(ConditionKind.OPPONENT_LEADER_NAME, value=name),)


def _leaders() -> list[CardDefinition]:
    return [
        CardDefinition(
            id="s-1",
            name="Trump",
            kind=CardKind.LEADER,
            game_type=RIGHT_WING,
            initial_point=110,
            zone_compatibility={
                "top": (RIGHT_WING, FREEDOM, ECONOMY),
                "left": (RIGHT_WING, FREEDOM, PATRIOT),
                "right": (RIGHT_WING, PATRIOT, ECONOMY),
            },
            effects=(
                power_boost(
                    "trump_boost", 45,
                    filters=(TargetFilter(game_type_or=(RIGHT_WING, PATRIOT)),),
                    description="+45 to right-wing and patriot characters",
                ),
                set_power(
                    "trump_vs_powell", 0,
                    owner=OPPONENT,
                    filters=(TargetFilter(game_type=ECONOMY),),
                    conditions=_opponent_leader("Powell"),
                    description="Opponent economy characters have 0 power against Powell",
                ),
            ),
        ),
        CardDefinition(
            id="s-2",
            name="Biden",
            kind=CardKind.LEADER,
            game_type=LEFT_WING,
            initial_point=100,
            effects=(
                power_boost("biden_boost", 40, description="+40 to all characters"),
            ),
        ),
        CardDefinition(
            id="s-3",
            name="Musk",
            kind=CardKind.LEADER,
            game_type=FREEDOM,
            initial_point=105,
            zone_compatibility={
                "top": (FREEDOM, ECONOMY),
                "left": (FREEDOM, RIGHT_WING),
                "right": ("ALL",),
            },
            effects=(
                power_boost(
                    "musk_freedom", 20,
                    filters=(TargetFilter(game_type=FREEDOM),),
                    description="+20 to freedom characters",
                ),
                power_boost(
                    "musk_doge", 50,
                    filters=(TargetFilter(name_contains="Doge"),),
                    description="+50 to characters named Doge",
                ),
            ),
        ),
        CardDefinition(
            id="s-4",
            name="Harris",
            kind=CardKind.LEADER,
            game_type=LEFT_WING,
            initial_point=95,
            zone_compatibility={
                "top": (LEFT_WING, ECONOMY),
                "left": (LEFT_WING, FREEDOM),
                "right": (LEFT_WING, ECONOMY),
            },
            effects=(
                power_boost(
                    "harris_leftwing", 40,
                    filters=(TargetFilter(game_type=LEFT_WING),),
                ),
                power_boost(
                    "harris_economy", 20,
                    filters=(TargetFilter(game_type=ECONOMY),),
                ),
                power_boost(
                    "harris_vs_trump", -20,
                    owner=OPPONENT,
                    filters=(TargetFilter(game_type=RIGHT_WING),),
                    conditions=_opponent_leader("Trump"),
                    description="Opponent right-wing characters -20 against Trump",
                ),
            ),
        ),
        CardDefinition(
            id="s-5",
            name="Vance",
            kind=CardKind.LEADER,
            game_type=RIGHT_WING,
            initial_point=90,
            zone_compatibility={
                "top": (RIGHT_WING, PATRIOT),
                "left": (RIGHT_WING, FREEDOM),
                "right": (RIGHT_WING, ECONOMY),
            },
            effects=(
                power_boost("vance_rightwing", 40, filters=(TargetFilter(game_type=RIGHT_WING),)),
                power_boost("vance_freedom", 20, filters=(TargetFilter(game_type=FREEDOM),)),
            ),
        ),
        CardDefinition(
            id="s-6",
            name="Powell",
            kind=CardKind.LEADER,
            game_type=ECONOMY,
            initial_point=85,
            zone_compatibility={
                "top": (ECONOMY,),
                "right": (ECONOMY, RIGHT_WING),
            },
            effects=(
                power_boost("powell_economy", 30, filters=(TargetFilter(game_type=ECONOMY),)),
                power_boost(
                    "powell_vs_trump", 20,
                    filters=(TargetFilter(game_type=ECONOMY),),
                    conditions=_opponent_leader("Trump"),
                ),
            ),
        ),
    ]


def _character(
    card_id: str,
    name: str,
    game_type: str,
    power: int,
    traits: tuple[str, ...] = (),
    effects: tuple = (),
) -> CardDefinition:
    return CardDefinition(
        id=card_id,
        name=name,
        kind=CardKind.CHARACTER,
        game_type=game_type,
        base_power=power,
        traits=traits,
        effects=effects,
    )


def _characters() -> list[CardDefinition]:
    return [
        _character("c-1", "Donald Trump Jr.", PATRIOT, 100, (TRUMP_FAMILY,)),
        _character("c-2", "Ivanka Trump", ECONOMY, 90, (TRUMP_FAMILY, TYCOON)),
        _character("c-3", "Steve Bannon", RIGHT_WING, 80),
        _character("c-4", "Ron DeSantis", RIGHT_WING, 90),
        _character("c-5", "Bernie Sanders", LEFT_WING, 85),
        _character("c-6", "Doge Intern", FREEDOM, 60),
        _character("c-7", "Rand Paul", FREEDOM, 75),
        _character("c-8", "Janet Yellen", ECONOMY, 85),
        _character(
            "c-9", "Eliza", FREEDOM, 70,
            effects=(search_card("eliza_search", 4, 1, SearchDestination.HAND,
                                 description="Look at the top 4 cards, take 1 into hand"),),
        ),
        _character(
            "c-10", "Edward", ECONOMY, 70,
            effects=(search_card(
                "edward_search", 7, 1, SearchDestination.SP_ZONE,
                filters=(TargetFilter(card_type="sp"),),
                description="Look at the top 7 cards, put 1 SP card into the SP zone",
            ),),
        ),
        _character(
            "c-11", "Bitcoin Maxi", ECONOMY, 60,
            effects=(draw_cards("bitcoin_draw", 2, description="Draw 2 cards"),),
        ),
        _character(
            "c-12", "Luke", PATRIOT, 70,
            effects=(search_card(
                "luke_search", 7, 1, SearchDestination.HELP_ZONE,
                filters=(TargetFilter(card_type="help"),),
                description="Look at the top 7 cards, put 1 help card into the help zone",
            ),),
        ),
        _character("c-13", "Tucker Carlson", PATRIOT, 80),
        _character("c-14", "Alexandria Ocasio-Cortez", LEFT_WING, 80),
        _character(
            "c-20", "Warren Buffett", ECONOMY, 80, (TYCOON,),
            effects=(power_boost(
                "buffett_boost", 50,
                filters=(TargetFilter(trait=TYCOON),),
                trigger=Trigger.ON_PLAY,
                select_one=True,
                description="+50 to one of your Tycoon characters",
            ),),
        ),
        _character(
            "c-21", "Barack Obama", LEFT_WING, 95,
            effects=(power_boost(
                "obama_boost", 50,
                trigger=Trigger.ON_PLAY,
                select_one=True,
                description="+50 to one of your characters",
            ),),
        ),
        _character("c-22", "Nancy Pelosi", LEFT_WING, 80, (TYCOON,)),
    ]


def _utility(card_id: str, name: str, kind: CardKind, effects: tuple, immune: bool = False) -> CardDefinition:
    return CardDefinition(
        id=card_id,
        name=name,
        kind=kind,
        effects=effects,
        immune_to_neutralization=immune,
    )


def _help_cards() -> list[CardDefinition]:
    help_ = CardKind.HELP
    return [
        _utility("h-1", "Deep State", help_, (
            neutralize("deep_state", trigger=Trigger.ON_PLAY, select_one=True,
                       description="Neutralize one opponent help or SP card"),
        )),
        _utility("h-2", "Make America Great Again", help_, (
            set_power("maga", 0, owner=OPPONENT, trigger=Trigger.ON_PLAY, select_one=True,
                      description="Set one opponent character's power to 0"),
        )),
        _utility("h-3", "You Have No Cards", help_, (
            random_discard(
                "no_cards", 2,
                conditions=(Condition(ConditionKind.OPPONENT_HAND_COUNT, op=">", count=4),),
                description="Opponent discards 2 random cards if they hold more than 4",
            ),
        )),
        _utility("h-4", "Fake News", help_, (
            power_boost("fake_news", -20, owner=OPPONENT, description="-20 to opponent characters"),
        )),
        _utility("h-5", "Dementia", help_, (
            flag_rule("dementia", EffectKind.ZONE_PLACEMENT_FREEDOM, SELF,
                      description="Characters ignore leader zone restrictions"),
        ), immune=True),
        _utility("h-6", "Executive Order", help_, (
            flag_rule("executive_order", EffectKind.PREVENT_PLAY, OPPONENT, zones=("help",),
                      description="Opponent cannot play into their help zone"),
        )),
        _utility("h-7", "Gag Order", help_, (
            flag_rule("gag_order", EffectKind.SILENCE_ON_SUMMON, OPPONENT,
                      description="Opponent character onPlay effects do not trigger"),
        )),
        _utility("h-8", "Subpoena", help_, (
            flag_rule("subpoena", EffectKind.FORCE_SP_PLAY, OPPONENT, zones=("sp",),
                      description="Opponent may not pass the SP phase while holding cards"),
        )),
        _utility("h-9", "Trade Deal", help_, (
            flag_rule("trade_deal", EffectKind.DISABLE_COMBO_BONUS, OPPONENT,
                      description="Opponent gets no combo bonus"),
        )),
        _utility("h-11", "Mar-a-Lago", help_, (
            search_card(
                "mar_a_lago", 5, 1, SearchDestination.HAND,
                filters=(TargetFilter(card_type="character"),),
                description="Look at the top 5 cards, take 1 character into hand",
            ),
        )),
        _utility("h-14", "Federal Judge", help_, (
            power_boost(
                "federal_judge", -60,
                owner=OPPONENT,
                filters=(TargetFilter(trait=TRUMP_FAMILY),),
                trigger=Trigger.ON_PLAY,
                select_one=True,
                description="-60 to one opponent Trump Family character",
            ),
        )),
    ]


def _sp_cards() -> list[CardDefinition]:
    sp = CardKind.SP
    return [
        _utility("sp-1", "Tariff War", sp, (
            power_boost("tariff_war", 30, trigger=Trigger.SP_PHASE, description="+30 to all your characters"),
        )),
        _utility("sp-2", "Impeachment", sp, (
            EffectRule(
                rule_id="impeachment",
                trigger=Trigger.FINAL_CALCULATION,
                effect=EffectSpec(kind=EffectKind.TOTAL_POWER_NERF, value=50),
                target=TargetSpec(owner=OPPONENT),
                description="-50 to the opponent's round total",
            ),
        )),
        _utility("sp-3", "Stimulus Check", sp, (
            power_boost("stimulus", 20, filters=(TargetFilter(game_type=ECONOMY),),
                        trigger=Trigger.SP_PHASE),
        )),
        _utility("sp-8", "Tesla Takedown", sp, (
            flag_rule("tesla_takedown", EffectKind.DISABLE_COMBO_BONUS, OPPONENT,
                      conditions=_opponent_leader("Musk"), trigger=Trigger.SP_PHASE,
                      description="Opponent gets no combo bonus against Musk"),
        )),
    ]


COMBOS = (
    ComboBonus("allSameType", 50, "All characters share one gameType"),
    ComboBonus("allDifferentType", 30, "All characters have different gameTypes"),
    ComboBonus("highPowerTrio", 30, "Three characters with base power 80+"),
    ComboBonus("traitSynergy", 20, "Two characters share a trait"),
    ComboBonus("balancedPower", 20, "Three characters within 30 base power"),
)


def build_catalog() -> list[CardDefinition]:
    """All built-in card definitions."""
    return _leaders() + _characters() + _help_cards() + _sp_cards()
