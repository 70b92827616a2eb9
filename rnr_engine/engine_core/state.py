"""
Game State - The persisted game document.

Design principles:
- Serializable: to_dict()/from_dict() produce the camelCase JSON layout
  stored by the game store, and round-trip to equal structures
- Shared-nothing: clone() deep copies, so two games (or two actions on
  the same game) never alias mutable substructures
- Primary vs derived: derived_effects is owned by the EffectResolver and
  is always recomputed from the primary fields, never patched
"""

from __future__ import annotations
from dataclasses import dataclass, field
from copy import deepcopy
from enum import Enum
from typing import Any, Iterator
import random
import uuid

from ..rules.effect_dsl import FIELD_ZONES, CHARACTER_ZONES
from .journal import EventJournal
from .play_sequence import PlaySequence

ALL = "ALL"
SINGLE_ZONES = ("help", "sp")


class Phase(Enum):
    """Round state machine phases."""
    START_REDRAW = "START_REDRAW"
    DRAW_PHASE = "DRAW_PHASE"
    MAIN_PHASE = "MAIN_PHASE"
    SP_PHASE = "SP_PHASE"
    BATTLE_PHASE = "BATTLE_PHASE"
    END_PHASE = "END_PHASE"
    GAME_OVER = "GAME_OVER"


class SelectionKind(Enum):
    DECK_SEARCH = "deckSearch"
    FIELD_TARGET = "fieldTarget"
    SINGLE_TARGET = "singleTarget"


@dataclass
class Placement:
    """A card's presence in a zone."""
    card_id: str
    face_up: bool = True
    sequence_id: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"cardId": self.card_id, "faceUp": self.face_up, "sequenceId": self.sequence_id}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Placement:
        return cls(
            card_id=data["cardId"],
            face_up=bool(data.get("faceUp", True)),
            sequence_id=int(data.get("sequenceId", 0)),
        )


def _placement_or_none(data: dict[str, Any] | None) -> Placement | None:
    return Placement.from_dict(data) if data else None


@dataclass
class PlayerZones:
    """
    One player's side of the board.

    top/left/right hold any number of character placements in entry
    order. help and sp hold at most one placement each.
    """
    leader: Placement | None = None
    top: list[Placement] = field(default_factory=list)
    left: list[Placement] = field(default_factory=list)
    right: list[Placement] = field(default_factory=list)
    help: Placement | None = None
    sp: Placement | None = None

    def get(self, zone: str) -> list[Placement]:
        """Placements in a field zone, as a list for any zone kind."""
        if zone in CHARACTER_ZONES:
            return getattr(self, zone)
        if zone in SINGLE_ZONES:
            placement = getattr(self, zone)
            return [placement] if placement else []
        raise ValueError(f"Not a field zone: {zone}")

    def place(self, zone: str, placement: Placement) -> None:
        if zone in CHARACTER_ZONES:
            getattr(self, zone).append(placement)
        elif zone in SINGLE_ZONES:
            setattr(self, zone, placement)
        else:
            raise ValueError(f"Not a field zone: {zone}")

    def is_empty(self, zone: str) -> bool:
        return not self.get(zone)

    def find(self, card_id: str) -> tuple[str, Placement] | None:
        """Locate a field card (leader excluded)."""
        for zone in FIELD_ZONES:
            for placement in self.get(zone):
                if placement.card_id == card_id:
                    return zone, placement
        return None

    def clear(self) -> list[str]:
        """Empty every field zone, returning the removed card ids in scan order."""
        removed = [p.card_id for zone in FIELD_ZONES for p in self.get(zone)]
        self.top, self.left, self.right = [], [], []
        self.help = None
        self.sp = None
        return removed

    def to_dict(self) -> dict[str, Any]:
        return {
            "leader": self.leader.to_dict() if self.leader else None,
            "top": [p.to_dict() for p in self.top],
            "left": [p.to_dict() for p in self.left],
            "right": [p.to_dict() for p in self.right],
            "help": self.help.to_dict() if self.help else None,
            "sp": self.sp.to_dict() if self.sp else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlayerZones:
        leader = data.get("leader")
        # Allow a bare card id for the leader slot in injected documents
        if isinstance(leader, str):
            leader = {"cardId": leader}
        return cls(
            leader=_placement_or_none(leader),
            top=[Placement.from_dict(p) for p in data.get("top", [])],
            left=[Placement.from_dict(p) for p in data.get("left", [])],
            right=[Placement.from_dict(p) for p in data.get("right", [])],
            help=_placement_or_none(data.get("help")),
            sp=_placement_or_none(data.get("sp")),
        )


@dataclass
class DerivedEffects:
    """Per-player computed state. Owned by the EffectResolver."""
    zone_restrictions: dict[str, Any] = field(default_factory=dict)  # zone -> [gameType] | ALL
    calculated_powers: dict[str, int] = field(default_factory=dict)
    disabled_cards: list[str] = field(default_factory=list)
    combo_bonus_disabled: bool = False
    victory_point_modifiers: int = 0
    special_flags: dict[str, Any] = field(default_factory=dict)

    def flag(self, name: str) -> Any:
        return self.special_flags.get(name, False)

    def allows(self, zone: str, game_type: str) -> bool:
        allowed = self.zone_restrictions.get(zone, ALL)
        return allowed == ALL or game_type in allowed

    def prevented_zones(self) -> list[str]:
        return list(self.special_flags.get("preventPlay", []))

    def to_dict(self) -> dict[str, Any]:
        return {
            "zoneRestrictions": deepcopy(self.zone_restrictions),
            "calculatedPowers": dict(self.calculated_powers),
            "disabledCards": list(self.disabled_cards),
            "comboBonusDisabled": self.combo_bonus_disabled,
            "victoryPointModifiers": self.victory_point_modifiers,
            "specialFlags": deepcopy(self.special_flags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> DerivedEffects:
        data = data or {}
        return cls(
            zone_restrictions=deepcopy(data.get("zoneRestrictions", {})),
            calculated_powers={k: int(v) for k, v in data.get("calculatedPowers", {}).items()},
            disabled_cards=list(data.get("disabledCards", [])),
            combo_bonus_disabled=bool(data.get("comboBonusDisabled", False)),
            victory_point_modifiers=int(data.get("victoryPointModifiers", 0)),
            special_flags=deepcopy(data.get("specialFlags", {})),
        )


@dataclass
class PlayerState:
    """State for a single player (primary fields only)."""
    player_id: str
    name: str
    hand: list[str] = field(default_factory=list)
    main_deck: list[str] = field(default_factory=list)
    leader_sequence: list[str] = field(default_factory=list)
    current_leader_idx: int = 0
    is_ready: bool = False
    redraws_remaining: int = 1
    player_point: int = 0

    # Round bookkeeping
    has_passed: bool = False
    sp_done: bool = False
    last_round_power: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.player_id,
            "name": self.name,
            "hand": list(self.hand),
            "mainDeck": list(self.main_deck),
            "leaderSequence": list(self.leader_sequence),
            "currentLeaderIdx": self.current_leader_idx,
            "isReady": self.is_ready,
            "redrawsRemaining": self.redraws_remaining,
            "playerPoint": self.player_point,
            "hasPassed": self.has_passed,
            "spDone": self.sp_done,
            "lastRoundPower": self.last_round_power,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PlayerState:
        return cls(
            player_id=data["id"],
            name=data.get("name", data["id"]),
            hand=list(data.get("hand", [])),
            main_deck=list(data.get("mainDeck", [])),
            leader_sequence=list(data.get("leaderSequence", [])),
            current_leader_idx=int(data.get("currentLeaderIdx", 0)),
            is_ready=bool(data.get("isReady", False)),
            redraws_remaining=int(data.get("redrawsRemaining", 1)),
            player_point=int(data.get("playerPoint", 0)),
            has_passed=bool(data.get("hasPassed", False)),
            sp_done=bool(data.get("spDone", False)),
            last_round_power=int(data.get("lastRoundPower", 0)),
        )


@dataclass
class PendingSelection:
    """
    An outstanding choice the game is suspended on.

    context carries what the resuming SelectCard needs: the source card,
    the rule and its index on the card, the destination or effect value,
    and for deck searches the searched cards in their original order.
    """
    selection_id: str
    player_id: str
    kind: SelectionKind
    select_count: int
    eligible_cards: list[str] = field(default_factory=list)
    context: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "selectionId": self.selection_id,
            "playerId": self.player_id,
            "kind": self.kind.value,
            "selectCount": self.select_count,
            "eligibleCards": list(self.eligible_cards),
            "context": deepcopy(self.context),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PendingSelection:
        return cls(
            selection_id=data["selectionId"],
            player_id=data["playerId"],
            kind=SelectionKind(data["kind"]),
            select_count=int(data.get("selectCount", 1)),
            eligible_cards=list(data.get("eligibleCards", [])),
            context=deepcopy(data.get("context", {})),
        )


@dataclass
class SelectionEffect:
    """
    A resolved targeting choice.

    This is primary state: the resolver reads it on every pass and
    applies the effect only while its source is still on the field and
    not disabled.
    """
    source_card_id: str
    source_owner: str
    effect_kind: str
    target_owner: str
    target_card_ids: list[str]
    value: int | None = None
    sequence_id: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "sourceCardId": self.source_card_id,
            "sourceOwner": self.source_owner,
            "effectKind": self.effect_kind,
            "value": self.value,
            "targetOwner": self.target_owner,
            "targetCardIds": list(self.target_card_ids),
            "sequenceId": self.sequence_id,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SelectionEffect:
        return cls(
            source_card_id=data["sourceCardId"],
            source_owner=data["sourceOwner"],
            effect_kind=data["effectKind"],
            target_owner=data["targetOwner"],
            target_card_ids=list(data.get("targetCardIds", [])),
            value=data.get("value"),
            sequence_id=int(data.get("sequenceId", 0)),
        )


@dataclass
class GameState:
    """
    Complete game document at a point in time.

    All changes go through the ActionProcessor, which works on a clone.
    """
    game_id: str
    phase: Phase = Phase.START_REDRAW
    round: int = 1
    current_turn: int = 0
    first_player: str = ""
    current_player: str = ""
    game_started: bool = False

    players: list[PlayerState] = field(default_factory=list)
    zones: dict[str, PlayerZones] = field(default_factory=dict)
    derived_effects: dict[str, DerivedEffects] = field(default_factory=dict)

    pending_selection: PendingSelection | None = None
    selection_effects: list[SelectionEffect] = field(default_factory=list)
    event_journal: EventJournal = field(default_factory=EventJournal)
    play_sequence: PlaySequence = field(default_factory=PlaySequence)
    update_uuid: str = ""

    winner: str | None = None
    last_battle: dict[str, Any] | None = None

    # Seeded PRNG for shuffles and random discards
    random_seed: int = 0
    random_counter: int = 0

    @property
    def player_ids(self) -> list[str]:
        return [p.player_id for p in self.players]

    def get_player(self, player_id: str) -> PlayerState | None:
        """Get player by ID."""
        for p in self.players:
            if p.player_id == player_id:
                return p
        return None

    def opponent_of(self, player_id: str) -> str:
        for p in self.players:
            if p.player_id != player_id:
                return p.player_id
        raise KeyError(player_id)

    def players_from(self, player_id: str) -> list[str]:
        """[player_id, opponent]: the owner order used for scans."""
        return [player_id, self.opponent_of(player_id)]

    def derived(self, player_id: str) -> DerivedEffects:
        if player_id not in self.derived_effects:
            self.derived_effects[player_id] = DerivedEffects()
        return self.derived_effects[player_id]

    def field_placements(self, player_id: str, face_up_only: bool = False) -> Iterator[tuple[str, Placement]]:
        """(zone, placement) pairs in scan order: top, left, right, help, sp."""
        player_zones = self.zones[player_id]
        for zone in FIELD_ZONES:
            for placement in player_zones.get(zone):
                if face_up_only and not placement.face_up:
                    continue
                yield zone, placement

    def current_leader_id(self, player_id: str) -> str | None:
        player_zones = self.zones.get(player_id)
        if player_zones is None or player_zones.leader is None:
            return None
        return player_zones.leader.card_id

    def clone(self) -> GameState:
        """Deep copy the state."""
        return deepcopy(self)

    def rotate_uuid(self) -> str:
        self.update_uuid = uuid.uuid4().hex
        return self.update_uuid

    def next_rng(self) -> random.Random:
        """A PRNG derived from the seed and a per-use counter."""
        rng = random.Random(f"{self.random_seed}:{self.random_counter}")
        self.random_counter += 1
        return rng

    def to_dict(self) -> dict[str, Any]:
        return {
            "gameId": self.game_id,
            "phase": self.phase.value,
            "round": self.round,
            "currentTurn": self.current_turn,
            "firstPlayer": self.first_player,
            "currentPlayer": self.current_player,
            "gameStarted": self.game_started,
            "players": [p.to_dict() for p in self.players],
            "zones": {pid: z.to_dict() for pid, z in self.zones.items()},
            "derivedEffects": {pid: d.to_dict() for pid, d in self.derived_effects.items()},
            "pendingSelection": self.pending_selection.to_dict() if self.pending_selection else None,
            "selectionEffects": [s.to_dict() for s in self.selection_effects],
            "eventJournal": self.event_journal.to_dict(),
            "playSequence": self.play_sequence.to_dict(),
            "updateUuid": self.update_uuid,
            "winner": self.winner,
            "lastBattle": deepcopy(self.last_battle),
            "randomSeed": self.random_seed,
            "randomCounter": self.random_counter,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> GameState:
        players = [PlayerState.from_dict(p) for p in data.get("players", [])]
        zones = {pid: PlayerZones.from_dict(z) for pid, z in (data.get("zones") or {}).items()}
        for p in players:
            zones.setdefault(p.player_id, PlayerZones())
        derived = {
            pid: DerivedEffects.from_dict(d)
            for pid, d in (data.get("derivedEffects") or {}).items()
        }
        pending = data.get("pendingSelection")
        return cls(
            game_id=data.get("gameId", ""),
            phase=Phase(data.get("phase", Phase.START_REDRAW.value)),
            round=int(data.get("round", 1)),
            current_turn=int(data.get("currentTurn", 0)),
            first_player=data.get("firstPlayer", players[0].player_id if players else ""),
            current_player=data.get("currentPlayer", players[0].player_id if players else ""),
            game_started=bool(data.get("gameStarted", False)),
            players=players,
            zones=zones,
            derived_effects=derived,
            pending_selection=PendingSelection.from_dict(pending) if pending else None,
            selection_effects=[SelectionEffect.from_dict(s) for s in data.get("selectionEffects", [])],
            event_journal=EventJournal.from_dict(data.get("eventJournal")),
            play_sequence=PlaySequence.from_dict(data.get("playSequence")),
            update_uuid=data.get("updateUuid", ""),
            winner=data.get("winner"),
            last_battle=deepcopy(data.get("lastBattle")),
            random_seed=int(data.get("randomSeed", 0)),
            random_counter=int(data.get("randomCounter", 0)),
        )
