"""Core engine - game state, validation, effect resolution, phases and journal."""

from .state import (
    GameState,
    Phase,
    PlayerState,
    PlayerZones,
    Placement,
    DerivedEffects,
    PendingSelection,
    SelectionEffect,
    SelectionKind,
)
from .action import Action, ActionType, ActionPayload, ActionResult
from .journal import EventJournal, JournalEvent, EventType
from .play_sequence import PlaySequence, Play, PlayAction
from .validator import Validator, ValidationOutcome
from .effect_resolver import EffectResolver, EnteringCard, ResolveResult, SelectionRequest
from .phase_engine import PhaseEngine, COMBO_CHECKS
from .processor import ActionProcessor
from .setup import new_game, redraw_hand, PlayerSetup
from .projection import project_state
from .invariants import check_invariants, assert_invariants

__all__ = [
    "GameState",
    "Phase",
    "PlayerState",
    "PlayerZones",
    "Placement",
    "DerivedEffects",
    "PendingSelection",
    "SelectionEffect",
    "SelectionKind",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "EventJournal",
    "JournalEvent",
    "EventType",
    "PlaySequence",
    "Play",
    "PlayAction",
    "Validator",
    "ValidationOutcome",
    "EffectResolver",
    "EnteringCard",
    "ResolveResult",
    "SelectionRequest",
    "PhaseEngine",
    "COMBO_CHECKS",
    "ActionProcessor",
    "new_game",
    "redraw_hand",
    "PlayerSetup",
    "project_state",
    "check_invariants",
    "assert_invariants",
]
