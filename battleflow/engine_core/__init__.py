"""
Engine Core - Deterministic battle state management and effect scheduling.

The engine is the runtime that:
1. Models the encounter as an immutable BattleState
2. Describes every event as a BattleAction
3. Computes transitions with the pure BattleReducer
4. Commits state and schedules Effects through the BattleStore
"""

from .effect import Effect, EffectKind, NO_EFFECT
from .state import BattlePhase, BattleState, Combatant, CombatantID, Stats
from .action import (
    ActionMetadata,
    ActionPayload,
    ActionPriority,
    ActionType,
    BattleAction,
    BattleResult,
    SelectedAction,
    SelectedActionKind,
)
from .reducer import BattleReducer, reduce
from .store import BattleStore, EffectHandler, log_effect

__all__ = [
    "Effect",
    "EffectKind",
    "NO_EFFECT",
    "BattlePhase",
    "BattleState",
    "Combatant",
    "CombatantID",
    "Stats",
    "ActionMetadata",
    "ActionPayload",
    "ActionPriority",
    "ActionType",
    "BattleAction",
    "BattleResult",
    "SelectedAction",
    "SelectedActionKind",
    "BattleReducer",
    "reduce",
    "BattleStore",
    "EffectHandler",
    "log_effect",
]
