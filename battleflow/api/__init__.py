"""
API Module - REST harness for driving and inspecting encounters.

A debugging client:
1. Starts an encounter from two rosters
2. Dispatches actions one at a time
3. Reads back the battle state and executed effects
4. Inspects the action history
5. Ends the encounter

All state is encounter-scoped and in-memory.
"""

from .schemas import (
    # Requests
    CreateEncounterRequest,
    ActionRequest,
    CombatantSpec,
    SelectedActionSpec,
    # Responses
    BattleStateResponse,
    DispatchResponse,
    HistoryResponse,
    EncounterListResponse,
    EndEncounterResponse,
    HealthResponse,
    ErrorResponse,
    ErrorCode,
    # Shared
    CombatantInfo,
    StatsInfo,
    EffectInfo,
    HistoryEntry,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "CreateEncounterRequest",
    "ActionRequest",
    "CombatantSpec",
    "SelectedActionSpec",
    # Responses
    "BattleStateResponse",
    "DispatchResponse",
    "HistoryResponse",
    "EncounterListResponse",
    "EndEncounterResponse",
    "HealthResponse",
    "ErrorResponse",
    "ErrorCode",
    # Shared
    "CombatantInfo",
    "StatsInfo",
    "EffectInfo",
    "HistoryEntry",
    # Service
    "APIService",
    "create_app",
]
