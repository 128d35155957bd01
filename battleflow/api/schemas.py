"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between a debugging client and the engine.
Domain enums (ActionType, BattlePhase, BattleResult, SelectedActionKind) are
used directly so the wire values always match the engine.

Error Codes:
- ENCOUNTER_NOT_FOUND: Encounter does not exist or has been ended
- INVALID_ACTION: Action request is missing fields its type requires
- VALIDATION_ERROR: Request body failed schema validation
- INTERNAL_ERROR: Unexpected failure
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field

from ..engine_core.action import ActionType, BattleResult, SelectedActionKind
from ..engine_core.state import BattlePhase


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    ENCOUNTER_NOT_FOUND = "ENCOUNTER_NOT_FOUND"
    INVALID_ACTION = "INVALID_ACTION"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class EncounterStatusName(str, Enum):
    """Encounter status values."""
    ACTIVE = "active"
    FINISHED = "finished"
    ENDED = "ended"
    ABANDONED = "abandoned"


# =============================================================================
# Shared Models
# =============================================================================

class StatsInfo(BaseModel):
    """Numeric attributes of a combatant."""
    hp: int
    max_hp: int
    mp: int
    max_mp: int
    attack: int
    defense: int
    speed: int

    model_config = {"from_attributes": True}


class CombatantInfo(BaseModel):
    """Combatant information for display."""
    id: str
    name: str
    is_player_controlled: bool
    is_defeated: bool
    stats: StatsInfo


class EffectInfo(BaseModel):
    """An effect descriptor as seen by a client."""
    id: str
    priority: int
    kind: str = "generic"
    target: Optional[str] = None
    amount: Optional[int] = None


class SelectedActionSpec(BaseModel):
    """A turn choice for complete_action_selection / ai_execute_action."""
    kind: SelectedActionKind
    target: Optional[str] = None
    targets: list[str] = Field(default_factory=list)
    ref_id: Optional[str] = Field(None, description="Skill or item id")


# =============================================================================
# Request Models
# =============================================================================

class CombatantSpec(BaseModel):
    """A combatant to place in a new encounter."""
    name: str = Field(min_length=1)
    id: Optional[str] = Field(None, description="Defaults to the slugified name")
    hp: int = Field(100, ge=0)
    max_hp: Optional[int] = Field(None, ge=0, description="Defaults to hp")
    mp: int = Field(50, ge=0)
    max_mp: Optional[int] = Field(None, ge=0, description="Defaults to mp")
    attack: int = 20
    defense: int = 15
    speed: int = 10


class CreateEncounterRequest(BaseModel):
    """Request to start a new encounter."""
    players: list[CombatantSpec] = Field(default_factory=list)
    enemies: list[CombatantSpec] = Field(default_factory=list)


class ActionRequest(BaseModel):
    """
    Request to dispatch one action.

    Only the fields used by `action_type` need to be set; see
    ACTION_REQUIRED_FIELDS in the service for the per-type requirements.
    """
    action_type: ActionType
    actor_id: Optional[str] = None
    target_id: Optional[str] = None
    target_ids: list[str] = Field(default_factory=list)
    amount: int = 0
    result: Optional[BattleResult] = None
    phase: Optional[BattlePhase] = None
    skill_id: Optional[str] = None
    item_id: Optional[str] = None
    status_effect: Optional[str] = None
    duration: int = 0
    selected_action: Optional[SelectedActionSpec] = None
    effect_ids: list[str] = Field(default_factory=list)
    effect_id: Optional[str] = None


# =============================================================================
# Response Models
# =============================================================================

class BattleStateResponse(BaseModel):
    """Full battle state of one encounter."""
    encounter_id: str
    status: EncounterStatusName
    phase: BattlePhase
    turn_count: int
    current_actor: Optional[str] = None
    is_battle_ended: bool
    players: list[CombatantInfo] = Field(default_factory=list)
    enemies: list[CombatantInfo] = Field(default_factory=list)
    pending_effects: list[EffectInfo] = Field(default_factory=list)


class DispatchResponse(BaseModel):
    """Result of dispatching an action and running its effects."""
    encounter_id: str
    action_type: ActionType
    executed_effects: list[EffectInfo] = Field(default_factory=list)
    state: BattleStateResponse


class HistoryEntry(BaseModel):
    """One action from an encounter's history."""
    index: int
    action_type: ActionType
    is_flow_control: bool
    is_character_action: bool
    effect_id: Optional[str] = None


class HistoryResponse(BaseModel):
    encounter_id: str
    actions: list[HistoryEntry] = Field(default_factory=list)
    count: int = 0


class EncounterListResponse(BaseModel):
    encounters: list[str] = Field(default_factory=list)
    count: int = 0


class EndEncounterResponse(BaseModel):
    success: bool
    encounter_id: str


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    active_encounters: int = 0


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None
