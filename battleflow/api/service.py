"""
API Service - Business logic layer between API and engine.

The service:
1. Translates API requests to engine actions
2. Manages encounters through the EncounterManager
3. Waits for each dispatch's effect batch before answering
4. Formats responses

This layer is framework-agnostic (can be used with FastAPI, Flask, etc.)
"""

from __future__ import annotations
from dataclasses import dataclass, field

from .schemas import (
    ActionRequest,
    BattleStateResponse,
    CombatantInfo,
    CombatantSpec,
    CreateEncounterRequest,
    DispatchResponse,
    EffectInfo,
    EncounterStatusName,
    ErrorCode,
    ErrorResponse,
    HistoryEntry,
    HistoryResponse,
    SelectedActionSpec,
    StatsInfo,
)
from ..engine_core.action import (
    ActionPayload,
    ActionType,
    BattleAction,
    SelectedAction,
)
from ..engine_core.effect import Effect
from ..engine_core.state import Combatant, CombatantID, Stats
from ..flow import slugify_name
from ..session import Encounter, EncounterManager

# Payload fields each action type cannot do without
ACTION_REQUIRED_FIELDS: dict[ActionType, tuple[str, ...]] = {
    ActionType.END_BATTLE: ("result",),
    ActionType.ADVANCE_PHASE: ("phase",),
    ActionType.ATTACK: ("actor_id", "target_id"),
    ActionType.USE_SKILL: ("actor_id", "skill_id"),
    ActionType.USE_ITEM: ("actor_id", "item_id"),
    ActionType.DEFEND: ("actor_id",),
    ActionType.ESCAPE: ("actor_id",),
    ActionType.CHANGE_HP: ("target_id",),
    ActionType.CHANGE_MP: ("target_id",),
    ActionType.APPLY_STATUS_EFFECT: ("target_id", "status_effect"),
    ActionType.REMOVE_STATUS_EFFECT: ("target_id", "status_effect"),
    ActionType.BEGIN_ACTION_SELECTION: ("actor_id",),
    ActionType.COMPLETE_ACTION_SELECTION: ("actor_id", "selected_action"),
    ActionType.EXECUTE_EFFECT: ("effect_id",),
    ActionType.AI_DECIDE_ACTION: ("actor_id",),
    ActionType.AI_EXECUTE_ACTION: ("actor_id", "selected_action"),
}


def _cid(value: str | None) -> CombatantID | None:
    return CombatantID(value) if value is not None else None


def combatant_from_spec(spec: CombatantSpec, is_player: bool) -> Combatant:
    """Build a domain Combatant from an API combatant spec."""
    return Combatant(
        id=CombatantID(spec.id or slugify_name(spec.name)),
        name=spec.name,
        stats=Stats(
            hp=spec.hp,
            max_hp=spec.max_hp if spec.max_hp is not None else spec.hp,
            mp=spec.mp,
            max_mp=spec.max_mp if spec.max_mp is not None else spec.mp,
            attack=spec.attack,
            defense=spec.defense,
            speed=spec.speed,
        ),
        is_player_controlled=is_player,
    )


def selected_action_from_spec(spec: SelectedActionSpec) -> SelectedAction:
    return SelectedAction(
        kind=spec.kind,
        target=_cid(spec.target),
        targets=tuple(CombatantID(t) for t in spec.targets),
        ref_id=spec.ref_id,
    )


def action_from_request(request: ActionRequest) -> BattleAction:
    """
    Convert an API action request into a BattleAction.

    Raises ValueError when the request cannot describe a valid action.
    """
    if request.action_type == ActionType.START_BATTLE:
        raise ValueError("start_battle is issued by creating an encounter")

    missing = [
        name for name in ACTION_REQUIRED_FIELDS.get(request.action_type, ())
        if getattr(request, name) is None
    ]
    if missing:
        raise ValueError(
            f"{request.action_type.value} requires: {', '.join(missing)}"
        )

    payload = ActionPayload(
        actor_id=_cid(request.actor_id),
        target_id=_cid(request.target_id),
        target_ids=tuple(CombatantID(t) for t in request.target_ids),
        amount=request.amount,
        result=request.result,
        phase=request.phase,
        skill_id=request.skill_id,
        item_id=request.item_id,
        status_effect=request.status_effect,
        duration=request.duration,
        selected_action=(
            selected_action_from_spec(request.selected_action)
            if request.selected_action else None
        ),
        effect_ids=tuple(request.effect_ids),
        effect_id=request.effect_id,
    )
    return BattleAction(action_type=request.action_type, payload=payload)


def effect_to_info(effect: Effect) -> EffectInfo:
    return EffectInfo(
        id=effect.id,
        priority=effect.priority,
        kind=effect.kind.value,
        target=str(effect.target) if effect.target is not None else None,
        amount=effect.amount,
    )


def combatant_to_info(combatant: Combatant) -> CombatantInfo:
    return CombatantInfo(
        id=str(combatant.id),
        name=combatant.name,
        is_player_controlled=combatant.is_player_controlled,
        is_defeated=combatant.stats.is_defeated,
        stats=StatsInfo.model_validate(combatant.stats),
    )


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService()

        # Start an encounter
        state = service.create_encounter(request)

        # Dispatch an action
        response = await service.dispatch_action(state.encounter_id, action_request)
    """
    encounter_manager: EncounterManager = field(default_factory=EncounterManager)

    def create_encounter(self, request: CreateEncounterRequest) -> BattleStateResponse:
        """Create an encounter and start its battle."""
        players = [combatant_from_spec(s, is_player=True) for s in request.players]
        enemies = [combatant_from_spec(s, is_player=False) for s in request.enemies]
        encounter = self.encounter_manager.create_encounter(players, enemies)
        return self._build_state(encounter)

    def get_state(self, encounter_id: str) -> BattleStateResponse | ErrorResponse:
        encounter = self.encounter_manager.get_encounter(encounter_id)
        if not encounter:
            return self._not_found(encounter_id)
        return self._build_state(encounter)

    async def dispatch_action(
        self, encounter_id: str, request: ActionRequest
    ) -> DispatchResponse | ErrorResponse:
        """
        Dispatch an action and wait for its effect batch.

        The response carries the effects that ran and the committed state.
        """
        encounter = self.encounter_manager.get_encounter(encounter_id)
        if not encounter:
            return self._not_found(encounter_id)

        try:
            action = action_from_request(request)
        except ValueError as e:
            return ErrorResponse(error=str(e), error_code=ErrorCode.INVALID_ACTION)

        executed = await encounter.store.dispatch_and_wait(action)
        self.encounter_manager.refresh_status(encounter)

        return DispatchResponse(
            encounter_id=encounter_id,
            action_type=action.action_type,
            executed_effects=[effect_to_info(e) for e in executed],
            state=self._build_state(encounter),
        )

    def get_history(self, encounter_id: str) -> HistoryResponse | ErrorResponse:
        encounter = self.encounter_manager.get_encounter(encounter_id)
        if not encounter:
            return self._not_found(encounter_id)

        entries = [
            HistoryEntry(
                index=i,
                action_type=action.action_type,
                is_flow_control=action.is_flow_control,
                is_character_action=action.is_character_action,
                effect_id=action.payload.effect_id,
            )
            for i, action in enumerate(encounter.store.action_history)
        ]
        return HistoryResponse(encounter_id=encounter_id, actions=entries, count=len(entries))

    def end_encounter(self, encounter_id: str, reason: str = "user_ended") -> bool:
        return self.encounter_manager.end_encounter(encounter_id, reason)

    def list_encounters(self) -> list[str]:
        return self.encounter_manager.list_encounters()

    def count_active(self) -> int:
        return len(self.encounter_manager.list_active_encounters())

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _not_found(encounter_id: str) -> ErrorResponse:
        return ErrorResponse(
            error=f"Encounter {encounter_id} not found",
            error_code=ErrorCode.ENCOUNTER_NOT_FOUND,
        )

    def _build_state(self, encounter: Encounter) -> BattleStateResponse:
        state = encounter.store.state
        status = self.encounter_manager.refresh_status(encounter)
        return BattleStateResponse(
            encounter_id=encounter.encounter_id,
            status=EncounterStatusName(status.value),
            phase=state.phase,
            turn_count=state.turn_count,
            current_actor=str(state.current_actor) if state.current_actor else None,
            is_battle_ended=state.is_battle_ended,
            players=[
                combatant_to_info(c) for cid, c in state.combatants.items()
                if cid in state.player_ids
            ],
            enemies=[
                combatant_to_info(c) for cid, c in state.combatants.items()
                if cid in state.enemy_ids
            ],
            pending_effects=[effect_to_info(e) for e in state.pending_effects],
        )
