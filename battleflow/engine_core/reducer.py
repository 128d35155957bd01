"""
Reducer - Computes the next battle state.

The reducer is the single point of state transition.
Every state change goes through reduce().

Design principles:
- Pure function: (state, action) -> (new_state, effects)
- Never raises: unknown combatants and missing payload fields are a silent no-op
- Out-of-range HP/MP is clamped by Stats, never rejected
- Emits effect descriptors; never performs side effects itself
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable

from .action import BattleAction, ActionType, BattleResult
from .effect import Effect, EffectKind
from .state import BattleState, BattlePhase

ReduceResult = tuple[BattleState, list[Effect]]

# Priority given to effects queued through add_effects
QUEUED_EFFECT_PRIORITY = 1

_RESULT_PHASES = {
    BattleResult.VICTORY: BattlePhase.VICTORY,
    BattleResult.DEFEAT: BattlePhase.DEFEAT,
    BattleResult.ESCAPE: BattlePhase.ESCAPE,
    BattleResult.DRAW: BattlePhase.ESCAPE,
}


@dataclass(frozen=True)
class BattleReducer:
    """
    Applies actions to battle state.

    Stateless - all state is in BattleState.
    """

    def reduce(self, state: BattleState, action: BattleAction) -> ReduceResult:
        """
        Apply an action to the battle state.

        Returns (new_state, effects). The input state is never modified.
        """
        handler = self._get_handler(action.action_type)
        return handler(state, action)

    def _get_handler(self, action_type: ActionType) -> Callable[[BattleState, BattleAction], ReduceResult]:
        """Get the handler function for an action type."""
        handlers = {
            ActionType.START_BATTLE: self._handle_start_battle,
            ActionType.END_BATTLE: self._handle_end_battle,
            ActionType.ADVANCE_PHASE: self._handle_advance_phase,
            ActionType.ADVANCE_TURN: self._handle_advance_turn,
            ActionType.ATTACK: self._handle_attack,
            ActionType.USE_SKILL: self._handle_use_skill,
            ActionType.USE_ITEM: self._handle_use_item,
            ActionType.DEFEND: self._handle_defend,
            ActionType.ESCAPE: self._handle_escape,
            ActionType.CHANGE_HP: self._handle_change_hp,
            ActionType.CHANGE_MP: self._handle_change_mp,
            ActionType.APPLY_STATUS_EFFECT: self._handle_apply_status_effect,
            ActionType.REMOVE_STATUS_EFFECT: self._handle_remove_status_effect,
            ActionType.SET_CURRENT_ACTOR: self._handle_set_current_actor,
            ActionType.BEGIN_ACTION_SELECTION: self._handle_begin_action_selection,
            ActionType.COMPLETE_ACTION_SELECTION: self._handle_complete_action_selection,
            ActionType.ADD_EFFECTS: self._handle_add_effects,
            ActionType.EXECUTE_EFFECT: self._handle_execute_effect,
            ActionType.CLEAR_EFFECTS: self._handle_clear_effects,
            ActionType.AI_DECIDE_ACTION: self._handle_ai_decide_action,
            ActionType.AI_EXECUTE_ACTION: self._handle_ai_execute_action,
        }
        return handlers[action_type]

    # =========================================================================
    # Flow control
    # =========================================================================

    def _handle_start_battle(self, state: BattleState, action: BattleAction) -> ReduceResult:
        """
        Build a fresh encounter from the two rosters.

        The previous state is ignored entirely. A later combatant with a
        colliding id overwrites the earlier one.
        """
        combatants = {}
        player_ids = set()
        enemy_ids = set()

        for player in action.payload.players:
            combatants[player.id] = player
            player_ids.add(player.id)

        for enemy in action.payload.enemies:
            combatants[enemy.id] = enemy
            enemy_ids.add(enemy.id)

        new_state = BattleState(
            phase=BattlePhase.TURN_SELECTION,
            combatants=combatants,
            player_ids=frozenset(player_ids),
            enemy_ids=frozenset(enemy_ids),
            turn_count=1,
            current_actor=None,
            pending_effects=(),
        )

        return new_state, [
            Effect("battle_start_animation", 1, kind=EffectKind.ANIMATION),
            Effect("battle_music_start", 1, kind=EffectKind.MUSIC),
        ]

    def _handle_end_battle(self, state: BattleState, action: BattleAction) -> ReduceResult:
        result = action.payload.result
        if result is None:
            return state, []

        new_state = state.with_phase(_RESULT_PHASES[result])
        return new_state, [
            Effect(f"battle_end_{result.value}", 1, kind=EffectKind.UI),
            Effect("battle_music_stop", 0, kind=EffectKind.MUSIC),
        ]

    def _handle_advance_phase(self, state: BattleState, action: BattleAction) -> ReduceResult:
        phase = action.payload.phase
        if phase is None:
            return state, []

        return state.with_phase(phase), [
            Effect(f"phase_transition_{phase.value}", 1, kind=EffectKind.UI),
        ]

    def _handle_advance_turn(self, state: BattleState, action: BattleAction) -> ReduceResult:
        new_state = state._copy_with(turn_count=state.turn_count + 1, current_actor=None)
        return new_state, [Effect("turn_advance", 1, kind=EffectKind.UI)]

    # =========================================================================
    # Character actions
    # =========================================================================

    def _handle_attack(self, state: BattleState, action: BattleAction) -> ReduceResult:
        """
        Subtract raw damage from the target's HP.

        Defense is not applied here; damage arrives already computed.
        """
        attacker = action.payload.actor_id
        target_id = action.payload.target_id
        damage = action.payload.amount

        target = state.get_combatant(target_id)
        if target is None:
            return state, []

        updated = target.with_stats(target.stats.with_hp(target.stats.hp - damage))
        new_state = state.with_combatant(updated)

        return new_state, [
            Effect(f"attack_animation_{attacker}", 3, kind=EffectKind.ANIMATION, target=attacker),
            Effect(
                f"damage_effect_{target_id}_{damage}", 2,
                kind=EffectKind.DAMAGE, target=target_id, amount=damage,
            ),
            Effect("attack_sound", 1, kind=EffectKind.SOUND),
        ]

    def _handle_use_skill(self, state: BattleState, action: BattleAction) -> ReduceResult:
        # Stat changes come from a skill resolver re-dispatching change_hp/change_mp
        skill_id = action.payload.skill_id
        return state, [
            Effect(f"skill_animation_{skill_id}", 3, kind=EffectKind.ANIMATION),
            Effect(f"skill_sound_{skill_id}", 1, kind=EffectKind.SOUND),
        ]

    def _handle_use_item(self, state: BattleState, action: BattleAction) -> ReduceResult:
        item_id = action.payload.item_id
        return state, [
            Effect(f"item_use_{item_id}", 2, kind=EffectKind.ANIMATION, target=action.payload.target_id),
        ]

    def _handle_defend(self, state: BattleState, action: BattleAction) -> ReduceResult:
        defender = action.payload.actor_id
        return state, [
            Effect(f"defend_animation_{defender}", 1, kind=EffectKind.ANIMATION, target=defender),
        ]

    def _handle_escape(self, state: BattleState, action: BattleAction) -> ReduceResult:
        """Only the player side can escape; enemy escape is not modelled."""
        escaper = action.payload.actor_id
        if not state.is_player(escaper):
            return state, []

        return state.with_phase(BattlePhase.ESCAPE), [
            Effect("escape_success", 2, kind=EffectKind.UI, target=escaper),
        ]

    # =========================================================================
    # Status adjustments
    # =========================================================================

    def _handle_change_hp(self, state: BattleState, action: BattleAction) -> ReduceResult:
        target_id = action.payload.target_id
        amount = action.payload.amount

        combatant = state.get_combatant(target_id)
        if combatant is None:
            return state, []

        updated = combatant.with_stats(combatant.stats.with_hp(combatant.stats.hp + amount))
        new_state = state.with_combatant(updated)

        if amount > 0:
            effect_type, kind = "heal", EffectKind.HEAL
        else:
            effect_type, kind = "damage", EffectKind.DAMAGE

        return new_state, [
            Effect(
                f"{effect_type}_effect_{target_id}_{abs(amount)}", 2,
                kind=kind, target=target_id, amount=abs(amount),
            ),
        ]

    def _handle_change_mp(self, state: BattleState, action: BattleAction) -> ReduceResult:
        target_id = action.payload.target_id
        amount = action.payload.amount

        combatant = state.get_combatant(target_id)
        if combatant is None:
            return state, []

        updated = combatant.with_stats(combatant.stats.with_mp(combatant.stats.mp + amount))
        new_state = state.with_combatant(updated)

        return new_state, [
            Effect(f"mp_change_{target_id}_{amount}", 1, kind=EffectKind.UI, target=target_id, amount=amount),
        ]

    def _handle_apply_status_effect(self, state: BattleState, action: BattleAction) -> ReduceResult:
        # Duration tracking belongs to a status-ailment manager
        status = action.payload.status_effect
        return state, [
            Effect(f"status_effect_apply_{status}", 2, kind=EffectKind.STATUS, target=action.payload.target_id),
        ]

    def _handle_remove_status_effect(self, state: BattleState, action: BattleAction) -> ReduceResult:
        status = action.payload.status_effect
        return state, [
            Effect(f"status_effect_remove_{status}", 1, kind=EffectKind.STATUS, target=action.payload.target_id),
        ]

    # =========================================================================
    # Turn coordination
    # =========================================================================

    def _handle_set_current_actor(self, state: BattleState, action: BattleAction) -> ReduceResult:
        return state.with_current_actor(action.payload.actor_id), []

    def _handle_begin_action_selection(self, state: BattleState, action: BattleAction) -> ReduceResult:
        combatant_id = action.payload.actor_id
        return state, [
            Effect(f"action_selection_begin_{combatant_id}", 1, kind=EffectKind.UI, target=combatant_id),
        ]

    def _handle_complete_action_selection(self, state: BattleState, action: BattleAction) -> ReduceResult:
        combatant_id = action.payload.actor_id
        return state, [
            Effect(f"action_selection_complete_{combatant_id}", 1, kind=EffectKind.UI, target=combatant_id),
        ]

    # =========================================================================
    # Effect management
    # =========================================================================

    def _handle_add_effects(self, state: BattleState, action: BattleAction) -> ReduceResult:
        """Queue effects on the state. Nothing is scheduled for execution."""
        queued = [Effect(effect_id, QUEUED_EFFECT_PRIORITY) for effect_id in action.payload.effect_ids]
        return state.with_effects(queued), []

    def _handle_execute_effect(self, state: BattleState, action: BattleAction) -> ReduceResult:
        """Bookkeeping only. The pending queue is left untouched."""
        return state, []

    def _handle_clear_effects(self, state: BattleState, action: BattleAction) -> ReduceResult:
        return state.with_cleared_effects(), []

    # =========================================================================
    # AI coordination
    # =========================================================================

    def _handle_ai_decide_action(self, state: BattleState, action: BattleAction) -> ReduceResult:
        combatant_id = action.payload.actor_id
        return state, [
            Effect(f"ai_thinking_{combatant_id}", 1, kind=EffectKind.AI, target=combatant_id),
        ]

    def _handle_ai_execute_action(self, state: BattleState, action: BattleAction) -> ReduceResult:
        return state, []


def reduce(state: BattleState, action: BattleAction) -> ReduceResult:
    """
    Convenience function to reduce one action.

    Creates a BattleReducer and applies the action.
    """
    return BattleReducer().reduce(state, action)
