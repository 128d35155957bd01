"""
Action System - Battle actions, payloads, and metadata.

Actions represent:
1. Flow control (start/end battle, phase and turn advancement)
2. Character actions (attack, skill, item, defend, escape)
3. Status adjustments (HP/MP deltas, status ailments)
4. Turn coordination and AI hooks
5. Effect queue bookkeeping

All state changes flow through actions.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import TYPE_CHECKING, Iterable

if TYPE_CHECKING:
    from .state import BattlePhase, Combatant, CombatantID


class ActionType(Enum):
    """Types of actions in the system."""
    # Flow control
    START_BATTLE = "start_battle"
    END_BATTLE = "end_battle"
    ADVANCE_PHASE = "advance_phase"
    ADVANCE_TURN = "advance_turn"

    # Character actions
    ATTACK = "attack"
    USE_SKILL = "use_skill"
    USE_ITEM = "use_item"
    DEFEND = "defend"
    ESCAPE = "escape"

    # Status adjustments
    CHANGE_HP = "change_hp"
    CHANGE_MP = "change_mp"
    APPLY_STATUS_EFFECT = "apply_status_effect"
    REMOVE_STATUS_EFFECT = "remove_status_effect"

    # Turn coordination
    SET_CURRENT_ACTOR = "set_current_actor"
    BEGIN_ACTION_SELECTION = "begin_action_selection"
    COMPLETE_ACTION_SELECTION = "complete_action_selection"

    # Effect management
    ADD_EFFECTS = "add_effects"
    EXECUTE_EFFECT = "execute_effect"
    CLEAR_EFFECTS = "clear_effects"

    # AI coordination
    AI_DECIDE_ACTION = "ai_decide_action"
    AI_EXECUTE_ACTION = "ai_execute_action"


FLOW_CONTROL_TYPES = frozenset({
    ActionType.START_BATTLE,
    ActionType.END_BATTLE,
    ActionType.ADVANCE_PHASE,
    ActionType.ADVANCE_TURN,
    ActionType.SET_CURRENT_ACTOR,
    ActionType.BEGIN_ACTION_SELECTION,
    ActionType.COMPLETE_ACTION_SELECTION,
})

CHARACTER_ACTION_TYPES = frozenset({
    ActionType.ATTACK,
    ActionType.USE_SKILL,
    ActionType.USE_ITEM,
    ActionType.DEFEND,
    ActionType.ESCAPE,
})


class BattleResult(Enum):
    """Outcome passed to end_battle."""
    VICTORY = "victory"
    DEFEAT = "defeat"
    ESCAPE = "escape"
    DRAW = "draw"


class ActionPriority(IntEnum):
    """Scheduling tier of a character action."""
    LOWEST = 0
    LOW = 1
    NORMAL = 2
    HIGH = 3
    HIGHEST = 4


# Tier per character action
ESCAPE_PRIORITY = ActionPriority.HIGHEST
ITEM_PRIORITY = ActionPriority.HIGH
SKILL_PRIORITY = ActionPriority.NORMAL
ATTACK_PRIORITY = ActionPriority.NORMAL
DEFEND_PRIORITY = ActionPriority.LOW


@dataclass(frozen=True)
class ActionMetadata:
    """Static scheduling information attached to an action."""
    priority: ActionPriority = ActionPriority.NORMAL
    speed: int = 0
    is_instant: bool = False


class SelectedActionKind(Enum):
    ATTACK = "attack"
    SKILL = "skill"
    ITEM = "item"
    DEFEND = "defend"
    ESCAPE = "escape"


@dataclass(frozen=True)
class SelectedAction:
    """
    The action a combatant chose for its turn.

    Produced by a player UI or an AI collaborator and carried by
    complete_action_selection / ai_execute_action.
    """
    kind: SelectedActionKind
    target: CombatantID | None = None
    targets: tuple[CombatantID, ...] = ()
    ref_id: str | None = None  # skill or item id

    @classmethod
    def attack(cls, target: CombatantID) -> SelectedAction:
        return cls(kind=SelectedActionKind.ATTACK, target=target)

    @classmethod
    def skill(cls, skill_id: str, targets: Iterable[CombatantID]) -> SelectedAction:
        return cls(kind=SelectedActionKind.SKILL, ref_id=skill_id, targets=tuple(targets))

    @classmethod
    def item(cls, item_id: str, target: CombatantID | None = None) -> SelectedAction:
        return cls(kind=SelectedActionKind.ITEM, ref_id=item_id, target=target)

    @classmethod
    def defend(cls) -> SelectedAction:
        return cls(kind=SelectedActionKind.DEFEND)

    @classmethod
    def escape(cls) -> SelectedAction:
        return cls(kind=SelectedActionKind.ESCAPE)


@dataclass(frozen=True)
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields. This is a generic
    container; the reducer reads the fields its handler needs.
    """
    # Who acts and who is affected
    actor_id: CombatantID | None = None
    target_id: CombatantID | None = None
    target_ids: tuple[CombatantID, ...] = ()

    # Damage for attack, signed delta for HP/MP changes
    amount: int = 0

    # For start_battle
    players: tuple[Combatant, ...] = ()
    enemies: tuple[Combatant, ...] = ()

    # Flow control
    result: BattleResult | None = None
    phase: BattlePhase | None = None

    # Skills, items, status ailments
    skill_id: str | None = None
    item_id: str | None = None
    status_effect: str | None = None
    duration: int = 0

    # Turn coordination
    selected_action: SelectedAction | None = None

    # Effect management
    effect_ids: tuple[str, ...] = ()
    effect_id: str | None = None


@dataclass(frozen=True)
class BattleAction:
    """
    A complete action to be dispatched to the store.

    Actions are:
    - Recorded in the store's history
    - Applied by the reducer
    - Compared structurally
    """
    action_type: ActionType
    payload: ActionPayload = ActionPayload()

    @property
    def is_flow_control(self) -> bool:
        return self.action_type in FLOW_CONTROL_TYPES

    @property
    def is_character_action(self) -> bool:
        return self.action_type in CHARACTER_ACTION_TYPES

    @property
    def metadata(self) -> ActionMetadata:
        if self.action_type == ActionType.ESCAPE:
            return ActionMetadata(priority=ESCAPE_PRIORITY, is_instant=True)
        if self.action_type == ActionType.USE_ITEM:
            return ActionMetadata(priority=ITEM_PRIORITY)
        if self.action_type == ActionType.DEFEND:
            return ActionMetadata(priority=DEFEND_PRIORITY)
        if self.action_type == ActionType.ATTACK:
            return ActionMetadata(priority=ATTACK_PRIORITY)
        if self.action_type == ActionType.USE_SKILL:
            return ActionMetadata(priority=SKILL_PRIORITY)
        return ActionMetadata()

    @property
    def referenced_ids(self) -> tuple[CombatantID, ...]:
        """Combatant ids named by this action."""
        p = self.payload
        ids = [cid for cid in (p.actor_id, p.target_id) if cid is not None]
        ids.extend(p.target_ids)
        return tuple(ids)

    # Flow control

    @classmethod
    def start_battle(
        cls, players: Iterable[Combatant], enemies: Iterable[Combatant]
    ) -> BattleAction:
        return cls(
            action_type=ActionType.START_BATTLE,
            payload=ActionPayload(players=tuple(players), enemies=tuple(enemies)),
        )

    @classmethod
    def end_battle(cls, result: BattleResult) -> BattleAction:
        return cls(action_type=ActionType.END_BATTLE, payload=ActionPayload(result=result))

    @classmethod
    def advance_phase(cls, phase: BattlePhase) -> BattleAction:
        return cls(action_type=ActionType.ADVANCE_PHASE, payload=ActionPayload(phase=phase))

    @classmethod
    def advance_turn(cls) -> BattleAction:
        return cls(action_type=ActionType.ADVANCE_TURN)

    # Character actions

    @classmethod
    def attack(cls, attacker: CombatantID, target: CombatantID, damage: int) -> BattleAction:
        return cls(
            action_type=ActionType.ATTACK,
            payload=ActionPayload(actor_id=attacker, target_id=target, amount=damage),
        )

    @classmethod
    def use_skill(
        cls, user: CombatantID, skill_id: str, targets: Iterable[CombatantID]
    ) -> BattleAction:
        return cls(
            action_type=ActionType.USE_SKILL,
            payload=ActionPayload(actor_id=user, skill_id=skill_id, target_ids=tuple(targets)),
        )

    @classmethod
    def use_item(
        cls, user: CombatantID, item_id: str, target: CombatantID | None = None
    ) -> BattleAction:
        return cls(
            action_type=ActionType.USE_ITEM,
            payload=ActionPayload(actor_id=user, item_id=item_id, target_id=target),
        )

    @classmethod
    def defend(cls, defender: CombatantID) -> BattleAction:
        return cls(action_type=ActionType.DEFEND, payload=ActionPayload(actor_id=defender))

    @classmethod
    def escape(cls, escaper: CombatantID) -> BattleAction:
        return cls(action_type=ActionType.ESCAPE, payload=ActionPayload(actor_id=escaper))

    # Status adjustments

    @classmethod
    def change_hp(cls, target: CombatantID, amount: int) -> BattleAction:
        return cls(
            action_type=ActionType.CHANGE_HP,
            payload=ActionPayload(target_id=target, amount=amount),
        )

    @classmethod
    def change_mp(cls, target: CombatantID, amount: int) -> BattleAction:
        return cls(
            action_type=ActionType.CHANGE_MP,
            payload=ActionPayload(target_id=target, amount=amount),
        )

    @classmethod
    def apply_status_effect(
        cls, target: CombatantID, effect: str, duration: int
    ) -> BattleAction:
        return cls(
            action_type=ActionType.APPLY_STATUS_EFFECT,
            payload=ActionPayload(target_id=target, status_effect=effect, duration=duration),
        )

    @classmethod
    def remove_status_effect(cls, target: CombatantID, effect: str) -> BattleAction:
        return cls(
            action_type=ActionType.REMOVE_STATUS_EFFECT,
            payload=ActionPayload(target_id=target, status_effect=effect),
        )

    # Turn coordination

    @classmethod
    def set_current_actor(cls, actor: CombatantID | None) -> BattleAction:
        return cls(action_type=ActionType.SET_CURRENT_ACTOR, payload=ActionPayload(actor_id=actor))

    @classmethod
    def begin_action_selection(cls, combatant: CombatantID) -> BattleAction:
        return cls(
            action_type=ActionType.BEGIN_ACTION_SELECTION,
            payload=ActionPayload(actor_id=combatant),
        )

    @classmethod
    def complete_action_selection(
        cls, combatant: CombatantID, selected: SelectedAction
    ) -> BattleAction:
        return cls(
            action_type=ActionType.COMPLETE_ACTION_SELECTION,
            payload=ActionPayload(actor_id=combatant, selected_action=selected),
        )

    # Effect management

    @classmethod
    def add_effects(cls, effect_ids: Iterable[str]) -> BattleAction:
        return cls(
            action_type=ActionType.ADD_EFFECTS,
            payload=ActionPayload(effect_ids=tuple(effect_ids)),
        )

    @classmethod
    def execute_effect(cls, effect_id: str) -> BattleAction:
        return cls(action_type=ActionType.EXECUTE_EFFECT, payload=ActionPayload(effect_id=effect_id))

    @classmethod
    def clear_effects(cls) -> BattleAction:
        return cls(action_type=ActionType.CLEAR_EFFECTS)

    # AI coordination

    @classmethod
    def ai_decide_action(cls, combatant: CombatantID) -> BattleAction:
        return cls(action_type=ActionType.AI_DECIDE_ACTION, payload=ActionPayload(actor_id=combatant))

    @classmethod
    def ai_execute_action(
        cls, combatant: CombatantID, selected: SelectedAction
    ) -> BattleAction:
        return cls(
            action_type=ActionType.AI_EXECUTE_ACTION,
            payload=ActionPayload(actor_id=combatant, selected_action=selected),
        )
