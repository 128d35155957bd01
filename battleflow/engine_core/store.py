"""
Battle Store - Owns the current battle state and schedules effects.

The store:
1. Records every dispatched action in its history
2. Runs the reducer and commits the new state synchronously
3. Schedules the returned effects as one asyncio task per dispatch
4. Executes each batch sequentially, highest priority first
5. Records completion of each effect by dispatching execute_effect

State commits are totally ordered by dispatch order. Effect order is only
guaranteed inside one batch; batches from different dispatches may
interleave. Use dispatch_and_wait() when a caller needs one batch finished
before issuing the next action.

All state commits happen on the event loop thread. Follow-up execute_effect
dispatches are plain synchronous calls from the effect task, so no lock is
ever held across an await.
"""

from __future__ import annotations
from collections import deque
from typing import Awaitable, Callable, Iterable
import asyncio
import inspect
import logging

from .action import BattleAction, BattleResult, ActionType
from .effect import Effect, by_execution_order
from .reducer import BattleReducer
from .state import BattleState, BattlePhase, Combatant, CombatantID

logger = logging.getLogger(__name__)

EffectHandler = Callable[[Effect], Awaitable[None] | None]


async def log_effect(effect: Effect) -> None:
    """Default effect handler: log the effect and do nothing else."""
    logger.info("Effect executed: %s (priority: %d)", effect.id, effect.priority)


class BattleStore:
    """
    Central hub for one encounter.

    Usage:
        store = BattleStore(effect_handler=play_effect)
        store.start_battle(players=[hero], enemies=[goblin])
        await store.dispatch_and_wait(BattleAction.attack(hero.id, goblin.id, 30))

        if store.is_battle_ended:
            ...
    """

    def __init__(
        self,
        initial_state: BattleState | None = None,
        reducer: BattleReducer | None = None,
        effect_handler: EffectHandler | None = None,
        history_limit: int | None = None,
    ):
        if history_limit is not None and history_limit <= 0:
            raise ValueError(f"history_limit must be positive, got {history_limit}")

        self._state = initial_state if initial_state is not None else BattleState()
        self._reducer = reducer or BattleReducer()
        self.effect_handler = effect_handler

        self._history: deque[BattleAction] = deque(maxlen=history_limit)
        self._in_flight: set[asyncio.Task] = set()
        # Batches dispatched while no event loop was running
        self._parked: list[list[Effect]] = []

    # =========================================================================
    # Dispatch
    # =========================================================================

    def dispatch(self, action: BattleAction) -> asyncio.Task | None:
        """
        Apply an action and schedule its effects.

        The new state is committed before this returns. Returns the task
        executing the effect batch, or None when nothing was scheduled.
        """
        self._history.append(action)
        self._warn_unknown_combatants(action)

        new_state, effects = self._reducer.reduce(self._state, action)
        self._state = new_state

        logger.debug(
            "Dispatched %s: phase=%s turn=%d effects=%d",
            action.action_type.value,
            new_state.phase.value,
            new_state.turn_count,
            len(effects),
        )

        if not effects:
            return None
        return self._schedule(effects)

    def dispatch_all(self, actions: Iterable[BattleAction]) -> list[asyncio.Task]:
        """Dispatch actions strictly in order. Returns the scheduled batches."""
        tasks = []
        for action in actions:
            task = self.dispatch(action)
            if task is not None:
                tasks.append(task)
        return tasks

    async def dispatch_and_wait(self, action: BattleAction) -> list[Effect]:
        """Dispatch an action and wait for its effect batch to finish."""
        task = self.dispatch(action)
        if task is None:
            return []
        return await task

    async def settle(self) -> None:
        """Wait until every scheduled effect batch, including follow-ups, has run."""
        while True:
            if self._parked:
                parked, self._parked = self._parked, []
                for effects in parked:
                    self._schedule(effects)

            pending = [t for t in self._in_flight if not t.done()]
            if not pending:
                return
            await asyncio.gather(*pending)

    def _schedule(self, effects: list[Effect]) -> asyncio.Task | None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, parking %d effect(s)", len(effects))
            self._parked.append(effects)
            return None

        task = loop.create_task(self._run_batch(effects))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    def _warn_unknown_combatants(self, action: BattleAction) -> None:
        missing = [cid for cid in action.referenced_ids if cid not in self._state.combatants]
        if missing:
            logger.warning(
                "%s references unknown combatant(s): %s",
                action.action_type.value,
                ", ".join(str(cid) for cid in missing),
            )

    # =========================================================================
    # Effect execution
    # =========================================================================

    async def _run_batch(self, effects: list[Effect]) -> list[Effect]:
        """Execute one batch sequentially. Returns the effects that completed."""
        executed = []
        for effect in by_execution_order(effects):
            if await self._execute_effect(effect):
                executed.append(effect)
        return executed

    async def _execute_effect(self, effect: Effect) -> bool:
        handler = self.effect_handler or log_effect
        try:
            result = handler(effect)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Effect handler failed for %s", effect.id)
            return False

        self.dispatch(BattleAction.execute_effect(effect.id))
        return True

    # =========================================================================
    # State management
    # =========================================================================

    @property
    def state(self) -> BattleState:
        return self._state

    def snapshot(self) -> BattleState:
        """Current committed state. Safe to keep: states are immutable."""
        return self._state

    @property
    def action_history(self) -> list[BattleAction]:
        return list(self._history)

    def clear_action_history(self) -> None:
        self._history.clear()

    def reset_state(self, new_state: BattleState | None = None) -> None:
        """
        Replace the state wholesale and clear the history.

        Parked batches belong to the previous encounter and are dropped.
        Batches already running are left to finish.
        """
        self._state = new_state if new_state is not None else BattleState()
        self._history.clear()
        self._parked.clear()

    # =========================================================================
    # Convenience operations
    # =========================================================================

    def start_battle(
        self, players: Iterable[Combatant], enemies: Iterable[Combatant]
    ) -> asyncio.Task | None:
        return self.dispatch(BattleAction.start_battle(players, enemies))

    def end_battle(self, result: BattleResult) -> asyncio.Task | None:
        return self.dispatch(BattleAction.end_battle(result))

    def perform_attack(
        self, attacker: CombatantID, target: CombatantID, damage: int
    ) -> asyncio.Task | None:
        return self.dispatch(BattleAction.attack(attacker, target, damage))

    def change_hp(self, target: CombatantID, amount: int) -> asyncio.Task | None:
        """Positive amounts heal, negative amounts damage."""
        return self.dispatch(BattleAction.change_hp(target, amount))

    def change_mp(self, target: CombatantID, amount: int) -> asyncio.Task | None:
        return self.dispatch(BattleAction.change_mp(target, amount))

    def set_current_actor(self, combatant_id: CombatantID | None) -> asyncio.Task | None:
        return self.dispatch(BattleAction.set_current_actor(combatant_id))

    def advance_turn(self) -> asyncio.Task | None:
        return self.dispatch(BattleAction.advance_turn())

    def advance_to_phase(self, phase: BattlePhase) -> asyncio.Task | None:
        return self.dispatch(BattleAction.advance_phase(phase))

    # =========================================================================
    # Queries
    # =========================================================================

    @property
    def is_battle_ended(self) -> bool:
        return self._state.is_battle_ended

    @property
    def alive_players(self) -> list[Combatant]:
        return self._state.alive_players

    @property
    def alive_enemies(self) -> list[Combatant]:
        return self._state.alive_enemies

    @property
    def current_phase(self) -> BattlePhase:
        return self._state.phase

    @property
    def current_turn(self) -> int:
        return self._state.turn_count

    @property
    def current_actor(self) -> CombatantID | None:
        return self._state.current_actor

    def get_combatant(self, combatant_id: CombatantID) -> Combatant | None:
        return self._state.get_combatant(combatant_id)

    def is_player_combatant(self, combatant_id: CombatantID) -> bool:
        return self._state.is_player(combatant_id)

    def is_enemy_combatant(self, combatant_id: CombatantID) -> bool:
        return self._state.is_enemy(combatant_id)

    # =========================================================================
    # Debugging
    # =========================================================================

    def log_current_state(self) -> None:
        state = self._state
        actor = state.current_actor.value if state.current_actor else "none"
        logger.info("=== Battle State ===")
        logger.info("Phase: %s", state.phase.value)
        logger.info("Turn: %d", state.turn_count)
        logger.info("Current Actor: %s", actor)
        logger.info("Players: %d/%d alive", len(state.alive_players), len(state.player_ids))
        logger.info("Enemies: %d/%d alive", len(state.alive_enemies), len(state.enemy_ids))
        logger.info("Pending Effects: %d", len(state.pending_effects))

    def log_action_history(self) -> None:
        logger.info("=== Action History ===")
        for index, action in enumerate(self._history, start=1):
            if action.action_type == ActionType.EXECUTE_EFFECT:
                logger.info("%d. %s(%s)", index, action.action_type.value, action.payload.effect_id)
            else:
                logger.info("%d. %s", index, action.action_type.value)
