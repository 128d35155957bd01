"""
Encounter Manager - Creates and manages independent encounters.

An encounter represents one battle:
- Created when a battle starts
- Owns its own BattleStore (no shared or global state)
- Records every executed effect in an effect log
- Destroyed when the caller ends it

Encounters are EPHEMERAL:
- No persistence to database or disk
- Ending an encounter drops its state and history
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable
import inspect
import logging
import time
import uuid

from ..engine_core.effect import Effect
from ..engine_core.state import Combatant
from ..engine_core.store import BattleStore, EffectHandler

logger = logging.getLogger(__name__)


class EncounterStatus(Enum):
    """Lifecycle status of an encounter."""
    ACTIVE = "active"  # Battle in progress
    FINISHED = "finished"  # Store reached a terminal phase
    ENDED = "ended"  # Removed by the caller
    ABANDONED = "abandoned"  # Cleaned up as stale


@dataclass
class Encounter:
    """
    One battle and the store that owns it.

    The effect log lists effects in the order the store executed them.
    """
    encounter_id: str
    store: BattleStore
    created_at: float
    status: EncounterStatus = EncounterStatus.ACTIVE
    effect_log: list[Effect] = field(default_factory=list)

    def is_active(self) -> bool:
        """Active until ended or until the battle reaches a terminal phase."""
        return self.status == EncounterStatus.ACTIVE and not self.store.is_battle_ended


class EncounterManager:
    """
    Manages encounters.

    Responsibilities:
    - Create encounters with their own store
    - Track encounters by id
    - Clean up finished encounters

    No persistence - encounters are in-memory only.
    """

    def __init__(self, history_limit: int | None = None):
        self._encounters: dict[str, Encounter] = {}
        self.history_limit = history_limit

    def create_encounter(
        self,
        players: Iterable[Combatant],
        enemies: Iterable[Combatant],
        effect_handler: EffectHandler | None = None,
    ) -> Encounter:
        """
        Create an encounter and start its battle.

        Args:
            players: Player-side roster
            enemies: Enemy-side roster
            effect_handler: Optional handler called after each effect is logged

        Returns:
            The new Encounter, already in turn selection
        """
        encounter_id = str(uuid.uuid4())
        store = BattleStore(history_limit=self.history_limit)
        encounter = Encounter(
            encounter_id=encounter_id,
            store=store,
            created_at=time.time(),
        )
        store.effect_handler = self._recording_handler(encounter, effect_handler)
        store.start_battle(players, enemies)

        self._encounters[encounter_id] = encounter
        logger.info(
            "Encounter %s started: %d player(s) vs %d enemy(ies)",
            encounter_id,
            len(store.state.player_ids),
            len(store.state.enemy_ids),
        )
        return encounter

    @staticmethod
    def _recording_handler(encounter: Encounter, delegate: EffectHandler | None) -> EffectHandler:
        async def handle(effect: Effect) -> None:
            if delegate is not None:
                result = delegate(effect)
                if inspect.isawaitable(result):
                    await result
            # Only effects the delegate accepted count as executed
            encounter.effect_log.append(effect)

        return handle

    def get_encounter(self, encounter_id: str) -> Encounter | None:
        """Get an encounter by ID."""
        return self._encounters.get(encounter_id)

    def end_encounter(self, encounter_id: str, reason: str = "completed") -> bool:
        """
        End an encounter and drop its state.

        Returns False if the encounter does not exist.
        """
        encounter = self._encounters.pop(encounter_id, None)
        if encounter is None:
            return False

        if reason == "stale":
            encounter.status = EncounterStatus.ABANDONED
        else:
            encounter.status = EncounterStatus.ENDED

        encounter.store.reset_state()
        encounter.effect_log.clear()
        logger.info("Encounter %s ended (%s)", encounter_id, reason)
        return True

    def list_encounters(self) -> list[str]:
        """List IDs of all tracked encounters."""
        return list(self._encounters)

    def list_active_encounters(self) -> list[str]:
        """List IDs of encounters whose battle is still running."""
        return [
            eid for eid, encounter in self._encounters.items()
            if encounter.is_active()
        ]

    def refresh_status(self, encounter: Encounter) -> EncounterStatus:
        """Mark an encounter finished once its store reaches a terminal phase."""
        if encounter.status == EncounterStatus.ACTIVE and encounter.store.is_battle_ended:
            encounter.status = EncounterStatus.FINISHED
        return encounter.status

    def cleanup_stale_encounters(self, max_age_seconds: int = 3600) -> list[str]:
        """
        Remove finished encounters older than max_age.

        Called periodically to free memory. Returns the removed IDs.
        """
        current_time = time.time()
        to_remove = [
            eid for eid, encounter in self._encounters.items()
            if current_time - encounter.created_at > max_age_seconds
            and not encounter.is_active()
        ]

        for encounter_id in to_remove:
            self.end_encounter(encounter_id, reason="stale")
        return to_remove
