"""
Battle State - Immutable snapshot of one encounter.

Design principles:
- Immutable: every "mutation" returns a new value
- Structural equality: two states with the same fields compare equal
- Produced only by the reducer; the store never edits fields directly
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum
import sys

from .effect import Effect


class BattlePhase(Enum):
    """Lifecycle stage of an encounter."""
    PREPARATION = "preparation"
    TURN_SELECTION = "turn_selection"
    ACTION_EXECUTION = "action_execution"
    EFFECT_RESOLUTION = "effect_resolution"
    VICTORY = "victory"
    DEFEAT = "defeat"
    ESCAPE = "escape"

    @property
    def is_terminal(self) -> bool:
        """Victory, defeat and escape end the battle."""
        return self in _TERMINAL_PHASES


_TERMINAL_PHASES = frozenset({BattlePhase.VICTORY, BattlePhase.DEFEAT, BattlePhase.ESCAPE})


@dataclass(frozen=True, order=True)
class CombatantID:
    """Opaque identifier for a combatant. Compared by value."""
    value: str

    def __post_init__(self):
        object.__setattr__(self, "value", sys.intern(str(self.value)))

    def __str__(self) -> str:
        return self.value


def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))


@dataclass(frozen=True)
class Stats:
    """
    Numeric attributes of a combatant.

    The constructor clamps hp into [0, max_hp] and mp into [0, max_mp],
    so no Stats value can ever hold an out-of-range pool.
    """
    hp: int
    max_hp: int
    mp: int
    max_mp: int
    attack: int
    defense: int
    speed: int

    def __post_init__(self):
        max_hp = max(0, self.max_hp)
        max_mp = max(0, self.max_mp)
        object.__setattr__(self, "max_hp", max_hp)
        object.__setattr__(self, "max_mp", max_mp)
        object.__setattr__(self, "hp", _clamp(self.hp, 0, max_hp))
        object.__setattr__(self, "mp", _clamp(self.mp, 0, max_mp))

    @property
    def is_defeated(self) -> bool:
        return self.hp == 0

    def with_hp(self, hp: int) -> Stats:
        """Return new stats with hp replaced (clamped)."""
        return replace(self, hp=hp)

    def with_mp(self, mp: int) -> Stats:
        """Return new stats with mp replaced (clamped)."""
        return replace(self, mp=mp)


@dataclass(frozen=True)
class Combatant:
    """A participant in one encounter. Identity is carried by `id`."""
    id: CombatantID
    name: str
    stats: Stats
    is_player_controlled: bool = True

    def with_stats(self, stats: Stats) -> Combatant:
        return replace(self, stats=stats)


@dataclass(frozen=True)
class BattleState:
    """
    Complete battle state at a point in time.

    `player_ids` and `enemy_ids` are expected to be keys of `combatants`;
    this is not enforced, see `missing_roster_ids`.
    """
    phase: BattlePhase = BattlePhase.PREPARATION
    combatants: dict[CombatantID, Combatant] = field(default_factory=dict)
    player_ids: frozenset[CombatantID] = frozenset()
    enemy_ids: frozenset[CombatantID] = frozenset()
    turn_count: int = 0
    current_actor: CombatantID | None = None
    pending_effects: tuple[Effect, ...] = ()

    @property
    def is_battle_ended(self) -> bool:
        return self.phase.is_terminal

    @property
    def alive_players(self) -> list[Combatant]:
        """Player-side combatants that are not defeated, in roster insertion order."""
        return self._alive(self.player_ids)

    @property
    def alive_enemies(self) -> list[Combatant]:
        """Enemy-side combatants that are not defeated, in roster insertion order."""
        return self._alive(self.enemy_ids)

    def _alive(self, ids: frozenset[CombatantID]) -> list[Combatant]:
        return [
            c for cid, c in self.combatants.items()
            if cid in ids and not c.stats.is_defeated
        ]

    def get_combatant(self, combatant_id: CombatantID) -> Combatant | None:
        return self.combatants.get(combatant_id)

    def is_player(self, combatant_id: CombatantID) -> bool:
        return combatant_id in self.player_ids

    def is_enemy(self, combatant_id: CombatantID) -> bool:
        return combatant_id in self.enemy_ids

    def missing_roster_ids(self) -> set[CombatantID]:
        """Roster ids that have no entry in the combatants mapping."""
        return {cid for cid in self.player_ids | self.enemy_ids if cid not in self.combatants}

    def with_combatant(self, combatant: Combatant) -> BattleState:
        """Return new state with the combatant inserted or replaced."""
        new_combatants = self.combatants.copy()
        new_combatants[combatant.id] = combatant
        return self._copy_with(combatants=new_combatants)

    def with_phase(self, phase: BattlePhase) -> BattleState:
        return self._copy_with(phase=phase)

    def with_turn_count(self, turn_count: int) -> BattleState:
        return self._copy_with(turn_count=turn_count)

    def with_current_actor(self, actor: CombatantID | None) -> BattleState:
        return self._copy_with(current_actor=actor)

    def with_effects(self, effects: list[Effect] | tuple[Effect, ...]) -> BattleState:
        """Return new state with effects appended to the pending queue."""
        return self._copy_with(pending_effects=self.pending_effects + tuple(effects))

    def with_cleared_effects(self) -> BattleState:
        return self._copy_with(pending_effects=())

    def _copy_with(self, **kwargs) -> BattleState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)
