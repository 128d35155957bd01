"""
Effect descriptors - Side effects emitted by the reducer.

Effects describe animation, sound, music and UI work that happens as a
consequence of a state transition. They carry no behavior: the store hands
them to an externally supplied handler in priority order.

Equality and ordering use only (id, priority). The optional kind/target/amount
fields are presentation payload for handlers that want more than the id.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from functools import total_ordering
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .state import CombatantID


class EffectKind(Enum):
    """Broad category of an effect, for handlers that route by kind."""
    GENERIC = "generic"
    ANIMATION = "animation"
    SOUND = "sound"
    MUSIC = "music"
    DAMAGE = "damage"
    HEAL = "heal"
    UI = "ui"
    STATUS = "status"
    AI = "ai"


@total_ordering
@dataclass(frozen=True)
class Effect:
    """
    A single side-effect unit.

    Larger priority values run first within one dispatch's batch.
    """
    id: str
    priority: int = 0

    kind: EffectKind = field(default=EffectKind.GENERIC, compare=False)
    target: CombatantID | None = field(default=None, compare=False)
    amount: int | None = field(default=None, compare=False)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Effect):
            return NotImplemented
        return (self.priority, self.id) < (other.priority, other.id)


NO_EFFECT = Effect(id="no_effect", priority=0)


def by_execution_order(effects: list[Effect] | tuple[Effect, ...]) -> list[Effect]:
    """Sort effects highest priority first, keeping emission order on ties."""
    return sorted(effects, key=lambda e: -e.priority)
