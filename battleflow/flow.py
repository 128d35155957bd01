"""
BattleFlow - Convenience factory for stores and characters.
"""

from __future__ import annotations

from .engine_core.state import BattleState, Combatant, CombatantID, Stats
from .engine_core.store import BattleStore, EffectHandler


def slugify_name(name: str) -> str:
    """Derive a combatant id from a display name: 'Dark Knight' -> 'dark_knight'."""
    return name.lower().replace(" ", "_")


class BattleFlow:
    """Primary entry point for building encounters."""

    @staticmethod
    def create_store(
        initial_state: BattleState | None = None,
        effect_handler: EffectHandler | None = None,
        history_limit: int | None = None,
    ) -> BattleStore:
        """Create a new store. The default state is an empty battle."""
        return BattleStore(
            initial_state=initial_state,
            effect_handler=effect_handler,
            history_limit=history_limit,
        )

    @staticmethod
    def create_character(
        name: str,
        hp: int = 100,
        max_hp: int | None = None,
        mp: int = 50,
        max_mp: int | None = None,
        attack: int = 20,
        defense: int = 15,
        speed: int = 10,
        is_player: bool = True,
    ) -> Combatant:
        """
        Create a combatant for demos or tests.

        Args:
            name: Display name; the id is derived from it
            hp: Current hit points
            max_hp: Maximum hit points (defaults to hp)
            mp: Current magic points
            max_mp: Maximum magic points (defaults to mp)
            attack: Attack strength
            defense: Defense strength
            speed: Initiative value
            is_player: Whether the player controls this combatant

        Returns:
            A Combatant ready to pass to start_battle
        """
        stats = Stats(
            hp=hp,
            max_hp=max_hp if max_hp is not None else hp,
            mp=mp,
            max_mp=max_mp if max_mp is not None else mp,
            attack=attack,
            defense=defense,
            speed=speed,
        )
        return Combatant(
            id=CombatantID(slugify_name(name)),
            name=name,
            stats=stats,
            is_player_controlled=is_player,
        )
