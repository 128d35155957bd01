"""
Session Module - Manages ephemeral encounters.

Each encounter owns its own BattleStore, so several battles can run side by
side and be tested in isolation. Nothing is persisted.
"""

from .manager import EncounterManager, Encounter, EncounterStatus

__all__ = [
    "EncounterManager",
    "Encounter",
    "EncounterStatus",
]
