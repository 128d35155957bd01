"""
Pytest fixtures for BattleFlow tests.
"""

import pytest

from ..engine_core.action import BattleAction
from ..engine_core.reducer import reduce
from ..engine_core.state import BattleState, Combatant, CombatantID, Stats
from ..engine_core.store import BattleStore
from ..flow import BattleFlow


@pytest.fixture
def hero() -> Combatant:
    """Player character: 100 HP, 25 attack."""
    return BattleFlow.create_character("Hero", hp=100, attack=25)


@pytest.fixture
def goblin() -> Combatant:
    """Enemy: 50 HP, 15 attack."""
    return BattleFlow.create_character("Goblin", hp=50, attack=15, is_player=False)


@pytest.fixture
def mage() -> Combatant:
    """Player character with a partly drained MP pool."""
    return Combatant(
        id=CombatantID("mage"),
        name="Mage",
        stats=Stats(hp=60, max_hp=60, mp=30, max_mp=40, attack=10, defense=8, speed=14),
    )


@pytest.fixture
def knight() -> Combatant:
    """Enemy that starts already defeated."""
    return Combatant(
        id=CombatantID("knight"),
        name="Knight",
        stats=Stats(hp=0, max_hp=80, mp=0, max_mp=0, attack=18, defense=20, speed=6),
        is_player_controlled=False,
    )


@pytest.fixture
def started_state(hero: Combatant, goblin: Combatant) -> BattleState:
    """State right after start_battle with hero vs goblin."""
    state, _ = reduce(BattleState(), BattleAction.start_battle([hero], [goblin]))
    return state


@pytest.fixture
def party_state(hero: Combatant, mage: Combatant, goblin: Combatant, knight: Combatant) -> BattleState:
    """Two players against two enemies, one of them already down."""
    state, _ = reduce(BattleState(), BattleAction.start_battle([hero, mage], [goblin, knight]))
    return state


@pytest.fixture
def executed() -> list:
    """Collects effects passed to the recording handler."""
    return []


@pytest.fixture
def store(executed: list) -> BattleStore:
    """Fresh store whose handler records every effect it receives."""
    def record(effect):
        executed.append(effect)

    return BattleStore(effect_handler=record)
