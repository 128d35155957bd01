"""
Integration tests - End-to-end battle flows.

Tests the complete flow:
1. Build characters with the factory
2. Run a battle through the store
3. Await effects
4. Drive the CLI demo
"""

import pytest

from .. import BattleFlow
from ..cli import main, run_demo
from ..config import Settings
from ..engine_core.action import ActionType, BattleAction, BattleResult
from ..engine_core.state import BattlePhase, BattleState, CombatantID


class TestBattleFlowFactory:
    """Tests for the BattleFlow helpers."""

    def test_create_store_defaults(self):
        store = BattleFlow.create_store()
        assert store.current_phase == BattlePhase.PREPARATION
        assert store.state == BattleState()

    def test_create_store_with_state(self, started_state):
        store = BattleFlow.create_store(initial_state=started_state)
        assert store.state is started_state

    def test_create_character(self):
        hero = BattleFlow.create_character("Test Hero", hp=150, mp=75, attack=30)

        assert hero.name == "Test Hero"
        assert hero.id == CombatantID("test_hero")
        assert hero.stats.hp == 150
        assert hero.stats.max_hp == 150
        assert hero.stats.mp == 75
        assert hero.stats.max_mp == 75
        assert hero.stats.attack == 30
        assert hero.stats.defense == 15
        assert hero.stats.speed == 10
        assert hero.is_player_controlled

    def test_create_character_clamps_to_max(self):
        wounded = BattleFlow.create_character("Scout", hp=120, max_hp=90)
        assert wounded.stats.hp == 90

    def test_create_enemy(self):
        goblin = BattleFlow.create_character("Goblin", is_player=False)
        assert not goblin.is_player_controlled


class TestFullBattleFlow:
    """Tests for complete battles through the store."""

    @pytest.mark.asyncio
    async def test_hero_defeats_goblin(self, hero, goblin):
        store = BattleFlow.create_store()
        effects = []
        store.effect_handler = effects.append

        await store.dispatch_and_wait(BattleAction.start_battle([hero], [goblin]))
        assert store.current_phase == BattlePhase.TURN_SELECTION
        assert not store.is_battle_ended

        store.perform_attack(hero.id, goblin.id, 30)
        assert store.get_combatant(goblin.id).stats.hp == 20

        store.perform_attack(hero.id, goblin.id, 25)
        defeated = store.get_combatant(goblin.id)
        assert defeated.stats.hp == 0
        assert defeated.stats.is_defeated

        store.end_battle(BattleResult.VICTORY)
        assert store.current_phase == BattlePhase.VICTORY
        assert store.is_battle_ended

        await store.settle()
        assert "battle_end_victory" in [e.id for e in effects]
        assert effects[-1].id == "battle_music_stop"

    @pytest.mark.asyncio
    async def test_new_encounter_on_same_store(self, hero, goblin, mage, knight):
        store = BattleFlow.create_store()
        await store.dispatch_and_wait(BattleAction.start_battle([hero], [goblin]))
        store.end_battle(BattleResult.DEFEAT)
        await store.settle()

        store.reset_state()
        await store.dispatch_and_wait(BattleAction.start_battle([mage], [knight]))

        assert store.current_turn == 1
        assert set(store.state.combatants) == {mage.id, knight.id}
        assert store.action_history[0].action_type == ActionType.START_BATTLE


class TestCLI:
    """Tests for the command-line entry point."""

    @pytest.mark.asyncio
    async def test_run_demo(self):
        store = await run_demo(damage=30)

        assert store.current_phase == BattlePhase.VICTORY
        assert store.current_turn == 2
        assert store.alive_enemies == []

    def test_demo_command(self, capsys):
        main(["demo"])
        assert "Result: victory after 2 turn(s)" in capsys.readouterr().out

    def test_demo_rejects_bad_damage(self):
        with pytest.raises(SystemExit):
            main(["demo", "--damage", "0"])

    def test_no_command_prints_help(self):
        with pytest.raises(SystemExit):
            main([])


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        for name in ("BATTLEFLOW_ENV", "BATTLEFLOW_LOG_LEVEL", "BATTLEFLOW_HISTORY_LIMIT",
                     "BATTLEFLOW_HOST", "BATTLEFLOW_PORT", "ALLOWED_ORIGINS"):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()

        assert settings.env == "development"
        assert settings.log_level == "INFO"
        assert settings.history_limit is None
        assert settings.port == 8000
        assert settings.allowed_origins == ["*"]

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("BATTLEFLOW_LOG_LEVEL", "debug")
        monkeypatch.setenv("BATTLEFLOW_HISTORY_LIMIT", "50")
        monkeypatch.setenv("BATTLEFLOW_PORT", "9001")
        monkeypatch.setenv("ALLOWED_ORIGINS", "http://a.test,http://b.test")

        settings = Settings.from_env()

        assert settings.log_level == "DEBUG"
        assert settings.history_limit == 50
        assert settings.port == 9001
        assert settings.allowed_origins == ["http://a.test", "http://b.test"]

    @pytest.mark.parametrize("raw", ["0", "-3", "lots"])
    def test_invalid_history_limit_rejected(self, monkeypatch, raw):
        monkeypatch.setenv("BATTLEFLOW_HISTORY_LIMIT", raw)

        with pytest.raises(ValueError, match="BATTLEFLOW_HISTORY_LIMIT"):
            Settings.from_env()

    def test_cli_exits_on_invalid_history_limit(self, monkeypatch, capsys):
        monkeypatch.setenv("BATTLEFLOW_HISTORY_LIMIT", "0")

        with pytest.raises(SystemExit):
            main(["demo"])
        assert "BATTLEFLOW_HISTORY_LIMIT" in capsys.readouterr().out
