"""
Tests for API layer.

Tests:
- API service methods
- Request translation and validation
- Encounter lifecycle via HTTP
- Error handling
"""

import pytest
from fastapi.testclient import TestClient

from ..api.app import create_app
from ..api.schemas import (
    ActionRequest,
    CombatantSpec,
    CreateEncounterRequest,
    EncounterStatusName,
    ErrorCode,
    ErrorResponse,
    SelectedActionSpec,
)
from ..api.service import APIService, action_from_request, combatant_from_spec
from ..config import Settings
from ..engine_core.action import ActionType, BattleResult, SelectedActionKind
from ..engine_core.state import BattlePhase, CombatantID


def hero_vs_goblin() -> CreateEncounterRequest:
    return CreateEncounterRequest(
        players=[CombatantSpec(name="Hero", hp=100, attack=25)],
        enemies=[CombatantSpec(name="Goblin", hp=50, attack=15)],
    )


class TestRequestTranslation:
    """Tests for request-to-domain conversion."""

    def test_combatant_id_defaults_to_slug(self):
        combatant = combatant_from_spec(CombatantSpec(name="Dark Knight", hp=80), is_player=False)

        assert combatant.id == CombatantID("dark_knight")
        assert combatant.stats.max_hp == 80
        assert not combatant.is_player_controlled

    def test_explicit_id_and_maxima(self):
        spec = CombatantSpec(name="Mage", id="m1", mp=30, max_mp=40)
        combatant = combatant_from_spec(spec, is_player=True)

        assert combatant.id == CombatantID("m1")
        assert combatant.stats.mp == 30
        assert combatant.stats.max_mp == 40

    def test_attack_request(self):
        action = action_from_request(ActionRequest(
            action_type=ActionType.ATTACK, actor_id="hero", target_id="goblin", amount=30,
        ))

        assert action.action_type == ActionType.ATTACK
        assert action.payload.target_id == CombatantID("goblin")
        assert action.payload.amount == 30

    def test_selected_action_request(self):
        action = action_from_request(ActionRequest(
            action_type=ActionType.COMPLETE_ACTION_SELECTION,
            actor_id="hero",
            selected_action=SelectedActionSpec(kind=SelectedActionKind.SKILL, ref_id="fire", targets=["goblin"]),
        ))

        selected = action.payload.selected_action
        assert selected.kind == SelectedActionKind.SKILL
        assert selected.targets == (CombatantID("goblin"),)

    def test_missing_fields_rejected(self):
        with pytest.raises(ValueError, match="target_id"):
            action_from_request(ActionRequest(action_type=ActionType.ATTACK, actor_id="hero"))

    def test_start_battle_rejected(self):
        with pytest.raises(ValueError):
            action_from_request(ActionRequest(action_type=ActionType.START_BATTLE))

    def test_actions_without_fields(self):
        action = action_from_request(ActionRequest(action_type=ActionType.ADVANCE_TURN))
        assert action.action_type == ActionType.ADVANCE_TURN


class TestAPIService:
    """Tests for APIService."""

    @pytest.fixture
    def service(self):
        """Create a fresh API service."""
        return APIService()

    def test_create_encounter(self, service):
        response = service.create_encounter(hero_vs_goblin())

        assert response.encounter_id
        assert response.status == EncounterStatusName.ACTIVE
        assert response.phase == BattlePhase.TURN_SELECTION
        assert response.turn_count == 1
        assert [p.id for p in response.players] == ["hero"]
        assert [e.id for e in response.enemies] == ["goblin"]
        assert service.count_active() == 1

    def test_get_state_unknown(self, service):
        response = service.get_state("missing")

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.ENCOUNTER_NOT_FOUND

    @pytest.mark.asyncio
    async def test_dispatch_attack(self, service):
        created = service.create_encounter(hero_vs_goblin())

        response = await service.dispatch_action(created.encounter_id, ActionRequest(
            action_type=ActionType.ATTACK, actor_id="hero", target_id="goblin", amount=30,
        ))

        assert [e.id for e in response.executed_effects] == [
            "attack_animation_hero",
            "damage_effect_goblin_30",
            "attack_sound",
        ]
        goblin = response.state.enemies[0]
        assert goblin.stats.hp == 20
        assert not goblin.is_defeated

    @pytest.mark.asyncio
    async def test_dispatch_end_battle_finishes_encounter(self, service):
        created = service.create_encounter(hero_vs_goblin())

        response = await service.dispatch_action(created.encounter_id, ActionRequest(
            action_type=ActionType.END_BATTLE, result=BattleResult.VICTORY,
        ))

        assert response.state.phase == BattlePhase.VICTORY
        assert response.state.is_battle_ended
        assert response.state.status == EncounterStatusName.FINISHED
        assert service.count_active() == 0

    @pytest.mark.asyncio
    async def test_dispatch_invalid_action(self, service):
        created = service.create_encounter(hero_vs_goblin())

        response = await service.dispatch_action(created.encounter_id, ActionRequest(
            action_type=ActionType.CHANGE_HP, amount=5,
        ))

        assert isinstance(response, ErrorResponse)
        assert response.error_code == ErrorCode.INVALID_ACTION

    @pytest.mark.asyncio
    async def test_dispatch_unknown_encounter(self, service):
        response = await service.dispatch_action("missing", ActionRequest(action_type=ActionType.ADVANCE_TURN))
        assert response.error_code == ErrorCode.ENCOUNTER_NOT_FOUND

    def test_history(self, service):
        created = service.create_encounter(hero_vs_goblin())
        history = service.get_history(created.encounter_id)

        assert history.count == 1
        assert history.actions[0].action_type == ActionType.START_BATTLE
        assert history.actions[0].is_flow_control

    def test_end_encounter(self, service):
        created = service.create_encounter(hero_vs_goblin())

        assert service.end_encounter(created.encounter_id)
        assert not service.end_encounter(created.encounter_id)
        assert service.list_encounters() == []


class TestHTTPEndpoints:
    """Tests for the FastAPI application."""

    @pytest.fixture
    def client(self):
        app = create_app(settings=Settings())
        with TestClient(app) as client:
            yield client

    @pytest.fixture
    def encounter_id(self, client):
        response = client.post("/api/v1/encounters", json=hero_vs_goblin().model_dump())
        assert response.status_code == 200
        return response.json()["encounter_id"]

    def test_health(self, client):
        response = client.get("/api/v1/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_create_and_get(self, client, encounter_id):
        response = client.get(f"/api/v1/encounters/{encounter_id}")

        assert response.status_code == 200
        body = response.json()
        assert body["phase"] == "turn_selection"
        assert body["status"] == "active"
        assert body["players"][0]["stats"]["hp"] == 100

    def test_list_encounters(self, client, encounter_id):
        body = client.get("/api/v1/encounters").json()
        assert body["encounters"] == [encounter_id]
        assert body["count"] == 1

    def test_dispatch_action(self, client, encounter_id):
        response = client.post(
            f"/api/v1/encounters/{encounter_id}/actions",
            json={"action_type": "attack", "actor_id": "hero", "target_id": "goblin", "amount": 55},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["action_type"] == "attack"
        assert body["state"]["enemies"][0]["is_defeated"] is True
        assert [e["id"] for e in body["executed_effects"]][1] == "damage_effect_goblin_55"

    def test_advance_phase(self, client, encounter_id):
        response = client.post(
            f"/api/v1/encounters/{encounter_id}/actions",
            json={"action_type": "advance_phase", "phase": "action_execution"},
        )

        body = response.json()
        assert body["state"]["phase"] == "action_execution"
        assert [e["id"] for e in body["executed_effects"]] == ["phase_transition_action_execution"]

    def test_history_includes_effect_records(self, client, encounter_id):
        client.post(
            f"/api/v1/encounters/{encounter_id}/actions",
            json={"action_type": "defend", "actor_id": "hero"},
        )

        body = client.get(f"/api/v1/encounters/{encounter_id}/history").json()
        effect_ids = [a["effect_id"] for a in body["actions"] if a["action_type"] == "execute_effect"]
        assert "defend_animation_hero" in effect_ids

    def test_unknown_encounter_is_404(self, client):
        response = client.get("/api/v1/encounters/missing")

        assert response.status_code == 404
        assert response.json()["error_code"] == "ENCOUNTER_NOT_FOUND"

    def test_invalid_action_is_400(self, client, encounter_id):
        response = client.post(
            f"/api/v1/encounters/{encounter_id}/actions",
            json={"action_type": "attack", "actor_id": "hero"},
        )

        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_ACTION"

    def test_unknown_action_type_is_422(self, client, encounter_id):
        response = client.post(
            f"/api/v1/encounters/{encounter_id}/actions",
            json={"action_type": "teleport"},
        )

        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    def test_delete_encounter(self, client, encounter_id):
        response = client.delete(f"/api/v1/encounters/{encounter_id}")

        assert response.json() == {"success": True, "encounter_id": encounter_id}
        assert client.get(f"/api/v1/encounters/{encounter_id}").status_code == 404
