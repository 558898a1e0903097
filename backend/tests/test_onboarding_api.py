"""Onboarding status endpoint tests."""

import pytest
from httpx import AsyncClient

from arqos.routers import health


def _complete_body(**overrides) -> dict:
    body = {
        "office": {
            "size": "medium",
            "margin": 40,
            "services": ["projetexpress"],
            "costs": {"rent": 5000, "internet": 250},
        },
        "team": [
            {"name": "Ana Souza", "role": "owner", "salary": 15000, "monthlyHours": 160,
             "email": "ana@studio.com"},
            {"name": "Carla Dias", "role": "intern", "salary": 1500, "monthlyHours": 120,
             "email": ""},
        ],
        "organizationName": "Ana Souza Arquitetura",
    }
    body.update(overrides)
    return body


@pytest.mark.api
@pytest.mark.asyncio
class TestAuthentication:
    async def test_status_requires_token(self, client: AsyncClient):
        resp = await client.get("/api/onboarding/status")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "UNAUTHENTICATED"

    async def test_invalid_token_rejected(self, client: AsyncClient):
        resp = await client.get(
            "/api/onboarding/status",
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert resp.status_code == 401

    async def test_inactive_profile_rejected(self, client: AsyncClient, db_session, test_profile, auth_headers):
        test_profile.is_active = False
        await db_session.flush()

        resp = await client.get("/api/onboarding/status", headers=auth_headers)
        assert resp.status_code == 401


@pytest.mark.api
@pytest.mark.asyncio
class TestSetupStatus:
    async def test_get_initial_status(self, client: AsyncClient, auth_headers, test_organization):
        resp = await client.get("/api/onboarding/status", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json() == {
            "isCompleted": False,
            "isSkipped": False,
            "currentStep": 1,
            "organizationId": test_organization.id,
            "organizationName": "Studio Ana",
        }

    async def test_update_step(self, client: AsyncClient, auth_headers):
        resp = await client.put(
            "/api/onboarding/status", json={"step": 4}, headers=auth_headers
        )
        assert resp.status_code == 200
        assert resp.json() == {"step": 4}

        resp = await client.get("/api/onboarding/status", headers=auth_headers)
        assert resp.json()["currentStep"] == 4

    @pytest.mark.parametrize("step", [0, 7])
    async def test_update_step_out_of_range(self, client: AsyncClient, auth_headers, step):
        resp = await client.put(
            "/api/onboarding/status", json={"step": step}, headers=auth_headers
        )
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["message"] == "Dados inválidos"

    async def test_skip(self, client: AsyncClient, auth_headers):
        resp = await client.delete("/api/onboarding/status", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json() == {"success": True}

        status = (await client.get("/api/onboarding/status", headers=auth_headers)).json()
        assert status["isSkipped"] is True
        assert status["isCompleted"] is False


@pytest.mark.api
@pytest.mark.asyncio
class TestCompleteSetup:
    async def test_complete(self, client: AsyncClient, auth_headers, test_organization):
        resp = await client.post(
            "/api/onboarding/complete", json=_complete_body(), headers=auth_headers
        )
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "organizationId": test_organization.id}

        config = (await client.get("/api/onboarding/config", headers=auth_headers)).json()
        assert config["name"] == "Ana Souza Arquitetura"
        settings = config["settings"]
        assert settings["theme"] == "dark"
        assert settings["setup_step"] == 6
        assert settings["office"]["size"] == "medium"
        assert settings["office"]["positioning"] == "bem_posicionado"
        assert [m["name"] for m in settings["pending_team"]] == ["Carla Dias"]

        status = (await client.get("/api/onboarding/status", headers=auth_headers)).json()
        assert status["isCompleted"] is True

    async def test_invalid_body_lists_fields(self, client: AsyncClient, auth_headers):
        body = _complete_body(team=[])
        body["office"]["margin"] = 5

        resp = await client.post(
            "/api/onboarding/complete", json=body, headers=auth_headers
        )
        assert resp.status_code == 422
        fields = {e["field"] for e in resp.json()["error"]["details"]["errors"]}
        assert fields == {"body -> office -> margin", "body -> team"}

    async def test_requires_token(self, client: AsyncClient):
        resp = await client.post("/api/onboarding/complete", json=_complete_body())
        assert resp.status_code == 401


@pytest.mark.api
@pytest.mark.asyncio
class TestOrganizationConfig:
    async def test_get_config(self, client: AsyncClient, auth_headers, test_organization):
        resp = await client.get("/api/onboarding/config", headers=auth_headers)
        assert resp.status_code == 200
        assert resp.json() == {
            "id": test_organization.id,
            "name": "Studio Ana",
            "settings": {"theme": "dark"},
        }


@pytest.mark.api
@pytest.mark.asyncio
class TestHealth:
    async def test_health(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_ready_when_dependencies_answer(self, client: AsyncClient, monkeypatch):
        async def ok():
            return None

        monkeypatch.setitem(health._CHECKS, "database", ok)
        monkeypatch.setitem(health._CHECKS, "redis", ok)

        resp = await client.get("/health/ready")
        assert resp.status_code == 200
        assert resp.json()["checks"] == {"database": "ok", "redis": "ok"}

    async def test_not_ready_when_redis_down(self, client: AsyncClient, monkeypatch):
        async def ok():
            return None

        async def down():
            raise ConnectionError("Connection refused")

        monkeypatch.setitem(health._CHECKS, "database", ok)
        monkeypatch.setitem(health._CHECKS, "redis", down)

        resp = await client.get("/health/ready")
        assert resp.status_code == 503
        assert resp.json()["checks"]["redis"] == "error: Connection refused"
