"""
Authentication, role guard and error format tests.
"""

from datetime import timedelta

import pytest

from fieldops.app.core.jwt import create_access_token, decode_access_token
from conftest import auth_headers


def test_token_round_trip_keeps_subject():
    token = create_access_token({"sub": "user_abc"})
    assert decode_access_token(token)["sub"] == "user_abc"


def test_expired_token_is_rejected():
    token = create_access_token({"sub": "user_abc"}, expires_delta=timedelta(minutes=-1))
    assert decode_access_token(token) is None


@pytest.mark.asyncio
async def test_invalid_token_gets_consistent_401(client):
    response = await client.get("/v1/users/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401
    data = response.json()
    assert data["error_code"] == "ERR_UNAUTHORIZED"
    assert data["message"] == "Could not validate credentials"


@pytest.mark.asyncio
async def test_missing_token_is_rejected(client):
    response = await client.get("/v1/missions")
    assert response.status_code in (401, 403)
    assert "error_code" in response.json()


@pytest.mark.asyncio
async def test_role_guards(client, admin, agent):
    response = await client.get("/v1/admin/users", headers=auth_headers(admin))
    assert response.status_code == 200

    response = await client.get("/v1/admin/users", headers=auth_headers(agent))
    assert response.status_code == 403
    assert response.json()["error_code"] == "ERR_FORBIDDEN"


@pytest.mark.asyncio
async def test_request_validation_errors_are_wrapped(client, client_user):
    response = await client.post("/v1/missions", json={"passenger_name": "Jane"}, headers=auth_headers(client_user))

    assert response.status_code == 422
    assert response.json()["error_code"] == "ERR_VALIDATION"
    assert response.json()["details"]["errors"]


@pytest.mark.asyncio
async def test_health_reports_redis_state(client, mocker):
    mocker.patch("fieldops.app.main.ping_redis", return_value=False)

    response = await client.get("/health")

    assert response.status_code == 200
    assert response.json()["status"] == "degraded"
    assert response.json()["redis"] is False
