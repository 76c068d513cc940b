"""API tests for the error envelope."""

import pytest


@pytest.mark.asyncio
async def test_unknown_route(test_client):
    response = await test_client.get("/api/v1/nowhere")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Route not found: GET /api/v1/nowhere"}


@pytest.mark.asyncio
async def test_validation_errors_name_fields(test_client, client_user, auth_headers):
    response = await test_client.post(
        "/api/v1/bookings",
        json={"tour_id": 0, "start_date": "not-a-date", "guests": 2},
        headers=auth_headers(client_user),
    )

    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert body["message"] == "Validation failed"
    fields = {error["field"] for error in body["errors"]}
    assert {"tour_id", "start_date"} <= fields


@pytest.mark.asyncio
async def test_invalid_query_parameter(test_client):
    response = await test_client.get("/api/v1/tours", params={"limit": 500})

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "limit"


@pytest.mark.asyncio
async def test_missing_token(test_client):
    response = await test_client.get("/api/v1/bookings")

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "Access denied. No token provided."}
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_garbage_token(test_client):
    response = await test_client.get("/api/v1/bookings", headers={"Authorization": "Bearer nonsense"})

    assert response.status_code == 401
    assert response.json()["message"] == "Invalid token."


@pytest.mark.asyncio
async def test_token_for_deleted_user(test_client, test_session, make_user, auth_headers):
    user = await make_user()
    headers = auth_headers(user)
    await test_session.delete(user)
    await test_session.commit()

    response = await test_client.get("/api/v1/auth/me", headers=headers)

    assert response.status_code == 401
    assert response.json()["message"] == "User not found. Token may be invalid."


@pytest.mark.asyncio
async def test_client_on_admin_route(test_client, client_user, auth_headers):
    response = await test_client.get("/api/v1/users", headers=auth_headers(client_user))

    assert response.status_code == 403
    assert response.json() == {"success": False, "message": "Admin access required."}


@pytest.mark.asyncio
async def test_duplicate_email_is_conflict(test_client, client_user):
    response = await test_client.post(
        "/api/v1/auth/register",
        json={"name": "Amina Again", "email": "AMINA@example.com", "password": "secret123"},
    )

    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "Email already registered"}
