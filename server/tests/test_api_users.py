"""API tests for user administration."""

import pytest

from tourdesk.models import BookingStatus, Review


@pytest.mark.asyncio
async def test_list_users_with_filters(test_client, admin_user, client_user, other_user, auth_headers):
    headers = auth_headers(admin_user)

    everyone = await test_client.get("/api/v1/users", headers=headers)
    admins = await test_client.get("/api/v1/users", params={"role": "admin"}, headers=headers)
    searched = await test_client.get("/api/v1/users", params={"search": "youssef"}, headers=headers)

    assert everyone.json()["data"]["pagination"]["total"] == 3
    assert [u["email"] for u in admins.json()["data"]["items"]] == ["admin@example.com"]
    assert [u["name"] for u in searched.json()["data"]["items"]] == ["Youssef Other"]


@pytest.mark.asyncio
async def test_get_user_with_counts(
    test_client, test_session, admin_user, client_user, tour, make_booking, auth_headers
):
    await make_booking(client_user, tour)
    await make_booking(client_user, tour, status=BookingStatus.COMPLETED)
    test_session.add(Review(user_id=client_user.id, tour_id=tour.id, rating=5))
    await test_session.commit()

    response = await test_client.get(f"/api/v1/users/{client_user.id}", headers=auth_headers(admin_user))

    assert response.status_code == 200
    user = response.json()["data"]["user"]
    assert user["bookings_count"] == 2
    assert user["reviews_count"] == 1
    assert "password_hash" not in user


@pytest.mark.asyncio
async def test_user_bookings(test_client, admin_user, client_user, other_user, tour, make_booking, auth_headers):
    await make_booking(client_user, tour)
    await make_booking(other_user, tour)

    response = await test_client.get(
        f"/api/v1/users/{client_user.id}/bookings", headers=auth_headers(admin_user)
    )
    missing = await test_client.get("/api/v1/users/999/bookings", headers=auth_headers(admin_user))

    items = response.json()["data"]["items"]
    assert [b["user_id"] for b in items] == [client_user.id]
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_admin_creates_admin(test_client, admin_user, auth_headers):
    response = await test_client.post(
        "/api/v1/users",
        json={"name": "Second Admin", "email": "second@example.com", "password": "admin1234", "role": "admin"},
        headers=auth_headers(admin_user),
    )

    assert response.status_code == 201
    assert response.json()["message"] == "User created successfully"
    assert response.json()["data"]["user"]["role"] == "admin"


@pytest.mark.asyncio
async def test_update_user_role(test_client, admin_user, client_user, auth_headers):
    response = await test_client.put(
        f"/api/v1/users/{client_user.id}", json={"role": "admin"}, headers=auth_headers(admin_user)
    )

    assert response.status_code == 200
    assert response.json()["data"]["user"]["role"] == "admin"

    # Role is re-read on every request
    promoted = await test_client.get("/api/v1/users", headers=auth_headers(client_user))
    assert promoted.status_code == 200


@pytest.mark.asyncio
async def test_delete_user(test_client, admin_user, other_user, auth_headers):
    headers = auth_headers(admin_user)

    response = await test_client.delete(f"/api/v1/users/{other_user.id}", headers=headers)

    assert response.json() == {"success": True, "message": "User deleted successfully"}
    assert (await test_client.get(f"/api/v1/users/{other_user.id}", headers=headers)).status_code == 404


@pytest.mark.asyncio
async def test_admin_cannot_delete_self(test_client, admin_user, auth_headers):
    response = await test_client.delete(f"/api/v1/users/{admin_user.id}", headers=auth_headers(admin_user))

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot delete your own account"
