"""API tests for the tour catalog and tour administration."""

from decimal import Decimal

import pytest

from tourdesk.models import BookingStatus, Review


@pytest.mark.asyncio
async def test_list_tours_public(test_client, tour, make_tour):
    await make_tour(name="Retired Tour", is_active=False)

    response = await test_client.get("/api/v1/tours")

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["pagination"]["total"] == 1
    item = data["items"][0]
    assert item["name"] == "Sahara Desert Adventure"
    assert item["city_name"] == "Merzouga"
    assert item["category_name"] == "Desert"
    assert item["price_standard"] == 1000
    assert item["avg_rating"] == 0.0


@pytest.mark.asyncio
async def test_list_tours_filters(test_client, make_tour, city):
    await make_tour(name="Short Dunes Walk", duration_days=1, price_standard=Decimal("300.00"))
    await make_tour(name="Long Desert Crossing", duration_days=7, price_standard=Decimal("5000.00"))

    by_duration = await test_client.get("/api/v1/tours", params={"duration": 7})
    by_price = await test_client.get("/api/v1/tours", params={"max_price": 500, "sort": "price_desc"})
    by_city = await test_client.get("/api/v1/tours", params={"city_id": city.id, "sort": "price_asc"})
    bad_sort = await test_client.get("/api/v1/tours", params={"sort": "alphabetical"})

    assert [t["name"] for t in by_duration.json()["data"]["items"]] == ["Long Desert Crossing"]
    assert [t["name"] for t in by_price.json()["data"]["items"]] == ["Short Dunes Walk"]
    assert [t["name"] for t in by_city.json()["data"]["items"]] == ["Short Dunes Walk", "Long Desert Crossing"]
    assert bad_sort.status_code == 400


@pytest.mark.asyncio
async def test_featured_tours_ranked_by_bookings(test_client, client_user, make_tour, make_booking):
    quiet = await make_tour(name="Quiet Tour")
    busy = await make_tour(name="Busy Tour")
    await make_booking(client_user, busy, status=BookingStatus.CONFIRMED)
    await make_booking(client_user, busy)
    await make_booking(client_user, quiet, status=BookingStatus.CONFIRMED)

    response = await test_client.get("/api/v1/tours/featured", params={"limit": 1})

    assert response.status_code == 200
    assert [t["name"] for t in response.json()["data"]["tours"]] == ["Busy Tour"]


@pytest.mark.asyncio
async def test_get_tour_with_recent_reviews(test_client, test_session, client_user, other_user, tour):
    test_session.add_all([
        Review(user_id=client_user.id, tour_id=tour.id, rating=5, comment="Unforgettable"),
        Review(user_id=other_user.id, tour_id=tour.id, rating=2, is_published=False),
    ])
    await test_session.commit()

    response = await test_client.get(f"/api/v1/tours/{tour.id}")

    assert response.status_code == 200
    detail = response.json()["data"]["tour"]
    assert detail["city_description"] == "Gateway to the Erg Chebbi dunes"
    assert detail["avg_rating"] == 5.0
    assert detail["review_count"] == 1
    assert [r["user_name"] for r in detail["recent_reviews"]] == ["Amina Client"]


@pytest.mark.asyncio
async def test_get_missing_tour(test_client):
    response = await test_client.get("/api/v1/tours/999")

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "Tour not found"}


@pytest.mark.asyncio
async def test_tour_reviews_listing(test_client, test_session, client_user, tour):
    test_session.add(Review(user_id=client_user.id, tour_id=tour.id, rating=4))
    await test_session.commit()

    response = await test_client.get(f"/api/v1/tours/{tour.id}/reviews")

    assert response.status_code == 200
    items = response.json()["data"]["items"]
    assert [r["rating"] for r in items] == [4]
    assert items[0]["tour_name"] == "Sahara Desert Adventure"


@pytest.mark.asyncio
async def test_admin_creates_updates_and_deletes_tour(test_client, admin_user, city, category, auth_headers):
    headers = auth_headers(admin_user)

    created = await test_client.post(
        "/api/v1/tours",
        json={
            "name": "Chefchaouen Blue City",
            "city_id": city.id,
            "category_id": category.id,
            "duration_days": 2,
            "price_standard": 750,
            "images": ["chefchaouen.jpg"],
        },
        headers=headers,
    )
    assert created.status_code == 201
    assert created.json()["message"] == "Tour created successfully"
    tour = created.json()["data"]["tour"]
    assert tour["max_guests"] == 10
    assert tour["price_premium"] is None

    updated = await test_client.put(
        f"/api/v1/tours/{tour['id']}", json={"price_premium": 900, "is_active": False}, headers=headers
    )
    assert updated.status_code == 200
    assert updated.json()["data"]["tour"]["price_premium"] == 900
    assert updated.json()["data"]["tour"]["is_active"] is False

    deleted = await test_client.delete(f"/api/v1/tours/{tour['id']}", headers=headers)
    assert deleted.json() == {"success": True, "message": "Tour deleted successfully"}


@pytest.mark.asyncio
async def test_create_tour_requires_admin(test_client, client_user, city, category, auth_headers):
    response = await test_client.post(
        "/api/v1/tours",
        json={"name": "Not Allowed", "city_id": city.id, "category_id": category.id,
              "duration_days": 1, "price_standard": 10},
        headers=auth_headers(client_user),
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_tour_rejects_null_name(test_client, admin_user, tour, auth_headers):
    response = await test_client.put(
        f"/api/v1/tours/{tour.id}", json={"name": None}, headers=auth_headers(admin_user)
    )

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_delete_tour_with_bookings_blocked(test_client, admin_user, client_user, tour, make_booking, auth_headers):
    await make_booking(client_user, tour)

    response = await test_client.delete(f"/api/v1/tours/{tour.id}", headers=auth_headers(admin_user))

    assert response.status_code == 400
    assert "active booking" in response.json()["message"]
