"""API tests for cities and categories."""

from decimal import Decimal

import pytest


@pytest.mark.asyncio
async def test_list_cities_with_tour_stats(test_client, make_tour):
    await make_tour(price_standard=Decimal("800.00"))
    await make_tour(name="Erg Chebbi Sunrise", price_standard=Decimal("450.00"))
    await make_tour(name="Closed Camp", price_standard=Decimal("100.00"), is_active=False)

    response = await test_client.get("/api/v1/cities")

    assert response.status_code == 200
    cities = response.json()["data"]["cities"]
    assert len(cities) == 1
    assert cities[0]["name"] == "Merzouga"
    assert cities[0]["tour_count"] == 2
    assert cities[0]["min_price"] == 450


@pytest.mark.asyncio
async def test_city_without_tours(test_client, admin_user, auth_headers):
    created = await test_client.post(
        "/api/v1/cities", json={"name": "Essaouira"}, headers=auth_headers(admin_user)
    )

    listing = await test_client.get("/api/v1/cities")

    assert created.status_code == 201
    assert created.json()["message"] == "City created successfully"
    city = listing.json()["data"]["cities"][0]
    assert city["tour_count"] == 0
    assert city["min_price"] is None


@pytest.mark.asyncio
async def test_city_detail_lists_active_tours(test_client, city, tour, make_tour):
    await make_tour(name="Inactive Tour", is_active=False)

    response = await test_client.get(f"/api/v1/cities/{city.id}")

    detail = response.json()["data"]["city"]
    assert detail["name"] == "Merzouga"
    assert [t["name"] for t in detail["tours"]] == ["Sahara Desert Adventure"]
    assert detail["tours"][0]["price_standard"] == 1000


@pytest.mark.asyncio
async def test_missing_city(test_client):
    response = await test_client.get("/api/v1/cities/404")

    assert response.status_code == 404
    assert response.json()["message"] == "City not found"


@pytest.mark.asyncio
async def test_update_and_delete_city(test_client, admin_user, city, auth_headers):
    headers = auth_headers(admin_user)

    updated = await test_client.put(
        f"/api/v1/cities/{city.id}", json={"image_url": "merzouga.jpg"}, headers=headers
    )
    deleted = await test_client.delete(f"/api/v1/cities/{city.id}", headers=headers)

    assert updated.json()["data"]["city"]["image_url"] == "merzouga.jpg"
    assert deleted.json() == {"success": True, "message": "City deleted successfully"}


@pytest.mark.asyncio
async def test_delete_city_with_tours_blocked(test_client, admin_user, city, tour, auth_headers):
    response = await test_client.delete(f"/api/v1/cities/{city.id}", headers=auth_headers(admin_user))

    assert response.status_code == 400
    assert response.json()["message"] == "Cannot delete city with 1 associated tour(s)"


@pytest.mark.asyncio
async def test_city_writes_require_admin(test_client, client_user, auth_headers):
    response = await test_client.post(
        "/api/v1/cities", json={"name": "Tangier"}, headers=auth_headers(client_user)
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_list_categories(test_client, tour):
    response = await test_client.get("/api/v1/categories")

    categories = response.json()["data"]["categories"]
    assert [(c["name"], c["tour_count"]) for c in categories] == [("Desert", 1)]


@pytest.mark.asyncio
async def test_category_lifecycle(test_client, admin_user, auth_headers):
    headers = auth_headers(admin_user)

    created = await test_client.post(
        "/api/v1/categories", json={"name": "Culture", "icon": "landmark"}, headers=headers
    )
    category_id = created.json()["data"]["category"]["id"]
    detail = await test_client.get(f"/api/v1/categories/{category_id}")
    updated = await test_client.put(
        f"/api/v1/categories/{category_id}", json={"icon": "museum"}, headers=headers
    )
    deleted = await test_client.delete(f"/api/v1/categories/{category_id}", headers=headers)

    assert created.status_code == 201
    assert detail.json()["data"]["category"]["tours"] == []
    assert updated.json()["data"]["category"]["icon"] == "museum"
    assert deleted.json()["message"] == "Category deleted successfully"


@pytest.mark.asyncio
async def test_delete_category_with_tours_blocked(test_client, admin_user, category, tour, auth_headers):
    response = await test_client.delete(
        f"/api/v1/categories/{category.id}", headers=auth_headers(admin_user)
    )

    assert response.status_code == 400
