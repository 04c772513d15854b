import base64

from fastapi.testclient import TestClient

from app.api.deps import Services
from app.core.config import settings

BUYER_HEADERS = {"Authorization": "Bearer buyer-token"}


def _create(client: TestClient, headers: dict[str, str], **overrides) -> dict:
    body = {
        "title": "Dry maize",
        "description": "Well dried, 90kg bags",
        "price": 4200,
        "unit": "bag",
        "category": "crops",
        "location": "Nakuru",
        "quantity_available": 30,
    }
    body.update(overrides)
    response = client.post(f"{settings.API_PREFIX}/listings", json=body, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


def test_create_listing_uses_profile_for_seller_details(client: TestClient, auth_headers, farmer):
    client.put(
        f"{settings.API_PREFIX}/profile",
        json={"full_name": "Wanjiku Kamau", "user_type": "farmer", "phone_number": "+254700000001"},
        headers=auth_headers,
    )

    listing = _create(client, auth_headers)

    assert listing["seller_id"] == farmer.id
    assert listing["seller_name"] == "Wanjiku Kamau"
    assert listing["seller_phone"] == "+254700000001"
    assert listing["seller_email"] == farmer.email
    assert listing["status"] == "active"
    assert listing["image_url"] is None


def test_create_listing_without_profile_falls_back_to_email_name(client: TestClient):
    listing = _create(client, BUYER_HEADERS, category="equipment", title="Knapsack sprayer")
    assert listing["seller_name"] == "otieno"


def test_create_listing_uploads_image(client: TestClient, services: Services, auth_headers):
    image = base64.b64encode(b"\x89PNG fake").decode()

    listing = _create(client, auth_headers, imageFile=f"data:image/png;base64,{image}")

    bucket, path, content = services.storage.uploads[0]
    assert bucket == settings.LISTINGS_BUCKET
    assert path.endswith("_listing.jpg")
    assert content == b"\x89PNG fake"
    assert listing["image_url"] == f"https://storage.test/{bucket}/{path}"


def test_browse_listings_filters_and_hides_inactive(client: TestClient, auth_headers):
    maize = _create(client, auth_headers)
    cow = _create(client, auth_headers, title="Friesian heifer", description=None, category="livestock", unit="head")

    assert {item["id"] for item in client.get(f"{settings.API_PREFIX}/listings").json()} == {maize["id"], cow["id"]}
    livestock = client.get(f"{settings.API_PREFIX}/listings", params={"category": "livestock"}).json()
    assert [item["id"] for item in livestock] == [cow["id"]]
    search = client.get(f"{settings.API_PREFIX}/listings", params={"q": "90KG"}).json()
    assert [item["id"] for item in search] == [maize["id"]]

    response = client.patch(
        f"{settings.API_PREFIX}/listings/{maize['id']}/status", json={"status": "sold"}, headers=auth_headers
    )
    assert response.status_code == 200
    assert response.json()["status"] == "sold"

    assert [item["id"] for item in client.get(f"{settings.API_PREFIX}/listings").json()] == [cow["id"]]
    assert client.get(f"{settings.API_PREFIX}/listings/{maize['id']}").status_code == 404
    assert client.get(f"{settings.API_PREFIX}/listings/{cow['id']}").json()["title"] == "Friesian heifer"


def test_only_seller_can_change_listing_status(client: TestClient, auth_headers):
    listing = _create(client, auth_headers)

    response = client.patch(
        f"{settings.API_PREFIX}/listings/{listing['id']}/status", json={"status": "inactive"}, headers=BUYER_HEADERS
    )

    assert response.status_code == 403
    assert response.json() == {"error": "Not enough permissions"}


def test_listing_validation_errors_are_400(client: TestClient, auth_headers):
    response = client.post(
        f"{settings.API_PREFIX}/listings",
        json={"title": "Eggs", "price": -5, "unit": "tray", "location": "Thika"},
        headers=auth_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"].startswith("price")


def test_missing_listing_is_404(client: TestClient, auth_headers):
    response = client.patch(
        f"{settings.API_PREFIX}/listings/00000000-0000-0000-0000-000000000000/status",
        json={"status": "sold"},
        headers=auth_headers,
    )
    assert response.status_code == 404
    assert response.json() == {"error": "Listing not found"}
