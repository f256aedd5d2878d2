"""
Integration tests for API endpoints.

Tests the full HTTP request/response cycle against in-memory storage.
"""
import pytest


SELLER = "seller@farm.test"
BUYER_A = "alice@buyers.test"
BUYER_B = "bob@buyers.test"


def list_crop(client, quantity=10, owner=SELLER):
    response = client.post("/api/v1/crops", json={
        "userEmail": owner,
        "userName": "Sam Seller",
        "name": "Tomato",
        "type": "vegetable",
        "pricePerUnit": 25,
        "unit": "kg",
        "quantity": quantity,
        "description": "Vine ripened",
        "location": "Bogura",
        "image": "https://img.test/tomato.jpg",
    })
    assert response.status_code == 201
    return response.json()


def show_interest(client, crop_id, buyer=BUYER_A, quantity=2):
    return client.post("/api/v1/interests", json={
        "cropId": crop_id,
        "userEmail": buyer,
        "userName": "Buyer",
        "quantity": quantity,
        "message": "Can you deliver?",
    })


# ============================================================
# Health Check Tests
# ============================================================

class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, test_client):
        """Root endpoint should return healthy status."""
        response = test_client.get("/")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert "service" in data
        assert "version" in data

    def test_health_endpoint(self, test_client):
        response = test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"


# ============================================================
# Crop Endpoint Tests
# ============================================================

class TestCropEndpoints:
    """Tests for crop listing endpoints."""

    def test_create_and_get_crop(self, test_client):
        crop = list_crop(test_client)

        assert crop["ownerEmail"] == SELLER
        assert crop["quantityAvailable"] == 10
        assert crop["interests"] == []

        response = test_client.get(f"/api/v1/crops/{crop['id']}")
        assert response.status_code == 200
        assert response.json()["name"] == "Tomato"

    def test_create_crop_requires_image(self, test_client):
        response = test_client.post("/api/v1/crops", json={"userEmail": SELLER, "name": "Tomato"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Image required"

    def test_get_missing_crop(self, test_client):
        response = test_client.get("/api/v1/crops/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"] == "Not found"

    def test_owner_listing(self, test_client):
        owner = "owner-listing@farm.test"
        crop = list_crop(test_client, owner=owner)

        response = test_client.get(f"/api/v1/crops/owner/{owner}")

        assert response.status_code == 200
        assert [c["id"] for c in response.json()] == [crop["id"]]

    def test_update_crop_by_non_owner(self, test_client):
        crop = list_crop(test_client)

        response = test_client.put(f"/api/v1/crops/{crop['id']}", json={
            "userEmail": BUYER_A,
            "name": "Stolen",
        })

        assert response.status_code == 403

    def test_update_crop_keeps_image(self, test_client):
        crop = list_crop(test_client)

        response = test_client.put(f"/api/v1/crops/{crop['id']}", json={
            "userEmail": SELLER,
            "quantity": 30,
        })

        assert response.status_code == 200
        data = response.json()
        assert data["quantityAvailable"] == 30
        assert data["image"] == crop["image"]

    def test_delete_crop_cascades(self, test_client):
        crop = list_crop(test_client)
        show_interest(test_client, crop["id"])

        forbidden = test_client.delete(f"/api/v1/crops/{crop['id']}", params={"email": BUYER_A})
        assert forbidden.status_code == 403

        response = test_client.delete(f"/api/v1/crops/{crop['id']}", params={"email": SELLER})
        assert response.status_code == 200
        assert response.json() == {"success": True, "interests_removed": 1}

        assert test_client.get(f"/api/v1/crops/{crop['id']}").status_code == 404
        buyer_view = test_client.get(f"/api/v1/interests/buyer/{BUYER_A}").json()
        assert crop["id"] not in {i["cropId"] for i in buyer_view}

    def test_reconcile_endpoint(self, test_client):
        crop = list_crop(test_client)
        show_interest(test_client, crop["id"])

        response = test_client.post(f"/api/v1/crops/{crop['id']}/reconcile")

        assert response.status_code == 200
        assert len(response.json()["interests"]) == 1


# ============================================================
# Interest Endpoint Tests
# ============================================================

class TestInterestEndpoints:
    """Tests for the interest lifecycle over HTTP."""

    def test_create_interest_mirrors_into_crop(self, test_client):
        crop = list_crop(test_client)

        response = show_interest(test_client, crop["id"], quantity=3)

        assert response.status_code == 201
        interest = response.json()
        assert interest["status"] == "pending"
        assert interest["sellerEmail"] == SELLER
        assert interest["quantityRequested"] == 3

        summaries = test_client.get(f"/api/v1/crops/{crop['id']}").json()["interests"]
        assert [s["id"] for s in summaries] == [interest["id"]]
        assert summaries[0]["status"] == "pending"

    @pytest.mark.parametrize("quantity", [0, -1, 11])
    def test_quantity_out_of_range(self, test_client, quantity):
        crop = list_crop(test_client)

        response = show_interest(test_client, crop["id"], quantity=quantity)

        assert response.status_code == 400

    def test_own_crop_forbidden(self, test_client):
        crop = list_crop(test_client)

        response = show_interest(test_client, crop["id"], buyer=SELLER)

        assert response.status_code == 403

    def test_duplicate_pending_conflict(self, test_client):
        crop = list_crop(test_client)
        show_interest(test_client, crop["id"])

        response = show_interest(test_client, crop["id"])

        assert response.status_code == 409

    def test_unknown_crop(self, test_client):
        response = show_interest(test_client, "missing-crop")

        assert response.status_code == 404

    def test_accept_flow(self, test_client):
        """Accepting 6 of 10 leaves 4; a later request for 5 is refused."""
        crop = list_crop(test_client, quantity=10)
        interest = show_interest(test_client, crop["id"], quantity=6).json()

        not_seller = test_client.patch(f"/api/v1/interests/{interest['id']}", json={
            "status": "accepted", "userEmail": BUYER_A,
        })
        assert not_seller.status_code == 403

        response = test_client.patch(f"/api/v1/interests/{interest['id']}", json={
            "status": "accepted", "userEmail": SELLER,
        })
        assert response.status_code == 200
        assert response.json()["status"] == "accepted"

        stored = test_client.get(f"/api/v1/crops/{crop['id']}").json()
        assert stored["quantityAvailable"] == 4
        assert stored["interests"][0]["status"] == "accepted"
        assert stored["interests"][0]["updatedAt"] == response.json()["updatedAt"]

        again = test_client.patch(f"/api/v1/interests/{interest['id']}", json={
            "status": "rejected", "userEmail": SELLER,
        })
        assert again.status_code == 409

        too_many = show_interest(test_client, crop["id"], buyer=BUYER_B, quantity=5)
        assert too_many.status_code == 400

    def test_withdraw_interest(self, test_client):
        crop = list_crop(test_client)
        interest = show_interest(test_client, crop["id"]).json()

        forbidden = test_client.delete(
            f"/api/v1/interests/{interest['id']}", params={"email": SELLER}
        )
        assert forbidden.status_code == 403

        response = test_client.delete(
            f"/api/v1/interests/{interest['id']}", params={"email": BUYER_A}
        )
        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert test_client.get(f"/api/v1/crops/{crop['id']}").json()["interests"] == []

        missing = test_client.delete(
            f"/api/v1/interests/{interest['id']}", params={"email": BUYER_A}
        )
        assert missing.status_code == 404

    def test_inboxes(self, test_client):
        seller = "inbox-seller@farm.test"
        buyer = "inbox-buyer@buyers.test"
        crop = list_crop(test_client, owner=seller)
        interest = show_interest(test_client, crop["id"], buyer=buyer).json()

        seller_view = test_client.get(f"/api/v1/interests/seller/{seller}").json()
        buyer_view = test_client.get(f"/api/v1/interests/buyer/{buyer}").json()

        assert [i["id"] for i in seller_view] == [interest["id"]]
        assert seller_view[0]["cropImage"] == crop["image"]
        assert [i["id"] for i in buyer_view] == [interest["id"]]

    def test_missing_body_fields(self, test_client):
        response = test_client.post("/api/v1/interests", json={"cropId": "x"})

        assert response.status_code == 422


# ============================================================
# Response Format Tests
# ============================================================

class TestResponseFormats:
    """Tests for API documentation."""

    def test_openapi_schema_available(self, test_client):
        response = test_client.get("/openapi.json")

        assert response.status_code == 200
        paths = response.json()["paths"]
        assert "/api/v1/crops/{crop_id}" in paths
        assert "/api/v1/interests/{interest_id}" in paths
        assert "409" in paths["/api/v1/interests"]["post"]["responses"]

    def test_docs_endpoint_available(self, test_client):
        response = test_client.get("/docs")

        assert response.status_code == 200
