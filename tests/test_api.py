"""HTTP-level tests: routing, auth, status codes and error mapping.

Services run against the same in-memory database and fake media store as
the service tests, wired in through dependency overrides.
"""

import json
import uuid

import pytest
from fastapi.testclient import TestClient
from jose import jwt

from catalog_engine.core.config import get_settings
from catalog_engine.core.providers import (
    get_authorization,
    get_change_request_service,
    get_product_service,
    get_variant_service,
)
from catalog_engine.database import get_session
from catalog_engine.main import app
from tests.fakes import ADMIN, USER, add_inventory, product_payload, variant_payload

API = get_settings().API_V1_STR


def _token(actor_id: uuid.UUID, role: str | None = None) -> dict[str, str]:
    claims = {"sub": str(actor_id), "aud": "authenticated"}
    if role:
        claims["app_metadata"] = {"role": role}
    settings = get_settings()
    token = jwt.encode(claims, settings.SUPABASE_JWT_SECRET, algorithm=settings.SUPABASE_JWT_ALG)
    return {"Authorization": f"Bearer {token}"}


ADMIN_HEADERS = _token(ADMIN.id, "admin")
USER_HEADERS = _token(USER.id)


def _png_part(field: str, name: str = "image.png"):
    return (field, (name, b"\x89PNG0000", "image/png"))


@pytest.fixture
def client(session, authorization, product_service, variant_service, change_request_service):
    def _session():
        yield session

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_authorization] = lambda: authorization
    app.dependency_overrides[get_product_service] = lambda: product_service
    app.dependency_overrides[get_variant_service] = lambda: variant_service
    app.dependency_overrides[get_change_request_service] = lambda: change_request_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


class TestProducts:

    def test_create_multipart(self, client, category, store):
        response = client.post(
            f"{API}/products",
            data={
                "productData": json.dumps(product_payload(category.id)),
                "variantData": json.dumps([variant_payload("SKU-1"), variant_payload("SKU-2")]),
            },
            files=[_png_part("product_images"), _png_part("variant_images[1]")],
            headers=ADMIN_HEADERS,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["name"] == "Toned Milk"
        assert len(body["images"]) == 1
        by_sku = {v["sku"]: v for v in body["variants"]}
        assert by_sku["SKU-1"]["images"] == []
        assert len(by_sku["SKU-2"]["images"]) == 1
        assert len(store.uploads) == 2

    @pytest.mark.parametrize("headers", [{}, USER_HEADERS], ids=["guest", "user"])
    def test_create_requires_admin(self, client, category, store, headers):
        response = client.post(
            f"{API}/products",
            data={
                "productData": json.dumps(product_payload(category.id)),
                "variantData": json.dumps([variant_payload("SKU-1")]),
            },
            files=[_png_part("product_images")],
            headers=headers,
        )
        assert response.status_code == 403
        assert store.uploads == []

    def test_create_duplicate_sku(self, client, category, seeded, store):
        response = client.post(
            f"{API}/products",
            data={
                "productData": json.dumps(product_payload(category.id)),
                "variantData": json.dumps([variant_payload("SKU-1")]),
            },
            files=[_png_part("product_images")],
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == 409
        assert "sku" in response.json()["detail"]
        assert store.deletes == store.uploads

    def test_create_invalid_json(self, client, category):
        response = client.post(
            f"{API}/products",
            data={"productData": "{oops", "variantData": "[]"},
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == 400
        assert "Invalid JSON" in response.json()["detail"]

    def test_get_product(self, client, seeded):
        product, variants = seeded
        response = client.get(f"{API}/products/{product.id}")
        assert response.status_code == 200
        assert {v["id"] for v in response.json()["variants"]} == {str(v.id) for v in variants}

    def test_get_unknown_product(self, client, category):
        response = client.get(f"{API}/products/{uuid.uuid4()}")
        assert response.status_code == 404
        assert "not found" in response.json()["detail"]

    def test_update_multipart(self, client, seeded):
        product, (first, _) = seeded
        response = client.patch(
            f"{API}/products/{product.id}",
            data={
                "productData": json.dumps({"brand": None}),
                "variantsData": json.dumps([{"id": str(first.id), "weight": 1}]),
            },
            headers=ADMIN_HEADERS,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["brand"] is None
        assert [v["sku"] for v in body["variants"]] == ["SKU-1"]

    def test_update_blocked_by_inventory(self, client, session, seeded):
        product, (first, second) = seeded
        add_inventory(session, second.id)

        response = client.patch(
            f"{API}/products/{product.id}",
            data={"variantsData": json.dumps([{"id": str(first.id)}])},
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == 409

    def test_create_variant(self, client, seeded, store):
        product, _ = seeded
        response = client.post(
            f"{API}/products/{product.id}/variants",
            data={"variantData": json.dumps(variant_payload("SKU-3"))},
            files=[_png_part("variant_images")],
            headers=ADMIN_HEADERS,
        )

        assert response.status_code == 201
        body = response.json()
        assert body["product_id"] == str(product.id)
        assert [img["url"] for img in body["images"]] == store.uploads


class TestVariants:

    def test_admin_update_is_applied(self, client, seeded):
        _, (variant, _) = seeded
        response = client.patch(
            f"{API}/variants/{variant.id}", json={"weight": 2}, headers=ADMIN_HEADERS
        )

        assert response.status_code == 200
        body = response.json()
        assert body["outcome"] == "updated"
        assert body["variant"]["weight"] == 2

    @pytest.mark.parametrize("headers", [{}, USER_HEADERS], ids=["guest", "user"])
    def test_other_update_is_staged(self, client, seeded, headers):
        _, (variant, _) = seeded
        response = client.patch(
            f"{API}/variants/{variant.id}", json={"weight": 2}, headers=headers
        )

        assert response.status_code == 202
        body = response.json()
        assert body["outcome"] == "pending_review"
        assert body["variant"] is None
        assert body["change_request"]["status"] == "pending"
        assert body["change_request"]["changes"] == {"weight": 2}

    def test_product_reassignment_is_rejected(self, client, seeded):
        _, (variant, _) = seeded
        response = client.patch(
            f"{API}/variants/{variant.id}",
            json={"product": str(uuid.uuid4())},
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == 400
        assert "not allowed" in response.json()["detail"]

    def test_bad_token(self, client, seeded):
        _, (variant, _) = seeded
        response = client.patch(
            f"{API}/variants/{variant.id}",
            json={"weight": 2},
            headers={"Authorization": "Bearer not-a-jwt"},
        )
        assert response.status_code == 401

    def test_delete_blocked_by_inventory(self, client, session, seeded):
        _, (variant, _) = seeded
        add_inventory(session, variant.id)

        response = client.delete(f"{API}/variants/{variant.id}", headers=ADMIN_HEADERS)
        assert response.status_code == 409

    def test_delete(self, client, seeded, store):
        _, (variant, _) = seeded
        response = client.delete(f"{API}/variants/{variant.id}", headers=ADMIN_HEADERS)

        assert response.status_code == 200
        assert len(store.deletes) == 1

    def test_delete_requires_admin(self, client, seeded):
        _, (variant, _) = seeded
        response = client.delete(f"{API}/variants/{variant.id}", headers=USER_HEADERS)
        assert response.status_code == 403


class TestChangeRequests:

    @pytest.fixture
    def pending(self, client, seeded):
        _, (variant, _) = seeded
        response = client.patch(
            f"{API}/variants/{variant.id}", json={"weight": 4}, headers=USER_HEADERS
        )
        return response.json()["change_request"]

    def test_list(self, client, pending):
        response = client.get(f"{API}/change-requests", headers=ADMIN_HEADERS)

        assert response.status_code == 200
        body = response.json()
        assert [r["id"] for r in body["data"]] == [pending["id"]]
        assert body["data"][0]["variant"]["sku"] == "SKU-1"
        assert body["pagination"]["total"] == 1

    def test_list_requires_admin(self, client, pending):
        response = client.get(f"{API}/change-requests", headers=USER_HEADERS)
        assert response.status_code == 403

    def test_list_invalid_status(self, client, pending):
        response = client.get(
            f"{API}/change-requests", params={"status": "done"}, headers=ADMIN_HEADERS
        )
        assert response.status_code == 400

    def test_approve_twice(self, client, pending):
        url = f"{API}/change-requests/{pending['id']}/approve"

        first = client.post(url, headers=ADMIN_HEADERS)
        second = client.post(url, headers=ADMIN_HEADERS)

        assert first.status_code == 200
        assert first.json()["request"]["status"] == "approved"
        assert first.json()["variant"]["weight"] == 4
        assert second.status_code == 409

    def test_reject(self, client, pending):
        response = client.post(
            f"{API}/change-requests/{pending['id']}/reject",
            json={"rejection_reason": "Wrong weight"},
            headers=ADMIN_HEADERS,
        )

        assert response.status_code == 200
        assert response.json()["request"]["status"] == "rejected"
        assert response.json()["request"]["rejection_reason"] == "Wrong weight"

    def test_reject_without_reason(self, client, pending):
        response = client.post(
            f"{API}/change-requests/{pending['id']}/reject",
            json={"rejection_reason": "  "},
            headers=ADMIN_HEADERS,
        )
        assert response.status_code == 422

    def test_approve_orphaned_request(self, client, seeded, pending):
        _, (variant, _) = seeded
        client.delete(f"{API}/variants/{variant.id}", headers=ADMIN_HEADERS)

        response = client.post(
            f"{API}/change-requests/{pending['id']}/approve", headers=ADMIN_HEADERS
        )
        assert response.status_code == 404

        listed = client.get(
            f"{API}/change-requests", params={"status": "rejected"}, headers=ADMIN_HEADERS
        )
        assert listed.json()["data"][0]["variant"] is None
