# Overview: Pytest coverage for admin asUserId scoping.

"""
Impersonation Tests

An ADMIN may act inside another user's scope with asUserId (query string
or JSON body). For everyone else the parameter is ignored.
"""

import pytest

from stockdesk.services.scope_service import resolve_owner_id
from stockdesk.validation import NotFoundError, ValidationError
from conftest import headers_for


class TestResolveOwnerId:

    def test_user_without_target(self, app, user_a):
        with app.test_request_context():
            assert resolve_owner_id(user_a) == user_a.id

    def test_user_target_ignored(self, app, user_a, user_b):
        with app.test_request_context():
            assert resolve_owner_id(user_a, str(user_b.id)) == user_a.id

    def test_admin_target(self, app, admin, user_a):
        with app.test_request_context():
            assert resolve_owner_id(admin, str(user_a.id)) == user_a.id

    def test_admin_blank_target(self, app, admin):
        with app.test_request_context():
            assert resolve_owner_id(admin, "") == admin.id

    def test_admin_unknown_target(self, app, admin):
        with app.test_request_context():
            with pytest.raises(NotFoundError):
                resolve_owner_id(admin, 99999)

    def test_admin_malformed_target(self, app, admin):
        with app.test_request_context():
            with pytest.raises(ValidationError):
                resolve_owner_id(admin, "abc")


class TestImpersonationFlow:

    def test_admin_creates_product_for_user(self, client, admin, user_a, user_b):
        response = client.post(
            f"/api/products?asUserId={user_a.id}",
            json={"name": "Delegated", "sku": "DEL-1", "price": 1, "quantity": 1},
            headers=headers_for(admin),
        )

        assert response.status_code == 201
        assert response.json["user_id"] == user_a.id

        seen_by_a = client.get("/api/products", headers=headers_for(user_a)).json
        seen_by_b = client.get("/api/products", headers=headers_for(user_b)).json
        assert [p["sku"] for p in seen_by_a] == ["DEL-1"]
        assert seen_by_b == []

    def test_target_in_json_body(self, client, admin, user_a):
        response = client.post(
            "/api/categories",
            json={"name": "Delegated", "asUserId": user_a.id},
            headers=headers_for(admin),
        )

        assert response.status_code == 201
        assert response.json["user_id"] == user_a.id

    def test_non_admin_target_is_ignored(self, client, user_a, user_b, product_b):
        response = client.get(f"/api/products?asUserId={user_b.id}", headers=headers_for(user_a))

        assert response.status_code == 200
        assert response.json == []

    def test_admin_request_on_behalf_records_submitter(self, client, admin, user_a, product_a):
        response = client.post(
            f"/api/requests?asUserId={user_a.id}",
            json={"title": "For A", "items": [{"product_id": product_a.id, "quantity": 1}]},
            headers=headers_for(admin),
        )

        assert response.status_code == 201
        assert response.json["user_id"] == user_a.id
        assert response.json["created_by"]["id"] == admin.id

    def test_admin_unknown_target_not_found(self, client, admin):
        response = client.get("/api/products?asUserId=99999", headers=headers_for(admin))

        assert response.status_code == 404
        assert response.json == {"error": "User not found"}

    def test_admin_target_past_integer_range(self, client, admin):
        response = client.get("/api/products?asUserId=99999999999999999999", headers=headers_for(admin))

        assert response.status_code == 400
        assert response.json == {"error": "asUserId is out of range"}
