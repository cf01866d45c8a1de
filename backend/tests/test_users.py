# Overview: Pytest coverage for admin user management.

"""
User Administration Tests

SECURITY TESTS: admin-only surface; an admin can neither delete nor demote
their own account.
"""

from stockdesk.models import User, Product, Category
from conftest import headers_for


class TestAdminUsers:

    def test_list_users(self, client, admin, user_a):
        response = client.get("/api/users", headers=headers_for(admin))

        assert response.status_code == 200
        assert {u["email"] for u in response.json} == {"admin@example.com", "user_a@example.com"}
        assert all("password_hash" not in u for u in response.json)

    def test_create_user_with_role(self, client, db_session, admin):
        response = client.post(
            "/api/users",
            json={"name": "Second Admin", "email": "admin2@example.com", "password": "secret123", "role": "ADMIN"},
            headers=headers_for(admin),
        )

        assert response.status_code == 201
        assert response.json["role"] == "ADMIN"
        assert db_session.get(User, response.json["id"]).is_admin

    def test_create_user_invalid_role(self, client, admin):
        response = client.post(
            "/api/users",
            json={"name": "X", "email": "x@example.com", "password": "secret123", "role": "ROOT"},
            headers=headers_for(admin),
        )

        assert response.status_code == 400

    def test_promote_user(self, client, admin, user_a):
        response = client.patch(f"/api/users/{user_a.id}", json={"role": "ADMIN"}, headers=headers_for(admin))

        assert response.status_code == 200
        assert response.json["role"] == "ADMIN"

    def test_rename_self_allowed(self, client, admin):
        response = client.patch(f"/api/users/{admin.id}", json={"name": "Boss"}, headers=headers_for(admin))

        assert response.status_code == 200
        assert response.json["name"] == "Boss"
        assert response.json["role"] == "ADMIN"

    def test_patch_unknown_field(self, client, admin, user_a):
        response = client.patch(f"/api/users/{user_a.id}", json={"email": "new@example.com"}, headers=headers_for(admin))

        assert response.status_code == 400
        assert response.json == {"error": "Field not allowed: email"}

    def test_patch_missing_user(self, client, admin):
        response = client.patch("/api/users/99999", json={"name": "Ghost"}, headers=headers_for(admin))
        assert response.status_code == 404

    def test_non_admin_cannot_manage_users(self, client, user_a, user_b):
        assert client.get("/api/users", headers=headers_for(user_a)).status_code == 403
        assert client.patch(f"/api/users/{user_b.id}", json={"role": "ADMIN"},
                            headers=headers_for(user_a)).status_code == 403
        assert client.delete(f"/api/users/{user_b.id}", headers=headers_for(user_a)).status_code == 403


class TestSelfProtection:

    def test_cannot_demote_self(self, client, db_session, admin):
        response = client.patch(f"/api/users/{admin.id}", json={"role": "USER"}, headers=headers_for(admin))

        assert response.status_code == 400
        assert response.json == {"error": "You cannot remove your own admin role"}
        db_session.expire_all()
        assert db_session.get(User, admin.id).role == "ADMIN"

    def test_cannot_delete_self(self, client, db_session, admin):
        response = client.delete(f"/api/users/{admin.id}", headers=headers_for(admin))

        assert response.status_code == 400
        assert response.json == {"error": "You cannot delete your own account"}
        assert db_session.get(User, admin.id) is not None


class TestDeleteUser:

    def test_delete_cascades_to_owned_rows(self, client, db_session, admin, user_a, product_a, category_a):
        user_id = user_a.id

        response = client.delete(f"/api/users/{user_id}", headers=headers_for(admin))

        assert response.status_code == 204
        db_session.expire_all()
        assert db_session.query(User).filter_by(id=user_id).count() == 0
        assert db_session.query(Product).filter_by(user_id=user_id).count() == 0
        assert db_session.query(Category).filter_by(user_id=user_id).count() == 0

    def test_deleted_user_session_stops_working(self, client, admin, user_a):
        user_headers = headers_for(user_a)

        client.delete(f"/api/users/{user_a.id}", headers=headers_for(admin))

        assert client.get("/api/auth/me", headers=user_headers).status_code == 401

    def test_delete_missing_user(self, client, admin):
        assert client.delete("/api/users/99999", headers=headers_for(admin)).status_code == 404
