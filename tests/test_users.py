"""
Tests for admin user management endpoints.

Tests cover:
- Role enforcement
- Listing with pagination
- CRUD
- Cascade delete (forms and their responses)
"""

from triddle.core.auth import verify_password


class TestRoleEnforcement:
    def test_regular_user_forbidden(self, client, users, as_user):
        response = client.get("/api/v1/users")

        assert response.status_code == 403
        assert response.json()["error"] == "User role user is not authorized to access this route"
        users.list.assert_not_called()

    def test_anonymous_unauthorized(self, client, users):
        response = client.get("/api/v1/users")

        assert response.status_code == 401


class TestListUsers:
    def test_list_users(self, client, users, as_admin, user_doc, admin_doc):
        users.list.return_value = ([user_doc, admin_doc], 60)

        response = client.get("/api/v1/users?page=2&limit=2")

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert data["total"] == 60
        assert data["pagination"] == {
            "next": {"page": 3, "limit": 2},
            "prev": {"page": 1, "limit": 2},
        }
        users.list.assert_called_once_with(skip=2, limit=2)

    def test_limit_bounds(self, client, users, as_admin):
        response = client.get("/api/v1/users?limit=500")

        assert response.status_code == 422


class TestUserCrud:
    def test_create_admin(self, client, users, as_admin, admin_doc):
        users.get_by_email.return_value = None
        users.create.return_value = admin_doc

        response = client.post(
            "/api/v1/users",
            json={"name": "Grace Hopper", "email": "grace@example.com", "password": "cobol123", "role": "admin"},
        )

        assert response.status_code == 201
        name, email, password_hash, role = users.create.call_args.args
        assert role == "admin"
        assert verify_password("cobol123", password_hash)

    def test_get_user(self, client, users, as_admin, user_doc):
        users.get_by_id.return_value = user_doc

        response = client.get(f"/api/v1/users/{user_doc['id']}")

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Ada Lovelace"

    def test_get_missing_user(self, client, users, as_admin):
        users.get_by_id.return_value = None

        response = client.get("/api/v1/users/6531f0a1b2c3d4e5f6a7b8ff")

        assert response.status_code == 404
        assert response.json()["error"] == "User not found with id of 6531f0a1b2c3d4e5f6a7b8ff"

    def test_update_role(self, client, users, as_admin, user_doc):
        users.update.return_value = {**user_doc, "role": "admin"}

        response = client.put(f"/api/v1/users/{user_doc['id']}", json={"role": "admin"})

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "admin"
        users.update.assert_called_once_with(user_doc["id"], {"role": "admin"})

    def test_delete_cascades(self, client, users, forms, responses, as_admin, user_doc):
        users.get_by_id.return_value = user_doc
        forms.delete_by_owner.return_value = ["f1", "f2"]

        response = client.delete(f"/api/v1/users/{user_doc['id']}")

        assert response.status_code == 200
        forms.delete_by_owner.assert_called_once_with(user_doc["id"])
        responses.delete_for_forms.assert_called_once_with(["f1", "f2"])
        users.delete.assert_called_once_with(user_doc["id"])
