"""Tests for admin user management."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from infographic_api.database import utcnow
from infographic_api.models.user import User


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


ADMIN_ROUTES = [
    ("GET", "/api/v1/users", None),
    ("GET", "/api/v1/users/stats", None),
    ("GET", "/api/v1/users/{id}", None),
    ("PATCH", "/api/v1/users/{id}", {"name": "Renamed"}),
    ("DELETE", "/api/v1/users/{id}", None),
]


class TestAdminGuard:
    """Non-admins are turned away from every admin route."""

    @pytest.mark.parametrize("method,path,payload", ADMIN_ROUTES)
    def test_requires_login(self, client: TestClient, other_user: dict, method, path, payload):
        url = path.format(id=other_user["user"].id)
        assert client.request(method, url, json=payload).status_code == 401

    @pytest.mark.parametrize("method,path,payload", ADMIN_ROUTES)
    def test_forbidden_for_user(
        self, client: TestClient, db_session: Session, test_user: dict, other_user: dict, method, path, payload
    ):
        url = path.format(id=other_user["user"].id)
        response = client.request(method, url, headers=bearer(test_user["token"]), json=payload)
        assert response.status_code == 403
        assert response.json()["message"] == "You do not have permission to perform this action"

        db_session.refresh(other_user["user"])
        assert other_user["user"].name == "Other User"
        assert other_user["user"].is_active is True


class TestAdminUsers:
    def test_list_users(self, client: TestClient, admin_user: dict, test_user: dict):
        response = client.get("/api/v1/users", headers=bearer(admin_user["token"]))
        assert response.status_code == 200
        body = response.json()
        assert body["results"] == 2
        emails = {user["email"] for user in body["data"]["users"]}
        assert emails == {"admin@example.com", "test@example.com"}
        assert all("passwordHash" not in user for user in body["data"]["users"])

    def test_list_excludes_inactive(
        self, client: TestClient, admin_user: dict, test_user: dict, db_session: Session
    ):
        test_user["user"].is_active = False
        db_session.commit()
        response = client.get("/api/v1/users", headers=bearer(admin_user["token"]))
        assert response.json()["results"] == 1

    def test_get_user(self, client: TestClient, admin_user: dict, test_user: dict):
        response = client.get(f"/api/v1/users/{test_user['user'].id}", headers=bearer(admin_user["token"]))
        assert response.status_code == 200
        user = response.json()["data"]["user"]
        assert user["email"] == "test@example.com"
        assert user["active"] is True

    def test_get_unknown_user(self, client: TestClient, admin_user: dict):
        response = client.get("/api/v1/users/9999", headers=bearer(admin_user["token"]))
        assert response.status_code == 404
        assert response.json()["message"] == "No user found with that ID"

    def test_update_user_role(self, client: TestClient, admin_user: dict, test_user: dict, db_session: Session):
        response = client.patch(
            f"/api/v1/users/{test_user['user'].id}",
            headers=bearer(admin_user["token"]),
            json={"role": "admin", "name": "Promoted"},
        )
        assert response.status_code == 200
        assert response.json()["data"]["user"]["role"] == "admin"
        db_session.refresh(test_user["user"])
        assert test_user["user"].name == "Promoted"

    def test_update_user_cannot_set_password(
        self, client: TestClient, admin_user: dict, test_user: dict, db_session: Session
    ):
        client.patch(
            f"/api/v1/users/{test_user['user'].id}",
            headers=bearer(admin_user["token"]),
            json={"password": "hijacked123"},
        )
        db_session.refresh(test_user["user"])
        assert test_user["user"].verify_password("password123")

    def test_update_user_invalid_role(self, client: TestClient, admin_user: dict, test_user: dict):
        response = client.patch(
            f"/api/v1/users/{test_user['user'].id}",
            headers=bearer(admin_user["token"]),
            json={"role": "superuser"},
        )
        assert response.status_code == 400

    def test_reactivate_user(self, client: TestClient, admin_user: dict, test_user: dict, db_session: Session):
        test_user["user"].is_active = False
        db_session.commit()
        response = client.patch(
            f"/api/v1/users/{test_user['user'].id}",
            headers=bearer(admin_user["token"]),
            json={"active": True},
        )
        assert response.status_code == 200
        assert response.json()["data"]["user"]["active"] is True

    def test_delete_user_is_soft(self, client: TestClient, admin_user: dict, test_user: dict, db_session: Session):
        response = client.delete(f"/api/v1/users/{test_user['user'].id}", headers=bearer(admin_user["token"]))
        assert response.status_code == 204

        user = db_session.get(User, test_user["user"].id)
        db_session.refresh(user)
        assert user is not None
        assert user.is_active is False
        assert client.get("/api/v1/auth/me", headers=bearer(test_user["token"])).status_code == 401


class TestRegistrationStats:
    def test_stats_by_month(self, client: TestClient, admin_user: dict, db_session: Session):
        old = User(name="Old", email="old@example.com", created_at=utcnow() - timedelta(days=400))
        old.set_password("password123", rounds=4)
        db_session.add(old)
        db_session.commit()

        response = client.get("/api/v1/users/stats", headers=bearer(admin_user["token"]))
        assert response.status_code == 200
        stats = response.json()["data"]["stats"]
        assert stats == [{"month": utcnow().month, "total": 1}]
