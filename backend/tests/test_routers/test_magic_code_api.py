"""Tests for the magic code and verification HTTP endpoints."""

from datetime import timedelta

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

import repositories.db_models as db_models
from authentication.auth import create_access_token
from repositories.magic_code_repository import MagicCodeRepository


def issue(
    client: TestClient,
    headers: dict[str, str],
    user_id: int,
    operation: str = "demo-operation",
    **extra,
):
    return client.post(
        "/api/magic-codes",
        json={"operation": operation, "user_id": user_id, **extra},
        headers=headers,
    )


class TestMagicCodeEndpoints:
    def test_issue(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        test_user: db_models.User,
        client_app: db_models.ClientApplication,
    ) -> None:
        response = issue(client, admin_headers, test_user.id)

        assert response.status_code == 201
        data = response.json()
        assert data["user_id"] == test_user.id
        assert data["client_id"] == client_app.id
        assert data["email"] == test_user.email
        assert data["status"] == "active"
        assert data["login_allowed"] is False
        assert len(data["value"]) == 7
        assert "X-Correlation-ID" in response.headers

    def test_issue_unknown_user(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        client_app: db_models.ClientApplication,
    ) -> None:
        response = issue(client, admin_headers, 9999)
        assert response.status_code == 404
        assert "correlation_id" in response.json()

    def test_issue_unknown_client(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        test_user: db_models.User,
        client_app: db_models.ClientApplication,
    ) -> None:
        response = issue(client, admin_headers, test_user.id, client_id="missing")
        assert response.status_code == 404

    def test_issue_duplicate_is_retryable(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        test_user: db_models.User,
        client_app: db_models.ClientApplication,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(
            MagicCodeRepository, "value_exists", lambda self, value: True
        )

        response = issue(client, admin_headers, test_user.id)

        assert response.status_code == 503
        assert response.headers["Retry-After"] == "1"

    def test_get_and_list(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        test_user: db_models.User,
        client_app: db_models.ClientApplication,
    ) -> None:
        code_id = issue(client, admin_headers, test_user.id, operation="a").json()[
            "id"
        ]
        issue(client, admin_headers, test_user.id, operation="b")

        response = client.get(f"/api/magic-codes/{code_id}", headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["operation"] == "a"
        assert "value" not in response.json()

        listed = client.get(
            "/api/magic-codes",
            params={"user_id": test_user.id, "operation": "a"},
            headers=admin_headers,
        )
        assert [item["id"] for item in listed.json()] == [code_id]

    def test_get_missing(
        self, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        response = client.get("/api/magic-codes/9999", headers=admin_headers)
        assert response.status_code == 404

    def test_revoke(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        db_session: Session,
        test_user: db_models.User,
        client_app: db_models.ClientApplication,
    ) -> None:
        first = issue(client, admin_headers, test_user.id).json()["id"]
        second = issue(client, admin_headers, test_user.id).json()["id"]
        third = issue(client, admin_headers, test_user.id).json()["id"]

        for path in (
            f"/api/magic-codes/{first}/revoke",
            "/api/magic-codes/9999/revoke",
        ):
            assert client.post(path, headers=admin_headers).status_code == 204
        response = client.post(
            "/api/magic-codes/revoke",
            json={"ids": [second, third, 9999]},
            headers=admin_headers,
        )
        assert response.status_code == 204

        for code_id in (first, second, third):
            response = client.get(f"/api/magic-codes/{code_id}", headers=admin_headers)
            assert response.json()["status"] == "revoked"


class TestMagicCodeAccessControl:
    @pytest.mark.parametrize(
        "method, path, body",
        [
            ("post", "/api/magic-codes", {"operation": "login", "user_id": 1}),
            ("get", "/api/magic-codes?user_id=1", None),
            ("get", "/api/magic-codes/1", None),
            ("post", "/api/magic-codes/1/revoke", None),
            ("post", "/api/magic-codes/revoke", {"ids": [1]}),
            ("get", "/api/admin/scheduler", None),
        ],
    )
    def test_anonymous_is_unauthorized(
        self, client: TestClient, method: str, path: str, body: dict | None
    ) -> None:
        kwargs = {"json": body} if body is not None else {}
        response = getattr(client, method)(path, **kwargs)

        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    def test_anonymous_cannot_mint_login_code(
        self,
        client: TestClient,
        db_session: Session,
        test_user: db_models.User,
        client_app: db_models.ClientApplication,
    ) -> None:
        response = client.post(
            "/api/magic-codes", json={"operation": "login", "user_id": test_user.id}
        )

        assert response.status_code == 401
        assert "value" not in response.json()
        assert db_session.query(db_models.MagicCode).count() == 0

    def test_non_admin_is_forbidden(
        self,
        client: TestClient,
        db_session: Session,
        test_user: db_models.User,
        client_app: db_models.ClientApplication,
    ) -> None:
        token = create_access_token({"sub": test_user.email})
        headers = {"Authorization": f"Bearer {token}"}

        response = issue(client, headers, test_user.id, operation="login")
        assert response.status_code == 403
        assert db_session.query(db_models.MagicCode).count() == 0

        revoke = client.post(
            "/api/magic-codes/revoke", json={"ids": [1]}, headers=headers
        )
        assert revoke.status_code == 403

    @pytest.mark.parametrize(
        "token",
        [
            "not-a-jwt",
            jwt.encode({"sub": "admin@example.com"}, "wrong-secret", algorithm="HS256"),
        ],
    )
    def test_invalid_token_is_unauthorized(
        self, client: TestClient, admin_user: db_models.User, token: str
    ) -> None:
        response = client.get(
            "/api/magic-codes/1", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    def test_expired_token_is_unauthorized(
        self, client: TestClient, admin_user: db_models.User
    ) -> None:
        token = create_access_token(
            {"sub": admin_user.email}, expires_delta=timedelta(minutes=-1)
        )
        response = client.get(
            "/api/magic-codes/1", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401
        assert response.json()["detail"] == "Session expired. Please log in again."

    def test_admin_scheduler_status(
        self, client: TestClient, admin_headers: dict[str, str]
    ) -> None:
        response = client.get("/api/admin/scheduler", headers=admin_headers)

        assert response.status_code == 200
        assert response.json() == {"running": False, "jobs": []}


class TestVerificationEndpoints:
    def test_operation_verification(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        test_user: db_models.User,
        client_app: db_models.ClientApplication,
    ) -> None:
        value = issue(client, admin_headers, test_user.id).json()["value"]
        body = {"operation": "demo-operation", "user_id": test_user.id}
        headers = {"X-Verification-Magic-Code": value}

        ok = client.post("/api/verification/operation", json=body, headers=headers)
        assert ok.status_code == 200
        assert ok.json() == {"status": "ok", "error": None}

        again = client.post("/api/verification/operation", json=body, headers=headers)
        assert again.status_code == 403
        assert again.json()["error"] == "magic_code_invalid"

    def test_login_verification(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        test_user: db_models.User,
        client_app: db_models.ClientApplication,
    ) -> None:
        value = issue(client, admin_headers, test_user.id, operation="register").json()[
            "value"
        ]
        body = {"operation": "register", "user_id": test_user.id}
        headers = {"X-Verification-Magic-Code": value}

        assert client.post(
            "/api/verification/login", json=body, headers=headers
        ).status_code == 200
        assert client.post(
            "/api/verification/login", json=body, headers=headers
        ).status_code == 403
        assert client.post(
            "/api/verification/operation", json=body, headers=headers
        ).status_code == 200

    def test_missing_header_is_bad_request(
        self,
        client: TestClient,
        test_user: db_models.User,
        client_app: db_models.ClientApplication,
    ) -> None:
        response = client.post(
            "/api/verification/operation",
            json={"operation": "demo-operation", "user_id": test_user.id},
        )
        assert response.status_code == 400
        assert response.json()["status"] == "unhandled"

    def test_blocked_user_is_too_many_requests(
        self,
        client: TestClient,
        test_user: db_models.User,
        client_app: db_models.ClientApplication,
    ) -> None:
        from models.config import settings

        body = {"operation": "demo-operation", "user_id": test_user.id}
        headers = {"X-Verification-Magic-Code": "ZZZ-ZZZ"}

        for _ in range(settings.MAGIC_CODE_FLOOD_USER_LIMIT):
            client.post("/api/verification/operation", json=body, headers=headers)

        response = client.post(
            "/api/verification/operation", json=body, headers=headers
        )
        assert response.status_code == 429
        assert response.json()["error"] == "magic_code_blocked_by_user"


def test_health(client: TestClient) -> None:
    response = client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy", "environment": "test"}
