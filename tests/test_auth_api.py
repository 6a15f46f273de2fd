"""Tests for authentication and user management API endpoints."""

from __future__ import annotations

import datetime
import typing as t

import jwt as pyjwt
import pydantic as p
from fastapi.testclient import TestClient

from educonnect.core import di
from educonnect.model import User, UserID, UserRole

TEST_PASSWORD = "password123"


@di.inject
def decode_jwt(
    token: str,
    jwt_secret: p.Secret[str] = di.Provide["secrets.auth.jwt"],
    jwt_algorithm: str = di.Provide["config.web.educonnect.auth.jwt_algorithm"],
) -> dict[str, t.Any]:
    """Decode a JWT token using injected config."""
    return pyjwt.decode(token, jwt_secret.get_secret_value(), algorithms=[jwt_algorithm])


@di.inject
def encode_jwt(
    payload: dict[str, t.Any],
    jwt_secret: p.Secret[str] = di.Provide["secrets.auth.jwt"],
    jwt_algorithm: str = di.Provide["config.web.educonnect.auth.jwt_algorithm"],
) -> str:
    """Encode a JWT token using injected config."""
    return pyjwt.encode(payload, jwt_secret.get_secret_value(), algorithm=jwt_algorithm)


class TestLogin:
    """Tests for POST /api/auth/login."""

    def test_login_success_returns_token(self, client: TestClient, teacher: User) -> None:
        response = client.post("/api/auth/login", json={"email": teacher.email, "password": TEST_PASSWORD})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True

        data = body["data"]
        assert data["user"]["email"] == teacher.email
        assert data["user"]["full_name"] == "Nguyen Thi Lan"
        assert data["user"]["role"] == "teacher"
        assert "password_hash" not in data["user"]
        assert data["token"]["token_type"] == "bearer"

        payload = decode_jwt(data["token"]["access_token"])
        assert payload["sub"] == str(teacher.user_id)
        assert payload["role"] == "teacher"

    def test_wrong_password_returns_401(self, client: TestClient, teacher: User) -> None:
        response = client.post("/api/auth/login", json={"email": teacher.email, "password": "not-the-password"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Invalid email or password"}

    def test_unknown_email_returns_same_error(self, client: TestClient, teacher: User) -> None:
        """Unknown accounts are indistinguishable from bad passwords."""
        response = client.post("/api/auth/login", json={"email": "nobody@school.edu.vn", "password": TEST_PASSWORD})

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid email or password"

    def test_inactive_user_cannot_login(
        self, client: TestClient, admin_headers: dict[str, str], teacher: User
    ) -> None:
        client.patch(f"/api/users/{teacher.user_id}", json={"is_active": False}, headers=admin_headers)

        response = client.post("/api/auth/login", json={"email": teacher.email, "password": TEST_PASSWORD})

        assert response.status_code == 401

    def test_malformed_email_returns_400(self, client: TestClient) -> None:
        response = client.post("/api/auth/login", json={"email": "not-an-email", "password": TEST_PASSWORD})

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"].startswith("email:")


class TestMe:
    """Tests for GET /api/auth/me."""

    def test_returns_current_user(self, client: TestClient, student: User, student_headers: dict[str, str]) -> None:
        response = client.get("/api/auth/me", headers=student_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["user_id"] == str(student.user_id)
        assert data["student_code"] == student.student_code

    def test_token_in_query_string(self, client: TestClient, student_headers: dict[str, str]) -> None:
        token = student_headers["Authorization"].removeprefix("Bearer ")

        response = client.get("/api/auth/me", params={"token": token})

        assert response.status_code == 200

    def test_no_token_returns_401(self, client: TestClient) -> None:
        response = client.get("/api/auth/me")

        assert response.status_code == 401
        assert response.json()["error"] == "Not authenticated"

    def test_expired_token_returns_401(self, client: TestClient, student: User) -> None:
        token = encode_jwt({
            "sub": str(student.user_id),
            "role": student.role.value,
            "exp": datetime.datetime.now(datetime.UTC) - datetime.timedelta(minutes=1),
        })

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid or expired token"

    def test_deleted_user_returns_401(self, client: TestClient) -> None:
        token = encode_jwt({
            "sub": str(UserID()),
            "role": "admin",
            "exp": datetime.datetime.now(datetime.UTC) + datetime.timedelta(minutes=5),
            "iat": datetime.datetime.now(datetime.UTC),
        })

        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 401
        assert response.json()["error"] == "User not found"


class TestListUsers:
    """Tests for GET /api/users."""

    def test_filter_by_role_with_pagination(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        user_factory: t.Callable[..., User],
    ) -> None:
        for _ in range(3):
            user_factory(role=UserRole.Teacher)
        user_factory(role=UserRole.Student)

        response = client.get("/api/users", params={"role": "teacher", "limit": 2}, headers=admin_headers)

        assert response.status_code == 200
        body = response.json()
        assert len(body["data"]) == 2
        assert all(u["role"] == "teacher" for u in body["data"])
        assert body["pagination"] == {"page": 1, "limit": 2, "total": 3, "total_pages": 2}

    def test_search_matches_name(
        self, client: TestClient, admin_headers: dict[str, str], user_factory: t.Callable[..., User]
    ) -> None:
        user_factory(role=UserRole.Student, full_name="Pham Quoc Huy")
        user_factory(role=UserRole.Student, full_name="Do Thanh Mai")

        response = client.get("/api/users", params={"search": "quoc"}, headers=admin_headers)

        assert [u["full_name"] for u in response.json()["data"]] == ["Pham Quoc Huy"]

    def test_teacher_is_forbidden(self, client: TestClient, teacher_headers: dict[str, str]) -> None:
        response = client.get("/api/users", headers=teacher_headers)

        assert response.status_code == 403
        assert response.json()["error"] == "Role 'teacher' not authorized for this resource"


class TestCreateUser:
    """Tests for POST /api/users."""

    def test_create_user(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        response = client.post(
            "/api/users",
            json={
                "email": "hoa@school.edu.vn",
                "full_name": "Vu Thi Hoa",
                "role": "teacher",
                "password": "s3cure-password",
                "employee_code": "GV042",
            },
            headers=admin_headers,
        )

        assert response.status_code == 201
        data = response.json()["data"]
        assert data["email"] == "hoa@school.edu.vn"
        assert data["employee_code"] == "GV042"
        assert data["is_active"] is True

        login = client.post("/api/auth/login", json={"email": "hoa@school.edu.vn", "password": "s3cure-password"})
        assert login.status_code == 200

    def test_duplicate_email_returns_409(
        self, client: TestClient, admin_headers: dict[str, str], teacher: User
    ) -> None:
        response = client.post(
            "/api/users",
            json={"email": teacher.email, "full_name": "Someone", "role": "teacher", "password": TEST_PASSWORD},
            headers=admin_headers,
        )

        assert response.status_code == 409
        assert response.json()["error"] == "Email already registered"

    def test_short_password_returns_400(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        response = client.post(
            "/api/users",
            json={"email": "x@school.edu.vn", "full_name": "X", "role": "student", "password": "short"},
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"].startswith("password:")


class TestGetAndUpdateUser:
    """Tests for GET and PATCH /api/users/{user_id}."""

    def test_get_user(self, client: TestClient, admin_headers: dict[str, str], parent: User) -> None:
        response = client.get(f"/api/users/{parent.user_id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.json()["data"]["role"] == "parent"

    def test_get_unknown_user_returns_404(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        response = client.get(f"/api/users/{UserID()}", headers=admin_headers)

        assert response.status_code == 404
        assert response.json()["error"] == "User not found"

    def test_malformed_id_returns_400(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        response = client.get("/api/users/not-an-id", headers=admin_headers)

        assert response.status_code == 400

    def test_partial_update(self, client: TestClient, admin_headers: dict[str, str], teacher: User) -> None:
        response = client.patch(
            f"/api/users/{teacher.user_id}",
            json={"phone": "0901234567", "full_name": "Nguyen Thi Lan Anh"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["phone"] == "0901234567"
        assert data["full_name"] == "Nguyen Thi Lan Anh"
        assert data["email"] == teacher.email

    def test_update_to_taken_email_returns_409(
        self, client: TestClient, admin_headers: dict[str, str], teacher: User, student: User
    ) -> None:
        response = client.patch(
            f"/api/users/{teacher.user_id}", json={"email": student.email}, headers=admin_headers
        )

        assert response.status_code == 409

    def test_update_unknown_user_returns_404(self, client: TestClient, admin_headers: dict[str, str]) -> None:
        response = client.patch(f"/api/users/{UserID()}", json={"phone": "1"}, headers=admin_headers)

        assert response.status_code == 404


class TestChildren:
    """Tests for /api/users/{parent_id}/children."""

    def test_link_and_list_children(
        self,
        client: TestClient,
        admin_headers: dict[str, str],
        parent: User,
        user_factory: t.Callable[..., User],
    ) -> None:
        sibling = user_factory(role=UserRole.Student, full_name="Le Minh Chau")

        response = client.post(
            f"/api/users/{parent.user_id}/children",
            json={"student_id": str(sibling.user_id), "relationship": "father"},
            headers=admin_headers,
        )
        assert response.status_code == 201
        assert response.json()["data"]["relationship"] == "father"

        response = client.get(f"/api/users/{parent.user_id}/children", headers=admin_headers)

        names = sorted(c["full_name"] for c in response.json()["data"])
        assert names == ["Le Minh An", "Le Minh Chau"]

    def test_link_to_non_student_returns_404(
        self, client: TestClient, admin_headers: dict[str, str], parent: User, teacher: User
    ) -> None:
        response = client.post(
            f"/api/users/{parent.user_id}/children",
            json={"student_id": str(teacher.user_id)},
            headers=admin_headers,
        )

        assert response.status_code == 404
        assert response.json()["error"] == "Student not found"
