"""
Unit tests for auth and preference routes.

Tests account and session handling:
- POST /users/signup, /register: registration and validation
- POST /users/login, /login: token issuance
- GET/PUT /users/preferences, /preferences: normalized preferences
- Bearer token handling in require_user
"""

import jwt
import pytest
from datetime import datetime, timedelta, timezone
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from src.web.app import app
from src.web.config import settings
from src.web.database import get_db, get_test_db
from src.web.dependencies import get_article_cache, mask_email
from src.web.services import user_service


MOCK_USER = {
    "name": "Clark Kent",
    "email": "clark@superman.com",
    "password": "Krypt()n8",
    "preferences": ["movies", "comics"],
}


@pytest.fixture
def db():
    """Provide test database session."""
    yield from get_test_db()


@pytest.fixture
def client(db: Session, article_cache):
    """Provide test client with database override."""

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_article_cache] = lambda: article_cache
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def token(client: TestClient) -> str:
    client.post("/users/signup", json=MOCK_USER)
    response = client.post(
        "/users/login",
        json={"email": MOCK_USER["email"], "password": MOCK_USER["password"]},
    )
    return response.json()["token"]


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestRegister:
    """Tests for POST /users/signup and /register."""

    def test_signup_success(self, client: TestClient):
        response = client.post("/users/signup", json=MOCK_USER)

        assert response.status_code == 200
        assert response.json() == {"message": "User registered successfully"}

    def test_register_alias(self, client: TestClient):
        response = client.post("/register", json=MOCK_USER)

        assert response.status_code == 200

    @pytest.mark.parametrize(
        "preferences,expected",
        [
            ("technology", []),
            (["", "  Movies ", 1.0], ["movies", "1"]),
            (None, []),
        ],
    )
    def test_signup_normalizes_any_preference_shape(
        self, client: TestClient, db: Session, preferences, expected
    ):
        response = client.post("/users/signup", json={**MOCK_USER, "preferences": preferences})

        assert response.status_code == 200
        user = user_service.find_user_by_email(db, MOCK_USER["email"])
        assert user.preferences == expected

    def test_missing_email_rejected(self, client: TestClient):
        response = client.post(
            "/users/signup",
            json={"name": MOCK_USER["name"], "password": MOCK_USER["password"]},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid request"
        assert any(detail["path"] == "email" for detail in body["details"])

    def test_short_password_rejected(self, client: TestClient):
        response = client.post("/users/signup", json={**MOCK_USER, "password": "short"})

        assert response.status_code == 400

    def test_name_with_control_characters_rejected(self, client: TestClient):
        response = client.post("/users/signup", json={**MOCK_USER, "name": "<Clark>"})

        assert response.status_code == 400

    def test_duplicate_email_conflict(self, client: TestClient):
        client.post("/users/signup", json=MOCK_USER)

        response = client.post(
            "/users/signup", json={**MOCK_USER, "email": "CLARK@superman.com"}
        )

        assert response.status_code == 409
        assert response.json() == {"error": "User with that email already exists"}


class TestLogin:
    """Tests for POST /users/login and /login."""

    def test_login_returns_token(self, client: TestClient, token: str):
        payload = jwt.decode(token, settings.jwt_secret, algorithms=["HS256"])

        assert payload["email"] == MOCK_USER["email"]
        assert payload["name"] == MOCK_USER["name"]

    def test_login_wrong_password(self, client: TestClient):
        client.post("/users/signup", json=MOCK_USER)

        response = client.post(
            "/login", json={"email": MOCK_USER["email"], "password": "wrongpassword"}
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid email or password"}

    def test_login_unknown_user(self, client: TestClient):
        response = client.post(
            "/login", json={"email": "nobody@example.com", "password": "whatever1"}
        )

        assert response.status_code == 401


class TestPreferences:
    """Tests for GET/PUT /users/preferences."""

    def test_get_preferences(self, client: TestClient, token: str):
        response = client.get("/users/preferences", headers=bearer(token))

        assert response.status_code == 200
        assert response.json() == {"preferences": ["movies", "comics"]}

    def test_get_preferences_requires_token(self, client: TestClient):
        assert client.get("/users/preferences").status_code == 401

    def test_put_preferences(self, client: TestClient, token: str):
        response = client.put(
            "/users/preferences",
            json={"preferences": ["movies", "comics", "games"]},
            headers=bearer(token),
        )

        assert response.status_code == 200
        assert client.get("/preferences", headers=bearer(token)).json() == {
            "preferences": ["movies", "comics", "games"]
        }

    def test_put_preferences_normalizes(self, client: TestClient, token: str):
        response = client.put(
            "/preferences",
            json={"preferences": ["  Movies  ", "MOVIES", "\n\t", "sports", "123", "COMICS"]},
            headers=bearer(token),
        )

        assert response.json() == {"preferences": ["movies", "sports", "123", "comics"]}

    def test_put_non_list_clears_preferences(self, client: TestClient, token: str):
        response = client.put(
            "/preferences", json={"preferences": "technology"}, headers=bearer(token)
        )

        assert response.json() == {"preferences": []}


class TestBearerAuth:
    """Tests for Authorization header handling."""

    def test_missing_header(self, client: TestClient):
        response = client.get("/news")

        assert response.json() == {"error": "Authorization header missing or malformed"}

    def test_wrong_scheme(self, client: TestClient, token: str):
        response = client.get("/news", headers={"Authorization": f"Token {token}"})

        assert response.status_code == 401
        assert response.json()["error"] == "Authorization header missing or malformed"

    def test_scheme_is_case_insensitive(self, client: TestClient, token: str):
        response = client.get("/preferences", headers={"Authorization": f"bearer {token}"})

        assert response.status_code == 200

    def test_invalid_token(self, client: TestClient):
        response = client.get("/news", headers=bearer("garbage"))

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid or expired token"}

    def test_expired_token(self, client: TestClient, token: str):
        expired = jwt.encode(
            {
                "email": MOCK_USER["email"],
                "exp": datetime.now(timezone.utc) - timedelta(minutes=5),
            },
            settings.jwt_secret,
            algorithm="HS256",
        )

        response = client.get("/news", headers=bearer(expired))

        assert response.json() == {"error": "Token expired"}

    def test_token_for_unknown_user(self, client: TestClient):
        orphan = jwt.encode(
            {
                "email": "ghost@example.com",
                "exp": datetime.now(timezone.utc) + timedelta(minutes=5),
            },
            settings.jwt_secret,
            algorithm="HS256",
        )

        response = client.get("/news", headers=bearer(orphan))

        assert response.status_code == 401
        assert response.json() == {"error": "User not found for token"}


class TestMaskEmail:
    """Tests for mask_email helper."""

    @pytest.mark.parametrize(
        "email,expected",
        [
            ("clark@superman.com", "c***k@superman.com"),
            ("ab@x.io", "a*@x.io"),
            ("a@x.io", "***@x.io"),
            ("not-an-email", ""),
            (None, ""),
        ],
    )
    def test_mask_email(self, email, expected):
        assert mask_email(email) == expected


class TestMiscRoutes:
    """Tests for health and unknown routes."""

    def test_health(self, client: TestClient):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["news_provider_configured"] is True
        assert body["cache"]["keys"] == 0

    def test_unknown_route(self, client: TestClient):
        response = client.get("/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"error": "Route not found"}
