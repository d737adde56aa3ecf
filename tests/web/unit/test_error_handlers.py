"""
Unit tests for custom error handlers and user-friendly error messages.

Tests that all service exceptions are caught and converted to appropriate
HTTP responses with user-friendly messages (not technical details).
"""

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from pydantic import BaseModel

from src.web.error_handlers import (
    ERROR_MESSAGES,
    get_friendly_message,
    register_error_handlers,
)
from src.web.services.article_service import SearchValidationError
from src.web.services.auth_service import AuthenticationError, TokenExpiredError
from src.web.services.newsapi_client import NewsProviderConfigError, NewsProviderError
from src.web.services.user_service import (
    DuplicateUserError,
    UserNotFoundError,
    UserValidationError,
)


class Payload(BaseModel):
    count: int


def build_app(exception: Exception) -> FastAPI:
    """Create a throwaway app whose routes raise the given exception."""
    test_app = FastAPI()
    register_error_handlers(test_app)

    @test_app.get("/boom")
    async def boom():
        raise exception

    @test_app.post("/payload")
    async def payload(body: Payload):
        return {"count": body.count}

    @test_app.get("/forbidden")
    async def forbidden():
        raise HTTPException(status_code=403, detail="Nope")

    return test_app


def call(exception: Exception, path: str = "/boom", **kwargs):
    # Don't raise server exceptions - we want to test error responses
    with TestClient(build_app(exception), raise_server_exceptions=False) as client:
        if "json" in kwargs:
            return client.post(path, **kwargs)
        return client.get(path)


class TestServiceExceptionHandlers:
    """Tests for mapping service exceptions to statuses."""

    @pytest.mark.parametrize(
        "exception,status_code,message",
        [
            (UserNotFoundError("x"), 404, "User not found"),
            (DuplicateUserError("x"), 409, "User with that email already exists"),
            (UserValidationError("x"), 400, ERROR_MESSAGES["user_validation"]),
            (AuthenticationError("x"), 401, "Invalid email or password"),
            (NewsProviderConfigError("x"), 503, ERROR_MESSAGES["news_disabled"]),
            (NewsProviderError("rate limited"), 502, "rate limited"),
        ],
    )
    def test_status_mapping(self, exception, status_code, message):
        response = call(exception)

        assert response.status_code == status_code
        assert response.json() == {"error": message}

    def test_search_validation_has_keyword_details(self):
        response = call(SearchValidationError("Keyword is required"))

        assert response.status_code == 400
        assert response.json() == {
            "error": "Invalid search keyword",
            "details": [{"path": "keyword", "message": "Keyword is required"}],
        }

    def test_unexpected_exception_is_hidden(self):
        response = call(RuntimeError("database password is hunter2"))

        assert response.status_code == 500
        assert response.json() == {"error": ERROR_MESSAGES["server_error"]}
        assert "hunter2" not in response.text
        assert "Traceback" not in response.text


class TestHttpAndValidationHandlers:
    """Tests for HTTPException and request validation rendering."""

    def test_http_exception_uses_error_key(self):
        response = call(RuntimeError(), path="/forbidden")

        assert response.status_code == 403
        assert response.json() == {"error": "Nope"}

    def test_unknown_route(self):
        response = call(RuntimeError(), path="/missing")

        assert response.status_code == 404
        assert response.json() == {"error": "Route not found"}

    def test_validation_error_details(self):
        response = call(RuntimeError(), path="/payload", json={"count": "many"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "Invalid request"
        assert body["details"][0]["path"] == "count"
        assert body["details"][0]["message"]


class TestGetFriendlyMessage:
    """Tests for get_friendly_message."""

    def test_provider_error_keeps_message(self):
        assert get_friendly_message(NewsProviderError("Upstream said no")) == "Upstream said no"

    def test_provider_error_without_message(self):
        assert get_friendly_message(NewsProviderError()) == ERROR_MESSAGES["news_unreachable"]

    def test_expired_token_maps_to_credentials_message(self):
        assert get_friendly_message(TokenExpiredError("Token expired")) == (
            ERROR_MESSAGES["invalid_credentials"]
        )

    def test_unknown_exception(self):
        assert get_friendly_message(KeyError("secret")) == ERROR_MESSAGES["server_error"]
