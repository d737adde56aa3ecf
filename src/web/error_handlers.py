"""
Custom error handlers for the News Aggregator API.

Maps service exceptions onto stable HTTP statuses and the
``{"error": ..., "details": [...]}`` response shape, and keeps
technical details out of responses.
"""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

from src.web.schemas import ErrorResponse
from src.web.services.article_service import SearchValidationError
from src.web.services.auth_service import AuthenticationError
from src.web.services.newsapi_client import NewsProviderConfigError, NewsProviderError
from src.web.services.user_service import (
    DuplicateUserError,
    UserNotFoundError,
    UserValidationError,
)


logger = logging.getLogger(__name__)

# User-friendly error messages (don't expose technical details)
ERROR_MESSAGES = {
    # User service errors
    "user_not_found": "User not found",
    "user_duplicate": "User with that email already exists",
    "user_validation": "Please check your account details and try again.",
    # Auth errors
    "invalid_credentials": "Invalid email or password",
    # News errors
    "news_disabled": "News feature is unavailable: NEWS_API_KEY is not configured",
    "news_unreachable": "Unable to reach external news provider",
    "article_not_found": "Article not found",
    "invalid_keyword": "Invalid search keyword",
    # Generic errors
    "route_not_found": "Route not found",
    "server_error": "Something went wrong on our end. Please try again in a few moments.",
    "validation_error": "Invalid request",
}

# Exception class -> (HTTP status, message key)
EXCEPTION_STATUS = {
    "UserNotFoundError": (status.HTTP_404_NOT_FOUND, "user_not_found"),
    "DuplicateUserError": (status.HTTP_409_CONFLICT, "user_duplicate"),
    "UserValidationError": (status.HTTP_400_BAD_REQUEST, "user_validation"),
    "AuthenticationError": (status.HTTP_401_UNAUTHORIZED, "invalid_credentials"),
    "TokenExpiredError": (status.HTTP_401_UNAUTHORIZED, "invalid_credentials"),
    "NewsProviderConfigError": (status.HTTP_503_SERVICE_UNAVAILABLE, "news_disabled"),
    "NewsProviderError": (status.HTTP_502_BAD_GATEWAY, "news_unreachable"),
    "SearchValidationError": (status.HTTP_400_BAD_REQUEST, "invalid_keyword"),
}


def get_friendly_message(exception: Exception) -> str:
    """
    Convert exception to user-friendly message.

    Provider errors keep the provider's own message when it has one;
    everything else maps to a fixed message.
    """
    exception_name = exception.__class__.__name__

    if exception_name == "NewsProviderError" and str(exception):
        return str(exception)

    entry = EXCEPTION_STATUS.get(exception_name)
    if entry is None:
        return ERROR_MESSAGES["server_error"]
    return ERROR_MESSAGES[entry[1]]


def error_response(status_code: int, message: str, details: list = None) -> JSONResponse:
    body = ErrorResponse(error=message, details=details or None)
    return JSONResponse(
        status_code=status_code, content=body.model_dump(exclude_none=True)
    )


async def service_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map a known service exception to its HTTP status and message."""
    status_code, _ = EXCEPTION_STATUS.get(
        exc.__class__.__name__,
        (status.HTTP_500_INTERNAL_SERVER_ERROR, "server_error"),
    )
    message = get_friendly_message(exc)

    if status_code >= 500:
        logger.error(f"{exc.__class__.__name__} in {request.method} {request.url.path}: {exc}")
    else:
        logger.info(f"{exc.__class__.__name__} in {request.method} {request.url.path}: {exc}")

    details = None
    if isinstance(exc, SearchValidationError):
        details = [{"path": "keyword", "message": str(exc)}]

    return error_response(status_code, message, details)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTPException as ``{"error": detail}``."""
    message = exc.detail
    if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
        message = ERROR_MESSAGES["route_not_found"]

    response = error_response(exc.status_code, str(message))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Catch-all exception handler for unexpected errors.

    Prevents stack traces and technical details from leaking to users.
    Logs full exception details for debugging.
    """
    logger.error(
        f"Unhandled exception in {request.method} {request.url.path}",
        exc_info=exc,
        extra={
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
        },
    )

    return error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, ERROR_MESSAGES["server_error"]
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors.

    Converts validation errors into ``[{"path", "message"}]`` details
    with a 400 status.
    """
    logger.warning(
        f"Validation error in {request.method} {request.url.path}: {exc.errors()}",
        extra={
            "method": request.method,
            "path": request.url.path,
        },
    )

    details = []
    for error in exc.errors():
        # Drop the "body"/"query"/"path" prefix from the location
        location = [str(part) for part in error.get("loc", ())[1:]]
        details.append(
            {
                "path": ".".join(location) if location else "<request.body>",
                "message": error.get("msg", ""),
            }
        )

    return error_response(
        status.HTTP_400_BAD_REQUEST, ERROR_MESSAGES["validation_error"], details
    )


def register_error_handlers(app: FastAPI) -> None:
    """Attach all exception handlers to the application."""
    for exception_class in (
        UserNotFoundError,
        DuplicateUserError,
        UserValidationError,
        AuthenticationError,
        NewsProviderConfigError,
        NewsProviderError,
        SearchValidationError,
    ):
        app.add_exception_handler(exception_class, service_exception_handler)

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, global_exception_handler)
