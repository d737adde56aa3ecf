"""
FastAPI dependencies for the News Aggregator API.

Provides dependency injection for database sessions, the shared article
cache, and the authenticated user.
"""

import logging
from typing import Optional
from fastapi import Header, HTTPException, Request, status, Depends
from sqlalchemy.orm import Session

from src.utils.constants import AuthConstants
from src.web.database import get_db
from src.web.models import User
from src.web.services import auth_service, user_service
from src.web.services.news_cache_service import ArticleCache

logger = logging.getLogger(__name__)


def mask_email(email: Optional[str]) -> str:
    """Mask the local part of an email for logging (a***e@example.com)."""
    if not email or "@" not in email:
        return ""

    local, _, domain = email.partition("@")
    if len(local) <= 1:
        return f"***@{domain}"
    if len(local) == 2:
        return f"{local[0]}*@{domain}"
    return f"{local[0]}{'*' * (len(local) - 2)}{local[-1]}@{domain}"


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=message)


def require_user(
    request: Request,
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db),
) -> User:
    """
    Require an authenticated user from the Authorization header.

    Args:
        request: Incoming request (used for log context)
        authorization: "Bearer <token>" header value
        db: Database session

    Returns:
        User object for the token's email

    Raises:
        HTTPException: 401 if the header, token or user is invalid

    Example:
        @app.get("/news")
        async def get_news(user: User = Depends(require_user)):
            ...
    """
    match = AuthConstants.BEARER_PATTERN.match(authorization or "")
    if not match:
        raise _unauthorized("Authorization header missing or malformed")

    token = match.group(1).strip()
    if not token:
        raise _unauthorized("Token missing")

    try:
        payload = auth_service.verify_token(token)
    except auth_service.TokenExpiredError:
        raise _unauthorized("Token expired")
    except auth_service.AuthenticationError:
        raise _unauthorized("Invalid or expired token")

    email = payload.get("email")
    user = user_service.find_user_by_email(db, email)
    if not user:
        client_ip = request.client.host if request.client else "unknown"
        logger.warning(
            f"Token validated but user not found - email: {mask_email(email)}, ip: {client_ip}"
        )
        raise _unauthorized("User not found for token")

    return user


def get_article_cache(request: Request) -> ArticleCache:
    """Get the process-wide article cache created in the app lifespan."""
    return request.app.state.article_cache


# Re-export get_db for convenience
__all__ = ["get_db", "get_article_cache", "require_user"]
