"""
Authentication service for the News Aggregator API.

Password hashing with bcrypt and bearer tokens signed with PyJWT.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from sqlalchemy.orm import Session

from src.utils.constants import AuthConstants
from src.web.config import settings
from src.web.models import User
from src.web.services import user_service

logger = logging.getLogger(__name__)


# Custom Exceptions
class AuthServiceError(Exception):
    """Base exception for authentication errors."""

    pass


class AuthenticationError(AuthServiceError):
    """Raised when credentials or tokens are rejected."""

    pass


class TokenExpiredError(AuthenticationError):
    """Raised when a token signature is valid but it has expired."""

    pass


def _password_bytes(password: str) -> bytes:
    return password.encode("utf-8")[: AuthConstants.BCRYPT_MAX_PASSWORD_BYTES]


def hash_password(password: str, rounds: Optional[int] = None) -> str:
    salt = bcrypt.gensalt(rounds=rounds or settings.bcrypt_rounds)
    return bcrypt.hashpw(_password_bytes(password), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(_password_bytes(password), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        logger.warning("Stored password hash could not be parsed")
        return False


def sign_token(payload: dict, expires_minutes: Optional[int] = None) -> str:
    """
    Sign a bearer token for the given claims.

    Args:
        payload: Claims to embed (email and name)
        expires_minutes: Lifetime override, defaults to the configured expiry

    Returns:
        Encoded JWT string
    """
    lifetime = timedelta(minutes=expires_minutes or settings.jwt_expires_minutes)
    claims = {**payload, "exp": datetime.now(timezone.utc) + lifetime}
    return jwt.encode(claims, settings.jwt_secret, algorithm=AuthConstants.JWT_ALGORITHM)


def verify_token(token: str) -> dict:
    """
    Decode and verify a bearer token.

    Raises:
        TokenExpiredError: If the token has expired
        AuthenticationError: If the token is invalid
    """
    try:
        return jwt.decode(
            token, settings.jwt_secret, algorithms=[AuthConstants.JWT_ALGORITHM]
        )
    except jwt.ExpiredSignatureError as e:
        raise TokenExpiredError("Token expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError("Invalid or expired token") from e


def register_user(
    db: Session, name: str, email: str, password: str, preferences=None
) -> User:
    """
    Register a new account.

    Raises:
        DuplicateUserError: If the email is already registered
    """
    if user_service.find_user_by_email(db, email):
        raise user_service.DuplicateUserError("User with that email already exists")

    user = user_service.save_user(
        db,
        name=name,
        email=email,
        password_hash=hash_password(password),
        preferences=preferences,
    )
    logger.info(f"Registered user {user.id}")
    return user


def login_user(db: Session, email: str, password: str) -> str:
    """
    Check credentials and issue a token.

    Returns:
        Signed bearer token

    Raises:
        AuthenticationError: If the email is unknown or the password is wrong
    """
    user = user_service.find_user_by_email(db, email)

    if user is None or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid email or password")

    return sign_token({"email": user.email, "name": user.name})
