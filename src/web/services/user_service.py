"""
User service for the News Aggregator API.

Stores user accounts, their normalized preferences, and their read and
favorite article collections.
"""

from typing import Any, Optional
from sqlalchemy.orm import Session

from src.utils.constants import CollectionConstants
from src.web.models import User, UserArticle
from src.web.services.preference_service import normalize_preferences


# Custom Exceptions
class UserServiceError(Exception):
    """Base exception for user service errors."""

    pass


class UserNotFoundError(UserServiceError):
    """Raised when user is not found."""

    pass


class UserValidationError(UserServiceError):
    """Raised when user data validation fails."""

    pass


class DuplicateUserError(UserServiceError):
    """Raised when registering an email that is already taken."""

    pass


def normalize_email(email: Optional[str]) -> str:
    return email.strip().lower() if email else ""


def find_user_by_email(db: Session, email: Optional[str]) -> Optional[User]:
    """
    Look up a user by email (case- and whitespace-insensitive).

    Returns:
        User object, or None if no user has that email
    """
    normalized = normalize_email(email)
    if not normalized:
        return None

    return db.query(User).filter(User.email == normalized).first()


def save_user(
    db: Session,
    name: str,
    email: str,
    password_hash: str,
    preferences: Any = None,
) -> User:
    """
    Create a new user.

    Args:
        db: Database session
        name: Display name
        email: Email address (stored trimmed and lowercased)
        password_hash: Already-hashed password
        preferences: Raw preferences, normalized before storing

    Returns:
        Created User object

    Raises:
        UserValidationError: If name or email is missing
        DuplicateUserError: If the email is already registered
    """
    normalized_email = normalize_email(email)

    if not normalized_email:
        raise UserValidationError("Email is required")

    if not name or not name.strip():
        raise UserValidationError("Name cannot be empty")

    if find_user_by_email(db, normalized_email):
        raise DuplicateUserError("User with that email already exists")

    user = User(
        name=name.strip(),
        email=normalized_email,
        password_hash=password_hash,
        preferences=normalize_preferences(preferences),
    )

    db.add(user)
    db.commit()
    db.refresh(user)

    return user


def update_user_preferences(db: Session, email: str, preferences: Any) -> User:
    """
    Replace a user's preferences.

    Args:
        db: Database session
        email: User email
        preferences: Raw preferences, normalized before storing

    Returns:
        Updated User object

    Raises:
        UserNotFoundError: If user doesn't exist
    """
    user = find_user_by_email(db, email)

    if user is None:
        raise UserNotFoundError("User not found")

    user.preferences = normalize_preferences(preferences)
    db.commit()
    db.refresh(user)

    return user


def _add_article(db: Session, user: User, collection: str, snapshot: dict) -> UserArticle:
    """
    Insert a snapshot at the front of a collection.

    An existing snapshot with the same article id is replaced, so the
    article moves to the front instead of appearing twice.
    """
    if collection not in CollectionConstants.ALL:
        raise UserValidationError(f"Unknown collection '{collection}'")

    article_id = snapshot.get("id")
    if not article_id:
        raise UserValidationError("Article snapshot must have an id")

    existing = (
        db.query(UserArticle)
        .filter(
            UserArticle.user_id == user.id,
            UserArticle.collection == collection,
            UserArticle.article_id == article_id,
        )
        .first()
    )
    if existing:
        db.delete(existing)
        db.flush()

    user_article = UserArticle(
        user_id=user.id,
        collection=collection,
        article_id=article_id,
        title=snapshot.get("title"),
        description=snapshot.get("description"),
        url=snapshot.get("url"),
        source=snapshot.get("source"),
        published_at=snapshot.get("publishedAt"),
    )

    db.add(user_article)
    db.commit()
    db.refresh(user_article)

    return user_article


def _get_articles(db: Session, user: User, collection: str) -> list[dict]:
    rows = (
        db.query(UserArticle)
        .filter(UserArticle.user_id == user.id, UserArticle.collection == collection)
        .order_by(UserArticle.id.desc())
        .all()
    )
    return [row.to_snapshot() for row in rows]


def add_read_article(db: Session, user: User, snapshot: dict) -> UserArticle:
    """Mark an article as read (most recent first, no duplicates)."""
    return _add_article(db, user, CollectionConstants.READ, snapshot)


def add_favorite_article(db: Session, user: User, snapshot: dict) -> UserArticle:
    """Mark an article as favorite (most recent first, no duplicates)."""
    return _add_article(db, user, CollectionConstants.FAVORITE, snapshot)


def get_read_articles(db: Session, user: User) -> list[dict]:
    """Get a user's read-article snapshots, most recent first."""
    return _get_articles(db, user, CollectionConstants.READ)


def get_favorite_articles(db: Session, user: User) -> list[dict]:
    """Get a user's favorite-article snapshots, most recent first."""
    return _get_articles(db, user, CollectionConstants.FAVORITE)
