"""SQLAlchemy ORM models for the News Aggregator API."""

from sqlalchemy import (
    JSON,
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    CheckConstraint,
    UniqueConstraint,
    Index,
    text,
)
from sqlalchemy.orm import relationship, declarative_base

Base = declarative_base()


class User(Base):
    """User model - a registered account with topical preferences."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False, unique=True)
    password_hash = Column(String, nullable=False)
    preferences = Column(JSON, nullable=False, default=list)
    created_at = Column(String, nullable=False, server_default=text("(datetime('now'))"))

    # Relationships
    articles = relationship(
        "UserArticle", back_populates="user", cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"


class UserArticle(Base):
    """UserArticle model - an article snapshot in a user's read or favorite list."""

    __tablename__ = "user_articles"

    # Ordering within a collection is by id (highest = most recently touched)
    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    collection = Column(String, nullable=False)
    article_id = Column(String, nullable=False)
    title = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    url = Column(Text, nullable=True)
    source = Column(String, nullable=True)
    published_at = Column(String, nullable=True)
    added_at = Column(String, nullable=False, server_default=text("(datetime('now'))"))

    __table_args__ = (
        CheckConstraint(
            "collection IN ('read', 'favorite')",
            name="check_user_article_collection",
        ),
        UniqueConstraint(
            "user_id", "collection", "article_id", name="idx_user_article_unique"
        ),
        Index("idx_user_articles_user_collection", "user_id", "collection"),
    )

    # Relationships
    user = relationship("User", back_populates="articles")

    def to_snapshot(self) -> dict:
        return {
            "id": self.article_id,
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "source": self.source,
            "publishedAt": self.published_at,
        }

    def __repr__(self):
        return f"<UserArticle(user_id={self.user_id}, collection='{self.collection}', article_id='{self.article_id}')>"
