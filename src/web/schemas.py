"""
Pydantic schemas for the News Aggregator API.

Request/response models for FastAPI endpoints with validation.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import Any, Optional

from src.utils.constants import ValidationConstants
from src.web.services.preference_service import contains_control_chars


# Auth Schemas
class RegisterRequest(BaseModel):
    """Request schema for registering a new user."""

    name: str = Field(
        ...,
        min_length=ValidationConstants.MIN_NAME_LENGTH,
        max_length=ValidationConstants.MAX_NAME_LENGTH,
    )
    email: EmailStr
    password: str = Field(..., min_length=ValidationConstants.MIN_PASSWORD_LENGTH)
    # Normalized by the preference service, which tolerates any shape
    preferences: Any = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v: Any) -> Any:
        return v.strip() if isinstance(v, str) else v

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Reject names with control characters."""
        if contains_control_chars(v):
            raise ValueError("Name contains invalid control characters")
        return v


class LoginRequest(BaseModel):
    """Request schema for logging in."""

    email: EmailStr
    password: str = Field(..., min_length=1)


class TokenResponse(BaseModel):
    """Response schema for a successful login."""

    token: str


class MessageResponse(BaseModel):
    """Generic confirmation response."""

    message: str


# Preference Schemas
class PreferencesUpdate(BaseModel):
    """Request schema for replacing preferences."""

    preferences: Any = None


class PreferencesResponse(BaseModel):
    """Response schema for preferences."""

    preferences: list[str]


# News Schemas
class ArticleSnapshot(BaseModel):
    """Reduced article projection stored in read/favorite collections."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: Optional[str] = None
    description: Optional[str] = None
    url: Optional[str] = None
    source: Optional[str] = None
    published_at: Optional[str] = Field(None, alias="publishedAt")


class NewsResponse(BaseModel):
    """Response schema for article lists (provider fields are passed through)."""

    news: list[dict[str, Any]]


class SnapshotListResponse(BaseModel):
    """Response schema for a user's read/favorite collection."""

    news: list[ArticleSnapshot]


class ArticleMarkedResponse(BaseModel):
    """Response schema for read/favorite marking."""

    message: str
    article: ArticleSnapshot


# Error Response Schema
class ErrorDetail(BaseModel):
    """Single validation problem."""

    path: str
    message: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    details: Optional[list[ErrorDetail]] = None
