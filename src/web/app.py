"""FastAPI application for the News Aggregator API.

Users register, log in, set topical preferences, and read/search news
served from a shared TTL cache in front of NewsAPI.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from src.utils.constants import NewsApiConstants
from src.utils.logger import setup_logging
from src.web.config import settings
from src.web.database import get_db, init_db
from src.web.dependencies import get_article_cache, require_user
from src.web.error_handlers import ERROR_MESSAGES, register_error_handlers
from src.web.models import User
from src.web.schemas import (
    ArticleMarkedResponse,
    LoginRequest,
    MessageResponse,
    NewsResponse,
    PreferencesResponse,
    PreferencesUpdate,
    RegisterRequest,
    SnapshotListResponse,
    TokenResponse,
)
from src.web.services import article_service, auth_service, user_service
from src.web.services.news_cache_service import ArticleCache
from src.web.services.newsapi_client import NewsApiClient, NewsProviderConfigError
from src.web.services.query_planner import plan_query

logger = logging.getLogger(__name__)


def build_article_cache() -> ArticleCache:
    """Create the article cache from settings."""
    client = NewsApiClient(
        api_key=settings.news_api_key,
        base_url=settings.news_api_base_url,
        timeout_seconds=settings.news_api_timeout_seconds,
    )
    return ArticleCache(
        client,
        ttl_seconds=settings.news_cache_ttl_seconds,
        refresh_interval_minutes=settings.news_refresh_interval_minutes,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle (startup/shutdown)."""
    # Startup
    if not settings.testing:
        setup_logging(settings.log_level, settings.log_file)
    logger.info("Starting News Aggregator API")

    init_db()

    cache = build_article_cache()
    app.state.article_cache = cache

    if not cache.is_enabled:
        logger.warning("NEWS_API_KEY is not configured; news endpoints are degraded")

    # Background refresh would interfere with test fixtures
    if not settings.testing:
        cache.start()

    yield

    # Shutdown
    logger.info("Shutting down News Aggregator API")
    cache.shutdown()


# Initialize FastAPI app with lifespan
app = FastAPI(title=settings.app_title, lifespan=lifespan)

# Register exception handlers
register_error_handlers(app)


def _require_news_enabled(cache: ArticleCache) -> None:
    if not cache.is_enabled:
        raise NewsProviderConfigError("Missing NEWS_API_KEY")


@app.get("/health")
async def health_check(cache: ArticleCache = Depends(get_article_cache)):
    """Health check endpoint."""
    return {
        "status": "healthy",
        "news_provider_configured": cache.is_enabled,
        "cache": cache.stats(),
    }


# Auth routes


@app.post("/register", response_model=MessageResponse)
@app.post("/users/signup", response_model=MessageResponse)
async def register(payload: RegisterRequest, db: Session = Depends(get_db)):
    """Register a new user."""
    auth_service.register_user(
        db,
        name=payload.name,
        email=payload.email,
        password=payload.password,
        preferences=payload.preferences,
    )
    return {"message": "User registered successfully"}


@app.post("/login", response_model=TokenResponse)
@app.post("/users/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: Session = Depends(get_db)):
    """Exchange credentials for a bearer token."""
    token = auth_service.login_user(db, payload.email, payload.password)
    return {"token": token}


# Preference routes


@app.get("/preferences", response_model=PreferencesResponse)
@app.get("/users/preferences", response_model=PreferencesResponse)
async def get_preferences(user: User = Depends(require_user)):
    """Get the caller's preferences."""
    return {"preferences": user.preferences or []}


@app.put("/preferences", response_model=PreferencesResponse)
@app.put("/users/preferences", response_model=PreferencesResponse)
async def update_preferences(
    payload: PreferencesUpdate,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
):
    """Normalize and store the caller's preferences."""
    updated = user_service.update_user_preferences(db, user.email, payload.preferences)
    return {"preferences": updated.preferences}


# News routes


@app.get("/news")
async def get_news(
    date_from: Optional[str] = Query(None, alias="from"),
    date_to: Optional[str] = Query(None, alias="to"),
    days: Optional[str] = Query(None),
    user: User = Depends(require_user),
    cache: ArticleCache = Depends(get_article_cache),
):
    """
    Get articles for the caller's preferences.

    Without a provider key this degrades to an empty list with a notice
    instead of an error.
    """
    if not cache.is_enabled:
        return {"news": [], "notice": NewsApiConstants.MISSING_KEY_NOTICE}

    plan = plan_query(user.preferences or [], date_from=date_from, date_to=date_to, days=days)
    entry = await cache.ensure_articles(plan)
    return {"news": entry.articles}


@app.get("/news/read", response_model=SnapshotListResponse)
async def get_read_news(
    user: User = Depends(require_user), db: Session = Depends(get_db)
):
    """Get the caller's read articles, most recent first."""
    return {"news": user_service.get_read_articles(db, user)}


@app.get("/news/favorites", response_model=SnapshotListResponse)
async def get_favorite_news(
    user: User = Depends(require_user), db: Session = Depends(get_db)
):
    """Get the caller's favorite articles, most recent first."""
    return {"news": user_service.get_favorite_articles(db, user)}


async def _resolve_snapshot(cache: ArticleCache, user: User, article_id: str) -> dict:
    _require_news_enabled(cache)

    article = await article_service.find_article_by_id(
        cache, user.preferences or [], article_id
    )
    if article is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=ERROR_MESSAGES["article_not_found"],
        )
    return article_service.to_snapshot(article)


@app.post("/news/{article_id}/read", response_model=ArticleMarkedResponse)
async def mark_article_read(
    article_id: str,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
    cache: ArticleCache = Depends(get_article_cache),
):
    """Mark an article from the caller's current feed as read."""
    snapshot = await _resolve_snapshot(cache, user, article_id)
    user_service.add_read_article(db, user, snapshot)
    return {"message": "Article marked as read", "article": snapshot}


@app.post("/news/{article_id}/favorite", response_model=ArticleMarkedResponse)
async def mark_article_favorite(
    article_id: str,
    user: User = Depends(require_user),
    db: Session = Depends(get_db),
    cache: ArticleCache = Depends(get_article_cache),
):
    """Mark an article from the caller's current feed as favorite."""
    snapshot = await _resolve_snapshot(cache, user, article_id)
    user_service.add_favorite_article(db, user, snapshot)
    return {"message": "Article added to favorites", "article": snapshot}


@app.get("/news/search/{keyword}", response_model=NewsResponse)
async def search_news(
    keyword: str,
    user: User = Depends(require_user),
    cache: ArticleCache = Depends(get_article_cache),
):
    """Search the caller's current feed by keyword."""
    keyword = article_service.validate_search_keyword(keyword)
    _require_news_enabled(cache)

    results = await article_service.search_articles(cache, user.preferences or [], keyword)
    return {"news": results}
