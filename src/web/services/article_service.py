"""
Article lookup and search for the News Aggregator API.

Resolves articles by id or keyword against the cached result set for a
user's default query window, fetching or refreshing the entry as needed.
"""

import logging
from typing import Any, Optional

from src.utils.constants import ValidationConstants
from src.web.services.news_cache_service import ArticleCache
from src.web.services.preference_service import contains_control_chars
from src.web.services.query_planner import plan_query

logger = logging.getLogger(__name__)

SEARCHABLE_FIELDS = ("title", "description", "content", "author")


class SearchValidationError(Exception):
    """Raised when a search keyword is rejected."""

    pass


def validate_search_keyword(keyword: Optional[str]) -> str:
    """
    Validate a search keyword.

    Args:
        keyword: Raw (already URL-decoded) keyword

    Returns:
        Trimmed keyword

    Raises:
        SearchValidationError: If empty, too long, or containing control characters
    """
    keyword = (keyword or "").strip()

    if not keyword:
        raise SearchValidationError("Keyword is required")

    if len(keyword) > ValidationConstants.MAX_KEYWORD_LENGTH:
        raise SearchValidationError(
            f"Keyword must be {ValidationConstants.MAX_KEYWORD_LENGTH} characters or fewer"
        )

    if contains_control_chars(keyword):
        raise SearchValidationError("Keyword contains invalid control characters")

    return keyword


def get_source_name(article: dict) -> Optional[str]:
    source = article.get("source")
    if isinstance(source, dict):
        return source.get("name")
    if isinstance(source, str):
        return source
    return None


def matches_keyword(article: dict, keyword: str) -> bool:
    """Case-insensitive substring match over the searchable article fields."""
    needle = keyword.lower()
    values: list[Any] = [article.get(name) for name in SEARCHABLE_FIELDS]
    values.append(get_source_name(article))

    return any(isinstance(value, str) and needle in value.lower() for value in values)


def to_snapshot(article: dict) -> dict:
    """Reduce an article to the fields kept in a user's collections."""
    return {
        "id": article.get("id"),
        "title": article.get("title"),
        "description": article.get("description"),
        "url": article.get("url"),
        "source": get_source_name(article),
        "publishedAt": article.get("publishedAt"),
    }


async def find_article_by_id(
    cache: ArticleCache, preferences: list[str], article_id: str
) -> Optional[dict]:
    """
    Find an article in the user's default-window cache entry.

    Returns:
        The article dict, or None if the id is not in the current result set
    """
    entry = await cache.ensure_articles(plan_query(preferences))

    for article in entry.articles:
        if article.get("id") == article_id:
            return article

    logger.debug(f"Article {article_id} not found in {entry.plan.cache_key}")
    return None


async def search_articles(
    cache: ArticleCache, preferences: list[str], keyword: str
) -> list[dict]:
    """
    Search the user's default-window cache entry by keyword.

    Returns:
        Matching articles in cache order (empty list if none match)
    """
    entry = await cache.ensure_articles(plan_query(preferences))
    return [article for article in entry.articles if matches_keyword(article, keyword)]
