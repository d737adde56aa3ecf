"""
Query planner for the News Aggregator API.

Maps a user's normalized preferences (plus optional date-range options)
onto a NewsAPI request: which endpoint to call, which parameters to send,
and the cache key the result is stored under.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict

from src.utils.constants import NewsApiConstants, PreferenceConstants, ValidationConstants
from src.web.services.preference_service import normalize_preferences


class QueryPlan(BaseModel):
    """Resolved provider request shape."""

    model_config = ConfigDict(frozen=True)

    endpoint: str
    parameters: dict[str, Any]
    cache_key_suffix: str

    @property
    def cache_key(self) -> str:
        return f"{self.endpoint}:{self.cache_key_suffix}"


def utc_today() -> date:
    return datetime.now(timezone.utc).date()


def parse_iso_date(value: Any) -> Optional[date]:
    """
    Parse a strict YYYY-MM-DD date string.

    Returns:
        The parsed date, or None for anything else (including None)
    """
    if not isinstance(value, str):
        return None

    value = value.strip()
    if not ValidationConstants.ISO_DATE_PATTERN.match(value):
        return None

    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _parse_days(days: Any) -> Optional[int]:
    if days is None or isinstance(days, bool):
        return None
    try:
        count = int(days)
    except (TypeError, ValueError):
        return None
    return count if count > 0 else None


def resolve_date_window(
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    days: Union[int, str, None] = None,
    today: Optional[date] = None,
) -> tuple[str, str]:
    """
    Resolve the search window as a pair of ISO dates.

    Resolution order:
        1. explicit from + to, when both are valid dates
        2. explicit from, with to defaulting to today
        3. ``days`` before today, ending today
        4. the default window ending today
    """
    today = today or utc_today()
    start = parse_iso_date(date_from)
    end = parse_iso_date(date_to)

    if start and end:
        return start.isoformat(), end.isoformat()
    if start:
        return start.isoformat(), today.isoformat()

    day_count = _parse_days(days)
    if day_count:
        return (today - timedelta(days=day_count)).isoformat(), today.isoformat()

    default_start = today - timedelta(days=NewsApiConstants.DEFAULT_WINDOW_DAYS)
    return default_start.isoformat(), today.isoformat()


def find_headline_category(preferences: list[str]) -> Optional[str]:
    """Return the first preference (by position) that is a headline category."""
    for preference in preferences:
        if preference.lower() in PreferenceConstants.HEADLINE_CATEGORIES:
            return preference.lower()
    return None


def plan_query(
    preferences: Any,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    days: Union[int, str, None] = None,
    today: Optional[date] = None,
) -> QueryPlan:
    """
    Build the provider query for a set of preferences.

    A preference naming one of the provider's headline categories selects
    the top-headlines endpoint; the date options are ignored there.
    Everything else becomes a free-text search over the resolved window.

    Args:
        preferences: Raw or normalized preference list
        date_from: Optional window start (YYYY-MM-DD)
        date_to: Optional window end (YYYY-MM-DD)
        days: Optional window length in days ending today; anything but a
            positive integer falls back to the default window
        today: Reference date, defaults to the current UTC date

    Returns:
        QueryPlan with endpoint, parameters and cache key suffix
    """
    normalized = normalize_preferences(preferences)

    category = find_headline_category(normalized)
    if category:
        return QueryPlan(
            endpoint=NewsApiConstants.TOP_HEADLINES,
            parameters={
                "category": category,
                "country": NewsApiConstants.DEFAULT_COUNTRY,
                "pageSize": NewsApiConstants.PAGE_SIZE,
            },
            cache_key_suffix=f"category:{category}",
        )

    query = " OR ".join(normalized) if normalized else NewsApiConstants.DEFAULT_QUERY
    window_from, window_to = resolve_date_window(date_from, date_to, days, today)
    signature = "|".join(normalized) if normalized else "default"

    return QueryPlan(
        endpoint=NewsApiConstants.EVERYTHING,
        parameters={
            "q": query,
            "from": window_from,
            "to": window_to,
            "language": NewsApiConstants.DEFAULT_LANGUAGE,
            "sortBy": NewsApiConstants.DEFAULT_SORT,
            "pageSize": NewsApiConstants.PAGE_SIZE,
        },
        cache_key_suffix=f"search:{signature}:{window_from}:{window_to}",
    )
