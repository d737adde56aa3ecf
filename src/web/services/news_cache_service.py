"""
Article cache for the News Aggregator API.

In-memory, TTL-based read-through cache over the NewsAPI client. Entries
are keyed by query plan (endpoint + query signature) and shared by every
user whose preferences resolve to the same plan. A background APScheduler
job re-fetches every known key periodically so popular plans stay warm.

At most one provider call is in flight per key; concurrent callers for the
same key await the same fetch. Entries are never evicted: keys are bounded
by the category set plus the users' distinct preference combinations.
"""

import asyncio
import hashlib
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from apscheduler.job import Job
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.utils.constants import CacheConstants
from src.web.services.newsapi_client import NewsApiClient, NewsProviderError
from src.web.services.query_planner import QueryPlan

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """Last successful fetch for one query plan."""

    plan: QueryPlan
    articles: list[dict] = field(default_factory=list)
    updated_at: float = 0.0

    @property
    def endpoint(self) -> str:
        return self.plan.endpoint

    @property
    def parameters(self) -> dict:
        return self.plan.parameters


def compute_article_id(article: dict) -> str:
    """
    Derive a stable id for an article.

    Uses the URL when present, otherwise title + publishedAt. The same
    input always produces the same id.
    """
    url = article.get("url")
    if url:
        key = f"url:{url}"
    else:
        key = f"title:{article.get('title') or ''}|published:{article.get('publishedAt') or ''}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()[:16]


def assign_article_id(article: dict) -> dict:
    """Return a copy of the article carrying an id (existing ids are kept)."""
    if article.get("id"):
        return dict(article)
    return {**article, "id": compute_article_id(article)}


class ArticleCache:
    """Read-through article cache with background refresh."""

    def __init__(
        self,
        client: NewsApiClient,
        ttl_seconds: float = CacheConstants.DEFAULT_TTL_SECONDS,
        refresh_interval_minutes: float = CacheConstants.DEFAULT_REFRESH_INTERVAL_MINUTES,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.refresh_interval_minutes = refresh_interval_minutes
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, asyncio.Task] = {}
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def is_enabled(self) -> bool:
        """Whether the provider credential is configured."""
        return self.client.is_configured

    def get_entry(self, plan: QueryPlan) -> Optional[CacheEntry]:
        return self._entries.get(plan.cache_key)

    def is_fresh(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.updated_at < self.ttl_seconds

    def keys(self) -> list[str]:
        return list(self._entries)

    def stats(self) -> dict:
        return {
            "keys": len(self._entries),
            "in_flight": len(self._in_flight),
            "ttl_seconds": self.ttl_seconds,
            "refresh_running": bool(self._scheduler and self._scheduler.running),
        }

    async def ensure_articles(self, plan: QueryPlan) -> CacheEntry:
        """
        Return the cache entry for a plan, fetching it when absent or expired.

        A live entry is returned unchanged. On an upstream failure a stale
        entry is served if one exists; otherwise the error propagates.

        Raises:
            NewsProviderConfigError: If the provider credential is missing
            NewsProviderError: If the fetch failed and nothing is cached
        """
        entry = self._entries.get(plan.cache_key)
        if entry and self.is_fresh(entry):
            return entry

        try:
            return await self._fetch(plan)
        except NewsProviderError as e:
            if entry is None:
                logger.error(f"News fetch failed for {plan.cache_key}: {e}")
                raise
            logger.warning(f"Serving stale articles for {plan.cache_key}: {e}")
            return entry

    async def refresh_all(self) -> int:
        """
        Re-fetch every cached key.

        Failures are logged per key and leave the stale entry in place.

        Returns:
            Number of keys refreshed successfully
        """
        entries = list(self._entries.values())
        if not entries:
            return 0

        logger.info(f"Refreshing {len(entries)} cached news queries")

        refreshed = 0
        for entry in entries:
            try:
                await self._fetch(entry.plan)
                refreshed += 1
            except Exception as e:
                logger.error(f"Background refresh failed for {entry.plan.cache_key}: {e}")

        logger.info(f"News cache refresh complete: {refreshed}/{len(entries)} succeeded")
        return refreshed

    async def _fetch(self, plan: QueryPlan) -> CacheEntry:
        key = plan.cache_key
        task = self._in_flight.get(key)

        if task is None:
            task = asyncio.ensure_future(self._fetch_and_store(plan))
            self._in_flight[key] = task

            def _clear(done: asyncio.Task, key: str = key) -> None:
                if self._in_flight.get(key) is done:
                    del self._in_flight[key]

            task.add_done_callback(_clear)

        # Shielded so one cancelled request does not cancel the shared fetch
        return await asyncio.shield(task)

    async def _fetch_and_store(self, plan: QueryPlan) -> CacheEntry:
        articles = await self.client.fetch_articles(plan.endpoint, dict(plan.parameters))
        entry = CacheEntry(
            plan=plan,
            articles=[assign_article_id(article) for article in articles if isinstance(article, dict)],
            updated_at=self._clock(),
        )

        current = self._entries.get(plan.cache_key)
        if current is not None and current.updated_at > entry.updated_at:
            return current

        self._entries[plan.cache_key] = entry
        logger.debug(f"Cached {len(entry.articles)} articles for {plan.cache_key}")
        return entry

    def start(self) -> Job:
        """
        Start the periodic background refresh.

        Must be called with a running event loop. The job runs on that loop
        and stops with it, so it never keeps the process alive on its own.

        Returns:
            The scheduled refresh job
        """
        if self._scheduler is None:
            self._scheduler = AsyncIOScheduler()

        job = self._scheduler.add_job(
            func=self.refresh_all,
            trigger=IntervalTrigger(minutes=self.refresh_interval_minutes),
            id=CacheConstants.REFRESH_JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )

        if not self._scheduler.running:
            self._scheduler.start()
        logger.info(f"News cache refresh scheduled every {self.refresh_interval_minutes} minutes")
        return job

    def shutdown(self) -> None:
        """Stop the background refresh; in-flight refreshes finish on their own."""
        if self._scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("News cache refresh stopped")
        self._scheduler = None
