"""
Pytest configuration for web unit tests.

Provides a fake NewsAPI client, a controllable clock, and sample
provider articles shared by the cache, search and route tests.
"""

import pytest

from src.web.services.news_cache_service import ArticleCache
from src.web.services.newsapi_client import NewsProviderConfigError


SAMPLE_ARTICLES = [
    {
        "source": {"id": "the-verge", "name": "The Verge"},
        "author": "Jane Doe",
        "title": "New GPU architecture announced",
        "description": "Chipmaker reveals its next generation of graphics cards.",
        "url": "https://example.com/gpu-architecture",
        "urlToImage": "https://example.com/gpu.jpg",
        "publishedAt": "2026-10-18T09:00:00Z",
        "content": "The company unveiled a new architecture focused on efficiency.",
    },
    {
        "source": {"id": None, "name": "Health Daily"},
        "author": "John Roe",
        "title": "Sleep and memory",
        "description": "Researchers link deep sleep to long-term memory.",
        "url": "https://example.com/sleep-memory",
        "urlToImage": None,
        "publishedAt": "2026-10-17T12:30:00Z",
        "content": "A new study suggests the brain consolidates memories overnight.",
    },
    {
        "source": {"id": None, "name": "Comics Weekly"},
        "author": None,
        "title": "Indie comics on the rise",
        "description": None,
        "url": None,
        "urlToImage": None,
        "publishedAt": "2026-10-16T08:00:00Z",
        "content": None,
    },
]


class FakeNewsClient:
    """Stand-in for NewsApiClient that records calls."""

    def __init__(self, articles=None, api_key="test-key"):
        self.articles = list(SAMPLE_ARTICLES if articles is None else articles)
        self.api_key = api_key
        self.error = None
        self.calls = []

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def fetch_articles(self, endpoint, parameters):
        self.calls.append((endpoint, parameters))
        if not self.is_configured:
            raise NewsProviderConfigError("Missing NEWS_API_KEY")
        if self.error is not None:
            raise self.error
        return [dict(article) for article in self.articles]


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def sample_articles():
    return [dict(article) for article in SAMPLE_ARTICLES]


@pytest.fixture
def fake_client():
    return FakeNewsClient()


@pytest.fixture
def unconfigured_client():
    """Client without an API key (news feature disabled)."""
    return FakeNewsClient(api_key=None)


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def article_cache(fake_client, fake_clock):
    """Isolated cache over the fake client."""
    cache = ArticleCache(fake_client, ttl_seconds=60, clock=fake_clock)
    yield cache
    cache.shutdown()
