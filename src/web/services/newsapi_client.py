"""
NewsAPI client for the News Aggregator API.

Performs a single HTTP call against the NewsAPI.org v2 API and normalizes
its status envelope and failure modes into two exception types:
a missing credential (feature disabled) and an upstream failure.
"""

import asyncio
import logging
from typing import Any, Optional

import aiohttp

from src.utils.constants import NewsApiConstants

logger = logging.getLogger(__name__)


class NewsProviderServiceError(Exception):
    """Base exception for news provider errors."""

    pass


class NewsProviderConfigError(NewsProviderServiceError):
    """Raised when no provider credential is configured."""

    pass


class NewsProviderError(NewsProviderServiceError):
    """Raised when the provider is unreachable or reports a failure."""

    pass


class NewsApiClient:
    """Thin async wrapper around the NewsAPI HTTP endpoints."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = NewsApiConstants.BASE_URL,
        timeout_seconds: float = NewsApiConstants.DEFAULT_TIMEOUT_SECONDS,
    ):
        self.api_key = api_key or None
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def fetch_articles(self, endpoint: str, parameters: dict[str, Any]) -> list[dict]:
        """
        Fetch articles for one endpoint/parameter combination.

        Args:
            endpoint: Provider endpoint name ("top-headlines" or "everything")
            parameters: Query parameters sent as-is

        Returns:
            Article dicts from the provider (empty if none were returned)

        Raises:
            NewsProviderConfigError: If no API key is configured
            NewsProviderError: On timeout, network/HTTP failure or error envelope
        """
        if not self.is_configured:
            raise NewsProviderConfigError("Missing NEWS_API_KEY")

        payload = await self._request(endpoint, parameters)

        if not isinstance(payload, dict) or payload.get("status") != "ok":
            message = None
            if isinstance(payload, dict):
                message = payload.get("message")
            raise NewsProviderError(message or "Invalid response from the news provider")

        articles = payload.get("articles")
        return articles if isinstance(articles, list) else []

    async def _request(self, endpoint: str, parameters: dict[str, Any]) -> Any:
        """Perform the GET and decode the JSON body (error bodies included)."""
        url = f"{self.base_url}/{endpoint.lstrip('/')}"
        timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
        headers = {
            "Accept": "application/json",
            NewsApiConstants.API_KEY_HEADER: self.api_key,
        }
        query = {key: str(value) for key, value in parameters.items()}

        try:
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.get(url, params=query, headers=headers) as response:
                    try:
                        return await response.json(content_type=None)
                    except ValueError:
                        logger.warning(
                            f"Non-JSON response from {endpoint}: HTTP {response.status}"
                        )
                        raise NewsProviderError(NewsApiConstants.UNREACHABLE_MESSAGE)
        except asyncio.TimeoutError as e:
            logger.warning(f"Timed out after {self.timeout_seconds}s calling {endpoint}")
            raise NewsProviderError(NewsApiConstants.UNREACHABLE_MESSAGE) from e
        except aiohttp.ClientError as e:
            logger.warning(f"Request to {endpoint} failed: {e}")
            raise NewsProviderError(NewsApiConstants.UNREACHABLE_MESSAGE) from e
