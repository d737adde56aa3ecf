"""
Constants and configuration values for the News Aggregator API
"""
import re


# Preference Constants
class PreferenceConstants:
    MAX_PREFERENCE_LENGTH = 100
    MAX_PREFERENCE_COUNT = 50

    # Categories served by the provider's top-headlines endpoint
    HEADLINE_CATEGORIES = frozenset({
        'business', 'entertainment', 'general', 'health',
        'science', 'sports', 'technology'
    })


# Validation Constants
class ValidationConstants:
    CONTROL_CHARS_PATTERN = re.compile(r'[<>\n\r\t]')
    ISO_DATE_PATTERN = re.compile(r'^\d{4}-\d{2}-\d{2}$')

    MAX_KEYWORD_LENGTH = 100
    MIN_NAME_LENGTH = 2
    MAX_NAME_LENGTH = 100
    MIN_PASSWORD_LENGTH = 8


# News Provider Constants
class NewsApiConstants:
    BASE_URL = "https://newsapi.org/v2"
    TOP_HEADLINES = "top-headlines"
    EVERYTHING = "everything"

    API_KEY_HEADER = "X-Api-Key"
    DEFAULT_TIMEOUT_SECONDS = 8

    PAGE_SIZE = 20
    DEFAULT_COUNTRY = "us"
    DEFAULT_LANGUAGE = "en"
    DEFAULT_SORT = "popularity"
    DEFAULT_QUERY = "breaking news"
    DEFAULT_WINDOW_DAYS = 7

    UNREACHABLE_MESSAGE = "Unable to reach external news provider"
    MISSING_KEY_NOTICE = "NEWS_API_KEY is not configured; returning an empty result set for now."


# Cache Constants
class CacheConstants:
    DEFAULT_TTL_SECONDS = 60
    DEFAULT_REFRESH_INTERVAL_MINUTES = 5
    REFRESH_JOB_ID = "news_cache_refresh"


# Auth Constants
class AuthConstants:
    JWT_ALGORITHM = "HS256"
    DEFAULT_TOKEN_EXPIRY_MINUTES = 60
    # bcrypt only considers the first 72 bytes of a password
    BCRYPT_MAX_PASSWORD_BYTES = 72
    BEARER_PATTERN = re.compile(r'^Bearer\s+(.+)$', re.IGNORECASE)


# User Collection Constants
class CollectionConstants:
    READ = "read"
    FAVORITE = "favorite"
    ALL = (READ, FAVORITE)
