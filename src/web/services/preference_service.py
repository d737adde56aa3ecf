"""
Preference service for the News Aggregator API.

Canonicalizes raw user preference input into a clean, ordered list of
lowercase topic tokens. Used on registration, preference updates and
before every provider query.
"""

import math
from typing import Any

from src.utils.constants import PreferenceConstants, ValidationConstants


def _is_preference_like(item: Any) -> bool:
    # bool is an int subclass but "true"/"false" are not topics
    if isinstance(item, bool):
        return False
    # NaN/Infinity are accepted by the JSON decoder but are not topics
    if isinstance(item, float):
        return math.isfinite(item)
    return isinstance(item, (str, int))


def _to_text(item: Any) -> str:
    # 1.0 and 1e2 are the topics "1" and "100", same as their integer forms
    if isinstance(item, float) and item.is_integer():
        return str(int(item))
    return str(item)


def contains_control_chars(value: str) -> bool:
    """Check whether a string contains characters rejected in user input."""
    return bool(ValidationConstants.CONTROL_CHARS_PATTERN.search(value))


def normalize_preferences(preferences: Any) -> list[str]:
    """
    Normalize a raw preference list.

    Steps, in order: drop None entries, keep only string/finite number entries,
    stringify, trim, drop empties, drop entries with control characters,
    lowercase, drop entries over the length limit, deduplicate keeping the
    first occurrence, and cap the result at the maximum count.

    Never raises; any non-list input yields an empty list.

    Args:
        preferences: Raw preference value (usually a list from a JSON body)

    Returns:
        Normalized list of preference tokens
    """
    if not isinstance(preferences, (list, tuple)):
        return []

    cleaned = []
    for item in preferences:
        if item is None or not _is_preference_like(item):
            continue

        value = _to_text(item).strip()
        if not value or contains_control_chars(value):
            continue

        value = value.lower()
        if len(value) > PreferenceConstants.MAX_PREFERENCE_LENGTH:
            continue

        cleaned.append(value)

    seen = set()
    deduped = []
    for value in cleaned:
        if value in seen:
            continue
        seen.add(value)
        deduped.append(value)
        if len(deduped) >= PreferenceConstants.MAX_PREFERENCE_COUNT:
            break

    return deduped
