"""
Normalization of article payloads returned by the article API.

The API has answered with the article itself, with the article wrapped
under "article", and with the article wrapped under "data". Every shape
is reduced to one canonical Article; malformed values are replaced with
defaults instead of raising.
"""
from datetime import datetime
from typing import Any, List, Mapping, Optional

from articledesk.file_utils import format_timestamp, get_utc_timestamp
from articledesk.models import Article, DEFAULT_STATUS, is_valid_status

_WRAPPER_KEYS = ("article", "data")
_LIST_WRAPPER_KEYS = ("articles", "data")


def _unwrap(data: Any) -> Mapping[str, Any]:
    """Return the article mapping inside a response, or an empty mapping."""
    if not isinstance(data, Mapping):
        return {}
    for key in _WRAPPER_KEYS:
        inner = data.get(key)
        if isinstance(inner, Mapping):
            return inner
    return data


def _text(source: Mapping[str, Any], *keys: str) -> str:
    """First non-empty string among the given keys, else ""."""
    for key in keys:
        value = source.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def _string_list(value: Any) -> List[str]:
    """Keep only the string members of a list or tuple."""
    if not isinstance(value, (list, tuple)):
        return []
    return [item for item in value if isinstance(item, str)]


def _date(value: Any) -> str:
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, str) and value:
        return value
    return get_utc_timestamp()


def normalize_article(data: Any) -> Article:
    """
    Convert an arbitrary API response into a canonical Article.

    Args:
        data: Decoded JSON response (any type)

    Returns:
        Article with every field of the expected type
    """
    source = _unwrap(data)

    status = source.get("status")
    if not is_valid_status(status):
        status = DEFAULT_STATUS

    return Article(
        article_id=_text(source, "articleid", "articleId", "id"),
        title=_text(source, "title"),
        subtitle=_text(source, "subtitle"),
        author=_text(source, "author"),
        designation=_text(source, "designation", "authorTitle"),
        images=_string_list(source.get("images")),
        subtopics=_string_list(source.get("subtopics")),
        subcontent=_string_list(source.get("subcontent")),
        keywords=_string_list(source.get("keywords")),
        status=status,
        date=_date(source.get("date")),
    )


def normalize_articles(payload: Any) -> List[Article]:
    """
    Convert a list response into canonical Articles.

    Accepts a bare list or a list wrapped under "articles" or "data".
    """
    items: Optional[Any] = payload
    if isinstance(payload, Mapping):
        items = None
        for key in _LIST_WRAPPER_KEYS:
            if isinstance(payload.get(key), list):
                items = payload[key]
                break
    if not isinstance(items, list):
        return []
    return [normalize_article(item) for item in items]
