"""
Async client for the article API.

Wraps the HTTP routes under /api/articles with the policies the admin UI
relies on: a timeout race and optional mock fallback for single reads,
bounded sequential retry for full updates, local status validation, and a
delete that reports its outcome instead of raising.
"""
import asyncio
import functools
import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union
from urllib.parse import quote

import requests

from articledesk.config import Config
from articledesk.exceptions import (
    ArticleSyncError,
    NetworkError,
    NotFoundError,
    RequestTimeoutError,
    ServerError,
    ValidationError,
)
from articledesk.file_utils import get_utc_timestamp, parse_timestamp
from articledesk.mock_fallback import build_mock_article
from articledesk.models import ARTICLE_STATUSES, DEFAULT_STATUS, Article, is_valid_status
from articledesk.normalizer import normalize_article, normalize_articles

logger = logging.getLogger(__name__)

GET_TIMEOUT_SECONDS = 15.0
DEFAULT_REQUEST_TIMEOUT = 30
MAX_UPDATE_ATTEMPTS = 3
RETRY_BASE_DELAY_SECONDS = 1.0

# Server errors caused by calling a removal method the data layer does not
# have, e.g. "Article.findOneAndRemove is not a function" or
# "'Collection' object has no attribute 'remove'".
MISSING_METHOD_PATTERN = re.compile(r"is not a function|has no attribute")

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)
_ERROR_MESSAGE_KEYS = ("message", "msg", "error", "detail")
_CLIENT_ONLY_KEYS = ("is_fallback",)
_IMMUTABLE_KEYS = ("articleid", "articleId", "date")

Transport = Callable[..., Awaitable[Any]]


@dataclass(frozen=True)
class DeleteResult:
    """Outcome of a delete request."""
    success: bool
    message: str


def is_missing_method_error(message: str) -> bool:
    """Check whether a server error message names a missing removal method."""
    return bool(message) and MISSING_METHOD_PATTERN.search(message) is not None


async def requests_transport(
    method: str,
    url: str,
    json: Optional[Any] = None,
    params: Optional[Dict[str, str]] = None,
    timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT,
    headers: Optional[Dict[str, str]] = None,
) -> requests.Response:
    """
    Perform one HTTP request with requests without blocking the event loop.

    The blocking call runs in the loop's default executor.
    """
    loop = asyncio.get_running_loop()
    call = functools.partial(
        requests.request, method, url, json=json, params=params, timeout=timeout, headers=headers
    )
    return await loop.run_in_executor(None, call)


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def _decode(response: Any) -> Any:
    """Decode a JSON body; an empty or malformed body decodes to None."""
    try:
        return response.json()
    except ValueError:
        return None


def extract_error_message(response: Any) -> str:
    """
    Get the error message of a failed response.

    Reads the first non-empty of message/msg/error/detail from a JSON body,
    then falls back to the raw body text, then to the HTTP reason phrase.
    """
    data = _decode(response)
    if isinstance(data, Mapping):
        for key in _ERROR_MESSAGE_KEYS:
            value = data.get(key)
            if value:
                return value if isinstance(value, str) else str(value)
    text = getattr(response, "text", "") or ""
    if text.strip():
        return text.strip()[:500]
    return getattr(response, "reason", None) or getattr(response, "reason_phrase", "") or "Unknown error"


def _sorted_newest_first(articles: List[Article]) -> List[Article]:
    return sorted(articles, key=lambda a: parse_timestamp(a.date) or _OLDEST, reverse=True)


class ArticleSyncClient:
    """
    Client for the article API.

    Holds only configuration; every call is independent, so one instance
    can serve concurrent operations.
    """

    def __init__(  # pylint: disable=too-many-arguments
        self,
        base_url: str,
        mock_fallback_enabled: bool = False,
        transport: Optional[Transport] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        get_timeout: float = GET_TIMEOUT_SECONDS,
        max_update_attempts: int = MAX_UPDATE_ATTEMPTS,
        retry_base_delay: float = RETRY_BASE_DELAY_SECONDS,
        legacy_remove_fallback: bool = True,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        clock: Callable[[], str] = get_utc_timestamp,
    ):
        """
        Initialize the article client.

        Args:
            base_url: API base URL, e.g. "http://localhost:5000/api"
            mock_fallback_enabled: Return mock articles instead of failing reads
                (development only)
            transport: Async callable performing one HTTP request
                (defaults to requests run in an executor)
            sleep: Async delay function used between update attempts
            get_timeout: Seconds a single-article read may take
            max_update_attempts: Total attempts for a full update
            retry_base_delay: Delay unit in seconds; attempt n waits n units
            legacy_remove_fallback: Retry deletes through POST /articles/remove
                when the server reports a missing removal method
            id_factory: Generates articleid values for new articles
            clock: Returns the creation timestamp for new articles
        """
        if max_update_attempts < 1:
            raise ValueError("max_update_attempts must be at least 1")
        self.base_url = base_url.rstrip("/")
        self.mock_fallback_enabled = mock_fallback_enabled
        self.get_timeout = get_timeout
        self.max_update_attempts = max_update_attempts
        self.retry_base_delay = retry_base_delay
        self.legacy_remove_fallback = legacy_remove_fallback
        self._transport = transport or requests_transport
        self._sleep = sleep
        self._id_factory = id_factory
        self._clock = clock

    @classmethod
    def from_config(cls, config: Config, **kwargs) -> 'ArticleSyncClient':
        """Build a client from environment configuration."""
        return cls(
            base_url=config.api_base_url,
            mock_fallback_enabled=config.mock_fallback_enabled,
            get_timeout=config.get_timeout,
            **kwargs,
        )

    # ================== TRANSPORT ==================
    def _url(self, *parts: str) -> str:
        return "/".join([self.base_url, "articles", *(quote(p, safe="") for p in parts)])

    async def _send(self, method: str, url: str, timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT,
                    **kwargs) -> Any:
        """Send one request, translating transport failures into NetworkError."""
        try:
            return await self._transport(
                method, url, timeout=timeout, headers={"Accept": "application/json"}, **kwargs
            )
        except requests.exceptions.Timeout as e:
            raise NetworkError(f"Request to {url} timed out: {e}") from e
        except (requests.exceptions.RequestException, OSError) as e:
            raise NetworkError(f"Could not connect to server: {e}") from e

    @staticmethod
    def _raise_for_status(response: Any) -> None:
        """
        Raise the error matching a non-success response.

        Raises:
            NotFoundError: For 404
            ValidationError: For any other 4xx
            ServerError: For everything else outside 2xx
        """
        status = response.status_code
        if _is_success(status):
            return
        message = extract_error_message(response)
        if status == 404:
            raise NotFoundError(message)
        if 400 <= status < 500:
            raise ValidationError(message, status=status)
        raise ServerError(status, message)

    @staticmethod
    def _update_payload(data: Union[Article, Mapping[str, Any]]) -> Dict[str, Any]:
        payload = data.to_payload() if isinstance(data, Article) else dict(data)
        for key in _CLIENT_ONLY_KEYS + _IMMUTABLE_KEYS:
            payload.pop(key, None)
        return payload

    # ================== LIST ==================
    async def list_articles(self, status: Optional[str] = None) -> List[Article]:
        """
        List articles newest first.

        Args:
            status: Optional status filter

        Raises:
            ValidationError: If status is not a recognised value (no request is sent)
            NetworkError: If the server could not be reached
            ServerError: If the server answered with a non-success status
        """
        params = None
        if status is not None:
            if not is_valid_status(status):
                raise ValidationError(f"Invalid status '{status}'. Must be one of: {', '.join(ARTICLE_STATUSES)}")
            params = {"status": status}

        response = await self._send("GET", self._url(), params=params)
        self._raise_for_status(response)
        return _sorted_newest_first(normalize_articles(_decode(response)))

    async def list_articles_by_status(self, status: str) -> List[Article]:
        """List articles with a status through the /articles/status/<status> route."""
        if not is_valid_status(status):
            raise ValidationError(f"Invalid status '{status}'. Must be one of: {', '.join(ARTICLE_STATUSES)}")
        response = await self._send("GET", self._url("status", status))
        self._raise_for_status(response)
        return _sorted_newest_first(normalize_articles(_decode(response)))

    # ================== GET ==================
    async def _fetch_article(self, article_id: str) -> Article:
        url = self._url(article_id)
        try:
            response = await asyncio.wait_for(
                self._send("GET", url, timeout=self.get_timeout), timeout=self.get_timeout
            )
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(self.get_timeout) from e
        self._raise_for_status(response)
        return normalize_article(_decode(response))

    async def get_article(self, article_id: str) -> Article:
        """
        Fetch one article, racing the request against get_timeout.

        When mock fallback is enabled, any failure (timeout, network fault,
        non-success status) yields build_mock_article(article_id) instead.

        Raises:
            RequestTimeoutError: If the timer won the race
            NotFoundError: If the article does not exist
            NetworkError, ServerError, ValidationError: For other failures
        """
        try:
            return await self._fetch_article(article_id)
        except ArticleSyncError as e:
            if not self.mock_fallback_enabled:
                logger.error("Error fetching article %s: %s", article_id, e)
                raise
            logger.warning("Error fetching article %s: %s. Using mock data as fallback.", article_id, e)
            return build_mock_article(article_id)

    # ================== CREATE ==================
    async def create_article(self, draft: Union[Article, Mapping[str, Any]]) -> Article:
        """
        Create an article, assigning its articleid and date client-side.

        Raises:
            ValidationError: If the status is invalid or the server rejects the article (4xx)
            ServerError: If the server fails (5xx)
            NetworkError: If the server could not be reached
        """
        payload = draft.to_payload() if isinstance(draft, Article) else dict(draft)
        for key in _CLIENT_ONLY_KEYS:
            payload.pop(key, None)
        payload.pop("articleId", None)
        payload["articleid"] = self._id_factory()
        payload["date"] = self._clock()
        payload["status"] = payload.get("status") or DEFAULT_STATUS
        if not is_valid_status(payload["status"]):
            raise ValidationError(f"Invalid status '{payload['status']}'. Must be one of: {', '.join(ARTICLE_STATUSES)}")

        logger.info("Creating article %s", payload["articleid"])
        response = await self._send("POST", self._url(), json=payload)
        if 400 <= response.status_code < 500:
            raise ValidationError(extract_error_message(response), status=response.status_code)
        self._raise_for_status(response)
        return normalize_article(_decode(response))

    # ================== UPDATE ==================
    async def update_article(self, article_id: str, data: Union[Article, Mapping[str, Any]]) -> Article:
        """
        Replace an article's editable fields, retrying failed attempts.

        Attempts run strictly one after another; after failed attempt n the
        client waits retry_base_delay * n before attempt n + 1.

        Raises:
            ArticleSyncError: The error of the last attempt once all attempts failed
        """
        url = self._url(article_id)
        payload = self._update_payload(data)
        last_error: Optional[ArticleSyncError] = None

        for attempt in range(1, self.max_update_attempts + 1):
            try:
                response = await self._send("PUT", url, json=payload)
                self._raise_for_status(response)
                return normalize_article(_decode(response))
            except ArticleSyncError as e:
                last_error = e
                logger.warning(
                    "Update attempt %d/%d for article %s failed: %s",
                    attempt, self.max_update_attempts, article_id, e
                )
            if attempt < self.max_update_attempts:
                await self._sleep(self.retry_base_delay * attempt)

        logger.error("Failed to update article %s after %d attempts", article_id, self.max_update_attempts)
        raise last_error

    async def update_status(self, article_id: str, status: str) -> Article:
        """
        Change only an article's status.

        Raises:
            ValidationError: If status is not recognised (no request is sent)
                or the server rejects it
            NotFoundError: If the article does not exist
        """
        if not is_valid_status(status):
            raise ValidationError(f"Invalid status '{status}'. Must be one of: {', '.join(ARTICLE_STATUSES)}")
        response = await self._send("PATCH", self._url(article_id, "status"), json={"status": status})
        self._raise_for_status(response)
        return normalize_article(_decode(response))

    # ================== DELETE ==================
    async def _legacy_remove(self, article_id: str) -> bool:
        try:
            response = await self._send("POST", self._url("remove"), json={"articleId": article_id})
        except NetworkError as e:
            logger.error("Legacy remove of article %s failed: %s", article_id, e)
            return False
        if not _is_success(response.status_code):
            logger.error(
                "Legacy remove of article %s failed: %s - %s",
                article_id, response.status_code, extract_error_message(response)
            )
            return False
        return True

    async def delete_article(self, article_id: str) -> DeleteResult:
        """
        Delete an article and report the outcome without raising.

        If the failure message names a missing removal method on the server,
        one request to POST /articles/remove is made before giving up.

        Returns:
            DeleteResult with success True only if the server confirmed removal
        """
        try:
            response = await self._send("DELETE", self._url(article_id))
        except NetworkError as e:
            error_message = str(e)
            result = DeleteResult(False, f"Network error: {error_message}")
        else:
            if _is_success(response.status_code):
                logger.info("Article %s deleted", article_id)
                return DeleteResult(True, "Article deleted successfully")
            error_message = extract_error_message(response)
            result = DeleteResult(False, f"Server error ({response.status_code}): {error_message}")

        logger.error("Error deleting article %s: %s", article_id, result.message)

        if self.legacy_remove_fallback and is_missing_method_error(error_message):
            logger.warning("Server is missing its removal method; trying the legacy remove route for %s", article_id)
            if await self._legacy_remove(article_id):
                return DeleteResult(True, "Article deleted successfully (alt method)")

        return result
