"""
Exception hierarchy for Article Desk.

Client-side errors (raised by the sync client) derive from ArticleSyncError;
storage errors (raised by the article store backends) derive from
ArticleStoreError.
"""
from typing import List, Optional


class ArticleSyncError(Exception):
    """Base class for errors surfaced by the article sync client."""


class NetworkError(ArticleSyncError):
    """The request never reached the server or no response arrived."""


class RequestTimeoutError(NetworkError):
    """The request lost the race against the client-side timer."""

    def __init__(self, timeout: float):
        super().__init__(f"Request timeout after {timeout:g} seconds")
        self.timeout = timeout


class ServerError(ArticleSyncError):
    """The server answered with a non-success HTTP status."""

    def __init__(self, status: int, message: str = ""):
        super().__init__(f"Server returned {status}: {message}" if message else f"Server returned {status}")
        self.status = status
        self.message = message


class NotFoundError(ServerError):
    """The server reported 404 for an article id."""

    def __init__(self, message: str = "Article not found"):
        super().__init__(404, message)


class ValidationError(ArticleSyncError):
    """
    Invalid input, detected either locally before sending a request or
    reported by the server as a 4xx response.
    """

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class ArticleStoreError(Exception):
    """Base class for storage backend errors."""


class DuplicateArticleError(ArticleStoreError):
    """An article with the same articleid already exists."""

    def __init__(self, article_id: str):
        super().__init__("Article with this ID already exists")
        self.article_id = article_id


class DocumentValidationError(ArticleStoreError):
    """A document failed schema validation on write."""

    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors
