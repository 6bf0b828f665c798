"""
Abstract interface for article storage backends.

Defines listing, lookup, creation, update, status change and deletion of
article documents keyed by their external articleid. Implementations can
keep the documents in a local JSON file, in an S3-compatible bucket
(Tigris) or in a MongoDB collection.
"""
import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from articledesk.exceptions import DocumentValidationError, DuplicateArticleError
from articledesk.file_utils import get_utc_timestamp, parse_timestamp
from articledesk.models import DEFAULT_STATUS, EDITABLE_FIELDS, validate_article_document

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


def sort_by_date_desc(documents: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Sort article documents newest first; unparseable dates sort last."""
    return sorted(
        documents,
        key=lambda doc: parse_timestamp(doc.get("date")) or _OLDEST,
        reverse=True,
    )


def prepare_new_document(doc: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Build the stored form of a new article document.

    Applies the creation defaults (status draft, date now, empty lists)
    and validates the result.

    Raises:
        DocumentValidationError: If the document does not match the schema
    """
    prepared = {
        "articleid": doc.get("articleid"),
        "title": doc.get("title"),
        "subtitle": doc.get("subtitle"),
        "author": doc.get("author"),
        "designation": doc.get("designation"),
        "images": doc.get("images") or [],
        "subtopics": doc.get("subtopics") or [],
        "subcontent": doc.get("subcontent") or [],
        "keywords": doc.get("keywords") or [],
        "status": doc.get("status") or DEFAULT_STATUS,
        "date": doc.get("date") or get_utc_timestamp(),
    }
    errors = validate_article_document(prepared)
    if errors:
        raise DocumentValidationError(errors)
    return prepared


def merge_editable_fields(existing: Mapping[str, Any], fields: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Apply an update to a stored document.

    Only editable fields that are present and not None are taken over;
    articleid and date always keep their stored values.

    Raises:
        DocumentValidationError: If the merged document does not match the schema
    """
    merged = dict(existing)
    for name in EDITABLE_FIELDS:
        if name in fields and fields[name] is not None:
            merged[name] = fields[name]
    errors = validate_article_document(merged)
    if errors:
        raise DocumentValidationError(errors)
    return merged


class ArticleStore(ABC):
    """Abstract base class for article storage backends."""

    @abstractmethod
    def list_articles(self, status: Optional[str] = None) -> List[Dict]:
        """
        Get articles, newest first.

        Args:
            status: Optional status to filter by

        Returns:
            List of article documents sorted by date descending.
        """

    @abstractmethod
    def get_article(self, article_id: str) -> Optional[Dict]:
        """
        Get a single article by its articleid.

        Returns:
            Article document, or None if not found.
        """

    @abstractmethod
    def create_article(self, doc: Mapping[str, Any]) -> Dict:
        """
        Store a new article.

        Returns:
            The stored document.

        Raises:
            DuplicateArticleError: If the articleid already exists
            DocumentValidationError: If the document is invalid
        """

    @abstractmethod
    def update_article(self, article_id: str, fields: Mapping[str, Any]) -> Optional[Dict]:
        """
        Replace the editable fields of an article.

        Returns:
            The updated document, or None if not found.

        Raises:
            DocumentValidationError: If the updated document is invalid
        """

    @abstractmethod
    def update_status(self, article_id: str, status: str) -> Optional[Dict]:
        """
        Change only the status of an article.

        Returns:
            The updated document, or None if not found.
        """

    @abstractmethod
    def delete_article(self, article_id: str) -> bool:
        """
        Delete an article by its articleid.

        Returns:
            True if the article was deleted, False if it was not found.
        """


class DocumentListArticleStore(ArticleStore):
    """
    Article store over a single JSON document holding a list of articles.

    Subclasses provide reading and writing of the list; the read-modify-write
    cycle is per call, so concurrent writers on the same document are
    last-writer-wins.
    """

    @abstractmethod
    def _read_articles(self) -> List[Dict]:
        """Read the full article list."""

    @abstractmethod
    def _write_articles(self, articles: List[Dict]) -> None:
        """Persist the full article list."""

    @staticmethod
    def _find_index(articles: List[Dict], article_id: str) -> Optional[int]:
        for i, article in enumerate(articles):
            if article.get("articleid") == article_id:
                return i
        return None

    def list_articles(self, status: Optional[str] = None) -> List[Dict]:
        articles = self._read_articles()
        if status:
            articles = [a for a in articles if a.get("status") == status]
        return sort_by_date_desc(articles)

    def get_article(self, article_id: str) -> Optional[Dict]:
        articles = self._read_articles()
        index = self._find_index(articles, article_id)
        return articles[index] if index is not None else None

    def create_article(self, doc: Mapping[str, Any]) -> Dict:
        prepared = prepare_new_document(doc)
        articles = self._read_articles()
        if self._find_index(articles, prepared["articleid"]) is not None:
            raise DuplicateArticleError(prepared["articleid"])
        articles.append(prepared)
        self._write_articles(articles)
        logger.debug("Stored article %s", prepared["articleid"])
        return prepared

    def update_article(self, article_id: str, fields: Mapping[str, Any]) -> Optional[Dict]:
        articles = self._read_articles()
        index = self._find_index(articles, article_id)
        if index is None:
            return None
        articles[index] = merge_editable_fields(articles[index], fields)
        self._write_articles(articles)
        return articles[index]

    def update_status(self, article_id: str, status: str) -> Optional[Dict]:
        # Only the status changes; the rest of the document is not re-validated.
        articles = self._read_articles()
        index = self._find_index(articles, article_id)
        if index is None:
            return None
        articles[index]["status"] = status
        self._write_articles(articles)
        return articles[index]

    def delete_article(self, article_id: str) -> bool:
        articles = self._read_articles()
        remaining = [a for a in articles if a.get("articleid") != article_id]
        if len(remaining) == len(articles):
            return False
        self._write_articles(remaining)
        return True
