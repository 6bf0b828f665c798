"""
Article list view controller.

Keeps the article rows shown on the management page and applies the
outcome of client calls to them: reloading, deletion (the row always
leaves the view), status changes (patched locally after one round trip)
and saving from the editor.
"""
import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from articledesk.article_client import ArticleSyncClient, is_missing_method_error
from articledesk.exceptions import ArticleSyncError, ValidationError
from articledesk.mock_fallback import sample_articles
from articledesk.models import Article, dedupe_keywords, is_valid_status

logger = logging.getLogger(__name__)

ALL_STATUSES = "all"
EDITOR_REQUIRED_FIELDS = ("title", "subtitle", "author", "designation")


@dataclass(frozen=True)
class Notification:
    """A message shown to the user; level is success, warning or error."""
    message: str
    level: str


class ArticleListState:
    """
    Ordered collection of the articles currently shown.

    Only this class mutates the rows; callers read them through the
    articles snapshot or get().
    """

    def __init__(self, articles: Optional[List[Article]] = None):
        self._articles: List[Article] = list(articles or [])

    @property
    def articles(self) -> Tuple[Article, ...]:
        """Snapshot of the rows in display order."""
        return tuple(self._articles)

    def __len__(self) -> int:
        return len(self._articles)

    def set_all(self, articles: List[Article]) -> None:
        """Replace every row."""
        self._articles = list(articles)

    def get(self, article_id: str) -> Optional[Article]:
        for article in self._articles:
            if article.article_id == article_id:
                return article
        return None

    def remove_by_id(self, article_id: str) -> bool:
        """Drop the row with the id; returns whether one was present."""
        remaining = [a for a in self._articles if a.article_id != article_id]
        removed = len(remaining) != len(self._articles)
        self._articles = remaining
        return removed

    def patch_status_by_id(self, article_id: str, status: str) -> bool:
        """Rewrite the status of the row with the id, leaving every other field as it was."""
        for i, article in enumerate(self._articles):
            if article.article_id == article_id:
                self._articles[i] = replace(article, status=status)
                return True
        return False

    def upsert(self, article: Article) -> None:
        """Replace the row with the same id, or add the article at the top."""
        for i, existing in enumerate(self._articles):
            if existing.article_id == article.article_id:
                self._articles[i] = article
                return
        self._articles.insert(0, article)

    def filtered(self, search: str = "", status: str = ALL_STATUSES) -> List[Article]:
        """
        Rows matching a search term and a status filter.

        Args:
            search: Case-insensitive text matched against title and author
            status: Status to keep, or "all"
        """
        term = search.strip().lower()
        result = []
        for article in self._articles:
            if status != ALL_STATUSES and article.status != status:
                continue
            if term and term not in article.title.lower() and term not in article.author.lower():
                continue
            result.append(article)
        return result


class ArticleListController:
    """Drives the article management page on top of an ArticleSyncClient."""

    def __init__(self, client: ArticleSyncClient, use_sample_fallback: Optional[bool] = None):
        """
        Args:
            client: Client used for every server call
            use_sample_fallback: Show sample_articles() when the list cannot be
                loaded (defaults to the client's mock fallback setting)
        """
        self.client = client
        if use_sample_fallback is None:
            use_sample_fallback = client.mock_fallback_enabled
        self.use_sample_fallback = use_sample_fallback
        self.state = ArticleListState()
        self.error: Optional[str] = None
        self.notifications: List[Notification] = []

    @property
    def last_notification(self) -> Optional[Notification]:
        return self.notifications[-1] if self.notifications else None

    def _notify(self, message: str, level: str) -> Notification:
        notification = Notification(message, level)
        self.notifications.append(notification)
        return notification

    async def refresh(self, status: Optional[str] = None) -> Tuple[Article, ...]:
        """Reload the rows from the server."""
        try:
            articles = await self.client.list_articles(status)
        except ArticleSyncError as e:
            self.error = f"Failed to fetch articles: {e}"
            logger.error(self.error)
            if self.use_sample_fallback:
                logger.warning("Showing sample articles instead")
                self.state.set_all(sample_articles())
            else:
                self.state.set_all([])
            return self.state.articles

        self.error = None
        self.state.set_all(articles)
        return self.state.articles

    async def delete_article(self, article_id: str) -> Notification:
        """
        Delete an article.

        The row leaves the view whatever the server answered; the
        notification tells whether the server confirmed the removal.
        """
        result = await self.client.delete_article(article_id)
        self.state.remove_by_id(article_id)

        if result.success:
            return self._notify("Article deleted successfully", "success")

        logger.error("Delete of article %s not confirmed: %s", article_id, result.message)
        if is_missing_method_error(result.message):
            return self._notify(
                "Article removed from view. Note: the server could not delete it because of a "
                "backend configuration issue - please notify developers.",
                "warning",
            )
        return self._notify(f"Article removed from view. Server message: {result.message}", "warning")

    async def change_status(self, article_id: str, status: str) -> Notification:
        """Change an article's status and patch its row once the server accepted it."""
        try:
            await self.client.update_status(article_id, status)
        except ArticleSyncError as e:
            logger.error("Error updating status of article %s: %s", article_id, e)
            return self._notify(f"Failed to update status: {e}", "error")

        self.state.patch_status_by_id(article_id, status)
        return self._notify(f"Article status updated to {status}", "success")

    async def load_article(self, article_id: str) -> Article:
        """Load one article for the editor."""
        try:
            return await self.client.get_article(article_id)
        except ArticleSyncError as e:
            self._notify(f"Failed to load article: {e}", "error")
            raise

    @staticmethod
    def _editor_payload(data: Union[Article, Mapping[str, Any]]) -> Dict[str, Any]:
        """Check editor input and build the payload sent to the server."""
        payload = data.to_payload() if isinstance(data, Article) else dict(data)

        missing = [name for name in EDITOR_REQUIRED_FIELDS if not str(payload.get(name) or "").strip()]
        if missing:
            raise ValidationError(f"Please fill in all required fields: {', '.join(missing)}")

        subtopics = list(payload.get("subtopics") or [])
        subcontent = list(payload.get("subcontent") or [])
        if len(subtopics) != len(subcontent):
            raise ValidationError("Every section needs both a subtopic and content")
        sections = [(t, c) for t, c in zip(subtopics, subcontent) if t.strip() or c.strip()]
        if any(not t.strip() or not c.strip() for t, c in sections):
            raise ValidationError("Every section needs both a subtopic and content")
        if not sections:
            raise ValidationError("Please add at least one content section")

        status = payload.get("status") or "draft"
        if not is_valid_status(status):
            raise ValidationError(f"Invalid status '{status}'")

        payload["subtopics"] = [t for t, _ in sections]
        payload["subcontent"] = [c for _, c in sections]
        payload["keywords"] = dedupe_keywords(payload.get("keywords") or [])
        payload["images"] = [url for url in payload.get("images") or [] if url and url.strip()]
        payload["status"] = status
        return payload

    async def save_article(self, data: Union[Article, Mapping[str, Any]],
                           article_id: Optional[str] = None) -> Article:
        """
        Create a new article, or update article_id when given.

        Raises:
            ValidationError: If the editor input is incomplete (nothing is sent)
            ArticleSyncError: If the server call failed
        """
        verb, done = ("update", "updated") if article_id else ("publish", "published")
        try:
            payload = self._editor_payload(data)
            if article_id:
                article = await self.client.update_article(article_id, payload)
            else:
                article = await self.client.create_article(payload)
        except ArticleSyncError as e:
            logger.error("Error saving article %s: %s", article_id or "(new)", e)
            self._notify(f"Failed to {verb} article: {e}", "error")
            raise

        self.state.upsert(article)
        self._notify(f'Your article "{article.title}" has been {done} successfully.', "success")
        return article
