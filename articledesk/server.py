"""
Article API server.

Serves the article CRUD and status routes under /api/articles on top of a
configurable ArticleStore.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse

from articledesk.article_store import ArticleStore
from articledesk.config import Config
from articledesk.exceptions import DocumentValidationError, DuplicateArticleError
from articledesk.models import is_valid_status

# Configure server logger
logger = logging.getLogger('article_server')
logger.setLevel(logging.INFO)

# Add console handler if not already present
if not logger.handlers:
    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)
    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

INVALID_STATUS_MESSAGE = "Invalid status. Must be draft, published, or archived"


def sanitize_log_input(value: str) -> str:
    """
    Sanitize user input for logging to prevent log injection attacks.
    Removes newlines and other control characters that could be used for log forging.

    Args:
        value: The user input to sanitize

    Returns:
        Sanitized string safe for logging
    """
    if not isinstance(value, str):
        value = str(value)
    sanitized = value.replace('\n', '_').replace('\r', '_').replace('\t', '_')
    # Truncate to reasonable length to prevent log flooding
    return sanitized[:200]


def _is_article_id(value: Any) -> bool:
    return isinstance(value, str) and bool(value.strip())


async def _read_json_object(request: Request, route: str) -> Dict[str, Any]:
    """Decode a JSON object body or answer 400."""
    try:
        data = await request.json()
    except ValueError as e:
        logger.warning(f"{route} - 400 Malformed JSON body")
        raise HTTPException(status_code=400, detail="Request body must be valid JSON") from e
    if not isinstance(data, dict):
        logger.warning(f"{route} - 400 Body is not an object")
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return data


def create_app(article_store: Optional[ArticleStore] = None, config: Optional[Config] = None) -> FastAPI:
    """
    Create the article API FastAPI application.

    Args:
        article_store: Optional article store instance (defaults to factory-created)
        config: Optional Config instance (defaults to a fresh Config)

    Returns:
        FastAPI application instance
    """
    config = config or Config()
    if article_store is None:
        from articledesk.article_store_factory import create_article_store
        article_store = create_article_store(config)

    app = FastAPI(title="Article Desk API")  # pylint: disable=redefined-outer-name

    @app.exception_handler(Exception)
    async def unexpected_error(request: Request, exc: Exception):
        """Answer unexpected store failures with their message."""
        logger.error(f"{request.method} {sanitize_log_input(request.url.path)} - 500 {exc}")
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    # ================== HEALTH ==================
    @app.get("/api/health")
    async def health():
        """Report that the server is up and which store backs it."""
        return JSONResponse(content={"status": "ok", "storage": type(article_store).__name__})

    # ================== LISTING ==================
    @app.get("/api/articles")
    async def list_articles(status: Optional[str] = None):
        """List articles newest first, optionally filtered by status."""
        logger.info("GET /api/articles")
        if status and not is_valid_status(status):
            # Unrecognised filters are ignored rather than rejected.
            logger.warning(f"GET /api/articles - ignoring unknown status filter '{sanitize_log_input(status)}'")
            status = None
        articles = article_store.list_articles(status=status)
        return JSONResponse(content=articles)

    @app.get("/api/articles/status/{status}")
    async def list_articles_by_status(status: str):
        """List articles with the given status, newest first."""
        route = f"GET /api/articles/status/{sanitize_log_input(status)}"
        logger.info(route)
        if not is_valid_status(status):
            logger.warning(f"{route} - 400 Invalid status")
            raise HTTPException(status_code=400, detail=INVALID_STATUS_MESSAGE)
        return JSONResponse(content=article_store.list_articles(status=status))

    # ================== SINGLE ARTICLE ==================
    @app.get("/api/articles/{article_id}")
    async def get_article(article_id: str):
        """Get an article by its articleid."""
        route = f"GET /api/articles/{sanitize_log_input(article_id)}"
        logger.info(route)
        article = article_store.get_article(article_id)
        if article is None:
            logger.warning(f"{route} - 404 Article not found")
            raise HTTPException(status_code=404, detail="Article not found")
        return JSONResponse(content=article)

    @app.post("/api/articles")
    async def create_article(request: Request):
        """Create an article; the client supplies articleid and date."""
        route = "POST /api/articles"
        logger.info(route)
        data = await _read_json_object(request, route)

        article_id = data.get("articleid")
        if not _is_article_id(article_id):
            logger.warning(f"{route} - 400 articleid is not a non-empty string")
            raise HTTPException(status_code=400, detail="articleid must be a non-empty string")
        if article_store.get_article(article_id) is not None:
            logger.warning(f"{route} - 400 Duplicate articleid {sanitize_log_input(article_id)}")
            raise HTTPException(status_code=400, detail="Article with this ID already exists")

        try:
            article = article_store.create_article(data)
        except DuplicateArticleError as e:
            logger.warning(f"{route} - 400 Duplicate articleid {sanitize_log_input(e.article_id)}")
            raise HTTPException(status_code=400, detail=str(e)) from e
        except DocumentValidationError as e:
            logger.warning(f"{route} - 400 {e}")
            raise HTTPException(status_code=400, detail=str(e)) from e

        logger.info(f"{route} - 201 Created {sanitize_log_input(article['articleid'])}")
        return JSONResponse(content=article, status_code=201)

    @app.put("/api/articles/{article_id}")
    async def update_article(article_id: str, request: Request):
        """Replace the editable fields of an article."""
        route = f"PUT /api/articles/{sanitize_log_input(article_id)}"
        logger.info(route)
        data = await _read_json_object(request, route)

        try:
            article = article_store.update_article(article_id, data)
        except DocumentValidationError as e:
            logger.warning(f"{route} - 400 {e}")
            raise HTTPException(status_code=400, detail=str(e)) from e

        if article is None:
            logger.warning(f"{route} - 404 Article not found")
            raise HTTPException(status_code=404, detail="Article not found")

        logger.info(f"{route} - 200")
        return JSONResponse(content=article)

    @app.patch("/api/articles/{article_id}/status")
    async def update_article_status(article_id: str, request: Request):
        """Change only the status of an article."""
        route = f"PATCH /api/articles/{sanitize_log_input(article_id)}/status"
        logger.info(route)
        data = await _read_json_object(request, route)

        status = data.get("status")
        if not is_valid_status(status):
            logger.warning(f"{route} - 400 Invalid status")
            raise HTTPException(status_code=400, detail=INVALID_STATUS_MESSAGE)

        article = article_store.update_status(article_id, status)
        if article is None:
            logger.warning(f"{route} - 404 Article not found")
            raise HTTPException(status_code=404, detail="Article not found")

        logger.info(f"{route} - 200 status={status}")
        return JSONResponse(content=article)

    @app.delete("/api/articles/{article_id}")
    async def delete_article(article_id: str):
        """Delete an article by its articleid."""
        route = f"DELETE /api/articles/{sanitize_log_input(article_id)}"
        logger.info(route)
        if not article_store.delete_article(article_id):
            logger.warning(f"{route} - 404 Article not found")
            raise HTTPException(status_code=404, detail="Article not found")

        logger.info(f"{route} - 200")
        return JSONResponse(content={"msg": "Article removed", "success": True})

    if config.legacy_remove_route_enabled:
        @app.post("/api/articles/remove")
        async def remove_article(request: Request):
            """Delete an article named in the body; kept for clients of the old delete path."""
            route = "POST /api/articles/remove"
            logger.info(route)
            data = await _read_json_object(request, route)

            article_id = data.get("articleId") or data.get("articleid")
            if not article_id:
                logger.warning(f"{route} - 400 Missing articleId")
                raise HTTPException(status_code=400, detail="Article ID is required")
            if not _is_article_id(article_id):
                logger.warning(f"{route} - 400 articleId is not a string")
                raise HTTPException(status_code=400, detail="Article ID must be a string")

            if not article_store.delete_article(article_id):
                logger.warning(f"{route} - 404 Article not found")
                raise HTTPException(status_code=404, detail="Article not found")

            logger.warning(f"{route} - 200 Removed {sanitize_log_input(article_id)} through the legacy route")
            return JSONResponse(content={"msg": "Article removed using alternative method", "success": True})

    return app
