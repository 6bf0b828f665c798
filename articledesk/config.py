"""
Configuration management for Article Desk.
Loads environment variables and provides access to configuration settings.
"""
import os
from typing import Optional

from dotenv import load_dotenv

_TRUE_VALUES = ("true", "1", "yes")


def _env_flag(key: str, default: str) -> bool:
    """Read a boolean environment variable."""
    return os.getenv(key, default).strip().lower() in _TRUE_VALUES


class Config:
    """Configuration settings loaded from environment variables."""

    def __init__(self):
        """Initialize configuration by loading environment variables."""
        load_dotenv()

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        """
        Get a configuration value by key.

        Args:
            key: Configuration key name
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        return os.getenv(key, default)

    @property
    def api_base_url(self) -> str:
        """Get the article API base URL used by the sync client."""
        return os.getenv("ARTICLE_API_URL", "http://localhost:5000/api").rstrip("/")

    @property
    def app_env(self) -> str:
        """Get the application environment name (development or production)."""
        return os.getenv("APP_ENV", "development").strip().lower()

    @property
    def is_production(self) -> bool:
        """Check if running in a production configuration."""
        return self.app_env in ("production", "prod")

    @property
    def mock_fallback_enabled(self) -> bool:
        """
        Check if reads may fall back to mock articles.

        ARTICLE_MOCK_FALLBACK overrides the default; when unset, fallback is
        enabled everywhere except production.
        """
        value = os.getenv("ARTICLE_MOCK_FALLBACK")
        if value is None or not value.strip():
            return not self.is_production
        return value.strip().lower() in _TRUE_VALUES

    @property
    def get_timeout(self) -> float:
        """Get the single-article read timeout in seconds."""
        return float(os.getenv("ARTICLE_GET_TIMEOUT", "15"))

    @property
    def storage_type(self) -> str:
        """Get the article storage backend name (local, tigris or mongodb)."""
        return os.getenv("ARTICLE_STORAGE_TYPE", "local").strip().lower()

    @property
    def state_dir(self) -> str:
        """Get the directory used by the local disk store."""
        return os.getenv("ARTICLE_STATE_DIR", "state")

    @property
    def mongodb_uri(self) -> str:
        """Get the MongoDB connection string."""
        return os.getenv("MONGODB_URI", "mongodb://localhost:27017")

    @property
    def mongodb_database(self) -> str:
        """Get the MongoDB database name."""
        return os.getenv("MONGODB_DATABASE", "articledesk")

    @property
    def mongodb_collection(self) -> str:
        """Get the MongoDB collection name."""
        return os.getenv("MONGODB_COLLECTION", "articles")

    @property
    def legacy_remove_route_enabled(self) -> bool:
        """Check if the POST /api/articles/remove route is served."""
        return _env_flag("ENABLE_LEGACY_REMOVE_ROUTE", "true")

    @property
    def server_host(self) -> str:
        """Get article server host."""
        return os.getenv("SERVER_HOST", "127.0.0.1")

    @property
    def server_port(self) -> int:
        """Get article server port."""
        return int(os.getenv("SERVER_PORT", "5000"))

    @property
    def log_level(self) -> str:
        """Get the log level name."""
        return os.getenv("LOG_LEVEL", "INFO").upper()
