"""
Factory function for creating article stores.
"""
from typing import Optional

from articledesk.article_store import ArticleStore
from articledesk.config import Config
from articledesk.local_disk_article_store import LocalDiskArticleStore


def create_article_store(config: Optional[Config] = None) -> ArticleStore:
    """
    Create an article store based on environment configuration.

    Reads ARTICLE_STORAGE_TYPE to determine which implementation to use:
    - 'local' or unset: LocalDiskArticleStore (default)
    - 'tigris': TigrisArticleStore
    - 'mongodb' or 'mongo': MongoArticleStore

    Args:
        config: Config instance (defaults to a fresh Config)

    Returns:
        ArticleStore: Configured article store instance

    Raises:
        ValueError: If ARTICLE_STORAGE_TYPE names an unknown backend
    """
    config = config or Config()
    storage_type = config.storage_type

    if storage_type == 'tigris':
        from articledesk.tigris_article_store import TigrisArticleStore
        return TigrisArticleStore()
    if storage_type in ('mongodb', 'mongo'):
        from articledesk.mongo_article_store import MongoArticleStore
        return MongoArticleStore(
            mongodb_uri=config.mongodb_uri,
            database_name=config.mongodb_database,
            collection_name=config.mongodb_collection,
        )
    if storage_type == 'local':
        return LocalDiskArticleStore(state_dir=config.state_dir)

    raise ValueError(
        f"Unknown ARTICLE_STORAGE_TYPE '{storage_type}'. Use 'local', 'tigris' or 'mongodb'."
    )
