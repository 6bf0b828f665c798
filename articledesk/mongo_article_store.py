"""
MongoDB implementation of article storage.

Each article is one document in a collection, keyed by a unique index on
articleid. Deletion goes through Collection.delete_one, the removal
primitive every supported pymongo version provides.
"""
import logging
from typing import Any, Dict, List, Mapping, Optional

import pymongo
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from articledesk.article_store import ArticleStore, merge_editable_fields, prepare_new_document, sort_by_date_desc
from articledesk.exceptions import DuplicateArticleError

logger = logging.getLogger(__name__)

# Never return the storage-internal identifier to callers.
_PROJECTION = {"_id": 0}


def _id_filter(article_id: Any) -> Optional[Dict[str, str]]:
    """Query for one articleid, or None unless the id is a non-empty string."""
    if not isinstance(article_id, str) or not article_id:
        logger.warning("Rejected non-string article id of type %s", type(article_id).__name__)
        return None
    return {"articleid": article_id}


class MongoArticleStore(ArticleStore):
    """MongoDB collection implementation of article storage."""

    def __init__(
        self,
        mongodb_uri: str = "mongodb://localhost:27017",
        database_name: str = "articledesk",
        collection_name: str = "articles",
        collection: Optional[Collection] = None
    ):
        """
        Initialize MongoDB article store.

        Args:
            mongodb_uri: MongoDB connection string
            database_name: Database name
            collection_name: Collection name
            collection: Pre-built collection (skips connecting; used by tests)
        """
        if collection is None:
            self.client = pymongo.MongoClient(mongodb_uri)
            collection = self.client[database_name][collection_name]
        else:
            self.client = None
        self.collection = collection
        self._create_indexes()

    def _create_indexes(self):
        """Create the unique articleid index and the status/date listing index."""
        self.collection.create_index("articleid", unique=True)
        self.collection.create_index([("status", pymongo.ASCENDING), ("date", pymongo.DESCENDING)])

    def list_articles(self, status: Optional[str] = None) -> List[Dict]:
        filter_dict = {"status": status} if status else {}
        # Dates are ISO strings with optional fractional seconds, so order by parsed value.
        return sort_by_date_desc(list(self.collection.find(filter_dict, _PROJECTION)))

    def get_article(self, article_id: str) -> Optional[Dict]:
        query = _id_filter(article_id)
        if query is None:
            return None
        return self.collection.find_one(query, _PROJECTION)

    def create_article(self, doc: Mapping[str, Any]) -> Dict:
        prepared = prepare_new_document(doc)
        try:
            # insert_one adds _id to the dict it is given
            self.collection.insert_one(dict(prepared))
        except DuplicateKeyError as e:
            logger.info("Article %s already exists", prepared["articleid"])
            raise DuplicateArticleError(prepared["articleid"]) from e
        return prepared

    def update_article(self, article_id: str, fields: Mapping[str, Any]) -> Optional[Dict]:
        existing = self.get_article(article_id)
        if existing is None:
            return None
        merged = merge_editable_fields(existing, fields)
        changes = {k: v for k, v in merged.items() if k not in ("articleid", "date")}
        return self.collection.find_one_and_update(
            {"articleid": article_id},
            {"$set": changes},
            projection=_PROJECTION,
            return_document=pymongo.ReturnDocument.AFTER,
        )

    def update_status(self, article_id: str, status: str) -> Optional[Dict]:
        query = _id_filter(article_id)
        if query is None:
            return None
        return self.collection.find_one_and_update(
            query,
            {"$set": {"status": status}},
            projection=_PROJECTION,
            return_document=pymongo.ReturnDocument.AFTER,
        )

    def delete_article(self, article_id: str) -> bool:
        query = _id_filter(article_id)
        if query is None:
            return False
        result = self.collection.delete_one(query)
        return result.deleted_count > 0
