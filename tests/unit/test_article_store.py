"""
Unit tests for ArticleStore implementations.
"""
import json
import os
from unittest.mock import MagicMock

import pytest
from pymongo.errors import DuplicateKeyError

from articledesk.article_store import ArticleStore, merge_editable_fields, prepare_new_document, sort_by_date_desc
from articledesk.exceptions import DocumentValidationError, DuplicateArticleError
from tests.unit.test_store_base import BaseLocalDiskStoreTests, BaseTigrisStoreTests, make_article_doc


class TestDocumentHelpers:
    """Test suite for the shared document helpers."""

    def test_prepare_applies_defaults(self):
        """Test that status, date and list fields get their creation defaults."""
        doc = make_article_doc()
        for key in ("status", "date", "images", "keywords"):
            del doc[key]
        prepared = prepare_new_document(doc)
        assert prepared["status"] == "draft"
        assert prepared["date"]
        assert prepared["images"] == []
        assert prepared["keywords"] == []

    def test_prepare_rejects_missing_title(self):
        """Test that a document without a title is rejected."""
        with pytest.raises(DocumentValidationError) as exc_info:
            prepare_new_document(make_article_doc(title=""))
        assert "title is required" in exc_info.value.errors

    def test_prepare_rejects_mismatched_sections(self):
        """Test that subtopics and subcontent must pair up."""
        with pytest.raises(DocumentValidationError):
            prepare_new_document(make_article_doc(subtopics=["A", "B"], subcontent=["a"]))

    def test_prepare_drops_unknown_fields(self):
        """Test that only schema fields are stored."""
        prepared = prepare_new_document(make_article_doc(extra="x", _id="abc"))
        assert "extra" not in prepared
        assert "_id" not in prepared

    def test_merge_keeps_articleid_and_date(self):
        """Test that an update cannot change articleid or date."""
        existing = make_article_doc("a1", date="2024-01-01T00:00:00Z")
        merged = merge_editable_fields(existing, {"articleid": "other", "date": "2030-01-01", "title": "New"})
        assert merged["articleid"] == "a1"
        assert merged["date"] == "2024-01-01T00:00:00Z"
        assert merged["title"] == "New"

    def test_merge_ignores_none_values(self):
        """Test that None fields leave the stored value in place."""
        merged = merge_editable_fields(make_article_doc(), {"subtitle": None})
        assert merged["subtitle"] == "Subtitle"

    def test_merge_rejects_invalid_status(self):
        """Test that a merged document is validated."""
        with pytest.raises(DocumentValidationError):
            merge_editable_fields(make_article_doc(), {"status": "deleted"})

    def test_sort_by_date_desc_puts_unparseable_last(self):
        """Test newest-first ordering with a broken date."""
        docs = [
            make_article_doc("old", date="2023-01-01T00:00:00Z"),
            make_article_doc("broken", date="yesterday"),
            make_article_doc("new", date="2024-06-01T00:00:00Z"),
        ]
        assert [d["articleid"] for d in sort_by_date_desc(docs)] == ["new", "old", "broken"]


class TestLocalDiskArticleStore(BaseLocalDiskStoreTests):
    """Test suite for LocalDiskArticleStore."""

    @pytest.fixture
    def store(self, temp_state_dir):
        """Create a LocalDiskArticleStore instance."""
        from articledesk.local_disk_article_store import LocalDiskArticleStore
        return LocalDiskArticleStore(state_dir=temp_state_dir)

    def test_implements_interface(self, store):
        """Test that LocalDiskArticleStore implements ArticleStore interface."""
        assert isinstance(store, ArticleStore)

    def test_list_articles_empty_by_default(self, store):
        """Test that list_articles returns empty list when no file exists."""
        assert store.list_articles() == []

    def test_create_and_get_article(self, store):
        """Test creating an article and retrieving it."""
        store.create_article(make_article_doc("a1"))
        article = store.get_article("a1")
        assert article is not None
        assert article["title"] == "Title a1"
        assert article["designation"] == "Energy Specialist"

    def test_create_duplicate_raises(self, store):
        """Test that a second article with the same articleid is rejected."""
        store.create_article(make_article_doc("a1"))
        with pytest.raises(DuplicateArticleError):
            store.create_article(make_article_doc("a1", title="Other"))
        assert len(store.list_articles()) == 1

    def test_list_articles_newest_first(self, store):
        """Test that articles are listed by date descending."""
        store.create_article(make_article_doc("old", date="2023-01-01T00:00:00Z"))
        store.create_article(make_article_doc("new", date="2024-01-01T00:00:00Z"))
        assert [a["articleid"] for a in store.list_articles()] == ["new", "old"]

    def test_list_articles_filters_by_status(self, store):
        """Test filtering by status."""
        store.create_article(make_article_doc("a1", status="published"))
        store.create_article(make_article_doc("a2", status="draft"))
        published = store.list_articles(status="published")
        assert [a["articleid"] for a in published] == ["a1"]

    def test_get_article_not_found_returns_none(self, store):
        """Test that get_article returns None for unknown ID."""
        assert store.get_article("nonexistent") is None

    def test_update_article(self, store):
        """Test that update replaces editable fields."""
        store.create_article(make_article_doc("a1"))
        updated = store.update_article("a1", {"title": "Updated", "keywords": ["x", "y"]})
        assert updated["title"] == "Updated"
        assert store.get_article("a1")["keywords"] == ["x", "y"]

    def test_update_missing_article_returns_none(self, store):
        """Test that updating an unknown id returns None."""
        assert store.update_article("missing", {"title": "x"}) is None

    def test_update_status_changes_only_status(self, store):
        """Test that update_status leaves other fields alone."""
        store.create_article(make_article_doc("a1"))
        before = store.get_article("a1")
        after = store.update_status("a1", "archived")
        assert after["status"] == "archived"
        assert {k: v for k, v in after.items() if k != "status"} == {
            k: v for k, v in before.items() if k != "status"
        }

    def test_update_status_on_document_failing_current_schema(self, temp_state_dir):
        """Test that a stored document with unpaired sections can still change status."""
        from articledesk.local_disk_article_store import LocalDiskArticleStore
        legacy = make_article_doc("old", subtopics=["A", "B"], subcontent=["a"])
        with open(os.path.join(temp_state_dir, "articles.json"), "w") as f:
            json.dump({"articles": [legacy]}, f)
        store = LocalDiskArticleStore(state_dir=temp_state_dir)

        updated = store.update_status("old", "published")

        assert updated["status"] == "published"
        assert updated["subcontent"] == ["a"]
        assert store.get_article("old")["status"] == "published"

    def test_delete_existing_article(self, store):
        """Test deleting an existing article."""
        store.create_article(make_article_doc("a1"))
        assert store.delete_article("a1") is True
        assert store.get_article("a1") is None

    def test_delete_nonexistent_article_returns_false(self, store):
        """Test that delete_article returns False for unknown ID."""
        assert store.delete_article("nonexistent") is False

    def test_delete_does_not_affect_other_articles(self, store):
        """Test that deleting one article doesn't affect others."""
        store.create_article(make_article_doc("a1"))
        store.create_article(make_article_doc("a2"))
        store.delete_article("a1")
        assert [a["articleid"] for a in store.list_articles()] == ["a2"]

    def test_persists_to_file(self, store, temp_state_dir):
        """Test that articles are persisted to disk."""
        store.create_article(make_article_doc("a1"))
        articles_file = os.path.join(temp_state_dir, "articles.json")
        assert os.path.exists(articles_file)
        with open(articles_file, "r") as f:
            data = json.load(f)
        assert data["articles"][0]["articleid"] == "a1"

    def test_loads_from_existing_file(self, temp_state_dir):
        """Test that articles are loaded from an existing file."""
        from articledesk.local_disk_article_store import LocalDiskArticleStore
        articles_file = os.path.join(temp_state_dir, "articles.json")
        with open(articles_file, "w") as f:
            json.dump({"articles": [make_article_doc("a1")]}, f)
        store = LocalDiskArticleStore(state_dir=temp_state_dir)
        assert store.get_article("a1")["title"] == "Title a1"


class TestTigrisArticleStore(BaseTigrisStoreTests):
    """Test suite for TigrisArticleStore using mocked S3."""

    @pytest.fixture
    def store(self, mock_s3_client, monkeypatch):
        """Create a TigrisArticleStore with mocked S3 client."""
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "test_key")
        monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "test_secret")
        monkeypatch.setenv("TIGRIS_BUCKET_NAME", "test-bucket")
        from articledesk.tigris_article_store import TigrisArticleStore
        store = TigrisArticleStore()
        store.s3_client = mock_s3_client
        return store

    def test_implements_interface(self, store):
        """Test that TigrisArticleStore implements ArticleStore interface."""
        assert isinstance(store, ArticleStore)

    def test_missing_credentials_raise(self, monkeypatch):
        """Test that construction fails without credentials."""
        monkeypatch.delenv("AWS_ACCESS_KEY_ID", raising=False)
        monkeypatch.delenv("AWS_SECRET_ACCESS_KEY", raising=False)
        monkeypatch.setenv("TIGRIS_BUCKET_NAME", "test-bucket")
        from articledesk.tigris_article_store import TigrisArticleStore
        with pytest.raises(ValueError):
            TigrisArticleStore()

    def test_object_key(self, store):
        """Test the default and prefixed object keys."""
        assert store._get_object_key() == "state/articles.json"
        store.key_prefix = "staging/"
        assert store._get_object_key() == "staging/state/articles.json"

    def test_list_articles_empty_when_no_key(self, store, mock_s3_client):
        """Test list_articles returns empty list when S3 object doesn't exist."""
        self.setup_mock_no_such_key(mock_s3_client)
        assert store.list_articles() == []

    def test_get_article_from_s3(self, store, mock_s3_client):
        """Test get_article returns a specific article from S3."""
        self.setup_mock_get_object(mock_s3_client, {"articles": [make_article_doc("a1"), make_article_doc("a2")]})
        assert store.get_article("a2")["title"] == "Title a2"

    def test_create_article_saves_to_s3(self, store, mock_s3_client):
        """Test that create_article writes the new list to S3."""
        self.setup_mock_no_such_key(mock_s3_client)
        store.create_article(make_article_doc("a1"))
        mock_s3_client.put_object.assert_called_once()
        assert [a["articleid"] for a in self.saved_articles(mock_s3_client)] == ["a1"]

    def test_create_duplicate_does_not_write(self, store, mock_s3_client):
        """Test that a duplicate articleid is rejected before writing."""
        self.setup_mock_get_object(mock_s3_client, {"articles": [make_article_doc("a1")]})
        with pytest.raises(DuplicateArticleError):
            store.create_article(make_article_doc("a1"))
        mock_s3_client.put_object.assert_not_called()

    def test_update_status_in_s3(self, store, mock_s3_client):
        """Test that update_status writes the changed status."""
        self.setup_mock_get_object(mock_s3_client, {"articles": [make_article_doc("a1")]})
        store.update_status("a1", "published")
        assert self.saved_articles(mock_s3_client)[0]["status"] == "published"

    def test_delete_article_from_s3(self, store, mock_s3_client):
        """Test that delete_article removes article from S3."""
        self.setup_mock_get_object(mock_s3_client, {"articles": [make_article_doc("a1")]})
        assert store.delete_article("a1") is True
        assert self.saved_articles(mock_s3_client) == []

    def test_delete_missing_article_does_not_write(self, store, mock_s3_client):
        """Test that deleting an unknown id leaves S3 untouched."""
        self.setup_mock_no_such_key(mock_s3_client)
        assert store.delete_article("missing") is False
        mock_s3_client.put_object.assert_not_called()


class TestMongoArticleStore:
    """Test suite for MongoArticleStore with a mocked collection."""

    @pytest.fixture
    def collection(self):
        """Create a mock pymongo collection."""
        return MagicMock()

    @pytest.fixture
    def store(self, collection):
        """Create a MongoArticleStore around the mock collection."""
        from articledesk.mongo_article_store import MongoArticleStore
        return MongoArticleStore(collection=collection)

    def test_creates_unique_articleid_index(self, store, collection):
        """Test that the articleid index is unique."""
        collection.create_index.assert_any_call("articleid", unique=True)

    def test_list_articles_filters_by_status(self, store, collection):
        """Test that listing queries by status without the internal id."""
        collection.find.return_value = [make_article_doc("a1")]
        result = store.list_articles(status="published")
        assert result[0]["articleid"] == "a1"
        assert collection.find.call_args[0][0] == {"status": "published"}
        assert collection.find.call_args[0][1] == {"_id": 0}

    def test_list_articles_orders_mixed_precision_dates(self, store, collection):
        """Test that fractional and whole-second timestamps sort chronologically."""
        collection.find.return_value = [
            make_article_doc("whole", date="2024-01-01T00:00:00Z"),
            make_article_doc("later", date="2024-01-01T00:00:00.500000Z"),
            make_article_doc("older", date="2023-12-31T23:59:59.900000Z"),
        ]
        result = store.list_articles()
        assert [a["articleid"] for a in result] == ["later", "whole", "older"]

    def test_create_article_inserts_document(self, store, collection):
        """Test that create inserts the prepared document."""
        result = store.create_article(make_article_doc("a1"))
        collection.insert_one.assert_called_once()
        assert collection.insert_one.call_args[0][0]["articleid"] == "a1"
        assert "_id" not in result

    def test_create_duplicate_key_raises(self, store, collection):
        """Test that the unique index violation is reported as a duplicate."""
        collection.insert_one.side_effect = DuplicateKeyError("E11000 duplicate key")
        with pytest.raises(DuplicateArticleError) as exc_info:
            store.create_article(make_article_doc("a1"))
        assert exc_info.value.article_id == "a1"

    def test_update_article_sets_editable_fields(self, store, collection):
        """Test that update sets the merged fields without articleid or date."""
        collection.find_one.return_value = make_article_doc("a1")
        collection.find_one_and_update.return_value = make_article_doc("a1", title="New")
        result = store.update_article("a1", {"title": "New", "date": "2030-01-01"})
        assert result["title"] == "New"
        update = collection.find_one_and_update.call_args[0][1]["$set"]
        assert update["title"] == "New"
        assert "articleid" not in update
        assert "date" not in update

    def test_update_missing_article_returns_none(self, store, collection):
        """Test that updating an unknown id returns None without writing."""
        collection.find_one.return_value = None
        assert store.update_article("missing", {"title": "x"}) is None
        collection.find_one_and_update.assert_not_called()

    def test_update_status(self, store, collection):
        """Test that update_status sets only the status."""
        collection.find_one_and_update.return_value = make_article_doc("a1", status="archived")
        result = store.update_status("a1", "archived")
        assert result["status"] == "archived"
        assert collection.find_one_and_update.call_args[0][1] == {"$set": {"status": "archived"}}

    def test_delete_uses_delete_one(self, store, collection):
        """Test that deletion goes through delete_one."""
        collection.delete_one.return_value.deleted_count = 1
        assert store.delete_article("a1") is True
        collection.delete_one.assert_called_once_with({"articleid": "a1"})

    def test_delete_missing_returns_false(self, store, collection):
        """Test that deleting nothing reports False."""
        collection.delete_one.return_value.deleted_count = 0
        assert store.delete_article("missing") is False

    @pytest.mark.parametrize("bad_id", [{"$ne": None}, ["a1"], 7, ""])
    def test_non_string_ids_never_reach_the_collection(self, store, collection, bad_id):
        """Test that query operators or other non-string ids are treated as absent."""
        assert store.delete_article(bad_id) is False
        assert store.get_article(bad_id) is None
        assert store.update_status(bad_id, "archived") is None
        assert store.update_article(bad_id, {"title": "x"}) is None
        collection.delete_one.assert_not_called()
        collection.find_one.assert_not_called()
        collection.find_one_and_update.assert_not_called()


class TestArticleStoreFactory:
    """Test suite for the article store factory."""

    def test_factory_returns_local_by_default(self, monkeypatch, tmp_path):
        """Test that factory returns LocalDiskArticleStore by default."""
        from articledesk.article_store_factory import create_article_store
        from articledesk.local_disk_article_store import LocalDiskArticleStore
        monkeypatch.delenv("ARTICLE_STORAGE_TYPE", raising=False)
        monkeypatch.setenv("ARTICLE_STATE_DIR", str(tmp_path))

        store = create_article_store()

        assert isinstance(store, LocalDiskArticleStore)
        assert store.state_dir == str(tmp_path)

    def test_factory_returns_tigris_when_set(self, monkeypatch):
        """Test that factory returns TigrisArticleStore when set."""
        from articledesk.article_store_factory import create_article_store
        from articledesk.tigris_article_store import TigrisArticleStore
        monkeypatch.setenv("ARTICLE_STORAGE_TYPE", "TIGRIS")
        monkeypatch.setenv("AWS_ACCESS_KEY_ID", "test_key")
        monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "test_secret")
        monkeypatch.setenv("TIGRIS_BUCKET_NAME", "test_bucket")

        assert isinstance(create_article_store(), TigrisArticleStore)

    def test_factory_returns_mongo_when_set(self, monkeypatch):
        """Test that factory builds a MongoArticleStore from config."""
        from articledesk import mongo_article_store
        from articledesk.article_store_factory import create_article_store
        monkeypatch.setenv("ARTICLE_STORAGE_TYPE", "mongodb")
        monkeypatch.setenv("MONGODB_URI", "mongodb://db.example:27017")
        mock_client = MagicMock()
        monkeypatch.setattr(mongo_article_store.pymongo, "MongoClient", mock_client)

        store = create_article_store()

        assert isinstance(store, mongo_article_store.MongoArticleStore)
        mock_client.assert_called_once_with("mongodb://db.example:27017")

    def test_factory_rejects_unknown_type(self, monkeypatch):
        """Test that an unknown backend name is an error."""
        from articledesk.article_store_factory import create_article_store
        monkeypatch.setenv("ARTICLE_STORAGE_TYPE", "sqlite")
        with pytest.raises(ValueError):
            create_article_store()
