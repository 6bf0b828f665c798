"""
Tigris/S3-compatible storage implementation of article storage.

All articles live in one JSON object so several server instances can
share them. Default object key: state/articles.json
"""
from typing import Dict, List, Optional

from articledesk.article_store import DocumentListArticleStore
from articledesk.tigris_storage import create_tigris_client, load_json_object, save_json_object


class TigrisArticleStore(DocumentListArticleStore):
    """Article store backed by a single object in a Tigris bucket."""

    def __init__(self, key_prefix: Optional[str] = None, **client_kwargs):
        """
        Args:
            key_prefix: Optional namespace, e.g. "staging" stores under
                staging/state/articles.json
            **client_kwargs: Credentials, endpoint, bucket and region
                passed to create_tigris_client
        """
        self.s3_client, self.bucket_name = create_tigris_client(**client_kwargs)
        self.key_prefix = key_prefix

    def _get_object_key(self) -> str:
        if self.key_prefix:
            return f"{self.key_prefix.strip('/')}/state/articles.json"
        return "state/articles.json"

    def _read_articles(self) -> List[Dict]:
        data = load_json_object(self.s3_client, self.bucket_name, self._get_object_key())
        if data is None:
            return []
        return data.get("articles", [])

    def _write_articles(self, articles: List[Dict]) -> None:
        save_json_object(self.s3_client, self.bucket_name, self._get_object_key(), {"articles": articles})
