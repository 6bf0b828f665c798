"""
Local disk implementation of article storage.

Stores articles as a JSON file on the local filesystem.
Default location: state/articles.json
"""
import os
from typing import Dict, List

from articledesk.article_store import DocumentListArticleStore
from articledesk.file_utils import load_json_file, save_json_file

ARTICLES_FILENAME = "articles.json"


class LocalDiskArticleStore(DocumentListArticleStore):
    """Article store backed by {state_dir}/articles.json."""

    def __init__(self, state_dir: str = "state"):
        self.state_dir = state_dir
        os.makedirs(self.state_dir, exist_ok=True)
        self.filepath = os.path.join(self.state_dir, ARTICLES_FILENAME)

    def _read_articles(self) -> List[Dict]:
        return load_json_file(self.filepath, {"articles": []}).get("articles", [])

    def _write_articles(self, articles: List[Dict]) -> None:
        save_json_file(self.filepath, {"articles": articles})
