"""
Article data model and schema helpers.

The wire/storage format keeps the document field names used by the
article collection (articleid, designation, ...); the dataclass exposes
them as snake_case attributes.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Tuple

ARTICLE_STATUSES = ("draft", "published", "archived")
DEFAULT_STATUS = "draft"

REQUIRED_TEXT_FIELDS = ("articleid", "title", "subtitle", "author", "designation")
LIST_FIELDS = ("images", "subtopics", "subcontent", "keywords")

# Fields an update may change; articleid and date are fixed at creation.
EDITABLE_FIELDS = (
    "title",
    "subtitle",
    "author",
    "designation",
    "images",
    "subtopics",
    "subcontent",
    "keywords",
    "status",
)


def is_valid_status(status: Any) -> bool:
    """Check whether a value is one of the recognised lifecycle statuses."""
    return isinstance(status, str) and status in ARTICLE_STATUSES


def dedupe_keywords(keywords: Iterable[str]) -> List[str]:
    """
    Remove duplicate and blank keywords, keeping first-seen order.

    Matching is case-sensitive: "AI" and "ai" are kept as two keywords.
    """
    seen = set()
    result = []
    for keyword in keywords:
        if not isinstance(keyword, str):
            continue
        keyword = keyword.strip()
        if keyword and keyword not in seen:
            seen.add(keyword)
            result.append(keyword)
    return result


def validate_article_document(doc: Mapping[str, Any]) -> List[str]:
    """
    Validate a stored article document against the article schema.

    Args:
        doc: Article document in wire format

    Returns:
        List of validation error messages (empty if the document is valid)
    """
    errors = []

    for name in REQUIRED_TEXT_FIELDS:
        value = doc.get(name)
        if not isinstance(value, str) or not value.strip():
            errors.append(f"{name} is required")

    for name in LIST_FIELDS:
        value = doc.get(name, [])
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            errors.append(f"{name} must be a list of strings")

    if not is_valid_status(doc.get("status")):
        errors.append("status must be one of: " + ", ".join(ARTICLE_STATUSES))

    subtopics = doc.get("subtopics", [])
    subcontent = doc.get("subcontent", [])
    if isinstance(subtopics, list) and isinstance(subcontent, list) and len(subtopics) != len(subcontent):
        errors.append("subtopics and subcontent must have the same length")

    return errors


@dataclass
class Article:
    """A single article record."""
    article_id: str = ""
    title: str = ""
    subtitle: str = ""
    author: str = ""
    designation: str = ""
    images: List[str] = field(default_factory=list)
    subtopics: List[str] = field(default_factory=list)
    subcontent: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    status: str = DEFAULT_STATUS
    date: str = ""
    is_fallback: bool = False

    def sections(self) -> List[Tuple[str, str]]:
        """Pair each subtopic with the subcontent at the same index."""
        return list(zip(self.subtopics, self.subcontent))

    def to_payload(self) -> Dict[str, Any]:
        """Convert to the wire/storage document (without client-only flags)."""
        return {
            "articleid": self.article_id,
            "title": self.title,
            "subtitle": self.subtitle,
            "author": self.author,
            "designation": self.designation,
            "images": list(self.images),
            "subtopics": list(self.subtopics),
            "subcontent": list(self.subcontent),
            "keywords": list(self.keywords),
            "status": self.status,
            "date": self.date,
        }

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary including the fallback flag."""
        data = self.to_payload()
        data["is_fallback"] = self.is_fallback
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'Article':
        """Create an Article from a well-formed wire document."""
        return cls(
            article_id=data["articleid"],
            title=data["title"],
            subtitle=data["subtitle"],
            author=data["author"],
            designation=data["designation"],
            images=list(data.get("images", [])),
            subtopics=list(data.get("subtopics", [])),
            subcontent=list(data.get("subcontent", [])),
            keywords=list(data.get("keywords", [])),
            status=data.get("status", DEFAULT_STATUS),
            date=data.get("date", ""),
            is_fallback=bool(data.get("is_fallback", False)),
        )
