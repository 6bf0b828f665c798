"""
Placeholder articles for development configurations.

build_mock_article() stands in for a single article that could not be
read; sample_articles() stands in for the whole list when the list
request fails. Both are deterministic and must never be used when mock
fallback is disabled.
"""
from typing import List

from articledesk.models import Article

MOCK_IMAGE_URL = "https://via.placeholder.com/800x400?text=Mock+Image"
MOCK_ARTICLE_DATE = "1970-01-01T00:00:00Z"


def build_mock_article(article_id: str) -> Article:
    """
    Build the fallback article for an id.

    Args:
        article_id: Id of the article that could not be loaded

    Returns:
        Article tagged with is_fallback=True
    """
    return Article(
        article_id=article_id,
        title=f"Test Article {article_id}",
        subtitle=f"Mock data for article {article_id}: the article could not be loaded",
        author="Test Author",
        designation="Developer",
        images=[MOCK_IMAGE_URL],
        subtopics=["First Section", "Second Section"],
        subcontent=[
            "This is the content of the first section. It is mock data used when the API is unavailable.",
            "This is the content of the second section. In a real application, this would be replaced "
            "with actual article content.",
        ],
        keywords=["test", "mock", "development"],
        status="draft",
        date=MOCK_ARTICLE_DATE,
        is_fallback=True,
    )


def sample_articles() -> List[Article]:
    """Example articles shown by the list view when the list cannot be fetched."""
    return [
        Article(
            article_id="1",
            title="Introduction to Smart Grid Technology",
            subtitle="Understanding the basics of modern energy systems",
            author="Jane Smith",
            designation="Energy Specialist",
            subtopics=["Introduction", "Benefits"],
            subcontent=["Smart grid technology represents...", "The benefits include..."],
            keywords=["smart grid", "energy", "technology"],
            status="published",
            date="2023-05-15T10:30:00Z",
            is_fallback=True,
        ),
        Article(
            article_id="2",
            title="Energy Efficiency in Industrial Applications",
            subtitle="How factories are reducing energy consumption",
            author="John Doe",
            designation="Industrial Engineer",
            subtopics=["Industrial Practices", "Case Studies"],
            subcontent=["Modern industrial facilities...", "Case study 1 shows..."],
            keywords=["energy efficiency", "industrial", "manufacturing"],
            status="draft",
            date="2023-06-22T14:45:00Z",
            is_fallback=True,
        ),
    ]
