"""
Research agent combining NewsAPI and Google Custom Search.

Queries both sources for a topic, merges the results, removes duplicates
and low-quality entries, and returns the first ten survivors.
"""

import asyncio
from typing import Any, Optional
from urllib.parse import urlparse

import httpx
from pydantic import BaseModel, ConfigDict, Field

from blogcraft.config.settings import Settings, get_settings
from blogcraft.utils.logger import get_logger

logger = get_logger(__name__)

BLOCKED_DOMAINS = [
    "facebook.com",
    "twitter.com",
    "instagram.com",
    "tiktok.com",
    "youtube.com",
]


class ResearchResult(BaseModel):
    """A single research source."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(description="Title of the article or page")
    url: str = Field(description="URL of the source")
    snippet: str = Field(default="", description="Description or search snippet")
    source: str = Field(default="", description="Publisher name or hostname")
    published_at: Optional[str] = Field(
        default=None, description="ISO-8601 publish timestamp, news only"
    )


class ResearchSummary(BaseModel):
    """Counts at each research stage, for debugging."""

    topic: str
    news_count: int = 0
    search_count: int = 0
    total_results: int = 0
    filtered_results: int = 0
    final_results: int = 0


class ResearchAgent:
    """Agent for researching a topic across news and web search."""

    NEWS_API_URL = "https://newsapi.org/v2/everything"
    CUSTOM_SEARCH_URL = "https://www.googleapis.com/customsearch/v1"

    def __init__(self, settings: Optional[Settings] = None) -> None:
        """
        Initialize the research agent.

        Args:
            settings: Settings carrying the NewsAPI and Custom Search
                credentials (default: cached application settings)
        """
        self.settings = settings or get_settings()
        self.max_results = self.settings.research_max_results

    async def research_topic(self, topic: str) -> list[ResearchResult]:
        """
        Research a topic and return up to ten relevant sources.

        News results come first, so a URL found by both sources keeps its
        news record.

        Args:
            topic: Free-text blog topic

        Returns:
            List of ResearchResult in source order
        """
        results, _ = await self.research_with_summary(topic)
        return results

    async def research_with_summary(
        self, topic: str
    ) -> tuple[list[ResearchResult], ResearchSummary]:
        """
        Research a topic and report how many results survived each stage.

        Args:
            topic: Free-text blog topic

        Returns:
            Tuple of (final results, ResearchSummary)
        """
        logger.info(f"Researching topic: {topic}")

        news_results, search_results = await asyncio.gather(
            self._get_news_articles(topic),
            self._get_search_results(topic),
        )

        combined = self.combine_and_deduplicate(news_results, search_results)
        filtered = self.filter_results(combined, topic)
        final = filtered[: self.max_results]

        summary = ResearchSummary(
            topic=topic,
            news_count=len(news_results),
            search_count=len(search_results),
            total_results=len(combined),
            filtered_results=len(filtered),
            final_results=len(final),
        )
        logger.info(
            f"Research complete: {summary.news_count} news, {summary.search_count} search, "
            f"{summary.total_results} unique, {summary.filtered_results} relevant, "
            f"{summary.final_results} kept"
        )
        return final, summary

    async def _fetch_json(self, url: str, params: dict[str, Any]) -> dict[str, Any]:
        """GET a JSON document, raising httpx.HTTPStatusError on non-2xx."""
        async with httpx.AsyncClient(timeout=self.settings.http_timeout) as client:
            response = await client.get(url, params=params)
            response.raise_for_status()
            return response.json()

    async def _get_news_articles(self, topic: str) -> list[ResearchResult]:
        """Fetch recent English news articles for the topic."""
        params = {
            "q": topic,
            "sortBy": "publishedAt",
            "language": "en",
            "pageSize": 20,
            "apiKey": self.settings.news_api_key,
        }

        try:
            data = await self._fetch_json(self.NEWS_API_URL, params)

            if data.get("status") == "error":
                logger.error(f"News API error: {data.get('message')}")
                return []

            return [
                ResearchResult(
                    title=article.get("title") or "",
                    url=article.get("url") or "",
                    snippet=article.get("description") or "",
                    source=(article.get("source") or {}).get("name") or "",
                    published_at=article.get("publishedAt"),
                )
                for article in data.get("articles") or []
            ]
        except httpx.HTTPStatusError as e:
            logger.error(f"News API error: {e.response.status_code} {e.response.reason_phrase}")
            return []
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Failed to fetch news articles: {e}")
            return []

    async def _get_search_results(self, topic: str) -> list[ResearchResult]:
        """Fetch general web search results for the topic."""
        params = {
            "key": self.settings.google_custom_search_api_key,
            "cx": self.settings.google_custom_search_engine_id,
            "q": topic,
            "num": 10,
        }

        try:
            data = await self._fetch_json(self.CUSTOM_SEARCH_URL, params)

            if data.get("error"):
                logger.error(f"Google Custom Search API error: {data['error']}")
                return []

            return [
                ResearchResult(
                    title=item.get("title") or "",
                    url=item["link"],
                    snippet=item.get("snippet") or "",
                    source=urlparse(item["link"]).hostname or "",
                )
                for item in data.get("items") or []
            ]
        except httpx.HTTPStatusError as e:
            logger.error(
                f"Google Custom Search API error: {e.response.status_code} "
                f"{e.response.reason_phrase}"
            )
            return []
        except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
            logger.error(f"Failed to fetch search results: {e}")
            return []

    @staticmethod
    def combine_and_deduplicate(
        news: list[ResearchResult],
        search: list[ResearchResult],
    ) -> list[ResearchResult]:
        """Concatenate news then search results, keeping the first record per URL."""
        seen_urls: set[str] = set()
        combined = []

        for result in [*news, *search]:
            if result.url in seen_urls:
                continue
            seen_urls.add(result.url)
            combined.append(result)

        return combined

    @staticmethod
    def filter_results(results: list[ResearchResult], topic: str) -> list[ResearchResult]:
        """
        Drop social media, thin entries and results unrelated to the topic.

        Args:
            results: Deduplicated research results
            topic: Topic whose words (longer than 3 chars) must appear in
                the title or snippet

        Returns:
            Results that pass every filter, order preserved
        """
        topic_keywords = [word for word in topic.lower().split(" ") if len(word) > 3]
        filtered = []

        for result in results:
            try:
                domain = urlparse(result.url).hostname
            except ValueError:
                continue
            if not domain:
                continue

            if any(blocked in domain for blocked in BLOCKED_DOMAINS):
                continue

            if len(result.title) < 10 or len(result.snippet) < 20:
                continue

            content = f"{result.title} {result.snippet}".lower()
            if not any(keyword in content for keyword in topic_keywords):
                continue

            filtered.append(result)

        return filtered

    async def get_research_summary(self, topic: str) -> ResearchSummary:
        """Run every research stage and report the counts, for debugging."""
        _, summary = await self.research_with_summary(topic)
        return summary
