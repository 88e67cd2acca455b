"""
Image Retrieval Agent module.

Finds Unsplash photos for a blog post, scores them against the topic, and
embeds them with the attribution Unsplash's API terms require at every
``## `` section break.
"""

import asyncio
import math
import re
from typing import Any, Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from blogcraft.config.settings import Settings, get_settings
from blogcraft.utils.logger import get_logger


logger = get_logger(__name__)

HIGH_RELEVANCE_THRESHOLD = 7

COMMON_WORDS = frozenset({
    "the", "and", "for", "are", "but", "not", "you", "all", "can", "had", "her",
    "was", "one", "our", "out", "day", "get", "has", "him", "his", "how", "man",
    "new", "now", "old", "see", "two", "way", "who", "boy", "did", "its", "let",
    "put", "say", "she", "too", "use", "this", "that", "with", "they", "have",
    "from", "word", "what", "said", "each", "which", "their", "time", "will",
    "about", "many", "then", "them", "these", "so", "some", "would", "make",
    "like", "into", "look", "more", "go", "no", "could", "my", "than", "first",
    "been", "call", "oil", "sit", "find", "down", "come", "made", "may", "part",
})


class ImageData(BaseModel):
    """A stock photo with the fields needed for attribution."""

    id: str = Field(description="Unsplash photo id")
    url: str = Field(description="Display URL (regular size)")
    alt: str = Field(description="Alt text, falls back to the search query")
    photographer: str = Field(default="", description="Photographer display name")
    photographer_username: str = Field(
        default="", description="Unsplash username, used for the profile link"
    )
    download_url: str = Field(default="")
    relevance_score: Optional[int] = Field(
        default=None, description="Heuristic topical fit from 1 to 10"
    )


class ImageSearchSummary(BaseModel):
    topic: str
    key_concepts: list[str] = Field(default_factory=list)
    search_queries: list[str] = Field(default_factory=list)
    total_images_found: int = 0
    scored_images: int = 0
    final_images: int = 0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class ImageRetrievalAgent:
    """
    Finds and embeds relevant stock photos.

    Handles:
    - Keyword derivation (caller keywords or content extraction)
    - Unsplash search, one request per query
    - Keyword-overlap relevance scoring
    - Attribution and download tracking when embedding
    """

    UNSPLASH_API_URL = "https://api.unsplash.com"
    MAX_QUERIES = 3

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._tracking_tasks: set[asyncio.Task] = set()

    @property
    def _headers(self) -> dict[str, str]:
        return {"Authorization": f"Client-ID {self.settings.unsplash_access_key}"}

    async def find_relevant_images(
        self,
        blog_content: str,
        topic: str,
        keywords: Optional[list[str]] = None,
    ) -> list[ImageData]:
        """
        Search, score and rank images for a blog post.

        Args:
            blog_content: Markdown body, used when no keywords are given
            topic: Blog topic, used for scoring
            keywords: Optional keywords from content generation

        Returns:
            Every scored image, highest score first
        """
        key_concepts = keywords if keywords else self.extract_key_concepts(blog_content)
        logger.info(f"Image key concepts: {key_concepts}")

        search_queries = key_concepts[: self.MAX_QUERIES]
        images = await self.search_images(search_queries)
        scored = self.score_image_relevance(images, topic)

        return sorted(scored, key=lambda image: image.relevance_score or 0, reverse=True)

    @staticmethod
    def extract_key_concepts(content: str, limit: int = 5) -> list[str]:
        """Unique words longer than 4 chars, in order of first appearance."""
        text = re.sub(r"[^\w\s]", "", content.lower())
        words = [
            word for word in text.split()
            if len(word) > 4 and word not in COMMON_WORDS
        ]
        return list(dict.fromkeys(words))[:limit]

    @staticmethod
    def generate_search_queries(concepts: list[str], limit: int = MAX_QUERIES) -> list[str]:
        """Expand each concept into a few query variants and keep the first ones."""
        queries = [
            variant
            for concept in concepts
            for variant in (
                concept,
                f"{concept} technology",
                f"{concept} illustration",
                f"{concept} concept",
            )
        ]
        return queries[:limit]

    def _parse_photos(self, data: dict[str, Any], query: str) -> list[ImageData]:
        """Map Unsplash records one by one; a malformed record is skipped alone."""
        images = []
        for photo in data.get("results") or []:
            try:
                user = photo.get("user") or {}
                images.append(
                    ImageData(
                        id=photo["id"],
                        url=photo["urls"]["regular"],
                        alt=photo.get("alt_description") or query,
                        photographer=user.get("name") or "",
                        photographer_username=user.get("username") or "",
                        download_url=(photo.get("links") or {}).get("download") or "",
                    )
                )
            except (KeyError, TypeError, AttributeError, ValidationError) as e:
                logger.warning(f"Skipping malformed Unsplash photo for '{query}': {e}")
        return images

    async def _search_unsplash(self, query: str, per_page: int) -> list[ImageData]:
        """
        Run one Unsplash search.

        Raises:
            httpx.HTTPError: On transport errors or a non-2xx status
            ValueError: When Unsplash returns an ``errors`` payload
        """
        params = {"query": query, "per_page": per_page, "orientation": "landscape"}

        async with httpx.AsyncClient(timeout=self.settings.http_timeout) as client:
            response = await client.get(
                f"{self.UNSPLASH_API_URL}/search/photos",
                params=params,
                headers=self._headers,
            )
            response.raise_for_status()
            data = response.json()

        if data.get("errors"):
            raise ValueError(f"Unsplash API errors: {data['errors']}")

        return self._parse_photos(data, query)

    async def search_images(self, queries: list[str]) -> list[ImageData]:
        """Search each query in turn; failed queries are logged and skipped."""
        all_images: list[ImageData] = []

        for query in queries:
            try:
                images = await self._search_unsplash(query, self.settings.images_per_query)
            except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
                logger.error(f"Image search failed for '{query}': {e}")
                continue

            logger.debug(f"Found {len(images)} images for '{query}'")
            all_images.extend(images)

        return all_images

    def score_image_relevance(self, images: list[ImageData], topic: str) -> list[ImageData]:
        return [
            image.model_copy(update={"relevance_score": self.calculate_keyword_relevance(image, topic)})
            for image in images
        ]

    @staticmethod
    def calculate_keyword_relevance(image: ImageData, topic: str) -> int:
        """
        Score how well an image's alt text matches the topic, from 1 to 10.

        A topic keyword (longer than 4 chars) matches when an alt word
        contains it or is contained in it. Longer alt text earns up to
        2 bonus points. Scores never drop below 1.
        """
        topic_keywords = [word for word in topic.lower().split() if len(word) > 4]
        image_keywords = image.alt.lower().split()

        matches = sum(
            1
            for topic_keyword in topic_keywords
            if any(
                topic_keyword in image_keyword or image_keyword in topic_keyword
                for image_keyword in image_keywords
            )
        )

        base_score = (matches / len(topic_keywords)) * 10 if topic_keywords else 5
        description_bonus = min(len(image.alt) / 20, 2)

        return max(1, min(_round_half_up(base_score + description_bonus), 10))

    async def embed_images_in_markdown(self, markdown: str, images: list[ImageData]) -> str:
        """
        Insert one attributed image before every ``## `` section.

        Images are cycled when there are more sections than images. Each
        embedded image triggers a download-tracking ping in the background.

        Args:
            markdown: Blog body
            images: Ranked images to distribute

        Returns:
            Markdown with images embedded
        """
        sections = markdown.split("\n## ")
        embedded = [sections[0]]

        for index, section in enumerate(sections[1:]):
            image = self._image_for_section(images, index)
            if image is None:
                embedded.append(f"\n## {section}")
                continue

            embedded.append(
                f"\n![{image.alt}]({image.url})\n\n"
                f"*Photo by [{image.photographer}](https://unsplash.com/@{image.photographer_username}) "
                f"on [Unsplash](https://unsplash.com)*\n\n"
                f"## {section}"
            )
            self._schedule_download_tracking(image.id)

        return "".join(embedded)

    @staticmethod
    def _image_for_section(images: list[ImageData], section_index: int) -> Optional[ImageData]:
        if not images:
            return None
        return images[section_index % len(images)]

    def _schedule_download_tracking(self, photo_id: str) -> None:
        task = asyncio.get_running_loop().create_task(self._track_image_download(photo_id))
        self._tracking_tasks.add(task)
        task.add_done_callback(self._tracking_tasks.discard)

    async def _track_image_download(self, photo_id: str) -> None:
        """Notify Unsplash of a download, as its API terms require."""
        try:
            async with httpx.AsyncClient(timeout=self.settings.http_timeout) as client:
                response = await client.get(
                    f"{self.UNSPLASH_API_URL}/photos/{photo_id}/download",
                    headers=self._headers,
                )
                response.raise_for_status()
            logger.debug(f"Tracked download for photo {photo_id}")
        except Exception as e:
            logger.warning(f"Failed to track image download for {photo_id}: {e}")

    async def wait_for_tracking(self) -> None:
        """Wait for any download-tracking pings still in flight."""
        if self._tracking_tasks:
            await asyncio.gather(*self._tracking_tasks, return_exceptions=True)

    async def get_image_search_summary(self, blog_content: str, topic: str) -> ImageSearchSummary:
        key_concepts = self.extract_key_concepts(blog_content)
        search_queries = self.generate_search_queries(key_concepts)
        images = await self.search_images(search_queries)
        scored = self.score_image_relevance(images, topic)
        final = [
            image for image in scored
            if (image.relevance_score or 0) >= HIGH_RELEVANCE_THRESHOLD
        ]

        return ImageSearchSummary(
            topic=topic,
            key_concepts=key_concepts,
            search_queries=search_queries,
            total_images_found=len(images),
            scored_images=len(scored),
            final_images=len(final),
        )

    async def search_images_by_query(self, query: str) -> list[ImageData]:
        """Single search for manual image replacement; failures yield []."""
        try:
            return await self._search_unsplash(query, self.settings.image_search_page_size)
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Failed to search images for '{query}': {e}")
            return []
