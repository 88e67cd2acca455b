import re
from collections import Counter
from datetime import datetime, timezone
from typing import Literal, Optional

from pydantic import BaseModel, Field

from blogcraft.config.settings import Settings, get_settings
from blogcraft.research.research_agent import ResearchResult
from blogcraft.utils.llm_helpers import estimate_cost, gemini_llm_call
from blogcraft.utils.logger import get_logger

logger = get_logger(__name__)

Tone = Literal["academic", "casual", "professional"]

TONE_INSTRUCTIONS = {
    "academic": "Write in an academic style with formal language, citations, and scholarly tone.",
    "casual": "Write in a conversational, friendly tone suitable for a general audience.",
    "professional": "Write in a professional business tone, clear and authoritative.",
}

# Tried in order, first match wins
KEYWORD_PATTERNS = [
    re.compile(r"\*\*Keywords:\*\* \[(.+)\]", re.MULTILINE),
    re.compile(r"Keywords: \[(.+)\]", re.MULTILINE),
    re.compile(r"Keywords: (.+)", re.MULTILINE),
    re.compile(r"\*\*Keywords:\*\* (.+)", re.MULTILINE),
]

TITLE_PATTERN = re.compile(r"^# ([^\r\n]+)\r?$", re.MULTILINE)

STOPWORDS = frozenset({
    "the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of",
    "with", "by", "is", "are", "was", "were", "be", "been", "have", "has",
    "had", "do", "does", "did", "will", "would", "could", "should", "may",
    "might", "can", "this", "that", "these", "those", "i", "you", "he", "she",
    "it", "we", "they", "me", "him", "her", "us", "them",
})


class BlogGenerationOptions(BaseModel):
    """Inputs for a single blog generation call."""

    topic: str
    tone: Tone
    max_words: int = Field(gt=0)
    research_data: list[ResearchResult] = Field(default_factory=list)
    include_images: bool = True


class BlogMetadata(BaseModel):
    tone: str
    generated_at: str
    model_used: str
    token_usage: Optional[dict[str, int]] = None
    estimated_cost: Optional[float] = None


class GeneratedBlog(BaseModel):
    """Parsed model output for one blog post."""

    title: str
    content: str
    word_count: int
    sections: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    metadata: BlogMetadata


class EditedBlog(BaseModel):
    title: str
    content: str
    token_usage: Optional[dict[str, int]] = None
    estimated_cost: Optional[float] = None


def extract_title(text: str, fallback: str) -> tuple[str, str]:
    """
    Split the first ``# `` heading off a markdown document.

    Returns:
        Tuple of (title or fallback, remaining text stripped)
    """
    match = TITLE_PATTERN.search(text)
    if not match:
        return fallback, text.strip()
    body = text[: match.start()] + text[match.end():]
    return match.group(1), body.strip()


class ContentGenerationAgent:
    """Writes and edits blog posts with a single Gemini call each."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.model_name = self.settings.content_model

    async def generate_blog(self, options: BlogGenerationOptions) -> GeneratedBlog:
        """
        Generate a blog post from the topic and research.

        The model is called once; its errors are not caught here.
        """
        prompt = self.build_prompt(options)
        text, token_usage = await gemini_llm_call(
            prompt, model_name=self.model_name, settings=self.settings
        )

        blog = self.parse_generated_content(text, options)

        if token_usage:
            blog.metadata.token_usage = token_usage
            blog.metadata.estimated_cost = estimate_cost(token_usage, self.model_name)

        logger.info(
            f"Generated '{blog.title}' ({blog.word_count} words, "
            f"{len(blog.sections)} sections)"
        )
        return blog

    def build_prompt(self, options: BlogGenerationOptions) -> str:
        research = "\n".join(
            f"- {item.title}: {item.snippet}" for item in options.research_data
        )

        return f"""
You are an expert blog writer. Create a comprehensive blog post on "{options.topic}".

**Requirements:**
- Maximum {options.max_words} words
- {TONE_INSTRUCTIONS[options.tone]}
- Include proper Markdown formatting
- Use the provided research data for accuracy
- Structure with clear headings (## for main sections)
- Include an engaging introduction and conclusion
- Return 5-7 keywords that best describe this blog post

**Research Data:**
{research}

**Output Format:**
Return the blog post in this exact format:

# [Blog Title]

[Introduction paragraph]

## [Section 1 Title]
[Section 1 content]

## [Section 2 Title]
[Section 2 content]

## [Section 3 Title]
[Section 3 content]

## Conclusion
[Conclusion paragraph]

**Keywords:** [keyword1, keyword2, keyword3, keyword4, keyword5]

**Word Count:** [exact number]

Write the blog post now:
"""

    def parse_generated_content(
        self, text: str, options: BlogGenerationOptions
    ) -> GeneratedBlog:
        """
        Parse raw model output into a GeneratedBlog.

        Missing markers never fail the parse: the title falls back to the
        topic and keywords fall back to word frequency.
        """
        title, content = extract_title(text, options.topic)

        keywords = self.extract_keywords(text)
        if not keywords:
            keywords = self.extract_keywords_from_content(content)
            logger.info(f"No keyword line found, using frequency keywords: {keywords}")

        sections = [section.strip() for section in content.split("\n## ")]

        return GeneratedBlog(
            title=title,
            content=content,
            word_count=len(content.split()),
            sections=sections,
            keywords=keywords,
            metadata=BlogMetadata(
                tone=options.tone,
                generated_at=datetime.now(timezone.utc).isoformat(),
                model_used=self.model_name,
            ),
        )

    @staticmethod
    def extract_keywords(text: str) -> list[str]:
        """Read the ``Keywords:`` line, or return [] when there is none."""
        for pattern in KEYWORD_PATTERNS:
            match = pattern.search(text)
            if not match:
                continue

            keyword_string = match.group(1).strip()
            if keyword_string.startswith("[") and keyword_string.endswith("]"):
                keyword_string = keyword_string[1:-1]

            return [k.strip() for k in keyword_string.split(",") if k.strip()]

        return []

    @staticmethod
    def extract_keywords_from_content(content: str, limit: int = 5) -> list[str]:
        """Top words by frequency, ignoring stopwords and words of 3 chars or fewer."""
        counts: Counter[str] = Counter()
        for word in content.lower().split():
            clean = re.sub(r"[^\w]", "", word)
            if len(clean) > 3 and clean not in STOPWORDS:
                counts[clean] += 1

        # most_common keeps insertion order for ties
        return [word for word, _ in counts.most_common(limit)]

    async def edit_blog(self, original_content: str, edit_request: str) -> EditedBlog:
        """
        Rewrite a blog post according to a free-text edit request.

        Args:
            original_content: The current markdown of the post
            edit_request: What the user wants changed

        Returns:
            EditedBlog with the new title and body
        """
        prompt = f"""
Original blog content:
{original_content}

Edit request: {edit_request}

**CRITICAL INSTRUCTIONS:**
- Return ONLY the edited blog content - no meta-commentary, explanations, or notes about your writing process
- Do not include phrases like "Here's the edited version", "I've made changes", "Let me know if you'd like adjustments", etc.
- Do not explain what you did or how you edited it
- Start directly with the blog title and content
- Maintain the same structure and tone as the original
- Include the title with # markdown format

Please provide the edited blog content with the requested changes:
"""
        text, token_usage = await gemini_llm_call(
            prompt, model_name=self.model_name, settings=self.settings
        )
        title, content = extract_title(text, "Edited Blog Post")

        logger.info(f"Edited blog '{title}' ({len(content.split())} words)")
        return EditedBlog(
            title=title,
            content=content,
            token_usage=token_usage,
            estimated_cost=estimate_cost(token_usage, self.model_name) if token_usage else None,
        )
