"""
Reference management.

Turns research results into a numbered markdown reference list and keeps a
single "References" section at the end of the blog body.
"""

import re
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field

from blogcraft.research.research_agent import ResearchResult
from blogcraft.utils.logger import get_logger

logger = get_logger(__name__)

REFERENCES_SECTION_PATTERN = re.compile(r"\n## References[\s\S]*$")
EMPTY_REFERENCES_MARKDOWN = "\n## References\n\nNo references available."
STALE_REFERENCE_YEARS = 5
# fromisoformat before 3.11 only takes 3 or 6 fractional digits
FRACTION_PATTERN = re.compile(r"\.(\d+)")
MIN_RECOMMENDED_REFERENCES = 3


class Reference(BaseModel):
    """A citation derived from a research result."""

    title: str
    url: str
    source: str = ""
    published_at: Optional[str] = None


class ReferenceList(BaseModel):
    references: list[Reference] = Field(default_factory=list)
    total_count: int = 0
    generated_at: str


class ReferenceSummary(BaseModel):
    total_references: int
    sources: list[str] = Field(default_factory=list)
    date_range: dict[str, str] = Field(default_factory=dict)
    generated_at: str


class ReferenceValidation(BaseModel):
    """Advisory findings about a reference list."""

    is_valid: bool
    issues: list[str] = Field(default_factory=list)
    suggestions: list[str] = Field(default_factory=list)


def _parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, or return None when it is missing or malformed."""
    if not value:
        return None
    try:
        normalized = FRACTION_PATTERN.sub(
            lambda m: "." + m.group(1)[:6].ljust(6, "0"), value.replace("Z", "+00:00"), count=1
        )
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        logger.debug(f"Unparseable publish date: {value}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ReferenceManagementAgent:
    """Builds, renders and validates blog references."""

    async def extract_references(
        self,
        research_data: list[ResearchResult],
        blog_content: str,
    ) -> ReferenceList:
        """
        Project research results into references, one per result.

        Args:
            research_data: Research results in citation order
            blog_content: Current blog body (not used for filtering)

        Returns:
            ReferenceList with every research result
        """
        references = [
            Reference(
                title=item.title,
                url=item.url,
                source=item.source,
                published_at=item.published_at,
            )
            for item in research_data
        ]

        return ReferenceList(
            references=references,
            total_count=len(references),
            generated_at=datetime.now(timezone.utc).isoformat(),
        )

    @staticmethod
    def generate_markdown_references(references: list[Reference]) -> str:
        """Render ``N. [title](url) - source (year)`` lines under a References heading."""
        if not references:
            return EMPTY_REFERENCES_MARKDOWN

        lines = []
        for index, ref in enumerate(references, start=1):
            published = _parse_date(ref.published_at)
            year = f" ({published.year})" if published else ""
            lines.append(f"{index}. [{ref.title}]({ref.url}) - {ref.source}{year}\n")

        return "\n## References\n\n" + "".join(lines)

    async def embed_references_in_blog(
        self,
        blog_content: str,
        references: list[Reference],
    ) -> str:
        """Replace any existing References section with a freshly rendered one."""
        content = REFERENCES_SECTION_PATTERN.sub("", blog_content)
        return content + self.generate_markdown_references(references)

    async def get_reference_summary(
        self, research_data: list[ResearchResult]
    ) -> ReferenceSummary:
        sources = list(dict.fromkeys(item.source for item in research_data))
        dates = [
            parsed
            for parsed in (_parse_date(item.published_at) for item in research_data)
            if parsed is not None
        ]

        date_range = {}
        if dates:
            date_range = {
                "earliest": min(dates).isoformat(),
                "latest": max(dates).isoformat(),
            }

        return ReferenceSummary(
            total_references=len(research_data),
            sources=sources,
            date_range=date_range,
            generated_at=datetime.now(timezone.utc).isoformat(),
        )

    @staticmethod
    def validate_references(
        references: list[Reference],
        now: Optional[datetime] = None,
    ) -> ReferenceValidation:
        """
        Check a reference list for common problems.

        Findings are advisory; the references are never modified.

        Args:
            references: References to check
            now: Reference time for the staleness check (default: now, UTC)

        Returns:
            ReferenceValidation with issues and suggestions
        """
        issues: list[str] = []
        suggestions: list[str] = []

        if len(references) < MIN_RECOMMENDED_REFERENCES:
            suggestions.append("Consider adding more references for better credibility")

        invalid_urls = [ref for ref in references if not ref.url or not ref.url.startswith("http")]
        if invalid_urls:
            issues.append(f"{len(invalid_urls)} references have invalid URLs")

        missing_titles = [ref for ref in references if not ref.title or not ref.title.strip()]
        if missing_titles:
            issues.append(f"{len(missing_titles)} references have missing titles")

        seen_urls: set[str] = set()
        duplicate_count = 0
        for ref in references:
            if ref.url in seen_urls:
                duplicate_count += 1
            seen_urls.add(ref.url)
        if duplicate_count:
            issues.append(f"{duplicate_count} duplicate URLs found")

        current_year = (now or datetime.now(timezone.utc)).year
        old_count = 0
        for ref in references:
            published = _parse_date(ref.published_at)
            if published is not None and current_year - published.year > STALE_REFERENCE_YEARS:
                old_count += 1
        if old_count > len(references) * 0.5:
            suggestions.append("Consider including more recent references")

        return ReferenceValidation(
            is_valid=not issues,
            issues=issues,
            suggestions=suggestions,
        )
