"""Unit tests for ReferenceManagementAgent."""

from datetime import datetime, timezone

import pytest

from blogcraft.references.reference_agent import Reference, ReferenceManagementAgent
from blogcraft.research.research_agent import ResearchResult


@pytest.fixture
def agent():
    return ReferenceManagementAgent()


@pytest.fixture
def research_data():
    return [
        ResearchResult(
            title="Solar capacity doubles",
            url="https://news.example.com/solar",
            snippet="Installations doubled in a single year.",
            source="Example News",
            published_at="2024-05-01T10:00:00Z",
        ),
        ResearchResult(
            title="Solar Energy Basics",
            url="https://www.energy.gov/solar",
            snippet="An overview of how solar energy works.",
            source="www.energy.gov",
        ),
    ]


class TestExtractReferences:
    @pytest.mark.asyncio
    async def test_projects_every_result_in_order(self, agent, research_data):
        result = await agent.extract_references(research_data, "blog body")

        assert result.total_count == 2
        assert result.references == [
            Reference(
                title="Solar capacity doubles",
                url="https://news.example.com/solar",
                source="Example News",
                published_at="2024-05-01T10:00:00Z",
            ),
            Reference(
                title="Solar Energy Basics",
                url="https://www.energy.gov/solar",
                source="www.energy.gov",
            ),
        ]
        assert result.generated_at


class TestMarkdownReferences:
    def test_numbered_list_with_year(self, research_data):
        references = [
            Reference(title=r.title, url=r.url, source=r.source, published_at=r.published_at)
            for r in research_data
        ]

        markdown = ReferenceManagementAgent.generate_markdown_references(references)

        assert markdown == (
            "\n## References\n\n"
            "1. [Solar capacity doubles](https://news.example.com/solar) - Example News (2024)\n"
            "2. [Solar Energy Basics](https://www.energy.gov/solar) - www.energy.gov\n"
        )

    def test_empty_list_placeholder(self):
        assert ReferenceManagementAgent.generate_markdown_references([]) == (
            "\n## References\n\nNo references available."
        )

    def test_unparseable_date_omits_year(self):
        ref = Reference(title="T", url="https://a.com", source="A", published_at="yesterday")
        markdown = ReferenceManagementAgent.generate_markdown_references([ref])

        assert markdown.endswith("1. [T](https://a.com) - A\n")

    @pytest.mark.parametrize(
        "published_at",
        ["2023-03-04T05:06:07.1234567Z", "2023-03-04T05:06:07.5+01:00", "2023-03-04T05:06:07.123Z"],
    )
    def test_any_fraction_precision_keeps_year(self, published_at):
        ref = Reference(title="T", url="https://a.com", source="A", published_at=published_at)
        markdown = ReferenceManagementAgent.generate_markdown_references([ref])

        assert markdown.endswith("1. [T](https://a.com) - A (2023)\n")


class TestEmbedReferences:
    @pytest.mark.asyncio
    async def test_appends_section(self, agent):
        refs = [Reference(title="T", url="https://a.com", source="A")]

        content = await agent.embed_references_in_blog("Intro\n## Body\nText", refs)

        assert content == "Intro\n## Body\nText\n## References\n\n1. [T](https://a.com) - A\n"

    @pytest.mark.asyncio
    async def test_replaces_existing_section(self, agent):
        refs = [Reference(title="New", url="https://new.com", source="N")]
        original = "Intro\n## References\n\n1. [Old](https://old.com) - O\n2. [Older](https://older.com) - O\n"

        content = await agent.embed_references_in_blog(original, refs)

        assert "Old" not in content
        assert content.count("## References") == 1
        assert content.endswith("1. [New](https://new.com) - N\n")

    @pytest.mark.asyncio
    async def test_idempotent(self, agent):
        refs = [
            Reference(title="A", url="https://a.com", source="A"),
            Reference(title="B", url="https://b.com", source="B"),
        ]
        body = "Intro\n## Section\nText"

        once = await agent.embed_references_in_blog(body, refs)
        twice = await agent.embed_references_in_blog(once, refs)

        assert twice == once

    @pytest.mark.asyncio
    async def test_idempotent_with_no_references(self, agent):
        once = await agent.embed_references_in_blog("Intro", [])
        twice = await agent.embed_references_in_blog(once, [])

        assert twice == once == "Intro\n## References\n\nNo references available."


class TestValidateReferences:
    NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)

    def _refs(self, count, **overrides):
        return [
            Reference(
                title=overrides.get("title", f"Title {i}"),
                url=overrides.get("url", f"https://site{i}.com"),
                source="S",
                published_at=overrides.get("published_at"),
            )
            for i in range(count)
        ]

    def test_valid_list(self):
        result = ReferenceManagementAgent.validate_references(self._refs(3), now=self.NOW)

        assert result.is_valid
        assert result.issues == []
        assert result.suggestions == []

    def test_suggests_more_references(self):
        result = ReferenceManagementAgent.validate_references(self._refs(2), now=self.NOW)

        assert result.is_valid
        assert result.suggestions == ["Consider adding more references for better credibility"]

    def test_flags_invalid_urls_and_titles(self):
        refs = self._refs(3)
        refs[0] = Reference(title="", url="ftp://a.com", source="S")
        refs[1] = Reference(title="   ", url="", source="S")

        result = ReferenceManagementAgent.validate_references(refs, now=self.NOW)

        assert not result.is_valid
        assert "2 references have invalid URLs" in result.issues
        assert "2 references have missing titles" in result.issues

    def test_flags_duplicate_urls(self):
        refs = self._refs(4, url="https://same.com")

        result = ReferenceManagementAgent.validate_references(refs, now=self.NOW)

        assert result.issues == ["3 duplicate URLs found"]

    def test_suggests_recent_references(self):
        refs = self._refs(3, published_at="2015-03-01T00:00:00Z")

        result = ReferenceManagementAgent.validate_references(refs, now=self.NOW)

        assert result.is_valid
        assert result.suggestions == ["Consider including more recent references"]

    def test_does_not_modify_references(self):
        refs = self._refs(2, url="https://same.com")
        snapshot = [ref.model_copy() for ref in refs]

        ReferenceManagementAgent.validate_references(refs, now=self.NOW)

        assert refs == snapshot


class TestReferenceSummary:
    @pytest.mark.asyncio
    async def test_sources_and_date_range(self, agent, research_data):
        extra = ResearchResult(
            title="Older solar article",
            url="https://old.example.com",
            snippet="Solar energy history lesson.",
            source="Example News",
            published_at="2020-01-15T00:00:00Z",
        )

        summary = await agent.get_reference_summary([*research_data, extra])

        assert summary.total_references == 3
        assert summary.sources == ["Example News", "www.energy.gov"]
        assert summary.date_range["earliest"].startswith("2020-01-15")
        assert summary.date_range["latest"].startswith("2024-05-01")

    @pytest.mark.asyncio
    async def test_no_dates(self, agent):
        summary = await agent.get_reference_summary([])

        assert summary.total_references == 0
        assert summary.date_range == {}
