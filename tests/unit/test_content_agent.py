"""Unit tests for ContentGenerationAgent."""

from unittest.mock import AsyncMock, patch

import pytest

from blogcraft.config.settings import Settings
from blogcraft.generation.content_agent import (
    BlogGenerationOptions,
    ContentGenerationAgent,
    extract_title,
)
from blogcraft.research.research_agent import ResearchResult


@pytest.fixture
def agent():
    return ContentGenerationAgent(
        Settings(_env_file=None, google_api_key="test_key", content_model="gemini-2.0-flash-lite")
    )


@pytest.fixture
def options():
    return BlogGenerationOptions(
        topic="solar energy",
        tone="casual",
        max_words=500,
        research_data=[
            ResearchResult(
                title="Solar capacity doubles",
                url="https://news.example.com/solar",
                snippet="Installations doubled in a single year.",
                source="Example News",
            )
        ],
        include_images=False,
    )


SAMPLE_RESPONSE = """# The Bright Future of Solar Energy

Solar is everywhere now.

## How Panels Work
Photons knock electrons loose.

## Costs Are Falling
Prices dropped again.

## Conclusion
Go solar.

**Keywords:** [solar energy, photovoltaics, renewables, costs, panels]

**Word Count:** 20
"""


def patch_llm(text, usage=None):
    return patch(
        "blogcraft.generation.content_agent.gemini_llm_call",
        new=AsyncMock(return_value=(text, usage)),
    )


class TestGenerateBlog:
    """Tests for generate_blog and response parsing."""

    @pytest.mark.asyncio
    async def test_parses_structured_response(self, agent, options):
        with patch_llm(SAMPLE_RESPONSE):
            blog = await agent.generate_blog(options)

        assert blog.title == "The Bright Future of Solar Energy"
        assert not blog.content.startswith("# ")
        assert blog.content.startswith("Solar is everywhere now.")
        assert blog.keywords == ["solar energy", "photovoltaics", "renewables", "costs", "panels"]
        assert len(blog.sections) == 4
        assert blog.sections[1].startswith("How Panels Work")
        assert blog.word_count == len(blog.content.split())
        assert blog.metadata.tone == "casual"
        assert blog.metadata.model_used == "gemini-2.0-flash-lite"
        assert blog.metadata.token_usage is None

    @pytest.mark.asyncio
    async def test_title_falls_back_to_topic(self, agent, options):
        with patch_llm("Just a paragraph about panels.\n\nKeywords: sun, light"):
            blog = await agent.generate_blog(options)

        assert blog.title == "solar energy"
        assert blog.content == "Just a paragraph about panels.\n\nKeywords: sun, light"

    @pytest.mark.asyncio
    async def test_keyword_fallback_uses_word_frequency(self, agent, options):
        text = (
            "# Solar\n\n"
            "Energy energy energy energy. Solar solar solar. "
            "Panels, panels and grid grid. Storage cells are the best."
        )

        with patch_llm(text):
            blog = await agent.generate_blog(options)

        assert blog.keywords == ["energy", "solar", "panels", "grid", "storage"]

    @pytest.mark.asyncio
    async def test_records_token_usage_and_cost(self, agent, options):
        usage = {"input_tokens": 1000, "output_tokens": 1000}

        with patch_llm(SAMPLE_RESPONSE, usage):
            blog = await agent.generate_blog(options)

        assert blog.metadata.token_usage == usage
        assert blog.metadata.estimated_cost == pytest.approx(0.000375)

    @pytest.mark.asyncio
    async def test_model_errors_propagate(self, agent, options):
        failing = AsyncMock(side_effect=RuntimeError("model unavailable"))

        with patch("blogcraft.generation.content_agent.gemini_llm_call", new=failing):
            with pytest.raises(RuntimeError, match="model unavailable"):
                await agent.generate_blog(options)

        assert failing.await_count == 1

    @pytest.mark.asyncio
    async def test_prompt_contains_tone_limit_and_research(self, agent, options):
        llm = AsyncMock(return_value=(SAMPLE_RESPONSE, None))

        with patch("blogcraft.generation.content_agent.gemini_llm_call", new=llm):
            await agent.generate_blog(options)

        prompt = llm.call_args.args[0]
        assert '"solar energy"' in prompt
        assert "Maximum 500 words" in prompt
        assert "conversational, friendly tone" in prompt
        assert "- Solar capacity doubles: Installations doubled in a single year." in prompt
        assert "**Keywords:**" in prompt
        assert "**Word Count:**" in prompt


class TestKeywordExtraction:
    """Tests for the Keywords: line patterns."""

    def test_bold_bracketed(self):
        text = "**Keywords:** [alpha, beta, gamma]"
        assert ContentGenerationAgent.extract_keywords(text) == ["alpha", "beta", "gamma"]

    def test_plain_bracketed(self):
        text = "Keywords: [alpha, beta]"
        assert ContentGenerationAgent.extract_keywords(text) == ["alpha", "beta"]

    def test_plain_list(self):
        text = "Keywords: alpha,  beta , gamma"
        assert ContentGenerationAgent.extract_keywords(text) == ["alpha", "beta", "gamma"]

    def test_bold_plain_list(self):
        text = "**Keywords:** alpha, beta"
        assert ContentGenerationAgent.extract_keywords(text) == ["alpha", "beta"]

    def test_empty_entries_dropped(self):
        text = "Keywords: [alpha, , beta,]"
        assert ContentGenerationAgent.extract_keywords(text) == ["alpha", "beta"]

    def test_no_keyword_line(self):
        assert ContentGenerationAgent.extract_keywords("Nothing here") == []

    def test_frequency_fallback_skips_stopwords_and_short_words(self):
        content = "they they they have have have with with code code code api api api api"
        assert ContentGenerationAgent.extract_keywords_from_content(content) == ["code"]


class TestExtractTitle:
    def test_only_first_heading_removed(self):
        title, body = extract_title("# First\n\nText\n\n# Second\n", "fallback")

        assert title == "First"
        assert body == "Text\n\n# Second"

    def test_section_headings_are_not_titles(self):
        title, body = extract_title("## Section\nText", "fallback")

        assert title == "fallback"
        assert body == "## Section\nText"

    def test_crlf_line_endings(self):
        title, body = extract_title("# Windows Title\r\n\r\nBody text\r\n", "fallback")

        assert title == "Windows Title"
        assert body == "Body text"


class TestEditBlog:
    """Tests for edit_blog."""

    @pytest.mark.asyncio
    async def test_returns_new_title_and_content(self, agent):
        llm = AsyncMock(return_value=("# Shorter Title\n\nTighter body.", None))

        with patch("blogcraft.generation.content_agent.gemini_llm_call", new=llm):
            edited = await agent.edit_blog("# Old\n\nLong body.", "Make it shorter")

        assert edited.title == "Shorter Title"
        assert edited.content == "Tighter body."
        assert edited.estimated_cost is None
        prompt = llm.call_args.args[0]
        assert "Edit request: Make it shorter" in prompt
        assert "no meta-commentary" in prompt

    @pytest.mark.asyncio
    async def test_title_fallback(self, agent):
        with patch_llm("Tighter body without a heading."):
            edited = await agent.edit_blog("# Old\n\nLong body.", "Make it shorter")

        assert edited.title == "Edited Blog Post"
        assert edited.content == "Tighter body without a heading."
