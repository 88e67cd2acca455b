"""Research module for news and web search."""

from .research_agent import (
    BLOCKED_DOMAINS,
    ResearchAgent,
    ResearchResult,
    ResearchSummary,
)

__all__ = [
    "BLOCKED_DOMAINS",
    "ResearchAgent",
    "ResearchResult",
    "ResearchSummary",
]
