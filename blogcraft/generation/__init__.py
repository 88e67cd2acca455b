"""Content generation module using Gemini."""

from .content_agent import (
    BlogGenerationOptions,
    BlogMetadata,
    ContentGenerationAgent,
    EditedBlog,
    GeneratedBlog,
    Tone,
)

__all__ = [
    "BlogGenerationOptions",
    "BlogMetadata",
    "ContentGenerationAgent",
    "EditedBlog",
    "GeneratedBlog",
    "Tone",
]
