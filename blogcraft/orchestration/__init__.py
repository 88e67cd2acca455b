"""Orchestration of the multi-agent blog pipeline."""

from .orchestrator import (
    AgentOrchestrator,
    BlogGenerationError,
    BlogGenerationRequest,
    BlogGenerationResult,
    GenerationMetadata,
    GenerationState,
    GenerationSummary,
)

__all__ = [
    "AgentOrchestrator",
    "BlogGenerationError",
    "BlogGenerationRequest",
    "BlogGenerationResult",
    "GenerationMetadata",
    "GenerationState",
    "GenerationSummary",
]
