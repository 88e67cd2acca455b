"""
Agent orchestrator.

Runs the blog pipeline as a fixed sequence:
1. Research the topic (news + web search)
2. Generate the post with Gemini
3. Find and embed Unsplash images (optional)
4. Extract and embed references

Each request gets its own agents; nothing is shared between requests.
"""

import time
from datetime import datetime, timezone
from typing import Any, Callable, Literal, Optional

from pydantic import BaseModel, Field

from blogcraft.config.settings import Settings, get_settings
from blogcraft.generation.content_agent import (
    BlogGenerationOptions,
    ContentGenerationAgent,
    Tone,
)
from blogcraft.media.image_agent import ImageData, ImageRetrievalAgent
from blogcraft.references.reference_agent import Reference, ReferenceManagementAgent
from blogcraft.research.research_agent import ResearchAgent
from blogcraft.utils.logger import get_logger

logger = get_logger(__name__)

Step = Literal["research", "content", "images", "references", "complete", "error"]

# Share of overall progress attributed to each step
STEP_WEIGHTS: list[tuple[str, float]] = [
    ("research", 0.2),
    ("content", 0.5),
    ("images", 0.2),
    ("references", 0.1),
]


class BlogGenerationError(RuntimeError):
    """Raised when any pipeline step fails; the original error is the __cause__."""


class BlogGenerationRequest(BaseModel):
    topic: str = Field(min_length=1)
    tone: Tone
    max_words: int = Field(gt=0)
    include_images: bool = True


class GenerationMetadata(BaseModel):
    generation_time: int = Field(description="Wall-clock duration in milliseconds")
    word_count: int
    model_used: str
    generated_at: str
    research_sources: int
    images_found: int
    references_count: int
    step_times: dict[str, int] = Field(
        default_factory=dict, description="Milliseconds spent in each step"
    )


class BlogGenerationResult(BaseModel):
    """Final composed document returned to callers."""

    title: str
    content: str
    images: list[ImageData] = Field(default_factory=list)
    all_images: list[ImageData] = Field(default_factory=list)
    references: list[Reference] = Field(default_factory=list)
    metadata: GenerationMetadata


class GenerationState(BaseModel):
    """A progress update emitted by generate_blog_with_progress."""

    step: Step
    progress: float = Field(ge=0, le=1)
    message: str
    data: Optional[Any] = None


class GenerationSummary(BaseModel):
    estimated_time: int
    steps: list[str]
    requirements: list[str]


ProgressCallback = Callable[[GenerationState], None]


class _ProgressTracker:
    """Turns step names into cumulative progress fractions."""

    def __init__(self, on_progress: ProgressCallback):
        self.on_progress = on_progress
        self.step_names = [name for name, _ in STEP_WEIGHTS]
        self.current_step = 0
        self.accumulated = 0.0

    def update(self, step: str, message: str, data: Any = None) -> None:
        step_index = self.step_names.index(step) if step in self.step_names else -1
        if step_index > self.current_step:
            self.accumulated += STEP_WEIGHTS[self.current_step][1]
            self.current_step = step_index

        progress = min(self.accumulated + STEP_WEIGHTS[self.current_step][1], 1.0)
        # Skipped steps never report, so completion is pinned explicitly
        if step == "complete":
            progress = 1.0
        self.on_progress(
            GenerationState(step=step, progress=round(progress, 6), message=message, data=data)
        )


class AgentOrchestrator:
    """Sequences the research, content, image and reference agents."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        research_agent: Optional[ResearchAgent] = None,
        content_agent: Optional[ContentGenerationAgent] = None,
        image_agent: Optional[ImageRetrievalAgent] = None,
        reference_agent: Optional[ReferenceManagementAgent] = None,
    ):
        """
        Initialize the orchestrator.

        Args:
            settings: Settings passed to every agent it creates
            research_agent: Optional pre-built agent (e.g. a test double)
            content_agent: Optional pre-built agent
            image_agent: Optional pre-built agent
            reference_agent: Optional pre-built agent
        """
        self.settings = settings or get_settings()
        self.research_agent = research_agent or ResearchAgent(self.settings)
        self.content_agent = content_agent or ContentGenerationAgent(self.settings)
        self.image_agent = image_agent or ImageRetrievalAgent(self.settings)
        self.reference_agent = reference_agent or ReferenceManagementAgent()

    @classmethod
    def from_settings(cls, settings: Settings) -> "AgentOrchestrator":
        """Build an orchestrator with fresh agents for one request."""
        return cls(settings=settings)

    async def generate_blog(self, request: BlogGenerationRequest) -> BlogGenerationResult:
        """
        Run the full pipeline for one request.

        Raises:
            BlogGenerationError: If any step fails. No partial result is
                returned and no step is retried.
        """
        return await self._run_pipeline(request)

    async def generate_blog_with_progress(
        self,
        request: BlogGenerationRequest,
        on_progress: ProgressCallback,
    ) -> BlogGenerationResult:
        """
        Run the full pipeline, reporting progress after each milestone.

        Produces the same result as generate_blog. On failure an ``error``
        state is emitted before BlogGenerationError is raised.
        """
        return await self._run_pipeline(request, _ProgressTracker(on_progress))

    async def _run_pipeline(
        self,
        request: BlogGenerationRequest,
        tracker: Optional[_ProgressTracker] = None,
    ) -> BlogGenerationResult:
        def report(step: str, message: str, data: Any = None) -> None:
            if tracker:
                tracker.update(step, message, data)

        start_time = time.perf_counter()
        step_times: dict[str, int] = {}
        images: list[ImageData] = []
        all_images: list[ImageData] = []

        try:
            logger.info(f"Starting blog generation for topic: {request.topic}")

            # Step 1: Research
            logger.info("Step 1: Researching topic...")
            report("research", "Researching your topic...")
            step_start = time.perf_counter()
            research_data = await self.research_agent.research_topic(request.topic)
            step_times["research"] = _elapsed_ms(step_start)
            logger.info(f"Found {len(research_data)} research sources in {step_times['research']}ms")
            report("research", f"Found {len(research_data)} sources", research_data)

            # Step 2: Content Generation
            logger.info("Step 2: Generating content...")
            report("content", "Generating blog content...")
            step_start = time.perf_counter()
            blog = await self.content_agent.generate_blog(
                BlogGenerationOptions(
                    topic=request.topic,
                    tone=request.tone,
                    max_words=request.max_words,
                    research_data=research_data,
                    include_images=request.include_images,
                )
            )
            content = blog.content
            step_times["content"] = _elapsed_ms(step_start)
            logger.info(f"Generated {blog.word_count} words in {step_times['content']}ms")
            report("content", f"Generated {blog.word_count} words", blog)

            # Step 3: Image Retrieval
            if request.include_images:
                logger.info(f"Step 3: Finding relevant images for keywords {blog.keywords}")
                report("images", "Finding relevant images...")
                report("images", f"Using keywords: {', '.join(blog.keywords)}", blog.keywords)
                step_start = time.perf_counter()
                all_images = await self.image_agent.find_relevant_images(
                    content, request.topic, blog.keywords
                )
                # Every scored image is used; the embedder cycles through them
                images = all_images
                content = await self.image_agent.embed_images_in_markdown(content, images)
                step_times["images"] = _elapsed_ms(step_start)
                logger.info(f"Embedded {len(images)} images in {step_times['images']}ms")
                report(
                    "images",
                    f"Found {len(all_images)} total images, using all for embedding",
                    {"all_images": all_images, "images": images},
                )

            # Step 4: References
            logger.info("Step 4: Processing references...")
            report("references", "Extracting references...")
            step_start = time.perf_counter()
            reference_list = await self.reference_agent.extract_references(research_data, content)
            references = reference_list.references
            report("references", f"Extracted {len(references)} references", reference_list)
            content = await self.reference_agent.embed_references_in_blog(content, references)
            step_times["references"] = _elapsed_ms(step_start)
            logger.info(f"Embedded {len(references)} references")

            result = BlogGenerationResult(
                title=blog.title,
                content=content,
                images=images,
                all_images=all_images,
                references=references,
                metadata=GenerationMetadata(
                    generation_time=_elapsed_ms(start_time),
                    word_count=blog.word_count,
                    model_used=blog.metadata.model_used,
                    generated_at=datetime.now(timezone.utc).isoformat(),
                    research_sources=len(research_data),
                    images_found=len(all_images),
                    references_count=len(references),
                    step_times=step_times,
                ),
            )
        except Exception as e:
            logger.error(f"Blog generation failed: {e}")
            report("error", f"Generation failed: {e}")
            raise BlogGenerationError(f"Blog generation failed: {e}") from e

        report(
            "complete",
            "Blog generation complete!",
            {
                "title": result.title,
                "content": result.content,
                "images": result.images,
                "all_images": result.all_images,
                "references": result.references,
            },
        )
        logger.info(f"Blog generation finished in {result.metadata.generation_time}ms")
        return result

    def get_generation_summary(self, request: BlogGenerationRequest) -> GenerationSummary:
        """Describe the steps, credentials and rough duration of a request."""
        return GenerationSummary(
            # Base 30s + 50ms per word
            estimated_time=30000 + request.max_words * 50,
            steps=[
                "Research topic using News API and Google Custom Search",
                "Generate blog content using Gemini API",
                "Find relevant images using Unsplash API",
                "Extract and format references",
            ],
            requirements=[
                "News API key",
                "Google Custom Search API key",
                "Gemini API key",
                "Unsplash API key",
            ],
        )


def _elapsed_ms(start: float) -> int:
    return int((time.perf_counter() - start) * 1000)
