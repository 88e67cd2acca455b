"""
CLI module for blogcraft.

Usage:
    python -m blogcraft generate --topic "..." --tone casual --max-words 800
    python -m blogcraft edit --file post.md --request "..."
    python -m blogcraft research --topic "..."
    python -m blogcraft images --query "..."
    python -m blogcraft plan --topic "..." --max-words 800
"""

import asyncio
import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv
from rich.console import Console
from rich.status import Status
from rich.table import Table

from blogcraft.config.settings import Settings, get_settings
from blogcraft.generation.content_agent import ContentGenerationAgent
from blogcraft.media.image_agent import ImageRetrievalAgent
from blogcraft.orchestration.orchestrator import (
    AgentOrchestrator,
    BlogGenerationError,
    BlogGenerationRequest,
    BlogGenerationResult,
    GenerationState,
)
from blogcraft.research.research_agent import ResearchAgent
from blogcraft.utils.file_handler import FileHandler
from blogcraft.utils.logger import setup_logger

console = Console()

STEP_ICONS = {
    "research": "🔬",
    "content": "✍️",
    "images": "🖼️",
    "references": "📚",
    "complete": "✅",
    "error": "❌",
}


def _configure(settings: Settings, verbose: bool) -> None:
    setup_logger(
        "blogcraft",
        level="DEBUG" if verbose else settings.log_level,
        log_file=settings.log_file,
    )


def display_result_summary(result: BlogGenerationResult) -> None:
    """Print the generation metadata as a Rich table."""
    meta = result.metadata

    table = Table(title=f"📊 {result.title}")
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green", justify="right")

    generation_time = meta.generation_time / 1000
    table.add_row("Generation time", f"{generation_time:.1f}s")
    for step, ms in meta.step_times.items():
        table.add_row(f"  {step.title()}", f"{ms / 1000:.1f}s")
    table.add_row("Words", str(meta.word_count))
    table.add_row("Model", meta.model_used)
    table.add_row("Research sources", str(meta.research_sources))
    table.add_row("Images found", str(meta.images_found))
    table.add_row("References", str(meta.references_count))

    console.print()
    console.print(table)


async def _run_generate(
    request: BlogGenerationRequest,
    settings: Settings,
    show_progress: bool,
) -> BlogGenerationResult:
    orchestrator = AgentOrchestrator.from_settings(settings)

    try:
        if show_progress:
            def on_progress(state: GenerationState) -> None:
                icon = STEP_ICONS.get(state.step, "⏳")
                console.print(f"{icon} [{state.progress:>4.0%}] {state.message}")

            return await orchestrator.generate_blog_with_progress(request, on_progress)

        with Status("Generating blog...", console=console):
            return await orchestrator.generate_blog(request)
    finally:
        await orchestrator.image_agent.wait_for_tracking()


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool) -> None:
    """blogcraft - research, write and illustrate blog posts."""
    load_dotenv()
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@cli.command()
@click.option("--topic", required=True, help="Blog topic")
@click.option(
    "--tone",
    type=click.Choice(["academic", "casual", "professional"]),
    default="professional",
    show_default=True,
    help="Writing tone",
)
@click.option(
    "--max-words",
    type=click.IntRange(100, 2000),
    default=800,
    show_default=True,
    help="Maximum word count",
)
@click.option("--images/--no-images", default=True, show_default=True, help="Embed Unsplash images")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Markdown output path (a .json dump is written next to it)",
)
@click.option("--progress", is_flag=True, help="Print step-by-step progress")
@click.pass_context
def generate(
    ctx: click.Context,
    topic: str,
    tone: str,
    max_words: int,
    images: bool,
    output: Optional[Path],
    progress: bool,
) -> None:
    """Generate a blog post for a topic."""
    settings = get_settings()
    _configure(settings, ctx.obj.get("verbose", False))

    request = BlogGenerationRequest(
        topic=topic,
        tone=tone,
        max_words=max_words,
        include_images=images,
    )

    try:
        result = asyncio.run(_run_generate(request, settings, progress))

        display_result_summary(result)

        if output is None:
            output = settings.output_dir / f"{FileHandler.slugify(result.title)}.md"
        paths = FileHandler.save_blog_output(output, result.model_dump(mode="json"))
        console.print(f"\n[green]Saved:[/green] {paths['markdown']}")

    except BlogGenerationError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  Interrupted.[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[bold red]❌ Error:[/bold red] {e}")
        sys.exit(1)


@cli.command()
@click.option(
    "--file",
    "file_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Markdown file to edit",
)
@click.option("--request", "edit_request", required=True, help="What to change")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Where to write the edited post (default: print it)",
)
@click.pass_context
def edit(ctx: click.Context, file_path: Path, edit_request: str, output: Optional[Path]) -> None:
    """Rewrite an existing post according to an edit request."""
    settings = get_settings()
    _configure(settings, ctx.obj.get("verbose", False))

    try:
        original = FileHandler.read_file(file_path)
        agent = ContentGenerationAgent(settings)

        with Status("Editing blog...", console=console):
            edited = asyncio.run(agent.edit_blog(original, edit_request))

        document = f"# {edited.title}\n\n{edited.content}\n"
        if output:
            FileHandler.write_file(output, document)
            console.print(f"[green]Saved:[/green] {output}")
        else:
            console.print(document)

    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  Interrupted.[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[bold red]❌ Error:[/bold red] {e}")
        sys.exit(1)


@cli.command()
@click.option("--topic", required=True, help="Topic to research")
@click.pass_context
def research(ctx: click.Context, topic: str) -> None:
    """Show research results and per-stage counts for a topic."""
    settings = get_settings()
    _configure(settings, ctx.obj.get("verbose", False))
    agent = ResearchAgent(settings)

    try:
        results, summary = asyncio.run(agent.research_with_summary(topic))
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  Interrupted.[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[bold red]❌ Error:[/bold red] {e}")
        sys.exit(1)

    console.print(
        f"News: {summary.news_count}  Search: {summary.search_count}  "
        f"Unique: {summary.total_results}  Relevant: {summary.filtered_results}  "
        f"Kept: {summary.final_results}"
    )

    table = Table(title=f"🔬 Research: {topic}")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Title", style="cyan")
    table.add_column("Source", style="green")
    table.add_column("Published", style="yellow")
    for i, result in enumerate(results, 1):
        table.add_row(str(i), result.title, result.source, result.published_at or "-")
    console.print(table)


@cli.command()
@click.option("--query", required=True, help="Photo search query")
@click.option("--limit", type=click.IntRange(1, 30), default=15, show_default=True)
@click.pass_context
def images(ctx: click.Context, query: str, limit: int) -> None:
    """Search Unsplash photos for manual image replacement."""
    settings = get_settings()
    _configure(settings, ctx.obj.get("verbose", False))
    agent = ImageRetrievalAgent(settings)

    try:
        results = asyncio.run(agent.search_images_by_query(query))[:limit]
    except KeyboardInterrupt:
        console.print("\n[yellow]⚠️  Interrupted.[/yellow]")
        sys.exit(130)
    except Exception as e:
        console.print(f"\n[bold red]❌ Error:[/bold red] {e}")
        sys.exit(1)

    if not results:
        console.print("[yellow]No images found[/yellow]")
        return

    table = Table(title=f"🖼️ Images: {query}")
    table.add_column("ID", style="dim")
    table.add_column("Alt", style="cyan")
    table.add_column("Photographer", style="green")
    table.add_column("URL")
    for image in results:
        table.add_row(image.id, image.alt, image.photographer, image.url)
    console.print(table)


@cli.command()
@click.option("--topic", required=True, help="Blog topic")
@click.option("--max-words", type=click.IntRange(100, 2000), default=800, show_default=True)
@click.pass_context
def plan(ctx: click.Context, topic: str, max_words: int) -> None:
    """Show the pipeline steps, required keys and estimated duration."""
    settings = get_settings()
    _configure(settings, ctx.obj.get("verbose", False))

    orchestrator = AgentOrchestrator.from_settings(settings)
    summary = orchestrator.get_generation_summary(
        BlogGenerationRequest(topic=topic, tone="professional", max_words=max_words)
    )

    console.print(f"Estimated time: ~{summary.estimated_time / 1000:.0f}s\n")
    console.print("[bold]Steps[/bold]")
    for i, step in enumerate(summary.steps, 1):
        console.print(f"  {i}. {step}")
    console.print("\n[bold]Requirements[/bold]")
    for requirement in summary.requirements:
        console.print(f"  - {requirement}")


if __name__ == "__main__":
    cli()
