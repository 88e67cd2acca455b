"""
File handler for I/O operations.

Reads blog drafts and writes generated posts as markdown with YAML front
matter, alongside a JSON dump of the full generation result.
"""

import json
import re
from pathlib import Path
from typing import Any

import yaml

from blogcraft.utils.logger import get_logger


logger = get_logger(__name__)


class FileHandler:
    """Handler for file I/O operations."""

    @staticmethod
    def read_file(file_path: Path) -> str:
        """
        Read file contents.

        Args:
            file_path: Path to the file

        Returns:
            File contents as string

        Raises:
            FileNotFoundError: If file doesn't exist
        """
        logger.debug(f"Reading file: {file_path}")

        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        with open(file_path, 'r', encoding='utf-8') as f:
            content = f.read()

        logger.debug(f"Read {len(content)} characters from {file_path}")
        return content

    @staticmethod
    def write_file(file_path: Path, content: str) -> None:
        """Write content to file, creating parent directories."""
        logger.debug(f"Writing to file: {file_path}")

        file_path.parent.mkdir(parents=True, exist_ok=True)

        with open(file_path, 'w', encoding='utf-8') as f:
            f.write(content)

        logger.debug(f"Wrote {len(content)} characters to {file_path}")

    @staticmethod
    def write_json(file_path: Path, data: dict[str, Any], indent: int = 2) -> None:
        """Write data to JSON file."""
        content = json.dumps(data, indent=indent, ensure_ascii=False, default=str)
        FileHandler.write_file(file_path, content)

    @staticmethod
    def to_yaml(data: dict[str, Any]) -> str:
        """Dump a mapping to block-style YAML, keeping key order."""
        return yaml.dump(
            data,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
            width=120,
        )

    @staticmethod
    def slugify(text: str, max_length: int = 50) -> str:
        """
        Convert text to a filesystem-safe slug.

        Args:
            text: Text to slugify
            max_length: Maximum length of the slug

        Returns:
            Slugified string
        """
        slug = re.sub(r"[^\w\s-]", "", text.lower())
        slug = re.sub(r"[-\s]+", "_", slug)
        slug = slug.strip("_")
        return slug[:max_length]

    @staticmethod
    def render_front_matter(front_matter: dict[str, Any], body: str) -> str:
        """Prefix a markdown body with a ``---`` delimited YAML block."""
        return f"---\n{FileHandler.to_yaml(front_matter)}---\n\n# {front_matter.get('title', '')}\n\n{body}\n"

    @staticmethod
    def save_blog_output(output_path: Path, result: dict[str, Any]) -> dict[str, Path]:
        """
        Save a generated blog as markdown plus a JSON dump of the result.

        Args:
            output_path: Target markdown path (``.md`` is added if missing)
            result: Serialized generation result with title, content,
                references and metadata keys

        Returns:
            Dict with the ``markdown`` and ``json`` paths written
        """
        if output_path.suffix != ".md":
            output_path = output_path.with_suffix(".md")
        json_path = output_path.with_suffix(".json")

        front_matter = {"title": result.get("title", "")}
        front_matter.update(result.get("metadata", {}))

        FileHandler.write_file(
            output_path,
            FileHandler.render_front_matter(front_matter, result.get("content", "")),
        )
        FileHandler.write_json(json_path, result)

        logger.info(f"Saved blog to {output_path} and {json_path}")
        return {"markdown": output_path, "json": json_path}
