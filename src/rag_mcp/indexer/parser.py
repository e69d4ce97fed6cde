"""Parser for YAML frontmatter and document type inference."""

import logging
from dataclasses import dataclass
from pathlib import PurePosixPath

import yaml

from rag_mcp.indexer.filters import INSTRUCTIONS_FILE

logger = logging.getLogger(__name__)


@dataclass
class FrontmatterData:
    """Parsed frontmatter data."""

    name: str | None = None
    description: str | None = None
    raw: dict | None = None


def parse_frontmatter(content: str, file_path: str) -> tuple[FrontmatterData, str]:
    """
    Parse YAML frontmatter from markdown content.

    Args:
        content: The full markdown content
        file_path: Project-relative path, used for log messages

    Returns:
        Tuple of (FrontmatterData, content_without_frontmatter)

    Raises:
        ValueError: If the frontmatter block is present but is not valid YAML.
    """
    data = FrontmatterData()
    body = content

    if content.startswith("---"):
        parts = content.split("---", 2)
        if len(parts) >= 3:
            try:
                raw = yaml.safe_load(parts[1])
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML frontmatter in {file_path}: {e}") from e

            if raw is None or isinstance(raw, dict):
                raw = raw or {}
                data.raw = raw
                name = raw.get("name")
                if name is not None:
                    data.name = str(name)
                description = raw.get("description")
                if description is not None:
                    data.description = str(description)
                # Body is everything after the closing ---
                body = parts[2].lstrip("\n")
            else:
                logger.debug("Frontmatter in %s is not a mapping, ignoring", file_path)

    return data, body


def infer_doc_type(relative_path: str) -> str:
    """
    Classify a documentation file by its path.

    CLAUDE.md is the project guide; PRP-/ADR- prefixed files are product
    requirement prompts and architecture decision records.
    """
    if relative_path == INSTRUCTIONS_FILE:
        return "guide"
    name = PurePosixPath(relative_path).name
    if "PRP-" in name:
        return "prp"
    if "ADR-" in name:
        return "adr"
    return "doc"
