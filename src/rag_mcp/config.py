"""Configuration module for ragmcp.

Loads configuration from environment variables with sensible defaults.
"""

import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)

PROJECT_CONFIG_FILE = "project-config.yaml"
DEFAULT_COLLECTION = "default-project"
DEFAULT_STORAGE = Path(".claude") / "rag-db"
TRANSPORTS = ("stdio", "sse")


def load_project_name(project_path: Path) -> str | None:
    """Read project.name from the project's project-config.yaml, if any."""
    config_path = project_path / PROJECT_CONFIG_FILE
    if not config_path.is_file():
        return None

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.warning("Failed to load %s: %s", config_path, e)
        return None

    if not isinstance(raw, dict) or not isinstance(raw.get("project"), dict):
        return None
    name = raw["project"].get("name")
    return str(name) if name else None


@dataclass
class Config:
    """Application configuration."""

    project_path: Path
    collection_name: str
    chroma_path: Path
    rag_port: int
    transport: str

    @classmethod
    def from_env(cls, project_path_override: Path | None = None) -> "Config":
        """Load configuration from environment variables.

        Args:
            project_path_override: If provided, overrides the PROJECT_PATH env var.
        """
        if project_path_override is not None:
            project_path = project_path_override
        else:
            project_path = Path(os.getenv("PROJECT_PATH", os.getcwd()))
        project_path = project_path.expanduser().resolve()

        collection_name = (
            os.getenv("RAG_COLLECTION")
            or load_project_name(project_path)
            or DEFAULT_COLLECTION
        )
        if not re.search(r"[a-zA-Z0-9]", collection_name):
            raise ValueError(
                f"Invalid RAG_COLLECTION value '{collection_name}': "
                "must contain at least one letter or digit"
            )

        default_storage = str(project_path / DEFAULT_STORAGE)
        chroma_path = Path(os.getenv("CHROMA_PATH", default_storage)).expanduser()

        port_str = os.getenv("RAG_PORT", "8080")
        try:
            rag_port = int(port_str)
            if not 1 <= rag_port <= 65535:
                raise ValueError(f"Port must be between 1 and 65535, got {rag_port}")
        except ValueError as e:
            raise ValueError(f"Invalid RAG_PORT value '{port_str}': {e}") from e

        transport = os.getenv("RAG_TRANSPORT", "stdio").lower()
        if transport not in TRANSPORTS:
            raise ValueError(
                f"Invalid RAG_TRANSPORT value '{transport}': "
                f"expected one of {', '.join(TRANSPORTS)}"
            )

        return cls(
            project_path=project_path,
            collection_name=collection_name,
            chroma_path=chroma_path,
            rag_port=rag_port,
            transport=transport,
        )
