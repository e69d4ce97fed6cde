"""Main entry points for the ragMCP server and the project indexing script."""

import argparse
import logging
import sys
import time
from pathlib import Path

from fastmcp import FastMCP

from rag_mcp.config import Config
from rag_mcp.engine import RAGEngine
from rag_mcp.tools import register_tools

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _configure_logging() -> None:
    # stderr keeps the stdio transport's stdout clean
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, stream=sys.stderr)


def create_server(config: Config, engine: RAGEngine | None = None) -> FastMCP:
    """Create and configure the MCP server with all components.

    Args:
        config: Configuration instance with all settings.
        engine: Pre-built engine; opened from config when omitted.
    """
    mcp = FastMCP(
        name="ragMCP",
        instructions=(
            "ragMCP provides semantic search over this project's source code, "
            "documentation (CLAUDE.md, PRPs, ADRs) and skills. Use search to find "
            "relevant content, and index_project after significant changes."
        ),
    )

    if engine is None:
        logger.info("Initializing RAG engine at %s", config.chroma_path)
        engine = RAGEngine.from_config(config)

    if engine.available:
        stats = engine.stats()
        if stats.total_documents == 0 and stats.complete:
            logger.info("Index is empty, performing initial index...")
            stats = engine.index()
            logger.info("Initial index complete: %d chunks indexed", stats.total_documents)
        elif not stats.complete:
            logger.warning(
                "Index incomplete (failed: %s), rebuilding...", ", ".join(stats.failed_domains)
            )
            stats = engine.index()
            logger.info("Rebuild complete: %d chunks indexed", stats.total_documents)
    else:
        logger.warning("RAG engine unavailable, tools will report it")

    logger.info("Registering tools...")
    register_tools(mcp, engine)

    logger.info("Server configured successfully")
    return mcp


def main() -> None:
    """Main function - starts the MCP server."""
    _configure_logging()

    parser = argparse.ArgumentParser(description="ragMCP - semantic search MCP server")
    parser.add_argument(
        "--reindex",
        action="store_true",
        help="Force a full reindex before starting",
    )
    args = parser.parse_args()

    config = Config.from_env()

    logger.info("=" * 50)
    logger.info("ragMCP starting...")
    logger.info("  PROJECT_PATH:   %s", config.project_path)
    logger.info("  RAG_COLLECTION: %s", config.collection_name)
    logger.info("  CHROMA_PATH:    %s", config.chroma_path)
    logger.info("  TRANSPORT:      %s", config.transport)
    logger.info("=" * 50)

    engine = RAGEngine.from_config(config)

    if args.reindex:
        logger.info("Force reindex requested...")
        stats = engine.index()
        logger.info("Reindex complete: %d chunks indexed", stats.total_documents)

    try:
        mcp = create_server(config, engine)
        if config.transport == "sse":
            logger.info("Starting MCP server on port %s...", config.rag_port)
            mcp.run(transport="sse", host="0.0.0.0", port=config.rag_port)
        else:
            mcp.run()
    except KeyboardInterrupt:
        logger.info("Server stopped by user")
        sys.exit(0)
    except Exception:
        logger.exception("Server error")
        sys.exit(1)
    finally:
        engine.close()


def index_main(argv: list[str] | None = None) -> int:
    """Index a project once and print statistics.

    Usage:
        rag-mcp-index [project-path]
    """
    _configure_logging()

    parser = argparse.ArgumentParser(description="Index a project for RAG search")
    parser.add_argument(
        "project_path",
        nargs="?",
        default=None,
        help="Project to index (default: PROJECT_PATH or current directory)",
    )
    args = parser.parse_args(argv)

    project_path = Path(args.project_path) if args.project_path else None
    if project_path is not None and not project_path.expanduser().exists():
        logger.error("Path does not exist: %s", project_path)
        return 1

    try:
        config = Config.from_env(project_path_override=project_path)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    print(f"Indexing project at: {config.project_path}")
    print(f"Project: {config.collection_name}")

    engine = RAGEngine.from_config(config)
    try:
        if not engine.available:
            logger.error("Indexing failed: %s", engine.unavailable_reason)
            return 1

        start = time.monotonic()
        stats = engine.index()
        duration = time.monotonic() - start
    finally:
        engine.close()

    print("Statistics:")
    print(f"  - Total documents: {stats.total_documents}")
    print(f"  - Collections: {', '.join(stats.collections)}")
    print(f"  - Duration: {duration:.2f}s")
    print(f"  - Indexed at: {stats.last_indexed}")
    if stats.failed_paths:
        print(f"  - Skipped files: {', '.join(stats.failed_paths)}")

    if not stats.complete:
        logger.error(
            "Index incomplete (failed: %s); run again to rebuild",
            ", ".join(stats.failed_domains) or stats.error,
        )
        return 1
    return 0


def run_index() -> None:
    sys.exit(index_main())


if __name__ == "__main__":
    main()
