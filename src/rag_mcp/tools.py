"""MCP tools for ragMCP server.

This module defines the tools exposed by the MCP server:
- search: Semantic search across code, docs and skills
- search_code / search_docs / search_skills: Single-collection shortcuts
- index_project: Rebuild all collections from the project tree
- index_stats: Current collection sizes and last index time
"""

from typing import Any

from fastmcp import FastMCP

from rag_mcp.engine import RAGEngine


def _search(
    engine: RAGEngine,
    query: str,
    types: list[str] | None,
    limit: int,
    filter: dict[str, Any] | None = None,
) -> dict:
    try:
        outcome = engine.search(query, domains=types, limit=limit, filter=filter)
    except ValueError as e:
        return {"available": engine.available, "error": str(e), "failed_domains": [], "results": []}
    result = outcome.to_dict()
    for item in result["results"]:
        item["distance"] = round(item["distance"], 4)
    return result


def register_tools(mcp: FastMCP, engine: RAGEngine) -> None:
    """Register all RAG tools with the FastMCP server.

    Args:
        mcp: FastMCP server instance
        engine: RAG engine (possibly without a store)
    """

    @mcp.tool()
    def search(
        query: str,
        types: list[str] | None = None,
        limit: int = 10,
        filter: dict[str, Any] | None = None,
    ) -> dict:
        """Semantic search across the project's code, documentation and skills.

        Each collection is queried for up to `limit` hits, then all hits are
        merged by distance and cut to `limit`. There is no per-collection
        quota, so one collection with many close matches can crowd out
        another collection's single good match; pass `types` to search one
        collection on its own.

        Args:
            query: Natural language or code query
            types: Collections to search: any of "code", "docs", "skills" (default: all)
            limit: Maximum number of results (default: 10)
            filter: Optional exact-match filter on metadata, e.g. {"type": "adr"}

        Returns:
            Dict with:
            - results: hits with id, content, metadata and distance
              (lower distance = more similar; not a percentage)
            - failed_domains: collections that could not be queried
            - available: False if the vector store is not available
            - error: Error message, if any
        """
        return _search(engine, query, types, limit, filter)

    @mcp.tool()
    def search_code(query: str, limit: int = 10) -> dict:
        """Semantic search over source code only.

        Code hits carry path, start_line, end_line and extension metadata.
        """
        return _search(engine, query, ["code"], limit)

    @mcp.tool()
    def search_docs(query: str, limit: int = 10) -> dict:
        """Semantic search over documentation only (CLAUDE.md, PRPs, ADRs, docs/)."""
        return _search(engine, query, ["docs"], limit)

    @mcp.tool()
    def search_skills(query: str, limit: int = 5) -> dict:
        """Semantic search over skill files only."""
        return _search(engine, query, ["skills"], limit)

    @mcp.tool()
    def index_project() -> dict:
        """Re-index the project for search.

        Run this after significant changes to the codebase or documentation.
        Every collection is rebuilt from scratch. If `complete` is False the
        index is partial and this tool should be run again.

        Returns:
            Index statistics: total_documents, collections, last_indexed,
            failed_paths (files that could not be read), failed_domains,
            complete, available and error.
        """
        return engine.index().to_dict()

    @mcp.tool()
    def index_stats() -> dict:
        """Get current index statistics from the live collections."""
        return engine.stats().to_dict()
