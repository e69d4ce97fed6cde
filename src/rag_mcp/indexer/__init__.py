"""
Indexer module for ragMCP.

This module crawls a project, chunks its code, documentation and skills, and
keeps one vector collection per domain in ChromaDB. It is the core component
of the system - everything else only exposes its three operations.
"""

from rag_mcp.indexer.chunker import chunk_code, chunk_file, chunk_markdown, chunk_skill
from rag_mcp.indexer.filters import CodeFilter, IgnoreRules, load_ignore_rules
from rag_mcp.indexer.indexer import Indexer
from rag_mcp.indexer.models import (
    DOMAINS,
    Chunk,
    IndexStats,
    SearchResult,
    SearchResults,
    SourceFile,
)
from rag_mcp.indexer.parser import parse_frontmatter
from rag_mcp.indexer.search import SearchCoordinator
from rag_mcp.indexer.store import (
    Collection,
    CollectionStore,
    StoreError,
    StoreUnavailableError,
)
from rag_mcp.indexer.walker import walk_code, walk_docs, walk_skills

__all__ = [
    "DOMAINS",
    "Chunk",
    "CodeFilter",
    "Collection",
    "CollectionStore",
    "IgnoreRules",
    "IndexStats",
    "Indexer",
    "SearchCoordinator",
    "SearchResult",
    "SearchResults",
    "SourceFile",
    "StoreError",
    "StoreUnavailableError",
    "chunk_code",
    "chunk_file",
    "chunk_markdown",
    "chunk_skill",
    "load_ignore_rules",
    "parse_frontmatter",
    "walk_code",
    "walk_docs",
    "walk_skills",
]
