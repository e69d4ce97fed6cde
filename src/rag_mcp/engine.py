"""RAG engine: the index, search and stats operations behind one handle."""

import logging
from pathlib import Path
from typing import Any

from rag_mcp.config import Config
from rag_mcp.indexer import (
    DOMAINS,
    CollectionStore,
    Indexer,
    IndexStats,
    SearchCoordinator,
    SearchResults,
    StoreUnavailableError,
)
from rag_mcp.indexer.indexer import STATE_FILE
from rag_mcp.indexer.search import DEFAULT_LIMIT

logger = logging.getLogger(__name__)

UNAVAILABLE = "RAG engine not available: vector store could not be initialized"


class RAGEngine:
    """
    Facade over the indexer and search coordinator.

    When no store is available every operation returns an "unavailable"
    outcome instead of raising, so a host without retrieval keeps running.
    """

    def __init__(
        self,
        project_root: Path,
        store: CollectionStore | None,
        state_path: Path | None = None,
        unavailable_reason: str | None = None,
    ):
        self.project_root = project_root
        self.store = store
        self.unavailable_reason = unavailable_reason or UNAVAILABLE
        self.indexer: Indexer | None = None
        self.searcher: SearchCoordinator | None = None
        if store is not None:
            self.indexer = Indexer(project_root, store, state_path=state_path)
            self.searcher = SearchCoordinator(store)

    @classmethod
    def from_config(cls, config: Config, embedding_function=None) -> "RAGEngine":
        """Open the vector store for a project, degrading if it is unreachable."""
        try:
            store = CollectionStore.open(
                config.chroma_path,
                config.collection_name,
                embedding_function=embedding_function,
            )
        except StoreUnavailableError as e:
            logger.error("RAG engine initialization failed (continuing without RAG): %s", e)
            return cls(config.project_path, None, unavailable_reason=str(e))

        return cls(
            config.project_path,
            store,
            state_path=config.chroma_path / STATE_FILE,
        )

    @property
    def available(self) -> bool:
        return self.store is not None

    def index(self) -> IndexStats:
        """Rebuild every collection from the project tree."""
        if self.indexer is None:
            return IndexStats.unavailable(self.unavailable_reason)
        try:
            return self.indexer.index()
        except Exception as e:
            logger.exception("Indexing failed")
            return IndexStats(failed_domains=list(DOMAINS), error=str(e))

    def search(
        self,
        query: str,
        domains: list[str] | None = None,
        limit: int = DEFAULT_LIMIT,
        filter: dict[str, Any] | None = None,
    ) -> SearchResults:
        """
        Similarity search across the requested domains (default: all).

        Raises:
            ValueError: If an unknown domain is requested.
        """
        if self.searcher is None:
            return SearchResults.unavailable(self.unavailable_reason)
        return self.searcher.search(query, domains=domains, limit=limit, filter=filter)

    def stats(self) -> IndexStats:
        """Index statistics from live collection counts."""
        if self.indexer is None:
            return IndexStats.unavailable(self.unavailable_reason)
        return self.indexer.stats()

    def close(self) -> None:
        if self.store is not None:
            self.store.close()
            self.store = None
            self.indexer = None
            self.searcher = None
