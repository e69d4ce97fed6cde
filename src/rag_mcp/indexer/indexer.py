"""Main indexer that rebuilds the collections from the project tree."""

import json
import logging
import threading
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path

from rag_mcp.indexer.chunker import chunk_file
from rag_mcp.indexer.filters import CodeFilter
from rag_mcp.indexer.models import DOMAINS, Chunk, IndexStats, SourceFile
from rag_mcp.indexer.store import CollectionStore, StoreError
from rag_mcp.indexer.walker import walk_code, walk_docs, walk_skills

logger = logging.getLogger(__name__)

STATE_FILE = "index_state.json"


class Indexer:
    """
    Indexer that rebuilds the code, docs and skills collections.

    The project tree is always the source of truth. Every index() call
    wholly replaces each domain's collection; there is no incremental update.

    Thread Safety:
        index() is protected by a lock so two rebuilds never write the same
        collection concurrently. stats() only reads counts.
    """

    def __init__(
        self,
        project_root: Path,
        store: CollectionStore,
        code_filter: CodeFilter | None = None,
        state_path: Path | None = None,
    ):
        """
        Initialize the indexer.

        Args:
            project_root: Root of the project to index
            store: Open collection store
            code_filter: Filter for code files (defaults to the project's
                .gitignore plus built-in ignores)
            state_path: Where to persist the last successful index time and
                the domains left partial by the last run
        """
        self.project_root = project_root
        self.store = store
        self.code_filter = code_filter
        self.state_path = state_path
        self._last_indexed: str | None = None
        # Domains left partial by the most recent index() run
        self._failed_domains: list[str] = []
        self._load_state()
        self._write_lock = threading.Lock()

    def _load_state(self) -> None:
        if self.state_path is None or not self.state_path.is_file():
            return
        try:
            state = json.loads(self.state_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable index state %s: %s", self.state_path, e)
            return
        if not isinstance(state, dict):
            return

        last_indexed = state.get("last_indexed")
        if isinstance(last_indexed, str):
            self._last_indexed = last_indexed
        failed = state.get("failed_domains")
        if isinstance(failed, list):
            self._failed_domains = [domain for domain in DOMAINS if domain in failed]

    def _save_state(self) -> None:
        if self.state_path is None:
            return
        state = {
            "last_indexed": self._last_indexed,
            "failed_domains": self._failed_domains,
        }
        try:
            self.state_path.parent.mkdir(parents=True, exist_ok=True)
            self.state_path.write_text(json.dumps(state), encoding="utf-8")
        except OSError as e:
            logger.warning("Cannot write index state %s: %s", self.state_path, e)

    def _candidates(self, domain: str) -> Iterator[SourceFile]:
        if domain == "code":
            if self.code_filter is None:
                self.code_filter = CodeFilter.for_project(self.project_root)
            return walk_code(self.project_root, self.code_filter)
        if domain == "docs":
            return walk_docs(self.project_root)
        return walk_skills(self.project_root)

    def collect_chunks(self, domain: str, failed_paths: list[str]) -> list[Chunk]:
        """
        Read and chunk every eligible file of a domain.

        Files that cannot be read or chunked are logged, appended to
        failed_paths and skipped.
        """
        chunks: list[Chunk] = []
        for source in self._candidates(domain):
            try:
                content = source.path.read_text(encoding="utf-8")
                chunks.extend(chunk_file(content, source.relative_path, domain))
            except (OSError, UnicodeDecodeError, ValueError) as e:
                logger.warning("Skipping %s: %s", source.relative_path, e)
                failed_paths.append(source.relative_path)
        return chunks

    def index(self) -> IndexStats:
        """
        Rebuild all three collections from the project tree.

        Returns:
            IndexStats for this run. Domains whose rebuild failed are listed
            in failed_domains and not counted; the run is then incomplete
            and last_indexed is not advanced.
        """
        with self._write_lock:
            logger.info("Starting full index of %s", self.project_root)
            stats = IndexStats()

            try:
                for domain in DOMAINS:
                    chunks = self.collect_chunks(domain, stats.failed_paths)
                    try:
                        self.store.collection(domain).replace_all(chunks)
                    except StoreError as e:
                        logger.error("Rebuild of %s collection failed: %s", domain, e)
                        stats.failed_domains.append(domain)
                        continue

                    logger.info("Indexed %d %s chunks", len(chunks), domain)
                    if chunks:
                        stats.total_documents += len(chunks)
                        stats.collections.append(domain)
            except Exception:
                self._failed_domains = list(DOMAINS)
                self._save_state()
                raise

            if stats.failed_domains:
                stats.last_indexed = self._last_indexed
                logger.warning(
                    "Index incomplete, failed domains: %s (rerun index to recover)",
                    ", ".join(stats.failed_domains),
                )
            else:
                self._last_indexed = datetime.now(timezone.utc).isoformat()
                stats.last_indexed = self._last_indexed
            self._failed_domains = list(stats.failed_domains)
            self._save_state()

            if stats.failed_paths:
                logger.warning("Skipped %d unreadable files", len(stats.failed_paths))
            logger.info(
                "Index complete: %d chunks in %s",
                stats.total_documents,
                ", ".join(stats.collections) or "no collections",
            )
            return stats

    def stats(self) -> IndexStats:
        """
        Summarize the index from live collection counts.

        Domains left partial by the last index() run stay in failed_domains
        and are not counted until a later run rebuilds them.
        """
        stats = IndexStats(last_indexed=self._last_indexed)
        for domain in DOMAINS:
            if domain in self._failed_domains:
                stats.failed_domains.append(domain)
                continue
            try:
                count = self.store.collection(domain).count()
            except StoreError as e:
                logger.error("Cannot count %s collection: %s", domain, e)
                stats.failed_domains.append(domain)
                continue
            if count > 0:
                stats.total_documents += count
                stats.collections.append(domain)
        return stats
