"""ChromaDB-backed storage for the code, docs and skills collections."""

import logging
import re
import threading
from pathlib import Path
from typing import Any

import chromadb

from rag_mcp.indexer.models import DOMAINS, Chunk, SearchResult

logger = logging.getLogger(__name__)

# Chunks per upsert call, to stay under the datastore's payload limits
BATCH_SIZE = 100

# Chroma collection names: 3-63 chars of [a-zA-Z0-9._-], alphanumeric at both ends
MAX_COLLECTION_NAME = 63
_INVALID_NAME_CHARS = re.compile(r"[^a-zA-Z0-9._-]+")


class StoreError(Exception):
    """A datastore operation failed."""


class StoreUnavailableError(StoreError):
    """The datastore could not be reached or initialized."""


def collection_name(namespace: str, domain: str) -> str:
    """Physical collection name for a domain, namespaced by project."""
    cleaned = _INVALID_NAME_CHARS.sub("-", namespace).strip("._-") or "default"
    cleaned = cleaned[: MAX_COLLECTION_NAME - len(domain) - 1].rstrip("._-")
    return f"{cleaned}-{domain}"


def build_where(filter: dict[str, Any] | None) -> dict[str, Any] | None:
    """Turn a flat equality filter into a Chroma where clause."""
    if not filter:
        return None
    clauses = [{key: value} for key, value in filter.items()]
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


class Collection:
    """
    One named partition of the datastore.

    The underlying Chroma collection is created lazily on first use.
    """

    def __init__(self, client, name: str, embedding_function=None):
        self.name = name
        self._client = client
        self._embedding_function = embedding_function
        self._handle = None
        self._lock = threading.Lock()

    def _collection(self):
        with self._lock:
            if self._handle is None:
                kwargs: dict[str, Any] = {"metadata": {"hnsw:space": "cosine"}}
                if self._embedding_function is not None:
                    kwargs["embedding_function"] = self._embedding_function
                self._handle = self._client.get_or_create_collection(self.name, **kwargs)
            return self._handle

    def replace_all(self, chunks: list[Chunk]) -> None:
        """
        Replace the collection's contents with the given chunks.

        Every existing entry is deleted first, then the new chunks are
        upserted in sequential batches of BATCH_SIZE.

        Raises:
            StoreError: If any datastore call fails. The collection may then
                hold a partial set and must be rebuilt.
        """
        try:
            collection = self._collection()

            existing_ids = collection.get(include=[])["ids"]
            for start in range(0, len(existing_ids), BATCH_SIZE):
                collection.delete(ids=existing_ids[start : start + BATCH_SIZE])
            logger.debug("Cleared %d entries from %s", len(existing_ids), self.name)

            for start in range(0, len(chunks), BATCH_SIZE):
                batch = chunks[start : start + BATCH_SIZE]
                collection.upsert(
                    ids=[chunk.id for chunk in batch],
                    documents=[chunk.content for chunk in batch],
                    metadatas=[chunk.metadata for chunk in batch],
                )
        except Exception as e:
            raise StoreError(f"Failed to rebuild collection {self.name}: {e}") from e

        logger.debug("Inserted %d chunks into %s", len(chunks), self.name)

    def query(
        self,
        query_text: str,
        limit: int,
        filter: dict[str, Any] | None = None,
    ) -> list[SearchResult]:
        """
        Similarity search within this collection.

        Args:
            query_text: Natural language or code query
            limit: Maximum number of hits
            filter: Optional equality filter on chunk metadata

        Returns:
            Hits ordered as the datastore returned them, with its distances.
        """
        try:
            collection = self._collection()
            count = collection.count()
            if count == 0 or limit <= 0:
                return []

            kwargs: dict[str, Any] = {
                "query_texts": [query_text],
                "n_results": min(limit, count),
            }
            where = build_where(filter)
            if where:
                kwargs["where"] = where
            response = collection.query(**kwargs)
        except Exception as e:
            raise StoreError(f"Query failed on collection {self.name}: {e}") from e

        if not response.get("ids") or not response["ids"][0]:
            return []

        return [
            SearchResult(
                id=hit_id,
                content=document or "",
                metadata=dict(metadata or {}),
                distance=float(distance),
            )
            for hit_id, document, metadata, distance in zip(
                response["ids"][0],
                response["documents"][0],
                response["metadatas"][0],
                response["distances"][0],
            )
        ]

    def count(self) -> int:
        """Number of chunks currently stored."""
        try:
            return self._collection().count()
        except Exception as e:
            raise StoreError(f"Count failed on collection {self.name}: {e}") from e


class CollectionStore:
    """
    Adapter around the embedding datastore holding one collection per domain.

    The store is an explicit handle: create it once at startup, pass it to
    the components that need it, and close it at shutdown.
    """

    def __init__(self, client, namespace: str, embedding_function=None):
        self.namespace = namespace
        self._client = client
        self.collections: dict[str, Collection] = {
            domain: Collection(
                client,
                collection_name(namespace, domain),
                embedding_function=embedding_function,
            )
            for domain in DOMAINS
        }

    @classmethod
    def open(
        cls,
        storage_path: Path,
        namespace: str,
        embedding_function=None,
    ) -> "CollectionStore":
        """
        Open a persistent store at storage_path.

        Raises:
            StoreUnavailableError: If the datastore cannot be initialized.
        """
        try:
            storage_path.mkdir(parents=True, exist_ok=True)
            client = chromadb.PersistentClient(path=str(storage_path))
        except Exception as e:
            raise StoreUnavailableError(
                f"Cannot open vector store at {storage_path}: {e}"
            ) from e

        logger.info("Opened vector store at %s (namespace: %s)", storage_path, namespace)
        return cls(client, namespace, embedding_function=embedding_function)

    def collection(self, domain: str) -> Collection:
        try:
            return self.collections[domain]
        except KeyError:
            raise ValueError(
                f"Unknown domain '{domain}', expected one of: {', '.join(DOMAINS)}"
            ) from None

    def close(self) -> None:
        """Release the client. The store must not be used afterwards."""
        self.collections.clear()
        self._client = None
