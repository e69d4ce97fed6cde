"""Data models for the indexer."""

from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

# Content partitions, in indexing order
DOMAINS = ("code", "docs", "skills")


@dataclass
class SourceFile:
    """A file discovered for indexing."""

    path: Path  # Absolute
    relative_path: str  # Relative to the project root, POSIX separators
    domain: str  # code, docs or skills
    extension: str


@dataclass
class Chunk:
    """A bounded slice of a source file plus its metadata."""

    id: str
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class SearchResult:
    """A single similarity hit. Lower distance means more similar."""

    id: str
    content: str
    metadata: dict[str, Any]
    distance: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "metadata": self.metadata,
            "distance": self.distance,
        }


@dataclass
class SearchResults:
    """Merged search hits plus the domains that could not be queried."""

    results: list[SearchResult] = field(default_factory=list)
    failed_domains: list[str] = field(default_factory=list)
    available: bool = True
    error: str | None = None

    @classmethod
    def unavailable(cls, reason: str) -> "SearchResults":
        return cls(available=False, error=reason)

    def __iter__(self) -> Iterator[SearchResult]:
        return iter(self.results)

    def __len__(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "available": self.available,
            "error": self.error,
            "failed_domains": list(self.failed_domains),
            "results": [result.to_dict() for result in self.results],
        }


@dataclass
class IndexStats:
    """Summary of the index. Collection counts remain the source of truth."""

    total_documents: int = 0
    collections: list[str] = field(default_factory=list)
    last_indexed: str | None = None
    failed_paths: list[str] = field(default_factory=list)
    failed_domains: list[str] = field(default_factory=list)
    available: bool = True
    error: str | None = None

    @classmethod
    def unavailable(cls, reason: str) -> "IndexStats":
        return cls(available=False, error=reason)

    @property
    def complete(self) -> bool:
        """True when every domain was rebuilt (or counted) successfully."""
        return self.available and not self.failed_domains

    def to_dict(self) -> dict[str, Any]:
        return {
            "available": self.available,
            "complete": self.complete,
            "error": self.error,
            "total_documents": self.total_documents,
            "collections": list(self.collections),
            "last_indexed": self.last_indexed,
            "failed_paths": list(self.failed_paths),
            "failed_domains": list(self.failed_domains),
        }
