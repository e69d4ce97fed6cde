"""Shared fixtures: an in-memory stand-in for the ChromaDB client."""

import re
from pathlib import Path

import pytest

from rag_mcp.indexer.store import CollectionStore


def _tokens(text: str) -> set[str]:
    return set(re.findall(r"\w+", text.lower()))


def _matches(metadata: dict, where: dict | None) -> bool:
    if not where:
        return True
    if "$and" in where:
        return all(_matches(metadata, clause) for clause in where["$and"])
    return all(metadata.get(key) == value for key, value in where.items())


class FakeCollection:
    """Implements the subset of chromadb.Collection used by the store."""

    def __init__(self, name: str, client: "FakeClient"):
        self.name = name
        self.client = client
        self.entries: dict[str, tuple[str, dict]] = {}
        self.upsert_calls: list[int] = []

    def _check(self, operation: str) -> None:
        if operation in self.client.failures.get(self.name, set()):
            raise RuntimeError(f"simulated {operation} failure")

    def get(self, include=None):
        self._check("get")
        return {"ids": list(self.entries)}

    def delete(self, ids):
        self._check("delete")
        for entry_id in ids:
            self.entries.pop(entry_id, None)

    def upsert(self, ids, documents, metadatas):
        self._check("upsert")
        self.upsert_calls.append(len(ids))
        for entry_id, document, metadata in zip(ids, documents, metadatas):
            self.entries[entry_id] = (document, dict(metadata))

    def count(self):
        self._check("count")
        return len(self.entries)

    def query(self, query_texts, n_results, where=None):
        self._check("query")
        query_tokens = _tokens(query_texts[0]) or {""}
        scored = []
        for entry_id, (document, metadata) in self.entries.items():
            if not _matches(metadata, where):
                continue
            overlap = len(query_tokens & _tokens(document))
            distance = 1.0 - overlap / len(query_tokens)
            scored.append((distance, entry_id, document, metadata))
        scored.sort(key=lambda item: (item[0], item[1]))
        scored = scored[:n_results]
        return {
            "ids": [[item[1] for item in scored]],
            "documents": [[item[2] for item in scored]],
            "metadatas": [[dict(item[3]) for item in scored]],
            "distances": [[item[0] for item in scored]],
        }


class FakeClient:
    """Implements the subset of chromadb's client API used by the store."""

    def __init__(self):
        self.collections: dict[str, FakeCollection] = {}
        # collection name -> operations that raise
        self.failures: dict[str, set[str]] = {}

    def get_or_create_collection(self, name, **kwargs):
        if name not in self.collections:
            self.collections[name] = FakeCollection(name, self)
        return self.collections[name]

    def fail(self, name: str, operation: str) -> None:
        self.failures.setdefault(name, set()).add(operation)


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def store(fake_client: FakeClient) -> CollectionStore:
    return CollectionStore(fake_client, "demo")


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """A small project with code, docs and skills."""
    root = tmp_path / "project"
    root.mkdir()

    (root / ".gitignore").write_text("secrets/\n*.generated.py\n")
    (root / "src").mkdir()
    (root / "src" / "app.py").write_text(
        "def authenticate(user, password):\n"
        "    return check_password(user, password)\n"
    )
    (root / "src" / "routes.ts").write_text(
        "export function listInvoices() {\n  return db.invoices.all();\n}\n"
    )
    (root / "src" / "models.generated.py").write_text("GENERATED = True\n")
    (root / "secrets").mkdir()
    (root / "secrets" / "keys.py").write_text("API_KEY = 'nope'\n")
    (root / "node_modules" / "lib").mkdir(parents=True)
    (root / "node_modules" / "lib" / "index.js").write_text("module.exports = {};\n")
    (root / "README.txt").write_text("not code\n")

    (root / "CLAUDE.md").write_text(
        "# Project Guide\nUse pytest for tests.\n## Conventions\nSnake case everywhere.\n"
    )
    (root / "docs" / "architecture").mkdir(parents=True)
    (root / "docs" / "architecture" / "ADR-001-database.md").write_text(
        "# ADR-001 Database\nWe store invoices in Postgres.\n"
    )
    (root / "docs" / "planning").mkdir()
    (root / "docs" / "planning" / "PRP-002-billing.md").write_text(
        "# Billing\nInvoices are generated monthly.\n## Risks\nLate payments.\n"
    )

    skills = root / ".claude" / "skills"
    skills.mkdir(parents=True)
    (skills / "testing.md").write_text(
        "---\nname: testing\ndescription: How to write tests\n---\n"
        "# Testing\nUse fixtures for setup.\n"
    )
    return root
