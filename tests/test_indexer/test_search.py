"""Tests for the multi-collection search coordinator."""

import pytest

from rag_mcp.indexer import CollectionStore, SearchCoordinator
from rag_mcp.indexer.models import Chunk, SearchResult
from rag_mcp.indexer.search import merge_results, resolve_domains


def chunk(chunk_id: str, content: str, **metadata) -> Chunk:
    return Chunk(id=chunk_id, content=content, metadata={"path": f"{chunk_id}.txt", **metadata})


@pytest.fixture
def populated(store: CollectionStore) -> CollectionStore:
    store.collection("code").replace_all(
        [
            chunk("c1", "def pay_invoice(invoice): charge card"),
            chunk("c2", "def login(user): check password"),
            chunk("c3", "invoice invoice helpers"),
        ]
    )
    store.collection("docs").replace_all(
        [
            chunk("d1", "Invoices are generated monthly", type="prp"),
            chunk("d2", "We use Postgres for invoice storage", type="adr"),
        ]
    )
    store.collection("skills").replace_all([chunk("s1", "How to write invoice tests")])
    return store


@pytest.fixture
def coordinator(populated: CollectionStore) -> SearchCoordinator:
    return SearchCoordinator(populated)


class TestResolveDomains:
    def test_defaults_to_all(self):
        assert resolve_domains(None) == ["code", "docs", "skills"]
        assert resolve_domains([]) == ["code", "docs", "skills"]

    def test_normalizes_order_and_duplicates(self):
        assert resolve_domains(["skills", "code", "skills"]) == ["code", "skills"]

    def test_unknown_domain(self):
        with pytest.raises(ValueError, match="images"):
            resolve_domains(["code", "images"])


class TestMergeResults:
    def test_sorts_and_truncates(self):
        hits = [
            SearchResult(id="a", content="", metadata={}, distance=0.5),
            SearchResult(id="b", content="", metadata={}, distance=0.1),
            SearchResult(id="c", content="", metadata={}, distance=0.3),
        ]

        merged = merge_results(hits, 2)

        assert [hit.id for hit in merged] == ["b", "c"]

    def test_ties_break_by_domain_then_id(self):
        hits = [
            SearchResult(id="skill_b", content="", metadata={"domain": "skills"}, distance=0.2),
            SearchResult(id="doc_b", content="", metadata={"domain": "docs"}, distance=0.2),
            SearchResult(id="doc_a", content="", metadata={"domain": "docs"}, distance=0.2),
            SearchResult(id="code_z", content="", metadata={"domain": "code"}, distance=0.2),
        ]

        merged = merge_results(hits, 3)

        assert [hit.id for hit in merged] == ["code_z", "doc_a", "doc_b"]
        assert merge_results(list(reversed(hits)), 3) == merged

    def test_no_per_domain_floor(self):
        hits = [
            SearchResult(id=f"code{i}", content="", metadata={"domain": "code"}, distance=0.1)
            for i in range(3)
        ] + [SearchResult(id="doc", content="", metadata={"domain": "docs"}, distance=0.2)]

        merged = merge_results(hits, 3)

        assert all(hit.metadata["domain"] == "code" for hit in merged)


class TestSearch:
    @pytest.mark.parametrize("limit", [1, 2, 3, 5, 10])
    def test_ordering_and_limit(self, coordinator: SearchCoordinator, limit: int):
        outcome = coordinator.search("invoice", limit=limit)

        distances = [hit.distance for hit in outcome]
        assert len(outcome) <= limit
        assert distances == sorted(distances)

    def test_merges_across_domains(self, coordinator: SearchCoordinator):
        outcome = coordinator.search("invoice", limit=10)

        domains = {hit.metadata["domain"] for hit in outcome}
        assert domains == {"code", "docs", "skills"}
        assert outcome.failed_domains == []

    def test_tags_origin_domain(self, coordinator: SearchCoordinator):
        outcome = coordinator.search("login", domains=["code"], limit=1)

        assert outcome.results[0].id == "c2"
        assert outcome.results[0].metadata["domain"] == "code"

    def test_domain_subset(self, coordinator: SearchCoordinator):
        outcome = coordinator.search("invoice", domains=["docs"], limit=10)

        assert {hit.id for hit in outcome} == {"d1", "d2"}

    def test_filter(self, coordinator: SearchCoordinator):
        outcome = coordinator.search("invoice", domains=["docs"], filter={"type": "adr"})

        assert [hit.id for hit in outcome] == ["d2"]

    def test_blank_query(self, coordinator: SearchCoordinator):
        assert len(coordinator.search("   ")) == 0

    def test_zero_limit(self, coordinator: SearchCoordinator):
        assert len(coordinator.search("invoice", limit=0)) == 0

    def test_unknown_domain(self, coordinator: SearchCoordinator):
        with pytest.raises(ValueError):
            coordinator.search("invoice", domains=["nope"])

    def test_failed_domain_reported(self, coordinator: SearchCoordinator, fake_client):
        fake_client.fail("demo-docs", "query")

        outcome = coordinator.search("invoice", limit=10)

        assert outcome.failed_domains == ["docs"]
        assert outcome.available
        assert {hit.metadata["domain"] for hit in outcome} == {"code", "skills"}

    def test_all_domains_failed(self, coordinator: SearchCoordinator, fake_client):
        for name in ("demo-code", "demo-docs", "demo-skills"):
            fake_client.fail(name, "count")

        outcome = coordinator.search("invoice")

        assert outcome.failed_domains == ["code", "docs", "skills"]
        assert outcome.results == []

    def test_to_dict(self, coordinator: SearchCoordinator):
        data = coordinator.search("invoice", limit=2).to_dict()

        assert data["available"] is True
        assert len(data["results"]) == 2
        assert set(data["results"][0]) == {"id", "content", "metadata", "distance"}
