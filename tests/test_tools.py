"""Tests for the MCP tools."""

from pathlib import Path

import pytest

from rag_mcp.engine import RAGEngine
from rag_mcp.indexer import CollectionStore
from rag_mcp.tools import register_tools


class RecordingMCP:
    """Collects the functions registered through @mcp.tool()."""

    def __init__(self):
        self.tools = {}

    def tool(self):
        def decorator(fn):
            self.tools[fn.__name__] = fn
            return fn

        return decorator


@pytest.fixture
def tools(project_root: Path, store: CollectionStore) -> dict:
    mcp = RecordingMCP()
    register_tools(mcp, RAGEngine(project_root, store))
    return mcp.tools


@pytest.fixture
def unavailable_tools(project_root: Path) -> dict:
    mcp = RecordingMCP()
    register_tools(mcp, RAGEngine(project_root, None))
    return mcp.tools


def test_registers_all_tools(tools):
    assert set(tools) == {
        "search",
        "search_code",
        "search_docs",
        "search_skills",
        "index_project",
        "index_stats",
    }


class TestIndexTools:
    def test_index_project(self, tools):
        result = tools["index_project"]()

        assert result["available"] is True
        assert result["complete"] is True
        assert result["collections"] == ["code", "docs", "skills"]
        assert result["total_documents"] == 8
        assert result["last_indexed"]

    def test_index_stats(self, tools):
        tools["index_project"]()
        result = tools["index_stats"]()

        assert result["total_documents"] == 8
        assert result["failed_domains"] == []


class TestSearchTools:
    @pytest.fixture(autouse=True)
    def indexed(self, tools):
        tools["index_project"]()

    def test_search(self, tools):
        result = tools["search"]("invoices", limit=4)

        assert result["available"] is True
        assert len(result["results"]) <= 4
        distances = [hit["distance"] for hit in result["results"]]
        assert distances == sorted(distances)

    def test_search_with_types_and_filter(self, tools):
        result = tools["search"]("invoices", types=["docs"], filter={"type": "adr"})

        paths = {hit["metadata"]["path"] for hit in result["results"]}
        assert paths == {"docs/architecture/ADR-001-database.md"}

    def test_search_unknown_type(self, tools):
        result = tools["search"]("invoices", types=["images"])

        assert result["results"] == []
        assert "images" in result["error"]

    @pytest.mark.parametrize(
        ("tool", "domain"),
        [("search_code", "code"), ("search_docs", "docs"), ("search_skills", "skills")],
    )
    def test_single_domain_tools(self, tools, tool: str, domain: str):
        result = tools[tool]("tests")

        assert result["results"]
        assert all(hit["metadata"]["domain"] == domain for hit in result["results"])


class TestUnavailable:
    def test_search_reports_unavailable(self, unavailable_tools):
        result = unavailable_tools["search"]("anything")

        assert result["available"] is False
        assert result["error"]
        assert result["results"] == []

    def test_index_reports_unavailable(self, unavailable_tools):
        result = unavailable_tools["index_project"]()

        assert result["available"] is False
        assert result["complete"] is False

    def test_stats_reports_unavailable(self, unavailable_tools):
        assert unavailable_tools["index_stats"]()["available"] is False
