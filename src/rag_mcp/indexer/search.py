"""Multi-collection search: fan out per domain, merge by distance."""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Any

from rag_mcp.indexer.models import DOMAINS, SearchResult, SearchResults
from rag_mcp.indexer.store import CollectionStore, StoreError

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 10


def resolve_domains(domains: list[str] | None) -> list[str]:
    """Validate requested domains, defaulting to all of them."""
    if not domains:
        return list(DOMAINS)
    unknown = [domain for domain in domains if domain not in DOMAINS]
    if unknown:
        raise ValueError(
            f"Unknown domain(s) {', '.join(unknown)}; expected one of: {', '.join(DOMAINS)}"
        )
    return [domain for domain in DOMAINS if domain in domains]


def merge_results(hits: list[SearchResult], limit: int) -> list[SearchResult]:
    """
    Merge hits from several collections.

    Sorted by ascending distance and truncated to limit. There is no
    per-domain floor: one domain with many close hits can crowd out another.
    Equal distances are ordered by domain (code, docs, skills) and then by
    chunk id, so the cut at limit does not depend on query completion order.
    """
    return sorted(hits, key=_merge_key)[: max(limit, 0)]


def _merge_key(hit: SearchResult) -> tuple[float, int, str]:
    domain = hit.metadata.get("domain")
    rank = DOMAINS.index(domain) if domain in DOMAINS else len(DOMAINS)
    return hit.distance, rank, hit.id


class SearchCoordinator:
    """Runs one similarity query per requested domain and merges the hits."""

    def __init__(self, store: CollectionStore):
        self.store = store

    def _query_domain(
        self,
        domain: str,
        query: str,
        limit: int,
        filter: dict[str, Any] | None,
    ) -> list[SearchResult]:
        hits = self.store.collection(domain).query(query, limit, filter)
        for hit in hits:
            hit.metadata["domain"] = domain
        return hits

    def search(
        self,
        query: str,
        domains: list[str] | None = None,
        limit: int = DEFAULT_LIMIT,
        filter: dict[str, Any] | None = None,
    ) -> SearchResults:
        """
        Search the requested collections concurrently.

        Each domain is asked for up to ``limit`` hits; the merged list is then
        sorted by distance and cut to ``limit``. A domain whose query fails is
        reported in ``failed_domains`` while the other domains' hits are still
        returned.

        Raises:
            ValueError: If an unknown domain is requested.
        """
        requested = resolve_domains(domains)
        if not query.strip() or limit <= 0:
            return SearchResults()

        outcome = SearchResults()
        hits: list[SearchResult] = []

        with ThreadPoolExecutor(max_workers=len(requested)) as executor:
            futures = {
                executor.submit(self._query_domain, domain, query, limit, filter): domain
                for domain in requested
            }
            for future in as_completed(futures):
                domain = futures[future]
                try:
                    hits.extend(future.result())
                except StoreError as e:
                    logger.warning("Search in %s failed: %s", domain, e)
                    outcome.failed_domains.append(domain)

        outcome.failed_domains.sort(key=DOMAINS.index)
        outcome.results = merge_results(hits, limit)
        logger.debug(
            "Search returned %d results from %s", len(outcome.results), ", ".join(requested)
        )
        return outcome
