"""Global search - one query across opportunities and keyword searches."""

import asyncio
from typing import Any, Optional, Protocol

from config.settings import settings
from leadscope.errors import SearchError
from leadscope.log import get_logger
from leadscope.memory.store import KeyValueStore, MemoryStore
from leadscope.models import KeywordSearch, Opportunity, SearchResult, SearchResults
from leadscope.search.cache import SearchCache
from leadscope.search.client import normalize_keyword_searches, normalize_opportunities

logger = get_logger(__name__)


class SearchBackend(Protocol):
    """What the service needs from the remote API."""

    async def list_opportunities(self, limit: int = 100, offset: int = 0) -> Any: ...

    async def list_keyword_searches(self) -> Any: ...


class GlobalSearchService:
    """
    Unified search across both collections.

    The backend has no full-text search, so each collection is fetched
    and filtered here. Results are cached per query for a few minutes.
    A failing collection contributes an empty list; it never fails the
    other one.
    """

    def __init__(
        self,
        backend: SearchBackend,
        store: Optional[KeyValueStore] = None,
        cache: Optional[SearchCache] = None,
    ):
        self.backend = backend
        self.cache = cache or SearchCache(store if store is not None else MemoryStore())
        self.min_query_length = settings.search_min_query_length
        self.fetch_limit = settings.search_fetch_limit
        self.opportunity_limit = settings.search_opportunity_limit
        self.keyword_limit = settings.search_keyword_limit

    async def search(self, query: str) -> SearchResults:
        """
        Search both collections.

        Args:
            query: Free text; shorter than the minimum returns an empty envelope

        Returns:
            SearchResults with at most 10 opportunities and 5 keyword searches

        Raises:
            SearchError: something other than a collection fetch went wrong
        """
        if len(query) < self.min_query_length:
            return SearchResults()

        cached = self.cache.get(query)
        if cached is not None:
            logger.debug("Search cache hit for %r", query)
            return cached

        try:
            opportunities, keyword_searches = await asyncio.gather(
                self._search_opportunities(query),
                self._search_keyword_searches(query),
            )
            results = SearchResults(
                opportunities=opportunities,
                keyword_searches=keyword_searches,
                total=len(opportunities) + len(keyword_searches),
            )
        except Exception as e:
            logger.exception("Global search for %r failed", query)
            raise SearchError() from e

        self.cache.put(query, results)
        return results

    def clear_cache(self) -> None:
        self.cache.clear()

    async def _search_opportunities(self, query: str) -> list[SearchResult]:
        try:
            payload = await self.backend.list_opportunities(limit=self.fetch_limit, offset=0)
            opportunities = normalize_opportunities(payload)
        except Exception as e:
            logger.warning("Error searching opportunities: %s", e)
            return []

        needle = query.lower()
        matches = [o for o in opportunities if _opportunity_matches(o, needle)]
        return [opportunity_result(o) for o in matches[:self.opportunity_limit]]

    async def _search_keyword_searches(self, query: str) -> list[SearchResult]:
        try:
            payload = await self.backend.list_keyword_searches()
            searches = normalize_keyword_searches(payload)
        except Exception as e:
            logger.warning("Error searching keyword searches: %s", e)
            return []

        needle = query.lower()
        matches = [s for s in searches if _keyword_search_matches(s, needle)]
        return [keyword_search_result(s) for s in matches[:self.keyword_limit]]


def _opportunity_matches(opp: Opportunity, needle: str) -> bool:
    return (
        needle in (opp.title or "").lower()
        or needle in opp.content.lower()
        or needle in opp.author.lower()
        or needle in " ".join(opp.matched_keywords).lower()
    )


def _keyword_search_matches(search: KeywordSearch, needle: str) -> bool:
    return needle in (search.name or "").lower() or needle in " ".join(search.keywords).lower()


def opportunity_result(opp: Opportunity) -> SearchResult:
    return SearchResult(
        type="opportunity",
        id=opp.id,
        title=opp.title or "Untitled Opportunity",
        subtitle=f"{opp.author or 'Unknown'} • {opp.source or 'Unknown'}",
        url=f"/dashboard/opportunities?highlight={opp.id}",
        metadata={
            "status": opp.status.value,
            "score": opp.total_score,
            "source": opp.source,
        },
    )


def keyword_search_result(search: KeywordSearch) -> SearchResult:
    count = len(search.keywords)
    return SearchResult(
        type="keyword_search",
        id=search.id,
        title=search.name or "Unnamed Search",
        subtitle=f"{count} keywords • {'Active' if search.enabled else 'Paused'}",
        url="/dashboard/keyword-searches",
        metadata={
            "enabled": search.enabled,
            "keywordCount": count,
        },
    )
