"""
Unit tests for the global search service and its cache.
"""

import json
from unittest.mock import AsyncMock

import pytest

from conftest import FakeClient, make_keyword_search, make_opportunity
from leadscope.errors import SearchError
from leadscope.memory.store import MemoryStore
from leadscope.models import SearchResult, SearchResults
from leadscope.search.cache import SEARCH_CACHE_KEY, SearchCache
from leadscope.search.service import GlobalSearchService


class Clock:
    def __init__(self, t: float = 1_000_000.0):
        self.t = t

    def __call__(self) -> float:
        return self.t


def envelope(title: str) -> SearchResults:
    result = SearchResult(type="opportunity", id=title, title=title, url=f"/x/{title}")
    return SearchResults(opportunities=[result], total=1)


@pytest.fixture
def backend(sample_opportunities, sample_keyword_searches):
    return FakeClient(sample_opportunities, sample_keyword_searches)


@pytest.fixture
def service(backend, store):
    return GlobalSearchService(backend, store=store)


class TestSearchCache:

    def test_miss_then_hit_case_insensitive(self, store):
        cache = SearchCache(store, ttl_seconds=300, max_entries=10, clock=Clock())
        assert cache.get("React") is None

        cache.put("React", envelope("a"))
        assert cache.get("react") == envelope("a")
        assert cache.get("REACT") == envelope("a")
        assert cache.get("reac") is None

    def test_entries_expire(self, store):
        clock = Clock()
        cache = SearchCache(store, ttl_seconds=300, max_entries=10, clock=clock)
        cache.put("react", envelope("a"))

        clock.t += 299
        assert cache.get("react") is not None
        clock.t += 2
        assert cache.get("react") is None

    def test_keeps_at_most_max_entries_newest_last(self, store):
        clock = Clock()
        cache = SearchCache(store, ttl_seconds=300, max_entries=10, clock=clock)
        for i in range(12):
            clock.t += 1
            cache.put(f"q{i}", envelope(str(i)))

        stored = json.loads(store.get(SEARCH_CACHE_KEY))
        assert [item["query"] for item in stored] == [f"q{i}" for i in range(2, 12)]
        assert cache.get("q0") is None
        assert cache.get("q11") is not None

    def test_write_drops_expired_entries(self, store):
        clock = Clock()
        cache = SearchCache(store, ttl_seconds=300, max_entries=10, clock=clock)
        cache.put("old", envelope("old"))
        clock.t += 301
        cache.put("new", envelope("new"))

        stored = json.loads(store.get(SEARCH_CACHE_KEY))
        assert [item["query"] for item in stored] == ["new"]

    @pytest.mark.parametrize("blob", ["{not json", '{"a": 1}', '[{"query": 1}]'])
    def test_corrupt_blob_is_a_miss_and_discarded(self, blob):
        store = MemoryStore({SEARCH_CACHE_KEY: blob})
        cache = SearchCache(store, clock=Clock())

        assert cache.get("react") is None
        assert store.get(SEARCH_CACHE_KEY) is None

    def test_clear(self, store):
        cache = SearchCache(store, clock=Clock())
        cache.put("react", envelope("a"))
        cache.clear()
        assert cache.get("react") is None


class TestGlobalSearchService:

    async def test_short_query_makes_no_calls(self, service, backend):
        results = await service.search("r")

        assert results == SearchResults(opportunities=[], keyword_searches=[], total=0)
        assert backend.opportunity_calls == 0
        assert backend.keyword_search_calls == 0

    async def test_searches_both_collections(self, service, backend):
        results = await service.search("react")

        assert [r.type for r in results.opportunities] == ["opportunity", "opportunity"]
        assert [r.title for r in results.keyword_searches] == ["Web dev"]
        assert results.total == 3
        assert backend.opportunity_calls == 1
        assert backend.keyword_search_calls == 1

    async def test_result_shapes(self, service, sample_opportunities):
        results = await service.search("python")

        opp = results.opportunities[0]
        source = sample_opportunities[2]
        assert opp.id == source.id
        assert opp.title == "Untitled Opportunity"
        assert opp.subtitle == "carol • r/forhire"
        assert opp.url == f"/dashboard/opportunities?highlight={source.id}"
        assert opp.metadata == {"status": "applied", "score": 0.7, "source": "r/forhire"}

        search = results.keyword_searches[0]
        assert search.title == "Python gigs"
        assert search.subtitle == "2 keywords • Paused"
        assert search.url == "/dashboard/keyword-searches"
        assert search.metadata == {"enabled": False, "keywordCount": 2}

    async def test_accepts_bare_list_payload(self, sample_opportunities, store):
        backend = FakeClient(sample_opportunities, [], bare_list=True)
        results = await GlobalSearchService(backend, store=store).search("logo")
        assert [r.title for r in results.opportunities] == ["Logo design wanted"]

    async def test_limits(self, store):
        opps = [make_opportunity(title=f"react gig {i}") for i in range(15)]
        searches = [make_keyword_search(f"ks-{i}", f"react {i}") for i in range(8)]
        results = await GlobalSearchService(FakeClient(opps, searches), store=store).search("react")

        assert len(results.opportunities) == 10
        assert len(results.keyword_searches) == 5
        assert results.total == 15

    async def test_fetches_with_limit_100(self, store):
        backend = AsyncMock()
        backend.list_opportunities.return_value = {"items": []}
        backend.list_keyword_searches.return_value = []

        await GlobalSearchService(backend, store=store).search("react")

        backend.list_opportunities.assert_awaited_once_with(limit=100, offset=0)

    async def test_second_identical_query_is_cached(self, service, backend):
        first = await service.search("React")
        second = await service.search("react")

        assert second == first
        assert backend.opportunity_calls == 1
        assert backend.keyword_search_calls == 1

    async def test_one_failing_collection_does_not_fail_the_other(self, sample_keyword_searches, store):
        backend = AsyncMock()
        backend.list_opportunities.side_effect = ConnectionError("boom")
        backend.list_keyword_searches.return_value = [k.model_dump() for k in sample_keyword_searches]

        results = await GlobalSearchService(backend, store=store).search("python")

        assert results.opportunities == []
        assert [r.title for r in results.keyword_searches] == ["Python gigs"]
        assert results.total == 1

    async def test_malformed_payload_degrades_to_empty(self, store):
        backend = AsyncMock()
        backend.list_opportunities.return_value = {"items": [{"id": "x"}]}  # no created_at
        backend.list_keyword_searches.side_effect = ValueError("bad json")

        results = await GlobalSearchService(backend, store=store).search("anything")
        assert results.total == 0

    async def test_unexpected_fault_raises_search_error(self, service, monkeypatch):
        monkeypatch.setattr(service, "_search_opportunities", AsyncMock(side_effect=RuntimeError("bug")))

        with pytest.raises(SearchError, match="Failed to perform search"):
            await service.search("react")

    async def test_clear_cache(self, service, backend):
        await service.search("react")
        service.clear_cache()
        await service.search("react")
        assert backend.opportunity_calls == 2
