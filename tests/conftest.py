"""
Pytest configuration and shared fixtures.
"""

import itertools
from datetime import datetime, timedelta
from typing import Optional

import pytest

from leadscope.memory.store import MemoryStore
from leadscope.models import KeywordSearch, Opportunity

# Mid-June keeps the trailing 60-day windows clear of DST changes
NOW = datetime(2026, 6, 15, 12, 0, 0)

_ids = itertools.count(1)


def make_opportunity(
    status: str = "new",
    total_score: float = 0.5,
    created_at: Optional[datetime] = None,
    **fields,
) -> Opportunity:
    """Opportunity with sensible defaults; created an hour before NOW."""
    n = next(_ids)
    data = {
        "id": f"opp-{n}",
        "title": f"Opportunity {n}",
        "content": "Looking for help with a project",
        "author": "someone",
        "source": "r/forhire",
        "status": status,
        "matched_keywords": [],
        "total_score": total_score,
        "created_at": created_at or NOW - timedelta(hours=1),
        "keyword_search_id": "ks-1",
    }
    data.update(fields)
    return Opportunity.model_validate(data)


def make_keyword_search(id: str = "ks-1", name: str = "Web dev", **fields) -> KeywordSearch:
    data = {"id": id, "name": name, "keywords": ["react", "nextjs"], "enabled": True}
    data.update(fields)
    return KeywordSearch.model_validate(data)


class FakeClient:
    """Stands in for ApiClient; records calls."""

    def __init__(self, opportunities=(), keyword_searches=(), bare_list: bool = False):
        self.opportunities = list(opportunities)
        self.keyword_searches = list(keyword_searches)
        self.bare_list = bare_list
        self.opportunity_calls = 0
        self.keyword_search_calls = 0
        self.closed = False

    async def list_opportunities(self, limit: int = 100, offset: int = 0):
        self.opportunity_calls += 1
        items = [o.model_dump(mode="json") for o in self.opportunities[offset:offset + limit]]
        if self.bare_list:
            return items
        return {"items": items, "total": len(self.opportunities), "limit": limit, "offset": offset}

    async def list_keyword_searches(self):
        self.keyword_search_calls += 1
        return [k.model_dump(mode="json") for k in self.keyword_searches]

    async def fetch_all_opportunities(self, page_size: int = 100):
        return list(self.opportunities)

    async def close(self):
        self.closed = True


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def sample_opportunities():
    return [
        make_opportunity(
            status="new", total_score=0.9,
            title="Need a React developer", author="alice", source="r/forhire",
            matched_keywords=["react", "frontend"],
        ),
        make_opportunity(
            status="won", total_score=0.5,
            title="Logo design wanted", author="bob", source="r/slavelabour",
            matched_keywords=["design"],
            created_at=NOW - timedelta(days=3),
        ),
        make_opportunity(
            status="applied", total_score=0.7,
            title=None, content="Python scraper needed", author="carol", source="r/forhire",
            matched_keywords=["python", "react"],
            created_at=NOW - timedelta(days=20),
        ),
    ]


@pytest.fixture
def sample_keyword_searches():
    return [
        make_keyword_search("ks-1", "Web dev", keywords=["react", "nextjs"]),
        make_keyword_search("ks-2", "Python gigs", keywords=["python", "django"], enabled=False),
    ]
