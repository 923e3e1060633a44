"""The engine. Wires the API, the store and the analytics together."""

from datetime import datetime
from typing import Optional

from config.settings import settings
from leadscope.analytics.funnel import build_funnel, summarize_funnel
from leadscope.analytics.history import (
    calculate_trend,
    compare_periods,
    generate_daily_snapshots,
    get_stored_snapshots,
    last_n_days_trend,
    store_daily_snapshot,
)
from leadscope.analytics.performance import keyword_search_performance, source_performance
from leadscope.log import get_logger
from leadscope.memory.store import FileStore, KeyValueStore
from leadscope.models import (
    DailySnapshot,
    FilterSpec,
    FunnelStage,
    FunnelSummary,
    KeywordSearch,
    KeywordSearchPerformance,
    Opportunity,
    PeriodComparison,
    SearchResults,
    SourcePerformance,
    TrendData,
)
from leadscope.ranking.filters import filter_opportunities, filter_options
from leadscope.search.client import ApiClient, normalize_keyword_searches
from leadscope.search.service import GlobalSearchService

logger = get_logger(__name__)


class Engine:
    """
    The analytics engine.

    load() pulls the working set from the API; everything else is
    computed from it. search() goes to the API through the cached
    global search service.
    """

    def __init__(
        self,
        client: Optional[ApiClient] = None,
        store: Optional[KeyValueStore] = None,
    ):
        self.client = client or ApiClient()
        self.store = store if store is not None else FileStore()
        self.search_service = GlobalSearchService(self.client, store=self.store)

        self.opportunities: list[Opportunity] = []
        self.keyword_searches: list[KeywordSearch] = []
        self.loaded_at: Optional[datetime] = None

    async def load(self) -> list[Opportunity]:
        """Fetch the working set of opportunities and keyword searches."""
        self.opportunities = await self.client.fetch_all_opportunities()
        self.keyword_searches = normalize_keyword_searches(
            await self.client.list_keyword_searches()
        )
        self.loaded_at = datetime.now()
        logger.info(
            "Loaded %d opportunities, %d keyword searches",
            len(self.opportunities), len(self.keyword_searches),
        )
        return self.opportunities

    async def ensure_loaded(self) -> None:
        if self.loaded_at is None:
            await self.load()

    async def search(self, query: str) -> SearchResults:
        return await self.search_service.search(query)

    def filter(self, spec: FilterSpec) -> list[Opportunity]:
        return filter_opportunities(self.opportunities, spec)

    def options(self):
        return filter_options(self.opportunities)

    def snapshots(self, days: Optional[int] = None) -> list[DailySnapshot]:
        return generate_daily_snapshots(self.opportunities, days)

    def trend(self, metric: str = "total_opportunities", days: Optional[int] = None) -> TrendData:
        return calculate_trend(self.snapshots(days), metric)

    def sparkline(self, days: int = 7) -> list[int]:
        return last_n_days_trend(self.opportunities, days)

    def compare(self, current_days: int = 30, previous_days: int = 30) -> PeriodComparison:
        return compare_periods(self.opportunities, current_days, previous_days)

    def funnel(self) -> tuple[list[FunnelStage], Optional[FunnelSummary]]:
        stages = build_funnel(self.opportunities)
        return stages, summarize_funnel(self.opportunities, stages)

    def sources(self, limit: int = 10) -> list[SourcePerformance]:
        return source_performance(self.opportunities, limit)

    def keyword_performance(self) -> list[KeywordSearchPerformance]:
        return keyword_search_performance(self.keyword_searches, self.opportunities)

    def record_snapshot(self) -> DailySnapshot:
        """Store today's snapshot, replacing any earlier one for today."""
        today = generate_daily_snapshots(self.opportunities, days=1)[0]
        key = store_daily_snapshot(self.store, today)
        logger.info("Stored %s", key)
        return today

    def stored_snapshots(self, days: Optional[int] = None) -> list[DailySnapshot]:
        return get_stored_snapshots(self.store, days)

    async def close(self):
        await self.client.close()


# Singleton
_engine: Optional[Engine] = None


def get_engine() -> Engine:
    """Get the engine instance."""
    global _engine
    if _engine is None:
        _engine = Engine()
    return _engine


async def reset_engine() -> None:
    global _engine
    if _engine is not None:
        await _engine.close()
    _engine = None
