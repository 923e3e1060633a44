"""Search-as-you-type state for the global search box."""

import asyncio
from typing import Optional

from config.settings import settings
from leadscope.debounce import Debouncer
from leadscope.log import get_logger
from leadscope.models import SearchResults
from leadscope.search.service import GlobalSearchService

logger = get_logger(__name__)

SEARCH_FAILED = "Failed to perform search"


class GlobalSearch:
    """
    One consumer of GlobalSearchService.

    set_query() opens or closes the dropdown right away and schedules
    the real search once typing pauses. Only the latest search may
    update results: starting a new one cancels the one in flight, and
    a superseded search that still finishes is ignored.
    """

    def __init__(
        self,
        service: GlobalSearchService,
        debounce_ms: Optional[int] = None,
        min_query_length: Optional[int] = None,
    ):
        self.service = service
        self.min_query_length = (
            settings.search_min_query_length if min_query_length is None else min_query_length
        )

        self.query = ""
        self.results: Optional[SearchResults] = None
        self.is_loading = False
        self.error: Optional[str] = None
        self.is_open = False

        self._generation = 0
        self._task: Optional[asyncio.Task] = None
        self._debounce = Debouncer(
            "",
            delay_ms=settings.search_debounce_ms if debounce_ms is None else debounce_ms,
            on_settle=self.perform_search,
        )

    def set_query(self, query: str) -> None:
        """Handle a keystroke."""
        self.query = query
        if len(query) >= self.min_query_length:
            self.is_open = True
        else:
            self.is_open = False
            self.results = None
        self._debounce.set(query)

    def perform_search(self, query: str) -> Optional[asyncio.Task]:
        """Start a search now, superseding any search in flight."""
        self._cancel_in_flight()
        self._generation += 1

        if len(query) < self.min_query_length:
            self.results = None
            self.is_loading = False
            return None

        self.is_loading = True
        self.error = None
        self._task = asyncio.ensure_future(self._run(query, self._generation))
        return self._task

    async def wait(self) -> Optional[SearchResults]:
        """Wait for the pending debounce and the search it starts."""
        await self._debounce.wait()
        task = self._task
        if task is not None and not task.done():
            await asyncio.wait({task})
        return self.results

    def clear(self) -> None:
        self.query = ""
        self.results = None
        self.is_open = False
        self.error = None
        self.is_loading = False
        self._debounce.cancel()
        self._cancel_in_flight()
        self._generation += 1

    def close_dropdown(self) -> None:
        self.is_open = False

    async def aclose(self) -> None:
        """Drop pending timers and in-flight work."""
        self._debounce.cancel()
        task = self._task
        self._cancel_in_flight()
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def _run(self, query: str, generation: int) -> None:
        try:
            results = await self.service.search(query)
        except asyncio.CancelledError:
            return
        except Exception:
            logger.exception("Search error")
            if generation == self._generation:
                self.error = SEARCH_FAILED
                self.results = None
                self.is_loading = False
            return

        if generation == self._generation:
            self.results = results
            self.is_loading = False

    def _cancel_in_flight(self) -> None:
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
