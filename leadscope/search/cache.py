"""Time-boxed cache for global search envelopes."""

import json
import time
from typing import Callable, Optional

from pydantic import BaseModel, ValidationError

from config.settings import settings
from leadscope.log import get_logger
from leadscope.memory.store import KeyValueStore
from leadscope.models import SearchResults

logger = get_logger(__name__)

SEARCH_CACHE_KEY = "global_search_cache"


class CachedResult(BaseModel):
    query: str
    results: SearchResults
    timestamp: float  # epoch milliseconds


class SearchCache:
    """
    Recent search envelopes, stored as one JSON list in a key-value store.

    Lookups match the query case-insensitively and ignore entries older
    than the TTL. Writes drop expired entries and keep at most
    max_entries, newest last. A corrupt blob counts as a miss and is
    discarded.
    """

    def __init__(
        self,
        store: KeyValueStore,
        ttl_seconds: Optional[float] = None,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.ttl_ms = (settings.search_cache_ttl_seconds if ttl_seconds is None else ttl_seconds) * 1000
        self.max_entries = settings.search_cache_max_entries if max_entries is None else max_entries
        self.clock = clock

    def get(self, query: str) -> Optional[SearchResults]:
        """Cached envelope for this query, if still fresh."""
        now = self._now()
        wanted = query.lower()
        for item in self._read():
            if item.query.lower() == wanted and now - item.timestamp < self.ttl_ms:
                return item.results
        return None

    def put(self, query: str, results: SearchResults) -> None:
        now = self._now()
        fresh = [item for item in self._read() if now - item.timestamp < self.ttl_ms]
        keep = fresh[-(self.max_entries - 1):] if self.max_entries > 1 else []
        keep.append(CachedResult(query=query, results=results, timestamp=now))

        payload = json.dumps([item.model_dump(mode="json", by_alias=True) for item in keep])
        try:
            self.store.set(SEARCH_CACHE_KEY, payload)
        except OSError as e:
            logger.warning("Could not write search cache: %s", e)

    def clear(self) -> None:
        self.store.remove(SEARCH_CACHE_KEY)

    def _read(self) -> list[CachedResult]:
        raw = self.store.get(SEARCH_CACHE_KEY)
        if not raw:
            return []
        try:
            data = json.loads(raw)
            if not isinstance(data, list):
                raise ValueError("cache blob is not a list")
            return [CachedResult.model_validate(item) for item in data]
        except (ValueError, ValidationError) as e:
            logger.warning("Discarding corrupt search cache: %s", e)
            self.store.remove(SEARCH_CACHE_KEY)
            return []

    def _now(self) -> float:
        return self.clock() * 1000
