"""Opportunity filtering and ranking for the dashboard list view."""

from datetime import datetime, timedelta
from typing import Iterable, Optional

from pydantic.alias_generators import to_camel

from config.settings import settings
from leadscope.debounce import Debouncer
from leadscope.models import (
    DateRange,
    FilterOptions,
    FilterSpec,
    Opportunity,
)
from leadscope.timeutil import local_midnight, now_local, to_local


def filter_opportunities(
    opportunities: Iterable[Opportunity],
    spec: FilterSpec,
    now: Optional[datetime] = None,
) -> list[Opportunity]:
    """
    Filter and rank opportunities.

    Filters are applied in order: text, status, source, score floor,
    date window, keywords. Each one is a no-op at its default value.
    Output is sorted by total_score, highest first; equal scores keep
    their input order.
    """
    filtered = list(opportunities)

    query = spec.query.strip().lower()
    if query:
        filtered = [o for o in filtered if _matches_text(o, query)]

    if spec.status != "all":
        filtered = [o for o in filtered if o.status == spec.status]

    if spec.source != "all":
        filtered = [o for o in filtered if o.source == spec.source]

    if spec.min_score > 0:
        # total_score is 0..1, min_score is the 0..100 slider value
        floor = spec.min_score / 100
        filtered = [o for o in filtered if o.total_score >= floor]

    if spec.date_range != DateRange.ALL:
        cutoff = date_cutoff(spec.date_range, now)
        filtered = [o for o in filtered if to_local(o.created_at) >= cutoff]

    if spec.has_keywords:
        wanted = set(spec.has_keywords)
        filtered = [o for o in filtered if wanted.intersection(o.matched_keywords)]

    # sorted() is stable, including with reverse=True
    return sorted(filtered, key=lambda o: o.total_score, reverse=True)


def filter_options(
    opportunities: Iterable[Opportunity],
    keyword_limit: int = 20,
) -> FilterOptions:
    """Distinct sources and keywords, in first-seen order."""
    sources: dict[str, None] = {}
    keywords: dict[str, None] = {}
    for opp in opportunities:
        sources.setdefault(opp.source, None)
        for kw in opp.matched_keywords:
            keywords.setdefault(kw, None)

    return FilterOptions(
        sources=list(sources),
        keywords=list(keywords)[:keyword_limit],
    )


def date_cutoff(date_range: DateRange, now: Optional[datetime] = None) -> datetime:
    """Earliest created_at kept by a date range filter."""
    now = now_local(now)
    if date_range == DateRange.TODAY:
        return local_midnight(now)
    if date_range == DateRange.LAST_7_DAYS:
        return now - timedelta(days=7)
    if date_range == DateRange.LAST_30_DAYS:
        return now - timedelta(days=30)
    return datetime.min.replace(tzinfo=now.tzinfo)


def _matches_text(opp: Opportunity, query: str) -> bool:
    if query in (opp.title or "").lower():
        return True
    if query in opp.content.lower() or query in opp.author.lower():
        return True
    return any(query in kw.lower() for kw in opp.matched_keywords)


class OpportunitySearch:
    """
    Filter state for one opportunity list.

    Non-text filters apply immediately; the free-text query goes through
    a debouncer, so results follow the query only once typing pauses.
    """

    def __init__(
        self,
        opportunities: Iterable[Opportunity],
        debounce_ms: Optional[int] = None,
    ):
        self.opportunities = list(opportunities)
        self.filters = FilterSpec()
        self._query = Debouncer(
            "",
            delay_ms=settings.filter_debounce_ms if debounce_ms is None else debounce_ms,
        )

    @property
    def is_searching(self) -> bool:
        return self._query.is_settling

    @property
    def has_active_filters(self) -> bool:
        f = self.filters
        return bool(
            f.query
            or f.status != "all"
            or f.source != "all"
            or f.min_score > 0
            or f.date_range != DateRange.ALL
            or f.has_keywords
        )

    @property
    def options(self) -> FilterOptions:
        return filter_options(self.opportunities)

    def results(self, now: Optional[datetime] = None) -> list[Opportunity]:
        """Filtered list using the debounced query."""
        spec = self.filters.model_copy(update={"query": self._query.value})
        return filter_opportunities(self.opportunities, spec, now=now)

    def update_filters(self, **changes) -> FilterSpec:
        """
        Merge changes into the current filters (validated).

        Keys may be field names or their camelCase forms (`minScore`).
        Anything else raises TypeError.
        """
        fields = FilterSpec.model_fields
        camel = {to_camel(name): name for name in fields}
        named = {}
        for key, value in changes.items():
            name = key if key in fields else camel.get(key)
            if name is None:
                raise TypeError(f"Unknown filter: {key!r}")
            named[name] = value
        changes = named

        merged = {**self.filters.model_dump(), **changes}
        self.filters = FilterSpec.model_validate(merged)
        if "query" in changes:
            self._query.set(self.filters.query)
        return self.filters

    def clear_filters(self) -> None:
        self.filters = FilterSpec()
        self._query.cancel()
        self._query.value = ""

    def set_opportunities(self, opportunities: Iterable[Opportunity]) -> None:
        self.opportunities = list(opportunities)

    def flush(self) -> None:
        """Apply a pending query right away."""
        self._query.flush()

    async def settled(self) -> list[Opportunity]:
        """Wait for the query to settle, then return results."""
        await self._query.wait()
        return self.results()
