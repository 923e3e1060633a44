"""Per-source and per-keyword-search performance breakdowns."""

from collections import defaultdict
from typing import Iterable, Sequence

from leadscope.models import (
    KeywordSearch,
    KeywordSearchPerformance,
    Opportunity,
    OpportunityStatus,
    SourcePerformance,
)

S = OpportunityStatus
CONTACTED = (S.CONTACTED, S.APPLIED)


def source_performance(
    opportunities: Iterable[Opportunity],
    limit: int = 10,
) -> list[SourcePerformance]:
    """
    Totals and rates for each source, busiest first.

    Conversion rate = won / total, response rate = (contacted + won) / total.
    Rates and average score are rounded to one decimal.
    """
    by_source: dict[str, list[Opportunity]] = defaultdict(list)
    for opp in opportunities:
        by_source[opp.source or "Unknown"].append(opp)

    rows = []
    for source, opps in by_source.items():
        total = len(opps)
        won = _count(opps, S.WON)
        contacted = _count(opps, *CONTACTED)
        scores = [o.total_score for o in opps]

        rows.append(SourcePerformance(
            source=source.replace("r/", ""),
            total=total,
            new=_count(opps, S.NEW),
            contacted=contacted,
            won=won,
            lost=_count(opps, S.LOST),
            avg_score=round(sum(scores) / len(scores), 1) if scores else 0.0,
            conversion_rate=round(won / total * 100, 1),
            response_rate=round((contacted + won) / total * 100, 1),
        ))

    rows.sort(key=lambda r: r.total, reverse=True)
    return rows[:limit]


def keyword_search_performance(
    searches: Iterable[KeywordSearch],
    opportunities: Sequence[Opportunity],
) -> list[KeywordSearchPerformance]:
    """How many leads each saved search produced and how they converted."""
    by_search: dict[str, list[Opportunity]] = defaultdict(list)
    for opp in opportunities:
        if opp.keyword_search_id:
            by_search[opp.keyword_search_id].append(opp)

    rows = []
    for search in searches:
        opps = by_search.get(search.id, [])
        total = len(opps)
        contacted = _count(opps, *CONTACTED)
        won = _count(opps, S.WON)

        rows.append(KeywordSearchPerformance(
            search_id=search.id,
            name=search.name or "Unnamed Search",
            total=total,
            new_count=_count(opps, S.NEW),
            contacted_count=contacted,
            won_count=won,
            response_rate=round(contacted / total * 100, 1) if total else 0.0,
            win_rate=round(won / (contacted + won) * 100, 1) if contacted + won else 0.0,
            is_active=search.enabled,
        ))

    rows.sort(key=lambda r: r.total, reverse=True)
    return rows


def _count(opportunities: list[Opportunity], *statuses: OpportunityStatus) -> int:
    return sum(1 for o in opportunities if o.status in statuses)
