"""Historical tracking - daily snapshots, trends and period comparisons."""

from datetime import datetime, timedelta
from typing import Iterable, Optional

from pydantic import ValidationError

from config.settings import settings
from leadscope.log import get_logger
from leadscope.memory.store import KeyValueStore
from leadscope.models import (
    DailySnapshot,
    Opportunity,
    OpportunityStatus,
    PeriodComparison,
    TrendData,
)
from leadscope.timeutil import now_local, to_local, trailing_days

logger = get_logger(__name__)

SNAPSHOT_PREFIX = "snapshot_"

# Fields calculate_trend can chart
TREND_METRICS = (
    "total_opportunities",
    "new_opportunities",
    "contacted_opportunities",
    "applied_opportunities",
    "won_opportunities",
    "average_score",
    "total_score",
)


def generate_daily_snapshots(
    opportunities: Iterable[Opportunity],
    days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> list[DailySnapshot]:
    """
    One snapshot per local calendar day for the last `days` days.

    Oldest day first, today last. Days without records still get a
    zeroed snapshot. The average score only counts positive scores.
    """
    days = settings.snapshot_days if days is None else days
    records = [(to_local(o.created_at), o) for o in opportunities]

    snapshots = []
    for start, end in trailing_days(days, now):
        day = [o for created, o in records if start <= created < end]

        scores = [o.total_score for o in day if o.total_score > 0]
        total_score = sum(scores)

        snapshots.append(DailySnapshot(
            date=start,
            total_opportunities=len(day),
            new_opportunities=_count(day, OpportunityStatus.NEW),
            contacted_opportunities=_count(day, OpportunityStatus.CONTACTED, OpportunityStatus.APPLIED),
            applied_opportunities=_count(day, OpportunityStatus.APPLIED),
            won_opportunities=_count(day, OpportunityStatus.WON),
            average_score=total_score / len(scores) if scores else 0.0,
            total_score=total_score,
        ))

    return snapshots


def calculate_trend(
    snapshots: list[DailySnapshot],
    metric: str = "total_opportunities",
    threshold: Optional[float] = None,
) -> TrendData:
    """
    Trend of one snapshot field.

    Compares the mean of the second half of the series against the
    first half (split at len // 2). More than +threshold percent is
    "up", less than -threshold is "down". A zero first-half mean gives
    a change of 0.
    """
    if metric not in TREND_METRICS:
        raise ValueError(f"Unknown trend metric: {metric}")
    threshold = settings.trend_threshold_percent if threshold is None else threshold

    if not snapshots:
        return TrendData()

    values = [float(getattr(s, metric) or 0) for s in snapshots]
    dates = [f"{s.date.strftime('%b')} {s.date.day}" for s in snapshots]
    average = sum(values) / len(values)

    midpoint = len(values) // 2
    first_avg = _mean(values[:midpoint])
    second_avg = _mean(values[midpoint:])

    change_percent = (second_avg - first_avg) / first_avg * 100 if first_avg > 0 else 0.0

    trend = "stable"
    if change_percent > threshold:
        trend = "up"
    elif change_percent < -threshold:
        trend = "down"

    return TrendData(
        dates=dates,
        values=values,
        average=average,
        trend=trend,
        change_percent=change_percent,
    )


def last_n_days_trend(
    opportunities: Iterable[Opportunity],
    days: int = 7,
    now: Optional[datetime] = None,
) -> list[int]:
    """Opportunities created per local day, oldest first."""
    created = [to_local(o.created_at) for o in opportunities]
    return [
        sum(1 for c in created if start <= c < end)
        for start, end in trailing_days(days, now)
    ]


def compare_periods(
    opportunities: Iterable[Opportunity],
    current_days: int = 30,
    previous_days: int = 30,
    now: Optional[datetime] = None,
) -> PeriodComparison:
    """
    Count records in the current period against the one before it.

    Current is [now - current_days, now], previous is the
    previous_days leading up to (not including) the current start.
    """
    now = now_local(now)
    current_start = now - timedelta(days=current_days)
    previous_start = current_start - timedelta(days=previous_days)

    current = previous = 0
    for opp in opportunities:
        created = to_local(opp.created_at)
        if current_start <= created <= now:
            current += 1
        elif previous_start <= created < current_start:
            previous += 1

    change = current - previous
    if previous > 0:
        change_percent = change / previous * 100
    else:
        change_percent = 100.0 if current > 0 else 0.0

    return PeriodComparison(
        current=current,
        previous=previous,
        change=change,
        change_percent=change_percent,
    )


def snapshot_key(day: datetime) -> str:
    return f"{SNAPSHOT_PREFIX}{to_local(day).date().isoformat()}"


def store_daily_snapshot(store: KeyValueStore, snapshot: DailySnapshot) -> str:
    """Persist a snapshot under its local date. Overwrites that day."""
    key = snapshot_key(snapshot.date)
    store.set(key, snapshot.model_dump_json(by_alias=True))
    return key


def get_stored_snapshots(
    store: KeyValueStore,
    days: Optional[int] = None,
    now: Optional[datetime] = None,
) -> list[DailySnapshot]:
    """
    Stored snapshots for the last `days` days, oldest first.

    Missing days are left out, not zero-filled. Entries that fail to
    parse are logged and skipped.
    """
    days = settings.snapshot_days if days is None else days
    snapshots = []
    for start, _ in trailing_days(days, now):
        key = snapshot_key(start)
        stored = store.get(key)
        if not stored:
            continue
        try:
            snapshots.append(DailySnapshot.model_validate_json(stored))
        except ValidationError as e:
            logger.warning("Failed to parse snapshot %s: %s", key, e)
    return snapshots


def _count(opportunities: list[Opportunity], *statuses: OpportunityStatus) -> int:
    return sum(1 for o in opportunities if o.status in statuses)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0
