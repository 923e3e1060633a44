"""Conversion funnel - how far opportunities make it down the pipeline."""

from typing import Optional, Sequence

from leadscope.models import FunnelStage, FunnelSummary, Opportunity, OpportunityStatus

S = OpportunityStatus

# Stages are cumulative: a record counts in every stage it has reached,
# so "Viewed" includes everything contacted, applied or won.
STAGES: tuple[tuple[str, frozenset], ...] = (
    ("New", frozenset({S.NEW})),
    ("Viewed", frozenset({S.VIEWED, S.CONTACTED, S.APPLIED, S.WON})),
    ("Contacted", frozenset({S.CONTACTED, S.APPLIED, S.WON})),
    ("Applied", frozenset({S.APPLIED, S.WON})),
    ("Won", frozenset({S.WON})),
)


def build_funnel(opportunities: Sequence[Opportunity]) -> list[FunnelStage]:
    """
    Count, share of total and drop-off for each stage.

    Drop-off is measured against the previous stage and is 0 when the
    previous stage is empty. No records means no stages.
    """
    total = len(opportunities)
    if total == 0:
        return []

    stages: list[FunnelStage] = []
    for name, statuses in STAGES:
        count = sum(1 for o in opportunities if o.status in statuses)

        dropoff = None
        if stages:
            previous = stages[-1].count
            dropoff = (previous - count) / previous * 100 if previous > 0 else 0.0

        stages.append(FunnelStage(
            name=name,
            count=count,
            percentage=count / total * 100,
            dropoff_rate=dropoff,
        ))

    return stages


def summarize_funnel(
    opportunities: Sequence[Opportunity],
    stages: Optional[list[FunnelStage]] = None,
) -> Optional[FunnelSummary]:
    """Headline numbers under the funnel chart. None when there is no data."""
    if stages is None:
        stages = build_funnel(opportunities)
    if not stages:
        return None

    final = stages[-1]
    dropoffs = [s.dropoff_rate or 0.0 for s in stages[1:]]

    return FunnelSummary(
        total=len(opportunities),
        conversion_rate=round(final.percentage, 1),
        average_dropoff=sum(dropoffs) / len(dropoffs) if dropoffs else 0.0,
        won=final.count,
    )
