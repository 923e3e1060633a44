"""Pipeline analytics derived from the opportunity stream."""

from .funnel import build_funnel, summarize_funnel
from .history import (
    calculate_trend,
    compare_periods,
    generate_daily_snapshots,
    get_stored_snapshots,
    last_n_days_trend,
    store_daily_snapshot,
)
from .performance import keyword_search_performance, source_performance

__all__ = [
    "build_funnel",
    "summarize_funnel",
    "calculate_trend",
    "compare_periods",
    "generate_daily_snapshots",
    "get_stored_snapshots",
    "last_n_days_trend",
    "store_daily_snapshot",
    "keyword_search_performance",
    "source_performance",
]
