"""Dashboard aggregation package."""

from vittas.dashboard.aggregator import (
    DashboardAggregator,
    DashboardState,
    compute_stats,
    get_date_window,
)

__all__ = [
    "DashboardAggregator",
    "DashboardState",
    "compute_stats",
    "get_date_window",
]
