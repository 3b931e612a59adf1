"""Budget aggregation engine."""

from dzbudget.engine.aggregation import (
    compute_health_score,
    compute_snapshot,
    is_in_month_of,
    ratio_percent,
)

__all__ = [
    "compute_health_score",
    "compute_snapshot",
    "is_in_month_of",
    "ratio_percent",
]
