"""
Metrics Module
==============

Bounded context for report metrics: distributions, rates, averages,
day-bucketed trends and deterministic rankings over ticket snapshots.
"""

from slaengine.metrics.domain import (
    AggregateBucket,
    TrendBucket,
    group_by,
    distribution,
    rate,
    average,
    trend,
    top_n,
)

__all__ = [
    "AggregateBucket",
    "TrendBucket",
    "group_by",
    "distribution",
    "rate",
    "average",
    "trend",
    "top_n",
]
