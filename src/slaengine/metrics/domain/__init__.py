"""
Metrics Domain Layer
====================

Record-agnostic aggregation primitives.
"""

from slaengine.metrics.domain.aggregator import (
    AggregateBucket,
    TrendBucket,
    normalize_key,
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
    "normalize_key",
    "group_by",
    "distribution",
    "rate",
    "average",
    "trend",
    "top_n",
]
