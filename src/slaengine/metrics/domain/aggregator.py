"""
Metrics Aggregator
==================

Generic grouping, percentage, rate, average, trend and ranking primitives.

Every function works on any in-memory collection of records; the record
shape is reached only through the key/value callables passed in. Nothing
here knows about tickets, which keeps the report functions free of
duplicated counting code.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Hashable, Iterable, List, Mapping, Optional, Sequence, TypeVar

from slaengine.config import RateKind, UNKNOWN_LABEL
from slaengine.sla.domain import DurationBounds

T = TypeVar("T")

KeyFn = Callable[[T], Any]
DateFn = Callable[[T], Optional[date]]


@dataclass(frozen=True)
class AggregateBucket:
    """A grouping key with its count and share of the total."""
    key: Hashable
    count: int
    percentage: float

    def to_dict(self) -> dict:
        return {"key": self.key, "count": self.count, "percentage": self.percentage}


@dataclass(frozen=True)
class TrendBucket:
    """Activity of one calendar day."""
    date: date
    created_count: int
    resolved_count: int
    extra_counts: Dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "created": self.created_count,
            "resolved": self.resolved_count,
            **self.extra_counts,
        }


def normalize_key(key: Any, unknown_label: str = UNKNOWN_LABEL) -> Hashable:
    """Enum members report by value; absent keys collapse to the sentinel."""
    if key is None or key == "":
        return unknown_label
    if isinstance(key, Enum):
        return key.value
    return key


def _as_date(value: Any) -> Optional[date]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    return value


def _record_id(record: Any) -> Any:
    if isinstance(record, Mapping):
        return record["id"]
    return getattr(record, "id")


def group_by(
    records: Iterable[T],
    key_fn: KeyFn,
    unknown_label: str = UNKNOWN_LABEL,
) -> Dict[Hashable, List[T]]:
    """Group records by key, keeping first-seen key order."""
    groups: Dict[Hashable, List[T]] = {}
    for record in records:
        groups.setdefault(normalize_key(key_fn(record), unknown_label), []).append(record)
    return groups


def distribution(
    records: Iterable[T],
    key_fn: KeyFn,
    unknown_label: str = UNKNOWN_LABEL,
) -> List[AggregateBucket]:
    """
    Count records per key with their percentage of the total.

    Buckets are ordered by count descending, then key. Records without a
    key land in the ``unknown_label`` bucket so the counts always add up to
    the total. An empty input yields an empty list.
    """
    counts = Counter(normalize_key(key_fn(record), unknown_label) for record in records)
    total = sum(counts.values())
    if total == 0:
        return []

    buckets = [
        AggregateBucket(key=key, count=count, percentage=round(count / total * 100, 2))
        for key, count in counts.items()
    ]
    buckets.sort(key=lambda b: str(b.key))
    buckets.sort(key=lambda b: b.count, reverse=True)
    return buckets


def rate(
    predicate: Callable[[T], bool],
    records: Iterable[T],
    *,
    kind: RateKind,
) -> float:
    """
    Percentage of records matching ``predicate``.

    An empty population is 100 for COMPLIANCE rates and 0 for INCIDENCE
    rates. Unrounded.
    """
    population = list(records)
    if not population:
        return 100.0 if kind == RateKind.COMPLIANCE else 0.0
    matching = sum(1 for record in population if predicate(record))
    return matching / len(population) * 100


def average(
    records: Iterable[T],
    value_fn: Callable[[T], Optional[float]],
    filter_fn: Optional[Callable[[T], bool]] = None,
    bounds: Optional[DurationBounds] = None,
) -> float:
    """
    Mean of ``value_fn`` over records passing ``filter_fn``.

    Missing values are skipped and, when ``bounds`` is given, so are samples
    outside it. Returns 0 when no sample is left.
    """
    samples = []
    for record in records:
        if filter_fn is not None and not filter_fn(record):
            continue
        value = value_fn(record)
        if value is None:
            continue
        if bounds is not None and not bounds.contains(value):
            continue
        samples.append(value)
    return sum(samples) / len(samples) if samples else 0.0


def trend(
    records: Iterable[T],
    created_fn: DateFn,
    resolved_fn: DateFn,
    start_date: date,
    end_date: date,
    extra: Optional[Mapping[str, DateFn]] = None,
) -> List[TrendBucket]:
    """
    Daily created/resolved counts for every day of ``[start_date, end_date]``.

    Days without activity are still present with zero counts. ``extra`` adds
    named series (e.g. escalations) counted the same way.
    """
    start_date = _as_date(start_date)
    end_date = _as_date(end_date)
    extra = extra or {}

    created: Counter = Counter()
    resolved: Counter = Counter()
    extra_counters: Dict[str, Counter] = {name: Counter() for name in extra}

    for record in records:
        created_day = _as_date(created_fn(record))
        if created_day is not None:
            created[created_day] += 1
        resolved_day = _as_date(resolved_fn(record))
        if resolved_day is not None:
            resolved[resolved_day] += 1
        for name, fn in extra.items():
            day = _as_date(fn(record))
            if day is not None:
                extra_counters[name][day] += 1

    buckets = []
    day = start_date
    while day <= end_date:
        buckets.append(TrendBucket(
            date=day,
            created_count=created[day],
            resolved_count=resolved[day],
            extra_counts={name: counter[day] for name, counter in extra_counters.items()},
        ))
        day += timedelta(days=1)
    return buckets


def top_n(
    records: Iterable[T],
    sort_key_fn: Callable[[T], Any],
    n: int,
    tie_key: Optional[Callable[[T], Any]] = None,
) -> List[T]:
    """
    The ``n`` records with the highest sort key.

    Equal sort keys are ordered by ``tie_key`` ascending (record id by
    default), so the result does not depend on input order.
    """
    ordered: Sequence[T] = sorted(records, key=tie_key or _record_id)
    ordered = sorted(ordered, key=sort_key_fn, reverse=True)
    return list(ordered[:max(n, 0)])
