"""Small in-memory group-by helpers used by the stats and report services."""

from __future__ import annotations

from collections import OrderedDict
from enum import Enum
from typing import Any, Callable, Iterable, Optional, TypeVar

T = TypeVar("T")


def _key(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def group_totals(
    items: Iterable[T],
    key: Callable[[T], Any],
    amount: Optional[Callable[[T], float]] = None,
    *,
    sort_by: str = "count",
    limit: Optional[int] = None,
) -> list[dict]:
    """Group rows as [{"name", "count", "total"}], biggest first by `sort_by`.

    sort_by="name" keeps ascending name order instead.
    """
    groups: "OrderedDict[Any, dict]" = OrderedDict()
    for item in items:
        name = _key(key(item))
        bucket = groups.setdefault(name, {"name": name, "count": 0, "total": 0.0})
        bucket["count"] += 1
        if amount is not None:
            bucket["total"] += float(amount(item) or 0)

    rows = list(groups.values())
    if amount is None:
        for row in rows:
            del row["total"]
    else:
        for row in rows:
            row["total"] = round(row["total"], 2)

    if sort_by == "name":
        rows.sort(key=lambda r: (r["name"] is None, str(r["name"])))
    else:
        rows.sort(key=lambda r: r[sort_by], reverse=True)
    return rows[:limit] if limit else rows


def total(items: Iterable[T], amount: Callable[[T], float]) -> float:
    return round(sum(float(amount(i) or 0) for i in items), 2)


def bucket_counts(labels: Iterable[str], values: Iterable[Any], classify: Callable[[Any], str]) -> list[dict]:
    """Count values into a fixed, ordered set of labelled buckets."""
    counts = OrderedDict((label, 0) for label in labels)
    for value in values:
        label = classify(value)
        if label in counts:
            counts[label] += 1
    return [{"range": label, "count": count} for label, count in counts.items()]
