from __future__ import annotations

from typing import List, Sequence, Tuple

from vehiclemap.data_models import CATEGORIES, METRICS, FinalAggregate, MetricAggregate, PartialResult
from vehiclemap.errors import ConfigurationError


def derive(statistic: str, total: float, count: int) -> float:
    if statistic == "sum":
        return total
    if statistic == "mean":
        return total / count if count else 0.0
    if statistic == "count":
        return count
    raise ConfigurationError(f"unknown statistic {statistic!r}")


def merge(
    results: Sequence[PartialResult],
    statistic: str = "sum",
    categories: Tuple[str, ...] = CATEGORIES,
) -> FinalAggregate:
    """
    Reduce phase: combine every worker's partial totals into one aggregate
    per (category, metric).

    Partials are summed in ascending worker index regardless of the order they
    arrive in, so the floating point totals are reproducible across runs.
    """
    ordered = sorted(results, key=lambda r: r.worker_index)
    indices = [r.worker_index for r in ordered]
    if len(set(indices)) != len(indices):
        raise ConfigurationError(f"duplicate worker indices in partial results: {indices}")

    entries: List[MetricAggregate] = []
    for category in categories:
        count = sum(r.totals[category].count for r in ordered if category in r.totals)
        for metric in METRICS:
            total = 0 if metric == "door_count" else 0.0
            for result in ordered:
                if category in result.totals:
                    total += result.totals[category].metric(metric)
            entries.append(
                MetricAggregate(
                    category=category,
                    metric=metric,
                    total=total,
                    count=count,
                    value=derive(statistic, total, count),
                )
            )

    return FinalAggregate(
        statistic=statistic,
        entries=tuple(entries),
        categories=tuple(categories),
        worker_count=len(ordered),
        rows_consumed=sum(r.rows_consumed for r in ordered),
        records_aggregated=sum(r.records_aggregated for r in ordered),
        skipped_rows=sum(r.skipped_rows for r in ordered),
        unrecognized_rows=sum(r.unrecognized_rows for r in ordered),
    )
