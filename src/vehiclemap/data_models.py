from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Literal, Tuple


Category = Literal["Light Vehicle", "Cargo", "Public Transport"]
Metric = Literal["appraisal_value", "amount_paid", "door_count"]
DerivedStatistic = Literal["sum", "mean", "count"]

LIGHT_VEHICLE: Category = "Light Vehicle"
CARGO: Category = "Cargo"
PUBLIC_TRANSPORT: Category = "Public Transport"

# Output column order of every result file.
CATEGORIES: Tuple[str, ...] = (LIGHT_VEHICLE, CARGO, PUBLIC_TRANSPORT)
METRICS: Tuple[str, ...] = ("appraisal_value", "amount_paid", "door_count")


@dataclass(frozen=True)
class VehicleRecord:
    category: str
    appraisal_value: float
    amount_paid: float
    door_count: int
    row_number: int = 0


@dataclass(frozen=True)
class Chunk:
    index: int
    start: int
    end: int

    @property
    def size(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.end <= self.start

    def row_number(self, offset: int) -> int:
        # Line 0 of the input file is the header.
        return self.start + offset + 1


@dataclass(frozen=True)
class CategoryTotals:
    appraisal_value: float = 0.0
    amount_paid: float = 0.0
    door_count: int = 0
    count: int = 0

    def metric(self, name: str) -> float:
        return getattr(self, name)


@dataclass(frozen=True)
class PartialResult:
    worker_index: int
    chunk: Chunk
    totals: Dict[str, CategoryTotals]
    rows_consumed: int = 0
    skipped_rows: int = 0
    skipped_row_numbers: Tuple[int, ...] = ()
    unrecognized_rows: int = 0

    @property
    def records_aggregated(self) -> int:
        return sum(t.count for t in self.totals.values())


@dataclass(frozen=True)
class MetricAggregate:
    category: str
    metric: str
    total: float
    count: int
    value: float


@dataclass(frozen=True)
class FinalAggregate:
    statistic: str
    entries: Tuple[MetricAggregate, ...]
    categories: Tuple[str, ...] = CATEGORIES
    worker_count: int = 0
    rows_consumed: int = 0
    records_aggregated: int = 0
    skipped_rows: int = 0
    unrecognized_rows: int = 0
    _index: Dict[Tuple[str, str], MetricAggregate] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        object.__setattr__(self, "_index", {(e.category, e.metric): e for e in self.entries})

    def get(self, category: str, metric: str) -> MetricAggregate:
        try:
            return self._index[(category, metric)]
        except KeyError:
            raise KeyError(f"no aggregate for {category!r}/{metric!r}") from None

    def metric_row(self, metric: str) -> Tuple[float, ...]:
        return tuple(self.get(category, metric).value for category in self.categories)
