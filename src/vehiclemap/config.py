from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from vehiclemap.data_models import CARGO, CATEGORIES, LIGHT_VEHICLE, PUBLIC_TRANSPORT
from vehiclemap.errors import ConfigurationError

# 1-based column positions of the fixed input layout.
DEFAULT_COLUMN_SCHEMA: Dict[str, int] = {
    "category": 1,
    "appraisal_value": 6,
    "amount_paid": 11,
    "door_count": 23,
}

STATISTICS = ("sum", "mean", "count")
PARSE_ERROR_POLICIES = ("skip", "abort")
EXECUTORS = ("thread", "process")


def validate_schema(schema: Dict[str, int]) -> None:
    missing = set(DEFAULT_COLUMN_SCHEMA) - set(schema)
    if missing:
        raise ConfigurationError(f"column schema is missing fields: {sorted(missing)}")
    positions = list(schema.values())
    if any(not isinstance(p, int) or p < 1 for p in positions):
        raise ConfigurationError("column positions must be integers >= 1")
    if len(set(positions)) != len(positions):
        raise ConfigurationError("column positions must be distinct")


@dataclass(frozen=True)
class PipelineConfig:
    worker_count: int = 5
    delimiter: str = ";"
    statistic: str = "sum"
    on_parse_error: str = "skip"
    executor: str = "thread"
    barrier_timeout_seconds: float | None = None
    encoding: str = "utf-8"
    column_schema: Dict[str, int] = field(default_factory=lambda: dict(DEFAULT_COLUMN_SCHEMA))
    category_map: Dict[str, str] = field(
        default_factory=lambda: {
            LIGHT_VEHICLE: LIGHT_VEHICLE,
            CARGO: CARGO,
            PUBLIC_TRANSPORT: PUBLIC_TRANSPORT,
            # Labels used by the source appraisal export.
            "Vehiculo Liviano": LIGHT_VEHICLE,
            "Carga": CARGO,
            "Transporte Publico": PUBLIC_TRANSPORT,
        }
    )

    def __post_init__(self) -> None:
        if not isinstance(self.worker_count, int) or self.worker_count <= 0:
            raise ConfigurationError(f"worker_count must be a positive integer, got {self.worker_count!r}")
        if not self.delimiter:
            raise ConfigurationError("delimiter must not be empty")
        if self.statistic not in STATISTICS:
            raise ConfigurationError(f"statistic must be one of {STATISTICS}, got {self.statistic!r}")
        if self.on_parse_error not in PARSE_ERROR_POLICIES:
            raise ConfigurationError(
                f"on_parse_error must be one of {PARSE_ERROR_POLICIES}, got {self.on_parse_error!r}"
            )
        if self.executor not in EXECUTORS:
            raise ConfigurationError(f"executor must be one of {EXECUTORS}, got {self.executor!r}")
        if self.barrier_timeout_seconds is not None and self.barrier_timeout_seconds <= 0:
            raise ConfigurationError("barrier_timeout_seconds must be positive when set")
        validate_schema(self.column_schema)
        unknown = sorted(set(self.category_map.values()) - set(CATEGORIES))
        if unknown:
            raise ConfigurationError(f"category_map targets unknown categories: {unknown}")
