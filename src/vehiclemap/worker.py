from __future__ import annotations

import logging
import threading
from typing import Dict, List, Sequence, Tuple

import pandas as pd

from vehiclemap.config import PipelineConfig
from vehiclemap.data_models import CATEGORIES, CategoryTotals, Chunk, PartialResult, VehicleRecord
from vehiclemap.errors import ParseError, WorkerCancelled, WorkerFailure
from vehiclemap.record_parser import parse
from vehiclemap.transfer import decode_rows

logger = logging.getLogger(__name__)

_COLUMNS = ["category", "appraisal_value", "amount_paid", "door_count"]


def classify(records: Sequence[VehicleRecord], category_map: Dict[str, str]) -> Tuple[Dict[str, CategoryTotals], int]:
    """Sum each metric per known category. Returns the totals and the unrecognized record count."""
    totals = {category: CategoryTotals() for category in CATEGORIES}
    if not records:
        return totals, 0

    frame = pd.DataFrame.from_records(
        [(r.category, r.appraisal_value, r.amount_paid, r.door_count) for r in records],
        columns=_COLUMNS,
    )
    frame["bucket"] = frame["category"].map(category_map)
    known = frame.dropna(subset=["bucket"])
    unrecognized = len(frame) - len(known)
    if known.empty:
        return totals, unrecognized

    grouped = known.groupby("bucket", sort=False).agg(
        appraisal_value=("appraisal_value", "sum"),
        amount_paid=("amount_paid", "sum"),
        door_count=("door_count", "sum"),
        records=("category", "size"),
    )
    for bucket, row in grouped.to_dict("index").items():
        totals[bucket] = CategoryTotals(
            appraisal_value=float(row["appraisal_value"]),
            amount_paid=float(row["amount_paid"]),
            door_count=int(row["door_count"]),
            count=int(row["records"]),
        )
    return totals, unrecognized


def _consume(
    chunk: Chunk,
    chunk_rows: Sequence[str],
    config: PipelineConfig,
    cancel_event: threading.Event | None,
) -> PartialResult:
    records: List[VehicleRecord] = []
    skipped: List[int] = []
    row_number: int | None = None
    try:
        for offset, raw_row in enumerate(chunk_rows):
            row_number = chunk.row_number(offset)
            if cancel_event is not None and cancel_event.is_set():
                raise WorkerCancelled(chunk.index, chunk, row_number, "cancelled by coordinator")
            try:
                records.append(parse(raw_row, row_number, config.column_schema, config.delimiter))
            except ParseError as exc:
                if config.on_parse_error == "abort":
                    raise WorkerFailure(chunk.index, chunk, row_number, exc.reason) from exc
                logger.warning(
                    "Skipping malformed row %d: %s", row_number, exc.reason, extra={"worker_index": chunk.index}
                )
                skipped.append(row_number)
        totals, unrecognized = classify(records, config.category_map)
    except WorkerFailure:
        raise
    except Exception as exc:
        raise WorkerFailure(chunk.index, chunk, row_number, f"{type(exc).__name__}: {exc}") from exc

    result = PartialResult(
        worker_index=chunk.index,
        chunk=chunk,
        totals=totals,
        rows_consumed=len(chunk_rows),
        skipped_rows=len(skipped),
        skipped_row_numbers=tuple(skipped),
        unrecognized_rows=unrecognized,
    )
    logger.debug(
        "Worker %d consumed rows [%d, %d): %d aggregated, %d skipped, %d unrecognized",
        chunk.index,
        chunk.start,
        chunk.end,
        result.records_aggregated,
        result.skipped_rows,
        result.unrecognized_rows,
        extra={"worker_index": chunk.index},
    )
    return result


def run_worker(
    chunk: Chunk,
    rows: Sequence[str],
    config: PipelineConfig,
    cancel_event: threading.Event | None = None,
) -> PartialResult:
    """Map phase for one chunk of the shared, read-only data rows."""
    if chunk.end > len(rows):
        raise WorkerFailure(
            chunk.index, chunk, None, f"dataset holds {len(rows)} rows but chunk ends at {chunk.end}"
        )
    return _consume(chunk, rows[chunk.start:chunk.end], config, cancel_event)


def run_encoded_worker(chunk: Chunk, payload: bytes, config: PipelineConfig) -> PartialResult:
    """Map phase for a worker process that received only its own rows, encoded."""
    try:
        chunk_rows = decode_rows(payload)
    except ValueError as exc:
        raise WorkerFailure(chunk.index, chunk, None, f"transfer failed: {exc}") from exc
    if len(chunk_rows) != chunk.size:
        raise WorkerFailure(
            chunk.index, chunk, None, f"received {len(chunk_rows)} rows for a chunk of {chunk.size}"
        )
    return _consume(chunk, chunk_rows, config, None)
