from __future__ import annotations

import asyncio
import contextvars
import functools
import logging
import threading
import time
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from pathlib import Path
from typing import List, Sequence

from vehiclemap import worker as worker_unit
from vehiclemap.aggregator import merge
from vehiclemap.config import PipelineConfig
from vehiclemap.data_models import Chunk, FinalAggregate, PartialResult
from vehiclemap.dataset import load_rows
from vehiclemap.errors import WorkerCancelled, WorkerFailure, WorkerTimeout
from vehiclemap.partitioner import partition
from vehiclemap.transfer import encode_rows

logger = logging.getLogger(__name__)


class Coordinator:
    """
    Splits the dataset into chunks, runs one worker per non-empty chunk and
    waits for all of them before reducing their partial results.

    Thread workers share the loaded rows read-only. Process workers get only
    their chunk, framed with the transfer codec.
    """

    def __init__(self, config: PipelineConfig | None = None) -> None:
        self.config = config or PipelineConfig()

    async def run(self, dataset_path: str | Path, total_rows: int | None = None) -> FinalAggregate:
        rows = load_rows(dataset_path, total_rows, encoding=self.config.encoding)
        return await self.run_rows(rows)

    def run_sync(self, dataset_path: str | Path, total_rows: int | None = None) -> FinalAggregate:
        return asyncio.run(self.run(dataset_path, total_rows))

    async def run_rows(self, rows: Sequence[str]) -> FinalAggregate:
        chunks = partition(len(rows), self.config.worker_count)
        active = [chunk for chunk in chunks if not chunk.is_empty]
        logger.info(
            "Dispatching %d rows to %d of %d workers (%s executor)",
            len(rows),
            len(active),
            len(chunks),
            self.config.executor,
        )
        started = time.perf_counter()
        results = await self._dispatch(active, rows)
        final = merge(results, statistic=self.config.statistic)
        logger.info(
            "Run finished in %.3fs: %d records aggregated, %d rows skipped, %d unrecognized",
            time.perf_counter() - started,
            final.records_aggregated,
            final.skipped_rows,
            final.unrecognized_rows,
            extra={
                "extra_data": {
                    "workers": final.worker_count,
                    "rows_consumed": final.rows_consumed,
                    "statistic": final.statistic,
                }
            },
        )
        return final

    def _make_executor(self, workers: int) -> Executor:
        if self.config.executor == "process":
            return ProcessPoolExecutor(max_workers=workers)
        return ThreadPoolExecutor(max_workers=workers, thread_name_prefix="vehiclemap-worker")

    async def _run_one(
        self,
        executor: Executor,
        chunk: Chunk,
        rows: Sequence[str],
        cancel_event: threading.Event,
    ) -> PartialResult:
        loop = asyncio.get_running_loop()
        if self.config.executor == "process":
            payload = encode_rows(rows[chunk.start:chunk.end])
            call = functools.partial(worker_unit.run_encoded_worker, chunk, payload, self.config)
        else:
            # Worker threads log under the caller's run id.
            task = functools.partial(worker_unit.run_worker, chunk, rows, self.config, cancel_event)
            call = functools.partial(contextvars.copy_context().run, task)
        try:
            result = await loop.run_in_executor(executor, call)
        except WorkerFailure:
            cancel_event.set()
            raise
        except Exception as exc:
            cancel_event.set()
            raise WorkerFailure(chunk.index, chunk, None, f"{type(exc).__name__}: {exc}") from exc
        logger.debug("Worker %d returned its partial result", chunk.index, extra={"worker_index": chunk.index})
        return result

    async def _dispatch(self, chunks: List[Chunk], rows: Sequence[str]) -> List[PartialResult]:
        if not chunks:
            return []
        cancel_event = threading.Event()
        executor = self._make_executor(len(chunks))
        tasks = [asyncio.ensure_future(self._run_one(executor, chunk, rows, cancel_event)) for chunk in chunks]
        timeout = self.config.barrier_timeout_seconds
        try:
            outcomes = await asyncio.wait_for(asyncio.gather(*tasks, return_exceptions=True), timeout=timeout)
        except asyncio.TimeoutError:
            unfinished = [chunk for chunk, task in zip(chunks, tasks) if not task.done() or task.cancelled()]
            first = unfinished[0] if unfinished else chunks[0]
            raise WorkerTimeout(
                first.index,
                first,
                None,
                f"barrier timed out after {timeout}s with workers {[c.index for c in unfinished]} unfinished",
            ) from None
        finally:
            cancel_event.set()
            for task in tasks:
                task.cancel()
            executor.shutdown(wait=False, cancel_futures=True)

        failures = [
            outcome if isinstance(outcome, WorkerFailure) else WorkerFailure(chunk.index, chunk, None, repr(outcome))
            for chunk, outcome in zip(chunks, outcomes)
            if isinstance(outcome, BaseException)
        ]
        if failures:
            # Peers stopped by the first failure are reported only when nothing else failed.
            primary = [f for f in failures if not isinstance(f, WorkerCancelled)] or failures
            failure = min(primary, key=lambda f: f.worker_index)
            logger.error("Aborting run: %s", failure, extra={"worker_index": failure.worker_index})
            raise failure
        return list(outcomes)
