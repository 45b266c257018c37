from __future__ import annotations

from typing import List

from vehiclemap.data_models import Chunk
from vehiclemap.errors import ConfigurationError


def partition(total_rows: int, worker_count: int) -> List[Chunk]:
    """
    Splits ``[0, total_rows)`` into ``worker_count`` contiguous chunks.

    Worker ``i`` always receives chunk ``i``. The remainder of the integer
    division goes to the trailing chunks, one row each, so chunk sizes never
    differ by more than one. Chunks may be empty when there are fewer rows
    than workers.
    """
    if worker_count <= 0:
        raise ConfigurationError(f"worker_count must be > 0, got {worker_count}")
    if total_rows < 0:
        raise ConfigurationError(f"total_rows must be >= 0, got {total_rows}")

    base, remainder = divmod(total_rows, worker_count)
    first_long = worker_count - remainder
    chunks: List[Chunk] = []
    start = 0
    for index in range(worker_count):
        size = base + 1 if index >= first_long else base
        chunks.append(Chunk(index=index, start=start, end=start + size))
        start += size
    return chunks
