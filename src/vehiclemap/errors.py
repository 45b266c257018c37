from __future__ import annotations

from typing import Any


class PipelineError(Exception):
    """Base class for every failure raised by the map/reduce pipeline."""


class ConfigurationError(PipelineError, ValueError):
    pass


InvalidConfiguration = ConfigurationError


class DatasetAccessError(PipelineError):
    def __init__(self, path: str, reason: str) -> None:
        super().__init__(path, reason)
        self.path = path
        self.reason = reason

    def __str__(self) -> str:
        return f"cannot read dataset {self.path}: {self.reason}"


class ParseError(PipelineError, ValueError):
    def __init__(self, row_number: int, reason: str) -> None:
        super().__init__(row_number, reason)
        self.row_number = row_number
        self.reason = reason

    def __str__(self) -> str:
        return f"row {self.row_number}: {self.reason}"


class TransferError(PipelineError, ValueError):
    pass


class WorkerFailure(PipelineError, RuntimeError):
    """A worker could not finish its chunk. Fatal to the whole run."""

    def __init__(
        self,
        worker_index: int,
        chunk: Any = None,
        row_number: int | None = None,
        reason: str = "",
    ) -> None:
        super().__init__(worker_index, chunk, row_number, reason)
        self.worker_index = worker_index
        self.chunk = chunk
        self.row_number = row_number
        self.reason = reason

    def __str__(self) -> str:
        parts = [f"worker {self.worker_index} failed"]
        if self.chunk is not None:
            parts.append(f"on rows [{self.chunk.start}, {self.chunk.end})")
        if self.row_number is not None:
            parts.append(f"at row {self.row_number}")
        message = " ".join(parts)
        return f"{message}: {self.reason}" if self.reason else message


class WorkerTimeout(WorkerFailure):
    pass


class WorkerCancelled(WorkerFailure):
    pass
