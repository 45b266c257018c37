from __future__ import annotations

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from typing import Any

run_id: ContextVar[str] = ContextVar("run_id", default="")

TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] run=%(run_id)s worker=%(worker)s %(message)s"


def new_run_id() -> str:
    rid = uuid.uuid4().hex[:12]
    run_id.set(rid)
    return rid


class RunContextFilter(logging.Filter):
    """Stamps every record with the current run id and the emitting worker, if any."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = run_id.get("")
        worker = getattr(record, "worker_index", None)
        record.worker = "-" if worker is None else worker
        return True


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "run_id": getattr(record, "run_id", ""),
        }
        worker = getattr(record, "worker_index", None)
        if worker is not None:
            entry["worker"] = worker
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = self.formatException(record.exc_info)
        if hasattr(record, "extra_data"):
            entry["data"] = record.extra_data
        return json.dumps(entry, default=str)


def configure_logging(level: str = "INFO", fmt: str = "json") -> None:
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for h in root.handlers[:]:
        root.removeHandler(h)

    # stderr keeps stdout free for the run report
    handler = logging.StreamHandler(sys.stderr)
    handler.addFilter(RunContextFilter())
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))
    root.addHandler(handler)
