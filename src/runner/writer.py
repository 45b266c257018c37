from __future__ import annotations

import logging
from contextlib import ExitStack
from pathlib import Path
from typing import Dict, Iterable, List

from vehiclemap.data_models import METRICS, FinalAggregate

logger = logging.getLogger(__name__)


def format_value(value: float) -> str:
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def format_row(values: Iterable[float]) -> str:
    return "".join(f"{format_value(v)};" for v in values) + "\n"


def append_line(path: str | Path, line: str) -> None:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    with open(target, "a", encoding="utf-8") as handle:
        handle.write(line)


def write_aggregates(final: FinalAggregate, paths: Dict[str, Path]) -> None:
    """Append one row per metric file. Every file is checked for writing before any row goes out."""
    missing = [m for m in METRICS if m not in paths]
    if missing:
        raise ValueError(f"no output path for metrics {missing}")
    lines = {metric: format_row(final.metric_row(metric)) for metric in METRICS}
    targets = {metric: Path(paths[metric]) for metric in METRICS}

    created: List[Path] = []
    try:
        with ExitStack() as stack:
            for target in targets.values():
                target.parent.mkdir(parents=True, exist_ok=True)
                existed = target.exists()
                stack.enter_context(open(target, "a", encoding="utf-8"))
                if not existed:
                    created.append(target)
    except OSError:
        for target in created:
            target.unlink(missing_ok=True)
        raise

    for metric in METRICS:
        append_line(targets[metric], lines[metric])
        logger.debug("Appended %s row to %s", metric, targets[metric])
