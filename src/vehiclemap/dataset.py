from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from vehiclemap.errors import ConfigurationError, DatasetAccessError

logger = logging.getLogger(__name__)


def load_rows(path: str | Path, total_rows: int | None = None, encoding: str = "utf-8") -> List[str]:
    """
    Read the data rows of a delimited file, skipping the header line.

    With ``total_rows`` set, exactly that many rows are returned; otherwise
    every row in the file is. Blank lines at the end of the file are dropped.
    Blank lines between data rows are kept so that row ``i`` is always file
    line ``i + 1``.
    """
    if total_rows is not None and total_rows < 0:
        raise ConfigurationError(f"total_rows must be >= 0, got {total_rows}")

    rows: List[str] = []
    try:
        with open(path, encoding=encoding) as handle:
            handle.readline()
            for line in handle:
                if total_rows is not None and len(rows) >= total_rows:
                    break
                rows.append(line.rstrip("\r\n"))
    except (OSError, UnicodeDecodeError) as exc:
        reason = exc.strerror if isinstance(exc, OSError) and exc.strerror else str(exc)
        raise DatasetAccessError(str(path), reason) from exc

    while rows and not rows[-1].strip():
        rows.pop()
    if total_rows is not None and len(rows) < total_rows:
        raise ConfigurationError(f"{path} holds {len(rows)} data rows, fewer than the requested {total_rows}")
    logger.debug("Loaded %d data rows from %s", len(rows), path)
    return rows
