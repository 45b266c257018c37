from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Sequence

import pandas as pd
from pydantic import ValidationError

from runner.logging_config import configure_logging, new_run_id
from runner.settings import PipelineSettings
from runner.writer import format_value, write_aggregates
from vehiclemap.config import EXECUTORS, PARSE_ERROR_POLICIES, STATISTICS, PipelineConfig
from vehiclemap.coordinator import Coordinator
from vehiclemap.data_models import METRICS, FinalAggregate
from vehiclemap.dataset import load_rows
from vehiclemap.errors import ParseError, PipelineError
from vehiclemap.record_parser import parse

logger = logging.getLogger(__name__)

HEAD_ROWS = 5


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vehiclemap",
        description="Aggregate appraisal, amount paid and door count per vehicle category in parallel.",
    )
    parser.add_argument("-i", "--input", required=True, help="semicolon-delimited input file with a header row")
    parser.add_argument("-c", "--count", type=int, default=None, help="number of data rows to read (default: all)")
    parser.add_argument("-w", "--workers", type=int, default=None, help="number of parallel workers")
    parser.add_argument("-d", "--verbose", action="store_true", help="debug logging and record dumps")
    parser.add_argument("-o", "--output-dir", default=None, help="directory for the three result files")
    parser.add_argument("--statistic", choices=STATISTICS, default=None)
    parser.add_argument("--executor", choices=EXECUTORS, default=None)
    parser.add_argument("--on-parse-error", choices=PARSE_ERROR_POLICIES, default=None)
    parser.add_argument("--timeout", type=float, default=None, help="barrier timeout in seconds")
    return parser


def head_records(rows: Sequence[str], config: PipelineConfig, n: int = HEAD_ROWS) -> pd.DataFrame:
    records = []
    for offset, raw_row in enumerate(rows[:n]):
        try:
            records.append(vars(parse(raw_row, offset + 1, config.column_schema, config.delimiter)))
        except ParseError as exc:
            records.append({"row_number": offset + 1, "error": exc.reason})
    return pd.DataFrame(records)


def report_table(final: FinalAggregate) -> pd.DataFrame:
    return pd.DataFrame(
        {metric: [format_value(v) for v in final.metric_row(metric)] for metric in METRICS},
        index=list(final.categories),
    )


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = PipelineSettings()
    except ValidationError as exc:
        print(f"error: invalid settings: {exc}", file=sys.stderr)
        return 1

    configure_logging("DEBUG" if args.verbose else settings.log_level, settings.log_format)
    rid = new_run_id()

    try:
        config = settings.to_pipeline_config(
            worker_count=args.workers,
            statistic=args.statistic,
            executor=args.executor,
            on_parse_error=args.on_parse_error,
            barrier_timeout_seconds=args.timeout,
        )
        rows = load_rows(args.input, args.count, encoding=config.encoding)
        if args.verbose:
            print(head_records(rows, config).to_string(index=False))
        final = asyncio.run(Coordinator(config).run_rows(rows))
        write_aggregates(final, settings.output_paths(args.output_dir))
    except PipelineError as exc:
        logger.error("Run %s failed: %s", rid, exc)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        logger.error("Run %s could not write results: %s", rid, exc)
        print(f"error: cannot write results: {exc}", file=sys.stderr)
        return 1

    if args.verbose:
        print(report_table(final).to_string())
    print(
        f"{final.rows_consumed} rows processed by {final.worker_count} workers: "
        f"{final.records_aggregated} aggregated, {final.skipped_rows} skipped, "
        f"{final.unrecognized_rows} unrecognized ({final.statistic})"
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
