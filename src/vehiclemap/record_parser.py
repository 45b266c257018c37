from __future__ import annotations

import math
from typing import Dict, List

from vehiclemap.config import DEFAULT_COLUMN_SCHEMA
from vehiclemap.data_models import VehicleRecord
from vehiclemap.errors import ParseError


def split_row(raw_row: str, delimiter: str = ";") -> List[str]:
    return raw_row.rstrip("\r\n").split(delimiter)


def _field(fields: List[str], schema: Dict[str, int], name: str) -> str:
    return fields[schema[name] - 1].strip()


def _parse_amount(text: str, name: str, row_number: int) -> float:
    if not text:
        raise ParseError(row_number, f"{name} is empty")
    try:
        value = float(text)
    except ValueError:
        raise ParseError(row_number, f"{name} is not a number: {text!r}") from None
    if not math.isfinite(value):
        raise ParseError(row_number, f"{name} is not finite: {text!r}")
    if value < 0:
        raise ParseError(row_number, f"{name} is negative: {text!r}")
    return value


def _parse_count(text: str, name: str, row_number: int) -> int:
    if not text:
        raise ParseError(row_number, f"{name} is empty")
    try:
        value = int(text)
    except ValueError:
        raise ParseError(row_number, f"{name} is not an integer: {text!r}") from None
    if value < 0:
        raise ParseError(row_number, f"{name} is negative: {text!r}")
    return value


def parse(
    raw_row: str,
    row_number: int = 0,
    schema: Dict[str, int] | None = None,
    delimiter: str = ";",
) -> VehicleRecord:
    """Parse one delimited row into a VehicleRecord, or raise ParseError."""
    schema = DEFAULT_COLUMN_SCHEMA if schema is None else schema
    fields = split_row(raw_row, delimiter)
    required = max(schema.values())
    if len(fields) < required:
        raise ParseError(row_number, f"expected at least {required} fields, found {len(fields)}")

    return VehicleRecord(
        category=_field(fields, schema, "category"),
        appraisal_value=_parse_amount(_field(fields, schema, "appraisal_value"), "appraisal_value", row_number),
        amount_paid=_parse_amount(_field(fields, schema, "amount_paid"), "amount_paid", row_number),
        door_count=_parse_count(_field(fields, schema, "door_count"), "door_count", row_number),
        row_number=row_number,
    )
