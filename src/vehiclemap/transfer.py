from __future__ import annotations

import struct
from typing import List, Sequence

from vehiclemap.errors import TransferError

MAGIC = b"VMAP"
VERSION = 1

_HEADER = struct.Struct(">4sBI")
_LENGTH = struct.Struct(">I")


def encode_rows(rows: Sequence[str]) -> bytes:
    """Frame rows as MAGIC, version byte, row count, then length-prefixed UTF-8 rows."""
    parts = [_HEADER.pack(MAGIC, VERSION, len(rows))]
    for row in rows:
        data = row.encode("utf-8")
        parts.append(_LENGTH.pack(len(data)))
        parts.append(data)
    return b"".join(parts)


def decode_rows(payload: bytes) -> List[str]:
    if len(payload) < _HEADER.size:
        raise TransferError("payload shorter than header")
    magic, version, count = _HEADER.unpack_from(payload, 0)
    if magic != MAGIC:
        raise TransferError(f"bad magic {magic!r}")
    if version != VERSION:
        raise TransferError(f"unsupported transfer version {version}")

    rows: List[str] = []
    offset = _HEADER.size
    for i in range(count):
        if offset + _LENGTH.size > len(payload):
            raise TransferError(f"truncated length prefix for row {i}")
        (length,) = _LENGTH.unpack_from(payload, offset)
        offset += _LENGTH.size
        end = offset + length
        if end > len(payload):
            raise TransferError(f"truncated body for row {i}")
        try:
            rows.append(payload[offset:end].decode("utf-8"))
        except UnicodeDecodeError as exc:
            raise TransferError(f"row {i} is not valid UTF-8: {exc}") from exc
        offset = end
    if offset != len(payload):
        raise TransferError(f"{len(payload) - offset} trailing bytes after {count} rows")
    return rows
