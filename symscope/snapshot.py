"""Versioned, gzip-compressed on-disk snapshot of the fact database.

Layout (current format ``5``), one logical record per line::

    5
    {"paths": [...], "excludes": [...], "files": {...}, "extractors": {...}, "version": "..."}
    {"defs": [{"file": ..., "name": [...], "line_no": ..., ...}], ...}

Formats 1-2 store a decimal byte length followed by a JSON list of root
paths; formats 3-4 store the root paths as a single JSON line. Neither carries
usable records, so loading them recovers only the roots.
"""

from __future__ import annotations

import gzip
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

import orjson

from .errors import UnknownDBFormatError
from .logging import get_logger
from .records import DBMeta, Record

LOGGER = get_logger(__name__)

DB_FORMAT = 5


@dataclass(slots=True)
class Snapshot:
    meta: DBMeta
    tables: dict[str, list[Record]] = field(default_factory=dict)


@dataclass(slots=True)
class LegacySnapshot:
    """An older snapshot from which only the root paths can be recovered."""

    format: int
    paths: list[str]


def _parse_tag(raw: bytes) -> int:
    text = raw.strip().decode("ascii", errors="replace")
    if not text.isdigit():
        raise UnknownDBFormatError(text)
    return int(text)


def decode_snapshot(data: bytes) -> Snapshot | LegacySnapshot:
    """Decode decompressed snapshot bytes; newer or garbled formats raise before returning."""
    tag_line, _, rest = data.partition(b"\n")
    tag = _parse_tag(tag_line)
    if tag > DB_FORMAT:
        raise UnknownDBFormatError(tag)
    if tag == DB_FORMAT:
        meta_line, _, rest = rest.partition(b"\n")
        tables_line, _, _ = rest.partition(b"\n")
        meta = DBMeta.from_dict(orjson.loads(meta_line))
        raw_tables = orjson.loads(tables_line) if tables_line.strip() else {}
        tables = {
            str(table): [Record.from_dict(str(table), entry) for entry in entries]
            for table, entries in raw_tables.items()
        }
        return Snapshot(meta=meta, tables=tables)
    if tag <= 2:
        length_line, _, rest = rest.partition(b"\n")
        length = int(length_line.strip())
        paths = orjson.loads(rest[:length])
    else:
        paths_line, _, _ = rest.partition(b"\n")
        paths = orjson.loads(paths_line)
    return LegacySnapshot(format=tag, paths=[str(path) for path in paths])


def encode_snapshot(meta: DBMeta, tables: Mapping[str, Sequence[Record]]) -> bytes:
    payload = {table: [record.to_dict() for record in records] for table, records in tables.items()}
    return b"\n".join(
        [
            str(DB_FORMAT).encode("ascii"),
            orjson.dumps(meta.to_dict()),
            orjson.dumps(payload),
            b"",
        ]
    )


def read_snapshot(path: str | Path) -> Snapshot | LegacySnapshot:
    with gzip.open(path, "rb") as handle:
        data = handle.read()
    return decode_snapshot(data)


def write_snapshot(path: str | Path, meta: DBMeta, tables: Mapping[str, Sequence[Record]]) -> None:
    """Write the snapshot next to path and atomically move it into place."""
    target = Path(path)
    compressed = gzip.compress(encode_snapshot(meta, tables))
    target.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        dir=target.parent, prefix=f".{target.name}.", suffix=".tmp", delete=False
    )
    try:
        with handle:
            handle.write(compressed)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(handle.name, target)
    except BaseException:
        LOGGER.error("Failed to write snapshot %s; previous copy left untouched", target)
        Path(handle.name).unlink(missing_ok=True)
        raise
    LOGGER.debug("Wrote snapshot %s (%d bytes)", target, len(compressed))


__all__ = [
    "DB_FORMAT",
    "LegacySnapshot",
    "Snapshot",
    "decode_snapshot",
    "encode_snapshot",
    "read_snapshot",
    "write_snapshot",
]
