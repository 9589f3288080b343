"""Export the database in cscope's uncompressed cross-reference format.

The file starts with ``cscope 15 <dir> -c <offset>`` where offset is the
byte position of the trailer. It is computed over the encoded output, so the
body must not be edited after the header is rendered.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Mapping, Sequence

from ..records import ASSIGNS, CALLS, DEFS, END, IMPORTS, Record

if TYPE_CHECKING:
    from ..database import Database

DEF_MARKS = {"func": "$", "class": "c", "module": "c", "type": "t"}
OFFSET_WIDTH = 10


def cscope_mark(record: Record) -> str:
    """Return the tab-prefixed mark for record, or an empty string if it has none."""
    if record.table == DEFS:
        mark = DEF_MARKS.get(record.kind or "", "g")
    elif record.table == CALLS:
        mark = "`"
    elif record.table == ASSIGNS:
        mark = "="
    elif record.table == IMPORTS:
        mark = "~<"
    elif record.table == END and record.kind == "func":
        mark = "}"
    else:
        return ""
    return "\t" + mark


def _token_offset(line: str, token: str) -> int:
    match = re.search(rf"(?<!\w){re.escape(token)}(?!\w)", line)
    return match.start() if match else -1


def render_line(line_no: int, source: str, records: Sequence[Record]) -> str:
    """Render one source line with each recognized token broken out behind its mark."""
    line = " ".join(source.split())
    tokens: dict[int, Record] = {}
    for record in records:
        if not cscope_mark(record):
            continue
        offset = _token_offset(line, record.short_name)
        if offset >= 0:
            tokens.setdefault(offset, record)
    if not tokens:
        return ""

    parts = [f"{line_no} "]
    prev = 0
    for offset in sorted(tokens):
        if offset < prev:
            continue
        record = tokens[offset]
        parts.append(line[prev:offset] + "\n")
        parts.append(cscope_mark(record) + record.short_name + "\n")
        prev = offset + len(record.short_name)
    parts.append(line[prev:] + "\n\n")
    return "".join(parts)


def render_cscope(
    by_line: Mapping[str, Mapping[int, Sequence[Record]]],
    roots: Sequence[str],
    cwd: str,
) -> bytes:
    body: list[str] = []
    files: list[str] = []
    for file_path in sorted(by_line):
        lines = by_line[file_path]
        if not lines:
            continue
        body.append(f"\t@{file_path}\n\n")
        files.append(file_path)
        for line_no in sorted(lines):
            records = lines[line_no]
            source = next((record.line for record in records if record.line is not None), None)
            if source is None:
                continue
            body.append(render_line(line_no, source, records))
    body.append("\t@\n")

    header = f"cscope 15 {cwd} -c ".encode("utf-8")
    symbols = "".join(body).encode("utf-8")
    offset = len(header) + OFFSET_WIDTH + 1 + len(symbols)
    offset_line = f"{offset:0{OFFSET_WIDTH}d}\n".encode("ascii")

    file_list = "".join(f"{file_path}\n" for file_path in files).encode("utf-8")
    trailer = "".join(
        [
            f"{len(roots)}\n",
            "".join(f"{root}\n" for root in roots),
            "0\n",
            f"{len(files)}\n",
            f"{len(file_list)}\n",
        ]
    ).encode("utf-8")
    return header + offset_line + symbols + trailer + file_list


def export_cscope(database: Database, path: str | Path) -> None:
    data = render_cscope(database.records_by_line(), database.meta.paths, os.getcwd())
    Path(path).write_bytes(data)


__all__ = ["cscope_mark", "export_cscope", "render_cscope", "render_line"]
