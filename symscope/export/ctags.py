"""Export definitions in the extended ctags format."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Iterable

from ..records import DEFS, Record
from ..version import __version__

if TYPE_CHECKING:
    from ..database import Database

KIND_CHARS = {
    "func": "f",
    "class": "c",
    "module": "c",
    "package": "p",
    "type": "t",
}


def ctags_header() -> str:
    return (
        "!_TAG_FILE_FORMAT\t2\t//\n"
        "!_TAG_FILE_SORTED\t1\t/0=unsorted, 1=sorted, 2=foldcase/\n"
        "!_TAG_PROGRAM_NAME\tsymscope\t//\n"
        f"!_TAG_PROGRAM_VERSION\t{__version__}\t//\n"
    )


def ctags_kind(record: Record) -> str:
    return KIND_CHARS.get(record.kind or "", "v")


def ctag_line(record: Record) -> str:
    source = record.line if record.line is not None else ""
    return f'{record.short_name}\t{record.file}\t/^{source}$/;"\tkind:{ctags_kind(record)}'


def render_ctags(defs: Iterable[Record]) -> str:
    ordered = sorted(defs, key=lambda record: (record.short_name, record.file, record.line_no or 0))
    lines = [ctags_header()]
    lines.extend(f"{ctag_line(record)}\n" for record in ordered)
    return "".join(lines)


def export_ctags(database: Database, path: str | Path) -> None:
    tables = database.table_names
    defs = database.records(DEFS) if DEFS in tables else []
    Path(path).write_text(render_ctags(defs), encoding="utf-8")


__all__ = ["ctag_line", "ctags_header", "ctags_kind", "export_ctags", "render_ctags"]
