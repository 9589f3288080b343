"""Canonical record and metadata shapes shared by extractors, the database and exporters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from .version import __version__

DEFS = "defs"
CALLS = "calls"
ASSIGNS = "assigns"
IMPORTS = "imports"
END = "end"


def as_name(value: object) -> tuple[str, ...]:
    """Coerce a scalar or sequence name into a tuple of segments."""
    if isinstance(value, str):
        return (value,)
    if isinstance(value, Sequence):
        return tuple(str(segment) for segment in value)
    return (str(value),)


@dataclass(frozen=True, slots=True)
class Record:
    """One extracted fact."""

    table: str
    name: tuple[str, ...]
    file: str
    line_no: int | None = None
    line: str | None = None
    kind: str | None = None
    scope: tuple[str, ...] | None = None

    @property
    def qualified_name(self) -> str:
        return ".".join(self.name)

    @property
    def short_name(self) -> str:
        return self.name[-1]

    @property
    def location(self) -> str:
        if self.line_no is None:
            return self.file
        return f"{self.file}:{self.line_no}"

    def describe(self) -> str:
        text = f"{' '.join(self.name)} -- {self.location}"
        if self.line is not None:
            text += f" ({self.line.strip()})"
        return text

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {"file": self.file, "name": list(self.name)}
        if self.line_no is not None:
            payload["line_no"] = self.line_no
        if self.line is not None:
            payload["line"] = self.line
        if self.kind is not None:
            payload["kind"] = self.kind
        if self.scope:
            payload["scope"] = list(self.scope)
        return payload

    @classmethod
    def from_dict(cls, table: str, payload: Mapping[str, Any]) -> "Record":
        """Build a record from a deserialized mapping, normalizing older shapes."""
        scope = payload.get("scope")
        kind = payload.get("kind", payload.get("type"))
        line_no = payload.get("line_no")
        return cls(
            table=table,
            name=as_name(payload["name"]),
            file=str(payload["file"]),
            line_no=int(line_no) if line_no is not None else None,
            line=payload.get("line"),
            kind=str(kind) if kind is not None else None,
            scope=as_name(scope) if scope else None,
        )


def sort_key(record: Record) -> tuple[str, str, int]:
    return (record.short_name.lower(), record.file, record.line_no or 0)


@dataclass(slots=True)
class FileMeta:
    path: str
    last_updated: int
    extractor: str
    extractor_version: int

    def to_dict(self) -> dict[str, object]:
        return {
            "last_updated": self.last_updated,
            "extractor": self.extractor,
            "extractor_version": self.extractor_version,
        }

    @classmethod
    def from_dict(cls, path: str, payload: Mapping[str, Any]) -> "FileMeta":
        return cls(
            path=path,
            last_updated=int(payload.get("last_updated", 0)),
            extractor=str(payload.get("extractor", "")),
            extractor_version=int(payload.get("extractor_version", 0)),
        )


@dataclass(slots=True)
class DBMeta:
    paths: list[str] = field(default_factory=list)
    excludes: list[str] = field(default_factory=list)
    files: dict[str, FileMeta] = field(default_factory=dict)
    extractor_versions: dict[str, int] = field(default_factory=dict)
    tool_version: str = __version__

    def to_dict(self) -> dict[str, object]:
        return {
            "paths": list(self.paths),
            "excludes": list(self.excludes),
            "files": {path: meta.to_dict() for path, meta in sorted(self.files.items())},
            "extractors": dict(self.extractor_versions),
            "version": self.tool_version,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "DBMeta":
        files = payload.get("files") or {}
        return cls(
            paths=[str(path) for path in payload.get("paths") or []],
            excludes=[str(pattern) for pattern in payload.get("excludes") or []],
            files={str(path): FileMeta.from_dict(str(path), meta) for path, meta in files.items()},
            extractor_versions={str(key): int(value) for key, value in (payload.get("extractors") or {}).items()},
            tool_version=str(payload.get("version", __version__)),
        )


__all__ = [
    "ASSIGNS",
    "CALLS",
    "DBMeta",
    "DEFS",
    "END",
    "FileMeta",
    "IMPORTS",
    "Record",
    "as_name",
    "sort_key",
]
