"""Extraction interfaces for language plugins."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator, NamedTuple, Sequence


class Emission(NamedTuple):
    """A single fact produced by an extractor before it becomes a Record."""

    table: str
    name: tuple[str, ...]
    attrs: dict[str, Any]


def split_lines(text: str) -> list[str]:
    """Split text into physical lines.

    Only ``\\n``, ``\\r\\n`` and ``\\r`` end a line; form feeds and the other
    separators ``str.splitlines`` honours stay inside it.
    """
    lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


@dataclass(slots=True)
class ScanContext:
    """Owns the line buffer of the file currently being extracted."""

    path: str
    text: str
    lines: list[str] = field(default_factory=list)

    @classmethod
    def from_text(cls, path: str, text: str) -> "ScanContext":
        return cls(path=path, text=text, lines=split_lines(text))

    @classmethod
    def open(cls, path: str) -> "ScanContext":
        """Read path once; I/O errors propagate to the caller."""
        return cls.from_text(path, Path(path).read_text(encoding="utf-8", errors="replace"))

    def line(self, line_no: int | None) -> str | None:
        if line_no is None or line_no < 1 or line_no > len(self.lines):
            return None
        return self.lines[line_no - 1]


class Extractor(ABC):
    """Interface for language-specific extractors."""

    name: str = ""
    version: int = 1

    @abstractmethod
    def matches(self, path: str) -> bool:
        """Return True when this extractor handles path; must not touch the disk."""

    @abstractmethod
    def extract(self, context: ScanContext) -> Iterator[Emission]:
        """Yield facts for the file held by context in a single forward pass."""


def emit(table: str, name: Sequence[str], **attrs: Any) -> Emission:
    return Emission(table, tuple(name), attrs)


__all__ = ["Emission", "Extractor", "ScanContext", "emit", "split_lines"]
