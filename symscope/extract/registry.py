"""Ordered extractor registry."""

from __future__ import annotations

from typing import Iterable, Sequence

from .base import Extractor
from .golang import GoExtractor
from .python_ast import PythonExtractor


def default_extractors(skip: Iterable[str] = ()) -> list[Extractor]:
    """Return the built-in extractors in dispatch order, minus any ids in skip."""
    skipped = set(skip)
    extractors: list[Extractor] = [GoExtractor(), PythonExtractor()]
    return [extractor for extractor in extractors if extractor.name not in skipped]


def select_extractor(extractors: Sequence[Extractor], path: str) -> Extractor | None:
    """First match wins."""
    for extractor in extractors:
        if extractor.matches(path):
            return extractor
    return None


__all__ = ["default_extractors", "select_extractor"]
