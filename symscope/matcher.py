"""Fuzzy ranking of records against a search key."""

from __future__ import annotations

import re
from typing import Iterable

from .records import Record

EXACT = 10
EXACT_IGNORE_CASE = 8
SEGMENT = 6
SEGMENT_IGNORE_CASE = 5
PARTIAL = 2
NO_MATCH = 0

# records scoring within this distance of the best one are kept
TOLERANCE = 4


def compile_key(key: str) -> re.Pattern[str]:
    """Compile key as a case-insensitive pattern, falling back to a literal search."""
    try:
        return re.compile(key, re.IGNORECASE)
    except re.error:
        return re.compile(re.escape(key), re.IGNORECASE)


def score_match(record: Record, key: str, pattern: re.Pattern[str] | None = None) -> int:
    """Score how closely record's qualified name matches key; 0 means no match."""
    if pattern is None:
        pattern = compile_key(key)
    rendered = record.qualified_name
    lowered = key.lower()
    if rendered == key:
        return EXACT
    if rendered.lower() == lowered:
        return EXACT_IGNORE_CASE
    if record.short_name == key:
        return SEGMENT
    if record.short_name.lower() == lowered:
        return SEGMENT_IGNORE_CASE
    if pattern.search(rendered):
        return PARTIAL
    return NO_MATCH


def rank(records: Iterable[Record], key: str) -> list[Record]:
    """Return matching records, best first, trimmed to those near the best score."""
    pattern = compile_key(key)
    scored = [(score_match(record, key, pattern), record) for record in records]
    scored = [(score, record) for score, record in scored if score > NO_MATCH]
    if not scored:
        return []
    scored.sort(key=lambda entry: entry[0], reverse=True)
    best = scored[0][0]
    return [record for score, record in scored if best - score < TOLERANCE]


__all__ = ["TOLERANCE", "compile_key", "rank", "score_match"]
