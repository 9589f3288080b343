"""Path helper utilities."""

from __future__ import annotations

import fnmatch
import glob
import os
from pathlib import Path
from typing import Iterable

GLOB_CHARS = ("*", "?", "[")


def normalize_path(path: str | Path) -> str:
    """Return a forward-slashed path without a leading ``./``."""
    text = str(path).replace("\\", "/")
    while text.startswith("./"):
        text = text[2:]
    return text or "."


def files_from_path(path: str) -> list[str]:
    """Expand a root path into its recursive regular-file listing."""
    if any(char in path for char in GLOB_CHARS):
        matches = sorted(glob.glob(path, recursive=True))
        files: list[str] = []
        for match in matches:
            files.extend(files_from_path(match))
        return files
    if os.path.isfile(path):
        return [normalize_path(path)]
    if os.path.isdir(path):
        files = []
        for directory, subdirs, names in os.walk(path):
            subdirs.sort()
            for name in sorted(names):
                candidate = os.path.join(directory, name)
                if os.path.isfile(candidate):
                    files.append(normalize_path(candidate))
        return files
    return []


def is_excluded(path: str, patterns: Iterable[str]) -> bool:
    """Return True when path, or any of its components, matches an exclude pattern."""
    normalized = normalize_path(path)
    parts = [part for part in normalized.split("/") if part]
    for pattern in patterns:
        if not pattern:
            continue
        cleaned = normalize_path(pattern).rstrip("/")
        if fnmatch.fnmatch(normalized, cleaned) or fnmatch.fnmatch(normalized, f"{cleaned}/*"):
            return True
        if any(fnmatch.fnmatch(part, cleaned) for part in parts):
            return True
    return False


def mtime_of(path: str) -> int:
    """Return the whole-second modification time of path."""
    return int(os.stat(path).st_mtime)


__all__ = ["files_from_path", "is_excluded", "mtime_of", "normalize_path"]
