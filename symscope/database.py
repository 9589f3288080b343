"""Persistent, incrementally updated database of extracted symbol facts."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, Iterable, Iterator, Sequence

from .errors import NoTableError
from .extract.base import Extractor, ScanContext
from .extract.registry import default_extractors, select_extractor
from .logging import get_logger
from .matcher import rank
from .paths import files_from_path, is_excluded, mtime_of, normalize_path
from .records import DBMeta, FileMeta, Record, as_name, sort_key
from .snapshot import LegacySnapshot, read_snapshot, write_snapshot

LOGGER = get_logger(__name__)

ProgressCallback = Callable[[str], None]


class Database:
    """Owns the record tables and the metadata describing which files produced them.

    All records of one file are added, replaced or removed together; a file's
    batch is fully extracted before any of it is committed to the tables.
    """

    def __init__(
        self,
        extractors: Sequence[Extractor] | None = None,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.extractors: list[Extractor] = list(extractors) if extractors is not None else default_extractors()
        self.progress = progress
        self.meta = DBMeta()
        self._tables: dict[str, list[Record]] = {}

    # --- persistence -------------------------------------------------------------

    def load(self, path: str | Path) -> None:
        """Replace the in-memory state with the snapshot at path.

        Older formats carry no usable records; their root paths are recovered
        and the whole database is rebuilt from disk.
        """
        snapshot = read_snapshot(path)
        self.meta = DBMeta()
        self._tables = {}
        if isinstance(snapshot, LegacySnapshot):
            LOGGER.info("Database %s uses format %d; rebuilding from %d path(s)", path, snapshot.format, len(snapshot.paths))
            self.add_paths(snapshot.paths)
            return
        self.meta = snapshot.meta
        self._tables = snapshot.tables

    def save(self, path: str | Path) -> None:
        write_snapshot(path, self.meta, self._tables)

    # --- mutation ----------------------------------------------------------------

    def add_paths(self, paths: Iterable[str]) -> int:
        """Track new root paths and extract every file below them; return files added."""
        roots = list(dict.fromkeys(normalize_path(path) for path in paths))
        for root in roots:
            if root not in self.meta.paths:
                self.meta.paths.append(root)
        added = 0
        for file_path in self._untracked_files(roots):
            if self._add_file(file_path):
                added += 1
        return added

    def add_excludes(self, patterns: Iterable[str]) -> int:
        """Exclude patterns from future scans and purge tracked files they match; return files purged."""
        new_patterns = [pattern for pattern in dict.fromkeys(patterns) if pattern and pattern not in self.meta.excludes]
        if not new_patterns:
            return 0
        self.meta.excludes.extend(new_patterns)
        literal = {normalize_path(pattern) for pattern in new_patterns}
        self.meta.paths = [path for path in self.meta.paths if path not in literal]
        purged = 0
        for file_path in list(self.meta.files):
            if is_excluded(file_path, new_patterns):
                self._remove_file(file_path)
                purged += 1
        return purged

    def update(self) -> bool:
        """Bring the database in line with the disk; return whether anything changed."""
        changed = False
        for file_path in list(self.meta.files):
            if self._update_file(file_path):
                changed = True
        for file_path in self._untracked_files(self.meta.paths):
            if self._add_file(file_path):
                changed = True
        return changed

    # --- queries -----------------------------------------------------------------

    @property
    def table_names(self) -> list[str]:
        return sorted(self._tables)

    @property
    def files(self) -> list[str]:
        return sorted(self.meta.files)

    def records(self, table: str) -> list[Record]:
        if table not in self._tables:
            raise NoTableError(table)
        return list(self._tables[table])

    def query(self, table: str, key: str) -> list[Record]:
        if table not in self._tables:
            raise NoTableError(table)
        return rank(self._tables[table], key)

    def dump_table(self, table: str) -> list[str]:
        records = self.records(table)
        lines = [f"== Table: {table} =="]
        lines.extend(record.describe() for record in sorted(records, key=sort_key))
        return lines

    def dump_all(self) -> list[str]:
        lines: list[str] = []
        for table in self.table_names:
            lines.extend(self.dump_table(table))
        return lines

    def summary(self) -> dict[str, int]:
        return {table: len(records) for table, records in sorted(self._tables.items())}

    def records_by_line(self) -> dict[str, dict[int, list[Record]]]:
        """Group every line-numbered record by file, then by line."""
        grouped: dict[str, dict[int, list[Record]]] = {}
        for table in self.table_names:
            for record in self._tables[table]:
                if record.line_no is None:
                    continue
                grouped.setdefault(record.file, {}).setdefault(record.line_no, []).append(record)
        return grouped

    # --- internals ---------------------------------------------------------------

    def _untracked_files(self, roots: Iterable[str]) -> Iterator[str]:
        seen: set[str] = set()
        for root in roots:
            for file_path in files_from_path(root):
                if file_path in seen or file_path in self.meta.files:
                    continue
                seen.add(file_path)
                if is_excluded(file_path, self.meta.excludes):
                    continue
                if select_extractor(self.extractors, file_path) is None:
                    continue
                yield file_path

    def _add_file(self, file_path: str) -> bool:
        extractor = select_extractor(self.extractors, file_path)
        if extractor is None:
            return False
        try:
            last_updated = mtime_of(file_path)
            context = ScanContext.open(file_path)
            batch = list(self._build_records(extractor, context))
        except OSError as exc:
            LOGGER.warning("Skipping %s: %s", file_path, exc)
            return False

        self.meta.files[file_path] = FileMeta(
            path=file_path,
            last_updated=last_updated,
            extractor=extractor.name,
            extractor_version=extractor.version,
        )
        self.meta.extractor_versions[extractor.name] = extractor.version
        for record in batch:
            self._tables.setdefault(record.table, []).append(record)
        LOGGER.debug("Extracted %d record(s) from %s with %s", len(batch), file_path, extractor.name)
        if self.progress is not None:
            self.progress(file_path)
        return True

    def _build_records(self, extractor: Extractor, context: ScanContext) -> Iterator[Record]:
        for table, name, attrs in extractor.extract(context):
            if not name:
                continue
            line_no = attrs.get("line_no")
            scope = attrs.get("scope")
            yield Record(
                table=table,
                name=tuple(name),
                file=context.path,
                line_no=line_no,
                line=context.line(line_no),
                kind=attrs.get("kind"),
                scope=as_name(scope) if scope else None,
            )

    def _remove_file(self, file_path: str) -> None:
        self.meta.files.pop(file_path, None)
        for table, records in self._tables.items():
            self._tables[table] = [record for record in records if record.file != file_path]

    def _is_stale(self, file_path: str, meta: FileMeta) -> bool:
        extractor = select_extractor(self.extractors, file_path)
        if extractor is None or extractor.name != meta.extractor:
            return True
        if extractor.version > meta.extractor_version:
            return True
        return mtime_of(file_path) > meta.last_updated

    def _update_file(self, file_path: str) -> bool:
        if not os.path.isfile(file_path):
            LOGGER.debug("Removing deleted file %s", file_path)
            self._remove_file(file_path)
            if self.progress is not None:
                self.progress(file_path)
            return True
        if not self._is_stale(file_path, self.meta.files[file_path]):
            if self.progress is not None:
                self.progress(file_path)
            return False
        LOGGER.debug("Re-extracting %s", file_path)
        self._remove_file(file_path)
        self._add_file(file_path)
        return True


__all__ = ["Database", "ProgressCallback"]
