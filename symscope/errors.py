"""Exception types raised by symscope."""

from __future__ import annotations


class SymscopeError(Exception):
    """Base class for all symscope failures."""


class ConfigError(SymscopeError):
    """Raised when the project configuration cannot be read."""


class NoTableError(SymscopeError):
    """Raised when a query or dump names a table that was never populated."""

    def __init__(self, table: str) -> None:
        super().__init__(f"no such table: {table}")
        self.table = table


class UnknownDBFormatError(SymscopeError):
    """Raised when a snapshot carries a format tag this version cannot read."""

    def __init__(self, tag: object) -> None:
        super().__init__(f"unknown database format: {tag!r}")
        self.tag = tag


__all__ = ["ConfigError", "NoTableError", "SymscopeError", "UnknownDBFormatError"]
