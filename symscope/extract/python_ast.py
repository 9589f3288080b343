"""Python extractor built on the standard library ``ast`` parser."""

from __future__ import annotations

import ast
from dataclasses import dataclass
from typing import Iterator

from ..logging import get_logger
from ..records import ASSIGNS, CALLS, DEFS, END, IMPORTS
from .base import Emission, Extractor, ScanContext, emit

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class ParseResult:
    """Either a parsed module or the reason it could not be parsed."""

    tree: ast.Module | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.tree is not None


def parse_source(context: ScanContext) -> ParseResult:
    try:
        tree = ast.parse(context.text, filename=context.path)
    except (SyntaxError, ValueError, RecursionError, MemoryError) as exc:
        return ParseResult(error=str(exc))
    return ParseResult(tree=tree)


def dotted_name(node: ast.AST) -> list[str] | None:
    """Return ``a.b.c`` attribute chains as segments, None for anything else."""
    parts: list[str] = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if isinstance(node, ast.Name):
        parts.append(node.id)
        return list(reversed(parts))
    return None


class _Walker:
    """Pre-order walk over an explicit stack; depth is not bounded by the recursion limit."""

    def __init__(self) -> None:
        self.scope: list[str] = []

    def walk(self, tree: ast.AST) -> Iterator[Emission]:
        # (node, leaving): leaving entries close a class scope after its body
        stack: list[tuple[ast.AST, bool]] = [(tree, False)]
        while stack:
            node, leaving = stack.pop()
            if leaving:
                line_no = getattr(node, "end_lineno", None) or node.lineno
                yield emit(END, [*self.scope, "end"], line_no=line_no, kind="class")
                self.scope.pop()
                continue
            yield from self._visit(node)
            if isinstance(node, ast.ClassDef):
                self.scope.append(node.name)
                stack.append((node, True))
            children = list(ast.iter_child_nodes(node))
            stack.extend((child, False) for child in reversed(children))

    def _visit(self, node: ast.AST) -> Iterator[Emission]:
        if isinstance(node, ast.ClassDef):
            yield emit(DEFS, [*self.scope, node.name], line_no=node.lineno, kind="class")
        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            yield emit(DEFS, [*self.scope, node.name], line_no=node.lineno, kind="func")
        elif isinstance(node, ast.Import):
            for alias in node.names:
                yield emit(IMPORTS, alias.name.split("."), line_no=node.lineno)
        elif isinstance(node, ast.ImportFrom):
            module = ("." * node.level) + (node.module or "")
            for alias in node.names:
                name = [segment for segment in module.split(".") if segment]
                yield emit(IMPORTS, [*name, alias.name], line_no=node.lineno)
        elif isinstance(node, ast.Call):
            name = dotted_name(node.func)
            if name:
                yield emit(CALLS, self._scoped(name), line_no=node.lineno)
        elif isinstance(node, ast.Assign):
            for target in node.targets:
                yield from self._assign_target(target, node.lineno)
        elif isinstance(node, (ast.AugAssign, ast.AnnAssign)):
            yield from self._assign_target(node.target, node.lineno)

    def _assign_target(self, target: ast.AST, line_no: int) -> Iterator[Emission]:
        if isinstance(target, (ast.Tuple, ast.List)):
            for element in target.elts:
                yield from self._assign_target(element, line_no)
            return
        name = dotted_name(target)
        if name and name[0] != "_":
            yield emit(ASSIGNS, self._scoped(name), line_no=line_no)

    def _scoped(self, name: list[str]) -> list[str]:
        if len(name) == 1:
            return [*self.scope, name[0]]
        return name


class PythonExtractor(Extractor):
    """Extract facts from Python modules via a thin ``ast`` walk."""

    name = "python"
    version = 1

    def matches(self, path: str) -> bool:
        return path.endswith((".py", ".pyi"))

    def extract(self, context: ScanContext) -> Iterator[Emission]:
        result = parse_source(context)
        if not result.ok:
            LOGGER.debug("Skipping %s: %s", context.path, result.error)
            return
        yield from _Walker().walk(result.tree)


__all__ = ["ParseResult", "PythonExtractor", "dotted_name", "parse_source"]
