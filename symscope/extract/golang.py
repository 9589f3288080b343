"""Line-oriented state-machine extractor for Go sources.

No grammar is built. The scanner walks physical lines once and keeps two
stacks: a *scope* stack of enclosing names (package, struct, interface) used
as a prefix for emitted names, and a *context* stack of parse modes that
decides which line patterns apply. The same textual shape therefore means
different things in different contexts: an identifier list is a set of fields
inside a struct body but a set of assignments inside a function body.

The goal is "good enough to index". Unterminated strings or unbalanced braces
degrade recall for the rest of the file but never raise.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from typing import Iterator

from ..records import ASSIGNS, CALLS, DEFS, END, IMPORTS
from .base import Emission, Extractor, ScanContext, emit


class Context(enum.Enum):
    COMMENT = "comment"
    IMPORT_GROUP = "import-group"
    STRUCT_BODY = "struct-body"
    INTERFACE_BODY = "interface-body"
    VALUE_GROUP = "value-group"
    FUNCTION_BODY = "function-body"


@dataclass(slots=True)
class Frame:
    context: Context
    # True when entering this frame also pushed a scope segment.
    scoped: bool = False


@dataclass(slots=True)
class _ScanState:
    scope: list[str] = field(default_factory=list)
    frames: list[Frame] = field(default_factory=list)

    @property
    def context(self) -> Context | None:
        return self.frames[-1].context if self.frames else None

    def push(self, context: Context, scope_name: str | None = None) -> None:
        if scope_name is not None:
            self.scope.append(scope_name)
        self.frames.append(Frame(context, scoped=scope_name is not None))

    def pop(self) -> None:
        if not self.frames:
            return
        frame = self.frames.pop()
        if frame.scoped and self.scope:
            self.scope.pop()

    def scoped(self, *names: str) -> list[str]:
        return [*self.scope, *names]


FUNC_CALL = re.compile(r"([\w.]*?\w)\(")
END_OF_BLOCK = re.compile(r"^\s*\}\s*$")
END_OF_GROUP = re.compile(r"^\s*\)\s*$")
END_OF_FUNC = re.compile(r"^\}")

FUNC_DECL = re.compile(r"^func\s+(\w+)\s*[\[(]")
METHOD_DECL = re.compile(r"^func\s+\(\s*(?:\w+\s+)?\*?\s*(\w+)(?:\[[^\]]*\])?\s*\)\s*(\w+)\s*[\[(]")
PACKAGE_DECL = re.compile(r"^package\s+(\w+)")
STRUCT_DECL = re.compile(r"^type\s+(\w+)(?:\[[^\]]*\])?\s+struct\s*\{")
INTERFACE_DECL = re.compile(r"^type\s+(\w+)(?:\[[^\]]*\])?\s+interface\s*\{")
TYPE_DECL = re.compile(r"^type\s+(\w+)")
IMPORT_LINE = re.compile(r'^import\s+(?:[\w.]+\s+)?"(.+?)"')
IMPORT_GROUP = re.compile(r"^import\s*\(")
IMPORT_KEYWORD = re.compile(r"^\s*import\b")
VALUE_GROUP = re.compile(r"^\s*(?:var|const)\s*\(")
VALUE_DECL = re.compile(r"^\s*(?:var|const)\s+(\w.*)$")
ASSIGNMENT = re.compile(r"^\s*(?P<lhs>[\w.,\s]*?[\w.])\s*(?::=|<<=|>>=|&\^=|[-+*/%&|^]=|=)(?!=)")

NESTED_STRUCT = re.compile(r"^\s*(\w+)\s+struct\s*\{\s*$")
STRUCT_FIELD = re.compile(r"(.+)\s+\w+")
INTERFACE_METHOD = re.compile(r"^\s*(\w+)\s*\(")
GROUP_VALUE = re.compile(r"(.+?)\s*=.*")
QUOTED = re.compile(r'"(.+?)"')
STARTS_WITH_IDENT = re.compile(r"^\s*[^\W\d]")

BUILTIN_FUNCS = frozenset(
    {
        "new", "make", "len", "cap", "append", "close", "copy", "delete",
        "panic", "recover", "print", "println",
        "int", "int8", "int16", "int32", "int64",
        "uint", "uint8", "uint16", "uint32", "uint64",
        "float32", "float64", "string", "byte", "rune",
    }
)
CONTROL_KEYS = frozenset({"if", "for", "switch", "case", "select", "else", "var", "const"})
DISCARD = "_"


def find_end_of_string(line: str, start: int) -> int:
    """Return the index of the quote closing the string opened at start, or len(line)."""
    escape = False
    for index in range(start + 1, len(line)):
        char = line[index]
        if escape:
            escape = False
        elif char == "\\":
            escape = True
        elif char == '"':
            return index
    return len(line)


def strip_strings(line: str) -> str:
    """Blank the contents of double-quoted strings; an unterminated one swallows the line."""
    pieces: list[str] = []
    pos = 0
    while True:
        start = line.find('"', pos)
        if start < 0:
            pieces.append(line[pos:])
            return "".join(pieces)
        end = find_end_of_string(line, start)
        pieces.append(line[pos:start] + '""')
        pos = end + 1


def strip_line_comment(line: str) -> str:
    index = line.find("//")
    return line[:index] if index >= 0 else line


def strip_block_comments(line: str) -> tuple[str, bool]:
    """Drop closed ``/* */`` spans; return the truncated line and whether a comment stays open."""
    line = re.sub(r"/\*.*?\*/", " ", line)
    index = line.find("/*")
    if index >= 0:
        return line[:index], True
    return line, False


class GoExtractor(Extractor):
    """Extract defs, calls, assigns, imports and block ends from Go files."""

    name = "go"
    version = 1

    def matches(self, path: str) -> bool:
        return path.endswith(".go")

    def extract(self, context: ScanContext) -> Iterator[Emission]:
        state = _ScanState()
        for line_no, raw in enumerate(context.lines, start=1):
            yield from self._scan_line(raw, line_no, state)

    def _scan_line(self, line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        if state.context is Context.COMMENT:
            closer = line.find("*/")
            if closer < 0:
                return
            line = line[closer + 2 :]
            state.pop()

        line = strip_line_comment(line)
        line, comment_opened = strip_block_comments(line)

        if state.context is not Context.IMPORT_GROUP and not IMPORT_KEYWORD.match(line):
            line = strip_strings(line)

        yield from self._dispatch(line, line_no, state)

        # the usable part of "foo /* bar" was parsed above; what follows is comment
        if comment_opened:
            state.push(Context.COMMENT)

    def _dispatch(self, line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        handler = self._context_handlers.get(state.context)
        if handler is None:
            return self._default_line(line, line_no, state)
        return handler(self, line, line_no, state)

    def _interface_line(self, line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        if END_OF_BLOCK.match(line):
            yield from self._end_block(line_no, state)
            return
        match = INTERFACE_METHOD.match(line)
        if match:
            yield emit(DEFS, state.scoped(match.group(1)), line_no=line_no, kind="func")

    def _value_group_line(self, line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        if END_OF_GROUP.match(line):
            state.pop()
            return
        match = GROUP_VALUE.match(line)
        if match:
            yield from self._parse_defs(match.group(1), line_no, state)
            yield from self._parse_calls(line, line_no, state)
        else:
            yield from self._parse_defs(line, line_no, state)

    def _import_group_line(self, line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        if END_OF_GROUP.match(line):
            state.pop()
            return
        match = QUOTED.search(line)
        if match:
            yield emit(IMPORTS, match.group(1).split("/"), line_no=line_no)

    def _function_line(self, line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        if END_OF_FUNC.match(line):
            yield emit(END, ["}"], line_no=line_no, kind="func")
            state.pop()
            return
        # anything nested in a function body goes through the top-level matcher
        yield from self._default_line(line, line_no, state)

    def _default_line(self, line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        for pattern, rule in self._default_rules:
            match = pattern.match(line)
            if match:
                yield from rule(self, match, line, line_no, state)
                return
        yield from self._parse_calls(line, line_no, state)

    def _on_func(self, match: re.Match[str], line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        yield emit(DEFS, state.scoped(match.group(1)), line_no=line_no, kind="func")
        yield from self._enter_function(line, line_no, state)

    def _on_method(self, match: re.Match[str], line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        # the receiver type is the defining scope
        yield emit(DEFS, state.scoped(match.group(1), match.group(2)), line_no=line_no, kind="func")
        yield from self._enter_function(line, line_no, state)

    def _on_package(self, match: re.Match[str], line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        state.scope.append(match.group(1))
        yield emit(DEFS, state.scope, line_no=line_no, kind="package")

    def _on_struct(self, match: re.Match[str], line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        return self._enter_type(match.group(1), Context.STRUCT_BODY, line, line_no, state)

    def _on_interface(self, match: re.Match[str], line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        return self._enter_type(match.group(1), Context.INTERFACE_BODY, line, line_no, state)

    def _on_type(self, match: re.Match[str], line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        yield emit(DEFS, state.scoped(match.group(1)), line_no=line_no, kind="type")

    def _on_import(self, match: re.Match[str], line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        yield emit(IMPORTS, match.group(1).split("/"), line_no=line_no)

    def _on_import_group(self, match: re.Match[str], line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        state.push(Context.IMPORT_GROUP)
        return iter(())

    def _on_value_group(self, match: re.Match[str], line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        state.push(Context.VALUE_GROUP)
        return iter(())

    def _on_value(self, match: re.Match[str], line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        yield from self._parse_defs(match.group(1), line_no, state)
        yield from self._parse_calls(line, line_no, state)

    def _on_assignment(self, match: re.Match[str], line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        yield from self._parse_assigns(match.group("lhs"), line_no, state)
        yield from self._parse_calls(line, line_no, state)

    def _enter_function(self, line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        brace = line.find("{")
        if brace < 0:
            # declaration without a body
            return
        body = line[brace + 1 :]
        if line.count("{") > line.count("}"):
            state.push(Context.FUNCTION_BODY)
        yield from self._parse_calls(body, line_no, state)

    def _enter_type(
        self, name: str, context: Context, line: str, line_no: int, state: _ScanState
    ) -> Iterator[Emission]:
        if line.count("{") > line.count("}"):
            state.push(context, scope_name=name)
            yield emit(DEFS, state.scope, line_no=line_no, kind="class")
        else:
            yield emit(DEFS, state.scoped(name), line_no=line_no, kind="class")

    def _struct_line(self, line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        if END_OF_BLOCK.match(line):
            yield from self._end_block(line_no, state)
        elif match := NESTED_STRUCT.match(line):
            state.push(Context.STRUCT_BODY, scope_name=match.group(1))
            yield emit(DEFS, state.scope, line_no=line_no, kind="class")
        elif match := STRUCT_FIELD.match(line):
            yield from self._parse_defs(match.group(1), line_no, state)

    def _end_block(self, line_no: int, state: _ScanState) -> Iterator[Emission]:
        yield emit(END, state.scoped("}"), line_no=line_no, kind="class")
        state.pop()

    def _parse_defs(self, text: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        # anything not starting with an identifier is probably a multi-line literal
        if not STARTS_WITH_IDENT.match(text):
            return
        for token in text.split():
            name = token.rstrip(",")
            if name and name != DISCARD:
                yield emit(DEFS, state.scoped(name), line_no=line_no)
            if not token.endswith(","):
                break

    def _parse_assigns(self, lhs: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        for token in lhs.split():
            if token in CONTROL_KEYS:
                continue
            name = [chunk for chunk in token.replace(",", "").split(".") if chunk]
            if not name or name[0] == DISCARD:
                continue
            if len(name) == 1:
                yield emit(ASSIGNS, state.scoped(name[0]), line_no=line_no)
            else:
                yield emit(ASSIGNS, name, line_no=line_no)

    def _parse_calls(self, line: str, line_no: int, state: _ScanState) -> Iterator[Emission]:
        for match in FUNC_CALL.finditer(line):
            name = [chunk for chunk in match.group(1).split(".") if chunk]
            if len(name) == 1:
                if name[0] == "func":
                    continue
                if name[0] in BUILTIN_FUNCS:
                    yield emit(CALLS, name, line_no=line_no)
                else:
                    yield emit(CALLS, state.scoped(name[0]), line_no=line_no)
            elif name:
                yield emit(CALLS, name, line_no=line_no)

    _context_handlers = {
        Context.STRUCT_BODY: _struct_line,
        Context.INTERFACE_BODY: _interface_line,
        Context.VALUE_GROUP: _value_group_line,
        Context.IMPORT_GROUP: _import_group_line,
        Context.FUNCTION_BODY: _function_line,
    }

    # priority order
    _default_rules = (
        (FUNC_DECL, _on_func),
        (METHOD_DECL, _on_method),
        (PACKAGE_DECL, _on_package),
        (STRUCT_DECL, _on_struct),
        (INTERFACE_DECL, _on_interface),
        (TYPE_DECL, _on_type),
        (IMPORT_LINE, _on_import),
        (IMPORT_GROUP, _on_import_group),
        (VALUE_GROUP, _on_value_group),
        (VALUE_DECL, _on_value),
        (ASSIGNMENT, _on_assignment),
    )


__all__ = ["Context", "GoExtractor", "find_end_of_string", "strip_strings"]
