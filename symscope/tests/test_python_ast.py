"""Tests for the ast-based Python extractor."""

from __future__ import annotations

import ast
from pathlib import Path

from symscope.extract.base import ScanContext
from symscope.extract.python_ast import PythonExtractor, _Walker, parse_source

SAMPLE = Path(__file__).resolve().parent / "data" / "sample_python.py"


def _facts(context: ScanContext) -> set[tuple[str, tuple[str, ...], int | None]]:
    return {(table, name, attrs.get("line_no")) for table, name, attrs in PythonExtractor().extract(context)}


def test_recognition() -> None:
    extractor = PythonExtractor()
    assert extractor.matches("pkg/module.py")
    assert extractor.matches("pkg/module.pyi")
    assert not extractor.matches("pkg/module.go")


def test_sample_facts() -> None:
    facts = _facts(ScanContext.open(str(SAMPLE)))
    assert ("imports", ("os",), 2) in facts
    assert ("imports", ("collections", "OrderedDict"), 3) in facts
    assert ("defs", ("Store",), 6) in facts
    assert ("assigns", ("Store", "limit"), 7) in facts
    assert ("defs", ("Store", "load"), 9) in facts
    assert ("assigns", ("self", "path"), 10) in facts
    assert ("calls", ("os", "path", "join"), 11) in facts
    assert ("end", ("Store", "end"), 11) in facts
    assert ("defs", ("helper",), 14) in facts
    assert ("assigns", ("data",), 15) in facts
    assert ("calls", ("OrderedDict",), 15) in facts
    assert ("calls", ("len",), 16) in facts


def test_syntax_error_yields_nothing() -> None:
    text = "def broken(:\n    pass\n"
    context = ScanContext.from_text("broken.py", text)
    result = parse_source(context)
    assert not result.ok
    assert result.error
    assert _facts(context) == set()


def test_deeply_nested_expression_yields_at_most_the_assignment() -> None:
    text = "x = " + " + ".join(["1"] * 3000) + "\n"
    facts = _facts(ScanContext.from_text("deep.py", text))
    assert facts <= {("assigns", ("x",), 1)}


def test_walk_does_not_recurse() -> None:
    node: ast.expr = ast.Call(func=ast.Name(id="f", ctx=ast.Load()), args=[], keywords=[], lineno=1)
    for _ in range(5000):
        node = ast.BinOp(left=node, op=ast.Add(), right=ast.Constant(value=1))
    tree = ast.Module(body=[ast.Expr(value=node)], type_ignores=[])
    assert list(_Walker().walk(tree)) == [("calls", ("f",), {"line_no": 1})]


def test_form_feed_keeps_physical_line_numbers() -> None:
    context = ScanContext.from_text("ff.py", "import os\n\x0c\ndef f():\n    pass\n")
    assert context.line(3) == "def f():"
    assert ("defs", ("f",), 3) in _facts(context)
