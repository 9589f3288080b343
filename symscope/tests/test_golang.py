"""Tests for the line-state Go extractor."""

from __future__ import annotations

from collections import defaultdict
from pathlib import Path

import pytest

from symscope.extract.base import ScanContext
from symscope.extract.golang import GoExtractor, strip_strings

SAMPLE = Path(__file__).resolve().parent / "data" / "sample_golang.go"


def _extract_text(text: str) -> list[tuple[str, tuple[str, ...], int | None]]:
    context = ScanContext.from_text("inline.go", text)
    return [(table, name, attrs.get("line_no")) for table, name, attrs in GoExtractor().extract(context)]


@pytest.fixture(scope="module")
def sample() -> dict[str, dict[tuple[str, ...], list[int]]]:
    facts: dict[str, dict[tuple[str, ...], list[int]]] = defaultdict(lambda: defaultdict(list))
    for table, name, attrs in GoExtractor().extract(ScanContext.open(str(SAMPLE))):
        facts[table][name].append(attrs["line_no"])
    return facts


def test_recognition() -> None:
    extractor = GoExtractor()
    assert extractor.matches("pkg/server.go")
    assert not extractor.matches("pkg/server.py")
    assert not extractor.matches("go.mod")


def test_simple_function() -> None:
    records = _extract_text("func Foo() {\n  x := bar()\n}\n")
    assert records == [
        ("defs", ("Foo",), 1),
        ("assigns", ("x",), 2),
        ("calls", ("bar",), 2),
        ("end", ("}",), 3),
    ]


def test_strings_and_comments_hide_calls() -> None:
    records = _extract_text('s := "foo(bar)" // baz(qux)\n')
    assert [record for record in records if record[0] == "calls"] == []
    assert [record for record in records if record[0] == "assigns"] == [("assigns", ("s",), 1)]


def test_strip_strings_handles_escapes() -> None:
    assert strip_strings(r'a := "x\"(y)" + f()') == 'a := "" + f()'
    assert strip_strings('b := "never closed(') == 'b := ""'


def test_defs(sample) -> None:
    defs = sample["defs"]
    assert defs[("main",)] == [1]
    assert defs[("main", "Sunday")] == [14]
    assert defs[("main", "Monday")] == [15]
    assert defs[("main", "v1")] == [18]
    assert defs[("main", "v2")] == [18]
    assert defs[("main", "Weekday")] == [20]
    assert defs[("main", "Server")] == [22]
    assert defs[("main", "Server", "Name")] == [23]
    assert defs[("main", "Server", "Handler")] == [24]
    assert defs[("main", "Server", "Config", "Port")] == [26]
    assert defs[("main", "Runner", "Run")] == [31]
    assert defs[("main", "compute")] == [34]
    assert defs[("main", "Server", "Start")] == [36]
    assert defs[("main", "main")] == [46]
    assert defs[("main", "y")] == [50]


def test_block_ends(sample) -> None:
    ends = sample["end"]
    assert ends[("}",)] == [44, 52]
    assert ends[("main", "Server", "Config", "}")] == [27]
    assert ends[("main", "Server", "}")] == [28]
    assert ends[("main", "Runner", "}")] == [32]


def test_calls(sample) -> None:
    calls = sample["calls"]
    assert calls[("main", "compute")] == [18, 51]
    assert calls[("fmt", "Sprintf")] == [37]
    assert calls[("len",)] == [37]
    assert calls[("exec", "Command")] == [39]
    assert calls[("s", "listen")] == [40]
    assert calls[("srv", "Start")] == [48]
    assert calls[("main", "done")] == [49]
    assert calls[("make",)] == [50]
    assert calls[("append",)] == [51]
    names = {name[-1] for name in calls}
    assert not names & {"fake", "ignored", "comment", "d", "s"}


def test_assigns(sample) -> None:
    assigns = sample["assigns"]
    assert assigns[("main", "x")] == [37]
    assert assigns[("s", "Name")] == [38]
    assert assigns[("main", "err")] == [40]
    assert assigns[("main", "srv")] == [47]
    assert assigns[("main", "y")] == [51]
    assert ("main", "_") not in assigns
    assert ("main", "if") not in assigns


def test_imports(sample) -> None:
    imports = sample["imports"]
    assert imports[("fmt",)] == [4]
    assert imports[("net", "http")] == [5]
    assert imports[("os", "exec")] == [8]


def test_unbalanced_input_does_not_raise() -> None:
    text = "package broken\n\nfunc f() {\n\tx := \"unterminated\n\ttype T struct {\n\t/* open\n}\n"
    records = _extract_text(text)
    assert ("defs", ("broken", "f"), 3) in records


def test_receiver_without_name() -> None:
    records = _extract_text("func (*Widget) Draw() {\n}\n")
    assert records[0] == ("defs", ("Widget", "Draw"), 1)
    assert records[-1] == ("end", ("}",), 2)


def test_form_feed_does_not_split_lines() -> None:
    records = _extract_text("package p\n// section\x0c\nfunc F() {\n}\n")
    assert records == [
        ("defs", ("p",), 1),
        ("defs", ("p", "F"), 3),
        ("end", ("}",), 4),
    ]


def test_import_prefixed_identifier_strips_strings() -> None:
    records = _extract_text('func f() {\n\timporter := load("a(b)")\n}\n')
    assert [record for record in records if record[0] == "calls"] == [("calls", ("load",), 2)]
    assert ("assigns", ("importer",), 2) in records
