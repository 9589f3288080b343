"""Tests for ranking records against a search key."""

from __future__ import annotations

from symscope.matcher import rank, score_match
from symscope.records import Record


def _record(*name: str) -> Record:
    return Record(table="defs", name=name, file="a.go", line_no=1)


def test_exact_beats_substring() -> None:
    exact = _record("new")
    partial = _record("Renew")
    assert score_match(exact, "new") > score_match(partial, "new")
    assert rank([partial, exact], "new") == [exact]


def test_score_order() -> None:
    key = "new"
    scores = [
        score_match(_record("new"), key),
        score_match(_record("NEW"), key),
        score_match(_record("pkg", "new"), key),
        score_match(_record("pkg", "New"), key),
        score_match(_record("Renew"), key),
    ]
    assert scores == sorted(scores, reverse=True)
    assert len(set(scores)) == len(scores)
    assert score_match(_record("old"), key) == 0


def test_tolerance_keeps_near_best() -> None:
    lower = _record("pkg", "new")
    upper = _record("pkg", "New")
    distant = _record("Renew")
    assert rank([distant, upper, lower], "new") == [lower, upper]


def test_qualified_key() -> None:
    target = _record("fmt", "Println")
    other = _record("log", "Println")
    assert rank([other, target], "fmt.Println")[0] == target


def test_no_match_and_bad_pattern() -> None:
    records = [_record("alpha"), _record("beta")]
    assert rank(records, "gamma") == []
    assert rank(records, "(") == []
    assert rank([], "alpha") == []


def test_pattern_key() -> None:
    records = [_record("Handler"), _record("handle"), _record("other")]
    assert set(rank(records, "^hand")) == {records[0], records[1]}
