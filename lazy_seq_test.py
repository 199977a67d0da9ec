"""Tests for the sequence contract used by hashing: iteration, accessors and zips."""

from types import SimpleNamespace

import pytest

from lazy_seq import (
    IteratorEnded, count, each, first, foldl, iterate, last, map_sort, next_value, nth, reverse,
    second, seq_eq, skip, sliding_window, take, try_first, try_last, try_next, try_nth, try_second,
    try_skip, try_sliding_window, try_take, zip2, zip_least, zip_least2, zip_longest, zip_longest2,
    zip_strict,
)


def gen(n):
    yield from range(n)


def test_iterate():
    assert list(iterate([1, 2])) == [1, 2]
    assert list(iterate({"a": 1})) == [("a", 1)]
    assert list(iterate(SimpleNamespace(a=1))) == [("a", 1)]
    assert list(iterate("ab")) == ["a", "b"]
    assert list(iterate(gen(3))) == [0, 1, 2]
    with pytest.raises(TypeError):
        iterate(42)


def test_folds():
    seen = []
    each([1, 2, 3], seen.append)
    assert seen == [1, 2, 3]
    assert foldl([1, 2, 3], 10, lambda a, b: a - b) == 4
    assert count([1, 2, 3]) == 3
    assert count(gen(5)) == 5
    assert count({"a": 1}) == 1
    assert reverse(gen(3)) == [2, 1, 0]
    assert map_sort(["ccc", "a", "bb"], len) == ["a", "bb", "ccc"]


def test_seq_eq():
    assert seq_eq([1, [2]], (1, [2]))
    assert seq_eq(gen(3), [0, 1, 2])
    assert not seq_eq([1, 2], [1, 2, 3])
    assert not seq_eq([1, 2], [1, 3])


def test_strict_accessors():
    assert next_value([7]) == 7
    assert first(gen(3)) == 0
    assert second(gen(3)) == 1
    assert nth(gen(3), 2) == 2
    assert last(gen(3)) == 2
    assert list(skip(gen(4), 2)) == [2, 3]
    assert take(gen(5), 2) == [0, 1]

    for fn in (lambda: next_value([]), lambda: first([]), lambda: second([1]),
               lambda: nth([1], 3), lambda: last([]), lambda: skip([1], 2),
               lambda: take([1], 2)):
        with pytest.raises(IteratorEnded):
            fn()


def test_permissive_accessors():
    assert try_next([], "x") == "x"
    assert try_first([], None) is None
    assert try_second([1], -1) == -1
    assert try_nth([1, 2], 5, "none") == "none"
    assert try_last([], 0) == 0
    assert try_last([1, 2], 0) == 2
    assert list(try_skip([1], 3)) == []
    assert list(try_take([1], 3)) == [1]


def test_iterator_ended_is_lookup_error():
    with pytest.raises(LookupError):
        first([])


def test_sliding_window():
    assert list(sliding_window([1, 2, 3, 4], 2)) == [[1, 2], [2, 3], [3, 4]]
    assert list(sliding_window([1, 2], 2)) == [[1, 2]]
    with pytest.raises(IteratorEnded):
        sliding_window([1], 2)
    assert list(try_sliding_window([1], 2)) == []
    assert list(try_sliding_window(gen(3), 3)) == [[0, 1, 2]]


def test_zip_strict_rejects_unequal_lengths():
    assert list(zip_strict([[1, 2], "ab"])) == [(1, "a"), (2, "b")]
    assert list(zip2([], [])) == []
    with pytest.raises(IteratorEnded):
        list(zip_strict([[1, 2, 3], [1, 2]]))
    with pytest.raises(IteratorEnded):
        list(zip2([1], [1, 2]))


def test_zip_least_truncates():
    assert list(zip_least([[1, 2, 3], [4, 5]])) == [(1, 4), (2, 5)]
    assert list(zip_least2(gen(10), "ab")) == [(0, "a"), (1, "b")]
    assert list(zip_least([])) == []


def test_zip_longest_pads():
    assert list(zip_longest([[1, 2, 3], [4]], None)) == [(1, 4), (2, None), (3, None)]
    assert list(zip_longest2([], [1], 0)) == [(0, 1)]
