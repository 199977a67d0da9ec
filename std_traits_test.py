"""Tests for the standard traits: equality, size, clones and container access."""

import datetime
import re
from array import array
from decimal import Decimal
from types import SimpleNamespace

import pytest

from std_traits import (
    Equals, assert_equals, assert_uneq, assign, deepclone, delete, empty, eq, get, has,
    is_immutable, keys, pairs, replace, setdefault, shallowclone, size, type_is_immutable,
    uneq, values,
)
from trait_registry import UNDEFINED


class Opaque:
    pass


class Point:
    def __init__(self, x, y):
        self.x = x
        self.y = y

    def __trait_equals__(self, other):
        return isinstance(other, Point) and self.x == other.x and self.y == other.y


@pytest.mark.parametrize("a,b", [
    (1, 1.0),
    (float("nan"), float("nan")),
    ("foo", "foo"),
    (None, None),
    (UNDEFINED, UNDEFINED),
    ([1, [2, {"x": 3}]], [1, [2, {"x": 3}]]),
    ((1, 2), (1, 2)),
    ({"a": 1, "b": 2}, {"b": 2, "a": 1}),
    ({1, 2, 3}, {3, 2, 1}),
    (SimpleNamespace(a=1, b=[2]), SimpleNamespace(b=[2], a=1)),
    (bytearray(b"abc"), bytearray(b"abc")),
    (array("i", [1, 2]), array("i", [1, 2])),
    (re.compile("a+", re.I), re.compile("a+", re.I)),
    (datetime.datetime(2020, 1, 2, 3, 4), datetime.datetime(2020, 1, 2, 3, 4)),
    (Decimal("1.5"), Decimal("1.50")),
    (Point(1, 2), Point(1, 2)),
])
def test_eq(a, b):
    assert eq(a, b)
    assert eq(b, a)
    assert_equals(a, b)


@pytest.mark.parametrize("a,b", [
    (True, 1),
    (False, 0),
    (1, "1"),
    (None, UNDEFINED),
    ([1, 2], (1, 2)),
    ([1, 2], [2, 1]),
    ([1, 2], [1, 2, 3]),
    ({"a": 1}, {"a": 2}),
    ({"a": 1}, {"b": 1}),
    ({1}, frozenset([1])),
    (SimpleNamespace(a=1), {"a": 1}),
    (bytearray(b"ab"), b"ab"),
    (array("i", [1]), array("d", [1.0])),
    (re.compile("a"), re.compile("a", re.I)),
    (datetime.date(2020, 1, 2), datetime.datetime(2020, 1, 2)),
    (Point(1, 2), Point(2, 1)),
    (Opaque(), Opaque()),
])
def test_uneq(a, b):
    assert uneq(a, b)
    assert uneq(b, a)
    assert_uneq(a, b)


def test_eq_uses_the_other_side():
    class Anything:
        def __trait_equals__(self, other):
            return True

    assert eq(Opaque(), Anything())
    assert not eq((1, 2), Point(1, 2))


def test_opaque_values_fall_back_to_identity():
    o = Opaque()
    assert eq(o, o)
    assert Equals.lookup_value(o) is None


def test_assert_equals_message():
    with pytest.raises(AssertionError, match="not equal"):
        assert_equals([1], [2])
    with pytest.raises(AssertionError, match="should not be equal"):
        assert_uneq([1], [1])


def test_size():
    assert size([1, 2, 3]) == 3
    assert size({"a": 1}) == 1
    assert size("abc") == 3
    assert size(SimpleNamespace(a=1, b=2)) == 2
    assert size(range(4)) == 4
    assert empty([])
    assert not empty({1})

    class Sized:
        def __len__(self):
            return 7

    assert size(Sized()) == 7


def test_immutable():
    for val in ("x", 1, 1.5, True, None, UNDEFINED, b"x", re.compile("x"), Decimal(1), len):
        assert is_immutable(val)
    for val in ([], {}, set(), SimpleNamespace(), bytearray()):
        assert not is_immutable(val)
    assert type_is_immutable(str)
    assert not type_is_immutable(list)


def test_shallowclone():
    inner = [1]
    src = [inner, {"a": inner}]
    copy = shallowclone(src)
    assert copy == src
    assert copy is not src
    assert copy[0] is inner

    ns = SimpleNamespace(a=inner)
    ns_copy = shallowclone(ns)
    assert ns_copy is not ns
    assert ns_copy.a is inner

    s = "immutable"
    assert shallowclone(s) is s


def test_deepclone():
    inner = [1]
    src = {"a": inner, "b": (inner, {1, 2}), "c": SimpleNamespace(d=inner)}
    copy = deepclone(src)
    assert eq(copy, src)
    assert copy["a"] is not inner
    assert copy["b"][0] is not inner
    assert copy["c"].d is not inner
    assert copy["c"] is not src["c"]

    arr = array("d", [1.0, 2.0])
    arr_copy = deepclone(arr)
    assert eq(arr_copy, arr)
    assert arr_copy is not arr

    o = Opaque()
    with pytest.raises(TypeError):
        deepclone(o)


def test_pairs_keys_values():
    assert list(pairs({"a": 1})) == [("a", 1)]
    assert list(pairs(["x", "y"])) == [(0, "x"), (1, "y")]
    assert list(pairs({5})) == [(5, 5)]
    assert list(pairs(SimpleNamespace(a=1))) == [("a", 1)]
    assert list(keys({"a": 1, "b": 2})) == ["a", "b"]
    assert list(values([3, 4])) == [3, 4]


def test_get_has():
    assert get([1, 2], 1) == 2
    assert get([1, 2], 5) is None
    assert get([1, 2], -1) is None
    assert get({"a": 1}, "a") == 1
    assert get({"a": 1}, "b") is None
    assert get({3}, 3) == 3
    assert get(SimpleNamespace(a=1), "a") == 1
    assert get(SimpleNamespace(a=1), "__class__") is None

    assert has([1, 2], 0)
    assert not has([1, 2], 2)
    assert has({"a": None}, "a")
    assert has({3}, 3)
    assert has(SimpleNamespace(a=None), "a")
    assert not has(SimpleNamespace(), "__class__")


def test_assign_delete():
    d = {}
    assign(d, "a", 1)
    assert d == {"a": 1}
    delete(d, "a")
    delete(d, "missing")
    assert d == {}

    ns = SimpleNamespace()
    assign(ns, "x", 2)
    assert ns.x == 2
    delete(ns, "x")
    delete(ns, "x")
    assert vars(ns) == {}

    s = set()
    assign(s, 4, 4)
    assert s == {4}
    with pytest.raises(ValueError):
        assign(s, 4, 5)
    delete(s, 4)
    assert s == set()

    lst = [0, 0]
    assign(lst, 1, 9)
    assert lst == [0, 9]


def test_setdefault_replace():
    d = {"a": 1}
    assert setdefault(d, "a", 5) == 1
    assert setdefault(d, "b", 5) == 5
    assert d == {"a": 1, "b": 5}

    assert replace(d, "a", 2) == 1
    assert replace(d, "c", 3) is None
    assert d == {"a": 2, "b": 5, "c": 3}


@pytest.mark.parametrize("a,b", [
    ({1}, {True}),
    ({0: "x"}, {False: "x"}),
    ({1: "x"}, {True: "x"}),
    ({1.5}, {Decimal("1.5")}),
    (frozenset([(1,)]), frozenset([(True,)])),
])
def test_hashed_keys_compare_with_eq(a, b):
    assert uneq(a, b)
    assert uneq(b, a)
