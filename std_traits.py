"""
Standard traits giving every container type a uniform structural contract:
equality, size, shallow/deep copies, key/value iteration and element access.
"""

from __future__ import annotations
import datetime
import re
import types
import uuid
from array import array
from decimal import Decimal
from math import isnan
from types import SimpleNamespace
from typing import Any, Iterator, Optional, Tuple

from trait_registry import UNDEFINED, HybridWeakMap, Trait, supports, value_supports

# Mutable buffer types with one element per index
_BUFFER_TYPES = (bytearray, array)
_SEQUENCE_TYPES = (str, bytes, list, tuple) + _BUFFER_TYPES
_NUMBER_TYPES = (int, float)

# ---------------------------------------------------------------- Immutable

Immutable = Trait("Immutable")

for _typ in (str, int, float, bool, complex, bytes, type(None), type(UNDEFINED),
             re.Pattern, datetime.datetime, datetime.date, Decimal, uuid.UUID,
             types.FunctionType, types.BuiltinFunctionType, type, range):
    Immutable.impl(_typ, True)


def type_is_immutable(typ: type) -> bool:
    return supports(typ, Immutable)


def is_immutable(value: Any) -> bool:
    return value_supports(value, Immutable)

# ---------------------------------------------------------------- Equals

Equals = Trait("Equals")


def eq(a: Any, b: Any) -> bool:
    """
    Structural equality.

    Uses the Equals implementation of ``a``; if there is none and the types
    differ, the one of ``b``; otherwise falls back to ``==``.
    """
    main = Equals.lookup_value(a)
    if main is not None:
        return main(a, b)
    alt = None if type(a) is type(b) else Equals.lookup_value(b)
    if alt is not None:
        return alt(b, a)
    return bool(a == b)


def uneq(a: Any, b: Any) -> bool:
    return not eq(a, b)


def assert_equals(actual: Any, expected: Any, msg: Optional[str] = None) -> None:
    if not eq(actual, expected):
        detail = f": {msg}" if msg else "!"
        raise AssertionError(f"The values are not equal{detail}\n  actual:   {actual!r}\n  expected: {expected!r}")


def assert_uneq(actual: Any, not_expected: Any, msg: Optional[str] = None) -> None:
    if eq(actual, not_expected):
        detail = f": {msg}" if msg else "!"
        raise AssertionError(f"The values should not be equal{detail}\n  actual: {actual!r}")


def _number_eq(a, b) -> bool:
    if type(b) not in _NUMBER_TYPES:
        return False
    return a == b or (type(a) is float and type(b) is float and isnan(a) and isnan(b))


for _typ in _NUMBER_TYPES:
    Equals.impl(_typ, _number_eq)

Equals.impl(re.Pattern, lambda a, b: type(b) is re.Pattern and a.pattern == b.pattern and a.flags == b.flags)

for _typ in (datetime.datetime, datetime.date):
    Equals.impl(_typ, lambda a, b, _typ=_typ: type(b) is _typ and a.isoformat() == b.isoformat())

for _typ in (complex, Decimal):
    Equals.impl(_typ, lambda a, b, _typ=_typ: type(b) is _typ and a == b)


_MISSING = object()


def _container_eq(typ: type):
    check_values = typ not in (set, frozenset)
    # Python hashing lets 1 find True and 1.5 find Decimal("1.5"); the stored key must also be eq()
    keyed_by_hash = typ in (dict, set, frozenset)

    def container_eq(a, b) -> bool:
        if type(b) is not typ or size(a) != size(b):
            return False
        if typ is array and a.typecode != b.typecode:
            return False
        stored = {k: k for k in b} if keyed_by_hash else None
        for k, v in pairs(a):
            if stored is not None:
                match = stored.get(k, _MISSING)
                if match is _MISSING or not eq(match, k):
                    return False
            elif not has(b, k):
                return False
            if check_values and not eq(get(b, k), v):
                return False
        return True

    return container_eq


for _typ in (SimpleNamespace, dict, set, frozenset, list, tuple) + _BUFFER_TYPES:
    Equals.impl(_typ, _container_eq(_typ))

# ---------------------------------------------------------------- Size

Size = Trait("Size")


def size(what: Any) -> int:
    return Size.invoke(what)


def empty(what: Any) -> bool:
    return size(what) == 0


for _typ in (dict, set, frozenset, range, memoryview) + _SEQUENCE_TYPES:
    Size.impl(_typ, len)

Size.impl(SimpleNamespace, lambda x: len(vars(x)))
Size.impl_wild(lambda typ: len if isinstance(typ, type) and hasattr(typ, "__len__") else None)

# ---------------------------------------------------------------- Clones

Shallowclone = Trait("Shallowclone")


def shallowclone(what: Any) -> Any:
    return Shallowclone.invoke(what)


Shallowclone.impl(list, list)
Shallowclone.impl(tuple, tuple)
Shallowclone.impl(frozenset, frozenset)
for _typ in (dict, set, bytearray):
    Shallowclone.impl(_typ, _typ)
Shallowclone.impl(array, lambda x: array(x.typecode, x))
Shallowclone.impl(SimpleNamespace, lambda x: SimpleNamespace(**vars(x)))
Shallowclone.impl_derived([Immutable], lambda _impls, v: v)

Deepclone = Trait("Deepclone")


def deepclone(what: Any) -> Any:
    return Deepclone.invoke(what)


Deepclone.impl(list, lambda x: [deepclone(v) for v in x])
Deepclone.impl(tuple, lambda x: tuple(deepclone(v) for v in x))
Deepclone.impl(frozenset, lambda x: frozenset(deepclone(v) for v in x))


def _deepclone_mapping(typ: type):
    def deepclone_mapping(x):
        nu = typ()
        for k, v in pairs(x):
            assign(nu, k, deepclone(v))
        return nu

    return deepclone_mapping


for _typ in (dict, SimpleNamespace):
    Deepclone.impl(_typ, _deepclone_mapping(_typ))
for _typ in (set,) + _BUFFER_TYPES:
    Deepclone.impl(_typ, shallowclone)
Deepclone.impl_derived([Immutable], lambda _impls, v: v)

# ---------------------------------------------------------------- Pairs

Pairs = Trait("Pairs")


def pairs(what: Any) -> Iterator[Tuple[Any, Any]]:
    """Iterate (key, value) pairs of a container; sets yield (v, v)."""
    return Pairs.invoke(what)


def keys(what: Any) -> Iterator[Any]:
    for k, _ in pairs(what):
        yield k


def values(what: Any) -> Iterator[Any]:
    for _, v in pairs(what):
        yield v


Pairs.impl(dict, lambda x: iter(x.items()))
Pairs.impl(SimpleNamespace, lambda x: iter(list(vars(x).items())))
for _typ in _SEQUENCE_TYPES:
    Pairs.impl(_typ, enumerate)


def _set_pairs(x):
    for v in x:
        yield v, v


for _typ in (set, frozenset):
    Pairs.impl(_typ, _set_pairs)

# ---------------------------------------------------------------- Get / Has

Get = Trait("Get")


def get(what: Any, key: Any) -> Any:
    """Element access; None for missing keys."""
    return Get.invoke(what, key)


def _index_in_range(x, k) -> bool:
    return type(k) is int and 0 <= k < len(x)


Get.impl(SimpleNamespace, lambda x, k: vars(x).get(k) if isinstance(k, str) else None)
for _typ in _SEQUENCE_TYPES:
    Get.impl(_typ, lambda x, k: x[k] if _index_in_range(x, k) else None)
for _typ in (dict, HybridWeakMap):
    Get.impl(_typ, lambda x, k: x.get(k))
for _typ in (set, frozenset):
    Get.impl(_typ, lambda x, k: k if k in x else None)

Has = Trait("Has")


def has(what: Any, key: Any) -> bool:
    return Has.invoke(what, key)


Has.impl(SimpleNamespace, lambda x, k: isinstance(k, str) and k in vars(x))
for _typ in _SEQUENCE_TYPES:
    Has.impl(_typ, _index_in_range)
for _typ in (dict, set, frozenset):
    Has.impl(_typ, lambda x, k: k in x)
Has.impl(HybridWeakMap, lambda x, k: x.has(k))

# ---------------------------------------------------------------- Assign / Delete

Assign = Trait("Assign")


def assign(what: Any, key: Any, value: Any) -> None:
    Assign.invoke(what, key, value)


def _setitem(x, k, v) -> None:
    x[k] = v


def _set_assign(x, k, v) -> None:
    if not eq(k, v):
        raise ValueError(f"For sets, keys and values must be the same; {k!r} != {v!r}")
    x.add(v)


Assign.impl(SimpleNamespace, setattr)
for _typ in (list, dict) + _BUFFER_TYPES:
    Assign.impl(_typ, _setitem)
Assign.impl(HybridWeakMap, lambda x, k, v: x.set(k, v))
Assign.impl(set, _set_assign)

Delete = Trait("Delete")


def delete(what: Any, key: Any) -> None:
    Delete.invoke(what, key)


def _ns_delete(x, k) -> None:
    if k in vars(x):
        delattr(x, k)


Delete.impl(SimpleNamespace, _ns_delete)
Delete.impl(dict, lambda x, k: x.pop(k, None))
Delete.impl(set, lambda x, k: x.discard(k))
Delete.impl(HybridWeakMap, lambda x, k: x.delete(k))

# ---------------------------------------------------------------- Derived accessors

Setdefault = Trait("Setdefault")


def setdefault(what: Any, key: Any, default: Any) -> Any:
    """Return the value at ``key``, assigning ``default`` first if missing."""
    return Setdefault.invoke(what, key, default)


def _setdefault(impls, x, k, v):
    has_impl, get_impl, assign_impl = impls
    if has_impl(x, k):
        return get_impl(x, k)
    assign_impl(x, k, v)
    return v


Setdefault.impl_derived([Has, Get, Assign], _setdefault)

Replace = Trait("Replace")


def replace(what: Any, key: Any, value: Any) -> Any:
    """Assign ``value`` at ``key`` and return the previous value."""
    return Replace.invoke(what, key, value)


def _replace(impls, x, k, v):
    get_impl, assign_impl = impls
    previous = get_impl(x, k)
    assign_impl(x, k, v)
    return previous


Replace.impl_derived([Get, Assign], _replace)
