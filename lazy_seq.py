"""
Sequence protocol used by the hashing layer.

Only the small contract the hashers and hash tables rely on: turning
anything into an iterator, folding, sizing, strict and permissive element
accessors, and the zip family. Strict accessors raise IteratorEnded when a
sequence is too short; the ``try_`` variants return a fallback instead.
"""

from __future__ import annotations
from collections import deque
from types import SimpleNamespace
from typing import Any, Callable, Iterable, Iterator, List, Tuple

from std_traits import Size, eq, pairs
from trait_registry import Trait

_NOTHING = object()


class IteratorEnded(LookupError):
    """A sequence ended before the requested element was reached."""


Sequence = Trait("Sequence")


def iterate(seq: Any) -> Iterator[Any]:
    """Get an iterator over ``seq``; mappings iterate their (key, value) pairs."""
    return Sequence.invoke(seq)


for _typ in (dict, SimpleNamespace):
    Sequence.impl(_typ, pairs)
Sequence.impl_wild(lambda typ: iter if isinstance(typ, type) and hasattr(typ, "__iter__") else None)


def each(seq: Any, fn: Callable[[Any], Any]) -> None:
    for val in iterate(seq):
        fn(val)


def foldl(seq: Any, initial: Any, fn: Callable[[Any, Any], Any]) -> Any:
    accu = initial
    for val in iterate(seq):
        accu = fn(accu, val)
    return accu


def count(seq: Any) -> int:
    """Number of elements; uses Size when known, consumes the sequence otherwise."""
    impl = Size.lookup_value(seq)
    if impl is not None:
        return impl(seq)
    return foldl(seq, 0, lambda n, _: n + 1)


def reverse(seq: Any) -> List[Any]:
    r = list(iterate(seq))
    r.reverse()
    return r


def map_sort(seq: Any, fn: Callable[[Any], Any]) -> List[Any]:
    """Sort the elements of ``seq`` by the key ``fn`` maps them to (stable)."""
    return sorted(iterate(seq), key=fn)


def seq_eq(a: Any, b: Any) -> bool:
    """Element-wise eq() of two sequences; sequences of different length differ."""
    end = object()
    return all(eq(x, y) for x, y in zip_longest([a, b], end))

# ---------------------------------------------------------------- accessors


def next_value(seq: Any) -> Any:
    """
    Pull the next element.

    Raises:
        IteratorEnded: The sequence is empty
    """
    val = next(iterate(seq), _NOTHING)
    if val is _NOTHING:
        raise IteratorEnded()
    return val


def try_next(seq: Any, fallback: Any) -> Any:
    return next(iterate(seq), fallback)


def skip(seq: Any, no: int) -> Iterator[Any]:
    it = iterate(seq)
    for _ in range(no):
        next_value(it)
    return it


def try_skip(seq: Any, no: int) -> Iterator[Any]:
    it = iterate(seq)
    for _ in range(no):
        next(it, None)
    return it


def nth(seq: Any, idx: int) -> Any:
    return next_value(skip(seq, idx))


def try_nth(seq: Any, idx: int, fallback: Any) -> Any:
    return try_next(try_skip(seq, idx), fallback)


def first(seq: Any) -> Any:
    return next_value(seq)


def try_first(seq: Any, fallback: Any) -> Any:
    return try_next(seq, fallback)


def second(seq: Any) -> Any:
    return nth(seq, 1)


def try_second(seq: Any, fallback: Any) -> Any:
    return try_nth(seq, 1, fallback)


def try_last(seq: Any, fallback: Any) -> Any:
    r = fallback
    for val in iterate(seq):
        r = val
    return r


def last(seq: Any) -> Any:
    val = try_last(seq, _NOTHING)
    if val is _NOTHING:
        raise IteratorEnded()
    return val


def try_take(seq: Any, no: int) -> Iterator[Any]:
    it = iterate(seq)
    for _ in range(no):
        val = next(it, _NOTHING)
        if val is _NOTHING:
            return
        yield val


def take(seq: Any, no: int) -> List[Any]:
    r = list(try_take(seq, no))
    if len(r) < no:
        raise IteratorEnded(f"take() needed {no} elements, got {len(r)}")
    return r


def _window(it: Iterator[Any], cache: deque) -> Iterator[List[Any]]:
    yield list(cache)
    for val in it:
        cache.append(val)
        yield list(cache)


def sliding_window(seq: Any, no: int) -> Iterator[List[Any]]:
    """Windows of ``no`` consecutive elements; the sequence must hold at least ``no``."""
    it = iterate(seq)
    cache = deque((next_value(it) for _ in range(no)), maxlen=no)
    return _window(it, cache)


def try_sliding_window(seq: Any, no: int) -> Iterator[List[Any]]:
    it = iterate(seq)
    cache = deque(try_take(it, no), maxlen=no)
    if len(cache) < no:
        return iter(())
    return _window(it, cache)

# ---------------------------------------------------------------- zips


def _zip_base(seqs: Iterable[Any]) -> Iterator[List[Any]]:
    its = [iterate(s) for s in iterate(seqs)]
    if not its:
        return
    while True:
        yield [next(it, _NOTHING) for it in its]


def zip_strict(seqs: Iterable[Any]) -> Iterator[Tuple[Any, ...]]:
    """
    Zip sequences that must all have the same length.

    Raises:
        IteratorEnded: Some sequence ended before the others
    """
    for elms in _zip_base(seqs):
        done = sum(1 for v in elms if v is _NOTHING)
        if done == 0:
            yield tuple(elms)
        elif done == len(elms):
            return
        else:
            raise IteratorEnded("zip_strict() was given sequences of different length!")


def zip_least(seqs: Iterable[Any]) -> Iterator[Tuple[Any, ...]]:
    """Zip, stopping silently at the end of the shortest sequence."""
    for elms in _zip_base(seqs):
        if any(v is _NOTHING for v in elms):
            return
        yield tuple(elms)


def zip_longest(seqs: Iterable[Any], fallback: Any) -> Iterator[Tuple[Any, ...]]:
    """Zip until the longest sequence ends, padding the others with ``fallback``."""
    for elms in _zip_base(seqs):
        if all(v is _NOTHING for v in elms):
            return
        yield tuple(fallback if v is _NOTHING else v for v in elms)


def zip2(a: Any, b: Any) -> Iterator[Tuple[Any, Any]]:
    return zip_strict([a, b])


def zip_least2(a: Any, b: Any) -> Iterator[Tuple[Any, Any]]:
    return zip_least([a, b])


def zip_longest2(a: Any, b: Any, fallback: Any) -> Iterator[Tuple[Any, Any]]:
    return zip_longest([a, b], fallback)
