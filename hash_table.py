"""
Hash tables keyed by the stable digest of their keys.

HashMap and HashSet store entries in an insertion ordered dict keyed by
``hex(digest(key))``, so any Hashable value (lists, dicts, nested
containers) can be a key and equal keys find each other regardless of
identity.

Keys whose digests collide are the same entry; there is no secondary
equality check. With the default 64 bit seeded hash this does not matter
in practice, with a weak custom hash function it is the caller's choice.
"""

from __future__ import annotations
from functools import partial
from typing import Any, Callable, Iterable, Iterator, Optional, Tuple

import hash_config
from hash_config import GenBuildHasher
from lazy_seq import iterate
from stable_bytes import bytes2hex, hex2bytes
from stable_hash import hash_each_raw, random_build_hasher, stable_hash_unordered_with, stable_hash_with
from std_traits import deepclone, eq
from trait_registry import isdef

_HASHMAP_SENTINEL = hex2bytes("eb9ea4e9e1144658f95596e5523fc4")
_HASHSET_SENTINEL = hex2bytes("6694d09c346844f0bbc19d40e0a24e8f")


def _resolve_gen_build_hasher(gen: Optional[GenBuildHasher]) -> GenBuildHasher:
    if gen is not None:
        return gen
    return hash_config.get_default_gen_build_hasher() or random_build_hasher


class _HashTable:
    """Digest keyed storage shared by HashMap and HashSet."""

    __slots__ = ("gen_build_hasher", "_hash_fn", "_table", "__weakref__")

    def __init__(self, gen_build_hasher: Optional[GenBuildHasher] = None):
        self.gen_build_hasher = _resolve_gen_build_hasher(gen_build_hasher)
        self._hash_fn = partial(stable_hash_with, build_hasher=self.gen_build_hasher())
        self._table: dict = {}

    def _hash(self, key: Any) -> Any:
        digest = self._hash_fn(key)
        return bytes2hex(digest) if isinstance(digest, (bytes, bytearray)) else digest

    def clear(self) -> None:
        self._table.clear()

    @property
    def size(self) -> int:
        return len(self._table)

    def __len__(self) -> int:
        return len(self._table)

    def __contains__(self, key: Any) -> bool:
        return self.has(key)

    def has(self, key: Any) -> bool:
        return self._hash(key) in self._table

    def delete(self, key: Any) -> bool:
        """Remove ``key``; True if there was an entry to remove."""
        return self._table.pop(self._hash(key), _MISSING) is not _MISSING

    def __eq__(self, other: Any) -> bool:
        return eq(self, other)

    __hash__ = None  # mutable

    def __trait_size__(self) -> int:
        return len(self._table)

    def __trait_has__(self, key: Any) -> bool:
        return self.has(key)

    def __trait_delete__(self, key: Any) -> None:
        self.delete(key)

    def __trait_pairs__(self) -> Iterator[Tuple[Any, Any]]:
        return self.entries()

    def _clone(self, seq: Iterable[Any]):
        return type(self)(seq, gen_build_hasher=self.gen_build_hasher)

    def __trait_shallowclone__(self):
        return self._clone(self)

    def __trait_deepclone__(self):
        return self._clone(deepclone(v) for v in self)


_MISSING = object()


class HashMap(_HashTable):
    """
    Associative container keyed by the stable digest of its keys.

    Iteration yields (key, value) pairs in order of first insertion;
    replacing a value keeps the position of its key.

    Args:
        seq: Optional (key, value) pairs, a dict or another HashMap
        gen_build_hasher: Zero argument callable returning the build hasher
            used for the keys; defaults to a randomly seeded one
    """

    __slots__ = ()

    def __init__(self, seq: Any = None, gen_build_hasher: Optional[GenBuildHasher] = None):
        super().__init__(gen_build_hasher)
        if isdef(seq):
            for k, v in iterate(seq):
                self.set(k, v)

    @classmethod
    def from_seq(cls, seq: Any, gen_build_hasher: Optional[GenBuildHasher] = None) -> "HashMap":
        return cls(seq, gen_build_hasher=gen_build_hasher)

    def get_pair(self, key: Any) -> Optional[Tuple[Any, Any]]:
        """The stored (key, value) pair as a new tuple, or None."""
        pair = self._table.get(self._hash(key))
        return None if pair is None else tuple(pair)

    def get(self, key: Any, default: Any = None) -> Any:
        pair = self._table.get(self._hash(key))
        return default if pair is None else pair[1]

    def set(self, key: Any, value: Any) -> "HashMap":
        self._table[self._hash(key)] = [key, value]
        return self

    def entries(self) -> Iterator[Tuple[Any, Any]]:
        for k, v in self._table.values():
            yield k, v

    def keys(self) -> Iterator[Any]:
        for pair in self._table.values():
            yield pair[0]

    def values(self) -> Iterator[Any]:
        for pair in self._table.values():
            yield pair[1]

    def for_each(self, fn: Callable[[Any, Any, "HashMap"], Any]) -> None:
        for k, v in self.entries():
            fn(k, v, self)

    def __iter__(self) -> Iterator[Tuple[Any, Any]]:
        return self.entries()

    def __getitem__(self, key: Any) -> Any:
        pair = self._table.get(self._hash(key))
        if pair is None:
            raise KeyError(key)
        return pair[1]

    def __setitem__(self, key: Any, value: Any) -> None:
        self.set(key, value)

    def __delitem__(self, key: Any) -> None:
        if not self.delete(key):
            raise KeyError(key)

    def __trait_equals__(self, other: Any) -> bool:
        if not isinstance(other, HashMap) or len(self) != len(other):
            return False
        for k, v in self.entries():
            pair = other._table.get(other._hash(k))
            if pair is None or not eq(v, pair[1]):
                return False
        return True

    def __stable_hash__(self, hasher) -> None:
        hash_each_raw(hasher, [
            _HASHMAP_SENTINEL,
            len(self),
            stable_hash_unordered_with(self, hasher.build_hasher)])

    def __trait_get__(self, key: Any) -> Any:
        return self.get(key)

    def __trait_assign__(self, key: Any, value: Any) -> None:
        self.set(key, value)

    def __repr__(self) -> str:
        body = ", ".join(f"{k!r}: {v!r}" for k, v in self.entries())
        return f"HashMap({{{body}}})"


class HashSet(_HashTable):
    """
    Set of values identified by their stable digest.

    Adding a value whose digest is already present keeps the stored one.

    Args:
        seq: Optional values
        gen_build_hasher: See HashMap
    """

    __slots__ = ()

    def __init__(self, seq: Any = None, gen_build_hasher: Optional[GenBuildHasher] = None):
        super().__init__(gen_build_hasher)
        if isdef(seq):
            for v in iterate(seq):
                self.add(v)

    @classmethod
    def from_seq(cls, seq: Any, gen_build_hasher: Optional[GenBuildHasher] = None) -> "HashSet":
        return cls(seq, gen_build_hasher=gen_build_hasher)

    def get(self, key: Any, default: Any = None) -> Any:
        """The stored value equal (by digest) to ``key``."""
        return self._table.get(self._hash(key), default)

    def add(self, value: Any) -> "HashSet":
        self._table.setdefault(self._hash(value), value)
        return self

    def entries(self) -> Iterator[Tuple[Any, Any]]:
        for v in self._table.values():
            yield v, v

    def values(self) -> Iterator[Any]:
        return iter(self._table.values())

    def for_each(self, fn: Callable[[Any, Any, "HashSet"], Any]) -> None:
        for v in self.values():
            fn(v, v, self)

    def __iter__(self) -> Iterator[Any]:
        return self.values()

    def __trait_equals__(self, other: Any) -> bool:
        return (isinstance(other, HashSet)
                and len(self) == len(other)
                and all(other.has(v) for v in self))

    def __stable_hash__(self, hasher) -> None:
        hash_each_raw(hasher, [
            _HASHSET_SENTINEL,
            len(self),
            stable_hash_unordered_with(self, hasher.build_hasher)])

    def __trait_get__(self, key: Any) -> Any:
        return self.get(key)

    def __trait_assign__(self, key: Any, value: Any) -> None:
        if not eq(key, value):
            raise ValueError(f"For HashSets, the key and value must be the same; {key!r} != {value!r}")
        self.add(value)

    def __repr__(self) -> str:
        return f"HashSet({{{', '.join(repr(v) for v in self.values())}}})"


def hashmap(seq: Any = None) -> HashMap:
    return HashMap(seq)


def hashset(seq: Any = None) -> HashSet:
    return HashSet(seq)
