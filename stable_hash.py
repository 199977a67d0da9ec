"""
Stable Hash Implementation

Seeded, deterministic hashing of arbitrary Python values, independent of
PYTHONHASHSEED, built on the Hashable trait.

Key Features:
- Streaming xxh64 state, optionally seeded
- Order independent hashing for sets and mappings (sorted sub digests)
- Type sentinels and sizes mixed in before contents (no cross type collisions)
- Extensible: register Hashable.impl(Type, fn) or define __stable_hash__(self, hasher)
- Reusable hashers snapshot their state on digest()
"""

from __future__ import annotations
import datetime
import logging
import re
import uuid
from array import array
from decimal import Decimal
from functools import partial
from types import SimpleNamespace
from typing import Any, Callable, Iterable, List, Optional

import xxhash

import hash_config
from lazy_seq import iterate
from stable_bytes import (
    ARRAY_SENTINELS, BIG_INT_SENTINEL, BytesLike, EncodingUnsupported,
    bytes2hex, bytes2u64, exact_float, hash_directly, pad_to_size, to_bin,
)
from std_traits import pairs, size
from trait_registry import UNDEFINED, Trait

logger = logging.getLogger(__name__)

BuildHasher = Callable[[], Any]


class HasherMisuse(RuntimeError):
    """update() or digest() called on a hasher that already produced its digest."""


Hashable = Trait("Hashable", "__stable_hash__")


def _hash_each(hasher, seq: Iterable[Any]) -> None:
    for val in iterate(seq):
        hasher.update(val)


def hash_each_raw(hasher, seq: Iterable[Any]) -> None:
    """Feed the canonical bytes (to_bin) of each element, bypassing Hashable."""
    for val in seq:
        hasher.update(to_bin(val))

# ---------------------------------------------------------------- Hashable impls

for _val in (None, UNDEFINED, True, False):
    Hashable.impl_static(_val, lambda val, hasher: hasher.update(to_bin(val)))

Hashable.impl(bytes, lambda val, hasher: hasher.update(val))


def _hash_number(val, hasher) -> None:
    if type(val) is int and exact_float(val) is None:
        raw = hash_directly(val)
        hash_each_raw(hasher, [BIG_INT_SENTINEL, len(raw), raw])
    else:
        hash_each_raw(hasher, [type(val), val])


for _typ in (int, float):
    Hashable.impl(_typ, _hash_number)

for _typ in (str, bytearray):
    Hashable.impl(_typ, lambda val, hasher: hash_each_raw(hasher, [type(val), len(val), val]))


def _hash_array(val: array, hasher) -> None:
    sentinel = ARRAY_SENTINELS.get(val.typecode)
    if sentinel is None:
        raise EncodingUnsupported(f"No stable encoding for arrays of typecode {val.typecode!r}")
    hash_each_raw(hasher, [sentinel, len(val), val])


Hashable.impl(array, _hash_array)


def _hash_pattern(val: re.Pattern, hasher) -> None:
    s = f"{val.pattern!r}/{val.flags}"
    hash_each_raw(hasher, [re.Pattern, len(s), s])


Hashable.impl(re.Pattern, _hash_pattern)

for _typ in (datetime.datetime, datetime.date):
    Hashable.impl(_typ, lambda val, hasher: hash_each_raw(hasher, [type(val), val.isoformat()]))


def _hash_sequence(val, hasher) -> None:
    hash_each_raw(hasher, [type(val), len(val)])
    _hash_each(hasher, val)


for _typ in (list, tuple):
    Hashable.impl(_typ, _hash_sequence)


def _hash_mapping(val, hasher) -> None:
    hash_each_raw(hasher, [
        type(val), size(val),
        stable_hash_unordered_with(pairs(val), hasher.build_hasher)])


for _typ in (dict, SimpleNamespace):
    Hashable.impl(_typ, _hash_mapping)


def _hash_set(val, hasher) -> None:
    hash_each_raw(hasher, [type(val), len(val), stable_hash_unordered_with(val, hasher.build_hasher)])


for _typ in (set, frozenset):
    Hashable.impl(_typ, _hash_set)


def _hash_decimal(val: Decimal, hasher) -> None:
    if val.is_zero():
        val = Decimal(0)
    elif val.is_finite():
        val = val.normalize()
    s = str(val)
    hash_each_raw(hasher, [Decimal, len(s), s])


def register_common_types() -> None:
    """Register Hashable for common standard library leaves; idempotent."""
    Hashable.impl(complex, lambda val, hasher: hash_each_raw(hasher, [complex, val.real, val.imag]))
    Hashable.impl(Decimal, _hash_decimal)
    Hashable.impl(uuid.UUID, lambda val, hasher: hash_each_raw(hasher, [uuid.UUID, val.bytes]))


register_common_types()

# ---------------------------------------------------------------- hashers


def _normalize_seed(seed: Optional[BytesLike]) -> bytes:
    """Pad short seeds with zeros, hash long ones down to SEED_SIZE bytes."""
    if seed is None or seed is UNDEFINED:
        return bytes(hash_config.SEED_SIZE)
    seed = memoryview(seed).cast("B").tobytes()
    if len(seed) > hash_config.SEED_SIZE:
        logger.debug("Hashing down %d byte seed", len(seed))
        return stable_hash_with(seed, DefaultHasher)
    return pad_to_size(seed, hash_config.SEED_SIZE)


class DefaultHasher:
    """
    Streaming hasher on a seeded xxh64 state.

    Args:
        seed: Seed bytes; shorter seeds are zero padded, longer ones are
            hashed down, None is the all zero seed
        allow_reuse: Permit update()/digest() after digest()
    """

    __slots__ = ("_seed", "_allow_reuse", "_state")

    def __init__(self, seed: Optional[BytesLike] = None, allow_reuse: bool = False):
        self._seed = _normalize_seed(seed)
        self._allow_reuse = allow_reuse
        self._state = xxhash.xxh64(seed=bytes2u64(self._seed))

    @property
    def seed(self) -> bytes:
        return self._seed

    @property
    def build_hasher(self) -> BuildHasher:
        """Factory for fresh hashers configured like this one."""
        return partial(DefaultHasher, self._seed, allow_reuse=self._allow_reuse)

    def update(self, value: Any) -> "DefaultHasher":
        """Feed bytes as they are; anything else through Hashable."""
        state = self._live_state()
        if type(value) is bytes:
            state.update(value)
        else:
            Hashable.invoke(value, self)
        return self

    def digest(self) -> bytes:
        state = self._live_state()
        if self._allow_reuse:
            state = state.copy()
        else:
            self._state = None
        return state.digest()

    def _live_state(self):
        if self._state is None:
            raise HasherMisuse("Hasher was used after digest() without allow_reuse")
        return self._state

    def _clone(self) -> "DefaultHasher":
        nu = object.__new__(DefaultHasher)
        nu._seed = self._seed
        nu._allow_reuse = self._allow_reuse
        nu._state = self._live_state().copy()
        return nu

    def __trait_shallowclone__(self) -> "DefaultHasher":
        return self._clone()

    def __trait_deepclone__(self) -> "DefaultHasher":
        return self._clone()

    def __repr__(self) -> str:
        return f"DefaultHasher(seed={self._seed.hex()!r}, allow_reuse={self._allow_reuse})"


def _digest_order(digest: Any) -> Any:
    return digest.hex() if isinstance(digest, (bytes, bytearray)) else digest


class UnorderedHasher:
    """
    Order independent hasher.

    Every update() is hashed on its own with a fresh inner hasher; digest()
    sorts those sub digests (by hex) and hashes the sorted sequence.
    """

    __slots__ = ("build_hasher", "_allow_reuse", "_state")

    def __init__(self, build_hasher: Optional[BuildHasher] = None, allow_reuse: bool = False):
        self.build_hasher = build_hasher or default_build_hasher()
        self._allow_reuse = allow_reuse
        self._state: Optional[List[Any]] = []

    def update(self, value: Any) -> "UnorderedHasher":
        self._live_state().append(stable_hash_with(value, self.build_hasher))
        return self

    def digest(self) -> Any:
        state = sorted(self._live_state(), key=_digest_order)
        if not self._allow_reuse:
            self._state = None
        return stable_hash_seq_with(state, self.build_hasher)

    def _live_state(self) -> List[Any]:
        if self._state is None:
            raise HasherMisuse("Hasher was used after digest() without allow_reuse")
        return self._state

    def _clone(self) -> "UnorderedHasher":
        nu = UnorderedHasher(self.build_hasher, allow_reuse=self._allow_reuse)
        nu._state = list(self._live_state())
        return nu

    def __trait_shallowclone__(self) -> "UnorderedHasher":
        return self._clone()

    def __trait_deepclone__(self) -> "UnorderedHasher":
        return self._clone()

# ---------------------------------------------------------------- build hashers


def default_build_hasher() -> BuildHasher:
    return DefaultHasher


def seeded_build_hasher(seed: BytesLike) -> BuildHasher:
    return partial(DefaultHasher, seed)


def random_build_hasher() -> BuildHasher:
    """Build hasher with a fresh random seed (see hash_config.set_seed_source)."""
    seed = hash_config.get_seed_source()(hash_config.SEED_SIZE)
    return partial(DefaultHasher, seed)


def unordered_build_hasher(build_hasher: BuildHasher) -> BuildHasher:
    return partial(UnorderedHasher, build_hasher)

# ---------------------------------------------------------------- helpers


def stable_hash(obj: Any) -> bytes:
    """
    Compute the stable 8 byte digest of ``obj`` with the unseeded hasher.

    Raises:
        TraitNotImplemented: ``obj`` (or something inside it) is not Hashable
    """
    return DefaultHasher().update(obj).digest()


def stable_hash_with(obj: Any, build_hasher: BuildHasher) -> Any:
    return build_hasher().update(obj).digest()


def stable_hash_seq(seq: Any) -> bytes:
    """Hash the elements of ``seq`` one after another (no type tag, no size)."""
    return stable_hash_seq_with(seq, DefaultHasher)


def stable_hash_seq_with(seq: Any, build_hasher: BuildHasher) -> Any:
    hasher = build_hasher()
    _hash_each(hasher, seq)
    return hasher.digest()


def stable_hash_unordered(seq: Any) -> bytes:
    return stable_hash_unordered_with(seq, default_build_hasher())


def stable_hash_unordered_with(seq: Any, build_hasher: BuildHasher) -> Any:
    return stable_hash_seq_with(seq, unordered_build_hasher(build_hasher))


def stable_hash_hex(obj: Any) -> str:
    """Convenience function returning hex representation of stable hash."""
    return bytes2hex(stable_hash(obj))


def stable_hash_int(obj: Any) -> int:
    return bytes2u64(stable_hash(obj))
