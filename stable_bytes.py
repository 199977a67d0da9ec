"""
Canonical Byte Encoding

Deterministic mapping from primitive values to bytes; the raw input the
hashers are fed with.

Key Features:
- Fixed 16 byte sentinels for None, UNDEFINED, True and False
- Hidden type sentinels that tag container/leaf types inside a hash stream
- IEEE754 little endian doubles for numbers (NaN and -0.0 normalized)
- UTF-8 for text, raw bytes for buffers
- Hex helpers used for readable digests and as hash table keys
"""

from __future__ import annotations
import datetime
import re
import struct
import sys
import uuid
from array import array
from decimal import Decimal
from math import isnan
from types import SimpleNamespace
from typing import Any, Dict, Optional, Union

from trait_registry import UNDEFINED

if sys.byteorder != "little":
    raise RuntimeError("Is this running on a big endian system? Only little endian hosts are supported")

BytesLike = Union[bytes, bytearray, memoryview, array]


class MalformedInput(ValueError):
    """Raised for malformed hex strings and size mismatched buffer casts."""


class EncodingUnsupported(TypeError):
    """Raised when a value has no canonical byte encoding."""


_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


def bytes2hex(buf: Union[bytes, bytearray]) -> str:
    """Lowercase hex, two characters per byte."""
    if type(buf) not in (bytes, bytearray):
        raise MalformedInput(f"bytes2hex expects bytes, got {type(buf).__name__}")
    return buf.hex()


def hex2bytes(s: str) -> bytes:
    """
    Inverse of bytes2hex().

    Raises:
        MalformedInput: For non strings, odd length or non hex digits
    """
    if type(s) is not str:
        raise MalformedInput(f"hex2bytes expects a string, got {type(s).__name__}")
    if len(s) % 2 != 0:
        raise MalformedInput(f"Odd length hex string: {s!r}")
    if not _HEX_DIGITS.issuperset(s):
        raise MalformedInput(f"Not a hex string: {s!r}")
    return bytes.fromhex(s)


def pad_to_size(buf: bytes, length: int) -> bytes:
    """Right pad ``buf`` with zero bytes up to ``length``; never truncates."""
    if len(buf) >= length:
        return buf
    return bytes(buf) + bytes(length - len(buf))


def reinterpret_cast(buf: BytesLike, typecode: str) -> memoryview:
    """
    View the memory of ``buf`` as elements of ``typecode`` without copying.

    Raises:
        MalformedInput: The byte length is not a multiple of the element size
    """
    raw = memoryview(buf).cast("B")
    itemsize = struct.calcsize(typecode)
    if raw.nbytes % itemsize != 0:
        raise MalformedInput(
            f"Invalid cast: {type(buf).__name__}[{raw.nbytes} bytes] to {typecode!r} elements of {itemsize} bytes"
        )
    return raw.cast(typecode)


def bytes2u64(buf: bytes) -> int:
    return int.from_bytes(buf, "big")


def u642bytes(value: int) -> bytes:
    return value.to_bytes(8, "big")

# ---------------------------------------------------------------- sentinels

SENTINELS = (
    (None, hex2bytes("6218ef48d321422fa9b4416563903f05")),
    (UNDEFINED, hex2bytes("0308394d20384acda38432c81d0654ed")),
    (True, hex2bytes("24817a77c9374571a9469a92faed50b3")),
    (False, hex2bytes("74070422bb654cf788c9bef90900a8f2")),
)

_NUMBER_SENTINEL = hex2bytes("83e6c49a92974e538492effa3f3fc9ef")

# Keyed by type; never exposed through hash_directly()
HIDDEN_SENTINELS: Dict[type, bytes] = {
    str: hex2bytes("8d26e056afd2415bb6f04275834b9556"),
    int: _NUMBER_SENTINEL,
    float: _NUMBER_SENTINEL,
    re.Pattern: hex2bytes("6a219bf479554129a769ba110d968303"),
    datetime.datetime: hex2bytes("7942d12592b4d788e8555f14a58a07b7"),
    datetime.date: hex2bytes("3b8e6f21d4c947a0b5f28e1c7d9a04e3"),
    list: hex2bytes("91f577ca5dd54b349beceb7c25e5d99f"),
    tuple: hex2bytes("c1f4a3d27e0b4b6f9a52e8d03b7c61a4"),
    dict: hex2bytes("dd8bb2d529c54f179dc8d34cb5f6be5e"),
    set: hex2bytes("c9ec2fae963140449b43deea8672fa7e"),
    frozenset: hex2bytes("5e2b9d84f1a64c07b3e9a6d2c8f05b71"),
    SimpleNamespace: hex2bytes("18475aed45774f40b615ca5db86d39aa"),
    bytearray: hex2bytes("a7d35c19e2844f6b8c0d71e9f4b2a356"),
    complex: hex2bytes("6d4a1f8e93b24c5790e3f7a2b8c0d14f"),
    Decimal: hex2bytes("2e7f9b3c0a5d48e1b6c4f8a9d3e2071b"),
    uuid.UUID: hex2bytes("9a0c5e3f7b2d4a68c1e5f09b3d7a2c84"),
}

BIG_INT_SENTINEL = hex2bytes("f09c2e7b5a1d4863a4e7b0c9d2f61e58")

ARRAY_SENTINELS: Dict[str, bytes] = {
    "b": hex2bytes("85d7ace97e9c44e8bcd5bd1f677edc5d"),
    "B": hex2bytes("d8e2f7a1c4b9460e95f3a6c8b1d07e2a"),
    "h": hex2bytes("8a63c848aa48497a817a1211c25e7d80"),
    "H": hex2bytes("93428a41c29e4189bb9d26f7da2dab63"),
    "i": hex2bytes("e58a9ac9aea649b4b62cb2db9a769923"),
    "I": hex2bytes("40e4a84157494c5d8a4c276da55b6de9"),
    "l": hex2bytes("47b1c8e3f9a2456d80e4b7c1f3a9d652"),
    "L": hex2bytes("b5f0a9d2e7c3418b9d6e0f4a2c8b7135"),
    "q": hex2bytes("0e6d3a9f1c7b42e5a8f2d6c0b9e4173f"),
    "Q": hex2bytes("7c2a8e5d0f3b4917b4d1e9a6f2c805de"),
    "f": hex2bytes("b21f8b12e1cd48f0b6fdf4a38f47ac54"),
    "d": hex2bytes("8c1042373eac47f5ac9bfd3cb35a1712"),
}


def _sentinel(value: Any) -> Optional[bytes]:
    # Identity, so 1 and 0 never pick up the True/False sentinels
    for const, encoded in SENTINELS:
        if value is const:
            return encoded
    return None

# ---------------------------------------------------------------- encoding


def exact_float(value: int) -> Optional[float]:
    """The double equal to ``value``, or None when there is none."""
    try:
        f = float(value)
    except OverflowError:
        return None
    return f if f == value else None


def _encode_float(value: float) -> bytes:
    if isnan(value):
        value = float("nan")
    elif value == 0.0:
        value = 0.0  # -0.0 == 0.0
    return struct.pack("<d", value)


def _encode_int(value: int) -> bytes:
    f = exact_float(value)
    if f is not None:
        return _encode_float(f)
    length = (value.bit_length() + 8) // 8  # room for the sign bit
    return value.to_bytes(length, "little", signed=True)


def hash_directly(value: Any) -> bytes:
    """
    Encode a primitive value as bytes.

    Args:
        value: None, UNDEFINED, a bool, int, float, str or a buffer

    Returns:
        A fresh bytes object

    Raises:
        EncodingUnsupported: For every other value
    """
    encoded = _sentinel(value)
    if encoded is not None:
        return bytes(encoded)
    typ = type(value)
    if typ in (bytes, bytearray, memoryview, array):
        return memoryview(value).cast("B").tobytes()
    if typ is str:
        return value.encode("utf-8")
    if typ is float:
        return _encode_float(value)
    if typ is int:
        return _encode_int(value)
    raise EncodingUnsupported(f"Don't know how to byte encode {value!r} of type {typ.__name__}")


def to_bin(value: Any) -> bytes:
    """Like hash_directly(), but also maps types to their hidden sentinels."""
    encoded = _sentinel(value)
    if encoded is not None:
        return encoded
    if isinstance(value, type):
        hidden = HIDDEN_SENTINELS.get(value)
        if hidden is not None:
            return hidden
    return hash_directly(value)
