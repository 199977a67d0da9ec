"""
Process wide configuration for the hashing layer.

Plain module level settings with setter/getter helpers; there is no
configuration file and no environment lookup.
"""

from __future__ import annotations
import os
from typing import Callable, Optional

# xxh64 works on 64 bit words: seeds are normalized to, and digests are, 8 bytes
SEED_SIZE = 8
DIGEST_SIZE = 8

SeedSource = Callable[[int], bytes]
GenBuildHasher = Callable[[], Callable[[], object]]

_seed_source: SeedSource = os.urandom
_default_gen_build_hasher: Optional[GenBuildHasher] = None


def set_seed_source(source: Optional[SeedSource] = None) -> None:
    """
    Set the function random_build_hasher() draws seeds from.

    Args:
        source: Called with a byte count, returns that many bytes;
            None restores os.urandom
    """
    global _seed_source
    _seed_source = source or os.urandom


def get_seed_source() -> SeedSource:
    return _seed_source


def set_default_gen_build_hasher(gen: Optional[GenBuildHasher] = None) -> None:
    """
    Set the factory of build hashers HashMap/HashSet use when none is given.

    Args:
        gen: Zero argument callable returning a build hasher; None restores
            the randomly seeded default
    """
    global _default_gen_build_hasher
    _default_gen_build_hasher = gen


def get_default_gen_build_hasher() -> Optional[GenBuildHasher]:
    """The configured factory, or None for the randomly seeded default."""
    return _default_gen_build_hasher
