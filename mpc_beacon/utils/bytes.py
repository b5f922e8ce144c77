# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
mpc_beacon.utils.bytes
======================

Small utilities for working with hex/bytes plus strict **length guards**.

Highlights
----------
- :func:`from_hex` with strict validation. Beacon values are
  exchanged as bare hex (no ``0x`` prefix, no separators), so the prefix is
  rejected rather than silently stripped.
- :func:`as_bytes` to normalize bytes-like values.
- :func:`ensure_len` length guard.
- :func:`chunks` fixed-size slicing used for grouped hex display.
"""

from __future__ import annotations

import re
from typing import Iterator, Union

BytesLike = Union[bytes, bytearray, memoryview]

__all__ = [
    "from_hex",
    "as_bytes",
    "ensure_len",
    "chunks",
]


# -------------
# Hex -> Bytes
# -------------

_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


def from_hex(s: str) -> bytes:
    """
    Convert a bare hex string to bytes.

    Strict rules:
    - No ``0x`` prefix, no whitespace.
    - Only 0-9a-fA-F characters.
    - Even-length nibble count.
    """
    if not isinstance(s, str):
        raise TypeError("from_hex expects a str")
    if not _HEX_RE.match(s):
        raise ValueError("invalid hex string (characters, prefix or whitespace)")
    if len(s) % 2 != 0:
        raise ValueError("hex string must have an even number of nibbles")
    return bytes.fromhex(s)


# --------------
# Bytes utilities
# --------------


def as_bytes(x: BytesLike) -> bytes:
    """Normalize bytes-like to immutable :class:`bytes`."""
    if isinstance(x, bytes):
        return x
    if isinstance(x, (bytearray, memoryview)):
        return bytes(x)
    raise TypeError(f"expected bytes-like, got {type(x)!r}")


def ensure_len(b: BytesLike, expected: int, *, name: str = "value") -> bytes:
    """
    Ensure ``len(b) == expected``. Returns bytes on success, raises ValueError otherwise.
    """
    bb = as_bytes(b)
    if len(bb) != expected:
        raise ValueError(f"{name} must be {expected} bytes, got {len(bb)}")
    return bb


def chunks(b: BytesLike, size: int) -> Iterator[bytes]:
    """Yield consecutive *size*-byte slices of *b*; the last one may be shorter."""
    if size <= 0:
        raise ValueError("size must be > 0")
    bb = as_bytes(b)
    for i in range(0, len(bb), size):
        yield bb[i:i + size]
