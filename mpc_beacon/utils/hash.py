# Copyright (c) Animica.
# SPDX-License-Identifier: MIT
"""
mpc_beacon.utils.hash
=====================

Thin hashlib wrappers used by the beacon chain and the parameters backend.

Key pieces
----------
- :func:`sha256_iter`: the beacon chain step function applied a number of times.
- :func:`blake2b_512`: contribution fingerprints and transcript digests.
- :class:`Blake2bTranscript`: streaming absorber used to bind contribution
  public keys to the ceremony history.

The chain step is plain SHA-256 of the previous 32-byte state with no domain
prefix: beacon transcripts must be recomputable with any stock SHA-256 tool.
"""

from __future__ import annotations

from hashlib import blake2b as _blake2b
from hashlib import sha256 as _sha256

__all__ = [
    "sha256_iter",
    "blake2b_512",
    "Blake2bTranscript",
]


def sha256_iter(data: bytes, steps: int) -> bytes:
    """Return SHA-256 applied *steps* times to *data* (``steps == 0`` returns it unchanged)."""
    if steps < 0:
        raise ValueError("steps must be >= 0")
    state = bytes(data)
    for _ in range(steps):
        state = _sha256(state).digest()
    return state


def blake2b_512(data: bytes) -> bytes:
    """Return BLAKE2b with a 64-byte digest."""
    return _blake2b(bytes(data), digest_size=64).digest()


class Blake2bTranscript:
    """
    Append-only BLAKE2b-512 absorber.

    Usage:
        tx = Blake2bTranscript()
        tx.absorb(cs_hash)
        for pk in contributions:
            tx.absorb(pk.to_bytes())
        digest = tx.digest()          # does not mutate the state
    """

    __slots__ = ("_hasher",)

    def __init__(self, initial: bytes = b"") -> None:
        self._hasher = _blake2b(digest_size=64)
        if initial:
            self._hasher.update(initial)

    def absorb(self, data: bytes) -> "Blake2bTranscript":
        self._hasher.update(data)
        return self

    def digest(self) -> bytes:
        """Return the current digest (does not mutate the state)."""
        return self._hasher.copy().digest()
