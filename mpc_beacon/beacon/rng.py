"""
mpc_beacon.beacon.rng
=====================

Seed mapping and the deterministic generator handed to the contribution.

Seed mapping (interoperability contract, must stay bit-for-bit):

    seed[i] = big-endian u32 of digest[4*i : 4*i + 4]      for i in 0..7

All 32 bytes of the final chain state are consumed; nothing is left over.

Generator
---------
:class:`ChaChaRng` is the ChaCha20 keystream keyed by the eight seed words,
each stored little-endian in the key (the ChaCha state layout), with block
counter 0 and an all-zero nonce. ``next_u32`` reads consecutive little-endian
keystream words; ``next_u64`` combines two of them, high word first. The
keystream itself comes from the ``cryptography`` package (OpenSSL's ChaCha20,
16-byte nonce = 4-byte LE counter || 12-byte nonce).
"""

from __future__ import annotations

import struct
from typing import Sequence, Tuple

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms

from mpc_beacon.constants import BEACON_HASH_LEN, SEED_WORDS
from mpc_beacon.utils.bytes import ensure_len

__all__ = [
    "seed_words",
    "ChaChaRng",
    "rng_from_beacon",
]

_SEED_STRUCT = struct.Struct(">%dI" % SEED_WORDS)
_U32_MAX = 0xFFFFFFFF
_BLOCK = 64
_REFILL = _BLOCK * 16


def seed_words(digest: bytes) -> Tuple[int, ...]:
    """Split a 32-byte chain state into 8 big-endian unsigned 32-bit words."""
    raw = ensure_len(digest, BEACON_HASH_LEN, name="beacon digest")
    return _SEED_STRUCT.unpack(raw)


class ChaChaRng:
    """
    ChaCha20 keystream generator.

    Not a general-purpose PRNG: its only job is to turn the public beacon seed
    into the reproducible randomness consumed by one ceremony contribution.
    """

    __slots__ = ("_seed", "_stream", "_buf", "_pos")

    def __init__(self, seed: Sequence[int]) -> None:
        words = tuple(seed)
        if len(words) != SEED_WORDS:
            raise ValueError(f"seed must have {SEED_WORDS} words, got {len(words)}")
        for w in words:
            if not isinstance(w, int) or not (0 <= w <= _U32_MAX):
                raise ValueError(f"seed word out of u32 range: {w!r}")
        self._seed = words
        key = b"".join(w.to_bytes(4, "little") for w in words)
        cipher = Cipher(algorithms.ChaCha20(key, bytes(16)), mode=None)
        self._stream = cipher.encryptor()
        self._buf = b""
        self._pos = 0

    @property
    def seed(self) -> Tuple[int, ...]:
        return self._seed

    def _take(self, n: int) -> bytes:
        if len(self._buf) - self._pos < n:
            want = max(_REFILL, -(-n // _BLOCK) * _BLOCK)
            self._buf = self._buf[self._pos:] + self._stream.update(bytes(want))
            self._pos = 0
        out = self._buf[self._pos:self._pos + n]
        self._pos += n
        return out

    def next_u32(self) -> int:
        return int.from_bytes(self._take(4), "little")

    def next_u64(self) -> int:
        hi = self.next_u32()
        lo = self.next_u32()
        return (hi << 32) | lo

    def fill_bytes(self, n: int) -> bytes:
        """Return the next *n* raw keystream bytes."""
        if n < 0:
            raise ValueError("n must be >= 0")
        return self._take(n)

    def randbelow(self, bound: int) -> int:
        """
        Uniform integer in [0, bound) by masked rejection sampling over u64 limbs
        (least-significant limb drawn first).
        """
        if bound <= 0:
            raise ValueError("bound must be > 0")
        if bound == 1:
            return 0
        bits = (bound - 1).bit_length()
        limbs = -(-bits // 64)
        mask = (1 << bits) - 1
        while True:
            acc = 0
            for i in range(limbs):
                acc |= self.next_u64() << (64 * i)
            acc &= mask
            if acc < bound:
                return acc


def rng_from_beacon(digest: bytes) -> ChaChaRng:
    """Build the contribution generator from the final beacon chain state."""
    return ChaChaRng(seed_words(digest))
