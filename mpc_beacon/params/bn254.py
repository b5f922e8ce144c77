"""
mpc_beacon.params.bn254
=======================

Reference ceremony-parameters backend: a Groth16 phase-2 style state over
BN254 (altbn128), built on ``py_ecc.optimized_bn128``.

State
-----
- ``cs_hash``        64-byte hash of the circuit the parameters belong to
- ``delta_g1``       δ·G1 (running product of all contributions' δ)
- ``delta_g2``       δ·G2
- ``h``, ``l``       G1 queries, divided by δ on every contribution
- ``contributions``  one :class:`PublicKey` per applied contribution

Contribution
------------
``contribute(rng, tag)`` samples a fresh δ from ``rng``, multiplies it into
``delta_g1``/``delta_g2``, multiplies every ``h``/``l`` element by δ⁻¹ and
appends a public key proving knowledge of δ (``s``, ``s·δ``, ``r·δ`` where
``r`` is derived from the ceremony transcript). The return value is the
BLAKE2b-512 hash of that public key. ``tag`` is the progress-report interval
in query elements; 0 disables progress logging.

Wire format (all integers big-endian)
-------------------------------------
    magic      16 bytes  b"mpc-bn254-phase2"
    version    u32       1
    cs_hash    64 bytes
    delta_g1   G1        x || y                       (64 bytes)
    delta_g2   G2        x.c1 || x.c0 || y.c1 || y.c0 (128 bytes)
    h          u32 count, then G1 * count
    l          u32 count, then G1 * count
    pubkeys    u32 count, then (delta_after G1, s G1, s_delta G1,
                                r_delta G2, transcript 64 bytes) * count

Points at infinity are not representable. ``read(verify=True)`` checks field
ranges, curve membership, G2 subgroup membership, the transcript chain of the
public keys and that the last contribution matches ``delta_g1``. It does not
run pairing checks on other parties' contributions.

WARNING: this backend is a pure-Python reference used by the CLI and tests.
It is slow for real circuits.
"""

from __future__ import annotations

import io
import logging
import struct
from dataclasses import dataclass, field
from hashlib import sha256
from typing import Any, BinaryIO, List, Optional, Sequence, Tuple

from py_ecc.optimized_bn128 import (
    FQ,
    FQ2,
    G1,
    G2,
    b as _B,
    b2 as _B2,
    curve_order as _Q,
    eq as _eq,
    field_modulus as _P,
    is_inf as _is_inf,
    is_on_curve as _is_on_curve,
    multiply as _multiply,
    normalize as _normalize,
)

from mpc_beacon.beacon.rng import ChaChaRng, seed_words
from mpc_beacon.utils.hash import Blake2bTranscript, blake2b_512

logger = logging.getLogger(__name__)

MAGIC = b"mpc-bn254-phase2"
VERSION = 1

G1_BYTES = 64
G2_BYTES = 128
HASH_BYTES = 64
PUBKEY_BYTES = 3 * G1_BYTES + G2_BYTES + HASH_BYTES

# Opaque py_ecc point tuples (projective coordinates).
G1Point = Any
G2Point = Any

_U32 = struct.Struct(">I")

__all__ = [
    "MAGIC",
    "VERSION",
    "PublicKey",
    "Phase2Parameters",
    "Phase2Format",
    "FORMAT",
    "encode_g1",
    "encode_g2",
    "decode_g1",
    "decode_g2",
]


# -------------------------
# Point encoding
# -------------------------


def _fq_int(c: Any) -> int:
    return int(c.n) if hasattr(c, "n") else int(c)


def _be32(n: int) -> bytes:
    return n.to_bytes(32, "big")


def encode_g1(P: G1Point) -> bytes:
    if _is_inf(P):
        raise ValueError("cannot encode the G1 point at infinity")
    x, y = _normalize(P)
    return _be32(_fq_int(x)) + _be32(_fq_int(y))


def encode_g2(Q: G2Point) -> bytes:
    if _is_inf(Q):
        raise ValueError("cannot encode the G2 point at infinity")
    x, y = _normalize(Q)
    x0, x1 = (_fq_int(c) for c in x.coeffs)
    y0, y1 = (_fq_int(c) for c in y.coeffs)
    return _be32(x1) + _be32(x0) + _be32(y1) + _be32(y0)


def _field_elems(data: bytes, count: int, what: str) -> List[int]:
    out = []
    for i in range(count):
        v = int.from_bytes(data[32 * i:32 * (i + 1)], "big")
        if v >= _P:
            raise ValueError(f"{what}: coordinate not in the base field")
        out.append(v)
    return out


def decode_g1(data: bytes, *, verify: bool = True, what: str = "G1 point") -> G1Point:
    if len(data) != G1_BYTES:
        raise ValueError(f"{what}: expected {G1_BYTES} bytes, got {len(data)}")
    x, y = _field_elems(data, 2, what)
    P = (FQ(x), FQ(y), FQ.one())
    if verify and not _is_on_curve(P, _B):
        raise ValueError(f"{what}: not on the BN254 G1 curve")
    return P


def decode_g2(data: bytes, *, verify: bool = True, what: str = "G2 point") -> G2Point:
    if len(data) != G2_BYTES:
        raise ValueError(f"{what}: expected {G2_BYTES} bytes, got {len(data)}")
    x1, x0, y1, y0 = _field_elems(data, 4, what)
    Q = (FQ2([x0, x1]), FQ2([y0, y1]), FQ2.one())
    if verify:
        if not _is_on_curve(Q, _B2):
            raise ValueError(f"{what}: not on the BN254 G2 twist")
        if not _is_inf(_multiply(Q, _Q)):
            raise ValueError(f"{what}: not in the prime-order G2 subgroup")
    return Q


# -------------------------
# Stream helpers
# -------------------------


class _Reader:
    __slots__ = ("_stream",)

    def __init__(self, stream: BinaryIO) -> None:
        self._stream = stream

    def exact(self, n: int, what: str) -> bytes:
        buf = bytearray()
        while len(buf) < n:
            chunk = self._stream.read(n - len(buf))
            if not chunk:
                raise ValueError(f"unexpected end of data while reading {what}")
            buf += chunk
        return bytes(buf)

    def u32(self, what: str) -> int:
        return _U32.unpack(self.exact(4, what))[0]

    def at_eof(self) -> bool:
        return not self._stream.read(1)


# -------------------------
# Records
# -------------------------


@dataclass
class PublicKey:
    """
    Proof that a contribution knew its δ.

    Fields:
      delta_after — δ·G1 of the parameters right after this contribution
      s, s_delta  — random G1 point and its δ multiple
      r_delta     — δ times the transcript-derived G2 point
      transcript  — BLAKE2b-512 of (cs_hash, previous public keys, s, s_delta)
    """

    delta_after: G1Point
    s: G1Point
    s_delta: G1Point
    r_delta: G2Point
    transcript: bytes

    def to_bytes(self) -> bytes:
        return (
            encode_g1(self.delta_after)
            + encode_g1(self.s)
            + encode_g1(self.s_delta)
            + encode_g2(self.r_delta)
            + self.transcript
        )

    @classmethod
    def from_bytes(cls, data: bytes, *, verify: bool = True, index: int = 0) -> "PublicKey":
        if len(data) != PUBKEY_BYTES:
            raise ValueError(f"contribution {index}: expected {PUBKEY_BYTES} bytes")
        o = 0
        points = []
        for name in ("delta_after", "s", "s_delta"):
            points.append(decode_g1(data[o:o + G1_BYTES], verify=verify, what=f"contribution {index} {name}"))
            o += G1_BYTES
        r_delta = decode_g2(data[o:o + G2_BYTES], verify=verify, what=f"contribution {index} r_delta")
        o += G2_BYTES
        return cls(points[0], points[1], points[2], r_delta, data[o:o + HASH_BYTES])


def _transcript_digest(cs_hash: bytes, previous: Sequence[PublicKey], s: G1Point, s_delta: G1Point) -> bytes:
    tx = Blake2bTranscript(cs_hash)
    for pk in previous:
        tx.absorb(pk.to_bytes())
    tx.absorb(encode_g1(s))
    tx.absorb(encode_g1(s_delta))
    return tx.digest()


def _hash_to_g2(digest: bytes) -> G2Point:
    rng = ChaChaRng(seed_words(digest[:32]))
    return _multiply(G2, _nonzero_scalar(rng))


def _nonzero_scalar(rng: ChaChaRng) -> int:
    return rng.randbelow(_Q - 1) + 1


# -------------------------
# Parameters
# -------------------------


@dataclass
class Phase2Parameters:
    """In-memory phase-2 state; see the module docstring for semantics."""

    cs_hash: bytes
    delta_g1: G1Point
    delta_g2: G2Point
    h: List[G1Point] = field(default_factory=list)
    l: List[G1Point] = field(default_factory=list)
    contributions: List[PublicKey] = field(default_factory=list)

    # ---- construction --------------------------------------------------

    @classmethod
    def new(cls, h_size: int = 2, l_size: int = 2, cs_hash: Optional[bytes] = None) -> "Phase2Parameters":
        """
        Deterministic initial state (δ = 1, no contributions) with queries
        derived from ``cs_hash``. Intended for tests and local dry runs.
        """
        if h_size < 0 or l_size < 0:
            raise ValueError("query sizes must be >= 0")
        cs = cs_hash if cs_hash is not None else blake2b_512(b"mpc-beacon reference circuit")
        if len(cs) != HASH_BYTES:
            raise ValueError(f"cs_hash must be {HASH_BYTES} bytes")

        def point(label: bytes, i: int) -> G1Point:
            k = int.from_bytes(sha256(cs + label + i.to_bytes(4, "big")).digest(), "big") % _Q
            return _multiply(G1, k or 1)

        return cls(
            cs_hash=cs,
            delta_g1=G1,
            delta_g2=G2,
            h=[point(b"h", i) for i in range(h_size)],
            l=[point(b"l", i) for i in range(l_size)],
        )

    # ---- (de)serialization ---------------------------------------------

    @classmethod
    def read(cls, stream: BinaryIO, verify: bool = True) -> "Phase2Parameters":
        r = _Reader(stream)
        if r.exact(len(MAGIC), "magic") != MAGIC:
            raise ValueError("not a bn254-phase2 parameters file (bad magic)")
        version = r.u32("version")
        if version != VERSION:
            raise ValueError(f"unsupported parameters version {version}")
        cs_hash = r.exact(HASH_BYTES, "cs_hash")
        delta_g1 = decode_g1(r.exact(G1_BYTES, "delta_g1"), verify=verify, what="delta_g1")
        delta_g2 = decode_g2(r.exact(G2_BYTES, "delta_g2"), verify=verify, what="delta_g2")

        queries: List[List[G1Point]] = []
        for name in ("h", "l"):
            count = r.u32(f"{name} length")
            queries.append([
                decode_g1(r.exact(G1_BYTES, f"{name}[{i}]"), verify=verify, what=f"{name}[{i}]")
                for i in range(count)
            ])

        n_contrib = r.u32("contribution count")
        contributions = [
            PublicKey.from_bytes(r.exact(PUBKEY_BYTES, f"contribution {i}"), verify=verify, index=i)
            for i in range(n_contrib)
        ]
        if not r.at_eof():
            raise ValueError("trailing data after parameters")

        params = cls(cs_hash, delta_g1, delta_g2, queries[0], queries[1], contributions)
        if verify:
            params.check_consistency()
        return params

    def write(self, stream: BinaryIO) -> None:
        stream.write(MAGIC)
        stream.write(_U32.pack(VERSION))
        stream.write(self.cs_hash)
        stream.write(encode_g1(self.delta_g1))
        stream.write(encode_g2(self.delta_g2))
        for query in (self.h, self.l):
            stream.write(_U32.pack(len(query)))
            for P in query:
                stream.write(encode_g1(P))
        stream.write(_U32.pack(len(self.contributions)))
        for pk in self.contributions:
            stream.write(pk.to_bytes())

    def to_bytes(self) -> bytes:
        buf = io.BytesIO()
        self.write(buf)
        return buf.getvalue()

    # ---- validation ----------------------------------------------------

    def check_consistency(self) -> None:
        """Raise ValueError if the contribution log does not match the state."""
        for i, pk in enumerate(self.contributions):
            expected = _transcript_digest(self.cs_hash, self.contributions[:i], pk.s, pk.s_delta)
            if pk.transcript != expected:
                raise ValueError(f"contribution {i}: transcript hash mismatch")
        if self.contributions and not _eq(self.contributions[-1].delta_after, self.delta_g1):
            raise ValueError("last contribution does not match delta_g1")
        if not self.contributions and not (_eq(self.delta_g1, G1) and _eq(self.delta_g2, G2)):
            raise ValueError("uncontributed parameters must have delta = 1")

    # ---- contribution --------------------------------------------------

    def contribute(self, rng: ChaChaRng, tag: int = 0) -> bytes:
        delta = _nonzero_scalar(rng)
        delta_inv = pow(delta, -1, _Q)

        s = _multiply(G1, _nonzero_scalar(rng))
        s_delta = _multiply(s, delta)
        transcript = _transcript_digest(self.cs_hash, self.contributions, s, s_delta)
        r_delta = _multiply(_hash_to_g2(transcript), delta)

        self.h = self._scale(self.h, delta_inv, "h", tag)
        self.l = self._scale(self.l, delta_inv, "l", tag)
        self.delta_g1 = _multiply(self.delta_g1, delta)
        self.delta_g2 = _multiply(self.delta_g2, delta)

        pk = PublicKey(self.delta_g1, s, s_delta, r_delta, transcript)
        self.contributions.append(pk)
        return blake2b_512(pk.to_bytes())

    @staticmethod
    def _scale(points: Sequence[G1Point], k: int, name: str, progress_every: int) -> List[G1Point]:
        out = []
        total = len(points)
        for i, P in enumerate(points, start=1):
            out.append(_multiply(P, k))
            if progress_every > 0 and (i % progress_every == 0 or i == total):
                logger.info("contribution progress %s: %d/%d", name, i, total)
        return out

    # ---- inspection ----------------------------------------------------

    def contribution_hashes(self) -> Tuple[bytes, ...]:
        """Fingerprints of every applied contribution, oldest first."""
        return tuple(blake2b_512(pk.to_bytes()) for pk in self.contributions)


class Phase2Format:
    """``ParametersFormat`` adapter registered as ``bn254-phase2``."""

    name = "bn254-phase2"

    def read(self, stream: BinaryIO, verify: bool = True) -> Phase2Parameters:
        return Phase2Parameters.read(stream, verify=verify)


FORMAT = Phase2Format()
