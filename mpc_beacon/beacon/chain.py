"""
mpc_beacon.beacon.chain
=======================

The beacon seed derivation: a strictly sequential SHA-256 hash chain.

    state_0     = beacon                      (32 bytes, decoded from hex)
    state_{i+1} = SHA256(state_i)             for i in [0, 2^n)
    result      = state_{2^n}

While running, the chain emits a :class:`~mpc_beacon.types.core.Checkpoint`
every ``2^(n - 10)`` steps, starting at index 0, so every valid ``n`` yields
exactly 1024 checkpoints. Independent verifiers split the transcript between
themselves and each recompute a disjoint range of segments
(:func:`verify_checkpoints`), instead of repeating the whole chain.

Both inputs are validated before the first hash is computed: an invalid
request never pays for the chain.
"""

from __future__ import annotations

import logging
from hashlib import sha256 as _sha256
from typing import Callable, Iterator, List, Optional, Sequence

from mpc_beacon.constants import (
    BEACON_HASH_LEN,
    CHECKPOINT_COUNT,
    CHECKPOINT_COUNT_LOG2,
    ITERATIONS_MAX,
    ITERATIONS_MIN,
)
from mpc_beacon.errors import BeaconFormatError, IterationRangeError
from mpc_beacon.types.core import BeaconDerivation, ChainMismatch, Checkpoint
from mpc_beacon.utils.bytes import from_hex
from mpc_beacon.utils.hash import sha256_iter

logger = logging.getLogger(__name__)

CheckpointCallback = Callable[[Checkpoint], None]

__all__ = [
    "CheckpointCallback",
    "parse_beacon_hash",
    "check_iterations",
    "checkpoint_interval",
    "advance",
    "BeaconChain",
    "derive_beacon",
    "verify_segment",
    "verify_checkpoints",
]


# -------------------------
# Input validation
# -------------------------


def parse_beacon_hash(value: str) -> bytes:
    """
    Decode the beacon hex string into exactly 32 bytes.

    Raises BeaconFormatError if *value* is not bare hex or decodes to any other length.
    """
    if not isinstance(value, str):
        raise BeaconFormatError(value=repr(value), reason="not-hex")
    try:
        raw = from_hex(value)
    except ValueError:
        raise BeaconFormatError(value=value, reason="not-hex") from None
    if len(raw) != BEACON_HASH_LEN:
        raise BeaconFormatError(value=value, reason="length", length=len(raw))
    return raw


def check_iterations(n: object) -> int:
    """Return *n* if it is an int in [10, 63], else raise IterationRangeError."""
    if isinstance(n, bool) or not isinstance(n, int):
        raise IterationRangeError(iterations=n, minimum=ITERATIONS_MIN, maximum=ITERATIONS_MAX)
    if not (ITERATIONS_MIN <= n <= ITERATIONS_MAX):
        raise IterationRangeError(iterations=n, minimum=ITERATIONS_MIN, maximum=ITERATIONS_MAX)
    return n


def checkpoint_interval(n: int) -> int:
    """Number of hash steps between two checkpoints for exponent *n*."""
    return 1 << (check_iterations(n) - CHECKPOINT_COUNT_LOG2)


def advance(digest: bytes, steps: int) -> bytes:
    """Apply the chain step function *steps* times starting from *digest*."""
    if len(digest) != BEACON_HASH_LEN:
        raise ValueError(f"chain state must be {BEACON_HASH_LEN} bytes, got {len(digest)}")
    return sha256_iter(digest, steps)


# -------------------------
# Chain runner
# -------------------------


class BeaconChain:
    """
    One run of the beacon hash chain.

    Usage:
        chain = BeaconChain.from_hex(beacon_hex, 20)
        result = chain.run(on_checkpoint=reporter.checkpoint)
        result.final          # 32-byte seed material

    ``iter_checkpoints()`` is the lower-level generator: it yields each
    checkpoint as it is reached and leaves the final state in ``self.final``
    once exhausted.
    """

    __slots__ = ("beacon", "iterations", "interval", "final")

    def __init__(self, beacon: bytes, iterations: int) -> None:
        self.iterations = check_iterations(iterations)
        beacon = bytes(beacon)
        if len(beacon) != BEACON_HASH_LEN:
            raise BeaconFormatError(value=beacon.hex(), reason="length", length=len(beacon))
        self.beacon = beacon
        # computed once per run, never per step
        self.interval = 1 << (self.iterations - CHECKPOINT_COUNT_LOG2)
        self.final: Optional[bytes] = None

    @classmethod
    def from_hex(cls, beacon_hex: str, iterations: int) -> "BeaconChain":
        # range check first: a bad n must fail even when the hash is also bad
        n = check_iterations(iterations)
        return cls(parse_beacon_hash(beacon_hex), n)

    @property
    def steps(self) -> int:
        return 1 << self.iterations

    def iter_checkpoints(self) -> Iterator[Checkpoint]:
        state = self.beacon
        interval = self.interval
        for k in range(CHECKPOINT_COUNT):
            yield Checkpoint(index=k * interval, digest=state)
            for _ in range(interval):
                state = _sha256(state).digest()
        self.final = state

    def run(self, on_checkpoint: Optional[CheckpointCallback] = None) -> BeaconDerivation:
        logger.debug(
            "beacon chain start: n=%d steps=%d interval=%d",
            self.iterations, self.steps, self.interval,
        )
        collected: List[Checkpoint] = []
        for cp in self.iter_checkpoints():
            collected.append(cp)
            if on_checkpoint is not None:
                on_checkpoint(cp)
        if self.final is None:
            raise RuntimeError("beacon chain stopped before its final state")
        logger.debug("beacon chain done: final=%s", self.final.hex())
        return BeaconDerivation(
            beacon=self.beacon,
            iterations=self.iterations,
            final=self.final,
            checkpoints=tuple(collected),
        )


def derive_beacon(
    beacon_hex: str,
    iterations: int,
    on_checkpoint: Optional[CheckpointCallback] = None,
) -> BeaconDerivation:
    """Validate the inputs, then run the full 2^n chain."""
    return BeaconChain.from_hex(beacon_hex, iterations).run(on_checkpoint)


# -------------------------
# Re-verification
# -------------------------


def verify_segment(start: Checkpoint, end: Checkpoint) -> Optional[ChainMismatch]:
    """
    Recompute the chain from *start* up to *end.index*.

    Returns None when the recomputed state equals *end.digest*.
    """
    if end.index < start.index:
        raise ValueError(f"segment end {end.index} precedes start {start.index}")
    got = advance(start.digest, end.index - start.index)
    if got == bytes(end.digest):
        return None
    return ChainMismatch(start=start.index, end=end.index, expected=bytes(end.digest), got=got)


def verify_checkpoints(
    checkpoints: Sequence[Checkpoint],
    iterations: int,
    *,
    final: Optional[bytes] = None,
) -> List[ChainMismatch]:
    """
    Re-verify a run of consecutive checkpoints of a 2^n chain.

    *checkpoints* may be any contiguous slice of a transcript (a verifier's
    share of the work). Every index must lie on the checkpoint grid for *n*.
    When *final* is given, the segment from the last checkpoint to the end of
    the chain (index 2^n) is checked too.

    Returns the list of mismatching segments (empty when everything matches).
    """
    n = check_iterations(iterations)
    interval = 1 << (n - CHECKPOINT_COUNT_LOG2)
    total = 1 << n

    ordered = sorted(checkpoints, key=lambda cp: cp.index)
    for cp in ordered:
        if cp.index % interval != 0 or cp.index >= total:
            raise ValueError(
                f"checkpoint index {cp.index} is not on the 2^{n} chain grid (interval {interval})"
            )

    mismatches: List[ChainMismatch] = []
    for a, b in zip(ordered, ordered[1:]):
        bad = verify_segment(a, b)
        if bad is not None:
            logger.info("checkpoint segment mismatch %d->%d", a.index, b.index)
            mismatches.append(bad)

    if final is not None and ordered:
        last = ordered[-1]
        bad = verify_segment(last, Checkpoint(index=total, digest=bytes(final)))
        if bad is not None:
            mismatches.append(bad)
    return mismatches
