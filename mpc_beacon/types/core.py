from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

"""
Core typed records for the beacon contribution.

These are intentionally minimal and free of heavy dependencies so they can be
shared across the chain deriver, the reporter, the pipeline, the CLI and tests.

Types provided:
  • Checkpoint          — (iteration index, 32-byte chain state) snapshot
  • BeaconDerivation    — beacon input, exponent n, final state and checkpoints
  • ChainMismatch       — one failed segment found by re-verification
  • ContributionReceipt — outcome of a successful pipeline run
"""

# Internal constants (kept local to avoid import cycles)
_HASH32 = 32
_SEED_WORDS = 8


def _require_len(name: str, b: bytes, n: int) -> None:
    if len(b) != n:
        raise ValueError(f"{name} must be exactly {n} bytes (got {len(b)})")


def _require_nonneg(name: str, v: int) -> None:
    if v < 0:
        raise ValueError(f"{name} must be non-negative (got {v})")


# ---- Chain records -----------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Checkpoint:
    """
    Snapshot of the chain state.

    Fields:
      index  — number of hash steps applied so far (the state *before* step
               ``index`` runs); a multiple of the checkpoint interval
      digest — the 32-byte chain state at that point
    """

    index: int
    digest: bytes

    def __post_init__(self) -> None:  # type: ignore[override]
        if not isinstance(self.index, int) or isinstance(self.index, bool):
            raise TypeError("index must be an int")
        _require_nonneg("index", self.index)
        if not isinstance(self.digest, (bytes, bytearray)):
            raise TypeError("digest must be bytes")
        _require_len("digest", self.digest, _HASH32)

    @property
    def hex(self) -> str:
        return bytes(self.digest).hex()


@dataclass(frozen=True, slots=True)
class BeaconDerivation:
    """
    Result of running the beacon hash chain.

    Fields:
      beacon      — the decoded 32-byte beacon value (chain state at index 0)
      iterations  — the exponent n; the chain ran 2^n steps
      final       — chain state after all 2^n steps
      checkpoints — the 1024 snapshots emitted during the run
    """

    beacon: bytes
    iterations: int
    final: bytes
    checkpoints: Tuple[Checkpoint, ...] = ()

    def __post_init__(self) -> None:  # type: ignore[override]
        _require_len("beacon", self.beacon, _HASH32)
        _require_len("final", self.final, _HASH32)
        if not isinstance(self.iterations, int):
            raise TypeError("iterations must be int")
        _require_nonneg("iterations", self.iterations)

    @property
    def steps(self) -> int:
        return 1 << self.iterations


@dataclass(frozen=True, slots=True)
class ChainMismatch:
    """
    A checkpoint segment whose recomputed endpoint differs from the transcript.

    Fields:
      start     — index the recomputation started from
      end       — index that was expected to be reached
      expected  — digest recorded in the transcript at ``end``
      got       — digest actually obtained by hashing from ``start``
    """

    start: int
    end: int
    expected: bytes
    got: bytes

    def __str__(self) -> str:  # pragma: no cover - trivial formatting
        return (
            f"mismatch {self.start}->{self.end}: expected {self.expected.hex()} "
            f"got {self.got.hex()}"
        )


# ---- Pipeline outcome --------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ContributionReceipt:
    """
    Outcome of a successful contribution run.

    Fields:
      final_hash   — final beacon chain state (32 bytes)
      seed         — the 8 big-endian 32-bit words seeding the generator
      fingerprint  — fixed-size digest returned by the contribution
      input_path   — where the parameters were read from (None for streams)
      output_path  — where the updated parameters were written (None for streams)
    """

    final_hash: bytes
    seed: Tuple[int, ...]
    fingerprint: bytes
    input_path: Optional[str] = None
    output_path: Optional[str] = None

    def __post_init__(self) -> None:  # type: ignore[override]
        _require_len("final_hash", self.final_hash, _HASH32)
        if len(self.seed) != _SEED_WORDS:
            raise ValueError(f"seed must have {_SEED_WORDS} words (got {len(self.seed)})")
        if not isinstance(self.fingerprint, (bytes, bytearray)):
            raise TypeError("fingerprint must be bytes")
        if not self.fingerprint:
            raise ValueError("fingerprint must not be empty")


__all__ = [
    "Checkpoint",
    "BeaconDerivation",
    "ChainMismatch",
    "ContributionReceipt",
]
