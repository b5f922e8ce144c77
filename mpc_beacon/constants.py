"""
Beacon contribution constants.

This module centralizes:
- The accepted iteration-count range and the fixed checkpoint count
- Byte sizes of the beacon hash and seed, and the fingerprint display grouping
- Default file locations and the default parameters backend name

Changing any of the derivation constants invalidates published ceremony
transcripts: independent verifiers recompute the chain from these values.
"""

from __future__ import annotations

# -----------------------------
# Hash chain
# -----------------------------
# Chain length is 2^n for n in [ITERATIONS_MIN, ITERATIONS_MAX].
ITERATIONS_MIN: int = 10
ITERATIONS_MAX: int = 63

# 2^10 checkpoints are emitted for every valid n; the interval is 2^(n - 10).
CHECKPOINT_COUNT_LOG2: int = 10
CHECKPOINT_COUNT: int = 1 << CHECKPOINT_COUNT_LOG2


# -----------------------------
# Sizes
# -----------------------------
BEACON_HASH_LEN: int = 32
SEED_WORDS: int = 8

# Fingerprint display grouping (bytes per group / bytes per line).
FINGERPRINT_GROUP_BYTES: int = 4
FINGERPRINT_LINE_BYTES: int = 16

# -----------------------------
# Files / backends
# -----------------------------
DEFAULT_PARAMS_PATH: str = "mpc.params"
DEFAULT_PARAMS_FORMAT: str = "bn254-phase2"


__all__ = [
    "ITERATIONS_MIN",
    "ITERATIONS_MAX",
    "CHECKPOINT_COUNT_LOG2",
    "CHECKPOINT_COUNT",
    "BEACON_HASH_LEN",
    "SEED_WORDS",
    "FINGERPRINT_GROUP_BYTES",
    "FINGERPRINT_LINE_BYTES",
    "DEFAULT_PARAMS_PATH",
    "DEFAULT_PARAMS_FORMAT",
]
