"""
mpc_beacon.beacon
=================

The beacon side of a contribution: the sequential hash chain
(:mod:`.chain`), the seed → generator mapping (:mod:`.rng`), the operator
report (:mod:`.report`) and transcript parsing for re-verification
(:mod:`.transcript`).

Usage
-----
>>> from mpc_beacon.beacon import derive_beacon, rng_from_beacon
>>> result = derive_beacon("00" * 32, 10)
>>> rng = rng_from_beacon(result.final)
"""

from __future__ import annotations

from .chain import (
    BeaconChain,
    check_iterations,
    checkpoint_interval,
    derive_beacon,
    parse_beacon_hash,
    verify_checkpoints,
)
from .report import CheckpointLogger, format_fingerprint
from .rng import ChaChaRng, rng_from_beacon, seed_words

__all__ = [
    "BeaconChain",
    "check_iterations",
    "checkpoint_interval",
    "derive_beacon",
    "parse_beacon_hash",
    "verify_checkpoints",
    "CheckpointLogger",
    "format_fingerprint",
    "ChaChaRng",
    "rng_from_beacon",
    "seed_words",
]
