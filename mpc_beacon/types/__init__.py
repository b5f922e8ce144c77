"""
Beacon contribution — types package

Typed records shared across the beacon pipeline, re-exported for convenience:
    from mpc_beacon.types import Checkpoint, BeaconDerivation
"""

from __future__ import annotations

from .core import BeaconDerivation, ChainMismatch, Checkpoint, ContributionReceipt

__all__ = [
    "Checkpoint",
    "BeaconDerivation",
    "ChainMismatch",
    "ContributionReceipt",
]
