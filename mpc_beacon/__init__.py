"""
MPC ceremony random-beacon contribution.

This package applies the final, publicly verifiable contribution of a
trusted-setup ceremony:
- derive a seed from a public beacon value through 2^n sequential SHA-256 steps,
- seed a ChaCha20 generator with it,
- hand the generator to the ceremony parameters' ``contribute`` operation,
- persist the updated parameters and print the contribution fingerprint.

Only light, stable exports are surfaced here to avoid import cycles.
"""

from __future__ import annotations

from .version import __version__

__all__ = ["__version__"]
