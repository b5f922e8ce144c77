"""
mpc_beacon.params
=================

The boundary between the beacon core and the ceremony parameters.

Design
------
- The core never looks inside the parameters. It needs exactly three
  capabilities, captured by two Protocols:

    ParametersFormat.read(stream, verify) -> CeremonyParameters
    CeremonyParameters.contribute(rng, tag) -> fingerprint bytes
    CeremonyParameters.write(stream) -> None

- Backends live in sibling modules (e.g., ``bn254.py``) and are looked up by
  name through a small registry, so alternate parameter formats can be
  plugged in without touching the pipeline.
- Built-in backends are imported on first use, keeping ``py_ecc`` out of the
  import path of the chain/CLI-only commands.

Usage
-----
>>> from mpc_beacon.params import get_format
>>> fmt = get_format("bn254-phase2")
>>> params = fmt.read(stream, verify=True)
"""

from __future__ import annotations

import importlib
from typing import BinaryIO, Dict, List, Protocol, runtime_checkable

from mpc_beacon.beacon.rng import ChaChaRng


@runtime_checkable
class CeremonyParameters(Protocol):
    """Loaded ceremony state, owned by the pipeline for one run."""

    def contribute(self, rng: ChaChaRng, tag: int) -> bytes:
        """Mutate in place with randomness drawn from *rng*; return the fingerprint."""
        ...

    def write(self, stream: BinaryIO) -> None:
        """Serialize the current state to *stream*."""
        ...


@runtime_checkable
class ParametersFormat(Protocol):
    """Deserializer for one parameters file format."""

    name: str

    def read(self, stream: BinaryIO, verify: bool = True) -> CeremonyParameters:
        """
        Load parameters from *stream*. With ``verify=True`` the full structural
        validation runs; malformed input raises ``ValueError``.
        """
        ...


# name -> "module:attribute" for backends shipped with the package
_BUILTIN: Dict[str, str] = {
    "bn254-phase2": "mpc_beacon.params.bn254:FORMAT",
}

_REGISTRY: Dict[str, ParametersFormat] = {}


def register_format(name: str, fmt: ParametersFormat) -> None:
    """Register (or replace) a parameters backend under *name*."""
    if not name:
        raise ValueError("format name must be non-empty")
    _REGISTRY[name] = fmt


def _load_builtin(name: str) -> ParametersFormat:
    module_name, attr = _BUILTIN[name].split(":")
    module = importlib.import_module(module_name)
    fmt = getattr(module, attr)
    _REGISTRY[name] = fmt
    return fmt


def get_format(name: str) -> ParametersFormat:
    """Return the backend registered under *name* (KeyError if unknown)."""
    if name in _REGISTRY:
        return _REGISTRY[name]
    if name in _BUILTIN:
        return _load_builtin(name)
    raise KeyError(
        f"unknown parameters format {name!r}; available: {', '.join(available_formats())}"
    )


def available_formats() -> List[str]:
    return sorted(set(_REGISTRY) | set(_BUILTIN))


__all__ = [
    "CeremonyParameters",
    "ParametersFormat",
    "register_format",
    "get_format",
    "available_formats",
]
