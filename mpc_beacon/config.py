"""
Beacon contribution configuration.

This file defines the typed configuration consumed by the pipeline and CLI:
- Default input/output parameter file locations
- The parameters backend (format) name
- Reporting verbosity

The pipeline receives a :class:`BeaconConfig` at construction; nothing reads
process-wide mutable state. Configs can be built:
- directly (dataclass constructor),
- from environment variables (prefix configurable),
- from a JSON or YAML file,
- with :func:`load`, which reads the file named by ``MPC_BEACON_CONFIG`` and
  lets the environment override it (the CLI path).
"""

from __future__ import annotations

import json
import os
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import yaml

from mpc_beacon.constants import DEFAULT_PARAMS_FORMAT, DEFAULT_PARAMS_PATH


@dataclass
class BeaconConfig:
    """
    input_path:    parameters file read by ``beacon`` when ``-i`` is omitted
    output_path:   file written by ``beacon`` when ``-o`` is omitted
                   (defaults to the input location: the ceremony file is
                   updated in place)
    params_format: name of the parameters backend (see ``mpc_beacon.params``)
    quiet:         suppress the 1024 per-checkpoint lines
    """

    input_path: str = DEFAULT_PARAMS_PATH
    output_path: str = DEFAULT_PARAMS_PATH
    params_format: str = DEFAULT_PARAMS_FORMAT
    quiet: bool = False

    def validate(self) -> None:
        for name in ("input_path", "output_path"):
            value = getattr(self, name)
            if not isinstance(value, str) or not value.strip():
                raise ValueError(f"{name} must be a non-empty path")
        if not isinstance(self.params_format, str) or not self.params_format:
            raise ValueError("params_format must be a non-empty string")

    # -------------------------
    # Serialization helpers
    # -------------------------

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True)

    # -------------------------
    # Loaders
    # -------------------------

    @staticmethod
    def from_env(prefix: str = "MPC_BEACON_", base: Optional["BeaconConfig"] = None) -> "BeaconConfig":
        """
        Load configuration from environment variables. All variables are optional;
        unset ones keep the value from *base* (defaults if omitted).

        Supported keys:
          - MPC_BEACON_INPUT=ceremony/phase2.params
          - MPC_BEACON_OUTPUT=ceremony/phase2.final.params
          - MPC_BEACON_FORMAT=bn254-phase2
          - MPC_BEACON_QUIET=true
        """
        base = base if base is not None else BeaconConfig()

        def _get(name: str, cast: Any, default: Any) -> Any:
            key = prefix + name
            raw = os.getenv(key)
            if raw is None:
                return default
            try:
                if cast is bool:
                    return raw.lower() in {"1", "true", "yes", "on"}
                return cast(raw)
            except Exception as e:
                raise ValueError(f"Invalid value for {key}: {raw!r}") from e

        cfg = BeaconConfig(
            input_path=_get("INPUT", str, base.input_path),
            output_path=_get("OUTPUT", str, base.output_path),
            params_format=_get("FORMAT", str, base.params_format),
            quiet=_get("QUIET", bool, base.quiet),
        )
        cfg.validate()
        return cfg

    @staticmethod
    def from_file(path: str) -> "BeaconConfig":
        """
        Load from a JSON or YAML file with the dataclass field names as keys:

            input_path: ceremony/phase2.params
            output_path: ceremony/phase2.final.params
            params_format: bn254-phase2
            quiet: false

        Unknown keys are rejected.
        """
        try:
            with open(path, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            raise ValueError(f"{path!r}: {e.strerror or e}") from e
        if path.endswith(".json"):
            data = json.loads(text)
        else:
            try:
                data = yaml.safe_load(text) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"{path!r}: invalid YAML: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"{path!r}: expected a mapping at the top level")

        known = set(BeaconConfig.__dataclass_fields__)
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"{path!r}: unknown config keys: {', '.join(unknown)}")

        cfg = BeaconConfig(**data)
        cfg.validate()
        return cfg


def load(path: Optional[str] = None, prefix: str = "MPC_BEACON_") -> BeaconConfig:
    """
    Load configuration using the following precedence:
      1) File at *path*, else at $MPC_BEACON_CONFIG (JSON/YAML), else defaults
      2) Environment variables (MPC_BEACON_*), applied on top
    """
    file_path = path or os.getenv(prefix + "CONFIG")
    base = BeaconConfig.from_file(file_path) if file_path else BeaconConfig()
    return BeaconConfig.from_env(prefix, base=base)


__all__ = [
    "BeaconConfig",
    "load",
]
