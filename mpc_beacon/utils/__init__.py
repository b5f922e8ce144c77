"""
mpc_beacon.utils
----------------

Light helpers shared across the beacon components: strict hex/bytes handling
(:mod:`.bytes`) and hashlib wrappers (:mod:`.hash`).

This package file deliberately avoids eager imports.
"""

__all__: list[str] = []
